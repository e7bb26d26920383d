"""Debounced 16-key input state.

Hosts rarely deliver reliable key-up events to a polling interpreter, so a key
counts as held while its most recent press is younger than the debounce
window.
"""

import threading
import time
from typing import Callable, Optional

import jax.numpy as jnp

from chipvm.constants import DEBOUNCE_WINDOW, NUM_KEYS


class InputState:
    """Last-press timestamps for the 16 logical keys, guarded by one condition variable."""

    def __init__(self, debounce_window: float = DEBOUNCE_WINDOW, clock: Callable[[], float] = time.monotonic):
        self.debounce_window = debounce_window
        self.clock = clock
        self._pressed_at: list[Optional[float]] = [None] * NUM_KEYS
        self._condition = threading.Condition()

    @staticmethod
    def _check_key(key: int) -> int:
        key = int(key)
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"Key index must be within 0..{NUM_KEYS - 1}, got {key}")
        return key

    def record_press(self, key: int, at: Optional[float] = None):
        """Register a press of ``key`` at time ``at`` (defaults to now)."""
        key = self._check_key(key)
        with self._condition:
            self._pressed_at[key] = self.clock() if at is None else at
            self._condition.notify_all()

    def _is_down_locked(self, key: int, now: float) -> bool:
        pressed_at = self._pressed_at[key]
        return pressed_at is not None and now - pressed_at <= self.debounce_window

    def is_down(self, key: int, now: Optional[float] = None) -> bool:
        key = self._check_key(key)
        with self._condition:
            return self._is_down_locked(key, self.clock() if now is None else now)

    def snapshot(self, now: Optional[float] = None) -> jnp.ndarray:
        """Down state of every key as a boolean array of shape (16,)."""
        with self._condition:
            now = self.clock() if now is None else now
            return jnp.array([self._is_down_locked(k, now) for k in range(NUM_KEYS)], dtype=jnp.bool_)

    def first_down(self, now: Optional[float] = None) -> Optional[int]:
        """Lowest index of a key currently down, or None."""
        with self._condition:
            now = self.clock() if now is None else now
            for key in range(NUM_KEYS):
                if self._is_down_locked(key, now):
                    return key
        return None

    def wait_for_press(self, timeout: float) -> bool:
        """Block until any key is down or ``timeout`` seconds pass; return whether one is down."""
        with self._condition:
            return self._condition.wait_for(
                lambda: any(self._is_down_locked(k, self.clock()) for k in range(NUM_KEYS)),
                timeout=timeout,
            )

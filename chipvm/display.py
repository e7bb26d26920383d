"""CHIP-8 framebuffer with double buffering and sprite compositing.

The framebuffer is a host peripheral shared with the presentation thread, so
its planes are plain numpy arrays rather than device arrays.
"""

import threading

import jax.numpy as jnp
import numpy as np
from chex import dataclass

from chipvm.constants import ADDRESS_MASK, MAX_SPRITE_HEIGHT, SCREEN_HEIGHT, SCREEN_WIDTH, SPRITE_WIDTH

_COLUMN_SHIFTS = np.arange(SPRITE_WIDTH - 1, -1, -1, dtype=np.uint8)


@dataclass(frozen=True)
class Sprite:
    """Rows of up to 8 pixels each, most significant bit leftmost."""
    rows: tuple

    @property
    def height(self) -> int:
        return len(self.rows)

    @classmethod
    def from_memory(cls, memory: jnp.ndarray, address: int, height: int) -> "Sprite":
        """Read ``height`` consecutive bytes starting at ``address``, wrapping at the end of memory."""
        if not 0 <= height <= MAX_SPRITE_HEIGHT:
            raise ValueError(f"Sprite height must be within 0..{MAX_SPRITE_HEIGHT}, got {height}")
        addresses = (int(address) + np.arange(height)) & ADDRESS_MASK
        return cls(rows=tuple(np.asarray(memory)[addresses].tolist()))

    def bits(self) -> np.ndarray:
        """Boolean pixel grid of shape (height, 8)."""
        rows = np.array(self.rows, dtype=np.uint8).reshape(-1, 1)
        return ((rows >> _COLUMN_SHIFTS) & 1).astype(np.bool_)


class DisplayBuffer:
    """64x32 monochrome display with a front and a back plane.

    Drawing instructions write the back plane; the presentation side calls
    :meth:`present` to copy it into the front plane and reads pixels from
    there. A single lock guards both planes and the dirty flag. Planes are
    indexed ``[x, y]``, so pixel (x, y) is backed by exactly one plane cell.
    """

    def __init__(self, width: int = SCREEN_WIDTH, height: int = SCREEN_HEIGHT):
        self.width = width
        self.height = height
        self._lock = threading.Lock()
        self._front = np.zeros((width, height), dtype=np.bool_)
        self._back = np.zeros((width, height), dtype=np.bool_)
        self._dirty = True

    @property
    def dirty(self) -> bool:
        with self._lock:
            return self._dirty

    def clear(self):
        with self._lock:
            self._back[:] = False
            self._dirty = True

    def draw(self, x: int, y: int, sprite: Sprite) -> bool:
        """XOR-blit ``sprite`` with its top-left corner at (x, y).

        Each pixel wraps around both screen edges independently. Returns True
        when any previously set pixel was turned off.
        """
        if sprite.height == 0:
            return False
        bits = sprite.bits()
        columns = (int(x) + np.arange(SPRITE_WIDTH)) % self.width
        rows = (int(y) + np.arange(sprite.height)) % self.height
        # (8, height) window of the plane under the sprite
        cells = np.ix_(columns, rows)
        with self._lock:
            window = self._back[cells]
            collided = bool(np.any(window & bits.T))
            self._back[cells] = window ^ bits.T
            if bits.any():
                self._dirty = True
        return collided

    def get_pixel(self, x: int, y: int, front: bool = True) -> bool:
        with self._lock:
            plane = self._front if front else self._back
            return bool(plane[x % self.width, y % self.height])

    def present(self) -> bool:
        """Publish the back plane to the front plane.

        Returns whether anything changed since the previous call, i.e. whether
        the presentation side should redraw.
        """
        with self._lock:
            if not self._dirty:
                return False
            self._front = self._back.copy()
            self._dirty = False
            return True

    def snapshot(self) -> np.ndarray:
        """Copy of the front plane, shape (width, height)."""
        with self._lock:
            return self._front.copy()

    def back_snapshot(self) -> np.ndarray:
        with self._lock:
            return self._back.copy()

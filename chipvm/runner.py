"""Threaded interpreter runtime.

Wires an :class:`~chipvm.emulator.Executor` to its concurrent collaborators:
a timer thread ticking at ``timer_hz`` and the executor loop paced at
``instructions_per_second``. Presentation and key capture run elsewhere and
only touch the shared :class:`DisplayBuffer` and :class:`InputState`.
"""

import threading
import time
from typing import Optional

from chipvm.config import InterpreterConfig
from chipvm.devices import create_devices
from chipvm.display import DisplayBuffer
from chipvm.emulator import Executor
from chipvm.errors import InterpreterError
from chipvm.keypad import InputState
from chipvm.logging import InterpreterLogger, build_progress_bar
from chipvm.state import MachineState, create_state, load_rom

# Catch up in a burst while at most this many seconds late; beyond it the slots are dropped.
MAX_LAG = 0.05


class Interpreter:
    """Runs an executor on background threads until stopped or halted."""

    def __init__(self, executor: Executor, config: InterpreterConfig):
        self.executor = executor
        self.config = config
        self.stop_event = threading.Event()
        self._threads: list[threading.Thread] = []
        self.dropped_slots = 0
        self._unreported_drops = 0
        self._last_drop_report = float("-inf")

    @property
    def display(self) -> DisplayBuffer:
        return self.executor.devices.display

    @property
    def keypad(self) -> InputState:
        return self.executor.devices.keypad

    @property
    def logger(self) -> InterpreterLogger:
        return self.executor.devices.logger

    @property
    def state(self) -> MachineState:
        return self.executor.state

    def _timer_loop(self):
        period = 1.0 / self.config.timer_hz
        while not self.stop_event.wait(period):
            self.executor.tick_timers()

    def _cpu_loop(self):
        period = self.config.cycle_period
        limit = self.config.max_cycles
        next_slot = time.monotonic()
        try:
            while not self.stop_event.is_set():
                if limit is not None and self.executor.cycles >= limit:
                    break
                self.executor.step()
                next_slot += period
                now = time.monotonic()
                if self.executor.waiting_for_key and next_slot > now:
                    # Woken early by a key press; the next slot still starts on schedule.
                    self.keypad.wait_for_press(next_slot - now)
                    now = time.monotonic()
                if next_slot > now:
                    self.stop_event.wait(next_slot - now)
                elif now - next_slot > MAX_LAG:
                    self._drop_slots(int((now - next_slot) / period), now)
                    next_slot = now
        except InterpreterError:
            # Recorded on the executor and re-raised by join().
            pass
        finally:
            self.stop_event.set()

    def _drop_slots(self, count: int, now: float):
        """Account for instruction slots skipped after falling behind, warning at most once per second."""
        self.dropped_slots += count
        self._unreported_drops += count
        if now - self._last_drop_report >= 1.0:
            self.logger.warning(
                f"Executor fell behind {self.config.instructions_per_second} instructions/s: "
                f"dropped {self._unreported_drops} slots"
            )
            self._unreported_drops = 0
            self._last_drop_report = now

    def start(self):
        """Start the timer and executor threads."""
        if self._threads:
            raise RuntimeError("Interpreter already started")
        self.logger.debug(f"Compiled {self.executor.warm_up()} instruction handlers")
        self.logger.log_run_start(self.config.to_dict())
        self._threads = [
            threading.Thread(target=self._timer_loop, name="chipvm-timers", daemon=True),
            threading.Thread(target=self._cpu_loop, name="chipvm-cpu", daemon=True),
        ]
        for thread in self._threads:
            thread.start()

    def stop(self):
        self.stop_event.set()

    def join(self, timeout: Optional[float] = None):
        """Wait for the threads to finish; re-raise the fatal error if the executor halted."""
        for thread in self._threads:
            thread.join(timeout)
        self.logger.log_run_end(self.executor.cycles)
        if self.executor.error is not None:
            raise self.executor.error

    def run_headless(self, cycles: int, progress: bool = False) -> MachineState:
        """Run ``cycles`` instructions unpaced on the calling thread.

        Timers tick once every ``instructions_per_second / timer_hz``
        instructions, the same ratio a paced run would observe.
        """
        instructions_per_tick = max(1, round(self.config.instructions_per_second / self.config.timer_hz))
        self.logger.log_run_start(self.config.to_dict())
        bar = build_progress_bar(cycles) if progress else None
        try:
            for i in range(cycles):
                if i and i % instructions_per_tick == 0:
                    self.executor.tick_timers()
                self.executor.step()
                if bar is not None:
                    bar.update(1)
        finally:
            if bar is not None:
                bar.close()
            self.logger.log_run_end(self.executor.cycles)
        return self.executor.state


def create_interpreter(config: InterpreterConfig, state: Optional[MachineState] = None) -> Interpreter:
    """Build an interpreter for ``config``, loading ``config.rom`` unless a state is given."""
    logger = InterpreterLogger(log_level=config.log_level, trace=config.trace)
    if state is None:
        state = load_rom(create_state(seed=config.seed), config.rom)
        logger.info(f"Loaded {config.rom}")
    devices = create_devices(keypad=InputState(debounce_window=config.debounce_window), logger=logger)
    return Interpreter(Executor(state, devices), config)

"""Peripherals visible to instruction handlers."""

import time
from typing import Callable, Optional

from flax.struct import dataclass, field

from chipvm.display import DisplayBuffer
from chipvm.keypad import InputState
from chipvm.logging import InterpreterLogger


@dataclass(frozen=True)
class Devices:
    """Display, keypad and logger shared with the host.

    None of these are part of the machine state proper: the display and the
    keypad are shared with other threads behind their own locks.
    """
    display: DisplayBuffer = field(pytree_node=False)
    keypad: InputState = field(pytree_node=False)
    logger: InterpreterLogger = field(pytree_node=False)

    def now(self) -> float:
        return self.keypad.clock()


def create_devices(
    display: Optional[DisplayBuffer] = None,
    keypad: Optional[InputState] = None,
    logger: Optional[InterpreterLogger] = None,
    clock: Callable[[], float] = time.monotonic,
) -> Devices:
    return Devices(
        display=display if display is not None else DisplayBuffer(),
        keypad=keypad if keypad is not None else InputState(clock=clock),
        logger=logger if logger is not None else InterpreterLogger(log_level="WARNING"),
    )

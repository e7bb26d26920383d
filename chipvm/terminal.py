"""Live text presentation for headless runs."""

import sys
from typing import Optional, TextIO

from chipvm.rendering import display_to_text
from chipvm.runner import Interpreter

CLEAR_SCREEN = "\033[2J\033[1;1H"


def present_frame(interpreter: Interpreter, stream: TextIO) -> bool:
    """Print the display if it changed since the last frame; returns whether it printed."""
    if not interpreter.display.present():
        return False
    stream.write(CLEAR_SCREEN + display_to_text(interpreter.display.snapshot()) + "\r\n")
    stream.flush()
    return True


def run_terminal(interpreter: Interpreter, stream: Optional[TextIO] = None, fps: int = 60) -> int:
    """Run the interpreter, redrawing the terminal whenever the display changes.

    Returns once the interpreter stops, re-raising its fatal error if it
    halted. The return value is the number of frames printed.
    """
    stream = stream if stream is not None else sys.stdout
    frames = 0
    interpreter.start()
    try:
        while not interpreter.stop_event.wait(1.0 / fps):
            frames += present_frame(interpreter, stream)
        # Frame drawn between the last poll and the stop.
        frames += present_frame(interpreter, stream)
    finally:
        interpreter.stop()
        interpreter.join()
    return frames

"""Tests for the live terminal presentation."""

import io

import pytest
from chipvm import IllegalOpcodeError
from chipvm.config import load_config
from chipvm.runner import create_interpreter
from chipvm.terminal import CLEAR_SCREEN, present_frame, run_terminal
from conftest import program_state


def make_interpreter(*words, **overrides):
    config = load_config({"rom": "unused.ch8", "log_level": "WARNING", **overrides})
    return create_interpreter(config, state=program_state(*words))


class TestPresentFrame:
    """Test single redraws."""

    def test_prints_only_when_dirty(self):
        interpreter = make_interpreter(0x1200)
        stream = io.StringIO()

        assert present_frame(interpreter, stream)
        assert stream.getvalue().startswith(CLEAR_SCREEN)
        assert not present_frame(interpreter, stream)
        assert stream.getvalue().count(CLEAR_SCREEN) == 1

    def test_frame_shows_front_plane(self):
        interpreter = make_interpreter(0xA050, 0xD005, 0x1204)  # digit 0 at the origin
        interpreter.run_headless(2)
        stream = io.StringIO()

        present_frame(interpreter, stream)
        lines = stream.getvalue()[len(CLEAR_SCREEN):].splitlines()
        assert len(lines) == 32
        assert lines[0].startswith("####.")
        assert lines[1].startswith("#..#.")


class TestRunTerminal:
    """Test the redraw loop over a threaded run."""

    def test_redraws_until_stopped(self):
        interpreter = make_interpreter(
            0xA050, 0xD005, 0x1204,
            instructions_per_second=1000, max_cycles=100,
        )
        stream = io.StringIO()

        frames = run_terminal(interpreter, stream=stream)

        output = stream.getvalue()
        assert frames >= 1
        assert output.count(CLEAR_SCREEN) == frames
        last_frame = output.rsplit(CLEAR_SCREEN, 1)[1].splitlines()
        assert last_frame[0].startswith("####.")
        assert interpreter.executor.cycles == 100

    def test_halt_is_raised(self):
        interpreter = make_interpreter(0x5121, instructions_per_second=1000)
        with pytest.raises(IllegalOpcodeError):
            run_terminal(interpreter, stream=io.StringIO())

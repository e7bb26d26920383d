"""Tests for the console logger."""

import io

import pytest
from chipvm.logging import ConsoleLogger, InterpreterLogger, build_progress_bar


def make_logger(cls=ConsoleLogger, **kwargs):
    stream = io.StringIO()
    return cls(stream=stream, show_timestamps=False, **kwargs), stream


class TestConsoleLogger:
    """Test level filtering and formatting."""

    def test_level_filtering(self):
        logger, stream = make_logger(log_level="WARNING")
        logger.info("hidden")
        logger.warning("shown")
        logger.error("also shown")

        output = stream.getvalue()
        assert "hidden" not in output
        assert "[ WARNING][chipvm] shown" in output
        assert "also shown" in output

    def test_level_is_case_insensitive(self):
        logger, _ = make_logger(log_level="debug")
        assert logger.is_enabled_for("DEBUG")

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            ConsoleLogger(log_level="LOUD")

    def test_no_colors_on_plain_stream(self):
        logger, stream = make_logger(use_colors=True)
        logger.info("plain")
        assert "\033[" not in stream.getvalue()


class TestInterpreterLogger:
    """Test run lifecycle and trace messages."""

    def test_trace_requires_debug(self):
        logger, stream = make_logger(InterpreterLogger, log_level="INFO", trace=True)
        logger.log_instruction(0x200, 0x00E0, "CLS")
        assert stream.getvalue() == ""

    def test_trace_disabled(self):
        logger, stream = make_logger(InterpreterLogger, log_level="DEBUG")
        logger.log_instruction(0x200, 0x00E0, "CLS")
        assert stream.getvalue() == ""

    def test_trace_format(self):
        logger, stream = make_logger(InterpreterLogger, log_level="DEBUG", trace=True)
        logger.log_instruction(0x20A, 0x00E0, "CLS")
        assert "0x20A: 00E0  CLS" in stream.getvalue()

    def test_run_lifecycle(self):
        logger, stream = make_logger(InterpreterLogger)
        logger.log_run_start({"rom": "pong.ch8"})
        logger.log_halt(RuntimeError("boom"), 12)
        logger.log_run_end(12)

        output = stream.getvalue()
        assert "rom: pong.ch8" in output
        assert "Halted after 12 cycles: boom" in output
        assert "Executed 12 instructions" in output


def test_progress_bar():
    bar = build_progress_bar(10, file=io.StringIO())
    assert bar.total == 10
    assert bar.unit == "op"
    bar.close()

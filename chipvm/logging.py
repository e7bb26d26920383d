"""Console logging utilities for the interpreter.

Provides a small levelled console logger with colours and elapsed-time
stamps, an interpreter-specific subclass for run lifecycle and instruction
traces, and a tqdm progress bar for headless runs.
"""

import sys
import time
from typing import Any, Dict, Optional

from tqdm import tqdm


LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConsoleLogger:
    """Levelled console logger writing to a stream."""

    def __init__(
        self,
        name: str = "chipvm",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
        stream=None,
    ):
        self.name = name
        self.log_level = log_level.upper()
        if self.log_level not in LEVELS:
            raise ValueError(f"Unknown log level '{log_level}'. Available: {list(LEVELS)}")
        self.stream = stream if stream is not None else sys.stdout
        self.use_colors = (
            use_colors and hasattr(self.stream, "isatty") and self.stream.isatty()
        )
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

        self.colors = (
            {
                "DEBUG": "\033[36m",
                "INFO": "\033[32m",
                "WARNING": "\033[33m",
                "ERROR": "\033[31m",
                "CRITICAL": "\033[35m",
                "RESET": "\033[0m"
            }
            if self.use_colors
            else {k: "" for k in (*LEVELS, "RESET")}
        )

        self.level_order = {level: i for i, level in enumerate(LEVELS)}

    def is_enabled_for(self, level: str) -> bool:
        return self.level_order.get(level.upper(), 1) >= self.level_order[self.log_level]

    def _format_message(self, level: str, message: str) -> str:
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        if self.use_colors:
            level_str = f"{self.colors.get(level.upper(), '')}{level_str}{self.colors['RESET']}"
        return f"{timestamp}{level_str}[{self.name}] {message}"

    def log(self, level: str, message: str):
        if self.is_enabled_for(level):
            print(self._format_message(level, message), file=self.stream, flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


class InterpreterLogger(ConsoleLogger):
    """Logger with run lifecycle and instruction trace helpers."""

    def __init__(self, name: str = "chipvm", trace: bool = False, **kwargs):
        super().__init__(name, **kwargs)
        self.trace = trace
        self.run_started = None

    def log_run_start(self, config: Dict[str, Any]):
        self.run_started = time.time()
        self.info("=" * 60)
        self.info("Starting interpreter with configuration:")
        for key, value in config.items():
            self.info(f"  {key}: {value}")
        self.info("=" * 60)

    @property
    def tracing(self) -> bool:
        return self.trace and self.is_enabled_for("DEBUG")

    def log_instruction(self, address: int, raw: int, text: str):
        if self.tracing:
            self.debug(f"0x{address:03X}: {raw:04X}  {text}")

    def log_halt(self, error: BaseException, cycles: int):
        self.critical(f"Halted after {cycles} cycles: {error}")

    def log_run_end(self, cycles: int):
        elapsed = time.time() - (self.run_started or self.start_time)
        rate = cycles / elapsed if elapsed > 0 else 0.0
        self.info(f"Executed {cycles} instructions in {elapsed:.2f}s ({rate:.0f} IPS)")


def build_progress_bar(total: int, desc: Optional[str] = None, **kwargs) -> tqdm:
    """Progress bar over a fixed number of instruction cycles."""
    if desc is None:
        desc = f"Running ({total:,} cycles)"
    for kwarg in ("total", "unit"):
        kwargs.pop(kwarg, None)
    return tqdm(total=total, desc=desc, unit="op", **kwargs)

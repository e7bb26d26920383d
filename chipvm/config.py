"""Interpreter configuration."""

import dataclasses
from typing import Any, Dict, Optional, Union

from omegaconf import MISSING, DictConfig, OmegaConf

from chipvm.constants import TIMER_HZ
from chipvm.logging import LEVELS
from chipvm.rendering import COLOR_SCHEMES


@dataclasses.dataclass
class InterpreterConfig:
    """Deployment parameters for one interpreter run.

    Attributes:
        rom: Path of the program to load at 0x200
        instructions_per_second: Executor cadence
        timer_hz: Rate at which delay and sound timers tick down
        debounce_ms: How long a key press keeps the key down
        seed: Seed of the PRNG key used by RND
        headless: Run without a window, for at most ``max_cycles`` instructions
        max_cycles: Stop after this many instructions (None runs until stopped)
        scale: Window pixels per CHIP-8 pixel
        color_scheme: Name of a scheme from :func:`chipvm.rendering.create_color_scheme`
        log_level: Console log level
        trace: Log every executed instruction at DEBUG level
    """
    rom: str = MISSING
    instructions_per_second: int = 700
    timer_hz: int = TIMER_HZ
    debounce_ms: int = 100
    seed: int = 0
    headless: bool = False
    max_cycles: Optional[int] = None
    scale: int = 8
    color_scheme: str = "classic"
    log_level: str = "INFO"
    trace: bool = False

    @property
    def debounce_window(self) -> float:
        return self.debounce_ms / 1000.0

    @property
    def cycle_period(self) -> float:
        return 1.0 / self.instructions_per_second

    def validate(self) -> "InterpreterConfig":
        for name in ("instructions_per_second", "timer_hz", "scale"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.debounce_ms < 0:
            raise ValueError(f"debounce_ms must be non-negative, got {self.debounce_ms}")
        if self.max_cycles is not None and self.max_cycles < 0:
            raise ValueError(f"max_cycles must be non-negative, got {self.max_cycles}")
        if self.log_level.upper() not in LEVELS:
            raise ValueError(f"Unknown log level '{self.log_level}'. Available: {list(LEVELS)}")
        if self.color_scheme not in COLOR_SCHEMES:
            raise ValueError(f"Unknown color scheme '{self.color_scheme}'. Available: {list(COLOR_SCHEMES)}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


def load_config(cfg: Union[DictConfig, Dict[str, Any], None] = None) -> InterpreterConfig:
    """Merge ``cfg`` over the structured defaults and return a validated config."""
    schema = OmegaConf.structured(InterpreterConfig)
    merged = OmegaConf.merge(schema, cfg if cfg is not None else {})
    config = OmegaConf.to_object(merged)
    return config.validate()

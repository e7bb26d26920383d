"""Test configuration and fixtures for CHIP-8 interpreter tests."""

import io

import pytest
import jax.numpy as jnp
from chipvm import create_state, create_devices, load_program
from chipvm.logging import InterpreterLogger


class FakeClock:
    """Manually advanced clock for debounce tests."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def fresh_state():
    """Provide a fresh machine state for each test."""
    return create_state()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def log_stream():
    return io.StringIO()


@pytest.fixture
def devices(clock, log_stream):
    """Display, keypad and a captured logger sharing the fake clock."""
    logger = InterpreterLogger(log_level="DEBUG", use_colors=False, stream=log_stream)
    return create_devices(logger=logger, clock=clock)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def assemble(*words):
    """Big-endian program bytes from 16-bit instruction words."""
    return b"".join(word.to_bytes(2, "big") for word in words)


def program_state(*words, seed=0):
    """Fresh state with ``words`` loaded at 0x200."""
    return load_program(create_state(seed=seed), assemble(*words))

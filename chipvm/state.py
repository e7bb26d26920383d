"""CHIP-8 machine state structures."""

from typing import Optional

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode

from chipvm.constants import (
    FONT_DATA, FONT_START, MAX_PROGRAM_SIZE, MEMORY_SIZE, NUM_REGISTERS, PROGRAM_START, STACK_SIZE
)
from chipvm.errors import ProgramTooLargeError


@dataclass(frozen=True)
class StackState:
    """Return address stack for subroutine calls.

    ``pointer`` counts the addresses currently held, so an empty stack has
    pointer 0 and a full one has pointer ``STACK_SIZE``.
    """
    data: jnp.ndarray
    pointer: jnp.ndarray


class MachineState(PyTreeNode):
    """Register file, memory, stack, timers and program counter."""
    rng: jax.Array
    memory: jnp.ndarray
    V: jnp.ndarray
    I: jnp.ndarray
    pc: jnp.ndarray
    stack: StackState
    delay_timer: jnp.ndarray
    sound_timer: jnp.ndarray


def create_state(rng: Optional[jax.Array] = None, seed: int = 0) -> MachineState:
    """Create a zeroed machine with the font table loaded and PC at 0x200."""
    if rng is None:
        rng = jax.random.PRNGKey(seed)
    memory = jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8)
    memory = memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(jnp.array(FONT_DATA, dtype=jnp.uint8))
    return MachineState(
        rng=rng,
        memory=memory,
        V=jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8),
        I=jnp.zeros((), dtype=jnp.uint16),
        pc=jnp.asarray(PROGRAM_START, dtype=jnp.uint16),
        stack=StackState(data=jnp.zeros(STACK_SIZE, dtype=jnp.uint16), pointer=jnp.zeros((), dtype=jnp.int32)),
        delay_timer=jnp.zeros((), dtype=jnp.uint8),
        sound_timer=jnp.zeros((), dtype=jnp.uint8),
    )


def load_program(state: MachineState, program: bytes) -> MachineState:
    """Place a program in memory starting at 0x200."""
    if len(program) > MAX_PROGRAM_SIZE:
        raise ProgramTooLargeError(
            f"Program is {len(program)} bytes, at most {MAX_PROGRAM_SIZE} fit above 0x{PROGRAM_START:03X}"
        )
    if not program:
        return state
    data = jnp.array(list(program), dtype=jnp.uint8)
    return state.replace(memory=state.memory.at[PROGRAM_START:PROGRAM_START + len(program)].set(data))


def load_rom(state: MachineState, filename: str) -> MachineState:
    """Load ROM file contents into memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_program(state, rom_data)


@jax.jit
def _count_down(timer: jnp.ndarray, ticks: jnp.ndarray) -> jnp.ndarray:
    return jnp.astype(jnp.maximum(timer.astype(jnp.int32) - ticks, 0), jnp.uint8)


def tick_timers(state: MachineState, ticks: int = 1) -> MachineState:
    """Decrement both timers by ``ticks``, never going below zero."""
    return state.replace(
        delay_timer=_count_down(state.delay_timer, ticks),
        sound_timer=_count_down(state.sound_timer, ticks),
    )

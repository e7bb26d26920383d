"""CHIP-8 memory and register operations."""

import jax
import jax.numpy as jnp
from chipvm.state import MachineState
from chipvm.decode import Instruction
from chipvm.devices import Devices


def execute_set(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """6XKK - Set VX = KK."""
    return state.replace(V=state.V.at[instruction.x].set(instruction.kk))


def execute_add(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """7XKK - Add KK to VX without touching the carry flag."""
    return state.replace(V=state.V.at[instruction.x].add(instruction.kk))


def execute_set_index(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """ANNN - Set I = NNN."""
    return state.replace(I=jnp.asarray(instruction.nnn, dtype=jnp.uint16))


def execute_random(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """CXKK - Set VX = random & KK."""
    key, subkey = jax.random.split(state.rng)
    random_value = jax.random.randint(subkey, shape=(), minval=0, maxval=256, dtype=jnp.int32).astype(jnp.uint8)
    return state.replace(V=state.V.at[instruction.x].set(random_value & instruction.kk), rng=key)

"""CHIP-8 control flow instructions.

The program counter already points past the current instruction when these
run, so a skip adds a further 2 and a call pushes the current ``pc`` as the
return address.
"""

import jax.numpy as jnp

from chipvm.constants import ADDRESS_MASK
from chipvm.state import MachineState
from chipvm.decode import Instruction
from chipvm.devices import Devices
from chipvm.stack import push


def execute_jump(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """1NNN - Jump to address NNN."""
    return state.replace(pc=jnp.asarray(instruction.nnn, dtype=jnp.uint16))


def execute_call(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """2NNN - Call subroutine at NNN."""
    state = state.replace(stack=push(state.stack, state.pc))
    return execute_jump(state, instruction, devices)


def make_skip_instruction(condition_fn):
    """Factory for skip instructions."""
    def skip_instruction(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
        condition = condition_fn(state, instruction, devices)
        return state.replace(pc=jnp.where(condition, state.pc + 2, state.pc).astype(jnp.uint16))
    return skip_instruction


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst, devices: state.V[inst.x] == inst.kk
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst, devices: state.V[inst.x] != inst.kk
)

execute_skip_if_equal_register = make_skip_instruction(
    lambda state, inst, devices: state.V[inst.x] == state.V[inst.y]
)

execute_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst, devices: state.V[inst.x] != state.V[inst.y]
)

execute_skip_if_key = make_skip_instruction(
    lambda state, inst, devices: devices.keypad.is_down(int(state.V[inst.x]) & 0xF, devices.now())
)

execute_skip_if_not_key = make_skip_instruction(
    lambda state, inst, devices: not devices.keypad.is_down(int(state.V[inst.x]) & 0xF, devices.now())
)


def execute_jump_with_offset(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """BNNN - Jump to address NNN + V0."""
    jump_address = (instruction.nnn + jnp.astype(state.V[0], jnp.uint16)) & ADDRESS_MASK
    return state.replace(pc=jnp.astype(jump_address, jnp.uint16))

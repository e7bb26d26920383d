"""CHIP-8 ALU operations (8xxx).

Each operation maps the operand values ``(vx, vy)`` to ``(result, flag)``.
Operands are read before anything is written, the result goes to VX and the
flag, when the operation produces one, goes to VF afterwards. With X = F the
flag therefore overwrites the result.
"""

from typing import Optional

import jax.numpy as jnp
from chipvm.constants import FLAG_REGISTER
from chipvm.state import MachineState
from chipvm.decode import Instruction
from chipvm.devices import Devices


def alu_set(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, Optional[jnp.ndarray]]:
    """8XY0 - Set: VX = VY."""
    return vy, None


def alu_or(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, Optional[jnp.ndarray]]:
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, None


def alu_and(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, Optional[jnp.ndarray]]:
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, None


def alu_xor(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, Optional[jnp.ndarray]]:
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, None


def alu_add(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, Optional[jnp.ndarray]]:
    """8XY4 - Add: VX += VY, VF = carry."""
    result = jnp.astype(vx, jnp.int32) + jnp.astype(vy, jnp.int32)
    carry = jnp.astype(result > 255, jnp.uint8)
    return jnp.astype(result & 0xFF, jnp.uint8), carry


def alu_sub_xy(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, Optional[jnp.ndarray]]:
    """8XY5 - Subtract: VX -= VY, VF = 1 when no borrow occurs."""
    no_borrow = jnp.astype(vx >= vy, jnp.uint8)
    return vx - vy, no_borrow


def alu_shift_right(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, Optional[jnp.ndarray]]:
    """8XY6 - Shift right: VX >>= 1, VF = bit shifted out."""
    return vx >> 1, vx & 1


def alu_sub_yx(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, Optional[jnp.ndarray]]:
    """8XY7 - Subtract: VX = VY - VX, VF = 1 when no borrow occurs."""
    no_borrow = jnp.astype(vy >= vx, jnp.uint8)
    return vy - vx, no_borrow


def alu_shift_left(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, Optional[jnp.ndarray]]:
    """8XYE - Shift left: VX <<= 1, VF = bit shifted out."""
    return vx << 1, (vx & 0x80) >> 7


def make_alu_instruction(operation):
    """Wrap an ALU operation into an instruction handler."""
    def alu_instruction(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
        vx = state.V[instruction.x]
        vy = state.V[instruction.y]
        result, flag = operation(vx, vy)
        new_V = state.V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
        if flag is not None:
            new_V = new_V.at[FLAG_REGISTER].set(jnp.astype(flag, jnp.uint8))
        return state.replace(V=new_V)
    alu_instruction.__doc__ = operation.__doc__
    return alu_instruction


execute_alu_set = make_alu_instruction(alu_set)
execute_alu_or = make_alu_instruction(alu_or)
execute_alu_and = make_alu_instruction(alu_and)
execute_alu_xor = make_alu_instruction(alu_xor)
execute_alu_add = make_alu_instruction(alu_add)
execute_alu_sub_xy = make_alu_instruction(alu_sub_xy)
execute_alu_shift_right = make_alu_instruction(alu_shift_right)
execute_alu_sub_yx = make_alu_instruction(alu_sub_yx)
execute_alu_shift_left = make_alu_instruction(alu_shift_left)

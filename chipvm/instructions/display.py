"""CHIP-8 display operations."""

import numpy as np

from chipvm.constants import FLAG_REGISTER
from chipvm.state import MachineState
from chipvm.decode import Instruction
from chipvm.devices import Devices
from chipvm.display import Sprite


def execute_display(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """DXYN - Draw N-row sprite from I at (VX, VY), VF = collision."""
    registers = np.asarray(state.V)
    sprite = Sprite.from_memory(state.memory, int(state.I), instruction.n)
    collided = devices.display.draw(int(registers[instruction.x]), int(registers[instruction.y]), sprite)
    return state.replace(V=state.V.at[FLAG_REGISTER].set(int(collided)))

"""CHIP-8 system instructions (0x0xxx)."""

from chipvm.state import MachineState
from chipvm.decode import Instruction
from chipvm.devices import Devices
from chipvm.stack import pop


def execute_clear_screen(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """00E0 - Clear display."""
    devices.display.clear()
    return state


def execute_return(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """00EE - Return from subroutine."""
    stack, address = pop(state.stack)
    return state.replace(stack=stack, pc=address)

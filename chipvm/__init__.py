"""CHIP-8 interpreter package."""

from chipvm.state import MachineState, StackState, create_state, load_program, load_rom, tick_timers
from chipvm.emulator import Executor, execute, fetch
from chipvm.decode import Instruction, decode, decode_bytes
from chipvm.opcodes import OpcodeTable, OpcodeTag, Operation
from chipvm.display import DisplayBuffer, Sprite
from chipvm.keypad import InputState
from chipvm.devices import Devices, create_devices
from chipvm.errors import (
    InterpreterError, IllegalOpcodeError, StackError, StackOverflowError, StackUnderflowError,
    ProgramTooLargeError, HaltedError
)
from chipvm.constants import *

__all__ = [
    "MachineState",
    "StackState",
    "create_state",
    "load_program",
    "load_rom",
    "tick_timers",
    "Executor",
    "execute",
    "fetch",
    "Instruction",
    "decode",
    "decode_bytes",
    "OpcodeTable",
    "OpcodeTag",
    "Operation",
    "DisplayBuffer",
    "Sprite",
    "InputState",
    "Devices",
    "create_devices",
    "InterpreterError",
    "IllegalOpcodeError",
    "StackError",
    "StackOverflowError",
    "StackUnderflowError",
    "ProgramTooLargeError",
    "HaltedError",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
]

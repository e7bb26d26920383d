"""Interpreter exceptions.

Every error here is fatal for the run: the interpreter has no notion of a
transient failure, so nothing is retried.
"""


class InterpreterError(Exception):
    """Base class for all interpreter failures."""


class IllegalOpcodeError(InterpreterError):
    """Raised when a fetched instruction matches no opcode rule."""

    def __init__(self, instruction: int, address: int):
        self.instruction = instruction
        self.address = address
        super().__init__(f"Illegal opcode 0x{instruction:04X} at 0x{address:03X}")


class StackError(InterpreterError):
    """Base class for call stack failures."""


class StackOverflowError(StackError):
    """Raised when a call would exceed the stack depth."""


class StackUnderflowError(StackError):
    """Raised when a return is executed with an empty stack."""


class ProgramTooLargeError(InterpreterError, ValueError):
    """Raised when a program does not fit between 0x200 and the end of memory."""


class HaltedError(InterpreterError):
    """Raised when stepping an executor that already stopped on a fatal error."""

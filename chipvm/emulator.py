"""Main CHIP-8 execution engine."""

import functools
import threading
from typing import Optional

import jax
import jax.numpy as jnp

from chipvm.constants import ADDRESS_MASK
from chipvm.decode import Instruction, decode
from chipvm.devices import Devices, create_devices
from chipvm.errors import HaltedError, IllegalOpcodeError, InterpreterError
from chipvm.logging import InterpreterLogger
from chipvm.opcodes import DEFAULT_TABLE, OpcodeTable, OpcodeTag
from chipvm.state import MachineState, tick_timers
from chipvm.instructions.system import execute_clear_screen, execute_return
from chipvm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key, execute_skip_if_not_key
)
from chipvm.instructions.alu import (
    execute_alu_set, execute_alu_or, execute_alu_and, execute_alu_xor, execute_alu_add,
    execute_alu_sub_xy, execute_alu_shift_right, execute_alu_sub_yx, execute_alu_shift_left
)
from chipvm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipvm.instructions.display import execute_display
from chipvm.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer, execute_set_sound_timer,
    execute_add_to_index, execute_font_character, execute_bcd_conversion,
    execute_store_registers, execute_load_registers
)


def compiled(handler):
    """Jit a handler that reads and writes nothing but machine state.

    Instruction operands are traced, so each handler compiles once no matter
    which registers or immediates an instruction carries.
    """
    jitted = jax.jit(lambda state, instruction: handler(state, instruction, None))

    @functools.wraps(handler)
    def run(state: MachineState, instruction: Instruction, devices: Optional[Devices]) -> MachineState:
        return jitted(state, instruction)

    return run


# Pure register, memory and timer updates.
STATE_HANDLERS = {
    OpcodeTag.JP: execute_jump,
    OpcodeTag.SE_VX_KK: execute_skip_if_equal_immediate,
    OpcodeTag.SNE_VX_KK: execute_skip_if_not_equal_immediate,
    OpcodeTag.SE_VX_VY: execute_skip_if_equal_register,
    OpcodeTag.LD_VX_KK: execute_set,
    OpcodeTag.ADD_VX_KK: execute_add,
    OpcodeTag.LD_VX_VY: execute_alu_set,
    OpcodeTag.OR: execute_alu_or,
    OpcodeTag.AND: execute_alu_and,
    OpcodeTag.XOR: execute_alu_xor,
    OpcodeTag.ADD_VX_VY: execute_alu_add,
    OpcodeTag.SUB: execute_alu_sub_xy,
    OpcodeTag.SHR: execute_alu_shift_right,
    OpcodeTag.SUBN: execute_alu_sub_yx,
    OpcodeTag.SHL: execute_alu_shift_left,
    OpcodeTag.SNE_VX_VY: execute_skip_if_not_equal_register,
    OpcodeTag.LD_I: execute_set_index,
    OpcodeTag.JP_V0: execute_jump_with_offset,
    OpcodeTag.RND: execute_random,
    OpcodeTag.LD_VX_DT: execute_get_delay_timer,
    OpcodeTag.LD_DT_VX: execute_set_delay_timer,
    OpcodeTag.LD_ST_VX: execute_set_sound_timer,
    OpcodeTag.ADD_I_VX: execute_add_to_index,
    OpcodeTag.LD_F_VX: execute_font_character,
    OpcodeTag.LD_VX_I: execute_load_registers,
}

# Handlers driving the display, keypad or logger, or raising stack errors.
DEVICE_HANDLERS = {
    OpcodeTag.CLS: execute_clear_screen,
    OpcodeTag.RET: execute_return,
    OpcodeTag.CALL: execute_call,
    OpcodeTag.DRW: execute_display,
    OpcodeTag.SKP: execute_skip_if_key,
    OpcodeTag.SKNP: execute_skip_if_not_key,
    OpcodeTag.LD_VX_K: execute_wait_for_key,
    OpcodeTag.LD_B_VX: execute_bcd_conversion,
    OpcodeTag.LD_I_VX: execute_store_registers,
}

HANDLERS = {
    **{tag: compiled(handler) for tag, handler in STATE_HANDLERS.items()},
    **DEVICE_HANDLERS,
}


@jax.jit
def _read_word(memory: jnp.ndarray, pc: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    high = memory[pc & ADDRESS_MASK].astype(jnp.uint16)
    low = memory[(pc + 1) & ADDRESS_MASK].astype(jnp.uint16)
    return (high << 8) | low, pc + 2


def fetch(state: MachineState) -> tuple[MachineState, Instruction]:
    """Fetch and decode the instruction at PC, advancing PC past it."""
    word, pc = _read_word(state.memory, state.pc)
    return state.replace(pc=pc), decode(int(word))


def warm_up(state: MachineState, table: OpcodeTable = DEFAULT_TABLE) -> int:
    """Run each handler the table dispatches to once, returning how many ran.

    Jitted handlers compile and eager ones trigger their op compilation, so the
    first real use in a paced run does not stall. Results are discarded and the
    device handlers run against scratch devices, leaving ``state`` and the
    executor's peripherals untouched.
    """
    scratch = create_devices(logger=InterpreterLogger(log_level="CRITICAL"))
    # One frame deep, so both CALL and RET succeed.
    sample = state.replace(stack=state.stack.replace(pointer=jnp.ones((), dtype=jnp.int32)))
    for operation in table.operations:
        HANDLERS[operation.tag](sample, decode(operation.template()), scratch)
    fetch(sample)
    tick_timers(sample, 0)
    return len(table)


def execute(
    state: MachineState,
    instruction,
    devices: Optional[Devices] = None,
    table: OpcodeTable = DEFAULT_TABLE,
) -> MachineState:
    """Execute a single instruction against ``state``.

    ``instruction`` may be a raw 16-bit value or an already decoded
    :class:`Instruction`. PC is expected to already point past it.
    """
    if not isinstance(instruction, Instruction):
        instruction = decode(instruction)
    if devices is None:
        devices = create_devices()
    tag = table.classify(instruction)
    if tag is None:
        raise IllegalOpcodeError(instruction.raw, (int(state.pc) - 2) & ADDRESS_MASK)
    return HANDLERS[tag](state, instruction, devices)


class Executor:
    """Fetch/decode/execute loop owning one machine state.

    The executor is the only writer of its :class:`MachineState`. Timer ticks
    arrive from another thread through :meth:`tick_timers` and are applied at
    the start of the next cycle, so no instruction ever observes a partially
    applied tick.
    """

    def __init__(self, state: MachineState, devices: Optional[Devices] = None, table: OpcodeTable = DEFAULT_TABLE):
        self.state = state
        self.devices = devices if devices is not None else create_devices()
        self.table = table
        self.cycles = 0
        self.waiting_for_key = False
        self.error: Optional[InterpreterError] = None
        self._pending_ticks = 0
        self._tick_lock = threading.Lock()

    @property
    def halted(self) -> bool:
        return self.error is not None

    def warm_up(self) -> int:
        """Run every handler once against the current state before a paced run."""
        return warm_up(self.state, self.table)

    def tick_timers(self):
        """Request one timer decrement; safe to call from any thread."""
        with self._tick_lock:
            self._pending_ticks += 1

    def _apply_pending_ticks(self):
        with self._tick_lock:
            ticks, self._pending_ticks = self._pending_ticks, 0
        if ticks:
            self.state = tick_timers(self.state, ticks)

    def step(self) -> Instruction:
        """Run exactly one instruction cycle and return the instruction executed."""
        if self.error is not None:
            raise HaltedError(f"Executor halted: {self.error}") from self.error
        self._apply_pending_ticks()

        address = int(self.state.pc)
        state, instruction = fetch(self.state)
        operation = self.table.lookup(instruction)
        if operation is None:
            self._halt(IllegalOpcodeError(instruction.raw, address))
        logger = self.devices.logger
        if logger.tracing:
            logger.log_instruction(address, instruction.raw, self.table.disassemble(instruction))

        try:
            state = HANDLERS[operation.tag](state, instruction, self.devices)
        except InterpreterError as e:
            self._halt(e)

        self.state = state
        self.waiting_for_key = operation.tag is OpcodeTag.LD_VX_K and int(state.pc) == address
        self.cycles += 1
        return instruction

    def _halt(self, error: InterpreterError):
        self.error = error
        self.devices.logger.log_halt(error, self.cycles)
        raise error

    def run(self, cycles: int) -> MachineState:
        """Run ``cycles`` instructions back to back without pacing."""
        for _ in range(cycles):
            self.step()
        return self.state

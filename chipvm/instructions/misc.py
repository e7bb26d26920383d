"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax.numpy as jnp
from chipvm.state import MachineState
from chipvm.decode import Instruction
from chipvm.devices import Devices
from chipvm.constants import ADDRESS_MASK, FONT_CHAR_SIZE, FONT_START, INDEX_MASK, NUM_REGISTERS, RESERVED_END


def _addresses(state: MachineState, count: int) -> jnp.ndarray:
    """``count`` consecutive addresses from I, wrapped into the 12-bit space."""
    return (jnp.astype(state.I, jnp.int32) + jnp.arange(count)) & ADDRESS_MASK


def _write_memory(state: MachineState, devices: Devices, values: jnp.ndarray) -> MachineState:
    start = int(state.I)
    count = values.shape[0]
    if any(((start + i) & ADDRESS_MASK) < RESERVED_END for i in range(count)):
        devices.logger.warning(f"Program write of {count} byte(s) at I=0x{start:03X} touches reserved memory")
    addresses = (start + jnp.arange(count)) & ADDRESS_MASK
    return state.replace(memory=state.memory.at[addresses].set(values))


def execute_get_delay_timer(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """FX1E - Add VX to I register."""
    new_i = (jnp.astype(state.I, jnp.int32) + state.V[instruction.x]) & INDEX_MASK
    return state.replace(I=jnp.astype(new_i, jnp.uint16))


def execute_wait_for_key(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """FX0A - Wait for key press.

    With no key down the program counter is rewound, so the same instruction
    runs again next cycle.
    """
    pressed_key = devices.keypad.first_down(devices.now())
    if pressed_key is None:
        return state.replace(pc=jnp.astype(state.pc - 2, jnp.uint16))
    return state.replace(V=state.V.at[instruction.x].set(pressed_key))


def execute_font_character(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """FX29 - Set I to location of sprite for digit VX."""
    digit = jnp.astype(state.V[instruction.x], jnp.uint16) & 0xF
    return state.replace(I=jnp.astype(FONT_START + digit * FONT_CHAR_SIZE, jnp.uint16))


def execute_bcd_conversion(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]
    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)
    return _write_memory(state, devices, digits)


def execute_store_registers(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """FX55 - Store V0 through VX in memory starting at I."""
    return _write_memory(state, devices, state.V[:instruction.x + 1])


def execute_load_registers(state: MachineState, instruction: Instruction, devices: Devices) -> MachineState:
    """FX65 - Load V0 through VX from memory starting at I."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    memory_values = state.memory[_addresses(state, NUM_REGISTERS)]
    return state.replace(V=jnp.where(register_mask, memory_values, state.V))

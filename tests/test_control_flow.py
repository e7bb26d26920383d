"""Tests for control flow instructions."""

import pytest
from chipvm import execute, STACK_SIZE, StackOverflowError, StackUnderflowError


class TestJump:
    """Test jump instructions."""

    def test_execute_jump(self, fresh_state):
        """1NNN - Jump to address."""
        state = execute(fresh_state, 0x1234)
        assert state.pc == 0x234

    def test_jump_with_offset(self, fresh_state):
        """BNNN - Jump to NNN + V0."""
        state = fresh_state.replace(V=fresh_state.V.at[0].set(4))
        state = execute(state, 0xB300)
        assert state.pc == 0x304

    def test_jump_with_offset_wraps_address(self, fresh_state):
        state = fresh_state.replace(V=fresh_state.V.at[0].set(0xFF))
        state = execute(state, 0xBFFF)
        assert state.pc == 0x0FE


class TestSubroutines:
    """Test CALL and RET."""

    def test_call_and_return(self, fresh_state):
        state = fresh_state.replace(pc=fresh_state.pc + 2)  # as after fetching a CALL at 0x200
        state = execute(state, 0x2400)
        assert state.pc == 0x400
        assert state.stack.pointer == 1
        assert state.stack.data[0] == 0x202

        state = execute(state, 0x00EE)
        assert state.pc == 0x202
        assert state.stack.pointer == 0

    def test_nested_calls_to_full_depth(self, fresh_state):
        state = fresh_state
        for _ in range(STACK_SIZE):
            state = execute(state, 0x2300)
        assert state.stack.pointer == STACK_SIZE

        with pytest.raises(StackOverflowError):
            execute(state, 0x2300)

    def test_return_with_empty_stack(self, fresh_state):
        with pytest.raises(StackUnderflowError):
            execute(fresh_state, 0x00EE)


class TestSkipInstructions:
    """Test all skip instruction variants."""

    def test_skip_if_equal_immediate_true(self, fresh_state):
        """3XKK - Should skip when VX == KK."""
        state = fresh_state.replace(V=fresh_state.V.at[5].set(0x42))
        initial_pc = state.pc

        state = execute(state, 0x3542)
        assert state.pc == initial_pc + 2

    def test_skip_if_equal_immediate_false(self, fresh_state):
        """3XKK - Should not skip when VX != KK."""
        state = fresh_state.replace(V=fresh_state.V.at[5].set(0x41))
        initial_pc = state.pc

        state = execute(state, 0x3542)
        assert state.pc == initial_pc

    def test_skip_if_not_equal_immediate(self, fresh_state):
        """4XKK - Should skip when VX != KK."""
        state = fresh_state.replace(V=fresh_state.V.at[3].set(0x10))
        initial_pc = state.pc

        assert execute(state, 0x4320).pc == initial_pc + 2
        assert execute(state, 0x4310).pc == initial_pc

    def test_skip_if_equal_register(self, fresh_state):
        """5XY0 - Should skip when VX == VY."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(0x55).at[2].set(0x55))
        initial_pc = state.pc

        assert execute(state, 0x5120).pc == initial_pc + 2
        assert execute(state, 0x5130).pc == initial_pc

    def test_skip_if_not_equal_register(self, fresh_state):
        """9XY0 - Should skip when VX != VY."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(0x55))
        initial_pc = state.pc

        assert execute(state, 0x9120).pc == initial_pc + 2
        assert execute(state, 0x9230).pc == initial_pc


class TestKeySkips:
    """Test EX9E and EXA1 against the debounced keypad."""

    def test_skip_if_key_down(self, fresh_state, devices, clock):
        devices.keypad.record_press(5, at=clock())
        state = fresh_state.replace(V=fresh_state.V.at[3].set(5))
        initial_pc = state.pc

        assert execute(state, 0xE39E, devices).pc == initial_pc + 2
        assert execute(state, 0xE3A1, devices).pc == initial_pc

    def test_skip_if_key_up(self, fresh_state, devices):
        state = fresh_state.replace(V=fresh_state.V.at[3].set(5))
        initial_pc = state.pc

        assert execute(state, 0xE39E, devices).pc == initial_pc
        assert execute(state, 0xE3A1, devices).pc == initial_pc + 2

    def test_key_released_after_debounce_window(self, fresh_state, devices, clock):
        devices.keypad.record_press(5, at=clock())
        clock.advance(0.5)
        state = fresh_state.replace(V=fresh_state.V.at[3].set(5))

        assert execute(state, 0xE39E, devices).pc == state.pc

    def test_key_index_uses_low_nibble(self, fresh_state, devices, clock):
        devices.keypad.record_press(5, at=clock())
        state = fresh_state.replace(V=fresh_state.V.at[3].set(0x15))

        assert execute(state, 0xE39E, devices).pc == state.pc + 2

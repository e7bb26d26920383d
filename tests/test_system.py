"""Tests for the fetch/decode/execute loop."""

import jax.numpy as jnp
import pytest
from chipvm import (
    Executor, create_state, fetch, load_program, load_rom, HaltedError, IllegalOpcodeError,
    ProgramTooLargeError, StackOverflowError, StackUnderflowError, MAX_PROGRAM_SIZE, PROGRAM_START
)
from conftest import assemble, program_state


class TestProgramLoading:
    """Test placing programs in memory."""

    def test_initial_state(self, fresh_state):
        assert fresh_state.pc == PROGRAM_START
        assert int(jnp.sum(fresh_state.V)) == 0
        assert fresh_state.I == 0
        assert fresh_state.stack.pointer == 0
        assert fresh_state.delay_timer == 0 and fresh_state.sound_timer == 0

    def test_program_loaded_at_0x200(self, fresh_state):
        state = load_program(fresh_state, b"\x12\x34\xAB")
        assert [int(b) for b in state.memory[0x200:0x203]] == [0x12, 0x34, 0xAB]

    def test_program_filling_memory(self, fresh_state):
        state = load_program(fresh_state, b"\x01" * MAX_PROGRAM_SIZE)
        assert state.memory[0xFFF] == 1

    def test_program_too_large(self, fresh_state):
        with pytest.raises(ProgramTooLargeError):
            load_program(fresh_state, b"\x00" * (MAX_PROGRAM_SIZE + 1))

    def test_load_rom(self, fresh_state, tmp_path):
        rom = tmp_path / "test.ch8"
        rom.write_bytes(assemble(0x00E0, 0x1202))

        state = load_rom(fresh_state, str(rom))
        assert [int(b) for b in state.memory[0x200:0x204]] == [0x00, 0xE0, 0x12, 0x02]


class TestFetch:
    """Test instruction fetch."""

    def test_fetch_advances_pc(self):
        state, instruction = fetch(program_state(0xA123))
        assert instruction.raw == 0xA123
        assert state.pc == 0x202


class TestExecutor:
    """Test whole cycles through the executor."""

    def test_clear_then_loop(self, devices):
        executor = Executor(program_state(0x00E0, 0x1202), devices)
        devices.display.present()

        executor.step()
        assert devices.display.dirty
        assert not bool(jnp.any(devices.display.back_snapshot()))
        assert executor.state.pc == 0x202

        executor.run(10)
        assert executor.state.pc == 0x202
        assert executor.cycles == 11
        assert not executor.halted

    def test_counting_loop(self, devices):
        executor = Executor(program_state(
            0x6000,  # 0x200: V0 = 0
            0x7001,  # 0x202: V0 += 1
            0x3005,  # 0x204: skip if V0 == 5
            0x1202,  # 0x206: jump 0x202
            0x1208,  # 0x208: spin
        ), devices)

        state = executor.run(20)
        assert state.V[0] == 5
        assert state.pc == 0x208

    def test_subroutine_program(self, devices):
        executor = Executor(program_state(
            0x2206,  # 0x200: call 0x206
            0x6102,  # 0x202: V1 = 2
            0x1204,  # 0x204: spin
            0x6001,  # 0x206: V0 = 1
            0x00EE,  # 0x208: return
        ), devices)

        state = executor.run(5)
        assert state.V[0] == 1
        assert state.V[1] == 2
        assert state.pc == 0x204
        assert state.stack.pointer == 0

    def test_skip_skips_exactly_one_instruction(self, devices):
        executor = Executor(program_state(0x3000, 0x6105, 0x6207), devices)
        state = executor.run(2)
        assert state.V[1] == 0
        assert state.V[2] == 7
        assert state.pc == 0x206

    def test_illegal_opcode_halts(self, devices, log_stream):
        executor = Executor(program_state(0x6001, 0x5121), devices)
        executor.step()

        with pytest.raises(IllegalOpcodeError) as excinfo:
            executor.step()
        assert excinfo.value.instruction == 0x5121
        assert excinfo.value.address == 0x202
        assert executor.halted
        assert executor.state.pc == 0x202
        assert "Illegal opcode 0x5121 at 0x202" in log_stream.getvalue()

        with pytest.raises(HaltedError):
            executor.step()

    def test_stack_overflow_halts(self, devices):
        executor = Executor(program_state(0x2200), devices)
        executor.run(16)

        with pytest.raises(StackOverflowError):
            executor.step()
        assert executor.halted

    def test_stack_underflow_halts(self, devices):
        executor = Executor(program_state(0x00EE), devices)
        with pytest.raises(StackUnderflowError):
            executor.step()
        assert isinstance(executor.error, StackUnderflowError)

    def test_pending_timer_ticks_applied_before_fetch(self, devices):
        executor = Executor(program_state(0x6005, 0xF015, 0xF107, 0x1206), devices)
        executor.run(2)
        assert executor.state.delay_timer == 5

        executor.tick_timers()
        executor.tick_timers()
        executor.step()
        assert executor.state.V[1] == 3

        for _ in range(10):
            executor.tick_timers()
        executor.step()
        assert executor.state.delay_timer == 0

    def test_key_wait_blocks_until_press(self, devices, clock):
        executor = Executor(program_state(0xF20A, 0x1202), devices)

        executor.step()
        assert executor.waiting_for_key
        assert executor.state.pc == 0x200

        executor.step()
        assert executor.waiting_for_key

        devices.keypad.record_press(4, at=clock())
        executor.step()
        assert not executor.waiting_for_key
        assert executor.state.V[2] == 4
        assert executor.state.pc == 0x202

    def test_trace_logging(self, devices, log_stream):
        devices.logger.trace = True
        executor = Executor(program_state(0x6A2B), devices)
        executor.step()
        assert "0x200: 6A2B  LD VA, 0x2B" in log_stream.getvalue()

    def test_seeded_random_programs_match(self, devices):
        first = Executor(program_state(0xC0FF, 0xC1FF, seed=7), devices).run(2)
        second = Executor(program_state(0xC0FF, 0xC1FF, seed=7), devices).run(2)
        assert [int(v) for v in first.V[:2]] == [int(v) for v in second.V[:2]]

    def test_default_devices(self):
        executor = Executor(create_state())
        assert executor.devices.display is not None
        assert executor.cycles == 0

    def test_explicit_none_devices_get_defaults(self):
        from chipvm import create_devices

        devices = create_devices(display=None, keypad=None, logger=None)
        assert devices.display is not None
        assert devices.keypad is not None
        assert devices.logger.log_level == "WARNING"

"""Tests for control flow instructions."""

import pytest
from vipax import execute, create_state, EmulatorConfig, FAULT_STACK_OVERFLOW, FAULT_STACK_UNDERFLOW
from conftest import set_registers


class TestJump:
    """Test jump instructions."""

    def test_execute_jump(self, fresh_state):
        """Test 1NNN - Jump to address."""
        state = execute(fresh_state, 0x1001)
        assert state.pc == 1

    def test_jump_to_top_of_memory(self, fresh_state):
        state = execute(fresh_state, 0x1FFE)
        assert state.pc == 0xFFE


class TestCall:
    """Test 2NNN and the call stack bound."""

    def test_call_pushes_return_address(self, fresh_state):
        state = execute(fresh_state, 0x2300)

        assert state.pc == 0x300
        assert state.stack.pointer == 1
        assert state.stack.data[0] == 0x200

    def test_sixteen_nested_calls_fit(self, fresh_state):
        state = fresh_state
        for _ in range(16):
            state = execute(state, 0x2400)

        assert state.stack.pointer == 16
        assert state.fault == 0

    def test_seventeenth_call_overflows(self, fresh_state):
        state = fresh_state
        for _ in range(16):
            state = execute(state, 0x2400)

        state = state.replace(pc=state.pc + 2)  # as if fetched
        state = execute(state, 0x2400)

        assert state.fault == FAULT_STACK_OVERFLOW
        assert state.stack.pointer == 16
        assert state.pc == 0x400  # rewound to the faulting call

    def test_return_on_empty_stack_underflows(self, fresh_state):
        state = fresh_state.replace(pc=fresh_state.pc + 2)

        state = execute(state, 0x00EE)

        assert state.fault == FAULT_STACK_UNDERFLOW
        assert state.pc == 0x200


class TestSkipInstructions:
    """Test all skip instruction variants."""

    def test_skip_if_equal_immediate_true(self, fresh_state):
        """3XNN - Should skip when VX == NN."""
        state = set_registers(fresh_state, V5=0x42)
        initial_pc = state.pc

        state = execute(state, 0x3542)  # Skip if V5 == 0x42
        assert state.pc == initial_pc + 2

    def test_skip_if_equal_immediate_false(self, fresh_state):
        """3XNN - Should not skip when VX != NN."""
        state = set_registers(fresh_state, V5=0x41)
        initial_pc = state.pc

        state = execute(state, 0x3542)
        assert state.pc == initial_pc

    def test_skip_if_not_equal_immediate_true(self, fresh_state):
        """4XNN - Should skip when VX != NN."""
        state = set_registers(fresh_state, V3=0x10)
        initial_pc = state.pc

        state = execute(state, 0x4320)  # Skip if V3 != 0x20
        assert state.pc == initial_pc + 2

    def test_skip_if_not_equal_immediate_false(self, fresh_state):
        """4XNN - Should not skip when VX == NN."""
        state = set_registers(fresh_state, V3=0x20)
        initial_pc = state.pc

        state = execute(state, 0x4320)
        assert state.pc == initial_pc

    def test_skip_if_equal_register_true(self, fresh_state):
        """5XY0 - Should skip when VX == VY."""
        state = set_registers(fresh_state, V1=0x55, V2=0x55)
        initial_pc = state.pc

        state = execute(state, 0x5120)  # Skip if V1 == V2
        assert state.pc == initial_pc + 2

    def test_skip_if_equal_register_false(self, fresh_state):
        """5XY0 - Should not skip when VX != VY."""
        state = set_registers(fresh_state, V1=0x55, V2=0x44)
        initial_pc = state.pc

        state = execute(state, 0x5120)
        assert state.pc == initial_pc

    def test_skip_if_not_equal_register_true(self, fresh_state):
        """9XY0 - Should skip when VX != VY."""
        state = set_registers(fresh_state, V7=0xAA, V8=0xBB)
        initial_pc = state.pc

        state = execute(state, 0x9780)  # Skip if V7 != V8
        assert state.pc == initial_pc + 2

    def test_skip_if_not_equal_register_false(self, fresh_state):
        """9XY0 - Should not skip when VX == VY."""
        state = set_registers(fresh_state, V7=0xCC, V8=0xCC)
        initial_pc = state.pc

        state = execute(state, 0x9780)
        assert state.pc == initial_pc

    @pytest.mark.parametrize("instruction", [0x5121, 0x512F, 0x9781, 0x978E])
    def test_register_skip_with_nonzero_nibble_is_unknown(self, fresh_state, instruction):
        """5XYN/9XYN with N != 0 are undefined."""
        state = set_registers(fresh_state, V1=0x55, V2=0x55, V7=0x01, V8=0x02)
        initial_pc = state.pc

        state = execute(state, instruction)

        assert state.pc == initial_pc
        assert state.unknown_opcodes == 1
        assert state.last_unknown_opcode == instruction

    def test_skip_with_zero_values(self, fresh_state):
        """Test skip instructions with zero values."""
        initial_pc = fresh_state.pc

        state = execute(fresh_state, 0x3000)  # Skip if V0 == 0
        assert state.pc == initial_pc + 2

    def test_skip_boundary_values(self, fresh_state):
        """Test skip instructions with boundary values."""
        state = set_registers(fresh_state, V0=0xFF)
        initial_pc = state.pc

        state = execute(state, 0x30FF)  # Skip if V0 == 255
        assert state.pc == initial_pc + 2


class TestJumpWithOffset:
    """Test jump with offset under both quirk settings."""

    def test_jump_with_offset_v0(self, fresh_state):
        """BNNN - Jump with V0 offset (default)."""
        state = execute(fresh_state, 0x6010)  # V0 = 0x10
        state = execute(state, 0xB250)  # Jump to 0x250 + V0
        assert state.pc == 0x260

    def test_jump_with_offset_vx(self):
        """BXNN - Jump with VX offset when configured."""
        state = create_state(config=EmulatorConfig(jump_uses_vx=True))
        state = execute(state, 0x6010)  # V0 = 0x10
        state = execute(state, 0x6230)  # V2 = 0x30
        state = execute(state, 0xB250)  # Jump to 0x250 + V2
        assert state.pc == 0x280

    def test_jump_with_offset_can_leave_memory(self, fresh_state):
        """BNNN is not masked; the next fetch reports the bad address."""
        state = set_registers(fresh_state, V0=0xFF)
        state = execute(state, 0xBFFF)
        assert state.pc == 0xFFF + 0xFF


class TestKeySkips:
    """Test EX9E/EXA1."""

    def test_skip_if_key_pressed(self, fresh_state):
        state = set_registers(fresh_state, V0=5)
        state = state.replace(keypad=state.keypad.at[5].set(True))
        initial_pc = state.pc

        state = execute(state, 0xE09E)
        assert state.pc == initial_pc + 2

    def test_no_skip_if_other_key_pressed(self, fresh_state):
        state = set_registers(fresh_state, V0=5)
        state = state.replace(keypad=state.keypad.at[6].set(True))
        initial_pc = state.pc

        state = execute(state, 0xE09E)
        assert state.pc == initial_pc

    def test_skip_if_key_not_pressed(self, fresh_state):
        state = set_registers(fresh_state, V0=5)
        initial_pc = state.pc

        state = execute(state, 0xE0A1)
        assert state.pc == initial_pc + 2

    def test_no_skip_if_key_held(self, fresh_state):
        state = set_registers(fresh_state, V0=0xA)
        state = state.replace(keypad=state.keypad.at[0xA].set(True))
        initial_pc = state.pc

        state = execute(state, 0xE0A1)
        assert state.pc == initial_pc

    def test_undefined_key_instruction(self, fresh_state):
        state = execute(fresh_state, 0xE09F)
        assert state.unknown_opcodes == 1
        assert state.pc == fresh_state.pc

    def test_input_state_is_not_mutated(self, fresh_state):
        keypad = fresh_state.keypad.at[3].set(True)
        state = set_registers(fresh_state.replace(keypad=keypad), V0=3)

        state = execute(state, 0xE09E)
        state = execute(state, 0xE0A1)

        assert (state.keypad == keypad).all()

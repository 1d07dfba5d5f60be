# tests/core/test_state.py
"""
retro_chip8.core.stateモジュールの単体テスト。
"""
import pytest

from retro_chip8.common.errors import StackOverflow, StackUnderflow
from retro_chip8.core.state import Chip8CpuState, RegisterView, STACK_DEPTH

# @intent:test_suite レジスタファイルの初期値、マスク、スタック操作を検証します。

class TestChip8CpuState:
    def test_defaults(self):
        state = Chip8CpuState()
        assert state.pc == 0x200
        assert state.sp == 0
        assert state.i == 0
        assert state.v == [0] * 16
        assert state.stack == [0] * 16

    # @intent:test_case_mask レジスタへの書き込みが幅でマスクされることを検証します。
    def test_register_masking(self):
        state = Chip8CpuState()
        state.set_v(0x3, 0x1FF)
        state.set_i(0x1FFFF)
        assert state.get_v(0x3) == 0xFF
        assert state.i == 0xFFFF

    # @intent:test_case_set_pc 外部からのPC設定は偶数かつ 0xFFE 以下に限られることを検証します。
    def test_set_pc_validation(self):
        state = Chip8CpuState()
        state.set_pc(0xFFE)
        assert state.pc == 0xFFE
        with pytest.raises(ValueError):
            state.set_pc(0xFFF)
        with pytest.raises(ValueError):
            state.set_pc(0x201)
        with pytest.raises(ValueError):
            state.set_pc(-2)
        assert state.pc == 0xFFE

    # @intent:test_case_stack 16段まで積め、17段目で StackOverflow となることを検証します。
    def test_stack_depth(self):
        state = Chip8CpuState()
        for n in range(STACK_DEPTH):
            state.push_stack(0x200 + n * 2)
        assert state.sp == STACK_DEPTH
        with pytest.raises(StackOverflow):
            state.push_stack(0x300)
        assert state.sp == STACK_DEPTH
        assert state.pop_stack() == 0x200 + (STACK_DEPTH - 1) * 2

    def test_stack_underflow(self):
        state = Chip8CpuState()
        with pytest.raises(StackUnderflow):
            state.pop_stack()
        assert state.sp == 0

    def test_copy_is_independent(self):
        state = Chip8CpuState()
        clone = state.copy()
        clone.v[0] = 0x42
        clone.stack[0] = 0x300
        assert state.v[0] == 0
        assert state.stack[0] == 0

class TestRegisterView:
    def test_active_stack_and_immutability(self):
        view = RegisterView(v=(0,) * 16, i=0, pc=0x200, sp=2,
                            stack=(0x202, 0x304) + (0,) * 14, delay_timer=0, sound_timer=0)
        assert view.active_stack == (0x202, 0x304)
        with pytest.raises(AttributeError):
            view.pc = 0x300

# src/retro_chip8/instructions/alu.py
"""
算術・論理演算命令の実装 (7xnn, 8xy_, Cxnn)。

フラグを設定する命令では、結果を Vx に書き込んだ後に VF を書き込みます。
そのため Vx が VF の場合、最終的な VF にはフラグ値が残ります。
"""
from retro_chip8.core.state import Chip8CpuState, FLAG_REGISTER
from retro_chip8.core.trace import Operation
from .base import Chip8Bus, PcUpdate, NEXT

# @intent:responsibility ADD Vx, byte (7xnn): キャリーフラグは変化しません。
def execute_add_byte(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    state.set_v(op.x, state.v[op.x] + op.nn)
    return NEXT

def execute_ld_reg(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    state.set_v(op.x, state.v[op.y])
    return NEXT

# --- Logical ---
# @intent:rationale 論理演算後のVFリセットは互換性設定 logic_resets_vf で固定する。
def _logic_result(state: Chip8CpuState, bus: Chip8Bus, op: Operation, value: int) -> PcUpdate:
    state.set_v(op.x, value)
    if bus.quirks.logic_resets_vf:
        state.v[FLAG_REGISTER] = 0
    return NEXT

def execute_or(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    return _logic_result(state, bus, op, state.v[op.x] | state.v[op.y])

def execute_and(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    return _logic_result(state, bus, op, state.v[op.x] & state.v[op.y])

def execute_xor(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    return _logic_result(state, bus, op, state.v[op.x] ^ state.v[op.y])

# --- Arithmetic ---
# @intent:responsibility ADD Vx, Vy (8xy4): VF = キャリー。
def execute_add_reg(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    total = state.v[op.x] + state.v[op.y]
    state.set_v(op.x, total)
    state.v[FLAG_REGISTER] = 1 if total > 0xFF else 0
    return NEXT

# @intent:responsibility SUB Vx, Vy (8xy5): VF = NOT borrow (Vx >= Vy なら 1)。
def execute_sub(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    vx, vy = state.v[op.x], state.v[op.y]
    state.set_v(op.x, vx - vy)
    state.v[FLAG_REGISTER] = 1 if vx >= vy else 0
    return NEXT

# @intent:responsibility SUBN Vx, Vy (8xy7): Vx = Vy - Vx, VF = NOT borrow。
def execute_subn(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    vx, vy = state.v[op.x], state.v[op.y]
    state.set_v(op.x, vy - vx)
    state.v[FLAG_REGISTER] = 1 if vy >= vx else 0
    return NEXT

# --- Shift ---
# @intent:rationale シフト元は互換性設定 shift_uses_vy で固定する。既定では Vx 自身をシフトし、Vy は無視する。
def _shift_source(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> int:
    return state.v[op.y] if bus.quirks.shift_uses_vy else state.v[op.x]

# @intent:responsibility SHR Vx (8xy6): VF = シフトアウトされた最下位ビット。
def execute_shr(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    source = _shift_source(state, bus, op)
    state.set_v(op.x, source >> 1)
    state.v[FLAG_REGISTER] = source & 0x01
    return NEXT

# @intent:responsibility SHL Vx (8xyE): VF = シフトアウトされた最上位ビット。
def execute_shl(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    source = _shift_source(state, bus, op)
    state.set_v(op.x, source << 1)
    state.v[FLAG_REGISTER] = (source >> 7) & 0x01
    return NEXT

# @intent:responsibility RND Vx, byte (Cxnn): マシン固有の乱数生成器を使用し、再現性を保つ。
def execute_rnd(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    state.set_v(op.x, bus.rng.randrange(0x100) & op.nn)
    return NEXT

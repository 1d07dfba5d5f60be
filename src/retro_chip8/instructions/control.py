# src/retro_chip8/instructions/control.py
"""
分岐・サブルーチン・条件スキップ命令の実装。

実行中の state.pc は現在の命令のアドレスを指しています。
PCの更新はCPUが戻り値の PcUpdate に従って行います。
"""
from retro_chip8.core.state import Chip8CpuState
from retro_chip8.core.trace import Operation
from .base import Chip8Bus, PcUpdate, jump, skip_if

# --- Subroutine ---
# @intent:responsibility RET (00EE): スタックから戻りアドレスを取り出してジャンプします。
def execute_ret(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    if state.sp > 0:
        # 取り出す前に戻り先を検証し、失敗時にSPを変更しない
        jump(state.stack[state.sp - 1])
    return jump(state.pop_stack())

# @intent:responsibility CALL (2nnn): 次の命令のアドレスを積み、nnn へジャンプします。
def execute_call(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    update = jump(op.nnn)
    state.push_stack(state.pc + 2)
    return update

# --- Jump ---
def execute_jp(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    return jump(op.nnn)

# @intent:responsibility JP V0, nnn (Bnnn): オフセット付きジャンプ。
# @intent:rationale 加算するレジスタは互換性設定 jump_offset_uses_vx で固定する (既定は V0)。
def execute_jp_offset(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    register = op.x if bus.quirks.jump_offset_uses_vx else 0
    return jump(op.nnn + state.v[register])

# --- Conditional skip ---
def execute_se_byte(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    return skip_if(state.v[op.x] == op.nn)

def execute_sne_byte(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    return skip_if(state.v[op.x] != op.nn)

def execute_se_reg(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    return skip_if(state.v[op.x] == state.v[op.y])

def execute_sne_reg(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    return skip_if(state.v[op.x] != state.v[op.y])

# @intent:responsibility SKP/SKNP (Ex9E/ExA1): キー状態による条件スキップ。キー番号は Vx の下位4bit。
def execute_skp(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    return skip_if(bus.keypad.is_key_pressed(state.v[op.x] & 0x0F))

def execute_sknp(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    return skip_if(not bus.keypad.is_key_pressed(state.v[op.x] & 0x0F))

# src/retro_chip8/instructions/load.py
"""
転送・タイマー・メモリ操作命令の実装 (6xnn, Annn, Fx__)。

メモリへ複数バイトを読み書きする命令は、状態を変更する前に範囲チェックを行います。
"""
from retro_chip8.core.state import Chip8CpuState
from retro_chip8.core.trace import Operation
from retro_chip8.transport.memory import FONT_ADDRESS, FONT_GLYPH_SIZE
from .base import Chip8Bus, PcUpdate, NEXT, WAIT

# --- Immediate ---
def execute_ld_byte(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    state.set_v(op.x, op.nn)
    return NEXT

def execute_ld_i(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    state.set_i(op.nnn)
    return NEXT

# --- Timers ---
def execute_ld_vx_dt(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    state.set_v(op.x, bus.clock.delay_timer)
    return NEXT

def execute_ld_dt_vx(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    bus.clock.set_delay(state.v[op.x])
    return NEXT

def execute_ld_st_vx(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    bus.clock.set_sound(state.v[op.x])
    return NEXT

# --- Key wait ---
# @intent:responsibility LD Vx, K (Fx0A): キー押下を待ちます。
# @intent:rationale スレッドをブロックせず、押下が届くまで PC を進めずに WAIT を返す。
#                  CPUは次のステップで同じ命令を再実行し、押下が届いていれば Vx に格納して先へ進む。
def execute_ld_vx_k(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    key = bus.keypad.take_key_press()
    if key is None:
        bus.keypad.request_key_press(op.x)
        return WAIT
    state.set_v(op.x, key)
    return NEXT

# --- Index register ---
# @intent:responsibility ADD I, Vx (Fx1E): I は16bitでラップする。VF は変化しない。
def execute_add_i(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    state.set_i(state.i + state.v[op.x])
    return NEXT

# @intent:responsibility LD F, Vx (Fx29): Vx の下位4bitが示すフォントグリフのアドレスを I に設定。
def execute_ld_f(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    state.set_i(FONT_ADDRESS + (state.v[op.x] & 0x0F) * FONT_GLYPH_SIZE)
    return NEXT

# @intent:responsibility LD B, Vx (Fx33): Vx の10進表現 (百・十・一の位) を I, I+1, I+2 に格納。
def execute_ld_b(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    bus.memory.check_range(state.i, 3)
    value = state.v[op.x]
    bus.memory.write_byte(state.i, value // 100)
    bus.memory.write_byte(state.i + 1, (value // 10) % 10)
    bus.memory.write_byte(state.i + 2, value % 10)
    return NEXT

# --- Register dump / load ---
# @intent:rationale 実行後に I を進めるかどうかは互換性設定 load_store_increments_i で固定する。
def _advance_i(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> None:
    if bus.quirks.load_store_increments_i:
        state.set_i(state.i + op.x + 1)

# @intent:responsibility LD [I], Vx (Fx55): V0..Vx をメモリ I.. に格納します。
def execute_store(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    bus.memory.check_range(state.i, op.x + 1)
    for offset in range(op.x + 1):
        bus.memory.write_byte(state.i + offset, state.v[offset])
    _advance_i(state, bus, op)
    return NEXT

# @intent:responsibility LD Vx, [I] (Fx65): メモリ I.. から V0..Vx へ読み込みます。
def execute_load(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    bus.memory.check_range(state.i, op.x + 1)
    for offset in range(op.x + 1):
        state.set_v(offset, bus.memory.read_byte(state.i + offset))
    _advance_i(state, bus, op)
    return NEXT

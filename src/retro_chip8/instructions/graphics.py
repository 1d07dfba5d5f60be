# src/retro_chip8/instructions/graphics.py
"""
画面操作命令の実装 (00E0, Dxyn)。
"""
from retro_chip8.core.state import Chip8CpuState, FLAG_REGISTER
from retro_chip8.core.trace import Operation
from .base import Chip8Bus, PcUpdate, NEXT

def execute_cls(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    bus.display.clear()
    return NEXT

# @intent:responsibility DRW Vx, Vy, n (Dxyn): I から n バイトのスプライトを (Vx, Vy) にXOR描画します。
# @intent:post-condition VF は衝突 (点灯ピクセルの消灯) があれば 1、なければ 0。
# @intent:rationale スプライトデータを全て読み終えてから描画するため、範囲外アクセス時は画面もVFも変化しない。
def execute_drw(state: Chip8CpuState, bus: Chip8Bus, op: Operation) -> PcUpdate:
    if op.n:
        bus.memory.check_range(state.i, op.n)
    rows = [bus.memory.read_byte(state.i + offset) for offset in range(op.n)]
    collision = bus.display.draw_sprite(
        state.v[op.x], state.v[op.y], rows, clip=bus.quirks.clip_sprites
    )
    state.v[FLAG_REGISTER] = 1 if collision else 0
    return NEXT

# src/retro_chip8/instructions/__init__.py
"""
CHIP-8命令セット実装パッケージ。
"""
from typing import Optional

from retro_chip8.common.errors import UnknownInstruction
from retro_chip8.core.state import Chip8CpuState
from retro_chip8.core.trace import Operation
from .base import Chip8Bus, PcUpdate
from .maps import DECODE_TABLE, EXECUTE_MAP

# @intent:responsibility 16bit命令語をデコードし、タグ付きのOperationを返します。
# @intent:rationale 状態に一切触れない純粋関数とし、逆アセンブラと実行系の双方から使えるようにする。
def decode_instruction(raw: int, address: Optional[int] = None) -> Operation:
    """
    CHIP-8の命令語をデコードします。どのパターンにも一致しない場合は UnknownInstruction を送出します。
    """
    for entry in DECODE_TABLE:
        if (raw & entry.mask) == entry.pattern:
            x = (raw >> 8) & 0x0F
            y = (raw >> 4) & 0x0F
            n = raw & 0x000F
            nn = raw & 0x00FF
            nnn = raw & 0x0FFF
            return Operation(
                kind=entry.kind,
                raw=raw,
                mnemonic=entry.mnemonic,
                operands=entry.operands(x, y, n, nn, nnn),
                x=x, y=y, n=n, nn=nn, nnn=nnn,
            )
    raise UnknownInstruction(raw, address)

# @intent:responsibility デコードされた命令を実行し、PCの更新方法を返します。
def execute_instruction(operation: Operation, state: Chip8CpuState, bus: Chip8Bus) -> PcUpdate:
    """
    デコードされた命令を実行し、CPUの状態と周辺デバイスを変更します。
    """
    executor = EXECUTE_MAP.get(operation.kind)
    if executor is None:
        raise UnknownInstruction(operation.raw, state.pc)
    return executor(state, bus, operation)

# src/retro_chip8/disassembler.py
"""
CHIP-8 Disassembler

メモリ上のバイナリデータを解析し、CHIP-8のアセンブリ表現（ニーモニック）に変換します。
Instruction Layer のデコードロジックを再利用しますが、バスアクセスログを汚さないように
読み出しには peek を使用します。
"""
from typing import List

from retro_chip8.common.errors import UnknownInstruction
from retro_chip8.common.types import DisassemblyLine
from retro_chip8.instructions import decode_instruction
from retro_chip8.transport.memory import MAX_ADDRESS, Memory

# @intent:responsibility 指定されたメモリ範囲を逆アセンブルし、表示用データを生成します。
def disassemble(memory: Memory, start_addr: int, length: int) -> List[DisassemblyLine]:
    """
    指定された範囲のメモリを2バイト単位で逆アセンブルします。
    デコードできない語はデータ (DW) として表示します。

    Returns:
        List of (address, hex_bytes, mnemonic) tuples.
    """
    result = []
    current_addr = start_addr
    end_addr = min(start_addr + length, MAX_ADDRESS + 1)

    # 末尾の1バイトだけでは命令にならないため、2バイト揃う範囲のみ処理する
    while current_addr + 1 < end_addr:
        high = memory.peek(current_addr)
        low = memory.peek(current_addr + 1)
        raw = (high << 8) | low
        try:
            text = decode_instruction(raw, current_addr).text()
        except UnknownInstruction:
            text = f"DW #{raw:04X}"
        result.append((current_addr, f"{high:02X} {low:02X}", text))
        current_addr += 2

    return result

# retro_chip8/loader/rom_loader.py
"""
ROMローダーモジュール。
生バイナリ形式 (.ch8) のCHIP-8プログラムを読み込み、マシンの 0x200 以降に配置します。
"""
import logging

from retro_chip8.core.machine import Chip8
from retro_chip8.transport.memory import MEMORY_SIZE, PROGRAM_START

logger = logging.getLogger(__name__)

MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START

class RomLoader:
    """
    CHIP-8 ROMファイルを読み込むローダー。
    ファイルの読み込みエラー (OSError) はそのまま呼び出し側へ伝播します。
    """
    def read_rom(self, file_path: str) -> bytes:
        with open(file_path, 'rb') as f:
            data = f.read()
        if len(data) > MAX_PROGRAM_SIZE:
            logger.warning("ROM %s is %d bytes, larger than the %d bytes available", file_path, len(data), MAX_PROGRAM_SIZE)
        return data

    # @intent:responsibility ROMファイルを読み込み、マシンに配置します。
    # @intent:post-condition 容量超過時は AddressOutOfBounds を送出し、メモリは変更されない。
    def load_rom(self, file_path: str, machine: Chip8) -> bytes:
        data = self.read_rom(file_path)
        machine.load_program(data)
        logger.info("Loaded ROM %s (%d bytes)", file_path, len(data))
        return data

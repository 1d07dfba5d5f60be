# tests/transport/test_memory.py
"""
retro_chip8.transport.memoryモジュールの単体テスト。
"""
import pytest

from retro_chip8.common.errors import AddressOutOfBounds
from retro_chip8.transport.memory import (
    BusAccess, BusAccessType, FONT, MAX_ADDRESS, MEMORY_SIZE, Memory, PROGRAM_START,
)

# @intent:test_suite 4KBメモリの範囲チェック、アクセスログ、プログラムロードを検証します。

class TestMemory:
    """
    Memoryクラスの単体テスト。
    """
    # @intent:test_case_init フォントが 0x000 に配置され、残りはゼロで初期化されることを検証します。
    def test_init_seeds_font(self):
        memory = Memory()
        assert memory.get_size() == MEMORY_SIZE
        assert memory.dump()[:len(FONT)] == FONT
        assert all(b == 0 for b in memory.dump()[len(FONT):])

    def test_init_from_image(self):
        image = bytes(range(256)) * 16
        memory = Memory(image)
        assert memory.dump() == image

    def test_init_invalid_image_size(self):
        with pytest.raises(ValueError):
            Memory(b"\x00" * 10)

    # @intent:test_case_rw 境界を含む読み書きが正しく行われることを検証します。
    def test_read_write_within_bounds(self):
        memory = Memory()
        memory.write_byte(0x000, 0x12)
        memory.write_byte(MAX_ADDRESS, 0x34)
        assert memory.read_byte(0x000) == 0x12
        assert memory.read_byte(MAX_ADDRESS) == 0x34

    # @intent:test_case_oob 範囲外アクセスで AddressOutOfBounds (IndexErrorでもある) が発生することを検証します。
    def test_read_write_out_of_bounds(self):
        memory = Memory()
        with pytest.raises(AddressOutOfBounds) as exc_info:
            memory.read_byte(0x1000)
        assert exc_info.value.address == 0x1000
        with pytest.raises(IndexError):
            memory.write_byte(-1, 0x00)

    def test_write_invalid_data(self):
        memory = Memory()
        with pytest.raises(ValueError):
            memory.write_byte(0x300, 0x100)
        with pytest.raises(ValueError):
            memory.write_byte(0x300, -1)

    # @intent:test_case_check_range 複数バイトの範囲チェックは最初の範囲外アドレスを報告します。
    def test_check_range(self):
        Memory.check_range(0xFFE, 2)
        with pytest.raises(AddressOutOfBounds) as exc_info:
            Memory.check_range(0xFFE, 3)
        assert exc_info.value.address == 0x1000

    # @intent:test_case_activity_log 読み書きが記録され、取得時にクリアされることを検証します。
    def test_activity_log(self):
        memory = Memory()
        memory.write_byte(0x300, 0xAB)
        memory.read_byte(0x300)
        log = memory.get_and_clear_activity_log()
        assert log == [
            BusAccess(0x300, 0xAB, BusAccessType.WRITE, previous_data=0x00),
            BusAccess(0x300, 0xAB, BusAccessType.READ),
        ]
        assert memory.get_and_clear_activity_log() == []

    # @intent:test_case_peek peek はログに記録されないことを検証します。
    def test_peek_does_not_log(self):
        memory = Memory()
        assert memory.peek(0x000) == FONT[0]
        assert memory.get_and_clear_activity_log() == []

class TestLoadProgram:
    def test_load_program_at_0x200(self):
        memory = Memory()
        memory.load_program(b"\x6A\x05\x7A\x02")
        assert memory.dump()[PROGRAM_START:PROGRAM_START + 4] == b"\x6A\x05\x7A\x02"

    def test_load_program_fills_to_end(self):
        memory = Memory()
        program = b"\xAA" * (MEMORY_SIZE - PROGRAM_START)
        memory.load_program(program)
        assert memory.peek(MAX_ADDRESS) == 0xAA

    # @intent:test_case_oob 容量を超えるプログラムは拒否され、メモリは変更されないことを検証します。
    def test_load_program_too_large(self):
        memory = Memory()
        before = memory.dump()
        with pytest.raises(AddressOutOfBounds):
            memory.load_program(b"\xAA" * (MEMORY_SIZE - PROGRAM_START + 1))
        assert memory.dump() == before

    def test_dump_is_independent_copy(self):
        memory = Memory()
        snapshot = memory.dump()
        memory.write_byte(0x300, 0x01)
        assert snapshot[0x300] == 0x00

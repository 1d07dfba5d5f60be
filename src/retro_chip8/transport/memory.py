# retro_chip8/transport/memory.py
"""
Transport Layer (メモリ)

このモジュールは、CHIP-8の4KBフラットなアドレス空間を表現し、
命令エンジンからの読み書きを受け付ける責務を負います。
全てのアクセスは記録され、1サイクル分のバスアクティビティとしてCPUに回収されます。
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from retro_chip8.common.errors import AddressOutOfBounds

# @intent:constant アドレス空間の大きさと予約領域の境界。
MEMORY_SIZE = 0x1000
PROGRAM_START = 0x200
MAX_ADDRESS = MEMORY_SIZE - 1
FONT_ADDRESS = 0x000
FONT_GLYPH_SIZE = 5

# @intent:constant インタプリタ領域に常駐する16進フォント (0-F, 各5バイト)。
FONT = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])

# @intent:responsibility バスアクセスを記録するためのタイプを定義します。
class BusAccessType(Enum):
    READ = "READ"
    WRITE = "WRITE"

# @intent:responsibility 個々のメモリアクセス操作を記録します。
@dataclass(frozen=True)
class BusAccess:
    """
    メモリ上で行われた単一のアクセス（読み込みまたは書き込み）を記録するデータクラス。
    書き込みの場合は、デバッガが取り消しに使えるよう書き込み前の値も保持します。
    """
    address: int
    data: int  # 8bit value
    access_type: BusAccessType
    previous_data: Optional[int] = None

# @intent:responsibility 4KBのメモリ空間を管理し、範囲チェック付きの読み書きとプログラムロードを提供します。
class Memory:
    """
    CHIP-8のメモリ (0x000-0xFFF)。
    生成時およびリセット時に、予約領域へフォントデータが配置されます。
    """
    def __init__(self, image: Optional[bytes] = None):
        if image is None:
            self._memory = bytearray(MEMORY_SIZE)
            self._memory[FONT_ADDRESS:FONT_ADDRESS + len(FONT)] = FONT
        else:
            if len(image) != MEMORY_SIZE:
                raise ValueError(f"Memory image must be {MEMORY_SIZE} bytes, got {len(image)}.")
            self._memory = bytearray(image)
        self._activity_log: List[BusAccess] = []

    # @intent:responsibility アドレスが有効範囲内であることを保証します。
    @staticmethod
    def check_range(address: int, length: int = 1) -> None:
        """
        address から length バイトが全て 0x000-0xFFF に収まることを検証します。
        収まらない場合は、最初に範囲外となるアドレスを添えて AddressOutOfBounds を送出します。
        """
        if address < 0:
            raise AddressOutOfBounds(address)
        last = address + max(length, 1) - 1
        if last > MAX_ADDRESS:
            raise AddressOutOfBounds(max(address, MAX_ADDRESS + 1))

    def _log_access(self, address: int, data: int, access_type: BusAccessType,
                    previous_data: Optional[int] = None) -> None:
        self._activity_log.append(BusAccess(address, data, access_type, previous_data))

    # @intent:responsibility 記録されたアクティビティログを取得し、クリアします。
    def get_and_clear_activity_log(self) -> List[BusAccess]:
        log = self._activity_log
        self._activity_log = []
        return log

    # @intent:responsibility 指定されたアドレスから8bitのデータを読み出します。
    # @intent:pre-condition アドレスは 0x000-0xFFF の範囲内である必要があります。
    def read_byte(self, address: int) -> int:
        self.check_range(address)
        data = self._memory[address]
        self._log_access(address, data, BusAccessType.READ)
        return data

    # @intent:responsibility 指定されたアドレスに8bitのデータを書き込みます。
    def write_byte(self, address: int, data: int) -> None:
        self.check_range(address)
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        previous = self._memory[address]
        self._memory[address] = data
        self._log_access(address, data, BusAccessType.WRITE, previous)

    # @intent:responsibility ログを記録せずに指定されたアドレスからデータを読み出します。
    def peek(self, address: int) -> int:
        """
        指定されたアドレスから8bitのデータを読み出します（ログ記録なし）。
        逆アセンブラやデバッグビューなどのインスペクタ用。
        """
        self.check_range(address)
        return self._memory[address]

    # @intent:responsibility プログラムを 0x200 から配置します。
    # @intent:post-condition はみ出す場合は AddressOutOfBounds を送出し、メモリは一切変更されない。
    def load_program(self, data: Iterable[int]) -> None:
        program = bytes(data)
        end = PROGRAM_START + len(program)
        if end - 1 > MAX_ADDRESS:
            raise AddressOutOfBounds(
                end - 1,
                f"Program of {len(program)} bytes does not fit between {PROGRAM_START:#05x} and {MAX_ADDRESS:#05x}."
            )
        self._memory[PROGRAM_START:end] = program

    # @intent:responsibility メモリ全体の独立したコピーを返します。
    def dump(self) -> bytes:
        return bytes(self._memory)

    def get_size(self) -> int:
        return MEMORY_SIZE

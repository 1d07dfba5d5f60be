# retro_chip8/core/state.py
"""
Core Layer (CPU状態)

このモジュールは、CHIP-8のレジスタファイル（V0-VF、I、PC、SP、リターンスタック）を
保持するデータ構造と、外部公開用の読み取り専用ビューを定義します。
"""
from dataclasses import dataclass, field
from typing import List, Tuple

from retro_chip8.common.errors import StackOverflow, StackUnderflow
from retro_chip8.transport.memory import MAX_ADDRESS, PROGRAM_START

# @intent:constant レジスタ数とスタック段数。
REGISTER_COUNT = 16
STACK_DEPTH = 16
FLAG_REGISTER = 0xF

# @intent:responsibility CHIP-8 CPUのレジスタ状態を保持します。
@dataclass
class Chip8CpuState:
    """
    CHIP-8のレジスタ状態を保持するデータクラス。
    sp はスタックに積まれているエントリ数 (0-16) を表します。
    """
    pc: int = PROGRAM_START
    sp: int = 0
    i: int = 0x000
    v: List[int] = field(default_factory=lambda: [0] * REGISTER_COUNT)
    stack: List[int] = field(default_factory=lambda: [0] * STACK_DEPTH)

    # @intent:accessor 汎用レジスタへのアクセス。書き込み値は8bitにマスクされる。
    def get_v(self, index: int) -> int:
        return self.v[index]

    def set_v(self, index: int, value: int) -> None:
        self.v[index] = value & 0xFF

    def set_i(self, value: int) -> None:
        self.i = value & 0xFFFF

    # @intent:responsibility 外部（デバッグビュー等）からPCを設定します。
    # @intent:pre-condition 命令境界 (偶数) かつ 0x000-0xFFE の範囲であること。
    # @intent:rationale 命令エンジン内部のジャンプ先検証はエンジン側が行い、この経路は使わない。
    def set_pc(self, value: int) -> None:
        if not 0 <= value <= MAX_ADDRESS - 1:
            raise ValueError(f"PC {value:#05x} is outside 0x000-0xFFE.")
        if value & 1:
            raise ValueError(f"PC {value:#05x} is not aligned to an instruction boundary.")
        self.pc = value

    # @intent:responsibility リターンアドレスをスタックに積みます。
    # @intent:post-condition 失敗時はスタックもSPも変更されない。
    def push_stack(self, address: int) -> None:
        if self.sp >= STACK_DEPTH:
            raise StackOverflow(f"Call stack overflow: {STACK_DEPTH} return addresses already stored.")
        self.stack[self.sp] = address & 0xFFFF
        self.sp += 1

    def pop_stack(self) -> int:
        if self.sp == 0:
            raise StackUnderflow("Return with an empty call stack.")
        self.sp -= 1
        return self.stack[self.sp]

    # @intent:responsibility リスト要素まで独立したコピーを返します。
    def copy(self) -> 'Chip8CpuState':
        return Chip8CpuState(pc=self.pc, sp=self.sp, i=self.i, v=list(self.v), stack=list(self.stack))

# @intent:responsibility デバッグビュー向けの、レジスタ・タイマー・スタックの不変ビュー。
@dataclass(frozen=True)
class RegisterView:
    v: Tuple[int, ...]
    i: int
    pc: int
    sp: int
    stack: Tuple[int, ...]
    delay_timer: int
    sound_timer: int

    # スタックに積まれている部分のみ
    @property
    def active_stack(self) -> Tuple[int, ...]:
        return self.stack[:self.sp]

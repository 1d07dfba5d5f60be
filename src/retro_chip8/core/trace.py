# retro_chip8/core/trace.py
"""
実行結果の不変レコード

このモジュールは、1サイクル分の実行結果（デコードされた命令、実行結果の種別、
バスアクティビティ、累計サイクル数）を記録する不変のデータ構造を定義します。
ホストのステップループ、デバッガ、およびデバッグビューへの情報提供に用います。
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from retro_chip8.transport.memory import BusAccess


# @intent:responsibility 命令の種別 (デコード結果のタグ) を列挙します。
class InstructionKind(Enum):
    CLS = "CLS"                  # 00E0
    RET = "RET"                  # 00EE
    JP = "JP"                    # 1nnn
    CALL = "CALL"                # 2nnn
    SE_BYTE = "SE_BYTE"          # 3xnn
    SNE_BYTE = "SNE_BYTE"        # 4xnn
    SE_REG = "SE_REG"            # 5xy0
    LD_BYTE = "LD_BYTE"          # 6xnn
    ADD_BYTE = "ADD_BYTE"        # 7xnn
    LD_REG = "LD_REG"            # 8xy0
    OR = "OR"                    # 8xy1
    AND = "AND"                  # 8xy2
    XOR = "XOR"                  # 8xy3
    ADD_REG = "ADD_REG"          # 8xy4
    SUB = "SUB"                  # 8xy5
    SHR = "SHR"                  # 8xy6
    SUBN = "SUBN"                # 8xy7
    SHL = "SHL"                  # 8xyE
    SNE_REG = "SNE_REG"          # 9xy0
    LD_I = "LD_I"                # Annn
    JP_OFFSET = "JP_OFFSET"      # Bnnn
    RND = "RND"                  # Cxnn
    DRW = "DRW"                  # Dxyn
    SKP = "SKP"                  # Ex9E
    SKNP = "SKNP"                # ExA1
    LD_VX_DT = "LD_VX_DT"        # Fx07
    LD_VX_K = "LD_VX_K"          # Fx0A
    LD_DT_VX = "LD_DT_VX"        # Fx15
    LD_ST_VX = "LD_ST_VX"        # Fx18
    ADD_I = "ADD_I"              # Fx1E
    LD_F = "LD_F"                # Fx29
    LD_B = "LD_B"                # Fx33
    STORE = "STORE"              # Fx55
    LOAD = "LOAD"                # Fx65


# @intent:responsibility デコード済みの命令（タグ付きバリアント）を記録します。
@dataclass(frozen=True)
class Operation:
    """
    16bit命令語をデコードした結果。
    オペランドフィールドは全て命令語から機械的に切り出した値で、
    命令種別に応じて意味のあるものだけが実行時に参照されます。
    """
    kind: InstructionKind
    raw: int                          # 例: 0x6A05
    mnemonic: str                     # 例: "LD"
    operands: Tuple[str, ...] = ()    # 例: ("VA", "#$05")
    x: int = 0
    y: int = 0
    n: int = 0
    nn: int = 0
    nnn: int = 0
    length: int = 2

    @property
    def opcode_hex(self) -> str:
        return f"{self.raw:04X}"

    # @intent:utility_function 表示用のアセンブリ表現を返します。
    def text(self) -> str:
        if self.operands:
            return f"{self.mnemonic} {', '.join(self.operands)}"
        return self.mnemonic


# @intent:responsibility 1ステップの結果の種別。キー待ちはエラーではなく通常の結果として扱う。
class StepOutcome(Enum):
    EXECUTED = "EXECUTED"
    WAITING = "WAITING"


# @intent:responsibility 実行に関するメタデータを記録します。
@dataclass(frozen=True)
class Metadata:
    cycle_count: int
    symbol_info: Optional[str] = None


# @intent:responsibility 1ステップの実行結果を不変に記録します。
@dataclass(frozen=True)
class StepResult:
    """
    1回の fetch-decode-execute の結果。
    pc は命令をフェッチしたアドレス、next_pc は実行後のPCです。
    """
    outcome: StepOutcome
    pc: int
    next_pc: int
    operation: Operation
    metadata: Metadata
    bus_activity: List[BusAccess] = field(default_factory=list)

    @property
    def waiting(self) -> bool:
        return self.outcome is StepOutcome.WAITING

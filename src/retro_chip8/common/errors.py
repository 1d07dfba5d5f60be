# retro_chip8/common/errors.py
"""
エンジン全体で使用される例外の定義。

インタプリタの致命的な状態（メモリ範囲外アクセス、スタック破綻、未知の命令）と、
スナップショット復元時の不正データを区別して呼び出し元へ伝えるための型を提供します。
エンジン内部ではこれらを捕捉・再試行しません。判断は常にホスト側の責務です。
"""
from typing import Optional


# @intent:responsibility エンジン実行中に発生する全ての致命的状態の基底クラス。
class EngineError(Exception):
    """
    インタプリタ実行中の致命的エラーの基底クラス。
    ホストはこの型を捕捉して実行停止や診断表示を行います。
    """


# @intent:responsibility 0x000-0xFFF の範囲外のメモリアクセス、またはプログラムロードのはみ出しを表します。
# @intent:rationale IndexError として捕捉するホストにも届くよう、IndexError も継承する。
class AddressOutOfBounds(EngineError, IndexError):
    def __init__(self, address: int, message: str = ""):
        self.address = address
        super().__init__(message or f"Address {address:#05x} out of bounds (0x000-0xFFF).")


class StackOverflow(EngineError):
    """16段のリターンスタックが満杯の状態でCALLが実行された。"""


class StackUnderflow(EngineError):
    """空のリターンスタックに対してRETが実行された。"""


# @intent:responsibility デコードできない命令語を、診断用の生の値と共に通知します。
class UnknownInstruction(EngineError):
    def __init__(self, raw: int, address: Optional[int] = None):
        self.raw = raw
        self.address = address
        location = f" at {address:#05x}" if address is not None else ""
        super().__init__(f"Unknown instruction {raw:#06x}{location}.")


# @intent:responsibility 不正・非互換なスナップショットや保存ファイルを表します。
# @intent:post-condition この例外が送出された場合、復元先のマシン状態は変更されていない。
class RestoreError(ValueError):
    pass

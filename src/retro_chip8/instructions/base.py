# src/retro_chip8/instructions/base.py
"""
CHIP-8命令実装用の共通定義とユーティリティ。
"""
import random
from dataclasses import dataclass, field
from enum import Enum

from retro_chip8.common.errors import AddressOutOfBounds
from retro_chip8.config.models import Quirks
from retro_chip8.devices.clock import Clock
from retro_chip8.devices.display import Framebuffer
from retro_chip8.devices.keypad import Keypad
from retro_chip8.transport.memory import MAX_ADDRESS, Memory

# @intent:responsibility CPU以外の全ての構成要素（メモリ、画面、入力、タイマー）と互換性設定を束ねます。
# @intent:rationale 命令実装は (state, bus, op) の3引数で完結させ、CPUクラスに依存しないようにする。
@dataclass
class Chip8Bus:
    memory: Memory = field(default_factory=Memory)
    display: Framebuffer = field(default_factory=Framebuffer)
    keypad: Keypad = field(default_factory=Keypad)
    clock: Clock = field(default_factory=Clock)
    quirks: Quirks = field(default_factory=Quirks)
    rng: random.Random = field(default_factory=random.Random)


class PcUpdateKind(Enum):
    NEXT = "NEXT"        # PC + 2
    SKIP = "SKIP"        # PC + 4
    JUMP = "JUMP"        # PC = target
    WAIT = "WAIT"        # PC はそのまま (キー待ち)

# @intent:responsibility 命令実行後のPCの更新方法を表します。
@dataclass(frozen=True)
class PcUpdate:
    kind: PcUpdateKind
    target: int = 0

    # @intent:responsibility 現在のPCから次のPCを計算します。
    def apply(self, pc: int) -> int:
        if self.kind is PcUpdateKind.NEXT:
            return pc + 2
        if self.kind is PcUpdateKind.SKIP:
            return pc + 4
        if self.kind is PcUpdateKind.JUMP:
            return self.target
        return pc


NEXT = PcUpdate(PcUpdateKind.NEXT)
SKIP_NEXT = PcUpdate(PcUpdateKind.SKIP)
WAIT = PcUpdate(PcUpdateKind.WAIT)

# @intent:utility_function ジャンプ先を検証し、PcUpdateを生成します。
# @intent:pre-condition 命令は2バイトのため、ジャンプ先は 0x000-0xFFE に収まる必要がある。
def jump(target: int) -> PcUpdate:
    if not 0 <= target <= MAX_ADDRESS - 1:
        raise AddressOutOfBounds(target, f"Jump target {target:#05x} leaves no room for a 2-byte instruction.")
    return PcUpdate(PcUpdateKind.JUMP, target)

def skip_if(condition: bool) -> PcUpdate:
    return SKIP_NEXT if condition else NEXT

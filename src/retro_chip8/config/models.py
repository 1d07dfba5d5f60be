# retro_chip8/config/models.py
from dataclasses import dataclass, field
from typing import Optional

# @intent:data_structure 歴史的なCHIP-8実装間で挙動が分かれる命令の扱いを固定する設定。
# @intent:rationale マシン生成時に一度だけ決定し、実行中は変更できないよう frozen にする。
@dataclass(frozen=True)
class Quirks:
    shift_uses_vy: bool = False            # True: 8xy6/8xyE は Vy をシフトして Vx へ格納
    load_store_increments_i: bool = True   # True: Fx55/Fx65 の後 I = I + x + 1
    jump_offset_uses_vx: bool = False      # True: Bxnn は V0 ではなく Vx を加算
    logic_resets_vf: bool = True           # True: 8xy1/8xy2/8xy3 の後 VF = 0
    clip_sprites: bool = False             # True: 画面端ではみ出した部分を描かない (False は回り込み)

@dataclass
class CpuConfig:
    cycles_per_second: int = 700
    timer_hz: int = 60
    seed: Optional[int] = None

@dataclass
class SystemConfig:
    cpu: CpuConfig = field(default_factory=CpuConfig)
    quirks: Quirks = field(default_factory=Quirks)

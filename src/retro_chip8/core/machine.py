# retro_chip8/core/machine.py
"""
Machine Facade

ホスト (GUI・CLI・デバッガ・テスト) から見た唯一の入口です。
CPU と周辺デバイスを内部に保持し、外部には不変のビューのみを公開します。
"""
import logging
import random
from typing import Dict, List, Optional

from retro_chip8.common.types import DisassemblyLine, RegisterLayoutInfo
from retro_chip8.config.models import Quirks, SystemConfig
from retro_chip8.core.cpu import Chip8Cpu
from retro_chip8.core.snapshot import MachineSnapshot, capture, rebuild
from retro_chip8.core.state import RegisterView
from retro_chip8.core.trace import StepResult
from retro_chip8.devices.display import FramebufferView
from retro_chip8.instructions.base import Chip8Bus

logger = logging.getLogger(__name__)

# @intent:responsibility CHIP-8マシン全体 (CPU・メモリ・画面・入力・タイマー) の操作を提供します。
# @intent:rationale 互換性設定 (Quirks) は生成時に固定し、reset や restore_state の後も維持する。
class Chip8:
    """
    CHIP-8インタプリタのエンジン本体。

    使い方:
        machine = Chip8()
        machine.load_program(rom_bytes)
        result = machine.step()
        machine.tick_timers()   # 60Hz でホストから呼ぶ
    """
    def __init__(self, config: Optional[SystemConfig] = None):
        self._config = config or SystemConfig()
        self._bus = self._create_bus()
        self._cpu = Chip8Cpu(self._bus)
        logger.debug("Machine created with quirks %s", self._config.quirks)

    def _create_bus(self) -> Chip8Bus:
        return Chip8Bus(quirks=self._config.quirks, rng=random.Random(self._config.cpu.seed))

    @property
    def config(self) -> SystemConfig:
        return self._config

    @property
    def quirks(self) -> Quirks:
        return self._config.quirks

    # @intent:responsibility プログラムを 0x200 から配置します。
    # @intent:pre-condition 容量を超える場合は AddressOutOfBounds を送出し、メモリは変更しない。
    def load_program(self, data: bytes) -> None:
        self._bus.memory.load_program(data)
        logger.info("Loaded program of %d bytes at 0x200", len(data))

    # @intent:responsibility 全ての状態を電源投入直後に戻します (メモリ・画面・入力・タイマー・レジスタ)。
    # @intent:post-condition PC = 0x200、フォントは再配置済み、Quirks は維持される。
    def reset(self) -> None:
        self._bus = self._create_bus()
        self._cpu.attach(self._bus, self._cpu.get_state())
        self._cpu.reset()
        logger.info("Machine reset")

    # @intent:responsibility 1命令を実行します。エンジンの異常は EngineError として送出されます。
    def step(self) -> StepResult:
        return self._cpu.step()

    # @intent:responsibility 遅延タイマーとサウンドタイマーを1回分減算します。
    def tick_timers(self) -> None:
        self._bus.clock.tick()

    def set_key(self, index: int, pressed: bool) -> None:
        self._bus.keypad.update(index, pressed)

    def is_key_pressed(self, index: int) -> bool:
        return self._bus.keypad.is_key_pressed(index)

    def get_framebuffer(self) -> FramebufferView:
        return self._bus.display.view()

    def get_registers(self) -> RegisterView:
        return self._cpu.get_registers()

    def get_register_map(self) -> Dict[str, int]:
        return self._cpu.get_register_map()

    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        return self._cpu.get_register_layout()

    def get_flag_state(self) -> Dict[str, bool]:
        return self._cpu.get_flag_state()

    # @intent:responsibility ログを残さずにメモリを読み出します (表示用)。
    def peek(self, address: int) -> int:
        return self._bus.memory.peek(address)

    def dump_memory(self) -> bytes:
        return self._bus.memory.dump()

    def disassemble(self, start_addr: int, length: int) -> List[DisassemblyLine]:
        return self._cpu.disassemble(start_addr, length)

    @property
    def sound_active(self) -> bool:
        return self._bus.clock.sound_active

    @property
    def waiting_for_key(self) -> bool:
        return self._bus.keypad.waiting

    @property
    def cycle_count(self) -> int:
        return self._cpu.cycle_count

    # @intent:responsibility 現在のマシン状態の独立した不変コピーを取得します。
    # @intent:pre-condition step の合間に呼び出すこと。
    def capture_state(self) -> MachineSnapshot:
        return capture(self._cpu.get_state(), self._bus)

    # @intent:responsibility スナップショットからマシン状態を復元します。
    # @intent:post-condition 検証に失敗した場合は RestoreError を送出し、稼働中の状態は一切変更しない。
    def restore_state(self, snapshot: MachineSnapshot) -> None:
        state, bus = rebuild(snapshot, self._config.quirks)
        self._bus = bus
        self._cpu.attach(bus, state)
        logger.debug("Machine state restored (PC=%03X)", state.pc)

import logging
from typing import Optional

from retro_chip8.core.machine import Chip8
from .models import SystemConfig

logger = logging.getLogger(__name__)

# @intent:responsibility システム構成（Config）に基づいてマシンを生成し、必要ならプログラムを配置します。
class SystemBuilder:
    def build_system(self, config: Optional[SystemConfig] = None, program: Optional[bytes] = None) -> Chip8:
        config = config or SystemConfig()
        machine = Chip8(config)
        logger.info(
            "Built CHIP-8 system: %d cycles/s, timers at %d Hz, seed=%s",
            config.cpu.cycles_per_second, config.cpu.timer_hz, config.cpu.seed,
        )

        if program is not None:
            machine.load_program(program)

        return machine

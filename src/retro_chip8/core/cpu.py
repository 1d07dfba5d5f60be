# retro_chip8/core/cpu.py
"""
Core Layer (CHIP-8 CPU)

このモジュールは、CHIP-8のレジスタ状態の管理と命令サイクル (フェッチ→デコード→実行→PC更新) の
駆動を担います。個々の命令の振る舞いは Instruction Layer (retro_chip8.instructions) に委譲されます。
"""
import logging
from typing import Dict, List

from retro_chip8.common.types import DisassemblyLine, RegisterInfo, RegisterLayoutInfo
from retro_chip8.core.state import Chip8CpuState, FLAG_REGISTER, REGISTER_COUNT, RegisterView
from retro_chip8.core.trace import Metadata, Operation, StepOutcome, StepResult
from retro_chip8.instructions import decode_instruction, execute_instruction
from retro_chip8.instructions.base import Chip8Bus, PcUpdateKind
from retro_chip8 import disassembler

logger = logging.getLogger(__name__)

# @intent:responsibility CHIP-8 CPUの具体的なエミュレーションロジック（フェッチ、デコード、実行）を提供します。
class Chip8Cpu:
    """
    CHIP-8 CPUをエミュレートするクラス。
    Chip8Bus 経由でメモリ・画面・入力・タイマーにアクセスします。
    """
    # @intent:responsibility CPUの状態とバスへの参照を初期化します。
    def __init__(self, bus: Chip8Bus):
        self._bus = bus
        self._state = self._create_initial_state()
        self._cycle_count = 0
        # @intent:rationale Stateオブジェクトの直接操作を避けるため、protectedな命名規則を採用。
        #                  外部からの参照は get_registers() の不変ビューを介して行う。

    def _create_initial_state(self) -> Chip8CpuState:
        return Chip8CpuState()

    # @intent:responsibility CPUを初期状態に戻します。
    def reset(self) -> None:
        self._state = self._create_initial_state()
        self._cycle_count = 0

    # @intent:responsibility 新しいバスと状態を差し替えます（スナップショット復元用）。
    def attach(self, bus: Chip8Bus, state: Chip8CpuState) -> None:
        self._bus = bus
        self._state = state

    def get_state(self) -> Chip8CpuState:
        return self._state

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    # @intent:responsibility PC から2バイトを読み出し、16bitの命令語に結合します (上位バイトが先)。
    def _fetch(self) -> int:
        pc = self._state.pc
        self._bus.memory.check_range(pc, 2)
        return (self._bus.memory.read_byte(pc) << 8) | self._bus.memory.read_byte(pc + 1)

    def _decode(self, raw: int) -> Operation:
        return decode_instruction(raw, self._state.pc)

    # @intent:responsibility CPUを1命令サイクル進め、その結果を返します。
    # @intent:flow ログクリア → フェッチ → デコード → 実行 → PC更新 → 結果生成
    # @intent:rationale PCは実行の後で更新する。実行中の state.pc は常に現在の命令のアドレスを指し、
    #                  ジャンプ系命令は PcUpdate で次のPCを直接指定する (自動の +2 は行わない)。
    def step(self) -> StepResult:
        self._bus.memory.get_and_clear_activity_log()
        initial_pc = self._state.pc

        raw = self._fetch()
        operation = self._decode(raw)
        update = execute_instruction(operation, self._state, self._bus)
        self._state.pc = update.apply(initial_pc)

        outcome = StepOutcome.WAITING if update.kind is PcUpdateKind.WAIT else StepOutcome.EXECUTED
        return self._create_result(initial_pc, operation, outcome)

    def _create_result(self, initial_pc: int, operation: Operation, outcome: StepOutcome) -> StepResult:
        bus_activity = self._bus.memory.get_and_clear_activity_log()
        self._cycle_count += 1
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%03X: %s %s", initial_pc, operation.opcode_hex, operation.text())
        return StepResult(
            outcome=outcome,
            pc=initial_pc,
            next_pc=self._state.pc,
            operation=operation,
            metadata=Metadata(cycle_count=self._cycle_count, symbol_info=operation.text()),
            bus_activity=bus_activity,
        )

    # @intent:responsibility 外部公開用に、レジスタ・タイマー・スタックの不変ビューを返します。
    def get_registers(self) -> RegisterView:
        s = self._state
        return RegisterView(
            v=tuple(s.v), i=s.i, pc=s.pc, sp=s.sp, stack=tuple(s.stack),
            delay_timer=self._bus.clock.delay_timer,
            sound_timer=self._bus.clock.sound_timer,
        )

    # @intent:responsibility 表示用に、現在のレジスタ値を辞書形式で提供します。
    def get_register_map(self) -> Dict[str, int]:
        s = self._state
        registers = {f"V{index:X}": s.v[index] for index in range(REGISTER_COUNT)}
        registers.update({
            "I": s.i, "PC": s.pc, "SP": s.sp,
            "DT": self._bus.clock.delay_timer, "ST": self._bus.clock.sound_timer,
        })
        return registers

    # @intent:responsibility レジスタ表示レイアウト（グループ化）を定義します。
    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        return [
            RegisterLayoutInfo("General", [RegisterInfo(f"V{index:X}", 8) for index in range(REGISTER_COUNT)]),
            RegisterLayoutInfo("Index/Pointers", [
                RegisterInfo("I", 16), RegisterInfo("PC", 16), RegisterInfo("SP", 8)
            ]),
            RegisterLayoutInfo("Timers", [
                RegisterInfo("DT", 8), RegisterInfo("ST", 8)
            ]),
        ]

    # @intent:responsibility 表示用に、フラグ相当の状態を辞書形式で提供します。
    def get_flag_state(self) -> Dict[str, bool]:
        return {
            "VF": self._state.v[FLAG_REGISTER] != 0,
            "SOUND": self._bus.clock.sound_active,
            "KEY_WAIT": self._bus.keypad.waiting,
        }

    # @intent:responsibility 指定範囲のメモリを逆アセンブルします。
    def disassemble(self, start_addr: int, length: int) -> List[DisassemblyLine]:
        return disassembler.disassemble(self._bus.memory, start_addr, length)

# retro_chip8/debugger/debugger.py
"""
デバッガモジュール。

マシンの実行を制御し、ユーザーが指定した条件（ブレークポイント）で
実行を中断させる責務を負います。ステップバックのため、各ステップの直前に
マシン状態のスナップショットを取得して保持します。
"""
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Dict, List, Optional

from retro_chip8.core.machine import Chip8
from retro_chip8.core.snapshot import MachineSnapshot
from retro_chip8.core.trace import StepResult
from retro_chip8.transport.memory import BusAccessType

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 100

# @intent:responsibility ブレークポイントの条件タイプを定義します。
class BreakpointConditionType(Enum):
    PC_MATCH = "PC_MATCH"               # プログラムカウンタが特定のアドレスに一致
    MEMORY_READ = "MEMORY_READ"         # 特定のアドレスが読み込まれた
    MEMORY_WRITE = "MEMORY_WRITE"       # 特定のアドレスに書き込まれた
    REGISTER_VALUE = "REGISTER_VALUE"   # 特定のレジスタが特定の値になった
    REGISTER_CHANGE = "REGISTER_CHANGE" # 特定のレジスタの値が変化した

# @intent:responsibility ブレークポイントをトリガーする条件を定義します。
@dataclass(frozen=True)
class BreakpointCondition:
    """
    ブレークポイントがヒットするための条件を定義するデータクラス。
    register_name には "V0"〜"VF", "I", "PC", "SP", "DT", "ST" を指定します。
    """
    condition_type: BreakpointConditionType
    value: Optional[int] = None           # PC_MATCH, REGISTER_VALUEで使用
    address: Optional[int] = None         # MEMORY_READ, MEMORY_WRITEで使用
    register_name: Optional[str] = None   # REGISTER_VALUE, REGISTER_CHANGEで使用
    enabled: bool = True                  # 有効/無効状態

# @intent:responsibility run() が停止した理由を表します。
class StopReason(Enum):
    BREAKPOINT = "BREAKPOINT"
    KEY_WAIT = "KEY_WAIT"
    STOPPED = "STOPPED"
    STEP_LIMIT = "STEP_LIMIT"

# @intent:responsibility マシンの実行制御とブレークポイント管理を行います。
class Debugger:
    """
    マシンの実行を制御し、ブレークポイントの管理を行うクラス。
    """
    def __init__(self, machine: Chip8, history_limit: int = HISTORY_LIMIT):
        self._machine = machine
        self._breakpoints: List[BreakpointCondition] = []
        self._running: bool = False
        self._previous_registers: Dict[str, int] = machine.get_register_map()
        self._last_result: Optional[StepResult] = None
        # @intent:responsibility 実行履歴と、各ステップ直前の状態を保持し、ステップバックをサポートします。
        self._history: Deque[StepResult] = deque(maxlen=history_limit)
        self._undo: Deque[MachineSnapshot] = deque(maxlen=history_limit)

    def add_breakpoint(self, condition: BreakpointCondition) -> None:
        """
        ブレークポイント条件を追加します。
        """
        if condition not in self._breakpoints:
            self._breakpoints.append(condition)

    def update_breakpoint(self, old_condition: BreakpointCondition, new_condition: BreakpointCondition) -> None:
        """
        既存のブレークポイントを更新します。
        """
        if old_condition in self._breakpoints:
            idx = self._breakpoints.index(old_condition)
            self._breakpoints[idx] = new_condition

    def remove_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition in self._breakpoints:
            self._breakpoints.remove(condition)

    # @intent:responsibility ブレークポイントの有効/無効を切り替えます。
    def set_breakpoint_enabled(self, condition: BreakpointCondition, enabled: bool) -> BreakpointCondition:
        new_condition = BreakpointCondition(
            condition_type=condition.condition_type,
            value=condition.value,
            address=condition.address,
            register_name=condition.register_name,
            enabled=enabled,
        )
        self.update_breakpoint(condition, new_condition)
        return new_condition

    def get_breakpoints(self) -> List[BreakpointCondition]:
        return list(self._breakpoints)

    def get_history(self) -> List[StepResult]:
        """
        直近の実行履歴を古い順に返します (最大 history_limit 件)。
        """
        return list(self._history)

    def get_last_result(self) -> Optional[StepResult]:
        return self._last_result

    def _pc_breakpoint_hit(self, pc: int) -> bool:
        return any(bp.enabled and bp.condition_type == BreakpointConditionType.PC_MATCH and bp.value == pc
                   for bp in self._breakpoints)

    def _check_other_breakpoints(self, result: StepResult) -> bool:
        """
        StepResultに基づいてPC_MATCH以外のブレークポイントをチェックします。
        """
        current = self._machine.get_register_map()

        for bp in self._breakpoints:
            if not bp.enabled:
                continue

            if bp.condition_type == BreakpointConditionType.MEMORY_READ:
                for access in result.bus_activity:
                    if access.access_type == BusAccessType.READ and access.address == bp.address:
                        return True
            elif bp.condition_type == BreakpointConditionType.MEMORY_WRITE:
                for access in result.bus_activity:
                    if access.access_type == BusAccessType.WRITE and access.address == bp.address:
                        return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_VALUE:
                if bp.register_name in current and current[bp.register_name] == bp.value:
                    return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_CHANGE:
                if bp.register_name in current and bp.register_name in self._previous_registers:
                    if current[bp.register_name] != self._previous_registers[bp.register_name]:
                        return True
        return False

    def step_instruction(self) -> StepResult:
        """
        マシンを1命令分実行し、その結果のStepResultを返します。
        エンジンの異常 (EngineError) はそのまま送出され、状態と履歴は変更されません。
        """
        before = self._machine.capture_state()
        previous_registers = self._machine.get_register_map()
        result = self._machine.step()

        self._previous_registers = previous_registers
        self._undo.append(before)
        self._history.append(result)
        self._last_result = result
        return result

    def step_back(self) -> Optional[StepResult]:
        """
        直前のステップを取り消し、その実行前の状態へ戻します。
        戻した後の時点で最新の StepResult を返します (履歴が尽きた場合は None)。
        """
        if not self._undo:
            return None

        self._machine.restore_state(self._undo.pop())
        self._history.pop()
        self._last_result = self._history[-1] if self._history else None
        self._previous_registers = self._machine.get_register_map()
        return self._last_result

    def can_step_back(self) -> bool:
        return bool(self._undo)

    # @intent:responsibility ブレークポイント・キー待ち・stop()・ステップ上限のいずれかまで実行を継続します。
    def run(self, max_steps: int) -> StopReason:
        """
        最大 max_steps 命令を実行し、停止理由を返します。
        開始時点のPCにあるブレークポイントでは停止せず、1命令進めてから判定を始めます。
        """
        self._running = True
        steps = 0

        try:
            while self._running and steps < max_steps:
                current_pc = self._machine.get_registers().pc
                if steps > 0 and self._pc_breakpoint_hit(current_pc):
                    logger.info("Breakpoint hit at PC: %#05x", current_pc)
                    return StopReason.BREAKPOINT

                result = self.step_instruction()
                steps += 1

                if result.waiting:
                    logger.info("Waiting for key press at PC: %#05x", result.pc)
                    return StopReason.KEY_WAIT

                if self._check_other_breakpoints(result):
                    logger.info("Breakpoint hit at PC: %#05x", result.pc)
                    return StopReason.BREAKPOINT

            if not self._running:
                return StopReason.STOPPED
            return StopReason.STEP_LIMIT
        finally:
            # 例外で抜けた場合も含め、run() の終了時には必ず停止状態に戻す
            self._running = False

    def stop(self) -> None:
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

# retro_chip8/host/runner.py
"""
ホスト側の実行ループ。

エンジンは自身でスレッドを持たず、ブロックもしません。このモジュールは、
経過時間に応じて step() と tick_timers() を呼び分ける協調的なランナーを提供します。
命令実行 (既定 700回/秒) とタイマー更新 (60Hz) は、論理時間の順に交互に行われます。
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional

from retro_chip8.common.errors import EngineError
from retro_chip8.core.machine import Chip8
from retro_chip8.core.trace import StepResult
from retro_chip8.devices.clock import TIMER_HZ

logger = logging.getLogger(__name__)

DEFAULT_CYCLES_PER_SECOND = 700

# @intent:data_structure advance / run_cycles 1回分の実行結果の集計。
@dataclass(frozen=True)
class RunReport:
    executed: int = 0   # 実行された命令数
    waiting: int = 0    # キー待ちで PC が進まなかったステップ数
    ticks: int = 0      # タイマー更新回数

    @property
    def steps(self) -> int:
        return self.executed + self.waiting

# @intent:responsibility 論理時間に基づいてマシンを駆動し、一時停止・単一ステップ・リセットを提供します。
class Chip8Runner:
    def __init__(self, machine: Chip8, cycles_per_second: int = DEFAULT_CYCLES_PER_SECOND,
                 timer_hz: int = TIMER_HZ):
        if cycles_per_second <= 0 or timer_hz <= 0:
            raise ValueError("cycles_per_second and timer_hz must be positive")
        self._machine = machine
        self._cycles_per_second = cycles_per_second
        self._timer_hz = timer_hz
        self._paused = False
        self._halted = False
        self._rom: Optional[bytes] = None
        self._restart_clock()

    def _restart_clock(self) -> None:
        self._elapsed = 0.0
        self._cycles_done = 0
        self._ticks_done = 0

    @property
    def machine(self) -> Chip8:
        return self._machine

    @property
    def cycles_per_second(self) -> int:
        return self._cycles_per_second

    @property
    def timer_hz(self) -> int:
        return self._timer_hz

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def halted(self) -> bool:
        return self._halted

    # @intent:responsibility ROMを読み込み、reset_and_reload のために保持します。
    def load_rom(self, data: bytes) -> None:
        self._machine.load_program(data)
        self._rom = bytes(data)

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def toggle_pause(self) -> bool:
        self._paused = not self._paused
        return self._paused

    # @intent:responsibility マシンを初期状態に戻し、停止状態と論理時間を解除します。
    def reset(self) -> None:
        self._machine.reset()
        self._halted = False
        self._restart_clock()

    # @intent:responsibility リセット後、最後に読み込んだROMを再配置します。
    def reset_and_reload(self) -> None:
        self.reset()
        if self._rom is not None:
            self._machine.load_program(self._rom)
            logger.info("Reloaded ROM (%d bytes)", len(self._rom))

    def _check_runnable(self) -> None:
        if self._halted:
            raise RuntimeError("Runner is halted after an engine error; call reset() first")

    def _step(self) -> StepResult:
        try:
            return self._machine.step()
        except EngineError:
            self._halted = True
            logger.exception("Engine halted at cycle %d", self._machine.cycle_count)
            raise

    # @intent:responsibility 一時停止中でも1命令だけ実行します (タイマーは進めません)。
    def step_once(self) -> StepResult:
        self._check_runnable()
        return self._step()

    # @intent:responsibility 目標の命令数とタイマー更新回数に達するまで、論理時間の順に交互に実行します。
    # @intent:rationale k番目の命令は k/cycles_per_second 秒、j番目のtickは j/timer_hz 秒の時点とみなし、
    #                  整数の交差乗算で比較する。同時刻の場合はtickを先に行う。
    def _run_until(self, target_cycles: int, target_ticks: int) -> RunReport:
        executed = waiting = ticks = 0
        while self._cycles_done < target_cycles or self._ticks_done < target_ticks:
            next_cycle = (self._cycles_done + 1) * self._timer_hz
            next_tick = (self._ticks_done + 1) * self._cycles_per_second
            if self._ticks_done < target_ticks and (self._cycles_done >= target_cycles or next_tick <= next_cycle):
                self._machine.tick_timers()
                self._ticks_done += 1
                ticks += 1
            else:
                result = self._step()
                self._cycles_done += 1
                if result.waiting:
                    waiting += 1
                else:
                    executed += 1
        return RunReport(executed=executed, waiting=waiting, ticks=ticks)

    # @intent:responsibility 実時間の経過分だけマシンを進めます。一時停止中は何もせず、時間も蓄積しません。
    def advance(self, elapsed_seconds: float) -> RunReport:
        self._check_runnable()
        if elapsed_seconds < 0:
            raise ValueError(f"elapsed_seconds must not be negative: {elapsed_seconds}")
        if self._paused:
            return RunReport()

        self._elapsed += elapsed_seconds
        # 浮動小数点の丸め誤差で境界上の命令を取りこぼさないよう、わずかに補正する
        target_cycles = math.floor(self._elapsed * self._cycles_per_second + 1e-9)
        target_ticks = math.floor(self._elapsed * self._timer_hz + 1e-9)
        return self._run_until(target_cycles, target_ticks)

    # @intent:responsibility ちょうど n 命令を実行し、その間に相当する回数だけタイマーを進めます (決定的)。
    def run_cycles(self, n: int) -> RunReport:
        self._check_runnable()
        if n < 0:
            raise ValueError(f"Cycle count must not be negative: {n}")
        target_cycles = self._cycles_done + n
        target_ticks = (target_cycles * self._timer_hz) // self._cycles_per_second
        report = self._run_until(target_cycles, target_ticks)
        self._elapsed = target_cycles / self._cycles_per_second
        return report

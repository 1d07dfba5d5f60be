# tests/host/test_runner.py
"""
retro_chip8.host.runnerモジュールの単体テスト。
"""
import pytest

from retro_chip8.common.errors import UnknownInstruction
from retro_chip8.core.machine import Chip8
from retro_chip8.host.runner import Chip8Runner, RunReport

# @intent:test_suite 経過時間に基づく実行、一時停止、停止状態、リセットを検証します。

LOOP = bytes([0x12, 0x00])  # JP 0x200

def _runner(program=LOOP, cycles_per_second=700, timer_hz=60):
    runner = Chip8Runner(Chip8(), cycles_per_second, timer_hz)
    runner.load_rom(program)
    return runner

class TestChip8Runner:
    # @intent:test_case_advance 1秒分の経過で 700 命令と 60 回のタイマー更新が行われることを検証します。
    def test_advance_one_second(self):
        runner = _runner()
        report = runner.advance(1.0)
        assert report == RunReport(executed=700, waiting=0, ticks=60)
        assert runner.machine.cycle_count == 700

    def test_advance_accumulates_fractions(self):
        runner = _runner(cycles_per_second=10, timer_hz=4)
        first = runner.advance(0.15)
        second = runner.advance(0.15)
        assert first.executed == 1
        assert second.executed == 2
        assert first.ticks + second.ticks == 1

    # @intent:test_case_interleave タイマー更新が論理時間の順に命令の間へ挟まることを検証します。
    def test_timers_interleave_with_steps(self):
        # DT=10 を設定し、続く命令で DT を V1, V2, V3 に読む
        program = bytes([0x60, 0x0A, 0xF0, 0x15, 0xF1, 0x07, 0xF2, 0x07, 0xF3, 0x07, 0x12, 0x0A])
        runner = _runner(program, cycles_per_second=8, timer_hz=2)
        report = runner.advance(0.75)  # 6 命令, 1 tick (0.5s の時点、同時刻の命令より先)
        assert report == RunReport(executed=6, waiting=0, ticks=1)
        registers = runner.machine.get_registers()
        assert registers.v[1] == 10
        assert registers.v[2] == 9
        assert registers.v[3] == 9

    def test_run_cycles_is_deterministic(self):
        runner = _runner()
        report = runner.run_cycles(35)
        assert report.steps == 35
        assert report.ticks == 3

    def test_waiting_steps_are_counted(self):
        runner = _runner(bytes([0xF0, 0x0A]))
        report = runner.run_cycles(10)
        assert report.waiting == 10
        assert report.executed == 0

    def test_pause_resume(self):
        runner = _runner()
        runner.pause()
        assert runner.advance(1.0) == RunReport()
        assert runner.machine.cycle_count == 0
        assert runner.toggle_pause() is False
        assert runner.advance(0.01).executed == 7

    def test_step_once_while_paused(self):
        runner = _runner(bytes([0x6A, 0x05]))
        runner.pause()
        result = runner.step_once()
        assert result.pc == 0x200
        assert runner.machine.get_registers().v[0xA] == 5

    # @intent:test_case_halt エンジンエラー後は停止状態となり、reset まで実行を拒否することを検証します。
    def test_halts_on_engine_error(self):
        runner = _runner(bytes([0xFF, 0xFF]))
        with pytest.raises(UnknownInstruction):
            runner.advance(0.1)
        assert runner.halted
        with pytest.raises(RuntimeError):
            runner.advance(0.1)
        runner.reset()
        assert not runner.halted

    def test_reset_and_reload(self):
        runner = _runner(bytes([0x6A, 0x05, 0x12, 0x02]))
        runner.run_cycles(5)
        runner.reset_and_reload()
        assert runner.machine.get_registers().pc == 0x200
        assert runner.machine.get_registers().v[0xA] == 0
        assert runner.machine.peek(0x200) == 0x6A

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            Chip8Runner(Chip8(), cycles_per_second=0)
        runner = _runner()
        with pytest.raises(ValueError):
            runner.advance(-1.0)
        with pytest.raises(ValueError):
            runner.run_cycles(-1)

# tests/core/test_cpu.py
"""
retro_chip8.core.cpuモジュールの単体テスト。
"""
import pytest

from retro_chip8.common.errors import AddressOutOfBounds, UnknownInstruction
from retro_chip8.common.types import RegisterLayoutInfo
from retro_chip8.core.cpu import Chip8Cpu
from retro_chip8.core.trace import InstructionKind, StepOutcome, StepResult
from retro_chip8.instructions.base import Chip8Bus
from retro_chip8.transport.memory import BusAccessType

# @intent:test_suite CPUの命令サイクル (フェッチ・デコード・実行・PC更新) と表示用APIを検証します。

@pytest.fixture
def cpu_and_bus():
    bus = Chip8Bus()
    cpu = Chip8Cpu(bus)
    return cpu, bus

def _place(bus, address, *words):
    for offset, word in enumerate(words):
        bus.memory.write_byte(address + offset * 2, word >> 8)
        bus.memory.write_byte(address + offset * 2 + 1, word & 0xFF)
    bus.memory.get_and_clear_activity_log()

class TestChip8CpuStep:
    # @intent:test_case_step step が StepResult を返し、PC を進めることを検証します。
    def test_step_returns_result(self, cpu_and_bus):
        cpu, bus = cpu_and_bus
        _place(bus, 0x200, 0x6A05)
        result = cpu.step()
        assert isinstance(result, StepResult)
        assert result.outcome == StepOutcome.EXECUTED
        assert result.pc == 0x200
        assert result.next_pc == 0x202
        assert result.operation.kind == InstructionKind.LD_BYTE
        assert result.metadata.cycle_count == 1
        assert result.metadata.symbol_info == "LD VA, #$05"

    # @intent:test_case_bus_activity フェッチの読み出しがバスアクティビティとして記録されることを検証します。
    def test_bus_activity_contains_fetch(self, cpu_and_bus):
        cpu, bus = cpu_and_bus
        _place(bus, 0x200, 0xA300, 0xF055)
        cpu.step()
        result = cpu.step()
        reads = [a.address for a in result.bus_activity if a.access_type == BusAccessType.READ]
        writes = [a.address for a in result.bus_activity if a.access_type == BusAccessType.WRITE]
        assert reads == [0x202, 0x203]
        assert writes == [0x300]

    def test_cycle_counter_and_reset(self, cpu_and_bus):
        cpu, bus = cpu_and_bus
        _place(bus, 0x200, 0x6001, 0x6102)
        cpu.step()
        cpu.step()
        assert cpu.cycle_count == 2
        cpu.reset()
        assert cpu.cycle_count == 0
        assert cpu.get_state().pc == 0x200
        assert cpu.get_state().v == [0] * 16

    # @intent:test_case_unknown 未知の命令では状態が変化しないことを検証します。
    def test_unknown_instruction_does_not_mutate(self, cpu_and_bus):
        cpu, bus = cpu_and_bus
        _place(bus, 0x200, 0xFFFF)
        before = cpu.get_registers()
        with pytest.raises(UnknownInstruction) as exc_info:
            cpu.step()
        assert exc_info.value.raw == 0xFFFF
        assert exc_info.value.address == 0x200
        assert cpu.get_registers() == before

    # @intent:test_case_fetch_oob PCが最終バイトを指している場合、フェッチで AddressOutOfBounds となることを検証します。
    def test_fetch_out_of_bounds(self, cpu_and_bus):
        cpu, _ = cpu_and_bus
        cpu.get_state().pc = 0xFFF
        with pytest.raises(AddressOutOfBounds):
            cpu.step()

class TestChip8CpuViews:
    def test_register_map(self, cpu_and_bus):
        cpu, bus = cpu_and_bus
        bus.clock.set_delay(5)
        registers = cpu.get_register_map()
        assert registers["PC"] == 0x200
        assert registers["DT"] == 5
        assert set(f"V{n:X}" for n in range(16)) <= set(registers)

    def test_register_layout(self, cpu_and_bus):
        cpu, _ = cpu_and_bus
        layout = cpu.get_register_layout()
        assert all(isinstance(group, RegisterLayoutInfo) for group in layout)
        names = [reg.name for group in layout for reg in group.registers]
        assert "VF" in names and "I" in names and "ST" in names

    def test_flag_state(self, cpu_and_bus):
        cpu, bus = cpu_and_bus
        cpu.get_state().v[0xF] = 1
        bus.clock.set_sound(3)
        assert cpu.get_flag_state() == {"VF": True, "SOUND": True, "KEY_WAIT": False}

    def test_registers_view_is_copy(self, cpu_and_bus):
        cpu, _ = cpu_and_bus
        view = cpu.get_registers()
        cpu.get_state().v[0] = 0x99
        assert view.v[0] == 0

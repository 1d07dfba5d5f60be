# tests/devices/test_clock.py
"""
retro_chip8.devices.clockモジュールの単体テスト。
"""
from retro_chip8.devices.clock import Clock

# @intent:test_suite タイマーの減算とサウンド状態を検証します。

class TestClock:
    # @intent:test_case_tick 非ゼロのタイマーはちょうど1減り、ゼロのタイマーはゼロのままであることを検証します。
    def test_tick(self):
        clock = Clock(delay_timer=2, sound_timer=0)
        clock.tick()
        assert clock.delay_timer == 1
        assert clock.sound_timer == 0
        clock.tick()
        clock.tick()
        assert clock.delay_timer == 0

    def test_setters_mask_to_8_bits(self):
        clock = Clock()
        clock.set_delay(0x1FF)
        clock.set_sound(0x102)
        assert clock.delay_timer == 0xFF
        assert clock.sound_timer == 0x02

    def test_sound_active(self):
        clock = Clock(sound_timer=1)
        assert clock.sound_active
        clock.tick()
        assert not clock.sound_active

# retro_chip8/devices/clock.py
"""
遅延タイマーとサウンドタイマー。

どちらも 60Hz で 1 ずつ減算されます。減算の呼び出しタイミングはホストの責務で、
このクラスは1回分の減算 (tick) のみを提供します。
"""

TIMER_HZ = 60

# @intent:responsibility 2つの8bitタイマーを保持し、tickごとに減算します。
class Clock:
    def __init__(self, delay_timer: int = 0, sound_timer: int = 0):
        self.delay_timer = delay_timer & 0xFF
        self.sound_timer = sound_timer & 0xFF

    # @intent:responsibility 非ゼロのタイマーを1だけ減算します。ゼロのタイマーはゼロのまま。
    def tick(self) -> None:
        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1

    def set_delay(self, value: int) -> None:
        self.delay_timer = value & 0xFF

    def set_sound(self, value: int) -> None:
        self.sound_timer = value & 0xFF

    # サウンドタイマーが動作中の間、外部のオーディオ層はビープを鳴らす
    @property
    def sound_active(self) -> bool:
        return self.sound_timer > 0

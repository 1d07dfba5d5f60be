# retro_chip8/core/snapshot.py
"""
マシン状態の不変スナップショット

このモジュールは、メモリ・レジスタ・タイマー・フレームバッファ・入力状態・乱数状態の
完全なコピーを記録した不変のデータ構造と、その取得 (capture) と
再構築 (rebuild) のロジックを定義します。
セーブ/ロード、およびデバッガのステップバックに用いる責務を負います。
"""
import random
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from retro_chip8.common.errors import RestoreError
from retro_chip8.config.models import Quirks
from retro_chip8.core.state import Chip8CpuState, REGISTER_COUNT, STACK_DEPTH
from retro_chip8.devices.clock import Clock
from retro_chip8.devices.display import Framebuffer, PIXEL_COUNT
from retro_chip8.devices.keypad import Keypad, KEY_COUNT
from retro_chip8.instructions.base import Chip8Bus
from retro_chip8.transport.memory import MAX_ADDRESS, MEMORY_SIZE, Memory

RNG_STATE_VERSION = 3   # random.Random.VERSION
RNG_STATE_WORDS = 624   # Mersenne Twister の状態語数


# @intent:responsibility ある一時点におけるマシン全体の状態を不変に記録します。
# @intent:rationale 全フィールドを bytes / tuple / int で保持し、稼働中のマシンとの参照共有を持たない。
@dataclass(frozen=True)
class MachineSnapshot:
    """
    マシン全体の状態の、独立した不変コピー。
    """
    memory: bytes
    v: Tuple[int, ...]
    i: int
    pc: int
    sp: int
    stack: Tuple[int, ...]
    delay_timer: int
    sound_timer: int
    framebuffer: bytes
    keys: Tuple[bool, ...]
    key_waiting: bool = False
    key_wait_register: int = 0
    pending_key: Optional[int] = None
    rng_state: Optional[Tuple[Any, ...]] = None

    # @intent:responsibility 全フィールドの形式と範囲を検証します。
    # @intent:post-condition 問題があれば RestoreError を送出する。副作用はない。
    def validate(self) -> None:
        _expect(isinstance(self.memory, (bytes, bytearray)) and len(self.memory) == MEMORY_SIZE,
                f"memory must be {MEMORY_SIZE} bytes")
        _expect(_is_int_seq(self.v, REGISTER_COUNT, 0xFF), f"v must hold {REGISTER_COUNT} 8-bit values")
        _expect(_is_int(self.i, 0xFFFF), "i must be a 16-bit value")
        _expect(_is_int(self.pc, MAX_ADDRESS - 1), "pc must leave room for a 2-byte fetch")
        _expect(_is_int(self.sp, STACK_DEPTH), f"sp must be between 0 and {STACK_DEPTH}")
        _expect(_is_int_seq(self.stack, STACK_DEPTH, 0xFFFF), f"stack must hold {STACK_DEPTH} 16-bit values")
        _expect(_is_int(self.delay_timer, 0xFF), "delay_timer must be an 8-bit value")
        _expect(_is_int(self.sound_timer, 0xFF), "sound_timer must be an 8-bit value")
        _expect(isinstance(self.framebuffer, (bytes, bytearray)) and len(self.framebuffer) == PIXEL_COUNT
                and all(p in (0, 1) for p in self.framebuffer),
                f"framebuffer must be {PIXEL_COUNT} pixels of 0 or 1")
        _expect(isinstance(self.keys, tuple) and len(self.keys) == KEY_COUNT
                and all(isinstance(k, bool) for k in self.keys),
                f"keys must hold {KEY_COUNT} booleans")
        _expect(isinstance(self.key_waiting, bool), "key_waiting must be a boolean")
        _expect(_is_int(self.key_wait_register, 0xF), "key_wait_register must be a register index")
        _expect(self.pending_key is None or _is_int(self.pending_key, 0xF), "pending_key must be a key code")
        _expect(self.rng_state is None or _is_rng_state(self.rng_state),
                "rng_state must be a random.Random state (version 3, 625 32-bit words)")


def _expect(condition: bool, message: str) -> None:
    if not condition:
        raise RestoreError(f"Invalid snapshot: {message}.")

def _is_int(value: Any, maximum: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= maximum

def _is_int_seq(values: Any, length: int, maximum: int) -> bool:
    return isinstance(values, tuple) and len(values) == length and all(_is_int(v, maximum) for v in values)

# @intent:utility_function random.Random.getstate() の形式 (version, 624語 + 位置, gauss_next) かを判定します。
def _is_rng_state(value: Any) -> bool:
    if not isinstance(value, tuple) or len(value) != 3:
        return False
    version, internal, gauss = value
    if not _is_int(version, RNG_STATE_VERSION) or version != RNG_STATE_VERSION:
        return False
    if not isinstance(internal, tuple) or len(internal) != RNG_STATE_WORDS + 1:
        return False
    return (all(_is_int(word, 0xFFFFFFFF) for word in internal[:RNG_STATE_WORDS])
            and _is_int(internal[-1], RNG_STATE_WORDS)
            and (gauss is None or isinstance(gauss, float)))


# @intent:responsibility 稼働中のCPU状態とバスから、スナップショットを取得します。
def capture(state: Chip8CpuState, bus: Chip8Bus) -> MachineSnapshot:
    return MachineSnapshot(
        memory=bus.memory.dump(),
        v=tuple(state.v),
        i=state.i,
        pc=state.pc,
        sp=state.sp,
        stack=tuple(state.stack),
        delay_timer=bus.clock.delay_timer,
        sound_timer=bus.clock.sound_timer,
        framebuffer=bus.display.to_bytes(),
        keys=bus.keypad.pressed_keys(),
        key_waiting=bus.keypad.waiting,
        key_wait_register=bus.keypad.wait_register,
        pending_key=bus.keypad.pending_key,
        rng_state=bus.rng.getstate(),
    )


# @intent:responsibility スナップショットから新しいCPU状態とバスを構築します。
# @intent:rationale 稼働中のオブジェクトには一切触れずに新しいオブジェクトを作るため、
#                  呼び出し側はこの関数が成功した後に差し替えるだけで、復元を不可分にできる。
def rebuild(snapshot: MachineSnapshot, quirks: Quirks) -> Tuple[Chip8CpuState, Chip8Bus]:
    if not isinstance(snapshot, MachineSnapshot):
        raise RestoreError(f"Expected a MachineSnapshot, got {type(snapshot).__name__}.")
    snapshot.validate()

    rng = random.Random()
    if snapshot.rng_state is not None:
        rng.setstate(snapshot.rng_state)

    state = Chip8CpuState(
        pc=snapshot.pc,
        sp=snapshot.sp,
        i=snapshot.i,
        v=list(snapshot.v),
        stack=list(snapshot.stack),
    )
    bus = Chip8Bus(
        memory=Memory(bytes(snapshot.memory)),
        display=Framebuffer(bytes(snapshot.framebuffer)),
        keypad=Keypad.from_state(snapshot.keys, snapshot.key_waiting,
                                 snapshot.key_wait_register, snapshot.pending_key),
        clock=Clock(snapshot.delay_timer, snapshot.sound_timer),
        quirks=quirks,
        rng=rng,
    )
    return state, bus

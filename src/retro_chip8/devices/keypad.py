# retro_chip8/devices/keypad.py
"""
16キー入力デバイス。

ホストの入力層から押下状態を受け取り、キー判定命令 (Ex9E/ExA1) と
キー待ち命令 (Fx0A) に状態を提供します。
"""
from typing import Optional, Sequence

KEY_COUNT = 16

# @intent:responsibility 16キーの押下状態と、キー待ち要求の管理を行います。
class Keypad:
    """
    キー待ち要求 (request_key_press) が出ている間に発生した最初のキー押下
    (離されている状態から押された状態への遷移) を記録し、命令側へ引き渡します。
    要求の時点ですでに押されていたキーは、要求を満たしません。
    """
    def __init__(self):
        self._state = [False] * KEY_COUNT
        self._waiting = False
        self._wait_register = 0
        self._pending_key: Optional[int] = None

    @staticmethod
    def _check_key(key_code: int) -> None:
        if not 0 <= key_code < KEY_COUNT:
            raise ValueError(f"Key code {key_code} is outside 0x0-0xF.")

    # @intent:responsibility 指定キーの押下状態を更新します。
    def update(self, key_code: int, pressed: bool) -> None:
        self._check_key(key_code)
        was_pressed = self._state[key_code]
        self._state[key_code] = bool(pressed)
        if pressed and not was_pressed and self._waiting and self._pending_key is None:
            self._pending_key = key_code

    def is_key_pressed(self, key_code: int) -> bool:
        self._check_key(key_code)
        return self._state[key_code]

    # @intent:responsibility キー入力の待機を開始します。すでに待機中の場合は何もしません。
    def request_key_press(self, register: int) -> None:
        if self._waiting:
            return
        self._waiting = True
        self._wait_register = register
        self._pending_key = None

    # @intent:responsibility 待機中に押されたキーを取り出し、待機を終了します。
    # @intent:return 待機していない、またはまだ押されていない場合は None。
    def take_key_press(self) -> Optional[int]:
        if not self._waiting or self._pending_key is None:
            return None
        key = self._pending_key
        self._waiting = False
        self._pending_key = None
        return key

    @property
    def waiting(self) -> bool:
        return self._waiting

    @property
    def wait_register(self) -> int:
        return self._wait_register

    @property
    def pending_key(self) -> Optional[int]:
        return self._pending_key

    def pressed_keys(self) -> tuple:
        return tuple(self._state)

    # @intent:responsibility スナップショットから入力状態を再構築します。
    @classmethod
    def from_state(cls, keys: Sequence[bool], waiting: bool, wait_register: int,
                   pending_key: Optional[int]) -> 'Keypad':
        if len(keys) != KEY_COUNT:
            raise ValueError(f"Keypad needs {KEY_COUNT} key states, got {len(keys)}.")
        keypad = cls()
        keypad._state = [bool(k) for k in keys]
        keypad._waiting = bool(waiting)
        keypad._wait_register = wait_register
        keypad._pending_key = pending_key
        return keypad

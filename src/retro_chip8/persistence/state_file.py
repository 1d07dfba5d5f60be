# retro_chip8/persistence/state_file.py
"""
セーブステートの読み書き。

MachineSnapshot を YAML 文書としてディスクに保存し、また読み戻します。
文書には形式タグ・バージョン・メモリ全体・レジスタ・スタック・タイマー・
フレームバッファ・入力状態・乱数状態、およびメモリ・フレームバッファ・乱数状態に対する
CRC-32 チェックサムが含まれます。

形式が異なる・途中で切れている・壊れているファイルは RestoreError となり、
ファイル入出力の失敗 (OSError) はそのまま送出されます。
"""
import logging
import zlib
from typing import Any, Dict, List

import yaml

from retro_chip8.common.errors import RestoreError
from retro_chip8.core.snapshot import MachineSnapshot
from retro_chip8.devices.display import HEIGHT, WIDTH
from retro_chip8.transport.memory import MEMORY_SIZE

logger = logging.getLogger(__name__)

FORMAT_TAG = "retro-chip8-state"
FORMAT_VERSION = 1
MEMORY_LINE_WIDTH = 32  # 1行あたりのバイト数

# @intent:utility_function メモリ・フレームバッファ・乱数状態に対するチェックサムを計算します。
# @intent:rationale 乱数状態は repr の文字列で畳み込む。読み込み時は値域検証より前に照合するため、
#                  不正な値を含んでいても計算自体は失敗しない。
def compute_checksum(memory: bytes, framebuffer: bytes, rng_state: Any = None) -> int:
    crc = zlib.crc32(framebuffer, zlib.crc32(memory))
    if rng_state is not None:
        crc = zlib.crc32(repr(rng_state).encode("utf-8"), crc)
    return crc & 0xFFFFFFFF

def _encode_memory(memory: bytes) -> List[str]:
    return [memory[offset:offset + MEMORY_LINE_WIDTH].hex().upper()
            for offset in range(0, len(memory), MEMORY_LINE_WIDTH)]

def _encode_framebuffer(pixels: bytes) -> List[str]:
    return ["".join("1" if p else "0" for p in pixels[row * WIDTH:(row + 1) * WIDTH])
            for row in range(HEIGHT)]

# @intent:utility_function random.Random.getstate() のタプルを safe_dump 可能なリストに変換します。
def _encode_rng_state(state: Any) -> Any:
    if state is None:
        return None
    version, internal, gauss = state
    return [version, list(internal), gauss]

# @intent:responsibility スナップショットを YAML 文書 (辞書) に変換します。
def snapshot_to_document(snapshot: MachineSnapshot) -> Dict[str, Any]:
    return {
        "format": FORMAT_TAG,
        "version": FORMAT_VERSION,
        "registers": {
            "v": list(snapshot.v),
            "i": snapshot.i,
            "pc": snapshot.pc,
            "sp": snapshot.sp,
        },
        "stack": list(snapshot.stack),
        "timers": {
            "delay": snapshot.delay_timer,
            "sound": snapshot.sound_timer,
        },
        "input": {
            "keys": list(snapshot.keys),
            "waiting": snapshot.key_waiting,
            "wait_register": snapshot.key_wait_register,
            "pending_key": snapshot.pending_key,
        },
        "rng_state": _encode_rng_state(snapshot.rng_state),
        "checksum": compute_checksum(bytes(snapshot.memory), bytes(snapshot.framebuffer),
                                     snapshot.rng_state),
        "memory": _encode_memory(bytes(snapshot.memory)),
        "framebuffer": _encode_framebuffer(bytes(snapshot.framebuffer)),
    }


def _field(mapping: Any, key: str, section: str = "document") -> Any:
    if not isinstance(mapping, dict):
        raise RestoreError(f"Invalid save file: {section} must be a mapping.")
    if key not in mapping:
        raise RestoreError(f"Invalid save file: missing '{key}' in {section}.")
    return mapping[key]

def _as_tuple(value: Any, name: str) -> tuple:
    if not isinstance(value, list):
        raise RestoreError(f"Invalid save file: '{name}' must be a list.")
    return tuple(value)

def _decode_memory(lines: Any) -> bytes:
    if not isinstance(lines, list) or not all(isinstance(line, str) for line in lines):
        raise RestoreError("Invalid save file: memory must be a list of hex strings.")
    try:
        memory = bytes.fromhex("".join(lines))
    except ValueError as e:
        raise RestoreError(f"Invalid save file: memory is not valid hex ({e}).") from e
    if len(memory) != MEMORY_SIZE:
        raise RestoreError(f"Invalid save file: memory holds {len(memory)} bytes, expected {MEMORY_SIZE}.")
    return memory

def _decode_framebuffer(rows: Any) -> bytes:
    if (not isinstance(rows, list) or len(rows) != HEIGHT
            or not all(isinstance(row, str) and len(row) == WIDTH and set(row) <= {"0", "1"} for row in rows)):
        raise RestoreError(f"Invalid save file: framebuffer must be {HEIGHT} rows of {WIDTH} '0'/'1' characters.")
    return bytes(1 if c == "1" else 0 for c in "".join(rows))

def _decode_rng_state(value: Any) -> Any:
    if value is None:
        return None
    if not isinstance(value, list) or len(value) != 3 or not isinstance(value[1], list):
        raise RestoreError("Invalid save file: malformed rng_state.")
    version, internal, gauss = value
    return (version, tuple(internal), gauss)

# @intent:responsibility YAML 文書 (辞書) を検証し、スナップショットに変換します。
# @intent:post-condition 形式・チェックサム・値域のいずれかに問題があれば RestoreError を送出する。
def document_to_snapshot(document: Any) -> MachineSnapshot:
    if not isinstance(document, dict) or document.get("format") != FORMAT_TAG:
        raise RestoreError("Not a retro-chip8 save file.")
    version = document.get("version")
    if version != FORMAT_VERSION:
        raise RestoreError(f"Unsupported save file version: {version!r}.")

    memory = _decode_memory(_field(document, "memory"))
    framebuffer = _decode_framebuffer(_field(document, "framebuffer"))
    rng_state = _decode_rng_state(document.get("rng_state"))
    checksum = _field(document, "checksum")
    if checksum != compute_checksum(memory, framebuffer, rng_state):
        raise RestoreError("Save file checksum mismatch: the file is corrupt.")

    registers = _field(document, "registers")
    timers = _field(document, "timers")
    inputs = _field(document, "input")
    snapshot = MachineSnapshot(
        memory=memory,
        v=_as_tuple(_field(registers, "v", "registers"), "registers.v"),
        i=_field(registers, "i", "registers"),
        pc=_field(registers, "pc", "registers"),
        sp=_field(registers, "sp", "registers"),
        stack=_as_tuple(_field(document, "stack"), "stack"),
        delay_timer=_field(timers, "delay", "timers"),
        sound_timer=_field(timers, "sound", "timers"),
        framebuffer=framebuffer,
        keys=_as_tuple(_field(inputs, "keys", "input"), "input.keys"),
        key_waiting=_field(inputs, "waiting", "input"),
        key_wait_register=_field(inputs, "wait_register", "input"),
        pending_key=_field(inputs, "pending_key", "input"),
        rng_state=rng_state,
    )
    snapshot.validate()
    return snapshot


# @intent:responsibility スナップショットをファイルに保存します。
def save_state(path: str, snapshot: MachineSnapshot) -> None:
    document = snapshot_to_document(snapshot)
    with open(path, 'w') as f:
        yaml.safe_dump(document, f, sort_keys=False)
    logger.info("Saved machine state to %s", path)

# @intent:responsibility ファイルからスナップショットを読み込みます。
def load_state(path: str) -> MachineSnapshot:
    with open(path, 'r') as f:
        try:
            document = yaml.safe_load(f)
        except (yaml.YAMLError, UnicodeDecodeError) as e:
            raise RestoreError(f"Save file {path} is not valid YAML: {e}") from e
    snapshot = document_to_snapshot(document)
    logger.info("Loaded machine state from %s (PC=%03X)", path, snapshot.pc)
    return snapshot

# tests/persistence/test_state_file.py
"""
retro_chip8.persistence.state_fileモジュールの単体テスト。
"""
import pytest
import yaml

from retro_chip8.common.errors import RestoreError
from retro_chip8.core.machine import Chip8
from retro_chip8.persistence.state_file import (
    FORMAT_TAG, compute_checksum, load_state, save_state, snapshot_to_document,
)

# @intent:test_suite セーブファイルの書き出し・読み込みと、破損ファイルの拒否を検証します。

@pytest.fixture
def machine():
    machine = Chip8()
    # V0=5, I=フォント"5", 描画, DT=V0, キー待ち
    machine.load_program(bytes([0x60, 0x05, 0xF0, 0x29, 0xD0, 0x05, 0xF0, 0x15, 0xF1, 0x0A]))
    for _ in range(5):
        machine.step()
    machine.set_key(0x2, True)
    return machine

def _write_document(path, document):
    with open(path, "w") as f:
        yaml.safe_dump(document, f)

class TestStateFile:
    # @intent:test_case_round_trip 保存したファイルを読み込むと、同じスナップショットが得られることを検証します。
    def test_save_and_load(self, machine, tmp_path):
        path = tmp_path / "state.yaml"
        snapshot = machine.capture_state()
        save_state(str(path), snapshot)
        loaded = load_state(str(path))
        assert loaded == snapshot

        other = Chip8()
        other.restore_state(loaded)
        assert other.get_registers() == machine.get_registers()
        assert other.get_framebuffer() == machine.get_framebuffer()
        assert other.waiting_for_key

    def test_document_layout(self, machine):
        document = snapshot_to_document(machine.capture_state())
        assert document["format"] == FORMAT_TAG
        assert document["version"] == 1
        assert len(document["framebuffer"]) == 32
        assert all(len(row) == 64 for row in document["framebuffer"])
        assert document["registers"]["pc"] == 0x208
        assert document["input"]["waiting"] is True

    def test_missing_file_raises_oserror(self, tmp_path):
        with pytest.raises(OSError):
            load_state(str(tmp_path / "missing.yaml"))

    def test_foreign_file(self, tmp_path):
        path = tmp_path / "other.yaml"
        _write_document(path, {"format": "something-else", "version": 1})
        with pytest.raises(RestoreError):
            load_state(str(path))

    def test_not_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("format: [unterminated\n")
        with pytest.raises(RestoreError):
            load_state(str(path))

    def test_binary_garbage(self, tmp_path):
        path = tmp_path / "garbage.yaml"
        path.write_bytes(b"\xff\xfe\x00\x81" * 16)
        with pytest.raises(RestoreError):
            load_state(str(path))

    def test_unsupported_version(self, machine, tmp_path):
        document = snapshot_to_document(machine.capture_state())
        document["version"] = 99
        path = tmp_path / "future.yaml"
        _write_document(path, document)
        with pytest.raises(RestoreError):
            load_state(str(path))

    # @intent:test_case_checksum メモリが書き換えられたファイルはチェックサム不一致で拒否されることを検証します。
    def test_corrupt_memory(self, machine, tmp_path):
        document = snapshot_to_document(machine.capture_state())
        line = document["memory"][20]
        document["memory"][20] = ("00" if line[:2] != "00" else "11") + line[2:]
        path = tmp_path / "corrupt.yaml"
        _write_document(path, document)
        with pytest.raises(RestoreError, match="checksum"):
            load_state(str(path))

    def test_truncated_memory(self, machine, tmp_path):
        document = snapshot_to_document(machine.capture_state())
        document["memory"] = document["memory"][:-1]
        path = tmp_path / "truncated.yaml"
        _write_document(path, document)
        with pytest.raises(RestoreError):
            load_state(str(path))

    def test_missing_section(self, machine, tmp_path):
        document = snapshot_to_document(machine.capture_state())
        del document["timers"]
        path = tmp_path / "missing.yaml"
        _write_document(path, document)
        with pytest.raises(RestoreError):
            load_state(str(path))

    def test_out_of_range_register(self, machine, tmp_path):
        document = snapshot_to_document(machine.capture_state())
        document["registers"]["v"][0] = 300
        path = tmp_path / "range.yaml"
        _write_document(path, document)
        with pytest.raises(RestoreError):
            load_state(str(path))

    def test_checksum_covers_framebuffer(self):
        memory = bytes(4096)
        assert compute_checksum(memory, bytes(2048)) != compute_checksum(memory, bytes([1]) + bytes(2047))

    # @intent:test_case_rng_state 乱数状態の改ざんや値域外の語を含むファイルが拒否されることを検証します。
    @pytest.mark.parametrize("word", [2 ** 40, -1])
    def test_tampered_rng_state(self, machine, tmp_path, word):
        document = snapshot_to_document(machine.capture_state())
        document["rng_state"][1][0] = word
        path = tmp_path / "rng.yaml"
        _write_document(path, document)
        with pytest.raises(RestoreError, match="checksum"):
            load_state(str(path))

    @pytest.mark.parametrize("word", [2 ** 40, -1])
    def test_out_of_range_rng_word_with_matching_checksum(self, machine, tmp_path, word):
        document = snapshot_to_document(machine.capture_state())
        version, internal, gauss = document["rng_state"]
        internal[0] = word
        document["checksum"] = compute_checksum(
            bytes(machine.dump_memory()), machine.get_framebuffer().to_bytes(),
            (version, tuple(internal), gauss))
        path = tmp_path / "rng.yaml"
        _write_document(path, document)
        with pytest.raises(RestoreError, match="rng_state"):
            load_state(str(path))

    def test_checksum_covers_rng_state(self):
        memory, framebuffer = bytes(4096), bytes(2048)
        state = (3, (0,) * 624 + (624,), None)
        changed = (3, (1,) + (0,) * 623 + (624,), None)
        assert compute_checksum(memory, framebuffer, state) != compute_checksum(memory, framebuffer, changed)

# src/retro_chip8/instructions/maps.py
"""
命令語のデコード表と、命令種別から実行関数へのマッピング定義。
"""
from typing import Callable, Dict, List, NamedTuple, Tuple

from retro_chip8.core.state import Chip8CpuState
from retro_chip8.core.trace import InstructionKind as K, Operation
from .base import Chip8Bus, PcUpdate
from . import alu, control, graphics, load

# Operand Formatter Type: (x, y, n, nn, nnn) -> 表示用オペランド
OperandFormatter = Callable[[int, int, int, int, int], Tuple[str, ...]]
# Execution Function Type
ExecFunc = Callable[[Chip8CpuState, Chip8Bus, Operation], PcUpdate]

# --- Operand formatters ---
def _none(x, y, n, nn, nnn):
    return ()

def _addr(x, y, n, nn, nnn):
    return (f"${nnn:03X}",)

def _vx(x, y, n, nn, nnn):
    return (f"V{x:X}",)

def _vx_byte(x, y, n, nn, nnn):
    return (f"V{x:X}", f"#${nn:02X}")

def _vx_vy(x, y, n, nn, nnn):
    return (f"V{x:X}", f"V{y:X}")

def _drw(x, y, n, nn, nnn):
    return (f"V{x:X}", f"V{y:X}", f"#${n:X}")

def _fixed_left(name: str) -> OperandFormatter:
    return lambda x, y, n, nn, nnn: (name, f"V{x:X}")

def _fixed_right(name: str) -> OperandFormatter:
    return lambda x, y, n, nn, nnn: (f"V{x:X}", name)

def _prefixed_addr(name: str) -> OperandFormatter:
    return lambda x, y, n, nn, nnn: (name, f"${nnn:03X}")


# @intent:data_structure デコード表の1エントリ。(raw & mask) == pattern のとき一致する。
class DecodeEntry(NamedTuple):
    mask: int
    pattern: int
    kind: K
    mnemonic: str
    operands: OperandFormatter

# @intent:map 命令語パターンのデコード表。上から順に照合し、最初に一致したものを採用する。
DECODE_TABLE: List[DecodeEntry] = [
    DecodeEntry(0xFFFF, 0x00E0, K.CLS, "CLS", _none),
    DecodeEntry(0xFFFF, 0x00EE, K.RET, "RET", _none),
    DecodeEntry(0xF000, 0x1000, K.JP, "JP", _addr),
    DecodeEntry(0xF000, 0x2000, K.CALL, "CALL", _addr),
    DecodeEntry(0xF000, 0x3000, K.SE_BYTE, "SE", _vx_byte),
    DecodeEntry(0xF000, 0x4000, K.SNE_BYTE, "SNE", _vx_byte),
    DecodeEntry(0xF00F, 0x5000, K.SE_REG, "SE", _vx_vy),
    DecodeEntry(0xF000, 0x6000, K.LD_BYTE, "LD", _vx_byte),
    DecodeEntry(0xF000, 0x7000, K.ADD_BYTE, "ADD", _vx_byte),

    DecodeEntry(0xF00F, 0x8000, K.LD_REG, "LD", _vx_vy),
    DecodeEntry(0xF00F, 0x8001, K.OR, "OR", _vx_vy),
    DecodeEntry(0xF00F, 0x8002, K.AND, "AND", _vx_vy),
    DecodeEntry(0xF00F, 0x8003, K.XOR, "XOR", _vx_vy),
    DecodeEntry(0xF00F, 0x8004, K.ADD_REG, "ADD", _vx_vy),
    DecodeEntry(0xF00F, 0x8005, K.SUB, "SUB", _vx_vy),
    DecodeEntry(0xF00F, 0x8006, K.SHR, "SHR", _vx_vy),
    DecodeEntry(0xF00F, 0x8007, K.SUBN, "SUBN", _vx_vy),
    DecodeEntry(0xF00F, 0x800E, K.SHL, "SHL", _vx_vy),

    DecodeEntry(0xF00F, 0x9000, K.SNE_REG, "SNE", _vx_vy),
    DecodeEntry(0xF000, 0xA000, K.LD_I, "LD", _prefixed_addr("I")),
    DecodeEntry(0xF000, 0xB000, K.JP_OFFSET, "JP", _prefixed_addr("V0")),
    DecodeEntry(0xF000, 0xC000, K.RND, "RND", _vx_byte),
    DecodeEntry(0xF000, 0xD000, K.DRW, "DRW", _drw),

    DecodeEntry(0xF0FF, 0xE09E, K.SKP, "SKP", _vx),
    DecodeEntry(0xF0FF, 0xE0A1, K.SKNP, "SKNP", _vx),

    DecodeEntry(0xF0FF, 0xF007, K.LD_VX_DT, "LD", _fixed_right("DT")),
    DecodeEntry(0xF0FF, 0xF00A, K.LD_VX_K, "LD", _fixed_right("K")),
    DecodeEntry(0xF0FF, 0xF015, K.LD_DT_VX, "LD", _fixed_left("DT")),
    DecodeEntry(0xF0FF, 0xF018, K.LD_ST_VX, "LD", _fixed_left("ST")),
    DecodeEntry(0xF0FF, 0xF01E, K.ADD_I, "ADD", _fixed_left("I")),
    DecodeEntry(0xF0FF, 0xF029, K.LD_F, "LD", _fixed_left("F")),
    DecodeEntry(0xF0FF, 0xF033, K.LD_B, "LD", _fixed_left("B")),
    DecodeEntry(0xF0FF, 0xF055, K.STORE, "LD", _fixed_left("[I]")),
    DecodeEntry(0xF0FF, 0xF065, K.LOAD, "LD", _fixed_right("[I]")),
]

# @intent:map 命令種別から実行関数へのマッピングテーブル。
EXECUTE_MAP: Dict[K, ExecFunc] = {
    # Control
    K.RET: control.execute_ret,
    K.JP: control.execute_jp,
    K.CALL: control.execute_call,
    K.SE_BYTE: control.execute_se_byte,
    K.SNE_BYTE: control.execute_sne_byte,
    K.SE_REG: control.execute_se_reg,
    K.SNE_REG: control.execute_sne_reg,
    K.JP_OFFSET: control.execute_jp_offset,
    K.SKP: control.execute_skp,
    K.SKNP: control.execute_sknp,

    # ALU
    K.ADD_BYTE: alu.execute_add_byte,
    K.LD_REG: alu.execute_ld_reg,
    K.OR: alu.execute_or,
    K.AND: alu.execute_and,
    K.XOR: alu.execute_xor,
    K.ADD_REG: alu.execute_add_reg,
    K.SUB: alu.execute_sub,
    K.SHR: alu.execute_shr,
    K.SUBN: alu.execute_subn,
    K.SHL: alu.execute_shl,
    K.RND: alu.execute_rnd,

    # Load/Store
    K.LD_BYTE: load.execute_ld_byte,
    K.LD_I: load.execute_ld_i,
    K.LD_VX_DT: load.execute_ld_vx_dt,
    K.LD_VX_K: load.execute_ld_vx_k,
    K.LD_DT_VX: load.execute_ld_dt_vx,
    K.LD_ST_VX: load.execute_ld_st_vx,
    K.ADD_I: load.execute_add_i,
    K.LD_F: load.execute_ld_f,
    K.LD_B: load.execute_ld_b,
    K.STORE: load.execute_store,
    K.LOAD: load.execute_load,

    # Graphics
    K.CLS: graphics.execute_cls,
    K.DRW: graphics.execute_drw,
}

# src/retro_chip8/app.py
"""
コマンドラインのエントリポイント。
ROMを読み込んでヘッドレスで指定サイクル実行し、必要に応じて画面・逆アセンブル・セーブステートを出力します。
"""
import argparse
import logging
import sys
from typing import List, Optional

from retro_chip8.common.errors import EngineError, RestoreError
from retro_chip8.config.builder import SystemBuilder
from retro_chip8.config.loader import ConfigLoader
from retro_chip8.config.models import SystemConfig
from retro_chip8.host.runner import Chip8Runner
from retro_chip8.loader.rom_loader import RomLoader
from retro_chip8.persistence.state_file import load_state, save_state
from retro_chip8.transport.memory import PROGRAM_START

logger = logging.getLogger("retro_chip8")

LOG_FORMAT = "[%(name)s][%(levelname)s] %(message)s"

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="retro-chip8", description="Headless CHIP-8 interpreter")
    parser.add_argument("rom", help="CHIP-8 program (.ch8) to load at 0x200")
    parser.add_argument("--config", help="YAML system configuration file")
    parser.add_argument("--cycles", type=int, default=700, help="number of instructions to execute (default: 700)")
    parser.add_argument("--load-state", metavar="FILE", help="restore a saved state before running")
    parser.add_argument("--save-state", metavar="FILE", help="write a save state after running")
    parser.add_argument("--dump-screen", action="store_true", help="print the framebuffer as text")
    parser.add_argument("--disassemble", action="store_true", help="print the disassembly of the program")
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    return parser

def configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)

# @intent:responsibility コマンドライン引数に従ってマシンを構築・実行し、終了ステータスを返します。
def run(args: argparse.Namespace) -> int:
    config = ConfigLoader().load_from_file(args.config) if args.config else SystemConfig()
    machine = SystemBuilder().build_system(config)
    runner = Chip8Runner(machine, config.cpu.cycles_per_second, config.cpu.timer_hz)

    rom = RomLoader().read_rom(args.rom)
    runner.load_rom(rom)

    if args.load_state:
        machine.restore_state(load_state(args.load_state))

    report = runner.run_cycles(args.cycles)
    registers = machine.get_registers()
    logger.info("Executed %d instructions (%d waiting, %d timer ticks), PC=%03X",
                report.executed, report.waiting, report.ticks, registers.pc)

    if args.dump_screen:
        print(machine.get_framebuffer().to_text())

    if args.disassemble:
        for address, hex_bytes, text in machine.disassemble(PROGRAM_START, len(rom)):
            print(f"{address:03X}: {hex_bytes}  {text}")

    if args.save_state:
        save_state(args.save_state, machine.capture_state())

    return 0

def main(argv: Optional[List[str]] = None) -> int:
    """
    アプリケーションのメイン関数。
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    if args.cycles < 0:
        logger.error("--cycles must not be negative")
        return 1
    try:
        return run(args)
    except (EngineError, RestoreError, OSError, ValueError) as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 1

if __name__ == '__main__':
    sys.exit(main())

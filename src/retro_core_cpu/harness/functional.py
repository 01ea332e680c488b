# src/retro_core_cpu/harness/functional.py
"""
機能テストROM (自己検査型の6502テストプログラム) を実行するランナー。

ROMイメージを $0000 から配置し、開始アドレスから実行する。
テストプログラムは成功すると成功アドレスで自分自身へのジャンプを繰り返し、
失敗するとその失敗箇所で同様に停止する。
"""
import logging
from typing import NamedTuple, Optional

from retro_core_cpu.common.types import StepStatus
from retro_core_cpu.arch.mos6502.cpu import Mos6502Cpu

logger = logging.getLogger(__name__)

DEFAULT_START_ADDRESS = 0x0400
DEFAULT_SUCCESS_ADDRESS = 0x3469
DEFAULT_MAX_CYCLES = 100_000_000
# 同じPCでの連続実行がこの回数を超えたら停止とみなす
STUCK_THRESHOLD = 5

class FunctionalTestResult(NamedTuple):
    passed: bool
    pc: int
    cycles: int
    reason: Optional[str] = None  # "stuck", "halted", "timeout"

# @intent:responsibility 機能テストROMを実行し、成功トラップ到達・自己ループ・停止・サイクル上限のいずれかで終了する。
# @intent:post-condition cycles はCPUの累計サイクル数。
def run_functional_test(cpu: Mos6502Cpu, rom: bytes,
                        start_address: int = DEFAULT_START_ADDRESS,
                        success_address: int = DEFAULT_SUCCESS_ADDRESS,
                        max_cycles: int = DEFAULT_MAX_CYCLES) -> FunctionalTestResult:
    cpu.bus.load(0x0000, rom[:0x10000])
    state = cpu.get_state()
    state.pc = start_address
    state.sp = 0xFF

    logger.info("Starting functional test at $%04X", start_address)
    start_cycles = cpu.total_cycles
    last_pc = -1
    stuck_count = 0

    while cpu.total_cycles - start_cycles < max_cycles:
        pc = state.pc
        cpu.step()

        if cpu.status is StepStatus.HALTED:
            logger.info("Functional test FAILED - halted at $%04X", pc)
            return FunctionalTestResult(False, pc, cpu.total_cycles, "halted")

        if pc == success_address and state.pc == success_address:
            logger.info("Functional test PASSED - %d cycles", cpu.total_cycles)
            return FunctionalTestResult(True, pc, cpu.total_cycles)

        if pc == last_pc:
            stuck_count += 1
            if stuck_count > STUCK_THRESHOLD:
                logger.info("Functional test FAILED - stuck at $%04X (A=%02X X=%02X Y=%02X P=%02X)",
                            pc, state.a, state.x, state.y, state.pack_status())
                return FunctionalTestResult(False, pc, cpu.total_cycles, "stuck")
        else:
            stuck_count = 0
        last_pc = pc

    logger.info("Functional test FAILED - timeout")
    return FunctionalTestResult(False, state.pc, cpu.total_cycles, "timeout")

# @intent:responsibility ファイルからROMイメージを読み込んで run_functional_test を実行する。
def run_functional_test_file(cpu: Mos6502Cpu, path: str, **kwargs) -> FunctionalTestResult:
    with open(path, 'rb') as f:
        rom = f.read()
    return run_functional_test(cpu, rom, **kwargs)

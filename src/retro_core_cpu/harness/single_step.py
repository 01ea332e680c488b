# src/retro_core_cpu/harness/single_step.py
"""
単一命令の適合性テストランナー。

1ケースは「初期レジスタ + 初期RAM」から step() を1回実行し、
「期待レジスタ + 期待RAM + 期待サイクル数」と比較する。
フィクスチャはJSONで、広く使われている単一命令テスト集の形式をそのまま読める:

    {"name": "a9 42", "initial": {"pc": 1536, "s": 255, "a": 0, "x": 0, "y": 0, "p": 36,
                                 "ram": [[1536, 169], [1537, 66]]},
     "final": {...}, "cycles": 2}

cycles はサイクル数の整数、またはバスアクセスのリスト（要素数をサイクル数とみなす）。
レジスタ名は大文字小文字を区別しない。
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from retro_core_cpu.arch.mos6502.cpu import Mos6502Cpu

logger = logging.getLogger(__name__)

REGISTER_KEYS = ("pc", "s", "a", "x", "y", "p")

# @intent:data_structure 1命令分のテストケース。
@dataclass
class SingleStepCase:
    name: str
    initial: Dict[str, int]
    final: Dict[str, int]
    initial_ram: List[Tuple[int, int]] = field(default_factory=list)
    final_ram: List[Tuple[int, int]] = field(default_factory=list)
    cycles: Optional[int] = None

    # @intent:responsibility JSONから読み込んだ辞書をケースに変換する。
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SingleStepCase":
        initial = _lower_keys(data.get("initial", {}))
        final = _lower_keys(data.get("final", {}))
        cycles = data.get("cycles")
        if isinstance(cycles, list):
            cycles = len(cycles)
        return cls(
            name=str(data.get("name", "unnamed test")),
            initial={k: int(initial[k]) for k in REGISTER_KEYS if k in initial},
            final={k: int(final[k]) for k in REGISTER_KEYS if k in final},
            initial_ram=[(int(a), int(v)) for a, v in initial.get("ram", [])],
            final_ram=[(int(a), int(v)) for a, v in final.get("ram", [])],
            cycles=cycles,
        )

class CaseResult(NamedTuple):
    name: str
    passed: bool
    errors: List[str]

class SuiteResult(NamedTuple):
    passed: int
    failed: int
    results: List[CaseResult]

def _lower_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {str(k).lower(): v for k, v in data.items()}

# @intent:responsibility JSONファイルからテストケースを読み込む。トップレベルは配列でも単一オブジェクトでもよい。
def load_cases(path: str) -> List[SingleStepCase]:
    with open(path, 'r') as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = [data]
    return [SingleStepCase.from_dict(item) for item in data]

# @intent:responsibility 1ケースを実行して結果を返す。
# @intent:note 初期状態の未指定レジスタは A/X/Y/P/PC=0, S=$FF とみなす。
def run_case(cpu: Mos6502Cpu, case: SingleStepCase) -> CaseResult:
    state = cpu.get_state()
    state.a = case.initial.get("a", 0)
    state.x = case.initial.get("x", 0)
    state.y = case.initial.get("y", 0)
    state.sp = case.initial.get("s", 0xFF)
    state.pc = case.initial.get("pc", 0)
    state.unpack_status(case.initial.get("p", 0))

    for addr, value in case.initial_ram:
        cpu.bus.load(addr, bytes([value & 0xFF]))

    cpu.step()

    actual = {
        "pc": state.pc,
        "s": state.sp,
        "a": state.a,
        "x": state.x,
        "y": state.y,
        "p": state.pack_status(),
    }
    errors = []
    for key in REGISTER_KEYS:
        if key in case.final and actual[key] != case.final[key]:
            errors.append(f"{key.upper()}: expected ${case.final[key]:02X}, got ${actual[key]:02X}")

    for addr, expected in case.final_ram:
        got = cpu.bus.read(addr)
        if got != expected:
            errors.append(f"RAM[${addr:04X}]: expected ${expected:02X}, got ${got:02X}")

    if case.cycles is not None and cpu.cycles != case.cycles:
        errors.append(f"Cycles: expected {case.cycles}, got {cpu.cycles}")

    return CaseResult(case.name, not errors, errors)

# @intent:responsibility 複数ケースを順に実行し、集計結果を返す。
def run_suite(cpu: Mos6502Cpu, cases: List[SingleStepCase]) -> SuiteResult:
    results = []
    for case in cases:
        result = run_case(cpu, case)
        if not result.passed:
            logger.info("FAILED: %s: %s", result.name, "; ".join(result.errors))
        results.append(result)

    passed = sum(1 for r in results if r.passed)
    failed = len(results) - passed
    logger.info("Results: %d passed, %d failed", passed, failed)
    return SuiteResult(passed, failed, results)

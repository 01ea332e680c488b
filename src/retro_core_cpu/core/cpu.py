# retro_core_cpu/core/cpu.py
"""
Core Layer (抽象CPU)

このモジュールは、CPUの基本的な状態管理と命令サイクルの駆動に関する抽象化を提供します。
具体的な命令の振る舞いはInstruction Layerに移譲されます。
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from retro_core_cpu.transport.bus import Bus
from retro_core_cpu.core.state import CpuState
from retro_core_cpu.common.types import StepStatus

# @intent:responsibility 抽象CPUの基本機能とインターフェースを定義します。
class AbstractCpu(ABC):
    """
    全てのCPUエミュレーションの基底となる抽象クラス。
    Busとのインターフェース、基本的な状態管理、命令サイクルとサイクル計数の抽象化を提供します。
    """
    # @intent:pre-condition `bus`は有効なBusオブジェクトである必要があります。
    def __init__(self, bus: Bus):
        self._bus = bus
        self._state: CpuState = self._create_initial_state()
        self._cycle_count: int = 0
        self._last_cycles: int = 0
        self._last_opcode: int = 0
        self._status: StepStatus = StepStatus.EXECUTED

    # @intent:responsibility 初期状態のCpuStateオブジェクトを生成します。
    # @intent:rationale 各CPUアーキテクチャで初期状態が異なるため、抽象メソッドとして定義します。
    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        pass

    # @intent:responsibility CPUをリセットし、初期状態に戻します。
    # @intent:post-condition 状態オブジェクトは作り直さず、その場で初期値に戻す。
    def reset(self) -> None:
        self._state.assign_from(self._create_initial_state())
        self._status = StepStatus.EXECUTED

    # @intent:responsibility 現在のCPUの状態を返します。
    # @intent:note 返すのは実体そのもの。テストハーネスやホストはこれを直接書き換えてよい。
    def get_state(self) -> CpuState:
        return self._state

    @property
    def bus(self) -> Bus:
        return self._bus

    # @intent:responsibility 直前に実行したオペコード。
    @property
    def opcode(self) -> int:
        return self._last_opcode

    # @intent:responsibility 直前の step()（または reset()）で消費したサイクル数。
    @property
    def cycles(self) -> int:
        return self._last_cycles

    # @intent:responsibility 生成以降の累計サイクル数。単調非減少。
    @property
    def total_cycles(self) -> int:
        return self._cycle_count

    # @intent:responsibility 直前の step() の結果種別。
    @property
    def status(self) -> StepStatus:
        return self._status

    # @intent:responsibility メモリから次の命令（オペコード）をフェッチし、PCを進めます。
    @abstractmethod
    def _fetch(self) -> int:
        pass

    # @intent:responsibility オペコードを命令記述子に変換します。
    @abstractmethod
    def _decode(self, opcode: int) -> Any:
        pass

    # @intent:responsibility デコードされた命令を実行し、消費サイクル数を返します。
    @abstractmethod
    def _execute(self, entry: Any) -> int:
        pass

    # @intent:responsibility フェッチ前に保留中の割り込みを処理します。
    # @intent:return 割り込みを受け付けた場合はその消費サイクル数、そうでなければNone。
    def _service_interrupts(self) -> Optional[int]:
        return None

    # @intent:responsibility サイクル数を計上します。
    def _charge(self, cycles: int) -> None:
        self._last_cycles = cycles
        self._cycle_count += cycles

    # @intent:responsibility CPUを1命令進め、消費したサイクル数を返します。
    # @intent:rationale Template Methodパターン。割り込み判定→フェッチ→デコード→実行→サイクル計上の
    #                  共通フローをここで定義し、アーキテクチャ固有の振る舞いはフックで実装する。
    def step(self) -> int:
        """
        1命令（または1回の割り込み受付シーケンス）を最後まで実行します。
        """
        cycles = self._service_interrupts()
        if cycles is not None:
            self._status = StepStatus.INTERRUPTED
        else:
            self._status = StepStatus.EXECUTED
            opcode = self._fetch()
            self._last_opcode = opcode
            cycles = self._execute(self._decode(opcode))
        self._charge(cycles)
        return cycles

    # @intent:responsibility 指定サイクル数以上が経過するまで step() を繰り返します。
    # @intent:post-condition 戻り値は実際の経過サイクル数。最大で1命令分超過し得る。
    def run_cycles(self, target: int) -> int:
        start = self._cycle_count
        while self._cycle_count - start < target:
            self.step()
        return self._cycle_count - start

    @abstractmethod
    def get_register_map(self) -> Dict[str, int]:
        """
        現在のレジスタ値を辞書形式で返す。
        """
        pass

    @abstractmethod
    def get_flag_state(self) -> Dict[str, bool]:
        """
        現在のフラグ（ステータスレジスタ）の各ビットの状態を辞書形式で返す。
        """
        pass

    @abstractmethod
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        """
        指定されたメモリ範囲を逆アセンブルし、(address, hex_bytes, mnemonic) のタプルリストを返す。
        """
        pass

# src/retro_core_cpu/arch/mos6502/cpu.py
"""
MOS 6502 CPUエミュレーションの中心モジュール。

命令の実行は OPCODE_TABLE の記述子に従い、サイクル計上とページ交差ペナルティは
instructions.maps.execute_instruction に集約されている。
このモジュールはリセット/NMI/IRQの受付順序とJAM時の停止報告を担当する。
"""
import logging
from typing import Callable, Dict, List, Optional, Tuple

from retro_core_cpu.common.types import CpuOptions, RegisterInfo, StepStatus
from retro_core_cpu.core.cpu import AbstractCpu
from retro_core_cpu.transport.bus import Bus
from retro_core_cpu.arch.mos6502.state import Mos6502CpuState
from retro_core_cpu.arch.mos6502.instructions.maps import (
    OpcodeEntry, decode_opcode, execute_instruction,
)
from retro_core_cpu.arch.mos6502.instructions.control import (
    NMI_VECTOR, RESET_VECTOR, IRQ_VECTOR, enter_interrupt,
)

logger = logging.getLogger(__name__)

RESET_CYCLES = 7
INTERRUPT_CYCLES = 7

HaltCallback = Callable[[int, int], None]

# @intent:responsibility MOS 6502 CPUの具体的なエミュレーションロジックを提供する。
class Mos6502Cpu(AbstractCpu):
    """
    MOS 6502 (NMOS) CPUをエミュレートするクラス。

    生成直後は A/X/Y/フラグが0、S=$FF、PC=0。リセットベクタから開始するには reset() を呼ぶ。
    on_halt はJAMオペコードを実行するたびに (PC, オペコード) を引数に呼ばれる。
    """
    def __init__(self, bus: Optional[Bus] = None, options: CpuOptions = CpuOptions(),
                 on_halt: Optional[HaltCallback] = None):
        self._options = options
        self._on_halt = on_halt
        self._nmi_edge = False
        self._irq_line = False
        super().__init__(bus if bus is not None else Bus.with_ram())

    @property
    def options(self) -> CpuOptions:
        return self._options

    # @intent:responsibility MOS 6502の初期状態を生成する。
    def _create_initial_state(self) -> Mos6502CpuState:
        return Mos6502CpuState()

    def get_state(self) -> Mos6502CpuState:
        return self._state

    # @intent:responsibility リセットシーケンス。レジスタを初期化し、リセットベクタからPCをロードする。
    # @intent:post-condition I=1, S=$FF, cycles=7。保留中のNMIと停止状態は破棄される。
    def reset(self) -> None:
        super().reset()
        self._nmi_edge = False
        self._state.flag_i = True
        self._state.pc = self._bus.read_word(RESET_VECTOR)
        self._charge(RESET_CYCLES)
        logger.debug("reset: pc=$%04X", self._state.pc)

    # @intent:responsibility NMIを要求する。次の step() の先頭で受け付けられる。
    # @intent:note エッジのラッチは1ビットのみ。受付前に何度呼んでも1回の割り込みになる。
    def trigger_nmi(self) -> None:
        self._nmi_edge = True

    # @intent:responsibility IRQ入力ラインのレベルを設定する。ホストがデアサートするまで保持される。
    def set_irq_line(self, asserted: bool) -> None:
        self._irq_line = bool(asserted)

    @property
    def nmi_pending(self) -> bool:
        return self._nmi_edge

    @property
    def irq_line(self) -> bool:
        return self._irq_line

    # @intent:responsibility 保留中の割り込みを優先順位 (NMI > IRQ) に従って受け付ける。
    # @intent:note NMIはIフラグを無視する。IRQは I=0 のときだけ受け付ける。
    def _service_interrupts(self) -> Optional[int]:
        if self._nmi_edge:
            self._nmi_edge = False
            vector = NMI_VECTOR
        elif self._irq_line and not self._state.flag_i:
            vector = IRQ_VECTOR
        else:
            return None
        return_pc = self._state.pc
        enter_interrupt(self._state, self._bus, vector, brk=False)
        logger.debug("interrupt $%04X accepted at pc=$%04X", vector, return_pc)
        return INTERRUPT_CYCLES

    # @intent:responsibility 命令フェッチ。PCはオペコードの次のバイトへ進む。
    def _fetch(self) -> int:
        opcode = self._bus.read(self._state.pc)
        self._state.pc += 1
        return opcode

    # @intent:responsibility 命令デコード
    def _decode(self, opcode: int) -> OpcodeEntry:
        return decode_opcode(opcode)

    # @intent:responsibility 命令実行
    def _execute(self, entry: OpcodeEntry) -> int:
        cycles = execute_instruction(entry, self._state, self._bus, self._options)
        if entry.halts:
            self._halt()
        return cycles

    # @intent:responsibility JAMオペコードの報告。例外ではなく状態とログ、コールバックで通知する。
    def _halt(self) -> None:
        self._status = StepStatus.HALTED
        pc = self._state.pc
        opcode = self._last_opcode
        logger.warning("CPU halted by opcode $%02X at $%04X", opcode, pc)
        if self._on_halt is not None:
            self._on_halt(pc, opcode)

    # @intent:responsibility レジスタマップ（表示用）を返す。
    def get_register_map(self) -> Dict[str, int]:
        state = self._state
        return {
            "A": state.a,
            "X": state.x,
            "Y": state.y,
            "PC": state.pc,
            "S": state.sp,
            "P": state.pack_status(),
        }

    # @intent:responsibility フラグ状態（表示用）を返す。
    def get_flag_state(self) -> Dict[str, bool]:
        state = self._state
        return {
            "N": state.flag_n,
            "V": state.flag_v,
            "B": state.flag_b,
            "D": state.flag_d,
            "I": state.flag_i,
            "Z": state.flag_z,
            "C": state.flag_c,
        }

    # @intent:responsibility レジスタ定義（名前とビット幅）を返す。
    def get_register_layout(self) -> List[RegisterInfo]:
        return [
            RegisterInfo("A", 8),
            RegisterInfo("X", 8),
            RegisterInfo("Y", 8),
            RegisterInfo("P", 8),
            RegisterInfo("S", 8),
            RegisterInfo("PC", 16),
        ]

    # @intent:responsibility 指定範囲の逆アセンブル結果を返す。
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        from retro_core_cpu.arch.mos6502 import disassembler
        return disassembler.disassemble(self._bus, start_addr, length)

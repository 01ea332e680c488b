# src/retro_core_cpu/arch/mos6502/instructions/maps.py
"""
MOS 6502 命令マップとデコード/実行ロジック。

OPCODE_TABLE はインポート時に静的に構築される256エントリの不変テーブルで、
各オペコードを {ニーモニック, アドレッシングモード, 実行関数, 基本サイクル, ページ交差ペナルティ対象か}
の記述子に対応付ける。CPUインスタンスがなくても検査・テストできる。
"""
from typing import Callable, Dict, FrozenSet, NamedTuple, Optional, Tuple

from retro_core_cpu.common.types import CpuOptions
from retro_core_cpu.transport.bus import Bus
from retro_core_cpu.arch.mos6502.state import Mos6502CpuState
from retro_core_cpu.arch.mos6502.instructions import load, alu, control
from retro_core_cpu.arch.mos6502.instructions.base import (
    AddressingMode, AddressingResult, RESOLVERS,
)

# Execution Function Type: 戻り値は追加サイクル数 (分岐命令のみ)
ExecFunc = Callable[[Mos6502CpuState, Bus, AddressingResult], Optional[int]]

HALT_MNEMONIC = "KIL"
# JAM 行 (x2) の基本サイクル。停止するオペコードはすべてこの値で計上する
HALT_CYCLES = 2

# @intent:data_structure オペコード1つ分の記述子。
class OpcodeEntry(NamedTuple):
    mnemonic: str
    mode: AddressingMode
    operation: ExecFunc
    cycles: int
    page_penalty: bool

    @property
    def halts(self) -> bool:
        return self.mnemonic == HALT_MNEMONIC

    @property
    def length(self) -> int:
        return 1 + self.mode.operand_length

# @intent:constant NMOS 6502 の基本サイクル数テーブル（非公式命令を含む）。
CYCLE_TABLE: Tuple[int, ...] = (
    # x0 x1 x2 x3 x4 x5 x6 x7 x8 x9 xA xB xC xD xE xF
    7, 6, 2, 8, 3, 3, 5, 5, 3, 2, 2, 2, 4, 4, 6, 6,  # 0x
    2, 5, 2, 8, 4, 4, 6, 6, 2, 4, 2, 7, 4, 4, 7, 7,  # 1x
    6, 6, 2, 8, 3, 3, 5, 5, 4, 2, 2, 2, 4, 4, 6, 6,  # 2x
    2, 5, 2, 8, 4, 4, 6, 6, 2, 4, 2, 7, 4, 4, 7, 7,  # 3x
    6, 6, 2, 8, 3, 3, 5, 5, 3, 2, 2, 2, 3, 4, 6, 6,  # 4x
    2, 5, 2, 8, 4, 4, 6, 6, 2, 4, 2, 7, 4, 4, 7, 7,  # 5x
    6, 6, 2, 8, 3, 3, 5, 5, 4, 2, 2, 2, 5, 4, 6, 6,  # 6x
    2, 5, 2, 8, 4, 4, 6, 6, 2, 4, 2, 7, 4, 4, 7, 7,  # 7x
    2, 6, 2, 6, 3, 3, 3, 3, 2, 2, 2, 2, 4, 4, 4, 4,  # 8x
    2, 6, 2, 6, 4, 4, 4, 4, 2, 5, 2, 5, 5, 5, 5, 5,  # 9x
    2, 6, 2, 6, 3, 3, 3, 3, 2, 2, 2, 2, 4, 4, 4, 4,  # Ax
    2, 5, 2, 5, 4, 4, 4, 4, 2, 4, 2, 4, 4, 4, 4, 4,  # Bx
    2, 6, 2, 8, 3, 3, 5, 5, 2, 2, 2, 2, 4, 4, 6, 6,  # Cx
    2, 5, 2, 8, 4, 4, 6, 6, 2, 4, 2, 7, 4, 4, 7, 7,  # Dx
    2, 6, 2, 8, 3, 3, 5, 5, 2, 2, 2, 2, 4, 4, 6, 6,  # Ex
    2, 5, 2, 8, 4, 4, 6, 6, 2, 4, 2, 7, 4, 4, 7, 7,  # Fx
)

# @intent:constant インデックス付きアドレッシングでページを跨いだとき+1サイクルを払う読み出し命令。
# @intent:note ストア命令とRMW命令（公式・非公式とも）は固定サイクルで、ここには含めない。
PAGE_CROSS_OPCODES: FrozenSet[int] = frozenset({
    0x11, 0x19, 0x1D,  # ORA
    0x31, 0x39, 0x3D,  # AND
    0x51, 0x59, 0x5D,  # EOR
    0x71, 0x79, 0x7D,  # ADC
    0xB1, 0xB9, 0xBD,  # LDA
    0xBE,              # LDX abs,Y
    0xBC,              # LDY abs,X
    0xB3, 0xBF,        # LAX
    0xD1, 0xD9, 0xDD,  # CMP
    0xF1, 0xF9, 0xFD,  # SBC
    0x1C, 0x3C, 0x5C, 0x7C, 0xDC, 0xFC,  # NOP abs,X
})

IMP = AddressingMode.IMPLIED
ACC = AddressingMode.ACCUMULATOR
IMM = AddressingMode.IMMEDIATE
ZP = AddressingMode.ZERO_PAGE
ZPX = AddressingMode.ZERO_PAGE_X
ZPY = AddressingMode.ZERO_PAGE_Y
ABS = AddressingMode.ABSOLUTE
ABX = AddressingMode.ABSOLUTE_X
ABY = AddressingMode.ABSOLUTE_Y
IND = AddressingMode.INDIRECT
IZX = AddressingMode.INDEXED_INDIRECT
IZY = AddressingMode.INDIRECT_INDEXED
REL = AddressingMode.RELATIVE

# Opcode Entry: (Mnemonic, Addressing Mode, Execution Function)
OPCODE_MAP: Dict[int, Tuple[str, AddressingMode, ExecFunc]] = {
    # --- Load/Store/Transfer ---
    0xA9: ("LDA", IMM, load.lda),
    0xA5: ("LDA", ZP, load.lda),
    0xB5: ("LDA", ZPX, load.lda),
    0xAD: ("LDA", ABS, load.lda),
    0xBD: ("LDA", ABX, load.lda),
    0xB9: ("LDA", ABY, load.lda),
    0xA1: ("LDA", IZX, load.lda),
    0xB1: ("LDA", IZY, load.lda),

    0xA2: ("LDX", IMM, load.ldx),
    0xA6: ("LDX", ZP, load.ldx),
    0xB6: ("LDX", ZPY, load.ldx),
    0xAE: ("LDX", ABS, load.ldx),
    0xBE: ("LDX", ABY, load.ldx),

    0xA0: ("LDY", IMM, load.ldy),
    0xA4: ("LDY", ZP, load.ldy),
    0xB4: ("LDY", ZPX, load.ldy),
    0xAC: ("LDY", ABS, load.ldy),
    0xBC: ("LDY", ABX, load.ldy),

    0x85: ("STA", ZP, load.sta),
    0x95: ("STA", ZPX, load.sta),
    0x8D: ("STA", ABS, load.sta),
    0x9D: ("STA", ABX, load.sta),
    0x99: ("STA", ABY, load.sta),
    0x81: ("STA", IZX, load.sta),
    0x91: ("STA", IZY, load.sta),

    0x86: ("STX", ZP, load.stx),
    0x96: ("STX", ZPY, load.stx),
    0x8E: ("STX", ABS, load.stx),

    0x84: ("STY", ZP, load.sty),
    0x94: ("STY", ZPX, load.sty),
    0x8C: ("STY", ABS, load.sty),

    0xAA: ("TAX", IMP, load.tax),
    0xA8: ("TAY", IMP, load.tay),
    0x8A: ("TXA", IMP, load.txa),
    0x98: ("TYA", IMP, load.tya),
    0x9A: ("TXS", IMP, load.txs),
    0xBA: ("TSX", IMP, load.tsx),

    # --- ALU Operations ---
    0x69: ("ADC", IMM, alu.adc),
    0x65: ("ADC", ZP, alu.adc),
    0x75: ("ADC", ZPX, alu.adc),
    0x6D: ("ADC", ABS, alu.adc),
    0x7D: ("ADC", ABX, alu.adc),
    0x79: ("ADC", ABY, alu.adc),
    0x61: ("ADC", IZX, alu.adc),
    0x71: ("ADC", IZY, alu.adc),

    0xE9: ("SBC", IMM, alu.sbc),
    0xE5: ("SBC", ZP, alu.sbc),
    0xF5: ("SBC", ZPX, alu.sbc),
    0xED: ("SBC", ABS, alu.sbc),
    0xFD: ("SBC", ABX, alu.sbc),
    0xF9: ("SBC", ABY, alu.sbc),
    0xE1: ("SBC", IZX, alu.sbc),
    0xF1: ("SBC", IZY, alu.sbc),

    0xC9: ("CMP", IMM, alu.cmp),
    0xC5: ("CMP", ZP, alu.cmp),
    0xD5: ("CMP", ZPX, alu.cmp),
    0xCD: ("CMP", ABS, alu.cmp),
    0xDD: ("CMP", ABX, alu.cmp),
    0xD9: ("CMP", ABY, alu.cmp),
    0xC1: ("CMP", IZX, alu.cmp),
    0xD1: ("CMP", IZY, alu.cmp),

    0xE0: ("CPX", IMM, alu.cpx),
    0xE4: ("CPX", ZP, alu.cpx),
    0xEC: ("CPX", ABS, alu.cpx),

    0xC0: ("CPY", IMM, alu.cpy),
    0xC4: ("CPY", ZP, alu.cpy),
    0xCC: ("CPY", ABS, alu.cpy),

    0x29: ("AND", IMM, alu.and_),
    0x25: ("AND", ZP, alu.and_),
    0x35: ("AND", ZPX, alu.and_),
    0x2D: ("AND", ABS, alu.and_),
    0x3D: ("AND", ABX, alu.and_),
    0x39: ("AND", ABY, alu.and_),
    0x21: ("AND", IZX, alu.and_),
    0x31: ("AND", IZY, alu.and_),

    0x09: ("ORA", IMM, alu.ora),
    0x05: ("ORA", ZP, alu.ora),
    0x15: ("ORA", ZPX, alu.ora),
    0x0D: ("ORA", ABS, alu.ora),
    0x1D: ("ORA", ABX, alu.ora),
    0x19: ("ORA", ABY, alu.ora),
    0x01: ("ORA", IZX, alu.ora),
    0x11: ("ORA", IZY, alu.ora),

    0x49: ("EOR", IMM, alu.eor),
    0x45: ("EOR", ZP, alu.eor),
    0x55: ("EOR", ZPX, alu.eor),
    0x4D: ("EOR", ABS, alu.eor),
    0x5D: ("EOR", ABX, alu.eor),
    0x59: ("EOR", ABY, alu.eor),
    0x41: ("EOR", IZX, alu.eor),
    0x51: ("EOR", IZY, alu.eor),

    0x24: ("BIT", ZP, alu.bit),
    0x2C: ("BIT", ABS, alu.bit),

    # Shift / Rotate
    0x0A: ("ASL", ACC, alu.asl),
    0x06: ("ASL", ZP, alu.asl),
    0x16: ("ASL", ZPX, alu.asl),
    0x0E: ("ASL", ABS, alu.asl),
    0x1E: ("ASL", ABX, alu.asl),

    0x4A: ("LSR", ACC, alu.lsr),
    0x46: ("LSR", ZP, alu.lsr),
    0x56: ("LSR", ZPX, alu.lsr),
    0x4E: ("LSR", ABS, alu.lsr),
    0x5E: ("LSR", ABX, alu.lsr),

    0x2A: ("ROL", ACC, alu.rol),
    0x26: ("ROL", ZP, alu.rol),
    0x36: ("ROL", ZPX, alu.rol),
    0x2E: ("ROL", ABS, alu.rol),
    0x3E: ("ROL", ABX, alu.rol),

    0x6A: ("ROR", ACC, alu.ror),
    0x66: ("ROR", ZP, alu.ror),
    0x76: ("ROR", ZPX, alu.ror),
    0x6E: ("ROR", ABS, alu.ror),
    0x7E: ("ROR", ABX, alu.ror),

    # INC/DEC
    0xE6: ("INC", ZP, alu.inc),
    0xF6: ("INC", ZPX, alu.inc),
    0xEE: ("INC", ABS, alu.inc),
    0xFE: ("INC", ABX, alu.inc),

    0xC6: ("DEC", ZP, alu.dec),
    0xD6: ("DEC", ZPX, alu.dec),
    0xCE: ("DEC", ABS, alu.dec),
    0xDE: ("DEC", ABX, alu.dec),

    0xE8: ("INX", IMP, alu.inx),
    0xCA: ("DEX", IMP, alu.dex),
    0xC8: ("INY", IMP, alu.iny),
    0x88: ("DEY", IMP, alu.dey),

    # --- Control Instructions ---
    # Branch: +1 if branch taken, +2 if page crossed
    0x90: ("BCC", REL, control.bcc),
    0xB0: ("BCS", REL, control.bcs),
    0xF0: ("BEQ", REL, control.beq),
    0xD0: ("BNE", REL, control.bne),
    0x30: ("BMI", REL, control.bmi),
    0x10: ("BPL", REL, control.bpl),
    0x50: ("BVC", REL, control.bvc),
    0x70: ("BVS", REL, control.bvs),

    # Jump / Subroutine
    0x4C: ("JMP", ABS, control.jmp),
    0x6C: ("JMP", IND, control.jmp),
    0x20: ("JSR", ABS, control.jsr),
    0x60: ("RTS", IMP, control.rts),

    # Stack
    0x48: ("PHA", IMP, control.pha),
    0x08: ("PHP", IMP, control.php),
    0x68: ("PLA", IMP, control.pla),
    0x28: ("PLP", IMP, control.plp),

    # Flags
    0x18: ("CLC", IMP, control.clc),
    0x38: ("SEC", IMP, control.sec),
    0x58: ("CLI", IMP, control.cli),
    0x78: ("SEI", IMP, control.sei),
    0xB8: ("CLV", IMP, control.clv),
    0xD8: ("CLD", IMP, control.cld),
    0xF8: ("SED", IMP, control.sed),

    # System
    0xEA: ("NOP", IMP, control.nop),
    0x00: ("BRK", IMP, control.brk),
    0x40: ("RTI", IMP, control.rti),

    # --- Undocumented ---
    0xA7: ("LAX", ZP, load.lax),
    0xB7: ("LAX", ZPY, load.lax),
    0xAF: ("LAX", ABS, load.lax),
    0xBF: ("LAX", ABY, load.lax),
    0xA3: ("LAX", IZX, load.lax),
    0xB3: ("LAX", IZY, load.lax),

    0x87: ("SAX", ZP, load.sax),
    0x97: ("SAX", ZPY, load.sax),
    0x8F: ("SAX", ABS, load.sax),
    0x83: ("SAX", IZX, load.sax),

    0xC7: ("DCP", ZP, alu.dcp),
    0xD7: ("DCP", ZPX, alu.dcp),
    0xCF: ("DCP", ABS, alu.dcp),
    0xDF: ("DCP", ABX, alu.dcp),
    0xDB: ("DCP", ABY, alu.dcp),
    0xC3: ("DCP", IZX, alu.dcp),
    0xD3: ("DCP", IZY, alu.dcp),

    0xE7: ("ISC", ZP, alu.isc),
    0xF7: ("ISC", ZPX, alu.isc),
    0xEF: ("ISC", ABS, alu.isc),
    0xFF: ("ISC", ABX, alu.isc),
    0xFB: ("ISC", ABY, alu.isc),
    0xE3: ("ISC", IZX, alu.isc),
    0xF3: ("ISC", IZY, alu.isc),

    0x07: ("SLO", ZP, alu.slo),
    0x17: ("SLO", ZPX, alu.slo),
    0x0F: ("SLO", ABS, alu.slo),
    0x1F: ("SLO", ABX, alu.slo),
    0x1B: ("SLO", ABY, alu.slo),
    0x03: ("SLO", IZX, alu.slo),
    0x13: ("SLO", IZY, alu.slo),

    0x27: ("RLA", ZP, alu.rla),
    0x37: ("RLA", ZPX, alu.rla),
    0x2F: ("RLA", ABS, alu.rla),
    0x3F: ("RLA", ABX, alu.rla),
    0x3B: ("RLA", ABY, alu.rla),
    0x23: ("RLA", IZX, alu.rla),
    0x33: ("RLA", IZY, alu.rla),

    0x47: ("SRE", ZP, alu.sre),
    0x57: ("SRE", ZPX, alu.sre),
    0x4F: ("SRE", ABS, alu.sre),
    0x5F: ("SRE", ABX, alu.sre),
    0x5B: ("SRE", ABY, alu.sre),
    0x43: ("SRE", IZX, alu.sre),
    0x53: ("SRE", IZY, alu.sre),

    0x67: ("RRA", ZP, alu.rra),
    0x77: ("RRA", ZPX, alu.rra),
    0x6F: ("RRA", ABS, alu.rra),
    0x7F: ("RRA", ABX, alu.rra),
    0x7B: ("RRA", ABY, alu.rra),
    0x63: ("RRA", IZX, alu.rra),
    0x73: ("RRA", IZY, alu.rra),

    0x0B: ("ANC", IMM, alu.anc),
    0x2B: ("ANC", IMM, alu.anc),
    0x4B: ("ALR", IMM, alu.alr),
    0x6B: ("ARR", IMM, alu.arr),
    0x8B: ("XAA", IMM, alu.xaa),
    0xCB: ("AXS", IMM, alu.axs),
    0xEB: ("SBC", IMM, alu.sbc),

    0x9C: ("SHY", ABX, load.shy),
    0x9E: ("SHX", ABY, load.shx),

    0x1A: ("NOP", IMP, control.nop),
    0x3A: ("NOP", IMP, control.nop),
    0x5A: ("NOP", IMP, control.nop),
    0x7A: ("NOP", IMP, control.nop),
    0xDA: ("NOP", IMP, control.nop),
    0xFA: ("NOP", IMP, control.nop),
    0x80: ("NOP", IMM, control.nop),
    0x82: ("NOP", IMM, control.nop),
    0x89: ("NOP", IMM, control.nop),
    0xC2: ("NOP", IMM, control.nop),
    0xE2: ("NOP", IMM, control.nop),
    0x04: ("NOP", ZP, control.nop),
    0x44: ("NOP", ZP, control.nop),
    0x64: ("NOP", ZP, control.nop),
    0x14: ("NOP", ZPX, control.nop),
    0x34: ("NOP", ZPX, control.nop),
    0x54: ("NOP", ZPX, control.nop),
    0x74: ("NOP", ZPX, control.nop),
    0xD4: ("NOP", ZPX, control.nop),
    0xF4: ("NOP", ZPX, control.nop),
    0x0C: ("NOP", ABS, control.nop),
    0x1C: ("NOP", ABX, control.nop),
    0x3C: ("NOP", ABX, control.nop),
    0x5C: ("NOP", ABX, control.nop),
    0x7C: ("NOP", ABX, control.nop),
    0xDC: ("NOP", ABX, control.nop),
    0xFC: ("NOP", ABX, control.nop),
}

# @intent:note 上記にないオペコード（JAM 12種と不安定命令 93 9B 9F AB BB）はすべてKILとして扱い、
#              CYCLE_TABLE の値によらず HALT_CYCLES で計上する。
def _build_table() -> Tuple[OpcodeEntry, ...]:
    table = []
    for opcode in range(0x100):
        mnemonic, mode, func = OPCODE_MAP.get(opcode, (HALT_MNEMONIC, IMP, control.kil))
        cycles = HALT_CYCLES if mnemonic == HALT_MNEMONIC else CYCLE_TABLE[opcode]
        table.append(OpcodeEntry(mnemonic, mode, func, cycles, opcode in PAGE_CROSS_OPCODES))
    return tuple(table)

OPCODE_TABLE: Tuple[OpcodeEntry, ...] = _build_table()

def decode_opcode(opcode: int) -> OpcodeEntry:
    return OPCODE_TABLE[opcode & 0xFF]

# @intent:responsibility 記述子に従って1命令を実行し、消費サイクル数を返す。
# @intent:pre-condition state.pc はオペコードの次のバイトを指している。
# @intent:note ページ交差ペナルティと分岐ペナルティは排他（分岐命令はPAGE_CROSS_OPCODESに含まれない）。
def execute_instruction(entry: OpcodeEntry, state: Mos6502CpuState, bus: Bus, options: CpuOptions) -> int:
    operand = RESOLVERS[entry.mode](state, bus, options)
    extra = entry.operation(state, bus, operand)

    cycles = entry.cycles
    if extra:
        cycles += extra
    elif entry.page_penalty and operand.page_crossed:
        cycles += 1
    return cycles

# src/retro_core_cpu/arch/mos6502/instructions/base.py
"""
MOS 6502 アドレッシングモード解決ロジック。

各リゾルバは消費したオペランドバイト数だけPCを進め、AddressingResult を返す。
実効アドレスの読み出しは行わない（Immediateのみ value にオペランドを入れて返す）。
オペランド値が必要な命令は read_operand() で遅延読み出しする。
"""
from enum import Enum
from typing import Callable, Dict, NamedTuple, Optional

from retro_core_cpu.common.types import CpuOptions
from retro_core_cpu.transport.bus import Bus
from retro_core_cpu.arch.mos6502.state import Mos6502CpuState, STACK_PAGE

# @intent:responsibility アドレッシングモードの解決結果。
# address: 解決された実効アドレス (Implied/Accumulator/Immediateの場合はNone)
# value: Immediateの場合のオペランド値、それ以外はNone
# page_crossed: インデックス加算または分岐でページ境界を跨いだか
class AddressingResult(NamedTuple):
    address: Optional[int]
    value: Optional[int]
    page_crossed: bool = False

# @intent:responsibility 13種類のアドレッシングモード。値はオペランドのバイト数。
class AddressingMode(Enum):
    IMPLIED = ("IMP", 0)
    ACCUMULATOR = ("ACC", 0)
    IMMEDIATE = ("IMM", 1)
    ZERO_PAGE = ("ZP", 1)
    ZERO_PAGE_X = ("ZPX", 1)
    ZERO_PAGE_Y = ("ZPY", 1)
    ABSOLUTE = ("ABS", 2)
    ABSOLUTE_X = ("ABX", 2)
    ABSOLUTE_Y = ("ABY", 2)
    INDIRECT = ("IND", 2)
    INDEXED_INDIRECT = ("IZX", 1)
    INDIRECT_INDEXED = ("IZY", 1)
    RELATIVE = ("REL", 1)

    @property
    def operand_length(self) -> int:
        return self.value[1]

# @intent:responsibility ページ境界交差判定。
def is_page_crossed(addr1: int, addr2: int) -> bool:
    return (addr1 & 0xFF00) != (addr2 & 0xFF00)

# @intent:responsibility オペランド値を取得する。Immediate以外は実効アドレスから読む。
def read_operand(bus: Bus, operand: AddressingResult) -> int:
    if operand.value is not None:
        return operand.value
    return bus.read(operand.address)

# --- Stack ---

# @intent:note スタックは $0100-$01FF の1ページ内で折り返す。
def push(state: Mos6502CpuState, bus: Bus, value: int) -> None:
    bus.write(STACK_PAGE | state.sp, value & 0xFF)
    state.sp -= 1

def pull(state: Mos6502CpuState, bus: Bus) -> int:
    state.sp += 1
    return bus.read(STACK_PAGE | state.sp)

def push_word(state: Mos6502CpuState, bus: Bus, value: int) -> None:
    push(state, bus, value >> 8)
    push(state, bus, value)

def pull_word(state: Mos6502CpuState, bus: Bus) -> int:
    lo = pull(state, bus)
    hi = pull(state, bus)
    return (hi << 8) | lo

# --- Operand fetch ---

def _next_byte(state: Mos6502CpuState, bus: Bus) -> int:
    val = bus.read(state.pc)
    state.pc += 1
    return val

def _next_word(state: Mos6502CpuState, bus: Bus) -> int:
    lo = _next_byte(state, bus)
    hi = _next_byte(state, bus)
    return (hi << 8) | lo

# @intent:note ポインタの上位バイトもゼロページ内で折り返す。
def _zero_page_word(bus: Bus, ptr: int) -> int:
    lo = bus.read(ptr & 0xFF)
    hi = bus.read((ptr + 1) & 0xFF)
    return (hi << 8) | lo

# --- Addressing Modes ---

# @intent:responsibility Implied Mode
def addr_implied(state: Mos6502CpuState, bus: Bus, options: CpuOptions) -> AddressingResult:
    return AddressingResult(None, None)

# @intent:responsibility Accumulator Mode (ASL A など)
def addr_accumulator(state: Mos6502CpuState, bus: Bus, options: CpuOptions) -> AddressingResult:
    return AddressingResult(None, None)

# @intent:responsibility Immediate Mode (#$xx)
def addr_immediate(state: Mos6502CpuState, bus: Bus, options: CpuOptions) -> AddressingResult:
    return AddressingResult(None, _next_byte(state, bus))

# @intent:responsibility Zero Page Mode ($xx)
def addr_zeropage(state: Mos6502CpuState, bus: Bus, options: CpuOptions) -> AddressingResult:
    return AddressingResult(_next_byte(state, bus), None)

# @intent:responsibility Zero Page, X Mode ($xx,X)
# @intent:note ラップアラウンドあり (0xFF + 1 -> 0x00)。ページ交差は起こり得ない。
def addr_zeropage_x(state: Mos6502CpuState, bus: Bus, options: CpuOptions) -> AddressingResult:
    return AddressingResult((_next_byte(state, bus) + state.x) & 0xFF, None)

# @intent:responsibility Zero Page, Y Mode ($xx,Y) - LDX, STX, LAX, SAX
def addr_zeropage_y(state: Mos6502CpuState, bus: Bus, options: CpuOptions) -> AddressingResult:
    return AddressingResult((_next_byte(state, bus) + state.y) & 0xFF, None)

# @intent:responsibility Absolute Mode ($xxxx)
def addr_absolute(state: Mos6502CpuState, bus: Bus, options: CpuOptions) -> AddressingResult:
    return AddressingResult(_next_word(state, bus), None)

def _indexed(base_addr: int, index: int) -> AddressingResult:
    addr = (base_addr + index) & 0xFFFF
    return AddressingResult(addr, None, is_page_crossed(base_addr, addr))

# @intent:responsibility Absolute, X Mode ($xxxx,X)
# @intent:note ここでは「交差したか」のみを返す。追加サイクルを払うかは命令記述子が決める。
def addr_absolute_x(state: Mos6502CpuState, bus: Bus, options: CpuOptions) -> AddressingResult:
    return _indexed(_next_word(state, bus), state.x)

# @intent:responsibility Absolute, Y Mode ($xxxx,Y)
def addr_absolute_y(state: Mos6502CpuState, bus: Bus, options: CpuOptions) -> AddressingResult:
    return _indexed(_next_word(state, bus), state.y)

# @intent:responsibility Indirect Mode ($xxxx) - JMP only
# @intent:note ptrが$xxFFでバグ再現が有効な場合、上位バイトは$xx00から読む。
def addr_indirect(state: Mos6502CpuState, bus: Bus, options: CpuOptions) -> AddressingResult:
    ptr = _next_word(state, bus)
    eff_lo = bus.read(ptr)
    if options.emulate_indirect_jmp_bug and (ptr & 0xFF) == 0xFF:
        eff_hi = bus.read(ptr & 0xFF00)
    else:
        eff_hi = bus.read((ptr + 1) & 0xFFFF)
    return AddressingResult((eff_hi << 8) | eff_lo, None)

# @intent:responsibility Indexed Indirect Mode ($xx,X) - "Pre-indexed"
def addr_indexed_indirect(state: Mos6502CpuState, bus: Bus, options: CpuOptions) -> AddressingResult:
    ptr = (_next_byte(state, bus) + state.x) & 0xFF
    return AddressingResult(_zero_page_word(bus, ptr), None)

# @intent:responsibility Indirect Indexed Mode ($xx),Y - "Post-indexed"
def addr_indirect_indexed(state: Mos6502CpuState, bus: Bus, options: CpuOptions) -> AddressingResult:
    base_addr = _zero_page_word(bus, _next_byte(state, bus))
    return _indexed(base_addr, state.y)

# @intent:responsibility Relative Mode (Branch)
# @intent:note 戻り値のアドレスは分岐先の絶対アドレス。page_crossed は分岐元(次命令)と分岐先の比較。
def addr_relative(state: Mos6502CpuState, bus: Bus, options: CpuOptions) -> AddressingResult:
    offset = _next_byte(state, bus)
    if offset >= 0x80:
        offset -= 0x100
    dest_addr = (state.pc + offset) & 0xFFFF
    return AddressingResult(dest_addr, None, is_page_crossed(state.pc, dest_addr))

AddrFunc = Callable[[Mos6502CpuState, Bus, CpuOptions], AddressingResult]

# @intent:map アドレッシングモードからリゾルバへの対応表。
RESOLVERS: Dict[AddressingMode, AddrFunc] = {
    AddressingMode.IMPLIED: addr_implied,
    AddressingMode.ACCUMULATOR: addr_accumulator,
    AddressingMode.IMMEDIATE: addr_immediate,
    AddressingMode.ZERO_PAGE: addr_zeropage,
    AddressingMode.ZERO_PAGE_X: addr_zeropage_x,
    AddressingMode.ZERO_PAGE_Y: addr_zeropage_y,
    AddressingMode.ABSOLUTE: addr_absolute,
    AddressingMode.ABSOLUTE_X: addr_absolute_x,
    AddressingMode.ABSOLUTE_Y: addr_absolute_y,
    AddressingMode.INDIRECT: addr_indirect,
    AddressingMode.INDEXED_INDIRECT: addr_indexed_indirect,
    AddressingMode.INDIRECT_INDEXED: addr_indirect_indexed,
    AddressingMode.RELATIVE: addr_relative,
}

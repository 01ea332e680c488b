# src/retro_core_cpu/arch/mos6502/instructions/load.py
"""
MOS 6502 転送系命令 (Load/Store/Transfer)。
非公式命令 LAX, SAX, SHX, SHY もここで扱う。
"""
from retro_core_cpu.transport.bus import Bus
from retro_core_cpu.arch.mos6502.state import Mos6502CpuState
from retro_core_cpu.arch.mos6502.instructions.base import AddressingResult, read_operand

# --- LDA (Load Accumulator) ---
# @intent:responsibility メモリからAレジスタへロードし、N, Zフラグを更新。
def lda(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.a = read_operand(bus, operand)
    state.update_zn(state.a)

# --- LDX (Load X Register) ---
def ldx(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.x = read_operand(bus, operand)
    state.update_zn(state.x)

# --- LDY (Load Y Register) ---
def ldy(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.y = read_operand(bus, operand)
    state.update_zn(state.y)

# --- STA (Store Accumulator) ---
# @intent:responsibility Aレジスタの内容をメモリへストア。フラグ変化なし。
def sta(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    bus.write(operand.address, state.a)

def stx(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    bus.write(operand.address, state.x)

def sty(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    bus.write(operand.address, state.y)

# --- Register Transfers (TAX, TAY, TXA, TYA, TSX, TXS) ---

def tax(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.x = state.a
    state.update_zn(state.x)

def tay(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.y = state.a
    state.update_zn(state.y)

def txa(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.a = state.x
    state.update_zn(state.a)

def tya(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.a = state.y
    state.update_zn(state.a)

def tsx(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.x = state.sp
    state.update_zn(state.x)

# @intent:note TXSはフラグを変更しない唯一の転送命令。
def txs(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.sp = state.x

# --- Undocumented ---

# @intent:responsibility LAX: AとXに同じ値をロード (LDA + LDX)。
def lax(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    lda(state, bus, operand)
    state.x = state.a

# @intent:responsibility SAX: A & X をストア。フラグ変化なし。
def sax(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    bus.write(operand.address, state.a & state.x)

# @intent:note SHX/SHY は「ベースアドレス上位バイト+1」とのANDを書き込む。
#              インデックス加算でページを跨いだ場合、その値が書き込み先の上位バイトを置き換える。
def _store_high_masked(bus: Bus, operand: AddressingResult, reg: int, index: int) -> None:
    base_addr = (operand.address - index) & 0xFFFF
    value = reg & (((base_addr >> 8) + 1) & 0xFF)
    addr = operand.address
    if operand.page_crossed:
        addr = (value << 8) | (addr & 0xFF)
    bus.write(addr, value)

# @intent:responsibility SHY abs,X
def shy(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _store_high_masked(bus, operand, state.y, state.x)

# @intent:responsibility SHX abs,Y
def shx(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _store_high_masked(bus, operand, state.x, state.y)

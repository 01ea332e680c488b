# src/retro_core_cpu/arch/mos6502/instructions/alu.py
"""
MOS 6502 算術論理演算命令 (ALU)。
BCDサポートと、読み出し-変更-書き込み系の非公式命令を含む。
非公式命令はすべて公式命令のプリミティブの合成として実装する。
"""
from typing import Callable

from retro_core_cpu.transport.bus import Bus
from retro_core_cpu.arch.mos6502.state import Mos6502CpuState
from retro_core_cpu.arch.mos6502.instructions.base import AddressingResult, read_operand

# --- Logical Operations (AND, ORA, EOR, BIT) ---

def _and(state: Mos6502CpuState, val: int) -> None:
    state.a &= val
    state.update_zn(state.a)

def _ora(state: Mos6502CpuState, val: int) -> None:
    state.a |= val
    state.update_zn(state.a)

def _eor(state: Mos6502CpuState, val: int) -> None:
    state.a ^= val
    state.update_zn(state.a)

def and_(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _and(state, read_operand(bus, operand))

def ora(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _ora(state, read_operand(bus, operand))

def eor(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _eor(state, read_operand(bus, operand))

# @intent:note BIT命令はメモリの値のビット6, 7をそれぞれV, Nフラグにコピーし、A & Mの結果でZフラグを設定する。
def bit(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    val = read_operand(bus, operand)
    state.flag_z = (state.a & val) == 0
    state.flag_v = (val & 0x40) != 0
    state.flag_n = (val & 0x80) != 0

# --- Arithmetic Operations (ADC, SBC) ---

# @intent:responsibility 標準バイナリ加算ロジック
def _adc_binary(state: Mos6502CpuState, val: int) -> None:
    a = state.a
    res_wide = a + val + (1 if state.flag_c else 0)
    state.flag_c = res_wide > 0xFF
    # V is set if the sign of the result differs from the sign of both operands.
    state.flag_v = (~(a ^ val) & (a ^ res_wide) & 0x80) != 0
    state.a = res_wide
    state.update_zn(state.a)

# @intent:responsibility BCD加算ロジック
# @intent:note NMOS 6502ではZ, N, Vはバイナリ加算の結果から決まり、Cのみ補正後の上位桁から決まる。
def _adc_bcd(state: Mos6502CpuState, val: int) -> None:
    a = state.a
    c = 1 if state.flag_c else 0

    lo = (a & 0x0F) + (val & 0x0F) + c
    hi = (a >> 4) + (val >> 4)
    if lo > 9:
        lo += 6
        hi += 1
    if hi > 9:
        hi += 6

    binary = a + val + c
    state.update_zn(binary)
    state.flag_v = (~(a ^ val) & (a ^ binary) & 0x80) != 0
    state.flag_c = hi > 0x0F
    state.a = (hi << 4) | (lo & 0x0F)

# @intent:responsibility BCD減算ロジック
# @intent:note 下位桁の借りで-6補正して上位桁へ借りを伝搬する。フラグはすべてバイナリ減算の結果から決まる。
def _sbc_bcd(state: Mos6502CpuState, val: int) -> None:
    a = state.a
    borrow = 0 if state.flag_c else 1

    lo = (a & 0x0F) - (val & 0x0F) - borrow
    hi = (a >> 4) - (val >> 4)
    if lo < 0:
        lo -= 6
        hi -= 1
    if hi < 0:
        hi -= 6

    binary = a - val - borrow
    state.update_zn(binary)
    state.flag_v = ((a ^ val) & (a ^ binary) & 0x80) != 0
    state.flag_c = binary >= 0
    state.a = (hi << 4) | (lo & 0x0F)

def _adc(state: Mos6502CpuState, val: int) -> None:
    if state.flag_d:
        _adc_bcd(state, val)
    else:
        _adc_binary(state, val)

# @intent:note バイナリモードのSBCはオペランドの1の補数をADCしたものと等価。
def _sbc(state: Mos6502CpuState, val: int) -> None:
    if state.flag_d:
        _sbc_bcd(state, val)
    else:
        _adc_binary(state, val ^ 0xFF)

def adc(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _adc(state, read_operand(bus, operand))

def sbc(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _sbc(state, read_operand(bus, operand))

# --- Compare Operations (CMP, CPX, CPY) ---
# @intent:note 9bitの減算。Cは借りが発生しなかった場合(Reg >= Val)にセットされる。

def _compare(state: Mos6502CpuState, reg_val: int, mem_val: int) -> None:
    diff = (reg_val - mem_val) & 0x1FF
    state.flag_c = diff < 0x100
    state.update_zn(diff)

def cmp(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _compare(state, state.a, read_operand(bus, operand))

def cpx(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _compare(state, state.x, read_operand(bus, operand))

def cpy(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _compare(state, state.y, read_operand(bus, operand))

# --- Shift / Rotate Operations (ASL, LSR, ROL, ROR) ---
# @intent:note 各ヘルパーは値を受け取り、Cを更新して結果を返す。Z, Nの更新は呼び出し側。

def _asl_value(state: Mos6502CpuState, val: int) -> int:
    state.flag_c = (val & 0x80) != 0
    return (val << 1) & 0xFF

def _lsr_value(state: Mos6502CpuState, val: int) -> int:
    state.flag_c = (val & 0x01) != 0
    return val >> 1

def _rol_value(state: Mos6502CpuState, val: int) -> int:
    old_c = 1 if state.flag_c else 0
    state.flag_c = (val & 0x80) != 0
    return ((val << 1) | old_c) & 0xFF

def _ror_value(state: Mos6502CpuState, val: int) -> int:
    old_c = 1 if state.flag_c else 0
    state.flag_c = (val & 0x01) != 0
    return (val >> 1) | (old_c << 7)

ShiftFunc = Callable[[Mos6502CpuState, int], int]

# @intent:responsibility Accumulator / Memory 両対応のシフト実行。結果を返す。
def _shift(state: Mos6502CpuState, bus: Bus, operand: AddressingResult, func: ShiftFunc) -> int:
    if operand.address is None:
        state.a = func(state, state.a)
        res = state.a
    else:
        res = func(state, bus.read(operand.address))
        bus.write(operand.address, res)
    state.update_zn(res)
    return res

def asl(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _shift(state, bus, operand, _asl_value)

def lsr(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _shift(state, bus, operand, _lsr_value)

def rol(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _shift(state, bus, operand, _rol_value)

def ror(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _shift(state, bus, operand, _ror_value)

# --- Increment / Decrement (INC, DEC, INX, DEX, INY, DEY) ---

def _step_memory(state: Mos6502CpuState, bus: Bus, operand: AddressingResult, delta: int) -> int:
    res = (bus.read(operand.address) + delta) & 0xFF
    bus.write(operand.address, res)
    state.update_zn(res)
    return res

def inc(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _step_memory(state, bus, operand, 1)

def dec(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _step_memory(state, bus, operand, -1)

def inx(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.x += 1
    state.update_zn(state.x)

def dex(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.x -= 1
    state.update_zn(state.x)

def iny(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.y += 1
    state.update_zn(state.y)

def dey(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.y -= 1
    state.update_zn(state.y)

# --- Undocumented: Read-Modify-Write + ALU ---

# @intent:responsibility SLO = ASL mem; ORA mem
def slo(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _ora(state, _shift(state, bus, operand, _asl_value))

# @intent:responsibility RLA = ROL mem; AND mem
def rla(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _and(state, _shift(state, bus, operand, _rol_value))

# @intent:responsibility SRE = LSR mem; EOR mem
def sre(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _eor(state, _shift(state, bus, operand, _lsr_value))

# @intent:responsibility RRA = ROR mem; ADC mem (ROR のキャリーがADCに入る)
def rra(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _adc(state, _shift(state, bus, operand, _ror_value))

# @intent:responsibility DCP = DEC mem; CMP mem
def dcp(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _compare(state, state.a, _step_memory(state, bus, operand, -1))

# @intent:responsibility ISC = INC mem; SBC mem
def isc(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _sbc(state, _step_memory(state, bus, operand, 1))

# --- Undocumented: Immediate combinations ---

# @intent:responsibility ANC = AND #imm; C = N
def anc(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _and(state, read_operand(bus, operand))
    state.flag_c = state.flag_n

# @intent:responsibility ALR = AND #imm; LSR A
def alr(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _and(state, read_operand(bus, operand))
    state.a = _lsr_value(state, state.a)
    state.update_zn(state.a)

# @intent:responsibility ARR = AND #imm; ROR A; C = bit6, V = bit6 ^ bit5
def arr(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    _and(state, read_operand(bus, operand))
    state.a = _ror_value(state, state.a)
    state.update_zn(state.a)
    state.flag_c = (state.a & 0x40) != 0
    state.flag_v = (((state.a >> 6) ^ (state.a >> 5)) & 1) != 0

# @intent:responsibility XAA = TXA; AND #imm
# @intent:note 実機では不安定な命令。よく知られた安定側の近似 A = X & imm を採用する。
def xaa(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.a = state.x
    _and(state, read_operand(bus, operand))

# @intent:responsibility AXS = X = (A & X) - imm。Cは借りなし、Vは変化しない。
def axs(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    res = (state.a & state.x) - read_operand(bus, operand)
    state.flag_c = res >= 0
    state.x = res
    state.update_zn(state.x)

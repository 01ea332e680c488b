# src/retro_core_cpu/arch/mos6502/instructions/control.py
"""
MOS 6502 制御系命令 (Branch, Jump, Stack, Flags, NOP, BRK/RTI, KIL)。
"""
from typing import Optional

from retro_core_cpu.transport.bus import Bus
from retro_core_cpu.arch.mos6502.state import Mos6502CpuState, B_FLAG
from retro_core_cpu.arch.mos6502.instructions.base import (
    AddressingResult, push, pull, push_word, pull_word,
)

# @intent:constant アドレス空間最上位6バイトに置かれる3つのベクタ (リトルエンディアン)。
NMI_VECTOR = 0xFFFA
RESET_VECTOR = 0xFFFC
IRQ_VECTOR = 0xFFFE

# @intent:responsibility 割り込み受付の共通手順。PCH, PCL, ステータスを積み、Iをセットしてベクタへ飛ぶ。
# @intent:note ステータスのBビットは BRK では1、ハードウェア割り込み (NMI/IRQ) では0で積まれる。
def enter_interrupt(state: Mos6502CpuState, bus: Bus, vector: int, brk: bool) -> None:
    push_word(state, bus, state.pc)
    status = state.pack_status()
    push(state, bus, (status | B_FLAG) if brk else (status & ~B_FLAG))
    state.flag_i = True
    state.pc = bus.read_word(vector)

# --- Branch Instructions ---

# @intent:return 分岐成立で+1、さらに分岐先が別ページなら+1の追加サイクル。
def _branch(state: Mos6502CpuState, operand: AddressingResult, condition: bool) -> Optional[int]:
    if not condition:
        return None
    state.pc = operand.address
    return 2 if operand.page_crossed else 1

def bcc(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> Optional[int]:
    return _branch(state, operand, not state.flag_c)

def bcs(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> Optional[int]:
    return _branch(state, operand, state.flag_c)

def beq(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> Optional[int]:
    return _branch(state, operand, state.flag_z)

def bne(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> Optional[int]:
    return _branch(state, operand, not state.flag_z)

def bmi(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> Optional[int]:
    return _branch(state, operand, state.flag_n)

def bpl(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> Optional[int]:
    return _branch(state, operand, not state.flag_n)

def bvc(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> Optional[int]:
    return _branch(state, operand, not state.flag_v)

def bvs(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> Optional[int]:
    return _branch(state, operand, state.flag_v)

# --- Jump Instructions ---

def jmp(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.pc = operand.address

# @intent:note スタックに積むのは「JSR命令の最後のバイトのアドレス」(次の命令 - 1)。
def jsr(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    push_word(state, bus, (state.pc - 1) & 0xFFFF)
    state.pc = operand.address

# @intent:note 取り出したアドレスはJSRの最終バイトなので+1する。
def rts(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.pc = pull_word(state, bus) + 1

# --- Stack Operations (PHA, PHP, PLA, PLP) ---

def pha(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    push(state, bus, state.a)

# @intent:note PHPはBとビット5を1にして積む。
def php(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    push(state, bus, state.pack_status() | B_FLAG)

def pla(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.a = pull(state, bus)
    state.update_zn(state.a)

def plp(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.unpack_status(pull(state, bus))

# --- Flag Operations (CLC, SEC, etc) ---

def clc(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.flag_c = False

def sec(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.flag_c = True

def cli(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.flag_i = False

def sei(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.flag_i = True

def clv(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.flag_v = False

def cld(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.flag_d = False

def sed(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.flag_d = True

# --- System / Other ---

# @intent:note 非公式NOPもここを使う。オペランドバイトの消費はアドレッシングモード側で済んでいる。
def nop(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    pass

# @intent:responsibility BRK: シグネチャバイトを飛ばした PC+2 を積み、IRQベクタへ。
def brk(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.pc += 1
    enter_interrupt(state, bus, IRQ_VECTOR, brk=True)
    state.flag_b = True

# @intent:responsibility RTI: ステータス（格納されたBも含む）、PCL、PCHの順に取り出す。
def rti(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.unpack_status(pull(state, bus))
    state.pc = pull_word(state, bus)

# @intent:responsibility KIL (JAM): PCをオペコード位置へ巻き戻し、同じ命令をフェッチし続ける状態にする。
def kil(state: Mos6502CpuState, bus: Bus, operand: AddressingResult) -> None:
    state.pc -= 1

# src/retro_core_cpu/arch/mos6502/state.py
"""
MOS 6502 CPUの状態定義。
"""
from dataclasses import dataclass
from typing import ClassVar, Dict

from retro_core_cpu.core.state import CpuState

# Flag bit masks
C_FLAG = 0x01  # Carry
Z_FLAG = 0x02  # Zero
I_FLAG = 0x04  # Interrupt Disable
D_FLAG = 0x08  # Decimal Mode
B_FLAG = 0x10  # Break Command
R_FLAG = 0x20  # Reserved (Always 1 when packed)
V_FLAG = 0x40  # Overflow
N_FLAG = 0x80  # Negative

STACK_PAGE = 0x0100

# @intent:responsibility MOS 6502 CPUの状態（レジスタ、フラグ）を保持する。
@dataclass
class Mos6502CpuState(CpuState):
    """
    MOS 6502 CPUのレジスタ状態。

    sp は8bitのスタックポインタ（物理アドレスは $0100 | sp）。
    p は7つのフラグのビット集合で、ビット5は保持しない（pack_status() で常に1になる）。
    """
    sp: int = 0xFF
    a: int = 0
    x: int = 0
    y: int = 0
    p: int = 0

    REGISTER_MASKS: ClassVar[Dict[str, int]] = {
        "pc": 0xFFFF,
        "sp": 0xFF,
        "a": 0xFF,
        "x": 0xFF,
        "y": 0xFF,
        "p": 0xFF & ~R_FLAG,
    }

    # @intent:responsibility ステータスバイト N V 1 B D I Z C を返す。
    def pack_status(self) -> int:
        return self.p | R_FLAG

    # @intent:responsibility pack_status() の逆変換。ビット5は破棄する。
    def unpack_status(self, value: int) -> None:
        self.p = value

    # @intent:responsibility 8bitの結果からZ, Nフラグを更新する。
    def update_zn(self, value: int) -> None:
        value &= 0xFF
        self.flag_z = value == 0
        self.flag_n = (value & 0x80) != 0

    # @intent:accessor フラグごとの名前付きアクセサ。
    @property
    def flag_c(self) -> bool:
        return (self.p & C_FLAG) != 0

    @flag_c.setter
    def flag_c(self, value: bool) -> None:
        if value: self.p |= C_FLAG
        else: self.p &= ~C_FLAG

    @property
    def flag_z(self) -> bool:
        return (self.p & Z_FLAG) != 0

    @flag_z.setter
    def flag_z(self, value: bool) -> None:
        if value: self.p |= Z_FLAG
        else: self.p &= ~Z_FLAG

    @property
    def flag_i(self) -> bool:
        return (self.p & I_FLAG) != 0

    @flag_i.setter
    def flag_i(self, value: bool) -> None:
        if value: self.p |= I_FLAG
        else: self.p &= ~I_FLAG

    @property
    def flag_d(self) -> bool:
        return (self.p & D_FLAG) != 0

    @flag_d.setter
    def flag_d(self, value: bool) -> None:
        if value: self.p |= D_FLAG
        else: self.p &= ~D_FLAG

    @property
    def flag_b(self) -> bool:
        return (self.p & B_FLAG) != 0

    @flag_b.setter
    def flag_b(self, value: bool) -> None:
        if value: self.p |= B_FLAG
        else: self.p &= ~B_FLAG

    @property
    def flag_v(self) -> bool:
        return (self.p & V_FLAG) != 0

    @flag_v.setter
    def flag_v(self, value: bool) -> None:
        if value: self.p |= V_FLAG
        else: self.p &= ~V_FLAG

    @property
    def flag_n(self) -> bool:
        return (self.p & N_FLAG) != 0

    @flag_n.setter
    def flag_n(self, value: bool) -> None:
        if value: self.p |= N_FLAG
        else: self.p &= ~N_FLAG

# tests/arch/mos6502/test_state.py
"""
Mos6502CpuState の単体テスト。
"""
import itertools

import pytest
from retro_core_cpu.arch.mos6502.state import (
    Mos6502CpuState, C_FLAG, Z_FLAG, I_FLAG, D_FLAG, B_FLAG, R_FLAG, V_FLAG, N_FLAG,
)

FLAG_BITS = (C_FLAG, Z_FLAG, I_FLAG, D_FLAG, B_FLAG, V_FLAG, N_FLAG)

# @intent:test_case_init 生成直後の値を検証します。
def test_initial_values():
    state = Mos6502CpuState()
    assert (state.a, state.x, state.y, state.pc) == (0, 0, 0, 0)
    assert state.sp == 0xFF
    assert state.p == 0

# @intent:test_case_mask どのような演算の後でもレジスタが宣言幅に収まることを検証します。
@pytest.mark.parametrize("reg", ["a", "x", "y", "sp"])
def test_8bit_registers_wrap(reg):
    state = Mos6502CpuState()
    setattr(state, reg, 0xFF)
    setattr(state, reg, getattr(state, reg) + 1)
    assert getattr(state, reg) == 0x00
    setattr(state, reg, getattr(state, reg) - 1)
    assert getattr(state, reg) == 0xFF
    setattr(state, reg, 0x1234)
    assert getattr(state, reg) == 0x34

def test_pc_wraps():
    state = Mos6502CpuState(pc=0xFFFF)
    state.pc += 1
    assert state.pc == 0x0000
    state.pc -= 1
    assert state.pc == 0xFFFF

# @intent:test_case_status 全フラグの組み合わせで pack/unpack が往復し、ビット5が常に1であることを検証します。
def test_status_round_trip_all_combinations():
    state = Mos6502CpuState()
    for combo in itertools.product([False, True], repeat=len(FLAG_BITS)):
        flags = sum(bit for bit, on in zip(FLAG_BITS, combo) if on)
        state.unpack_status(flags)
        packed = state.pack_status()
        assert packed & R_FLAG
        assert packed == flags | R_FLAG

        other = Mos6502CpuState()
        other.unpack_status(packed)
        assert other.p == flags

def test_unpack_discards_bit5():
    state = Mos6502CpuState()
    state.unpack_status(0xFF)
    assert state.p == 0xFF & ~R_FLAG
    assert state.pack_status() == 0xFF

# @intent:test_case_accessor 名前付きアクセサが対応するビットだけを操作することを検証します。
@pytest.mark.parametrize("name,bit", [
    ("flag_c", C_FLAG), ("flag_z", Z_FLAG), ("flag_i", I_FLAG), ("flag_d", D_FLAG),
    ("flag_b", B_FLAG), ("flag_v", V_FLAG), ("flag_n", N_FLAG),
])
def test_flag_accessors(name, bit):
    state = Mos6502CpuState()
    setattr(state, name, True)
    assert state.p == bit
    assert getattr(state, name) is True
    setattr(state, name, False)
    assert state.p == 0
    assert getattr(state, name) is False

def test_update_zn():
    state = Mos6502CpuState()
    state.update_zn(0x00)
    assert state.flag_z and not state.flag_n
    state.update_zn(0x80)
    assert not state.flag_z and state.flag_n
    state.update_zn(0x100)  # 8bitに切り詰めて判定
    assert state.flag_z and not state.flag_n

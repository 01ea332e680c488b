# tests/arch/mos6502/test_mos6502_cpu.py
"""
Mos6502Cpu の結合テスト（リセット、プログラム実行、サイクル計上、停止）。
"""
import logging

import pytest
from retro_core_cpu.common.types import CpuOptions, StepStatus
from retro_core_cpu.transport.bus import Bus, RAM
from retro_core_cpu.arch.mos6502.cpu import Mos6502Cpu
from retro_core_cpu.arch.mos6502.state import Mos6502CpuState

@pytest.fixture
def cpu():
    bus = Bus()
    bus.register_device(0x0000, 0xFFFF, RAM(0x10000))
    return Mos6502Cpu(bus)

def _load(cpu, addr, program):
    cpu.bus.load(addr, bytes(program))
    cpu.get_state().pc = addr

# @intent:test_case_init 生成直後の状態（リセット前）を検証します。
def test_initial_state(cpu):
    state = cpu.get_state()
    assert isinstance(state, Mos6502CpuState)
    assert (state.a, state.x, state.y, state.pc, state.sp) == (0, 0, 0, 0, 0xFF)
    assert cpu.total_cycles == 0

def test_default_bus_is_flat_ram():
    cpu = Mos6502Cpu()
    cpu.bus.write(0xFFFF, 0x12)
    assert cpu.bus.read(0xFFFF) == 0x12

# @intent:test_case_reset リセットシーケンス: ベクタからPC、I=1、S=$FF、7サイクル。
def test_reset(cpu):
    cpu.bus.load(0xFFFC, bytes([0x00, 0x06]))
    state = cpu.get_state()
    state.a = 0x12
    state.sp = 0x10
    state.flag_c = True

    cpu.reset()

    state = cpu.get_state()
    assert state.pc == 0x0600
    assert state.sp == 0xFF
    assert state.a == 0
    assert state.flag_i
    assert not state.flag_c
    assert cpu.cycles == 7
    assert cpu.total_cycles == 7

    cpu.reset()
    assert cpu.total_cycles == 14

# @intent:test_case_reset ホストが保持する状態オブジェクトはリセットとステップを跨いでCPUと同期し続ける。
def test_state_handle_survives_reset(cpu):
    cpu.bus.load(0xFFFC, bytes([0x00, 0x06]))
    cpu.bus.load(0x0600, bytes([0xA9, 0x42, 0xA2, 0x00]))
    state = cpu.get_state()

    cpu.reset()
    cpu.step()

    assert state is cpu.get_state()
    assert state.a == 0x42
    assert state.pc == 0x0602

    state.pc = 0x0600
    state.a = 0x00
    cpu.step()
    assert cpu.get_state().a == 0x42
    assert cpu.get_register_map()["PC"] == 0x0602

# @intent:test_case LDA #$42 を $0600 から1ステップ実行する。
def test_lda_immediate_single_step(cpu):
    _load(cpu, 0x0600, [0xA9, 0x42])

    cycles = cpu.step()

    state = cpu.get_state()
    assert state.a == 0x42
    assert not state.flag_z
    assert not state.flag_n
    assert state.pc == 0x0602
    assert cycles == 2
    assert cpu.cycles == 2
    assert cpu.opcode == 0xA9
    assert cpu.status is StepStatus.EXECUTED

# @intent:test_case LDA #$05; ADC #$03; STA $0200; BRK をリセットベクタ経由で実行する。
def test_small_program_until_brk(cpu):
    cpu.bus.load(0x0600, bytes([0xA9, 0x05, 0x69, 0x03, 0x8D, 0x00, 0x02, 0x00]))
    cpu.bus.load(0xFFFC, bytes([0x00, 0x06]))
    cpu.bus.load(0xFFFE, bytes([0x00, 0x90]))
    cpu.reset()

    for _ in range(10):
        cpu.step()
        if cpu.opcode == 0x00:
            break

    assert cpu.opcode == 0x00
    assert cpu.bus.read(0x0200) == 8
    assert cpu.get_state().pc == 0x9000
    assert cpu.total_cycles == 7 + 2 + 2 + 4 + 7

# @intent:test_case abs,X 読み出しはページ交差で+1、同じアドレスへのストアは常に固定。
@pytest.mark.parametrize("x,read_cycles", [(0x01, 4), (0x20, 5)])
def test_absolute_x_page_cross_penalty(cpu, x, read_cycles):
    cpu.get_state().x = x
    _load(cpu, 0x0200, [0xBD, 0xF0, 0x12])  # LDA $12F0,X
    assert cpu.step() == read_cycles

    _load(cpu, 0x0200, [0x9D, 0xF0, 0x12])  # STA $12F0,X
    assert cpu.step() == 5

@pytest.mark.parametrize("y,cycles", [(0x01, 5), (0x20, 6)])
def test_indirect_indexed_page_cross_penalty(cpu, y, cycles):
    cpu.bus.load(0x0040, bytes([0xF0, 0x12]))
    cpu.get_state().y = y
    _load(cpu, 0x0200, [0xB1, 0x40])  # LDA ($40),Y
    assert cpu.step() == cycles

# @intent:test_case RMW命令はページ交差しても固定サイクル。
def test_rmw_absolute_x_fixed_cycles(cpu):
    cpu.get_state().x = 0x20
    _load(cpu, 0x0200, [0xFE, 0xF0, 0x12])  # INC $12F0,X
    assert cpu.step() == 7
    assert cpu.bus.read(0x1310) == 1

# @intent:test_case JMP ($xxFF) の上位バイト取得元がオプションで変わる。
@pytest.mark.parametrize("emulate,target", [(True, 0x4080), (False, 0x5080)])
def test_indirect_jmp_option(emulate, target):
    cpu = Mos6502Cpu(Bus.with_ram(), options=CpuOptions(emulate_indirect_jmp_bug=emulate))
    cpu.bus.write(0x30FF, 0x80)
    cpu.bus.write(0x3000, 0x40)
    cpu.bus.write(0x3100, 0x50)
    _load(cpu, 0x0200, [0x6C, 0xFF, 0x30])
    assert cpu.step() == 5
    assert cpu.get_state().pc == target

# @intent:test_case JAMオペコード: PCは巻き戻り、HALTEDを返し、警告とコールバックで通知する。
def test_kil_halts(caplog):
    halts = []
    cpu = Mos6502Cpu(Bus.with_ram(), on_halt=lambda pc, op: halts.append((pc, op)))
    _load(cpu, 0x0300, [0x02])

    with caplog.at_level(logging.WARNING, logger="retro_core_cpu.arch.mos6502.cpu"):
        cycles = cpu.step()

    assert cpu.status is StepStatus.HALTED
    assert cpu.get_state().pc == 0x0300
    assert cycles == 2
    assert halts == [(0x0300, 0x02)]
    assert any("halted" in r.message for r in caplog.records)

    cpu.step()
    assert cpu.status is StepStatus.HALTED
    assert cpu.get_state().pc == 0x0300
    assert len(halts) == 2

@pytest.mark.parametrize("opcode", [0x12, 0x22, 0x32, 0x42, 0x52, 0x62, 0x72, 0x92, 0xB2, 0xD2, 0xF2,
                                    0x93, 0x9B, 0x9F, 0xAB, 0xBB])
def test_all_halt_opcodes(cpu, opcode):
    _load(cpu, 0x0300, [opcode, 0x00, 0x00])
    cpu.step()
    assert cpu.status is StepStatus.HALTED
    assert cpu.cycles == 2

    assert cpu.get_state().pc == 0x0300

# @intent:test_case リセットで停止状態が解除される。
def test_reset_clears_halt(cpu):
    _load(cpu, 0x0300, [0x02])
    cpu.step()
    cpu.reset()
    assert cpu.status is StepStatus.EXECUTED

def test_run_cycles(cpu):
    _load(cpu, 0x0200, [0xEA] * 10)  # NOP x10
    assert cpu.run_cycles(7) == 8
    assert cpu.get_state().pc == 0x0204

# @intent:test_case 累計サイクルは単調非減少。
def test_total_cycles_monotonic(cpu):
    _load(cpu, 0x0200, [0xA2, 0x05, 0xCA, 0xD0, 0xFD, 0x02])  # LDX #5; loop: DEX; BNE loop; KIL
    last = cpu.total_cycles
    while cpu.status is not StepStatus.HALTED:
        cpu.step()
        assert cpu.total_cycles >= last
        last = cpu.total_cycles
    assert cpu.get_state().x == 0

def test_register_and_flag_maps(cpu):
    state = cpu.get_state()
    state.a, state.x, state.y, state.pc = 0x11, 0x22, 0x33, 0x4455
    state.flag_n = True
    regs = cpu.get_register_map()
    assert regs == {"A": 0x11, "X": 0x22, "Y": 0x33, "PC": 0x4455, "S": 0xFF, "P": 0xA0}
    flags = cpu.get_flag_state()
    assert flags["N"] is True
    assert flags["C"] is False
    assert [r.name for r in cpu.get_register_layout()] == ["A", "X", "Y", "P", "S", "PC"]

def test_disassemble_via_cpu(cpu):
    cpu.bus.load(0x0600, bytes([0xA9, 0x42, 0x8D, 0x00, 0x02]))
    assert cpu.disassemble(0x0600, 5) == [
        (0x0600, "A9 42", "LDA #$42"),
        (0x0602, "8D 00 02", "STA $0200"),
    ]

# @intent:test_case 複数インスタンスは状態を共有しない。
def test_independent_instances():
    a = Mos6502Cpu()
    b = Mos6502Cpu()
    _load(a, 0x0200, [0xA9, 0x01])
    a.step()
    assert a.get_state().a == 1
    assert b.get_state().a == 0
    assert b.bus.read(0x0200) == 0

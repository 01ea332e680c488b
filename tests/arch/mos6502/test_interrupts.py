# tests/arch/mos6502/test_interrupts.py
"""
NMI / IRQ の受付シーケンスのテスト。
"""
import pytest
from retro_core_cpu.common.types import StepStatus
from retro_core_cpu.transport.bus import Bus
from retro_core_cpu.arch.mos6502.cpu import Mos6502Cpu

NMI_HANDLER = 0x9000
IRQ_HANDLER = 0xA000

@pytest.fixture
def cpu():
    cpu = Mos6502Cpu(Bus.with_ram())
    cpu.bus.load(0xFFFA, bytes([0x00, 0x90, 0x00, 0x06, 0x00, 0xA0]))
    cpu.bus.load(0x0600, bytes([0xEA] * 8))           # NOP sled
    cpu.bus.load(NMI_HANDLER, bytes([0xEA, 0x40]))    # NOP; RTI
    cpu.bus.load(IRQ_HANDLER, bytes([0xEA, 0x40]))    # NOP; RTI
    cpu.reset()
    return cpu

# @intent:test_case NMI: 次の step() でオペコードの代わりに受付シーケンスを実行する（B=0で積む）。
def test_nmi_entry(cpu):
    state = cpu.get_state()
    state.flag_c = True
    cpu.trigger_nmi()

    cycles = cpu.step()

    assert cycles == 7
    assert cpu.status is StepStatus.INTERRUPTED
    assert state.pc == NMI_HANDLER
    assert state.flag_i
    assert state.sp == 0xFC
    assert cpu.bus.read(0x01FF) == 0x06
    assert cpu.bus.read(0x01FE) == 0x00
    pushed = cpu.bus.read(0x01FD)
    assert pushed & 0x10 == 0   # B
    assert pushed & 0x20        # bit 5
    assert pushed & 0x01        # C
    assert not cpu.nmi_pending

# @intent:test_case 2回目の step() はハンドラの最初の命令を実行し、再突入しない。
def test_nmi_not_reentered(cpu):
    cpu.trigger_nmi()
    cpu.step()
    cpu.step()
    assert cpu.status is StepStatus.EXECUTED
    assert cpu.opcode == 0xEA
    assert cpu.get_state().pc == NMI_HANDLER + 1
    assert cpu.get_state().sp == 0xFC

# @intent:test_case 受付前の複数回のトリガは1回にまとまる。
def test_nmi_triggers_collapse(cpu):
    cpu.trigger_nmi()
    cpu.trigger_nmi()
    cpu.step()
    cpu.step()
    cpu.step()  # RTI
    assert cpu.get_state().pc == 0x0600
    cpu.step()
    assert cpu.status is StepStatus.EXECUTED
    assert cpu.get_state().pc == 0x0601

def test_nmi_ignores_interrupt_disable(cpu):
    assert cpu.get_state().flag_i
    cpu.trigger_nmi()
    cpu.step()
    assert cpu.get_state().pc == NMI_HANDLER

def test_rti_returns_from_nmi(cpu):
    state = cpu.get_state()
    state.flag_i = False
    cpu.trigger_nmi()
    cpu.step()
    cpu.step()  # NOP
    cpu.step()  # RTI
    assert state.pc == 0x0600
    assert not state.flag_i
    assert state.sp == 0xFF

def test_reset_discards_pending_nmi(cpu):
    cpu.trigger_nmi()
    cpu.reset()
    cpu.step()
    assert cpu.status is StepStatus.EXECUTED
    assert cpu.get_state().pc == 0x0601

# @intent:test_case IRQ は I=1 の間は受け付けられない。
def test_irq_masked(cpu):
    cpu.set_irq_line(True)
    cpu.step()
    assert cpu.status is StepStatus.EXECUTED
    assert cpu.get_state().pc == 0x0601

def test_irq_serviced_when_enabled(cpu):
    state = cpu.get_state()
    state.flag_i = False
    cpu.set_irq_line(True)

    assert cpu.step() == 7
    assert cpu.status is StepStatus.INTERRUPTED
    assert state.pc == IRQ_HANDLER
    assert state.flag_i
    assert cpu.bus.read(0x01FD) & 0x10 == 0

    # レベル入力: ハンドラ内ではI=1なので再突入しない
    cpu.step()
    assert cpu.status is StepStatus.EXECUTED

    cpu.set_irq_line(False)
    cpu.step()  # RTI
    assert state.pc == 0x0600
    assert not state.flag_i
    cpu.step()
    assert cpu.status is StepStatus.EXECUTED

def test_nmi_has_priority_over_irq(cpu):
    cpu.get_state().flag_i = False
    cpu.set_irq_line(True)
    cpu.trigger_nmi()
    cpu.step()
    assert cpu.get_state().pc == NMI_HANDLER
    assert cpu.irq_line

# src/retro_core_cpu/config/builder.py
"""
SystemConfig から Bus とデバイス、CPUを組み立てる。
"""
import logging
from typing import Tuple

from retro_core_cpu.common.types import CpuOptions
from retro_core_cpu.transport.bus import Bus, RAM, ROM, RAM_SIZES_KB
from retro_core_cpu.arch.mos6502.cpu import Mos6502Cpu
from .models import SystemConfig, CpuInitialState

logger = logging.getLogger(__name__)

SUPPORTED_ARCHITECTURES = ("MOS6502",)

# @intent:responsibility システム構成（Config）に基づいて、Bus、Device、CPUを生成・接続し、初期状態を適用します。
class SystemBuilder:
    def build_system(self, config: SystemConfig) -> Tuple[Mos6502Cpu, Bus]:
        if config.architecture not in SUPPORTED_ARCHITECTURES:
            raise ValueError(f"Unsupported architecture: {config.architecture}")

        bus = self.build_bus(config)
        options = CpuOptions(emulate_indirect_jmp_bug=config.cpu.emulate_indirect_jmp_bug)
        cpu = Mos6502Cpu(bus, options=options)

        # 初期状態の適用
        self.apply_initial_state(cpu, config.initial_state)

        return cpu, bus

    # @intent:responsibility メモリマップからBusを構築する。マップが空ならフラットRAMを使う。
    def build_bus(self, config: SystemConfig) -> Bus:
        if not config.memory_map:
            size_kb = config.ram_size_kb if config.ram_size_kb is not None else 64
            if size_kb not in RAM_SIZES_KB:
                raise ValueError(
                    f"Invalid RAM size: {size_kb}KB (expected one of {sorted(RAM_SIZES_KB)})"
                )
            return Bus.with_ram(RAM_SIZES_KB[size_kb])

        bus = Bus()
        for region in config.memory_map:
            size = region.end - region.start + 1

            if region.type == "RAM":
                device = RAM(size)
            elif region.type == "ROM":
                device = ROM(size)
            else:
                logger.warning(
                    "Unknown device type '%s' for %s range %04X-%04X, defaulting to RAM",
                    region.type, region.label or "unnamed", region.start, region.end,
                )
                device = RAM(size)

            bus.register_device(region.start, region.end, device)
        return bus

    # @intent:responsibility Configで定義された初期状態をCPUに適用します。
    def apply_initial_state(self, cpu: Mos6502Cpu, config_state: CpuInitialState) -> None:
        """
        CPUをリセットし、Configから指定された初期値を適用します。
        use_reset_vector が真の場合はリセット直後の状態をそのまま使います。
        """
        cpu.reset()

        if config_state.use_reset_vector:
            return

        state = cpu.get_state()
        state.pc = config_state.pc
        state.sp = config_state.sp
        for reg_name, value in config_state.registers.items():
            if reg_name == "p":
                state.unpack_status(value)
            elif reg_name in state.REGISTER_MASKS:
                setattr(state, reg_name, value)
            else:
                logger.warning("Unknown register '%s' in initial_state, ignored", reg_name)

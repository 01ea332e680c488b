# src/retro_core_cpu/config/models.py
"""
システム構成のデータモデル。
YAMLから読み込まれた値は ConfigLoader によってこれらのデータクラスに変換される。
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

@dataclass
class MemoryRegion:
    start: int
    end: int
    type: str = "RAM"  # "RAM", "ROM"
    label: str = ""

@dataclass
class CpuConfig:
    emulate_indirect_jmp_bug: bool = True

@dataclass
class CpuInitialState:
    pc: int = 0x0000
    sp: int = 0xFF
    use_reset_vector: bool = False  # True の場合、PCはリセットベクタから取る
    registers: Dict[str, int] = field(default_factory=dict)

@dataclass
class SystemConfig:
    architecture: str = "MOS6502"
    memory_map: List[MemoryRegion] = field(default_factory=list)
    # memory_map が空のときに使うフラットRAMのサイズ (KB)
    ram_size_kb: Optional[int] = None
    cpu: CpuConfig = field(default_factory=CpuConfig)
    initial_state: CpuInitialState = field(default_factory=CpuInitialState)

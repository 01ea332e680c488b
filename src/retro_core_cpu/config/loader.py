# src/retro_core_cpu/config/loader.py
"""
YAML形式のシステム構成ファイルを読み込み、SystemConfig に変換する。
"""
from typing import Any, Dict

import yaml

from .models import SystemConfig, MemoryRegion, CpuConfig, CpuInitialState

class ConfigLoader:
    def load_from_file(self, path: str) -> SystemConfig:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        return self._parse_config(data or {})

    def load_from_string(self, text: str) -> SystemConfig:
        return self._parse_config(yaml.safe_load(text) or {})

    def _parse_config(self, data: Dict[str, Any]) -> SystemConfig:
        arch = str(data.get("architecture", "MOS6502")).upper()

        # Parse Memory Map
        memory_map = []
        for region_data in data.get("memory_map", []):
            memory_map.append(MemoryRegion(
                start=self._parse_int(region_data.get("start")),
                end=self._parse_int(region_data.get("end")),
                type=str(region_data.get("type", "RAM")).upper(),
                label=region_data.get("label", ""),
            ))

        ram_size_kb = data.get("ram_size_kb")
        if ram_size_kb is not None:
            ram_size_kb = self._parse_int(ram_size_kb)

        cpu_data = data.get("cpu", {}) or {}
        cpu = CpuConfig(
            emulate_indirect_jmp_bug=bool(cpu_data.get("emulate_indirect_jmp_bug", True)),
        )

        # Parse Initial State
        initial_state_data = data.get("initial_state", {}) or {}
        registers = {
            str(name).lower(): self._parse_int(value)
            for name, value in (initial_state_data.get("registers", {}) or {}).items()
        }
        initial_state = CpuInitialState(
            pc=self._parse_int(initial_state_data.get("pc", 0)),
            sp=self._parse_int(initial_state_data.get("sp", 0xFF)),
            use_reset_vector=bool(initial_state_data.get("use_reset_vector", False)),
            registers=registers,
        )

        return SystemConfig(
            architecture=arch,
            memory_map=memory_map,
            ram_size_kb=ram_size_kb,
            cpu=cpu,
            initial_state=initial_state,
        )

    # @intent:responsibility 整数値の解釈。10進、"0x" 付き16進、"$" 付き16進を受け付ける。
    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            text = value.strip()
            if text.lower().startswith("0x"):
                return int(text, 16)
            if text.startswith("$"):
                return int(text[1:], 16)
            return int(text)
        raise ValueError(f"Invalid integer format: {value}")

# src/retro_core_cpu/arch/mos6502/instructions/__init__.py
"""
MOS 6502 命令セット実装パッケージ。
"""
from .base import AddressingMode, AddressingResult, RESOLVERS
from .maps import (
    OpcodeEntry, OPCODE_TABLE, CYCLE_TABLE, PAGE_CROSS_OPCODES,
    decode_opcode, execute_instruction,
)

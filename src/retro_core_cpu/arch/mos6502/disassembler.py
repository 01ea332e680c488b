# src/retro_core_cpu/arch/mos6502/disassembler.py
"""
MOS 6502 逆アセンブラ。
"""
from typing import List, Tuple

from retro_core_cpu.transport.bus import Bus
from retro_core_cpu.arch.mos6502.instructions.base import AddressingMode
from retro_core_cpu.arch.mos6502.instructions.maps import OPCODE_TABLE

# Operand format per addressing mode. {0} is the raw operand value.
_OPERAND_FORMATS = {
    AddressingMode.IMPLIED: "",
    AddressingMode.ACCUMULATOR: "A",
    AddressingMode.IMMEDIATE: "#${0:02X}",
    AddressingMode.ZERO_PAGE: "${0:02X}",
    AddressingMode.ZERO_PAGE_X: "${0:02X},X",
    AddressingMode.ZERO_PAGE_Y: "${0:02X},Y",
    AddressingMode.ABSOLUTE: "${0:04X}",
    AddressingMode.ABSOLUTE_X: "${0:04X},X",
    AddressingMode.ABSOLUTE_Y: "${0:04X},Y",
    AddressingMode.INDIRECT: "(${0:04X})",
    AddressingMode.INDEXED_INDIRECT: "(${0:02X},X)",
    AddressingMode.INDIRECT_INDEXED: "(${0:02X}),Y",
}

# @intent:responsibility 1命令分を逆アセンブルし、(HEX文字列, ニーモニック, 命令長) を返す。
# @intent:note バスを読むだけでCPU状態には触れない。分岐先は命令アドレスから計算した絶対アドレスで表示する。
def disassemble_one(bus: Bus, addr: int) -> Tuple[str, str, int]:
    addr &= 0xFFFF
    entry = OPCODE_TABLE[bus.read(addr)]
    length = entry.length
    raw = [bus.read((addr + i) & 0xFFFF) for i in range(length)]

    if entry.mode.operand_length == 2:
        value = raw[1] | (raw[2] << 8)
    elif entry.mode.operand_length == 1:
        value = raw[1]
    else:
        value = 0

    if entry.mode is AddressingMode.RELATIVE:
        offset = value - 0x100 if value >= 0x80 else value
        operand = f"${(addr + 2 + offset) & 0xFFFF:04X}"
    else:
        operand = _OPERAND_FORMATS[entry.mode].format(value)

    hex_str = " ".join(f"{b:02X}" for b in raw)
    return hex_str, f"{entry.mnemonic} {operand}".strip(), length

# @intent:responsibility 指定されたメモリ範囲を逆アセンブルする。
def disassemble(bus: Bus, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
    """
    メモリを解析し、(アドレス, HEX, ニーモニック) のリストを返す。
    範囲の末尾で命令が途切れる場合も、その命令は最後まで読んで1行として出力する。
    """
    results = []
    current_addr = start_addr
    end_addr = start_addr + length

    while current_addr < end_addr:
        addr = current_addr & 0xFFFF
        hex_str, text, instr_len = disassemble_one(bus, addr)
        results.append((addr, hex_str, text))
        current_addr += instr_len

    return results

# retro_core_cpu/core/state.py
"""
Core Layer (CPU状態)

このモジュールは、CPUの基本的な状態（レジスタ群）を保持するデータ構造を定義します。
"""
from dataclasses import dataclass, fields
from typing import ClassVar, Dict

# @intent:responsibility CPUのレジスタ状態を保持します。アーキテクチャ固有のレジスタはこれを拡張します。
@dataclass
class CpuState:
    """
    CPUのレジスタ状態を保持するデータクラス。
    REGISTER_MASKS に登録されたフィールドは代入のたびにビット幅でマスクされるため、
    どの観測点でも宣言されたビット幅を超える値は現れません。
    """
    pc: int = 0x0000  # Program Counter
    sp: int = 0x0000  # Stack Pointer

    REGISTER_MASKS: ClassVar[Dict[str, int]] = {"pc": 0xFFFF, "sp": 0xFFFF}

    # @intent:responsibility レジスタへの代入をビット幅でマスクします。
    def __setattr__(self, name: str, value) -> None:
        mask = self.REGISTER_MASKS.get(name)
        if mask is not None:
            value = int(value) & mask
        super().__setattr__(name, value)

    # @intent:responsibility 別の状態オブジェクトの全フィールドをこのオブジェクトへ写します。
    # @intent:note オブジェクトの同一性は保たれるため、get_state() で得た参照はリセット後も有効です。
    def assign_from(self, other: "CpuState") -> None:
        for f in fields(self):
            setattr(self, f.name, getattr(other, f.name))

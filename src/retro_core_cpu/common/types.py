"""
共通の型定義を提供するモジュール。
プロジェクト全体で使用される汎用的な型エイリアスなどを定義します。
"""
from enum import Enum
from typing import NamedTuple

# @intent:data_structure 単一のレジスタの表示定義。検査用APIがレジスタ幅を公開するために使用される。
class RegisterInfo(NamedTuple):
    name: str
    width: int  # ビット幅 (8 or 16)

# @intent:data_structure CPUコアの動作オプション。インスタンス生成時に固定される。
class CpuOptions(NamedTuple):
    # JMP ($xxFF) が同一ページの先頭から上位バイトを読む実機の不具合を再現するか
    emulate_indirect_jmp_bug: bool = True

# @intent:responsibility step() 1回分の結果種別を表します。
# @intent:note JAMによる停止は例外ではなくこの値で呼び出し側に伝わる。
class StepStatus(Enum):
    EXECUTED = "EXECUTED"        # オペコードを1つ実行した
    INTERRUPTED = "INTERRUPTED"  # オペコードの代わりに割り込み受付シーケンスを実行した
    HALTED = "HALTED"            # JAMオペコードによりPCが巻き戻された

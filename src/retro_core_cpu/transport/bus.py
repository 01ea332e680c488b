# retro_core_cpu/transport/bus.py
"""
Transport Layer (共通バス)

このモジュールは、16bitのメモリアドレス空間を抽象化し、
読み書きアクセスを適切なデバイスに委譲する責務を負います。
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

# @intent:constant デバイスが割り当てられていないアドレスを読んだときの値（未デコードのバス）。
OPEN_BUS_VALUE = 0xFF

ADDRESS_MASK = 0xFFFF

# @intent:constant バッキングストアとして選択可能なRAMサイズ(KB)とバイト数の対応表。
RAM_SIZES_KB = {
    4: 0x1000,
    8: 0x2000,
    16: 0x4000,
    32: 0x8000,
    48: 0xC000,
    64: 0x10000,
}

# @intent:responsibility バスの抽象デバイスインターフェースを定義します。
class Device(ABC):
    """
    バスに接続されるデバイスの抽象基底クラス。
    全てのデバイスはreadとwriteのインターフェースを実装する必要があります。
    """
    # @intent:responsibility 指定されたアドレスから8bitのデータを読み出す責務を負います。
    # @intent:pre-condition アドレスはデバイス内でのオフセットです。
    @abstractmethod
    def read(self, address: int) -> int:
        """
        指定されたオフセットから8bitのデータを読み出します。
        """
        pass

    # @intent:responsibility 指定されたアドレスに8bitのデータを書き込みます。
    @abstractmethod
    def write(self, address: int, data: int) -> None:
        """
        指定されたオフセットに8bitのデータを書き込みます。
        """
        pass

    # @intent:responsibility ローダー用の書き込み。デフォルトは通常の書き込みと同じ。
    def load_data(self, address: int, data: int) -> None:
        self.write(address, data)

# @intent:responsibility 基本的なRAMデバイスの機能を提供します。
class RAM(Device):
    """
    テストおよび基本的なメモリ操作のためのRAMデバイス。
    """
    # @intent:pre-condition sizeは正の整数である必要があります。
    def __init__(self, size: int):
        if not isinstance(size, int) or size <= 0:
            raise ValueError("RAM size must be a positive integer.")
        self._memory = bytearray(size)
        self._size = size

    def read(self, address: int) -> int:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address} out of bounds for RAM of size {self._size}.")
        return self._memory[address]

    def write(self, address: int, data: int) -> None:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address} out of bounds for RAM of size {self._size}.")
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        self._memory[address] = data

    # @intent:responsibility RAMのサイズを返します。
    def get_size(self) -> int:
        return self._size

# @intent:responsibility 読み込み専用メモリ(ROM)の機能を提供します。
class ROM(RAM):
    """
    読み込み専用メモリデバイス。
    実行中のプログラムからの書き込みは無視されます。
    初期化は load_data メソッド（Bus.load 経由）で行います。
    """
    # @intent:note 実行中のプログラムからの書き込みは例外にせず無視する。
    def write(self, address: int, data: int) -> None:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address} out of bounds for ROM of size {self._size}.")
        # Intentional: ROM writes are ignored as per hardware behavior.
        pass

    # @intent:responsibility ROMの内容を初期化するためのバックドアメソッドです。
    def load_data(self, address: int, data: int) -> None:
        super().write(address, data)

# @intent:responsibility 16bitアドレス空間を管理し、デバイスへのアクセスをディスパッチする共通バス。
class Bus:
    """
    メモリアドレス空間を管理し、デバイスへのアクセスをディスパッチする共通バス。
    アドレスは常に16bitに、データは8bitにマスクされます。
    どのデバイスにも割り当てられていないアドレスの読み出しは OPEN_BUS_VALUE を返し、
    書き込みは何も起こしません（実機の未デコード領域と同じ振る舞い）。
    """
    def __init__(self):
        # メモリマップ: (start_address, end_address, device) のタプルリスト
        self._memory_map: List[Tuple[int, int, Device]] = []

    # @intent:responsibility 先頭から指定サイズのRAMを1枚だけ持つバスを生成します。
    @classmethod
    def with_ram(cls, size: int = 0x10000) -> "Bus":
        if not isinstance(size, int) or not 0 < size <= 0x10000:
            raise ValueError(f"RAM size must be between 1 and 65536 bytes, got {size!r}.")
        bus = cls()
        bus.register_device(0x0000, size - 1, RAM(size))
        return bus

    # @intent:responsibility 指定されたアドレス範囲にデバイスを登録します。
    # @intent:rationale アドレス範囲の重複チェックは行いません。先に登録されたデバイスが優先されます。
    def register_device(self, start_address: int, end_address: int, device: Device) -> None:
        """
        指定されたアドレス範囲にデバイスを登録します。
        """
        if not (0 <= start_address <= end_address <= ADDRESS_MASK):
            raise ValueError("Invalid address range: start_address must be <= end_address and within $0000-$FFFF.")
        if not isinstance(device, Device):
            raise TypeError("Device must be an instance of a class derived from Device.")

        if isinstance(device, RAM):
            expected_size = end_address - start_address + 1
            if device.get_size() != expected_size:
                raise ValueError(
                    f"Registered {type(device).__name__} device size ({device.get_size()} bytes) does not match "
                    f"the specified address range size ({expected_size} bytes)."
                )

        self._memory_map.append((start_address, end_address, device))

    # @intent:responsibility 指定されたアドレスに対応するデバイスとオフセットを検索します。
    # @intent:post-condition 見つからなかった場合は (None, 0) を返します。
    def _find_device(self, address: int) -> Tuple[Optional[Device], int]:
        for start, end, device in self._memory_map:
            if start <= address <= end:
                return device, address - start
        return None, 0

    # @intent:responsibility 指定されたアドレスから8bitのデータを読み出します。
    def read(self, address: int) -> int:
        device, offset = self._find_device(address & ADDRESS_MASK)
        if device is None:
            return OPEN_BUS_VALUE
        return device.read(offset) & 0xFF

    # @intent:responsibility 指定されたアドレスに8bitのデータを書き込みます。
    def write(self, address: int, data: int) -> None:
        device, offset = self._find_device(address & ADDRESS_MASK)
        if device is None:
            return
        device.write(offset, data & 0xFF)

    # @intent:responsibility ローダー用の書き込み。ROMにも書き込める。
    def load(self, address: int, data: bytes) -> None:
        """
        address から data を順に書き込みます。アドレスは16bitで折り返します。
        """
        for i, value in enumerate(data):
            device, offset = self._find_device((address + i) & ADDRESS_MASK)
            if device is not None:
                device.load_data(offset, value & 0xFF)

    # @intent:responsibility 16bit値をリトルエンディアンで読み出すヘルパー。
    def read_word(self, address: int) -> int:
        lo = self.read(address)
        hi = self.read((address + 1) & ADDRESS_MASK)
        return (hi << 8) | lo

# tests/transport/test_bus.py
"""
retro_core_cpu.transport.busモジュールの単体テスト。
"""
import pytest
from retro_core_cpu.transport.bus import Bus, Device, RAM, ROM, RAM_SIZES_KB, OPEN_BUS_VALUE

# @intent:test_suite 共通バスとデバイスの基本的な機能とエラーハンドリングを検証します。

class TestRAM:
    """
    RAMデバイスの単体テスト。
    """
    # @intent:test_case_init RAMクラスが正しいサイズで初期化されることを検証します。
    def test_ram_init_valid_size(self):
        ram = RAM(16)
        assert ram.get_size() == 16
        assert all(ram.read(i) == 0 for i in range(16)) # 全て0で初期化される

    # @intent:test_case_init 無効なサイズでRAMを初期化するとValueErrorが発生することを検証します。
    def test_ram_init_invalid_size(self):
        with pytest.raises(ValueError, match="RAM size must be a positive integer."):
            RAM(0)
        with pytest.raises(ValueError, match="RAM size must be a positive integer."):
            RAM(-1)
        with pytest.raises(ValueError, match="RAM size must be a positive integer."):
            RAM(1.5) # float

    # @intent:test_case_oob 境界外アドレスへのアクセス時にIndexErrorが発生することを検証します。
    def test_ram_read_write_out_of_bounds(self):
        ram = RAM(4)
        with pytest.raises(IndexError, match="Address 4 out of bounds for RAM of size 4."):
            ram.read(4)
        with pytest.raises(IndexError, match="Address -1 out of bounds for RAM of size 4."):
            ram.write(-1, 0x00)

    # @intent:test_case_data 無効なデータ（8bitを超過）を書き込もうとするとValueErrorが発生することを検証します。
    def test_ram_write_invalid_data(self):
        ram = RAM(1)
        with pytest.raises(ValueError, match="Data 256 is not an 8-bit value."):
            ram.write(0, 0x100)

class TestROM:
    # @intent:test_case_rom 実行中の書き込みは無視され、load_data による初期化のみ反映されることを検証します。
    def test_rom_write_ignored(self):
        rom = ROM(1024)
        rom.load_data(0, 0xAA)
        rom.write(0, 0xBB)
        assert rom.read(0) == 0xAA

    # @intent:test_case_rom Bus.load はROMにも書き込めることを検証します。
    def test_bus_load_into_rom(self):
        bus = Bus()
        bus.register_device(0xF000, 0xFFFF, ROM(0x1000))
        bus.load(0xFFFC, bytes([0x00, 0xF0]))
        bus.write(0xFFFC, 0x12)
        assert bus.read_word(0xFFFC) == 0xF000

class TestBus:
    """
    Busの単体テスト。
    """
    # @intent:test_case_register デバイスがバスに正しく登録され、アクセスできることを検証します。
    def test_bus_register_and_access_device(self):
        bus = Bus()
        ram1 = RAM(16)
        ram2 = RAM(16)

        bus.register_device(0x0000, 0x000F, ram1) # 0-15
        bus.register_device(0x0010, 0x001F, ram2) # 16-31

        bus.write(0x0005, 0xAA)
        assert bus.read(0x0005) == 0xAA
        assert ram1.read(5) == 0xAA

        bus.write(0x001A, 0xBB)
        assert bus.read(0x001A) == 0xBB
        assert ram2.read(0x0A) == 0xBB # オフセット計算が正しいことを確認

    # @intent:test_case_roundtrip 全アドレスで write した値が read で返ることを検証します。
    def test_bus_round_trip_every_address(self):
        bus = Bus.with_ram()
        for addr in range(0, 0x10000, 0x101):
            bus.write(addr, addr & 0xFF)
        for addr in range(0, 0x10000, 0x101):
            assert bus.read(addr) == addr & 0xFF

    # @intent:test_case_mask アドレスは16bit、データは8bitにマスクされることを検証します。
    def test_bus_masks_address_and_data(self):
        bus = Bus.with_ram()
        bus.write(0x10005, 0x1AB)
        assert bus.read(0x0005) == 0xAB
        assert bus.read(0x10005) == 0xAB

    # @intent:test_case_unmapped 未割り当てアドレスの読み出しは$FF、書き込みは無視されることを検証します。
    def test_bus_access_unmapped_address(self):
        bus = Bus()
        bus.register_device(0x100, 0x10F, RAM(16))

        assert bus.read(0x0000) == OPEN_BUS_VALUE
        bus.write(0x0110, 0xCC) # 例外にならない
        assert bus.read(0x0110) == 0xFF

    # @intent:test_case_read_word リトルエンディアンの16bit読み出しと$FFFFでの折り返しを検証します。
    def test_bus_read_word(self):
        bus = Bus.with_ram()
        bus.write(0x1234, 0xCD)
        bus.write(0x1235, 0xAB)
        assert bus.read_word(0x1234) == 0xABCD

        bus.write(0xFFFF, 0x34)
        bus.write(0x0000, 0x12)
        assert bus.read_word(0xFFFF) == 0x1234

    # @intent:test_case_load load は連続したバイト列を書き込み、16bitで折り返すことを検証します。
    def test_bus_load_wraps(self):
        bus = Bus.with_ram()
        bus.load(0xFFFE, bytes([1, 2, 3, 4]))
        assert [bus.read(a) for a in (0xFFFE, 0xFFFF, 0x0000, 0x0001)] == [1, 2, 3, 4]

    # @intent:test_case_invalid_range 無効なアドレス範囲でデバイスを登録しようとするとValueErrorが発生することを検証します。
    def test_bus_register_invalid_address_range(self):
        bus = Bus()
        ram = RAM(16)
        with pytest.raises(ValueError, match="Invalid address range"):
            bus.register_device(0x0010, 0x000F, ram)
        with pytest.raises(ValueError, match="Invalid address range"):
            bus.register_device(-1, 0x000F, ram)
        with pytest.raises(ValueError, match="Invalid address range"):
            bus.register_device(0xFFF0, 0x1000F, RAM(0x10020))

    # @intent:test_case_mismatch_size RAMデバイスのサイズが登録範囲と一致しない場合にValueErrorが発生することを検証します。
    def test_bus_register_ram_size_mismatch(self):
        bus = Bus()
        ram = RAM(10) # 10バイトのRAM
        with pytest.raises(ValueError, match=r"Registered RAM device size \(10 bytes\) does not match the specified address range size \(16 bytes\)."):
            bus.register_device(0x0000, 0x000F, ram) # 16バイトの範囲

    # @intent:test_case_invalid_device 無効な型のオブジェクトをデバイスとして登録しようとするとTypeErrorが発生することを検証します。
    def test_bus_register_invalid_device_type(self):
        bus = Bus()
        class MyClass: pass # Deviceを継承していない
        with pytest.raises(TypeError, match="Device must be an instance of a class derived from Device."):
            bus.register_device(0x0000, 0x000F, MyClass())

    # @intent:test_case_custom_device Deviceを継承した独自デバイス（メモリマップドI/O）を登録できることを検証します。
    def test_bus_custom_device(self):
        class Latch(Device):
            def __init__(self):
                self.value = 0
            def read(self, address):
                return self.value
            def write(self, address, data):
                self.value = data

        bus = Bus.with_ram(0x8000)
        latch = Latch()
        bus.register_device(0xD000, 0xD0FF, latch)
        bus.write(0xD010, 0x5A)
        assert latch.value == 0x5A
        assert bus.read(0xD0FF) == 0x5A

class TestRamSizes:
    # @intent:test_case_ram_size バッキングストアの外側は$FFを返すことを検証します。
    @pytest.mark.parametrize("size_kb", sorted(RAM_SIZES_KB))
    def test_with_ram_sizes(self, size_kb):
        size = RAM_SIZES_KB[size_kb]
        bus = Bus.with_ram(size)
        bus.write(size - 1, 0x42)
        assert bus.read(size - 1) == 0x42
        if size < 0x10000:
            bus.write(size, 0x42)
            assert bus.read(size) == 0xFF

    def test_with_ram_invalid_size(self):
        with pytest.raises(ValueError):
            Bus.with_ram(0)
        with pytest.raises(ValueError):
            Bus.with_ram(0x10001)

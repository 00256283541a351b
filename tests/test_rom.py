"""Tests for the ROM module."""

import pytest
from td4.rom import Rom, ROM_SIZE, halt_word
from td4.errors import ImageError, RomAccessError


class TestRom:
    """ROM module tests."""

    def test_requires_sixteen_words(self):
        """A ROM holds exactly 16 words."""
        with pytest.raises(ImageError):
            Rom([0] * 15)
        with pytest.raises(ImageError):
            Rom([0] * 17)
        assert len(Rom([0] * 16)) == ROM_SIZE

    def test_rejects_non_bytes(self):
        """Words must be 0-255."""
        with pytest.raises(ImageError):
            Rom([0] * 15 + [256])
        with pytest.raises(ImageError):
            Rom([-1] + [0] * 15)

    def test_read(self):
        """Can read back words."""
        rom = Rom(range(16))
        assert rom.read(0) == 0
        assert rom.read(15) == 15

    def test_bounds_check_read(self):
        """Reading out of bounds raises error."""
        rom = Rom([0] * 16)
        with pytest.raises(RomAccessError):
            rom.read(16)
        with pytest.raises(RomAccessError):
            rom.read(-1)

    def test_padding_halts(self):
        """Unused slots are filled with a jump to their own address."""
        rom = Rom.from_program([0x33, 0x40])
        assert rom.read(0) == 0x33
        assert rom.read(1) == 0x40
        for addr in range(2, 16):
            assert rom.read(addr) == 0xF0 | addr
        assert halt_word(5) == 0xF5

    def test_program_too_long(self):
        """More than 16 words does not fit."""
        with pytest.raises(ImageError):
            Rom.from_program([0] * 17)

    def test_from_image(self):
        """Raw binary images are padded like programs."""
        rom = Rom.from_image(b"\x33\x90")
        assert rom.to_bytes()[:2] == b"\x33\x90"
        assert rom == Rom.from_program([0x33, 0x90])

    def test_snapshot(self):
        """Snapshot returns a copy."""
        rom = Rom.from_program([1, 2])
        snap = rom.snapshot()
        snap[0] = 99
        assert rom.read(0) == 1

    def test_hexdump_and_listing(self):
        """Hexdump and listing render every word."""
        rom = Rom.from_program([0x33, 0x80])
        assert rom.hexdump().startswith("33 80 F2")
        listing = rom.listing()
        assert len(listing) == 16
        assert listing[0] == " 0: 00110011  MOV A, 3"
        assert listing[1].endswith("??")
        assert listing[2].endswith("JMP 2")

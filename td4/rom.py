"""Program ROM for the TD4 emulator."""

from typing import Iterable, Sequence
from .errors import ImageError, RomAccessError
from .isa import Opcode, disassemble


ROM_SIZE = 16


def halt_word(addr: int) -> int:
    """JMP to its own address; the padding for unused ROM slots."""
    return (int(Opcode.JMP) << 4) | (addr & 0x0F)


class Rom:
    """Immutable 16-word program memory."""

    def __init__(self, words: Iterable[int]):
        data = tuple(words)
        if len(data) != ROM_SIZE:
            raise ImageError(f"ROM image must be exactly {ROM_SIZE} words, got {len(data)}")
        for addr, word in enumerate(data):
            if not isinstance(word, int) or not 0 <= word <= 0xFF:
                raise ImageError(f"ROM word at address {addr} is not a byte: {word!r}", addr=addr)
        self._data = data

    @classmethod
    def from_program(cls, words: Sequence[int]) -> "Rom":
        """Build a ROM from up to 16 words, padding unused slots with self-jumps."""
        if len(words) > ROM_SIZE:
            raise ImageError(f"Program has {len(words)} words; ROM holds {ROM_SIZE}")
        padded = list(words) + [halt_word(addr) for addr in range(len(words), ROM_SIZE)]
        return cls(padded)

    @classmethod
    def from_image(cls, data: bytes) -> "Rom":
        """Build a ROM from a raw binary image of at most 16 bytes."""
        return cls.from_program(list(data))

    def _check_bounds(self, addr: int) -> None:
        """Check if address is within valid range."""
        if addr < 0 or addr >= ROM_SIZE:
            raise RomAccessError(f"ROM address out of range: {addr}", addr=addr)

    def read(self, addr: int) -> int:
        """Read the instruction word at an address."""
        self._check_bounds(addr)
        return self._data[addr]

    def snapshot(self) -> list[int]:
        """Return a copy of the entire ROM."""
        return list(self._data)

    def to_bytes(self) -> bytes:
        return bytes(self._data)

    def hexdump(self) -> str:
        return " ".join(f"{word:02X}" for word in self._data)

    def listing(self) -> list[str]:
        """Disassembly of every word, one line per address."""
        return [
            f"{addr:2d}: {word:08b}  {disassemble(word)}"
            for addr, word in enumerate(self._data)
        ]

    def __len__(self) -> int:
        return ROM_SIZE

    def __iter__(self):
        return iter(self._data)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Rom):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(self._data)

    def __repr__(self) -> str:
        return f"Rom({self.hexdump()})"

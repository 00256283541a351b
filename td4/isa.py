"""TD4 instruction set: opcode table, decoder and encoder.

Every instruction is one byte. The high nibble selects the operation and
the low nibble carries a 4-bit immediate (or jump target). Register-only
forms ignore the low nibble on execution but keep it for re-encoding.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional
from .errors import DecodeError


WORD_MASK = 0xFF
NIBBLE_MASK = 0x0F


class Opcode(IntEnum):
    """Opcode prefixes (high nibble of the instruction word)."""
    ADD_A = 0b0000
    MOV_AB = 0b0001
    IN_A = 0b0010
    MOV_A = 0b0011
    MOV_BA = 0b0100
    ADD_B = 0b0101
    IN_B = 0b0110
    MOV_B = 0b0111
    OUT_B = 0b1001
    OUT_IM = 0b1011
    JNC = 0b1110
    JMP = 0b1111


# Rendering templates; "{im}" is replaced by the operand.
MNEMONICS: dict[Opcode, str] = {
    Opcode.ADD_A: "ADD A, {im}",
    Opcode.MOV_AB: "MOV A, B",
    Opcode.IN_A: "IN A",
    Opcode.MOV_A: "MOV A, {im}",
    Opcode.MOV_BA: "MOV B, A",
    Opcode.ADD_B: "ADD B, {im}",
    Opcode.IN_B: "IN B",
    Opcode.MOV_B: "MOV B, {im}",
    Opcode.OUT_B: "OUT B",
    Opcode.OUT_IM: "OUT {im}",
    Opcode.JNC: "JNC {im}",
    Opcode.JMP: "JMP {im}",
}

JUMP_OPCODES = frozenset({Opcode.JNC, Opcode.JMP})

_PREFIXES = frozenset(op.value for op in Opcode)

# Total over all 16 prefixes: unused encodings map to None.
DECODE_TABLE: tuple[Optional[Opcode], ...] = tuple(
    Opcode(prefix) if prefix in _PREFIXES else None
    for prefix in range(16)
)


@dataclass(frozen=True)
class Operation:
    """A decoded instruction: opcode plus its 4-bit operand field."""
    opcode: Opcode
    operand: int = 0

    def __post_init__(self):
        if not 0 <= self.operand <= NIBBLE_MASK:
            raise ValueError(f"Operand out of 4-bit range: {self.operand}")

    @property
    def is_jump(self) -> bool:
        return self.opcode in JUMP_OPCODES

    @property
    def text(self) -> str:
        """Canonical assembly rendering, e.g. ``MOV A, 3``."""
        return MNEMONICS[self.opcode].format(im=self.operand)

    @property
    def word(self) -> int:
        return encode(self)

    def __str__(self) -> str:
        return self.text


def decode(word: int) -> Operation:
    """Decode one 8-bit instruction word.

    Raises:
        DecodeError: if the word is not a byte or its prefix is unused
    """
    if not 0 <= word <= WORD_MASK:
        raise DecodeError(f"Instruction word out of byte range: {word}", word=word)
    opcode = DECODE_TABLE[word >> 4]
    if opcode is None:
        raise DecodeError(
            f"Unknown opcode prefix {word >> 4:04b} in word 0x{word:02X}",
            word=word,
        )
    return Operation(opcode, word & NIBBLE_MASK)


def encode(operation: Operation) -> int:
    """Encode an operation back into its instruction word."""
    return (int(operation.opcode) << 4) | (operation.operand & NIBBLE_MASK)


def disassemble(word: int) -> str:
    """Render a word as assembly text, or ``??`` if it does not decode."""
    try:
        return decode(word).text
    except DecodeError:
        return "??"

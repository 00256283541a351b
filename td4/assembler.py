"""Assembler for TD4 mnemonic source.

Accepts both the classic TD4 notation (``mov A 0011``, ``jmp 0000``) and a
comma-separated form (``MOV A, 3``). Four-digit 0/1 literals are binary;
``0b``/``0x`` prefixes are honoured; anything else numeric is decimal.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional
from .errors import (
    ParseError,
    UnknownMnemonic,
    InvalidOperand,
    DuplicateLabel,
    UndefinedLabel,
    ProgramTooLarge,
)
from .isa import Opcode, Operation, encode
from .rom import Rom, ROM_SIZE


logger = logging.getLogger(__name__)

VALID_MNEMONICS = {"ADD", "MOV", "IN", "OUT", "JMP", "JNC", "HLT"}
REGISTERS = {"A", "B"}

_LABEL_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*):\s*(.*)$")
_BINARY_NIBBLE_RE = re.compile(r"^[01]{4}$")
_DECIMAL_LITERAL_RE = re.compile(r"^\d+$")
_OPERAND_SPLIT_RE = re.compile(r"[\s,]+")


@dataclass
class SourceInstruction:
    """Assembled instruction with its source metadata."""
    addr: int
    operation: Operation
    source_line_no: int
    source_text: str
    clean_text: str

    @property
    def word(self) -> int:
        return encode(self.operation)


@dataclass
class AssembledProgram:
    """Result of assembling a program."""
    instructions: dict[int, SourceInstruction]  # addr -> instruction
    labels: dict[str, int]  # label -> addr
    words: list[int]

    @property
    def rom(self) -> Rom:
        return Rom.from_program(self.words)

    def listing(self) -> list[str]:
        lines = []
        label_at = {addr: name for name, addr in self.labels.items()}
        for addr, instr in sorted(self.instructions.items()):
            label = f"{label_at[addr]}:" if addr in label_at else ""
            lines.append(f"{addr:2d}: {instr.word:08b}  {label:<10} {instr.operation.text}")
        return lines


def assemble(text: str) -> AssembledProgram:
    """Assemble TD4 source text.

    Args:
        text: Program source code

    Returns:
        AssembledProgram with instructions, labels and instruction words

    Raises:
        ParseError: (or a subclass) on any malformed line
    """
    lines = text.split("\n")
    labels: dict[str, int] = {}
    statements: list[tuple[int, int, str, str]] = []  # (addr, line_no, body, original)

    # First pass: assign addresses and collect labels
    addr = 0
    for line_no, line in enumerate(lines, 1):
        stripped = _strip_comment(line).strip()
        if not stripped:
            continue

        label_match = _LABEL_RE.match(stripped)
        if label_match:
            label_name = label_match.group(1).upper()
            if label_name in labels:
                raise DuplicateLabel(
                    f"Duplicate label: {label_name}",
                    source_line_no=line_no,
                    source_text=line.strip(),
                )
            labels[label_name] = addr
            stripped = label_match.group(2).strip()
            if not stripped:
                continue

        if addr >= ROM_SIZE:
            raise ProgramTooLarge(
                f"Program exceeds {ROM_SIZE} instructions",
                addr=addr,
                source_line_no=line_no,
                source_text=line.strip(),
            )
        statements.append((addr, line_no, stripped, line.strip()))
        addr += 1

    if not statements:
        raise ParseError("Program contains no instructions")

    # Second pass: parse instructions with all labels known
    instructions: dict[int, SourceInstruction] = {}
    for addr, line_no, body, original_text in statements:
        operation = _parse_instruction(body, addr, line_no, original_text, labels)
        instructions[addr] = SourceInstruction(
            addr=addr,
            operation=operation,
            source_line_no=line_no,
            source_text=original_text,
            clean_text=body,
        )

    words = [encode(instructions[addr].operation) for addr in sorted(instructions)]
    logger.debug("Assembled %d instruction(s), %d label(s)", len(words), len(labels))

    return AssembledProgram(instructions=instructions, labels=labels, words=words)


def _strip_comment(line: str) -> str:
    """Remove ``;`` or ``#`` comment from line."""
    for marker in (";", "#"):
        idx = line.find(marker)
        if idx >= 0:
            line = line[:idx]
    return line


def _parse_instruction(
    text: str,
    addr: int,
    line_no: int,
    original_text: str,
    labels: dict[str, int],
) -> Operation:
    """Parse a single instruction into an Operation."""
    parts = [part for part in _OPERAND_SPLIT_RE.split(text) if part]
    mnemonic = parts[0].upper()
    operands = parts[1:]

    def fail(message: str, error=InvalidOperand):
        return error(message, addr=addr, source_line_no=line_no, source_text=original_text)

    def expect(count: int) -> None:
        if len(operands) != count:
            raise fail(f"{mnemonic} takes {count} operand(s), got {len(operands)}")

    def register(index: int) -> str:
        name = operands[index].upper()
        if name not in REGISTERS:
            raise fail(f"{mnemonic} expects register A or B, got {operands[index]}")
        return name

    def immediate(index: int) -> int:
        return _parse_immediate(operands[index], fail)

    if mnemonic not in VALID_MNEMONICS:
        raise fail(f"Unknown mnemonic: {mnemonic}", UnknownMnemonic)

    if mnemonic == "ADD":
        expect(2)
        opcode = Opcode.ADD_A if register(0) == "A" else Opcode.ADD_B
        return Operation(opcode, immediate(1))

    if mnemonic == "MOV":
        expect(2)
        dest = register(0)
        source = operands[1].upper()
        if source in REGISTERS:
            if source == dest:
                raise fail(f"MOV {dest}, {source} is not a TD4 instruction")
            return Operation(Opcode.MOV_AB if dest == "A" else Opcode.MOV_BA)
        opcode = Opcode.MOV_A if dest == "A" else Opcode.MOV_B
        return Operation(opcode, immediate(1))

    if mnemonic == "IN":
        expect(1)
        return Operation(Opcode.IN_A if register(0) == "A" else Opcode.IN_B)

    if mnemonic == "OUT":
        expect(1)
        target = operands[0].upper()
        if target == "B":
            return Operation(Opcode.OUT_B)
        if target == "A":
            raise fail("OUT A is not a TD4 instruction; use MOV B, A then OUT B")
        return Operation(Opcode.OUT_IM, immediate(0))

    if mnemonic == "HLT":
        expect(0)
        return Operation(Opcode.JMP, addr)

    # JMP / JNC
    expect(1)
    opcode = Opcode.JMP if mnemonic == "JMP" else Opcode.JNC
    return Operation(opcode, _resolve_target(operands[0], labels, fail))


def _resolve_target(text: str, labels: dict[str, int], fail) -> int:
    """Resolve a jump target given as a label or a 4-bit literal."""
    if text[0].isdigit():
        return _parse_immediate(text, fail)
    label = text.upper()
    if label not in labels:
        raise fail(f"Unknown label: {text}", UndefinedLabel)
    target = labels[label]
    if target >= ROM_SIZE:
        raise fail(f"Label {label} points past the end of ROM")
    return target


def _parse_immediate(text: str, fail) -> int:
    """Parse a 4-bit immediate literal."""
    value = _parse_numeric_literal(text)
    if value is None:
        raise fail(f"Invalid immediate value: {text}")
    if not 0 <= value <= 0x0F:
        raise fail(f"Immediate out of 4-bit range: {text}")
    return value


def _parse_numeric_literal(text: str) -> Optional[int]:
    """Parse binary, hex or decimal literal; None if not numeric."""
    literal = text.strip().lower()
    try:
        if _BINARY_NIBBLE_RE.fullmatch(literal):
            return int(literal, 2)
        if literal.startswith("0b"):
            return int(literal[2:], 2)
        if literal.startswith("0x"):
            return int(literal[2:], 16)
        if _DECIMAL_LITERAL_RE.fullmatch(literal):
            return int(literal, 10)
    except ValueError:
        return None
    return None

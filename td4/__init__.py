"""TD4 4-bit CPU Emulator Core Package."""

from .runner import run, run_program, RunOptions, RunResult
from .assembler import assemble, AssembledProgram
from .isa import Opcode, Operation, decode, encode
from .rom import Rom
from .errors import TD4Error, ParseError, TD4RuntimeError, DecodeError, InputOutOfRange

__version__ = "0.1.0"

__all__ = [
    "run",
    "run_program",
    "RunOptions",
    "RunResult",
    "assemble",
    "AssembledProgram",
    "Opcode",
    "Operation",
    "decode",
    "encode",
    "Rom",
    "TD4Error",
    "ParseError",
    "TD4RuntimeError",
    "DecodeError",
    "InputOutOfRange",
]

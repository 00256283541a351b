"""Command line interface for the TD4 emulator.

Usage:
    td4 programs/counter.td4
    td4 programs/echo.td4 --input 5 --halt-policy step_budget --trace
    td4 counter.bin --image --listing
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .assembler import AssembledProgram, assemble
from .errors import TD4Error
from .rom import Rom
from .runner import HALT_POLICIES, HALT_SELF_LOOP, RunOptions, RunResult, run


logger = logging.getLogger(__name__)


def nibble(text: str) -> int:
    """argparse type for 4-bit input samples."""
    value = int(text, 0)
    if not 0 <= value <= 0x0F:
        raise argparse.ArgumentTypeError(f"input sample must be 0-15, got {text}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="td4",
        description="TD4: 4-bit CPU emulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Assemble and run a program, printing every output port write
    td4 programs/counter.td4

    # Feed input port samples (the last one holds)
    td4 programs/echo.td4 --input 3 --input 9 --halt-policy step_budget --max-steps 12

    # Run a raw 16-byte image with a full trace
    td4 counter.bin --image --trace
        """,
    )
    parser.add_argument("program", help="Path to TD4 assembly source (or binary image with --image)")
    parser.add_argument(
        "--image",
        action="store_true",
        help="Treat PROGRAM as a raw binary ROM image of at most 16 bytes",
    )
    parser.add_argument(
        "--input", "-i",
        type=nibble,
        action="append",
        default=[],
        help="Input port sample (0-15); repeat to supply a sequence",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=1000,
        help="Maximum executed instructions (safety limit). Default: 1000",
    )
    parser.add_argument(
        "--halt-policy",
        choices=HALT_POLICIES,
        default=HALT_SELF_LOOP,
        help="Stop on a self-jump, or only when the step budget runs out. Default: self_loop",
    )
    parser.add_argument(
        "--listing", "-l",
        action="store_true",
        help="Print the program listing (ROM disassembly for --image) before running",
    )
    parser.add_argument("--trace", "-t", action="store_true", help="Print full execution trace")
    parser.add_argument("--verbose", "-v", action="count", default=0, help="Increase log verbosity")
    return parser


def load_rom(path: Path, image: bool) -> tuple[Rom, Optional[AssembledProgram]]:
    """Load a ROM from an image file or by assembling a source file."""
    if image:
        return Rom.from_image(path.read_bytes()), None
    program = assemble(path.read_text(encoding="utf-8"))
    return program.rom, program


def print_port(value: int) -> None:
    print(f"Port (B) Out: {value}")


def print_trace(result: RunResult) -> None:
    print(f"{'step':>4} {'addr':>4}  {'instruction':<12} {'A':>2} {'B':>2} Cy {'PC':>2} IN OUT")
    for row in result.trace:
        in_text = "" if row["in_value"] is None else row["in_value"]
        out_text = "" if row["out_value"] is None else row["out_value"]
        print(
            f"{row['step']:>4} {row['addr']:>4}  {row['instr_text']:<12} "
            f"{row['a']:>2} {row['b']:>2} {row['carry']:>2} {row['pc']:>2} "
            f"{in_text!s:>2} {out_text!s:>3}"
        )


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    path = Path(args.program)
    try:
        rom, program = load_rom(path, args.image)
    except FileNotFoundError:
        print(f"Error: Program file not found: {args.program}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: Cannot read program file {args.program}: {e}", file=sys.stderr)
        return 1
    except TD4Error as e:
        where = f" (line {e.source_line_no}: {e.source_text})" if e.source_line_no else ""
        print(f"Error: {e.message}{where}", file=sys.stderr)
        return 1

    logger.info("Loaded %s: %s", path, rom.hexdump())
    if args.listing:
        for line in program.listing() if program else rom.listing():
            print(line)

    try:
        options = RunOptions(
            max_steps=args.max_steps,
            halt_policy=args.halt_policy,
            trace=args.trace,
            input_values=args.input,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    result = run(rom, output_sink=print_port, options=options, program=program)

    if args.trace:
        print_trace(result)

    if result.error:
        error = result.error
        where = f" (line {error.source_line_no}: {error.source_text})" if error.source_line_no else ""
        print(f"{error.type} at address {error.addr}: {error.message}{where}", file=sys.stderr)
        return 1

    logger.info("Stopped (%s) after %d step(s)", result.stop_reason, result.steps_executed)
    return 0


if __name__ == "__main__":
    sys.exit(main())

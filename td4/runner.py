"""Execution engine with halt detection and tracing for the TD4 emulator."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union
from .cpu import CPU
from .rom import Rom
from .isa import Opcode, Operation, decode
from .assembler import AssembledProgram, assemble
from .instructions import (
    InputSupplier,
    OutputSink,
    PortIO,
    execute_instruction,
    sequence_supplier,
)
from .errors import (
    TD4Error,
    StepLimitExceeded,
    ErrorInfo,
)


logger = logging.getLogger(__name__)

HALT_SELF_LOOP = "self_loop"
HALT_STEP_BUDGET = "step_budget"
HALT_POLICIES = (HALT_SELF_LOOP, HALT_STEP_BUDGET)


@dataclass
class RunOptions:
    """Options for program execution."""
    max_steps: int = 1000
    halt_policy: str = HALT_SELF_LOOP
    trace: bool = True
    input_values: list[int] = field(default_factory=list)

    def __post_init__(self):
        if self.halt_policy not in HALT_POLICIES:
            raise ValueError(f"Unknown halt policy: {self.halt_policy}")
        if self.max_steps < 1:
            raise ValueError("max_steps must be at least 1")


@dataclass
class TraceRow:
    """Single row of execution trace (register values after the step)."""
    step: int
    addr: int
    word: int
    instr_text: str
    a: int
    b: int
    carry: int
    pc: int
    in_value: Optional[int] = None
    out_value: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "step": self.step,
            "addr": self.addr,
            "word": self.word,
            "instr_text": self.instr_text,
            "a": self.a,
            "b": self.b,
            "carry": self.carry,
            "pc": self.pc,
            "in_value": self.in_value,
            "out_value": self.out_value,
        }


@dataclass
class RunResult:
    """Result of program execution."""
    status: str  # "ok" | "error"
    halted: bool
    stop_reason: str  # "halt" | "step_budget" | "error"
    steps_executed: int
    final_state: dict
    outputs: list[int]
    trace: list[dict]
    error: Optional[ErrorInfo] = None

    @property
    def output(self) -> int:
        """Last value written to the output port (0 if none)."""
        return self.outputs[-1] if self.outputs else 0

    def to_dict(self) -> dict:
        result = {
            "status": self.status,
            "halted": self.halted,
            "stop_reason": self.stop_reason,
            "steps_executed": self.steps_executed,
            "final_state": self.final_state,
            "outputs": self.outputs,
            "output": self.output,
            "trace": self.trace,
        }
        if self.error:
            result["error"] = self.error.to_dict()
        return result


def is_self_loop(op: Operation, addr: int, cpu: CPU) -> bool:
    """True if executing op at addr would jump back to addr forever.

    JMP to its own address always loops. JNC to its own address loops
    only while carry is clear; nothing inside the loop can set it.
    """
    if not op.is_jump or op.operand != addr:
        return False
    return op.opcode == Opcode.JMP or cpu.carry == 0


def run(
    rom: Union[Rom, Sequence[int]],
    input_supplier: Optional[InputSupplier] = None,
    output_sink: Optional[OutputSink] = None,
    options: Optional[RunOptions] = None,
    program: Optional[AssembledProgram] = None,
) -> RunResult:
    """Run a ROM image until it halts, fails, or exhausts its step budget.

    Args:
        rom: 16-word program image, as a Rom or any sequence of 16 bytes
        input_supplier: Called on every IN; must return 0-15. Defaults to
            replaying ``options.input_values``.
        output_sink: Called with each value written to the output port
        options: Execution options
        program: Assembled source, used to attach source lines to errors

    Returns:
        RunResult with status, outputs, final state and trace
    """
    if not isinstance(rom, Rom):
        rom = Rom(rom)
    if options is None:
        options = RunOptions()
    if input_supplier is None:
        input_supplier = sequence_supplier(options.input_values)

    trace_rows: list[dict] = []
    error_info: Optional[ErrorInfo] = None
    steps_executed = 0
    stop_reason = HALT_STEP_BUDGET

    cpu = CPU()
    io = PortIO(input_supplier, output_sink)
    detect_self_loop = options.halt_policy == HALT_SELF_LOOP

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Starting run: rom=%s policy=%s max_steps=%d",
                     rom.hexdump(), options.halt_policy, options.max_steps)

    instr_addr = cpu.pc
    try:
        while not cpu.halted and steps_executed < options.max_steps:
            # Fetch and decode
            instr_addr = cpu.pc
            word = rom.read(instr_addr)
            op = decode(word)

            halts_here = detect_self_loop and is_self_loop(op, instr_addr, cpu)

            io.reset_io_codes()
            execute_instruction(op, cpu, io)
            steps_executed += 1

            if halts_here:
                cpu.halted = True
                stop_reason = "halt"

            if options.trace:
                row = TraceRow(
                    step=steps_executed,
                    addr=instr_addr,
                    word=word,
                    instr_text=op.text,
                    a=cpu.a,
                    b=cpu.b,
                    carry=cpu.carry,
                    pc=cpu.pc,
                    in_value=io.last_in_value,
                    out_value=io.last_out_value,
                )
                trace_rows.append(row.to_dict())

        # Check step limit
        if not cpu.halted and detect_self_loop:
            raise StepLimitExceeded(f"Step limit exceeded: {options.max_steps}")

    except TD4Error as e:
        # Attach context to error
        e.step = steps_executed
        e.addr = instr_addr
        if program is not None and e.addr in program.instructions:
            source = program.instructions[e.addr]
            e.source_line_no = source.source_line_no
            e.source_text = source.source_text
        error_info = e.to_error_info()
        stop_reason = "error"
        logger.warning("Run failed at step %d, address %d: %s", e.step, e.addr, e.message)
    else:
        logger.debug("Run stopped (%s) after %d step(s)", stop_reason, steps_executed)

    return RunResult(
        status="ok" if error_info is None else "error",
        halted=cpu.halted,
        stop_reason=stop_reason,
        steps_executed=steps_executed,
        final_state=cpu.get_state(),
        outputs=list(io.outputs),
        trace=trace_rows,
        error=error_info,
    )


def run_program(
    program_text: str,
    input_supplier: Optional[InputSupplier] = None,
    output_sink: Optional[OutputSink] = None,
    options: Optional[RunOptions] = None,
) -> RunResult:
    """Assemble and run a TD4 program.

    Assembly failures are reported as an error result rather than raised.
    """
    try:
        program = assemble(program_text)
    except TD4Error as e:
        logger.warning("Assembly failed: %s", e.message)
        return RunResult(
            status="error",
            halted=False,
            stop_reason="error",
            steps_executed=0,
            final_state=CPU().get_state(),
            outputs=[],
            trace=[],
            error=e.to_error_info(),
        )
    return run(program.rom, input_supplier, output_sink, options, program=program)

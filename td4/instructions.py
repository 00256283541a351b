"""Instruction execution for the TD4 emulator."""

from typing import Callable, Iterable, Optional
from .cpu import CPU
from .isa import Opcode, Operation
from .errors import InputOutOfRange


InputSupplier = Callable[[], int]
OutputSink = Callable[[int], None]


def sequence_supplier(values: Iterable[int]) -> InputSupplier:
    """Input supplier that replays samples in order; the last sample holds.

    An empty sequence behaves like switches that are all off and reads 0.
    """
    samples = list(values)
    position = 0

    def _next_sample() -> int:
        nonlocal position
        if not samples:
            return 0
        value = samples[min(position, len(samples) - 1)]
        position += 1
        return value

    return _next_sample


class PortIO:
    """Binds the CPU ports to an external input supplier and output sink."""

    def __init__(
        self,
        input_supplier: Optional[InputSupplier] = None,
        output_sink: Optional[OutputSink] = None,
    ):
        self._input_supplier = input_supplier or sequence_supplier([])
        self._output_sink = output_sink
        self.outputs: list[int] = []
        self.last_in_value: Optional[int] = None
        self.last_out_value: Optional[int] = None

    def read_input(self) -> int:
        """Sample the input port; the supplier must return 0-15."""
        self.last_in_value = None
        value = self._input_supplier()
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0x0F:
            raise InputOutOfRange(f"Input port sample out of 4-bit range: {value!r}")
        self.last_in_value = value
        return value

    def write_output(self, value: int) -> None:
        """Latch a value on the output port and notify the sink."""
        self.last_out_value = value & 0x0F
        self.outputs.append(self.last_out_value)
        if self._output_sink is not None:
            self._output_sink(self.last_out_value)

    def reset_io_codes(self) -> None:
        """Reset last I/O values for new instruction."""
        self.last_in_value = None
        self.last_out_value = None


# Instruction executor type
InstructionExecutor = Callable[[Operation, CPU, PortIO], Optional[int]]


def execute_add_a(op: Operation, cpu: CPU, io: PortIO) -> Optional[int]:
    """ADD A, Im: A := A + Im, Cy := overflow"""
    cpu.add("a", op.operand)
    return None


def execute_add_b(op: Operation, cpu: CPU, io: PortIO) -> Optional[int]:
    """ADD B, Im: B := B + Im, Cy := overflow"""
    cpu.add("b", op.operand)
    return None


def execute_mov_ab(op: Operation, cpu: CPU, io: PortIO) -> Optional[int]:
    """MOV A, B: A := B"""
    cpu.set_a(cpu.b)
    return None


def execute_mov_ba(op: Operation, cpu: CPU, io: PortIO) -> Optional[int]:
    """MOV B, A: B := A"""
    cpu.set_b(cpu.a)
    return None


def execute_mov_a(op: Operation, cpu: CPU, io: PortIO) -> Optional[int]:
    """MOV A, Im: A := Im"""
    cpu.set_a(op.operand)
    return None


def execute_mov_b(op: Operation, cpu: CPU, io: PortIO) -> Optional[int]:
    """MOV B, Im: B := Im"""
    cpu.set_b(op.operand)
    return None


def execute_in_a(op: Operation, cpu: CPU, io: PortIO) -> Optional[int]:
    """IN A: A := input port"""
    cpu.in_port = io.read_input()
    cpu.set_a(cpu.in_port)
    return None


def execute_in_b(op: Operation, cpu: CPU, io: PortIO) -> Optional[int]:
    """IN B: B := input port"""
    cpu.in_port = io.read_input()
    cpu.set_b(cpu.in_port)
    return None


def execute_out_b(op: Operation, cpu: CPU, io: PortIO) -> Optional[int]:
    """OUT B: output port := B"""
    cpu.out_port = cpu.b
    io.write_output(cpu.out_port)
    return None


def execute_out_im(op: Operation, cpu: CPU, io: PortIO) -> Optional[int]:
    """OUT Im: output port := Im"""
    cpu.out_port = op.operand
    io.write_output(cpu.out_port)
    return None


def execute_jmp(op: Operation, cpu: CPU, io: PortIO) -> Optional[int]:
    """JMP Im: PC := Im"""
    return op.operand


def execute_jnc(op: Operation, cpu: CPU, io: PortIO) -> Optional[int]:
    """JNC Im: if Cy == 0, PC := Im"""
    if cpu.carry == 0:
        return op.operand
    return None


# Instruction dispatch table
INSTRUCTION_EXECUTORS: dict[Opcode, InstructionExecutor] = {
    Opcode.ADD_A: execute_add_a,
    Opcode.MOV_AB: execute_mov_ab,
    Opcode.IN_A: execute_in_a,
    Opcode.MOV_A: execute_mov_a,
    Opcode.MOV_BA: execute_mov_ba,
    Opcode.ADD_B: execute_add_b,
    Opcode.IN_B: execute_in_b,
    Opcode.MOV_B: execute_mov_b,
    Opcode.OUT_B: execute_out_b,
    Opcode.OUT_IM: execute_out_im,
    Opcode.JNC: execute_jnc,
    Opcode.JMP: execute_jmp,
}


def execute_instruction(op: Operation, cpu: CPU, io: PortIO) -> None:
    """Execute a single operation and update PC.

    Jumps that are taken load PC with their target; everything else
    (including a JNC that falls through) advances PC by one, mod 16.
    """
    executor = INSTRUCTION_EXECUTORS.get(op.opcode)
    if executor is None:
        raise ValueError(f"No executor for opcode: {op.opcode!r}")
    new_pc = executor(op, cpu, io)
    if new_pc is not None:
        cpu.jump(new_pc)
    else:
        cpu.advance_pc()

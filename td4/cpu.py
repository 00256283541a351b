"""CPU state model for the TD4 emulator."""

NIBBLE_MASK = 0x0F


class CPU:
    """TD4 register file: A, B, carry flag, PC and the two port latches."""

    def __init__(self):
        self.a: int = 0
        self.b: int = 0
        self.carry: int = 0
        self.pc: int = 0
        self.in_port: int = 0
        self.out_port: int = 0
        self.halted: bool = False

    @staticmethod
    def normalize(value: int) -> int:
        """Truncate value to 4 bits."""
        return value & NIBBLE_MASK

    def set_a(self, value: int) -> None:
        """Set A with normalization."""
        self.a = self.normalize(value)

    def set_b(self, value: int) -> None:
        """Set B with normalization."""
        self.b = self.normalize(value)

    def add(self, register: str, value: int) -> None:
        """Add value to register A or B; carry reflects overflow past 4 bits."""
        total = getattr(self, register) + value
        self.carry = 1 if total > NIBBLE_MASK else 0
        setattr(self, register, self.normalize(total))

    def advance_pc(self) -> None:
        """Step PC to the next word, wrapping at 16."""
        self.pc = (self.pc + 1) & NIBBLE_MASK

    def jump(self, target: int) -> None:
        self.pc = self.normalize(target)

    def get_state(self) -> dict:
        """Get current register state as dictionary."""
        return {
            "a": self.a,
            "b": self.b,
            "carry": self.carry,
            "pc": self.pc,
            "in_port": self.in_port,
            "out_port": self.out_port,
        }

    def reset(self) -> None:
        """Reset CPU to initial state."""
        self.a = 0
        self.b = 0
        self.carry = 0
        self.pc = 0
        self.in_port = 0
        self.out_port = 0
        self.halted = False

    def __repr__(self) -> str:
        return (
            f"CPU(a={self.a}, b={self.b}, carry={self.carry}, pc={self.pc}, "
            f"in={self.in_port}, out={self.out_port})"
        )

"""Tests for the CPU module."""

import pytest
from td4.cpu import CPU


class TestCPU:
    """CPU module tests."""

    def test_default_initialization(self):
        """CPU initializes with zeros."""
        cpu = CPU()
        assert cpu.a == 0
        assert cpu.b == 0
        assert cpu.carry == 0
        assert cpu.pc == 0
        assert cpu.out_port == 0
        assert cpu.halted is False

    def test_set_registers(self):
        """A and B can be set."""
        cpu = CPU()
        cpu.set_a(7)
        cpu.set_b(12)
        assert cpu.a == 7
        assert cpu.b == 12

    def test_register_normalization(self):
        """Registers are truncated to 4 bits."""
        cpu = CPU()
        cpu.set_a(17)
        assert cpu.a == 1
        cpu.set_b(16)
        assert cpu.b == 0

    @pytest.mark.parametrize("register", ["a", "b"])
    def test_add_all_values(self, register):
        """ADD yields (old + im) mod 16 and carry iff the sum exceeds 15."""
        for old in range(16):
            for im in range(16):
                cpu = CPU()
                setattr(cpu, register, old)
                cpu.add(register, im)
                assert getattr(cpu, register) == (old + im) % 16
                assert cpu.carry == (1 if old + im > 15 else 0)

    def test_add_clears_carry(self):
        """A non-overflowing ADD clears a previously set carry."""
        cpu = CPU()
        cpu.set_a(15)
        cpu.add("a", 2)
        assert cpu.a == 1
        assert cpu.carry == 1
        cpu.add("a", 1)
        assert cpu.carry == 0

    def test_pc_wraps(self):
        """PC wraps modulo 16 on increment."""
        cpu = CPU()
        cpu.pc = 15
        cpu.advance_pc()
        assert cpu.pc == 0

    def test_get_state(self):
        """Get state returns correct dict."""
        cpu = CPU()
        cpu.a = 10
        cpu.b = 5
        cpu.carry = 1
        cpu.pc = 3
        cpu.out_port = 9
        state = cpu.get_state()
        assert state == {"a": 10, "b": 5, "carry": 1, "pc": 3, "in_port": 0, "out_port": 9}

    def test_reset(self):
        """Reset returns CPU to initial state."""
        cpu = CPU()
        cpu.a = 1
        cpu.b = 2
        cpu.carry = 1
        cpu.pc = 14
        cpu.out_port = 4
        cpu.halted = True
        cpu.reset()
        assert cpu.get_state() == CPU().get_state()
        assert cpu.halted is False

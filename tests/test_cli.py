"""Tests for the command line interface."""

from pathlib import Path

import pytest
from td4.cli import main

PROGRAMS = Path(__file__).parent.parent / "programs"


class TestCLI:
    """CLI tests."""

    def test_run_prints_port_writes(self, capsys):
        """Each output port write is printed."""
        code = main([str(PROGRAMS / "out_three.td4")])
        assert code == 0
        assert capsys.readouterr().out == "Port (B) Out: 3\n"

    def test_input_samples(self, tmp_path, capsys):
        """--input feeds the input port."""
        source = tmp_path / "double.td4"
        source.write_text("in A\nmov B, A\nout B\nhlt\n")
        assert main([str(source), "--input", "9"]) == 0
        assert "Port (B) Out: 9" in capsys.readouterr().out

    def test_image(self, tmp_path, capsys):
        """--image runs a raw binary ROM."""
        image = tmp_path / "prog.bin"
        image.write_bytes(bytes([0xB5, 0xF1]))
        assert main([str(image), "--image"]) == 0
        assert capsys.readouterr().out == "Port (B) Out: 5\n"

    def test_listing_and_trace(self, capsys):
        """--listing and --trace print the program and executed steps."""
        assert main([str(PROGRAMS / "simple_calc.td4"), "--listing", "--trace"]) == 0
        out = capsys.readouterr().out
        assert out.startswith(" 0: 00110011")
        assert "MOV A, 3" in out
        assert "ADD A, 4" in out
        assert "Port (B) Out: 7" in out

    def test_missing_file(self, tmp_path, capsys):
        """Missing program file exits non-zero."""
        assert main([str(tmp_path / "nope.td4")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_parse_error(self, tmp_path, capsys):
        """Assembly errors exit non-zero with the offending line."""
        source = tmp_path / "bad.td4"
        source.write_text("out 1\nsub A, 1\n")
        assert main([str(source)]) == 1
        err = capsys.readouterr().err
        assert "Unknown mnemonic" in err
        assert "line 2" in err

    def test_decode_error(self, tmp_path, capsys):
        """Invalid opcode in an image exits non-zero."""
        image = tmp_path / "bad.bin"
        image.write_bytes(bytes([0xB1, 0xD0]))
        assert main([str(image), "--image"]) == 1
        captured = capsys.readouterr()
        assert captured.out == "Port (B) Out: 1\n"
        assert "DecodeError at address 1" in captured.err

    def test_step_budget(self, capsys):
        """A non-halting program stops cleanly under step_budget."""
        args = [str(PROGRAMS / "echo.td4"), "-i", "2", "--halt-policy", "step_budget", "--max-steps", "6"]
        assert main(args) == 0
        assert capsys.readouterr().out == "Port (B) Out: 2\n" * 2

    def test_step_limit_is_error(self, capsys):
        """Exceeding the budget under self_loop halting exits non-zero."""
        assert main([str(PROGRAMS / "echo.td4"), "--max-steps", "3"]) == 1
        assert "StepLimitExceeded" in capsys.readouterr().err

    def test_input_out_of_range_rejected(self):
        """--input values must fit in 4 bits."""
        with pytest.raises(SystemExit):
            main([str(PROGRAMS / "echo.td4"), "--input", "16"])

    def test_listing_shows_labels(self, capsys):
        """Listing of assembled source keeps label names."""
        assert main([str(PROGRAMS / "counter.td4"), "--listing"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith(" 0: 01010001  LOOP:")
        assert lines[0].endswith("ADD B, 1")
        assert lines[2].endswith("JNC 0")

    def test_image_listing(self, tmp_path, capsys):
        """Listing of an image disassembles all 16 words."""
        image = tmp_path / "prog.bin"
        image.write_bytes(bytes([0xB5, 0xF1]))
        assert main([str(image), "--image", "--listing"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == " 0: 10110101  OUT 5"
        assert lines[15] == "15: 11111111  JMP 15"
        assert lines[16] == "Port (B) Out: 5"

    def test_directory_path(self, tmp_path, capsys):
        """A directory instead of a file exits non-zero without a traceback."""
        assert main([str(tmp_path)]) == 1
        assert "Cannot read program file" in capsys.readouterr().err

    def test_binary_source(self, tmp_path, capsys):
        """A non-UTF-8 file given as source exits non-zero."""
        source = tmp_path / "prog.bin"
        source.write_bytes(b"\xff\xfe\x80")
        assert main([str(source)]) == 1
        assert "Cannot read program file" in capsys.readouterr().err

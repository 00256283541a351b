"""Integration tests for the bundled sample programs."""

from pathlib import Path

from td4 import run_program, RunOptions

PROGRAMS = Path(__file__).parent.parent / "programs"


def load(name: str) -> str:
    return (PROGRAMS / name).read_text(encoding="utf-8")


def test_sample_out_three():
    """Verify 'out_three' writes 3 once and halts."""
    result = run_program(load("out_three.td4"))
    assert result.status == "ok"
    assert result.halted is True
    assert result.outputs == [3]
    assert result.steps_executed == 4


def test_sample_simple_calc():
    """Verify classic-notation 'simple_calc' computes 3 + 4."""
    result = run_program(load("simple_calc.td4"))
    assert result.status == "ok"
    assert result.outputs == [7]
    assert result.final_state["carry"] == 0


def test_sample_counter():
    """Verify 'counter' counts 1..15, wraps to 0, then halts on carry."""
    result = run_program(load("counter.td4"))
    assert result.status == "ok"
    assert result.outputs == list(range(1, 16)) + [0]
    assert result.final_state["carry"] == 1
    assert result.steps_executed == 49


def test_sample_echo():
    """Verify 'echo' mirrors input samples under a step budget."""
    opts = RunOptions(halt_policy="step_budget", max_steps=9, input_values=[3, 9, 12])
    result = run_program(load("echo.td4"), options=opts)
    assert result.status == "ok"
    assert result.stop_reason == "step_budget"
    assert result.outputs == [3, 9, 12]


def test_sample_echo_needs_budget():
    """Verify 'echo' never reaches a self-jump under the default policy."""
    result = run_program(load("echo.td4"), options=RunOptions(max_steps=30))
    assert result.status == "error"
    assert result.error.type == "StepLimitExceeded"
    assert len(result.outputs) == 10

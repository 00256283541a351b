"""FastAPI web adapter for the TD4 emulator."""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Literal, Optional

from td4 import assemble, run_program, RunOptions, TD4Error


# Constants
MAX_PROGRAM_SIZE = 4 * 1024  # 4KB; the ROM only holds 16 instructions


# Request/Response models
class RunOptionsModel(BaseModel):
    max_steps: int = Field(default=1000, ge=1, le=100000)
    halt_policy: Literal["self_loop", "step_budget"] = "self_loop"
    trace: bool = True


class RunRequest(BaseModel):
    program: str
    inputs: list[int] = Field(default_factory=list)
    options: Optional[RunOptionsModel] = None


class AssembleRequest(BaseModel):
    program: str


class RunResponse(BaseModel):
    status: str
    halted: bool
    stop_reason: str
    steps_executed: int
    final_state: dict
    outputs: list[int]
    output: int
    trace: list[dict]
    error: Optional[dict] = None


class AssembleResponse(BaseModel):
    status: str
    words: list[int] = Field(default_factory=list)
    labels: dict[str, int] = Field(default_factory=dict)
    listing: list[str] = Field(default_factory=list)
    error: Optional[dict] = None


# Create FastAPI app
app = FastAPI(
    title="TD4 Emulator",
    description="Web API for assembling and running TD4 4-bit CPU programs",
    version="0.1.0",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _check_size(program: str) -> None:
    if len(program) > MAX_PROGRAM_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"Program size exceeds limit of {MAX_PROGRAM_SIZE} bytes",
        )


@app.post("/api/run", response_model=RunResponse)
async def run_code(request: RunRequest):
    """Assemble and execute a TD4 program.

    Args:
        request: Program source, input port samples, and execution options

    Returns:
        Execution result with output port writes, trace, and final state
    """
    _check_size(request.program)

    for value in request.inputs:
        if not 0 <= value <= 15:
            raise HTTPException(
                status_code=400,
                detail=f"Input sample out of 4-bit range: {value}",
            )

    opts = request.options or RunOptionsModel()
    run_opts = RunOptions(
        max_steps=opts.max_steps,
        halt_policy=opts.halt_policy,
        trace=opts.trace,
        input_values=list(request.inputs),
    )

    result = run_program(request.program, options=run_opts)
    return result.to_dict()


@app.post("/api/assemble", response_model=AssembleResponse)
async def assemble_code(request: AssembleRequest):
    """Assemble a TD4 program into its padded 16-word ROM image."""
    _check_size(request.program)

    try:
        program = assemble(request.program)
    except TD4Error as e:
        return {"status": "error", "error": e.to_error_info().to_dict()}

    return {
        "status": "ok",
        "words": program.rom.snapshot(),
        "labels": program.labels,
        "listing": program.rom.listing(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)

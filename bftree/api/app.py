from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field, validator

from bftree.dump import to_dict
from bftree.interpreter import DEFAULT_TAPE_LENGTH, EofPolicy, ExecutionError, Interpreter, StepLimitExceeded
from bftree.nodes import Program
from bftree.parser import ParseError, Parser
from bftree.printer import format_program
from bftree.transpiler import TARGETS, get_transpiler

logger = logging.getLogger(__name__)

SERVICE_MAX_STEPS = 1_000_000
MAX_TAPE_LENGTH = 1_000_000


def _string_to_input_bytes(data: str) -> bytes:
    return data.encode("utf-8")


class ParseRequest(BaseModel):
    code: str
    strict: bool = False


class ParseResponse(BaseModel):
    canonical: str
    tree: Dict[str, Any]


class ExecutionOptions(BaseModel):
    """Fields shared by requests that run or translate a program."""

    code: str
    tape_length: int = Field(default=DEFAULT_TAPE_LENGTH, ge=1, le=MAX_TAPE_LENGTH)
    eof: str = EofPolicy.ZERO.value
    strict: bool = False

    @validator("eof")
    def validate_eof(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in {policy.value for policy in EofPolicy}:
            raise ValueError("eof must be one of 'zero', 'unchanged' or 'error'")
        return normalized


class RunRequest(ExecutionOptions):
    input: str = ""
    max_steps: Optional[int] = Field(default=None, ge=1)


class RunResponse(BaseModel):
    output: str
    output_bytes: List[int]
    pointer: int
    steps: int


class TranspileRequest(ExecutionOptions):
    target: str = "c"

    @validator("target")
    def validate_target(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in TARGETS:
            raise ValueError(f"target must be one of {sorted(TARGETS)}")
        return normalized


class TranspileResponse(BaseModel):
    target: str
    source: str


def _parse_or_422(code: str, strict: bool) -> Program:
    try:
        return Parser(strict=strict).parse(code)
    except ParseError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc


def create_app(*, max_steps: int = SERVICE_MAX_STEPS) -> FastAPI:
    """Build the API. ``max_steps`` caps every run; requests may only lower it."""
    if max_steps < 1:
        raise ValueError("max_steps must be positive")
    app = FastAPI(title="bftree API", version="0.1.0")

    @app.get("/api/targets", response_model=List[str])
    def list_targets() -> List[str]:
        return sorted(TARGETS)

    @app.post("/api/parse", response_model=ParseResponse)
    def parse_program(payload: ParseRequest) -> ParseResponse:
        program = _parse_or_422(payload.code, payload.strict)
        return ParseResponse(canonical=format_program(program), tree=to_dict(program))

    @app.post("/api/run", response_model=RunResponse)
    def run_program(payload: RunRequest) -> RunResponse:
        program = _parse_or_422(payload.code, payload.strict)
        interpreter = Interpreter(
            tape_length=payload.tape_length,
            eof=EofPolicy(payload.eof),
            max_steps=max_steps if payload.max_steps is None else min(payload.max_steps, max_steps),
        )
        try:
            output = interpreter.run(program, input_data=_string_to_input_bytes(payload.input))
        except StepLimitExceeded as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=str(exc),
            ) from exc
        except ExecutionError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=str(exc),
            ) from exc
        logger.debug("Run finished: %d output bytes in %d steps", len(output), interpreter.steps)
        return RunResponse(
            output=output.decode("latin-1"),
            output_bytes=list(output),
            pointer=interpreter.pointer,
            steps=interpreter.steps,
        )

    @app.post("/api/transpile", response_model=TranspileResponse)
    def transpile_program(payload: TranspileRequest) -> TranspileResponse:
        program = _parse_or_422(payload.code, payload.strict)
        transpiler = get_transpiler(payload.target, tape_length=payload.tape_length, eof=payload.eof)
        return TranspileResponse(target=payload.target, source=transpiler.transpile(program))

    return app


__all__ = ["create_app"]

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Callable, Dict, Iterable, Iterator, Optional

from .nodes import Instruction, InstructionKind, Loop, Program, Visitor

logger = logging.getLogger(__name__)

DEFAULT_TAPE_LENGTH = 30000
CELL_MODULUS = 256


class ExecutionError(RuntimeError):
    """Base class for faults that abort a single run."""


class TapeBoundsExceeded(ExecutionError, IndexError):
    """Raised when the pointer leaves the allocated tape."""


class EndOfInput(ExecutionError, EOFError):
    """Raised on input exhaustion when the EOF policy is ``ERROR``."""


class StepLimitExceeded(ExecutionError):
    """Raised when execution exceeds the configured step budget."""


class EofPolicy(str, Enum):
    """What an input instruction stores once the input stream is exhausted."""

    ZERO = "zero"
    UNCHANGED = "unchanged"
    ERROR = "error"


def _stream_bytes(stream: BinaryIO) -> Iterator[int]:
    while True:
        chunk = stream.read(1)
        if not chunk:
            return
        yield chunk[0]


@dataclass
class Interpreter(Visitor):
    tape_length: int = DEFAULT_TAPE_LENGTH
    eof: EofPolicy = EofPolicy.ZERO
    max_steps: Optional[int] = None

    tape: bytearray = field(init=False, repr=False)
    pointer: int = field(init=False, repr=False)
    steps: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.tape_length < 1:
            raise ValueError("tape_length must be positive")
        self.eof = EofPolicy(self.eof)
        self._handlers: Dict[InstructionKind, Callable[[int], None]] = {
            InstructionKind.INCREMENT: self._increment,
            InstructionKind.DECREMENT: self._decrement,
            InstructionKind.SHIFT_LEFT: self._shift_left,
            InstructionKind.SHIFT_RIGHT: self._shift_right,
            InstructionKind.INPUT: self._input,
            InstructionKind.OUTPUT: self._output,
            InstructionKind.CLEAR_CELL: self._clear_cell,
        }
        self._input_iter: Iterator[int] = iter(())
        self._output_stream: BinaryIO = io.BytesIO()
        self.reset()

    def reset(self) -> None:
        self.tape = bytearray(self.tape_length)
        self.pointer = 0
        self.steps = 0

    def execute(self, program: Program, stdin: Optional[BinaryIO] = None, stdout: Optional[BinaryIO] = None) -> None:
        """Run ``program`` on a fresh tape, reading and writing binary streams."""
        self.reset()
        self._input_iter = _stream_bytes(stdin) if stdin is not None else iter(())
        self._output_stream = stdout if stdout is not None else io.BytesIO()
        logger.debug("Executing program with tape_length=%d eof=%s", self.tape_length, self.eof.value)
        program.accept(self)
        logger.debug("Execution finished after %d steps, pointer=%d", self.steps, self.pointer)

    def run(self, program: Program, input_data: Optional[Iterable[int]] = None) -> bytes:
        output = io.BytesIO()
        stdin = io.BytesIO(bytes(input_data or b""))
        self.execute(program, stdin=stdin, stdout=output)
        return output.getvalue()

    # --- Visitor ---

    def visit_instruction(self, node: Instruction) -> None:
        self._tick()
        self._handlers[node.kind](node.repeat)

    def visit_loop(self, node: Loop) -> None:
        while self.tape[self.pointer]:
            self._tick()
            self.visit_children(node)

    def visit_program(self, node: Program) -> None:
        self.visit_children(node)

    # --- Instruction handlers ---

    def _tick(self) -> None:
        if self.max_steps is not None and self.steps >= self.max_steps:
            raise StepLimitExceeded("Brainfuck program exceeded allowed step count")
        self.steps += 1

    def _increment(self, repeat: int) -> None:
        self.tape[self.pointer] = (self.tape[self.pointer] + repeat) % CELL_MODULUS

    def _decrement(self, repeat: int) -> None:
        self.tape[self.pointer] = (self.tape[self.pointer] - repeat) % CELL_MODULUS

    def _shift_right(self, repeat: int) -> None:
        target = self.pointer + repeat
        if target >= self.tape_length:
            raise TapeBoundsExceeded(
                f"Pointer moved beyond the tape length ({target} >= {self.tape_length})."
            )
        self.pointer = target

    def _shift_left(self, repeat: int) -> None:
        target = self.pointer - repeat
        if target < 0:
            raise TapeBoundsExceeded(f"Pointer moved before start of tape ({target}).")
        self.pointer = target

    def _input(self, repeat: int) -> None:
        for _ in range(repeat):
            try:
                self.tape[self.pointer] = next(self._input_iter)
            except StopIteration:
                if self.eof is EofPolicy.ERROR:
                    raise EndOfInput("Input instruction reached end of input") from None
                if self.eof is EofPolicy.ZERO:
                    self.tape[self.pointer] = 0

    def _output(self, repeat: int) -> None:
        self._output_stream.write(bytes((self.tape[self.pointer],)) * repeat)

    def _clear_cell(self, repeat: int) -> None:
        self.tape[self.pointer] = 0


def run(program: Program, input_data: Optional[Iterable[int]] = None, **options) -> bytes:
    return Interpreter(**options).run(program, input_data=input_data)


__all__ = [
    "CELL_MODULUS",
    "DEFAULT_TAPE_LENGTH",
    "EndOfInput",
    "EofPolicy",
    "ExecutionError",
    "Interpreter",
    "StepLimitExceeded",
    "TapeBoundsExceeded",
    "run",
]

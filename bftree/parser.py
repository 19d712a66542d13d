from __future__ import annotations

import logging
from typing import Iterator, List, Optional, TextIO, Tuple, Union

from .nodes import (
    COMMAND_CHARS,
    LOOP_END,
    LOOP_START,
    Child,
    Instruction,
    InstructionKind,
    Loop,
    Program,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 200

Source = Union[str, TextIO]

_CLEARING_KINDS = frozenset({InstructionKind.INCREMENT, InstructionKind.DECREMENT})


class ParseError(Exception):
    def __init__(self, message: str, line: int, column: int) -> None:
        super().__init__(f"{message} at line {line}, column {column}")
        self.line = line
        self.column = column


class UnterminatedLoop(ParseError):
    """Input ended while a '[' was still open."""


class UnmatchedLoopEnd(ParseError):
    """A ']' appeared with no open loop (strict mode only)."""


class NestingTooDeep(ParseError):
    """Loop nesting exceeded the parser's configured depth."""


class _CharReader:
    """Character cursor with one character of lookahead and line/column tracking."""

    def __init__(self, source: Source) -> None:
        if isinstance(source, str):
            self._chars: Iterator[str] = iter(source)
        else:
            self._chars = iter(lambda: source.read(1), "")
        self._lookahead: Optional[str] = None
        self.line = 1
        self.column = 0

    def peek(self) -> Optional[str]:
        if self._lookahead is None:
            self._lookahead = next(self._chars, None)
        return self._lookahead

    def advance(self) -> Optional[str]:
        char = self.peek()
        self._lookahead = None
        if char is None:
            return None
        if char == "\n":
            self.line += 1
            self.column = 0
        else:
            self.column += 1
        return char


class Parser:
    """Recursive-descent Brainfuck parser.

    Runs of the same primitive command are folded into one counted
    instruction, and a loop whose only child is an increment or decrement is
    replaced by a single clear-cell instruction.

    A ']' with no open loop ends the program and the remaining input is
    ignored; pass ``strict=True`` to reject it with ``UnmatchedLoopEnd``.
    """

    def __init__(self, *, strict: bool = False, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be positive")
        self.strict = strict
        self.max_depth = max_depth

    def parse(self, source: Source) -> Program:
        self._reader = _CharReader(source)
        children, closed = self._parse_block(depth=0)
        if closed:
            line, column = self._reader.line, self._reader.column
            if self.strict:
                raise UnmatchedLoopEnd("Unexpected ']' with no open loop", line, column)
            logger.warning(
                "Unmatched ']' at line %d, column %d treated as end of program", line, column
            )
        program = Program(children=tuple(children))
        logger.debug("Parsed program with %d top-level nodes", len(program.children))
        return program

    def _parse_block(self, depth: int) -> Tuple[List[Child], bool]:
        """Collect children until ']' (returns closed=True) or end of input."""
        reader = self._reader
        children: List[Child] = []
        while True:
            char = reader.advance()
            if char is None:
                return children, False
            if char in COMMAND_CHARS:
                repeat = 1
                while reader.peek() == char:
                    reader.advance()
                    repeat += 1
                children.append(Instruction(kind=COMMAND_CHARS[char], repeat=repeat))
            elif char == LOOP_START:
                children.append(self._parse_loop(depth + 1))
            elif char == LOOP_END:
                return children, True

    def _parse_loop(self, depth: int) -> Child:
        line, column = self._reader.line, self._reader.column
        if depth > self.max_depth:
            raise NestingTooDeep(
                f"Loop nesting deeper than {self.max_depth} levels", line, column
            )
        body, closed = self._parse_block(depth)
        if not closed:
            raise UnterminatedLoop("Unterminated loop opened", line, column)
        if _is_clear_idiom(body):
            return Instruction.clear_cell()
        return Loop(children=tuple(body))


def _is_clear_idiom(body: List[Child]) -> bool:
    if len(body) != 1:
        return False
    only = body[0]
    return isinstance(only, Instruction) and only.kind in _CLEARING_KINDS


def parse(source: Source, *, strict: bool = False, max_depth: int = DEFAULT_MAX_DEPTH) -> Program:
    return Parser(strict=strict, max_depth=max_depth).parse(source)


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "NestingTooDeep",
    "ParseError",
    "Parser",
    "UnmatchedLoopEnd",
    "UnterminatedLoop",
    "parse",
]

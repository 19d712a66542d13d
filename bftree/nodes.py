from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple, Union


class InvalidInstructionCharacter(ValueError):
    """Raised when an instruction is built from a non-command character."""


class InstructionKind(str, Enum):
    INCREMENT = "increment"
    DECREMENT = "decrement"
    SHIFT_LEFT = "shift_left"
    SHIFT_RIGHT = "shift_right"
    INPUT = "input"
    OUTPUT = "output"
    # Synthetic: produced by the parser for `[+]` / `[-]`, never from one character.
    CLEAR_CELL = "clear_cell"


COMMAND_CHARS: Dict[str, InstructionKind] = {
    "+": InstructionKind.INCREMENT,
    "-": InstructionKind.DECREMENT,
    "<": InstructionKind.SHIFT_LEFT,
    ">": InstructionKind.SHIFT_RIGHT,
    ",": InstructionKind.INPUT,
    ".": InstructionKind.OUTPUT,
}

LOOP_START = "["
LOOP_END = "]"


def is_command(char: str) -> bool:
    return char in COMMAND_CHARS


class Node(ABC):
    @abstractmethod
    def accept(self, visitor: "Visitor") -> Any:
        ...


@dataclass(frozen=True)
class Instruction(Node):
    kind: InstructionKind
    repeat: int = 1

    def __post_init__(self) -> None:
        if not isinstance(self.kind, InstructionKind):
            raise TypeError(f"kind must be an InstructionKind, got {self.kind!r}")
        if self.repeat < 1:
            raise ValueError(f"repeat must be at least 1, got {self.repeat}")

    @classmethod
    def from_char(cls, char: str, repeat: int = 1) -> "Instruction":
        try:
            kind = COMMAND_CHARS[char]
        except KeyError as exc:
            raise InvalidInstructionCharacter(
                f"Tried to create an instruction from an invalid character: {char!r}"
            ) from exc
        return cls(kind=kind, repeat=repeat)

    @classmethod
    def clear_cell(cls) -> "Instruction":
        return cls(kind=InstructionKind.CLEAR_CELL, repeat=1)

    @property
    def is_primitive(self) -> bool:
        return self.kind is not InstructionKind.CLEAR_CELL

    def accept(self, visitor: "Visitor") -> Any:
        return visitor.visit_instruction(self)


@dataclass(frozen=True)
class Block(Node):
    children: Tuple["Child", ...] = ()


@dataclass(frozen=True)
class Loop(Block):
    """Runs its children while the current cell is nonzero."""

    def accept(self, visitor: "Visitor") -> Any:
        return visitor.visit_loop(self)


@dataclass(frozen=True)
class Program(Block):
    """Root of a parsed program; runs its children exactly once."""

    def accept(self, visitor: "Visitor") -> Any:
        return visitor.visit_program(self)


Child = Union[Instruction, Loop]


class Visitor(ABC):
    """Double-dispatch contract shared by every back-end.

    Each node's ``accept`` calls the matching ``visit_*`` handler with itself,
    so back-ends never inspect node types. A subclass missing a handler cannot
    be instantiated.
    """

    @abstractmethod
    def visit_instruction(self, node: Instruction) -> Any:
        ...

    @abstractmethod
    def visit_loop(self, node: Loop) -> Any:
        ...

    @abstractmethod
    def visit_program(self, node: Program) -> Any:
        ...

    def visit_children(self, block: Block) -> None:
        for child in block.children:
            child.accept(self)


__all__ = [
    "COMMAND_CHARS",
    "Block",
    "Child",
    "Instruction",
    "InstructionKind",
    "InvalidInstructionCharacter",
    "LOOP_END",
    "LOOP_START",
    "Loop",
    "Node",
    "Program",
    "Visitor",
    "is_command",
]

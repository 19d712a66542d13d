from __future__ import annotations

import io
from typing import Dict, Optional, TextIO

from .nodes import Instruction, InstructionKind, Loop, Program, Visitor

CLEAR_CELL_SPELLING = "[+]"

_KIND_CHARS: Dict[InstructionKind, str] = {
    InstructionKind.INCREMENT: "+",
    InstructionKind.DECREMENT: "-",
    InstructionKind.SHIFT_LEFT: "<",
    InstructionKind.SHIFT_RIGHT: ">",
    InstructionKind.INPUT: ",",
    InstructionKind.OUTPUT: ".",
}


class Printer(Visitor):
    """Writes the canonical source text of a tree to ``sink``.

    Folded instructions are expanded back to ``repeat`` characters, and every
    clear-cell instruction is spelled ``[+]``.
    """

    def __init__(self, sink: TextIO) -> None:
        self.sink = sink

    def visit_instruction(self, node: Instruction) -> None:
        if node.kind is InstructionKind.CLEAR_CELL:
            self.sink.write(CLEAR_CELL_SPELLING)
            return
        self.sink.write(_KIND_CHARS[node.kind] * node.repeat)

    def visit_loop(self, node: Loop) -> None:
        self.sink.write("[")
        self.visit_children(node)
        self.sink.write("]")

    def visit_program(self, node: Program) -> None:
        self.visit_children(node)
        self.sink.write("\n")


def format_program(program: Program, sink: Optional[TextIO] = None) -> str:
    buffer = io.StringIO()
    program.accept(Printer(buffer))
    text = buffer.getvalue()
    if sink is not None:
        sink.write(text)
    return text


__all__ = ["CLEAR_CELL_SPELLING", "Printer", "format_program"]

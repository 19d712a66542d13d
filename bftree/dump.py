from __future__ import annotations

from typing import Any, Dict

from .nodes import Instruction, Loop, Program, Visitor


class TreeSerializer(Visitor):
    """Converts a tree into plain dicts and lists suitable for JSON."""

    def visit_instruction(self, node: Instruction) -> Dict[str, Any]:
        return {"type": "instruction", "kind": node.kind.value, "repeat": node.repeat}

    def visit_loop(self, node: Loop) -> Dict[str, Any]:
        return {"type": "loop", "children": [child.accept(self) for child in node.children]}

    def visit_program(self, node: Program) -> Dict[str, Any]:
        return {"type": "program", "children": [child.accept(self) for child in node.children]}


def to_dict(program: Program) -> Dict[str, Any]:
    return program.accept(TreeSerializer())


__all__ = ["TreeSerializer", "to_dict"]

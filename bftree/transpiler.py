from __future__ import annotations

import logging
from abc import abstractmethod
from typing import Callable, Dict, List, Type, Union

from .interpreter import CELL_MODULUS, DEFAULT_TAPE_LENGTH, EofPolicy
from .nodes import Instruction, InstructionKind, Loop, Program, Visitor

logger = logging.getLogger(__name__)


class Transpiler(Visitor):
    """Base class for back-ends that emit target-language source text.

    Subclasses supply the prologue and epilogue, the loop header and footer,
    and one statement builder per instruction kind. The generated program
    follows the interpreter's semantics, including its tape length and EOF
    policy, so both produce identical output for the same input.
    """

    name = ""
    indent_unit = "    "

    def __init__(self, tape_length: int = DEFAULT_TAPE_LENGTH, eof: Union[EofPolicy, str] = EofPolicy.ZERO) -> None:
        if tape_length < 1:
            raise ValueError("tape_length must be positive")
        self.tape_length = tape_length
        self.eof = EofPolicy(eof)
        self._statements: Dict[InstructionKind, Callable[[int], List[str]]] = {
            InstructionKind.INCREMENT: self.increment,
            InstructionKind.DECREMENT: self.decrement,
            InstructionKind.SHIFT_LEFT: self.shift_left,
            InstructionKind.SHIFT_RIGHT: self.shift_right,
            InstructionKind.INPUT: self.input,
            InstructionKind.OUTPUT: self.output,
            InstructionKind.CLEAR_CELL: self.clear_cell,
        }
        self._lines: List[str] = []
        self._depth = 0

    def transpile(self, program: Program) -> str:
        self._lines = []
        self._depth = 0
        program.accept(self)
        logger.debug("Emitted %d lines of %s", len(self._lines), self.name)
        return "\n".join(self._lines) + "\n"

    # --- Visitor ---

    def visit_instruction(self, node: Instruction) -> None:
        for statement in self._statements[node.kind](node.repeat):
            self._emit(statement)

    def visit_loop(self, node: Loop) -> None:
        self._emit(self.loop_open())
        self._depth += 1
        if node.children:
            self.visit_children(node)
        else:
            self._emit_empty_body()
        self._depth -= 1
        closing = self.loop_close()
        if closing:
            self._emit(closing)

    def visit_program(self, node: Program) -> None:
        for line in self.prologue():
            self._lines.append(line)
        self._depth = 1
        self.visit_children(node)
        self._depth = 0
        for line in self.epilogue():
            self._lines.append(line)

    # --- Helpers ---

    def _emit(self, statement: str) -> None:
        self._lines.append(self.indent_unit * self._depth + statement)

    def _emit_empty_body(self) -> None:
        pass

    # --- Target hooks ---

    @abstractmethod
    def prologue(self) -> List[str]:
        ...

    @abstractmethod
    def epilogue(self) -> List[str]:
        ...

    @abstractmethod
    def loop_open(self) -> str:
        ...

    def loop_close(self) -> str:
        return ""

    @abstractmethod
    def increment(self, repeat: int) -> List[str]:
        ...

    @abstractmethod
    def decrement(self, repeat: int) -> List[str]:
        ...

    @abstractmethod
    def shift_left(self, repeat: int) -> List[str]:
        ...

    @abstractmethod
    def shift_right(self, repeat: int) -> List[str]:
        ...

    @abstractmethod
    def input(self, repeat: int) -> List[str]:
        ...

    @abstractmethod
    def output(self, repeat: int) -> List[str]:
        ...

    @abstractmethod
    def clear_cell(self, repeat: int) -> List[str]:
        ...


class CTranspiler(Transpiler):
    name = "c"

    def prologue(self) -> List[str]:
        return [
            "#include <stdio.h>",
            "",
            f"static unsigned char tape[{self.tape_length}];",
            "",
            "int main(void)",
            "{",
            f"{self.indent_unit}unsigned char *ptr = tape;",
            f"{self.indent_unit}int c;",
            f"{self.indent_unit}(void)c;",
            "",
        ]

    def epilogue(self) -> List[str]:
        return [
            "",
            f"{self.indent_unit}return 0;",
            "}",
        ]

    def loop_open(self) -> str:
        return "while (*ptr) {"

    def loop_close(self) -> str:
        return "}"

    def increment(self, repeat: int) -> List[str]:
        return [f"*ptr += {repeat % CELL_MODULUS};"]

    def decrement(self, repeat: int) -> List[str]:
        return [f"*ptr -= {repeat % CELL_MODULUS};"]

    def shift_left(self, repeat: int) -> List[str]:
        return [f"ptr -= {repeat};"]

    def shift_right(self, repeat: int) -> List[str]:
        return [f"ptr += {repeat};"]

    def input(self, repeat: int) -> List[str]:
        if self.eof is EofPolicy.ZERO:
            store = ["*ptr = c == EOF ? 0 : (unsigned char)c;"]
        elif self.eof is EofPolicy.UNCHANGED:
            store = ["if (c != EOF) *ptr = (unsigned char)c;"]
        else:
            store = [
                "if (c == EOF) {",
                f'{self.indent_unit}fputs("error: Input instruction reached end of input\\n", stderr);',
                f"{self.indent_unit}return 1;",
                "}",
                "*ptr = (unsigned char)c;",
            ]
        return (["c = getchar();"] + store) * repeat

    def output(self, repeat: int) -> List[str]:
        return ["putchar(*ptr);"] * repeat

    def clear_cell(self, repeat: int) -> List[str]:
        return ["*ptr = 0;"]


class PythonTranspiler(Transpiler):
    """Emits a module whose ``main(stdin, stdout)`` runs the program on binary streams.

    Every loop becomes its own module-level function that takes and returns
    the pointer, so the emitted code is never nested more than a couple of
    blocks deep. Python rejects deeply nested blocks and indentation, while
    the parser accepts loops nested up to ``DEFAULT_MAX_DEPTH`` levels.
    """

    name = "python"

    def __init__(self, tape_length: int = DEFAULT_TAPE_LENGTH, eof: Union[EofPolicy, str] = EofPolicy.ZERO) -> None:
        super().__init__(tape_length=tape_length, eof=eof)
        self._functions: List[List[str]] = []
        self._loop_count = 0

    def visit_program(self, node: Program) -> None:
        self._functions = []
        self._loop_count = 0
        super().visit_program(node)
        main_lines = self._lines
        self._lines = [
            "import sys",
            "",
            f"TAPE_LENGTH = {self.tape_length}",
        ]
        for function in self._functions:
            self._lines.extend(["", ""] + function)
        self._lines.extend(["", ""] + main_lines)

    def visit_loop(self, node: Loop) -> None:
        self._loop_count += 1
        function_name = f"loop_{self._loop_count}"
        self._emit(f"ptr = {function_name}(tape, ptr, stdin, stdout)")

        outer_lines, outer_depth = self._lines, self._depth
        self._lines = [f"def {function_name}(tape, ptr, stdin, stdout):"]
        self._depth = 1
        super().visit_loop(node)
        self._emit("return ptr")
        self._functions.append(self._lines)
        self._lines, self._depth = outer_lines, outer_depth

    def prologue(self) -> List[str]:
        return [
            "def main(stdin, stdout):",
            f"{self.indent_unit}tape = bytearray(TAPE_LENGTH)",
            f"{self.indent_unit}ptr = 0",
        ]

    def epilogue(self) -> List[str]:
        return [
            f"{self.indent_unit}stdout.flush()",
            "",
            "",
            'if __name__ == "__main__":',
            f"{self.indent_unit}main(sys.stdin.buffer, sys.stdout.buffer)",
        ]

    def loop_open(self) -> str:
        return "while tape[ptr]:"

    def _emit_empty_body(self) -> None:
        self._emit("pass")

    def increment(self, repeat: int) -> List[str]:
        return [f"tape[ptr] = (tape[ptr] + {repeat}) % {CELL_MODULUS}"]

    def decrement(self, repeat: int) -> List[str]:
        return [f"tape[ptr] = (tape[ptr] - {repeat}) % {CELL_MODULUS}"]

    def shift_left(self, repeat: int) -> List[str]:
        return [f"ptr -= {repeat}"]

    def shift_right(self, repeat: int) -> List[str]:
        return [f"ptr += {repeat}"]

    def input(self, repeat: int) -> List[str]:
        if self.eof is EofPolicy.ZERO:
            store = ["tape[ptr] = data[0] if data else 0"]
        elif self.eof is EofPolicy.UNCHANGED:
            store = ["if data:", f"{self.indent_unit}tape[ptr] = data[0]"]
        else:
            store = [
                "if not data:",
                f'{self.indent_unit}raise EOFError("Input instruction reached end of input")',
                "tape[ptr] = data[0]",
            ]
        return (["data = stdin.read(1)"] + store) * repeat

    def output(self, repeat: int) -> List[str]:
        if repeat == 1:
            return ["stdout.write(bytes((tape[ptr],)))"]
        return [f"stdout.write(bytes((tape[ptr],)) * {repeat})"]

    def clear_cell(self, repeat: int) -> List[str]:
        return ["tape[ptr] = 0"]


TARGETS: Dict[str, Type[Transpiler]] = {
    CTranspiler.name: CTranspiler,
    PythonTranspiler.name: PythonTranspiler,
}


def get_transpiler(target: str, **options) -> Transpiler:
    try:
        transpiler_cls = TARGETS[target.lower()]
    except KeyError as exc:
        supported = ", ".join(sorted(TARGETS))
        raise ValueError(f"Unknown transpiler target '{target}' (supported: {supported})") from exc
    return transpiler_cls(**options)


def transpile(program: Program, target: str = "c", **options) -> str:
    return get_transpiler(target, **options).transpile(program)


__all__ = [
    "CTranspiler",
    "PythonTranspiler",
    "TARGETS",
    "Transpiler",
    "get_transpiler",
    "transpile",
]

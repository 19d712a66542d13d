from .dump import to_dict
from .interpreter import (
    EndOfInput,
    EofPolicy,
    ExecutionError,
    Interpreter,
    StepLimitExceeded,
    TapeBoundsExceeded,
)
from .nodes import Instruction, InstructionKind, InvalidInstructionCharacter, Loop, Program, Visitor
from .parser import NestingTooDeep, ParseError, Parser, UnmatchedLoopEnd, UnterminatedLoop, parse
from .printer import Printer, format_program
from .transpiler import CTranspiler, PythonTranspiler, Transpiler, transpile

__all__ = [
    "CTranspiler",
    "EndOfInput",
    "EofPolicy",
    "ExecutionError",
    "Instruction",
    "InstructionKind",
    "Interpreter",
    "InvalidInstructionCharacter",
    "Loop",
    "NestingTooDeep",
    "ParseError",
    "Parser",
    "Printer",
    "Program",
    "PythonTranspiler",
    "StepLimitExceeded",
    "TapeBoundsExceeded",
    "Transpiler",
    "UnmatchedLoopEnd",
    "UnterminatedLoop",
    "Visitor",
    "format_program",
    "parse",
    "to_dict",
    "transpile",
]

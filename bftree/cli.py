from __future__ import annotations

import argparse
import io
import logging
import sys
from pathlib import Path
from typing import BinaryIO, Optional

from .interpreter import DEFAULT_TAPE_LENGTH, EofPolicy, ExecutionError, Interpreter
from .nodes import Program
from .parser import ParseError, Parser
from .printer import format_program
from .transpiler import TARGETS, transpile

logger = logging.getLogger(__name__)


def _read_source(path: str) -> str:
    source_path = Path(path)
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")
    return source_path.read_text(encoding="utf-8")


def _write_output(path: str, data: str) -> None:
    output_path = Path(path)
    output_path.write_text(data, encoding="utf-8")


def _write_bytes(data: bytes) -> None:
    sys.stdout.flush()
    buffer = getattr(sys.stdout, "buffer", None)
    if buffer is None:
        # In-memory text streams (redirect_stdout) have no byte buffer.
        sys.stdout.write(data.decode("latin-1"))
        return
    buffer.write(data)
    buffer.flush()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Brainfuck tree printer, interpreter and transpiler")
    parser.add_argument("sources", nargs="+", metavar="source", help="Path to a Brainfuck source file")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--print", dest="print_only", action="store_true", help="Only print the canonical source")
    mode.add_argument("--run", dest="run_only", action="store_true", help="Only execute the program")
    mode.add_argument(
        "--emit",
        choices=sorted(TARGETS),
        help="Transpile the program to the given target language",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Destination file for --emit output (default: print to stdout)",
    )
    inputs = parser.add_mutually_exclusive_group()
    inputs.add_argument(
        "--input",
        default="",
        help="Input string supplied to the program when running",
    )
    inputs.add_argument(
        "--stdin",
        action="store_true",
        help="Read program input from standard input",
    )
    parser.add_argument(
        "--tape-length",
        type=int,
        default=DEFAULT_TAPE_LENGTH,
        help=f"Number of tape cells (default: {DEFAULT_TAPE_LENGTH})",
    )
    parser.add_argument(
        "--eof",
        choices=[policy.value for policy in EofPolicy],
        default=EofPolicy.ZERO.value,
        help="Value stored by ',' at end of input (default: zero)",
    )
    parser.add_argument("--max-steps", type=int, default=None, help="Abort after this many steps")
    parser.add_argument("--strict", action="store_true", help="Reject a ']' with no open loop")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _program_input(args: argparse.Namespace) -> BinaryIO:
    if args.stdin:
        return sys.stdin.buffer
    return io.BytesIO(args.input.encode("utf-8"))


def _process(path: str, args: argparse.Namespace) -> None:
    logger.debug("Processing %s", path)
    source_text = _read_source(path)
    program: Program = Parser(strict=args.strict).parse(source_text)

    if args.emit:
        code = transpile(program, args.emit, tape_length=args.tape_length, eof=args.eof)
        if args.output:
            _write_output(args.output, code)
        else:
            sys.stdout.write(code)
        return

    show_source = not args.run_only
    show_eval = not args.print_only
    labelled = show_source and show_eval

    if show_source:
        if labelled:
            sys.stdout.write("SRC:\n")
        format_program(program, sys.stdout)
    if show_eval:
        if labelled:
            sys.stdout.write("EVAL:\n")
        interpreter = Interpreter(tape_length=args.tape_length, eof=args.eof, max_steps=args.max_steps)
        output = io.BytesIO()
        try:
            interpreter.execute(program, stdin=_program_input(args), stdout=output)
        finally:
            _write_bytes(output.getvalue())
        if labelled:
            # Ends the EVAL section so the next file's SRC: starts on its own line.
            sys.stdout.write("\n")


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.emit is None and args.output:
        print("error: --output requires --emit", file=sys.stderr)
        return 2

    for path in args.sources:
        try:
            _process(path, args)
        except FileNotFoundError as exc:
            print(str(exc), file=sys.stderr)
            return 1
        except ParseError as exc:
            print(f"Parse error in {path}: {exc}", file=sys.stderr)
            return 1
        except ExecutionError as exc:
            print(f"Runtime error in {path}: {exc}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

import io
import shutil
import subprocess
import tempfile
import unittest
from pathlib import Path

from bftree import CTranspiler, InstructionKind, Interpreter, PythonTranspiler, parse, transpile
from bftree.interpreter import EofPolicy
from bftree.parser import DEFAULT_MAX_DEPTH
from bftree.transpiler import TARGETS, get_transpiler


def _nested_source(depth: int) -> str:
    return "+" + "[" * depth + "->" + "+" * 66 + ".[-]" + "]" * depth


SAMPLE_PROGRAMS = {
    "hello": (
        "++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]"
        ">>.>---.+++++++..+++.>>.<-.<.+++.------.--------.>>+.>++.",
        b"",
    ),
    "echo": (",[.,]", b"tree walk"),
    "reverse": (">,[>,]<[.<]", b"stressed"),
    "clear_and_wrap": ("+++.[-]-.[+]++++++++++..", b""),
    "add_digits": (",>,[-<+>]<------------------------------------------------.", b"34"),
    "empty_loop": ("[]+.", b""),
    "folded_io": (",,,...", b"xyz"),
    "nested_25": (_nested_source(25), b""),
    "nested_max_depth": (_nested_source(DEFAULT_MAX_DEPTH), b""),
}


def _run_python_target(code: str, input_data: bytes) -> bytes:
    namespace = {"__name__": "bftree_generated"}
    exec(compile(code, "<bftree-generated>", "exec"), namespace)
    stdout = io.BytesIO()
    namespace["main"](io.BytesIO(input_data), stdout)
    return stdout.getvalue()


class TranspilerStructureTests(unittest.TestCase):
    def test_c_prologue_and_loop_shape(self) -> None:
        code = CTranspiler(tape_length=1024).transpile(parse("+++[>+<-]."))
        self.assertIn("#include <stdio.h>", code)
        self.assertIn("static unsigned char tape[1024];", code)
        self.assertIn("int main(void)", code)
        self.assertIn("    *ptr += 3;", code)
        self.assertIn("    while (*ptr) {\n        ptr += 1;", code)
        self.assertIn("putchar(*ptr);", code)
        self.assertTrue(code.rstrip().endswith("return 0;\n}"))

    def test_c_clear_cell(self) -> None:
        code = transpile(parse("[-]"), "c")
        self.assertIn("*ptr = 0;", code)
        self.assertNotIn("while", code)

    def test_c_repeats_io_statements(self) -> None:
        code = transpile(parse("..."), "c")
        self.assertEqual(code.count("putchar(*ptr);"), 3)

    def test_python_empty_loop_gets_pass(self) -> None:
        code = PythonTranspiler().transpile(parse("[]"))
        self.assertIn("    while tape[ptr]:\n        pass", code)

    def test_python_output_is_valid_module(self) -> None:
        code = transpile(parse("+[>,.<-]"), "python")
        compile(code, "<generated>", "exec")
        self.assertIn('if __name__ == "__main__":', code)

    def test_python_loops_become_functions(self) -> None:
        code = transpile(parse("+[>[-<+>]<-]"), "python")
        self.assertIn("def loop_1(tape, ptr, stdin, stdout):", code)
        self.assertIn("def loop_2(tape, ptr, stdin, stdout):", code)
        self.assertIn("    ptr = loop_1(tape, ptr, stdin, stdout)", code)
        self.assertIn("        ptr = loop_2(tape, ptr, stdin, stdout)", code)

    def test_python_deeply_nested_loops_compile(self) -> None:
        for depth in (25, DEFAULT_MAX_DEPTH):
            with self.subTest(depth=depth):
                code = transpile(parse(_nested_source(depth)), "python")
                compile(code, "<generated>", "exec")
                self.assertEqual(_run_python_target(code, b""), b"B")

    def test_statement_tables_are_exhaustive(self) -> None:
        for transpiler_cls in TARGETS.values():
            with self.subTest(target=transpiler_cls.name):
                self.assertEqual(set(transpiler_cls()._statements), set(InstructionKind))

    def test_unknown_target(self) -> None:
        with self.assertRaises(ValueError):
            get_transpiler("cobol")

    def test_target_lookup_is_case_insensitive(self) -> None:
        self.assertIsInstance(get_transpiler("Python"), PythonTranspiler)


class PythonTargetEquivalenceTests(unittest.TestCase):
    def test_matches_interpreter_output(self) -> None:
        for name, (source, input_data) in SAMPLE_PROGRAMS.items():
            with self.subTest(program=name):
                program = parse(source)
                expected = Interpreter().run(program, input_data=input_data)
                actual = _run_python_target(transpile(program, "python"), input_data)
                self.assertEqual(actual, expected)

    def test_eof_policies_match(self) -> None:
        program = parse("+++,.")
        for policy in (EofPolicy.ZERO, EofPolicy.UNCHANGED):
            with self.subTest(policy=policy):
                expected = Interpreter(eof=policy).run(program)
                actual = _run_python_target(transpile(program, "python", eof=policy), b"")
                self.assertEqual(actual, expected)

    def test_eof_error_raises(self) -> None:
        code = transpile(parse(","), "python", eof=EofPolicy.ERROR)
        with self.assertRaises(EOFError):
            _run_python_target(code, b"")


@unittest.skipUnless(shutil.which("cc"), "C compiler not available")
class CTargetEquivalenceTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_path = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _compile_and_run(self, code: str, input_data: bytes) -> bytes:
        source_path = self.tmp_path / "program.c"
        binary_path = self.tmp_path / "program"
        source_path.write_text(code, encoding="utf-8")
        subprocess.run(["cc", "-o", str(binary_path), str(source_path)], check=True)
        completed = subprocess.run([str(binary_path)], input=input_data, capture_output=True, check=True)
        return completed.stdout

    def test_matches_interpreter_output(self) -> None:
        for name, (source, input_data) in SAMPLE_PROGRAMS.items():
            with self.subTest(program=name):
                program = parse(source)
                expected = Interpreter().run(program, input_data=input_data)
                actual = self._compile_and_run(transpile(program, "c"), input_data)
                self.assertEqual(actual, expected)


if __name__ == "__main__":
    unittest.main()

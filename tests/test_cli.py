import io
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

from bftree import parse, transpile
from bftree.cli import main as cli_main


class CLITests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_path = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write_source(self, content: str, name: str = "program.bf") -> Path:
        path = self.tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    def _run(self, argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            exit_code = cli_main(argv)
        return exit_code, out.getvalue(), err.getvalue()

    def test_default_prints_source_and_evaluation(self) -> None:
        source_path = self._write_source("+" * 65 + ". print A then clear [-]")
        exit_code, out, _ = self._run([str(source_path)])
        self.assertEqual(exit_code, 0)
        self.assertEqual(out, "SRC:\n" + "+" * 65 + ".[+]\nEVAL:\nA\n")

    def test_default_mode_separates_files(self) -> None:
        first = self._write_source("+" * 65 + ".", "a.bf")
        second = self._write_source("+" * 66 + ".", "b.bf")
        exit_code, out, _ = self._run([str(first), str(second)])
        self.assertEqual(exit_code, 0)
        self.assertEqual(
            out,
            "SRC:\n" + "+" * 65 + ".\nEVAL:\nA\n" + "SRC:\n" + "+" * 66 + ".\nEVAL:\nB\n",
        )

    def test_print_only(self) -> None:
        source_path = self._write_source("++[-]")
        exit_code, out, _ = self._run([str(source_path), "--print"])
        self.assertEqual(exit_code, 0)
        self.assertEqual(out, "++[+]\n")

    def test_run_with_input(self) -> None:
        source_path = self._write_source(",[.,]")
        exit_code, out, _ = self._run([str(source_path), "--run", "--input", "hi"])
        self.assertEqual(exit_code, 0)
        self.assertEqual(out, "hi")

    def test_multiple_sources(self) -> None:
        first = self._write_source("+" * 65 + ".", "a.bf")
        second = self._write_source("+" * 66 + ".", "b.bf")
        exit_code, out, _ = self._run([str(first), str(second), "--run"])
        self.assertEqual(exit_code, 0)
        self.assertEqual(out, "AB")

    def test_emit_to_file(self) -> None:
        source_path = self._write_source("+[>+<-]")
        output_path = self.tmp_path / "out.c"
        exit_code, _, _ = self._run([str(source_path), "--emit", "c", "-o", str(output_path)])
        self.assertEqual(exit_code, 0)
        self.assertEqual(output_path.read_text(encoding="utf-8"), transpile(parse("+[>+<-]"), "c"))

    def test_emit_python_to_stdout(self) -> None:
        source_path = self._write_source(".")
        exit_code, out, _ = self._run([str(source_path), "--emit", "python"])
        self.assertEqual(exit_code, 0)
        self.assertIn("def main(stdin, stdout):", out)

    def test_output_requires_emit(self) -> None:
        source_path = self._write_source(".")
        exit_code, _, err = self._run([str(source_path), "-o", str(self.tmp_path / "x")])
        self.assertEqual(exit_code, 2)
        self.assertIn("--output requires --emit", err)

    def test_missing_file_errors(self) -> None:
        exit_code, _, err = self._run(["does_not_exist.bf"])
        self.assertEqual(exit_code, 1)
        self.assertIn("Source file not found", err)

    def test_parse_error(self) -> None:
        source_path = self._write_source("[+")
        exit_code, _, err = self._run([str(source_path)])
        self.assertEqual(exit_code, 1)
        self.assertIn("Unterminated loop", err)

    def test_strict_rejects_stray_close(self) -> None:
        source_path = self._write_source("+]")
        exit_code, _, err = self._run([str(source_path), "--strict", "--print"])
        self.assertEqual(exit_code, 1)
        self.assertIn("Parse error", err)

    def test_runtime_error_keeps_partial_output(self) -> None:
        source_path = self._write_source("+" * 65 + ".<")
        exit_code, out, err = self._run([str(source_path), "--run"])
        self.assertEqual(exit_code, 1)
        self.assertEqual(out, "A")
        self.assertIn("Runtime error", err)

    def test_step_limit(self) -> None:
        source_path = self._write_source("+[]")
        exit_code, _, err = self._run([str(source_path), "--run", "--max-steps", "50"])
        self.assertEqual(exit_code, 1)
        self.assertIn("step count", err)


if __name__ == "__main__":
    unittest.main()

from __future__ import annotations

import io
import json
import sys
import tempfile
import unittest
import xml.etree.ElementTree as ET
from pathlib import Path
from unittest import mock

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from flowgraph import cli

SAMPLE = "graph TD\nA[Start] --> B{Ready?}\nB -->|yes| C\nB -->|no| D\nstyle C fill:#9f6"


class CLIAcceptanceTests(unittest.TestCase):
    def run_cli(self, argv: list[str], stdin_text: str = "") -> tuple[int, str, str]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        stdin = io.StringIO(stdin_text)
        with mock.patch("sys.stdout", stdout), mock.patch("sys.stderr", stderr), mock.patch("sys.stdin", stdin):
            code = cli.main(argv)
        return code, stdout.getvalue(), stderr.getvalue()

    def test_requires_subcommand(self) -> None:
        code, _out, err = self.run_cli([])
        self.assertEqual(code, 2)
        self.assertIn("E_ARGS", err)
        self.assertIn("subcommand", err)

    def test_compile_text_prints_graph_json(self) -> None:
        code, out, err = self.run_cli(["compile", "--text", SAMPLE])
        self.assertEqual(code, 0, err)
        payload = json.loads(out)
        self.assertEqual(payload["root"], "A")
        self.assertEqual([n["id"] for n in payload["nodes"]], ["A", "B", "C", "D"])
        self.assertEqual(payload["nodes"][1]["shape"], "rhombus")
        self.assertEqual([e["label"] for e in payload["edges"]], [None, "yes", "no"])

    def test_compile_reads_stdin(self) -> None:
        code, out, err = self.run_cli(["compile"], stdin_text="A --> B\n")
        self.assertEqual(code, 0, err)
        self.assertEqual(len(json.loads(out)["edges"]), 1)

    def test_layout_with_collapse(self) -> None:
        code, out, err = self.run_cli(["layout", "--text", SAMPLE, "--collapse", "B"])
        self.assertEqual(code, 0, err)
        payload = json.loads(out)
        visible = [n["id"] for n in payload["nodes"] if n["visible"]]
        self.assertEqual(visible, ["A", "B"])
        self.assertEqual(payload["levels"], [["A"], ["B"]])

    def test_layout_unknown_collapse_id_errors(self) -> None:
        code, _out, err = self.run_cli(["layout", "--text", SAMPLE, "--collapse", "Z"])
        self.assertEqual(code, 3)
        self.assertIn("E_UNKNOWN_NODE", err)

    def test_layout_options_change_box(self) -> None:
        code, out, err = self.run_cli(["layout", "--text", SAMPLE, "--node-width", "220", "--level-gap", "10"])
        self.assertEqual(code, 0, err)
        payload = json.loads(out)
        self.assertEqual(payload["node_width"], 220)
        self.assertEqual(payload["level_separation"], 60 + 10)

    def test_render_file_writes_svg(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            src = Path(td) / "chart.flow"
            src.write_text(SAMPLE)
            code, out, err = self.run_cli(["render", str(src)])
            self.assertEqual(code, 0, err)
            target = Path(td) / "chart.svg"
            self.assertTrue(target.exists())
            self.assertIn("Wrote", out)
            root = ET.fromstring(target.read_text())
            self.assertTrue(root.tag.endswith("svg"))

    def test_render_stdout_and_output_conflict(self) -> None:
        code, _out, err = self.run_cli(["render", "--text", SAMPLE, "--stdout", "-o", "x.svg"])
        self.assertEqual(code, 2)
        self.assertIn("mutually exclusive", err)

    def test_render_text_to_stdout(self) -> None:
        code, out, err = self.run_cli(["render", "--text", SAMPLE])
        self.assertEqual(code, 0, err)
        self.assertIn("<svg", out)
        self.assertIn("node-C", out)

    def test_missing_input_file(self) -> None:
        code, _out, err = self.run_cli(["compile", "/nonexistent/chart.flow"])
        self.assertEqual(code, 2)
        self.assertIn("E_IO_READ", err)

    def test_diagnostics_warn_and_strict_fails(self) -> None:
        source = "A --> B\nlinkStyle x stroke:red"
        code, _out, err = self.run_cli(["compile", "--text", source])
        self.assertEqual(code, 0, err)
        self.assertIn("warning: <text>: line 2:", err)

        code, _out, err = self.run_cli(["--error-format", "json", "compile", "--text", source, "--strict"])
        self.assertEqual(code, 3)
        payload = json.loads(err.strip().splitlines()[-1])
        self.assertEqual(payload["code"], "E_DIAGNOSTICS")
        self.assertEqual(payload["line"], 2)

    def test_invalid_max_chars(self) -> None:
        code, _out, err = self.run_cli(["layout", "--text", SAMPLE, "--max-chars", "0"])
        self.assertEqual(code, 2)
        self.assertIn("--max-chars", err)

    def test_unknown_subcommand_is_usage_error(self) -> None:
        code, _out, err = self.run_cli(["draw"])
        self.assertEqual(code, 2)
        self.assertIn("E_ARGS", err)

    def test_cheatsheet(self) -> None:
        code, out, err = self.run_cli(["cheatsheet"])
        self.assertEqual(code, 0, err)
        self.assertIn("linkStyle", out)


if __name__ == "__main__":
    unittest.main()

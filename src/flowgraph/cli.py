"""Command-line interface for flowgraph compile/layout/render workflows."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .compiler import compile_graph
from .layout import LayoutConfig, LayoutEngine
from .model import Graph, LayoutResult
from .render import render_svg
from .resources import load_cheatsheet

SUBCOMMANDS_HINT = "Use one of: compile, layout, render, cheatsheet."


@dataclass
class CliError(Exception):
    code: str
    message: str
    hint: Optional[str] = None
    exit_code: int = 1
    file: Optional[str] = None
    line: Optional[int] = None


class UsageError(Exception):
    pass


class FriendlyArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # pragma: no cover - argparse callback
        raise UsageError(message)


def _add_input_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("input", nargs="?", help="Input flowchart file")
    parser.add_argument("--text", help="Raw flowchart source")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail when the compiler ignored or only partially understood a line.",
    )


def _add_layout_arguments(parser: argparse.ArgumentParser) -> None:
    defaults = LayoutConfig()
    parser.add_argument(
        "--collapse",
        default="",
        metavar="IDS",
        help="Comma-separated node ids to lay out collapsed.",
    )
    parser.add_argument("--node-width", type=float, default=defaults.node_width)
    parser.add_argument("--node-height", type=float, default=defaults.node_height)
    parser.add_argument("--level-gap", type=float, default=defaults.level_gap)
    parser.add_argument("--sibling-gap", type=float, default=defaults.sibling_gap)
    parser.add_argument("--max-chars", type=int, default=defaults.max_chars_per_line)
    parser.add_argument("--font", help="TrueType font used to measure labels")
    parser.add_argument("--font-size", type=float, help="Font size used to measure labels")


def _build_parser() -> argparse.ArgumentParser:
    parser = FriendlyArgumentParser(
        prog="flowgraph",
        description="Compile, lay out and render flowchart text.",
    )
    parser.add_argument("--error-format", choices=["text", "json"], default="text")
    parser.add_argument("--debug", action="store_true")

    subparsers = parser.add_subparsers(dest="command")

    compile_parser = subparsers.add_parser("compile", help="Print the compiled graph as JSON")
    _add_input_arguments(compile_parser)

    layout_parser = subparsers.add_parser("layout", help="Print the computed layout as JSON")
    _add_input_arguments(layout_parser)
    _add_layout_arguments(layout_parser)

    render_parser = subparsers.add_parser("render", help="Render the flowchart to SVG")
    _add_input_arguments(render_parser)
    _add_layout_arguments(render_parser)
    render_parser.add_argument("--stdout", action="store_true", help="Write SVG to stdout")
    render_parser.add_argument("-o", "--output", help="Output .svg path")

    subparsers.add_parser("cheatsheet", help="Print the flowchart syntax quick reference")

    return parser


def _read_input(path: Optional[str], text: Optional[str]) -> tuple[str, str, Optional[Path]]:
    if path and text is not None:
        raise CliError(
            "E_ARGS",
            "--text cannot be combined with file input",
            hint="Use either FILE or --text.",
            exit_code=2,
        )

    if text is not None:
        return text, "<text>", None

    if path:
        input_path = Path(path)
        if not input_path.exists():
            raise CliError(
                "E_IO_READ",
                f"input file not found: {input_path}",
                exit_code=2,
                file=str(input_path),
            )
        try:
            return input_path.read_text(encoding="utf-8"), str(input_path), input_path
        except OSError as exc:
            raise CliError(
                "E_IO_READ",
                f"failed to read input file: {input_path}",
                hint=str(exc),
                exit_code=2,
                file=str(input_path),
            )

    if sys.stdin.isatty():
        raise CliError(
            "E_ARGS",
            "no input provided",
            hint="Use a subcommand with FILE, --text, or pipe stdin.",
            exit_code=2,
        )

    data = sys.stdin.read()
    if not data.strip():
        raise CliError(
            "E_ARGS",
            "stdin was empty",
            hint="Pipe flowchart text into stdin.",
            exit_code=2,
        )
    return data, "<stdin>", None


def _write_text(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise CliError(
            "E_IO_WRITE",
            f"failed to write output file: {path}",
            hint=str(exc),
            exit_code=4,
            file=str(path),
        )


def _compile_source(args: argparse.Namespace) -> tuple[Graph, str, Optional[Path]]:
    source, source_name, source_path = _read_input(args.input, args.text)
    graph = compile_graph(source)
    for diagnostic in graph.diagnostics:
        sys.stderr.write(f"warning: {source_name}: {diagnostic}\n")
    if args.strict and graph.diagnostics:
        first = graph.diagnostics[0]
        raise CliError(
            "E_DIAGNOSTICS",
            f"{len(graph.diagnostics)} line(s) were not fully understood",
            hint="Fix the lines reported above or drop --strict.",
            exit_code=3,
            file=source_name,
            line=first.line,
        )
    return graph, source_name, source_path


def _config_from_args(args: argparse.Namespace) -> LayoutConfig:
    if args.max_chars < 1:
        raise CliError(
            "E_ARGS",
            "--max-chars must be >= 1",
            hint="Use a positive character budget like 20.",
            exit_code=2,
        )
    return LayoutConfig(
        node_width=args.node_width,
        node_height=args.node_height,
        level_gap=args.level_gap,
        sibling_gap=args.sibling_gap,
        max_chars_per_line=args.max_chars,
        font_path=args.font,
        font_size=args.font_size,
    )


def _layout_from_args(args: argparse.Namespace, graph: Graph) -> LayoutResult:
    collapsed = [part.strip() for part in args.collapse.split(",") if part.strip()]
    unknown = [node_id for node_id in collapsed if node_id not in graph]
    if unknown:
        raise CliError(
            "E_UNKNOWN_NODE",
            f"--collapse names unknown node id(s): {', '.join(unknown)}",
            hint="Run `flowgraph compile` to list node ids.",
            exit_code=3,
        )
    return LayoutEngine(_config_from_args(args)).layout(graph, collapsed)


def _error_from_exception(exc: Exception) -> CliError:
    if isinstance(exc, CliError):
        return exc
    return CliError(
        "E_INTERNAL",
        str(exc) or exc.__class__.__name__,
        hint="Re-run with --debug to see traceback.",
        exit_code=1,
    )


def _emit_error(err: CliError, *, error_format: str) -> None:
    if error_format == "json":
        payload = {
            "ok": False,
            "code": err.code,
            "message": err.message,
            "file": err.file,
            "line": err.line,
            "hint": err.hint,
        }
        sys.stderr.write(json.dumps(payload) + "\n")
        return

    sys.stderr.write(f"error[{err.code}]: {err.message}\n")
    if err.hint:
        sys.stderr.write(f"hint: {err.hint}\n")


def _write_json(payload: dict) -> None:
    sys.stdout.write(json.dumps(payload, indent=2) + "\n")


def _handle_compile(args: argparse.Namespace) -> int:
    graph, _source_name, _source_path = _compile_source(args)
    _write_json(graph.to_dict())
    return 0


def _handle_layout(args: argparse.Namespace) -> int:
    graph, _source_name, _source_path = _compile_source(args)
    _write_json(_layout_from_args(args, graph).to_dict())
    return 0


def _handle_render(args: argparse.Namespace) -> int:
    if args.stdout and args.output:
        raise CliError(
            "E_ARGS",
            "--stdout and --output are mutually exclusive",
            hint="Choose either --stdout or --output.",
            exit_code=2,
        )

    graph, _source_name, source_path = _compile_source(args)
    svg_text = render_svg(_layout_from_args(args, graph))

    if args.stdout or (source_path is None and not args.output):
        sys.stdout.write(svg_text)
        if not svg_text.endswith("\n"):
            sys.stdout.write("\n")
        return 0

    output_path = Path(args.output) if args.output else source_path.with_suffix(".svg")
    _write_text(output_path, svg_text)
    print(f"Wrote {output_path}")
    return 0


def main(argv: Optional[Iterable[str]] = None) -> int:
    raw_argv = list(argv) if argv is not None else sys.argv[1:]
    parser = _build_parser()

    if not raw_argv:
        err = CliError("E_ARGS", "missing subcommand", hint=SUBCOMMANDS_HINT, exit_code=2)
        _emit_error(err, error_format="text")
        return err.exit_code

    debug_enabled = "--debug" in raw_argv or os.getenv("FLOWGRAPH_DEBUG") == "1"
    if debug_enabled:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )
    error_format = "text"
    if "--error-format" in raw_argv:
        idx = raw_argv.index("--error-format")
        if idx + 1 < len(raw_argv):
            error_format = raw_argv[idx + 1]

    try:
        args = parser.parse_args(raw_argv)
        error_format = args.error_format

        if args.command == "compile":
            return _handle_compile(args)
        if args.command == "layout":
            return _handle_layout(args)
        if args.command == "render":
            return _handle_render(args)
        if args.command == "cheatsheet":
            print(load_cheatsheet())
            return 0

        raise CliError("E_ARGS", "missing subcommand", hint=SUBCOMMANDS_HINT, exit_code=2)
    except UsageError as exc:
        err = CliError("E_ARGS", str(exc), hint=SUBCOMMANDS_HINT, exit_code=2)
        _emit_error(err, error_format=error_format)
        return err.exit_code
    except Exception as exc:  # pragma: no cover - exercised in integration tests
        err = _error_from_exception(exc)
        _emit_error(err, error_format=error_format)
        if debug_enabled:
            traceback.print_exc(file=sys.stderr)
        return err.exit_code


if __name__ == "__main__":
    raise SystemExit(main())

#!/usr/bin/env python3
"""cmem/main.py — CLI entry-point for the cmem console.

Usage examples
--------------
    # Interactive console
    python -m cmem repl

    # Evaluate a file of statements, one per line
    python -m cmem run session.cm --dump-heap

    # Parse a statement and print its AST as JSON
    python -m cmem parse 'int* p = malloc(4)'

    # Print the native function registry
    python -m cmem builtins --format json

    # Show version and exit
    python -m cmem --version

Exit codes
----------
    0   Success.
    1   A statement failed (syntax, type, runtime or internal error).
    2   Infrastructure failure (bad file, bad arguments, ...).

The module doubles as ``python -m cmem`` via the companion
``cmem/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, Sequence, TextIO

from cmem import __version__

_log = logging.getLogger("cmem")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2

PROMPT = "> "


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the root ``cmem`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("cmem")
    root.setLevel(level)
    root.handlers[:] = [handler]


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.exists():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _make_console(args: argparse.Namespace):
    from cmem.console import Console
    from cmem.engine import EngineConfig

    config = EngineConfig(
        memory_size=args.memory_size,
        display_base=args.display_base,
    )
    for w in config.validate():
        _log.error("Invalid configuration: %s", w)
        raise SystemExit(EXIT_INFRA)
    return Console(config)


def _print_items(items: Iterable, out: TextIO) -> None:
    for item in items:
        if item.style.value == "command":
            continue
        print(item.text, file=out)


# ===========================================================================
# Sub-command implementations
# ===========================================================================

def cmd_repl(args: argparse.Namespace) -> int:
    """Interactive read-evaluate-print loop."""
    console = _make_console(args)
    out = sys.stdout
    _print_items(console.history, out)

    while True:
        try:
            line = input(PROMPT)
        except EOFError:
            print(file=out)
            return EXIT_OK
        if line.strip() in ("exit", "quit"):
            return EXIT_OK
        if line.strip() == "heap":
            print(console.heap_dump(), file=out)
            continue
        _print_items(console.execute(line), out)


def cmd_run(args: argparse.Namespace) -> int:
    """Evaluate each statement line of a file."""
    path = _resolve_path(args.source_file, "source file")
    console = _make_console(args)
    out = sys.stdout
    status = EXIT_OK

    _log.info("Running %s", path)
    for lineno, raw in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith("//"):
            continue
        items = console.execute(line)
        if args.echo:
            print(f"{PROMPT}{line}", file=out)
        _print_items(items, out)
        if any(item.style.value == "error" for item in items):
            _log.info("%s:%d: statement failed", path.name, lineno)
            status = EXIT_ERROR
            if not args.keep_going:
                break

    if args.dump_heap:
        print(console.heap_dump(), file=out)
    return status


def cmd_parse(args: argparse.Namespace) -> int:
    """Parse a statement and print its AST."""
    from cmem.ast_nodes import node_to_dict
    from cmem.errors import CmemError
    from cmem.grammar import parse_statement

    try:
        node = parse_statement(args.statement)
    except CmemError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_ERROR

    if args.format == "json":
        print(json.dumps(node_to_dict(node), indent=2))
    else:
        print(repr(node))
    return EXIT_OK


def cmd_builtins(args: argparse.Namespace) -> int:
    """List the native function registry."""
    from cmem.builtins import BUILTIN_SPECS, registry_as_dict

    if args.format == "json":
        print(json.dumps(registry_as_dict(), indent=2))
    else:
        for spec in BUILTIN_SPECS.values():
            print(f"{spec.signature():<28} {spec.summary}")
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cmem",
        description="Console evaluator for a small C-like language over a simulated heap.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(title="commands")

    def _add_engine_args(p: argparse.ArgumentParser) -> None:
        g = p.add_argument_group("engine")
        g.add_argument(
            "--memory-size",
            type=int,
            default=256,
            metavar="BYTES",
            help="Heap size in bytes (default: 256).",
        )
        g.add_argument(
            "--display-base",
            type=int,
            choices=[10, 16],
            default=16,
            help="Initial display base (default: 16).",
        )

    # --- repl --------------------------------------------------------------
    p_repl = subparsers.add_parser(
        "repl",
        help="Start the interactive console.",
        description="Type statements one per line; 'heap' dumps memory, 'exit' quits.",
    )
    _add_engine_args(p_repl)
    p_repl.set_defaults(func=cmd_repl)

    # --- run ---------------------------------------------------------------
    p_run = subparsers.add_parser(
        "run",
        help="Evaluate a file of statements.",
        description="Evaluate SOURCE one line at a time; '//' lines are comments.",
    )
    p_run.add_argument("source_file", metavar="SOURCE", help="Statement file.")
    p_run.add_argument(
        "-k", "--keep-going",
        action="store_true",
        help="Continue after a failing statement.",
    )
    p_run.add_argument(
        "--echo",
        action="store_true",
        help="Echo each statement before its result.",
    )
    p_run.add_argument(
        "--dump-heap",
        action="store_true",
        help="Print the heap after the last statement.",
    )
    _add_engine_args(p_run)
    p_run.set_defaults(func=cmd_run)

    # --- parse -------------------------------------------------------------
    p_parse = subparsers.add_parser(
        "parse",
        help="Parse a statement and dump the AST.",
    )
    p_parse.add_argument("statement", metavar="STATEMENT")
    p_parse.add_argument(
        "-f", "--format",
        choices=["json", "repr"],
        default="json",
        help="AST output format (default: json).",
    )
    p_parse.set_defaults(func=cmd_parse)

    # --- builtins ----------------------------------------------------------
    p_builtins = subparsers.add_parser(
        "builtins",
        help="List native functions.",
    )
    p_builtins.add_argument(
        "-f", "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text).",
    )
    p_builtins.set_defaults(func=cmd_builtins)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the cmem CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130  # Standard UNIX convention for SIGINT
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())

#!/usr/bin/env python3
"""tsanalysis_shims/cli.py — command-line front end.

Usage examples
--------------
    # Lint sources for @ts- directive comments (default policy)
    python -m tsanalysis_shims lint src/

    # Use a JSON rule configuration and GCC-style output
    python -m tsanalysis_shims lint src/ --config lint.json --output gcc

    # Rewrite @ts-ignore into @ts-expect-error where suggested
    python -m tsanalysis_shims lint src/ --apply-suggestions

    # Classify every type in a JSON type dump
    python -m tsanalysis_shims classify types.json --base-type 12

Configuration file
------------------
A JSON object mapping checker names to rule entries::

    {"ban-ts-comment": ["warn", {"ts-expect-error": {"descriptionFormat": "^: TS\\\\d+"}}]}

An object holding only policy keys (``ts-ignore``, ...,
``minimumDescriptionLength``, optional ``severity``) is taken as the
``ban-ts-comment`` options.  A top-level ``"rules"`` object is unwrapped.

Exit codes
----------
    0   Success (no ERROR diagnostics).
    1   One or more diagnostics with severity ERROR were emitted.
    2   Infrastructure failure (bad configuration, unreadable file, ...).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, TextIO

from tsanalysis_shims import __version__
from tsanalysis_shims.checkers import (
    BanTsCommentChecker,
    CheckerRunner,
    CheckerRunResults,
    default_registry,
)
from tsanalysis_shims.diagnostics import apply_edits
from tsanalysis_shims.errors import ConfigurationError, TsShimsError
from tsanalysis_shims.policy import OPTION_KEYS, PRESETS
from tsanalysis_shims.type_model import SimpleTypeChecker, TypeNode, load_type_dump
from tsanalysis_shims.type_predicates import TypeClassifier, logging_sink

_log = logging.getLogger("tsanalysis_shims")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2

SOURCE_SUFFIXES = frozenset({
    ".ts", ".tsx", ".mts", ".cts", ".js", ".jsx", ".mjs", ".cjs",
})


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``tsanalysis_shims`` logger.

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

    root = logging.getLogger("tsanalysis_shims")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        root.addHandler(handler)


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.exists():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def collect_source_files(raw_paths: Sequence[str]) -> List[Path]:
    """Expand directories into the source files below them, sorted."""
    files: List[Path] = []
    for raw in raw_paths:
        p = _resolve_path(raw, "path")
        if p.is_dir():
            files.extend(
                sorted(
                    f for f in p.rglob("*")
                    if f.is_file()
                    and f.suffix in SOURCE_SUFFIXES
                    and "node_modules" not in f.parts
                )
            )
        else:
            files.append(p)
    return files


def load_rule_options(
    config_path: Optional[str] = None,
    preset: Optional[str] = None,
) -> Dict[str, Any]:
    """Build the runner's checker options from a preset and a JSON file."""
    options: Dict[str, Any] = {}
    if preset is not None:
        if preset not in PRESETS:
            raise ConfigurationError(
                f"unknown preset {preset!r} (choose from {', '.join(sorted(PRESETS))})",
                key="preset",
            )
        level, preset_options = PRESETS[preset]
        options[BanTsCommentChecker.name] = [level, dict(preset_options)]

    if config_path is None:
        return options

    path = _resolve_path(config_path, "config")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{path}: not valid JSON: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{path}: expected a JSON object")
    if isinstance(data.get("rules"), Mapping):
        data = data["rules"]
    if data and set(data) <= (OPTION_KEYS | {"severity"}):
        data = {BanTsCommentChecker.name: dict(data)}
    options.update(data)
    return options


def _emit_results(results: CheckerRunResults, fmt: str, stream: TextIO) -> None:
    if fmt == "json":
        for diag in results.diagnostics:
            stream.write(diag.to_json_str() + "\n")
    elif fmt == "gcc":
        for diag in results.diagnostics:
            stream.write(diag.to_gcc_format() + "\n")
    else:
        for diag in results.diagnostics:
            stream.write(diag.to_gcc_format() + "\n")
        stream.write(results.summary() + "\n")


# ===========================================================================
# Commands
# ===========================================================================

def cmd_lint(args: argparse.Namespace) -> int:
    if args.list_checkers:
        registry = default_registry()
        for name in registry.names:
            cls = registry.get_by_name(name)
            desc = cls.description if cls else ""
            ids = ", ".join(sorted(cls.error_ids)) if cls else ""
            print(f"  {name:25s} {desc}")
            print(f"  {'':25s} IDs: {ids}")
        return EXIT_OK

    if not args.paths:
        _log.error("No input paths given.")
        return EXIT_INFRA

    try:
        options = load_rule_options(args.config, args.preset)
        runner = CheckerRunner(options=options, checkers=args.checkers)
    except ConfigurationError as exc:
        _log.error("Invalid configuration: %s", exc)
        return EXIT_INFRA

    files = collect_source_files(args.paths)
    _log.info("Linting %d file(s)", len(files))
    try:
        results = runner.run_paths(files)
    except (OSError, UnicodeDecodeError) as exc:
        _log.error("Failed to read source: %s", exc)
        return EXIT_INFRA

    if args.apply_suggestions:
        for file in results.files:
            edits = results.edits_for(file)
            if not edits:
                continue
            path = Path(file)
            new_text, applied = apply_edits(path.read_text(encoding="utf-8"), edits)
            path.write_text(new_text, encoding="utf-8")
            _log.info("%s: applied %d edit(s)", file, applied)

    stream = _open_output(args.output_file)
    try:
        _emit_results(results, args.output, stream)
    finally:
        if stream is not sys.stdout:
            stream.close()

    return EXIT_ERROR if results.error_count > 0 else EXIT_OK


def classify_type(
    classifier: TypeClassifier,
    checker: SimpleTypeChecker,
    type_: TypeNode,
    base: Optional[TypeNode] = None,
) -> Dict[str, Any]:
    """Every predicate's verdict for one type, as a JSON-ready dict."""
    row: Dict[str, Any] = {
        "id": type_.id,
        "nullable": classifier.is_nullable_type(type_),
        "never": classifier.is_type_never_type(type_),
        "unknown": classifier.is_type_unknown_type(type_),
        "any": classifier.is_type_any_type(type_),
        "anyArray": classifier.is_type_any_array_type(type_, checker),
        "unknownArray": classifier.is_type_unknown_array_type(type_, checker),
        "arrayOrUnionOfArrays":
            classifier.is_type_array_type_or_union_of_array_types(type_, checker),
        "bigIntLiteral": classifier.is_type_bigint_literal_type(type_),
        "templateLiteral": classifier.is_type_template_literal_type(type_),
        "typeReference": classifier.is_type_reference_type(type_),
    }
    if base is not None:
        row["isOrHasBaseType"] = classifier.type_is_or_has_base_type(type_, base)
    return row


def cmd_classify(args: argparse.Namespace) -> int:
    path = _resolve_path(args.dump, "type dump")
    try:
        dump = load_type_dump(path)
    except TsShimsError as exc:
        _log.error("Failed to load type dump: %s", exc)
        return EXIT_INFRA

    base = None
    if args.base_type is not None:
        base = dump.get(args.base_type)
        if base is None:
            _log.error("No type with id %d in %s", args.base_type, path)
            return EXIT_INFRA

    classifier = TypeClassifier(sink=logging_sink(_log))
    checker = SimpleTypeChecker()
    stream = _open_output(args.output_file)
    try:
        for type_ in dump:
            row = classify_type(classifier, checker, type_, base)
            stream.write(json.dumps(row) + "\n")
    finally:
        if stream is not sys.stdout:
            stream.close()
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="tsanalysis-shims",
        description=(
            "Type classification and @ts- directive policy checks for\n"
            "TypeScript sources and type dumps."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              tsanalysis-shims lint src/ --output gcc
              tsanalysis-shims lint src/ --config lint.json --apply-suggestions
              tsanalysis-shims classify types.json --base-type 12
        """),
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
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    def _add_output_file_arg(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "-o", "--output-file",
            default=None,
            metavar="FILE",
            help='Output file ("-" or omit for stdout).',
        )

    # lint ------------------------------------------------------------------
    p_lint = subparsers.add_parser(
        "lint",
        help="Check @ts- directive comments in source files.",
    )
    p_lint.add_argument(
        "paths", nargs="*",
        help="Files or directories to lint.",
    )
    p_lint.add_argument(
        "--config", default=None, metavar="FILE",
        help="JSON rule configuration.",
    )
    p_lint.add_argument(
        "--preset", default=None, choices=sorted(PRESETS),
        help="Start from a named configuration.",
    )
    p_lint.add_argument(
        "--checkers", nargs="*", default=None,
        help="Checker names to run (default: all).",
    )
    p_lint.add_argument(
        "--output", choices=["json", "gcc", "summary"],
        default="gcc", help="Output format.",
    )
    p_lint.add_argument(
        "--apply-suggestions", action="store_true",
        help="Rewrite files with each diagnostic's fix or first suggestion.",
    )
    p_lint.add_argument(
        "--list-checkers", action="store_true",
        help="List available checkers and exit.",
    )
    _add_output_file_arg(p_lint)
    p_lint.set_defaults(func=cmd_lint)

    # classify --------------------------------------------------------------
    p_classify = subparsers.add_parser(
        "classify",
        help="Classify the types in a JSON type dump.",
    )
    p_classify.add_argument("dump", help="Path to the JSON type dump.")
    p_classify.add_argument(
        "--base-type", type=int, default=None, metavar="ID",
        help="Also report whether each type is or extends this type.",
    )
    _add_output_file_arg(p_classify)
    p_classify.set_defaults(func=cmd_classify)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI.

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

    # No subcommand given → print help.
    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())

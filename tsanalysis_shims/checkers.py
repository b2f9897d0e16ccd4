"""
tsanalysis_shims/checkers.py
════════════════════════════

Checker framework that turns the directive policy into lint
diagnostics over TypeScript / JavaScript source files.

Architecture
────────────

  ┌──────────────────────────────────────────────────────┐
  │                    CheckerRunner                     │
  │   options ──► configure() once per run (fail fast)   │
  │                                                      │
  │   per file:  SourceFile ──► comments (scan_comments) │
  │   ┌──────────────────┐                               │
  │   │ BanTsComment     │ collect_evidence → diagnose   │
  │   │   Checker        │ → report                      │
  │   └────────┬─────────┘                               │
  │            ▼                                         │
  │   CheckerRunResults (json / gcc / summary)           │
  └──────────────────────────────────────────────────────┘

Each Checker follows a four-phase lifecycle:

  1. **configure()**        — validate options, once per run
  2. **collect_evidence()** — gather candidate sites from the file
  3. **diagnose()**         — decide which sites become diagnostics
  4. **report()**           — hand the diagnostics to the runner

License: MIT — same as tsanalysis-shims.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    Any,
    ClassVar,
    Dict,
    FrozenSet,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Type,
    Union,
)

from tsanalysis_shims.comments import Comment, scan_comments
from tsanalysis_shims.diagnostics import (
    Diagnostic,
    DiagnosticSeverity,
    SourceLocation,
    TextEdit,
)
from tsanalysis_shims.directives import DirectiveMatch, iter_directives
from tsanalysis_shims.errors import ConfigurationError
from tsanalysis_shims.policy import (
    MESSAGES,
    REPLACE_TS_IGNORE_WITH_TS_EXPECT_ERROR,
    DirectivePolicyEvaluator,
    PolicyConfiguration,
)

_log = logging.getLogger(__name__)

CHECKER_INTERNAL_ERROR = "checkerInternalError"


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — SOURCE FILES AND CONTEXT
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class SourceFile:
    """One document under analysis; comments are scanned on first use."""
    path: str
    text: str
    _comments: Optional[List[Comment]] = field(default=None, repr=False)

    @classmethod
    def read(cls, path: Union[str, Path]) -> "SourceFile":
        p = Path(path)
        return cls(path=str(p), text=p.read_text(encoding="utf-8"))

    @property
    def comments(self) -> List[Comment]:
        if self._comments is None:
            self._comments = scan_comments(self.text, self.path)
        return self._comments


@dataclass
class CheckerContext:
    """
    Per-file context passed to every checker.

    Attributes
    ----------
    source : SourceFile being analysed
    stats  : mutable dict for timing / counting statistics
    """
    source: SourceFile
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def comments(self) -> List[Comment]:
        return self.source.comments


def resolve_rule_entry(
    entry: Any,
) -> Tuple[Optional[DiagnosticSeverity], Dict[str, Any]]:
    """
    Normalize a rule configuration entry.

    Accepted shapes: a level (``"error"``, ``"warn"``, ``"off"``, 0–2),
    ``[level, options]``, or a bare options mapping (level ``"error"``).
    ``None`` means "use defaults".
    """
    if entry is None:
        return DiagnosticSeverity.ERROR, {}
    if isinstance(entry, Mapping):
        entry = dict(entry)
        level = entry.pop("severity", "error")
        options = entry
    elif isinstance(entry, (list, tuple)):
        if not entry or len(entry) > 2:
            raise ConfigurationError(f"rule entry must be [level, options]: {entry!r}")
        level = entry[0]
        options = dict(entry[1]) if len(entry) == 2 else {}
    else:
        level, options = entry, {}
    try:
        severity = DiagnosticSeverity.from_rule_level(level)
    except (ValueError, TypeError) as exc:
        raise ConfigurationError(str(exc), key="severity") from exc
    return severity, options


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — CHECKER BASE CLASS
# ═════════════════════════════════════════════════════════════════════════

class Checker(ABC):
    """
    Abstract base class for all checkers.

    Subclass Contract
    ─────────────────
      - Override ``name``, ``description``, ``error_ids``
      - Implement ``collect_evidence()`` and ``diagnose()``
      - Optionally override ``configure()`` for custom setup
    """

    name: ClassVar[str] = "base-checker"
    description: ClassVar[str] = ""
    error_ids: ClassVar[FrozenSet[str]] = frozenset()
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.ERROR

    def __init__(self) -> None:
        self._diagnostics: List[Diagnostic] = []
        self.severity: Optional[DiagnosticSeverity] = self.default_severity

    @property
    def enabled(self) -> bool:
        return self.severity is not None

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    def configure(self, options: Mapping[str, Any]) -> None:
        """
        Called once per run, before any file is analysed.

        Raise ``ConfigurationError`` for invalid options.
        """
        pass

    @abstractmethod
    def collect_evidence(self, ctx: CheckerContext) -> None:
        ...

    @abstractmethod
    def diagnose(self, ctx: CheckerContext) -> None:
        """Append diagnostics to ``self._diagnostics``."""
        ...

    def report(self, ctx: CheckerContext) -> List[Diagnostic]:
        """Return and clear this file's diagnostics."""
        diags, self._diagnostics = self._diagnostics, []
        return diags

    def reset(self) -> None:
        self._diagnostics = []

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.name}'>"


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — CHECKER REGISTRY
# ═════════════════════════════════════════════════════════════════════════

class CheckerRegistry:
    """
    Registry of available checkers.

    >>> registry = CheckerRegistry()
    >>> registry.register(BanTsCommentChecker)
    >>> registry.names
    ['ban-ts-comment']
    """

    def __init__(self) -> None:
        self._checkers: Dict[str, Type[Checker]] = {}
        self._disabled: set = set()

    def register(self, checker_cls: Type[Checker]) -> None:
        self._checkers[checker_cls.name] = checker_cls

    def disable(self, name: str) -> None:
        self._disabled.add(name)

    def enable(self, name: str) -> None:
        self._disabled.discard(name)

    def get_enabled(self) -> List[Type[Checker]]:
        return [
            cls for name, cls in self._checkers.items()
            if name not in self._disabled
        ]

    def get_by_name(self, name: str) -> Optional[Type[Checker]]:
        return self._checkers.get(name)

    def filter_by_error_id(self, error_id: str) -> List[Type[Checker]]:
        return [
            cls for cls in self._checkers.values()
            if error_id in cls.error_ids
        ]

    @property
    def names(self) -> List[str]:
        return sorted(self._checkers.keys())


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — BAN-TS-COMMENT
# ═════════════════════════════════════════════════════════════════════════

class BanTsCommentChecker(Checker):
    """
    Disallow ``@ts-<directive>`` comments or require descriptions after
    directives.

    Options are the directive policy options (see ``policy``); the rule
    level comes from the runner.
    """

    name = "ban-ts-comment"
    description = (
        "Disallow `@ts-<directive>` comments or require descriptions "
        "after directives"
    )
    error_ids = frozenset(
        k for k in MESSAGES if k != REPLACE_TS_IGNORE_WITH_TS_EXPECT_ERROR
    )

    def __init__(self) -> None:
        super().__init__()
        self.evaluator = DirectivePolicyEvaluator(checker_name=self.name)
        self._matches: List[Tuple[Comment, DirectiveMatch]] = []

    def configure(self, options: Mapping[str, Any]) -> None:
        config = PolicyConfiguration.from_options(options)
        self.evaluator = DirectivePolicyEvaluator(
            config,
            severity=self.severity or self.default_severity,
            checker_name=self.name,
        )

    def collect_evidence(self, ctx: CheckerContext) -> None:
        self._matches = list(iter_directives(ctx.comments))
        ctx.stats[f"{self.name}_directives"] = len(self._matches)

    def diagnose(self, ctx: CheckerContext) -> None:
        for comment, match in self._matches:
            diag = self.evaluator.evaluate_match(comment, match)
            if diag is not None:
                self._diagnostics.append(diag)
        self._matches = []


# ═════════════════════════════════════════════════════════════════════════
#  PART 5 — CHECKER RUNNER
# ═════════════════════════════════════════════════════════════════════════

_DEFAULT_REGISTRY = CheckerRegistry()
_DEFAULT_REGISTRY.register(BanTsCommentChecker)


def default_registry() -> CheckerRegistry:
    return _DEFAULT_REGISTRY


@dataclass
class CheckerRunResults:
    """
    Aggregate results from running a suite of checkers.

    Attributes
    ----------
    diagnostics            : All diagnostics from all checkers
    diagnostics_by_checker : Diagnostics grouped by checker name
    stats                  : Timing and counting statistics
    checker_names          : Names of checkers that were run
    files                  : Paths of files that were analysed
    """
    diagnostics: List[Diagnostic] = field(default_factory=list)
    diagnostics_by_checker: Dict[str, List[Diagnostic]] = field(
        default_factory=lambda: defaultdict(list)
    )
    stats: Dict[str, Any] = field(default_factory=dict)
    checker_names: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(
            1 for d in self.diagnostics
            if d.severity == DiagnosticSeverity.ERROR
        )

    @property
    def warning_count(self) -> int:
        return sum(
            1 for d in self.diagnostics
            if d.severity == DiagnosticSeverity.WARNING
        )

    @property
    def total_count(self) -> int:
        return len(self.diagnostics)

    def by_file(self, file: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.location.file == file]

    def edits_for(self, file: str) -> List[TextEdit]:
        """One edit per diagnostic: its fix, else its first suggestion."""
        edits: List[TextEdit] = []
        for d in self.by_file(file):
            if d.fix is not None:
                edits.append(d.fix)
            elif d.suggestions:
                edits.append(d.suggestions[0].edit)
        return edits

    def merge(self, other: "CheckerRunResults") -> None:
        self.diagnostics.extend(other.diagnostics)
        for name, diags in other.diagnostics_by_checker.items():
            self.diagnostics_by_checker[name].extend(diags)
        for key, val in other.stats.items():
            if key in self.stats:
                self.stats[key] += val
            else:
                self.stats[key] = val
        for name in other.checker_names:
            if name not in self.checker_names:
                self.checker_names.append(name)
        self.files.extend(other.files)

    def to_json_lines(self) -> str:
        return "\n".join(d.to_json_str() for d in self.diagnostics)

    def to_gcc_format(self) -> str:
        return "\n".join(d.to_gcc_format() for d in self.diagnostics)

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            f"Checked {len(self.files)} file(s): {self.total_count} diagnostics "
            f"({self.error_count} errors, {self.warning_count} warnings)",
        ]
        for name in self.checker_names:
            count = len(self.diagnostics_by_checker.get(name, []))
            elapsed = self.stats.get(f"{name}_elapsed_ms", 0)
            lines.append(f"  {name}: {count} findings ({elapsed:.1f}ms)")
        return "\n".join(lines)


class CheckerRunner:
    """
    Runs a suite of checkers over source files.

    >>> runner = CheckerRunner(options={"ban-ts-comment": ["warn", {}]})
    >>> results = runner.run_text("// @ts-nocheck\\n", "app.ts")
    >>> results.warning_count
    1

    Parameters for constructor
    ─────────────────────────
    registry : CheckerRegistry — source of checker classes
    options  : dict — checker name → rule entry (see ``resolve_rule_entry``)
    checkers : names to run (None = all enabled in the registry)

    Checker options are validated here, so a bad configuration raises
    ``ConfigurationError`` before any file is read.
    """

    def __init__(
        self,
        registry: Optional[CheckerRegistry] = None,
        options: Optional[Mapping[str, Any]] = None,
        checkers: Optional[Sequence[str]] = None,
    ) -> None:
        self.registry = registry or _DEFAULT_REGISTRY
        self.options = dict(options or {})
        self.checkers: List[Checker] = []

        unknown = set(self.options) - set(self.registry.names)
        if unknown:
            raise ConfigurationError(
                f"options for unknown checker(s): {', '.join(sorted(unknown))}"
            )

        if checkers is not None:
            classes: List[Type[Checker]] = []
            for name in checkers:
                cls = self.registry.get_by_name(name)
                if cls is None:
                    raise ConfigurationError(f"unknown checker: {name}", key=name)
                classes.append(cls)
        else:
            classes = self.registry.get_enabled()

        for cls in classes:
            checker = cls()
            severity, checker_options = resolve_rule_entry(self.options.get(cls.name))
            checker.severity = severity
            if not checker.enabled:
                _log.debug("Checker %s is off", cls.name)
                continue
            checker.configure(checker_options)
            self.checkers.append(checker)

    def run(self, source: SourceFile) -> CheckerRunResults:
        """Run every configured checker against one file."""
        results = CheckerRunResults(files=[source.path])
        ctx = CheckerContext(source=source, stats=results.stats)

        for checker in self.checkers:
            checker_name = checker.name
            results.checker_names.append(checker_name)
            checker.reset()

            t0 = time.monotonic()
            try:
                checker.collect_evidence(ctx)
                checker.diagnose(ctx)
                diags = checker.report(ctx)
            except Exception as exc:
                # Graceful degradation: report the failure, don't crash
                _log.debug("Checker %s failed on %s", checker_name, source.path,
                           exc_info=True)
                diags = [Diagnostic(
                    error_id=CHECKER_INTERNAL_ERROR,
                    message=f"Checker '{checker_name}' failed: {exc}",
                    severity=DiagnosticSeverity.INFORMATION,
                    location=SourceLocation(file=source.path),
                    checker_name=checker_name,
                )]
            elapsed_ms = (time.monotonic() - t0) * 1000.0

            results.diagnostics.extend(diags)
            results.diagnostics_by_checker[checker_name].extend(diags)
            results.stats[f"{checker_name}_elapsed_ms"] = elapsed_ms

        _log.debug("%s: %d diagnostics", source.path, results.total_count)
        return results

    def run_text(self, text: str, path: str = "<input>") -> CheckerRunResults:
        return self.run(SourceFile(path=path, text=text))

    def run_paths(self, paths: Sequence[Union[str, Path]]) -> CheckerRunResults:
        combined = CheckerRunResults()
        for path in paths:
            combined.merge(self.run(SourceFile.read(path)))
        return combined


__all__ = [
    # Context
    "SourceFile",
    "CheckerContext",
    "resolve_rule_entry",
    # Checker framework
    "Checker",
    "CheckerRegistry",
    "BanTsCommentChecker",
    "default_registry",
    # Runner
    "CHECKER_INTERNAL_ERROR",
    "CheckerRunResults",
    "CheckerRunner",
]

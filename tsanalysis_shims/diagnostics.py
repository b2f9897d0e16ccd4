"""
tsanalysis_shims/diagnostics.py
═══════════════════════════════

Diagnostic model shared by every checker: severities, source positions,
text edits and suggestions, and the ``Diagnostic`` record with its JSON
and GCC-style serializers.

Positions use 1-based lines and 1-based columns; ``start``/``end``
offsets are 0-based indices into the document text, ``end`` exclusive.

License: MIT — same as tsanalysis-shims.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple


class DiagnosticSeverity(Enum):
    """Lint severity levels."""
    ERROR = "error"
    WARNING = "warning"
    INFORMATION = "information"

    @classmethod
    def from_rule_level(cls, level: Any) -> Optional["DiagnosticSeverity"]:
        """
        Map an ESLint-style rule level to a severity.

        ``"off"``/``0`` → ``None``; ``"warn"``/``1`` → WARNING;
        ``"error"``/``2`` → ERROR.  Raises ``ValueError`` otherwise.
        """
        mapping = {
            "off": None, 0: None,
            "warn": cls.WARNING, "warning": cls.WARNING, 1: cls.WARNING,
            "error": cls.ERROR, 2: cls.ERROR,
        }
        if isinstance(level, bool) or level not in mapping:
            raise ValueError(f"unknown rule level: {level!r}")
        return mapping[level]


@dataclass(frozen=True)
class SourceLocation:
    """A specific point in source code."""
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class SourceSpan:
    """A half-open character range with its start/end positions."""
    start: int
    end: int
    start_loc: SourceLocation = SourceLocation()
    end_loc: SourceLocation = SourceLocation()


@dataclass(frozen=True)
class TextEdit:
    """Replace ``source[start:end]`` with ``text``."""
    start: int
    end: int
    text: str

    def apply(self, source: str) -> str:
        return source[: self.start] + self.text + source[self.end:]


def apply_edits(source: str, edits: Iterable[TextEdit]) -> Tuple[str, int]:
    """
    Apply non-overlapping edits to *source*.

    Edits are applied back to front; an edit overlapping one already
    applied is skipped.  Returns the new text and the number applied.
    """
    applied = 0
    last_start: Optional[int] = None
    for edit in sorted(edits, key=lambda e: (e.start, e.end), reverse=True):
        if last_start is not None and edit.end > last_start:
            continue
        source = edit.apply(source)
        last_start = edit.start
        applied += 1
    return source, applied


@dataclass(frozen=True)
class Suggestion:
    """A machine-applicable edit offered to the user, never auto-applied."""
    message_id: str
    message: str
    edit: TextEdit


@dataclass(frozen=True)
class Diagnostic:
    """
    A single diagnostic finding.

    Attributes
    ----------
    error_id     : Message id (e.g., "tsDirectiveComment")
    message      : Human-readable text, already interpolated
    severity     : DiagnosticSeverity
    location     : Primary source location (start of ``span``)
    span         : Source range the diagnostic covers
    data         : Interpolation data used to render ``message``
    fix          : Edit safe to apply automatically, if any
    suggestions  : Edits offered but not applied automatically
    checker_name : Name of the checker that produced this
    """
    error_id: str
    message: str
    severity: DiagnosticSeverity
    location: SourceLocation
    span: Optional[SourceSpan] = None
    data: Dict[str, Any] = field(default_factory=dict)
    fix: Optional[TextEdit] = None
    suggestions: Tuple[Suggestion, ...] = ()
    checker_name: str = ""

    def with_severity(self, severity: DiagnosticSeverity) -> "Diagnostic":
        return Diagnostic(
            error_id=self.error_id,
            message=self.message,
            severity=severity,
            location=self.location,
            span=self.span,
            data=self.data,
            fix=self.fix,
            suggestions=self.suggestions,
            checker_name=self.checker_name,
        )

    def to_json(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict (ESLint-like field names)."""
        result: Dict[str, Any] = {
            "file": self.location.file,
            "line": self.location.line,
            "column": self.location.column,
            "severity": self.severity.value,
            "message": self.message,
            "messageId": self.error_id,
            "ruleId": self.checker_name,
        }
        if self.span is not None:
            result["endLine"] = self.span.end_loc.line
            result["endColumn"] = self.span.end_loc.column
        if self.fix is not None:
            result["fix"] = _edit_to_json(self.fix)
        if self.suggestions:
            result["suggestions"] = [
                {
                    "messageId": s.message_id,
                    "desc": s.message,
                    "fix": _edit_to_json(s.edit),
                }
                for s in self.suggestions
            ]
        return result

    def to_json_str(self) -> str:
        """Single-line JSON string."""
        return json.dumps(self.to_json())

    def to_gcc_format(self) -> str:
        """GCC-style diagnostic string: file:line:col: severity: message."""
        sev = self.severity.value
        return f"{self.location}: {sev}: {self.message} [{self.error_id}]"


def _edit_to_json(edit: TextEdit) -> Dict[str, Any]:
    return {"range": [edit.start, edit.end], "text": edit.text}


__all__ = [
    "DiagnosticSeverity",
    "SourceLocation",
    "SourceSpan",
    "TextEdit",
    "apply_edits",
    "Suggestion",
    "Diagnostic",
]

"""
tsanalysis_shims/errors.py
══════════════════════════

Exception hierarchy for tsanalysis-shims.

::

    TsShimsError (base)
    ├── ConfigurationError    - malformed checker / policy options
    │   └── InvalidPatternError - descriptionFormat does not compile
    └── TypeDumpError         - malformed JSON type dump

Normal analysis never raises: a comment without a directive, a type
without a symbol or without base types are ordinary falsy results.
Everything here fails fast, at configuration or load time, before any
document is analysed.

License: MIT — same as tsanalysis-shims.
"""

from __future__ import annotations

from typing import Optional


class TsShimsError(Exception):
    """Base class for all tsanalysis-shims errors."""


class ConfigurationError(TsShimsError, ValueError):
    """Raised when checker or policy options fail validation.

    Attributes
    ----------
    key : the option key at fault, when one can be named
    """

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.key = key


class InvalidPatternError(ConfigurationError):
    """A ``descriptionFormat`` pattern that cannot be compiled."""

    def __init__(self, directive: str, pattern: str, reason: str) -> None:
        super().__init__(
            f'invalid pattern for "{directive}": {reason}', key=directive
        )
        self.directive = directive
        self.pattern = pattern
        self.reason = reason


class TypeDumpError(TsShimsError):
    """Raised when a JSON type dump cannot be turned into type handles."""


__all__ = [
    "TsShimsError",
    "ConfigurationError",
    "InvalidPatternError",
    "TypeDumpError",
]

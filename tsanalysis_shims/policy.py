"""
tsanalysis_shims/policy.py
══════════════════════════

Directive policy: configuration and evaluation.

Configuration
─────────────
Each directive maps to one of

  ``False``                       directive allowed, never reported
  ``True``                        directive always reported
  ``"allow-with-description"``    allowed with a long-enough description
  ``{"descriptionFormat": src}``  allowed with a description matching src

plus a global ``minimumDescriptionLength`` (default 3, counted in code
points).  ``PolicyConfiguration.from_options`` merges user options over
the defaults, validates them and compiles every ``descriptionFormat``
up front, so a bad pattern fails before any file is read.

Evaluation
──────────
For a directive comment, the first applicable rule wins:

  1. disabled                          → nothing
  2. always flag, ``@ts-ignore``       → tsIgnoreInsteadOfExpectError
                                         + suggestion to use expect-error
     always flag, anything else        → tsDirectiveComment
  3. description required:
       trimmed length < minimum        → tsDirectiveCommentRequiresDescription
       format given and not matched    → tsDirectiveCommentDescriptionNotMatchPattern

License: MIT — same as tsanalysis-shims.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType
from typing import (
    Any,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Mapping,
    Optional,
    Pattern,
)

from tsanalysis_shims.comments import Comment, wrap_comment
from tsanalysis_shims.diagnostics import (
    Diagnostic,
    DiagnosticSeverity,
    Suggestion,
    TextEdit,
)
from tsanalysis_shims.directives import Directive, DirectiveMatch, match_directive
from tsanalysis_shims.errors import ConfigurationError, InvalidPatternError

_log = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — OPTIONS
# ═════════════════════════════════════════════════════════════════════════

ALLOW_WITH_DESCRIPTION = "allow-with-description"
DEFAULT_MINIMUM_DESCRIPTION_LENGTH = 3
MINIMUM_DESCRIPTION_LENGTH_KEY = "minimumDescriptionLength"
DESCRIPTION_FORMAT_KEY = "descriptionFormat"

DEFAULT_OPTIONS: Mapping[str, Any] = MappingProxyType({
    Directive.EXPECT_ERROR.value: ALLOW_WITH_DESCRIPTION,
    Directive.IGNORE.value: True,
    Directive.NOCHECK.value: True,
    Directive.CHECK.value: False,
    MINIMUM_DESCRIPTION_LENGTH_KEY: DEFAULT_MINIMUM_DESCRIPTION_LENGTH,
})

OPTION_KEYS: FrozenSet[str] = frozenset(
    [d.value for d in Directive] + [MINIMUM_DESCRIPTION_LENGTH_KEY]
)

# Named rule configurations: (severity level, options).
PRESETS: Mapping[str, Any] = MappingProxyType({
    "recommended": ("error", dict(DEFAULT_OPTIONS)),
    "strict": ("error", dict(DEFAULT_OPTIONS)),
})


class PolicyMode(Enum):
    DISABLED = auto()
    ALWAYS_FLAG = auto()
    ALLOW_WITH_DESCRIPTION = auto()
    DESCRIPTION_FORMAT = auto()


@dataclass(frozen=True)
class DirectivePolicy:
    """Policy for one directive."""
    mode: PolicyMode
    description_format: Optional[str] = None

    @property
    def requires_description(self) -> bool:
        if self.mode is PolicyMode.ALLOW_WITH_DESCRIPTION:
            return True
        return self.mode is PolicyMode.DESCRIPTION_FORMAT and bool(
            self.description_format
        )

    @classmethod
    def from_option(cls, key: str, value: Any) -> "DirectivePolicy":
        if value is True:
            return cls(PolicyMode.ALWAYS_FLAG)
        if value is False:
            return cls(PolicyMode.DISABLED)
        if value == ALLOW_WITH_DESCRIPTION:
            return cls(PolicyMode.ALLOW_WITH_DESCRIPTION)
        if isinstance(value, Mapping):
            extra = set(value) - {DESCRIPTION_FORMAT_KEY}
            if extra:
                raise ConfigurationError(
                    f'"{key}": unexpected properties {sorted(extra)}', key=key
                )
            fmt = value.get(DESCRIPTION_FORMAT_KEY)
            if fmt is not None and not isinstance(fmt, str):
                raise ConfigurationError(
                    f'"{key}": {DESCRIPTION_FORMAT_KEY} must be a string', key=key
                )
            return cls(PolicyMode.DESCRIPTION_FORMAT, fmt)
        raise ConfigurationError(
            f'"{key}": expected a boolean, "{ALLOW_WITH_DESCRIPTION}" or '
            f'{{"{DESCRIPTION_FORMAT_KEY}": ...}}, got {value!r}',
            key=key,
        )

    def to_option(self) -> Any:
        if self.mode is PolicyMode.ALWAYS_FLAG:
            return True
        if self.mode is PolicyMode.DISABLED:
            return False
        if self.mode is PolicyMode.ALLOW_WITH_DESCRIPTION:
            return ALLOW_WITH_DESCRIPTION
        if self.description_format is None:
            return {}
        return {DESCRIPTION_FORMAT_KEY: self.description_format}


# JavaScript writes named groups as (?<name>...) and backreferences as
# \k<name>; Python wants (?P<name>...) and (?P=name).
_JS_NAMED_GROUP_RE = re.compile(r"(?<!\\)\(\?<(?![=!])")
_JS_NAMED_BACKREF_RE = re.compile(r"(?<!\\)\\k<([A-Za-z_$][\w$]*)>")


def _translate_js_pattern(source: str) -> str:
    source = _JS_NAMED_GROUP_RE.sub("(?P<", source)
    return _JS_NAMED_BACKREF_RE.sub(r"(?P=\1)", source)


def compile_description_format(directive: str, source: str) -> Pattern[str]:
    """Compile a ``descriptionFormat``; raises ``InvalidPatternError``."""
    try:
        return re.compile(_translate_js_pattern(source))
    except re.error as exc:
        raise InvalidPatternError(directive, source, str(exc)) from exc


@dataclass(frozen=True)
class PolicyConfiguration:
    """
    Resolved, validated policy for all four directives.

    Immutable once built; the compiled description formats are part of
    the object, so one instance can be shared across documents.
    """
    policies: Mapping[Directive, DirectivePolicy]
    minimum_description_length: int = DEFAULT_MINIMUM_DESCRIPTION_LENGTH
    _formats: Mapping[Directive, Pattern[str]] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        policies = dict(self.policies)
        missing = [d for d in Directive if d not in policies]
        for directive in missing:
            policies[directive] = DirectivePolicy.from_option(
                directive.value, DEFAULT_OPTIONS[directive.value]
            )
        formats: Dict[Directive, Pattern[str]] = {}
        for directive, policy in policies.items():
            if policy.mode is PolicyMode.DESCRIPTION_FORMAT and policy.description_format:
                formats[directive] = compile_description_format(
                    directive.value, policy.description_format
                )
        object.__setattr__(self, "policies", MappingProxyType(policies))
        object.__setattr__(self, "_formats", MappingProxyType(formats))

    @classmethod
    def from_options(
        cls, options: Optional[Mapping[str, Any]] = None
    ) -> "PolicyConfiguration":
        """
        Build from a user options mapping merged over ``DEFAULT_OPTIONS``.

        Raises ``ConfigurationError`` for unknown keys or bad values and
        ``InvalidPatternError`` for a ``descriptionFormat`` that does not
        compile.
        """
        options = dict(options or {})
        unknown = set(options) - OPTION_KEYS
        if unknown:
            raise ConfigurationError(
                f"unknown option(s): {', '.join(sorted(unknown))}",
                key=sorted(unknown)[0],
            )
        merged = {**DEFAULT_OPTIONS, **options}

        min_len = merged[MINIMUM_DESCRIPTION_LENGTH_KEY]
        if isinstance(min_len, bool) or not isinstance(min_len, (int, float)):
            raise ConfigurationError(
                f"{MINIMUM_DESCRIPTION_LENGTH_KEY} must be a number, got {min_len!r}",
                key=MINIMUM_DESCRIPTION_LENGTH_KEY,
            )
        if min_len < 0:
            raise ConfigurationError(
                f"{MINIMUM_DESCRIPTION_LENGTH_KEY} must not be negative",
                key=MINIMUM_DESCRIPTION_LENGTH_KEY,
            )

        policies = {
            d: DirectivePolicy.from_option(d.value, merged[d.value])
            for d in Directive
        }
        config = cls(policies=policies, minimum_description_length=min_len)
        _log.debug("Built directive policy: %s", config.to_options())
        return config

    def policy_for(self, directive: Directive) -> DirectivePolicy:
        return self.policies[directive]

    def description_format(self, directive: Directive) -> Optional[Pattern[str]]:
        return self._formats.get(directive)

    def to_options(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            d.value: self.policies[d].to_option() for d in Directive
        }
        result[MINIMUM_DESCRIPTION_LENGTH_KEY] = self.minimum_description_length
        return result


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — MESSAGES
# ═════════════════════════════════════════════════════════════════════════

TS_DIRECTIVE_COMMENT = "tsDirectiveComment"
TS_IGNORE_INSTEAD_OF_EXPECT_ERROR = "tsIgnoreInsteadOfExpectError"
TS_DIRECTIVE_COMMENT_REQUIRES_DESCRIPTION = "tsDirectiveCommentRequiresDescription"
TS_DIRECTIVE_COMMENT_DESCRIPTION_NOT_MATCH_PATTERN = (
    "tsDirectiveCommentDescriptionNotMatchPattern"
)
REPLACE_TS_IGNORE_WITH_TS_EXPECT_ERROR = "replaceTsIgnoreWithTsExpectError"

MESSAGES: Mapping[str, str] = MappingProxyType({
    TS_DIRECTIVE_COMMENT:
        'Do not use "@ts-{directive}" because it alters compilation errors.',
    TS_IGNORE_INSTEAD_OF_EXPECT_ERROR:
        'Use "@ts-expect-error" instead of "@ts-ignore", as "@ts-ignore" '
        "will do nothing if the following line is error-free.",
    TS_DIRECTIVE_COMMENT_REQUIRES_DESCRIPTION:
        'Include a description after the "@ts-{directive}" directive to '
        "explain why the @ts-{directive} is necessary. The description must "
        "be {minimumDescriptionLength} characters or longer.",
    TS_DIRECTIVE_COMMENT_DESCRIPTION_NOT_MATCH_PATTERN:
        'The description for the "@ts-{directive}" directive must match '
        "the {format} format.",
    REPLACE_TS_IGNORE_WITH_TS_EXPECT_ERROR:
        'Replace "@ts-ignore" with "@ts-expect-error".',
})


def render_message(message_id: str, data: Optional[Mapping[str, Any]] = None) -> str:
    return MESSAGES[message_id].format(**(data or {}))


def description_length(description: str) -> int:
    """Length of the trimmed description in Unicode code points."""
    return len(description.strip())


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — EVALUATOR
# ═════════════════════════════════════════════════════════════════════════

class DirectivePolicyEvaluator:
    """
    Decides, per comment, whether a ``@ts-`` directive is reported.

    >>> from tsanalysis_shims.comments import scan_comments
    >>> ev = DirectivePolicyEvaluator(PolicyConfiguration.from_options())
    >>> diags = ev.evaluate_all(scan_comments("// @ts-ignore\\n"))
    >>> diags[0].error_id
    'tsIgnoreInsteadOfExpectError'
    """

    def __init__(
        self,
        config: Optional[PolicyConfiguration] = None,
        severity: DiagnosticSeverity = DiagnosticSeverity.ERROR,
        checker_name: str = "ban-ts-comment",
    ) -> None:
        self.config = config or PolicyConfiguration.from_options()
        self.severity = severity
        self.checker_name = checker_name

    def evaluate(self, comment: Comment) -> Optional[Diagnostic]:
        match = match_directive(comment)
        if match is None:
            return None
        return self.evaluate_match(comment, match)

    def evaluate_all(self, comments: Iterable[Comment]) -> List[Diagnostic]:
        results: List[Diagnostic] = []
        for comment in comments:
            diag = self.evaluate(comment)
            if diag is not None:
                results.append(diag)
        return results

    def evaluate_match(
        self, comment: Comment, match: DirectiveMatch
    ) -> Optional[Diagnostic]:
        directive = match.directive
        policy = self.config.policy_for(directive)

        if policy.mode is PolicyMode.DISABLED:
            return None

        if policy.mode is PolicyMode.ALWAYS_FLAG:
            if directive is Directive.IGNORE:
                return self._report(
                    comment,
                    TS_IGNORE_INSTEAD_OF_EXPECT_ERROR,
                    suggestions=(self._expect_error_suggestion(comment),),
                )
            return self._report(
                comment, TS_DIRECTIVE_COMMENT, {"directive": directive.keyword}
            )

        if not policy.requires_description:
            return None

        minimum = self.config.minimum_description_length
        if description_length(match.description) < minimum:
            return self._report(
                comment,
                TS_DIRECTIVE_COMMENT_REQUIRES_DESCRIPTION,
                {"directive": directive.keyword, "minimumDescriptionLength": minimum},
            )

        fmt = self.config.description_format(directive)
        if fmt is not None and not fmt.search(match.description):
            return self._report(
                comment,
                TS_DIRECTIVE_COMMENT_DESCRIPTION_NOT_MATCH_PATTERN,
                {"directive": directive.keyword, "format": policy.description_format},
            )
        return None

    # ── internals ────────────────────────────────────────────────────

    @staticmethod
    def _expect_error_suggestion(comment: Comment) -> Suggestion:
        value = comment.value.replace("@ts-ignore", "@ts-expect-error", 1)
        return Suggestion(
            message_id=REPLACE_TS_IGNORE_WITH_TS_EXPECT_ERROR,
            message=render_message(REPLACE_TS_IGNORE_WITH_TS_EXPECT_ERROR),
            edit=TextEdit(
                start=comment.span.start,
                end=comment.span.end,
                text=wrap_comment(comment.kind, value),
            ),
        )

    def _report(
        self,
        comment: Comment,
        message_id: str,
        data: Optional[Dict[str, Any]] = None,
        suggestions: tuple = (),
    ) -> Diagnostic:
        data = data or {}
        return Diagnostic(
            error_id=message_id,
            message=render_message(message_id, data),
            severity=self.severity,
            location=comment.location,
            span=comment.span,
            data=data,
            suggestions=suggestions,
            checker_name=self.checker_name,
        )


__all__ = [
    # Options
    "ALLOW_WITH_DESCRIPTION",
    "DEFAULT_MINIMUM_DESCRIPTION_LENGTH",
    "DEFAULT_OPTIONS",
    "OPTION_KEYS",
    "PRESETS",
    "PolicyMode",
    "DirectivePolicy",
    "PolicyConfiguration",
    "compile_description_format",
    # Messages
    "TS_DIRECTIVE_COMMENT",
    "TS_IGNORE_INSTEAD_OF_EXPECT_ERROR",
    "TS_DIRECTIVE_COMMENT_REQUIRES_DESCRIPTION",
    "TS_DIRECTIVE_COMMENT_DESCRIPTION_NOT_MATCH_PATTERN",
    "REPLACE_TS_IGNORE_WITH_TS_EXPECT_ERROR",
    "MESSAGES",
    "render_message",
    "description_length",
    # Evaluator
    "DirectivePolicyEvaluator",
]

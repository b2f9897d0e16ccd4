"""
tsanalysis_shims/directives.py
══════════════════════════════

Recognition of TypeScript ``@ts-<directive>`` comments.

The two patterns follow the compiler's own scanner:

  line comments   ``^/*\\s*@ts-<directive><description>``
  block comments  ``^\\s*(?:/|\\*)*\\s*@ts-<directive><description>``

Both are anchored at the start of the comment value, so a directive in
the middle of a sentence is not a directive.  The description is the
rest of the first line, untrimmed.

License: MIT — same as tsanalysis-shims.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional, Tuple

from tsanalysis_shims.comments import Comment, CommentKind


class Directive(Enum):
    """The four directives, valued by their option key."""
    EXPECT_ERROR = "ts-expect-error"
    IGNORE = "ts-ignore"
    NOCHECK = "ts-nocheck"
    CHECK = "ts-check"

    @property
    def keyword(self) -> str:
        """The text after ``@ts-`` (``"expect-error"``, ``"ignore"``, ...)."""
        return self.value[len("ts-"):]

    @classmethod
    def from_keyword(cls, keyword: str) -> "Directive":
        return cls("ts-" + keyword)


@dataclass(frozen=True)
class DirectiveMatch:
    directive: Directive
    description: str


# expect-error is listed first so it is tried before the shorter keywords.
_KEYWORDS = r"(?P<directive>expect-error|ignore|check|nocheck)"

# The description ends at any JavaScript line terminator, not just "\n".
_DESCRIPTION = r"(?P<description>[^\r\n\u2028\u2029]*)"

_LINE_DIRECTIVE_RE = re.compile(r"^/*\s*@ts-" + _KEYWORDS + _DESCRIPTION)
_BLOCK_DIRECTIVE_RE = re.compile(
    r"^\s*(?:/|\*)*\s*@ts-" + _KEYWORDS + _DESCRIPTION
)


def match_directive_text(kind: CommentKind, value: str) -> Optional[DirectiveMatch]:
    """Match a comment value of the given kind; ``None`` if no directive."""
    pattern = _LINE_DIRECTIVE_RE if kind is CommentKind.LINE else _BLOCK_DIRECTIVE_RE
    m = pattern.match(value)
    if m is None:
        return None
    return DirectiveMatch(
        directive=Directive.from_keyword(m.group("directive")),
        description=m.group("description"),
    )


def match_directive(comment: Comment) -> Optional[DirectiveMatch]:
    return match_directive_text(comment.kind, comment.value)


def iter_directives(
    comments: Iterable[Comment],
) -> Iterator[Tuple[Comment, DirectiveMatch]]:
    """Yield ``(comment, match)`` for every directive comment, in order."""
    for comment in comments:
        match = match_directive(comment)
        if match is not None:
            yield comment, match


__all__ = [
    "Directive",
    "DirectiveMatch",
    "match_directive_text",
    "match_directive",
    "iter_directives",
]

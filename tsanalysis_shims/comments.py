"""
tsanalysis_shims/comments.py
════════════════════════════

Comment tokens and a comment scanner for TypeScript / JavaScript
sources.

The directive matcher and policy evaluator only ever see ``Comment``
objects; hosts that already have a tokenizer (an ESLint bridge, a
tree-sitter parse) build those directly.  ``scan_comments`` is the
fallback used by the command line: it skips string, template and
regular-expression literals so that ``"// not a comment"`` is not
reported, and yields every ``//`` and ``/* */`` comment in document
order.

Regular-expression detection uses the usual previous-token heuristic
(a ``/`` after an operator, an opening bracket or a keyword such as
``return`` starts a regex).  It is not a parser; code that defeats the
heuristic may yield a spurious comment or miss one.

License: MIT — same as tsanalysis-shims.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from enum import Enum
from typing import List

from tsanalysis_shims.diagnostics import SourceLocation, SourceSpan


class CommentKind(Enum):
    LINE = "Line"
    BLOCK = "Block"


@dataclass(frozen=True)
class Comment:
    """
    One lexical comment.

    ``value`` is the text between the delimiters: for ``// foo`` it is
    ``" foo"``, for ``/* foo */`` it is ``" foo "``.
    """
    kind: CommentKind
    value: str
    span: SourceSpan

    @property
    def text(self) -> str:
        """The comment as it appears in the source, delimiters included."""
        return wrap_comment(self.kind, self.value)

    @property
    def location(self) -> SourceLocation:
        return self.span.start_loc


def wrap_comment(kind: CommentKind, value: str) -> str:
    if kind is CommentKind.LINE:
        return f"//{value}"
    return f"/*{value}*/"


class LineIndex:
    """Offset → (line, column) conversion, both 1-based."""

    def __init__(self, text: str, file: str = "") -> None:
        self.file = file
        self._starts = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                self._starts.append(i + 1)

    def location(self, offset: int) -> SourceLocation:
        line = bisect.bisect_right(self._starts, offset)
        column = offset - self._starts[line - 1] + 1
        return SourceLocation(file=self.file, line=line, column=column)

    def span(self, start: int, end: int) -> SourceSpan:
        return SourceSpan(
            start=start,
            end=end,
            start_loc=self.location(start),
            end_loc=self.location(end),
        )


# A ``/`` following one of these starts a regular expression.
_REGEX_PRECEDERS = frozenset("(,=:[!&|?{};+-*%<>~^")
_REGEX_KEYWORDS = frozenset({
    "return", "typeof", "instanceof", "in", "of", "new", "delete",
    "void", "throw", "case", "do", "else", "yield", "await",
})


class _CommentScanner:
    """Single pass over the source, tracking literal context."""

    def __init__(self, text: str, file: str = "") -> None:
        self.text = text
        self.index = LineIndex(text, file)
        self.pos = 0
        self.comments: List[Comment] = []
        # One entry per open ``${``: brace depth inside that expression.
        self._template_braces: List[int] = []
        self._last_significant = ""
        self._last_word = ""

    def scan(self) -> List[Comment]:
        text = self.text
        n = len(text)
        while self.pos < n:
            ch = text[self.pos]
            nxt = text[self.pos + 1] if self.pos + 1 < n else ""
            if ch == "/" and nxt == "/":
                self._line_comment()
            elif ch == "/" and nxt == "*":
                self._block_comment()
            elif ch in "'\"":
                self._string(ch)
            elif ch == "`":
                self.pos += 1
                self._template()
            elif ch == "/" and self._regex_allowed():
                self._regex()
            elif ch == "{" and self._template_braces:
                self._template_braces[-1] += 1
                self._advance_code(ch)
            elif ch == "}" and self._template_braces:
                if self._template_braces[-1] == 0:
                    self._template_braces.pop()
                    self.pos += 1
                    self._template()
                else:
                    self._template_braces[-1] -= 1
                    self._advance_code(ch)
            else:
                self._advance_code(ch)
        return self.comments

    # ── code ─────────────────────────────────────────────────────────

    def _advance_code(self, ch: str) -> None:
        if ch.isalnum() or ch in "_$":
            start = self.pos
            while self.pos < len(self.text) and (
                self.text[self.pos].isalnum() or self.text[self.pos] in "_$"
            ):
                self.pos += 1
            self._last_word = self.text[start:self.pos]
            self._last_significant = "w"
            return
        if not ch.isspace():
            self._last_significant = ch
            self._last_word = ""
        self.pos += 1

    def _regex_allowed(self) -> bool:
        if self._last_significant == "":
            return True
        if self._last_significant == "w":
            return self._last_word in _REGEX_KEYWORDS
        return self._last_significant in _REGEX_PRECEDERS

    # ── comments ─────────────────────────────────────────────────────

    def _line_comment(self) -> None:
        start = self.pos
        end = self.text.find("\n", start)
        if end == -1:
            end = len(self.text)
        value = self.text[start + 2:end]
        if value.endswith("\r"):
            value = value[:-1]
            end -= 1
        self._emit(CommentKind.LINE, value, start, end)
        self.pos = end

    def _block_comment(self) -> None:
        start = self.pos
        close = self.text.find("*/", start + 2)
        if close == -1:
            # Unterminated: the rest of the file is the comment.
            end = len(self.text)
            value = self.text[start + 2:]
        else:
            end = close + 2
            value = self.text[start + 2:close]
        self._emit(CommentKind.BLOCK, value, start, end)
        self.pos = end

    def _emit(self, kind: CommentKind, value: str, start: int, end: int) -> None:
        self.comments.append(Comment(kind, value, self.index.span(start, end)))

    # ── literals ─────────────────────────────────────────────────────

    def _string(self, quote: str) -> None:
        text = self.text
        self.pos += 1
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == "\\":
                self.pos += 2
                continue
            if ch == quote or ch == "\n":
                self.pos += 1
                break
            self.pos += 1
        self._last_significant = quote
        self._last_word = ""

    def _template(self) -> None:
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == "\\":
                self.pos += 2
                continue
            if ch == "`":
                self.pos += 1
                break
            if ch == "$" and text.startswith("${", self.pos):
                self.pos += 2
                self._template_braces.append(0)
                self._last_significant = "{"
                self._last_word = ""
                return
            self.pos += 1
        self._last_significant = "`"
        self._last_word = ""

    def _regex(self) -> None:
        text = self.text
        self.pos += 1
        in_class = False
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == "\\":
                self.pos += 2
                continue
            if ch == "\n":
                break
            if ch == "[":
                in_class = True
            elif ch == "]":
                in_class = False
            elif ch == "/" and not in_class:
                self.pos += 1
                while self.pos < len(text) and text[self.pos].isalpha():
                    self.pos += 1
                break
            self.pos += 1
        self._last_significant = "/"
        self._last_word = ""


def scan_comments(text: str, file: str = "") -> List[Comment]:
    """All comments in *text*, in document order."""
    return _CommentScanner(text, file).scan()


__all__ = [
    "CommentKind",
    "Comment",
    "wrap_comment",
    "LineIndex",
    "scan_comments",
]

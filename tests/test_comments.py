# tests/test_comments.py
"""
Tests for the comment scanner.
"""

from tsanalysis_shims.comments import CommentKind, LineIndex, scan_comments


def _values(text):
    return [(c.kind, c.value) for c in scan_comments(text)]


class TestScanComments:

    def test_line_and_block(self):
        text = "// one\nlet x = 1; /* two */\n"
        assert _values(text) == [
            (CommentKind.LINE, " one"),
            (CommentKind.BLOCK, " two "),
        ]

    def test_spans_cover_delimiters(self):
        text = "let a;\n  // @ts-ignore\n"
        (comment,) = scan_comments(text, "a.ts")
        assert text[comment.span.start:comment.span.end] == "// @ts-ignore"
        assert comment.text == "// @ts-ignore"
        assert comment.location.file == "a.ts"
        assert comment.location.line == 2
        assert comment.location.column == 3

    def test_multiline_block(self):
        text = "/**\n * @ts-nocheck\n */\ncode();\n"
        (comment,) = scan_comments(text)
        assert comment.kind is CommentKind.BLOCK
        assert comment.value == "*\n * @ts-nocheck\n "
        assert comment.span.end_loc.line == 3

    def test_crlf_line_comment(self):
        text = "// @ts-ignore\r\nfoo();\r\n"
        (comment,) = scan_comments(text)
        assert comment.value == " @ts-ignore"
        assert text[comment.span.start:comment.span.end] == "// @ts-ignore"

    def test_unterminated_block(self):
        (comment,) = scan_comments("x; /* open")
        assert comment.value == " open"

    def test_document_order(self):
        text = "/* a */ // b\n// c\n"
        assert [c.value for c in scan_comments(text)] == [" a ", " b", " c"]


class TestLiteralsAreSkipped:

    def test_strings(self):
        text = "const s = \"// no\"; const t = '/* no */'; // yes\n"
        assert _values(text) == [(CommentKind.LINE, " yes")]

    def test_escaped_quote(self):
        text = "const s = 'it\\'s // no'; // yes\n"
        assert _values(text) == [(CommentKind.LINE, " yes")]

    def test_template_literal(self):
        text = "const u = `http://example.com`; // yes\n"
        assert _values(text) == [(CommentKind.LINE, " yes")]

    def test_template_expression_comment(self):
        text = "const t = `a${ /* inside */ b }c // no`;\n"
        assert _values(text) == [(CommentKind.BLOCK, " inside ")]

    def test_nested_braces_in_template_expression(self):
        text = "const t = `${ {a: 1}.a } // no`; // yes\n"
        assert _values(text) == [(CommentKind.LINE, " yes")]

    def test_regex_literal(self):
        text = "const re = /\\/\\/ not a comment/g; // yes\n"
        assert _values(text) == [(CommentKind.LINE, " yes")]

    def test_regex_with_class(self):
        text = "if (/[/]/.test(s)) {} // yes\n"
        assert _values(text) == [(CommentKind.LINE, " yes")]

    def test_division_is_not_regex(self):
        text = "const half = total / 2; // yes /\n"
        assert _values(text) == [(CommentKind.LINE, " yes /")]

    def test_regex_after_return(self):
        text = "function f() { return /\\/\\//.source; } // yes\n"
        assert _values(text) == [(CommentKind.LINE, " yes")]


class TestLineIndex:

    def test_locations(self):
        index = LineIndex("ab\ncd\n", "f.ts")
        assert (index.location(0).line, index.location(0).column) == (1, 1)
        assert (index.location(3).line, index.location(3).column) == (2, 1)
        assert (index.location(4).line, index.location(4).column) == (2, 2)

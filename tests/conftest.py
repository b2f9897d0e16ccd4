# tests/conftest.py
"""
Shared builders for tsanalysis-shims tests: type nodes with the shapes
the TypeScript checker produces, and comment tokens with real spans.
"""

import pytest

from tsanalysis_shims.comments import Comment, CommentKind, LineIndex
from tsanalysis_shims.type_flags import ObjectFlags, TypeFlags
from tsanalysis_shims.type_model import SimpleTypeChecker, Symbol, TypeNode


def make_type(flags, name=None, **kwargs):
    """A TypeNode; *name* becomes its symbol."""
    return TypeNode(
        flags=flags,
        symbol=Symbol(name) if name else None,
        **kwargs,
    )


ARRAY_DECL = make_type(
    TypeFlags.Object, name="Array", object_flags=ObjectFlags.Interface
)


def make_array(element):
    """``element[]`` as a reference to the global ``Array`` interface."""
    return TypeNode(
        flags=TypeFlags.Object,
        object_flags=ObjectFlags.Reference,
        target=ARRAY_DECL,
        type_arguments=[element],
    )


def make_union(*parts):
    return TypeNode(flags=TypeFlags.Union, types=list(parts))


def make_comment(kind, value, prefix=""):
    """A comment token placed after *prefix* in a one-comment document."""
    text = prefix + (f"//{value}" if kind is CommentKind.LINE else f"/*{value}*/")
    index = LineIndex(text, "test.ts")
    return Comment(kind, value, index.span(len(prefix), len(text)))


def line_comment(value, prefix=""):
    return make_comment(CommentKind.LINE, value, prefix)


def block_comment(value, prefix=""):
    return make_comment(CommentKind.BLOCK, value, prefix)


@pytest.fixture
def checker():
    return SimpleTypeChecker()


@pytest.fixture
def any_type():
    return make_type(TypeFlags.Any, intrinsic_name="any")


@pytest.fixture
def unknown_type():
    return make_type(TypeFlags.Unknown, intrinsic_name="unknown")


@pytest.fixture
def string_type():
    return make_type(TypeFlags.String, intrinsic_name="string")

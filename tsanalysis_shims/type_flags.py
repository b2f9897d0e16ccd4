"""
tsanalysis_shims/type_flags.py
══════════════════════════════

Flag enumerations mirroring the TypeScript compiler's ``ts.TypeFlags``
and ``ts.ObjectFlags``.

The numeric values match the compiler's so that type dumps produced by
a ``tsc`` plugin can be read without translation, but nothing outside
this package's classifier should test bits directly: use the named
members and the predicates in ``type_predicates``.

License: MIT — same as tsanalysis-shims.
"""

from __future__ import annotations

from enum import IntFlag
from typing import Iterable, List


class TypeFlags(IntFlag):
    """Primary type category bits (``ts.TypeFlags``)."""
    Any = 1 << 0
    Unknown = 1 << 1
    String = 1 << 2
    Number = 1 << 3
    Boolean = 1 << 4
    Enum = 1 << 5
    BigInt = 1 << 6
    StringLiteral = 1 << 7
    NumberLiteral = 1 << 8
    BooleanLiteral = 1 << 9
    EnumLiteral = 1 << 10
    BigIntLiteral = 1 << 11
    ESSymbol = 1 << 12
    UniqueESSymbol = 1 << 13
    Void = 1 << 14
    Undefined = 1 << 15
    Null = 1 << 16
    Never = 1 << 17
    TypeParameter = 1 << 18
    Object = 1 << 19
    Union = 1 << 20
    Intersection = 1 << 21
    Index = 1 << 22
    IndexedAccess = 1 << 23
    Conditional = 1 << 24
    Substitution = 1 << 25
    NonPrimitive = 1 << 26
    TemplateLiteral = 1 << 27
    StringMapping = 1 << 28


class ObjectFlags(IntFlag):
    """Object-type sub-category bits (``ts.ObjectFlags``)."""
    Class = 1 << 0
    Interface = 1 << 1
    Reference = 1 << 2
    Tuple = 1 << 3
    Anonymous = 1 << 4
    Mapped = 1 << 5
    Instantiated = 1 << 6
    ObjectLiteral = 1 << 7
    EvolvingArray = 1 << 8
    ObjectLiteralPatternWithComputedProperties = 1 << 9
    ReverseMapped = 1 << 10
    JsxAttributes = 1 << 11
    JSLiteral = 1 << 12
    FreshLiteral = 1 << 13
    ArrayLiteral = 1 << 14


NO_TYPE_FLAGS = TypeFlags(0)
NO_OBJECT_FLAGS = ObjectFlags(0)


def has_any(flags: TypeFlags, subset: TypeFlags) -> bool:
    """True when *flags* and *subset* share at least one member."""
    return (flags & subset) != 0


def flag_names(flags: IntFlag) -> List[str]:
    """Names of the single-bit members set in *flags*, lowest bit first."""
    return [
        member.name for member in type(flags)
        if member.name and member.value and (flags & member) == member
    ]


def parse_type_flags(names: Iterable[str]) -> TypeFlags:
    """Combine ``TypeFlags`` member names into one value.

    Raises ``KeyError`` for an unknown name.
    """
    result = NO_TYPE_FLAGS
    for name in names:
        result |= TypeFlags[name]
    return result


def parse_object_flags(names: Iterable[str]) -> ObjectFlags:
    """Combine ``ObjectFlags`` member names into one value."""
    result = NO_OBJECT_FLAGS
    for name in names:
        result |= ObjectFlags[name]
    return result


__all__ = [
    "TypeFlags",
    "ObjectFlags",
    "NO_TYPE_FLAGS",
    "NO_OBJECT_FLAGS",
    "has_any",
    "flag_names",
    "parse_type_flags",
    "parse_object_flags",
]

"""
tsanalysis_shims/type_predicates.py
═══════════════════════════════════

Classification predicates over type handles produced by the TypeScript
type checker (or any host that exposes the same shape).

Two layers:

  1. **Flag classifier** — pure tests over a handle's ``flags`` bitset
     (and ``object_flags`` for reference types).

  2. **Structure walker** — union decomposition, array element types,
     base-type chains.

Handles are read duck-typed with ``getattr`` so that host objects and
``type_model.TypeNode`` are interchangeable.  Array detection and type
arguments come from a ``TypeSystemAccessor`` because only the checker
knows which references are ``Array<T>``.

The ``flags`` of a union handle are just ``Union``; flag tests look at
the *effective* flags, i.e. the bitwise union over its constituents.

License: MIT — same as tsanalysis-shims.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    List,
    Optional,
    Protocol,
    Sequence,
    runtime_checkable,
)

from tsanalysis_shims.type_flags import (
    NO_OBJECT_FLAGS,
    NO_TYPE_FLAGS,
    ObjectFlags,
    TypeFlags,
    has_any,
)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — HOST INTERFACES
# ═════════════════════════════════════════════════════════════════════════

@runtime_checkable
class TypeSystemAccessor(Protocol):
    """The two checker queries the predicates need."""

    def is_array_type(self, type_: Any) -> bool: ...

    def get_type_arguments(self, type_: Any) -> Sequence[Any]: ...


ObservabilitySink = Callable[[str], None]


def _no_op_sink(message: str) -> None:
    return None


def logging_sink(logger: Optional[logging.Logger] = None) -> ObservabilitySink:
    """Adapt a ``logging.Logger`` into a classifier sink (DEBUG level)."""
    log = logger or logging.getLogger(__name__)

    def _sink(message: str) -> None:
        log.debug("%s", message)

    return _sink


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — FLAG ACCESS
# ═════════════════════════════════════════════════════════════════════════

_ANY_OR_UNKNOWN = TypeFlags.Any | TypeFlags.Unknown

_NULLABLE_FLAGS = (
    TypeFlags.Any
    | TypeFlags.Unknown
    | TypeFlags.Null
    | TypeFlags.Undefined
    | TypeFlags.Void
)

# Flags under which the compiler defines ``objectFlags``.
_OBJECT_FLAGS_TYPE = (
    TypeFlags.Any
    | TypeFlags.Undefined
    | TypeFlags.Null
    | TypeFlags.Never
    | TypeFlags.Object
    | TypeFlags.Union
    | TypeFlags.Intersection
)


def _own_flags(type_: Any) -> TypeFlags:
    return TypeFlags(getattr(type_, "flags", NO_TYPE_FLAGS) or NO_TYPE_FLAGS)


def _symbol_of(type_: Any) -> Any:
    getter = getattr(type_, "get_symbol", None)
    if callable(getter):
        return getter()
    return getattr(type_, "symbol", None)


def _base_types_of(type_: Any) -> Sequence[Any]:
    getter = getattr(type_, "get_base_types", None)
    if callable(getter):
        return getter() or ()
    return getattr(type_, "base_types", None) or ()


def union_type_parts(type_: Any) -> List[Any]:
    """Constituents of a union type, or ``[type_]`` for anything else."""
    if has_any(_own_flags(type_), TypeFlags.Union):
        return list(getattr(type_, "types", None) or ())
    return [type_]


def get_type_flags(type_: Any) -> TypeFlags:
    """Flags of *type_* combined across its union constituents."""
    flags = NO_TYPE_FLAGS
    for part in union_type_parts(type_):
        flags |= _own_flags(part)
    return flags


def is_type_flag_set(
    type_: Any,
    flags_to_check: TypeFlags,
    is_receiver: bool = False,
) -> bool:
    """
    Check whether any of *flags_to_check* is set on *type_*.

    With ``is_receiver`` set, ``any`` and ``unknown`` accept every flag:
    a receiver typed ``any`` can hold a value of any category.
    """
    flags = get_type_flags(type_)
    if is_receiver and has_any(flags, _ANY_OR_UNKNOWN):
        return True
    return has_any(flags, flags_to_check)


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — NARROWED VIEWS
# ═════════════════════════════════════════════════════════════════════════
#
#  Built only after the matching predicate has succeeded; they expose the
#  fields that are defined for that variant.
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BigIntLiteralType:
    handle: Any

    @property
    def value(self) -> Any:
        """The literal as the host stores it (``{negative, base10Value}``)."""
        return getattr(self.handle, "value", None)


@dataclass(frozen=True)
class TemplateLiteralType:
    handle: Any

    @property
    def texts(self) -> Sequence[str]:
        return getattr(self.handle, "texts", None) or ()

    @property
    def types(self) -> Sequence[Any]:
        return getattr(self.handle, "types", None) or ()


@dataclass(frozen=True)
class TypeReference:
    handle: Any

    @property
    def target(self) -> Any:
        return getattr(self.handle, "target", None)

    @property
    def object_flags(self) -> ObjectFlags:
        return ObjectFlags(
            getattr(self.handle, "object_flags", None) or NO_OBJECT_FLAGS
        )


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — CLASSIFIER
# ═════════════════════════════════════════════════════════════════════════

class TypeClassifier:
    """
    Type predicates bound to an observability sink.

    The sink receives free-form observations that do not change any
    result (currently only the ``"error"`` any type).  It defaults to a
    no-op; pass ``logging_sink()`` to route observations to logging.

    >>> from tsanalysis_shims.type_model import TypeNode
    >>> clf = TypeClassifier()
    >>> clf.is_nullable_type(TypeNode(flags=TypeFlags.Null))
    True
    """

    def __init__(self, sink: Optional[ObservabilitySink] = None) -> None:
        self._sink: ObservabilitySink = sink or _no_op_sink

    # ── flag classifier ──────────────────────────────────────────────

    def is_nullable_type(self, type_: Any) -> bool:
        """Checks if the given type is (or accepts) nullable."""
        return is_type_flag_set(type_, _NULLABLE_FLAGS)

    def is_type_never_type(self, type_: Any) -> bool:
        return is_type_flag_set(type_, TypeFlags.Never)

    def is_type_unknown_type(self, type_: Any) -> bool:
        return is_type_flag_set(type_, TypeFlags.Unknown)

    def is_type_any_type(self, type_: Any) -> bool:
        if is_type_flag_set(type_, TypeFlags.Any):
            if getattr(type_, "intrinsic_name", None) == "error":
                self._sink('Found an "error" any type')
            return True
        return False

    def is_type_any_array_type(
        self, type_: Any, checker: TypeSystemAccessor
    ) -> bool:
        """``any[]``; only the first type argument is examined."""
        return self._array_element_satisfies(
            type_, checker, self.is_type_any_type
        )

    def is_type_unknown_array_type(
        self, type_: Any, checker: TypeSystemAccessor
    ) -> bool:
        """``unknown[]``; only the first type argument is examined."""
        return self._array_element_satisfies(
            type_, checker, self.is_type_unknown_type
        )

    def is_type_bigint_literal_type(self, type_: Any) -> bool:
        return is_type_flag_set(type_, TypeFlags.BigIntLiteral)

    def is_type_template_literal_type(self, type_: Any) -> bool:
        return is_type_flag_set(type_, TypeFlags.TemplateLiteral)

    def is_type_reference_type(self, type_: Any) -> bool:
        if not has_any(_own_flags(type_), _OBJECT_FLAGS_TYPE):
            return False
        object_flags = getattr(type_, "object_flags", None) or NO_OBJECT_FLAGS
        return (ObjectFlags(object_flags) & ObjectFlags.Reference) != 0

    # ── narrowing ────────────────────────────────────────────────────

    def as_bigint_literal_type(self, type_: Any) -> Optional[BigIntLiteralType]:
        if self.is_type_bigint_literal_type(type_):
            return BigIntLiteralType(type_)
        return None

    def as_template_literal_type(
        self, type_: Any
    ) -> Optional[TemplateLiteralType]:
        if self.is_type_template_literal_type(type_):
            return TemplateLiteralType(type_)
        return None

    def as_type_reference(self, type_: Any) -> Optional[TypeReference]:
        if self.is_type_reference_type(type_):
            return TypeReference(type_)
        return None

    # ── structure walker ─────────────────────────────────────────────

    def is_type_array_type_or_union_of_array_types(
        self, type_: Any, checker: TypeSystemAccessor
    ) -> bool:
        """
        Checks if the given type is either an array type,
        or a union made up solely of array types.
        """
        for part in union_type_parts(type_):
            if not checker.is_array_type(part):
                return False
        return True

    def type_is_or_has_base_type(self, type_: Any, parent_type: Any) -> bool:
        """
        Whether *type_* is an instance of *parent_type*, including through
        *type_*'s declared base types.

        Symbols are compared by name, so two unrelated declarations that
        share a name compare equal.
        """
        parent_symbol = _symbol_of(parent_type)
        if not _symbol_of(type_) or not parent_symbol:
            return False

        parent_name = getattr(parent_symbol, "name", None)
        type_and_base_types = [type_, *_base_types_of(type_)]
        for base_type in type_and_base_types:
            base_symbol = _symbol_of(base_type)
            if base_symbol and getattr(base_symbol, "name", None) == parent_name:
                return True
        return False

    # ── internals ────────────────────────────────────────────────────

    @staticmethod
    def _array_element_satisfies(
        type_: Any,
        checker: TypeSystemAccessor,
        predicate: Callable[[Any], bool],
    ) -> bool:
        if not checker.is_array_type(type_):
            return False
        args = checker.get_type_arguments(type_)
        if not args:
            return False
        return predicate(args[0])


# ═════════════════════════════════════════════════════════════════════════
#  PART 5 — MODULE-LEVEL API
# ═════════════════════════════════════════════════════════════════════════

_DEFAULT_CLASSIFIER = TypeClassifier()

is_nullable_type = _DEFAULT_CLASSIFIER.is_nullable_type
is_type_never_type = _DEFAULT_CLASSIFIER.is_type_never_type
is_type_unknown_type = _DEFAULT_CLASSIFIER.is_type_unknown_type
is_type_any_type = _DEFAULT_CLASSIFIER.is_type_any_type
is_type_any_array_type = _DEFAULT_CLASSIFIER.is_type_any_array_type
is_type_unknown_array_type = _DEFAULT_CLASSIFIER.is_type_unknown_array_type
is_type_bigint_literal_type = _DEFAULT_CLASSIFIER.is_type_bigint_literal_type
is_type_template_literal_type = _DEFAULT_CLASSIFIER.is_type_template_literal_type
is_type_reference_type = _DEFAULT_CLASSIFIER.is_type_reference_type
as_bigint_literal_type = _DEFAULT_CLASSIFIER.as_bigint_literal_type
as_template_literal_type = _DEFAULT_CLASSIFIER.as_template_literal_type
as_type_reference = _DEFAULT_CLASSIFIER.as_type_reference
is_type_array_type_or_union_of_array_types = (
    _DEFAULT_CLASSIFIER.is_type_array_type_or_union_of_array_types
)
type_is_or_has_base_type = _DEFAULT_CLASSIFIER.type_is_or_has_base_type


__all__ = [
    # Host interfaces
    "TypeSystemAccessor",
    "ObservabilitySink",
    "logging_sink",
    # Flag access
    "union_type_parts",
    "get_type_flags",
    "is_type_flag_set",
    # Narrowed views
    "BigIntLiteralType",
    "TemplateLiteralType",
    "TypeReference",
    # Classifier
    "TypeClassifier",
    "is_nullable_type",
    "is_type_never_type",
    "is_type_unknown_type",
    "is_type_any_type",
    "is_type_any_array_type",
    "is_type_unknown_array_type",
    "is_type_bigint_literal_type",
    "is_type_template_literal_type",
    "is_type_reference_type",
    "as_bigint_literal_type",
    "as_template_literal_type",
    "as_type_reference",
    "is_type_array_type_or_union_of_array_types",
    "type_is_or_has_base_type",
]

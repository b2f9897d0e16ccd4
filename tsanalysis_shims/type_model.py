"""
tsanalysis_shims/type_model.py
══════════════════════════════

Concrete type handles for hosts that cannot hand over live checker
objects: an in-memory ``TypeNode`` graph, a ``SimpleTypeChecker`` that
answers the two accessor queries over it, and a loader for JSON type
dumps.

Dump format
───────────
::

    {
      "types": [
        {"id": 1, "flags": ["Any"], "intrinsicName": "any"},
        {"id": 2, "flags": ["Object"], "objectFlags": ["Reference"],
         "symbol": "Array", "typeArguments": [1]},
        {"id": 3, "flags": ["Union"], "types": [2, 4]},
        ...
      ]
    }

``flags`` / ``objectFlags`` accept either a list of member names or the
compiler's integer value.  ``typeArguments``, ``baseTypes``, ``types``
and ``target`` reference other entries by id.

License: MIT — same as tsanalysis-shims.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Union

from tsanalysis_shims.errors import TypeDumpError
from tsanalysis_shims.type_flags import (
    NO_OBJECT_FLAGS,
    ObjectFlags,
    TypeFlags,
    parse_object_flags,
    parse_type_flags,
)

_log = logging.getLogger(__name__)

ARRAY_SYMBOL_NAMES: FrozenSet[str] = frozenset({"Array", "ReadonlyArray"})


@dataclass(frozen=True)
class Symbol:
    """Nominal identity of a declared type."""
    name: str


@dataclass(eq=False)
class TypeNode:
    """
    A node in a type graph.

    Compared by identity; two nodes with equal fields are still two
    distinct types, exactly as in the compiler.
    """
    flags: TypeFlags
    object_flags: Optional[ObjectFlags] = None
    intrinsic_name: Optional[str] = None
    symbol: Optional[Symbol] = None
    base_types: Optional[List["TypeNode"]] = None
    types: List["TypeNode"] = field(default_factory=list)
    type_arguments: List["TypeNode"] = field(default_factory=list)
    target: Optional["TypeNode"] = None
    value: Any = None
    texts: List[str] = field(default_factory=list)
    id: Optional[int] = None

    def get_symbol(self) -> Optional[Symbol]:
        return self.symbol

    def get_base_types(self) -> Optional[List["TypeNode"]]:
        return self.base_types

    def __repr__(self) -> str:
        label = self.symbol.name if self.symbol else self.intrinsic_name
        if label:
            return f"<TypeNode #{self.id} {self.flags!s} {label}>"
        return f"<TypeNode #{self.id} {self.flags!s}>"


class SimpleTypeChecker:
    """
    ``TypeSystemAccessor`` over ``TypeNode`` graphs.

    A type is an array when it is a type reference whose target (or, for
    targetless references, the type itself) is declared by a symbol named
    ``Array`` or ``ReadonlyArray``.
    """

    def __init__(self, array_symbols: FrozenSet[str] = ARRAY_SYMBOL_NAMES) -> None:
        self.array_symbols = array_symbols

    def is_array_type(self, type_: Any) -> bool:
        object_flags = getattr(type_, "object_flags", None) or NO_OBJECT_FLAGS
        if not (ObjectFlags(object_flags) & ObjectFlags.Reference):
            return False
        declared = getattr(type_, "target", None) or type_
        symbol = getattr(declared, "symbol", None)
        return symbol is not None and symbol.name in self.array_symbols

    def get_type_arguments(self, type_: Any) -> Sequence[Any]:
        return list(getattr(type_, "type_arguments", None) or ())


# ═════════════════════════════════════════════════════════════════════════
#  JSON TYPE DUMPS
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class TypeDump:
    """Loaded dump: type nodes keyed by id, in file order."""
    types: Dict[int, TypeNode] = field(default_factory=dict)

    def __iter__(self):
        return iter(self.types.values())

    def __len__(self) -> int:
        return len(self.types)

    def get(self, type_id: int) -> Optional[TypeNode]:
        return self.types.get(type_id)


def _decode_flags(raw: Any, enum_cls: type, type_id: Any) -> Any:
    if isinstance(raw, int):
        return enum_cls(raw)
    if isinstance(raw, str):
        raw = [raw]
    try:
        if enum_cls is TypeFlags:
            return parse_type_flags(raw)
        return parse_object_flags(raw)
    except (KeyError, TypeError) as exc:
        raise TypeDumpError(
            f"type {type_id}: unknown {enum_cls.__name__} member {exc}"
        ) from exc


def _resolve(types: Mapping[int, TypeNode], ref: Any, owner: Any) -> TypeNode:
    try:
        return types[int(ref)]
    except (KeyError, TypeError, ValueError) as exc:
        raise TypeDumpError(
            f"type {owner}: reference to unknown type id {ref!r}"
        ) from exc


def load_type_dump(source: Union[str, Path, Mapping[str, Any]]) -> TypeDump:
    """
    Build a ``TypeDump`` from a path to a JSON file or an already-parsed
    mapping.

    Raises ``TypeDumpError`` on malformed entries.
    """
    if isinstance(source, Mapping):
        data = source
    else:
        path = Path(source)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise TypeDumpError(f"{path}: not valid JSON: {exc}") from exc

    entries = data.get("types") if isinstance(data, Mapping) else None
    if not isinstance(entries, list):
        raise TypeDumpError('type dump must be an object with a "types" list')

    dump = TypeDump()

    # Pass 1: create nodes so references can point forward.
    for entry in entries:
        if not isinstance(entry, Mapping) or "id" not in entry:
            raise TypeDumpError(f"type entry without an id: {entry!r}")
        try:
            type_id = int(entry["id"])
        except (TypeError, ValueError) as exc:
            raise TypeDumpError(f"type id must be an integer: {entry['id']!r}") from exc
        if type_id in dump.types:
            raise TypeDumpError(f"duplicate type id {type_id}")
        if "flags" not in entry:
            raise TypeDumpError(f"type {type_id}: missing flags")
        flags = _decode_flags(entry["flags"], TypeFlags, type_id)
        if not flags:
            raise TypeDumpError(f"type {type_id}: flags must not be empty")
        object_flags = None
        if "objectFlags" in entry:
            object_flags = _decode_flags(entry["objectFlags"], ObjectFlags, type_id)
        symbol_name = entry.get("symbol")
        dump.types[type_id] = TypeNode(
            id=type_id,
            flags=flags,
            object_flags=object_flags,
            intrinsic_name=entry.get("intrinsicName"),
            symbol=Symbol(symbol_name) if symbol_name else None,
            value=entry.get("value"),
            texts=list(entry.get("texts", ())),
        )

    # Pass 2: wire references.
    for entry in entries:
        type_id = int(entry["id"])
        node = dump.types[type_id]
        node.types = [_resolve(dump.types, r, type_id) for r in entry.get("types", ())]
        node.type_arguments = [
            _resolve(dump.types, r, type_id) for r in entry.get("typeArguments", ())
        ]
        if "baseTypes" in entry:
            node.base_types = [
                _resolve(dump.types, r, type_id) for r in entry["baseTypes"]
            ]
        if entry.get("target") is not None:
            node.target = _resolve(dump.types, entry["target"], type_id)

    _log.debug("Loaded type dump with %d types", len(dump))
    return dump


__all__ = [
    "ARRAY_SYMBOL_NAMES",
    "Symbol",
    "TypeNode",
    "SimpleTypeChecker",
    "TypeDump",
    "load_type_dump",
]

"""Concreteness of resolved types.

A result type is concrete when a call returning it can be dispatched on
without further checks. This mirrors the rule a typed-IR printer uses to
highlight suspicious types.
"""

from __future__ import annotations

from stabcheck.types import (
    BOX,
    BottomType,
    DataType,
    Type,
    UnionType,
    free_vars,
)

# Unions at least this large are never treated as harmless.
_EXPECTED_UNION_LIMIT = 4


def is_dispatch_leaf(ty: Type) -> bool:
    """True for fully resolved, instantiable types.

    Instances of concrete generic families count even when their
    arguments are abstract (``Complex{Integer}`` is a leaf).
    """
    if isinstance(ty, BottomType):
        return True
    if isinstance(ty, DataType):
        return not ty.abstract and not free_vars(ty)
    return False


def is_expected_union(ty: UnionType) -> bool:
    """Small unions of leaves, like ``Union{Int64, Missing}``."""
    if len(ty.members) >= _EXPECTED_UNION_LIMIT:
        return False
    return all(is_dispatch_leaf(m) and m != BOX for m in ty.members)


def is_concrete(ty: Type) -> bool:
    """Whether *ty* is concrete for stability purposes.

    Expected unions are rounded up to concrete: they are a mild problem,
    not a sound guarantee.
    """
    if not is_dispatch_leaf(ty) or ty == BOX:
        return isinstance(ty, UnionType) and is_expected_union(ty)
    return True

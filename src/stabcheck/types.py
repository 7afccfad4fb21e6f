"""Resolved type representations for the stabcheck type lattice.

These are the values the search engine walks over. They are immutable
and hashable so that signature tuples can be de-duplicated structurally.
Declared relationships between them (supertypes, subtypes, parameter
bounds) live in :class:`stabcheck.lattice.TypeLattice`.
"""

from __future__ import annotations

from dataclasses import dataclass

# ── Resolved types ──────────────────────────────────────────────


@dataclass(frozen=True)
class TopType:
    """The unconstrained top type."""


@dataclass(frozen=True)
class BottomType:
    """The empty union: the result type of a call that never returns."""


@dataclass(frozen=True)
class DataType:
    name: str
    params: tuple[Type, ...] = ()
    abstract: bool = False


@dataclass(frozen=True)
class UnionType:
    members: frozenset[Type] = frozenset()


@dataclass(frozen=True)
class TypeVar:
    name: str
    upper: Type = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.upper is None:
            object.__setattr__(self, "upper", ANY)


@dataclass(frozen=True)
class ParametricType:
    """An existential type: ``body where var <: var.upper``."""

    var: TypeVar
    body: Type = None  # type: ignore[assignment]


@dataclass(frozen=True)
class VarargType:
    element: Type = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.element is None:
            object.__setattr__(self, "element", ANY)


Type = (
    TopType | BottomType | DataType | UnionType
    | TypeVar | ParametricType | VarargType
)

Signature = tuple[Type, ...]


# ── Well-known constants ────────────────────────────────────────

ANY = TopType()
BOTTOM = BottomType()

# Heap-allocated wrapper the host uses for captured, reassigned values.
BOX = DataType("Box")

FUNCTION = DataType("Function", abstract=True)


# ── Constructors ────────────────────────────────────────────────


def union(*types: Type) -> Type:
    """Build a union, flattening nested unions and dropping duplicates.

    An empty union is ``BOTTOM``; a single member is returned as is.
    """
    members: list[Type] = []
    for ty in types:
        parts = sorted_members(ty) if isinstance(ty, UnionType) else [ty]
        for part in parts:
            if part == BOTTOM or part in members:
                continue
            members.append(part)
    if ANY in members:
        return ANY
    if not members:
        return BOTTOM
    if len(members) == 1:
        return members[0]
    return UnionType(frozenset(members))


def sorted_members(u: UnionType) -> list[Type]:
    """Union members in a stable, printable order."""
    return sorted(u.members, key=type_name)


# ── Type utilities ──────────────────────────────────────────────


def type_name(ty: Type) -> str:
    """Human-readable name for diagnostics and reports."""
    if isinstance(ty, TopType):
        return "Any"
    if isinstance(ty, BottomType):
        return "Union{}"
    if isinstance(ty, DataType):
        if ty.params:
            args = ", ".join(type_name(p) for p in ty.params)
            return f"{ty.name}{{{args}}}"
        return ty.name
    if isinstance(ty, UnionType):
        members = ", ".join(type_name(m) for m in sorted_members(ty))
        return f"Union{{{members}}}"
    if isinstance(ty, TypeVar):
        return ty.name
    if isinstance(ty, ParametricType):
        bound = ""
        if ty.var.upper != ANY:
            bound = f"<:{type_name(ty.var.upper)}"
        return f"{type_name(ty.body)} where {ty.var.name}{bound}"
    if isinstance(ty, VarargType):
        return f"Vararg{{{type_name(ty.element)}}}"
    return str(ty)


def signature_name(sig: Signature) -> str:
    """Render a signature as ``(T1, T2)``."""
    if len(sig) == 1:
        return f"({type_name(sig[0])},)"
    return "(" + ", ".join(type_name(t) for t in sig) + ")"


def substitute(ty: Type, var: TypeVar, arg: Type) -> Type:
    """Replace every free occurrence of *var* in *ty* with *arg*."""
    if isinstance(ty, TypeVar):
        return arg if ty == var else ty
    if isinstance(ty, DataType):
        if not ty.params:
            return ty
        params = tuple(substitute(p, var, arg) for p in ty.params)
        return DataType(ty.name, params, ty.abstract)
    if isinstance(ty, UnionType):
        return union(*(substitute(m, var, arg) for m in sorted_members(ty)))
    if isinstance(ty, ParametricType):
        if ty.var == var:
            return ty  # shadowed
        inner = TypeVar(ty.var.name, substitute(ty.var.upper, var, arg))
        body = ty.body
        if inner != ty.var:
            body = substitute(body, ty.var, inner)
        return ParametricType(inner, substitute(body, var, arg))
    if isinstance(ty, VarargType):
        return VarargType(substitute(ty.element, var, arg))
    return ty


def free_vars(ty: Type) -> list[TypeVar]:
    """Type variables occurring free in *ty*, in order of appearance."""
    found: list[TypeVar] = []

    def _walk(t: Type, bound: tuple[TypeVar, ...]) -> None:
        if isinstance(t, TypeVar):
            if t not in bound and t not in found:
                found.append(t)
        elif isinstance(t, DataType):
            for p in t.params:
                _walk(p, bound)
        elif isinstance(t, UnionType):
            for m in sorted_members(t):
                _walk(m, bound)
        elif isinstance(t, ParametricType):
            _walk(t.var.upper, bound)
            _walk(t.body, bound + (t.var,))
        elif isinstance(t, VarargType):
            _walk(t.element, bound)

    _walk(ty, ())
    return found


def unwrap_parametric(ty: Type) -> Type:
    """Strip every ``where`` layer, returning the innermost body."""
    while isinstance(ty, ParametricType):
        ty = ty.body
    return ty


def is_vararg(ty: Type) -> bool:
    return isinstance(ty, VarargType)

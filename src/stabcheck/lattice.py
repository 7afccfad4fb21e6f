"""Type registry answering subtype questions for the search engine.

The host language offers no open reflection over "all declared subtypes
of X", so the lattice is an explicit table populated at startup. Every
family is declared once with its direct supertype; the registry then
answers three questions:

- what are the immediate declared subtypes of a type,
- is one type a subtype of another,
- what does a parametric type look like once its variable is fixed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from stabcheck.errors import InstantiationError, LatticeError
from stabcheck.types import (
    ANY,
    BOX,
    FUNCTION,
    BottomType,
    DataType,
    ParametricType,
    TopType,
    Type,
    TypeVar,
    UnionType,
    VarargType,
    sorted_members,
    substitute,
    type_name,
    unwrap_parametric,
)

_logger = logging.getLogger(__name__)

_ROOT = "Any"


@dataclass(frozen=True)
class _Family:
    """One declared nominal type, generic or not."""

    name: str
    vars: tuple[TypeVar, ...]
    supertype: Type
    abstract: bool

    @property
    def template(self) -> DataType:
        return DataType(self.name, tuple(self.vars), self.abstract)

    @property
    def ref(self) -> Type:
        """The family as a type: plain DataType or nested ParametricType."""
        ty: Type = self.template
        for var in reversed(self.vars):
            ty = ParametricType(var, ty)
        return ty


class TypeLattice:
    """Registry of declared types and their direct supertypes."""

    def __init__(self) -> None:
        self._families: dict[str, _Family] = {}
        self._children: dict[str, list[str]] = {_ROOT: []}
        self._register(_Family(FUNCTION.name, (), ANY, True))
        self._register(_Family(BOX.name, (), ANY, False))

    # ── Declarations ────────────────────────────────────────────

    def declare(
        self, name: str, supertype: Type = ANY, *, abstract: bool = False,
    ) -> DataType:
        """Declare a non-generic type. Returns the type."""
        family = _Family(name, (), supertype, abstract)
        self._register(family)
        return family.template

    def declare_generic(
        self,
        name: str,
        *vars: TypeVar,
        supertype: Type = ANY,
        abstract: bool = False,
    ) -> Type:
        """Declare a generic family ``name{vars...}``.

        The supertype may mention the family's variables, e.g.
        ``MyVec{T} <: MyAbsVec{T}``. Returns the family as a
        parametric type.
        """
        if not vars:
            raise LatticeError(f"generic type '{name}' needs at least one variable")
        family = _Family(name, tuple(vars), supertype, abstract)
        self._register(family)
        return family.ref

    def _register(self, family: _Family) -> None:
        if family.name in self._families or family.name == _ROOT:
            raise LatticeError(f"type '{family.name}' is already declared")
        parent = self._parent_name(family.supertype)
        if parent != _ROOT and parent not in self._families:
            raise LatticeError(
                f"supertype '{parent}' of '{family.name}' is not declared"
            )
        if parent != _ROOT and not self._families[parent].abstract:
            raise LatticeError(
                f"cannot subtype concrete type '{parent}' with '{family.name}'"
            )
        self._families[family.name] = family
        self._children.setdefault(parent, []).append(family.name)
        self._children.setdefault(family.name, [])

    @staticmethod
    def _parent_name(supertype: Type) -> str:
        if isinstance(supertype, TopType):
            return _ROOT
        body = unwrap_parametric(supertype)
        if not isinstance(body, DataType):
            raise LatticeError(f"invalid supertype {type_name(supertype)}")
        return body.name

    # ── Lookup ──────────────────────────────────────────────────

    def __contains__(self, name: object) -> bool:
        return name in self._families

    def lookup(self, name: str) -> Type:
        """Look up a declared type by name."""
        family = self._families.get(name)
        if family is None:
            raise LatticeError(f"unknown type '{name}'")
        return family.ref

    def apply(self, name: str, *args: Type) -> Type:
        """Apply a generic family to arguments, checking declared bounds."""
        ty = self.lookup(name)
        for arg in args:
            if not isinstance(ty, ParametricType):
                raise LatticeError(f"too many type arguments for '{name}'")
            ty = self.instantiate(ty, arg)
        return ty

    def template(self, name: str, *args: Type) -> DataType:
        """Build ``name{args...}`` without bound checks.

        Used for supertypes of generic declarations, whose arguments are
        usually the declaration's own type variables.
        """
        family = self._families.get(name)
        if family is None:
            raise LatticeError(f"unknown type '{name}'")
        if len(args) != len(family.vars):
            raise LatticeError(
                f"'{name}' takes {len(family.vars)} type argument(s), got {len(args)}"
            )
        return DataType(name, tuple(args), family.abstract)

    # ── Subtype relation ────────────────────────────────────────

    def supertype(self, ty: DataType) -> Type:
        """Declared direct supertype, with the instance's parameters filled in."""
        family = self._families.get(ty.name)
        if family is None:
            return ANY
        sup = family.supertype
        for var, arg in zip(family.vars, ty.params):
            sup = substitute(sup, var, arg)
        return sup

    def is_subtype(self, a: Type, b: Type) -> bool:
        """Best-effort nominal subtyping with invariant parameters."""
        if a == b:
            return True
        if isinstance(b, TopType) or isinstance(a, BottomType):
            return True
        if isinstance(a, TopType):
            return False
        if isinstance(a, UnionType):
            return all(self.is_subtype(m, b) for m in a.members)
        if isinstance(b, UnionType):
            return any(self.is_subtype(a, m) for m in b.members)
        if isinstance(a, TypeVar):
            return self.is_subtype(a.upper, b)
        if isinstance(a, ParametricType):
            # The variable stays rigid: every instance must fit.
            return self.is_subtype(a.body, b)
        if isinstance(a, VarargType) or isinstance(b, VarargType):
            return False
        if isinstance(b, ParametricType):
            return self._matches_parametric(a, b)
        if isinstance(a, DataType) and isinstance(b, DataType):
            ancestor = self._ancestor_named(a, b.name)
            return ancestor is not None and ancestor.params == b.params
        return False

    def _ancestor_named(self, ty: DataType, name: str) -> DataType | None:
        current: Type = ty
        while isinstance(current, DataType):
            if current.name == name:
                return current
            if current.name not in self._families:
                return None
            current = self.supertype(current)
        return None

    def _matches_parametric(self, a: Type, b: ParametricType) -> bool:
        vars: list[TypeVar] = []
        body: Type = b
        while isinstance(body, ParametricType):
            vars.append(body.var)
            body = body.body
        if not isinstance(a, DataType) or not isinstance(body, DataType):
            return self.is_subtype(a, body)
        ancestor = self._ancestor_named(a, body.name)
        if ancestor is None:
            return False
        bindings: dict[TypeVar, Type] = {}
        if not _match(body, ancestor, vars, bindings):
            return False
        for var in vars:
            arg = bindings.get(var)
            if arg is not None and not self.is_subtype(arg, var.upper):
                return False
        return True

    # ── Subtype enumeration ─────────────────────────────────────

    def subtypes(self, ty: Type) -> list[Type]:
        """Immediate declared subtypes of *ty*.

        Concrete types and parametric types over a concrete family have
        none; the latter are expanded by instantiating their variable.
        """
        if isinstance(ty, TopType):
            return [self._families[n].ref for n in self._children[_ROOT]]
        if isinstance(ty, UnionType):
            return sorted_members(ty)
        if isinstance(ty, ParametricType):
            body = unwrap_parametric(ty)
            if not isinstance(body, DataType) or not body.abstract:
                return []
            return [
                self._families[n].ref
                for n in self._children.get(body.name, [])
            ]
        if isinstance(ty, DataType) and ty.abstract:
            result: list[Type] = []
            for child_name in self._children.get(ty.name, []):
                child = self._child_of(self._families[child_name], ty)
                if child is not None:
                    result.append(child)
            return result
        return []

    def _child_of(self, family: _Family, parent: DataType) -> Type | None:
        """The part of *family* that sits below the instance *parent*."""
        if not family.vars:
            ref = family.template
            return ref if self.is_subtype(ref, parent) else None
        if not parent.params:
            return family.ref
        sup = unwrap_parametric(family.supertype)
        if not isinstance(sup, DataType):
            return None
        bindings: dict[TypeVar, Type] = {}
        if not _match(sup, parent, list(family.vars), bindings):
            return None
        result: Type = family.template
        for var, arg in bindings.items():
            if not self.is_subtype(arg, var.upper):
                return None
            result = substitute(result, var, arg)
        for var in reversed(family.vars):
            if var not in bindings:
                result = ParametricType(var, result)
        return result

    # ── Instantiation ───────────────────────────────────────────

    def instantiate(self, ptype: ParametricType, arg: Type) -> Type:
        """Fix the outermost variable of *ptype* to *arg*.

        Raises InstantiationError when *arg* breaks the variable's bound
        or the declared parameter bounds of a family in the result.
        """
        if not self.is_subtype(arg, ptype.var.upper):
            raise InstantiationError(
                f"{type_name(arg)} is not a subtype of {type_name(ptype.var.upper)}"
            )
        result = substitute(ptype.body, ptype.var, arg)
        self._check_bounds(result)
        return result

    def _check_bounds(self, ty: Type) -> None:
        if isinstance(ty, DataType):
            family = self._families.get(ty.name)
            if family is not None and family.vars:
                for i, (var, arg) in enumerate(zip(family.vars, ty.params)):
                    bound = var.upper
                    for prev, prev_arg in zip(family.vars[:i], ty.params[:i]):
                        bound = substitute(bound, prev, prev_arg)
                    if not self.is_subtype(arg, bound):
                        raise InstantiationError(
                            f"{type_name(ty)}: {type_name(arg)} is not a "
                            f"subtype of {type_name(bound)}"
                        )
            for p in ty.params:
                self._check_bounds(p)
        elif isinstance(ty, UnionType):
            for m in ty.members:
                self._check_bounds(m)
        elif isinstance(ty, ParametricType):
            self._check_bounds(ty.body)


def _match(
    template: Type, actual: Type, vars: list[TypeVar], bindings: dict[TypeVar, Type],
) -> bool:
    """Structurally match *template* against *actual*, binding *vars*."""
    if isinstance(template, TypeVar) and template in vars:
        bound = bindings.get(template)
        if bound is None:
            bindings[template] = actual
            return True
        return bound == actual
    if isinstance(template, DataType) and isinstance(actual, DataType):
        if template.name != actual.name or len(template.params) != len(actual.params):
            return False
        return all(
            _match(t, a, vars, bindings)
            for t, a in zip(template.params, actual.params)
        )
    return template == actual


# ── Built-in lattice ────────────────────────────────────────────


def numeric_tower() -> TypeLattice:
    """A lattice modelled on a conventional numeric hierarchy."""
    lat = TypeLattice()
    number = lat.declare("Number", abstract=True)
    real = lat.declare("Real", number, abstract=True)
    afloat = lat.declare("AbstractFloat", real, abstract=True)
    for name in ("Float16", "Float32", "Float64", "BigFloat"):
        lat.declare(name, afloat)
    integer = lat.declare("Integer", real, abstract=True)
    lat.declare("Bool", integer)
    signed = lat.declare("Signed", integer, abstract=True)
    for name in ("Int8", "Int16", "Int32", "Int64", "Int128", "BigInt"):
        lat.declare(name, signed)
    unsigned = lat.declare("Unsigned", integer, abstract=True)
    for name in ("UInt8", "UInt16", "UInt32", "UInt64", "UInt128"):
        lat.declare(name, unsigned)
    lat.declare_generic("Rational", TypeVar("T", integer), supertype=real)
    lat.declare_generic("Complex", TypeVar("T", real), supertype=number)
    astring = lat.declare("AbstractString", abstract=True)
    lat.declare("String", astring)
    lat.declare("Nothing")
    lat.declare("Missing")
    _logger.debug("numeric tower: %d types", len(lat._families))
    return lat

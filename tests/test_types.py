"""Tests for resolved type values and their utilities."""

from __future__ import annotations

from stabcheck.types import (
    ANY,
    BOTTOM,
    DataType,
    ParametricType,
    TypeVar,
    UnionType,
    VarargType,
    free_vars,
    signature_name,
    substitute,
    type_name,
    union,
    unwrap_parametric,
)

INT = DataType("Int64")
FLOAT = DataType("Float64")
MISSING = DataType("Missing")


class TestUnion:
    def test_single_member_collapses(self):
        assert union(INT) == INT

    def test_empty_is_bottom(self):
        assert union() == BOTTOM

    def test_flattens_and_dedups(self):
        u = union(union(INT, FLOAT), INT, MISSING, BOTTOM)
        assert isinstance(u, UnionType)
        assert u.members == frozenset({INT, FLOAT, MISSING})

    def test_any_absorbs(self):
        assert union(INT, ANY) == ANY

    def test_order_does_not_matter(self):
        assert union(INT, FLOAT) == union(FLOAT, INT)
        assert hash(union(INT, FLOAT)) == hash(union(FLOAT, INT))


class TestTypeName:
    def test_plain(self):
        assert type_name(INT) == "Int64"
        assert type_name(ANY) == "Any"
        assert type_name(BOTTOM) == "Union{}"

    def test_generic_instance(self):
        assert type_name(DataType("Complex", (FLOAT,))) == "Complex{Float64}"

    def test_union_sorted(self):
        assert type_name(union(MISSING, INT)) == "Union{Int64, Missing}"

    def test_parametric(self):
        real = DataType("Real", abstract=True)
        t = TypeVar("T", real)
        ty = ParametricType(t, DataType("Complex", (t,)))
        assert type_name(ty) == "Complex{T} where T<:Real"
        u = TypeVar("U")
        assert type_name(ParametricType(u, DataType("Ref", (u,)))) == "Ref{U} where U"

    def test_vararg(self):
        assert type_name(VarargType()) == "Vararg{Any}"

    def test_signature(self):
        assert signature_name((INT,)) == "(Int64,)"
        assert signature_name((INT, FLOAT)) == "(Int64, Float64)"
        assert signature_name(()) == "()"


class TestSubstitution:
    def test_substitute_in_params(self):
        t = TypeVar("T")
        ty = DataType("Pair", (t, DataType("Ref", (t,))))
        assert substitute(ty, t, INT) == DataType("Pair", (INT, DataType("Ref", (INT,))))

    def test_shadowed_variable_untouched(self):
        t = TypeVar("T")
        inner = ParametricType(t, DataType("Ref", (t,)))
        assert substitute(inner, t, INT) == inner

    def test_free_vars(self):
        t = TypeVar("T")
        u = TypeVar("U")
        ty = ParametricType(t, DataType("Pair", (t, u)))
        assert free_vars(ty) == [u]
        assert free_vars(DataType("Pair", (t, u))) == [t, u]
        assert free_vars(INT) == []

    def test_unwrap(self):
        t = TypeVar("T")
        u = TypeVar("U")
        body = DataType("Pair", (t, u))
        assert unwrap_parametric(ParametricType(t, ParametricType(u, body))) == body

    def test_typevar_defaults_to_any(self):
        assert TypeVar("T").upper == ANY

"""Tests for the type registry."""

from __future__ import annotations

import pytest

from stabcheck.errors import InstantiationError, LatticeError
from stabcheck.lattice import TypeLattice
from stabcheck.types import (
    ANY,
    BOTTOM,
    FUNCTION,
    DataType,
    ParametricType,
    TypeVar,
    union,
)
from tests.helpers import INTEGER_LEAVES


@pytest.fixture
def vectors():
    """A lattice with a generic abstract family and a concrete child family."""
    lat = TypeLattice()
    signed = lat.declare("Signed", abstract=True)
    lat.declare("Int8", signed)
    lat.declare("Int16", signed)
    lat.declare("String")
    t = TypeVar("T")
    lat.declare_generic("MyAbsVec", t, abstract=True)
    s = TypeVar("T", signed)
    lat.declare_generic("MyVec", s, supertype=lat.template("MyAbsVec", s))
    return lat


class TestDeclarations:
    def test_declare_returns_type(self):
        lat = TypeLattice()
        num = lat.declare("Num", abstract=True)
        assert num == DataType("Num", abstract=True)
        assert lat.lookup("Num") == num
        assert "Num" in lat

    def test_duplicate_name(self):
        lat = TypeLattice()
        lat.declare("A")
        with pytest.raises(LatticeError):
            lat.declare("A")

    def test_unknown_supertype(self):
        lat = TypeLattice()
        with pytest.raises(LatticeError):
            lat.declare("A", DataType("Nope", abstract=True))

    def test_concrete_supertype(self):
        lat = TypeLattice()
        a = lat.declare("A")
        with pytest.raises(LatticeError):
            lat.declare("B", a)

    def test_unknown_lookup(self):
        with pytest.raises(LatticeError):
            TypeLattice().lookup("Missing")

    def test_builtins_registered(self):
        lat = TypeLattice()
        assert lat.lookup("Function") == FUNCTION
        assert "Box" in lat

    def test_generic_needs_variables(self):
        with pytest.raises(LatticeError):
            TypeLattice().declare_generic("G")


class TestSubtypes:
    def test_direct_subtypes(self, tower):
        names = [t.name for t in tower.subtypes(tower.lookup("Integer"))]
        assert names == ["Bool", "Signed", "Unsigned"]

    def test_generic_family_listed_under_parent(self, tower):
        subs = tower.subtypes(tower.lookup("Real"))
        assert tower.lookup("Rational") in subs
        assert tower.lookup("Integer") in subs

    def test_concrete_has_none(self, tower):
        assert tower.subtypes(tower.lookup("Int64")) == []

    def test_concrete_family_has_none(self, tower):
        assert tower.subtypes(tower.lookup("Complex")) == []

    def test_union_members(self, tower):
        u = union(tower.lookup("Int64"), tower.lookup("Signed"))
        assert set(tower.subtypes(u)) == {tower.lookup("Int64"), tower.lookup("Signed")}

    def test_abstract_family_children(self, vectors):
        assert vectors.subtypes(vectors.lookup("MyAbsVec")) == [vectors.lookup("MyVec")]

    def test_instance_children_are_instantiated(self, vectors):
        int8 = vectors.lookup("Int8")
        parent = vectors.template("MyAbsVec", int8)
        assert vectors.subtypes(parent) == [vectors.apply("MyVec", int8)]

    def test_instance_children_respect_bounds(self, vectors):
        parent = vectors.template("MyAbsVec", vectors.lookup("String"))
        assert vectors.subtypes(parent) == []

    def test_integer_leaves(self, tower):
        found = set()
        todo = [tower.lookup("Integer")]
        while todo:
            ty = todo.pop()
            subs = tower.subtypes(ty)
            if not subs:
                found.add(ty.name)
            todo.extend(subs)
        assert found == set(INTEGER_LEAVES)
        assert len(found) == 12


class TestSubtypeRelation:
    def test_nominal_chain(self, tower):
        assert tower.is_subtype(tower.lookup("Int8"), tower.lookup("Number"))
        assert not tower.is_subtype(tower.lookup("Int8"), tower.lookup("AbstractFloat"))

    def test_top_and_bottom(self, tower):
        assert tower.is_subtype(tower.lookup("Int8"), ANY)
        assert tower.is_subtype(BOTTOM, tower.lookup("Int8"))
        assert not tower.is_subtype(ANY, tower.lookup("Int8"))

    def test_unions(self, tower):
        i8, f64 = tower.lookup("Int8"), tower.lookup("Float64")
        assert tower.is_subtype(union(i8, f64), tower.lookup("Real"))
        assert tower.is_subtype(i8, union(f64, tower.lookup("Integer")))
        assert not tower.is_subtype(union(i8, tower.lookup("String")), tower.lookup("Real"))

    def test_instances_are_invariant(self, tower):
        c_int = tower.apply("Complex", tower.lookup("Integer"))
        c_i8 = tower.apply("Complex", tower.lookup("Int8"))
        assert not tower.is_subtype(c_i8, c_int)
        assert tower.is_subtype(c_i8, tower.lookup("Number"))

    def test_instance_below_family(self, tower):
        c = tower.apply("Complex", tower.lookup("Float64"))
        assert tower.is_subtype(c, tower.lookup("Complex"))
        assert not tower.is_subtype(tower.lookup("Float64"), tower.lookup("Complex"))

    def test_family_below_parent(self, tower):
        assert tower.is_subtype(tower.lookup("Rational"), tower.lookup("Real"))

    def test_generic_supertype_with_parameters(self, vectors):
        int8, int16 = vectors.lookup("Int8"), vectors.lookup("Int16")
        v = vectors.apply("MyVec", int8)
        assert vectors.is_subtype(v, vectors.template("MyAbsVec", int8))
        assert not vectors.is_subtype(v, vectors.template("MyAbsVec", int16))
        assert vectors.is_subtype(v, vectors.lookup("MyAbsVec"))

    def test_function_subtypes(self):
        lat = TypeLattice()
        fn = lat.declare("MyFn", FUNCTION)
        assert lat.is_subtype(fn, FUNCTION)


class TestInstantiation:
    def test_apply(self, tower):
        f64 = tower.lookup("Float64")
        assert tower.apply("Complex", f64) == DataType("Complex", (f64,))

    def test_bound_violation(self, tower):
        with pytest.raises(InstantiationError):
            tower.apply("Rational", tower.lookup("Float64"))

    def test_declared_bound_checked_through_user_variable(self, tower):
        # Complex{T} where T<:Number admits Number, but Complex itself wants Real.
        t = TypeVar("T", tower.lookup("Number"))
        loose = ParametricType(t, tower.template("Complex", t))
        with pytest.raises(InstantiationError):
            tower.instantiate(loose, tower.lookup("Number"))
        assert tower.instantiate(loose, tower.lookup("Real")) == DataType(
            "Complex", (tower.lookup("Real"),),
        )

    def test_too_many_arguments(self, tower):
        with pytest.raises(LatticeError):
            tower.apply("Int64", tower.lookup("Int8"))

    def test_template_arity(self, tower):
        with pytest.raises(LatticeError):
            tower.template("Complex")

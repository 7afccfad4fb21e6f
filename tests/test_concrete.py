"""Tests for the concreteness rule."""

from __future__ import annotations

from stabcheck.concrete import is_concrete, is_dispatch_leaf, is_expected_union
from stabcheck.types import (
    ANY,
    BOTTOM,
    BOX,
    FUNCTION,
    DataType,
    TypeVar,
    VarargType,
    union,
)


class TestConcreteness:
    def test_leaves_are_concrete(self, tower):
        assert is_concrete(tower.lookup("Int64"))
        assert is_concrete(tower.lookup("String"))

    def test_abstract_types_are_not(self, tower):
        assert not is_concrete(tower.lookup("Integer"))
        assert not is_concrete(FUNCTION)
        assert not is_concrete(ANY)

    def test_parametric_family_is_not(self, tower):
        assert not is_concrete(tower.lookup("Complex"))

    def test_instance_with_abstract_argument_is_concrete(self, tower):
        ty = tower.apply("Complex", tower.lookup("Integer"))
        assert is_dispatch_leaf(ty)
        assert is_concrete(ty)

    def test_free_variable_is_not(self):
        t = TypeVar("T")
        assert not is_concrete(DataType("Complex", (t,)))
        assert not is_concrete(t)

    def test_box_is_not(self):
        assert is_dispatch_leaf(BOX)
        assert not is_concrete(BOX)

    def test_bottom_is_concrete(self):
        assert is_concrete(BOTTOM)

    def test_vararg_is_not(self):
        assert not is_concrete(VarargType())


class TestExpectedUnion:
    def test_small_union_of_leaves(self, tower):
        u = union(tower.lookup("Int64"), tower.lookup("Missing"))
        assert is_expected_union(u)
        assert is_concrete(u)

    def test_three_members_still_expected(self, tower):
        u = union(*(tower.lookup(n) for n in ("Int64", "Float64", "Nothing")))
        assert is_concrete(u)

    def test_four_members_too_many(self, tower):
        u = union(*(tower.lookup(n) for n in ("Int64", "Float64", "Nothing", "Missing")))
        assert not is_concrete(u)

    def test_abstract_member(self, tower):
        assert not is_concrete(union(tower.lookup("Integer"), tower.lookup("Missing")))

    def test_box_member(self, tower):
        assert not is_concrete(union(BOX, tower.lookup("Missing")))

"""Shared test helpers for the stabcheck test suite."""

from __future__ import annotations

import threading

from stabcheck.inference import RuleOracle
from stabcheck.lattice import TypeLattice
from stabcheck.search import (
    DEFAULT_CONFIG,
    SearchConfig,
    SearchEnd,
    SkippedExistentials,
    enumerate_instantiations,
)
from stabcheck.symbols import Method
from stabcheck.types import Signature


class CountingOracle(RuleOracle):
    """RuleOracle that remembers every instantiation it was asked about."""

    def __init__(self) -> None:
        self.calls: list[Signature] = []
        self._lock = threading.Lock()

    def infer(self, method, arg_types):
        with self._lock:
            self.calls.append(tuple(arg_types))
        return super().infer(method, arg_types)


def collect(
    sig: Signature, lattice: TypeLattice, cfg: SearchConfig = DEFAULT_CONFIG,
) -> tuple[list[Signature], list[SkippedExistentials], SearchEnd]:
    """Drain an enumeration into (tuples, markers, end)."""
    tuples: list[Signature] = []
    markers: list[SkippedExistentials] = []
    end = None
    for item in enumerate_instantiations(sig, lattice, cfg):
        assert end is None, "items after the end marker"
        if isinstance(item, SearchEnd):
            end = item
        elif isinstance(item, SkippedExistentials):
            markers.append(item)
        else:
            tuples.append(item)
    assert end is not None, "enumeration ended without an end marker"
    return tuples, markers, end


def skipped_types(markers: list[SkippedExistentials]) -> set:
    return {t for m in markers for t in m.types}


def method(name: str, *sig, rule=None, exported: bool = False) -> Method:
    return Method(name, tuple(sig), rule, scope="tests", exported=exported)


def leaves(lattice: TypeLattice, *names: str) -> set:
    """Singleton tuples for the named types."""
    return {(lattice.lookup(n),) for n in names}


INTEGER_LEAVES = (
    "Bool",
    "Int8", "Int16", "Int32", "Int64", "Int128", "BigInt",
    "UInt8", "UInt16", "UInt32", "UInt64", "UInt128",
)

FLOAT_LEAVES = ("Float16", "Float32", "Float64", "BigFloat")

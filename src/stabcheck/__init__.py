"""Exhaustive type-stability checking over a declared type lattice."""

from __future__ import annotations

__version__ = "0.1.0"

from stabcheck.checker import (
    FuelExhausted,
    GivesUpAnyParam,
    GivesUpVararg,
    InferenceFailure,
    MethodCheckResult,
    Outcome,
    Stable,
    Unstable,
    all_stable,
    check_method,
    check_methods,
    check_scope,
    classify,
)
from stabcheck.hooks import Checklist, stable_now
from stabcheck.inference import InferenceOracle, RuleOracle
from stabcheck.lattice import TypeLattice, numeric_tower
from stabcheck.search import (
    SearchConfig,
    SearchEnd,
    SkippedExistentials,
    TooManyInstantiations,
    direct_subtypes,
    enumerate_instantiations,
    expand_existential,
)
from stabcheck.symbols import Method, Scope

__all__ = [
    "Checklist",
    "FuelExhausted",
    "GivesUpAnyParam",
    "GivesUpVararg",
    "InferenceFailure",
    "InferenceOracle",
    "Method",
    "MethodCheckResult",
    "Outcome",
    "RuleOracle",
    "Scope",
    "SearchConfig",
    "SearchEnd",
    "SkippedExistentials",
    "Stable",
    "TooManyInstantiations",
    "TypeLattice",
    "Unstable",
    "all_stable",
    "check_method",
    "check_methods",
    "check_scope",
    "classify",
    "direct_subtypes",
    "enumerate_instantiations",
    "expand_existential",
    "numeric_tower",
    "stable_now",
]

"""Stability classification of method signatures.

A method is stable when every concrete instantiation of its signature
infers to a concrete result type. The classifier drives the lattice
search, asks the inference oracle about each concrete tuple, and folds
the answers into exactly one outcome. Outcomes are values: nothing the
oracle or the lattice does makes ``classify`` raise.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from stabcheck.concrete import is_concrete
from stabcheck.inference import InferenceOracle, call_with_timeout
from stabcheck.lattice import TypeLattice
from stabcheck.search import (
    DEFAULT_CONFIG,
    SearchConfig,
    SearchEnd,
    SkippedExistentials,
    TooManyInstantiations,
    enumerate_instantiations,
)
from stabcheck.symbols import Method, Scope
from stabcheck.types import ANY, Signature, Type, is_vararg

_logger = logging.getLogger(__name__)

# ── Outcomes ────────────────────────────────────────────────────


@dataclass(frozen=True)
class Stable:
    """Every instantiation checked inferred to a concrete type."""

    steps: int
    skipped: tuple[Type | TooManyInstantiations, ...] = ()


@dataclass(frozen=True)
class Unstable:
    """Instantiations whose inferred result type is not concrete."""

    failing: tuple[Signature, ...]


@dataclass(frozen=True)
class GivesUpAnyParam:
    """The signature has an Any parameter; nothing to enumerate."""

    sig: Signature


@dataclass(frozen=True)
class GivesUpVararg:
    sig: Signature


@dataclass(frozen=True)
class InferenceFailure:
    """The oracle produced no result for this instantiation."""

    instantiation: Signature


@dataclass(frozen=True)
class FuelExhausted:
    """The search hit fuel or the step limit; stability is unknown."""


Outcome = (
    Stable | Unstable | GivesUpAnyParam | GivesUpVararg
    | InferenceFailure | FuelExhausted
)


@dataclass(frozen=True)
class MethodCheckResult:
    """A method paired with its outcome, for reporting."""

    method: Method
    outcome: Outcome


# ── Classification ──────────────────────────────────────────────


def classify(
    method: Method,
    lattice: TypeLattice,
    oracle: InferenceOracle,
    cfg: SearchConfig = DEFAULT_CONFIG,
    *,
    cancel: threading.Event | None = None,
) -> Outcome:
    """Check that every instantiation of the method's signature is stable."""
    _logger.debug("classify: %s", method)
    sig = tuple(method.signature)

    # Corner cases where we give up
    if ANY in sig:
        return GivesUpAnyParam(sig)
    if any(is_vararg(t) for t in sig):
        return GivesUpVararg(sig)

    failing: list[Signature] = []
    skipped: list[Type | TooManyInstantiations] = []
    steps = 0
    for item in enumerate_instantiations(sig, lattice, cfg, cancel=cancel):
        if isinstance(item, SearchEnd):
            if item is not SearchEnd.DONE:
                _logger.debug("%s: search ended with %s", method.name, item.value)
                return FuelExhausted()
            break
        if isinstance(item, SkippedExistentials):
            for ty in item.types:
                if ty not in skipped:
                    skipped.append(ty)
            continue
        if not all(is_concrete(t) for t in item):
            continue  # intermediate node, only seen with concrete_only off

        try:
            result = call_with_timeout(oracle, method, item, cfg.inference_timeout)
        except Exception:
            _logger.debug("inference failed for %s on %s", method.name, item, exc_info=True)
            return InferenceFailure(item)
        if not is_concrete(result):
            failing.append(item)

        steps += 1
        if steps > cfg.fuel:
            return FuelExhausted()

    if failing:
        return Unstable(tuple(failing))
    return Stable(steps, tuple(skipped))


def check_method(
    method: Method,
    lattice: TypeLattice,
    oracle: InferenceOracle,
    cfg: SearchConfig = DEFAULT_CONFIG,
    *,
    cancel: threading.Event | None = None,
) -> MethodCheckResult:
    return MethodCheckResult(
        method, classify(method, lattice, oracle, cfg, cancel=cancel),
    )


def check_methods(
    methods: list[Method],
    lattice: TypeLattice,
    oracle: InferenceOracle,
    cfg: SearchConfig = DEFAULT_CONFIG,
    *,
    workers: int = 1,
    cancel: threading.Event | None = None,
) -> list[MethodCheckResult]:
    """Check independent methods, possibly on several threads.

    Results keep the order of *methods*. Once *cancel* is set, methods not
    yet started are left out and running searches stop within one step.
    A method whose check raises is logged and left out; the batch carries
    on.
    """

    def _run(method: Method) -> MethodCheckResult | None:
        if cancel is not None and cancel.is_set():
            return None
        try:
            return check_method(method, lattice, oracle, cfg, cancel=cancel)
        except Exception:
            _logger.warning("could not check %s", method, exc_info=True)
            return None

    if workers <= 1:
        results = [_run(m) for m in methods]
    else:
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="stabcheck",
        ) as pool:
            results = list(pool.map(_run, methods))
    return [r for r in results if r is not None]


def check_scope(
    scope: Scope,
    lattice: TypeLattice,
    oracle: InferenceOracle,
    cfg: SearchConfig = DEFAULT_CONFIG,
    *,
    workers: int = 1,
    cancel: threading.Event | None = None,
) -> list[MethodCheckResult]:
    """Check every method of every function in *scope*.

    With ``cfg.exported_only`` only exported functions are checked.
    """
    methods = scope.methods(exported_only=cfg.exported_only)
    _logger.info("number of methods in %s: %d", scope.name, len(methods))
    return check_methods(
        methods, lattice, oracle, cfg, workers=workers, cancel=cancel,
    )


def all_stable(results: list[MethodCheckResult]) -> bool:
    """True when every result in the batch is Stable."""
    return all(isinstance(r.outcome, Stable) for r in results)

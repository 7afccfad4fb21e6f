"""Worklist search over the subtype lattice below a signature.

Starting from a tuple of argument types, the search walks down the
lattice one position at a time until it reaches tuples whose every
component is concrete. Parametric (existential) components are expanded
by enumerating their variable's upper bound and instantiating the type
with each result.

The search is a plain generator. It yields signature tuples and
``SkippedExistentials`` markers, and always finishes by yielding exactly
one ``SearchEnd`` value telling the consumer how it stopped.
"""

from __future__ import annotations

import logging
import sys
import threading
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, replace
from enum import Enum

from stabcheck.concrete import is_concrete
from stabcheck.errors import InstantiationError
from stabcheck.lattice import TypeLattice
from stabcheck.types import (
    ANY,
    FUNCTION,
    ParametricType,
    Signature,
    Type,
    is_vararg,
    type_name,
)

_logger = logging.getLogger(__name__)

# Types whose subtype sets are unbounded or useless for enumeration.
BLOCKLIST: tuple[Type, ...] = (FUNCTION,)


@dataclass(frozen=True)
class SearchConfig:
    """Search parameters. Defaults enumerate concrete types with no limits."""

    concrete_only: bool = True
    # Enumerate concrete tuples only; abstract nodes are still expanded.
    skip_unbound_existentials: bool = False
    # Record parametric components as skipped instead of instantiating them.
    expand_with_abstract_args: bool = False
    # Let type variables take abstract arguments too (may blow up quickly).
    exported_only: bool = False
    # Module scans only: check exported functions only.
    fuel: int = sys.maxsize
    # How many concrete instantiations to check before giving up.
    max_lattice_steps: int = sys.maxsize
    # How many worklist pops to allow before giving up.
    max_instantiations: int = sys.maxsize
    # How many specializations of one existential to try.
    inference_timeout: float | None = None
    # Seconds allowed per inference call; None waits forever.


DEFAULT_CONFIG = SearchConfig()


@dataclass(frozen=True)
class TooManyInstantiations:
    """Stands for the instantiations of *ty* cut off by max_instantiations."""

    ty: ParametricType

    def __str__(self) -> str:
        return f"TooManyInstantiations({type_name(self.ty)})"


@dataclass(frozen=True)
class SkippedExistentials:
    """Parametric types that were seen but deliberately not expanded."""

    types: tuple[Type | TooManyInstantiations, ...]


class SearchEnd(Enum):
    DONE = "done"
    STEP_LIMIT = "step-limit"
    CANCELLED = "cancelled"


SearchItem = Signature | SkippedExistentials | SearchEnd


class SearchBudget:
    """Step counter shared by a search and the searches it spawns."""

    def __init__(
        self, max_steps: int, cancel: threading.Event | None = None,
    ) -> None:
        self.max_steps = max_steps
        self.cancel = cancel
        self.steps = 0
        self.truncated = False

    @property
    def spent(self) -> bool:
        return self.steps >= self.max_steps

    @property
    def cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.is_set()


# ── Lattice enumeration ─────────────────────────────────────────


def enumerate_instantiations(
    sig: Signature,
    lattice: TypeLattice,
    cfg: SearchConfig = DEFAULT_CONFIG,
    *,
    cancel: threading.Event | None = None,
) -> Iterator[SearchItem]:
    """Lazily enumerate the instantiations of *sig*.

    Concrete tuples are always yielded; abstract ones only when
    ``cfg.concrete_only`` is off. Emission order is unspecified.
    """
    budget = SearchBudget(cfg.max_lattice_steps, cancel)
    return _enumerate(tuple(sig), lattice, cfg, budget)


def _enumerate(
    sig: Signature, lattice: TypeLattice, cfg: SearchConfig, budget: SearchBudget,
) -> Iterator[SearchItem]:
    worklist: deque[Signature | SkippedExistentials] = deque([sig])
    seen: set[Signature | SkippedExistentials] = {sig}
    while worklist:
        if budget.cancelled:
            _logger.debug("search cancelled after %d steps", budget.steps)
            yield SearchEnd.CANCELLED
            return
        item = worklist.popleft()
        if isinstance(item, SkippedExistentials):
            yield item
            continue
        if budget.spent:
            _logger.debug("step limit %d reached", budget.max_steps)
            budget.truncated = True
            yield SearchEnd.STEP_LIMIT
            return
        budget.steps += 1
        _logger.debug("worklist pop: %s", item)

        if all(is_concrete(t) for t in item):
            yield item
            continue

        parametric = tuple(t for t in item if isinstance(t, ParametricType))
        if parametric and cfg.skip_unbound_existentials:
            yield SkippedExistentials(parametric)
            continue
        if any(p.var.upper == ANY for p in parametric):
            # Unbounded variables can't be enumerated; never guess Any.
            _logger.debug("unbounded existential in %s", item)
            yield SkippedExistentials(parametric)
            continue

        if not cfg.concrete_only:
            yield item
        for sub in direct_subtypes(item, lattice, cfg, budget):
            if sub not in seen:
                seen.add(sub)
                worklist.append(sub)
    # A nested search may have stopped early while expanding a node.
    if budget.cancelled:
        yield SearchEnd.CANCELLED
    elif budget.truncated:
        yield SearchEnd.STEP_LIMIT
    else:
        yield SearchEnd.DONE


def direct_subtypes(
    sig: Signature,
    lattice: TypeLattice,
    cfg: SearchConfig = DEFAULT_CONFIG,
    budget: SearchBudget | None = None,
) -> list[Signature | SkippedExistentials]:
    """Tuples one lattice step below *sig*, one position at a time.

    Precondition: *sig* holds no unbounded existential.
    """
    if budget is None:
        budget = SearchBudget(cfg.max_lattice_steps)
    result: list[Signature | SkippedExistentials] = []
    for i, ty in enumerate(sig):
        for sub in _position_subtypes(ty, lattice, cfg, budget):
            if isinstance(sub, SkippedExistentials):
                result.append(sub)
            else:
                result.append(sig[:i] + (sub,) + sig[i + 1:])
    return result


def _position_subtypes(
    ty: Type, lattice: TypeLattice, cfg: SearchConfig, budget: SearchBudget,
) -> list[Type | SkippedExistentials]:
    if is_vararg(ty) or any(lattice.is_subtype(ty, b) for b in BLOCKLIST):
        return []
    subs: list[Type | SkippedExistentials] = list(lattice.subtypes(ty))
    # No declared subtypes may mean a parametric type to instantiate.
    if not subs and isinstance(ty, ParametricType):
        subs = expand_existential(ty, lattice, cfg, budget)
    return subs


# ── Existential expansion ───────────────────────────────────────


def expand_existential(
    ptype: ParametricType,
    lattice: TypeLattice,
    cfg: SearchConfig = DEFAULT_CONFIG,
    budget: SearchBudget | None = None,
) -> list[Type | SkippedExistentials]:
    """Instantiate the variable of *ptype* with every type below its bound.

    Lower bounds are ignored. Instantiations the lattice rejects are
    dropped. The recursive search skips parametric types so that it
    terminates.
    """
    assert ptype.var.upper != ANY, f"unbounded existential {type_name(ptype)}"
    if budget is None:
        budget = SearchBudget(cfg.max_lattice_steps)
    inner = replace(
        cfg,
        concrete_only=not cfg.expand_with_abstract_args,
        skip_unbound_existentials=True,
    )

    result: list[Type | SkippedExistentials] = []
    count = 0
    for item in _enumerate((ptype.var.upper,), lattice, inner, budget):
        if isinstance(item, SearchEnd):
            break
        if isinstance(item, SkippedExistentials):
            result.append(item)
            continue
        try:
            inst = lattice.instantiate(ptype, item[0])
        except InstantiationError as e:
            _logger.debug("dropping %s: %s", type_name(ptype), e)
            continue
        count += 1
        if count > cfg.max_instantiations:
            result.append(SkippedExistentials((TooManyInstantiations(ptype),)))
            break
        result.append(inst)
    return result

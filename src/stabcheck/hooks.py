"""Decorators that hook stability checks onto rule definitions.

``stable_now`` checks as soon as the rule is defined. A ``Checklist``
collects definitions and checks them later, which helps when a rule
refers to something defined after it. The checklist is owned by the
caller; there is no process-wide registry.
"""

from __future__ import annotations

from collections.abc import Callable

from stabcheck.checker import MethodCheckResult, check_method, check_methods
from stabcheck.inference import InferenceOracle, RuleOracle
from stabcheck.lattice import TypeLattice
from stabcheck.report import MAX_PRINT_UNSTABLE, print_diagnostics
from stabcheck.search import DEFAULT_CONFIG, SearchConfig
from stabcheck.symbols import InferenceRule, Method, method_from_rule
from stabcheck.types import Type


def stable_now(
    lattice: TypeLattice,
    *signature: Type,
    oracle: InferenceOracle | None = None,
    cfg: SearchConfig = DEFAULT_CONFIG,
    max_print: int = MAX_PRINT_UNSTABLE,
) -> Callable[[InferenceRule], InferenceRule]:
    """Decorator: check the rule at definition time, warn if not stable.

    The decorated function is returned unchanged.
    """

    def decorator(rule: InferenceRule) -> InferenceRule:
        method = method_from_rule(rule, signature)
        result = check_method(method, lattice, oracle or RuleOracle(), cfg)
        print_diagnostics([result], max_print=max_print)
        return rule

    return decorator


class Checklist:
    """Pending checks, run on demand with ``check_all``."""

    def __init__(self) -> None:
        self._pending: list[Method] = []

    def stable(
        self, *signature: Type, name: str | None = None,
    ) -> Callable[[InferenceRule], InferenceRule]:
        """Decorator: queue the rule for a later stability check."""

        def decorator(rule: InferenceRule) -> InferenceRule:
            self._pending.append(method_from_rule(rule, signature, name=name))
            return rule

        return decorator

    def add(self, method: Method) -> None:
        self._pending.append(method)

    @property
    def pending(self) -> list[Method]:
        return list(self._pending)

    def check_all(
        self,
        lattice: TypeLattice,
        oracle: InferenceOracle | None = None,
        cfg: SearchConfig = DEFAULT_CONFIG,
        *,
        max_print: int = MAX_PRINT_UNSTABLE,
        quiet: bool = False,
    ) -> list[MethodCheckResult]:
        """Check every pending method and print diagnostics for each."""
        results = check_methods(self._pending, lattice, oracle or RuleOracle(), cfg)
        if not quiet:
            print_diagnostics(results, max_print=max_print)
        return results

    def clear(self) -> None:
        self._pending.clear()

    def __len__(self) -> int:
        return len(self._pending)

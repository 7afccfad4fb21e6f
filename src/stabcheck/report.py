"""Reporting: CSV records, aggregate counters, and console diagnostics."""

from __future__ import annotations

import csv
import logging
from dataclasses import astuple, dataclass, fields
from pathlib import Path

import click

from stabcheck.checker import (
    FuelExhausted,
    GivesUpAnyParam,
    GivesUpVararg,
    InferenceFailure,
    MethodCheckResult,
    Outcome,
    Stable,
    Unstable,
)
from stabcheck.errors import Diagnostic, DiagnosticRenderer, Location, Severity
from stabcheck.search import TooManyInstantiations
from stabcheck.types import Type, signature_name, type_name

_logger = logging.getLogger(__name__)

# How many failing instantiations to print by default
MAX_PRINT_UNSTABLE = 5


# ── CSV records ─────────────────────────────────────────────────


@dataclass(frozen=True)
class CheckRecord:
    """One CSV row. Field order is the column order."""

    check: str
    extra: str
    sig: str
    scope: str
    file: str
    line: int


def outcome_kind(outcome: Outcome) -> str:
    if isinstance(outcome, Stable):
        return "stable"
    if isinstance(outcome, Unstable):
        return "unstable"
    if isinstance(outcome, GivesUpAnyParam):
        return "Any"
    if isinstance(outcome, GivesUpVararg):
        return "vararg"
    if isinstance(outcome, InferenceFailure):
        return "tc-fail"
    if isinstance(outcome, FuelExhausted):
        return "nofuel"
    raise TypeError(f"unknown outcome: {outcome!r}")


def _skipped_name(item: Type | TooManyInstantiations) -> str:
    if isinstance(item, TooManyInstantiations):
        return str(item)
    return type_name(item)


def outcome_extra(outcome: Outcome) -> str:
    """Outcome-specific detail for the ``extra`` column."""
    if isinstance(outcome, Stable):
        if not outcome.skipped:
            return str(outcome.steps)
        skipped = ", ".join(_skipped_name(s) for s in outcome.skipped)
        return f"{outcome.steps};[{skipped}]"
    if isinstance(outcome, InferenceFailure):
        return signature_name(outcome.instantiation)
    if isinstance(outcome, (Unstable, GivesUpAnyParam, GivesUpVararg, FuelExhausted)):
        return ""
    raise TypeError(f"unknown outcome: {outcome!r}")


def prepare_record(result: MethodCheckResult) -> CheckRecord:
    method = result.method
    return CheckRecord(
        check=outcome_kind(result.outcome),
        extra=outcome_extra(result.outcome),
        sig=signature_name(method.signature),
        scope=method.scope,
        file=method.file,
        line=method.line,
    )


def prepare_records(results: list[MethodCheckResult]) -> list[CheckRecord]:
    return [prepare_record(r) for r in results]


def write_csv(path: Path, results: list[MethodCheckResult]) -> None:
    """Write one header row, then one row per result."""
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow([fld.name for fld in fields(CheckRecord)])
        for record in prepare_records(results):
            writer.writerow(astuple(record))


# ── Aggregates ──────────────────────────────────────────────────


@dataclass(frozen=True)
class AggregateStats:
    """Per-scope counters. Field order is the column order."""

    total: int = 0
    stable: int = 0
    unstable: int = 0
    any_param: int = 0
    vararg: int = 0
    inference_failure: int = 0
    fuel_exhausted: int = 0


def aggregate_stats(results: list[MethodCheckResult]) -> AggregateStats:
    counts = {kind: 0 for kind in ("stable", "unstable", "Any", "vararg", "tc-fail", "nofuel")}
    for r in results:
        counts[outcome_kind(r.outcome)] += 1
    return AggregateStats(
        total=len(results),
        stable=counts["stable"],
        unstable=counts["unstable"],
        any_param=counts["Any"],
        vararg=counts["vararg"],
        inference_failure=counts["tc-fail"],
        fuel_exhausted=counts["nofuel"],
    )


def format_aggregate(scope: str, stats: AggregateStats) -> str:
    """``scope,total,stable,unstable,any_param,vararg,inference_failure,fuel_exhausted``"""
    return ",".join([scope, *(str(n) for n in astuple(stats))])


def store_results(
    scope: str, results: list[MethodCheckResult], out_dir: Path,
) -> tuple[Path, Path]:
    """Write ``<scope>.csv`` and ``<scope>-agg.txt`` under *out_dir*."""
    out_dir.mkdir(parents=True, exist_ok=True)
    csv_path = out_dir / f"{scope}.csv"
    agg_path = out_dir / f"{scope}-agg.txt"
    write_csv(csv_path, results)
    agg_path.write_text(format_aggregate(scope, aggregate_stats(results)) + "\n")
    _logger.info("wrote %s and %s", csv_path, agg_path)
    return csv_path, agg_path


# ── Console diagnostics ─────────────────────────────────────────

_GIVE_UP_CODES = {
    GivesUpAnyParam: "W100",
    GivesUpVararg: "W101",
    InferenceFailure: "W102",
    FuelExhausted: "W103",
}


def describe_outcome(outcome: Outcome) -> str:
    """Short human-readable description of an outcome."""
    if isinstance(outcome, Stable):
        return f"stable after {outcome.steps} instantiation(s)"
    if isinstance(outcome, Unstable):
        return f"unstable on {len(outcome.failing)} instantiation(s)"
    if isinstance(outcome, GivesUpAnyParam):
        return f"Any parameter in {signature_name(outcome.sig)}"
    if isinstance(outcome, GivesUpVararg):
        return f"vararg parameter in {signature_name(outcome.sig)}"
    if isinstance(outcome, InferenceFailure):
        return f"inference failed on {signature_name(outcome.instantiation)}"
    if isinstance(outcome, FuelExhausted):
        return "fuel exhausted"
    raise TypeError(f"unknown outcome: {outcome!r}")


def outcome_diagnostic(
    result: MethodCheckResult, max_print: int = MAX_PRINT_UNSTABLE,
) -> Diagnostic | None:
    """A warning for anything that is not Stable; None otherwise."""
    outcome = result.outcome
    method = result.method
    location = Location(method.file, method.line)
    if isinstance(outcome, Stable):
        return None
    if isinstance(outcome, Unstable):
        shown = outcome.failing[:max_print]
        diag = Diagnostic(
            severity=Severity.WARNING,
            code="W110",
            message=f"method '{method.name}' is unstable on the following inputs",
            location=location,
            items=[signature_name(sig) for sig in shown],
        )
        hidden = len(outcome.failing) - len(shown)
        if hidden > 0:
            diag.notes.append(
                f"...and {hidden} more (raise max_print to see more)"
            )
        return diag
    return Diagnostic(
        severity=Severity.WARNING,
        code=_GIVE_UP_CODES[type(outcome)],
        message=(
            f"method '{method.name}' failed stability check with: "
            f"{describe_outcome(outcome)}"
        ),
        location=location,
    )


def print_diagnostics(
    results: list[MethodCheckResult],
    *,
    max_print: int = MAX_PRINT_UNSTABLE,
    color: bool = True,
) -> int:
    """Echo a diagnostic per non-stable result. Returns how many were shown.

    A result that cannot be rendered is logged and skipped; the batch
    carries on.
    """
    renderer = DiagnosticRenderer(color=color)
    shown = 0
    for result in results:
        try:
            diag = outcome_diagnostic(result, max_print)
            if diag is None:
                continue
            click.echo(renderer.render(diag), err=True)
            shown += 1
        except Exception:
            _logger.warning("could not report on %s", result.method.name, exc_info=True)
    return shown


def print_unstable_methods(
    results: list[MethodCheckResult], *, max_print: int = MAX_PRINT_UNSTABLE,
) -> None:
    """Summary listing of every unstable method in the batch."""
    unstable = [r for r in results if isinstance(r.outcome, Unstable)]
    if not unstable:
        return
    click.echo("Some methods failed stability test")
    for r in unstable:
        click.echo(f"The following method:\n\t{r.method}")
        click.echo("is not stable for the following types of inputs")
        failing = r.outcome.failing  # type: ignore[union-attr]
        for sig in failing[:max_print]:
            click.echo(f"\t{signature_name(sig)}")
        if len(failing) > max_print:
            click.echo(f"...and {len(failing) - max_print} more")

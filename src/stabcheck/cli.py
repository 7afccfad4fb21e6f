"""stabcheck command line interface."""

from __future__ import annotations

import importlib
import logging
import sys
from dataclasses import replace
from pathlib import Path

import click

from stabcheck import __version__
from stabcheck.checker import all_stable, check_scope
from stabcheck.config import StabcheckConfig, find_config, init_config, load_config
from stabcheck.errors import ConfigError
from stabcheck.inference import RuleOracle
from stabcheck.lattice import TypeLattice, numeric_tower
from stabcheck.report import (
    aggregate_stats,
    format_aggregate,
    print_diagnostics,
    print_unstable_methods,
    store_results,
)
from stabcheck.symbols import Scope


def _load_object(target: str) -> tuple[object, object]:
    """Import ``module:attribute``. Returns (module, attribute value)."""
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise click.BadParameter(f"expected module:attribute, got '{target}'")
    if "" not in sys.path and str(Path.cwd()) not in sys.path:
        sys.path.insert(0, str(Path.cwd()))
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"cannot import '{module_name}': {e}") from e
    try:
        return module, getattr(module, attr)
    except AttributeError:
        raise click.BadParameter(f"'{module_name}' has no attribute '{attr}'") from None


def _load_config() -> StabcheckConfig:
    try:
        return load_config(find_config())
    except FileNotFoundError:
        return StabcheckConfig()


@click.group()
@click.version_option(__version__, prog_name="stabcheck")
def main() -> None:
    """Exhaustive type-stability checking over a type lattice."""


@main.command()
@click.argument("target")
@click.option("--lattice", "lattice_target", default=None,
              help="module:attribute of the TypeLattice (default: TARGET's LATTICE).")
@click.option("--exported-only/--all-functions", default=None,
              help="Check exported functions only, or every function.")
@click.option("--fuel", type=int, default=None, help="Max instantiations to check.")
@click.option("--max-steps", type=int, default=None, help="Max lattice steps.")
@click.option("--max-instantiations", type=int, default=None,
              help="Max specializations per existential.")
@click.option("--abstract-args/--concrete-args", default=None,
              help="Instantiate type variables with abstract types too.")
@click.option("--skip-existentials/--expand-existentials", default=None,
              help="Skip parametric types instead of instantiating them.")
@click.option("--timeout", type=float, default=None, help="Seconds per inference call.")
@click.option("--workers", type=int, default=1, show_default=True,
              help="Methods to check in parallel.")
@click.option("--out", "out_dir", type=click.Path(file_okay=False), default=None,
              help="Write <scope>.csv and <scope>-agg.txt here.")
@click.option("--max-print", type=int, default=None,
              help="Failing instantiations to print per method.")
@click.option("--no-color", is_flag=True, help="Disable colored diagnostics.")
@click.option("-v", "--verbose", count=True, help="Log progress (-vv for search detail).")
def check(
    target: str,
    lattice_target: str | None,
    exported_only: bool | None,
    fuel: int | None,
    max_steps: int | None,
    max_instantiations: int | None,
    abstract_args: bool | None,
    skip_existentials: bool | None,
    timeout: float | None,
    workers: int,
    out_dir: str | None,
    max_print: int | None,
    no_color: bool,
    verbose: int,
) -> None:
    """Check every method of the Scope named by TARGET (module:attribute)."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            format="%(levelname)s %(name)s: %(message)s",
        )

    try:
        config = _load_config()
    except ConfigError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(2)

    overrides = {
        "exported_only": exported_only,
        "fuel": fuel,
        "max_lattice_steps": max_steps,
        "max_instantiations": max_instantiations,
        "expand_with_abstract_args": abstract_args,
        "skip_unbound_existentials": skip_existentials,
        "inference_timeout": timeout,
    }
    cfg = replace(config.search, **{k: v for k, v in overrides.items() if v is not None})

    module, scope = _load_object(target)
    if not isinstance(scope, Scope):
        raise click.BadParameter(f"'{target}' is not a Scope")
    if lattice_target is not None:
        _, lattice = _load_object(lattice_target)
    else:
        lattice = getattr(module, "LATTICE", None) or numeric_tower()
    if not isinstance(lattice, TypeLattice):
        raise click.BadParameter("lattice is not a TypeLattice")

    click.echo(f"checking {scope.name}...")
    results = check_scope(scope, lattice, RuleOracle(), cfg, workers=workers)

    if max_print is None:
        max_print = config.report.max_print
    print_diagnostics(
        results,
        max_print=max_print,
        color=config.report.color and not no_color,
    )
    stats = aggregate_stats(results)
    click.echo(format_aggregate(scope.name, stats))

    out = out_dir or config.report.out_dir
    if out:
        csv_path, agg_path = store_results(scope.name, results, Path(out))
        click.echo(f"wrote {csv_path} and {agg_path}")

    if all_stable(results):
        click.echo(f"checked {scope.name}: {stats.total} method(s), all stable")
    else:
        print_unstable_methods(results, max_print=max_print)
        raise SystemExit(1)


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False))
def init(path: str) -> None:
    """Write a default stabcheck.toml."""
    try:
        config_path = init_config(Path(path))
        click.echo(f"created {config_path}")
    except FileExistsError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)

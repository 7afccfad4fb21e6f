"""TOML config loading for stabcheck.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path

from stabcheck.errors import ConfigError
from stabcheck.search import SearchConfig

CONFIG_NAME = "stabcheck.toml"

_DEFAULT_TOML = """\
[search]
concrete_only = true
skip_unbound_existentials = false
expand_with_abstract_args = false
exported_only = false
# fuel = 10000
# max_lattice_steps = 100000
# max_instantiations = 100
# inference_timeout = 5.0

[report]
max_print = 5
color = true
# out_dir = "stability"
"""

_SEARCH_TYPES: dict[str, tuple[type, ...]] = {
    "concrete_only": (bool,),
    "skip_unbound_existentials": (bool,),
    "expand_with_abstract_args": (bool,),
    "exported_only": (bool,),
    "fuel": (int,),
    "max_lattice_steps": (int,),
    "max_instantiations": (int,),
    "inference_timeout": (int, float),
}


@dataclass
class ReportConfig:
    max_print: int = 5
    out_dir: str = ""
    color: bool = True


@dataclass
class StabcheckConfig:
    search: SearchConfig = field(default_factory=SearchConfig)
    report: ReportConfig = field(default_factory=ReportConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find stabcheck.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def _check_type(table: str, key: str, value: object, expected: tuple[type, ...]) -> None:
    # bool is an int subclass; don't let `fuel = true` through.
    if isinstance(value, bool) and bool not in expected:
        raise ConfigError(f"[{table}] {key}: expected a number, got a boolean")
    if not isinstance(value, expected):
        names = " or ".join(t.__name__ for t in expected)
        raise ConfigError(f"[{table}] {key}: expected {names}, got {type(value).__name__}")


def load_config(path: Path) -> StabcheckConfig:
    """Parse a stabcheck.toml file into a StabcheckConfig."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path}: {e}") from e

    config = StabcheckConfig()

    if "search" in data:
        search = data["search"]
        for key, value in search.items():
            if key not in _SEARCH_TYPES:
                raise ConfigError(f"[search] unknown key '{key}'")
            _check_type("search", key, value, _SEARCH_TYPES[key])
        if "inference_timeout" in search:
            search = {**search, "inference_timeout": float(search["inference_timeout"])}
        config.search = SearchConfig(**search)

    if "report" in data:
        rpt = data["report"]
        known = {f.name: f for f in fields(ReportConfig)}
        for key, value in rpt.items():
            if key not in known:
                raise ConfigError(f"[report] unknown key '{key}'")
        _check_type("report", "max_print", rpt.get("max_print", 5), (int,))
        _check_type("report", "out_dir", rpt.get("out_dir", ""), (str,))
        _check_type("report", "color", rpt.get("color", True), (bool,))
        config.report = ReportConfig(
            max_print=rpt.get("max_print", 5),
            out_dir=rpt.get("out_dir", ""),
            color=rpt.get("color", True),
        )

    unknown = set(data) - {"search", "report"}
    if unknown:
        raise ConfigError(f"unknown table(s): {', '.join(sorted(unknown))}")

    return config


def init_config(directory: Path | None = None) -> Path:
    """Write a default stabcheck.toml. Returns its path."""
    path = (directory or Path.cwd()) / CONFIG_NAME
    if path.exists():
        raise FileExistsError(f"{CONFIG_NAME} already exists")
    path.write_text(_DEFAULT_TOML)
    return path

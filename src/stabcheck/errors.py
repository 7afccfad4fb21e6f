"""Diagnostics and error types for stabcheck.

Diagnostics are rendered Rust-style with colors, one per checked method
that did not come out stable. Exceptions here are raised by the
collaborators around the search engine; the engine itself turns them
into outcome values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",    # bold red
    Severity.WARNING: "\033[1;33m",  # bold yellow
    Severity.NOTE: "\033[1;36m",     # bold cyan
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class Location:
    """Where a checked method was defined."""

    file: str
    line: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}"


@dataclass
class Diagnostic:
    """A single diagnostic message about one checked method."""

    severity: Severity
    code: str
    message: str
    location: Location | None = None
    items: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format with colors."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def render(self, diag: Diagnostic) -> str:
        lines: list[str] = []
        sev = diag.severity
        color = _COLORS[sev]

        # Header: warning[W110]: message
        lines.append(
            f"{self._c(color)}{sev.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )

        if diag.location is not None:
            lines.append(
                f"  {self._c(_BLUE)}-->{self._c(_RESET)} {diag.location}"
            )

        # Offending inputs, one per line
        if diag.items:
            lines.append(f"  {self._c(_BLUE)}   |{self._c(_RESET)}")
        for item in diag.items:
            lines.append(
                f"  {self._c(_BLUE)}   |{self._c(_RESET)}   "
                f"{self._c(color)}{item}{self._c(_RESET)}"
            )

        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")

        return "\n".join(lines)


# ── Exceptions ──────────────────────────────────────────────────


class StabcheckError(Exception):
    """Base class for stabcheck errors."""


class LatticeError(StabcheckError):
    """Misuse of the type registry (unknown or duplicate names)."""


class InstantiationError(StabcheckError):
    """A parametric type cannot be instantiated with the given argument."""


class InferenceError(StabcheckError):
    """The inference oracle could not produce a result type."""


class ConfigError(StabcheckError):
    """Malformed stabcheck.toml."""

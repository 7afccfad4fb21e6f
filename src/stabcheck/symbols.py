"""Checked callables and the scopes that hold them."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass, field

from stabcheck.types import Signature, Type, signature_name

# Given concrete argument types, return the inferred result type, or None
# when inference fails.
InferenceRule = Callable[..., "Type | None"]


@dataclass(frozen=True)
class Method:
    """One overload of a callable, as far as reporting is concerned."""

    name: str
    signature: Signature
    rule: InferenceRule | None = field(default=None, compare=False)
    scope: str = ""
    file: str = "<unknown>"
    line: int = 0
    exported: bool = False

    def __str__(self) -> str:
        where = f"{self.scope}." if self.scope else ""
        return f"{where}{self.name}{signature_name(self.signature)}"


def method_from_rule(
    rule: InferenceRule,
    signature: Signature,
    *,
    name: str | None = None,
    scope: str | None = None,
    exported: bool = False,
) -> Method:
    """Build a Method whose identity is taken from a Python function."""
    code = getattr(rule, "__code__", None)
    try:
        file = inspect.getsourcefile(rule) or "<unknown>"
    except TypeError:
        file = "<unknown>"
    return Method(
        name=name or getattr(rule, "__name__", "<lambda>"),
        signature=tuple(signature),
        rule=rule,
        scope=scope if scope is not None else getattr(rule, "__module__", ""),
        file=file,
        line=code.co_firstlineno if code is not None else 0,
        exported=exported,
    )


class Scope:
    """An ordered set of functions, each with one or more methods.

    Plays the part of a module: the scanner walks its functions, and may
    restrict itself to the exported ones.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._functions: dict[str, list[Method]] = {}
        self._exports: set[str] = set()

    def define(self, method: Method) -> Method:
        """Register a method under its name. Returns the method."""
        if method.scope != self.name:
            method = Method(
                method.name, method.signature, method.rule,
                self.name, method.file, method.line, method.exported,
            )
        self._functions.setdefault(method.name, []).append(method)
        if method.exported:
            self._exports.add(method.name)
        return method

    def method(
        self, *signature: Type, name: str | None = None, export: bool = False,
    ) -> Callable[[InferenceRule], InferenceRule]:
        """Decorator: register the decorated inference rule as a method."""

        def decorator(rule: InferenceRule) -> InferenceRule:
            self.define(method_from_rule(
                rule, signature, name=name, scope=self.name, exported=export,
            ))
            return rule

        return decorator

    def export(self, *names: str) -> None:
        self._exports.update(names)

    def is_exported(self, name: str) -> bool:
        return name in self._exports

    def functions(self, *, exported_only: bool = False) -> dict[str, list[Method]]:
        """Functions in definition order, optionally exported ones only."""
        return {
            name: list(methods)
            for name, methods in self._functions.items()
            if not exported_only or name in self._exports
        }

    def methods(self, *, exported_only: bool = False) -> list[Method]:
        return [
            m
            for methods in self.functions(exported_only=exported_only).values()
            for m in methods
        ]

    def __len__(self) -> int:
        return len(self._functions)

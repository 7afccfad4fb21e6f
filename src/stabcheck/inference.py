"""The inference oracle: what a call returns for given argument types."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Protocol

from stabcheck.errors import InferenceError
from stabcheck.symbols import Method
from stabcheck.types import Signature, Type, signature_name

_logger = logging.getLogger(__name__)


class InferenceOracle(Protocol):
    """Anything that can infer a call's result type.

    Implementations raise InferenceError when they cannot produce a
    result at all. They must tolerate concurrent calls.
    """

    def infer(self, method: Method, arg_types: Signature) -> Type: ...


class RuleOracle:
    """Infers by calling the method's own rule with the argument types."""

    def infer(self, method: Method, arg_types: Signature) -> Type:
        if method.rule is None:
            raise InferenceError(f"no inference rule for '{method.name}'")
        result = method.rule(*arg_types)
        if result is None:
            raise InferenceError(
                f"cannot infer {method.name}{signature_name(arg_types)}"
            )
        return result


def call_with_timeout(
    oracle: InferenceOracle,
    method: Method,
    arg_types: Signature,
    timeout: float | None,
) -> Type:
    """Run one inference call, giving up after *timeout* seconds.

    The call runs on a daemon thread. A call that times out is abandoned,
    not killed, and does not keep the interpreter from exiting.
    """
    if timeout is None:
        return oracle.infer(method, arg_types)
    answer: queue.Queue[tuple[bool, object]] = queue.Queue(maxsize=1)

    def _infer() -> None:
        try:
            answer.put((True, oracle.infer(method, arg_types)))
        except Exception as e:
            answer.put((False, e))

    threading.Thread(target=_infer, name="stabcheck-infer", daemon=True).start()
    try:
        ok, value = answer.get(timeout=timeout)
    except queue.Empty:
        _logger.debug("inference of %s timed out", method.name)
        raise InferenceError(f"inference timed out after {timeout}s") from None
    if not ok:
        raise value  # type: ignore[misc]
    return value  # type: ignore[return-value]

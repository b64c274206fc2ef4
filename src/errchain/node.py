from __future__ import annotations

import abc
from typing import Any, Optional

from .indent import in_pretty_report
from .types import DEFAULT_MAX_CHAIN_DEPTH, Backtrace, ChainDepthError


class ErrorNode(abc.ABC):
    """
    Capability contract for anything that can be rendered in an error report.

    Implementations describe themselves with `message()`, point at their direct
    cause with `source()` and answer backtrace queries with `backtrace()`, forwarding
    the query to any error they own when they have none of their own.

    Plain Python exceptions do not need to subclass this; `as_node()` adapts them.
    """

    @abc.abstractmethod
    def message(self, pretty: bool = False) -> str:
        """Describe this error alone, without its causes."""

    def source(self) -> Optional["ErrorNode"]:
        """Return the direct cause, or None for a root cause."""
        return None

    def backtrace(self) -> Optional[Backtrace]:
        """Return a backtrace this error (or an error it owns) carries."""
        return None


class ExceptionNode(ErrorNode):
    """
    Adapter exposing a built-in exception as an ErrorNode.

    The chain follows `__cause__` first, then `__context__` unless it was
    suppressed with ``raise ... from None``.
    """

    def __init__(self, exception: BaseException) -> None:
        self.exception = exception

    def message(self, pretty: bool = False) -> str:
        return str(self.exception)

    def source(self) -> Optional[ErrorNode]:
        exc = self.exception
        cause = exc.__cause__
        if cause is None and not exc.__suppress_context__:
            cause = exc.__context__
        if cause is None:
            return None
        return as_node(cause)

    def backtrace(self) -> Optional[Backtrace]:
        # An inner error that already carries a backtrace points closer to the origin.
        chain = [self]
        node = self.source()
        while isinstance(node, ExceptionNode):
            if len(chain) >= DEFAULT_MAX_CHAIN_DEPTH:
                raise ChainDepthError(
                    f"Error chain is deeper than {DEFAULT_MAX_CHAIN_DEPTH} steps (cyclic source chain?)"
                )
            chain.append(node)
            node = node.source()

        if node is not None:
            inner = node.backtrace()
            if inner is not None:
                return inner
        for link in reversed(chain):
            tb = link.exception.__traceback__
            if tb is not None:
                return Backtrace.from_traceback(tb)
        return None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExceptionNode):
            return NotImplemented
        return self.exception is other.exception

    def __hash__(self) -> int:
        return id(self.exception)

    def __repr__(self) -> str:
        return f"ExceptionNode({self.exception!r})"


def as_node(error: Any) -> ErrorNode:
    """
    Return `error` as an ErrorNode.

    Raises
    ------
    TypeError
        If `error` is neither an ErrorNode nor an exception.
    """
    if isinstance(error, ErrorNode):
        return error
    if isinstance(error, BaseException):
        return ExceptionNode(error)
    raise TypeError(f"Expected an exception or ErrorNode, got {type(error).__name__}")


class DisableBacktrace(ErrorNode, Exception):
    """
    Wrapper that hides every backtrace below it.

    Message and source are those of the wrapped error; backtrace queries are answered
    with a disabled backtrace before they can reach the wrapped error.

    Usage example
    -------------
        raise ConfigError("bad value") from DisableBacktrace(exc)
    """

    def __init__(self, error: Any) -> None:
        super().__init__(error)
        self._inner = as_node(error)
        self.error = error

    def message(self, pretty: bool = False) -> str:
        return self._inner.message(pretty)

    def source(self) -> Optional[ErrorNode]:
        return self._inner.source()

    def backtrace(self) -> Optional[Backtrace]:
        return Backtrace.disabled()

    def __str__(self) -> str:
        return self.message(in_pretty_report())

    def __repr__(self) -> str:
        return f"DisableBacktrace({self.error!r})"

    def __reduce__(self):
        return (type(self), (self.error,))

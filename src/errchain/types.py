from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import TracebackType
from typing import TYPE_CHECKING, Optional
import traceback as _traceback

if TYPE_CHECKING:
    from .node import ErrorNode


class BacktraceStatus(str, Enum):
    """Whether a backtrace holds frames."""
    CAPTURED = "captured"
    DISABLED = "disabled"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class Backtrace:
    """
    A diagnostic backtrace attached to an error.

    Only captured backtraces carry frames; the other statuses exist so that an error
    can answer a backtrace query with "there is one, but it is switched off".

    Usage example
    -------------
        bt = Backtrace.from_traceback(exc.__traceback__)
        print(bt)
    """
    status: BacktraceStatus
    frames: tuple[str, ...] = ()

    @staticmethod
    def from_traceback(tb: Optional[TracebackType]) -> "Backtrace":
        if tb is None:
            return Backtrace(status=BacktraceStatus.UNSUPPORTED)
        frames = tuple(_traceback.format_tb(tb))
        return Backtrace(status=BacktraceStatus.CAPTURED, frames=frames)

    @staticmethod
    def disabled() -> "Backtrace":
        return Backtrace(status=BacktraceStatus.DISABLED)

    @property
    def captured(self) -> bool:
        return self.status == BacktraceStatus.CAPTURED

    def __str__(self) -> str:
        if self.status == BacktraceStatus.CAPTURED:
            return "".join(self.frames).rstrip("\n")
        return f"{self.status.value} backtrace"


@dataclass(frozen=True)
class ChainStep:
    """
    One node of a walked error chain.

    `text` is the node's message with its source's text stripped from the end;
    `was_truncated` tells whether anything was stripped.
    """
    node: "ErrorNode"
    text: str
    was_truncated: bool = False


DEFAULT_MAX_CHAIN_DEPTH = 256


class ChainDepthError(RuntimeError):
    """Raised when an error chain is longer than the traversal bound (usually a cycle)."""

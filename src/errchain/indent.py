"""Context-local render state: nesting depth, pretty flag and active report config."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Iterator, Optional

if TYPE_CHECKING:
    from .config import ReportConfig

# Per thread and per asyncio task; concurrent reports never share a depth.
_NESTING_DEPTH: ContextVar[int] = ContextVar("errchain_nesting_depth", default=0)
_PRETTY_REPORT: ContextVar[bool] = ContextVar("errchain_pretty_report", default=False)
_ACTIVE_CONFIG: ContextVar[Optional["ReportConfig"]] = ContextVar("errchain_active_config", default=None)


def nesting_depth() -> int:
    """Return the current indentation depth in spaces."""
    return _NESTING_DEPTH.get()


def in_pretty_report() -> bool:
    """True while the messages of a pretty report are being produced."""
    return _PRETTY_REPORT.get()


def active_config() -> Optional["ReportConfig"]:
    """Config of the report being rendered, or None outside a render."""
    return _ACTIVE_CONFIG.get()


@contextmanager
def indented(step: int) -> Iterator[int]:
    """
    Deepen the nesting depth by `step` for the duration of the block.

    Yields the depth in effect before the block, which is where the caller writes
    its own bullets. The previous depth is restored on every exit, including
    exceptions raised inside the block.

    Usage example
    -------------
        with indented(2) as depth:
            lines.append(" " * depth + "* " + render_child())
    """
    if step < 0:
        raise ValueError(f"Indent step must be non-negative, got {step}")
    outer = _NESTING_DEPTH.get()
    token = _NESTING_DEPTH.set(outer + step)
    try:
        yield outer
    finally:
        _NESTING_DEPTH.reset(token)


@contextmanager
def rendering(pretty: bool, cfg: "ReportConfig") -> Iterator[None]:
    """
    Mark the block as producing the messages of a report.

    Error texts that embed an aggregate (``f"wrap: {multi}"``) then use the same
    layout as the report, and nested reports inherit `cfg`.
    """
    pretty_token = _PRETTY_REPORT.set(pretty)
    cfg_token = _ACTIVE_CONFIG.set(cfg)
    try:
        yield
    finally:
        _ACTIVE_CONFIG.reset(cfg_token)
        _PRETTY_REPORT.reset(pretty_token)

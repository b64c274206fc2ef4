from __future__ import annotations

import io
import textwrap
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from rich.console import Console

from .config import ReportConfig, default_config
from .indent import active_config, rendering
from .node import as_node
from .types import Backtrace, BacktraceStatus
from .walker import CleanedErrorText

CAUSE_INDENT = 4

SINGLE_CAUSE_HEADER = "Caused by:"
MANY_CAUSES_HEADER = "Caused by these errors (recent errors listed first):"
BACKTRACE_HEADER = "Backtrace:"


class TextSink(Protocol):
    def write(self, text: str) -> Any: ...


@dataclass(frozen=True)
class Report:
    """
    Human-readable view over an error and its causes.

    Error messages often embed their cause (``"context: {source}"``). The report walks
    the chain, strips each cause's text from the end of its effect's text and lays the
    remaining messages out either on one line (compact) or as a list (pretty):

        outer error: middle error: inner error

        outer error

        Caused by these errors (recent errors listed first):
         1: middle error
         2: inner error

    Formatting follows the usual Python hooks: ``str(report)`` is compact and the
    ``#`` format spec selects the pretty layout. A trailing ``?`` appends the
    backtrace when one was captured, e.g. ``f"{report:#?}"``.

    Usage example
    -------------
        try:
            load()
        except Exception as exc:
            print(f"{as_report(exc):#}")
    """

    error: Any
    cfg: Optional[ReportConfig] = None

    def _config(self) -> ReportConfig:
        # Reports nested inside another render (MultiError members) inherit its config.
        if self.cfg is not None:
            return self.cfg
        inherited = active_config()
        return inherited if inherited is not None else default_config()

    def messages(self, pretty: bool = False) -> list[str]:
        """Return the non-empty cleaned messages, root error first."""
        cfg = self._config()
        with rendering(pretty, cfg):
            walker = CleanedErrorText(self.error, pretty, max_depth=cfg.max_chain_depth)
            return [step.text for step in walker if step.text]

    def backtrace(self) -> Optional[Backtrace]:
        """Query the root error for a backtrace."""
        bt = as_node(self.error).backtrace()
        if bt is not None and bt.captured and not self._config().capture_backtrace:
            return Backtrace.disabled()
        return bt

    def write(self, sink: TextSink, *, pretty: bool = False, backtrace: bool = False) -> None:
        """
        Stream the report into `sink`.

        Exceptions raised by the sink propagate unchanged; whatever was written
        before the failure stays written.
        """
        messages = self.messages(pretty)
        if not messages:
            return

        head, causes = messages[0], messages[1:]
        sink.write(head)

        if not pretty:
            for msg in causes:
                sink.write(": ")
                sink.write(msg)
        elif len(causes) == 1:
            sink.write(f"\n\n{SINGLE_CAUSE_HEADER}\n")
            sink.write(textwrap.indent(causes[0], " " * CAUSE_INDENT))
        elif causes:
            sink.write(f"\n\n{MANY_CAUSES_HEADER}")
            for i, msg in enumerate(causes, start=1):
                prefix = f"{i:>2}: "
                first, _, rest = msg.partition("\n")
                sink.write(f"\n{prefix}{first}")
                if rest:
                    sink.write("\n")
                    sink.write(textwrap.indent(rest, " " * len(prefix)))

        if backtrace:
            self._write_backtrace(sink)

    def _write_backtrace(self, sink: TextSink) -> None:
        bt = self.backtrace()
        if bt is None:
            return
        if bt.status != BacktraceStatus.CAPTURED and not self._config().show_disabled_backtrace:
            return
        sink.write(f"\n\n{BACKTRACE_HEADER}\n")
        sink.write(str(bt))

    def render(self, *, pretty: bool = False, backtrace: bool = False) -> str:
        buf = io.StringIO()
        self.write(buf, pretty=pretty, backtrace=backtrace)
        return buf.getvalue()

    def inline(self, pretty: bool = False) -> str:
        """
        Render the chain on a single logical line.

        Messages are still produced in `pretty` mode, so aggregates inside the chain
        can expand into bulleted lists; used to render the members of a MultiError.
        """
        return ": ".join(self.messages(pretty))

    def __str__(self) -> str:
        return self.render()

    def __format__(self, format_spec: str) -> str:
        if format_spec not in ("", "#", "?", "#?"):
            raise ValueError(f"Invalid format specifier {format_spec!r} for Report")
        return self.render(pretty="#" in format_spec, backtrace="?" in format_spec)


def as_report(error: Any, cfg: Optional[ReportConfig] = None) -> Report:
    """Wrap an exception or ErrorNode for display."""
    as_node(error)
    return Report(error=error, cfg=cfg)


def to_report_string(error: Any) -> str:
    """Compact one-line report."""
    return as_report(error).render()


def to_report_string_with_backtrace(error: Any) -> str:
    """Compact report followed by the backtrace, if captured."""
    return as_report(error).render(backtrace=True)


def to_report_string_pretty(error: Any) -> str:
    """Multi-line report listing the causes."""
    return as_report(error).render(pretty=True)


def to_report_string_pretty_with_backtrace(error: Any) -> str:
    """Multi-line report followed by the backtrace, if captured."""
    return as_report(error).render(pretty=True, backtrace=True)


def print_report(
    error: Any,
    *,
    pretty: bool = True,
    backtrace: bool = False,
    console: Optional[Console] = None,
) -> None:
    """
    Print a report to the console using Rich.

    Usage example
    -------------
        print_report(exc, backtrace=True)
    """
    text = as_report(error).render(pretty=pretty, backtrace=backtrace)
    if console is None:
        console = Console(stderr=True)
    # Brackets in "[foo], [bar]" and ":name:" pairs must reach the console verbatim.
    console.print(text, markup=False, highlight=False, emoji=False)


class ReportDebug:
    """
    Exception mixin whose ``repr`` is the cleaned report with backtrace.

    Usage example
    -------------
        class LoadError(ReportDebug, Exception):
            pass
    """

    def __repr__(self) -> str:
        return to_report_string_with_backtrace(self)

from __future__ import annotations

import io
from typing import Optional

import pytest
from rich.console import Console

from errchain import (
    Backtrace,
    ErrorNode,
    ReportConfig,
    ReportDebug,
    as_report,
    print_report,
    to_report_string,
    to_report_string_pretty,
    to_report_string_pretty_with_backtrace,
    to_report_string_with_backtrace,
)


class InnerError(Exception):
    def __str__(self) -> str:
        return "inner error"


class MiddleError(Exception):
    # Embeds the source message, the suffix is cleaned up.
    def __str__(self) -> str:
        return f"middle error: {self.__cause__}"


class MiddleTransparentError(Exception):
    # Only repeats the source, the whole message is cleaned up.
    def __str__(self) -> str:
        return str(self.__cause__)


class OuterError(Exception):
    def __str__(self) -> str:
        return "outer error"


def inner() -> None:
    raise InnerError()


def middle() -> None:
    try:
        inner()
    except InnerError as exc:
        raise MiddleError() from exc


def middle_transparent() -> None:
    try:
        middle()
    except MiddleError as exc:
        raise MiddleTransparentError() from exc


def outer() -> None:
    try:
        middle_transparent()
    except MiddleTransparentError as exc:
        raise OuterError() from exc


def _catch(fn) -> BaseException:
    try:
        fn()
    except Exception as exc:
        return exc
    raise AssertionError("expected an exception")


def _unraised_chain() -> BaseException:
    err = OuterError()
    err.__cause__ = MiddleTransparentError()
    err.__cause__.__cause__ = MiddleError()
    err.__cause__.__cause__.__cause__ = InnerError()
    return err


class _Static(ErrorNode):
    def __init__(self, text: str, source: Optional[ErrorNode] = None, bt: Optional[Backtrace] = None) -> None:
        self.text = text
        self._source = source
        self._bt = bt

    def message(self, pretty: bool = False) -> str:
        return self.text

    def source(self) -> Optional[ErrorNode]:
        return self._source

    def backtrace(self) -> Optional[Backtrace]:
        return self._bt


def test_report_compact() -> None:
    assert str(as_report(_catch(outer))) == "outer error: middle error: inner error"


def test_report_pretty_many_causes() -> None:
    expected = (
        "outer error\n"
        "\n"
        "Caused by these errors (recent errors listed first):\n"
        " 1: middle error\n"
        " 2: inner error"
    )
    assert f"{as_report(_catch(outer)):#}" == expected


def test_report_pretty_single_cause() -> None:
    expected = "middle error\n\nCaused by:\n    inner error"
    assert f"{as_report(_catch(middle)):#}" == expected


def test_report_pretty_no_cause_is_head_only() -> None:
    assert to_report_string_pretty(_catch(inner)) == "inner error"


def test_report_without_source_equals_message() -> None:
    err = ValueError("plain: message ")
    assert to_report_string(err) == "plain: message "


def test_report_compact_and_pretty_share_messages() -> None:
    report = as_report(_catch(outer))
    compact = report.render()
    pretty = report.render(pretty=True)
    for msg in report.messages():
        assert msg in compact
        assert msg in pretty


def test_report_is_idempotent() -> None:
    report = as_report(_catch(outer))
    assert report.render(pretty=True) == report.render(pretty=True)
    assert str(report) == str(report)


def test_report_empty_message_renders_nothing() -> None:
    assert to_report_string(ValueError()) == ""
    assert to_report_string_pretty(ValueError()) == ""


def test_report_skips_empty_messages_in_chain() -> None:
    root = ValueError("root")
    wrapper = RuntimeError()
    wrapper.__cause__ = root
    top = KeyError("top")
    top.__cause__ = wrapper
    assert to_report_string(top) == "'top': root"


def test_report_follows_implicit_context_unless_suppressed() -> None:
    try:
        try:
            raise ValueError("first")
        except ValueError:
            raise RuntimeError("while handling")
    except RuntimeError as exc:
        assert to_report_string(exc) == "while handling: first"

    try:
        try:
            raise ValueError("first")
        except ValueError:
            raise RuntimeError("clean") from None
    except RuntimeError as exc:
        assert to_report_string(exc) == "clean"


def test_report_numbering_is_right_aligned() -> None:
    node: Optional[ErrorNode] = None
    for i in reversed(range(12)):
        node = _Static(f"e{i}", node)
    pretty = to_report_string_pretty(node)
    assert "\n 9: e9\n10: e10\n11: e11" in pretty
    assert pretty.splitlines()[3] == " 1: e1"


def test_report_indents_multiline_causes() -> None:
    node = _Static("top", _Static("line one\nline two"))
    assert to_report_string_pretty(node) == "top\n\nCaused by:\n    line one\n    line two"

    node = _Static("top", _Static("mid", _Static("line one\nline two")))
    assert to_report_string_pretty(node).endswith("\n 1: mid\n 2: line one\n    line two")


def test_report_format_spec() -> None:
    report = as_report(_unraised_chain())
    assert format(report, "") == "outer error: middle error: inner error"
    assert format(report, "?") == "outer error: middle error: inner error"
    assert format(report, "#?") == format(report, "#")
    with pytest.raises(ValueError, match="Invalid format specifier"):
        format(report, "x")


def test_report_debug_without_backtrace_matches_display() -> None:
    err = _unraised_chain()
    assert to_report_string_with_backtrace(err) == to_report_string(err)
    assert to_report_string_pretty_with_backtrace(err) == to_report_string_pretty(err)


def test_report_debug_appends_captured_backtrace() -> None:
    err = _catch(outer)
    text = to_report_string_with_backtrace(err)
    head, _, trailer = text.partition("\n\nBacktrace:\n")
    assert head == "outer error: middle error: inner error"
    # the innermost traceback wins
    assert "in inner" in trailer


def test_report_debug_pretty_appends_backtrace_after_causes() -> None:
    text = to_report_string_pretty_with_backtrace(_catch(outer))
    assert text.startswith("outer error\n\nCaused by these errors (recent errors listed first):\n 1: middle error\n 2: inner error\n\nBacktrace:\n")


def test_report_debug_disabled_backtrace_is_hidden_by_default() -> None:
    node = _Static("outer", bt=Backtrace.disabled())
    assert as_report(node).render(backtrace=True) == "outer"


def test_report_debug_disabled_backtrace_forced_display() -> None:
    cfg = ReportConfig(show_disabled_backtrace=True)
    node = _Static("outer", _Static("inner"), bt=Backtrace.disabled())
    expected = "outer: inner\n\nBacktrace:\ndisabled backtrace"
    assert as_report(node, cfg).render(backtrace=True) == expected


def test_report_capture_switch_from_env(monkeypatch) -> None:
    monkeypatch.setenv("ERRCHAIN_CAPTURE_BACKTRACE", "0")
    monkeypatch.setenv("ERRCHAIN_SHOW_DISABLED_BACKTRACE", "1")

    text = f"{as_report(_catch(outer)):?}"

    assert text == "outer error: middle error: inner error\n\nBacktrace:\ndisabled backtrace"


def test_report_write_streams_into_sink() -> None:
    sink = io.StringIO()
    as_report(_catch(outer)).write(sink, pretty=True)
    assert sink.getvalue() == to_report_string_pretty(_catch(outer))


def test_report_write_propagates_sink_errors() -> None:
    class _ClosingSink:
        def __init__(self) -> None:
            self.parts: list[str] = []

        def write(self, text: str) -> None:
            if self.parts:
                raise OSError("sink closed")
            self.parts.append(text)

    sink = _ClosingSink()
    with pytest.raises(OSError, match="sink closed"):
        as_report(_catch(outer)).write(sink)
    assert sink.parts == ["outer error"]


def test_as_report_rejects_non_errors() -> None:
    with pytest.raises(TypeError):
        as_report(42)


def test_print_report_uses_console_without_markup() -> None:
    buf = io.StringIO()
    console = Console(file=buf, width=200, color_system=None)
    err = _Static("[bold]outer[/bold]", _Static("inner"))

    print_report(err, pretty=False, console=console)

    assert buf.getvalue() == "[bold]outer[/bold]: inner\n"


def test_report_debug_mixin_repr() -> None:
    class LoadError(ReportDebug, Exception):
        pass

    err = LoadError("cannot load")
    err.__cause__ = FileNotFoundError("missing.csv")

    assert repr(err) == "cannot load: missing.csv"


def test_report_three_node_chain() -> None:
    node = _Static("outer error", _Static("middle error: inner error", _Static("inner error")))
    report = as_report(node)

    assert str(report) == "outer error: middle error: inner error"
    assert f"{report:#}" == (
        "outer error\n\nCaused by these errors (recent errors listed first):\n 1: middle error\n 2: inner error"
    )

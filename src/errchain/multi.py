from __future__ import annotations

from typing import Any, Iterable, Iterator, Optional

from .indent import in_pretty_report, indented
from .node import ErrorNode, as_node
from .report import Report
from .types import Backtrace

HEADER = "Multiple errors occurred"
BULLET_INDENT = 2


class MultiError(ErrorNode, Exception):
    """
    An error made of several independent errors.

    The members are kept in the order they were collected; the first one is the
    primary failure. With a single member the aggregate is transparent and renders
    exactly like that member. With more, it renders as a header followed by each
    member's own report:

        Multiple errors occurred: [context: foo], [bar]

        Multiple errors occurred
        * context: foo
        * bar

    Usage example
    -------------
        errors = []
        for path in paths:
            try:
                load(path)
            except OSError as exc:
                errors.append(exc)
        if errors:
            raise MultiError(errors)
    """

    def __init__(self, errors: Iterable[Any] = ()) -> None:
        errors = tuple(errors)
        for err in errors:
            as_node(err)
        super().__init__(*errors)
        self._errors = errors

    @property
    def errors(self) -> tuple[Any, ...]:
        return self._errors

    def __len__(self) -> int:
        return len(self._errors)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._errors)

    def __getitem__(self, index: int) -> Any:
        return self._errors[index]

    def message(self, pretty: bool = False) -> str:
        if not self._errors:
            return ""
        if len(self._errors) == 1:
            return as_node(self._errors[0]).message(pretty)

        if not pretty:
            items = ", ".join(f"[{Report(err).render()}]" for err in self._errors)
            return f"{HEADER}: {items}"

        lines = [HEADER]
        with indented(BULLET_INDENT) as depth:
            for err in self._errors:
                lines.append(" " * depth + "* " + Report(err).inline(pretty=True))
        return "\n".join(lines)

    def source(self) -> Optional[ErrorNode]:
        if len(self._errors) == 1:
            return as_node(self._errors[0]).source()
        return None

    def backtrace(self) -> Optional[Backtrace]:
        # Any member may carry one; the first in collection order wins.
        for err in self._errors:
            bt = as_node(err).backtrace()
            if bt is not None:
                return bt
        return None

    def __str__(self) -> str:
        # Embedded in another error's text during a pretty report, match its layout.
        return self.message(in_pretty_report())

    def __repr__(self) -> str:
        if not self._errors:
            return ""
        if len(self._errors) == 1:
            return repr(self._errors[0])
        return f"MultiError({list(self._errors)!r})"

    def __reduce__(self):
        return (type(self), (self._errors,))

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

from .node import ErrorNode, as_node
from .types import DEFAULT_MAX_CHAIN_DEPTH, ChainDepthError, ChainStep

logger = logging.getLogger(__name__)


def clean_message(text: str, source_text: str) -> str:
    """
    Strip a cause's text from the end of its effect's text.

    The exact trailing `source_text` is removed once, then trailing whitespace, then a
    single trailing colon. Matching is a plain suffix comparison.

    Usage example
    -------------
        clean_message("middle error: inner error", "inner error")  # -> "middle error"
    """
    if source_text and text.endswith(source_text):
        text = text[: len(text) - len(source_text)]
    text = text.rstrip()
    if text.endswith(":"):
        text = text[:-1]
    return text


class CleanedErrorText(Iterator[ChainStep]):
    """
    Lazy, single-pass walk over an error and its sources.

    Each step yields the node, its message with the source's message stripped from
    the end, and whether anything was stripped. The root error comes first and the
    ultimate cause last. The iterator is exhausted after one pass.

    Usage example
    -------------
        for step in CleanedErrorText(exc, pretty=False):
            print(step.text)
    """

    def __init__(self, error: Any, pretty: bool = False, *, max_depth: int = DEFAULT_MAX_CHAIN_DEPTH) -> None:
        node = as_node(error)
        self._pretty = pretty
        self._max_depth = max_depth
        self._steps = 0
        self._pending: Optional[tuple[ErrorNode, str]] = (node, node.message(pretty))

    def __iter__(self) -> "CleanedErrorText":
        return self

    def __next__(self) -> ChainStep:
        if self._pending is None:
            raise StopIteration
        node, text = self._pending
        self._pending = None

        if self._steps >= self._max_depth:
            logger.debug("Error chain exceeds %d steps, aborting walk", self._max_depth)
            raise ChainDepthError(f"Error chain is deeper than {self._max_depth} steps (cyclic source chain?)")
        self._steps += 1

        source = node.source()
        if source is None:
            return ChainStep(node=node, text=text, was_truncated=False)

        source_text = source.message(self._pretty)
        cleaned = clean_message(text, source_text)
        self._pending = (source, source_text)
        return ChainStep(node=node, text=cleaned, was_truncated=len(cleaned) != len(text))

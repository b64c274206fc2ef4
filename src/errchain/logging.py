from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional

from rich.logging import RichHandler

from .config import ReportConfig
from .report import Report

LOGGER_NAME = "errchain"
ERROR_NODE_ATTR = "error_node"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class JsonlEventLogger:
    """
    Writes error reports as JSON lines.

    Each line is a dict that includes at least:
    - time_utc
    - event
    - level
    - message (optional)
    - context (optional)
    - exc_type, report, chain (optional, when an error is given)

    Usage example
    -------------
        ev = JsonlEventLogger(path=Path("logs/errors.jsonl"))
        ev.write(event="load_failed", level="ERROR", error=exc, context={"path": "a.csv"})
    """
    path: Path
    cfg: Optional[ReportConfig] = None

    def write(
        self,
        *,
        event: str,
        level: str,
        error: Any = None,
        message: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        payload: dict[str, Any] = {
            "time_utc": _utc_now_iso(),
            "event": event,
            "level": level,
        }
        if message:
            payload["message"] = message
        if context:
            payload["context"] = dict(context)
        if error is not None:
            report = Report(error, cfg=self.cfg)
            payload["exc_type"] = type(error).__name__
            payload["report"] = report.render()
            payload["chain"] = report.messages()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(payload, ensure_ascii=False) + "\n")


class ReportFormatter(logging.Formatter):
    """
    Formatter rendering ``exc_info`` as a cleaned error report.

    The default formatter dumps the full traceback of every exception in the chain;
    this one prints the deduplicated causes instead, with the backtrace appended only
    when `backtrace` is set.
    """

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        *,
        pretty: bool = False,
        backtrace: bool = False,
        cfg: Optional[ReportConfig] = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.pretty = pretty
        self.backtrace = backtrace
        self.cfg = cfg

    def _render(self, error: Any) -> str:
        return Report(error, cfg=self.cfg).render(pretty=self.pretty, backtrace=self.backtrace)

    def formatException(self, ei) -> str:  # noqa: N802
        exc = ei[1]
        if exc is None:
            return super().formatException(ei)
        return self._render(exc)

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        # Collected ErrorNodes cannot travel as exc_info; log_report attaches them here.
        node = getattr(record, ERROR_NODE_ATTR, None)
        if node is not None:
            text = f"{text}\n{self._render(node)}"
        return text


def configure_logging(*, cfg: ReportConfig) -> tuple[logging.Logger, Optional[JsonlEventLogger]]:
    """
    Configure console + optional file logging, plus optional JSONL event logger.

    Returns
    -------
    logger
        A configured logger named "errchain".
    event_logger
        JsonlEventLogger if cfg.events_file is set, else None.

    Usage example
    -------------
        logger, event_logger = configure_logging(cfg=cfg)
        log_report(logger, exc)
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    # Exceptions go through ReportFormatter, not Rich's traceback renderer.
    console_handler = RichHandler(rich_tracebacks=False, show_path=False)
    console_handler.setLevel(cfg.console_level)
    console_handler.setFormatter(
        ReportFormatter("%(message)s", pretty=cfg.pretty, backtrace=cfg.backtrace, cfg=cfg)
    )
    logger.addHandler(console_handler)

    if cfg.log_file is not None:
        cfg.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(cfg.log_file, encoding="utf-8")
        file_handler.setLevel(cfg.file_level)
        file_handler.setFormatter(
            ReportFormatter(
                fmt="%(asctime)sZ | %(name)s | %(levelname)s | %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
                pretty=cfg.pretty,
                backtrace=cfg.backtrace,
                cfg=cfg,
            )
        )
        logger.addHandler(file_handler)

    event_logger = None
    if cfg.events_file is not None:
        event_logger = JsonlEventLogger(path=cfg.events_file, cfg=cfg)

    logger.debug("Logging configured (pretty=%s, log_file=%s)", cfg.pretty, cfg.log_file)
    return logger, event_logger


def log_report(
    logger: logging.Logger,
    error: Any,
    *,
    level: int = logging.ERROR,
    msg: Optional[str] = None,
    event_logger: Optional[JsonlEventLogger] = None,
) -> None:
    """
    Log an error, raised or merely collected, through the report formatter.

    Errors that are not exceptions (bare ErrorNodes) cannot go through ``exc_info``;
    they ride on the record and each handler's ReportFormatter renders them with its
    own pretty and backtrace flags, exactly like exceptions.

    Usage example
    -------------
        log_report(logger, MultiError(errors), msg="Some files failed to load")
    """
    text = msg if msg is not None else "Error"
    if isinstance(error, BaseException):
        logger.log(level, text, exc_info=(type(error), error, error.__traceback__))
    else:
        logger.log(level, text, extra={ERROR_NODE_ATTR: error})
    if event_logger is not None:
        event_logger.write(
            event="error_reported",
            level=logging.getLevelName(level),
            error=error,
            message=msg,
        )

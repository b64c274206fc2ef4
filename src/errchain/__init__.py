"""
errchain: clean reports for chained and aggregated errors.

Key primitives
--------------
- ErrorNode: what an error must expose to be reported (message, source, backtrace)
- as_report(): wrap any exception or ErrorNode in a Report
- Report: compact (``str``) or pretty (``f"{r:#}"``) rendering, with optional backtrace
- CleanedErrorText: walks a chain and strips each cause's text from its effect
- MultiError: aggregate of independent errors that renders as a bulleted tree
- ReportConfig / configure_logging(): configuration and report-aware logging
"""

from .config import ConfigError, ReportConfig, default_config, load_config
from .indent import active_config, in_pretty_report, indented, nesting_depth
from .logging import JsonlEventLogger, ReportFormatter, configure_logging, log_report
from .multi import MultiError
from .node import DisableBacktrace, ErrorNode, ExceptionNode, as_node
from .report import (
    Report,
    ReportDebug,
    as_report,
    print_report,
    to_report_string,
    to_report_string_pretty,
    to_report_string_pretty_with_backtrace,
    to_report_string_with_backtrace,
)
from .types import Backtrace, BacktraceStatus, ChainStep
from .version import __version__
from .walker import ChainDepthError, CleanedErrorText, clean_message

__all__ = [
    "Backtrace",
    "BacktraceStatus",
    "ChainDepthError",
    "ChainStep",
    "CleanedErrorText",
    "ConfigError",
    "DisableBacktrace",
    "ErrorNode",
    "ExceptionNode",
    "JsonlEventLogger",
    "MultiError",
    "Report",
    "ReportConfig",
    "ReportDebug",
    "ReportFormatter",
    "__version__",
    "active_config",
    "as_node",
    "as_report",
    "clean_message",
    "configure_logging",
    "default_config",
    "in_pretty_report",
    "indented",
    "load_config",
    "log_report",
    "nesting_depth",
    "print_report",
    "to_report_string",
    "to_report_string_pretty",
    "to_report_string_pretty_with_backtrace",
    "to_report_string_with_backtrace",
]

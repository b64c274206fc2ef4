from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional
import os

import yaml

from .types import DEFAULT_MAX_CHAIN_DEPTH

DEFAULT_ENV_PREFIX = "ERRCHAIN_"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


class ConfigError(ValueError):
    """Raised when report configuration is missing or invalid."""


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    raw = raw.strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    return default


def _env_path(name: str, default: Optional[Path]) -> Optional[Path]:
    raw = os.getenv(name, "").strip()
    return Path(raw) if raw else default


@dataclass(frozen=True)
class ReportConfig:
    """
    Configuration for report rendering and report logging.

    Parameters
    ----------
    pretty
        Default layout used by `print_report`-style helpers and the logging formatter.
    backtrace
        Whether logged reports carry a backtrace trailer.
    capture_backtrace
        If False, backtraces found on errors are reported as disabled.
    show_disabled_backtrace
        Print the "Backtrace:" trailer even for disabled backtraces. Only useful to
        make test output deterministic.
    max_chain_depth
        Traversal bound of the chain walker.
    console_level
        Logging level for console output.
    file_level
        Logging level for file output.
    log_file
        Optional plain-text log file.
    events_file
        Optional JSONL file receiving one structured event per logged report.
    env_prefix
        Prefix of the environment variables read by `from_env`.

    Usage example
    -------------
        cfg = ReportConfig(pretty=True, log_file=Path("logs/errors.log"))
    """

    pretty: bool = False
    backtrace: bool = False
    capture_backtrace: bool = True
    show_disabled_backtrace: bool = False
    max_chain_depth: int = DEFAULT_MAX_CHAIN_DEPTH

    console_level: int = 20  # logging.INFO
    file_level: int = 10  # logging.DEBUG

    log_file: Optional[Path] = None
    events_file: Optional[Path] = None

    env_prefix: str = field(default="", repr=False)

    @classmethod
    def from_env(cls, *, default: Optional["ReportConfig"] = None) -> "ReportConfig":
        """
        Create config from environment variables.

        Supported variables (prefix controlled by env_prefix on `default`):
        - <PFX>PRETTY, <PFX>BACKTRACE, <PFX>CAPTURE_BACKTRACE,
          <PFX>SHOW_DISABLED_BACKTRACE: "1"/"0"
        - <PFX>MAX_CHAIN_DEPTH: positive integer
        - <PFX>LOG_FILE, <PFX>EVENTS_FILE: path

        Unparseable values fall back to the value on `default`.

        Usage example
        -------------
            cfg = ReportConfig.from_env(default=ReportConfig(env_prefix="ERRCHAIN_"))
        """
        base = default if default is not None else cls()
        pfx = base.env_prefix

        max_depth_raw = os.getenv(f"{pfx}MAX_CHAIN_DEPTH", "")
        max_chain_depth = base.max_chain_depth
        if max_depth_raw.strip():
            try:
                max_chain_depth = int(max_depth_raw)
            except ValueError:
                max_chain_depth = base.max_chain_depth
            if max_chain_depth <= 0:
                max_chain_depth = base.max_chain_depth

        return replace(
            base,
            pretty=_env_flag(f"{pfx}PRETTY", base.pretty),
            backtrace=_env_flag(f"{pfx}BACKTRACE", base.backtrace),
            capture_backtrace=_env_flag(f"{pfx}CAPTURE_BACKTRACE", base.capture_backtrace),
            show_disabled_backtrace=_env_flag(f"{pfx}SHOW_DISABLED_BACKTRACE", base.show_disabled_backtrace),
            max_chain_depth=max_chain_depth,
            log_file=_env_path(f"{pfx}LOG_FILE", base.log_file),
            events_file=_env_path(f"{pfx}EVENTS_FILE", base.events_file),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, default: Optional["ReportConfig"] = None) -> "ReportConfig":
        """
        Create config from a mapping such as the ``report:`` section of a YAML file.

        Raises
        ------
        ConfigError
            On unknown keys or values of the wrong type.
        """
        base = default if default is not None else cls()
        known = {f.name: f for f in fields(cls) if f.name != "env_prefix"}
        updates: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                raise ConfigError(f"Unknown report config key: {key!r}")
            current = getattr(base, key)
            if key in ("log_file", "events_file"):
                if value is not None and not isinstance(value, (str, Path)):
                    raise ConfigError(f"{key} must be a path, got {value!r}")
                updates[key] = Path(value) if value is not None else None
            elif isinstance(current, bool):
                if not isinstance(value, bool):
                    raise ConfigError(f"{key} must be a boolean, got {value!r}")
                updates[key] = value
            elif isinstance(current, int):
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ConfigError(f"{key} must be an integer, got {value!r}")
                updates[key] = value
        if updates.get("max_chain_depth", base.max_chain_depth) <= 0:
            raise ConfigError("max_chain_depth must be positive")
        return replace(base, **updates)


def load_config(root: Path) -> ReportConfig:
    """
    Load errchain config from a directory if present.

    Search order:
    1) ``errchain.yaml``
    2) ``.errchain.yaml``

    Settings live under a top-level ``report:`` key. Environment variables with the
    ``ERRCHAIN_`` prefix override file values.
    """
    base = ReportConfig(env_prefix=DEFAULT_ENV_PREFIX)
    for filename in ("errchain.yaml", ".errchain.yaml"):
        config_path = root / filename
        if not config_path.exists():
            continue
        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Cannot parse {config_path}: {exc}") from exc
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path} must contain a YAML mapping")
        section = data.get("report", {})
        if section is None:
            section = {}
        if not isinstance(section, dict):
            raise ConfigError(f"'report' in {config_path} must be a mapping")
        base = ReportConfig.from_mapping(section, default=base)
        break
    return ReportConfig.from_env(default=base)


def default_config() -> ReportConfig:
    """Defaults overridden by ``ERRCHAIN_``-prefixed environment variables."""
    return ReportConfig.from_env(default=ReportConfig(env_prefix=DEFAULT_ENV_PREFIX))

"""Calendar plugin configuration loading and validation.

Reads ``calendar.toml`` from a config directory, resolves ``${VAR}``
environment references, and returns a validated :class:`CalendarAppConfig`.

Example::

    [calendar]
    default_label = "★"

    [calendar.storage]
    backend = "postgres"
    dsn = "${CALENDAR_DATABASE_URL}"

    [calendar.logging]
    level = "DEBUG"
    format = "json"
"""

from __future__ import annotations

import enum
import os
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from inline_calendar.storage.state import DEFAULT_KEY_PREFIX

CONFIG_FILENAME = "calendar.toml"

# ${VAR_NAME}; names are letters, digits and underscores.
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_FORMATS = ("text", "json")


class ConfigError(Exception):
    """Raised when calendar configuration is missing, malformed, or invalid."""


class StorageBackend(enum.StrEnum):
    """Where calendars are persisted between chat turns."""

    MEMORY = "memory"
    POSTGRES = "postgres"


@dataclass
class LoggingConfig:
    """Logging configuration from the [calendar.logging] section."""

    level: str = "INFO"
    format: str = "text"  # "text" or "json"
    log_file: str | None = None


@dataclass
class StorageConfig:
    """Storage configuration from the [calendar.storage] section.

    ``dsn`` is required for the postgres backend and ignored otherwise.
    """

    backend: StorageBackend = StorageBackend.MEMORY
    dsn: str | None = None
    key_prefix: str = DEFAULT_KEY_PREFIX
    min_pool_size: int = 1
    max_pool_size: int = 5


@dataclass
class CalendarAppConfig:
    """Parsed and validated calendar plugin configuration."""

    default_label: str | None = None
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ``${VAR_NAME}`` references in config values.

    Walks dicts, lists, and strings.  Non-string leaf values are returned
    unchanged.

    Raises
    ------
    ConfigError
        If a referenced environment variable is not set.
    """
    if isinstance(value, dict):
        return {k: resolve_env_vars(v) for k, v in value.items()}

    if isinstance(value, list):
        return [resolve_env_vars(item) for item in value]

    if isinstance(value, str):
        return _resolve_string(value)

    return value


def _resolve_string(s: str) -> str:
    """Replace all ``${VAR_NAME}`` occurrences in *s* with env var values."""
    missing: list[str] = []

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            missing.append(var_name)
            return match.group(0)
        return env_value

    result = _ENV_VAR_PATTERN.sub(_replace, s)

    if missing:
        vars_str = ", ".join(missing)
        raise ConfigError(
            f"Unresolved environment variable(s) in config value: {vars_str} (original: {s!r})"
        )

    return result


def _section(parent: dict[str, Any], name: str, path: str) -> dict[str, Any]:
    value = parent.get(name, {})
    if not isinstance(value, dict):
        raise ConfigError(f"{path} must be a TOML table")
    return value


def _positive_int(section: dict[str, Any], name: str, default: int, path: str) -> int:
    raw = section.get(name, default)
    if isinstance(raw, bool) or not isinstance(raw, int) or raw <= 0:
        raise ConfigError(f"Invalid {path}.{name}: {raw!r}. Must be a positive integer.")
    return raw


def _parse_storage(calendar_section: dict[str, Any]) -> StorageConfig:
    """Parse the optional [calendar.storage] sub-section."""
    section = _section(calendar_section, "storage", "calendar.storage")

    raw_backend = section.get("backend", StorageBackend.MEMORY.value)
    try:
        backend = StorageBackend(str(raw_backend).lower())
    except ValueError as exc:
        choices = ", ".join(b.value for b in StorageBackend)
        raise ConfigError(
            f"Invalid calendar.storage.backend: {raw_backend!r}. Expected one of: {choices}"
        ) from exc

    dsn = section.get("dsn")
    if dsn is not None and (not isinstance(dsn, str) or not dsn.strip()):
        raise ConfigError("calendar.storage.dsn must be a non-empty string when set")
    if backend is StorageBackend.POSTGRES and dsn is None:
        raise ConfigError("calendar.storage.dsn is required when backend is 'postgres'")

    key_prefix = section.get("key_prefix", DEFAULT_KEY_PREFIX)
    if not isinstance(key_prefix, str):
        raise ConfigError("calendar.storage.key_prefix must be a string")

    min_pool_size = _positive_int(section, "min_pool_size", 1, "calendar.storage")
    max_pool_size = _positive_int(section, "max_pool_size", 5, "calendar.storage")
    if min_pool_size > max_pool_size:
        raise ConfigError(
            "calendar.storage.min_pool_size must not exceed calendar.storage.max_pool_size"
        )

    return StorageConfig(
        backend=backend,
        dsn=dsn.strip() if dsn else None,
        key_prefix=key_prefix,
        min_pool_size=min_pool_size,
        max_pool_size=max_pool_size,
    )


def _parse_logging(calendar_section: dict[str, Any]) -> LoggingConfig:
    """Parse the optional [calendar.logging] sub-section."""
    section = _section(calendar_section, "logging", "calendar.logging")

    level = str(section.get("level", "INFO")).upper()
    if level not in _LOG_LEVELS:
        raise ConfigError(
            f"Invalid calendar.logging.level: {level!r}. Expected one of: {', '.join(_LOG_LEVELS)}"
        )

    fmt = str(section.get("format", "text")).lower()
    if fmt not in _LOG_FORMATS:
        raise ConfigError(
            f"Invalid calendar.logging.format: {fmt!r}. Expected one of: {', '.join(_LOG_FORMATS)}"
        )

    log_file = section.get("log_file")
    if log_file is not None and not isinstance(log_file, str):
        raise ConfigError("calendar.logging.log_file must be a string when set")

    return LoggingConfig(level=level, format=fmt, log_file=log_file)


def parse_config(data: dict[str, Any]) -> CalendarAppConfig:
    """Validate an already-parsed TOML document."""
    data = resolve_env_vars(data)
    calendar_section = _section(data, "calendar", "calendar")

    default_label = calendar_section.get("default_label")
    if default_label is not None and (not isinstance(default_label, str) or not default_label):
        raise ConfigError("calendar.default_label must be a non-empty string when set")

    return CalendarAppConfig(
        default_label=default_label,
        storage=_parse_storage(calendar_section),
        logging=_parse_logging(calendar_section),
    )


def load_config(config_dir: Path) -> CalendarAppConfig:
    """Load and validate ``calendar.toml`` from *config_dir*.

    Raises
    ------
    ConfigError
        If the file is missing, contains invalid TOML, or holds invalid values.
    """
    toml_path = Path(config_dir) / CONFIG_FILENAME

    if not toml_path.exists():
        raise ConfigError(f"Config file not found: {toml_path}")

    try:
        data = tomllib.loads(toml_path.read_bytes().decode())
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {toml_path}: {exc}") from exc

    return parse_config(data)

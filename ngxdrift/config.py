"""Configuration loading from environment variables and CLI overrides."""

from __future__ import annotations

import os
import posixpath
from typing import Any

from ngxdrift.errors import ConfigurationError
from ngxdrift.models.config import DEFAULT_CONFIG_PATH, DriftCheckConfig, LogConfig

_LOG_LEVELS = {"debug", "info", "warning", "error"}
_LOG_FORMATS = {"json", "console"}


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"NGXDRIFT_{key}", default)


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    raw = _env(key, str(default))
    try:
        val = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"NGXDRIFT_{key} must be an integer, got {raw!r}") from exc
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    if value.lower() not in _LOG_LEVELS:
        raise ConfigurationError(f"Invalid log level: {value}. Must be one of {sorted(_LOG_LEVELS)}")
    return value.lower()


def _validate_log_format(value: str) -> str:
    if value.lower() not in _LOG_FORMATS:
        raise ConfigurationError(f"Invalid log format: {value}. Must be one of {sorted(_LOG_FORMATS)}")
    return value.lower()


def _validate_config_path(value: str) -> str:
    if not posixpath.isabs(value):
        raise ConfigurationError(f"configuration path must be absolute, got {value!r}")
    return value


def load_config(**overrides: Any) -> DriftCheckConfig:
    """Load configuration from NGXDRIFT_* environment variables.

    Keyword overrides come from command-line flags and win over the
    environment; a ``None`` override means "flag not given".
    """
    flags = {k: v for k, v in overrides.items() if v is not None}

    timeout = flags.get("exec_timeout_seconds")
    if timeout is None:
        timeout = _env_int("EXEC_TIMEOUT", 60, min_val=0, max_val=600)
    elif not 0 <= timeout <= 600:
        raise ConfigurationError(f"exec timeout must be between 0 and 600 seconds, got {timeout}")

    config = DriftCheckConfig(
        namespace=flags.get("namespace", ""),
        kubeconfig=flags.get("kubeconfig") or _env("KUBECONFIG") or None,
        context=flags.get("context") or _env("CONTEXT") or None,
        container=flags.get("container") or None,
        config_path=_validate_config_path(flags.get("config_path") or _env("CONFIG_PATH", DEFAULT_CONFIG_PATH)),
        exec_timeout_seconds=timeout,
        dump_dir=flags.get("dump_dir") or _env("DUMP_DIR") or None,
        log=LogConfig(
            level=_validate_log_level(flags.get("log_level") or _env("LOG_LEVEL", "warning")),
            format=_validate_log_format(_env("LOG_FORMAT", "json")),
        ),
    )
    validate_config(config)
    return config


def validate_config(config: DriftCheckConfig) -> None:
    """Ensure every value a run needs is present."""
    if not config.namespace:
        raise ConfigurationError("specify a namespace")

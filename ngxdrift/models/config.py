"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_CONFIG_PATH = "/etc/nginx/nginx.conf"


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "warning"
    format: str = "json"


@dataclass
class DriftCheckConfig:
    """Top-level configuration for a single drift-check run."""

    namespace: str = ""
    kubeconfig: str | None = None
    context: str | None = None
    container: str | None = None
    config_path: str = DEFAULT_CONFIG_PATH
    exec_timeout_seconds: int = 60
    dump_dir: str | None = None
    log: LogConfig = field(default_factory=LogConfig)

# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Intern MCP Server Configuration

Values come from a YAML file; environment variables override them.
Priority (highest to lowest):
1. Environment variables
2. YAML config file
3. Default values
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "configs/server.yaml"


@dataclass(frozen=True)
class Config:
    """Immutable server configuration."""

    # -- Server --
    server_name: str = "interview-scheduler"
    server_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 3000

    # -- Recruiting API --
    api_base_url: str = "http://localhost:4000"
    api_timeout_seconds: float = 30.0

    # -- Sessions --
    session_ttl_seconds: int = 3600
    session_sweep_interval_seconds: float = 300.0

    # -- Notification stream --
    stream_interval_seconds: float = 2.0
    stream_message_count: int = 3

    # -- Logging --
    log_level: str = "INFO"
    log_format: str = "text"


def _env(name: str, default: Any) -> Any:
    """Read an env var, converting it to the type of default."""
    value = os.getenv(name)
    if value is None:
        return default
    try:
        if isinstance(default, bool):
            return value.lower() in ("true", "1", "yes", "on")
        elif isinstance(default, int):
            return int(value)
        elif isinstance(default, float):
            return float(value)
    except ValueError:
        logger.warning(f"Ignoring invalid value for {name}: {value!r}")
        return default
    return value


def load_config(path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML, then apply environment overrides.
    Returns defaults if the file doesn't exist.
    """
    path = path or os.getenv("MCP_CONFIG_PATH", DEFAULT_CONFIG_PATH)
    y: dict = {}
    if Path(path).exists():
        with open(path) as f:
            y = yaml.safe_load(f) or {}
    else:
        logger.info(f"Config not found at {path}, using env vars and defaults")

    # Helper to safely navigate nested dicts
    def get(d: dict, *keys, default=None):
        for k in keys:
            if not isinstance(d, dict):
                return default
            d = d.get(k, {})
        return d if d != {} else default

    defaults = Config()

    return Config(
        # Server
        server_name=get(y, "server", "name") or defaults.server_name,
        server_version=get(y, "server", "version") or defaults.server_version,
        host=_env("HOST", get(y, "server", "host") or defaults.host),
        port=_env("PORT", get(y, "server", "port") or defaults.port),

        # Recruiting API
        api_base_url=_env("API_BASE_URL", get(y, "api", "base_url") or defaults.api_base_url),
        api_timeout_seconds=float(get(y, "api", "timeout") or defaults.api_timeout_seconds),

        # Sessions
        session_ttl_seconds=_env(
            "MCP_SESSION_TTL",
            get(y, "sessions", "ttl_seconds", default=defaults.session_ttl_seconds)
        ),
        session_sweep_interval_seconds=float(
            get(y, "sessions", "sweep_interval_seconds") or defaults.session_sweep_interval_seconds
        ),

        # Notification stream
        stream_interval_seconds=float(
            get(y, "stream", "interval_seconds", default=defaults.stream_interval_seconds)
        ),
        stream_message_count=int(
            get(y, "stream", "message_count", default=defaults.stream_message_count)
        ),

        # Logging
        log_level=_env("LOG_LEVEL", get(y, "logging", "level") or defaults.log_level),
        log_format=_env("LOG_FORMAT", get(y, "logging", "format") or defaults.log_format),
    )

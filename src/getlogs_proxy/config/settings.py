# getlogs_proxy/config/settings.py
from __future__ import annotations

import logging
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass

from dotenv import load_dotenv

from getlogs_proxy.config.default import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MOUNT_PATH,
    DEFAULT_PORT,
    DEFAULT_UPSTREAM_TIMEOUT,
)


class ConfigurationError(Exception):
    """Startup configuration is missing or invalid."""


@dataclass(frozen=True)
class ProxySettings:
    upstream_url: str
    chunk_size: int = DEFAULT_CHUNK_SIZE
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    mount_path: str = DEFAULT_MOUNT_PATH
    log_level: str | int = DEFAULT_LOG_LEVEL
    upstream_timeout: float = DEFAULT_UPSTREAM_TIMEOUT

    def __post_init__(self):
        if not self.upstream_url:
            raise ConfigurationError("Missing upstream RPC URL. Set UPSTREAM_URL to a valid endpoint.")
        if isinstance(self.chunk_size, bool) or not isinstance(self.chunk_size, int) or self.chunk_size < 1:
            raise ConfigurationError(f"Invalid chunk size: {self.chunk_size!r}")


def parse_chunk_size(raw_value: str | None, fallback: int = DEFAULT_CHUNK_SIZE) -> int:
    """
    Parse LOG_CHUNK_SIZE. Empty means ``fallback``; fractional values are
    floored. Anything non-numeric, non-finite or below 1 is rejected.
    """
    if raw_value is None or not raw_value.strip():
        return fallback

    try:
        parsed = float(raw_value)
    except ValueError:
        raise ConfigurationError(f"Invalid LOG_CHUNK_SIZE value: {raw_value}")

    if not math.isfinite(parsed) or parsed < 1:
        raise ConfigurationError(f"Invalid LOG_CHUNK_SIZE value: {raw_value}")

    return math.floor(parsed)


def _parse_port(raw_value: str | None) -> int:
    if raw_value is None or not raw_value.strip():
        return DEFAULT_PORT
    try:
        return int(raw_value, 10)
    except ValueError:
        raise ConfigurationError(f"Invalid PORT value: {raw_value}")


def _parse_log_level(raw_value: str | None) -> str:
    if raw_value is None or not raw_value.strip():
        return DEFAULT_LOG_LEVEL
    level = raw_value.strip().upper()
    # getLevelName maps a known name to its number and anything else to "Level <name>"
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(f"Invalid LOG_LEVEL value: {raw_value}")
    return level


def _parse_timeout(raw_value: str | None) -> float:
    if raw_value is None or not raw_value.strip():
        return DEFAULT_UPSTREAM_TIMEOUT
    try:
        parsed = float(raw_value)
    except ValueError:
        raise ConfigurationError(f"Invalid UPSTREAM_TIMEOUT value: {raw_value}")
    if not math.isfinite(parsed) or parsed <= 0:
        raise ConfigurationError(f"Invalid UPSTREAM_TIMEOUT value: {raw_value}")
    return parsed


def load_settings(environ: Mapping[str, str] | None = None) -> ProxySettings:
    """Build settings from the environment (and a ``.env`` file when reading os.environ)."""
    if environ is None:
        load_dotenv()
        environ = os.environ

    return ProxySettings(
        upstream_url=(environ.get("UPSTREAM_URL") or "").strip(),
        chunk_size=parse_chunk_size(environ.get("LOG_CHUNK_SIZE")),
        host=environ.get("HOST") or DEFAULT_HOST,
        port=_parse_port(environ.get("PORT")),
        mount_path=environ.get("MOUNT_PATH") or DEFAULT_MOUNT_PATH,
        log_level=_parse_log_level(environ.get("LOG_LEVEL")),
        upstream_timeout=_parse_timeout(environ.get("UPSTREAM_TIMEOUT")),
    )

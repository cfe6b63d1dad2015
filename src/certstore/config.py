"""Configuration for certstore storage instances."""

from __future__ import annotations

import math
import os
import re
from dataclasses import dataclass
from typing import Any, Mapping

from certstore.errors import InvalidConfigError

DEFAULT_QUERY_TIMEOUT = 3.0
DEFAULT_LOCK_TIMEOUT = 60.0
DEFAULT_POOL_SIZE = 5
CONNECT_TIMEOUT = 5.0

# Longest duration representable as int64 nanoseconds, about 292 years.
MAX_DURATION = (2**63 - 1) / 1e9

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

# Option names accepted from the host adaptation layer -> config field.
_OPTION_FIELDS = {
    "connection_string": "endpoint",
    "endpoint": "endpoint",
    "query_timeout": "query_timeout",
    "lock_timeout": "lock_timeout",
    "pool_size": "pool_size",
}


def parse_duration(value: str | float | int, *, name: str = "duration") -> float:
    """Parse a duration such as ``"3s"``, ``"1m30s"`` or ``"250ms"`` into seconds.

    Plain numbers (or numeric strings) are taken as seconds. The result must be
    strictly positive and no longer than MAX_DURATION.
    """
    if isinstance(value, bool):
        raise InvalidConfigError(f"invalid {name}: {value!r}")
    if isinstance(value, (int, float)):
        try:
            seconds = float(value)
        except OverflowError:
            raise InvalidConfigError(f"invalid {name}: {value!r} exceeds the maximum duration")
    else:
        text = value.strip()
        if not text:
            raise InvalidConfigError(f"invalid {name}: empty duration")
        try:
            seconds = float(text)
        except ValueError:
            seconds = _parse_duration_string(text, name)
    if not math.isfinite(seconds) or seconds <= 0:
        raise InvalidConfigError(f"invalid {name}: {value!r} must be a positive finite duration")
    if seconds > MAX_DURATION:
        raise InvalidConfigError(f"invalid {name}: {value!r} exceeds the maximum duration")
    return seconds


def _parse_duration_string(text: str, name: str) -> float:
    pos = 0
    total = 0.0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise InvalidConfigError(
                f"invalid {name}: {text!r} (expected e.g. 3s, 500ms, 1m30s)"
            )
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    return total


def _parse_pool_size(value: Any) -> int:
    try:
        size = int(value)
    except (TypeError, ValueError):
        raise InvalidConfigError(f"invalid pool size: {value!r}")
    if size < 1:
        raise InvalidConfigError(f"invalid pool size: {value!r} must be at least 1")
    return size


@dataclass
class CertStoreConfig:
    """Configuration for a storage instance. Durations are in seconds."""

    endpoint: str
    query_timeout: float = DEFAULT_QUERY_TIMEOUT
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT
    pool_size: int = DEFAULT_POOL_SIZE
    connect_timeout: float = CONNECT_TIMEOUT
    create_tables: bool = True

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if not self.endpoint or not str(self.endpoint).strip():
            raise InvalidConfigError("connection endpoint must not be empty")
        self.query_timeout = parse_duration(self.query_timeout, name="query timeout")
        self.lock_timeout = parse_duration(self.lock_timeout, name="lock timeout")
        self.connect_timeout = parse_duration(self.connect_timeout, name="connect timeout")
        self.pool_size = _parse_pool_size(self.pool_size)

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> CertStoreConfig:
        """Build a config from named options (``connection_string``, ``query_timeout``, ...).

        Options set to ``None`` or an empty string fall back to their defaults,
        except the endpoint which is required.
        """
        kwargs: dict[str, Any] = {}
        for name, value in options.items():
            field_name = _OPTION_FIELDS.get(name)
            if field_name is None:
                raise InvalidConfigError(f"unrecognized option '{name}'")
            if field_name in kwargs:
                raise InvalidConfigError(f"option '{name}' already set")
            if value is None or value == "":
                if field_name == "endpoint":
                    raise InvalidConfigError("connection endpoint must not be empty")
                continue
            kwargs[field_name] = value
        if "endpoint" not in kwargs:
            raise InvalidConfigError("missing connection endpoint")
        return cls(**kwargs)

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, **overrides: Any
    ) -> CertStoreConfig:
        """Build a config from CERTSTORE_* environment variables."""
        env = os.environ if environ is None else environ
        options: dict[str, Any] = {
            "connection_string": env.get("CERTSTORE_STORAGE_URI") or env.get("CERTSTORE_DB"),
            "query_timeout": env.get("CERTSTORE_QUERY_TIMEOUT"),
            "lock_timeout": env.get("CERTSTORE_LOCK_TIMEOUT"),
            "pool_size": env.get("CERTSTORE_POOL_SIZE"),
        }
        for name, value in overrides.items():
            if value is not None:
                options[name] = value
        return cls.from_options(options)

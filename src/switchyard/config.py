"""Application configuration.

AppConfig is a frozen dataclass with typed fields instead of string-key
lookups. Build it directly, from the environment, or
from a TOML file.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from switchyard.errors import ConfigurationError

# The only APP_ENV value that turns on detailed error messages
DEVELOPMENT_ENV = "development"


def _frozen_mapping(value: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(
            debug=True,
            global_middleware={"rate_limit": {"limit": 10}},
        )

    ``global_middleware`` maps a middleware identifier (see
    ``MiddlewareRegistry``) to its constructor parameters. Order is
    preserved and is the execution order: the first entry wraps outermost.
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Detailed 500 messages when True, sanitised otherwise
    debug: bool = False

    # Middleware applied to every route, built once at freeze time
    global_middleware: Mapping[str, Any] = field(default_factory=lambda: _frozen_mapping(None))

    # Logging
    log_level: str = "info"

    def __post_init__(self) -> None:
        if not isinstance(self.global_middleware, MappingProxyType):
            object.__setattr__(
                self, "global_middleware", _frozen_mapping(self.global_middleware)
            )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> AppConfig:
        """Build a config from environment variables.

        ``APP_ENV=development`` enables debug mode. ``SWITCHYARD_HOST``,
        ``SWITCHYARD_PORT`` and ``SWITCHYARD_LOG_LEVEL`` override the
        server and logging defaults. Keyword overrides win over the
        environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {
            "debug": env.get("APP_ENV", "production").strip().lower() == DEVELOPMENT_ENV,
        }
        if "SWITCHYARD_HOST" in env:
            values["host"] = env["SWITCHYARD_HOST"]
        if "SWITCHYARD_PORT" in env:
            try:
                values["port"] = int(env["SWITCHYARD_PORT"])
            except ValueError as exc:
                msg = f"SWITCHYARD_PORT must be an integer, got {env['SWITCHYARD_PORT']!r}"
                raise ConfigurationError(msg) from exc
        if "SWITCHYARD_LOG_LEVEL" in env:
            values["log_level"] = env["SWITCHYARD_LOG_LEVEL"].lower()
        values.update(overrides)
        return cls(**values)

    @classmethod
    def from_toml(cls, path: str | Path, **overrides: Any) -> AppConfig:
        """Load a config from the ``[switchyard]`` table of a TOML file.

        Global middleware lives in ``[switchyard.middleware]``::

            [switchyard]
            debug = false

            [switchyard.middleware]
            rate_limit = { limit = 10, window_seconds = 60 }
        """
        try:
            with open(path, "rb") as fh:
                data = tomllib.load(fh)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            msg = f"Cannot load configuration from {str(path)!r}: {exc}"
            raise ConfigurationError(msg) from exc

        table = dict(data.get("switchyard", {}))
        middleware = table.pop("middleware", {})
        known = {f for f in cls.__dataclass_fields__ if f != "global_middleware"}
        unknown = sorted(set(table) - known)
        if unknown:
            msg = f"Unknown configuration keys in {str(path)!r}: {', '.join(unknown)}"
            raise ConfigurationError(msg)

        table["global_middleware"] = middleware
        table.update(overrides)
        return cls(**table)

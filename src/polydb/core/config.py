"""Configuration management for polydb.

Handles TOML config files, environment variables, named profiles,
and configuration precedence resolution.

Precedence order (highest to lowest):
1. CLI flags (--engine, --host, --port, etc.)
2. --dsn flag (parsed into components)
3. Environment variables (POLYDB_ENGINE, POLYDB_HOST, POLYDB_PORT, ...)
4. Named profile (--profile or POLYDB_PROFILE env var)
5. Config file defaults
6. Built-in defaults
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, unquote, urlparse

from pydantic import BaseModel, field_validator, model_validator

from polydb.core.exceptions import ConfigError
from polydb.core.values import Engine

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "polydb" / "config.toml"

DEFAULT_PORTS: dict[Engine, int] = {
    Engine.MYSQL: 3306,
    Engine.POSTGRESQL: 5432,
    Engine.REDIS: 6379,
}

_DSN_SCHEMES: dict[str, Engine] = {
    "mysql": Engine.MYSQL,
    "postgresql": Engine.POSTGRESQL,
    "postgres": Engine.POSTGRESQL,
    "redis": Engine.REDIS,
}

_ENV_VARS: dict[str, str] = {
    "POLYDB_ENGINE": "engine",
    "POLYDB_HOST": "host",
    "POLYDB_PORT": "port",
    "POLYDB_DATABASE": "database",
    "POLYDB_USER": "user",
    "POLYDB_PASSWORD": "password",  # pragma: allowlist secret
}

_PROFILE_DEFAULTS: dict[str, Any] = {
    "engine": Engine.POSTGRESQL,
    "host": "localhost",
    "port": None,
    "database": None,
    "user": None,
    "password": None,
    "connect_timeout": 10,
}


def parse_engine(value: str) -> Engine:
    try:
        return Engine(value.lower())
    except ValueError:
        supported = ", ".join(e.value for e in Engine)
        msg = f"Unknown engine: '{value}'. Supported: {supported}"
        raise ConfigError(msg) from None


def parse_dsn(dsn: str) -> dict[str, Any]:
    """Supports mysql://, postgresql://, postgres:// and redis:// schemes."""
    parsed = urlparse(dsn)
    engine = _DSN_SCHEMES.get(parsed.scheme)
    if engine is None:
        expected = ", ".join(f"'{s}'" for s in _DSN_SCHEMES)
        msg = f"Invalid DSN scheme: '{parsed.scheme}'. Expected one of {expected}"
        raise ConfigError(msg)

    result: dict[str, Any] = {"engine": engine}
    if parsed.hostname:
        result["host"] = parsed.hostname
    if parsed.port:
        result["port"] = parsed.port
    if parsed.path and parsed.path.strip("/"):
        result["database"] = parsed.path.strip("/")
    if parsed.username:
        result["user"] = unquote(parsed.username)
    if parsed.password:
        result["password"] = unquote(parsed.password)
    query_params = parse_qs(parsed.query)
    if "connect_timeout" in query_params:
        result["connect_timeout"] = int(query_params["connect_timeout"][0])
    return result


def _validate_port(v: int | None) -> int | None:
    if v is not None and not (1 <= v <= 65535):
        msg = f"Invalid port: {v}. Must be 1-65535"
        raise ValueError(msg)
    return v


class Profile(BaseModel):
    dsn: str | None = None
    engine: Engine = Engine.POSTGRESQL
    host: str = "localhost"
    port: int | None = None
    database: str | None = None
    user: str | None = None
    password: str | None = None
    connect_timeout: int = 10

    @model_validator(mode="before")
    @classmethod
    def parse_dsn_into_components(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("dsn"):
            dsn_fields = parse_dsn(data["dsn"])
            for key, value in dsn_fields.items():
                if key not in data:
                    data[key] = value
        return data

    @field_validator("engine", mode="before")
    @classmethod
    def validate_engine(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int | None) -> int | None:
        return _validate_port(v)

    @property
    def effective_port(self) -> int:
        return self.port or DEFAULT_PORTS[self.engine]


class AppConfig(BaseModel):
    default_timeout: float = 30.0
    default_format: str = "table"
    default_profile: str | None = None
    sentry_dsn: str | None = None
    sentry_environment: str = "local"
    profiles: dict[str, Profile] = {}


class ResolvedConfig(BaseModel):
    engine: Engine = Engine.POSTGRESQL
    host: str = "localhost"
    port: int = 5432
    database: str | None = None
    user: str | None = None
    password: str | None = None
    connect_timeout: int = 10
    default_timeout: float = 30.0
    default_format: str = "table"
    active_profile: str | None = None
    sources: dict[str, str] = {}


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file.

    Returns default AppConfig if file doesn't exist.
    Raises ConfigError on malformed TOML or invalid config.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return AppConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Malformed TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return AppConfig.model_validate(data)
    except ConfigError:
        raise
    except Exception as e:
        msg = f"Invalid configuration in {config_path}: {e}"
        raise ConfigError(msg) from e


def resolve_config(
    config: AppConfig,
    profile_name: str | None = None,
    dsn: str | None = None,
    **cli_overrides: Any,
) -> ResolvedConfig:
    """Resolve configuration using precedence chain.

    CLI > DSN > env > profile > config defaults > built-in defaults.
    The port falls back to the resolved engine's default when no layer
    sets it.
    """
    sources: dict[str, str] = {}
    resolved: dict[str, Any] = {}

    # Layer 1: Built-in defaults
    resolved.update(_PROFILE_DEFAULTS)
    resolved["default_timeout"] = 30.0
    resolved["default_format"] = "table"
    for key in resolved:
        sources[key] = "default"

    # Layer 2: Config file global defaults
    if config.default_timeout != 30.0:
        resolved["default_timeout"] = config.default_timeout
        sources["default_timeout"] = "config"
    if config.default_format != "table":
        resolved["default_format"] = config.default_format
        sources["default_format"] = "config"

    # Layer 3: Named profile
    effective_profile = profile_name
    if not effective_profile:
        effective_profile = os.environ.get("POLYDB_PROFILE")
    if not effective_profile:
        effective_profile = config.default_profile

    if effective_profile:
        if effective_profile not in config.profiles:
            available = (
                ", ".join(sorted(config.profiles.keys())) if config.profiles else "none"
            )
            msg = f"Unknown profile: '{effective_profile}'. Available profiles: {available}"
            raise ConfigError(msg)
        profile = config.profiles[effective_profile]
        for key in profile.model_fields_set:
            if key == "dsn":
                continue
            if key in resolved:
                resolved[key] = getattr(profile, key)
                sources[key] = f"profile: {effective_profile}"

    # Layer 4: Environment variables
    for env_var, field_name in _ENV_VARS.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        if field_name == "port":
            try:
                resolved[field_name] = int(value)
            except ValueError:
                msg = f"Invalid {env_var} value: '{value}'. Must be an integer"
                raise ConfigError(msg) from None
        elif field_name == "engine":
            resolved[field_name] = parse_engine(value)
        else:
            resolved[field_name] = value
        sources[field_name] = f"env: {env_var}"

    # Layer 5: DSN flag
    if dsn:
        for key, value in parse_dsn(dsn).items():
            if key in resolved:
                resolved[key] = value
                sources[key] = "dsn"

    # Layer 6: CLI flags (highest priority)
    cli_to_field = {
        "engine": "engine",
        "host": "host",
        "port": "port",
        "database": "database",
        "user": "user",
        "password": "password",  # pragma: allowlist secret
        "timeout": "default_timeout",
    }
    for cli_name, field_name in cli_to_field.items():
        value = cli_overrides.get(cli_name)
        if value is None:
            continue
        if field_name == "engine" and isinstance(value, str):
            value = parse_engine(value)
        resolved[field_name] = value
        sources[field_name] = f"cli: --{cli_name}"

    if resolved["port"] is None:
        resolved["port"] = DEFAULT_PORTS[Engine(resolved["engine"])]
        sources["port"] = f"default: {Engine(resolved['engine']).value}"

    resolved["active_profile"] = effective_profile
    resolved["sources"] = sources
    return ResolvedConfig(**resolved)

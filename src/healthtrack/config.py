"""HealthTrack configuration loading and validation.

Reads ``healthtrack.toml``, resolves ``${VAR_NAME}`` references from the
environment, and returns a validated :class:`AppConfig` dataclass.  Every
section is optional; a missing file yields the defaults.
"""

from __future__ import annotations

import logging
import os
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from healthtrack.vitals.locale import Locale, get_locale

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "HEALTHTRACK_CONFIG"
DEFAULT_CONFIG_PATH = Path("healthtrack.toml")

# Used only when neither [auth].jwt_secret nor JWT_SECRET is set.
DEVELOPMENT_JWT_SECRET = "healthtrack_development_secret_key"
DEFAULT_TOKEN_TTL_DAYS = 7

# Pattern matching ${VAR_NAME}; supports alphanumeric + underscore variable names.
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class ConfigError(Exception):
    """Raised when configuration is missing, malformed, or invalid."""


@dataclass
class ServerConfig:
    """HTTP server settings from [server]."""

    host: str = "127.0.0.1"
    port: int = 5000
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:5173"])
    static_dir: str | None = None


@dataclass
class DatabaseConfig:
    """Database settings from [db]; connection params come from the environment."""

    name: str = "healthtrack"
    min_pool_size: int = 1
    max_pool_size: int = 10


@dataclass
class AuthConfig:
    """Token settings from [auth]."""

    jwt_secret: str = DEVELOPMENT_JWT_SECRET
    token_ttl_days: int = DEFAULT_TOKEN_TTL_DAYS

    @property
    def uses_development_secret(self) -> bool:
        return self.jwt_secret == DEVELOPMENT_JWT_SECRET


@dataclass
class LoggingConfig:
    """Logging configuration from [logging]."""

    level: str = "INFO"
    format: str = "text"  # "text" or "json"
    log_root: str | None = None


@dataclass
class LocaleConfig:
    """Wording and display settings from [locale]."""

    name: str = "it"
    display_timezone: str = "Europe/Rome"
    alert_templates: dict[str, str] = field(default_factory=dict)

    def build_locale(self) -> Locale:
        """Resolve the shipped catalog and apply template overrides."""
        catalog = get_locale(self.name)
        if self.alert_templates:
            catalog = catalog.with_templates(self.alert_templates)
        return catalog

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.display_timezone)


@dataclass
class AppConfig:
    """Parsed and validated application configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    db: DatabaseConfig = field(default_factory=DatabaseConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    locale: LocaleConfig = field(default_factory=LocaleConfig)
    source: Path | None = None


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
    """Replace all ``${VAR_NAME}`` occurrences in *s* with env var values.

    Collects all missing variable names and reports them in a single error.
    """
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


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{name}] must be a table")
    return section


def _positive_int(raw: Any, key: str) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{key} must be > 0, got {value}")
    return value


def _parse_server(section: dict[str, Any]) -> ServerConfig:
    defaults = ServerConfig()
    origins = section.get("cors_origins", defaults.cors_origins)
    if not isinstance(origins, list) or not all(isinstance(o, str) for o in origins):
        raise ConfigError("server.cors_origins must be a list of strings")
    static_dir = section.get("static_dir")
    return ServerConfig(
        host=str(section.get("host", defaults.host)),
        port=_positive_int(section.get("port", defaults.port), "server.port"),
        cors_origins=list(origins),
        static_dir=str(static_dir) if static_dir else None,
    )


def _parse_db(section: dict[str, Any]) -> DatabaseConfig:
    name = str(section.get("name", DatabaseConfig.name)).strip()
    if not name:
        raise ConfigError("db.name must be a non-empty string")
    min_size = _positive_int(section.get("min_pool_size", 1), "db.min_pool_size")
    max_size = _positive_int(section.get("max_pool_size", 10), "db.max_pool_size")
    if min_size > max_size:
        raise ConfigError("db.min_pool_size must not exceed db.max_pool_size")
    return DatabaseConfig(name=name, min_pool_size=min_size, max_pool_size=max_size)


def _parse_auth(section: dict[str, Any]) -> AuthConfig:
    secret = section.get("jwt_secret") or os.environ.get("JWT_SECRET") or DEVELOPMENT_JWT_SECRET
    ttl = _positive_int(
        section.get("token_ttl_days", DEFAULT_TOKEN_TTL_DAYS), "auth.token_ttl_days"
    )
    config = AuthConfig(jwt_secret=str(secret), token_ttl_days=ttl)
    if config.uses_development_secret:
        logger.warning("No JWT secret configured; using the development default")
    return config


def _parse_logging(section: dict[str, Any]) -> LoggingConfig:
    log_level = str(section.get("level", "INFO")).upper()
    log_format = str(section.get("format", "text")).lower()
    if log_format not in ("text", "json"):
        raise ConfigError(f"Invalid logging.format: {log_format!r}. Expected 'text' or 'json'.")
    return LoggingConfig(level=log_level, format=log_format, log_root=section.get("log_root"))


def _parse_locale(section: dict[str, Any]) -> LocaleConfig:
    templates = section.get("alert_templates", {})
    if not isinstance(templates, dict) or not all(isinstance(v, str) for v in templates.values()):
        raise ConfigError("locale.alert_templates must be a table of strings")
    config = LocaleConfig(
        name=str(section.get("name", "it")),
        display_timezone=str(section.get("display_timezone", "Europe/Rome")),
        alert_templates=dict(templates),
    )
    try:
        config.build_locale()
    except ValueError as exc:
        raise ConfigError(f"Invalid [locale] section: {exc}") from exc
    try:
        config.tz
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown locale.display_timezone: {config.display_timezone!r}") from exc
    return config


def parse_config(data: dict[str, Any], source: Path | None = None) -> AppConfig:
    """Validate an already-decoded TOML document into an :class:`AppConfig`."""
    data = resolve_env_vars(data)
    return AppConfig(
        server=_parse_server(_section(data, "server")),
        db=_parse_db(_section(data, "db")),
        auth=_parse_auth(_section(data, "auth")),
        logging=_parse_logging(_section(data, "logging")),
        locale=_parse_locale(_section(data, "locale")),
        source=source,
    )


def load_config(path: Path | None = None) -> AppConfig:
    """Load and validate configuration.

    Resolution order for the file: *path*, then ``$HEALTHTRACK_CONFIG``, then
    ``./healthtrack.toml``.  An explicitly named file must exist; the default
    location may be absent, in which case defaults are returned.

    Raises
    ------
    ConfigError
        If the file is missing (when named explicitly), contains invalid
        TOML, or fails validation.
    """
    explicit = path is not None or os.environ.get(CONFIG_ENV_VAR)
    toml_path = Path(path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)

    if not toml_path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {toml_path}")
        return parse_config({})

    try:
        data = tomllib.loads(toml_path.read_bytes().decode())
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {toml_path}: {exc}") from exc

    return parse_config(data, source=toml_path)

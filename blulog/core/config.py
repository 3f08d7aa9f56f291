"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

DEV_ACCESS_SECRET = "dev-insecure-access-secret-change-me"
DEV_REFRESH_SECRET = "dev-insecure-refresh-secret-change-me"
DEV_RESET_SECRET = "dev-insecure-reset-secret-change-me"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


class ConfigError(ValueError):
    """Raised when environment configuration is unusable."""


def parse_duration_seconds(value: str) -> int:
    """Parse ``900``, ``15m``, ``12h`` or ``7d`` into whole seconds."""
    match = _DURATION_RE.match(value or "")
    if match is None:
        raise ConfigError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    seconds = int(amount) * _DURATION_UNITS[unit.lower()]
    if seconds <= 0:
        raise ConfigError(f"Duration must be positive: {value!r}")
    return seconds


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer: {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive: {raw!r}")
    return value


@dataclass(frozen=True)
class TokenSettings:
    """Signing secret and lifetime for one class of bearer token."""

    secret: str
    ttl_seconds: int


@dataclass(frozen=True)
class AuthConfig:
    """Authentication-related configuration."""

    access: TokenSettings
    refresh: TokenSettings
    reset: TokenSettings
    issuer: str = "blulog-api"
    admin_email: str = ""
    admin_password: str = ""


@dataclass(frozen=True)
class CookieConfig:
    """Refresh-token session cookie attributes."""

    name: str = "refreshToken"
    secure: bool = False
    max_age_seconds: int = 7 * 24 * 60 * 60
    samesite: str = "strict"


@dataclass(frozen=True)
class MailConfig:
    """Outbound SMTP settings used for password reset emails."""

    smtp_host: str
    smtp_port: int
    username: str
    password: str
    sender: str
    use_tls: bool = True


@dataclass(frozen=True)
class ClientConfig:
    """Public client application settings."""

    base_url: str


@dataclass(frozen=True)
class StoreConfig:
    """Credential store connection settings."""

    mongodb_uri: str
    mongodb_db: str
    data_dir: str = ""


@dataclass(frozen=True)
class LoggingConfig:
    """Structured logging configuration."""

    level: str


@dataclass(frozen=True)
class SecurityConfig:
    """API perimeter security settings."""

    cors_allowed_origins: list[str]
    request_max_bytes: int


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    auth: AuthConfig
    cookie: CookieConfig
    mail: MailConfig
    client: ClientConfig
    store: StoreConfig
    logging: LoggingConfig
    security: SecurityConfig
    environment: str = "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @staticmethod
    def from_env() -> "AppConfig":
        """Build app config from process environment."""
        environment = os.getenv("APP_ENV", "development").strip().lower() or "development"
        production = environment == "production"

        def token_settings(prefix: str, dev_secret: str, default_ttl: str) -> TokenSettings:
            secret = os.getenv(f"{prefix}_TOKEN_SECRET", "").strip()
            if not secret:
                if production:
                    raise ConfigError(f"{prefix}_TOKEN_SECRET must be set in production")
                secret = dev_secret
            ttl = parse_duration_seconds(
                os.getenv(f"{prefix}_TOKEN_EXPIRE", default_ttl).strip() or default_ttl
            )
            return TokenSettings(secret=secret, ttl_seconds=ttl)

        smtp_email = os.getenv("SMTP_EMAIL", "").strip()
        cors_allowed_origins = [
            origin.strip()
            for origin in os.getenv(
                "CORS_ALLOWED_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if origin.strip()
        ]

        return AppConfig(
            auth=AuthConfig(
                access=token_settings("ACCESS", DEV_ACCESS_SECRET, "15m"),
                refresh=token_settings("REFRESH", DEV_REFRESH_SECRET, "7d"),
                reset=token_settings("RESET", DEV_RESET_SECRET, "15m"),
                issuer=os.getenv("AUTH_ISSUER", "blulog-api").strip() or "blulog-api",
                admin_email=os.getenv("AUTH_ADMIN_EMAIL", "").strip().lower(),
                admin_password=os.getenv("AUTH_ADMIN_PASSWORD", "").strip(),
            ),
            cookie=CookieConfig(
                secure=production,
                max_age_seconds=parse_duration_seconds(
                    os.getenv("REFRESH_COOKIE_MAX_AGE", "7d").strip() or "7d"
                ),
            ),
            mail=MailConfig(
                smtp_host=os.getenv("SMTP_HOST", "").strip(),
                smtp_port=_env_int("SMTP_PORT", 587),
                username=smtp_email,
                password=os.getenv("SMTP_PASSWORD", ""),
                sender=os.getenv("SMTP_SENDER", "").strip() or smtp_email,
                use_tls=_env_flag("SMTP_USE_TLS", "1"),
            ),
            client=ClientConfig(
                base_url=(
                    os.getenv("CLIENT_URL", "http://localhost:3000").strip().rstrip("/")
                    or "http://localhost:3000"
                ),
            ),
            store=StoreConfig(
                mongodb_uri=os.getenv("MONGODB_URI", "").strip(),
                mongodb_db=os.getenv("MONGODB_DB", "blulog").strip() or "blulog",
                data_dir=os.getenv("BLULOG_DATA_DIR", "").strip(),
            ),
            logging=LoggingConfig(level=os.getenv("LOG_LEVEL", "INFO").strip() or "INFO"),
            security=SecurityConfig(
                cors_allowed_origins=cors_allowed_origins,
                request_max_bytes=_env_int("REQUEST_MAX_BYTES", 1024 * 1024),
            ),
            environment=environment,
        )

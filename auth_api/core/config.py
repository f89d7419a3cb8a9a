"""
Configuration helpers for the account service.

Every tunable (secrets, token lifetimes, SMTP, identity providers, client URL)
is read from the environment here so routers/services never touch os.environ.
"""

from dataclasses import dataclass
from functools import lru_cache
import os

from dotenv import load_dotenv

DEV_SECRET = "change-me"


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    client_url: str
    database_url: str
    cors_origins: tuple[str, ...]
    log_level: str
    jwt_secret: str
    jwt_account_activation: str
    jwt_reset_password: str
    jwt_algorithm: str
    activation_token_ttl_seconds: int
    session_ttl_seconds: int
    federated_session_ttl_seconds: int
    reset_token_ttl_seconds: int
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    email_from: str
    google_client_id: str
    facebook_graph_url: str

    @property
    def is_production(self) -> bool:
        return self.app_env in {"prod", "production"}


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    load_dotenv(os.getenv("ENV_FILE", ".env"))

    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _list(value: str | None) -> tuple[str, ...]:
        return tuple(item.strip() for item in (value or "").split(",") if item.strip())

    return Settings(
        app_env=(os.getenv("APP_ENV") or "development").lower(),
        client_url=os.getenv("CLIENT_URL", "http://localhost:3000").rstrip("/"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./accounts.db"),
        cors_origins=_list(os.getenv("CORS_ORIGINS", "*")),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        jwt_secret=os.getenv("JWT_SECRET", DEV_SECRET),
        jwt_account_activation=os.getenv("JWT_ACCOUNT_ACTIVATION", DEV_SECRET + "-activation"),
        jwt_reset_password=os.getenv("JWT_RESET_PASSWORD", DEV_SECRET + "-reset"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        activation_token_ttl_seconds=_int(os.getenv("ACTIVATION_TOKEN_TTL_SECONDS", "259200"), 259200),
        session_ttl_seconds=_int(os.getenv("SESSION_TTL_SECONDS", "86400"), 86400),
        federated_session_ttl_seconds=_int(os.getenv("FEDERATED_SESSION_TTL_SECONDS", "604800"), 604800),
        reset_token_ttl_seconds=_int(os.getenv("RESET_TOKEN_TTL_SECONDS", "600"), 600),
        smtp_host=os.getenv("SMTP_HOST", ""),
        smtp_port=_int(os.getenv("SMTP_PORT", "465"), 465),
        smtp_user=os.getenv("SMTP_USER", ""),
        smtp_password=os.getenv("SMTP_PASSWORD", ""),
        email_from=os.getenv("EMAIL_FROM", os.getenv("SMTP_USER", "")),
        google_client_id=os.getenv("GOOGLE_CLIENT_ID", ""),
        facebook_graph_url=os.getenv("FACEBOOK_GRAPH_URL", "https://graph.facebook.com/v2.11").rstrip("/"),
    )


def validate_runtime_config(settings: Settings) -> None:
    if not settings.is_production:
        return
    for name, value in (
        ("JWT_SECRET", settings.jwt_secret),
        ("JWT_ACCOUNT_ACTIVATION", settings.jwt_account_activation),
        ("JWT_RESET_PASSWORD", settings.jwt_reset_password),
    ):
        if value.startswith(DEV_SECRET):
            raise RuntimeError(f"{name} must be set in production.")

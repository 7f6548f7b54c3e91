"""Application configuration loaded from environment variables.

Settings for the database, API, staff and portal authentication, e-mail,
and rate limiting. Uses pydantic-settings for validation and .env file
support.
"""

from typing import Literal

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "clientdesk_dev_password"  # nosec B105

# Minimum length for AUTH_SECRET in production (256 bits = 32 bytes)
_MIN_AUTH_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "clientdesk"
    database_user: str = "clientdesk_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_echo: bool = False

    # API
    # 0.0.0.0 binds to all network interfaces (required for Docker containers)
    api_host: str = "0.0.0.0"  # nosec B104
    api_port: int = 8000

    # CORS (Security)
    # Never set to ["*"]: both session cookies are sent with credentials
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Staff authentication (session cookie + bearer API tokens)
    auth_secret: SecretStr = SecretStr("")
    auth_issuer: str = "clientdesk"
    auth_cookie_name: str = "clientdesk.session-token"
    auth_cookie_secure: bool = True
    auth_cookie_samesite: Literal["lax", "strict", "none"] = "lax"
    auth_cookie_domain: str = ""
    session_ttl_hours: int = 12
    api_token_prefix: str = "cdk_"

    # Client portal authentication (magic link + portal cookie)
    portal_cookie_name: str = "clientdesk.portal-token"
    portal_session_ttl_hours: int = 24 * 7
    portal_login_token_ttl_minutes: int = 15

    # Project invitations for people without an account
    invitation_ttl_days: int = 7

    # Email
    email_from: str = "noreply@clientdesk.app"
    resend_api_key: SecretStr = SecretStr("")

    # Frontend URL (portal redirect after magic link verification)
    frontend_url: str = "http://localhost:3000"

    # Backend URL (magic links hit the API directly)
    backend_url: str = "http://localhost:8000"

    # Rate Limiting (Security)
    # Format: "count/period" (e.g., "10/minute", "100/hour")
    rate_limit_login: str = "5/15minute"
    rate_limit_magic_link: str = "5/hour"
    rate_limit_enabled: bool = True  # Disable for testing

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def portal_audience(self) -> str:
        """JWT audience for portal session tokens."""
        return f"{self.auth_issuer}-portal"

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate production security requirements.

        Security: Prevents deployment with known insecure defaults.
        Checks:
        - SameSite=None requires Secure flag (browser requirement)
        - CORS must not use wildcard origin (incompatible with credentials)
        - Token lifetimes must be positive
        - Database password must not be the default in production
        - AUTH_SECRET must be set and >= 32 chars in production
        """
        if self.auth_cookie_samesite == "none" and not self.auth_cookie_secure:
            msg = (
                "AUTH_COOKIE_SECURE must be true when AUTH_COOKIE_SAMESITE=none. "
                "Browsers reject SameSite=None cookies without the Secure flag."
            )
            raise ValueError(msg)

        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "Session cookies are sent with credentials, which are "
                "incompatible with wildcard CORS origins."
            )
            raise ValueError(msg)

        for name in (
            "session_ttl_hours",
            "portal_session_ttl_hours",
            "portal_login_token_ttl_minutes",
            "invitation_ttl_days",
        ):
            if getattr(self, name) <= 0:
                msg = f"{name.upper()} must be positive. Got: {getattr(self, name)}"
                raise ValueError(msg)

        if not self.api_token_prefix or "_" in self.api_token_prefix[:-1]:
            msg = (
                "API_TOKEN_PREFIX must be non-empty and may only contain an "
                f"underscore as its final character. Got: {self.api_token_prefix!r}"
            )
            raise ValueError(msg)

        if self.environment == "production":
            if self.database_password == _INSECURE_DEFAULT_PASSWORD:
                msg = (
                    "Cannot use default database password in production. "
                    "Set DATABASE_PASSWORD environment variable to a secure value."
                )
                raise ValueError(msg)

            secret_value = self.auth_secret.get_secret_value()
            if not secret_value:
                msg = (
                    "AUTH_SECRET must be set in production. "
                    'Generate with: python -c "import secrets; '
                    'print(secrets.token_hex(32))"'
                )
                raise ValueError(msg)
            if len(secret_value) < _MIN_AUTH_SECRET_LENGTH:
                msg = (
                    f"AUTH_SECRET must be at least {_MIN_AUTH_SECRET_LENGTH} "
                    "characters for adequate security."
                )
                raise ValueError(msg)

        return self


settings = Settings()

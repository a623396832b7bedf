"""Application settings and configuration.

This module defines all configuration options for the ScooterBooter graph
service. Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="ScooterBooter Graph", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    debug: bool = Field(default=False, alias="DEBUG")

    # Token verification for identities issued by the credential provider
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    admin_emails_raw: str = Field(default="", alias="ADMIN_EMAILS")

    # Backing key-value store
    database_url: str = Field(
        default="sqlite+aiosqlite:///./scooterbooter.db",
        alias="DATABASE_URL",
    )
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    store_timeout_seconds: float = Field(default=3.0, alias="STORE_TIMEOUT_SECONDS")
    store_max_attempts: int = Field(default=2, alias="STORE_MAX_ATTEMPTS")

    # Feed aggregation
    feed_default_limit: int = Field(default=20, alias="FEED_DEFAULT_LIMIT")
    feed_max_limit: int = Field(default=100, alias="FEED_MAX_LIMIT")
    feed_per_user_limit: int = Field(default=50, alias="FEED_PER_USER_LIMIT")
    feed_follow_limit: int = Field(default=500, alias="FEED_FOLLOW_LIMIT")
    feed_fanout_concurrency: int = Field(default=8, alias="FEED_FANOUT_CONCURRENCY")
    comment_preview_size: int = Field(default=3, alias="COMMENT_PREVIEW_SIZE")

    # Identity resolution
    summary_batch_size: int = Field(default=100, alias="SUMMARY_BATCH_SIZE")
    summary_fallback_limit: int = Field(default=5, alias="SUMMARY_FALLBACK_LIMIT")

    # Notification ledger
    notification_scan_limit: int = Field(default=200, alias="NOTIFICATION_SCAN_LIMIT")
    notification_page_size: int = Field(default=50, alias="NOTIFICATION_PAGE_SIZE")

    # Optional subsystems
    notifications_enabled: bool = Field(default=True, alias="NOTIFICATIONS_ENABLED")
    blocking_enabled: bool = Field(default=True, alias="BLOCKING_ENABLED")
    scoops_enabled: bool = Field(default=True, alias="SCOOPS_ENABLED")
    reports_enabled: bool = Field(default=True, alias="REPORTS_ENABLED")
    invites_enabled: bool = Field(default=True, alias="INVITES_ENABLED")
    push_enabled: bool = Field(default=True, alias="PUSH_ENABLED")

    # External collaborators
    aws_region: str = Field(default="us-east-1", alias="AWS_REGION")
    media_bucket: str | None = Field(default=None, alias="MEDIA_BUCKET")
    upload_url_ttl_seconds: int = Field(default=60, alias="UPLOAD_URL_TTL_SECONDS")
    user_pool_id: str | None = Field(default=None, alias="USER_POOL_ID")
    moderation_enabled: bool = Field(default=True, alias="MODERATION_ENABLED")
    moderation_model_id: str = Field(
        default="anthropic.claude-3-haiku-20240307-v1:0",
        alias="MODERATION_MODEL_ID",
    )
    push_endpoint: str = Field(
        default="https://exp.host/--/api/v2/push/send",
        alias="PUSH_ENDPOINT",
    )
    push_timeout_seconds: float = Field(default=5.0, alias="PUSH_TIMEOUT_SECONDS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["https://app.scooterbooter.com", "http://localhost:5173"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def admin_emails(self) -> frozenset[str]:
        """Return the configured administrator emails, lowercased."""
        return frozenset(
            part.strip().lower() for part in self.admin_emails_raw.split(",") if part.strip()
        )

    def is_admin(self, email: str | None) -> bool:
        """Return True when the email belongs to an administrator."""
        return bool(email) and email.lower() in self.admin_emails


settings = Settings()

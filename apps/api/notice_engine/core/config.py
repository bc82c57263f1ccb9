"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str = "sqlite+pysqlite:///./notice_engine.db"

    # Session Token (supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 4

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting (requests per minute)
    RATE_LIMIT_API: int = 60  # General API
    RATE_LIMIT_PUBLIC_INTAKE: int = 10  # Anonymous notice submissions
    REDIS_URL: str = ""  # Empty = in-memory rate limit storage

    # Automated risk assessment (OpenAI-compatible chat completions)
    RISK_ASSESSMENT_API_KEY: str = ""  # Empty = assessment disabled (fail-open default)
    RISK_ASSESSMENT_BASE_URL: str = "https://api.openai.com/v1"
    RISK_ASSESSMENT_MODEL: str = "gpt-4o-mini"
    RISK_ASSESSMENT_TIMEOUT_SECONDS: float = 8.0

    # Fingerprint / content matching provider
    FINGERPRINT_SCAN_URL: str = ""  # Empty = scanning disabled
    FINGERPRINT_API_KEY: str = ""
    FINGERPRINT_AUTO_BLOCK_THRESHOLD: float = 90.0  # Confidence 0-100

    # Content store commands (disable/remove/geo-block/reinstate)
    CONTENT_STORE_URL: str = ""  # Empty = log-only content store
    CONTENT_STORE_API_KEY: str = ""

    # Notification channel (fire-and-forget webhook)
    NOTIFICATION_WEBHOOK_URL: str = ""

    # Outbound HTTP default
    EXTERNAL_HTTP_TIMEOUT_SECONDS: float = 10.0

    # Compliance policy
    REPEAT_INFRINGER_THRESHOLD: int = 3
    STRIKE_EXPIRY_DAYS: int = 365  # 0 = strikes never expire
    COUNTER_NOTICE_BUSINESS_DAYS: int = 10
    TICKET_ID_MAX_ATTEMPTS: int = 5

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets


settings = Settings()

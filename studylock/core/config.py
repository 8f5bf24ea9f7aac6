"""Configuration management for studylock."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from studylock.core.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database Configuration
    sqlite_db_path: str = Field(default="./data/studylock.db", description="Path to the SQLite database file")

    # OpenRouter Configuration
    openrouter_api_key: str | None = Field(default=None, description="OpenRouter API key for LLM access")

    # AI Model Configuration
    model_id: str = Field(
        default="google/gemini-2.5-flash",
        description="Vision-capable model ID for OpenRouter",
    )
    model_provider: str | None = Field(default=None, description="Restrict OpenRouter routing to one provider")
    verification_prompt_version: str = Field(
        default="strict_v2", description="Name of the proof verification rubric template"
    )
    verification_temperature: float = Field(default=0.1, description="Sampling temperature for proof verification")

    # Web Push Configuration
    vapid_public_key: str | None = Field(default=None, description="VAPID public key for web push")
    vapid_private_key: str | None = Field(default=None, description="VAPID private key for web push")
    vapid_subject: str = Field(default="mailto:noreply@deadlinefriend.app", description="VAPID subject claim")

    # Proof Storage Configuration
    storage_url: str = Field(default="http://127.0.0.1:8000/storage/v1", description="Object storage base URL")
    storage_api_key: str | None = Field(default=None, description="Object storage API key")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # HTTP Configuration
    cors_allow_origins: list[str] = Field(default=["*"], description="Origins allowed to call the functions")

    # Scheduler Configuration
    reminder_cron: str = Field(default="*/5 * * * *", description="CRON expression for deadline reminders")

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ConfigurationError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ConfigurationError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # API Configuration
    API_TIMEOUT_SECONDS: int = 30
    IMAGE_FETCH_TIMEOUT_SECONDS: int = 15

    # HTTP Status Codes
    HTTP_OK: int = 200
    HTTP_PAYMENT_REQUIRED: int = 402
    HTTP_GONE: int = 410
    HTTP_TOO_MANY_REQUESTS: int = 429
    HTTP_SERVER_ERROR: int = 500

    # Verification Policy
    CONFIDENCE_FLOOR: int = 60  # Approvals below this confidence are rejected

    # Lock State Machine
    LOCK_POLL_SECONDS: int = 60
    LOCK_LOOKAHEAD_HOURS: int = 24

    # Focus Tracking
    FOCUS_AWAY_WARNING_SECONDS: int = 3
    FOCUS_PENALTY_GRACE_SECONDS: int = 5
    FOCUS_PENALTY_POINTS: int = 5
    FOCUS_RELIABILITY_PENALTY: int = 2
    FOCUS_BREAK_STREAK_LIMIT: int = 3

    # Points & Profile
    APPROVAL_POINTS: int = 10
    DEFAULT_RELIABILITY_SCORE: int = 100

    # Proof Uploads
    MAX_PROOF_BYTES: int = 10 * 1024 * 1024  # 10MB
    PROOF_BUCKET: str = "proofs"

    # Deadline Reminders
    REMINDER_WINDOW_MINUTES: int = 60

    # Pagination Defaults
    DEFAULT_PER_PAGE_LIMIT: int = 100

    # Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent.parent


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()

"""Application settings loaded from environment."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly typed settings for the matching engine."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    pghost: Optional[str] = Field(default=None, alias="PGHOST")
    pgport: int = Field(default=5432, alias="PGPORT")
    pguser: Optional[str] = Field(default=None, alias="PGUSER")
    pgpassword: Optional[str] = Field(default=None, alias="PGPASSWORD")
    pgdatabase: Optional[str] = Field(default=None, alias="PGDATABASE")

    # Embedding provider (Hugging Face inference)
    hf_api_key: Optional[str] = Field(default=None, alias="HF_API_KEY")
    embedding_api_url: str = Field(
        default="https://router.huggingface.co/hf-inference/models/google/vit-base-patch16-224",
        alias="EMBEDDING_API_URL",
    )
    embedding_timeout_seconds: float = Field(default=30.0, alias="EMBEDDING_TIMEOUT_SECONDS")
    embedding_max_attempts: int = Field(default=3, alias="EMBEDDING_MAX_ATTEMPTS")
    embedding_default_wait_seconds: float = Field(
        default=5.0, alias="EMBEDDING_DEFAULT_WAIT_SECONDS"
    )
    embedding_max_workers: int = Field(default=4, alias="EMBEDDING_MAX_WORKERS")

    # Vision verification (Gemini)
    google_api_key: Optional[str] = Field(default=None, alias="GOOGLE_API_KEY")
    gemini_api_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        alias="GEMINI_API_BASE_URL",
    )
    gemini_model_id: str = Field(default="gemini-2.5-flash", alias="GEMINI_MODEL_ID")
    verification_enabled: bool = Field(default=False, alias="VERIFICATION_ENABLED")
    verification_min_score: int = Field(default=30, alias="VERIFICATION_MIN_SCORE")
    verification_max_score: int = Field(default=70, alias="VERIFICATION_MAX_SCORE")
    verification_timeout_seconds: float = Field(
        default=60.0, alias="VERIFICATION_TIMEOUT_SECONDS"
    )

    # Matching policy
    match_min_score: int = Field(default=30, alias="MATCH_MIN_SCORE")
    match_location_radius_km: float = Field(default=10.0, alias="MATCH_LOCATION_RADIUS_KM")
    match_timeframe_days: int = Field(default=14, alias="MATCH_TIMEFRAME_DAYS")
    match_run_timeout_seconds: float = Field(default=30.0, alias="MATCH_RUN_TIMEOUT_SECONDS")

    # Runtime
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    run_env: str = Field(default="local", alias="RUN_ENV")

    def get_database_url(self) -> str:
        """Return a usable database URL or raise."""
        if self.database_url:
            return self.database_url

        if all([self.pghost, self.pguser, self.pgpassword, self.pgdatabase]):
            return (
                "postgresql://"
                f"{self.pguser}:{self.pgpassword}@{self.pghost}:{self.pgport}/"
                f"{self.pgdatabase}"
            )

        raise ValueError("DATABASE_URL or PG* env vars must be set")

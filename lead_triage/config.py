"""
Centralized configuration using Pydantic Settings.

All environment variables are loaded and validated here.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # IMAP
    imap_host: str = ""
    imap_port: int = 993
    imap_user: str = ""
    imap_password: str = ""
    imap_folder: str = "INBOX"
    imap_use_ssl: bool = True
    imap_timeout_seconds: float = 30.0

    # Ingestion schedule
    ingestion_enabled: bool = True
    ingestion_on_startup: bool = True
    ingestion_interval_seconds: int = 60

    # Gemini
    gemini_api_key: str = ""
    triage_model: str = "gemini-2.5-flash"
    extractor_model: str = "gemini-2.5-flash"
    classifier_timeout_seconds: float = 60.0

    # Persistence
    output_file: str = "poc_extracted_data.jsonl"
    customer_db_url: str | None = None  # PostgreSQL; falls back to the record stream

    # Worker loops
    worker_idle_delay_seconds: float = 0.1
    worker_error_backoff_seconds: float = 5.0

    # Logging
    log_level: str = "INFO"
    json_logs: bool = True  # False for colored dev output

    def validate_required(self, require_mail: bool = True) -> None:
        """
        Check that credentials needed at startup are present.

        Raises:
            ValueError: listing every missing or invalid setting
        """
        errors = []

        if require_mail:
            if not self.imap_host:
                errors.append("IMAP_HOST is required")
            if not self.imap_user:
                errors.append("IMAP_USER is required")
            if not self.imap_password:
                errors.append("IMAP_PASSWORD is required")

        if not self.gemini_api_key:
            errors.append("GEMINI_API_KEY is required")

        if self.ingestion_interval_seconds <= 0:
            errors.append("INGESTION_INTERVAL_SECONDS must be positive")

        if errors:
            raise ValueError("Config errors:\n  " + "\n  ".join(errors))


# Global settings instance
settings = Settings()

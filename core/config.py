"""
Centralized configuration management.
All environment variables and settings are defined here.
"""
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="Transaction Batch Importer", alias="APP_NAME")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000)
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")

    # Remote file store
    remote_backend: Literal["sftp", "local"] = Field(default="sftp", alias="REMOTE_BACKEND")
    sftp_host: str = Field(default="0.0.0.0", alias="SFTP_HOST")
    sftp_port: int = Field(default=2020, alias="SFTP_PORT")
    sftp_user: str = Field(default="csv-import", alias="SFTP_USER")
    sftp_key_path: Optional[str] = Field(default=None, alias="SFTP_KEY_PATH")
    sftp_timeout: int = Field(default=30, alias="SFTP_TIMEOUT")
    local_remote_root: str = Field(default="remote", alias="LOCAL_REMOTE_ROOT")
    remote_csv_dir: str = Field(default="/data/files/csv", alias="REMOTE_CSV_DIR")
    remote_quarantine_dir: str = Field(
        default="/data/files/batch_processed", alias="REMOTE_QUARANTINE_DIR"
    )

    # Local working directories
    download_dir: str = Field(default="private/data/download", alias="DOWNLOAD_DIR")
    upload_dir: str = Field(default="private/data/upload", alias="UPLOAD_DIR")
    batch_output_dir: str = Field(default="private/upload/csv/tmp_batch", alias="BATCH_OUTPUT_DIR")

    # Import behaviour
    csv_encoding: str = Field(default="utf-8", alias="CSV_ENCODING")
    import_max_attempts: int = Field(default=5, alias="IMPORT_MAX_ATTEMPTS")
    import_retry_faults: bool = Field(default=False, alias="IMPORT_RETRY_FAULTS")
    stop_on_first_failure: bool = Field(default=False, alias="STOP_ON_FIRST_FAILURE")
    sentinel_policy: Literal["after_download", "after_disposition"] = Field(
        default="after_download", alias="SENTINEL_POLICY"
    )

    # Direct debit batch creditor
    creditor_account: str = Field(default="8888888888", alias="CREDITOR_ACCOUNT")
    creditor_bank_code: str = Field(default="99999999", alias="CREDITOR_BANK_CODE")
    creditor_name: str = Field(default="Credit collection", alias="CREDITOR_NAME")
    batch_file_suffix: str = Field(default="201_import", alias="BATCH_FILE_SUFFIX")

    # Ledger
    database_path: str = Field(default="ledger.db", alias="DATABASE_PATH")

    # Notifications
    sendgrid_api_key: Optional[str] = Field(default=None, alias="SENDGRID_API_KEY")
    notify_from_email: str = Field(default="import@example.com", alias="NOTIFY_FROM_EMAIL")
    notify_to_email: str = Field(default="backend@example.com", alias="NOTIFY_TO_EMAIL")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v_upper

    @field_validator("port", "sftp_port")
    @classmethod
    def validate_port(cls, v):
        """Validate port is in valid range."""
        if not (1 <= v <= 65535):
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("import_max_attempts")
    @classmethod
    def validate_max_attempts(cls, v):
        """Validate retry ceiling."""
        if v < 1:
            raise ValueError("Import max attempts must be at least 1")
        if v > 10:
            raise ValueError("Import max attempts should not exceed 10")
        return v

    @field_validator("creditor_bank_code")
    @classmethod
    def validate_creditor_bank_code(cls, v):
        """Creditor bank code must be an 8 digit BLZ."""
        if not (v.isdigit() and len(v) == 8):
            raise ValueError("Creditor bank code must be exactly 8 digits")
        return v

    def ensure_directories(self) -> None:
        """Ensure required local working directories exist."""
        for directory in (self.download_dir, self.upload_dir, self.batch_output_dir):
            Path(directory).mkdir(parents=True, exist_ok=True)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None

"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "placement_portal"

    # JWT Auth (tokens are not refreshable; clients log in again after expiry)
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60

    # SMTP mailer
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = ""
    smtp_use_tls: bool = True
    smtp_timeout_seconds: int = 10

    # Registration / verification
    institution_email_domain: str = "@nsec.ac.in"
    otp_expire_minutes: int = 10
    reset_token_expire_minutes: int = 60

    # Frontend (used to build password reset links)
    frontend_url: str = "http://localhost:3000"

    # App
    log_level: str = "INFO"

    @property
    def smtp_sender(self) -> str:
        """Envelope sender, falling back to the SMTP login."""
        return self.smtp_from or self.smtp_user

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()

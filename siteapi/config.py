"""Application configuration via environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "https://bahoju.com",
    ]

    # Azure Blob Storage
    azure_storage_account: str = "bahojustorage"
    azure_content_container: str = "content"

    # Azure User-Assigned Managed Identity
    managed_identity_client_id: str = ""

    # Admin API key (protects all write and admin-only endpoints)
    admin_api_key: str = ""
    admin_name: str = "Bahoju Admin"

    # SMTP (contact notifications, newsletter)
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_timeout: float = 30.0
    email_from: str = "Bahoju Tech <no-reply@bahoju.com>"
    admin_email: str = "info@bahoju.com"
    site_url: str = "https://bahoju.com"

    # Public form rate limiting (per client IP)
    form_rate_limit_max: int = 5
    form_rate_limit_window: int = 3600

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()

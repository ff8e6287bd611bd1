"""
Configuration management for the B2B network API.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Database
    database_url: str = ""

    # Auth
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_minutes: int = 60
    refresh_token_days: int = 30  # with remember_me
    short_refresh_token_days: int = 7
    account_deletion_grace_days: int = 30

    # HTTP
    cors_origins: str = "http://localhost:3000"

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    # Object storage (S3 or S3-compatible)
    aws_region: str = "us-east-1"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    s3_bucket_name: str = ""
    s3_endpoint_url: str = ""
    s3_public_base_url: str = ""
    max_upload_mb: int = 5

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env vars

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


settings = Settings()

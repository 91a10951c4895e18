"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables, then a local .env
file, then the defaults declared here. Environment always wins.

Storage settings are not validated by Pydantic itself: a service with
missing credentials still starts, reports CONFIGURATION_ERROR on every
storage call and lists the missing fields in its logs. That keeps the
health endpoint reachable while the deployment is being fixed.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Required storage settings: (field name, human-readable label, env var)
_REQUIRED_STORAGE_FIELDS = (
    ("aws_s3_access_key", "AWS access key ID", "AWS_S3_ACCESS_KEY"),
    ("aws_s3_secret_key", "AWS secret access key", "AWS_S3_SECRET_KEY"),
    ("aws_s3_bucket_name", "S3 bucket name", "AWS_S3_BUCKET_NAME"),
    ("aws_s3_region", "AWS region", "AWS_S3_REGION"),
)
_CREDENTIAL_FIELDS = ("aws_s3_access_key", "aws_s3_secret_key")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Settings are frozen once loaded. The process reads them a single
    time at startup and shares them read-only across requests.
    """

    # API Configuration
    api_title: str = "S3 Upload Service"
    api_version: str = "1.0.0"
    api_prefix: str = Field(
        default="/api/s3",
        description="Path prefix shared by every storage endpoint"
    )

    # S3 Storage Configuration
    aws_s3_access_key: str = Field(
        default="",
        description="AWS access key ID"
    )
    aws_s3_secret_key: str = Field(
        default="",
        description="AWS secret access key"
    )
    aws_s3_region: str = Field(
        default="us-east-1",
        description="AWS region of the bucket"
    )
    aws_s3_bucket_name: str = Field(
        default="",
        description="Bucket that receives uploaded files"
    )
    aws_s3_endpoint_url: Optional[str] = Field(
        default=None,
        description="Custom endpoint for S3-compatible storage (MinIO, R2, LocalStack)"
    )
    aws_s3_path_style_access: bool = Field(
        default=False,
        description="Put the bucket in the URL path instead of the hostname"
    )
    aws_s3_connection_timeout_ms: int = Field(
        default=30000,
        gt=0,
        description="Connection timeout for storage calls, in milliseconds"
    )
    aws_s3_read_timeout_ms: int = Field(
        default=60000,
        gt=0,
        description="Read timeout for storage calls, in milliseconds"
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use an in-memory object store instead of S3. Enables local dev without credentials."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def custom_endpoint(self) -> Optional[str]:
        """Endpoint override with blanks treated as unset."""
        if self.aws_s3_endpoint_url and self.aws_s3_endpoint_url.strip():
            return self.aws_s3_endpoint_url.strip()
        return None

    def missing_fields(self) -> list[str]:
        """
        List the required storage settings that are blank.

        Each entry names the setting and the environment variable that
        provides it, so the list can go straight into a log line or an
        error message. Credentials are not required in mock mode.
        """
        missing = []
        for field_name, label, env_var in _REQUIRED_STORAGE_FIELDS:
            if self.storage_mock_mode and field_name in _CREDENTIAL_FIELDS:
                continue
            value = getattr(self, field_name)
            if not value or not value.strip():
                missing.append(f"{label} ({env_var})")
        return missing

    def is_valid(self) -> bool:
        """True when every required storage setting is present."""
        return not self.missing_fields()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once per process. For tests, call
    get_settings.cache_clear() to reset or build Settings directly.
    """
    return Settings()

"""Configuration models for strapi-transfer.

Settings can be passed explicitly or loaded from ``STRAPI_*`` environment
variables (nested fields use ``__``, e.g. ``STRAPI_RETRY__MAX_ATTEMPTS``).
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..exceptions import ConfigurationError


class RetryConfig(BaseModel):
    """Retry policy for store requests and media downloads."""

    max_attempts: int = Field(3, ge=1, le=10, description="Total attempts including the first")
    initial_wait: float = Field(0.5, ge=0.0, le=60.0, description="Initial backoff in seconds")
    max_wait: float = Field(10.0, ge=0.0, le=300.0, description="Maximum backoff in seconds")
    exponential_base: float = Field(2.0, ge=1.0, le=10.0, description="Backoff multiplier")


class TransferConfig(BaseSettings):
    """Connection and transfer settings.

    Example:
        >>> config = TransferConfig(
        ...     base_url="http://localhost:1337",
        ...     api_token="token",
        ...     server_public_hostname="https://cms.example.com",
        ... )
    """

    model_config = SettingsConfigDict(
        env_prefix="STRAPI_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    base_url: str = Field(..., description="Strapi instance base URL")
    api_token: SecretStr = Field(..., description="API token with content and upload access")
    server_public_hostname: str | None = Field(
        None, description="Public origin prepended to relative media URLs on export"
    )
    timeout: float = Field(30.0, gt=0, description="Store request timeout in seconds")
    media_timeout: float = Field(30.0, gt=0, description="Media download timeout in seconds")
    max_connections: int = Field(10, ge=1, le=200)
    verify_ssl: bool = True
    page_size: int = Field(100, ge=1, le=1000, description="Page size for collection reads")
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @field_validator("base_url", "server_public_hostname")
    @classmethod
    def _strip_trailing_slash(cls, value: str | None) -> str | None:
        return value.rstrip("/") if value else value

    def get_base_url(self) -> str:
        return self.base_url

    def get_api_token(self) -> str:
        return self.api_token.get_secret_value()

    def get_public_hostname(self) -> str:
        """Origin used to absolutize relative media URLs."""
        return self.server_public_hostname or self.base_url


class ConfigFactory:
    """Build TransferConfig instances from different sources."""

    @staticmethod
    def create(**kwargs: Any) -> TransferConfig:
        """Create config from keyword arguments.

        Raises:
            ConfigurationError: If the arguments are invalid
        """
        return ConfigFactory.from_dict(kwargs)

    @staticmethod
    def from_dict(values: dict[str, Any]) -> TransferConfig:
        """Create config from a plain dict.

        Raises:
            ConfigurationError: If the values are invalid
        """
        try:
            return TransferConfig(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @staticmethod
    def from_environment_only() -> TransferConfig:
        """Create config from ``STRAPI_*`` environment variables.

        Raises:
            ConfigurationError: If required variables are missing
        """
        try:
            return TransferConfig()  # type: ignore[call-arg]
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @staticmethod
    def from_env_file(env_file: str | Path, required: bool = True) -> TransferConfig:
        """Create config from a .env file, with environment variables as fallback.

        Args:
            env_file: Path to the .env file
            required: Raise when the file does not exist

        Raises:
            ConfigurationError: If the file is missing (and required) or invalid
        """
        path = Path(env_file)
        if not path.exists():
            if required:
                raise ConfigurationError(f".env file not found: {path}")
            return ConfigFactory.from_environment_only()

        try:
            return TransferConfig(_env_file=path)  # type: ignore[call-arg]
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

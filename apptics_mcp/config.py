"""Configuration management using Pydantic Settings."""

from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError

DEFAULT_APPTICS_URI = "https://apptics.zoho.com/"
DEFAULT_ACCOUNTS_URI = "https://accounts.zoho.com/"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Zoho OAuth Configuration
    apptics_client_id: str = Field(
        ...,
        min_length=1,
        description="Zoho OAuth client ID"
    )
    apptics_client_secret: str = Field(
        ...,
        min_length=1,
        description="Zoho OAuth client secret"
    )
    apptics_refresh_token: str = Field(
        ...,
        min_length=1,
        description="Zoho OAuth refresh token"
    )
    apptics_access_token: Optional[str] = Field(
        default=None,
        description="Optional pre-issued access token, skips the first refresh"
    )

    # Endpoints
    apptics_server_uri: str = Field(
        default=DEFAULT_APPTICS_URI,
        description="Apptics API base URI"
    )
    apptics_accounts_uri: str = Field(
        default=DEFAULT_ACCOUNTS_URI,
        description="Zoho accounts base URI used for token exchange"
    )

    # Transport
    apptics_http_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="HTTP timeout in seconds (unset means no timeout)"
    )

    log_level: str = Field(default="INFO")

    @field_validator("apptics_server_uri", "apptics_accounts_uri")
    @classmethod
    def _normalize_base_uri(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("must be an absolute http(s) URL")
        if not value.endswith("/"):
            value += "/"
        return value

    @field_validator("apptics_access_token")
    @classmethod
    def _empty_token_is_absent(cls, value: Optional[str]) -> Optional[str]:
        return value or None


def load_settings(**overrides) -> Settings:
    """Load settings from the environment.

    Raises:
        ConfigError: If a required value is missing or invalid.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in err["loc"]).upper() or "settings"
            for err in e.errors()
        )
        raise ConfigError(f"Invalid Apptics configuration: {fields}") from e

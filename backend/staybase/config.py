"""Application configuration using pydantic-settings."""

import warnings
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Sentinel value that indicates an unconfigured credential
_UNCONFIGURED_API_KEY = "CHANGE_ME"

# Find .env file: check backend dir first, then project root
_BACKEND_DIR = Path(__file__).parent.parent
_PROJECT_ROOT = _BACKEND_DIR.parent
_ENV_FILE = _BACKEND_DIR / ".env" if (_BACKEND_DIR / ".env").exists() else _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    IMPORTANT: The Airtable API key must be explicitly configured via the
    AIRTABLE_API_KEY environment variable or .env file. The default uses the
    'CHANGE_ME' sentinel to make misconfiguration obvious.
    """

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Airtable
    airtable_api_key: str = _UNCONFIGURED_API_KEY
    airtable_base_url: str = "https://api.airtable.com/v0"
    airtable_timeout: float = 10.0

    # Base ID of the built-in default property
    airtable_property_base_id: str = "appZjxFyoaNUFlwCT"

    # Optional JSON file with property definitions (replaces the default)
    properties_file: str = ""

    # Request limits
    max_records: int = Field(default=50, gt=0)
    default_range_days: int = Field(default=31, gt=0)

    # Authentication (empty disables the bearer token check)
    mcp_auth_token: str = ""

    # Application
    cors_origins: str = "http://localhost:3000"
    debug: bool = False

    def model_post_init(self, __context) -> None:
        """Warn about unconfigured credentials."""
        if self.airtable_api_key == _UNCONFIGURED_API_KEY:
            warnings.warn(
                "AIRTABLE_API_KEY not configured! Set AIRTABLE_API_KEY environment variable.",
                UserWarning,
                stacklevel=2,
            )
        if not self.mcp_auth_token:
            warnings.warn(
                "MCP_AUTH_TOKEN not configured! API routes are served without authentication.",
                UserWarning,
                stacklevel=2,
            )


settings = Settings()

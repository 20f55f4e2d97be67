"""CLI configuration using pydantic-settings.

Values come from GCLIENTAUTH_* environment variables or a local .env file
and provide the defaults for command-line options. The library API itself
takes explicit arguments and never reads the environment.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    Environment variables:
    - GCLIENTAUTH_CREDENTIALS_PATH: client credential JSON
    - GCLIENTAUTH_TOKEN_CACHE_PATH: token cache file
    - GCLIENTAUTH_SCOPES: comma-separated scopes
    - GCLIENTAUTH_BROWSER: open the consent URL automatically
    - GCLIENTAUTH_PORT: local redirect listener port (web credentials)
    """

    model_config = SettingsConfigDict(
        env_prefix="GCLIENTAUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    credentials_path: Path = Path("client_secret.json")
    token_cache_path: Path = Path("accesstoken.json")
    scopes: str = ""
    browser: bool = False
    port: str = "8080"

    # None waits forever for the redirect
    callback_timeout: float | None = None
    exchange_timeout: float | None = 30.0

    log_level: str = "WARNING"
    json_logs: bool = False

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: str) -> str:
        """Ensure port is a number in the TCP range."""
        if not v.isdigit() or not 0 <= int(v) <= 65535:
            raise ValueError(f"port must be a number between 0 and 65535, got {v!r}")
        return v

    def get_scopes(self) -> list[str]:
        """Get list of configured scopes."""
        return [s.strip() for s in self.scopes.split(",") if s.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

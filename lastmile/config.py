from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

__version__ = "1.0.0"

DEFAULT_API_URL = "https://api.lastmile.dev"
DEFAULT_TIMEOUT_MS = 30000


class LastMileConfig(BaseSettings):
    """SDK configuration. Reads LASTMILE_* environment variables; explicit arguments win."""

    api_key: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    debug: bool = False
    timeout: int = DEFAULT_TIMEOUT_MS  # milliseconds

    model_config = SettingsConfigDict(
        env_prefix="LASTMILE_",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000

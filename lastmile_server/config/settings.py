from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    # Deployment simulation
    platform_domain: str = "lastmile.app"
    stage_delay_seconds: float = 2.0  # wait before each stage transition
    default_framework: str = "auto-detect"

    # Seeded API key
    demo_api_key: str = "demo_api_key_12345"
    demo_account_name: str = "Demo Account"
    demo_account_tier: str = "free"
    demo_rate_limit: int = 100  # requests per minute for the demo key

    # App
    app_name: str = "lastmile-api"
    version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: str = "*"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()

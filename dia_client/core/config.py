from typing import Optional
from pydantic import Field, validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # API Settings
    API_URL: str = "http://localhost:8000"
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "dia-client"
    VERSION: str = "1.0.0"

    # Authentication
    API_TOKEN: Optional[str] = Field(
        default=None,
        description="Static bearer token used when no token provider is given"
    )

    # HTTP
    HTTP_TIMEOUT: float = 30.0  # seconds

    # Run tracking
    RUN_POLL_INTERVAL: float = 2.0  # seconds between status checks
    RUN_POLL_TIMEOUT: float = 300.0  # give up waiting for a run after this many seconds

    # Environment
    ENV: str = "development"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s %(request_id)s [%(levelname)s] %(name)s: %(message)s"
    LOG_FILE: Optional[str] = None
    LOG_MAX_BYTES: int = 10485760  # 10MB
    LOG_BACKUP_COUNT: int = 5

    @validator("API_URL")
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @validator("LOG_LEVEL")
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def api_base_url(self) -> str:
        return f"{self.API_URL}{self.API_V1_STR}"

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_prefix="DIA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()

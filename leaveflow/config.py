"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Remote backend; leave API_URL empty to run on the embedded store
    API_URL: str = ""
    API_EMAIL: str = ""
    API_PASSWORD: str = ""
    HTTP_TIMEOUT_SECONDS: float = 15.0

    # Embedded store
    DATABASE_URL: str = "sqlite+aiosqlite:///./leaveflow.db"

    # Cache
    REFRESH_INTERVAL_SECONDS: float = 10.0

    # App
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "info"

    @property
    def is_remote(self) -> bool:
        """True when a remote backend URL is configured."""
        return bool(self.API_URL.strip())

    @property
    def api_base_url(self) -> str:
        return self.API_URL.strip().rstrip("/")


settings = Settings()

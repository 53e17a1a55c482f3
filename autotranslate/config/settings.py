from typing import Dict, List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    # Database
    DB_USER: str = Field("autotranslate")
    DB_PASSWORD: str = Field("autotranslate")
    DB_NAME: str = Field("autotranslate")
    DB_HOST: str = Field("postgres")
    DB_PORT: int = Field(5432)
    DATABASE_URL: Optional[str] = Field(None)

    # Redis
    REDIS_HOST: str = Field("redis")
    REDIS_PORT: int = Field(6379)
    REDIS_PASSWORD: str | None = Field(None)
    REDIS_DB: int = Field(0)

    # App
    API_HOST: str = Field("0.0.0.0")
    API_PORT: int = Field(8000)
    DEBUG: bool = Field(False)

    # Auto-translation
    AUTOTRANSLATE_ENABLED: bool = Field(False)
    AUTOTRANSLATE_SERVICE_PROVIDER: str = Field("")
    # "package.module:attribute" paths registered at startup
    AUTOTRANSLATE_PROVIDERS: List[str] = Field(default_factory=list)
    # Provider-specific values (API keys etc.) keyed by the provider's setting key
    AUTOTRANSLATE_PROVIDER_SETTINGS: Dict[str, str] = Field(default_factory=dict)

    # Markdown
    MARKDOWN_SUPPORT_SCHEMES_FOR_LINK: str = Field("http,https")

    # Propagate runtime setting changes between processes over redis
    SETTINGS_SYNC_ENABLED: bool = Field(False)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_file_encoding="utf-8"
    )

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    def runtime_values(self) -> Dict[str, object]:
        """Values that seed the watchable runtime settings store."""
        values: Dict[str, object] = {
            "AUTOTRANSLATE_ENABLED": self.AUTOTRANSLATE_ENABLED,
            "AUTOTRANSLATE_SERVICE_PROVIDER": self.AUTOTRANSLATE_SERVICE_PROVIDER,
            "MARKDOWN_SUPPORT_SCHEMES_FOR_LINK": self.MARKDOWN_SUPPORT_SCHEMES_FOR_LINK,
        }
        values.update(self.AUTOTRANSLATE_PROVIDER_SETTINGS)
        return values


settings = Settings()

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = BASE_DIR / ".env"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    PROJECT_NAME: str = "Catalog API"
    API_PREFIX: str = ""

    DATABASE_URL: str = Field(default="sqlite:///" + str(BASE_DIR / "catalog.db"))
    AUTO_CREATE_SCHEMA: bool = Field(default=True)

    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE_PATH: Optional[str] = Field(default=None)
    ENVIRONMENT: str = Field(default="development")

    CORS_ORIGINS: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"])

    MEDIA_ROOT: str = Field(default=str(BASE_DIR / "storage"))
    MEDIA_URL_PREFIX: str = Field(default="/storage")
    MAX_IMAGE_SIZE_KB: int = Field(default=2048, ge=1)

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str):
            v = v.strip().strip('"\'')
            if v == "*":
                return ["*"]
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("MEDIA_URL_PREFIX")
    @classmethod
    def normalize_media_prefix(cls, v: str) -> str:
        return "/" + v.strip("/")


load_dotenv(ENV_FILE)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()

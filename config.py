# config.py
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env next to this file, so settings load the same from any working directory
env_path = Path(__file__).parent / ".env"


class DatabaseSettings(BaseSettings):
    """DATABASE_URL, DATABASE_NAME, DATABASE_TIMEOUT_MS."""
    model_config = SettingsConfigDict(env_prefix="DATABASE_", env_file=str(env_path), extra="ignore")

    url: str = "mongodb://localhost:27017"
    name: str = "ecommerceDB"
    timeout_ms: int = Field(5000, gt=0)


class ServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=str(env_path), extra="ignore")

    LOG_LEVEL: str = "INFO"
    PORT: int = 8000

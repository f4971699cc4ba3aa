from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_name: str = "Stockroom"
    debug: bool = False

    # Database
    database_url: str = "sqlite:///./stockroom.db"
    database_echo: bool = False

    # Logging
    log_level: str = "INFO"
    log_dir: str = "./logs"
    file_logging: bool = False

    # RBAC
    role_catalog_path: Optional[str] = None  # defaults to the bundled catalog

    model_config = SettingsConfigDict(
        env_prefix="STOCKROOM_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()

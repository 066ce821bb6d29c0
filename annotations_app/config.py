from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from functools import lru_cache
import os

class Settings(BaseSettings):
    """Application settings loaded from .env.annotations (or custom env file)"""

    # Allow overriding env_file via ANNOTATIONS_ENV_FILE environment variable
    model_config = SettingsConfigDict(  # type: ignore[misc]
        env_file=os.environ.get('ANNOTATIONS_ENV_FILE', '.env.annotations'),
        env_file_encoding='utf-8',
        extra='ignore'
    )

    # Paths
    DATA_ROOT: str = "data"  # Parent directory containing the db/ subdirectory

    # URLs used when building document links
    SERVER_ROOT: str = "www.example.org"
    ASSET_ROOT: str = "https://assets.example.org"

    # Placeholders
    UNTITLED_TITLE: str = "Untitled Annotation"
    UNATTRIBUTED_NAME: str = "Unattributed"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_CATEGORIES: str = ""

    @property
    def data_root(self) -> Path:
        return Path(self.DATA_ROOT)

    @property
    def db_dir(self) -> Path:
        """Database directory - always data_root/db"""
        return self.data_root / "db"

    @property
    def db_path(self) -> Path:
        return self.db_dir / "annotations.db"

    @property
    def server_root(self) -> str:
        return self.SERVER_ROOT.rstrip('/')

    @property
    def asset_root(self) -> str:
        return self.ASSET_ROOT.rstrip('/')

    @property
    def log_level(self) -> str:
        return self.LOG_LEVEL.upper()

    @property
    def log_categories(self) -> list[str]:
        if not self.LOG_CATEGORIES:
            return []
        return [cat.strip() for cat in self.LOG_CATEGORIES.split(',')]

@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()

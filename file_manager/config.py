import logging
import os
from pydantic_settings import BaseSettings
from functools import lru_cache

logger = logging.getLogger("filemanager.config")

# Fixed request timeout for every call to the file service, in seconds.
REQUEST_TIMEOUT = 30.0


class Settings(BaseSettings):
    API_BASE_URL: str = "http://localhost:3001"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env")
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def api_root(self) -> str:
        """Root of the files API, e.g. ``http://localhost:3001/api``."""
        return f"{self.API_BASE_URL.rstrip('/')}/api"


@lru_cache()
def get_settings() -> Settings:
    logger.debug("Loading settings from environment / .env")
    settings = Settings()
    logger.debug(
        "Settings loaded — API_BASE_URL=%s, LOG_LEVEL=%s",
        settings.API_BASE_URL,
        settings.LOG_LEVEL,
    )
    return settings

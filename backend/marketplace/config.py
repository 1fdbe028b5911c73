import os
import tempfile
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./marketplace.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    FRONTEND_ORIGINS: List[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"
    LOCK_TIMEOUT_SECONDS: float = 10.0
    LOCKS_DIR: str = os.path.join(tempfile.gettempdir(), "marketplace_locks")
    DEFAULT_PRODUCT_DESCRIPTION: str = "No product description"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()

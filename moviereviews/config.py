from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str
    DATABASE_NAME: str = "movies"
    SECRET_KEY: str
    PORT: int = 8080

    TOKEN_EXPIRE_IN_MINUTES: int = 60
    # Reject reviews for movies that do not exist
    STRICT_REFERENTIAL_CHECK: bool = True
    REQUIRE_AUTH: bool = True

    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    class Config:
        env_file = ".env"  # Load environment variables from .env file


@lru_cache()
def get_settings() -> Settings:
    return Settings()

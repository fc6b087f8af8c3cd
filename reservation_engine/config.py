"""
Application settings
Read from environment variables (and an optional .env file)
"""
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Room Reservation Engine"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./reservations.db"
    # Seconds a SQLite writer waits for the database lock before giving up
    SQLITE_BUSY_TIMEOUT: float = 15.0

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


# Global settings instance
settings = Settings()

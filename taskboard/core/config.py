from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

class Settings(BaseSettings):
    # Database settings
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./taskboard.db")
    SQL_ECHO: bool = False

    # Project settings
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "Taskboard API")
    API_PREFIX: str = "/api"

    # Default page sizes for list endpoints (0 = no limit)
    USERS_DEFAULT_LIMIT: int = 0
    TASKS_DEFAULT_LIMIT: int = 100

    # Server bind address used by `python -m taskboard`
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: Optional[str] = None

    # Comma-separated list of allowed frontend origins
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    # Unrelated variables in .env are ignored instead of rejected
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()

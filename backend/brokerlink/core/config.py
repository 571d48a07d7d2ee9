from pydantic_settings import BaseSettings
from functools import lru_cache
import os

DEFAULT_SECRET_KEY = "your-super-secret-key-change-in-production"


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Database
    DATABASE_URL: str = "sqlite:///./brokerlink.db"

    # Security
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7
    FERNET_KEY: str = ""

    # Upstox OAuth
    UPSTOX_AUTH_DIALOG_URL: str = "https://api.upstox.com/v2/login/authorization/dialog"
    UPSTOX_TOKEN_URL: str = "https://api.upstox.com/v2/login/authorization/token"
    UPSTOX_HTTP_TIMEOUT: float = 20.0
    OAUTH_STATE_TTL_SECONDS: int = 300

    # Upstox sessions end at a fixed wall-clock time, not after a TTL
    MARKET_TIMEZONE: str = "Asia/Kolkata"
    UPSTOX_TOKEN_RESET_TIME: str = "03:30"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/brokerlink.log"

    # CORS
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    class Config:
        env_file = os.environ.get("ENV_FILE", ".env")
        if env_file == "env.qa":
            env_file = ".env.qa"
        elif env_file == "env.local":
            env_file = ".env.local"
        case_sensitive = True
        extra = "ignore"  # Allow extra fields in .env file

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]


@lru_cache()
def get_settings():
    return Settings()

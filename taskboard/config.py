from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

DEV_SECRET_KEY = "dev-secret-key-min-32-characters-long-for-jwt"


class Settings(BaseSettings):
    PROJECT_NAME: str = "Taskboard API"
    PROJECT_VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"

    # Security
    SECRET_KEY: str = DEV_SECRET_KEY
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    BCRYPT_ROUNDS: int = 10

    # Session cookie
    COOKIE_NAME: str = "token"

    # Storage: "file" keeps one JSON document per collection under DATA_DIR,
    # "database" keeps them in a key/value table behind DATABASE_URL.
    STORAGE_BACKEND: str = "file"
    DATA_DIR: str = "./data"
    DATABASE_URL: str = "sqlite+aiosqlite:///./taskboard.db"
    DATABASE_ECHO: bool = False

    # Route gate
    PROTECTED_ROUTES: list[str] = ["/dashboard", "/projects", "/tasks"]
    AUTH_ROUTES: list[str] = ["/login", "/signup"]
    LOGIN_PATH: str = "/login"
    LANDING_PATH: str = "/dashboard"
    STATIC_PREFIX: str = "/static"

    # 404 hides whether another user's entity exists, 403 admits it
    OWNERSHIP_MISMATCH_STATUS: int = 404

    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Logging
    LOG_LEVEL: str = "INFO"
    ERROR_LOG_FILE: str | None = "error.log"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        url = v.strip()
        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+asyncpg://", 1)
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("sqlite:///"):
            return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        return url

    @field_validator("STORAGE_BACKEND")
    @classmethod
    def check_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("file", "database"):
            raise ValueError("STORAGE_BACKEND must be 'file' or 'database'")
        return v

    @field_validator("OWNERSHIP_MISMATCH_STATUS")
    @classmethod
    def check_mismatch_status(cls, v: int) -> int:
        if v not in (403, 404):
            raise ValueError("OWNERSHIP_MISMATCH_STATUS must be 403 or 404")
        return v

    @property
    def data_path(self) -> Path:
        """DATA_DIR resolved once, so every worker process shares one location."""
        return Path(self.DATA_DIR).expanduser().resolve()

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def token_max_age(self) -> int:
        """Cookie Max-Age in seconds, matching the token lifetime."""
        return self.ACCESS_TOKEN_EXPIRE_MINUTES * 60


@lru_cache()
def get_settings() -> Settings:
    return Settings()

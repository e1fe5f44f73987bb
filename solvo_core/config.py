# solvo_core/config.py
from pydantic_settings import BaseSettings
from typing import Optional
from pydantic import Field

class Settings(BaseSettings):
    SECRET_KEY: str = Field("change-me-in-production")
    ALGORITHM: str = Field("HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(30)
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(7)

    DATABASE_URL: Optional[str] = None
    SQLALCHEMY_DATABASE_URL: Optional[str] = None
    SQL_ECHO: bool = Field(False)

    LOG_LEVEL: str = Field("INFO")

    # Storage keys look like "<prefix>-<collection>-<user_id>"
    STORAGE_PREFIX: str = Field("solvo-core")
    RANK_HISTORY_LIMIT: int = Field(10)

    # Serverless AI endpoint. Missing base URL → AI features report "not configured".
    AI_API_BASE_URL: Optional[str] = None
    AI_API_KEY: Optional[str] = None
    AI_TIMEOUT_SECONDS: float = Field(30.0)

    model_config = {
        "env_file": ".env",
        "extra": "allow",
    }

    @property
    def effective_database_url(self) -> str:
        url = self.SQLALCHEMY_DATABASE_URL or self.DATABASE_URL or "sqlite+aiosqlite:///./solvo_core.db"
        # Ensure asyncpg is used
        if url.startswith("postgresql://") and "+asyncpg" not in url:
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @property
    def ai_configured(self) -> bool:
        return bool(self.AI_API_BASE_URL)

settings = Settings()

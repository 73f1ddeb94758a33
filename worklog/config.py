# worklog/config.py
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

    # Public base URL used to build share links. Empty → derived from the request.
    SITE_URL: Optional[str] = None

    # Product rules
    TODO_ACTIVE_LIMIT: int = Field(10)
    RECENT_COMPLETED_LIMIT: int = Field(10)
    WEEKLY_REPORT_WINDOW: int = Field(12)
    MONTHLY_REPORT_WINDOW: int = Field(24)

    WORK_BREAKDOWN_CACHE_SECONDS: int = Field(60)
    SHARE_BCRYPT_ROUNDS: int = Field(10)

    model_config = {
        "env_file": ".env",
        "extra": "allow",
    }

    @property
    def effective_database_url(self) -> str:
        return self.SQLALCHEMY_DATABASE_URL or self.DATABASE_URL or "sqlite+aiosqlite:///./worklog.db"

settings = Settings()

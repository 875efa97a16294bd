from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Session generation defaults when the class record does not say otherwise
    default_max_sessions: int = Field(50, alias="DEFAULT_MAX_SESSIONS")
    session_horizon_days: int = Field(90, alias="SESSION_HORIZON_DAYS")

    # Most recent attendance summary ids remembered per student
    processed_ledger_size: int = Field(100, alias="PROCESSED_LEDGER_SIZE")

    center_name: Optional[str] = Field(None, alias="CENTER_NAME")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()

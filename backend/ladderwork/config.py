import os
from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: Optional[str] = Field(None, alias="LADDERWORK_DATABASE_URL")
    database_pool_size: int = Field(10, alias="LADDERWORK_DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(10, alias="LADDERWORK_DATABASE_MAX_OVERFLOW")
    database_echo: bool = Field(False, alias="LADDERWORK_DATABASE_ECHO")
    auto_create_schema: bool = Field(False, alias="LADDERWORK_AUTO_CREATE_SCHEMA")
    timezone: str = Field("UTC", alias="LADDERWORK_TIMEZONE")
    promotion_total_wins: int = Field(5, ge=1, alias="LADDERWORK_PROMOTION_TOTAL_WINS")
    promotion_wins_in_window: int = Field(3, ge=1, alias="LADDERWORK_PROMOTION_WINS_IN_WINDOW")
    promotion_window_days: int = Field(7, ge=0, alias="LADDERWORK_PROMOTION_WINDOW_DAYS")
    level_up_streak: int = Field(3, ge=1, alias="LADDERWORK_LEVEL_UP_STREAK")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[arg-type]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid backend configuration: {exc}") from exc

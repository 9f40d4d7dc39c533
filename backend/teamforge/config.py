import os
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: Optional[str] = Field(None, alias="TEAMFORGE_DATABASE_URL")
    database_pool_size: int = Field(10, alias="TEAMFORGE_DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(10, alias="TEAMFORGE_DATABASE_MAX_OVERFLOW")
    database_echo: bool = Field(False, alias="TEAMFORGE_DATABASE_ECHO")
    admin_password: Optional[str] = Field(None, alias="TEAMFORGE_ADMIN_PASSWORD")
    session_secret: Optional[str] = Field(None, alias="TEAMFORGE_SESSION_SECRET")
    admin_session_ttl_seconds: int = Field(60 * 60 * 24, alias="TEAMFORGE_ADMIN_SESSION_TTL", gt=0)
    exam_question_limit: int = Field(30, alias="TEAMFORGE_EXAM_QUESTION_LIMIT", gt=0)
    default_team_size: int = Field(4, alias="TEAMFORGE_DEFAULT_TEAM_SIZE", gt=0)
    default_matching_mode: Literal["rank", "balanced"] = Field(
        "balanced",
        alias="TEAMFORGE_DEFAULT_MATCHING_MODE",
    )
    report_strength_threshold: float = Field(0.7, alias="TEAMFORGE_REPORT_STRENGTH_THRESHOLD", ge=0.0, le=1.0)
    report_weakness_threshold: float = Field(0.4, alias="TEAMFORGE_REPORT_WEAKNESS_THRESHOLD", ge=0.0, le=1.0)

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

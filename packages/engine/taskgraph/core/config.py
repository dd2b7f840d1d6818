"""
Engine configuration loaded from environment variables.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from taskgraph_shared.schemas.common import MAX_DEPENDENCIES_PER_TASK


class Settings(BaseSettings):
    """Task dependency engine configuration."""

    model_config = SettingsConfigDict(env_prefix="TASKGRAPH_", env_file=".env", extra="ignore")

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/taskgraph.db"

    # Graph limits
    max_dependencies_per_task: int = Field(default=MAX_DEPENDENCIES_PER_TASK, ge=1)

    # Logging
    log_level: str = "info"
    log_format: Literal["json", "text"] = "text"

    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()

"""Configuration management for Jira MCP."""

import os
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env" if os.getenv("ENVIRONMENT") != "test" else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_name: str = "Jira MCP"
    app_version: str = "0.1.0"
    debug: bool = Field(default=False)
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Process-wide credential defaults, used when a tool call omits them
    jira_host: Optional[str] = Field(default=None)
    jira_login_name: Optional[str] = Field(default=None)
    jira_login_token: Optional[str] = Field(default=None)

    # Upstream
    jira_request_timeout: float = Field(default=30.0, gt=0)

    # Aggregation limits
    search_max_results: int = Field(default=50, ge=1, le=100)
    unfiltered_board_limit: int = Field(default=5, ge=1)

    # Members hidden from "available members" listings: the actor type must
    # match and the display name must contain one of the markers.
    system_actor_types: List[str] = Field(
        default_factory=lambda: ["atlassian-user-role-actor"]
    )
    system_actor_name_markers: List[str] = Field(
        default_factory=lambda: ["for Jira", "Atlassian"]
    )

    @field_validator("jira_host", "jira_login_name", "jira_login_token", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        return str(v).upper() if v else "INFO"

    def effective_log_level(self) -> str:
        """DEBUG wins over the configured level."""
        return "DEBUG" if self.debug else self.log_level


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()

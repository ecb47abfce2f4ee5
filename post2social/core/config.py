"""
Runtime configuration
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import AuthError


ENV_DIR_NAME = ".baoyu-skills"
ENV_FILE_NAME = ".env"


class Settings(BaseSettings):
    """
    Settings read from the environment and .env files

    Priority: environment variables, then <cwd>/.baoyu-skills/.env, then
    ~/.baoyu-skills/.env.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
        env_file_encoding="utf-8",
    )

    wechat_app_id: Optional[str] = Field(default=None, validation_alias="WECHAT_APP_ID")
    wechat_app_secret: Optional[str] = Field(default=None, validation_alias="WECHAT_APP_SECRET")
    http_timeout: float = Field(default=30.0, gt=0, validation_alias="POST2SOCIAL_HTTP_TIMEOUT")
    scratch_dir: Optional[Path] = Field(default=None, validation_alias="POST2SOCIAL_SCRATCH_DIR")
    max_workers: int = Field(default=1, ge=1, validation_alias="POST2SOCIAL_MAX_WORKERS")
    theme: str = Field(default="default", validation_alias="POST2SOCIAL_THEME")
    user_agent: str = Field(default="post2social/0.1.0", validation_alias="POST2SOCIAL_USER_AGENT")

    def require_wechat_credentials(self) -> Tuple[str, str]:
        if not self.wechat_app_id or not self.wechat_app_secret:
            raise AuthError(
                "Missing WECHAT_APP_ID or WECHAT_APP_SECRET. "
                f"Set them as environment variables or in {ENV_DIR_NAME}/{ENV_FILE_NAME}.",
                operation="load_config",
            )
        return self.wechat_app_id, self.wechat_app_secret


def env_files(cwd: Optional[Path] = None, home: Optional[Path] = None) -> Tuple[Path, ...]:
    """Candidate .env files, lowest priority first"""
    cwd = Path(cwd) if cwd else Path.cwd()
    home = Path(home) if home else Path.home()
    return (
        home / ENV_DIR_NAME / ENV_FILE_NAME,
        cwd / ENV_DIR_NAME / ENV_FILE_NAME,
    )


def load_settings(cwd: Optional[Path] = None, home: Optional[Path] = None, **overrides) -> Settings:
    files = tuple(path for path in env_files(cwd, home) if path.exists())
    return Settings(_env_file=files or None, **overrides)

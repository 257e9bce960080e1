from __future__ import annotations
import os
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .errors import ConfigError
from .rules import DEFAULT_VIDEO_HOSTS, ClassifierConfig

DEFAULT_API_URL = "https://api.admin.edu.goiteens.com/api/v1"
DEFAULT_LOGIN_PAGE_URL = "https://admin.edu.goiteens.com/account/login"
DEFAULT_MODULE_ID = 17063573
DEFAULT_TOKEN_FILE = "refresh-token.txt"
DEFAULT_TIMEOUT = 30.0
DEFAULT_LOGIN_TIMEOUT = 60.0  # login is slow on the LMS side


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_url: str = DEFAULT_API_URL
    login_page_url: str = DEFAULT_LOGIN_PAGE_URL
    module_id: int = DEFAULT_MODULE_ID
    token_file: str = DEFAULT_TOKEN_FILE
    video_hosts: Tuple[str, ...] = DEFAULT_VIDEO_HOSTS
    timeout: float = DEFAULT_TIMEOUT
    login_timeout: float = DEFAULT_LOGIN_TIMEOUT
    username: Optional[str] = None
    password: Optional[str] = None

    @property
    def classifier(self) -> ClassifierConfig:
        return ClassifierConfig(video_hosts=self.video_hosts)


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


def load_settings() -> Settings:
    """Build Settings from the environment (call load_dotenv() first to pick up .env)."""
    hosts = os.getenv("LMS_VIDEO_HOSTS")
    return Settings(
        api_url=(os.getenv("LMS_API_URL") or DEFAULT_API_URL).rstrip("/"),
        login_page_url=os.getenv("LMS_LOGIN_PAGE_URL") or DEFAULT_LOGIN_PAGE_URL,
        module_id=_env_number("LMS_MODULE_ID", DEFAULT_MODULE_ID, int),
        token_file=os.getenv("LMS_TOKEN_FILE") or DEFAULT_TOKEN_FILE,
        video_hosts=ClassifierConfig(video_hosts=hosts).video_hosts if hosts else DEFAULT_VIDEO_HOSTS,
        timeout=_env_number("LMS_TIMEOUT", DEFAULT_TIMEOUT, float),
        login_timeout=_env_number("LMS_LOGIN_TIMEOUT", DEFAULT_LOGIN_TIMEOUT, float),
        username=os.getenv("LMS_USERNAME") or None,
        password=os.getenv("LMS_PASSWORD") or None,
    )

"""Application settings and environment loading."""

import json
from functools import lru_cache
from typing import Iterable, List, Optional

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central settings definition, injectable and overridable in tests."""

    app_name: str = Field(default="Admin Console", alias="APP_NAME")
    app_description: str = Field(
        default="User directory and account administration over the auth provider",
        alias="APP_DESCRIPTION",
    )
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=9999, alias="PORT")

    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"], alias="CORS_ALLOW_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    # Auth provider (admin plugin endpoints live under AUTH_BASE_URL + AUTH_BASE_PATH)
    auth_base_url: Optional[AnyHttpUrl] = Field(default=None, alias="AUTH_BASE_URL")
    auth_base_path: str = Field(default="/api/auth", alias="AUTH_BASE_PATH")
    auth_session_cookie: str = Field(default="better-auth.session_token", alias="AUTH_SESSION_COOKIE")
    http_timeout_seconds: float = Field(default=10.0, alias="HTTP_TIMEOUT_SECONDS")

    directory_default_page_size: int = Field(default=20, alias="DIRECTORY_DEFAULT_PAGE_SIZE")
    status_reset_seconds: float = Field(default=2.2, alias="STATUS_RESET_SECONDS")
    sign_up_callback_url: str = Field(default="/dashboard", alias="SIGN_UP_CALLBACK_URL")

    log_to_file: bool = Field(default=False, alias="LOG_TO_FILE")
    log_file_path: str = Field(default="logs/app.log", alias="LOG_FILE_PATH")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        enable_decoding=False,
        populate_by_name=True,
    )

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> List[str]:
        """Accept a comma separated string, a JSON array string or a list."""
        if value is None:
            return ["*"]
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("["):
                try:
                    data = json.loads(text)
                    if isinstance(data, list):
                        items = [str(item).strip() for item in data if str(item).strip()]
                        return items or ["*"]
                except json.JSONDecodeError:
                    pass
            items = [item.strip() for item in text.split(",") if item.strip()]
            return items or ["*"]
        if isinstance(value, Iterable):
            return [str(item).strip() for item in value if str(item).strip()]
        return ["*"]

    @field_validator("auth_base_path", mode="before")
    @classmethod
    def _normalize_base_path(cls, value: object) -> str:
        text = str(value or "").strip().strip("/")
        return f"/{text}" if text else ""

    @field_validator("directory_default_page_size", mode="before")
    @classmethod
    def _clamp_page_size(cls, value: object) -> int:
        try:
            size = int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 20
        return min(max(size, 1), 100)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cache settings so BaseSettings is parsed once per process."""

    return Settings()

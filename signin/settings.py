from __future__ import annotations

from typing import Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SIGNIN_", env_file=".env", extra="ignore")

    # Google OAuth2 client
    GOOGLE_CLIENT_ID: str = Field(default="")
    GOOGLE_CLIENT_SECRET: str = Field(default="")
    GOOGLE_SCOPES: str = Field(
        default="https://www.googleapis.com/auth/userinfo.email "
        "https://www.googleapis.com/auth/userinfo.profile"
    )

    BASE_URL: AnyUrl = Field(default="http://localhost:8080")
    CALLBACK_PATH: str = Field(default="/callback")

    # Session store
    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    REDIS_PASSWORD: Optional[str] = Field(default=None)
    SESSION_TTL_SECONDS: int = Field(default=3600, gt=0)

    # Cookies
    SESSION_COOKIE_NAME: str = Field(default="session")
    OAUTH_STATE_COOKIE_NAME: str = Field(default="signin_oauth")
    COOKIE_DOMAIN: Optional[str] = Field(default=None)
    COOKIE_SECURE: bool = Field(default=False)
    COOKIE_SAMESITE: str = Field(default="lax")
    SESSION_SIGNING_SECRET: str = Field(...)

    PORT: int = Field(default=8080)
    LOG_LEVEL: str = Field(default="INFO")

    @property
    def callback_url(self) -> str:
        return f"{str(self.BASE_URL).rstrip('/')}{self.CALLBACK_PATH}"


settings = Settings()

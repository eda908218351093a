import os
from typing import Self

from pydantic import BaseModel, Field

ONE_DAY_IN_SECONDS = 60 * 60 * 24

DEFAULT_FRONTEND_URL = "http://localhost:5173"


def require_env(name: str) -> str:
    if value := os.getenv(name):
        return value

    msg = f"{name} must be set"
    raise ValueError(msg)


def first_env(*names: str) -> str | None:
    for name in names:
        if value := os.getenv(name):
            return value

    return None


class Settings(BaseModel):
    """Process configuration, read from the environment."""

    github_client_id: str = Field(description="The client id of the GitHub OAuth App.")
    github_client_secret: str = Field(repr=False, description="The client secret of the GitHub OAuth App.")
    github_callback_url: str | None = Field(default=None, description="The OAuth callback URL registered with GitHub.")

    frontend_url: str = Field(default=DEFAULT_FRONTEND_URL, description="The only origin allowed to call the API.")

    google_api_key: str | None = Field(default=None, repr=False, description="The API key for the Gemini API.")
    google_model: str | None = Field(default=None, description="The Gemini model to use.")

    session_secret: str = Field(default="your_secret", repr=False, description="The secret used to sign the session cookie.")
    session_ttl_seconds: int = Field(default=ONE_DAY_IN_SECONDS, description="The fixed lifetime of a session.")

    environment: str = Field(default="development", description="The deployment environment.")
    log_level: str = Field(default="INFO", description="The log level of the application loggers.")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def frontend_origin(self) -> str:
        return self.frontend_url.rstrip("/")

    @classmethod
    def from_env(cls) -> Self:
        return cls(
            github_client_id=require_env("GITHUB_CLIENT_ID"),
            github_client_secret=require_env("GITHUB_CLIENT_SECRET"),
            github_callback_url=os.getenv("GITHUB_CALLBACK_URL"),
            frontend_url=os.getenv("FRONTEND_URL") or DEFAULT_FRONTEND_URL,
            google_api_key=first_env("GOOGLE_API_KEY", "GEMINI_API_KEY"),
            google_model=os.getenv("GOOGLE_MODEL"),
            session_secret=os.getenv("SESSION_SECRET") or "your_secret",
            session_ttl_seconds=int(os.getenv("SESSION_TTL_SECONDS", str(ONE_DAY_IN_SECONDS))),
            environment=first_env("ENVIRONMENT", "NODE_ENV") or "development",
            log_level=os.getenv("LOG_LEVEL") or "INFO",
        )

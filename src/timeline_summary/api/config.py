"""Configuration for the FastAPI service."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Service settings loaded from environment variables."""

    # OpenAI
    OPENAI_API_KEY: str
    OPENAI_MODEL: str = "gpt-4o"

    # Salesforce (the access token arrives with each request)
    SF_LOGIN_URL: str
    SF_API_VERSION: str = "v59.0"
    SF_MAX_RETRIES: int = 3

    # Callback
    CALLBACK_TIMEOUT_SECONDS: float = 30.0


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()

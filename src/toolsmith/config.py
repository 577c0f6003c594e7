"""Environment-based configuration for the admission pipeline."""

from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Admission pipeline configuration.

    All settings can be overridden via environment variables with
    TOOLSMITH_ prefix. For example:
        TOOLSMITH_MAX_ATTEMPTS=3
        TOOLSMITH_MODEL=claude-opus-4-1
    """

    # Generation loop
    max_attempts: int = 5
    max_searches: int = 3
    session_deadline_seconds: float = 300.0

    # Request gate
    max_request_chars: int = 1000

    # Sandboxed execution
    execution_timeout_seconds: float = 5.0

    # Catalog matching
    match_limit: int = 5
    redirect_threshold: int = 150  # "close" band lower bound
    reference_threshold: int = 60  # "similar" band lower bound
    catalog_path: Path | None = None

    # Collaborator
    model: str = "claude-sonnet-4-5"
    max_tokens: int = 8192

    model_config = {"env_prefix": "TOOLSMITH_"}

    @model_validator(mode="after")
    def _check_budgets(self) -> "Settings":
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.execution_timeout_seconds >= self.session_deadline_seconds:
            raise ValueError(
                "execution_timeout_seconds must be shorter than session_deadline_seconds"
            )
        if self.reference_threshold > self.redirect_threshold:
            raise ValueError("reference_threshold must not exceed redirect_threshold")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, read once from the environment."""
    return Settings()

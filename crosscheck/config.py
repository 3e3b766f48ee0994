"""Application configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Final, List, Literal

from dotenv import load_dotenv
from pydantic import AnyHttpUrl, BaseModel, ValidationError

from crosscheck.models.review import ReviewStrategy

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DEFAULT_REVIEWER_BASE_URL: Final[str] = "https://openrouter.ai/api/v1"
DEFAULT_REVIEWER_MODELS: Final[tuple[str, ...]] = (
    "anthropic/claude-sonnet-4",
    "openai/gpt-4o",
    "google/gemini-2.5-pro",
)
SUPPORTED_METRICS_SCALES: Final[tuple[int, ...]] = (3, 5)


class SettingsError(RuntimeError):
    """Raised when application configuration is invalid or incomplete."""


@dataclass(frozen=True)
class GitHubAppCredentials:
    app_id: int
    private_key_pem: str
    installation_id: int


class Settings(BaseModel):
    """Runtime settings loaded from environment variables.

    Constructed once at the process edge and passed explicitly to the review
    components; nothing inside the core reads the environment.
    """

    reviewer_base_url: AnyHttpUrl = DEFAULT_REVIEWER_BASE_URL
    reviewer_api_key: str | None = None
    reviewer_timeout: float = 60.0
    reviewer_models: List[str] = list(DEFAULT_REVIEWER_MODELS)
    github_api_base_url: AnyHttpUrl = "https://api.github.com"
    github_token: str | None = None
    github_app_id: int | None = None
    github_private_key_pem: str | None = None
    github_installation_id: int | None = None
    github_repository: str | None = None
    default_strategy: ReviewStrategy = ReviewStrategy.BIAS_AWARE
    metrics_scale: Literal[3, 5] = 5

    @property
    def normalized_reviewer_base_url(self) -> str:
        """Return the reviewer API base URL without a trailing slash."""
        return str(self.reviewer_base_url).rstrip("/")

    @property
    def normalized_github_api_base_url(self) -> str:
        """Return the GitHub API base URL without a trailing slash."""
        return str(self.github_api_base_url).rstrip("/")

    def github_app_credentials(self) -> GitHubAppCredentials | None:
        """Return GitHub App credentials when all three values are configured."""

        if self.github_app_id is None and not self.github_private_key_pem:
            return None

        missing = []
        if self.github_app_id is None:
            missing.append("GITHUB_APP_ID")
        if not self.github_private_key_pem:
            missing.append("GITHUB_PRIVATE_KEY")
        if self.github_installation_id is None:
            missing.append("GITHUB_INSTALLATION_ID")

        if missing:
            missing_vars = ", ".join(missing)
            raise SettingsError(
                "GitHub App authentication is partially configured. Missing environment variables: "
                f"{missing_vars}."
            )

        return GitHubAppCredentials(
            app_id=int(self.github_app_id),
            private_key_pem=self.github_private_key_pem,
            installation_id=int(self.github_installation_id),
        )


def _parse_int_env(name: str) -> int | None:
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return None
    try:
        return int(raw_value)
    except ValueError as exc:
        raise SettingsError(f"Invalid value for {name}. It must be an integer.") from exc


def _parse_list_env(raw_value: str | None, *, default: tuple[str, ...]) -> List[str]:
    """Split a comma separated environment variable, dropping blanks."""

    if raw_value is None:
        return list(default)
    return [item.strip() for item in raw_value.split(",") if item.strip()]


def _build_settings() -> Settings:
    reviewer_timeout = os.getenv("REVIEWER_TIMEOUT")
    default_strategy = os.getenv("CROSSCHECK_DEFAULT_STRATEGY")

    try:
        metrics_scale = _parse_int_env("CROSSCHECK_METRICS_SCALE") or 5
        if metrics_scale not in SUPPORTED_METRICS_SCALES:
            raise SettingsError(
                f"CROSSCHECK_METRICS_SCALE must be one of {SUPPORTED_METRICS_SCALES}, got {metrics_scale}."
            )

        return Settings(
            reviewer_base_url=os.getenv("REVIEWER_BASE_URL") or DEFAULT_REVIEWER_BASE_URL,
            reviewer_api_key=os.getenv("REVIEWER_API_KEY") or None,
            reviewer_timeout=float(reviewer_timeout) if reviewer_timeout else 60.0,
            reviewer_models=_parse_list_env(os.getenv("REVIEWER_MODELS"), default=DEFAULT_REVIEWER_MODELS),
            github_api_base_url=os.getenv("GITHUB_API_BASE_URL") or "https://api.github.com",
            github_token=os.getenv("GITHUB_TOKEN") or None,
            github_app_id=_parse_int_env("GITHUB_APP_ID"),
            github_private_key_pem=os.getenv("GITHUB_PRIVATE_KEY") or None,
            github_installation_id=_parse_int_env("GITHUB_INSTALLATION_ID"),
            github_repository=os.getenv("GITHUB_REPOSITORY") or None,
            default_strategy=default_strategy or ReviewStrategy.BIAS_AWARE,
            metrics_scale=metrics_scale,
        )
    except ValidationError as exc:
        raise SettingsError(f"Invalid application configuration: {exc}") from exc
    except ValueError as exc:
        raise SettingsError("Invalid value for REVIEWER_TIMEOUT. It must be a number.") from exc


@lru_cache(maxsize=1)
def _cached_settings() -> Settings:
    return _build_settings()


def get_settings() -> Settings:
    """Retrieve cached application settings."""
    return _cached_settings()


def reset_settings_cache() -> None:
    """Clear the cached settings (primarily for tests)."""
    _cached_settings.cache_clear()

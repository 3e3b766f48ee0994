"""Detect the AI model behind a commit from its author and co-author records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from crosscheck.logger import get_logger
from crosscheck.models.review import AuthorRecord, CommitInfo

logger = get_logger()


@dataclass(frozen=True, slots=True)
class _NormalizedAuthor:
    name: str
    email: str
    login: str


@dataclass(frozen=True, slots=True)
class ProviderSignature:
    model: str
    matches: Callable[[_NormalizedAuthor], bool]


# Checked in order; the first signature that matches an author wins.
PROVIDER_SIGNATURES: tuple[ProviderSignature, ...] = (
    ProviderSignature(
        "claude",
        lambda a: "claude" in a.name or "anthropic.com" in a.email or "claude" in a.login,
    ),
    ProviderSignature(
        "gpt-4",
        lambda a: "gpt" in a.name or "openai" in a.name or "openai.com" in a.email or "gpt" in a.login,
    ),
    ProviderSignature(
        "github-copilot",
        lambda a: "copilot" in a.name or ("github.com" in a.email and "copilot" in a.login),
    ),
    ProviderSignature(
        "gemini",
        lambda a: "gemini" in a.name or "bard" in a.name or "google.com" in a.email,
    ),
)


def _normalize(author: AuthorRecord) -> _NormalizedAuthor:
    return _NormalizedAuthor(
        name=(author.name or "").lower(),
        email=(author.email or "").lower(),
        login=(author.login or "").lower(),
    )


def detect_model_from_authors(authors: Iterable[AuthorRecord | Mapping[str, Any] | None]) -> str | None:
    """Return the canonical model for the first author that looks like an AI, else None."""

    for raw_author in authors or ():
        author = _normalize(AuthorRecord.coerce(raw_author))
        for signature in PROVIDER_SIGNATURES:
            if signature.matches(author):
                logger.debug(f"Author '{author.name or author.login}' matched model '{signature.model}'")
                return signature.model
    return None


def detect_model_from_commits(commits: Iterable[CommitInfo]) -> str | None:
    """Scan commits in order and return the first detected model."""

    for commit in commits:
        detected = detect_model_from_authors(commit.authors)
        if detected:
            logger.debug(f"Detected model '{detected}' from commit {commit.oid[:8]}")
            return detected
    return None

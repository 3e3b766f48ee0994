"""Request bodies for the HTTP surface."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from crosscheck.models.review import ReviewStrategy, ReviewType


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AuthorPayload(_Body):
    name: str | None = None
    email: str | None = None
    login: str | None = None
    id: str | int | None = None


class ReviewCodeBody(_Body):
    code: str = Field(..., description="The code to review")
    generation_model: str | None = Field(None, description="Model that generated the code")
    authors: List[AuthorPayload] = Field(default_factory=list)
    commit_hash: str | None = None
    pr_number: int | None = None
    repo: str | None = Field(None, description="Repository in 'owner/repo' form")
    review_strategy: ReviewStrategy | None = None
    review_type: ReviewType = ReviewType.GENERAL
    language: str | None = None
    context: str | None = None


class DetectModelBody(_Body):
    authors: List[AuthorPayload]


class FetchCommitBody(_Body):
    commit_hash: str
    repo: str | None = None


class FetchPRCommitsBody(_Body):
    pr_number: int
    repo: str | None = None

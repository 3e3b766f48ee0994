"""Cross-model review orchestration: resolve the generator, sample a reviewer, validate."""

from __future__ import annotations

import asyncio
from typing import Any, Iterable, List, Mapping, Protocol

from crosscheck.config import Settings
from crosscheck.github_client import GitHubClient
from crosscheck.logger import get_logger, log_with_context, log_timing, log_success, log_failure
from crosscheck.models.review import (
    AuthorRecord,
    CommitInfo,
    ManualFallback,
    ReviewerInvocation,
    ReviewRequest,
    ReviewResult,
    ReviewStrategy,
    ReviewType,
    SamplingResult,
)
from crosscheck.reviewer_client import InvocationFailed, ReviewerClient
from crosscheck.services.author_detection import detect_model_from_authors, detect_model_from_commits
from crosscheck.services.fallback import FallbackAdvisor
from crosscheck.services.model_family import should_exclude
from crosscheck.services.request_builder import MissingGenerationModel, ReviewRequestBuilder
from crosscheck.services.response_interpreter import ReviewResponseInterpreter
from crosscheck.services.strategies import ReviewStrategyCatalog

logger = get_logger()


class MetadataFetchFailed(RuntimeError):
    """Raised when commit authorship could not be retrieved."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


class ReviewerInvoker(Protocol):
    async def sample(self, invocation: ReviewerInvocation) -> SamplingResult: ...


class AuthorshipSource(Protocol):
    async def fetch_commit(self, commit_hash: str, repo: str | None) -> CommitInfo: ...

    async def fetch_pr_commits(self, pr_number: int | str, repo: str | None) -> List[CommitInfo]: ...


class CrossCheckReviewer:
    def __init__(
        self,
        *,
        catalog: ReviewStrategyCatalog,
        reviewer: ReviewerInvoker,
        metadata: AuthorshipSource | None = None,
        default_repository: str | None = None,
        invocation_timeout: float | None = None,
        advisor: FallbackAdvisor | None = None,
    ) -> None:
        self._catalog = catalog
        self._builder = ReviewRequestBuilder(catalog)
        self._interpreter = ReviewResponseInterpreter(metrics_scale=catalog.metrics_scale)
        self._advisor = advisor or FallbackAdvisor()
        self._reviewer = reviewer
        self._metadata = metadata
        self._default_repository = default_repository
        self._invocation_timeout = invocation_timeout

    @property
    def catalog(self) -> ReviewStrategyCatalog:
        return self._catalog

    @property
    def advisor(self) -> FallbackAdvisor:
        return self._advisor

    def detect_model(self, authors: Iterable[AuthorRecord | Mapping[str, Any]]) -> str | None:
        return detect_model_from_authors(authors)

    async def fetch_commit(self, commit_hash: str, repo: str | None = None) -> CommitInfo:
        source = self._require_metadata()
        repository = repo or self._default_repository
        try:
            with log_timing(logger, "fetch_commit", commit=commit_hash[:8], repository=repository):
                return await source.fetch_commit(commit_hash, repository)
        except Exception as exc:
            raise MetadataFetchFailed(f"Failed to fetch commit {commit_hash}: {exc}", exc) from exc

    async def fetch_pr_commits(self, pr_number: int | str, repo: str | None = None) -> List[CommitInfo]:
        source = self._require_metadata()
        repository = repo or self._default_repository
        try:
            with log_timing(logger, "fetch_pr_commits", pr_number=str(pr_number), repository=repository):
                return await source.fetch_pr_commits(pr_number, repository)
        except Exception as exc:
            raise MetadataFetchFailed(f"Failed to fetch PR commits for #{pr_number}: {exc}", exc) from exc

    def _require_metadata(self) -> AuthorshipSource:
        if self._metadata is None:
            raise MetadataFetchFailed("No authorship metadata source is configured.")
        return self._metadata

    async def resolve_generation_model(
        self,
        *,
        generation_model: str | None = None,
        authors: Iterable[AuthorRecord | Mapping[str, Any]] | None = None,
        commit_hash: str | None = None,
        pr_number: int | str | None = None,
        repo: str | None = None,
    ) -> str:
        """Resolve in order: PR commits, single commit, supplied model, supplied authors."""

        if pr_number is not None:
            try:
                detected = detect_model_from_commits(await self.fetch_pr_commits(pr_number, repo))
                if detected:
                    return detected
            except MetadataFetchFailed as exc:
                log_failure(logger, f"Model detection from PR #{pr_number} unavailable", exc)

        if commit_hash:
            try:
                commit = await self.fetch_commit(commit_hash, repo)
                detected = detect_model_from_authors(commit.authors)
                if detected:
                    return detected
            except MetadataFetchFailed as exc:
                log_failure(logger, f"Model detection from commit {commit_hash} unavailable", exc)

        if generation_model and generation_model.strip():
            return generation_model.strip()

        if authors:
            detected = detect_model_from_authors(authors)
            if detected:
                return detected

        raise MissingGenerationModel()

    async def review(
        self,
        artifact: str,
        *,
        generation_model: str | None = None,
        strategy: ReviewStrategy | str | None = None,
        review_type: ReviewType | str = ReviewType.GENERAL,
        language: str | None = None,
        context: str | None = None,
        authors: Iterable[AuthorRecord | Mapping[str, Any]] | None = None,
        commit_hash: str | None = None,
        pr_number: int | str | None = None,
        repo: str | None = None,
    ) -> ReviewResult | ManualFallback:
        resolved_model = await self.resolve_generation_model(
            generation_model=generation_model,
            authors=authors,
            commit_hash=commit_hash,
            pr_number=pr_number,
            repo=repo,
        )
        request = ReviewRequest(
            artifact=artifact,
            generation_model=resolved_model,
            strategy=ReviewStrategy(strategy) if strategy else None,
            language=language,
            context=context,
            review_type=ReviewType(review_type or ReviewType.GENERAL),
        )
        invocation = self._builder.build(request)
        ctx_logger = log_with_context(
            logger, generation_model=resolved_model, strategy=invocation.strategy.value
        )
        ctx_logger.info("=== REVIEW: Requesting cross-model review ===")

        try:
            sampled = await self._invoke(invocation)
        except InvocationFailed as exc:
            log_failure(logger, "Automatic cross-model review failed; returning manual fallback", exc,
                        generation_model=resolved_model)
            return self._advisor.advise(invocation, exc)

        result = self._interpreter.interpret(
            sampled.content, invocation.strategy, review_model=sampled.model_identity
        )
        log_success(logger, f"Review completed by {result.review_model} ({len(result.issues)} issues)",
                    generation_model=resolved_model, strategy=invocation.strategy.value)
        return result

    async def _invoke(self, invocation: ReviewerInvocation) -> SamplingResult:
        """Single attempt, no retries. Every failure becomes InvocationFailed."""

        try:
            with log_timing(logger, "reviewer_invocation", generation_model=invocation.generation_model):
                if self._invocation_timeout:
                    sampled = await asyncio.wait_for(
                        self._reviewer.sample(invocation), timeout=self._invocation_timeout
                    )
                else:
                    sampled = await self._reviewer.sample(invocation)
        except InvocationFailed:
            raise
        except asyncio.TimeoutError as exc:
            raise InvocationFailed(f"Reviewer invocation timed out after {self._invocation_timeout}s.") from exc
        except Exception as exc:
            raise InvocationFailed(f"Reviewer invocation failed: {exc}") from exc

        if sampled.model_identity and should_exclude(invocation.generation_model, sampled.model_identity):
            raise InvocationFailed(
                f"Reviewer model '{sampled.model_identity}' overlaps with the generation model "
                f"'{invocation.generation_model}'; model exclusion was not honored."
            )
        return sampled

    async def aclose(self) -> None:
        for resource in (self._reviewer, self._metadata):
            close = getattr(resource, "aclose", None)
            if close is not None:
                await close()


def create_reviewer(settings: Settings) -> CrossCheckReviewer:
    """Wire the HTTP-backed collaborators from settings."""

    catalog = ReviewStrategyCatalog(
        metrics_scale=settings.metrics_scale,
        default_strategy=settings.default_strategy,
    )
    reviewer = ReviewerClient(
        settings.reviewer_api_key,
        base_url=settings.normalized_reviewer_base_url,
        candidate_models=settings.reviewer_models,
        timeout=settings.reviewer_timeout,
    )
    metadata = GitHubClient(
        base_url=settings.normalized_github_api_base_url,
        token=settings.github_token,
        app_credentials=settings.github_app_credentials(),
    )
    return CrossCheckReviewer(
        catalog=catalog,
        reviewer=reviewer,
        metadata=metadata,
        default_repository=settings.github_repository,
    )

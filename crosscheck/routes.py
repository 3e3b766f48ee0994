"""HTTP routes for cross-model review."""

from __future__ import annotations

import time
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from crosscheck.dependencies import reviewer_dependency
from crosscheck.logger import get_logger, log_with_context, log_success, log_failure
from crosscheck.models.api import (
    AuthorPayload,
    DetectModelBody,
    FetchCommitBody,
    FetchPRCommitsBody,
    ReviewCodeBody,
)
from crosscheck.models.review import AuthorRecord, ManualFallback, ReviewResult
from crosscheck.services.request_builder import MissingGenerationModel
from crosscheck.services.response_interpreter import MalformedReviewResponse
from crosscheck.services.review_service import CrossCheckReviewer, MetadataFetchFailed

router = APIRouter()

logger = get_logger()


def _to_records(authors: List[AuthorPayload]) -> List[AuthorRecord]:
    return [AuthorRecord.from_mapping(author.model_dump()) for author in authors]


def _format_result_text(result: ReviewResult, generation_model: str | None) -> str:
    return (
        "## Code Review Results\n\n"
        f"**Review Model:** {result.review_model}\n"
        f"**Generation Model:** {generation_model or 'detected from authorship'}\n"
        f"**Strategy:** {result.strategy.value}\n\n"
        f"### Summary\n{result.summary}"
    )


@router.post("/review", summary="Review code with a model from a different family")
async def review_code(
    body: ReviewCodeBody,
    reviewer: CrossCheckReviewer = Depends(reviewer_dependency),
) -> Dict[str, Any]:
    start_time = time.time()
    ctx_logger = log_with_context(
        logger,
        generation_model=body.generation_model,
        strategy=body.review_strategy.value if body.review_strategy else None,
    )
    ctx_logger.info("=== REVIEW REQUEST RECEIVED ===")

    try:
        outcome = await reviewer.review(
            body.code,
            generation_model=body.generation_model,
            strategy=body.review_strategy,
            review_type=body.review_type,
            language=body.language,
            context=body.context,
            authors=_to_records(body.authors),
            commit_hash=body.commit_hash,
            pr_number=body.pr_number,
            repo=body.repo,
        )
    except MissingGenerationModel as exc:
        log_failure(logger, "Generation model could not be resolved", exc)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except MalformedReviewResponse as exc:
        log_failure(logger, "Reviewer response failed validation", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": str(exc), "reason": exc.reason, "rawResponse": exc.raw_text},
        ) from exc

    if isinstance(outcome, ManualFallback):
        ctx_logger.info("Returning manual cross-model fallback")
        return {
            "status": "manual_fallback",
            "text": reviewer.advisor.render_markdown(outcome),
            "fallback": outcome.to_payload(),
        }

    log_success(logger, f"Review request served in {time.time() - start_time:.3f}s",
                review_model=outcome.review_model)
    return {
        "status": "completed",
        "text": _format_result_text(outcome, body.generation_model),
        "result": outcome.to_payload(),
    }


@router.post("/detect-model", summary="Detect the AI model behind commit authors")
async def detect_model(
    body: DetectModelBody,
    reviewer: CrossCheckReviewer = Depends(reviewer_dependency),
) -> Dict[str, Any]:
    detected = reviewer.detect_model(_to_records(body.authors))
    return {
        "detectedModel": detected,
        "authors": len(body.authors),
        "text": f"Detected AI model: {detected}" if detected else "No AI model detected from the provided authors",
    }


@router.post("/commits/fetch", summary="Fetch a commit with its authors and co-authors")
async def fetch_commit(
    body: FetchCommitBody,
    reviewer: CrossCheckReviewer = Depends(reviewer_dependency),
) -> Dict[str, Any]:
    try:
        commit = await reviewer.fetch_commit(body.commit_hash, body.repo)
    except MetadataFetchFailed as exc:
        log_failure(logger, "Commit fetch failed", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return commit.to_dict()


@router.post("/pulls/commits", summary="Fetch the commits of a pull request")
async def fetch_pr_commits(
    body: FetchPRCommitsBody,
    reviewer: CrossCheckReviewer = Depends(reviewer_dependency),
) -> Dict[str, Any]:
    try:
        commits = await reviewer.fetch_pr_commits(body.pr_number, body.repo)
    except MetadataFetchFailed as exc:
        log_failure(logger, "PR commit fetch failed", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return {"commits": [commit.to_dict() for commit in commits], "count": len(commits)}


@router.get("/prompts/code-review", summary="Quick adversarial review prompt")
async def code_review_prompt(
    code: str | None = None,
    reviewer: CrossCheckReviewer = Depends(reviewer_dependency),
) -> Dict[str, Any]:
    prompt = reviewer.catalog.code_review_prompt(code)
    return {"messages": [{"role": "user", "content": {"type": "text", "text": prompt}}]}


@router.get("/strategies", summary="List review strategies")
async def list_strategies(
    reviewer: CrossCheckReviewer = Depends(reviewer_dependency),
) -> Dict[str, Any]:
    return {"strategies": reviewer.catalog.describe()}

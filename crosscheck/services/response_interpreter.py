"""Parse and validate reviewer output into ReviewResult values."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List

from pydantic import ValidationError

from crosscheck.models.review import ReviewResult, ReviewStrategy

_FENCED_BLOCK = re.compile(r"```([\w+-]*)[ \t]*\n?(.*?)```", re.DOTALL)
_NO_ISSUES = re.compile(
    r"\bno\s+(?:\w+\s+)?(?:issues?|bugs?|problems?|defects?|vulnerabilit(?:y|ies))\b"
    r"|\bnone\s+(?:were\s+)?found\b"
    r"|\b(?:did\s+not|didn't|could\s+not|couldn't|cannot|can't)\s+(?:\w+\s+)?(?:find|identify|detect)\b"
    r"|\bfound\s+no\b",
    re.IGNORECASE,
)
_VERIFICATION = re.compile(r"test|verif|validat|check|confirm|fuzz|audit", re.IGNORECASE)


class MalformedReviewResponse(ValueError):
    """Raised when reviewer output cannot be parsed or fails schema validation."""

    def __init__(self, reason: str, raw_text: str | None = None) -> None:
        super().__init__(f"Malformed review response: {reason}")
        self.reason = reason
        self.raw_text = raw_text


def _candidate_blocks(raw_text: str) -> List[str]:
    """Fenced block bodies, ``json``-tagged ones first, then untagged ones."""

    tagged: List[str] = []
    untagged: List[str] = []
    for match in _FENCED_BLOCK.finditer(raw_text):
        tag = match.group(1).lower()
        if tag == "json":
            tagged.append(match.group(2).strip())
        elif not tag:
            untagged.append(match.group(2).strip())
    return tagged + untagged


def _decodes_to_object(text: str) -> bool:
    try:
        return isinstance(json.loads(text), dict)
    except json.JSONDecodeError:
        return False


def extract_json_text(raw_text: str) -> str:
    """Return the first fenced block holding a JSON object, otherwise the trimmed text.

    Blocks tagged ``json`` are preferred over untagged ones; blocks tagged with
    another language (``python``...) are never parsed.
    """

    candidates = _candidate_blocks(raw_text)
    for candidate in candidates:
        if _decodes_to_object(candidate):
            return candidate
    stripped = raw_text.strip()
    if candidates and not _decodes_to_object(stripped):
        return candidates[0]
    return stripped


def parse_review_response(raw_text: str) -> Dict[str, Any]:
    try:
        data = json.loads(extract_json_text(raw_text))
    except json.JSONDecodeError as exc:
        raise MalformedReviewResponse(f"response is not valid JSON ({exc})", raw_text) from exc
    if not isinstance(data, dict):
        raise MalformedReviewResponse(
            f"expected a JSON object, got {type(data).__name__}", raw_text
        )
    return data


def explains_clean_review(summary: str) -> bool:
    """A review without issues must say so and name the verification still needed."""

    return bool(_NO_ISSUES.search(summary)) and bool(_VERIFICATION.search(summary))


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "response"
        problems.append(f"{location}: {error.get('msg')}")
    return "; ".join(problems)


class ReviewResponseInterpreter:
    def __init__(self, *, metrics_scale: int = 5) -> None:
        self._metrics_scale = metrics_scale

    @property
    def metrics_scale(self) -> int:
        return self._metrics_scale

    def interpret(
        self,
        raw_text: str,
        strategy: ReviewStrategy | str,
        *,
        review_model: str = "unknown",
    ) -> ReviewResult:
        strategy = ReviewStrategy(strategy)
        data = parse_review_response(raw_text)
        data.pop("reviewModel", None)
        data.pop("review_model", None)
        if not strategy.detects_bias:
            data.pop("biasTriggersFound", None)
            data.pop("bias_triggers_found", None)

        try:
            result = ReviewResult.model_validate(
                {**data, "reviewModel": review_model, "strategy": strategy},
                context={"metrics_scale": self._metrics_scale},
            )
        except ValidationError as exc:
            raise MalformedReviewResponse(_format_validation_error(exc), raw_text) from exc

        if not result.issues and not explains_clean_review(result.summary):
            raise MalformedReviewResponse(
                "issues is empty but the summary does not state that no issues were found "
                "and what verification would be needed",
                raw_text,
            )
        return result

"""Client wrapper for sampling a reviewer model over an OpenAI-compatible API."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

import httpx

from crosscheck.logger import get_logger, log_with_context, log_timing, log_failure
from crosscheck.models.review import ReviewerInvocation, SamplingResult
from crosscheck.services.model_family import exclusion_set

logger = get_logger()


class InvocationFailed(RuntimeError):
    """Raised when the reviewer model could not be sampled."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ReviewerClient:
    """Samples one reviewer model chosen from a candidate list.

    The client enforces the exclusion itself: candidates in the generation
    model's family are never called. When no candidate survives the exclusion
    the call fails instead of silently reusing the generator's family.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str,
        candidate_models: Sequence[str],
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._candidate_models = list(candidate_models)
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )
        self._owns_client = client is None

    @property
    def candidate_models(self) -> List[str]:
        return list(self._candidate_models)

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def select_model(self, invocation: ReviewerInvocation) -> str:
        generation_model = invocation.generation_model
        excluded = exclusion_set(generation_model, self._candidate_models)
        if excluded:
            log_with_context(logger, generation_model=generation_model).debug(
                f"Excluded reviewers from the generation model's family: {excluded}"
            )
        eligible = [candidate for candidate in self._candidate_models if candidate not in excluded]
        if not eligible:
            raise InvocationFailed(
                f"Cannot honor model exclusion: every configured reviewer ({', '.join(self._candidate_models) or 'none'}) "
                f"overlaps with the generation model '{generation_model}'."
            )
        for hint in invocation.model_preferences.fallback_hints:
            for candidate in eligible:
                if hint in candidate.lower():
                    return candidate
        return eligible[0]

    async def sample(self, invocation: ReviewerInvocation) -> SamplingResult:
        model = self.select_model(invocation)
        ctx_logger = log_with_context(
            logger,
            generation_model=invocation.generation_model,
            reviewer_model=model,
            strategy=invocation.strategy.value,
        )
        if not self._api_key:
            raise InvocationFailed("REVIEWER_API_KEY is not configured; automatic sampling is unavailable.")

        request_body: Dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": invocation.system_prompt},
                {"role": "user", "content": invocation.user_message},
            ],
            "max_tokens": invocation.max_tokens,
            "temperature": invocation.temperature,
            "model_preferences": invocation.model_preferences.to_payload(invocation.strategy),
        }
        ctx_logger.debug(f"Sampling request: prompt_length={len(invocation.manual_prompt)}")

        try:
            with log_timing(ctx_logger, "sample_reviewer"):
                response = await self._client.post(
                    "/chat/completions",
                    json=request_body,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
        except httpx.TimeoutException as exc:
            log_failure(logger, "Reviewer request timed out", exc, reviewer_model=model)
            raise InvocationFailed(f"Reviewer request to {model} timed out.") from exc
        except httpx.HTTPError as exc:
            log_failure(logger, "Reviewer request failed", exc, reviewer_model=model)
            raise InvocationFailed(f"Reviewer request to {model} failed: {exc}") from exc

        _raise_for_status("sample reviewer", response)
        try:
            payload = response.json()
        except ValueError as exc:
            raise InvocationFailed("Reviewer API returned invalid JSON.", response.status_code) from exc
        if not isinstance(payload, dict):
            raise InvocationFailed("Reviewer API returned an unexpected payload.", response.status_code)

        content = _extract_message_text(payload)
        if not content:
            raise InvocationFailed("Reviewer API returned an empty completion.", response.status_code)

        model_identity = payload.get("model") or model
        ctx_logger.info(f"Reviewer responded ({len(content)} characters, model={model_identity})")
        return SamplingResult(model_identity=model_identity, content=content)


def _raise_for_status(action: str, response: httpx.Response) -> None:
    if response.status_code < 400:
        return
    detail: Any | None
    try:
        detail = response.json()
    except ValueError:
        detail = response.text
    raise InvocationFailed(
        f"Failed to {action}: status={response.status_code}, detail={detail}",
        response.status_code,
    )


def _extract_message_text(payload: Dict[str, Any]) -> str:
    choices = payload.get("choices") or []
    if not choices:
        return ""
    message = choices[0].get("message") or {}
    content = message.get("content")
    if isinstance(content, str):
        return content.strip()
    if isinstance(content, list):
        parts = [part.get("text", "") for part in content if isinstance(part, dict) and part.get("type") == "text"]
        return "\n".join(parts).strip()
    return ""

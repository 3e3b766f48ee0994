"""Compose reviewer invocations from a review request."""

from __future__ import annotations

from crosscheck.logger import get_logger, log_with_context
from crosscheck.models.review import (
    ModelExclusion,
    ModelPreferences,
    ReviewerInvocation,
    ReviewRequest,
    ReviewType,
)
from crosscheck.services.author_detection import detect_model_from_authors
from crosscheck.services.model_family import fallback_hints
from crosscheck.services.strategies import ReviewStrategyCatalog

logger = get_logger()


class MissingGenerationModel(ValueError):
    """Raised when no generation model can be resolved from any source."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "Could not detect generation model. Please provide generationModel or "
            "commit/PR information with co-author data."
        )


def create_model_preferences(generation_model: str) -> ModelPreferences:
    return ModelPreferences(
        exclusion=ModelExclusion(
            exclude_model=generation_model,
            exclude_family=generation_model.lower(),
        ),
        fallback_hints=fallback_hints(generation_model),
    )


def build_user_message(artifact: str, *, language: str | None = None, context: str | None = None) -> str:
    fence = f"```{language}" if language else "```"
    code_block = f"{fence}\n{artifact}\n```"
    context_text = f"\n\nContext: {context}" if context else ""
    return f"Review this {language or 'code'} and identify potential issues:{context_text}\n\n{code_block}"


class ReviewRequestBuilder:
    def __init__(self, catalog: ReviewStrategyCatalog) -> None:
        self._catalog = catalog

    @property
    def catalog(self) -> ReviewStrategyCatalog:
        return self._catalog

    def resolve_generation_model(self, request: ReviewRequest) -> str:
        """Prefer the caller's model, otherwise detect one from the supplied authors."""

        if request.generation_model and request.generation_model.strip():
            return request.generation_model.strip()
        detected = detect_model_from_authors(request.authors)
        if detected:
            return detected
        raise MissingGenerationModel()

    def build(self, request: ReviewRequest) -> ReviewerInvocation:
        generation_model = self.resolve_generation_model(request)
        strategy = self._catalog.resolve(request.strategy)
        review_type = ReviewType(request.review_type or ReviewType.GENERAL)
        payload = self._catalog.instructions_for(strategy)

        invocation = ReviewerInvocation(
            system_prompt=payload.render(review_type),
            user_message=build_user_message(request.artifact, language=request.language, context=request.context),
            model_preferences=create_model_preferences(generation_model),
            strategy=strategy,
            generation_model=generation_model,
            metrics_scale=payload.metrics_scale,
            review_type=review_type,
        )
        log_with_context(logger, generation_model=generation_model, strategy=strategy.value).debug(
            f"Built reviewer invocation (review_type={review_type.value}, "
            f"hints={invocation.model_preferences.fallback_hints})"
        )
        return invocation

"""Manual cross-model instructions for when automatic sampling cannot run."""

from __future__ import annotations

from typing import List

from crosscheck.models.review import ManualFallback, ReviewerInvocation
from crosscheck.services.model_family import eligible_reviewers


def _describe_error(error: BaseException | str) -> str:
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    return error


class FallbackAdvisor:
    """Builds a ManualFallback from an invocation. Never performs I/O."""

    def recommended_models(self, invocation: ReviewerInvocation) -> List[str]:
        return eligible_reviewers(invocation.generation_model, invocation.model_preferences.fallback_hints)

    def advise(self, invocation: ReviewerInvocation, error: BaseException | str) -> ManualFallback:
        recommended = self.recommended_models(invocation)
        recommended_text = ", ".join(recommended) if recommended else "a model from a different provider"
        error_text = _describe_error(error)
        generation_model = invocation.generation_model

        reason_text = (
            f"Automatic cross-model review could not be completed: {error_text}. "
            f"The review must not be run by {generation_model} or another model from its family, "
            "so it has to be run manually."
        )
        instructions = "\n".join(
            (
                "1. Copy the manual prompt",
                f"2. Switch to a different model (recommended: {recommended_text})",
                "3. Run the prompt with that model",
                f"4. Do not use the model that generated the code ({generation_model})",
            )
        )

        return ManualFallback(
            generation_model=generation_model,
            strategy=invocation.strategy,
            recommended_models=recommended,
            manual_prompt=invocation.manual_prompt,
            reason_text=reason_text,
            error=error_text,
            instructions=instructions,
        )

    def render_markdown(self, fallback: ManualFallback) -> str:
        recommended_text = ", ".join(fallback.recommended_models) or "a model from a different provider"
        return (
            "## Sampling Failed - Manual Cross-Model Review Required\n\n"
            f"**Error:** {fallback.error}\n\n"
            f"**To ensure bias-resistant review, please run this prompt with {recommended_text} "
            f"instead of {fallback.generation_model}:**\n\n"
            f"---\n\n{fallback.manual_prompt}\n\n---\n\n"
            f"**Instructions:**\n{fallback.instructions}\n\n"
            "**Why this matters:** Using the same model for both generation and review can introduce "
            "self-preference bias. Cross-model evaluation helps identify issues the original model might miss."
        )

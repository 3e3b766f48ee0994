"""Heuristic model-family matching used to keep reviewers away from the generator's family."""

from __future__ import annotations

import re
from typing import Dict, Iterable, List

# Leading model-name prefixes and the provider that ships them.
BASE_MODEL_PROVIDERS: Dict[str, str] = {
    "gpt": "openai",
    "claude": "anthropic",
    "gemini": "google",
    "llama": "meta",
    "mistral": "mistral",
    "phi": "microsoft",
    "codestral": "mistral",
    "deepseek": "deepseek",
    "qwen": "alibaba",
}

PROVIDER_NAMES: tuple[str, ...] = (
    "openai",
    "anthropic",
    "google",
    "meta",
    "microsoft",
    "mistral",
    "deepseek",
    "alibaba",
)

_BASE_MODEL_PATTERN = re.compile(r"^(" + "|".join(BASE_MODEL_PROVIDERS) + r")")
_PROVIDER_PATTERN = re.compile(r"(" + "|".join(PROVIDER_NAMES) + r")")
_SIGNIFICANT_TOKEN_PATTERN = re.compile(r"[a-z]{4,}")

# Alternative reviewer families, keyed by the generator's family. Order matters:
# the first hint is the strongest recommendation.
_FALLBACK_HINTS: tuple[tuple[tuple[str, ...], List[str]], ...] = (
    (("gpt", "openai"), ["claude", "gemini"]),
    (("claude", "anthropic"), ["gpt", "gemini", "openai"]),
    (("gemini", "google"), ["claude", "gpt", "openai"]),
    (("llama", "meta"), ["claude", "gpt", "gemini"]),
)
DEFAULT_FALLBACK_HINTS: tuple[str, ...] = ("claude", "gpt", "gemini")


def base_model_name(model: str) -> str | None:
    """Return the leading known model prefix (``gpt``, ``claude``...) if any."""

    match = _BASE_MODEL_PATTERN.match(model.lower())
    return match.group(1) if match else None


def provider_name(model: str) -> str | None:
    """Return the first known provider name mentioned in the identifier."""

    match = _PROVIDER_PATTERN.search(model.lower())
    return match.group(1) if match else None


def significant_tokens(model: str) -> set[str]:
    return set(_SIGNIFICANT_TOKEN_PATTERN.findall(model.lower()))


def family_overlap(model_a: str, model_b: str) -> bool:
    """Return True when two identifiers likely come from the same model family.

    The checks run from most to least specific. A recognised base name on both
    sides settles the question; otherwise a shared provider, then any shared
    alphabetic run of four or more letters, counts as overlap.
    """

    first = model_a.lower()
    second = model_b.lower()

    if first == second:
        return True

    first_base = base_model_name(first)
    second_base = base_model_name(second)
    if first_base and second_base:
        return first_base == second_base

    first_provider = provider_name(first)
    second_provider = provider_name(second)
    if first_provider and second_provider and first_provider == second_provider:
        return True

    # findall never yields empty strings, so blank identifiers cannot match here
    return bool(significant_tokens(first) & significant_tokens(second))


def routed_name(model: str) -> str:
    """Strip a router prefix such as ``openai/`` from ``openai/gpt-4o``."""

    return model.rsplit("/", 1)[-1]


def should_exclude(generation_model: str, candidate_model: str) -> bool:
    """Return True if ``candidate_model`` must not review ``generation_model``'s output."""

    if generation_model == candidate_model:
        return True
    if family_overlap(generation_model, candidate_model):
        return True
    return family_overlap(routed_name(generation_model), routed_name(candidate_model))


def exclusion_set(generation_model: str, candidates: Iterable[str]) -> List[str]:
    """Return the candidates that share a family with the generation model."""

    return [candidate for candidate in candidates if should_exclude(generation_model, candidate)]


def eligible_reviewers(generation_model: str, candidates: Iterable[str]) -> List[str]:
    return [candidate for candidate in candidates if not should_exclude(generation_model, candidate)]


def fallback_hints(generation_model: str) -> List[str]:
    """Suggest reviewer families that differ from the generation model's."""

    model_lower = generation_model.lower()
    for needles, hints in _FALLBACK_HINTS:
        if any(needle in model_lower for needle in needles):
            return list(hints)
    return list(DEFAULT_FALLBACK_HINTS)

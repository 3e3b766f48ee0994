import pytest

from crosscheck.services.model_family import (
    base_model_name,
    eligible_reviewers,
    exclusion_set,
    fallback_hints,
    family_overlap,
    provider_name,
    routed_name,
    should_exclude,
)


@pytest.mark.parametrize(
    "model",
    ["gpt-4", "Claude-3-Opus", "anthropic/claude-sonnet-4", "my-custom-model", "x", "", "   "],
)
def test_every_identifier_overlaps_itself(model):
    assert family_overlap(model, model)
    assert family_overlap(model, model.upper())


def test_different_base_names_do_not_overlap():
    assert family_overlap("claude-3-opus", "gpt-4o") is False
    assert family_overlap("gemini-1.5-pro", "llama-3-70b") is False


def test_same_base_name_overlaps_case_insensitively():
    assert family_overlap("Claude-3", "claude-instant") is True
    assert family_overlap("gpt-4", "GPT-3.5-turbo") is True


def test_base_name_mismatch_is_conclusive_even_with_shared_tokens():
    # both share "turbo" but the base names differ
    assert family_overlap("gpt-turbo", "qwen-turbo") is False


def test_shared_provider_overlaps():
    assert family_overlap("openai/o1-preview", "openai/o3-mini") is True
    assert family_overlap("google/palm", "google-vertex") is True


def test_shared_significant_token_overlaps():
    assert family_overlap("anthropic/claude-sonnet-4", "claude-3") is True
    assert family_overlap("acme-coder-large", "coder-small") is True


def test_short_tokens_do_not_count():
    assert family_overlap("abc-1", "abc-2") is False


def test_blank_identifiers_never_overlap_others():
    assert family_overlap("", "gpt-4") is False
    assert family_overlap("   ", "claude") is False
    assert family_overlap("", "   ") is False


def test_extractors():
    assert base_model_name("Codestral-22B") == "codestral"
    assert base_model_name("anthropic/claude-3") is None
    assert provider_name("anthropic/claude-3") == "anthropic"
    assert provider_name("gpt-4") is None


def test_exclusion_helpers():
    candidates = ["anthropic/claude-sonnet-4", "openai/gpt-4o", "google/gemini-2.5-pro"]
    assert should_exclude("claude", "claude")
    assert exclusion_set("claude", candidates) == ["anthropic/claude-sonnet-4"]
    assert eligible_reviewers("claude", candidates) == ["openai/gpt-4o", "google/gemini-2.5-pro"]


def test_router_prefix_does_not_hide_the_family():
    assert routed_name("openai/gpt-4o") == "gpt-4o"
    assert routed_name("gpt-4o") == "gpt-4o"
    assert should_exclude("gpt-4", "openai/gpt-4o")
    assert not should_exclude("gpt-4", "anthropic/claude-sonnet-4")
    assert eligible_reviewers("gemini", ["google/gemini-2.5-pro", "openai/gpt-4o"]) == ["openai/gpt-4o"]


@pytest.mark.parametrize(
    ("generation_model", "expected"),
    [
        ("gpt-4", ["claude", "gemini"]),
        ("OpenAI o3", ["claude", "gemini"]),
        ("claude-3-opus", ["gpt", "gemini", "openai"]),
        ("gemini-pro", ["claude", "gpt", "openai"]),
        ("llama-3", ["claude", "gpt", "gemini"]),
        ("some-unknown-model", ["claude", "gpt", "gemini"]),
    ],
)
def test_fallback_hints(generation_model, expected):
    assert fallback_hints(generation_model) == expected

import pytest

from crosscheck.models.review import ReviewStrategy, ReviewType
from crosscheck.services.strategies import ReviewStrategyCatalog


def test_default_strategy_is_bias_aware(catalog):
    assert catalog.default_strategy is ReviewStrategy.BIAS_AWARE
    assert catalog.resolve(None) is ReviewStrategy.BIAS_AWARE
    assert catalog.instructions_for().strategy is ReviewStrategy.BIAS_AWARE


def test_default_strategy_is_configurable():
    catalog = ReviewStrategyCatalog(default_strategy=ReviewStrategy.ADVERSARIAL)
    assert catalog.resolve(None) is ReviewStrategy.ADVERSARIAL


@pytest.mark.parametrize("strategy", list(ReviewStrategy))
@pytest.mark.parametrize("review_type", list(ReviewType))
def test_every_strategy_supports_every_review_type(catalog, strategy, review_type):
    prompt = catalog.render(strategy, review_type)
    assert "Provide your response in JSON format" in prompt
    assert prompt.count("<1-5>") == 4


@pytest.mark.parametrize(
    ("strategy", "requires_triggers"),
    [
        (ReviewStrategy.ADVERSARIAL, False),
        (ReviewStrategy.BIAS_AWARE, True),
        (ReviewStrategy.HYBRID, True),
        (ReviewStrategy.GENERAL, False),
    ],
)
def test_bias_trigger_field_follows_strategy(catalog, strategy, requires_triggers):
    payload = catalog.instructions_for(strategy)
    assert payload.requires_bias_triggers is requires_triggers
    assert ("biasTriggersFound" in payload.output_schema) is requires_triggers


def test_focus_section_is_selected_by_review_type(catalog):
    security = catalog.render(ReviewStrategy.HYBRID, ReviewType.SECURITY)
    performance = catalog.render(ReviewStrategy.HYBRID, "performance")
    assert "Injection vulnerabilities" in security
    assert "Injection vulnerabilities" not in performance
    assert "Algorithmic complexity" in performance


def test_personas_differ_by_strategy(catalog):
    assert "competing team" in catalog.render(ReviewStrategy.ADVERSARIAL)
    assert "BIAS DETECTION STEP" in catalog.render(ReviewStrategy.BIAS_AWARE)
    assert "PHASE 2 - CRITICAL EVALUATION" in catalog.render(ReviewStrategy.HYBRID)


def test_three_point_scale_is_rendered_everywhere():
    catalog = ReviewStrategyCatalog(metrics_scale=3)
    for strategy in ReviewStrategy:
        prompt = catalog.render(strategy)
        assert "(1-3)" in prompt
        assert "<1-3>" in prompt
        assert "1-5" not in prompt


def test_code_review_prompt_uses_adversarial_framing(catalog):
    with_code = catalog.code_review_prompt("print('hi')")
    assert "competing team" in with_code
    assert with_code.endswith("```\nprint('hi')\n```")
    assert catalog.code_review_prompt().endswith("Review the code in the current context for potential issues")


def test_unknown_strategy_is_rejected(catalog):
    with pytest.raises(ValueError):
        catalog.instructions_for("lenient")


def test_describe_lists_all_strategies(catalog):
    described = {entry["strategy"]: entry for entry in catalog.describe()}
    assert set(described) == {"adversarial", "bias_aware", "hybrid", "general"}
    assert described["bias_aware"]["default"] is True
    assert described["hybrid"]["requiresBiasTriggers"] is True

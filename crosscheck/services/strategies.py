"""Reviewer prompt payloads for each review strategy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from crosscheck.models.review import ReviewStrategy, ReviewType

_RATING_ASPECTS = (
    "   - Error handling completeness\n"
    "   - Performance under load\n"
    "   - Security vulnerabilities\n"
    "   - Maintainability concerns"
)

_PERSONAS: Dict[ReviewStrategy, str] = {
    ReviewStrategy.ADVERSARIAL: (
        "You are a senior engineer reviewing code from a competing team. Your performance review "
        "specifically rewards finding issues others miss. This review is critical for the project's "
        "security and success.\n\n"
        "Review this code and:\n"
        "1. Identify at least 2 potential bugs or edge cases\n"
        "2. Suggest 1 alternative implementation approach\n"
        "3. Rate these specific aspects (1-{scale}):\n"
        f"{_RATING_ASPECTS}\n\n"
        "If you cannot find legitimate issues, explain what testing would be needed to verify correctness."
    ),
    ReviewStrategy.BIAS_AWARE: (
        "You are conducting a thorough, objective code review. Before evaluating the code, you must "
        "identify and list any potential bias triggers that could influence your judgment.\n\n"
        "BIAS DETECTION STEP:\n"
        "First, scan for these bias triggers and list any found:\n"
        "- Author attribution comments or self-declarations\n"
        "- Variable/function names suggesting specific tools or models\n"
        "- Unused imports or dead code that might mislead assessment\n"
        "- Comments claiming code quality or performance\n"
        "- Styling choices that might trigger preferences\n\n"
        "EVALUATION STEP:\n"
        "After identifying bias triggers, focus purely on functional correctness:\n"
        "1. Analyze actual code behavior and logic\n"
        "2. Identify genuine bugs or edge cases (minimum 2)\n"
        "3. Suggest 1 alternative implementation approach\n"
        "4. Rate these aspects objectively (1-{scale}):\n"
        f"{_RATING_ASPECTS}\n\n"
        "Ignore cosmetic issues, style preferences, and any bias triggers identified above. "
        "If you cannot find legitimate issues, explain what testing would be needed to verify correctness."
    ),
    ReviewStrategy.HYBRID: (
        "You are conducting a comprehensive code review that combines bias detection with critical analysis.\n\n"
        "PHASE 1 - BIAS DETECTION:\n"
        "Identify and list potential bias triggers:\n"
        "- Author attribution or self-declarations\n"
        "- Tool/model-specific naming patterns\n"
        "- Misleading comments or unused code\n"
        "- Style choices that might influence judgment\n\n"
        "PHASE 2 - CRITICAL EVALUATION:\n"
        "Apply a competing-team mindset while avoiding the identified biases:\n"
        "1. Identify at least 2 potential bugs or edge cases\n"
        "2. Suggest 1 alternative implementation approach\n"
        "3. Rate these aspects (1-{scale}):\n"
        f"{_RATING_ASPECTS}\n\n"
        "Focus on functional correctness over style, ignoring bias triggers from Phase 1. "
        "If you cannot find legitimate issues, explain what testing would be needed to verify correctness."
    ),
    ReviewStrategy.GENERAL: (
        "You are a senior engineer performing a focused code review.\n\n"
        "Review this code and:\n"
        "1. Identify potential bugs or edge cases\n"
        "2. Suggest 1 alternative implementation approach\n"
        "3. Rate these specific aspects (1-{scale}):\n"
        f"{_RATING_ASPECTS}\n\n"
        "If you cannot find legitimate issues, explain what testing would be needed to verify correctness."
    ),
}

FOCUS_GUIDANCE: Dict[ReviewType, str] = {
    ReviewType.SECURITY: (
        "Focus especially on:\n"
        "- Input validation and sanitization: List any specific input validation gaps\n"
        "- Authentication and authorization flaws: Identify access control weaknesses\n"
        "- Data exposure risks: Name any sensitive data that could be leaked\n"
        "- Injection vulnerabilities: Specify injection attack vectors\n"
        "- Cryptographic issues: Point out weak encryption or hashing practices\n"
        "- Dependencies: Flag any concerning security-related imports or packages"
    ),
    ReviewType.PERFORMANCE: (
        "Focus especially on:\n"
        "- Algorithmic complexity: Identify the slowest operation and its time complexity\n"
        "- Memory usage patterns: Point out potential memory leaks or excessive allocation\n"
        "- I/O operations efficiency: Name specific I/O bottlenecks\n"
        "- Caching opportunities: Suggest what should be cached\n"
        "- Scalability bottlenecks: Identify what will break under load\n"
        "- Testing: What performance testing is missing to verify scalability?"
    ),
    ReviewType.MAINTAINABILITY: (
        "Focus especially on:\n"
        "- Code readability and clarity: Identify confusing or unclear sections\n"
        "- Modularity and separation of concerns: Point out tight coupling issues\n"
        "- Documentation completeness: What documentation is missing?\n"
        "- Testing coverage gaps: Name 2 unhandled scenarios that need tests\n"
        "- Technical debt indicators: Identify code that will be hard to modify\n"
        "- Dependencies: Any concerning imports that add unnecessary complexity?"
    ),
    ReviewType.GENERAL: (
        "Provide a balanced review covering security, performance, and maintainability aspects.\n"
        "For each area, be specific:\n"
        "- Security: List any input validation gaps\n"
        "- Performance: Identify the slowest operation\n"
        "- Error Cases: Name 2 unhandled scenarios\n"
        "- Testing: What's missing from test coverage?\n"
        "- Dependencies: Any concerning imports or packages?"
    ),
}


@dataclass(frozen=True, slots=True)
class PromptPayload:
    strategy: ReviewStrategy
    persona: str
    focus: Dict[ReviewType, str]
    requires_bias_triggers: bool
    metrics_scale: int

    @property
    def output_schema(self) -> str:
        scale = f"<1-{self.metrics_scale}>"
        lines: List[str] = [
            "Provide your response in JSON format:",
            "{",
            '  "summary": "Brief overall assessment",',
            '  "issues": [',
            "    {",
            '      "severity": "critical|major|minor",',
            '      "description": "Clear explanation of the issue",',
            '      "suggestion": "How to fix it"',
            "    }",
            "  ],",
            '  "metrics": {',
            f'    "errorHandling": {scale},',
            f'    "performance": {scale},',
            f'    "security": {scale},',
            f'    "maintainability": {scale}',
            "  },",
        ]
        if self.requires_bias_triggers:
            lines.append('  "alternative": "Alternative implementation approach",')
            lines.append('  "biasTriggersFound": ["list of bias triggers detected"]')
        else:
            lines.append('  "alternative": "Alternative implementation approach"')
        lines.append("}")
        lines.append(
            'If "issues" is empty, the summary must say that no issues were found '
            "and describe the testing needed to verify correctness."
        )
        return "\n".join(lines)

    def render(self, review_type: ReviewType = ReviewType.GENERAL) -> str:
        """Assemble the system prompt: persona, focus section, output schema."""

        return "\n\n".join((self.persona, self.focus[ReviewType(review_type)], self.output_schema))


class ReviewStrategyCatalog:
    """Read-only lookup of prompt payloads, bound to one metrics scale.

    Every strategy in a catalog declares the same metrics bound so a deployment
    exposes a single result contract.
    """

    def __init__(self, *, metrics_scale: int = 5, default_strategy: ReviewStrategy = ReviewStrategy.BIAS_AWARE) -> None:
        if metrics_scale < 2:
            raise ValueError(f"metrics_scale must be at least 2, got {metrics_scale}")
        self._metrics_scale = metrics_scale
        self._default_strategy = ReviewStrategy(default_strategy)
        self._payloads: Dict[ReviewStrategy, PromptPayload] = {
            strategy: PromptPayload(
                strategy=strategy,
                persona=persona.format(scale=metrics_scale),
                focus=dict(FOCUS_GUIDANCE),
                requires_bias_triggers=strategy.detects_bias,
                metrics_scale=metrics_scale,
            )
            for strategy, persona in _PERSONAS.items()
        }

    @property
    def metrics_scale(self) -> int:
        return self._metrics_scale

    @property
    def default_strategy(self) -> ReviewStrategy:
        return self._default_strategy

    def resolve(self, strategy: ReviewStrategy | str | None) -> ReviewStrategy:
        if strategy is None:
            return self._default_strategy
        return ReviewStrategy(strategy)

    def instructions_for(self, strategy: ReviewStrategy | str | None = None) -> PromptPayload:
        return self._payloads[self.resolve(strategy)]

    def render(
        self,
        strategy: ReviewStrategy | str | None = None,
        review_type: ReviewType | str = ReviewType.GENERAL,
    ) -> str:
        return self.instructions_for(strategy).render(ReviewType(review_type))

    def code_review_prompt(self, code: str | None = None) -> str:
        """Quick manual review prompt; always uses the adversarial framing."""

        if code:
            code_section = f"Review this code:\n\n```\n{code}\n```"
        else:
            code_section = "Review the code in the current context for potential issues"
        return f"{self.render(ReviewStrategy.ADVERSARIAL)}\n\n{code_section}"

    def describe(self) -> List[Dict[str, object]]:
        return [
            {
                "strategy": payload.strategy.value,
                "requiresBiasTriggers": payload.requires_bias_triggers,
                "metricsScale": payload.metrics_scale,
                "default": payload.strategy is self._default_strategy,
            }
            for payload in self._payloads.values()
        ]

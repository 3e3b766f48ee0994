"""Shared data structures for cross-model review."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel


class ReviewStrategy(str, Enum):
    ADVERSARIAL = "adversarial"
    BIAS_AWARE = "bias_aware"
    HYBRID = "hybrid"
    GENERAL = "general"

    @property
    def detects_bias(self) -> bool:
        return self in (ReviewStrategy.BIAS_AWARE, ReviewStrategy.HYBRID)


class ReviewType(str, Enum):
    SECURITY = "security"
    PERFORMANCE = "performance"
    MAINTAINABILITY = "maintainability"
    GENERAL = "general"


@dataclass(frozen=True, slots=True)
class AuthorRecord:
    name: str | None = None
    email: str | None = None
    login: str | None = None
    id: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AuthorRecord":
        def _text(key: str) -> str | None:
            value = data.get(key)
            if value is None or value == "":
                return None
            return str(value)

        return cls(name=_text("name"), email=_text("email"), login=_text("login"), id=_text("id"))

    @classmethod
    def coerce(cls, value: "AuthorRecord | Mapping[str, Any] | None") -> "AuthorRecord":
        if isinstance(value, AuthorRecord):
            return value
        if value is None:
            return cls()
        return cls.from_mapping(value)

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name or "",
            "email": self.email or "",
            "login": self.login or "",
            "id": self.id or "",
        }


@dataclass(slots=True)
class CommitInfo:
    oid: str
    message_headline: str
    message_body: str = ""
    authored_date: str | None = None
    committed_date: str | None = None
    authors: List[AuthorRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "oid": self.oid,
            "messageHeadline": self.message_headline,
            "messageBody": self.message_body,
            "authoredDate": self.authored_date,
            "committedDate": self.committed_date,
            "authors": [author.to_dict() for author in self.authors],
        }


@dataclass(slots=True)
class ReviewRequest:
    artifact: str
    generation_model: str | None = None
    strategy: ReviewStrategy | None = None
    language: str | None = None
    context: str | None = None
    review_type: ReviewType = ReviewType.GENERAL
    authors: List[AuthorRecord] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ModelExclusion:
    exclude_model: str
    exclude_family: str


@dataclass(slots=True)
class ModelPreferences:
    exclusion: ModelExclusion
    fallback_hints: List[str] = field(default_factory=list)
    intelligence_priority: float = 0.8
    speed_priority: float = 0.5
    cost_priority: float = 0.3

    def to_payload(self, strategy: ReviewStrategy | None = None) -> Dict[str, Any]:
        """Render in the sampling-request shape (hints + metadata)."""

        metadata: Dict[str, Any] = {
            "excludeModel": self.exclusion.exclude_model,
            "excludeFamily": self.exclusion.exclude_family,
            "reviewContext": "bias_resistant_code_review",
        }
        if strategy is not None:
            metadata["reviewStrategy"] = strategy.value
        return {
            "hints": [{"name": hint} for hint in self.fallback_hints],
            "intelligencePriority": self.intelligence_priority,
            "speedPriority": self.speed_priority,
            "costPriority": self.cost_priority,
            "metadata": metadata,
        }


@dataclass(slots=True)
class ReviewerInvocation:
    system_prompt: str
    user_message: str
    model_preferences: ModelPreferences
    strategy: ReviewStrategy
    generation_model: str
    metrics_scale: int
    review_type: ReviewType = ReviewType.GENERAL
    max_tokens: int = 2000
    temperature: float = 0.2

    @property
    def manual_prompt(self) -> str:
        return f"{self.system_prompt}\n\n{self.user_message}"


@dataclass(frozen=True, slots=True)
class SamplingResult:
    model_identity: str
    content: str


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


Metric = Annotated[StrictInt, Field(ge=1)]


class ReviewIssue(_CamelModel):
    severity: Literal["critical", "major", "minor"]
    description: str
    suggestion: str


class ReviewMetrics(_CamelModel):
    error_handling: Metric
    performance: Metric
    security: Metric
    maintainability: Metric

    @field_validator("error_handling", "performance", "security", "maintainability")
    @classmethod
    def _within_declared_scale(cls, value: int, info: ValidationInfo) -> int:
        scale = (info.context or {}).get("metrics_scale", 5)
        if value > scale:
            raise ValueError(f"must be between 1 and {scale}, got {value}")
        return value


class ReviewResult(_CamelModel):
    review_model: str
    strategy: ReviewStrategy
    summary: str
    issues: List[ReviewIssue]
    metrics: ReviewMetrics
    alternative: str
    bias_triggers_found: List[str] | None = None

    @model_validator(mode="after")
    def _bias_triggers_match_strategy(self) -> "ReviewResult":
        if self.strategy.detects_bias:
            if self.bias_triggers_found is None:
                raise ValueError(f"biasTriggersFound is required for the '{self.strategy.value}' strategy")
        else:
            self.bias_triggers_found = None
        return self

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ManualFallback(_CamelModel):
    sampling_failed: bool = True
    generation_model: str
    strategy: ReviewStrategy
    recommended_models: List[str]
    manual_prompt: str
    reason_text: str
    error: str
    instructions: str

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

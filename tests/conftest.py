import json
import os
import tempfile

os.environ.setdefault("CROSSCHECK_LOG_DIR", tempfile.mkdtemp(prefix="crosscheck-logs-"))

import pytest

from crosscheck.models.review import ReviewerInvocation, SamplingResult
from crosscheck.services.strategies import ReviewStrategyCatalog


EVAL_REVIEW = {
    "summary": "The function evaluates untrusted input with eval, allowing arbitrary code execution.",
    "issues": [
        {
            "severity": "critical",
            "description": "eval(x) performs unsafe evaluation of input and executes arbitrary code.",
            "suggestion": "Parse the input with ast.literal_eval or a dedicated parser.",
        },
        {
            "severity": "minor",
            "description": "No error handling for malformed input.",
            "suggestion": "Catch ValueError and SyntaxError and report a clear error.",
        },
    ],
    "metrics": {"errorHandling": 1, "performance": 3, "security": 1, "maintainability": 2},
    "alternative": "Use ast.literal_eval for safe parsing of literal values.",
}


class FakeReviewer:
    """Reviewer double that records invocations and returns canned content."""

    def __init__(self, content=None, *, model="anthropic/claude-sonnet-4", error=None):
        self.content = content if content is not None else json.dumps(EVAL_REVIEW)
        self.model = model
        self.error = error
        self.invocations = []

    async def sample(self, invocation: ReviewerInvocation) -> SamplingResult:
        self.invocations.append(invocation)
        if self.error is not None:
            raise self.error
        return SamplingResult(model_identity=self.model, content=self.content)


@pytest.fixture
def catalog() -> ReviewStrategyCatalog:
    return ReviewStrategyCatalog(metrics_scale=5)


@pytest.fixture
def eval_review() -> dict:
    return json.loads(json.dumps(EVAL_REVIEW))


@pytest.fixture
def make_reviewer():
    return FakeReviewer

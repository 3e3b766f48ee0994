import json

import httpx
import pytest

from crosscheck.models.review import ReviewRequest, ReviewStrategy
from crosscheck.reviewer_client import InvocationFailed, ReviewerClient
from crosscheck.services.request_builder import ReviewRequestBuilder

CANDIDATES = ["anthropic/claude-sonnet-4", "openai/gpt-4o", "google/gemini-2.5-pro"]


def _invocation(catalog, generation_model="gpt-4"):
    return ReviewRequestBuilder(catalog).build(
        ReviewRequest(artifact="x = 1", generation_model=generation_model, strategy=ReviewStrategy.ADVERSARIAL)
    )


def _client(handler, *, api_key="test-key", candidates=CANDIDATES):
    http = httpx.AsyncClient(base_url="https://reviewer.test/v1", transport=httpx.MockTransport(handler))
    return ReviewerClient(api_key, base_url="https://reviewer.test/v1", candidate_models=candidates, client=http)


def _completion(content, model):
    return httpx.Response(200, json={"model": model, "choices": [{"message": {"role": "assistant", "content": content}}]})


def test_select_model_follows_hints_and_exclusion(catalog):
    client = _client(lambda request: httpx.Response(500))
    assert client.select_model(_invocation(catalog, "gpt-4")) == "anthropic/claude-sonnet-4"
    assert client.select_model(_invocation(catalog, "claude-3-opus")) == "openai/gpt-4o"
    assert client.select_model(_invocation(catalog, "gemini-pro")) == "anthropic/claude-sonnet-4"


def test_select_model_refuses_when_everything_overlaps(catalog):
    client = _client(lambda request: httpx.Response(500), candidates=["anthropic/claude-sonnet-4"])
    with pytest.raises(InvocationFailed, match="Cannot honor model exclusion"):
        client.select_model(_invocation(catalog, "claude"))


@pytest.mark.asyncio
async def test_sample_posts_chat_completion(catalog):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return _completion('{"summary": "ok"}', "anthropic/claude-4-sonnet-20250522")

    client = _client(handler)
    invocation = _invocation(catalog, "gpt-4")
    result = await client.sample(invocation)

    assert result.model_identity == "anthropic/claude-4-sonnet-20250522"
    assert result.content == '{"summary": "ok"}'
    assert seen["url"] == "https://reviewer.test/v1/chat/completions"
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["model"] == "anthropic/claude-sonnet-4"
    assert seen["body"]["max_tokens"] == 2000
    assert seen["body"]["temperature"] == 0.2
    assert seen["body"]["messages"][0] == {"role": "system", "content": invocation.system_prompt}
    assert seen["body"]["messages"][1] == {"role": "user", "content": invocation.user_message}
    preferences = seen["body"]["model_preferences"]
    assert preferences["hints"] == [{"name": "claude"}, {"name": "gemini"}]
    assert (preferences["intelligencePriority"], preferences["speedPriority"], preferences["costPriority"]) == (0.8, 0.5, 0.3)
    assert preferences["metadata"] == {
        "excludeModel": "gpt-4",
        "excludeFamily": "gpt-4",
        "reviewContext": "bias_resistant_code_review",
        "reviewStrategy": "adversarial",
    }


@pytest.mark.asyncio
async def test_sample_without_api_key_fails(catalog):
    calls = []
    client = _client(lambda request: calls.append(request) or httpx.Response(200), api_key=None)
    with pytest.raises(InvocationFailed, match="not configured"):
        await client.sample(_invocation(catalog))
    assert calls == []


@pytest.mark.asyncio
async def test_http_error_status_is_reported(catalog):
    client = _client(lambda request: httpx.Response(429, json={"error": "rate limited"}))
    with pytest.raises(InvocationFailed) as excinfo:
        await client.sample(_invocation(catalog))
    assert excinfo.value.status_code == 429


@pytest.mark.asyncio
async def test_transport_error_is_wrapped(catalog):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    with pytest.raises(InvocationFailed, match="failed"):
        await client.sample(_invocation(catalog))


@pytest.mark.asyncio
async def test_empty_completion_is_rejected(catalog):
    client = _client(lambda request: httpx.Response(200, json={"choices": []}))
    with pytest.raises(InvocationFailed, match="empty completion"):
        await client.sample(_invocation(catalog))


@pytest.mark.asyncio
async def test_list_content_parts_are_joined(catalog):
    def handler(request):
        return httpx.Response(
            200,
            json={"choices": [{"message": {"content": [{"type": "text", "text": "part one"}, {"type": "text", "text": "part two"}]}}]},
        )

    result = await _client(handler).sample(_invocation(catalog))
    assert result.content == "part one\npart two"
    assert result.model_identity == "anthropic/claude-sonnet-4"


def test_select_model_skips_excluded_candidates_without_hint_match(catalog):
    client = _client(
        lambda request: httpx.Response(500),
        candidates=["openai/gpt-4o", "mistralai/codestral-latest"],
    )
    assert client.select_model(_invocation(catalog, "gpt-4")) == "mistralai/codestral-latest"

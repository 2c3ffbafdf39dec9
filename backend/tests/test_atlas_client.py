import json

import httpx
import pytest

from conftest import envelope

from atlas_agenda.config import DEFAULT_ATLAS_URL
from atlas_agenda.errors import CompletionAPIError, ConfigurationError, RateLimitError
from atlas_agenda.services.atlas import AtlasClient, assistant_content, is_rate_limited


async def test_request_shape(mock_atlas):
    client, requests = mock_atlas(json_body=envelope('{"appointments": []}'))

    result = await client.complete("موعد مع أحمد يوم الأحد")

    assert result.assistant == '{"appointments": []}'
    request = requests[0]
    assert request.method == "POST"
    assert str(request.url) == DEFAULT_ATLAS_URL
    assert request.headers["authorization"] == "Bearer test-key"
    assert request.headers["content-type"] == "application/json"
    body = json.loads(request.content)
    assert body["model"] == "openai/gpt-oss-20b"
    assert [m["role"] for m in body["messages"]] == ["system", "user"]
    assert body["messages"][1]["content"] == "موعد مع أحمد يوم الأحد"
    assert body["max_tokens"] == 256
    assert body["temperature"] == 0.2
    assert body["top_p"] == 0.7
    assert body["top_k"] == 20
    assert body["repetition_penalty"] == 1.02
    assert body["stream"] is False


async def test_user_text_is_truncated_in_request(mock_atlas):
    client, requests = mock_atlas(json_body=envelope("{}"))
    await client.complete("z" * 2500)
    body = json.loads(requests[0].content)
    assert body["messages"][1]["content"] == "z" * 2000


async def test_configured_url_is_used(mock_atlas):
    sources = [{"ATLAS_API_URL": "https://atlas.example/v1/chat/completions", "ATLAS_API_KEY": "k"}]
    client, requests = mock_atlas(json_body=envelope("{}"), sources=sources)
    await client.complete("hi")
    assert str(requests[0].url) == "https://atlas.example/v1/chat/completions"
    assert requests[0].headers["authorization"] == "Bearer k"


async def test_missing_credential_fails_before_network(mock_atlas):
    client, requests = mock_atlas(json_body=envelope("{}"), sources=[{}])
    with pytest.raises(ConfigurationError):
        await client.complete("hi")
    assert requests == []


async def test_status_429_is_rate_limit(mock_atlas):
    client, _ = mock_atlas(status=429, text="too many requests")
    with pytest.raises(RateLimitError) as info:
        await client.complete("hi")
    assert info.value.body == "too many requests"
    assert info.value.status == 429


async def test_rate_limit_marker_in_body(mock_atlas):
    client, _ = mock_atlas(status=400, text="You can only request this after 30s")
    with pytest.raises(RateLimitError) as info:
        await client.complete("hi")
    assert info.value.status == 400


async def test_server_error_is_generic_failure(mock_atlas):
    client, _ = mock_atlas(status=500, text="upstream exploded")
    with pytest.raises(CompletionAPIError) as info:
        await client.complete("hi")
    assert not isinstance(info.value, RateLimitError)
    assert info.value.status == 500
    assert info.value.body == "upstream exploded"
    assert str(info.value) == "Atlas API error: 500 upstream exploded"


async def test_network_error_is_generic_failure(atlas_sources):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = AtlasClient(sources=atlas_sources, transport=httpx.MockTransport(handler))
    with pytest.raises(CompletionAPIError) as info:
        await client.complete("hi")
    assert info.value.status is None


async def test_non_json_success_body(mock_atlas):
    client, _ = mock_atlas(status=200, text="<html>gateway</html>")
    with pytest.raises(CompletionAPIError):
        await client.complete("hi")


async def test_deeply_nested_success_body(mock_atlas):
    client, _ = mock_atlas(status=200, text="[" * 100000 + "]" * 100000)
    with pytest.raises(CompletionAPIError) as info:
        await client.complete("hi")
    assert info.value.status == 200


async def test_delta_content_is_accepted(mock_atlas):
    client, _ = mock_atlas(json_body={"choices": [{"delta": {"content": "partial"}}]})
    result = await client.complete("hi")
    assert result.assistant == "partial"


async def test_missing_content_is_not_an_error(mock_atlas):
    client, _ = mock_atlas(json_body={"choices": []})
    result = await client.complete("hi")
    assert result.assistant is None
    assert result.raw == {"choices": []}


@pytest.mark.parametrize(
    "body",
    [
        None,
        [],
        {"choices": "nope"},
        {"choices": [{"message": {"content": ""}}]},
        {"choices": [{"message": None, "delta": {}}]},
    ],
)
def test_assistant_content_tolerates_odd_envelopes(body):
    assert assistant_content(body) is None


@pytest.mark.parametrize(
    "status, body, expected",
    [
        (429, "", True),
        (503, "Too Many Requests", True),
        (400, "ONLY REQUEST THIS AFTER a minute", True),
        (500, "internal error", False),
        (401, "unauthorized", False),
    ],
)
def test_is_rate_limited(status, body, expected):
    assert is_rate_limited(status, body) is expected

"""Tests for the OpenRouter completion client against a mocked transport."""

import json
import httpx
import pytest

from common.ai import (
    AuthError,
    CompletionOptions,
    CompletionTimeoutError,
    OpenRouterClient,
    RateLimitError,
    UpstreamError,
)


def _completion_body(content="Take a slow breath.", model="openai/gpt-4o-mini"):
    return {
        "id": "gen-123",
        "object": "chat.completion",
        "created": 1700000000,
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 12, "completion_tokens": 5, "total_tokens": 17},
    }


def _models_body():
    return {
        "object": "list",
        "data": [
            {"id": "openai/gpt-4o-mini", "object": "model", "created": 0, "owned_by": "openai"},
            {"id": "anthropic/claude-3-haiku", "object": "model", "created": 0, "owned_by": "anthropic"},
        ],
    }


def _make_client(handler, **kwargs):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenRouterClient(
        api_key="sk-or-test",
        site_url="http://localhost:3000",
        site_name="UNDO Recovery App",
        max_retries=0,
        http_client=http_client,
        **kwargs,
    )


class TestConstruction:
    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            OpenRouterClient(api_key="")

    def test_model_property(self):
        client = OpenRouterClient(api_key="sk-or-test", model="meta/llama-3")
        assert client.model == "meta/llama-3"


class TestComplete:
    @pytest.mark.asyncio
    async def test_success_and_request_shape(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_completion_body())

        client = _make_client(handler)
        result = await client.complete(
            [{"role": "user", "content": "Hi"}],
            CompletionOptions(temperature=0.3),
        )

        assert result.text == "Take a slow breath."
        assert result.finish_reason == "stop"
        assert result.usage["total_tokens"] == 17

        assert seen["url"].endswith("/chat/completions")
        assert seen["headers"]["authorization"] == "Bearer sk-or-test"
        assert seen["headers"]["http-referer"] == "http://localhost:3000"
        assert seen["headers"]["x-title"] == "UNDO Recovery App"

        body = seen["body"]
        assert body["model"] == "openai/gpt-4o-mini"
        assert body["temperature"] == 0.3
        assert body["max_tokens"] == 1000
        assert body["top_p"] == 0.9
        assert body["frequency_penalty"] == 0.1
        assert body["presence_penalty"] == 0.1

    @pytest.mark.asyncio
    async def test_model_override(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_completion_body(model="meta/llama-3"))

        client = _make_client(handler)
        await client.complete([{"role": "user", "content": "Hi"}], CompletionOptions(model="meta/llama-3"))

        assert seen["body"]["model"] == "meta/llama-3"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,error_type", [
        (401, AuthError),
        (403, AuthError),
        (429, RateLimitError),
        (500, UpstreamError),
        (503, UpstreamError),
        (400, UpstreamError),
    ])
    async def test_status_errors_are_mapped(self, status, error_type):
        def handler(request):
            return httpx.Response(status, json={"error": {"message": "nope", "code": status}})

        client = _make_client(handler)

        with pytest.raises(error_type) as exc_info:
            await client.complete([{"role": "user", "content": "Hi"}])

        assert exc_info.value.status_code == status

    @pytest.mark.asyncio
    async def test_timeout_is_mapped(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = _make_client(handler)

        with pytest.raises(CompletionTimeoutError):
            await client.complete([{"role": "user", "content": "Hi"}])

    @pytest.mark.asyncio
    async def test_connection_error_is_upstream(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _make_client(handler)

        with pytest.raises(UpstreamError):
            await client.complete([{"role": "user", "content": "Hi"}])

    @pytest.mark.asyncio
    async def test_no_choices_is_upstream(self):
        def handler(request):
            body = _completion_body()
            body["choices"] = []
            return httpx.Response(200, json=body)

        client = _make_client(handler)

        with pytest.raises(UpstreamError):
            await client.complete([{"role": "user", "content": "Hi"}])


class TestModelsAndStatus:
    @pytest.mark.asyncio
    async def test_list_models(self):
        client = _make_client(lambda request: httpx.Response(200, json=_models_body()))

        models = await client.list_models()

        assert [m["id"] for m in models] == ["openai/gpt-4o-mini", "anthropic/claude-3-haiku"]

    @pytest.mark.asyncio
    async def test_check_status_healthy(self):
        client = _make_client(lambda request: httpx.Response(200, json=_models_body()))
        assert await client.check_status() is True

    @pytest.mark.asyncio
    async def test_check_status_swallows_errors(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        client = _make_client(handler)
        assert await client.check_status() is False

    @pytest.mark.asyncio
    async def test_check_status_unhealthy_on_5xx(self):
        client = _make_client(lambda request: httpx.Response(502, json={"error": {"message": "bad gateway"}}))
        assert await client.check_status() is False

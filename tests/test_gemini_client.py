"""Tests for the HTTPX Gemini adapter."""

import asyncio
import json

import httpx
import pytest

from calorie_tracker.adapters.gemini_client import (
    HttpxGeminiClient,
    classify_error,
    parse_retry_after,
)
from calorie_tracker.services.errors import (
    CredentialCompromised,
    CredentialInvalid,
    ModelNotFound,
    RateLimited,
    TransportError,
)


def _client(handler) -> HttpxGeminiClient:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    return HttpxGeminiClient(
        base_url="https://gemini.test",
        http_client=httpx.AsyncClient(transport=transport),
    )


def test_list_models_keeps_generation_models() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "models": [
                    {
                        "name": "models/gemini-2.5-flash",
                        "supportedGenerationMethods": ["generateContent"],
                    },
                    {
                        "name": "models/text-embedding-004",
                        "supportedGenerationMethods": ["embedContent"],
                    },
                    {
                        "name": "tunedModels/custom",
                        "supportedGenerationMethods": ["generateContent"],
                    },
                ]
            },
        )

    models = asyncio.run(_client(handler).list_models("key-1", "v1beta"))

    assert models == ["gemini-2.5-flash"]
    assert seen[0].url.path == "/v1beta/models"
    assert seen[0].url.params["key"] == "key-1"


def test_list_models_returns_empty_on_server_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="internal")

    assert asyncio.run(_client(handler).list_models("key", "v1")) == []


def test_list_models_returns_empty_on_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    assert asyncio.run(_client(handler).list_models("key", "v1")) == []


def test_list_models_raises_for_invalid_key() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400, json={"error": {"message": "API key not valid. API_KEY_INVALID"}}
        )

    with pytest.raises(CredentialInvalid):
        asyncio.run(_client(handler).list_models("bad", "v1beta"))


def test_generate_content_posts_parts_and_joins_text() -> None:
    payloads: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/models/gemini-2.0-flash:generateContent"
        payloads.append(json.loads(request.content.decode()))
        return httpx.Response(
            200,
            json={
                "candidates": [
                    {
                        "content": {
                            "parts": [
                                {"text": '{"foodName":"Rice",'},
                                {"text": "  "},
                                {"text": '"calories":200}'},
                            ]
                        }
                    }
                ]
            },
        )

    text = asyncio.run(
        _client(handler).generate_content(
            api_key="key",
            api_version="v1",
            model_id="gemini-2.0-flash",
            parts=[{"text": "estimate rice"}],
            max_output_tokens=512,
        )
    )

    assert text == '{"foodName":"Rice","calories":200}'
    assert payloads[0]["contents"] == [
        {"role": "user", "parts": [{"text": "estimate rice"}]}
    ]
    assert payloads[0]["generationConfig"] == {
        "temperature": 0.2,
        "maxOutputTokens": 512,
    }


def test_generate_content_without_candidates_returns_empty() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"promptFeedback": {"blockReason": "OTHER"}})

    text = asyncio.run(
        _client(handler).generate_content(
            api_key="key",
            api_version="v1beta",
            model_id="gemini-pro",
            parts=[{"text": "hi"}],
            max_output_tokens=16,
        )
    )

    assert text == ""


def test_generate_content_rate_limit_carries_retry_delay() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            429,
            text='{"error": {"status": "RESOURCE_EXHAUSTED", "details": '
            '[{"retryDelay":"12s"}]}}',
        )

    with pytest.raises(RateLimited) as exc_info:
        asyncio.run(
            _client(handler).generate_content(
                api_key="key",
                api_version="v1beta",
                model_id="gemini-2.5-flash",
                parts=[{"text": "hi"}],
                max_output_tokens=16,
            )
        )

    assert exc_info.value.retry_after_seconds == 12


def test_generate_content_timeout_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(TransportError):
        asyncio.run(
            _client(handler).generate_content(
                api_key="key",
                api_version="v1beta",
                model_id="gemini-2.5-flash",
                parts=[{"text": "hi"}],
                max_output_tokens=16,
            )
        )


def test_classify_error_taxonomy() -> None:
    assert isinstance(classify_error(404, "model not found"), ModelNotFound)
    assert isinstance(classify_error(400, '"status": "NOT_FOUND"'), ModelNotFound)
    assert isinstance(
        classify_error(403, "API key was reported as leaked"), CredentialCompromised
    )
    assert isinstance(classify_error(403, "PERMISSION_DENIED"), CredentialInvalid)
    assert isinstance(classify_error(400, "API_KEY_INVALID"), CredentialInvalid)
    assert isinstance(classify_error(429, "slow down"), RateLimited)
    assert isinstance(
        classify_error(400, "You exceeded your current quota"), RateLimited
    )
    server_error = classify_error(503, "unavailable")
    assert type(server_error) is TransportError
    assert server_error.status_code == 503


def test_parse_retry_after_patterns() -> None:
    assert parse_retry_after("Please retry in 7.2s.") == 8
    assert parse_retry_after('"retryDelay": "30s"') == 30
    assert parse_retry_after("retry in 0.1s") == 1
    assert parse_retry_after("quota exceeded") is None

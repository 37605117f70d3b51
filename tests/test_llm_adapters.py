"""provider 계열별 HTTP 어댑터 테스트."""

from __future__ import annotations

import asyncio
import json
from functools import partial

import httpx
import pytest

from app.core.config import Settings
from app.core.exceptions import AdapterError
from app.core.llm_adapters import CHAT_SYSTEM_PROMPT, call_chat_completion, call_generate_content
from app.core.llm_router import smart_call
from app.core.providers import ProviderFamily, ProviderSpec


def _call_with_transport(adapter, handler, **kwargs):
    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await adapter(client=client, **kwargs)

    return asyncio.run(_run())


def _generate_content_kwargs(**overrides) -> dict:
    kwargs = {
        "credential": "g-key",
        "model_id": "gemini-2.5-flash",
        "prompt": "plan a trip",
        "endpoint": "https://generativelanguage.test/v1beta/models",
        "provider_label": "Gemini 2.5 Flash",
    }
    kwargs.update(overrides)
    return kwargs


def _chat_kwargs(**overrides) -> dict:
    kwargs = {
        "credential": "q-key",
        "model_id": "llama-3.3-70b-versatile",
        "prompt": "plan a trip",
        "endpoint": "https://chat.test/v1/chat/completions",
        "provider_label": "Llama 3.3 70B Versatile (Groq)",
    }
    kwargs.update(overrides)
    return kwargs


def test_generate_content_request_and_response_shape() -> None:
    captured: dict = {}

    def _handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = request.url
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": '{"ok": true}'}]}}]})

    text = _call_with_transport(
        call_generate_content,
        _handler,
        **_generate_content_kwargs(temperature=0.5, max_output_tokens=1024),
    )

    assert text == '{"ok": true}'
    assert captured["url"].path == "/v1beta/models/gemini-2.5-flash:generateContent"
    assert captured["url"].params["key"] == "g-key"
    assert captured["body"]["contents"] == [{"parts": [{"text": "plan a trip"}]}]
    assert captured["body"]["generationConfig"] == {"temperature": 0.5, "maxOutputTokens": 1024}


def test_chat_completion_request_and_response_shape() -> None:
    captured: dict = {}

    def _handler(request: httpx.Request) -> httpx.Response:
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "[1, 2]"}}]})

    text = _call_with_transport(call_chat_completion, _handler, **_chat_kwargs())

    assert text == "[1, 2]"
    assert captured["auth"] == "Bearer q-key"
    assert captured["body"]["model"] == "llama-3.3-70b-versatile"
    assert captured["body"]["messages"] == [
        {"role": "system", "content": CHAT_SYSTEM_PROMPT},
        {"role": "user", "content": "plan a trip"},
    ]
    assert captured["body"]["temperature"] == 0.7
    assert captured["body"]["max_tokens"] == 8192


def test_http_error_uses_error_message_from_body() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": {"message": "Resource has been exhausted"}})

    with pytest.raises(AdapterError) as exc_info:
        _call_with_transport(call_generate_content, _handler, **_generate_content_kwargs())

    assert str(exc_info.value) == "Resource has been exhausted"
    assert exc_info.value.kind == "http_error"
    assert exc_info.value.provider_label == "Gemini 2.5 Flash"


def test_http_error_without_message_falls_back_to_status() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="upstream unavailable")

    with pytest.raises(AdapterError, match="HTTP 503"):
        _call_with_transport(call_chat_completion, _handler, **_chat_kwargs())


def test_network_error_is_wrapped() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(AdapterError) as exc_info:
        _call_with_transport(call_chat_completion, _handler, **_chat_kwargs())

    assert exc_info.value.kind == "network_error"


def test_missing_choice_content_is_malformed() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"choices": []})

    with pytest.raises(AdapterError) as exc_info:
        _call_with_transport(call_chat_completion, _handler, **_chat_kwargs())

    assert exc_info.value.kind == "malformed_response"


def test_blank_candidate_text_is_rejected() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "  "}]}}]})

    with pytest.raises(AdapterError, match="empty response from provider"):
        _call_with_transport(call_generate_content, _handler, **_generate_content_kwargs())


def test_non_ascii_credential_is_wrapped_as_network_error() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("request must not be sent")

    with pytest.raises(AdapterError) as exc_info:
        _call_with_transport(call_chat_completion, _handler, **_chat_kwargs(credential="kéy\n"))

    assert exc_info.value.kind == "network_error"


def test_invalid_endpoint_is_wrapped_as_network_error() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("request must not be sent")

    with pytest.raises(AdapterError) as exc_info:
        _call_with_transport(call_chat_completion, _handler, **_chat_kwargs(endpoint="https://chat.test/v1\x00"))

    assert exc_info.value.kind == "network_error"


def test_fallback_chain_continues_after_request_build_failure() -> None:
    registry = (
        ProviderSpec("Groq", "llama", ProviderFamily.CHAT_COMPLETION, "groq", "https://chat.test/v1/chat/completions"),
        ProviderSpec("Gemini", "gemini-2.5-flash", ProviderFamily.GENERATE_CONTENT, "gemini", "https://gemini.test/m"),
    )

    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "ok"}]}}]})

    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler=_handler)) as client:
            adapters = {
                ProviderFamily.CHAT_COMPLETION: partial(call_chat_completion, client=client),
                ProviderFamily.GENERATE_CONTENT: partial(call_generate_content, client=client),
            }
            return await smart_call(
                "plan",
                {"groq": "kéy\n", "gemini": "g-key"},
                registry=registry,
                adapters=adapters,
                settings=Settings(),
            )

    result = asyncio.run(_run())

    assert result.text == "ok"
    assert result.provider_used == "Gemini"

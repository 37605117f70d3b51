"""provider 계열별 HTTP 어댑터.

두 계열(generateContent, chat completion)의 요청/응답 형태와 오류 추출을 정규화합니다.
모두 `httpx.AsyncClient`를 사용하므로 Timeout Guard가 태스크를 취소하면
진행 중인 요청과 커넥션도 함께 정리됩니다.
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Any, Protocol

import httpx

from app.core.exceptions import AdapterError
from app.core.logger import get_logger
from app.core.providers import ProviderFamily

logger = get_logger(__name__)

CHAT_SYSTEM_PROMPT = (
    "You are an expert travel planner. Always respond with valid JSON only, no markdown fences, no explanation."
)
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_OUTPUT_TOKENS = 8192
_CLIENT_TIMEOUT_SECONDS = 60.0
_ERROR_BODY_PREVIEW = 200


class Adapter(Protocol):
    """provider 어댑터 호출 규약."""

    def __call__(
        self,
        credential: str,
        model_id: str,
        prompt: str,
        *,
        endpoint: str,
        provider_label: str,
        client: httpx.AsyncClient | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
    ) -> Awaitable[str]: ...


def extract_error_message(response: httpx.Response) -> str:
    """오류 응답 본문에서 메시지를 추출합니다. 없으면 `HTTP <status>`."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error.strip():
            return error.strip()
        if body.get("message"):
            return str(body["message"])
    return f"HTTP {response.status_code}"


async def _post_json(
    *,
    provider_label: str,
    url: str,
    payload: dict[str, Any],
    headers: dict[str, str],
    params: dict[str, str] | None,
    client: httpx.AsyncClient | None,
) -> dict[str, Any]:
    async def _send(http_client: httpx.AsyncClient) -> httpx.Response:
        return await http_client.post(url, json=payload, headers=headers, params=params)

    try:
        if client is not None:
            response = await _send(client)
        else:
            async with httpx.AsyncClient(timeout=_CLIENT_TIMEOUT_SECONDS) as owned_client:
                response = await _send(owned_client)
    except httpx.TimeoutException as exc:
        raise AdapterError(provider_label, f"request timed out: {exc}", kind="timeout") from exc
    except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
        # 헤더에 ASCII가 아닌 키가 들어가면 전송 전에 UnicodeEncodeError가 난다
        raise AdapterError(provider_label, f"network error: {exc}", kind="network_error") from exc

    if response.is_error:
        message = extract_error_message(response)
        logger.debug(
            "Provider error body: provider=%s status=%s body=%s",
            provider_label,
            response.status_code,
            response.text[:_ERROR_BODY_PREVIEW],
        )
        raise AdapterError(provider_label, message, kind="http_error")

    try:
        data = response.json()
    except ValueError as exc:
        raise AdapterError(provider_label, "response body is not valid JSON", kind="malformed_response") from exc
    if not isinstance(data, dict):
        raise AdapterError(provider_label, "unexpected response envelope", kind="malformed_response")
    return data


def _require_text(provider_label: str, text: Any) -> str:
    if not isinstance(text, str) or not text.strip():
        raise AdapterError(provider_label, "empty response from provider", kind="malformed_response")
    return text


async def call_generate_content(
    credential: str,
    model_id: str,
    prompt: str,
    *,
    endpoint: str,
    provider_label: str,
    client: httpx.AsyncClient | None = None,
    temperature: float = DEFAULT_TEMPERATURE,
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
) -> str:
    """generateContent 계열(Gemini) 단일 턴 호출."""
    payload = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {"temperature": temperature, "maxOutputTokens": max_output_tokens},
    }
    data = await _post_json(
        provider_label=provider_label,
        url=f"{endpoint.rstrip('/')}/{model_id}:generateContent",
        payload=payload,
        headers={"Content-Type": "application/json"},
        params={"key": credential},
        client=client,
    )

    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise AdapterError(provider_label, "response has no candidate text", kind="malformed_response") from exc
    return _require_text(provider_label, text)


async def call_chat_completion(
    credential: str,
    model_id: str,
    prompt: str,
    *,
    endpoint: str,
    provider_label: str,
    client: httpx.AsyncClient | None = None,
    temperature: float = DEFAULT_TEMPERATURE,
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
) -> str:
    """OpenAI 호환 chat completion 계열(Groq, OpenRouter) 호출."""
    payload = {
        "model": model_id,
        "messages": [
            {"role": "system", "content": CHAT_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        "temperature": temperature,
        "max_tokens": max_output_tokens,
    }
    data = await _post_json(
        provider_label=provider_label,
        url=endpoint,
        payload=payload,
        headers={"Content-Type": "application/json", "Authorization": f"Bearer {credential}"},
        params=None,
        client=client,
    )

    try:
        text = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise AdapterError(provider_label, "response has no choice content", kind="malformed_response") from exc
    return _require_text(provider_label, text)


ADAPTERS: dict[ProviderFamily, Adapter] = {
    ProviderFamily.GENERATE_CONTENT: call_generate_content,
    ProviderFamily.CHAT_COMPLETION: call_chat_completion,
}

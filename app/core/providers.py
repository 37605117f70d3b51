"""AI provider 레지스트리.

순서가 곧 선호도입니다. 오케스트레이터는 위에서부터 시도하며 첫 성공에서 멈춥니다.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

from app.core.config import Settings, get_settings

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
GROQ_CHAT_URL = "https://api.groq.com/openai/v1/chat/completions"
OPENROUTER_CHAT_URL = "https://openrouter.ai/api/v1/chat/completions"

ProviderCredentials = Mapping[str, str | None]


class ProviderFamily(StrEnum):
    """provider 프로토콜 계열."""

    GENERATE_CONTENT = "GENERATE_CONTENT"
    CHAT_COMPLETION = "CHAT_COMPLETION"


class CredentialKey(StrEnum):
    """자격 증명 슬롯 이름."""

    GEMINI = "gemini"
    GROQ = "groq"
    OPENROUTER = "openrouter"


@dataclass(frozen=True, slots=True)
class ProviderSpec:
    """단일 LLM 백엔드 설정."""

    display_name: str
    model_id: str
    family: ProviderFamily
    credential_key: str
    endpoint: str


PROVIDER_REGISTRY: tuple[ProviderSpec, ...] = (
    ProviderSpec(
        display_name="Gemini 2.5 Flash",
        model_id="gemini-2.5-flash",
        family=ProviderFamily.GENERATE_CONTENT,
        credential_key=CredentialKey.GEMINI,
        endpoint=GEMINI_BASE_URL,
    ),
    ProviderSpec(
        display_name="Gemini 2.5 Flash Lite",
        model_id="gemini-2.5-flash-lite",
        family=ProviderFamily.GENERATE_CONTENT,
        credential_key=CredentialKey.GEMINI,
        endpoint=GEMINI_BASE_URL,
    ),
    ProviderSpec(
        display_name="Gemini 2.0 Flash",
        model_id="gemini-2.0-flash",
        family=ProviderFamily.GENERATE_CONTENT,
        credential_key=CredentialKey.GEMINI,
        endpoint=GEMINI_BASE_URL,
    ),
    ProviderSpec(
        display_name="Llama 3.3 70B Versatile (Groq)",
        model_id="llama-3.3-70b-versatile",
        family=ProviderFamily.CHAT_COMPLETION,
        credential_key=CredentialKey.GROQ,
        endpoint=GROQ_CHAT_URL,
    ),
    ProviderSpec(
        display_name="Llama 3.1 8B Instant (Groq)",
        model_id="llama-3.1-8b-instant",
        family=ProviderFamily.CHAT_COMPLETION,
        credential_key=CredentialKey.GROQ,
        endpoint=GROQ_CHAT_URL,
    ),
    ProviderSpec(
        display_name="OpenRouter Llama 3.1 8B Free",
        model_id="meta-llama/llama-3.1-8b-instruct:free",
        family=ProviderFamily.CHAT_COMPLETION,
        credential_key=CredentialKey.OPENROUTER,
        endpoint=OPENROUTER_CHAT_URL,
    ),
)


def resolve_credential(spec: ProviderSpec, credentials: ProviderCredentials) -> str | None:
    """provider가 요구하는 자격 증명을 반환합니다. 비어 있으면 None."""
    value = credentials.get(spec.credential_key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def is_available(spec: ProviderSpec, credentials: ProviderCredentials) -> bool:
    """자격 증명이 있어 시도 가능한 provider인지 판별합니다."""
    return resolve_credential(spec, credentials) is not None


def credentials_from_settings(settings: Settings | None = None) -> dict[str, str]:
    """설정에서 provider 자격 증명 매핑을 생성합니다. 빈 슬롯은 포함하지 않습니다."""
    resolved_settings = settings or get_settings()
    slots = {
        CredentialKey.GEMINI.value: resolved_settings.GEMINI_API_KEY,
        CredentialKey.GROQ.value: resolved_settings.GROQ_API_KEY,
        CredentialKey.OPENROUTER.value: resolved_settings.OPENROUTER_API_KEY,
    }
    return {key: value for key, value in slots.items() if value}

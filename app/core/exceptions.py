"""LLM 호출/정규화 계층 예외 정의."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.core.llm_router import ProviderAttempt


class AdapterError(RuntimeError):
    """단일 provider 호출 실패.

    HTTP 오류, 네트워크 오류, 응답 봉투 형식 오류를 모두 포함합니다.
    `kind`는 로그 구분용이며 오케스트레이터는 종류와 무관하게 다음 provider로 넘어갑니다.
    """

    def __init__(self, provider_label: str, message: str, *, kind: str = "provider_error") -> None:
        super().__init__(message)
        self.provider_label = provider_label
        self.message = message
        self.kind = kind

    def __str__(self) -> str:
        return self.message


class ProviderTimeoutError(AdapterError):
    """Timeout Guard 마감 시간 초과."""

    def __init__(self, provider_label: str, timeout_seconds: float) -> None:
        super().__init__(
            provider_label,
            f"timed out after {timeout_seconds:g}s",
            kind="timeout",
        )
        self.timeout_seconds = timeout_seconds


class AllProvidersFailedError(RuntimeError):
    """모든 provider가 건너뛰어지거나 실패했을 때 발생하는 집계 예외."""

    headline = "All AI providers failed"

    def __init__(self, attempts: Sequence[ProviderAttempt]) -> None:
        self.attempts = tuple(attempts)
        super().__init__(self.headline + ":\n" + self.details)

    @property
    def details(self) -> str:
        """provider별 실패 사유를 시도 순서대로 줄바꿈으로 연결합니다."""
        return "\n".join(attempt.describe() for attempt in self.attempts)


class NoProviderConfiguredError(AllProvidersFailedError):
    """자격 증명이 하나도 없어 어떤 provider도 시도하지 못한 경우."""

    headline = "No AI provider is configured"

    def __init__(self) -> None:
        super().__init__(())

    def __str__(self) -> str:
        return f"{self.headline}: set GEMINI_API_KEY, GROQ_API_KEY or OPENROUTER_API_KEY"


class NormalizationError(ValueError):
    """LLM 응답에서 JSON 구조를 복구하지 못한 경우."""


class ItineraryGenerationError(RuntimeError):
    """일정 청크 결과가 Day/Itinerary 형태가 아니어서 전체 생성을 중단한 경우."""

"""provider 폴백 체인 기반 LLM 호출(smart call).

레지스트리 순서대로 provider를 하나씩 시도하고 첫 성공에서 멈춥니다.
동시 호출은 하지 않습니다. 결과는 성공/실패 태그가 붙은 값으로 반환되며
`smart_call`만 실패를 `AllProvidersFailedError`로 바꿔 전파합니다.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from time import perf_counter

from app.core.config import Settings, get_settings
from app.core.exceptions import AdapterError, AllProvidersFailedError, NoProviderConfiguredError
from app.core.llm_adapters import ADAPTERS, Adapter
from app.core.logger import get_logger
from app.core.providers import (
    PROVIDER_REGISTRY,
    ProviderCredentials,
    ProviderFamily,
    ProviderSpec,
    is_available,
    resolve_credential,
)
from app.core.timeout_policy import get_timeout_policy, run_with_timeout

logger = get_logger(__name__)

ProviderAttemptCallback = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class ProviderAttempt:
    """실패한 provider 시도 한 건."""

    provider: str
    error: str

    def describe(self) -> str:
        return f"{self.provider}: {self.error}"


@dataclass(frozen=True, slots=True)
class OrchestrationResult:
    """smart call 성공 결과."""

    text: str
    provider_used: str


@dataclass(frozen=True, slots=True)
class OrchestrationSuccess:
    """폴백 체인 성공 변형. 앞선 실패 시도 기록을 함께 보관합니다."""

    text: str
    provider_used: str
    attempts: tuple[ProviderAttempt, ...] = field(default_factory=tuple)

    def to_result(self) -> OrchestrationResult:
        return OrchestrationResult(text=self.text, provider_used=self.provider_used)


@dataclass(frozen=True, slots=True)
class OrchestrationFailure:
    """폴백 체인 실패 변형."""

    attempts: tuple[ProviderAttempt, ...]

    def to_error(self) -> AllProvidersFailedError:
        if not self.attempts:
            return NoProviderConfiguredError()
        return AllProvidersFailedError(self.attempts)


OrchestrationOutcome = OrchestrationSuccess | OrchestrationFailure


def _log_success(*, spec: ProviderSpec, latency_ms: float, failed_before: int) -> None:
    logger.info(
        "LLM call succeeded: provider=%s",
        spec.display_name,
        extra={
            "provider": spec.display_name,
            "model": spec.model_id,
            "family": spec.family.value,
            "fallback_used": failed_before > 0,
            "latency_ms": latency_ms,
        },
    )


def _log_failure(*, spec: ProviderSpec, latency_ms: float, exc: AdapterError) -> None:
    logger.warning(
        "LLM call failed: provider=%s kind=%s error=%s",
        spec.display_name,
        exc.kind,
        exc.message,
        extra={
            "provider": spec.display_name,
            "model": spec.model_id,
            "family": spec.family.value,
            "failure_kind": exc.kind,
            "latency_ms": latency_ms,
        },
    )


def _notify_attempt(callback: ProviderAttemptCallback | None, display_name: str) -> None:
    if callback is None:
        return
    try:
        callback(display_name)
    except Exception:
        logger.exception("Provider attempt callback raised: provider=%s", display_name)


async def run_fallback_chain(
    prompt: str,
    credentials: ProviderCredentials,
    *,
    on_provider_attempt: ProviderAttemptCallback | None = None,
    registry: Sequence[ProviderSpec] = PROVIDER_REGISTRY,
    adapters: Mapping[ProviderFamily, Adapter] = ADAPTERS,
    timeout_seconds: float | None = None,
    settings: Settings | None = None,
) -> OrchestrationOutcome:
    """레지스트리를 순서대로 접어 첫 성공을 반환합니다.

    Args:
        prompt: LLM에 보낼 프롬프트 (비어 있으면 안 됨).
        credentials: 자격 증명 슬롯 매핑. 빈 슬롯의 provider는 시도 없이 건너뜁니다.
        on_provider_attempt: 네트워크 호출 직전에 provider 표시 이름으로 호출되는 콜백.
        registry: 시도할 provider 목록 (순서 유지).
        adapters: 계열별 어댑터.
        timeout_seconds: provider 시도별 마감 시간. 기본값은 타임아웃 정책의 LLM 타임아웃.
        settings: 설정 (샘플링 파라미터, 타임아웃).

    Returns:
        `OrchestrationSuccess` 또는 `OrchestrationFailure`.
    """
    if not prompt or not prompt.strip():
        raise ValueError("prompt must be a non-empty string")

    resolved_settings = settings or get_settings()
    deadline = timeout_seconds
    if deadline is None:
        deadline = get_timeout_policy(resolved_settings).llm_timeout_seconds

    attempts: list[ProviderAttempt] = []
    for spec in registry:
        if not is_available(spec, credentials):
            logger.debug("Skipping provider without credential: provider=%s", spec.display_name)
            continue

        adapter = adapters.get(spec.family)
        if adapter is None:
            attempts.append(ProviderAttempt(spec.display_name, f"no adapter for family {spec.family.value}"))
            continue

        _notify_attempt(on_provider_attempt, spec.display_name)
        started = perf_counter()
        try:
            text = await run_with_timeout(
                adapter(
                    resolve_credential(spec, credentials),
                    spec.model_id,
                    prompt,
                    endpoint=spec.endpoint,
                    provider_label=spec.display_name,
                    temperature=resolved_settings.LLM_TEMPERATURE,
                    max_output_tokens=resolved_settings.LLM_MAX_OUTPUT_TOKENS,
                ),
                deadline,
                spec.display_name,
            )
        except AdapterError as exc:
            _log_failure(spec=spec, latency_ms=(perf_counter() - started) * 1000, exc=exc)
            attempts.append(ProviderAttempt(spec.display_name, exc.message))
            continue

        _log_success(spec=spec, latency_ms=(perf_counter() - started) * 1000, failed_before=len(attempts))
        return OrchestrationSuccess(text=text, provider_used=spec.display_name, attempts=tuple(attempts))

    return OrchestrationFailure(attempts=tuple(attempts))


async def smart_call(
    prompt: str,
    credentials: ProviderCredentials,
    on_provider_attempt: ProviderAttemptCallback | None = None,
    **chain_options,
) -> OrchestrationResult:
    """폴백 체인을 실행하고 첫 성공 텍스트와 provider 이름을 반환합니다.

    모든 provider가 실패하면 시도 순서대로 사유를 담은 `AllProvidersFailedError`,
    자격 증명이 하나도 없으면 `NoProviderConfiguredError`를 발생시킵니다.
    """
    outcome = await run_fallback_chain(
        prompt,
        credentials,
        on_provider_attempt=on_provider_attempt,
        **chain_options,
    )
    if isinstance(outcome, OrchestrationFailure):
        error = outcome.to_error()
        logger.error("%s", error)
        raise error
    return outcome.to_result()

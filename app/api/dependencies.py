"""API 의존성 모음."""

from fastapi import Header, HTTPException, status

from app.core.config import get_settings
from app.core.llm_router import ProviderAttemptCallback
from app.core.logger import get_logger
from app.core.providers import ProviderCredentials, credentials_from_settings

logger = get_logger(__name__)


def get_provider_credentials() -> ProviderCredentials:
    """환경 설정에서 AI provider 자격 증명을 제공합니다."""
    return credentials_from_settings(get_settings())


def get_provider_attempt_logger() -> ProviderAttemptCallback:
    """provider 전환을 요청 로그에 남기는 콜백을 제공합니다."""

    def _log_attempt(display_name: str) -> None:
        logger.info("Trying AI provider: %s", display_name)

    return _log_attempt


def require_service_secret(
    x_service_secret: str | None = Header(default=None, alias="x-service-secret"),
) -> None:
    """서비스 간 인증을 위한 시크릿 헤더를 검증한다."""
    settings = get_settings()
    if not settings.SERVICE_SECRET:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="서비스 시크릿 설정이 없습니다.",
        )

    if x_service_secret != settings.SERVICE_SECRET:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="유효하지 않은 서비스 시크릿입니다.",
        )

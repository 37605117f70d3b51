"""애플리케이션 전역 설정을 관리하는 모듈."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PLACEHOLDER_PREFIX = "PASTE_YOUR_"


def _clean_secret(value: object) -> str | None:
    """빈 값이나 플레이스홀더 키를 None으로 정규화합니다."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.startswith(_PLACEHOLDER_PREFIX):
        return None
    return text


class Settings(BaseSettings):
    """환경 변수 기반 설정 모델."""

    GEMINI_API_KEY: str | None = None
    GROQ_API_KEY: str | None = None
    OPENROUTER_API_KEY: str | None = None
    UNSPLASH_ACCESS_KEY: str | None = None
    OPENWEATHER_API_KEY: str | None = None
    REQUEST_TIMEOUT_SECONDS: int = 300
    LLM_TIMEOUT_SECONDS: int = 45
    EXTERNAL_API_TIMEOUT_SECONDS: int = 15
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_OUTPUT_TOKENS: int = 8192
    ITINERARY_CHUNK_DAYS: int = 7
    APP_ENV: str = "development"
    DOCS_MODE: str = "disabled"
    EXPOSE_INTERNAL_ERRORS: bool = False
    CORS_ALLOW_ORIGINS: str = ""
    CORS_ALLOW_METHODS: str = "GET,POST,OPTIONS"
    CORS_ALLOW_HEADERS: str = "Content-Type"
    CORS_ALLOW_CREDENTIALS: bool = False
    SECURITY_HEADERS_ENABLED: bool = True
    SERVICE_SECRET: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "GEMINI_API_KEY",
        "GROQ_API_KEY",
        "OPENROUTER_API_KEY",
        "UNSPLASH_ACCESS_KEY",
        "OPENWEATHER_API_KEY",
        mode="before",
    )
    @classmethod
    def _drop_placeholder_keys(cls, value: object) -> str | None:
        return _clean_secret(value)

    @field_validator("LLM_TEMPERATURE", mode="before")
    @classmethod
    def _clamp_llm_temperature(cls, value: object) -> float:
        try:
            numeric = float(value) if value is not None else 0.7
        except (TypeError, ValueError):
            numeric = 0.7
        return min(2.0, max(0.0, numeric))

    @field_validator("LLM_MAX_OUTPUT_TOKENS", mode="before")
    @classmethod
    def _clamp_llm_max_output_tokens(cls, value: object) -> int:
        try:
            numeric = int(value) if value is not None else 8192
        except (TypeError, ValueError):
            numeric = 8192
        return max(256, numeric)

    @field_validator("ITINERARY_CHUNK_DAYS", mode="before")
    @classmethod
    def _clamp_itinerary_chunk_days(cls, value: object) -> int:
        try:
            numeric = int(value) if value is not None else 7
        except (TypeError, ValueError):
            numeric = 7
        return min(7, max(1, numeric))


@lru_cache
def get_settings() -> Settings:
    """Settings 인스턴스를 반환한다. 최초 호출 시에만 생성되고 이후 캐싱된다."""
    return Settings()

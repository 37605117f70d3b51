"""원시 프롬프트 프록시 API 스키마."""

from pydantic import BaseModel, Field

from app.schemas.place import CamelModel


class AIProxyRequest(BaseModel):
    """프록시 요청. 프롬프트를 그대로 provider 체인에 전달합니다."""

    prompt: str = Field(..., min_length=1, description="LLM 프롬프트")


class AIProxyResponse(CamelModel):
    """프록시 성공 응답."""

    text: str = Field(..., description="LLM 원문 응답")
    provider_used: str = Field(..., description="응답한 AI provider")


class AIProxyError(BaseModel):
    """모든 provider 실패 시 응답."""

    error: str = Field(..., description="오류 요약")
    details: str = Field("", description="provider별 실패 사유 (줄바꿈 구분)")

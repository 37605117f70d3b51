"""원시 프롬프트 프록시 API."""

from fastapi import APIRouter, Depends

from app.api.dependencies import get_provider_attempt_logger, get_provider_credentials
from app.core.llm_router import ProviderAttemptCallback, smart_call
from app.core.logger import get_logger
from app.core.providers import ProviderCredentials
from app.schemas.ai_proxy import AIProxyError, AIProxyRequest, AIProxyResponse

router = APIRouter(prefix="/api/v1", tags=["ai"])
logger = get_logger(__name__)

AI_PROXY_ERROR_EXAMPLES = {
    502: {
        "all_failed": {
            "summary": "모든 provider 실패",
            "description": "자격 증명이 있는 provider를 모두 시도했지만 실패한 경우",
            "value": {
                "error": "All AI providers failed",
                "details": "Gemini 2.5 Flash: quota exceeded\nLlama 3.3 70B (Groq): HTTP 503",
            },
        }
    },
    503: {
        "not_configured": {
            "summary": "provider 미설정",
            "description": "GEMINI_API_KEY, GROQ_API_KEY, OPENROUTER_API_KEY가 모두 비어 있는 경우",
            "value": {"error": "No AI provider is configured", "details": ""},
        }
    },
}


@router.post(
    "/ai",
    response_model=AIProxyResponse,
    response_model_by_alias=True,
    responses={
        502: {
            "model": AIProxyError,
            "description": "provider 체인 실패",
            "content": {"application/json": {"examples": AI_PROXY_ERROR_EXAMPLES[502]}},
        },
        503: {
            "model": AIProxyError,
            "description": "provider 미설정",
            "content": {"application/json": {"examples": AI_PROXY_ERROR_EXAMPLES[503]}},
        },
    },
)
async def proxy_prompt(
    request: AIProxyRequest,
    credentials: ProviderCredentials = Depends(get_provider_credentials),  # noqa: B008
    on_provider_attempt: ProviderAttemptCallback = Depends(get_provider_attempt_logger),  # noqa: B008
) -> AIProxyResponse:
    """프롬프트를 provider 체인에 그대로 전달하고 첫 성공 응답을 반환합니다."""
    result = await smart_call(request.prompt, credentials, on_provider_attempt)
    logger.info("AI proxy completed: provider=%s chars=%d", result.provider_used, len(result.text))
    return AIProxyResponse(text=result.text, provider_used=result.provider_used)

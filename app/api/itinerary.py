"""일정 생성 API."""

from fastapi import APIRouter, Depends

from app.api.dependencies import get_provider_attempt_logger, get_provider_credentials
from app.core.llm_router import ProviderAttemptCallback
from app.core.logger import get_logger
from app.core.providers import ProviderCredentials
from app.schemas.itinerary import BudgetEstimate, Itinerary, ItineraryRequest, ItineraryResponse
from app.services.itinerary_service import drop_empty_days, estimate_budget, generate_itinerary

router = APIRouter(prefix="/api/v1", tags=["itinerary"])
logger = get_logger(__name__)


@router.post("/itinerary", response_model=ItineraryResponse, response_model_by_alias=True)
async def create_itinerary(
    request: ItineraryRequest,
    credentials: ProviderCredentials = Depends(get_provider_credentials),  # noqa: B008
    on_provider_attempt: ProviderAttemptCallback = Depends(get_provider_attempt_logger),  # noqa: B008
) -> ItineraryResponse:
    """여행 기간 전체의 일자별 일정을 생성합니다."""
    logger.info(
        "Itinerary request received: locations=%s start=%s end=%s auto_mode=%s places=%d",
        request.locations,
        request.start_date,
        request.end_date,
        request.auto_mode,
        len(request.places),
    )
    itinerary = await generate_itinerary(request, credentials, on_provider_attempt)
    logger.info("Itinerary completed: days=%d providers=%s", len(itinerary.days), itinerary.providers_used)
    return itinerary


@router.post("/itinerary/budget", response_model=BudgetEstimate, response_model_by_alias=True)
def itinerary_budget(itinerary: Itinerary) -> BudgetEstimate:
    """장소가 있는 일자만 대상으로 입장료 합계를 추정합니다."""
    return estimate_budget(drop_empty_days(itinerary))

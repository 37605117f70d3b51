"""장소 탐색 API."""

from fastapi import APIRouter, Depends

from app.api.dependencies import get_provider_attempt_logger, get_provider_credentials
from app.core.llm_router import ProviderAttemptCallback
from app.core.logger import get_logger
from app.core.providers import ProviderCredentials
from app.schemas.discovery import (
    EnrichPlacesRequest,
    FamousPlacesRequest,
    MorePlacesRequest,
    NearbyPlacesRequest,
    PlacesResponse,
)
from app.services.place_service import (
    enrich_custom_places,
    fetch_famous_places,
    fetch_more_places,
    search_nearby_places,
)

router = APIRouter(prefix="/api/v1/places", tags=["places"])
logger = get_logger(__name__)


@router.post("/famous", response_model=PlacesResponse, response_model_by_alias=True)
async def famous_places(
    request: FamousPlacesRequest,
    credentials: ProviderCredentials = Depends(get_provider_credentials),  # noqa: B008
    on_provider_attempt: ProviderAttemptCallback = Depends(get_provider_attempt_logger),  # noqa: B008
) -> PlacesResponse:
    """도시별 대표 관광지를 반환합니다."""
    places, provider_used = await fetch_famous_places(request.locations, credentials, on_provider_attempt)
    logger.info("Famous places completed: locations=%d places=%d", len(request.locations), len(places))
    return PlacesResponse(places=places, provider_used=provider_used)


@router.post("/more", response_model=PlacesResponse, response_model_by_alias=True)
async def more_places(
    request: MorePlacesRequest,
    credentials: ProviderCredentials = Depends(get_provider_credentials),  # noqa: B008
    on_provider_attempt: ProviderAttemptCallback = Depends(get_provider_attempt_logger),  # noqa: B008
) -> PlacesResponse:
    """이미 받은 장소를 제외한 추가 장소를 반환합니다."""
    places, provider_used = await fetch_more_places(
        request.location,
        request.exclude_names,
        credentials,
        on_provider_attempt,
        count=request.count,
    )
    return PlacesResponse(places=places, provider_used=provider_used)


@router.post("/nearby", response_model=PlacesResponse, response_model_by_alias=True)
async def nearby_places(
    request: NearbyPlacesRequest,
    credentials: ProviderCredentials = Depends(get_provider_credentials),  # noqa: B008
    on_provider_attempt: ProviderAttemptCallback = Depends(get_provider_attempt_logger),  # noqa: B008
) -> PlacesResponse:
    """자유 텍스트 검색어 주변의 장소를 반환합니다."""
    places, provider_used = await search_nearby_places(
        request.query,
        credentials,
        on_provider_attempt,
        locations=request.locations,
    )
    return PlacesResponse(places=places, provider_used=provider_used)


@router.post("/enrich", response_model=PlacesResponse, response_model_by_alias=True)
async def enrich_places(
    request: EnrichPlacesRequest,
    credentials: ProviderCredentials = Depends(get_provider_credentials),  # noqa: B008
    on_provider_attempt: ProviderAttemptCallback = Depends(get_provider_attempt_logger),  # noqa: B008
) -> PlacesResponse:
    """사용자가 입력한 장소에 설명과 카테고리를 채워 반환합니다."""
    places, provider_used = await enrich_custom_places(
        request.place_names,
        request.location,
        credentials,
        on_provider_attempt,
    )
    return PlacesResponse(places=places, provider_used=provider_used)

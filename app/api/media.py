"""날씨/이미지 부가 정보 API."""

from fastapi import APIRouter, Query

from app.core.logger import get_logger
from app.schemas.itinerary import Itinerary
from app.schemas.media import DailyForecast, PlaceImagesRequest, PlaceImagesResponse
from app.services.image_service import fetch_place_images
from app.services.weather_service import fetch_forecast, fetch_weather_for_days

router = APIRouter(prefix="/api/v1", tags=["media"])
logger = get_logger(__name__)


@router.get("/weather", response_model=list[DailyForecast])
async def city_weather(city: str = Query(..., min_length=1, description="도시 이름")) -> list[DailyForecast]:
    """도시의 5일 예보를 일자별(정오 기준)로 요약해 반환합니다."""
    return await fetch_forecast(city)


@router.post("/images", response_model=PlaceImagesResponse, response_model_by_alias=True)
async def place_images(request: PlaceImagesRequest) -> PlaceImagesResponse:
    """장소 이름별 이미지 URL을 반환합니다. 검색에 실패한 장소는 대체 이미지를 사용합니다."""
    images = await fetch_place_images(request.items)
    logger.info("Place images resolved: count=%d", len(images))
    return PlaceImagesResponse(images=images)


@router.post("/itinerary/weather", response_model=dict[int, DailyForecast])
async def itinerary_weather(itinerary: Itinerary) -> dict[int, DailyForecast]:
    """일정의 일자별 예보를 반환합니다. 예보가 없는 일자는 생략합니다."""
    return await fetch_weather_for_days(itinerary.days)

"""날씨/이미지 부가 정보 스키마."""

from pydantic import BaseModel, Field

from app.schemas.place import CamelModel


class DailyForecast(BaseModel):
    """정오에 가장 가까운 예보 한 건으로 요약한 일자별 날씨."""

    date: str = Field(..., description="YYYY-MM-DD")
    temp_min: int = Field(..., description="최저 기온 (섭씨)")
    temp_max: int = Field(..., description="최고 기온 (섭씨)")
    feels_like: int = Field(..., description="체감 온도 (섭씨)")
    humidity: int = Field(0, description="습도 (%)")
    description: str = Field("", description="날씨 설명")
    icon: str = Field("01d", description="OpenWeather 아이콘 코드")
    wind_kph: int = Field(0, description="풍속 (km/h)")
    pop: int = Field(0, description="강수 확률 (%)")


class PlaceImageQuery(CamelModel):
    """이미지 검색 대상 장소."""

    name: str = Field(..., min_length=1, description="장소 이름")
    location: str = Field("", description="도시")


class PlaceImagesRequest(CamelModel):
    """장소 이미지 일괄 요청."""

    items: list[PlaceImageQuery] = Field(..., min_length=1, max_length=50, description="장소 목록")


class PlaceImagesResponse(CamelModel):
    """장소 이름별 이미지 URL."""

    images: dict[str, str] = Field(default_factory=dict, description="장소 이름 → 이미지 URL")

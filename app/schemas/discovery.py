"""장소 탐색 API 요청/응답 스키마."""

from pydantic import Field, field_validator

from app.schemas.place import CamelModel, Place


def _clean_names(values: list[str]) -> list[str]:
    return [value.strip() for value in values if value and value.strip()]


class FamousPlacesRequest(CamelModel):
    """도시별 대표 관광지 요청."""

    locations: list[str] = Field(..., min_length=1, description="여행 도시 목록")

    @field_validator("locations")
    @classmethod
    def validate_locations(cls, value: list[str]) -> list[str]:
        cleaned = _clean_names(value)
        if not cleaned:
            raise ValueError("최소 한 개의 여행 도시가 필요합니다.")
        return cleaned


class MorePlacesRequest(CamelModel):
    """이미 받은 장소를 제외한 추가 장소 요청."""

    location: str = Field(..., min_length=1, description="도시")
    exclude_names: list[str] = Field(default_factory=list, description="제외할 장소 이름")
    count: int = Field(6, ge=1, le=20, description="요청 개수")

    @field_validator("exclude_names")
    @classmethod
    def validate_exclude_names(cls, value: list[str]) -> list[str]:
        return _clean_names(value)


class NearbyPlacesRequest(CamelModel):
    """자유 텍스트 기준 주변 장소 검색 요청."""

    query: str = Field(..., min_length=1, description="검색어")
    locations: list[str] = Field(default_factory=list, description="검색 범위를 좁힐 여행 도시")


class EnrichPlacesRequest(CamelModel):
    """사용자가 직접 입력한 장소 정보 보강 요청."""

    place_names: list[str] = Field(..., min_length=1, description="장소 이름 목록")
    location: str = Field("", description="기준 도시")

    @field_validator("place_names")
    @classmethod
    def validate_place_names(cls, value: list[str]) -> list[str]:
        cleaned = _clean_names(value)
        if not cleaned:
            raise ValueError("최소 한 개의 장소 이름이 필요합니다.")
        return cleaned


class PlacesResponse(CamelModel):
    """장소 목록 응답."""

    places: list[Place] = Field(default_factory=list, description="장소 목록")
    provider_used: str | None = Field(None, description="응답한 AI provider")

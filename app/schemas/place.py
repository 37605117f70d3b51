"""LLM 응답에서 복구한 장소 데이터를 표준화하는 Place 모델."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class PlaceCategory(StrEnum):
    """장소 카테고리 (닫힌 집합)."""

    HERITAGE = "Heritage"
    NATURE = "Nature"
    RELIGIOUS = "Religious"
    MARKET = "Market"
    MUSEUM = "Museum"
    ENTERTAINMENT = "Entertainment"
    FOOD = "Food"


_CATEGORY_LOOKUP = {category.value.lower(): category for category in PlaceCategory}


def coerce_category(value: Any) -> PlaceCategory | None:
    """카테고리 문자열을 대소문자 무시로 매칭합니다. 집합 밖의 값은 None."""
    if isinstance(value, PlaceCategory):
        return value
    if value is None:
        return None
    return _CATEGORY_LOOKUP.get(str(value).strip().lower())


def coerce_optional_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def coerce_coordinate(value: Any, limit: float) -> float | None:
    """WGS84 좌표 범위를 벗어나거나 숫자가 아니면 None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    if numeric != numeric or abs(numeric) > limit:
        return None
    return numeric


class CamelModel(BaseModel):
    """camelCase로 직렬화하고 snake_case/camelCase 입력을 모두 받는 기본 모델."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Commute(CamelModel):
    """이전 장소에서의 이동 정보."""

    walk: str = Field("N/A", description="도보 소요 시간")
    cab: str = Field("N/A", description="택시 요금 범위")
    metro: str = Field("N/A", description="지하철 노선")

    @field_validator("walk", "cab", "metro", mode="before")
    @classmethod
    def _default_not_applicable(cls, value: Any) -> str:
        return coerce_optional_text(value) or "N/A"


class Place(CamelModel):
    """장소 정보.

    Fields:
        `name`: 장소 이름 (비어 있으면 안 됨)
        `location`: 장소가 속한 도시
        `category`: 닫힌 카테고리 집합 중 하나, 알 수 없으면 None
        `lat`/`lng`: WGS84 좌표, 범위를 벗어나면 None
        `commute`: 이전 장소에서의 이동 정보 (`commute_from_prev`로도 입력 가능)
    """

    name: str = Field(..., min_length=1, description="장소 이름")
    location: str = Field("", description="도시/지역")
    short_desc: str | None = Field(None, description="한 줄 설명")
    desc: str | None = Field(None, description="상세 설명")
    category: PlaceCategory | None = Field(None, description="장소 카테고리")
    opening_hours: str | None = Field(None, description="운영 시간")
    entry_fee: str | None = Field(None, description="입장료")
    arrival_time: str | None = Field(None, description="도착 예정 시각")
    visit_duration: str | None = Field(None, description="권장 체류 시간")
    best_time: str | None = Field(None, description="방문 추천 시간대")
    closed_note: str | None = Field(None, description="휴무 요일 안내")
    lat: float | None = Field(None, description="위도")
    lng: float | None = Field(None, description="경도")
    commute: Commute | None = Field(
        None,
        validation_alias=AliasChoices("commute", "commute_from_prev", "commuteFromPrev"),
        description="이전 장소에서의 이동 정보",
    )

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> str:
        return str(value).strip() if value is not None else ""

    @field_validator("location", mode="before")
    @classmethod
    def _default_location(cls, value: Any) -> str:
        return coerce_optional_text(value) or ""

    @field_validator(
        "short_desc",
        "desc",
        "opening_hours",
        "entry_fee",
        "arrival_time",
        "visit_duration",
        "best_time",
        "closed_note",
        mode="before",
    )
    @classmethod
    def _optional_text(cls, value: Any) -> str | None:
        return coerce_optional_text(value)

    @field_validator("category", mode="before")
    @classmethod
    def _known_category(cls, value: Any) -> PlaceCategory | None:
        return coerce_category(value)

    @field_validator("lat", mode="before")
    @classmethod
    def _valid_latitude(cls, value: Any) -> float | None:
        return coerce_coordinate(value, 90.0)

    @field_validator("lng", mode="before")
    @classmethod
    def _valid_longitude(cls, value: Any) -> float | None:
        return coerce_coordinate(value, 180.0)

    @field_validator("commute", mode="before")
    @classmethod
    def _commute_object(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, Commute)) else None

"""일정(Itinerary) 요청/응답 스키마."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import Field, field_validator, model_validator

from app.schemas.place import CamelModel, Place, coerce_optional_text


def _drop_unnamed_places(value: Any) -> Any:
    """이름 없는 장소나 객체가 아닌 항목을 제거합니다."""
    if not isinstance(value, list):
        return []
    kept = []
    for item in value:
        if isinstance(item, Place):
            kept.append(item)
        elif isinstance(item, dict) and coerce_optional_text(item.get("name")):
            kept.append(item)
    return kept


class Day(CamelModel):
    """일자별 일정."""

    day: int = Field(..., ge=1, description="1부터 시작하는 일차 번호")
    date: str = Field("", description="ISO-8601 날짜 문자열")
    theme: str = Field("", description="일자 테마")
    location: str = Field("", description="해당 일자의 주요 도시")
    places: list[Place] = Field(default_factory=list, description="방문 순서대로 정렬된 장소 목록")

    @field_validator("date", "theme", "location", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return coerce_optional_text(value) or ""

    @field_validator("places", mode="before")
    @classmethod
    def _named_places(cls, value: Any) -> Any:
        return _drop_unnamed_places(value)


class Itinerary(CamelModel):
    """전체 일정. `days`는 `day` 오름차순."""

    summary: str = Field("", description="여행 요약")
    days: list[Day] = Field(default_factory=list, description="일자별 일정")

    @field_validator("summary", mode="before")
    @classmethod
    def _summary_text(cls, value: Any) -> str:
        return coerce_optional_text(value) or ""


class ItineraryRequest(CamelModel):
    """일정 생성 요청.

    Fields:
        `locations`: 여행 도시 목록
        `start_date`: 여행 시작일
        `end_date`: 여행 종료일
        `places`: 사용자가 고른 장소 (auto_mode에서는 후보 목록)
        `auto_mode`: True면 모델이 장소를 직접 고릅니다
    """

    locations: list[str] = Field(..., min_length=1, description="여행 도시 목록")
    start_date: date = Field(..., description="여행 시작일 (YYYY-MM-DD)")
    end_date: date = Field(..., description="여행 종료일 (YYYY-MM-DD)")
    auto_mode: bool = Field(True, description="자동 장소 선택 여부")
    places: list[Place] = Field(default_factory=list, description="방문 희망 장소")

    @field_validator("locations")
    @classmethod
    def validate_locations(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip() for item in value if item and item.strip()]
        if not cleaned:
            raise ValueError("최소 한 개의 여행 도시가 필요합니다.")
        return cleaned

    @field_validator("end_date")
    @classmethod
    def validate_date_range(cls, value: date, info):
        start_date = info.data.get("start_date")
        if start_date and value < start_date:
            raise ValueError("여행 종료일은 시작일과 같거나 이후여야 합니다.")
        return value

    @model_validator(mode="after")
    def validate_selected_places(self) -> ItineraryRequest:
        if not self.auto_mode and not self.places:
            raise ValueError("auto_mode가 꺼져 있으면 최소 한 개의 장소를 선택해야 합니다.")
        return self


class ItineraryResponse(Itinerary):
    """일정 생성 응답. 청크별로 사용된 provider를 함께 반환합니다."""

    providers_used: list[str] = Field(default_factory=list, description="청크별 응답 provider")


class BudgetDay(CamelModel):
    day: int
    cost: int


class BudgetEstimate(CamelModel):
    """입장료 기반 예산 추정."""

    total: int = Field(0, description="전체 입장료 합계")
    per_day: list[BudgetDay] = Field(default_factory=list, description="일자별 합계")

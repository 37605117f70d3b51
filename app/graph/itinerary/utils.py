"""일정 청크 분할/병합 유틸리티."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from app.schemas.itinerary import Day

MAX_CHUNK_DAYS = 7


@dataclass(frozen=True, slots=True)
class DateWindow:
    """한 번의 생성 요청으로 처리할 연속 날짜 구간."""

    start_day: int
    start_date: date
    end_date: date

    @property
    def num_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    @property
    def end_day(self) -> int:
        return self.start_day + self.num_days - 1


def count_trip_days(start_date: date, end_date: date) -> int:
    """시작일과 종료일을 포함한 여행 일수. 종료일이 앞서면 1일."""
    return max(0, (end_date - start_date).days) + 1


def split_into_windows(start_date: date, end_date: date, max_days: int = MAX_CHUNK_DAYS) -> list[DateWindow]:
    """여행 기간을 최대 `max_days`일 단위의 연속 구간으로 나눕니다."""
    if max_days < 1:
        raise ValueError("max_days must be at least 1")

    total_days = count_trip_days(start_date, end_date)
    windows: list[DateWindow] = []
    day_offset = 1
    chunk_start = start_date
    while day_offset <= total_days:
        chunk_size = min(max_days, total_days - day_offset + 1)
        chunk_end = chunk_start + timedelta(days=chunk_size - 1)
        windows.append(DateWindow(start_day=day_offset, start_date=chunk_start, end_date=chunk_end))
        day_offset += chunk_size
        chunk_start = chunk_end + timedelta(days=1)
    return windows


def build_continuity_hint(last_day_number: int, last_location: str) -> str:
    """이전 구간의 마지막 일자를 요약해 다음 구간 프롬프트에 넣을 문맥을 만듭니다."""
    return (
        f"The trip has been planned up to Day {last_day_number}. "
        f"Last location was: {last_location}. Continue from Day {last_day_number + 1}."
    )


def renumber_days(days: Sequence[Day], start_day: int) -> list[Day]:
    """모델이 준 번호와 무관하게 `start_day`부터 연속 번호를 다시 매깁니다."""
    return [day.model_copy(update={"day": start_day + index}) for index, day in enumerate(days)]


def stamp_day_numbers(raw_chunk: dict[str, Any], start_day: int) -> dict[str, Any]:
    """검증 전에 원본 청크의 `day` 값을 위치 기준 번호로 덮어씁니다.

    모델이 번호를 빠뜨리거나 0, "Day 8" 같은 값을 보내도 검증에서 떨어지지 않습니다.
    """
    raw_days = raw_chunk.get("days")
    if not isinstance(raw_days, list):
        return raw_chunk
    stamped = [
        {**item, "day": start_day + index} if isinstance(item, dict) else item
        for index, item in enumerate(raw_days)
    ]
    return {**raw_chunk, "days": stamped}


def fallback_summary(total_days: int, locations: Sequence[str]) -> str:
    return f"{total_days}-day trip across {' & '.join(locations)}"

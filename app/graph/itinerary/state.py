"""일정 생성 그래프 상태 정의."""

from collections.abc import Awaitable, Callable
from typing import TypedDict

from app.core.llm_router import OrchestrationResult
from app.graph.itinerary.utils import DateWindow
from app.schemas.itinerary import Day, Itinerary, ItineraryRequest

LLMCaller = Callable[[str], Awaitable[OrchestrationResult]]


class ItineraryState(TypedDict, total=False):
    """일정 생성 그래프 상태.

    Keys:
        request: 일정 생성 요청
        total_days: 전체 여행 일수
        windows: 최대 7일 단위로 나눈 날짜 구간
        next_window: 다음에 생성할 구간 인덱스
        days: 지금까지 생성되어 재번호된 일자 목록
        summaries: 청크별 요약 (생성 순서)
        providers_used: 청크별 응답 provider
        single_chunk: 구간이 하나일 때 원본 그대로의 청크 결과
        itinerary: 최종 일정
    """

    request: ItineraryRequest
    total_days: int
    windows: list[DateWindow]
    next_window: int
    days: list[Day]
    summaries: list[str]
    providers_used: list[str]
    single_chunk: Itinerary | None
    itinerary: Itinerary | None

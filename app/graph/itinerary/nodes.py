"""일정 생성 그래프 노드.

구간은 시간 순서대로 하나씩 생성합니다. 각 구간은 직전 구간의 마지막 일자를
문맥으로 받으므로 병렬화하지 않습니다. 어느 구간이든 실패하면 예외가 그대로
그래프 밖으로 전파되어 부분 일정은 반환되지 않습니다.
"""

from __future__ import annotations

from langchain_core.runnables import RunnableConfig
from pydantic import ValidationError

from app.core.config import get_settings
from app.core.exceptions import ItineraryGenerationError
from app.core.json_repair import extract_json_as
from app.core.logger import get_logger
from app.graph.itinerary.state import ItineraryState, LLMCaller
from app.graph.itinerary.utils import (
    build_continuity_hint,
    count_trip_days,
    fallback_summary,
    renumber_days,
    split_into_windows,
    stamp_day_numbers,
)
from app.schemas.itinerary import Itinerary
from app.services.prompt_builders import build_itinerary_chunk_prompt

logger = get_logger(__name__)


def _get_llm_caller(config: RunnableConfig) -> LLMCaller:
    llm_caller = config.get("configurable", {}).get("llm_caller")
    if llm_caller is None:
        raise ItineraryGenerationError("llm_caller가 설정되지 않았습니다.")
    return llm_caller


def plan_windows(state: ItineraryState) -> ItineraryState:
    """여행 기간을 생성 구간으로 나눕니다."""
    request = state["request"]
    windows = split_into_windows(
        request.start_date,
        request.end_date,
        max_days=get_settings().ITINERARY_CHUNK_DAYS,
    )
    logger.info(
        "Itinerary planned: total_days=%d windows=%d",
        count_trip_days(request.start_date, request.end_date),
        len(windows),
    )
    return {
        "total_days": count_trip_days(request.start_date, request.end_date),
        "windows": windows,
        "next_window": 0,
        "days": [],
        "summaries": [],
        "providers_used": [],
        "single_chunk": None,
    }


async def generate_chunk(state: ItineraryState, config: RunnableConfig) -> ItineraryState:
    """다음 구간 하나를 생성하고 일자 번호를 전역 연속 번호로 맞춥니다."""
    llm_caller = _get_llm_caller(config)
    request = state["request"]
    windows = state["windows"]
    index = state["next_window"]
    window = windows[index]
    days = state.get("days", [])

    previous_context = None
    if days:
        last_day = days[-1]
        previous_context = build_continuity_hint(last_day.day, last_day.location or request.locations[0])

    prompt = build_itinerary_chunk_prompt(
        locations=request.locations,
        start_date=window.start_date,
        end_date=window.end_date,
        places=request.places,
        auto_mode=request.auto_mode,
        start_day=window.start_day,
        num_days=window.num_days,
        previous_context=previous_context,
    )

    logger.info(
        "Generating itinerary chunk %d/%d: days=%d-%d",
        index + 1,
        len(windows),
        window.start_day,
        window.end_day,
    )
    result = await llm_caller(prompt)
    raw_chunk = extract_json_as(result.text, dict)
    if len(windows) > 1:
        raw_chunk = stamp_day_numbers(raw_chunk, start_day=len(days) + 1)
    try:
        chunk = Itinerary.model_validate(raw_chunk)
    except ValidationError as exc:
        raise ItineraryGenerationError(
            f"Chunk {index + 1} (Day {window.start_day}-{window.end_day}) has an invalid shape: {exc}"
        ) from exc

    updates: ItineraryState = {
        "next_window": index + 1,
        "summaries": [*state.get("summaries", []), chunk.summary],
        "providers_used": [*state.get("providers_used", []), result.provider_used],
    }

    if len(windows) == 1:
        updates["single_chunk"] = chunk
        return updates

    chunk_days = chunk.days
    if len(chunk_days) > window.num_days:
        logger.warning(
            "Chunk returned extra days, truncating: expected=%d returned=%d",
            window.num_days,
            len(chunk_days),
        )
        chunk_days = chunk_days[: window.num_days]

    updates["days"] = [*days, *renumber_days(chunk_days, start_day=len(days) + 1)]
    return updates


def route_after_chunk(state: ItineraryState) -> str:
    """남은 구간이 있으면 다시 생성 노드로 돌아갑니다."""
    if state["next_window"] < len(state["windows"]):
        return "generate_chunk"
    return "merge_itinerary"


def merge_itinerary(state: ItineraryState) -> ItineraryState:
    """구간 결과를 하나의 일정으로 합칩니다."""
    single_chunk = state.get("single_chunk")
    if single_chunk is not None:
        return {"itinerary": single_chunk}

    request = state["request"]
    summary = next((text for text in state.get("summaries", []) if text), "")
    if not summary:
        summary = fallback_summary(state["total_days"], request.locations)

    itinerary = Itinerary(summary=summary, days=state.get("days", []))
    logger.info("Itinerary merged: days=%d chunks=%d", len(itinerary.days), len(state["windows"]))
    return {"itinerary": itinerary}

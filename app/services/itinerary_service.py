"""일정 생성 서비스."""

from __future__ import annotations

import re

from app.core.config import get_settings
from app.core.exceptions import ItineraryGenerationError
from app.core.llm_router import OrchestrationResult, ProviderAttemptCallback, smart_call
from app.core.logger import get_logger
from app.core.providers import ProviderCredentials
from app.graph.itinerary.state import LLMCaller
from app.graph.itinerary.utils import split_into_windows
from app.graph.itinerary.workflow import compiled_itinerary_graph
from app.schemas.itinerary import BudgetDay, BudgetEstimate, Itinerary, ItineraryRequest, ItineraryResponse

logger = get_logger(__name__)

_FEE_AMOUNT_PATTERN = re.compile(r"(\d[\d,]*)")
_GRAPH_STEP_MARGIN = 5


def build_llm_caller(
    credentials: ProviderCredentials,
    on_provider_attempt: ProviderAttemptCallback | None = None,
) -> LLMCaller:
    """자격 증명을 묶은 smart call 호출 함수를 만듭니다."""

    async def _call(prompt: str) -> OrchestrationResult:
        return await smart_call(prompt, credentials, on_provider_attempt)

    return _call


async def generate_itinerary(
    request: ItineraryRequest,
    credentials: ProviderCredentials,
    on_provider_attempt: ProviderAttemptCallback | None = None,
    *,
    llm_caller: LLMCaller | None = None,
) -> ItineraryResponse:
    """요청 기간 전체의 일정을 생성합니다.

    7일 이하는 한 번의 호출 결과를 그대로 반환하고, 그보다 길면 7일 단위로 나눠
    순서대로 생성한 뒤 일자 번호를 이어 붙입니다. 어느 구간이든 실패하면 예외가
    전파되며 부분 일정은 반환하지 않습니다.
    """
    caller = llm_caller or build_llm_caller(credentials, on_provider_attempt)
    window_count = len(
        split_into_windows(request.start_date, request.end_date, max_days=get_settings().ITINERARY_CHUNK_DAYS)
    )

    result = await compiled_itinerary_graph.ainvoke(
        {"request": request},
        config={
            "configurable": {"llm_caller": caller},
            "recursion_limit": window_count + _GRAPH_STEP_MARGIN,
        },
    )

    itinerary = result.get("itinerary")
    if itinerary is None:
        raise ItineraryGenerationError("일정 생성 결과가 없습니다.")

    return ItineraryResponse(
        summary=itinerary.summary,
        days=itinerary.days,
        providers_used=result.get("providers_used", []),
    )


def drop_empty_days(itinerary: Itinerary) -> Itinerary:
    """장소가 없는 일자를 제거한 사본을 반환합니다."""
    kept = [day for day in itinerary.days if day.places]
    if len(kept) != len(itinerary.days):
        logger.info("Dropped empty itinerary days: %d", len(itinerary.days) - len(kept))
    return itinerary.model_copy(update={"days": kept})


def parse_entry_fee(fee: str | None) -> int:
    """입장료 문자열에서 첫 번째 금액을 정수로 읽습니다. 없으면 0."""
    if not fee:
        return 0
    match = _FEE_AMOUNT_PATTERN.search(fee)
    if not match:
        return 0
    return int(match.group(1).replace(",", ""))


def estimate_budget(itinerary: Itinerary) -> BudgetEstimate:
    """장소별 입장료를 합산해 일자별/전체 예산을 추정합니다."""
    per_day = []
    for day in itinerary.days:
        per_day.append(BudgetDay(day=day.day, cost=sum(parse_entry_fee(place.entry_fee) for place in day.places)))
    return BudgetEstimate(total=sum(item.cost for item in per_day), per_day=per_day)

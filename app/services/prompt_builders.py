"""용도별 LLM 프롬프트 빌더.

모든 빌더는 순수 함수이며 정규화 단계가 파싱할 수 있는 JSON 출력 계약으로 끝납니다.
일정 규칙(5km 군집, 10:00 시작, 카테고리별 체류 시간, 하루 4~6곳, 휴무일 안내)은
모델에 주는 지시일 뿐이며 응답 이후에 강제하지 않습니다.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date

from langchain_core.prompts import PromptTemplate

from app.schemas.place import Place, PlaceCategory

CATEGORY_CHOICES = "|".join(category.value for category in PlaceCategory)
DAY_START_TIME = "10:00"
CLUSTER_RADIUS_KM = 5
MIN_PLACES_PER_DAY = 4
MAX_PLACES_PER_DAY = 6

VISIT_DURATION_GUIDE = {
    PlaceCategory.HERITAGE: "1.5-2 hours",
    PlaceCategory.MUSEUM: "2-3 hours",
    PlaceCategory.NATURE: "1-2 hours",
    PlaceCategory.RELIGIOUS: "45 min-1 hour",
    PlaceCategory.MARKET: "1-1.5 hours",
    PlaceCategory.ENTERTAINMENT: "2-3 hours",
    PlaceCategory.FOOD: "1 hour",
}

_PLACE_ITEM_CONTRACT = (
    '{{ "location": "<city>", "name": "<place name>", "shortDesc": "<1 sentence description>", '
    '"category": "<{categories}>" }}'
)

_FAMOUS_PLACES_TEMPLATE = PromptTemplate.from_template(
    "You are a travel expert. For the locations: {locations}, return a JSON array of 6-10 famous "
    "tourist places per location.\n"
    "Each item must have: " + _PLACE_ITEM_CONTRACT + "\n"
    "Return ONLY valid JSON array, no explanation, no markdown."
)

_MORE_PLACES_TEMPLATE = PromptTemplate.from_template(
    "You are a travel expert. For {location}, return a JSON array of exactly {count} more tourist places "
    "worth visiting.\n"
    "Do NOT include any of these already-listed places: {exclude_names}.\n"
    "Prefer lesser-known but well-reviewed spots, local food streets and neighbourhood markets.\n"
    "Each item must have: " + _PLACE_ITEM_CONTRACT + "\n"
    "Return ONLY valid JSON array, no explanation, no markdown."
)

_NEARBY_PLACES_TEMPLATE = PromptTemplate.from_template(
    "You are a local travel guide. List 6-8 tourist places, eateries or landmarks within "
    "{radius_km} km of: {query}.\n"
    "Use the real city of that place as the location field.\n"
    "Each item must have: " + _PLACE_ITEM_CONTRACT + "\n"
    "Return ONLY valid JSON array, no explanation, no markdown."
)

_ENRICH_PLACES_TEMPLATE = PromptTemplate.from_template(
    "You are a travel expert. The traveller wants to visit these places{location_clause}: {place_names}.\n"
    "For EACH place return one item, keeping the traveller's spelling of the name when it is recognisable.\n"
    "Each item must have: " + _PLACE_ITEM_CONTRACT + "\n"
    "Return ONLY valid JSON array with one item per place, no explanation, no markdown."
)

_ITINERARY_CHUNK_TEMPLATE = PromptTemplate.from_template(
    """You are an expert travel planner. Plan a {num_days}-day trip to: {locations}.
Start date: {start_date}, End date: {end_date}. Starting from Day {start_day}.
{context_line}{places_instruction}

Rules:
1. Group places within about {radius_km} km of each other on the same day; minimise travel distance within a day.
2. Plan {min_places}-{max_places} places per day; overflow naturally to the next day.
3. Each day starts at {day_start}. Give every place an arrivalTime that accounts for visit time and commute.
4. Typical visit durations: {duration_guide}.
5. If visiting multiple cities, dedicate at least 1 full day per city.
6. Check opening days: if a place is closed on that day's weekday, move it or explain in closedNote.
7. For each consecutive place pair, provide commute info: walking time (minutes), cab fare (local currency range), \
and metro route (line name + stops) if applicable. If not applicable write "N/A".
8. Give each day a fun theme name (e.g. "Heritage & History", "Spiritual & Greens").
9. Include opening hours and entry fee where known.
10. Return ONLY valid JSON, no explanation, no markdown fences.

JSON format:
{{
  "summary": "<1-2 line trip summary>",
  "days": [
    {{
      "day": {start_day},
      "date": "<YYYY-MM-DD>",
      "theme": "<theme>",
      "location": "<main city for this day>",
      "places": [
        {{
          "name": "<place name>",
          "desc": "<2-3 sentence description>",
          "category": "<{categories}>",
          "openingHours": "<e.g. 9AM-6PM or 'Open 24hrs'>",
          "entryFee": "<e.g. 40 or 'Free'>",
          "arrivalTime": "<HH:MM>",
          "visitDuration": "<e.g. 1.5 hours>",
          "bestTime": "<e.g. Morning>",
          "closedNote": "<e.g. Closed on Mondays, or empty>",
          "lat": <latitude as number>,
          "lng": <longitude as number>,
          "commute_from_prev": {{
            "walk": "<e.g. 12 min walk or N/A>",
            "cab": "<e.g. 80-120 or N/A>",
            "metro": "<e.g. Yellow Line to Barakhamba Road or N/A>"
          }}
        }}
      ]
    }}
  ]
}}"""
)


def _join(values: Iterable[str], separator: str = ", ") -> str:
    return separator.join(value for value in values if value)


def _duration_guide() -> str:
    return "; ".join(f"{category.value} {duration}" for category, duration in VISIT_DURATION_GUIDE.items())


def build_famous_places_prompt(locations: Sequence[str]) -> str:
    """도시별 대표 관광지 목록 프롬프트."""
    return _FAMOUS_PLACES_TEMPLATE.format(locations=_join(locations), categories=CATEGORY_CHOICES)


def build_more_places_prompt(location: str, exclude_names: Sequence[str], count: int) -> str:
    """이미 받은 장소를 제외한 추가 장소 프롬프트."""
    return _MORE_PLACES_TEMPLATE.format(
        location=location,
        count=count,
        exclude_names=_join(exclude_names) or "none",
        categories=CATEGORY_CHOICES,
    )


def build_nearby_places_prompt(query: str, locations: Sequence[str] = ()) -> str:
    """자유 텍스트 주변 검색 프롬프트. 여행 도시가 있으면 검색어에 덧붙입니다."""
    location_context = _join(locations)
    full_query = f"{query} near {location_context}" if location_context else query
    return _NEARBY_PLACES_TEMPLATE.format(
        query=full_query,
        radius_km=CLUSTER_RADIUS_KM,
        categories=CATEGORY_CHOICES,
    )


def build_enrich_places_prompt(place_names: Sequence[str], location: str = "") -> str:
    """사용자 입력 장소의 설명/카테고리 보강 프롬프트."""
    return _ENRICH_PLACES_TEMPLATE.format(
        place_names=_join(place_names),
        location_clause=f" in {location}" if location else "",
        categories=CATEGORY_CHOICES,
    )


def build_itinerary_chunk_prompt(
    *,
    locations: Sequence[str],
    start_date: date,
    end_date: date,
    places: Sequence[Place],
    auto_mode: bool,
    start_day: int,
    num_days: int,
    previous_context: str | None = None,
) -> str:
    """일정 청크 생성 프롬프트."""
    if auto_mode:
        places_instruction = "Choose the best famous places for each location."
        if places:
            places_instruction += " Good candidates include: " + _join(_describe_place(place) for place in places) + "."
    else:
        places_instruction = "The traveller wants to visit: " + _join(_describe_place(place) for place in places) + "."

    return _ITINERARY_CHUNK_TEMPLATE.format(
        num_days=num_days,
        locations=_join(locations),
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
        start_day=start_day,
        context_line=f"\nContext: {previous_context}\n" if previous_context else "",
        places_instruction=places_instruction,
        radius_km=CLUSTER_RADIUS_KM,
        min_places=MIN_PLACES_PER_DAY,
        max_places=MAX_PLACES_PER_DAY,
        day_start=DAY_START_TIME,
        duration_guide=_duration_guide(),
        categories=CATEGORY_CHOICES,
    )


def _describe_place(place: Place) -> str:
    return f"{place.name} ({place.location})" if place.location else place.name

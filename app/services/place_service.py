"""장소 탐색 서비스.

프롬프트 빌더 → smart call → JSON 정규화 → Place 검증 순서로 장소 목록을 만듭니다.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from app.core.exceptions import AllProvidersFailedError, NormalizationError
from app.core.json_repair import extract_json_as
from app.core.llm_router import ProviderAttemptCallback, smart_call
from app.core.logger import get_logger
from app.core.providers import ProviderCredentials
from app.schemas.place import Place, PlaceCategory
from app.services.prompt_builders import (
    build_enrich_places_prompt,
    build_famous_places_prompt,
    build_more_places_prompt,
    build_nearby_places_prompt,
)

logger = get_logger(__name__)

STUB_DESCRIPTION = "A must-visit place on your itinerary."
_SIMILARITY_THRESHOLD = 0.6
_NON_ALNUM_PATTERN = re.compile(r"[^a-z0-9\s]")
_GENERIC_WORDS_PATTERN = re.compile(
    r"\b(the|a|an|of|and|mall|centre|center|complex|park|garden|fort|temple|masjid|mandir|market|bazar|bazaar|chowk)\b"
)
_WHITESPACE_PATTERN = re.compile(r"\s+")


def parse_places(items: Sequence[Any], default_location: str = "") -> list[Place]:
    """LLM이 준 항목을 Place로 검증합니다. 형식이 맞지 않는 항목은 버립니다."""
    places: list[Place] = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning("Dropping non-object place item: %r", item)
            continue
        payload = dict(item)
        if default_location and not payload.get("location"):
            payload["location"] = default_location
        try:
            places.append(Place.model_validate(payload))
        except ValidationError as exc:
            logger.warning("Dropping invalid place item: name=%r errors=%d", item.get("name"), exc.error_count())
    return places


async def _request_places(
    prompt: str,
    credentials: ProviderCredentials,
    on_provider_attempt: ProviderAttemptCallback | None,
    default_location: str = "",
) -> tuple[list[Place], str]:
    result = await smart_call(prompt, credentials, on_provider_attempt)
    items = extract_json_as(result.text, list)
    return parse_places(items, default_location), result.provider_used


async def fetch_famous_places(
    locations: Sequence[str],
    credentials: ProviderCredentials,
    on_provider_attempt: ProviderAttemptCallback | None = None,
) -> tuple[list[Place], str]:
    """도시별 대표 관광지를 조회합니다."""
    prompt = build_famous_places_prompt(locations)
    default_location = locations[0] if len(locations) == 1 else ""
    return await _request_places(prompt, credentials, on_provider_attempt, default_location)


async def fetch_more_places(
    location: str,
    exclude_names: Sequence[str],
    credentials: ProviderCredentials,
    on_provider_attempt: ProviderAttemptCallback | None = None,
    count: int = 6,
) -> tuple[list[Place], str]:
    """이미 받은 장소와 비슷하지 않은 추가 장소를 조회합니다."""
    prompt = build_more_places_prompt(location, exclude_names, count)
    places, provider_used = await _request_places(prompt, credentials, on_provider_attempt, location)
    fresh = [
        place for place in places if not any(places_are_similar(place.name, existing) for existing in exclude_names)
    ]
    return fresh[:count], provider_used


async def search_nearby_places(
    query: str,
    credentials: ProviderCredentials,
    on_provider_attempt: ProviderAttemptCallback | None = None,
    locations: Sequence[str] = (),
) -> tuple[list[Place], str]:
    """자유 텍스트 주변 장소를 검색합니다."""
    prompt = build_nearby_places_prompt(query, locations)
    default_location = locations[0] if locations else ""
    return await _request_places(prompt, credentials, on_provider_attempt, default_location)


def _stub_place(name: str, location: str) -> Place:
    return Place(name=name, location=location, short_desc=STUB_DESCRIPTION, category=PlaceCategory.HERITAGE)


async def enrich_custom_places(
    place_names: Sequence[str],
    location: str,
    credentials: ProviderCredentials,
    on_provider_attempt: ProviderAttemptCallback | None = None,
) -> tuple[list[Place], str | None]:
    """사용자가 입력한 장소에 설명과 카테고리를 보강합니다.

    AI 호출이나 정규화가 실패하면 기본 설명을 가진 스텁 장소를 반환합니다.
    입력 순서와 이름을 유지합니다.
    """
    prompt = build_enrich_places_prompt(place_names, location)
    try:
        enriched, provider_used = await _request_places(prompt, credentials, on_provider_attempt, location)
    except (AllProvidersFailedError, NormalizationError) as exc:
        logger.warning("Place enrichment failed, using stubs: %s", exc)
        return [_stub_place(name, location) for name in place_names], None

    by_name = {place.name.lower(): place for place in enriched}
    results: list[Place] = []
    for name in place_names:
        match = by_name.get(name.lower()) or next(
            (place for place in enriched if places_are_similar(place.name, name)),
            None,
        )
        if match is None:
            results.append(_stub_place(name, location))
            continue
        results.append(
            match.model_copy(
                update={
                    "name": name,
                    "location": match.location or location,
                    "short_desc": match.short_desc or STUB_DESCRIPTION,
                    "category": match.category or PlaceCategory.HERITAGE,
                }
            )
        )
    return results, provider_used


def _normalize_place_name(name: str) -> str:
    text = _NON_ALNUM_PATTERN.sub("", name.lower())
    text = _GENERIC_WORDS_PATTERN.sub("", text)
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def places_are_similar(first: str, second: str) -> bool:
    """장소 이름이 같은 곳을 가리키는지 느슨하게 비교합니다.

    구두점과 일반 접미어(mall, park, temple 등)를 제거한 뒤, 짧은 이름의 토큰 중
    60% 이상이 긴 이름에 있으면 같은 장소로 봅니다.
    """
    normalized_first = _normalize_place_name(first)
    normalized_second = _normalize_place_name(second)
    if not normalized_first or not normalized_second:
        # 일반어만으로 된 이름은 원문이 같을 때만 같은 장소로 본다
        return first.strip().lower() == second.strip().lower()
    if normalized_first == normalized_second:
        return True

    tokens_first = normalized_first.split()
    tokens_second = normalized_second.split()
    shorter, longer = (
        (tokens_first, tokens_second) if len(tokens_first) <= len(tokens_second) else (tokens_second, tokens_first)
    )
    if not shorter:
        return False
    matches = sum(1 for token in shorter if token in longer)
    return matches / len(shorter) >= _SIMILARITY_THRESHOLD


def merge_custom_places(custom_places: Sequence[Place], famous_places: Sequence[Place]) -> list[Place]:
    """사용자 장소를 앞에 고정하고, 그와 비슷한 대표 관광지는 제외합니다."""
    remaining = [
        famous
        for famous in famous_places
        if not any(places_are_similar(custom.name, famous.name) for custom in custom_places)
    ]
    return [*custom_places, *remaining]

"""장소 탐색 서비스 테스트."""

from __future__ import annotations

import asyncio
import json

import pytest

from app.core.exceptions import AllProvidersFailedError, NormalizationError
from app.core.llm_router import OrchestrationResult, ProviderAttempt
from app.schemas.place import Place, PlaceCategory
from app.services.place_service import (
    STUB_DESCRIPTION,
    enrich_custom_places,
    fetch_famous_places,
    fetch_more_places,
    merge_custom_places,
    parse_places,
    places_are_similar,
    search_nearby_places,
)


def _patch_smart_call(monkeypatch, response) -> list[str]:
    prompts: list[str] = []

    async def _fake_smart_call(prompt, credentials, on_provider_attempt=None, **kwargs):
        prompts.append(prompt)
        if isinstance(response, Exception):
            raise response
        text = response if isinstance(response, str) else json.dumps(response)
        return OrchestrationResult(text=text, provider_used="Gemini 2.5 Flash")

    monkeypatch.setattr("app.services.place_service.smart_call", _fake_smart_call)
    return prompts


class TestPlacesAreSimilar:
    """places_are_similar 테스트."""

    def test_generic_suffixes_are_ignored(self):
        assert places_are_similar("Lodhi Garden", "Lodhi Gardens") is True
        assert places_are_similar("Lodhi Garden", "The Lodhi") is True

    def test_punctuation_and_case_are_ignored(self):
        assert places_are_similar("Humayun's Tomb", "humayuns tomb") is True

    def test_token_overlap_threshold(self):
        assert places_are_similar("Red Fort", "Red Fort Delhi") is True
        assert places_are_similar("India Gate", "Gateway of India") is False

    def test_only_generic_words_do_not_match(self):
        assert places_are_similar("The Mall", "Central Park Delhi") is False

    def test_names_made_only_of_generic_words(self):
        assert places_are_similar("The Park", "Mall") is False
        assert places_are_similar("The Mall", "the mall ") is True


def test_parse_places_drops_invalid_items() -> None:
    places = parse_places(
        [
            {"name": "Red Fort", "category": "heritage", "lat": "28.65", "lng": 77.24},
            {"name": ""},
            "not an object",
            {"name": "Dilli Haat", "category": "Shopping", "lat": 200},
        ],
        default_location="Delhi",
    )

    assert [place.name for place in places] == ["Red Fort", "Dilli Haat"]
    assert places[0].category == PlaceCategory.HERITAGE
    assert places[0].lat == 28.65
    assert places[0].location == "Delhi"
    assert places[1].category is None
    assert places[1].lat is None


def test_fetch_famous_places(monkeypatch) -> None:
    prompts = _patch_smart_call(
        monkeypatch,
        "```json\n"
        '[{"location": "Delhi", "name": "Red Fort", "shortDesc": "Mughal fort.", "category": "Heritage"},\n'
        ' {"location": "Delhi", "name": "Lotus Temple", "shortDesc": "Bahai temple.", "category": "Religious"},]\n'
        "```",
    )

    places, provider_used = asyncio.run(fetch_famous_places(["Delhi"], {"gemini": "key"}))

    assert provider_used == "Gemini 2.5 Flash"
    assert [place.name for place in places] == ["Red Fort", "Lotus Temple"]
    assert places[0].short_desc == "Mughal fort."
    assert "For the locations: Delhi" in prompts[0]


def test_fetch_famous_places_propagates_normalization_error(monkeypatch) -> None:
    _patch_smart_call(monkeypatch, "I am unable to help with that.")

    with pytest.raises(NormalizationError):
        asyncio.run(fetch_famous_places(["Delhi"], {"gemini": "key"}))


def test_fetch_more_places_filters_similar_and_caps_count(monkeypatch) -> None:
    _patch_smart_call(
        monkeypatch,
        [
            {"name": "Red Fort Complex", "category": "Heritage"},
            {"name": "Chandni Chowk", "category": "Market"},
            {"name": "Akshardham", "category": "Religious"},
            {"name": "Sunder Nursery", "category": "Nature"},
        ],
    )

    places, _ = asyncio.run(fetch_more_places("Delhi", ["Red Fort"], {"gemini": "key"}, count=2))

    assert [place.name for place in places] == ["Chandni Chowk", "Akshardham"]
    assert all(place.location == "Delhi" for place in places)


def test_search_nearby_places_uses_trip_locations(monkeypatch) -> None:
    prompts = _patch_smart_call(monkeypatch, [{"name": "Janpath Market", "location": "Delhi", "category": "Market"}])

    places, _ = asyncio.run(search_nearby_places("Connaught Place", {"gemini": "key"}, locations=["Delhi"]))

    assert places[0].name == "Janpath Market"
    assert "Connaught Place near Delhi" in prompts[0]


def test_enrich_custom_places_keeps_input_order(monkeypatch) -> None:
    _patch_smart_call(
        monkeypatch,
        [
            {"name": "Agrasen ki Baoli", "shortDesc": "Stepwell.", "category": "Heritage"},
            {"name": "Lodhi Garden", "shortDesc": "Park with tombs.", "category": "Nature"},
        ],
    )

    places, provider_used = asyncio.run(
        enrich_custom_places(["Lodhi Gardens", "Agrasen ki Baoli", "Unknown Cafe"], "Delhi", {"gemini": "key"})
    )

    assert provider_used == "Gemini 2.5 Flash"
    assert [place.name for place in places] == ["Lodhi Gardens", "Agrasen ki Baoli", "Unknown Cafe"]
    assert places[0].category == PlaceCategory.NATURE
    assert places[2].short_desc == STUB_DESCRIPTION
    assert places[2].category == PlaceCategory.HERITAGE


def test_enrich_custom_places_falls_back_to_stubs(monkeypatch) -> None:
    _patch_smart_call(monkeypatch, AllProvidersFailedError([ProviderAttempt("Alpha", "quota exceeded")]))

    places, provider_used = asyncio.run(enrich_custom_places(["Lodhi Garden"], "Delhi", {"gemini": "key"}))

    assert provider_used is None
    assert places == [
        Place(name="Lodhi Garden", location="Delhi", short_desc=STUB_DESCRIPTION, category=PlaceCategory.HERITAGE)
    ]


def test_merge_custom_places_pins_custom_first() -> None:
    custom = [Place(name="Red Fort Delhi")]
    famous = [Place(name="Red Fort"), Place(name="Qutub Minar")]

    merged = merge_custom_places(custom, famous)

    assert [place.name for place in merged] == ["Red Fort Delhi", "Qutub Minar"]

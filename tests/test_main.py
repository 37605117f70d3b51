"""애플리케이션 진입점 및 API 동작 테스트."""

from __future__ import annotations

import importlib
import json

from fastapi.testclient import TestClient

from app.api.dependencies import get_provider_credentials
from app.core.config import get_settings
from app.core.exceptions import AllProvidersFailedError
from app.core.llm_router import OrchestrationResult, ProviderAttempt
from tests.mocks.fake_llm import make_day


def _set_required_env(monkeypatch, **overrides: str) -> None:
    monkeypatch.setenv("DOCS_MODE", "disabled")
    for key, value in overrides.items():
        monkeypatch.setenv(key, value)
    get_settings.cache_clear()


def _load_main_module():
    import app.main as main_module

    return importlib.reload(main_module)


def _client(monkeypatch, credentials: dict | None = None, **env: str) -> TestClient:
    _set_required_env(monkeypatch, **env)
    main_module = _load_main_module()
    main_module.app.dependency_overrides[get_provider_credentials] = lambda: (
        {"gemini": "g-key"} if credentials is None else credentials
    )
    return TestClient(main_module.app)


def test_health_check_endpoint(monkeypatch) -> None:
    client = _client(monkeypatch)

    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "message": "Travel Itinerary AI Server is running"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_docs_are_hidden_when_disabled(monkeypatch) -> None:
    client = _client(monkeypatch)

    assert client.get("/docs").status_code == 404
    assert client.get("/openapi.json").status_code == 404


def test_ai_proxy_returns_text_and_provider(monkeypatch) -> None:
    async def _fake_smart_call(prompt, credentials, on_provider_attempt=None):
        return OrchestrationResult(text='{"ok": true}', provider_used="Gemini 2.5 Flash")

    client = _client(monkeypatch)
    monkeypatch.setattr("app.api.ai_proxy.smart_call", _fake_smart_call)

    response = client.post("/api/v1/ai", json={"prompt": "hello"})

    assert response.status_code == 200
    assert response.json() == {"text": '{"ok": true}', "providerUsed": "Gemini 2.5 Flash"}


def test_ai_proxy_reports_all_provider_failures(monkeypatch) -> None:
    async def _fake_smart_call(prompt, credentials, on_provider_attempt=None):
        raise AllProvidersFailedError(
            [ProviderAttempt("Gemini 2.5 Flash", "quota exceeded"), ProviderAttempt("Llama 3.3 70B", "HTTP 503")]
        )

    client = _client(monkeypatch)
    monkeypatch.setattr("app.api.ai_proxy.smart_call", _fake_smart_call)

    response = client.post("/api/v1/ai", json={"prompt": "hello"})

    assert response.status_code == 502
    assert response.json() == {
        "error": "All AI providers failed",
        "details": "Gemini 2.5 Flash: quota exceeded\nLlama 3.3 70B: HTTP 503",
    }


def test_ai_proxy_without_credentials_is_unavailable(monkeypatch) -> None:
    client = _client(monkeypatch, credentials={})

    response = client.post("/api/v1/ai", json={"prompt": "hello"})

    assert response.status_code == 503
    assert response.json()["error"] == "No AI provider is configured"


def test_ai_proxy_rejects_empty_prompt(monkeypatch) -> None:
    client = _client(monkeypatch)

    response = client.post("/api/v1/ai", json={"prompt": ""})

    assert response.status_code == 422


def test_itinerary_endpoint_returns_camel_case_days(monkeypatch) -> None:
    async def _fake_smart_call(prompt, credentials, on_provider_attempt=None):
        chunk = {"summary": "Two days in Delhi", "days": [make_day(1, "2025-03-01"), make_day(2, "2025-03-02")]}
        return OrchestrationResult(text=json.dumps(chunk), provider_used="Gemini 2.5 Flash")

    client = _client(monkeypatch)
    monkeypatch.setattr("app.services.itinerary_service.smart_call", _fake_smart_call)

    response = client.post(
        "/api/v1/itinerary",
        json={"locations": ["Delhi"], "startDate": "2025-03-01", "endDate": "2025-03-02"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["summary"] == "Two days in Delhi"
    assert body["providersUsed"] == ["Gemini 2.5 Flash"]
    assert [day["day"] for day in body["days"]] == [1, 2]
    first_place = body["days"][0]["places"][0]
    assert first_place["entryFee"] == "₹50"
    assert first_place["commute"]["walk"] == "10 min walk"


def test_itinerary_endpoint_reports_unparseable_response(monkeypatch) -> None:
    async def _fake_smart_call(prompt, credentials, on_provider_attempt=None):
        return OrchestrationResult(text="I cannot help with that.", provider_used="Gemini 2.5 Flash")

    client = _client(monkeypatch)
    monkeypatch.setattr("app.services.itinerary_service.smart_call", _fake_smart_call)

    response = client.post(
        "/api/v1/itinerary",
        json={"locations": ["Delhi"], "startDate": "2025-03-01", "endDate": "2025-03-01"},
    )

    assert response.status_code == 502
    assert response.json()["details"] == "No JSON found in response"


def test_budget_endpoint_sums_entry_fees(monkeypatch) -> None:
    client = _client(monkeypatch)
    itinerary = {
        "summary": "s",
        "days": [
            make_day(1, "2025-03-01", place_names=("Red Fort", "Humayun's Tomb")),
            {"day": 2, "date": "2025-03-02", "places": []},
        ],
    }

    response = client.post("/api/v1/itinerary/budget", json=itinerary)

    assert response.status_code == 200
    assert response.json() == {"total": 100, "perDay": [{"day": 1, "cost": 100}]}


def test_places_famous_endpoint(monkeypatch) -> None:
    async def _fake_smart_call(prompt, credentials, on_provider_attempt=None):
        return OrchestrationResult(
            text='[{"location": "Delhi", "name": "Red Fort", "shortDesc": "Fort.", "category": "Heritage"}]',
            provider_used="Llama 3.3 70B Versatile (Groq)",
        )

    client = _client(monkeypatch)
    monkeypatch.setattr("app.services.place_service.smart_call", _fake_smart_call)

    response = client.post("/api/v1/places/famous", json={"locations": ["Delhi"]})

    assert response.status_code == 200
    body = response.json()
    assert body["providerUsed"] == "Llama 3.3 70B Versatile (Groq)"
    assert body["places"][0]["shortDesc"] == "Fort."


def test_weather_endpoint_without_key_is_unavailable(monkeypatch) -> None:
    monkeypatch.delenv("OPENWEATHER_API_KEY", raising=False)
    client = _client(monkeypatch)

    response = client.get("/api/v1/weather", params={"city": "Delhi"})

    assert response.status_code == 503
    assert response.json()["error"] == "Weather unavailable"


def test_images_endpoint_falls_back_without_key(monkeypatch) -> None:
    monkeypatch.delenv("UNSPLASH_ACCESS_KEY", raising=False)
    client = _client(monkeypatch)

    response = client.post("/api/v1/images", json={"items": [{"name": "Red Fort", "location": "Delhi"}]})

    assert response.status_code == 200
    assert response.json() == {"images": {"Red Fort": "https://picsum.photos/seed/red-fort/400/300"}}

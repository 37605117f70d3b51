"""장소 이미지 서비스 테스트."""

from __future__ import annotations

import asyncio
import threading
import time

import requests

from app.schemas.media import PlaceImageQuery
from app.services.image_service import UnsplashImageService, picsum_fallback, svg_placeholder


class _FakeResponse:
    def __init__(self, status_code: int, payload: dict) -> None:
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)

    def json(self) -> dict:
        return self._payload


def test_picsum_fallback_is_deterministic() -> None:
    assert picsum_fallback("Humayun's Tomb") == "https://picsum.photos/seed/humayun-s-tomb/400/300"
    assert picsum_fallback("!!!") == "https://picsum.photos/seed/place/400/300"


def test_svg_placeholder_uses_initial() -> None:
    uri = svg_placeholder("agra fort")

    assert uri.startswith("data:image/svg+xml;charset=utf-8,")
    assert "%3EA%3C" in uri
    assert svg_placeholder("agra fort") == uri


def test_fetch_place_images_without_key_uses_fallback() -> None:
    service = UnsplashImageService(access_key=None)

    images = asyncio.run(
        service.fetch_place_images([PlaceImageQuery(name="Red Fort", location="Delhi"), PlaceImageQuery(name="Red Fort")])
    )

    assert images == {"Red Fort": picsum_fallback("Red Fort")}


def test_fetch_place_images_uses_first_search_result(monkeypatch) -> None:
    calls: list[dict] = []

    def _fake_get(self, url, params=None, timeout=None):
        calls.append(params)
        if params["query"].startswith("Red Fort"):
            return _FakeResponse(200, {"results": [{"urls": {"small": "https://images.test/red-fort.jpg"}}]})
        return _FakeResponse(200, {"results": []})

    monkeypatch.setattr("app.services.image_service.requests.Session.get", _fake_get)
    service = UnsplashImageService(access_key="u-key")

    images = asyncio.run(
        service.fetch_place_images(
            [PlaceImageQuery(name="Red Fort", location="Delhi"), PlaceImageQuery(name="Hidden Cafe", location="Delhi")]
        )
    )

    assert images == {
        "Red Fort": "https://images.test/red-fort.jpg",
        "Hidden Cafe": picsum_fallback("Hidden Cafe"),
    }
    red_fort_params = next(params for params in calls if params["query"] == "Red Fort Delhi")
    assert red_fort_params["orientation"] == "landscape"
    assert red_fort_params["client_id"] == "u-key"


def test_fetch_place_images_degrades_on_http_error(monkeypatch) -> None:
    def _fake_get(self, url, params=None, timeout=None):
        return _FakeResponse(403, {"errors": ["Rate Limit Exceeded"]})

    monkeypatch.setattr("app.services.image_service.requests.Session.get", _fake_get)
    service = UnsplashImageService(access_key="u-key")

    images = asyncio.run(service.fetch_place_images([PlaceImageQuery(name="Red Fort")]))

    assert images == {"Red Fort": picsum_fallback("Red Fort")}


def test_fetch_place_images_limits_concurrent_searches(monkeypatch) -> None:
    lock = threading.Lock()
    in_flight = {"now": 0, "max": 0}

    def _fake_get(self, url, params=None, timeout=None):
        with lock:
            in_flight["now"] += 1
            in_flight["max"] = max(in_flight["max"], in_flight["now"])
        time.sleep(0.05)
        with lock:
            in_flight["now"] -= 1
        return _FakeResponse(200, {"results": []})

    monkeypatch.setattr("app.services.image_service.requests.Session.get", _fake_get)
    service = UnsplashImageService(access_key="u-key", max_concurrency=2)

    images = asyncio.run(service.fetch_place_images([PlaceImageQuery(name=f"Place {n}") for n in range(6)]))

    assert len(images) == 6
    assert in_flight["max"] <= 2

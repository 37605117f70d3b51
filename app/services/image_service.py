"""장소 이미지 조회 서비스 (Unsplash 검색 API, picsum 대체 이미지)."""

from __future__ import annotations

import asyncio
import hashlib
import re
from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

import requests

from app.core.config import get_settings
from app.core.logger import get_logger
from app.core.timeout_policy import get_timeout_policy, to_requests_timeout
from app.schemas.media import PlaceImageQuery

logger = get_logger(__name__)

UNSPLASH_SEARCH_URL = "https://api.unsplash.com/search/photos"
_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
_SVG_BACKGROUNDS = ("#4f46e5", "#0891b2", "#059669", "#d97706", "#dc2626", "#7c3aed")


def picsum_fallback(name: str, width: int = 400, height: int = 300) -> str:
    """장소 이름으로 항상 같은 picsum 이미지를 가리키는 URL을 만듭니다."""
    slug = _SLUG_PATTERN.sub("-", name.lower()).strip("-") or "place"
    return f"https://picsum.photos/seed/{slug}/{width}/{height}"


def svg_placeholder(name: str) -> str:
    """이미지 로드 실패 시 사용할 머리글자 SVG data URI."""
    initial = (name.strip()[:1] or "?").upper()
    digest = hashlib.sha1(name.encode("utf-8")).digest()
    background = _SVG_BACKGROUNDS[digest[0] % len(_SVG_BACKGROUNDS)]
    svg = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="400" height="300">'
        f'<rect width="100%" height="100%" fill="{background}"/>'
        '<text x="50%" y="50%" font-size="120" fill="#ffffff" font-family="sans-serif" '
        f'text-anchor="middle" dominant-baseline="central">{initial}</text>'
        "</svg>"
    )
    return f"data:image/svg+xml;charset=utf-8,{quote(svg)}"


class UnsplashImageService:
    """Unsplash 검색 API 기반 이미지 서비스."""

    def __init__(
        self,
        access_key: str | None,
        timeout_seconds: int = 15,
        per_page: int = 3,
        max_concurrency: int = 4,
    ) -> None:
        self._access_key = access_key
        self._timeout_seconds = timeout_seconds
        self._per_page = per_page
        self._max_concurrency = max(1, max_concurrency)

    @classmethod
    def from_settings(cls) -> UnsplashImageService:
        """애플리케이션 설정으로 서비스 인스턴스를 생성합니다."""
        settings = get_settings()
        timeout_policy = get_timeout_policy(settings)
        if not settings.UNSPLASH_ACCESS_KEY:
            logger.info("UNSPLASH_ACCESS_KEY is not configured. Using picsum fallback images.")
        return cls(
            access_key=settings.UNSPLASH_ACCESS_KEY,
            timeout_seconds=timeout_policy.external_api_timeout_seconds,
        )

    async def search_image(self, query: str) -> str | None:
        """검색어에 맞는 첫 번째 가로형 이미지 URL을 반환합니다. 실패하면 None."""
        if not self._access_key or not query.strip():
            return None

        params = {
            "query": query,
            "per_page": self._per_page,
            "orientation": "landscape",
            "client_id": self._access_key,
        }
        data = await self._request(params)
        results = (data or {}).get("results") or []
        for item in results:
            urls = item.get("urls") if isinstance(item, dict) else None
            if isinstance(urls, dict) and (urls.get("small") or urls.get("regular")):
                return urls.get("small") or urls.get("regular")
        return None

    async def fetch_place_images(self, items: Sequence[PlaceImageQuery]) -> dict[str, str]:
        """장소 이름별 이미지 URL을 반환합니다. 검색에 실패한 장소는 picsum URL을 사용합니다."""
        unique_items: dict[str, PlaceImageQuery] = {}
        for item in items:
            unique_items.setdefault(item.name, item)
        # Unsplash 요청 한도 때문에 동시 검색 수를 제한한다
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _resolve(item: PlaceImageQuery) -> tuple[str, str]:
            query = f"{item.name} {item.location}".strip()
            async with semaphore:
                url = await self.search_image(query)
            return item.name, url or picsum_fallback(item.name)

        resolved = await asyncio.gather(*(_resolve(item) for item in unique_items.values()))
        return dict(resolved)

    async def _request(self, params: dict[str, Any]) -> dict[str, Any] | None:
        request_timeout = to_requests_timeout(self._timeout_seconds)

        def _send() -> requests.Response:
            with requests.Session() as session:
                return session.get(UNSPLASH_SEARCH_URL, params=params, timeout=request_timeout)

        try:
            response = await asyncio.to_thread(_send)
            response.raise_for_status()
            data = response.json()
        except requests.HTTPError as exc:
            response = exc.response
            status_code = response.status_code if response is not None else None
            logger.warning("Unsplash API error: status=%s", status_code)
            return None
        except requests.RequestException as exc:
            logger.warning("Unsplash API request failed: %s", exc)
            return None
        except ValueError as exc:
            logger.warning("Unsplash API response parse failed: %s", exc)
            return None
        return data if isinstance(data, dict) else None


async def fetch_place_images(items: Sequence[PlaceImageQuery], access_key: str | None = None) -> dict[str, str]:
    """주어진 키(없으면 설정값)로 장소 이미지를 조회합니다."""
    if access_key is None:
        service = UnsplashImageService.from_settings()
    else:
        service = UnsplashImageService(
            access_key=access_key,
            timeout_seconds=get_timeout_policy().external_api_timeout_seconds,
        )
    return await service.fetch_place_images(items)

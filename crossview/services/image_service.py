"""Image lookup for synthesized stories."""

from __future__ import annotations

from typing import Dict, Optional

import httpx

from crossview.core.config import Settings, get_settings
from crossview.core.logging import get_logger

logger = get_logger(__name__).bind(component="ImageService")

_UNSPLASH = "https://images.unsplash.com/{photo}?w=800&auto=format&fit=crop"

CATEGORY_IMAGES: Dict[str, str] = {
    "us": _UNSPLASH.format(photo="photo-1523292562811-8fa7962a78c8"),
    "politics": _UNSPLASH.format(photo="photo-1529107386315-e1a2ed48a620"),
    "world": _UNSPLASH.format(photo="photo-1526470608268-f674ce90ebd4"),
    "business": _UNSPLASH.format(photo="photo-1507679799987-c73779587ccf"),
    "technology": _UNSPLASH.format(photo="photo-1518770660439-4636190af475"),
    "health": _UNSPLASH.format(photo="photo-1505751172876-fa1923c5c528"),
    "science": _UNSPLASH.format(photo="photo-1532094349884-543bc11b234d"),
    "sports": _UNSPLASH.format(photo="photo-1461896836934-ffe607ba8211"),
    "entertainment": _UNSPLASH.format(photo="photo-1603190287605-e6ade32fa852"),
    "social": _UNSPLASH.format(photo="photo-1503676260728-1c00da094a0b"),
}

MAX_QUERY_LENGTH = 120
IMAGE_RESULT_COUNT = 5


class ImageService:
    """Resolve a display image: the article's own, an image search hit, or a category default."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.transport = transport
        self._cache: Dict[str, str] = {}

    def default_for(self, category: Optional[str]) -> str:
        return CATEGORY_IMAGES.get((category or "").lower(), self.settings.default_image_url)

    async def search(self, query: str) -> Optional[str]:
        """Return the first image search hit for ``query``, or None."""
        if not self.settings.brave_api_key:
            return None

        query = query.strip()[:MAX_QUERY_LENGTH]
        if not query:
            return None
        if query in self._cache:
            return self._cache[query]

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.fetch_timeout_seconds,
                transport=self.transport,
            ) as client:
                response = await client.get(
                    self.settings.brave_image_search_url,
                    params={"q": query, "count": IMAGE_RESULT_COUNT},
                    headers={
                        "Accept": "application/json",
                        "X-Subscription-Token": self.settings.brave_api_key,
                    },
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("image_search_failed", query=query, error=str(exc))
            return None

        for result in data.get("results") or []:
            url = (result.get("properties") or {}).get("url") or (result.get("thumbnail") or {}).get("url")
            if url:
                self._cache[query] = url
                return url

        logger.debug("image_search_no_results", query=query)
        return None

    async def find_image(
        self,
        headline: str,
        category: Optional[str] = None,
        article_image: Optional[str] = None,
    ) -> str:
        """Never raises; always returns a usable URL."""
        if article_image:
            return article_image
        try:
            found = await self.search(headline)
        except Exception as exc:
            logger.warning("image_lookup_failed", headline=headline[:80], error=str(exc))
            found = None
        return found or self.default_for(category)


_service_instance: ImageService | None = None


def get_image_service() -> ImageService:
    global _service_instance
    if _service_instance is None:
        _service_instance = ImageService()
    return _service_instance


__all__ = ["CATEGORY_IMAGES", "ImageService", "get_image_service"]

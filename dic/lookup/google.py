"""
Google Custom Search image client.

Queries the Custom Search JSON API in image mode and maps `items[]` onto
`SearchResult`. The client is a plain async context manager around a shared
`httpx.AsyncClient`, so one connection pool serves every concurrent task.
Deadlines are enforced by the caller cancelling the awaited request.
"""

from __future__ import annotations

from typing import Any, List, Optional

import httpx
from pydantic import ValidationError

from dic.config import get_settings
from dic.domain.models import SearchOptions, SearchResult
from dic.errors import ConfigurationError, LookupFailedError
from dic.lookup.abstract import AbstractLookupClient
from dic.utils.logging import get_logger

log = get_logger(__name__)


def _parse_item(item: dict[str, Any]) -> SearchResult:
    image = item.get("image") or {}
    return SearchResult(
        link=item["link"],
        title=item.get("title"),
        mime=item.get("mime"),
        display_link=item.get("displayLink"),
        width=image.get("width"),
        height=image.get("height"),
        thumbnail_link=image.get("thumbnailLink"),
    )


class GoogleImageSearch(AbstractLookupClient):
    """
    Image search through the Google Custom Search JSON API.

    Pass `client` to share or mock the transport; otherwise one is created
    and closed by `aclose()`.
    """

    name: str = "google"

    def __init__(
        self,
        api_key: Optional[str] = None,
        cx: Optional[str] = None,
        endpoint: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.google_api_key
        self.cx = cx if cx is not None else settings.google_cx
        self.endpoint = endpoint or settings.google_endpoint
        if not self.api_key or not self.cx:
            raise ConfigurationError(
                "Google API key and custom search engine ID are required "
                "(GOOGLE_SPEECH_KEY / GOOGLE_SPEECH_CX)"
            )
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=None)

    async def search(self, key: str, options: SearchOptions) -> List[SearchResult]:
        params = {
            "key": self.api_key,
            "cx": self.cx,
            "q": key,
            "searchType": "image",
            **options.query_params(),
        }
        try:
            response = await self._client.get(self.endpoint, params=params)
        except httpx.HTTPError as exc:
            raise LookupFailedError(key, f"transport error: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            raise LookupFailedError(
                key, f"unexpected status {response.status_code}: {_error_message(response)}"
            )

        try:
            payload = response.json()
            items = payload.get("items") or []
            results = [_parse_item(item) for item in items]
        except (ValueError, AttributeError, KeyError, TypeError, ValidationError) as exc:
            raise LookupFailedError(key, f"malformed response: {exc}") from exc

        log.debug("search completed", extra={"key": key, "results": len(results)})
        return results

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "GoogleImageSearch":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def _error_message(response: httpx.Response) -> str:
    """Extract the API's error message, falling back to the reason phrase."""
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.reason_phrase


__all__ = ["GoogleImageSearch"]

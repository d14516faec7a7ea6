# recordgate/view/source.py
"""
Thin async HTTP source for collections.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class HttpCollectionSource:
    """Fetch a collection as JSON.

    Contract::

        GET {url}
        response: [ {...}, ... ]  or  { "items": [ {...}, ... ] }
    """

    def __init__(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._params = params or {}
        self._headers = headers or {}
        self._timeout = timeout
        self._transport = transport

    async def fetch(self) -> list[dict[str, Any]]:
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            try:
                resp = await client.get(
                    self._url, params=self._params, headers=self._headers
                )
                resp.raise_for_status()
            except httpx.HTTPStatusError as ex:
                logger.warning(
                    "Collection fetch failed status=%s url=%s",
                    ex.response.status_code,
                    self._url,
                )
                raise
            except httpx.HTTPError as ex:
                logger.warning("Collection fetch failed url=%s: %s", self._url, ex)
                raise

            data = resp.json()
            if isinstance(data, dict):
                data = data.get("items", [])
            return list(data)

"""Plain REST access for public JSON APIs."""

from __future__ import annotations

import asyncio
from typing import Any

import requests

from ..logger import get_logger

logger = get_logger(__name__)


class HttpClient:
    def __init__(self, *, timeout: float = 10.0):
        self.timeout = timeout

    async def _http_get(self, url: str, *, params: dict | None = None):
        return await asyncio.to_thread(
            lambda: requests.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        )

    async def get_json(self, url: str, *, params: dict | None = None) -> Any:
        """GET ``url`` and decode the JSON body.

        Raises:
            requests.HTTPError: On a non-2xx response.
            ValueError: If the body is not JSON.
        """
        logger.debug("GET %s", url)
        response = await self._http_get(url, params=params)
        response.raise_for_status()
        return response.json()

"""GraphQL client for subgraphs served by The Graph gateway."""

from __future__ import annotations

import asyncio
from typing import Any, TypeVar

import requests
from pydantic import BaseModel

from ..constants import THEGRAPH_GATEWAY_URL
from ..logger import get_logger
from ..settings import ExtractorConfigError

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class SubgraphError(Exception):
    """The subgraph answered with a GraphQL ``errors`` payload or no data."""


def thegraph_gateway_url(api_key: str, subgraph_id: str) -> str:
    return f"{THEGRAPH_GATEWAY_URL}/{api_key}/subgraphs/id/{subgraph_id}"


class SubgraphClient:
    """POSTs GraphQL queries to The Graph's decentralized network gateway."""

    def __init__(self, api_key: str | None, *, timeout: float = 10.0):
        self._api_key = api_key
        self.timeout = timeout

    def endpoint(self, subgraph_id: str) -> str:
        """Gateway URL for ``subgraph_id``.

        Raises:
            ExtractorConfigError: If no API key is configured.
        """
        if not self._api_key:
            raise ExtractorConfigError(
                "thegraph_api_key must be configured (TBTC_TVL_THEGRAPH_API_KEY)"
            )
        return thegraph_gateway_url(self._api_key, subgraph_id)

    @staticmethod
    def redacted_endpoint(subgraph_id: str) -> str:
        """Endpoint string safe to store in reports."""
        return thegraph_gateway_url("***", subgraph_id)

    async def query(
        self,
        subgraph_id: str,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run ``query`` and return its ``data`` object."""
        url = self.endpoint(subgraph_id)
        logger.debug("Subgraph query %s variables=%s", subgraph_id, variables)

        response = await asyncio.to_thread(
            lambda: requests.post(
                url,
                json={"query": query, "variables": variables or {}},
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        )
        response.raise_for_status()
        payload = response.json()

        errors = payload.get("errors")
        if errors:
            messages = "; ".join(str(e.get("message", e)) for e in errors)
            raise SubgraphError(f"Subgraph {subgraph_id} returned errors: {messages}")
        data = payload.get("data")
        if data is None:
            raise SubgraphError(f"Subgraph {subgraph_id} returned no data")
        return data

    async def query_model(
        self,
        subgraph_id: str,
        query: str,
        model: type[ModelT],
        variables: dict[str, Any] | None = None,
    ) -> ModelT:
        """Run ``query`` and validate its ``data`` against ``model``."""
        data = await self.query(subgraph_id, query, variables)
        return model.model_validate(data)

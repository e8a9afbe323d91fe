from __future__ import annotations

import re

from ..constants import (
    ALPHALEND_MARKET_TYPE_MARKER,
    ALPHALEND_MARKETS_CONTAINER,
    ALPHALEND_PAGE_SIZE,
    SUI_TBTC_COIN_TYPE,
    SUI_TBTC_DECIMALS,
)
from ..domain import Chain, ExtractionResult, ExtractionSource
from ..logger import get_logger
from ..units import normalize_to_wei
from .base import BaseExtractor

logger = get_logger(__name__)

_TYPE_PARAMETER = re.compile(r"<(.+)>$")


def market_coin_type(object_type: str) -> str | None:
    """``0x..::market::Market<COIN>`` -> ``COIN``."""
    match = _TYPE_PARAMETER.search(object_type)
    return match.group(1) if match else None


class AlphaLendExtractor(BaseExtractor):
    """AlphaLend lending markets on Sui.

    Markets are dynamic fields of a container object. Pages are walked until
    the tBTC market is found; its ``balance_holding`` (8 decimals) is the TVL.
    """

    protocol_name = "AlphaLend"
    supported_chains = frozenset({Chain.SUI})
    source = ExtractionSource.RPC

    async def _find_tbtc_market_balance(self) -> str | None:
        sui = self.sources.sui
        cursor: str | None = None

        while True:
            page = await sui.get_dynamic_fields(
                ALPHALEND_MARKETS_CONTAINER, cursor, ALPHALEND_PAGE_SIZE
            )
            market_ids = [
                field["objectId"]
                for field in page.get("data") or []
                if ALPHALEND_MARKET_TYPE_MARKER in (field.get("name") or {}).get("type", "")
            ]

            for market in await sui.multi_get_objects(market_ids):
                data = market.get("data") or {}
                object_type = data.get("type")
                if not object_type or market_coin_type(object_type) != SUI_TBTC_COIN_TYPE:
                    continue
                fields = (data.get("content") or {}).get("fields") or {}
                return str(fields.get("balance_holding") or "0")

            cursor = page.get("nextCursor") if page.get("hasNextPage") else None
            if not cursor:
                return None

    async def _extract(self, chain: Chain) -> ExtractionResult:
        balance = await self._find_tbtc_market_balance()
        if balance is None:
            logger.warning("No tBTC market found in AlphaLend, returning zero TVL")
            balance = "0"

        amount = normalize_to_wei(balance, SUI_TBTC_DECIMALS)
        logger.debug("AlphaLend tBTC balance_holding=%s (%d normalized)", balance, amount)
        return self._result(chain, amount, endpoint=self.sources.sui.url, pool_count=1)

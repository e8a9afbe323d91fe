from __future__ import annotations

from ..constants import AERODROME_SUBGRAPH_IDS, TBTC_ADDRESSES, TBTC_DECIMALS
from ..domain import Chain, ExtractionResult, ExtractionSource
from ..logger import get_logger
from ..units import decimal_to_wei
from .base import BaseExtractor
from .uniswap import POOLS_QUERY, Pool, PoolsResponse

logger = get_logger(__name__)


def tbtc_locked_in_aerodrome_pools(pools: list[Pool], tbtc_address: str) -> int:
    """Aerodrome's subgraph reports locked amounts already scaled to 18 decimals."""
    token = tbtc_address.lower()
    total = 0
    for pool in pools:
        if pool.token0.id.lower() == token:
            total += decimal_to_wei(pool.totalValueLockedToken0, TBTC_DECIMALS)
        if pool.token1.id.lower() == token:
            total += decimal_to_wei(pool.totalValueLockedToken1, TBTC_DECIMALS)
    return total


class AerodromeExtractor(BaseExtractor):
    """Aerodrome pools on Base (Uniswap V3 style subgraph schema)."""

    protocol_name = "Aerodrome"
    supported_chains = frozenset({Chain.BASE})
    source = ExtractionSource.SUBGRAPH

    async def _extract(self, chain: Chain) -> ExtractionResult:
        tbtc = TBTC_ADDRESSES[chain]
        subgraph_id = AERODROME_SUBGRAPH_IDS[chain]
        endpoint = self.sources.subgraph.redacted_endpoint(subgraph_id)

        response = await self.sources.subgraph.query_model(
            subgraph_id, POOLS_QUERY, PoolsResponse, {"token": tbtc.lower()}
        )
        pools = response.unique_pools()
        if not pools:
            logger.warning("No tBTC pools found on Aerodrome %s", chain.value)

        amount = tbtc_locked_in_aerodrome_pools(pools, tbtc)
        return self._result(chain, amount, endpoint=endpoint, pool_count=len(pools))

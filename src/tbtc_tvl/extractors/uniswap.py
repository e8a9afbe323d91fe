from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from ..constants import (
    TBTC_ADDRESSES,
    TBTC_DECIMALS,
    UNISWAP_V3_SUBGRAPH_IDS,
    UNISWAP_V4_POOL_MANAGERS,
)
from ..domain import Chain, ExtractionResult, ExtractionSource
from ..logger import get_logger
from ..units import decimal_to_wei, scale_to_18
from .base import BaseExtractor

logger = get_logger(__name__)

# tBTC can sit on either side of a pair; query both and merge
POOLS_QUERY = """
query GetTBTCPools($token: String!) {
  asToken0: pools(first: 1000, where: { token0: $token }) {
    ...PoolFields
  }
  asToken1: pools(first: 1000, where: { token1: $token }) {
    ...PoolFields
  }
}

fragment PoolFields on Pool {
  id
  token0 { id symbol decimals }
  token1 { id symbol decimals }
  totalValueLockedToken0
  totalValueLockedToken1
}
"""


class PoolToken(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    symbol: str
    decimals: int  # served as a string; pydantic coerces


class Pool(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    token0: PoolToken
    token1: PoolToken
    totalValueLockedToken0: str
    totalValueLockedToken1: str


class PoolsResponse(BaseModel):
    asToken0: list[Pool] = []
    asToken1: list[Pool] = []

    def unique_pools(self) -> list[Pool]:
        pools: dict[str, Pool] = {}
        for pool in [*self.asToken0, *self.asToken1]:
            pools.setdefault(pool.id.lower(), pool)
        return list(pools.values())


def tbtc_locked_in_pools(pools: list[Pool], tbtc_address: str) -> int:
    """Sum the tBTC side of every pool, in 18-decimal units.

    ``totalValueLockedTokenN`` is a whole-token decimal string.
    """
    token = tbtc_address.lower()
    total = 0
    for pool in pools:
        if pool.token0.id.lower() == token:
            total += decimal_to_wei(pool.totalValueLockedToken0, pool.token0.decimals)
        if pool.token1.id.lower() == token:
            total += decimal_to_wei(pool.totalValueLockedToken1, pool.token1.decimals)
    return total


class UniswapExtractor(BaseExtractor):
    """Uniswap tBTC liquidity.

    V3 pools come from the official subgraph. Where a V4 PoolManager is
    deployed its tBTC balance is read on-chain and added; a failed V4 read
    is logged and the V3 figure is still reported.
    """

    protocol_name = "Uniswap V3"
    supported_chains = frozenset(
        {Chain.ETHEREUM, Chain.ARBITRUM, Chain.BASE, Chain.OPTIMISM}
    )
    source = ExtractionSource.SUBGRAPH

    async def _extract(self, chain: Chain) -> ExtractionResult:
        tbtc = TBTC_ADDRESSES[chain]
        subgraph_id = UNISWAP_V3_SUBGRAPH_IDS[chain]
        endpoint = self.sources.subgraph.redacted_endpoint(subgraph_id)

        response = await self.sources.subgraph.query_model(
            subgraph_id, POOLS_QUERY, PoolsResponse, {"token": tbtc.lower()}
        )
        pools = response.unique_pools()
        amount = tbtc_locked_in_pools(pools, tbtc)
        logger.debug(
            "Uniswap V3 on %s: %d tBTC pools, %d locked", chain.value, len(pools), amount
        )

        endpoints: tuple[str, ...] = ()
        pool_manager = UNISWAP_V4_POOL_MANAGERS.get(chain)
        if pool_manager:
            evm = self.sources.evm_for(chain)
            try:
                v4_balance = await evm.balance_of(tbtc, pool_manager)
            except Exception as exc:
                logger.warning(
                    "Uniswap V4 PoolManager read failed on %s, reporting V3 only: %s",
                    chain.value,
                    exc,
                )
            else:
                amount += scale_to_18(v4_balance, TBTC_DECIMALS)
                endpoints = (endpoint, evm.rpc_url)

        return self._result(
            chain,
            amount,
            endpoint=endpoint,
            endpoints=endpoints,
            pool_count=len(pools),
        )

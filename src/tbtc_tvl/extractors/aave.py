from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from ..constants import AAVE_SUBGRAPH_IDS, TBTC_ADDRESSES
from ..domain import Chain, ExtractionResult, ExtractionSource
from ..logger import get_logger
from ..units import normalize_to_wei
from .base import BaseExtractor

logger = get_logger(__name__)

RESERVE_QUERY = """
query GetTBTCReserve($underlyingAsset: String!) {
  reserves(where: { underlyingAsset: $underlyingAsset }) {
    id
    symbol
    decimals
    underlyingAsset
    totalLiquidity
  }
}
"""


class AaveReserve(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    symbol: str
    decimals: int
    underlyingAsset: str
    totalLiquidity: str


class AaveReservesResponse(BaseModel):
    reserves: list[AaveReserve]


class AaveExtractor(BaseExtractor):
    """Aave V3 tBTC reserve liquidity from the protocol subgraph."""

    protocol_name = "Aave V3"
    supported_chains = frozenset({Chain.ETHEREUM, Chain.ARBITRUM, Chain.BASE})
    source = ExtractionSource.SUBGRAPH

    async def _extract(self, chain: Chain) -> ExtractionResult:
        subgraph_id = AAVE_SUBGRAPH_IDS[chain]
        endpoint = self.sources.subgraph.redacted_endpoint(subgraph_id)

        response = await self.sources.subgraph.query_model(
            subgraph_id,
            RESERVE_QUERY,
            AaveReservesResponse,
            {"underlyingAsset": TBTC_ADDRESSES[chain].lower()},
        )

        if not response.reserves:
            logger.warning("No tBTC reserve found on %s, returning zero TVL", chain.value)
            return self._result(chain, 0, endpoint=endpoint)

        reserve = response.reserves[0]
        amount = normalize_to_wei(reserve.totalLiquidity, reserve.decimals)
        return self._result(chain, amount, endpoint=endpoint)

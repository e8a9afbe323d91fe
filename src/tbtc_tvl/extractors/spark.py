from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from ..constants import SPARK_SUBGRAPH_IDS, TBTC_ADDRESSES
from ..domain import Chain, ExtractionResult, ExtractionSource
from ..logger import get_logger
from ..units import normalize_to_wei
from .base import BaseExtractor

logger = get_logger(__name__)

# Messari lending schema
MARKET_QUERY = """
query GetTBTCMarket($inputToken: String!) {
  markets(where: { inputToken: $inputToken }) {
    id
    name
    inputToken { id symbol decimals }
    inputTokenBalance
  }
}
"""


class InputToken(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    symbol: str
    decimals: int


class SparkMarket(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    inputToken: InputToken
    inputTokenBalance: str


class SparkMarketsResponse(BaseModel):
    markets: list[SparkMarket]


class SparkExtractor(BaseExtractor):
    protocol_name = "Spark Lend"
    supported_chains = frozenset({Chain.ETHEREUM})
    source = ExtractionSource.SUBGRAPH

    async def _extract(self, chain: Chain) -> ExtractionResult:
        subgraph_id = SPARK_SUBGRAPH_IDS[chain]
        endpoint = self.sources.subgraph.redacted_endpoint(subgraph_id)

        response = await self.sources.subgraph.query_model(
            subgraph_id,
            MARKET_QUERY,
            SparkMarketsResponse,
            {"inputToken": TBTC_ADDRESSES[chain].lower()},
        )
        if not response.markets:
            logger.warning("No tBTC market found on %s, returning zero TVL", chain.value)
            return self._result(chain, 0, endpoint=endpoint)

        market = response.markets[0]
        amount = normalize_to_wei(market.inputTokenBalance, market.inputToken.decimals)
        return self._result(chain, amount, endpoint=endpoint)

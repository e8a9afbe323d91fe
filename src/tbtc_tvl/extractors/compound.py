from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from ..constants import COMPOUND_BALANCE_ID_SUFFIX, COMPOUND_V3_SUBGRAPH_IDS, TBTC_ADDRESSES
from ..domain import Chain, ExtractionResult, ExtractionSource
from ..logger import get_logger
from ..units import normalize_to_wei
from .base import BaseExtractor
from .discovery import HolderReadError

logger = get_logger(__name__)

COLLATERAL_TOKENS_QUERY = """
query GetTBTCCollateralTokens($token: Bytes!) {
  collateralTokens(where: { token_: { address: $token } }) {
    id
    token { address symbol decimals }
    market { id }
  }
}
"""

MARKET_COLLATERAL_BALANCE_QUERY = """
query GetMarketCollateralBalance($id: ID!) {
  marketCollateralBalance(id: $id) {
    id
    balance
  }
}
"""


class CollateralTokenInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    address: str
    symbol: str
    decimals: int


class CollateralToken(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    token: CollateralTokenInfo


class CollateralTokensResponse(BaseModel):
    collateralTokens: list[CollateralToken]


class MarketCollateralBalance(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    balance: str


class MarketCollateralBalanceResponse(BaseModel):
    marketCollateralBalance: MarketCollateralBalance | None = None


class CompoundExtractor(BaseExtractor):
    """tBTC posted as collateral across Compound V3 (Comet) markets.

    Uses the community Compound V3 subgraph: every market listing tBTC as a
    collateral token has a ``marketCollateralBalance`` entity whose id is the
    collateral token id followed by hex("BAL").
    """

    protocol_name = "Compound"
    supported_chains = frozenset({Chain.ETHEREUM})
    source = ExtractionSource.SUBGRAPH

    async def _extract(self, chain: Chain) -> ExtractionResult:
        subgraph = self.sources.subgraph
        subgraph_id = COMPOUND_V3_SUBGRAPH_IDS[chain]
        endpoint = subgraph.redacted_endpoint(subgraph_id)

        collateral = await subgraph.query_model(
            subgraph_id,
            COLLATERAL_TOKENS_QUERY,
            CollateralTokensResponse,
            {"token": TBTC_ADDRESSES[chain].lower()},
        )
        tokens = collateral.collateralTokens
        if not tokens:
            logger.warning(
                "No tBTC collateral tokens found on %s, returning zero TVL", chain.value
            )
            return self._result(chain, 0, endpoint=endpoint, pool_count=0)

        total = 0
        failures = 0
        last_error: Exception | None = None
        for token in tokens:
            balance_id = token.id + COMPOUND_BALANCE_ID_SUFFIX
            try:
                response = await subgraph.query_model(
                    subgraph_id,
                    MARKET_COLLATERAL_BALANCE_QUERY,
                    MarketCollateralBalanceResponse,
                    {"id": balance_id},
                )
            except Exception as exc:
                failures += 1
                last_error = exc
                logger.warning(
                    "Failed to get balance for collateral token %s: %s", token.id, exc
                )
                continue
            if response.marketCollateralBalance is None:
                logger.debug("No collateral balance entity %s", balance_id)
                continue
            total += normalize_to_wei(
                response.marketCollateralBalance.balance, token.token.decimals
            )

        if failures == len(tokens):
            raise HolderReadError(
                f"Compound: all {failures} collateral balance queries failed"
            ) from last_error

        return self._result(chain, total, endpoint=endpoint, pool_count=len(tokens))

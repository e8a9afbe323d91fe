from __future__ import annotations

from typing import Any

from ..constants import EMBER_TBTC_VAULT_ID, EMBER_VAULTS_API, SUI_TBTC_COIN_TYPE
from ..domain import Chain, ExtractionResult, ExtractionSource
from ..logger import get_logger
from ..units import normalize_to_wei
from .base import BaseExtractor

logger = get_logger(__name__)


def find_tbtc_vault(vaults: list[dict[str, Any]]) -> dict[str, Any] | None:
    """Locate the tBTC vault by its known id, else by deposit coin type."""
    for vault in vaults:
        if vault.get("id") == EMBER_TBTC_VAULT_ID:
            return vault
    for vault in vaults:
        coin = (vault.get("depositCoin") or {}).get("address") or ""
        if "TBTC" in coin or coin == SUI_TBTC_COIN_TYPE:
            return vault
    return None


class EmberExtractor(BaseExtractor):
    """Ember (Bluefin) vaults on Sui, read from the public vaults API."""

    protocol_name = "Ember"
    supported_chains = frozenset({Chain.SUI})
    source = ExtractionSource.API

    async def _extract(self, chain: Chain) -> ExtractionResult:
        vaults = await self.sources.http.get_json(EMBER_VAULTS_API)
        if not isinstance(vaults, list):
            raise ValueError(f"Unexpected Ember vaults payload: {type(vaults).__name__}")

        vault = find_tbtc_vault(vaults)
        if vault is None:
            logger.warning(
                "No tBTC vault found in Ember among %d vaults: %s",
                len(vaults),
                [v.get("name") for v in vaults],
            )
            return self._result(chain, 0, endpoint=EMBER_VAULTS_API)

        # totalDeposits is in the deposit coin's native decimals
        decimals = int(vault["depositCoin"]["decimals"])
        amount = normalize_to_wei(str(vault.get("totalDeposits") or "0"), decimals)
        return self._result(chain, amount, endpoint=EMBER_VAULTS_API, pool_count=1)

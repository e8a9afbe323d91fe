from __future__ import annotations

from ..constants import (
    CURVE_API_CHAIN_NAMES,
    CURVE_API_URL,
    CURVE_CRVUSD_TBTC_LLAMMA,
    CURVE_POOL_TYPES,
    CURVE_STATIC_POOLS,
    TBTC_ADDRESSES,
    HolderContract,
)
from ..domain import Chain, ExtractionResult, ExtractionSource
from ..logger import get_logger
from .base import BaseExtractor
from .discovery import discover_holders, sum_holder_balances

logger = get_logger(__name__)

# Lending markets are not listed by the pool API
ALWAYS_INCLUDED: dict[Chain, list[HolderContract]] = {
    Chain.ETHEREUM: [
        {"address": CURVE_CRVUSD_TBTC_LLAMMA, "name": "crvUSD/tBTC Lending AMM"}
    ],
}


class CurveExtractor(BaseExtractor):
    """tBTC held by Curve pools.

    Pools are discovered through the Curve API (every registry type is
    scanned for pools listing tBTC among their coins); the static list is
    used when the API is unreachable or finds nothing. Balances are then
    read on-chain with ``balanceOf``.
    """

    protocol_name = "Curve"
    supported_chains = frozenset(
        {Chain.ETHEREUM, Chain.ARBITRUM, Chain.BASE, Chain.OPTIMISM}
    )
    source = ExtractionSource.RPC

    async def _discover_pools(self, chain: Chain) -> list[HolderContract]:
        api_chain = CURVE_API_CHAIN_NAMES[chain]
        tbtc = TBTC_ADDRESSES[chain].lower()
        pools: list[HolderContract] = []
        failures = 0

        for pool_type in CURVE_POOL_TYPES:
            url = f"{CURVE_API_URL}/getPools/{api_chain}/{pool_type}"
            try:
                payload = await self.sources.http.get_json(url)
            except Exception as exc:
                failures += 1
                logger.debug("Curve API %s/%s unavailable: %s", api_chain, pool_type, exc)
                continue

            pool_data = (payload.get("data") or {}).get("poolData") or []
            for pool in pool_data:
                coins = [c.lower() for c in pool.get("coinsAddresses") or [] if c]
                address = pool.get("address")
                if address and tbtc in coins:
                    pools.append(
                        {"address": address, "name": pool.get("name") or pool.get("id", address)}
                    )

        if failures == len(CURVE_POOL_TYPES):
            raise ConnectionError(f"Curve API unreachable for {api_chain}")
        return pools

    async def _extract(self, chain: Chain) -> ExtractionResult:
        evm = self.sources.evm_for(chain)
        tbtc = TBTC_ADDRESSES[chain]

        holders = await discover_holders(
            lambda: self._discover_pools(chain),
            CURVE_STATIC_POOLS.get(chain, []),
            label=f"Curve {chain.value}",
            always_include=ALWAYS_INCLUDED.get(chain, []),
        )
        if not holders:
            logger.info("No Curve tBTC pools on %s", chain.value)
            return self._result(chain, 0, endpoint=evm.rpc_url, pool_count=0)

        total = await sum_holder_balances(
            holders,
            lambda holder: evm.balance_of(tbtc, holder["address"]),
            label=f"Curve {chain.value}",
        )
        block_number = await evm.block_number()

        return self._result(
            chain,
            total,
            endpoint=evm.rpc_url,
            pool_count=len(holders),
            block_number=block_number,
        )

from __future__ import annotations

from ..constants import (
    GECKO_TERMINAL_API_URL,
    GECKO_TERMINAL_NETWORKS,
    TBTC_ADDRESSES,
    VELODROME_DEX_IDENTIFIERS,
    VELODROME_STATIC_POOLS,
    HolderContract,
)
from ..domain import Chain, ExtractionResult, ExtractionSource
from ..logger import get_logger
from .base import BaseExtractor
from .discovery import discover_holders, sum_holder_balances

logger = get_logger(__name__)


def velodrome_pools_from_gecko(payload: dict) -> list[HolderContract]:
    """Pick the Velodrome (v2 and Slipstream) pools out of a GeckoTerminal listing."""
    pools: list[HolderContract] = []
    for item in payload.get("data") or []:
        dex_id = (
            ((item.get("relationships") or {}).get("dex") or {}).get("data") or {}
        ).get("id")
        if dex_id not in VELODROME_DEX_IDENTIFIERS:
            continue
        attributes = item.get("attributes") or {}
        address = attributes.get("address")
        if address:
            pools.append({"address": address, "name": attributes.get("name") or address})
    return pools


class VelodromeExtractor(BaseExtractor):
    """Velodrome pools on Optimism: GeckoTerminal discovery, on-chain balances."""

    protocol_name = "Velodrome"
    supported_chains = frozenset({Chain.OPTIMISM})
    source = ExtractionSource.RPC

    async def _discover_pools(self, chain: Chain) -> list[HolderContract]:
        network = GECKO_TERMINAL_NETWORKS[chain]
        tbtc = TBTC_ADDRESSES[chain].lower()
        url = f"{GECKO_TERMINAL_API_URL}/networks/{network}/tokens/{tbtc}/pools"
        payload = await self.sources.http.get_json(url)
        return velodrome_pools_from_gecko(payload)

    async def _extract(self, chain: Chain) -> ExtractionResult:
        evm = self.sources.evm_for(chain)
        tbtc = TBTC_ADDRESSES[chain]

        pools = await discover_holders(
            lambda: self._discover_pools(chain),
            VELODROME_STATIC_POOLS.get(chain, []),
            label=f"Velodrome {chain.value}",
        )
        total = await sum_holder_balances(
            pools,
            lambda pool: evm.balance_of(tbtc, pool["address"]),
            label=f"Velodrome {chain.value}",
        )
        block_number = await evm.block_number()

        return self._result(
            chain,
            total,
            endpoint=evm.rpc_url,
            endpoints=(GECKO_TERMINAL_API_URL, evm.rpc_url),
            pool_count=len(pools),
            block_number=block_number,
        )

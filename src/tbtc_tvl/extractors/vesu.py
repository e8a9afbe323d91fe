from __future__ import annotations

from ..constants import TBTC_ADDRESSES, VESU_SINGLETONS, VESU_V2_POOLS, HolderContract
from ..domain import Chain, ExtractionResult, ExtractionSource
from .base import BaseExtractor
from .discovery import sum_holder_balances


class VesuExtractor(BaseExtractor):
    """Vesu lending on Starknet.

    The V1 singleton and every V2 pool hold tBTC directly, so the TVL is the
    sum of their ``balance_of`` on the tBTC token contract.
    """

    protocol_name = "Vesu"
    supported_chains = frozenset({Chain.STARKNET})
    source = ExtractionSource.RPC

    async def _extract(self, chain: Chain) -> ExtractionResult:
        starknet = self.sources.starknet
        tbtc = TBTC_ADDRESSES[chain]
        holders: list[HolderContract] = [
            {"address": VESU_SINGLETONS[chain], "name": "Vesu Singleton"},
            *VESU_V2_POOLS.get(chain, []),
        ]

        total = await sum_holder_balances(
            holders,
            lambda holder: starknet.balance_of(tbtc, holder["address"]),
            label="Vesu",
        )
        block_number = await starknet.block_number()
        return self._result(
            chain,
            total,
            endpoint=starknet.url,
            pool_count=len(holders),
            block_number=block_number,
        )

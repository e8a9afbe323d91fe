from __future__ import annotations

from ..constants import ENDUR_TBTC_VAULTS
from ..domain import Chain, ExtractionResult, ExtractionSource
from .base import BaseExtractor
from .discovery import sum_holder_balances


class EndurExtractor(BaseExtractor):
    """Endur liquid-staking vaults on Starknet, valued by ERC-4626 ``total_assets``."""

    protocol_name = "Endur"
    supported_chains = frozenset({Chain.STARKNET})
    source = ExtractionSource.RPC

    async def _extract(self, chain: Chain) -> ExtractionResult:
        starknet = self.sources.starknet
        vaults = ENDUR_TBTC_VAULTS[chain]

        total = await sum_holder_balances(
            vaults,
            lambda vault: starknet.call_u256(vault["address"], "total_assets"),
            label="Endur",
        )
        block_number = await starknet.block_number()
        return self._result(
            chain,
            total,
            endpoint=starknet.url,
            pool_count=len(vaults),
            block_number=block_number,
        )

from __future__ import annotations

from ..abi import ERC4626_ABI
from ..constants import GEARBOX_TBTC_POOLS
from ..domain import Chain, ExtractionResult, ExtractionSource
from .base import BaseExtractor
from .discovery import sum_holder_balances


class GearboxExtractor(BaseExtractor):
    """Gearbox V3 tBTC lending pools (ERC-4626 ``totalAssets``)."""

    protocol_name = "Gearbox"
    supported_chains = frozenset({Chain.ETHEREUM})
    source = ExtractionSource.RPC

    async def _extract(self, chain: Chain) -> ExtractionResult:
        evm = self.sources.evm_for(chain)
        pools = GEARBOX_TBTC_POOLS[chain]
        block = await evm.block_number()

        async def _total_assets(pool) -> int:
            return int(
                await evm.call(
                    pool["address"], ERC4626_ABI, "totalAssets", block_identifier=block
                )
            )

        total = await sum_holder_balances(pools, _total_assets, label="Gearbox")
        return self._result(
            chain,
            total,
            endpoint=evm.rpc_url,
            pool_count=len(pools),
            block_number=block,
        )

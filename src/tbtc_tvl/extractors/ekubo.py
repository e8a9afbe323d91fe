from __future__ import annotations

from ..constants import EKUBO_CORE, TBTC_ADDRESSES
from ..domain import Chain, ExtractionResult, ExtractionSource
from .base import BaseExtractor


class EkuboExtractor(BaseExtractor):
    # Ekubo's core contract holds the tokens of every pool
    protocol_name = "Ekubo"
    supported_chains = frozenset({Chain.STARKNET})
    source = ExtractionSource.RPC

    async def _extract(self, chain: Chain) -> ExtractionResult:
        starknet = self.sources.starknet
        amount = await starknet.balance_of(TBTC_ADDRESSES[chain], EKUBO_CORE[chain])
        block_number = await starknet.block_number()
        return self._result(
            chain, amount, endpoint=starknet.url, pool_count=1, block_number=block_number
        )

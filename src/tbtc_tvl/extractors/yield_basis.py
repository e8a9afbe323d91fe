from __future__ import annotations

from ..abi import CURVE_CRYPTOPOOL_ABI, YIELD_BASIS_FACTORY_ABI
from ..clients.evm import EvmClient
from ..constants import TBTC_ADDRESSES, YIELD_BASIS_FACTORIES, YIELD_BASIS_MAX_POOL_COINS
from ..domain import Chain, ExtractionResult, ExtractionSource
from ..logger import get_logger
from .base import BaseExtractor
from .discovery import HolderReadError

logger = get_logger(__name__)


class YieldBasisExtractor(BaseExtractor):
    """tBTC backing Yield Basis leveraged-liquidity markets.

    Each market's AMM owns LP tokens of a Curve cryptopool; the AMM's
    pro-rata share of the pool's tBTC balance is what the market holds:
    ``amm_lp_balance * pool_tbtc_balance // lp_total_supply``.
    """

    protocol_name = "Yield Basis"
    supported_chains = frozenset({Chain.ETHEREUM})
    source = ExtractionSource.RPC

    async def _tbtc_pool_balance(
        self, evm: EvmClient, cryptopool: str, tbtc: str, block: int
    ) -> int:
        for index in range(YIELD_BASIS_MAX_POOL_COINS):
            try:
                coin = await evm.call(
                    cryptopool, CURVE_CRYPTOPOOL_ABI, "coins", index, block_identifier=block
                )
            except Exception as exc:
                # coins(i) reverts past the last coin
                logger.debug("%s.coins(%d) unavailable: %s", cryptopool, index, exc)
                break
            if str(coin).lower() == tbtc:
                return int(
                    await evm.call(
                        cryptopool,
                        CURVE_CRYPTOPOOL_ABI,
                        "balances",
                        index,
                        block_identifier=block,
                    )
                )
        return 0

    async def _market_tbtc(
        self, evm: EvmClient, factory: str, index: int, tbtc: str, block: int
    ) -> int:
        asset, cryptopool, amm, *_ = await evm.call(
            factory, YIELD_BASIS_FACTORY_ABI, "markets", index, block_identifier=block
        )
        if str(asset).lower() != tbtc:
            return 0

        amm_lp = int(
            await evm.call(
                cryptopool, CURVE_CRYPTOPOOL_ABI, "balanceOf", amm, block_identifier=block
            )
        )
        lp_supply = int(
            await evm.call(
                cryptopool, CURVE_CRYPTOPOOL_ABI, "totalSupply", block_identifier=block
            )
        )
        if amm_lp == 0 or lp_supply == 0:
            return 0

        pool_tbtc = await self._tbtc_pool_balance(evm, cryptopool, tbtc, block)
        share = amm_lp * pool_tbtc // lp_supply
        logger.debug("Yield Basis market %d holds %d tBTC units", index, share)
        return share

    async def _extract(self, chain: Chain) -> ExtractionResult:
        evm = self.sources.evm_for(chain)
        factory = YIELD_BASIS_FACTORIES[chain]
        tbtc = TBTC_ADDRESSES[chain].lower()

        block = await evm.block_number()
        market_count = int(
            await evm.call(
                factory, YIELD_BASIS_FACTORY_ABI, "market_count", block_identifier=block
            )
        )

        total = 0
        markets = 0
        failures = 0
        last_error: Exception | None = None
        for index in range(market_count):
            try:
                share = await self._market_tbtc(evm, factory, index, tbtc, block)
            except Exception as exc:
                failures += 1
                last_error = exc
                logger.warning("Failed to process Yield Basis market %d: %s", index, exc)
                continue
            if share:
                markets += 1
                total += share

        if market_count and failures == market_count:
            raise HolderReadError(
                f"Yield Basis: all {failures} market reads failed"
            ) from last_error

        return self._result(
            chain,
            total,
            endpoint=evm.rpc_url,
            pool_count=markets,
            block_number=block,
        )

from __future__ import annotations

from ..constants import BUCKET_TBTC_BUCKET_ID, SUI_TBTC_DECIMALS
from ..domain import Chain, ExtractionResult, ExtractionSource
from ..logger import get_logger
from ..units import parse_native, scale_to_18
from .base import BaseExtractor

logger = get_logger(__name__)


def bucket_collateral(fields: dict) -> int:
    """Collateral of a Bucket object, in native 8-decimal units.

    ``collateral_vault`` is what the vault holds now; the bottle table's
    ``total_collateral_snapshot`` also counts pending liquidations. The two
    can differ during liquidations and the larger one is reported.
    """
    vault = parse_native(str(fields.get("collateral_vault") or "0"))
    bottle_table = (fields.get("bottle_table") or {}).get("fields") or {}
    snapshot = parse_native(str(bottle_table.get("total_collateral_snapshot") or "0"))
    return max(vault, snapshot)


class BucketExtractor(BaseExtractor):
    """tBTC collateral in the Bucket Protocol CDP bucket on Sui."""

    protocol_name = "Bucket"
    supported_chains = frozenset({Chain.SUI})
    source = ExtractionSource.RPC

    async def _extract(self, chain: Chain) -> ExtractionResult:
        sui = self.sources.sui
        obj = await sui.get_object(BUCKET_TBTC_BUCKET_ID, show_content=True)
        fields = ((obj.get("data") or {}).get("content") or {}).get("fields")
        if not fields:
            raise ValueError(f"Bucket object {BUCKET_TBTC_BUCKET_ID} has no content")

        collateral = bucket_collateral(fields)
        amount = scale_to_18(collateral, SUI_TBTC_DECIMALS)
        logger.debug("Bucket tBTC collateral=%d (%d normalized)", collateral, amount)
        return self._result(chain, amount, endpoint=sui.url, pool_count=1)

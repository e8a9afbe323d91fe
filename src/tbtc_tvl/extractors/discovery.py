"""Discover-then-read helpers shared by the pool-based extractors."""

from __future__ import annotations

from typing import Awaitable, Callable, Iterable, Sequence

from ..constants import HolderContract
from ..logger import get_logger

logger = get_logger(__name__)


class HolderReadError(Exception):
    """Every holder balance read failed; nothing was measured."""


def dedupe_holders(holders: Iterable[HolderContract]) -> list[HolderContract]:
    """Drop repeated addresses (case-insensitive), keeping first occurrences."""
    seen: set[str] = set()
    unique: list[HolderContract] = []
    for holder in holders:
        key = holder["address"].lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(holder)
    return unique


async def discover_holders(
    discover: Callable[[], Awaitable[Sequence[HolderContract]]],
    fallback: Sequence[HolderContract],
    *,
    label: str,
    always_include: Sequence[HolderContract] = (),
) -> list[HolderContract]:
    """Find the contracts holding tBTC, falling back to a static list.

    The static ``fallback`` is used when discovery raises or finds nothing.
    ``always_include`` holders are appended in both cases.
    """
    try:
        discovered = list(await discover())
    except Exception as exc:
        logger.warning(
            "%s discovery failed, using %d static holders: %s",
            label,
            len(fallback),
            exc,
        )
        discovered = []
    else:
        if not discovered:
            logger.warning(
                "%s discovery found no holders, using %d static holders",
                label,
                len(fallback),
            )
        else:
            logger.debug("%s discovered %d holders", label, len(discovered))

    holders = discovered or list(fallback)
    return dedupe_holders([*holders, *always_include])


async def sum_holder_balances(
    holders: Sequence[HolderContract],
    read: Callable[[HolderContract], Awaitable[int]],
    *,
    label: str,
) -> int:
    """Sum ``read(holder)`` over ``holders``, skipping holders whose read fails.

    Raises:
        HolderReadError: If there were holders and every read failed.
    """
    total = 0
    failures = 0
    last_error: Exception | None = None
    for holder in holders:
        try:
            balance = await read(holder)
        except Exception as exc:
            failures += 1
            last_error = exc
            logger.warning(
                "%s: skipping %s (%s): %s",
                label,
                holder["name"],
                holder["address"],
                exc,
            )
            continue
        logger.debug("%s: %s holds %d", label, holder["name"], balance)
        total += balance

    if holders and failures == len(holders):
        raise HolderReadError(
            f"{label}: all {failures} holder reads failed"
        ) from last_error
    return total

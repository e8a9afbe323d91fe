from __future__ import annotations

import pytest

from tbtc_tvl.extractors.discovery import (
    HolderReadError,
    dedupe_holders,
    discover_holders,
    sum_holder_balances,
)

STATIC = [{"address": "0xStatic", "name": "static pool"}]
LENDING = {"address": "0xLending", "name": "lending amm"}


def test_dedupe_holders_ignores_address_case():
    holders = [
        {"address": "0xABC", "name": "first"},
        {"address": "0xabc", "name": "second"},
        {"address": "0xdef", "name": "third"},
    ]

    assert [h["name"] for h in dedupe_holders(holders)] == ["first", "third"]


@pytest.mark.asyncio
async def test_discovered_holders_replace_the_static_list():
    async def discover():
        return [{"address": "0xfound", "name": "found"}]

    holders = await discover_holders(
        discover, STATIC, label="test", always_include=[LENDING]
    )

    assert [h["address"] for h in holders] == ["0xfound", "0xLending"]


@pytest.mark.asyncio
async def test_failed_discovery_uses_static_list():
    async def discover():
        raise ConnectionError("api down")

    holders = await discover_holders(
        discover, STATIC, label="test", always_include=[LENDING]
    )

    assert [h["address"] for h in holders] == ["0xStatic", "0xLending"]


@pytest.mark.asyncio
async def test_empty_discovery_uses_static_list():
    async def discover():
        return []

    assert await discover_holders(discover, STATIC, label="test") == STATIC


@pytest.mark.asyncio
async def test_sum_holder_balances_skips_failures():
    balances = {"0x1": 5, "0x3": 7}

    async def read(holder):
        return balances[holder["address"]]

    holders = [{"address": a, "name": a} for a in ("0x1", "0x2", "0x3")]

    assert await sum_holder_balances(holders, read, label="test") == 12


@pytest.mark.asyncio
async def test_sum_holder_balances_raises_when_everything_fails():
    async def read(holder):
        raise ConnectionError("rpc down")

    with pytest.raises(HolderReadError) as exc_info:
        await sum_holder_balances(STATIC, read, label="test")

    assert isinstance(exc_info.value.__cause__, ConnectionError)


@pytest.mark.asyncio
async def test_sum_holder_balances_of_nothing_is_zero():
    async def read(holder):
        raise AssertionError("not called")

    assert await sum_holder_balances([], read, label="test") == 0

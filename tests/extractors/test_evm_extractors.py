from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from tbtc_tvl.constants import (
    CURVE_CRVUSD_TBTC_LLAMMA,
    CURVE_POOL_TYPES,
    CURVE_STATIC_POOLS,
    GEARBOX_TBTC_POOLS,
    TBTC_ADDRESSES,
    VELODROME_STATIC_POOLS,
)
from tbtc_tvl.domain import Chain, ExtractionSource
from tbtc_tvl.extractors.curve import CurveExtractor
from tbtc_tvl.extractors.discovery import HolderReadError
from tbtc_tvl.extractors.gearbox import GearboxExtractor
from tbtc_tvl.extractors.velodrome import VelodromeExtractor, velodrome_pools_from_gecko
from tbtc_tvl.extractors.yield_basis import YieldBasisExtractor
from tbtc_tvl.settings import TvlSettings

ETH_TBTC = TBTC_ADDRESSES[Chain.ETHEREUM]
OP_TBTC = TBTC_ADDRESSES[Chain.OPTIMISM]
BLOCK = 21_000_000


def make_sources(evm: MagicMock, get_json=None) -> MagicMock:
    sources = MagicMock()
    sources.evm_for.return_value = evm
    sources.http.get_json = AsyncMock(side_effect=get_json or ConnectionError("offline"))
    return sources


def make_evm(balances: dict[str, int] | None = None) -> MagicMock:
    """EVM client whose ``balance_of`` answers from ``balances`` by holder address."""
    balances = {k.lower(): v for k, v in (balances or {}).items()}

    async def balance_of(token, holder, *, block_identifier="latest"):
        try:
            return balances[holder.lower()]
        except KeyError:
            raise ConnectionError(f"execution reverted for {holder}") from None

    evm = MagicMock()
    evm.rpc_url = "https://rpc.example"
    evm.balance_of = AsyncMock(side_effect=balance_of)
    evm.block_number = AsyncMock(return_value=BLOCK)
    return evm


@pytest.fixture
def settings() -> TvlSettings:
    return TvlSettings()


def _curve_pool(address, coins, name="pool"):
    return {"address": address, "name": name, "coinsAddresses": coins}


@pytest.mark.asyncio
async def test_curve_discovers_pools_and_adds_lending_amm(settings):
    discovered = "0x1111111111111111111111111111111111111111"

    async def get_json(url, *, params=None):
        if url.endswith("/ethereum/main"):
            return {
                "data": {
                    "poolData": [
                        _curve_pool(discovered, [ETH_TBTC.lower(), "0xwbtc"], "tBTC/WBTC"),
                        _curve_pool("0x2222", ["0xusdc", "0xusdt"], "3pool"),
                    ]
                }
            }
        return {"data": {"poolData": []}}

    evm = make_evm({discovered: 4 * 10**18, CURVE_CRVUSD_TBTC_LLAMMA: 6 * 10**18})
    extractor = CurveExtractor(settings, make_sources(evm, get_json))

    result = await extractor.extract(Chain.ETHEREUM)

    assert result.amount == 10 * 10**18
    assert result.provenance.pool_count == 2
    assert result.provenance.source is ExtractionSource.RPC
    assert result.block_number == BLOCK


@pytest.mark.asyncio
async def test_curve_falls_back_to_static_pools_when_api_is_down(settings):
    static = CURVE_STATIC_POOLS[Chain.ETHEREUM]
    evm = make_evm({pool["address"]: 10**18 for pool in static})
    sources = make_sources(evm)
    extractor = CurveExtractor(settings, sources)

    result = await extractor.extract(Chain.ETHEREUM)

    # the lending AMM is listed statically too and must only be counted once
    assert result.amount == len(static) * 10**18
    assert result.provenance.pool_count == len(static)
    assert sources.http.get_json.await_count == len(CURVE_POOL_TYPES)


@pytest.mark.asyncio
async def test_curve_skips_unreadable_pools(settings):
    static = CURVE_STATIC_POOLS[Chain.ARBITRUM]
    evm = make_evm({static[0]["address"]: 3 * 10**18})
    extractor = CurveExtractor(settings, make_sources(evm))

    result = await extractor.extract(Chain.ARBITRUM)

    assert result.amount == 3 * 10**18


@pytest.mark.asyncio
async def test_curve_without_any_pool_reports_zero(settings):
    evm = make_evm()
    extractor = CurveExtractor(settings, make_sources(evm))

    result = await extractor.extract(Chain.OPTIMISM)

    assert result.amount == 0
    assert result.provenance.pool_count == 0
    evm.balance_of.assert_not_awaited()


def test_velodrome_pools_from_gecko_filters_on_dex():
    payload = {
        "data": [
            {
                "attributes": {"address": "0xaaa", "name": "tBTC / WETH"},
                "relationships": {"dex": {"data": {"id": "velodrome-finance-slipstream"}}},
            },
            {
                "attributes": {"address": "0xbbb", "name": "tBTC / USDC"},
                "relationships": {"dex": {"data": {"id": "uniswap-v3-optimism"}}},
            },
            {
                "attributes": {"address": "0xccc"},
                "relationships": {"dex": {"data": {"id": "velodrome-finance-v2"}}},
            },
        ]
    }

    assert velodrome_pools_from_gecko(payload) == [
        {"address": "0xaaa", "name": "tBTC / WETH"},
        {"address": "0xccc", "name": "0xccc"},
    ]


@pytest.mark.asyncio
async def test_velodrome_reads_discovered_pools(settings):
    async def get_json(url, *, params=None):
        assert OP_TBTC.lower() in url
        return {
            "data": [
                {
                    "attributes": {"address": "0xaaa", "name": "tBTC / WETH"},
                    "relationships": {"dex": {"data": {"id": "velodrome-finance-v2"}}},
                }
            ]
        }

    evm = make_evm({"0xaaa": 12 * 10**17})
    extractor = VelodromeExtractor(settings, make_sources(evm, get_json))

    result = await extractor.extract(Chain.OPTIMISM)

    assert result.amount == 12 * 10**17
    assert result.provenance.pool_count == 1
    assert result.provenance.endpoints[-1] == "https://rpc.example"


@pytest.mark.asyncio
async def test_velodrome_falls_back_to_static_pools(settings):
    static = VELODROME_STATIC_POOLS[Chain.OPTIMISM]
    evm = make_evm({pool["address"]: 10**18 for pool in static})
    extractor = VelodromeExtractor(settings, make_sources(evm))

    result = await extractor.extract(Chain.OPTIMISM)

    assert result.amount == len(static) * 10**18
    assert result.provenance.pool_count == len(static)


@pytest.mark.asyncio
async def test_velodrome_fails_when_no_pool_can_be_read(settings):
    extractor = VelodromeExtractor(settings, make_sources(make_evm()))

    with pytest.raises(HolderReadError):
        await extractor.extract(Chain.OPTIMISM)


@pytest.mark.asyncio
async def test_gearbox_sums_total_assets_at_one_block(settings):
    pools = GEARBOX_TBTC_POOLS[Chain.ETHEREUM]
    evm = make_evm()
    evm.call = AsyncMock(side_effect=[5 * 10**18, 2 * 10**18])
    extractor = GearboxExtractor(settings, make_sources(evm))

    result = await extractor.extract(Chain.ETHEREUM)

    assert result.amount == 7 * 10**18
    assert result.provenance.pool_count == len(pools)
    for call in evm.call.await_args_list:
        assert call.args[2] == "totalAssets"
        assert call.kwargs["block_identifier"] == BLOCK


def _yield_basis_evm(markets, pools):
    """Fake contract reads for a Yield Basis factory and its cryptopools.

    ``markets`` is a list of (asset, cryptopool, amm) tuples; ``pools`` maps a
    cryptopool to ``{"coins": [...], "balances": [...], "lp": {amm: n}, "supply": n}``.
    """

    async def call(address, abi, function_name, *args, block_identifier="latest"):
        assert block_identifier == BLOCK
        if function_name == "market_count":
            return len(markets)
        if function_name == "markets":
            asset, cryptopool, amm = markets[args[0]]
            return (asset, cryptopool, amm, "0xvault", 0, 0)
        pool = pools[address]
        if function_name == "balanceOf":
            return pool["lp"].get(args[0], 0)
        if function_name == "totalSupply":
            return pool["supply"]
        if function_name == "coins":
            if args[0] >= len(pool["coins"]):
                raise ValueError("execution reverted")
            return pool["coins"][args[0]]
        if function_name == "balances":
            return pool["balances"][args[0]]
        raise AssertionError(f"unexpected call {function_name}")

    evm = make_evm()
    evm.call = AsyncMock(side_effect=call)
    return evm


@pytest.mark.asyncio
async def test_yield_basis_reports_amm_share_of_tbtc_markets(settings):
    evm = _yield_basis_evm(
        markets=[
            (ETH_TBTC, "0xpool1", "0xamm1"),
            ("0xWBTC", "0xpool2", "0xamm2"),
            (ETH_TBTC, "0xpool3", "0xamm3"),
        ],
        pools={
            "0xpool1": {
                "coins": ["0xcrvusd", ETH_TBTC],
                "balances": [10**24, 100 * 10**18],
                "lp": {"0xamm1": 25},
                "supply": 100,
            },
            "0xpool3": {
                "coins": ["0xcrvusd", ETH_TBTC],
                "balances": [0, 0],
                "lp": {},
                "supply": 100,
            },
        },
    )
    extractor = YieldBasisExtractor(settings, make_sources(evm))

    result = await extractor.extract(Chain.ETHEREUM)

    assert result.amount == 25 * 10**18
    assert result.provenance.pool_count == 1
    assert result.block_number == BLOCK


@pytest.mark.asyncio
async def test_yield_basis_skips_a_failing_market(settings):
    evm = _yield_basis_evm(
        markets=[
            (ETH_TBTC, "0xmissing", "0xamm0"),
            (ETH_TBTC, "0xpool1", "0xamm1"),
        ],
        pools={
            "0xpool1": {
                "coins": [ETH_TBTC, "0xcrvusd"],
                "balances": [8 * 10**18, 0],
                "lp": {"0xamm1": 1},
                "supply": 2,
            },
        },
    )
    extractor = YieldBasisExtractor(settings, make_sources(evm))

    result = await extractor.extract(Chain.ETHEREUM)

    assert result.amount == 4 * 10**18
    assert result.provenance.pool_count == 1


@pytest.mark.asyncio
async def test_yield_basis_raises_when_every_market_read_fails(settings):
    async def call(address, abi, function_name, *args, block_identifier="latest"):
        if function_name == "market_count":
            return 3
        raise ConnectionError("rpc down")

    evm = make_evm()
    evm.call = AsyncMock(side_effect=call)
    extractor = YieldBasisExtractor(settings, make_sources(evm))

    with pytest.raises(HolderReadError, match="all 3 market reads failed"):
        await extractor.extract(Chain.ETHEREUM)


@pytest.mark.asyncio
async def test_yield_basis_with_no_markets_reports_zero(settings):
    evm = _yield_basis_evm(markets=[], pools={})
    extractor = YieldBasisExtractor(settings, make_sources(evm))

    result = await extractor.extract(Chain.ETHEREUM)

    assert result.amount == 0

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from tbtc_tvl.domain import Chain, ExtractionResult, ExtractionSource
from tbtc_tvl.extractors import (
    EXTRACTOR_CLASSES,
    Extractor,
    ExtractorRegistry,
    RetryingExtractor,
    UnsupportedChain,
    build_registry,
    get_extractor_class,
)
from tbtc_tvl.extractors.aave import AaveExtractor
from tbtc_tvl.extractors.base import BaseExtractor
from tbtc_tvl.retry import RetryExhausted, RetryPolicy
from tbtc_tvl.settings import TvlSettings


class StubExtractor(BaseExtractor):
    protocol_name = "Stub"
    supported_chains = frozenset({Chain.ETHEREUM, Chain.SUI})
    source = ExtractionSource.API

    def __init__(self, settings, sources, amounts=(), errors=()):
        super().__init__(settings, sources)
        self.calls = 0
        self._errors = list(errors)
        self._amount = amounts[0] if amounts else 10**18

    async def _extract(self, chain: Chain) -> ExtractionResult:
        self.calls += 1
        if self._errors:
            raise self._errors.pop(0)
        return self._result(chain, self._amount, endpoint="https://stub.example")


@pytest.fixture
def settings() -> TvlSettings:
    return TvlSettings(retries=3)


@pytest.fixture
def no_sleep(monkeypatch):
    async def fake_sleep(seconds, *args, **kwargs):
        return None

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)


def test_every_extractor_class_has_a_unique_name():
    names = [cls.protocol_name.casefold() for cls in EXTRACTOR_CLASSES]
    assert len(names) == len(set(names)) == 15


def test_get_extractor_class_is_case_insensitive():
    assert get_extractor_class("aave v3") is AaveExtractor
    with pytest.raises(ValueError, match="Unknown protocol 'Morpho'"):
        get_extractor_class("Morpho")


def test_build_registry_wraps_extractors_with_retry(settings):
    registry = build_registry(settings, MagicMock())

    assert len(registry) == len(EXTRACTOR_CLASSES)
    aave = registry.find_by_protocol("AAVE V3")
    assert isinstance(aave, RetryingExtractor)
    assert isinstance(aave, Extractor)
    assert aave.policy.max_attempts == 3
    assert aave.source is ExtractionSource.SUBGRAPH


def test_registry_lookups(settings):
    registry = build_registry(settings, MagicMock())

    assert registry.find_by_protocol("Morpho") is None
    assert "curve" in registry
    assert 42 not in registry

    sui = {e.protocol_name for e in registry.find_by_chain(Chain.SUI)}
    assert sui == {"AlphaLend", "Bucket", "Ember"}
    starknet = {e.protocol_name for e in registry.find_by_chain(Chain.STARKNET)}
    assert starknet == {"Vesu", "Endur", "Ekubo"}


def test_registry_rejects_duplicate_protocols(settings):
    with pytest.raises(ValueError, match="Duplicate extractor for protocol 'Stub'"):
        ExtractorRegistry(
            [StubExtractor(settings, MagicMock()), StubExtractor(settings, MagicMock())]
        )


@pytest.mark.asyncio
async def test_unsupported_chain_is_raised_before_any_fetch(settings):
    stub = StubExtractor(settings, MagicMock())

    with pytest.raises(UnsupportedChain) as exc_info:
        await stub.extract(Chain.BASE)

    assert stub.calls == 0
    assert exc_info.value.chain is Chain.BASE


@pytest.mark.asyncio
async def test_retrying_extractor_recovers_from_transient_errors(settings, no_sleep):
    stub = StubExtractor(
        settings, MagicMock(), errors=[ConnectionError("reset"), TimeoutError("slow")]
    )
    extractor = RetryingExtractor(stub, RetryPolicy(max_attempts=3))

    result = await extractor.extract(Chain.SUI)

    assert stub.calls == 3
    assert result.amount == 10**18
    assert result.protocol == "Stub"
    assert result.provenance.source is ExtractionSource.API


@pytest.mark.asyncio
async def test_retrying_extractor_gives_up(settings, no_sleep):
    stub = StubExtractor(settings, MagicMock(), errors=[ConnectionError("down")] * 5)
    extractor = RetryingExtractor(stub, RetryPolicy(max_attempts=2))

    with pytest.raises(RetryExhausted, match="Stub extraction for ethereum"):
        await extractor.extract(Chain.ETHEREUM)

    assert stub.calls == 2


@pytest.mark.asyncio
async def test_retrying_extractor_does_not_retry_unsupported_chain(settings, no_sleep):
    stub = StubExtractor(settings, MagicMock())
    extractor = RetryingExtractor(stub, RetryPolicy(max_attempts=3))

    with pytest.raises(UnsupportedChain):
        await extractor.extract(Chain.STARKNET)

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import ClassVar, Protocol, runtime_checkable

from ..clients.sources import DataSources
from ..domain import Chain, ExtractionResult, ExtractionSource, Provenance
from ..retry import PermanentError
from ..settings import TvlSettings


class UnsupportedChain(PermanentError):
    """Raised when an extractor is asked for a chain it does not serve."""

    def __init__(self, protocol: str, chain: Chain):
        super().__init__(f"{protocol} does not support chain {chain.value}")
        self.protocol = protocol
        self.chain = chain


@runtime_checkable
class Extractor(Protocol):
    """Capability every protocol extractor exposes to the orchestrator."""

    @property
    def protocol_name(self) -> str: ...

    @property
    def supported_chains(self) -> frozenset[Chain]: ...

    @property
    def source(self) -> ExtractionSource: ...

    def can_extract(self, chain: Chain) -> bool: ...

    async def extract(self, chain: Chain) -> ExtractionResult: ...


class BaseExtractor(ABC):
    """Abstract base class for protocol extractors.

    Subclasses declare ``protocol_name``, ``supported_chains`` and ``source``
    and implement ``_extract``. Retrying is applied from the outside by
    ``RetryingExtractor``.
    """

    protocol_name: ClassVar[str]
    supported_chains: ClassVar[frozenset[Chain]]
    source: ClassVar[ExtractionSource]

    def __init__(self, settings: TvlSettings, sources: DataSources):
        """Initialize the extractor.

        Args:
            settings: Run settings
            sources: Shared data-source clients
        """
        self.settings = settings
        self.sources = sources

    def can_extract(self, chain: Chain) -> bool:
        return chain in self.supported_chains

    async def extract(self, chain: Chain) -> ExtractionResult:
        """Measure this protocol's tBTC TVL on ``chain``.

        Raises:
            UnsupportedChain: If ``chain`` is not in ``supported_chains``.
        """
        if not self.can_extract(chain):
            raise UnsupportedChain(self.protocol_name, chain)
        return await self._extract(chain)

    @abstractmethod
    async def _extract(self, chain: Chain) -> ExtractionResult:
        """Fetch and normalize the measurement for a supported chain."""
        ...

    def _result(
        self,
        chain: Chain,
        amount: int,
        *,
        endpoint: str | None = None,
        endpoints: tuple[str, ...] = (),
        pool_count: int | None = None,
        block_number: int | None = None,
        source: ExtractionSource | None = None,
    ) -> ExtractionResult:
        return ExtractionResult(
            protocol=self.protocol_name,
            chain=chain,
            amount=amount,
            observed_at=datetime.now(timezone.utc),
            block_number=block_number,
            provenance=Provenance(
                source=source or self.source,
                endpoint=endpoint,
                endpoints=endpoints,
                pool_count=pool_count,
            ),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(protocol={self.protocol_name!r})"

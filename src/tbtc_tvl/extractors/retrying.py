from __future__ import annotations

from ..domain import Chain, ExtractionResult, ExtractionSource
from ..retry import RetryPolicy, with_retry
from .base import Extractor


class RetryingExtractor:
    """Wraps an extractor so every ``extract`` call goes through ``with_retry``.

    Callers see either a result, ``RetryExhausted``, or a non-retryable error
    (``UnsupportedChain``, ``MalformedAmount``, other ``PermanentError``s).
    """

    def __init__(self, inner: Extractor, policy: RetryPolicy):
        self.inner = inner
        self.policy = policy

    @property
    def protocol_name(self) -> str:
        return self.inner.protocol_name

    @property
    def supported_chains(self) -> frozenset[Chain]:
        return self.inner.supported_chains

    @property
    def source(self) -> ExtractionSource:
        return self.inner.source

    def can_extract(self, chain: Chain) -> bool:
        return self.inner.can_extract(chain)

    async def extract(self, chain: Chain) -> ExtractionResult:
        return await with_retry(
            lambda: self.inner.extract(chain),
            self.policy,
            description=f"{self.protocol_name} extraction for {chain.value}",
        )

    def __repr__(self) -> str:
        return f"RetryingExtractor({self.inner!r}, max_attempts={self.policy.max_attempts})"

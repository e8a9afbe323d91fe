"""Run every worklist entry through its extractor and classify the outcome."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Sequence

from ..constants import SKIP_PROTOCOLS
from ..domain import Chain, ExtractionResult
from ..extractors.registry import ExtractorRegistry
from ..logger import get_logger
from .worklist import (
    WorklistEntry,
    normalize_chain_name,
    normalize_protocol_name,
    skip_reason,
)

logger = get_logger(__name__)


class OutcomeStatus(str, Enum):
    PENDING = "pending"
    SKIPPED = "skipped"
    NOT_IMPLEMENTED = "not_implemented"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ExtractionOutcome:
    """Terminal state of one worklist entry."""

    entry: WorklistEntry
    status: OutcomeStatus
    chain: Chain | None = None
    measurement: ExtractionResult | None = None
    reason: str | None = None
    error: BaseException | None = None

    @property
    def attempted(self) -> bool:
        return self.status in (OutcomeStatus.SUCCEEDED, OutcomeStatus.FAILED)


@dataclass
class ExtractionRun:
    measurements: list[ExtractionResult] = field(default_factory=list)
    outcomes: list[ExtractionOutcome] = field(default_factory=list)

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)


async def _process_entry(
    entry: WorklistEntry,
    registry: ExtractorRegistry,
    skip_list: Mapping[str, Mapping[str, str]],
    semaphore: asyncio.Semaphore,
) -> ExtractionOutcome:
    reason = skip_reason(entry.protocol, entry.chain, skip_list)
    if reason is not None:
        logger.info("Skipping %s on %s: %s", entry.protocol, entry.chain, reason)
        return ExtractionOutcome(entry, OutcomeStatus.SKIPPED, reason=reason)

    chain = normalize_chain_name(entry.chain)
    if chain is None:
        return ExtractionOutcome(
            entry,
            OutcomeStatus.NOT_IMPLEMENTED,
            reason=f"Unknown chain '{entry.chain}'",
        )

    protocol = normalize_protocol_name(entry.protocol)
    extractor = registry.find_by_protocol(protocol)
    if extractor is None:
        return ExtractionOutcome(
            entry,
            OutcomeStatus.NOT_IMPLEMENTED,
            chain=chain,
            reason=f"No extractor for protocol '{entry.protocol}'",
        )
    if not extractor.can_extract(chain):
        return ExtractionOutcome(
            entry,
            OutcomeStatus.NOT_IMPLEMENTED,
            chain=chain,
            reason=f"{extractor.protocol_name} does not support {chain.value}",
        )

    async with semaphore:
        logger.debug("Extracting %s on %s", extractor.protocol_name, chain.value)
        try:
            measurement = await extractor.extract(chain)
        except Exception as exc:
            logger.error(
                "Extraction failed for %s on %s: %s",
                extractor.protocol_name,
                chain.value,
                exc,
            )
            return ExtractionOutcome(
                entry, OutcomeStatus.FAILED, chain=chain, reason=str(exc), error=exc
            )

    logger.info(
        "Extracted %s on %s: %d", measurement.protocol, chain.value, measurement.amount
    )
    return ExtractionOutcome(
        entry, OutcomeStatus.SUCCEEDED, chain=chain, measurement=measurement
    )


async def run_worklist(
    entries: Sequence[WorklistEntry],
    registry: ExtractorRegistry,
    *,
    skip_list: Mapping[str, Mapping[str, str]] = SKIP_PROTOCOLS,
    max_concurrency: int = 1,
    log: logging.Logger | None = None,
) -> ExtractionRun:
    """Drive every entry to exactly one terminal outcome.

    Extractions run concurrently, at most ``max_concurrency`` at a time. A
    failing entry never affects the others; outcomes keep worklist order.

    Args:
        entries: Worklist entries, in the order they should be reported
        registry: Extractors to look entries up in
        skip_list: Protocol -> chain -> reason table of pairs never attempted
        max_concurrency: Upper bound on in-flight extractions
        log: Logger for the run summary (module logger by default)

    Returns:
        The successful measurements and one outcome per entry
    """
    if max_concurrency < 1:
        raise ValueError("max_concurrency must be at least 1")
    log = log or logger

    semaphore = asyncio.Semaphore(max_concurrency)
    outcomes = await asyncio.gather(
        *(_process_entry(entry, registry, skip_list, semaphore) for entry in entries)
    )

    run = ExtractionRun(outcomes=list(outcomes))
    run.measurements = [o.measurement for o in run.outcomes if o.measurement is not None]

    log.info(
        "Extraction finished: %d succeeded, %d failed, %d skipped, %d not implemented",
        run.count(OutcomeStatus.SUCCEEDED),
        run.count(OutcomeStatus.FAILED),
        run.count(OutcomeStatus.SKIPPED),
        run.count(OutcomeStatus.NOT_IMPLEMENTED),
    )
    return run

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Iterable, Sequence

from ..domain import Chain, ChainAggregate, ExtractionResult, RunReport, RunSummary
from ..pipeline.extraction import ExtractionOutcome, OutcomeStatus


def aggregate(
    measurements: Iterable[ExtractionResult],
    version: str,
    *,
    outcomes: Sequence[ExtractionOutcome] | None = None,
) -> RunReport:
    """Roll measurements up per chain and across the run.

    Args:
        measurements: Successful measurements, in any order
        version: Report format version
        outcomes: Per-entry outcomes; when given, the success rate is
            ``succeeded / (succeeded + failed)`` and attempted chains
            without a measurement appear with a zero total

    Returns:
        RunReport with integer totals (the grand total equals the sum of
        every measurement) and no validation attached
    """
    measurements = list(measurements)

    by_chain: dict[Chain, list[ExtractionResult]] = defaultdict(list)
    for m in measurements:
        by_chain[m.chain].append(m)

    if outcomes is not None:
        attempted = [o for o in outcomes if o.attempted]
        for outcome in attempted:
            if outcome.chain is not None:
                by_chain.setdefault(outcome.chain, [])
        attempted_count = len(attempted)
        succeeded = sum(1 for o in attempted if o.status is OutcomeStatus.SUCCEEDED)
    else:
        attempted_count = succeeded = len(measurements)

    chains = {
        chain: ChainAggregate(chain=chain, measurements=tuple(members))
        for chain, members in sorted(by_chain.items(), key=lambda kv: kv[0].value)
    }

    summary = RunSummary(
        total_amount=sum(agg.total_amount for agg in chains.values()),
        success_rate=succeeded / attempted_count if attempted_count else 0.0,
        protocol_count=len({m.protocol for m in measurements}),
        chain_count=sum(1 for agg in chains.values() if agg.measurements),
    )

    return RunReport(
        run_id=str(uuid.uuid4()),
        generated_at=datetime.now(timezone.utc),
        version=version,
        chains=MappingProxyType(chains),
        summary=summary,
    )

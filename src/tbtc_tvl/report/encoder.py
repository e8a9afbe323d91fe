"""JSON-ready encodings of run results.

Every integer amount is emitted as a base-10 string so no consumer ever
sees a float or an exponent.
"""

from __future__ import annotations

from typing import Any, Sequence

from ..domain import ExtractionResult, RunReport, ValidationIssue, ValidationReport
from ..pipeline.extraction import ExtractionOutcome, OutcomeStatus
from ..units import format_units

UNAVAILABLE_TVL = "-1"


def _encode_measurement(m: ExtractionResult) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": m.protocol,
        "tvl": str(m.amount),
        "timestamp": m.observed_at.isoformat(),
        "source": m.provenance.source.value,
    }
    if m.amount_usd is not None:
        data["tvlUsd"] = str(m.amount_usd)
    if m.block_number is not None:
        data["blockNumber"] = m.block_number
    if m.provenance.endpoint:
        data["endpoint"] = m.provenance.endpoint
    if m.provenance.endpoints:
        data["endpoints"] = list(m.provenance.endpoints)
    if m.provenance.pool_count is not None:
        data["poolCount"] = m.provenance.pool_count
    return data


def _encode_issue(issue: ValidationIssue) -> dict[str, Any]:
    return {
        "level": issue.level,
        "message": issue.message,
        "protocol": issue.protocol,
        "chain": issue.chain.value if issue.chain is not None else None,
        "details": dict(issue.details),
    }


def encode_validation_report(report: ValidationReport) -> dict[str, Any]:
    return {
        "passed": report.passed,
        "warnings": [_encode_issue(i) for i in report.warnings],
        "errors": [_encode_issue(i) for i in report.errors],
        "totalChecks": report.total_checks,
        "passedChecks": report.passed_checks,
    }


def encode_run_report(report: RunReport) -> dict[str, Any]:
    """Encode a run report as the ``results-*.json`` document."""
    data: dict[str, Any] = {
        "metadata": {
            "timestamp": report.generated_at.isoformat(),
            "version": report.version,
            "runId": report.run_id,
        },
        "chains": {
            chain.value: {
                "totalTvl": str(agg.total_amount),
                "protocols": [_encode_measurement(m) for m in agg.measurements],
            }
            for chain, agg in report.chains.items()
        },
        "summary": {
            "totalTvl": str(report.summary.total_amount),
            "successRate": report.summary.success_rate,
            "protocolCount": report.summary.protocol_count,
            "chainCount": report.summary.chain_count,
        },
    }
    if report.validation is not None:
        data["validationReport"] = encode_validation_report(report.validation)
    return data


def encode_tvl_summary(outcomes: Sequence[ExtractionOutcome]) -> list[dict[str, Any]]:
    """One row per worklist entry; ``tvl`` is whole tBTC or "-1" when unavailable."""
    rows = []
    for outcome in outcomes:
        if outcome.status is OutcomeStatus.SUCCEEDED and outcome.measurement is not None:
            tvl = format_units(outcome.measurement.amount)
        else:
            tvl = UNAVAILABLE_TVL
        rows.append(
            {
                "protocol": outcome.entry.protocol,
                "category": outcome.entry.category,
                "chain": outcome.entry.chain,
                "tvl": tvl,
            }
        )
    return rows

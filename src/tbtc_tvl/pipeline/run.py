"""High-level pipeline orchestration."""

from __future__ import annotations

import asyncio
import dataclasses

from ..checks.validation import validate
from ..clients.sources import DataSources
from ..extractors import build_registry
from ..extractors.registry import ExtractorRegistry
from ..processors import aggregate
from ..report import write_results, write_tvl_summary
from ..state import AppState
from .context import PipelineContext
from .extraction import run_worklist
from .worklist import load_worklist


async def run_pipeline(
    state: AppState,
    *,
    registry: ExtractorRegistry | None = None,
) -> PipelineContext:
    """Execute the complete TVL pipeline.

    This is a thin orchestrator that sequences the pipeline steps:
    1. Worklist loading
    2. Extraction (per entry, concurrently)
    3. Validation
    4. Aggregation
    5. Publishing (results-*.json and tvl.json)

    Args:
        state: Application state containing settings and logger
        registry: Extractors to use; built from settings when omitted

    Returns:
        The populated pipeline context
    """
    s = state.settings
    log = state.logger

    log.info(
        "Starting TVL run",
        extra={"worklist": str(s.worklist_path), "output_dir": str(s.output_dir)},
    )

    timeout_s = s.global_timeout_seconds
    ctx = PipelineContext(state=state)

    async def _run_pipeline() -> None:
        ctx.worklist = load_worklist(s.worklist_path)
        log.info("Loaded %d worklist entries", len(ctx.worklist))

        extractors = (
            registry
            if registry is not None
            else build_registry(s, DataSources.from_settings(s))
        )
        log.debug("Registered extractors: %s", ", ".join(extractors.protocols))

        ctx.run = await run_worklist(
            ctx.worklist,
            extractors,
            max_concurrency=s.max_concurrency,
            log=log,
        )
        ctx.validation = validate(ctx.run.measurements)

        report = aggregate(
            ctx.run.measurements, s.report_version, outcomes=ctx.run.outcomes
        )
        ctx.report = dataclasses.replace(report, validation=ctx.validation)

        ctx.written.append(write_results(ctx.report, s.output_dir))
        ctx.written.append(write_tvl_summary(ctx.run.outcomes, s.output_dir))

    try:
        if timeout_s is None or timeout_s <= 0:
            await _run_pipeline()
        else:
            async with asyncio.timeout(timeout_s):
                await _run_pipeline()
    except asyncio.TimeoutError as exc:
        log.error("TVL run timed out", extra={"timeout_seconds": timeout_s})
        raise asyncio.TimeoutError(
            f"TVL run exceeded global timeout {timeout_s}s\n N.B. This can be changed "
            "via `global_timeout_seconds` or the TBTC_TVL_GLOBAL_TIMEOUT_SECONDS env var."
        ) from exc

    log.info(
        "TVL run completed",
        extra={
            "run_id": ctx.report_required.run_id,
            "passed": ctx.validation_required.passed,
        },
    )
    return ctx

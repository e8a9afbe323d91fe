from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from ..domain import RunReport
from ..pipeline.extraction import ExtractionOutcome
from .encoder import encode_run_report, encode_tvl_summary

logger = logging.getLogger(__name__)

TVL_SUMMARY_FILENAME = "tvl.json"


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def results_filename(now: datetime | None = None) -> str:
    """``results-<ISO timestamp>.json`` with ``:`` and ``.`` made filename-safe."""
    now = now or datetime.now(timezone.utc)
    stamp = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"results-{stamp.replace(':', '-').replace('.', '-')}.json"


def write_results(report: RunReport, output_dir: Path) -> Path:
    """Write the full run report and return its path."""
    path = output_dir / results_filename()
    _write_json(path, encode_run_report(report))
    logger.info("Results written to %s", path)
    return path


def write_tvl_summary(outcomes: Sequence[ExtractionOutcome], output_dir: Path) -> Path:
    """Write the per-entry TVL list (``tvl.json``) and return its path."""
    path = output_dir / TVL_SUMMARY_FILENAME
    _write_json(path, encode_tvl_summary(outcomes))
    logger.info("TVL summary written to %s", path)
    return path

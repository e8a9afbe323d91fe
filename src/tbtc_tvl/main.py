"""CLI entrypoint for tbtc-tvl."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError

from .logger import setup_logging
from .pipeline.worklist import WorklistError
from .settings import TvlSettings
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Measure tBTC total value locked across protocols and chains.",
)


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("tbtc_tvl")


@app.callback(invoke_without_command=True)
def report(
    worklist: Annotated[
        Path | None,
        typer.Argument(help="Worklist JSON (protocol/chain entries) to measure."),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [tbtc_tvl] table).",
        ),
    ] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option("--output-dir", help="Directory for results-*.json and tvl.json."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    max_concurrency: Annotated[
        int | None,
        typer.Option("--max-concurrency", help="Extractions allowed in flight at once."),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", help="Per-request timeout in seconds."),
    ] = None,
    retries: Annotated[
        int | None,
        typer.Option("--retries", help="Attempts per extraction before giving up."),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Run the extraction pipeline and write the reports.

    Exits with status 1 when validation reports errors or the run cannot
    complete (unreadable worklist, invalid settings, global timeout).
    """
    if config_path:
        os.environ["TBTC_TVL_CONFIG"] = str(config_path)

    init_kwargs: dict[str, Any] = {}
    if worklist is not None:
        init_kwargs["worklist_path"] = worklist
    if output_dir is not None:
        init_kwargs["output_dir"] = output_dir
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()
    if max_concurrency is not None:
        init_kwargs["max_concurrency"] = max_concurrency
    if timeout is not None:
        init_kwargs["request_timeout"] = timeout
    if retries is not None:
        init_kwargs["retries"] = retries

    try:
        settings = TvlSettings(**init_kwargs)
    except ValidationError as exc:
        typer.echo(f"Invalid configuration:\n{exc}", err=True)
        raise typer.Exit(code=1) from exc

    setup_logging(settings.log_level)
    logger = _build_logger()
    state = AppState(settings=settings, logger=logger)

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    from .pipeline.run import run_pipeline
    from .report import print_summary

    try:
        ctx = asyncio.run(run_pipeline(state))
    except (WorklistError, asyncio.TimeoutError) as exc:
        logger.error("%s", exc)
        raise typer.Exit(code=1) from exc

    print_summary(ctx.run_required.outcomes, ctx.report_required)
    for path in ctx.written:
        typer.echo(f"Wrote {path}")

    if not ctx.validation_required.passed:
        logger.error(
            "Validation failed with %d error(s)", ctx.validation_required.error_count
        )
        raise typer.Exit(code=1)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()

"""Entidades CLI: plan and run directory scrapes.

Usage:
    entidades plan                          # Show how pages split across workers
    entidades plan --test-pages 2           # Plan a reduced test run
    entidades run                           # Scrape the full directory
    entidades run --test-pages 2 -o test.csv
    entidades run --workers 1               # Single browser, pages in order
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import click
from pydantic import ValidationError

from entidades.common.config import DEFAULT_BASE_URL, ScrapeConfig
from entidades.data_types import RunSummary
from entidades.driver.partition import partition_pages


def build_config(**options: Any) -> ScrapeConfig:
    """Build the run configuration from CLI options.

    Options left as None fall back to ScrapeConfig defaults.

    Raises:
        click.BadParameter: If the options fail validation.
    """
    values = {key: value for key, value in options.items() if value is not None}
    try:
        return ScrapeConfig(**values)
    except ValidationError as e:
        summary = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise click.BadParameter(summary) from e


@click.group()
@click.version_option(package_name="entidades")
def cli() -> None:
    """Entidades: partitioned scraper for the public entity directory."""


@cli.command()
@click.option(
    "--workers",
    type=int,
    default=None,
    help="Number of concurrent workers [default: 8].",
)
@click.option(
    "--test-pages",
    type=int,
    default=None,
    help="Only process this many listing pages (reduced test run).",
)
@click.option(
    "--total-records",
    type=int,
    default=None,
    help="Known number of entities in the directory [default: 3292].",
)
def plan(
    workers: int | None, test_pages: int | None, total_records: int | None
) -> None:
    """Show the page ranges each worker would get, without scraping."""
    config = build_config(
        num_workers=workers, test_pages=test_pages, total_records=total_records
    )

    click.echo(f"Mode:             {'test' if config.test_mode else 'full'}")
    click.echo(f"Pages:            {config.total_pages}")
    click.echo(f"Workers:          {config.num_workers}")
    click.echo(f"Pages per worker: {config.pages_per_worker}")
    click.echo("")
    for work_range in partition_pages(config.total_pages, config.num_workers):
        suffix = "  (empty)" if work_range.is_empty else ""
        click.echo(
            f"  Worker {work_range.worker_id}: pages {work_range}{suffix}"
        )


@cli.command()
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="CSV file to write [default: osce_results.csv].",
)
@click.option(
    "--workers",
    type=int,
    default=None,
    help="Number of concurrent workers [default: 8].",
)
@click.option(
    "--test-pages",
    type=int,
    default=None,
    help="Only process this many listing pages (reduced test run).",
)
@click.option(
    "--base-url",
    default=None,
    help=f"Directory listing endpoint [default: {DEFAULT_BASE_URL}].",
)
@click.option(
    "--max-retries",
    type=int,
    default=None,
    help="Attempts per detail page [default: 3].",
)
@click.option(
    "--retry-delay",
    type=float,
    default=None,
    help="Seconds between detail page attempts [default: 5].",
)
@click.option(
    "--throttle",
    "throttle_delay",
    type=float,
    default=None,
    help="Seconds to pause after each entity [default: 1].",
)
@click.option(
    "--navigation-timeout",
    type=int,
    default=None,
    help="Navigation timeout in milliseconds [default: 45000].",
)
@click.option(
    "--ready-timeout",
    type=int,
    default=None,
    help="Load-state and selector timeout in milliseconds [default: 45000].",
)
@click.option(
    "--browser",
    "browser_type",
    type=click.Choice(["chromium", "firefox", "webkit"]),
    default=None,
    help="Browser engine [default: chromium].",
)
@click.option(
    "--headless/--headed",
    default=True,
    show_default=True,
    help="Run browsers without a window.",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def run(
    output_path: str | None,
    workers: int | None,
    test_pages: int | None,
    base_url: str | None,
    max_retries: int | None,
    retry_delay: float | None,
    throttle_delay: float | None,
    navigation_timeout: int | None,
    ready_timeout: int | None,
    browser_type: str | None,
    headless: bool,
    verbose: bool,
) -> None:
    """Scrape the directory into a CSV file.

    \b
    Examples:
        entidades run
        entidades run --test-pages 2 --workers 8 -o osce_results_test.csv
        entidades run --workers 1 --headed
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = build_config(
        output_path=output_path,
        num_workers=workers,
        test_pages=test_pages,
        base_url=base_url,
        max_retries=max_retries,
        retry_delay=retry_delay,
        throttle_delay=throttle_delay,
        navigation_timeout=navigation_timeout,
        ready_timeout=ready_timeout,
        browser_type=browser_type,
        headless=headless,
    )

    try:
        from entidades.driver.playwright_driver import playwright_sessions
    except ImportError as e:
        raise click.ClickException(
            f"Missing dependency: {e}. "
            "Install Playwright and its browsers: "
            "pip install playwright && playwright install chromium"
        ) from e

    click.echo(f"Mode:    {'test' if config.test_mode else 'full'}")
    click.echo(f"Pages:   {config.total_pages}")
    click.echo(f"Workers: {config.num_workers}")
    click.echo(f"Output:  {config.output_path}")

    summary = asyncio.run(_run_scrape(config, playwright_sessions))

    click.echo(f"Total records: {summary.total_records}")
    if summary.failed_workers:
        failed = ", ".join(str(w) for w in summary.failed_workers)
        click.echo(f"Failed workers: {failed}", err=True)


async def _run_scrape(config: ScrapeConfig, sessions: Any) -> RunSummary:
    from entidades.driver.orchestrator import Orchestrator
    from entidades.driver.sink import CsvSink

    async with sessions(config) as session_factory:
        orchestrator = Orchestrator(
            config, session_factory, CsvSink(config.output_path)
        )
        return await orchestrator.run()


def main() -> None:
    """Entry point for the ``entidades`` console script."""
    cli()

"""Orchestrator: partition the pages, run every worker, merge the output.

The orchestrator is the only synchronization point of a run. It starts one
asyncio task per work range and waits for all of them to settle. Each task
appends its worker's batch to the sink as soon as that worker is done, so
batches land in completion order rather than worker order.

A worker that fails outright never cancels its siblings; it simply
contributes nothing (or the records it had before the failure).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from entidades.common.config import ScrapeConfig
from entidades.data_types import RunSummary, WorkerResult, WorkRange
from entidades.driver.batch_worker import BatchWorker
from entidades.driver.partition import partition_pages
from entidades.driver.session import SessionFactory
from entidades.driver.sink import RecordSink

logger = logging.getLogger(__name__)


class Orchestrator:
    """Run all batch workers for one scraping run.

    Example usage:
        async with playwright_sessions(config) as factory:
            orchestrator = Orchestrator(config, factory, CsvSink(path))
            summary = await orchestrator.run()
        print(summary.total_records)
    """

    def __init__(
        self,
        config: ScrapeConfig,
        session_factory: SessionFactory,
        sink: RecordSink,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Immutable run configuration.
            session_factory: Hands each worker its own browsing session.
            sink: Destination for every worker's batch.
            sleep: Pause implementation passed to the workers.
        """
        self.config = config
        self.session_factory = session_factory
        self.sink = sink
        self.sleep = sleep

    def plan(self) -> list[WorkRange]:
        """Return the work ranges this run would use."""
        return partition_pages(self.config.total_pages, self.config.num_workers)

    async def run(self) -> RunSummary:
        """Scrape every page and write the results to the sink.

        Returns:
            RunSummary with the per-worker record counts and the workers
            that failed.
        """
        config = self.config
        ranges = self.plan()
        summary = RunSummary(
            total_pages=config.total_pages, num_workers=config.num_workers
        )

        logger.info(
            f"Starting run: mode={'test' if config.test_mode else 'full'}, "
            f"pages={config.total_pages}, workers={config.num_workers}, "
            f"pages per worker={config.pages_per_worker}"
        )

        await self.sink.start()

        tasks = [
            asyncio.create_task(self._run_worker(work_range))
            for work_range in ranges
        ]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        for work_range, outcome in zip(ranges, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                logger.error(
                    f"Worker {work_range.worker_id} failed: {outcome}",
                    exc_info=outcome,
                )
                summary.records_per_worker[work_range.worker_id] = 0
                summary.failed_workers.append(work_range.worker_id)
                continue

            summary.records_per_worker[work_range.worker_id] = len(
                outcome.records
            )
            if outcome.failed:
                summary.failed_workers.append(work_range.worker_id)

        logger.info(f"Run complete. Total records: {summary.total_records}")
        if summary.failed_workers:
            logger.warning(f"Workers that failed: {summary.failed_workers}")
        return summary

    async def _run_worker(self, work_range: WorkRange) -> WorkerResult:
        worker = BatchWorker(
            work_range, self.config, self.session_factory, sleep=self.sleep
        )
        result = await worker.run()
        logger.info(
            f"Worker {work_range.worker_id} completed its batch. "
            f"Writing {len(result.records)} records..."
        )
        await self.sink.append(result.records)
        return result

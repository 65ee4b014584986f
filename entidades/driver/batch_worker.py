"""Batch worker: one browsing session walking one range of listing pages.

For every page in its range the worker fetches the listing, extracts the
entity stubs and visits each stub's detail page through run_with_retry().
Failures are contained at the smallest scope that makes sense:

- an entity whose detail page keeps failing gets ERROR sentinels
- a listing page that cannot be fetched or parsed is skipped
- an error outside page and entity recovery (the session itself, the
  throttle) ends the worker, which keeps what it has collected

The records list is local to the worker and handed back by value in a
WorkerResult; workers never share state with each other.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from entidades.common.config import ScrapeConfig
from entidades.common.exceptions import (
    PageFetchFailed,
    RetriesExhausted,
    SelectorTimeoutException,
)
from entidades.data_types import (
    DetailInfo,
    EntityStub,
    OutputRecord,
    WorkerResult,
    WorkRange,
)
from entidades.driver.retry import run_with_retry
from entidades.driver.session import (
    BrowsingSession,
    SessionFactory,
    dismiss_overlay,
)
from entidades.extraction import listing_url, parse_detail, parse_listing

logger = logging.getLogger(__name__)

# Any failed step of a visit counts as a failed attempt
VISIT_FAILURES: tuple[type[BaseException], ...] = (Exception,)


class BatchWorker:
    """Scrape a contiguous range of listing pages with one browser session.

    Example usage:
        worker = BatchWorker(WorkRange(1, 1, 5), config, session_factory)
        result = await worker.run()
        print(len(result.records))
    """

    def __init__(
        self,
        work_range: WorkRange,
        config: ScrapeConfig,
        session_factory: SessionFactory,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the worker.

        Args:
            work_range: Pages this worker owns.
            config: Run configuration.
            session_factory: Source of the worker's browsing session.
            sleep: Pause implementation for retry delays and throttling.
        """
        self.work_range = work_range
        self.config = config
        self.session_factory = session_factory
        self.sleep = sleep

    @property
    def worker_id(self) -> int:
        return self.work_range.worker_id

    @property
    def _prefix(self) -> str:
        return f"Worker {self.worker_id}: "

    async def run(self) -> WorkerResult:
        """Process every page of the range.

        The session is opened once and closed once, on the way out of the
        page loop, whether the loop finished or an error escaped it.

        Returns:
            WorkerResult with the records collected, the pages skipped, and
            the fatal error if the worker ended early.
        """
        result = WorkerResult(work_range=self.work_range)
        if self.work_range.is_empty:
            logger.info(f"{self._prefix}Empty range {self.work_range}, nothing to do")
            return result

        logger.info(
            f"{self._prefix}Starting pages {self.work_range.start_page}"
            f"-{self.work_range.end_page}"
        )
        try:
            async with self.session_factory(self.worker_id) as session:
                for page in self.work_range.pages():
                    try:
                        async for record in self._process_page(session, page):
                            result.records.append(record)
                    except PageFetchFailed as e:
                        logger.error(f"{self._prefix}Skipping page {page}: {e.reason}")
                        result.skipped_pages.append(page)
        except Exception as e:
            logger.error(
                f"{self._prefix}Stopped after {len(result.records)} records: {e}",
                exc_info=True,
            )
            result.error = e

        logger.info(
            f"{self._prefix}Finished with {len(result.records)} records"
        )
        return result

    async def fetch_listing(
        self, session: BrowsingSession, page: int
    ) -> list[EntityStub]:
        """Load one listing page and extract its entity stubs.

        Raises:
            PageFetchFailed: If the page could not be loaded or parsed.
        """
        url = listing_url(self.config.base_url, page)
        try:
            await session.navigate(url, self.config.navigation_timeout)
            await session.await_network_idle(self.config.ready_timeout)
            await dismiss_overlay(
                session, self.config.overlay_selector, self.config.overlay_timeout
            )
            await self._require_selector(
                session, self.config.listing_selector, url
            )
            return await session.evaluate(parse_listing)
        except Exception as e:
            raise PageFetchFailed(page, url, str(e)) from e

    async def _process_page(
        self, session: BrowsingSession, page: int
    ) -> AsyncIterator[OutputRecord]:
        logger.info(f"{self._prefix}Processing page {page}")
        stubs = await self.fetch_listing(session, page)
        logger.info(f"{self._prefix}Found {len(stubs)} entities on page {page}")

        for stub in stubs:
            yield await self.visit_entity(session, stub)
            await self.sleep(self.config.throttle_delay)

    async def visit_entity(
        self, session: BrowsingSession, stub: EntityStub
    ) -> OutputRecord:
        """Enrich one stub from its detail page, retrying as configured.

        Never raises for a failed visit: once the attempts are spent the
        record carries ERROR in both detail fields.
        """
        try:
            detail = await run_with_retry(
                lambda: self._fetch_detail(session, stub.url),
                max_attempts=self.config.max_retries,
                delay=self.config.retry_delay,
                retry_on=VISIT_FAILURES,
                sleep=self.sleep,
                description=stub.url,
                log_prefix=self._prefix,
            )
        except RetriesExhausted as e:
            logger.error(
                f"{self._prefix}Giving up on entity {stub.url}: {e.last_error}"
            )
            detail = DetailInfo.failed()
        else:
            logger.debug(
                f"{self._prefix}Found data for {stub.name}",
                extra={
                    "entity": stub.name,
                    "location": detail.location,
                    "phone": detail.phone,
                },
            )
        return OutputRecord.from_parts(stub, detail)

    async def _fetch_detail(
        self, session: BrowsingSession, url: str
    ) -> DetailInfo:
        # One complete attempt; nothing carries over between attempts
        await session.navigate(url, self.config.navigation_timeout)
        await session.await_network_idle(self.config.ready_timeout)
        await dismiss_overlay(
            session, self.config.overlay_selector, self.config.overlay_timeout
        )
        await self._require_selector(session, self.config.detail_selector, url)
        return await session.evaluate(parse_detail)

    async def _require_selector(
        self, session: BrowsingSession, selector: str, url: str
    ) -> None:
        if not await session.await_selector(selector, self.config.ready_timeout):
            raise SelectorTimeoutException(
                selector, self.config.ready_timeout, url
            )

"""Test utilities for the worker pipeline.

This module provides an in-process stand-in for the browser: FakeSite holds
the HTML of every URL plus scripted failures, FakeSession implements the
BrowsingSession protocol on top of it, and FakeSessionFactory hands sessions
out to workers while counting opens and closes. RecordingSleep replaces
asyncio.sleep so delays can be asserted without waiting.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from entidades.common.checked_html import CheckedHtmlElement
from entidades.common.exceptions import (
    NavigationException,
    RequestTimeoutException,
)

T = TypeVar("T")


class FakeSite:
    """HTML by URL, plus scripted navigation failures.

    Attributes:
        pages: Absolute URL -> HTML document.
        failures: URL -> number of upcoming navigations that time out.
        always_fail: URLs whose navigations always time out.
        crash_on: URLs whose navigations raise an unexpected RuntimeError.
        visits: URL -> number of navigations attempted.
    """

    def __init__(self, pages: dict[str, str]) -> None:
        self.pages = dict(pages)
        self.failures: Counter[str] = Counter()
        self.always_fail: set[str] = set()
        self.crash_on: set[str] = set()
        self.visits: Counter[str] = Counter()
        self.visit_log: list[tuple[int, str]] = []

    def fail_times(self, url: str, times: int) -> None:
        self.failures[url] += times

    def fail_always(self, url: str) -> None:
        self.always_fail.add(url)


class FakeSession:
    """BrowsingSession implementation backed by a FakeSite."""

    def __init__(self, site: FakeSite, worker_id: int) -> None:
        self.site = site
        self.worker_id = worker_id
        self.current_url: str | None = None
        self.clicks: list[str] = []
        self.close_calls = 0

    async def navigate(self, url: str, timeout: int) -> None:
        self.site.visits[url] += 1
        self.site.visit_log.append((self.worker_id, url))
        self.current_url = None
        await asyncio.sleep(0)
        if url in self.site.crash_on:
            raise RuntimeError(f"browser crashed loading {url}")
        if url in self.site.always_fail:
            raise RequestTimeoutException(url, timeout)
        if self.site.failures[url] > 0:
            self.site.failures[url] -= 1
            raise RequestTimeoutException(url, timeout)
        if url not in self.site.pages:
            raise NavigationException(url, "net::ERR_NAME_NOT_RESOLVED")
        self.current_url = url

    async def await_network_idle(self, timeout: int) -> None:
        await asyncio.sleep(0)

    async def await_selector(self, selector: str, timeout: int) -> bool:
        if self.current_url is None:
            return False
        root = CheckedHtmlElement.from_html(
            self.site.pages[self.current_url], self.current_url
        )
        return bool(root.cssselect(selector))

    async def click(self, selector: str) -> None:
        self.clicks.append(selector)

    async def evaluate(self, extractor: Callable[[CheckedHtmlElement], T]) -> T:
        assert self.current_url is not None, "evaluate() before navigate()"
        root = CheckedHtmlElement.from_html(
            self.site.pages[self.current_url], self.current_url
        )
        return extractor(root)

    async def close(self) -> None:
        self.close_calls += 1


class FakeSessionFactory:
    """SessionFactory handing out FakeSessions.

    Attributes:
        opened: Worker ids, in the order their sessions were opened.
        sessions: Worker id -> the session handed out.
        broken_workers: Worker ids whose session cannot be opened.
        failing_close: Worker ids whose session fails while closing.
    """

    def __init__(
        self,
        site: FakeSite,
        broken_workers: set[int] | None = None,
        failing_close: set[int] | None = None,
    ) -> None:
        self.site = site
        self.broken_workers = broken_workers or set()
        self.failing_close = failing_close or set()
        self.opened: list[int] = []
        self.sessions: dict[int, FakeSession] = {}

    @asynccontextmanager
    async def __call__(self, worker_id: int) -> AsyncIterator[FakeSession]:
        self.opened.append(worker_id)
        if worker_id in self.broken_workers:
            raise RuntimeError(f"browser for worker {worker_id} failed to launch")
        session = FakeSession(self.site, worker_id)
        self.sessions[worker_id] = session
        try:
            yield session
        finally:
            await session.close()
            if worker_id in self.failing_close:
                raise RuntimeError(f"browser for worker {worker_id} crashed on close")


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays.

    With fail_on_call set, the n-th call (1-based) raises RuntimeError.
    """

    def __init__(self, fail_on_call: int | None = None) -> None:
        self.calls: list[float] = []
        self.fail_on_call = fail_on_call

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
        if len(self.calls) == self.fail_on_call:
            raise RuntimeError("event loop interrupted during pause")
        await asyncio.sleep(0)

    def count(self, delay: float) -> int:
        return sum(1 for call in self.calls if call == delay)


def records_by_name(records: list[Any]) -> dict[str, Any]:
    return {record.name: record for record in records}

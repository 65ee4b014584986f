"""Shared fixtures for the scraper tests."""

import asyncio
import socket
import threading
from collections.abc import Generator
from contextlib import closing

import pytest
from aiohttp import web

from entidades.common.config import ScrapeConfig
from tests.mock_server import (
    ENTITIES,
    PAGE_SIZE,
    build_site,
    create_app,
    pages_for,
)
from tests.utils import FakeSessionFactory, FakeSite, RecordingSleep

BASE_URL = "http://directory.test/entidades"


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def total_pages() -> int:
    """Number of listing pages in the mock directory."""
    return pages_for(ENTITIES, PAGE_SIZE)


@pytest.fixture
def site() -> FakeSite:
    """A fresh copy of the mock directory for every test."""
    return FakeSite(build_site(BASE_URL))


@pytest.fixture
def session_factory(site: FakeSite) -> FakeSessionFactory:
    return FakeSessionFactory(site)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def config(total_pages: int) -> ScrapeConfig:
    """Configuration covering the whole mock directory with two workers.

    Delays are distinct so tests can tell retry pauses from throttling.
    """
    return ScrapeConfig(
        base_url=BASE_URL,
        test_pages=total_pages,
        num_workers=2,
        max_retries=3,
        retry_delay=5.0,
        throttle_delay=1.0,
        navigation_timeout=1000,
        ready_timeout=1000,
        overlay_timeout=100,
    )


# =============================================================================
# aiohttp test server fixtures (browser integration tests)
# =============================================================================


def find_free_port() -> int:
    """Find a free port on localhost."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


class AioHttpTestServer:
    """Wrapper to run aiohttp server in a background thread."""

    def __init__(self, app: web.Application, port: int) -> None:
        self.app = app
        self.port = port
        self.host = "127.0.0.1"
        self._loop: asyncio.AbstractEventLoop | None = None
        self._runner: web.AppRunner | None = None
        self._thread: threading.Thread | None = None
        self._started = threading.Event()

    @property
    def url(self) -> str:
        """Get the base URL of the server."""
        return f"http://{self.host}:{self.port}"

    def start(self) -> None:
        """Start the server in a background thread."""
        self._thread = threading.Thread(target=self._run_server, daemon=True)
        self._thread.start()
        self._started.wait(timeout=5.0)

    def _run_server(self) -> None:
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)

        async def start() -> None:
            self._runner = web.AppRunner(self.app)
            await self._runner.setup()
            site = web.TCPSite(self._runner, self.host, self.port)
            await site.start()

        self._loop.run_until_complete(start())
        self._started.set()
        self._loop.run_forever()

    def stop(self) -> None:
        """Stop the server and clean up resources."""
        if self._loop and self._runner:
            future = asyncio.run_coroutine_threadsafe(
                self._runner.cleanup(), self._loop
            )
            future.result(timeout=2.0)

        if self._loop:
            self._loop.call_soon_threadsafe(self._loop.stop)

        if self._thread:
            self._thread.join(timeout=2.0)


@pytest.fixture
def directory_server() -> Generator[AioHttpTestServer, None, None]:
    """Start an aiohttp server serving the mock directory."""
    server = AioHttpTestServer(create_app(), find_free_port())
    server.start()
    yield server
    server.stop()


@pytest.fixture
def server_url(directory_server: AioHttpTestServer) -> str:
    return directory_server.url

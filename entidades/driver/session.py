"""Browsing session contract used by batch workers.

A batch worker only ever talks to the browser through the six operations of
BrowsingSession. The Playwright implementation lives in
entidades.driver.playwright_driver; tests use an in-process fake.

Sessions are handed out by a SessionFactory: a callable that takes a worker
id and returns an async context manager. Entering it acquires the session,
leaving it closes the session exactly once.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Protocol, TypeVar

from entidades.common.checked_html import CheckedHtmlElement
from entidades.common.exceptions import TransientException

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BrowsingSession(Protocol):
    """Capabilities the worker pipeline needs from a browser.

    Timeouts are in milliseconds. Navigation failures and timeouts surface
    as TransientException subclasses.
    """

    async def navigate(self, url: str, timeout: int) -> None: ...

    async def await_network_idle(self, timeout: int) -> None: ...

    async def await_selector(self, selector: str, timeout: int) -> bool:
        """Wait for selector; True if it appeared, False on timeout."""
        ...

    async def click(self, selector: str) -> None: ...

    async def evaluate(
        self, extractor: Callable[[CheckedHtmlElement], T]
    ) -> T:
        """Run a pure extractor against a snapshot of the current document."""
        ...

    async def close(self) -> None: ...


SessionFactory = Callable[[int], AbstractAsyncContextManager[BrowsingSession]]


class DismissOutcome(enum.Enum):
    """Result of trying to close the onboarding overlay."""

    DISMISSED = "dismissed"
    ABSENT = "absent"


async def dismiss_overlay(
    session: BrowsingSession, selector: str, timeout: int
) -> DismissOutcome:
    """Close the onboarding overlay if it shows up.

    The overlay usually is not there, so a miss is reported as ABSENT rather
    than raised. Callers are free to ignore the outcome.

    Args:
        session: The session showing the page.
        selector: The overlay's close button.
        timeout: How long to wait for the overlay, in milliseconds.

    Returns:
        DISMISSED if the close button was clicked, ABSENT otherwise.
    """
    if not await session.await_selector(selector, timeout):
        return DismissOutcome.ABSENT
    try:
        await session.click(selector)
    except TransientException as e:
        logger.debug(f"Overlay close button vanished before click: {e}")
        return DismissOutcome.ABSENT
    return DismissOutcome.DISMISSED

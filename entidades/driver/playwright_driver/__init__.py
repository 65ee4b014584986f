"""Playwright-backed browsing sessions.

This module provides the BrowsingSession implementation used for real runs:
every worker gets its own browser, context and page, and extractors only see
lxml snapshots of the rendered DOM.
"""

from entidades.driver.playwright_driver.playwright_session import (
    PlaywrightSession,
    playwright_sessions,
)

__all__ = ["PlaywrightSession", "playwright_sessions"]

"""Checked HTML element wrapper for safe CSS querying.

This module provides CheckedHtmlElement, a wrapper around
lxml.html.HtmlElement that validates selector results against expected
counts, so structural changes on the directory site surface as
HTMLStructuralAssumptionException instead of silently empty records.
"""

from __future__ import annotations

from lxml import html
from lxml.html import HtmlElement

from entidades.common.exceptions import (
    HTMLStructuralAssumptionException,
)


class CheckedHtmlElement:
    """Wrapper around HtmlElement with validated selectors.

    Provides checked_css(), which validates the number of results against
    expected min/max counts and raises HTMLStructuralAssumptionException with
    clear error context when they don't match. All other attributes are
    delegated to the wrapped element.
    """

    def __init__(self, element: HtmlElement, request_url: str = "") -> None:
        """Initialize the checked element wrapper.

        Args:
            element: The lxml HtmlElement to wrap.
            request_url: Optional URL for error context.
        """
        self._element = element
        self._request_url = request_url

    @classmethod
    def from_html(cls, content: str, url: str = "") -> CheckedHtmlElement:
        """Parse an HTML document, resolving links against its URL.

        Args:
            content: Serialized HTML document.
            url: URL the document was loaded from. When given, every link
                in the document is made absolute against it.

        Returns:
            CheckedHtmlElement wrapping the document root.
        """
        root = html.fromstring(content, base_url=url or None)
        if url:
            root.make_links_absolute(url)
        return cls(root, url)

    @property
    def request_url(self) -> str:
        return self._request_url

    def checked_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[CheckedHtmlElement]:
        """Execute CSS selector query with count validation.

        Args:
            selector: CSS selector expression.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).

        Returns:
            List of matching CheckedHtmlElements, in document order.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.

        Example::

            tree = CheckedHtmlElement.from_html(content, url)
            rows = tree.checked_css("table tr", "listing rows", min_count=0)
            for row in rows:
                cells = row.checked_css("td", "cells", min_count=0)
        """
        try:
            results = self._element.cssselect(selector)
        except Exception as e:
            # Invalid selector syntax
            raise HTMLStructuralAssumptionException(
                selector=selector,
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=0,
                request_url=self._request_url,
            ) from e

        actual_count = len(results)
        if actual_count < min_count or (
            max_count is not None and actual_count > max_count
        ):
            raise HTMLStructuralAssumptionException(
                selector=selector,
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=actual_count,
                request_url=self._request_url,
            )

        return [
            CheckedHtmlElement(result, self._request_url) for result in results
        ]

    def first_css(self, selector: str) -> CheckedHtmlElement | None:
        """Return the first element matching selector, or None."""
        matches = self.checked_css(selector, selector, min_count=0)
        return matches[0] if matches else None

    def clean_text(self) -> str:
        """Return the element's text content with outer whitespace trimmed."""
        return self._element.text_content().strip()

    def __getattr__(self, name: str):
        """Delegate all other attributes to the wrapped element."""
        return getattr(self._element, name)

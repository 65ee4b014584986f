"""Exception types for scraper errors.

Two families of errors matter to the worker pipeline:

- Assumption violations: the page did not have the structure the extractors
  expect (missing selectors, wrong element counts).
- Transient errors: navigation failures and timeouts that might resolve on
  retry.

Both are retried at entity level and skip the page at listing level. The
remaining exceptions describe how that recovery ended.
"""

from typing import Any


class ScraperAssumptionException(Exception):
    """Base class for scraper assumption violations.

    Extractors make assumptions about page structure. When these assumptions
    are violated, they raise clear, contextual exceptions that help diagnose
    the issue.
    """

    def __init__(
        self,
        message: str,
        request_url: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable description of the assumption violation.
            request_url: The URL of the page that triggered this error.
            context: Optional dict of additional context (selector, counts, etc).
        """
        self.message = message
        self.request_url = request_url
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        parts.append(f"URL: {self.request_url}")

        if self.context:
            parts.append("Context:")
            for key, value in self.context.items():
                parts.append(f"  {key}: {value}")

        return "\n".join(parts)


class HTMLStructuralAssumptionException(ScraperAssumptionException):
    """Raised when HTML structure doesn't match expectations.

    Raised when a CSS selector returns a different number of elements than
    expected, which usually means the site's markup has changed.

    Attributes:
        selector: The CSS selector that was used.
        description: What was being selected.
        expected_min: Minimum number of elements expected.
        expected_max: Maximum number of elements expected (None = unlimited).
        actual_count: Actual number of elements found.
    """

    def __init__(
        self,
        selector: str,
        description: str,
        expected_min: int,
        expected_max: int | None,
        actual_count: int,
        request_url: str,
    ) -> None:
        self.selector = selector
        self.description = description
        self.expected_min = expected_min
        self.expected_max = expected_max
        self.actual_count = actual_count

        if expected_max is None:
            expected_str = f"at least {expected_min}"
        elif expected_min == expected_max:
            expected_str = f"exactly {expected_min}"
        else:
            expected_str = f"between {expected_min} and {expected_max}"

        message = (
            f"HTML structure mismatch: Expected {expected_str} "
            f"elements for '{description}', but found {actual_count}"
        )

        context = {
            "selector": selector,
            "expected_min": expected_min,
            "expected_max": expected_max
            if expected_max is not None
            else "unlimited",
            "actual_count": actual_count,
        }

        super().__init__(message, request_url, context)


class TransientException(Exception):
    """Base class for transient errors that might resolve on retry.

    Transient exceptions represent temporary failures like navigation errors
    or timeouts. Unlike assumption exceptions, which suggest the extractors
    need updating, they suggest retrying the visit may succeed.
    """

    pass


class RequestTimeoutException(TransientException):
    """Raised when a navigation or load-state wait times out.

    Attributes:
        url: The URL that timed out.
        timeout_ms: The timeout duration in milliseconds.
        message: Human-readable error message.
    """

    def __init__(self, url: str, timeout_ms: float) -> None:
        self.url = url
        self.timeout_ms = timeout_ms
        self.message = f"Request to {url} timed out after {timeout_ms}ms"
        super().__init__(self.message)


class SelectorTimeoutException(TransientException):
    """Raised when a required selector never appears on the page.

    Attributes:
        selector: The CSS selector that was awaited.
        timeout_ms: How long the wait lasted, in milliseconds.
        url: The page URL at the time of the wait.
    """

    def __init__(self, selector: str, timeout_ms: float, url: str) -> None:
        self.selector = selector
        self.timeout_ms = timeout_ms
        self.url = url
        self.message = (
            f"Selector '{selector}' not found on {url} "
            f"within {timeout_ms}ms"
        )
        super().__init__(self.message)


class NavigationException(TransientException):
    """Raised when the browser fails to navigate to a URL.

    Attributes:
        url: The URL that could not be loaded.
        reason: The underlying browser error message.
    """

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        self.message = f"Navigation to {url} failed: {reason}"
        super().__init__(self.message)


class RetriesExhausted(Exception):
    """Raised when every attempt of a retried operation has failed.

    Attributes:
        description: What was being attempted (usually a URL).
        attempts: How many attempts were made.
        last_error: The error raised by the final attempt.
    """

    def __init__(
        self, description: str, attempts: int, last_error: BaseException
    ) -> None:
        self.description = description
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{description} failed after {attempts} attempt(s): {last_error}"
        )


class PageFetchFailed(Exception):
    """Raised when a listing page cannot be fetched or parsed.

    Attributes:
        page: The listing page number.
        url: The listing page URL.
    """

    def __init__(self, page: int, url: str, reason: str) -> None:
        self.page = page
        self.url = url
        self.reason = reason
        super().__init__(f"Listing page {page} ({url}) failed: {reason}")

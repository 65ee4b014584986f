"""Run configuration.

A ScrapeConfig is built once at startup (by the CLI or by a caller) and
passed explicitly to the orchestrator. It is frozen, so no component can
reconfigure a run while it is in flight.

Example::

    from entidades.common.config import ScrapeConfig

    config = ScrapeConfig(num_workers=4, test_pages=2)
    config.total_pages  # 2
"""

import math

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BASE_URL = "https://contratacionesabiertas.osce.gob.pe/entidades"


class ScrapeConfig(BaseModel):
    """Static settings for one scraping run.

    Timeouts are in milliseconds, matching Playwright; delays are in seconds.

    Attributes:
        base_url: Listing endpoint of the directory.
        total_records: Known size of the directory catalog.
        page_size: Entities per listing page.
        test_pages: When set, process only this many pages (reduced test run).
        num_workers: Number of concurrent batch workers.
        navigation_timeout: Per-navigation timeout.
        ready_timeout: Timeout for network idle and ready selectors.
        overlay_timeout: How long to look for the onboarding overlay.
        max_retries: Attempts per detail page before giving up.
        retry_delay: Pause between detail page attempts.
        throttle_delay: Pause after every entity visit.
        overlay_selector: Close button of the onboarding overlay.
        listing_selector: Selector that marks a listing page as ready.
        detail_selector: Selector that marks a detail page as ready.
        headless: Run browsers without a window.
        browser_type: Playwright browser: chromium, firefox or webkit.
        output_path: Destination CSV file.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: str = DEFAULT_BASE_URL
    total_records: int = Field(default=3292, gt=0)
    page_size: int = Field(default=10, gt=0)
    test_pages: int | None = Field(default=None, gt=0)
    num_workers: int = Field(default=8, gt=0)
    navigation_timeout: int = Field(default=45000, gt=0)
    ready_timeout: int = Field(default=45000, gt=0)
    overlay_timeout: int = Field(default=5000, gt=0)
    max_retries: int = Field(default=3, gt=0)
    retry_delay: float = Field(default=5.0, ge=0)
    throttle_delay: float = Field(default=1.0, ge=0)
    overlay_selector: str = "button.shepherd-cancel-icon"
    listing_selector: str = "table tr"
    detail_selector: str = ".infoTextContainer"
    headless: bool = True
    browser_type: str = Field(
        default="chromium", pattern="^(chromium|firefox|webkit)$"
    )
    output_path: str = "osce_results.csv"

    @property
    def test_mode(self) -> bool:
        return self.test_pages is not None

    @property
    def total_pages(self) -> int:
        """Number of listing pages this run covers."""
        if self.test_pages is not None:
            return self.test_pages
        return math.ceil(self.total_records / self.page_size)

    @property
    def pages_per_worker(self) -> int:
        return math.ceil(self.total_pages / self.num_workers)

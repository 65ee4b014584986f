"""Core data types for the directory scraper.

This module defines the values that flow through a run:

- EntityStub: the partial record scraped from one listing row
- DetailInfo: the location/phone pair scraped from a detail page
- OutputRecord: a stub merged with its detail info, one CSV row
- WorkRange: the contiguous span of listing pages owned by one worker
- WorkerResult / RunSummary: per-worker and per-run outcomes

Stubs and detail infos never leave the worker that produced them; only
OutputRecords are handed to the orchestrator.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

NOT_AVAILABLE = "NOT AVAILABLE"
ERROR = "ERROR"

OUTPUT_COLUMNS: tuple[str, ...] = (
    "Entidad",
    "RUC",
    "Procesos",
    "Monto Contratado",
    "Último Proceso",
    "Ubicación",
    "Teléfono",
    "URL",
)


@dataclass(frozen=True)
class EntityStub:
    """An entity as listed on a directory listing page.

    Attributes:
        url: Absolute URL of the entity's detail page. Never empty.
        name: Entity name.
        tax_id: Taxpayer number (RUC).
        process_count: Number of procurement processes.
        contracted_amount: Total contracted amount, as displayed.
        last_process_date: Date of the latest process, as displayed.
    """

    url: str
    name: str = ""
    tax_id: str = ""
    process_count: str = ""
    contracted_amount: str = ""
    last_process_date: str = ""

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("EntityStub requires a non-empty url")


@dataclass(frozen=True)
class DetailInfo:
    """Contact details scraped from an entity's detail page.

    A field holds NOT_AVAILABLE when the page was read but had no matching
    fragment, and ERROR when the page could not be read at all.
    """

    location: str = NOT_AVAILABLE
    phone: str = NOT_AVAILABLE

    @classmethod
    def failed(cls) -> DetailInfo:
        """Detail info for an entity whose detail page could not be read."""
        return cls(location=ERROR, phone=ERROR)


@dataclass(frozen=True)
class OutputRecord:
    """One output row: listing fields followed by detail fields."""

    url: str
    name: str
    tax_id: str
    process_count: str
    contracted_amount: str
    last_process_date: str
    location: str
    phone: str

    @classmethod
    def from_parts(cls, stub: EntityStub, detail: DetailInfo) -> OutputRecord:
        """Merge a listing stub with the detail info found for it."""
        return cls(
            url=stub.url,
            name=stub.name,
            tax_id=stub.tax_id,
            process_count=stub.process_count,
            contracted_amount=stub.contracted_amount,
            last_process_date=stub.last_process_date,
            location=detail.location,
            phone=detail.phone,
        )

    @property
    def is_error(self) -> bool:
        return self.location == ERROR and self.phone == ERROR

    def as_row(self) -> list[str]:
        """Return the field values in OUTPUT_COLUMNS order."""
        return [
            self.name,
            self.tax_id,
            self.process_count,
            self.contracted_amount,
            self.last_process_date,
            self.location,
            self.phone,
            self.url,
        ]


@dataclass(frozen=True)
class WorkRange:
    """Contiguous, inclusive span of listing pages assigned to one worker.

    A range whose start_page is greater than its end_page is empty: it is a
    legitimate assignment of zero work, not an error.
    """

    worker_id: int
    start_page: int
    end_page: int

    def __post_init__(self) -> None:
        if self.worker_id < 1:
            raise ValueError(f"worker_id must be positive, got {self.worker_id}")
        if self.start_page < 1:
            raise ValueError(
                f"start_page must be at least 1, got {self.start_page}"
            )

    @property
    def is_empty(self) -> bool:
        return self.start_page > self.end_page

    @property
    def page_count(self) -> int:
        return max(0, self.end_page - self.start_page + 1)

    def pages(self) -> Iterator[int]:
        """Yield the page numbers of this range in ascending order."""
        yield from range(self.start_page, self.end_page + 1)

    def __str__(self) -> str:
        return f"[{self.start_page}, {self.end_page}]"


@dataclass
class WorkerResult:
    """Outcome of one batch worker.

    Attributes:
        work_range: The range the worker was assigned.
        records: Records accumulated by the worker, in processing order.
        error: The fatal error that ended the worker early, if any.
        skipped_pages: Listing pages that could not be fetched.
    """

    work_range: WorkRange
    records: list[OutputRecord] = field(default_factory=list)
    error: BaseException | None = None
    skipped_pages: list[int] = field(default_factory=list)

    @property
    def worker_id(self) -> int:
        return self.work_range.worker_id

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class RunSummary:
    """Aggregate outcome of one orchestrated run."""

    total_pages: int
    num_workers: int
    records_per_worker: dict[int, int] = field(default_factory=dict)
    failed_workers: list[int] = field(default_factory=list)

    @property
    def total_records(self) -> int:
        return sum(self.records_per_worker.values())

"""Extractors for the directory's listing and detail pages.

The functions here are pure: they take a parsed DOM snapshot and return
values, never touching a live browser. The browsing session is responsible
for rendering the page and handing over the snapshot (see
BrowsingSession.evaluate).

Listing pages are tables with one entity per row. Detail pages come in two
layouts:

- ``.infoTextContainer`` blocks, each holding the value in ``span``s
  (location is the block mentioning the country, phone the block whose
  first span carries digits)
- ``.card-body`` cards, each labelled ("Ubicación", "Teléfono") with the
  value in a ``p``
"""

from __future__ import annotations

import re

from entidades.common.checked_html import CheckedHtmlElement
from entidades.data_types import NOT_AVAILABLE, DetailInfo, EntityStub

LISTING_ROW_SELECTOR = "table tr"
DETAIL_LINK_SELECTOR = 'a[href*="/entidad/"]'
INFO_CONTAINER_SELECTOR = ".infoTextContainer"
CARD_SELECTOR = ".card-body"

LOCATION_MARKER = "PERU"
LOCATION_LABEL = "Ubicación"
PHONE_LABEL = "Teléfono"

_DIGITS = re.compile(r"\d")

# Listing columns, in table order
_STUB_FIELDS = (
    "name",
    "tax_id",
    "process_count",
    "contracted_amount",
    "last_process_date",
)


def listing_url(base_url: str, page: int) -> str:
    """Build the URL of a listing page, newest processes first.

    Args:
        base_url: The directory's listing endpoint.
        page: 1-based page number.

    Returns:
        ``{base_url}?order_last_process=desc&page={page}``
    """
    if page < 1:
        raise ValueError(f"Listing pages start at 1, got {page}")
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}order_last_process=desc&page={page}"


def parse_listing(root: CheckedHtmlElement) -> list[EntityStub]:
    """Extract entity stubs from a rendered listing page.

    Rows without a link to a detail page (header rows, spacers) are
    discarded; that is the only validity rule.

    Args:
        root: Parsed listing page, with links already made absolute.

    Returns:
        Entity stubs in document order.
    """
    stubs: list[EntityStub] = []
    for row in root.checked_css(LISTING_ROW_SELECTOR, "listing rows", min_count=0):
        link = row.first_css(DETAIL_LINK_SELECTOR)
        url = (link.get("href") or "").strip() if link is not None else ""
        if not url:
            continue

        cells = row.checked_css("td", "listing cells", min_count=0)
        values = {
            name: cells[index].clean_text() if index < len(cells) else ""
            for index, name in enumerate(_STUB_FIELDS)
        }
        stubs.append(EntityStub(url=url, **values))
    return stubs


def parse_detail(root: CheckedHtmlElement) -> DetailInfo:
    """Extract location and phone from a rendered detail page.

    Info containers are tried first; the card layout fills in whatever they
    did not provide. A field with no qualifying fragment is NOT_AVAILABLE.
    """
    location, phone = _from_info_containers(root)
    if location is None or phone is None:
        card_location, card_phone = _from_cards(root)
        location = location or card_location
        phone = phone or card_phone
    return DetailInfo(
        location=location or NOT_AVAILABLE,
        phone=phone or NOT_AVAILABLE,
    )


def _span_texts(container: CheckedHtmlElement) -> list[str]:
    spans = container.checked_css("span", "info spans", min_count=0)
    return [text for text in (span.clean_text() for span in spans) if text]


def _from_info_containers(
    root: CheckedHtmlElement,
) -> tuple[str | None, str | None]:
    location: str | None = None
    phone: str | None = None
    containers = root.checked_css(
        INFO_CONTAINER_SELECTOR, "info containers", min_count=0
    )
    for container in containers:
        if LOCATION_MARKER in container.text_content():
            # Addresses carry digits too; never read a phone from them
            if location is None:
                location = " ".join(_span_texts(container)) or None
            continue
        if phone is None:
            first_span = container.first_css("span")
            if first_span is not None and _DIGITS.search(first_span.clean_text()):
                phone = first_span.clean_text()
        if location is not None and phone is not None:
            break
    return location, phone


def _from_cards(root: CheckedHtmlElement) -> tuple[str | None, str | None]:
    location: str | None = None
    phone: str | None = None
    for card in root.checked_css(CARD_SELECTOR, "info cards", min_count=0):
        text = card.text_content()
        value = card.first_css("p")
        value_text = value.clean_text() if value is not None else ""
        if location is None and LOCATION_LABEL in text and value_text:
            location = value_text
        if (
            phone is None
            and PHONE_LABEL in text
            and _DIGITS.search(value_text)
        ):
            phone = value_text
    return location, phone

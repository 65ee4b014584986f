"""Tests for the listing and detail extractors.

This module tests the pure extraction functions against the mock
directory's HTML:
1. listing_url() builds the paginated listing URL
2. parse_listing() maps rows to stubs and drops rows without a detail link
3. parse_detail() reads both detail layouts
4. Missing fields yield NOT AVAILABLE, never an error
"""

import pytest

from entidades.common.checked_html import CheckedHtmlElement
from entidades.common.exceptions import HTMLStructuralAssumptionException
from entidades.data_types import NOT_AVAILABLE, DetailInfo
from entidades.extraction import listing_url, parse_detail, parse_listing
from tests.mock_server import (
    ENTITIES,
    generate_detail_html,
    generate_listing_html,
    get_entity,
)

LISTING_URL = "http://directory.test/entidades?order_last_process=desc&page=1"


def parse(html: str, url: str = LISTING_URL) -> CheckedHtmlElement:
    return CheckedHtmlElement.from_html(html, url)


class TestListingUrl:
    """Tests for listing_url()."""

    def test_listing_url_format(self):
        """listing_url shall order by last process and select the page."""
        assert (
            listing_url("https://example.org/entidades", 7)
            == "https://example.org/entidades?order_last_process=desc&page=7"
        )

    def test_listing_url_with_existing_query(self):
        """listing_url shall append to an existing query string."""
        assert (
            listing_url("https://example.org/list?lang=es", 2)
            == "https://example.org/list?lang=es&order_last_process=desc&page=2"
        )

    def test_listing_url_rejects_page_zero(self):
        """listing_url shall reject pages below 1."""
        with pytest.raises(ValueError):
            listing_url("https://example.org/entidades", 0)


class TestParseListing:
    """Tests for parse_listing()."""

    def test_extracts_one_stub_per_entity_row(self):
        """parse_listing shall return one stub per linked row, in order."""
        stubs = parse_listing(parse(generate_listing_html(ENTITIES[:3])))

        assert [s.name for s in stubs] == [e.name for e in ENTITIES[:3]]

    def test_maps_cells_to_fields(self):
        """parse_listing shall map the five cells to the stub fields, trimmed."""
        entity = ENTITIES[0]
        (stub,) = parse_listing(parse(generate_listing_html([entity])))

        assert stub.name == entity.name
        assert stub.tax_id == entity.ruc
        assert stub.process_count == entity.processes
        assert stub.contracted_amount == entity.amount
        assert stub.last_process_date == entity.last_process

    def test_detail_url_is_absolute(self):
        """The stub url shall be the anchor's href resolved against the page."""
        (stub,) = parse_listing(parse(generate_listing_html([ENTITIES[1]])))

        assert stub.url == "http://directory.test/entidad/102"

    def test_rows_without_link_are_dropped(self):
        """Header and spacer rows without a detail link shall be discarded."""
        html = """
        <table>
          <tr><th>Entidad</th></tr>
          <tr><td>Sin enlace</td><td>123</td></tr>
          <tr><td><a href="/otra/1">Wrong link</a></td></tr>
          <tr><td><a href="/entidad/9">Con enlace</a></td></tr>
        </table>"""

        stubs = parse_listing(parse(html))

        assert len(stubs) == 1
        assert stubs[0].name == "Con enlace"

    def test_missing_cells_default_to_empty(self):
        """Cells absent from a row shall become empty strings."""
        html = '<table><tr><td><a href="/entidad/5">Solo nombre</a></td></tr></table>'

        (stub,) = parse_listing(parse(html))

        assert stub.name == "Solo nombre"
        assert stub.tax_id == ""
        assert stub.last_process_date == ""

    def test_empty_listing(self):
        """A page without rows shall produce no stubs."""
        assert parse_listing(parse("<html><body><p>Sin resultados</p></body></html>")) == []


class TestParseDetail:
    """Tests for parse_detail()."""

    def test_info_container_layout(self):
        """Location shall be the spans of the PERU block, phone the digit span."""
        entity = get_entity(101)
        detail = parse_detail(parse(generate_detail_html(entity)))

        assert detail == DetailInfo(
            location="LIMA LIMA MIRAFLORES PERU", phone="(01) 617-7272"
        )

    def test_card_layout(self):
        """The card layout shall read the labelled paragraphs."""
        entity = get_entity(103)
        detail = parse_detail(parse(generate_detail_html(entity)))

        assert detail.location == "Av. Grau 13, Lima"
        assert detail.phone == "328-0028"

    def test_missing_fields_are_not_available(self):
        """A page with no contact fragments shall give NOT AVAILABLE, not an error."""
        entity = get_entity(104)
        detail = parse_detail(parse(generate_detail_html(entity)))

        assert detail.location == NOT_AVAILABLE
        assert detail.phone == NOT_AVAILABLE

    def test_empty_document_is_not_available(self):
        """A page without any known layout shall give NOT AVAILABLE for both."""
        detail = parse_detail(parse("<html><body><h1>Entidad</h1></body></html>"))

        assert detail == DetailInfo()

    def test_first_qualifying_fragment_wins(self):
        """When several fragments qualify, the first in document order shall be used."""
        html = """
        <div class="infoTextContainer"><span>CALLE 1</span><span>PERU</span></div>
        <div class="infoTextContainer"><span>CALLE 2</span><span>PERU</span></div>
        <div class="infoTextContainer"><span>111-1111</span></div>
        <div class="infoTextContainer"><span>222-2222</span></div>"""

        detail = parse_detail(parse(html))

        assert detail.location == "CALLE 1 PERU"
        assert detail.phone == "111-1111"

    def test_address_digits_are_not_a_phone(self):
        """Digits inside the location block shall not be taken as the phone."""
        html = """
        <div class="infoTextContainer"><span>AV. ABANCAY 251</span><span>PERU</span></div>"""

        detail = parse_detail(parse(html))

        assert detail.location == "AV. ABANCAY 251 PERU"
        assert detail.phone == NOT_AVAILABLE

    def test_card_phone_requires_digits(self):
        """A phone card without digits shall not count as a phone."""
        html = """
        <div class="card-body"><h5>Teléfono</h5><p>No registrado</p></div>"""

        assert parse_detail(parse(html)).phone == NOT_AVAILABLE


class TestCheckedHtmlElement:
    """Tests for the checked CSS queries the extractors rely on."""

    def test_count_mismatch_raises(self):
        """checked_css shall raise when fewer elements than expected are found."""
        root = parse("<html><body></body></html>")

        with pytest.raises(HTMLStructuralAssumptionException) as exc_info:
            root.checked_css("table tr", "listing rows")

        assert exc_info.value.actual_count == 0
        assert exc_info.value.request_url == LISTING_URL

    def test_invalid_selector_raises_structural_error(self):
        """An unparsable selector shall surface as a structural error."""
        root = parse("<html><body></body></html>")

        with pytest.raises(HTMLStructuralAssumptionException):
            root.checked_css("table[[", "broken selector")

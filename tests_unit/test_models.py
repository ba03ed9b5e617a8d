"""
Unit tests for extraction data models.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from extraction.models import (
    BatchResult,
    DocumentMetadata,
    DocumentResult,
    DocumentText,
    ExtractionMode,
    FieldSet,
    LineItem,
    PageText,
    calculate_total
)


class TestExtractionMode:
    """Test cases for ExtractionMode parsing."""

    def test_from_value(self):
        assert ExtractionMode.from_value(" Fields ") is ExtractionMode.FIELDS
        assert ExtractionMode.from_value("table") is ExtractionMode.TABLE

    def test_unknown_mode(self):
        with pytest.raises(ValueError) as exc_info:
            ExtractionMode.from_value("layout")
        assert "Supported modes: table, fields" in str(exc_info.value)


class TestLineItem:
    """Test cases for LineItem."""

    def test_quantity_coerced_to_decimal(self):
        item = LineItem(id=1, description="Widget", quantity="3", price="2.50")
        assert item.quantity == Decimal('3')
        assert item.total == Decimal('7.50')

    def test_to_dict(self):
        item = LineItem(id=2, description="Widget", quantity=Decimal('1.50'), price="4.00")
        assert item.to_dict() == {'id': 2, 'description': 'Widget', 'quantity': 1.5, 'price': '4.00'}


class TestCalculateTotal:
    """Test cases for the grand total."""

    def test_sum_of_price_times_whole_quantity(self):
        items = [
            LineItem(id=1, description="Widget", quantity=2, price="10.00"),
            LineItem(id=2, description="Bolt", quantity=Decimal('1.5'), price="4.00"),
            LineItem(id=3, description="Misc", quantity=1, price="n/a"),
        ]
        assert calculate_total(items) == Decimal('24.00')

    def test_fractional_quantity_below_one_counts_as_one(self):
        items = [LineItem(id=1, description="Oil", quantity=Decimal('0.5'), price="8.00")]
        assert calculate_total(items) == Decimal('8.00')

    def test_empty(self):
        assert calculate_total([]) == Decimal('0')


class TestDocumentModels:
    """Test cases for page and document containers."""

    def test_full_text_joins_pages(self):
        text = DocumentText([
            PageText(1, "first"),
            PageText(2, "", error="Error extracting text from page 2: broken"),
            PageText(3, "third"),
        ])

        assert text.full_text == "first\n\nthird"
        assert [page.page_number for page in text.failed_pages] == [2]

    def test_metadata_defaults(self):
        metadata = DocumentMetadata.from_info(None)
        assert metadata.title == "Unknown"
        assert metadata.author == "Unknown"
        assert metadata.producer == ""

    def test_metadata_from_info(self):
        metadata = DocumentMetadata.from_info({
            'Title': b'Invoice 42',
            'Author': 'ACME',
            'CreationDate': "D:20240101120000"
        })
        assert metadata.title == "Invoice 42"
        assert metadata.author == "ACME"
        assert metadata.creation_date == "D:20240101120000"

    def test_auto_detected_table_mode(self):
        result = DocumentResult(name="a.pdf", mode=ExtractionMode.TABLE)
        assert not result.auto_detected

        result.line_items = [LineItem(id=1, description="Widget", quantity=1, price="1.00")]
        assert result.auto_detected

    def test_auto_detected_fields_mode(self):
        result = DocumentResult(name="a.pdf", mode=ExtractionMode.FIELDS)
        assert not result.auto_detected

        result.fields = FieldSet(price="1.00")
        assert result.auto_detected

    def test_document_to_dict(self):
        result = DocumentResult(
            name="a.pdf",
            mode=ExtractionMode.TABLE,
            pages=[PageText(1, "Widget 10.00")],
            page_count=1,
            line_items=[LineItem(id=1, description="Widget", quantity=2, price="10.00")],
            extraction_timestamp=datetime(2024, 1, 1, 12, 0, 0)
        )

        data = result.to_dict()

        assert data['mode'] == 'table'
        assert data['total'] == 20.0
        assert data['auto_detected'] is True
        assert data['pages'] == [{'page_number': 1, 'text': 'Widget 10.00', 'error': None}]
        assert data['extraction_timestamp'] == "2024-01-01T12:00:00"

    def test_batch_errors(self):
        batch = BatchResult()
        batch.add_error("notes.txt", "Only PDF files are allowed")

        assert batch.errors == [{'file': 'notes.txt', 'error': 'Only PDF files are allowed'}]
        assert batch.to_dict()['documents'] == []

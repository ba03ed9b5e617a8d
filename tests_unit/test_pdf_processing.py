"""
Unit tests for PDF processing functionality.

The pdfplumber decoder is replaced with an in-memory fake so that page
failures and decode failures can be exercised without real PDF files; a
small generated PDF covers the pdfplumber path end to end.
"""

import pytest
from pathlib import Path
from decimal import Decimal
from unittest.mock import Mock

from extraction.pdf_processor import (
    PDFProcessor,
    PdfPlumberDecoder,
    DecodedDocument,
    words_to_fragments
)
from extraction.models import DocumentMetadata, ExtractionMode, TextFragment
from extraction.exceptions import PDFReadabilityError


def text_line(y, *words):
    """Fragments for one visual line, one word every 60 units."""
    return [
        TextFragment(text=word, baseline_x=index * 60.0, baseline_y=y, width=40.0, height=10.0)
        for index, word in enumerate(words)
    ]


INVOICE_PAGE = (
    text_line(700, "Invoice", "#:", "INV-2024-001")
    + text_line(670, "Description", "Qty", "Price")
    + text_line(656, "Widget", "A", "2", "10.00")
    + text_line(642, "Total:", "20.00")
)


class FakeDocument:
    """Decoded document whose pages are fragment lists or exceptions."""

    def __init__(self, pages, metadata=None):
        self.pages = pages
        self.page_count = len(pages)
        self.metadata = metadata or DocumentMetadata()
        self.closed = False

    def get_page_fragments(self, page_index):
        page = self.pages[page_index]
        if isinstance(page, Exception):
            raise page
        return page

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.closed = True


class FakeDecoder:
    def __init__(self, document=None, error=None):
        self.document = document
        self.error = error
        self.opened = []

    def open(self, data, name=None):
        self.opened.append(name)
        if self.error:
            raise self.error
        return self.document


class TestPDFProcessor:
    """Test cases for PDFProcessor class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.document = FakeDocument([INVOICE_PAGE])
        self.processor = PDFProcessor(decoder=FakeDecoder(self.document))

    def test_processor_initialization(self):
        processor = PDFProcessor()
        assert processor.logger is not None
        assert isinstance(processor.decoder, PdfPlumberDecoder)

    def test_table_mode(self):
        result = self.processor.process_bytes(b"%PDF", "invoice.pdf", ExtractionMode.TABLE)

        assert result.name == "invoice.pdf"
        assert result.page_count == 1
        assert result.pages[0].text == (
            "Invoice #: INV-2024-001\n\n"
            "Description Qty Price\n"
            "Widget A 2 10.00\n"
            "Total: 20.00"
        )
        assert [(i.description, i.quantity, i.price) for i in result.line_items] == [
            ("Widget A", Decimal('2'), "10.00")
        ]
        assert result.fields.is_empty()
        assert self.document.closed

    def test_fields_mode(self):
        result = self.processor.process_bytes(b"%PDF", "invoice.pdf", ExtractionMode.FIELDS)

        assert result.line_items == []
        assert result.fields.invoice_no == "INV-2024-001"
        assert result.fields.price == "20.00"

    def test_page_failure_is_recorded_and_processing_continues(self):
        document = FakeDocument([
            text_line(700, "first"),
            RuntimeError("bad content stream"),
            text_line(700, "third"),
        ])
        processor = PDFProcessor(decoder=FakeDecoder(document))

        result = processor.process_bytes(b"%PDF", "scan.pdf")

        assert [page.page_number for page in result.pages] == [1, 2, 3]
        assert result.pages[1].text == ""
        assert result.pages[1].error == "Error extracting text from page 2: bad content stream"
        assert result.pages[0].ok and result.pages[2].ok
        assert result.document_text.full_text == "first\n\nthird"

    def test_decode_failure_propagates(self):
        error = PDFReadabilityError("Failed to open PDF: broken xref", pdf_path="bad.pdf")
        processor = PDFProcessor(decoder=FakeDecoder(error=error))

        with pytest.raises(PDFReadabilityError) as exc_info:
            processor.process_bytes(b"junk", "bad.pdf")

        assert exc_info.value.reason == "Failed to open PDF: broken xref"
        assert "(PDF: bad.pdf)" in str(exc_info.value)

    def test_process_pdf_reads_file(self, tmp_path):
        pdf_file = tmp_path / "invoice.pdf"
        pdf_file.write_bytes(b"%PDF-1.4")

        result = self.processor.process_pdf(pdf_file)

        assert result.name == "invoice.pdf"
        assert self.processor.decoder.opened == ["invoice.pdf"]

    def test_process_pdf_missing_file(self):
        with pytest.raises(PDFReadabilityError) as exc_info:
            self.processor.process_pdf(Path("non_existent_file.pdf"))

        assert "PDF file not found" in str(exc_info.value)

    def test_extract_document_text(self, tmp_path):
        pdf_file = tmp_path / "invoice.pdf"
        pdf_file.write_bytes(b"%PDF-1.4")

        text = self.processor.extract_document_text(pdf_file)

        assert len(text.pages) == 1
        assert text.full_text.startswith("Invoice #: INV-2024-001")


class TestPdfPlumberAdapter:
    """Test cases for the pdfplumber-backed decoder."""

    def test_words_to_fragments(self):
        words = [{'text': 'Hi', 'x0': 10, 'x1': 30, 'top': 100, 'bottom': 110}]

        fragments = words_to_fragments(words, page_height=800)

        assert fragments == [
            TextFragment(text='Hi', baseline_x=10.0, baseline_y=690.0, width=20.0, height=10.0)
        ]

    def test_blank_runs_are_dropped_and_runs_trimmed(self):
        words = [
            {'text': 'Widget A ', 'x0': 10, 'x1': 60, 'top': 100, 'bottom': 110},
            {'text': '   ', 'x0': 60, 'x1': 70, 'top': 100, 'bottom': 110},
        ]

        fragments = words_to_fragments(words, page_height=800)

        assert [f.text for f in fragments] == ["Widget A"]

    def test_decoded_document_pages(self):
        page = Mock()
        page.height = 800
        page.extract_words.return_value = [
            {'text': 'Total', 'x0': 0, 'x1': 25, 'top': 100, 'bottom': 110}
        ]
        pdf = Mock()
        pdf.pages = [page]
        pdf.metadata = {'Title': 'Invoice'}

        with DecodedDocument(pdf, name="a.pdf") as document:
            assert document.page_count == 1
            assert document.metadata.title == "Invoice"
            assert document.get_page_fragments(0)[0].text == "Total"

        page.extract_words.assert_called_once_with(keep_blank_chars=True)
        pdf.close.assert_called_once()

    def test_unreadable_metadata_falls_back_to_defaults(self):
        class BrokenInfo:
            pages = []

            @property
            def metadata(self):
                raise ValueError("bad info dictionary")

            def close(self):
                pass

        document = DecodedDocument(BrokenInfo(), name="a.pdf")

        assert document.metadata == DocumentMetadata()

    def test_open_invalid_bytes(self):
        with pytest.raises(PDFReadabilityError) as exc_info:
            PdfPlumberDecoder().open(b"this is not a pdf", "notes.pdf")

        assert exc_info.value.reason.startswith("Failed to open PDF")
        assert exc_info.value.pdf_path == "notes.pdf"


def build_text_pdf(runs, font_size=10):
    """
    Single-page PDF drawing each (x, y, text) run in Helvetica.

    Helvetica is one of the standard fonts, so no font program is embedded
    and the file stays small enough to assemble by hand.
    """
    def literal(text):
        return text.replace('\\', '\\\\').replace('(', '\\(').replace(')', '\\)')

    content = "".join(
        f"BT /F1 {font_size} Tf {x} {y} Td ({literal(text)}) Tj ET\n" for x, y, text in runs
    ).encode('latin-1')
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(content) + content + b"endstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    pdf = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(pdf))
        pdf += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(pdf)
    pdf += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1)
    for offset in offsets:
        pdf += b"%010d 00000 n \n" % offset
    pdf += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (
        len(objects) + 1, xref_offset
    )
    return bytes(pdf)


# Header and row cells sit in separate columns; the other lines are single runs
INVOICE_RUNS = [
    (72, 720, "Invoice #: INV-2024-001"),
    (72, 690, "Description"), (300, 690, "Qty"), (400, 690, "Price"),
    (72, 676, "Widget A"), (300, 676, "2"), (400, 676, "10.00"),
    (72, 662, "Total: 20.00"),
]


@pytest.fixture
def invoice_pdf(tmp_path):
    path = tmp_path / "invoice.pdf"
    path.write_bytes(build_text_pdf(INVOICE_RUNS))
    return path


class TestGeneratedPdf:
    """End-to-end decoding of a PDF written with real text operators."""

    def test_word_spaces_and_columns_survive_reconstruction(self, invoice_pdf):
        document_text = PDFProcessor().extract_document_text(invoice_pdf)

        assert document_text.full_text == (
            "Invoice #: INV-2024-001\n\n"
            "Description Qty Price\n"
            "Widget A 2 10.00\n"
            "Total: 20.00"
        )

    def test_table_row_is_extracted(self, invoice_pdf):
        result = PDFProcessor().process_pdf(invoice_pdf, ExtractionMode.TABLE)

        assert result.page_count == 1
        assert [(i.description, i.quantity, i.price) for i in result.line_items] == [
            ("Widget A", Decimal('2'), "10.00")
        ]

    def test_fields_are_extracted(self, invoice_pdf):
        result = PDFProcessor().process_pdf(invoice_pdf, ExtractionMode.FIELDS)

        assert result.fields.invoice_no == "INV-2024-001"
        assert result.fields.price == "20.00"

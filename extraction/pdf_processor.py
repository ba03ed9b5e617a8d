"""
PDF processing module for turning invoice PDFs into extracted data.

This module provides the pdfplumber-backed decoder that yields positioned
text runs per page, and the PDFProcessor that folds over the pages of
a document, reconstructs their text and runs either the table extractor or
the field extractor over the joined document text.
"""

import io
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pdfplumber

from .exceptions import PDFReadabilityError, TextExtractionError
from .field_extractor import FieldExtractor
from .line_reconstructor import reconstruct_page_text
from .models import (
    DocumentMetadata, DocumentResult, DocumentText, ExtractionMode, PageText, TextFragment
)
from .table_extractor import TableExtractor


def words_to_fragments(words: List[Dict[str, Any]], page_height: float) -> List[TextFragment]:
    """
    Convert pdfplumber words into fragments in document coordinates.

    Surrounding blanks are stripped and blank-only words are dropped.

    pdfplumber measures `top`/`bottom` downward from the top of the page;
    fragments use a baseline Y that grows upward, so larger Y is higher.
    """
    fragments = []
    for word in words:
        text = word.get('text', '').strip()
        if not text:
            continue
        x0 = float(word.get('x0', 0.0))
        x1 = float(word.get('x1', x0))
        top = float(word.get('top', 0.0))
        bottom = float(word.get('bottom', top))
        fragments.append(TextFragment(
            text=text,
            baseline_x=x0,
            baseline_y=float(page_height) - bottom,
            width=x1 - x0,
            height=bottom - top
        ))
    return fragments


class DecodedDocument:
    """An opened PDF: page count, metadata and per-page fragments."""

    def __init__(self, pdf, name: Optional[str] = None, logger: Optional[logging.Logger] = None):
        self._pdf = pdf
        self.name = name
        self.logger = logger or logging.getLogger(__name__)
        self.page_count = len(pdf.pages)

    @property
    def metadata(self) -> DocumentMetadata:
        """Document info; falls back to defaults if it cannot be read."""
        try:
            return DocumentMetadata.from_info(self._pdf.metadata)
        except Exception as e:
            self.logger.warning(f"Could not extract PDF metadata for {self.name}: {e}")
            return DocumentMetadata()

    def get_page_fragments(self, page_index: int) -> List[TextFragment]:
        """
        Return the text runs of the page at zero-based page_index.

        Blank characters are kept inside runs, so a run carries its own word
        spaces; runs are split only where glyphs are further apart than the
        x tolerance, such as between table columns.
        """
        page = self._pdf.pages[page_index]
        words = page.extract_words(keep_blank_chars=True) or []
        return words_to_fragments(words, page.height)

    def close(self):
        self._pdf.close()

    def __enter__(self) -> 'DecodedDocument':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class PdfPlumberDecoder:
    """Opens PDF bytes with pdfplumber."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def open(self, data: bytes, name: Optional[str] = None) -> DecodedDocument:
        """
        Open a PDF document from raw bytes.

        Raises:
            PDFReadabilityError: If the bytes cannot be decoded as a PDF
        """
        try:
            pdf = pdfplumber.open(io.BytesIO(data))
        except Exception as e:
            raise PDFReadabilityError(
                f"Failed to open PDF: {e}",
                pdf_path=name,
                original_error=e
            ) from e

        try:
            return DecodedDocument(pdf, name=name, logger=self.logger)
        except Exception as e:
            pdf.close()
            raise PDFReadabilityError(
                f"Failed to read PDF page tree: {e}",
                pdf_path=name,
                original_error=e
            ) from e


class PDFProcessor:
    """
    Main class for processing PDF invoices into structured data.

    This class handles:
    - Reading the PDF file and decoding it
    - Reconstructing text page by page; a failed page is recorded and skipped
    - Running the table extractor or the field extractor over the document text
    """

    def __init__(self, decoder=None, logger: Optional[logging.Logger] = None):
        """
        Initialize PDFProcessor.

        Args:
            decoder: Object with an open(data, name) method returning a
                DecodedDocument-like context manager; defaults to pdfplumber
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self.decoder = decoder or PdfPlumberDecoder(logger=self.logger)
        self.table_extractor = TableExtractor(logger=self.logger)
        self.field_extractor = FieldExtractor(logger=self.logger)

    def process_pdf(self, pdf_path: Union[str, Path],
                    mode: ExtractionMode = ExtractionMode.TABLE) -> DocumentResult:
        """
        Process a PDF file and extract line items or fields.

        Args:
            pdf_path: Path to the PDF file
            mode: Which extractor to run over the document text

        Returns:
            DocumentResult for the document

        Raises:
            PDFReadabilityError: If the file cannot be read or decoded
        """
        pdf_path = Path(pdf_path)
        data = self._read_pdf_bytes(pdf_path)
        return self.process_bytes(data, pdf_path.name, mode)

    def process_bytes(self, data: bytes, name: str,
                      mode: ExtractionMode = ExtractionMode.TABLE) -> DocumentResult:
        """Process an in-memory PDF document identified by name."""
        self.logger.info(f"Starting PDF processing for: {name}")

        with self.decoder.open(data, name) as document:
            page_count = document.page_count
            metadata = document.metadata
            pages = self.extract_pages(document, name)

        result = DocumentResult(
            name=name,
            mode=mode,
            pages=pages,
            page_count=page_count,
            metadata=metadata
        )

        full_text = result.document_text.full_text
        if mode is ExtractionMode.TABLE:
            result.line_items = self.table_extractor.extract(full_text)
            self.logger.info(f"Extracted {len(result.line_items)} line items from {name}")
        else:
            result.fields = self.field_extractor.extract(full_text)
            self.logger.info(f"Extracted fields from {name}: {result.fields.to_dict()}")

        return result

    def extract_document_text(self, pdf_path: Union[str, Path]) -> DocumentText:
        """Decode a PDF file and return its reconstructed page texts."""
        pdf_path = Path(pdf_path)
        data = self._read_pdf_bytes(pdf_path)
        with self.decoder.open(data, pdf_path.name) as document:
            return DocumentText(self.extract_pages(document, pdf_path.name))

    def extract_pages(self, document, name: Optional[str] = None) -> List[PageText]:
        """
        Reconstruct text for every page of an opened document.

        Every page produces a PageText; a page that fails is recorded with
        its error and empty text, and the remaining pages are still processed.
        """
        pages: List[PageText] = []
        for page_number in range(1, document.page_count + 1):
            try:
                pages.append(self._extract_page(document, page_number, name))
            except TextExtractionError as e:
                self.logger.error(f"Failed to extract text from page {page_number} of {name}: {e.reason}")
                pages.append(PageText(page_number=page_number, text="", error=e.reason))
        return pages

    def _extract_page(self, document, page_number: int, name: Optional[str]) -> PageText:
        try:
            fragments = document.get_page_fragments(page_number - 1)
            text = reconstruct_page_text(fragments)
        except Exception as e:
            raise TextExtractionError(
                f"Error extracting text from page {page_number}: {e}",
                pdf_path=name,
                page_number=page_number,
                original_error=e
            ) from e

        if text:
            self.logger.debug(f"Page {page_number}: extracted {len(text)} characters")
        else:
            self.logger.warning(f"Page {page_number}: no text extracted")
        return PageText(page_number=page_number, text=text)

    def _read_pdf_bytes(self, pdf_path: Path) -> bytes:
        """
        Read the raw bytes of a PDF file.

        Raises:
            PDFReadabilityError: If the file is missing or unreadable
        """
        if not pdf_path.exists():
            raise PDFReadabilityError(f"PDF file not found: {pdf_path}", pdf_path=str(pdf_path))
        if not pdf_path.is_file():
            raise PDFReadabilityError(f"Path is not a file: {pdf_path}", pdf_path=str(pdf_path))
        try:
            return pdf_path.read_bytes()
        except OSError as e:
            raise PDFReadabilityError(
                f"Error accessing PDF: {e}",
                pdf_path=str(pdf_path),
                original_error=e
            ) from e


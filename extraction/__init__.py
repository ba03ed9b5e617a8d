"""
Invoice text extraction.

This package reconstructs page text from positioned PDF text fragments
and heuristically recovers either a table of line items or a small set of
scalar invoice fields from it.
"""

from .models import (
    TextFragment,
    PageText,
    DocumentText,
    DocumentMetadata,
    LineItem,
    FieldSet,
    DocumentResult,
    BatchResult,
    ExtractionMode,
    calculate_total
)
from .exceptions import (
    PDFProcessingError,
    FileValidationError,
    PDFReadabilityError,
    TextExtractionError
)
from .line_reconstructor import reconstruct_page_text
from .table_extractor import TableExtractor, extract_table
from .field_extractor import FieldExtractor, extract_fields
from .field_form import FieldSource, TrackedField, InvoiceForm
from .pdf_processor import PDFProcessor, PdfPlumberDecoder
from .integration import ExtractionSession, validate_pdf_file
from .config import ExtractionConfig

__all__ = [
    'TextFragment',
    'PageText',
    'DocumentText',
    'DocumentMetadata',
    'LineItem',
    'FieldSet',
    'DocumentResult',
    'BatchResult',
    'ExtractionMode',
    'calculate_total',
    'PDFProcessingError',
    'FileValidationError',
    'PDFReadabilityError',
    'TextExtractionError',
    'reconstruct_page_text',
    'TableExtractor',
    'extract_table',
    'FieldExtractor',
    'extract_fields',
    'FieldSource',
    'TrackedField',
    'InvoiceForm',
    'PDFProcessor',
    'PdfPlumberDecoder',
    'ExtractionSession',
    'validate_pdf_file',
    'ExtractionConfig'
]

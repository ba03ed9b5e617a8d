"""
Custom exceptions for PDF text extraction operations.

This module defines the exception classes raised while turning uploaded
PDF documents into page text. Extraction misses (no table header, no
field match) are not errors and never raise.
"""

from typing import Optional, Dict, Any


class PDFProcessingError(Exception):
    """Base exception for all PDF processing errors."""

    def __init__(self, message: str, pdf_path: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.pdf_path = pdf_path
        self.details = details or {}

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.pdf_path:
            base_msg = f"{base_msg} (PDF: {self.pdf_path})"
        return base_msg

    @property
    def reason(self) -> str:
        """The bare message, without the document suffix."""
        return super().__str__()


class FileValidationError(PDFProcessingError):
    """Raised when a file is rejected before any decoding is attempted."""

    def __init__(self, message: str, pdf_path: Optional[str] = None,
                 file_size: Optional[int] = None):
        super().__init__(message, pdf_path)
        self.file_size = file_size
        if file_size is not None:
            self.details['file_size'] = file_size


class PDFReadabilityError(PDFProcessingError):
    """Raised when the decoder cannot open a document at all."""

    def __init__(self, message: str, pdf_path: Optional[str] = None,
                 original_error: Optional[Exception] = None):
        super().__init__(message, pdf_path)
        self.original_error = original_error
        if original_error:
            self.details['original_error'] = str(original_error)
            self.details['error_type'] = type(original_error).__name__


class TextExtractionError(PDFProcessingError):
    """Raised when text cannot be produced for a single page."""

    def __init__(self, message: str, pdf_path: Optional[str] = None,
                 page_number: Optional[int] = None,
                 original_error: Optional[Exception] = None):
        super().__init__(message, pdf_path)
        self.page_number = page_number
        self.original_error = original_error

        if page_number is not None:
            self.details['page_number'] = page_number
        if original_error:
            self.details['error_type'] = type(original_error).__name__

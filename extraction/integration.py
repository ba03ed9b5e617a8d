"""
Batch orchestration for uploaded invoice PDFs.

This module validates uploaded files, processes them one at a time with
the PDFProcessor and collects per-document results and per-file errors.
A failure in one document never stops the rest of the batch.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .config import ExtractionConfig
from .exceptions import FileValidationError, PDFProcessingError
from .models import BatchResult, DocumentResult, ExtractionMode
from .pdf_processor import PDFProcessor


def validate_pdf_file(pdf_path: Union[str, Path], max_file_size: int) -> Path:
    """
    Check that a file looks like a PDF and is not too large.

    Args:
        pdf_path: Path to the uploaded file
        max_file_size: Largest accepted size in bytes

    Returns:
        The validated Path

    Raises:
        FileValidationError: If the file is not a PDF or exceeds the size limit
    """
    path = Path(pdf_path)
    if path.suffix.lower() != '.pdf':
        raise FileValidationError("Only PDF files are allowed", pdf_path=str(path))

    try:
        size = path.stat().st_size
    except OSError as e:
        raise FileValidationError(f"Cannot read file: {e}", pdf_path=str(path)) from e

    if size > max_file_size:
        raise FileValidationError(
            f"PDF size exceeds {max_file_size / (1024 * 1024):.1f}MB limit",
            pdf_path=str(path),
            file_size=size
        )
    return path


class ExtractionSession:
    """
    Holds the results of the most recent upload batch.

    Each call to process_files() starts from a clean slate: results from
    an earlier batch are discarded before any new file is touched.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None,
                 processor: Optional[PDFProcessor] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = config or ExtractionConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.processor = processor or PDFProcessor(logger=self.logger)
        self.result = BatchResult()

    @property
    def documents(self) -> List[DocumentResult]:
        return self.result.documents

    def clear(self):
        """Discard all results from the previous batch."""
        self.result = BatchResult()

    def process_files(self, paths: Iterable[Union[str, Path]],
                      mode: Optional[ExtractionMode] = None) -> BatchResult:
        """
        Validate and process a batch of files sequentially.

        Args:
            paths: Files selected for upload
            mode: Extractor to run; defaults to the configured mode

        Returns:
            BatchResult with one DocumentResult per successfully decoded file
            and one {file, error} entry per rejected or failed file
        """
        self.clear()
        mode = mode or self.config.mode

        valid_files = []
        for path in paths:
            try:
                valid_files.append(validate_pdf_file(path, self.config.max_file_size))
            except FileValidationError as e:
                self.logger.warning(f"Rejected {Path(path).name}: {e.reason}")
                self.result.add_error(Path(path).name, e.reason)

        self.logger.info(f"Found {len(valid_files)} PDF files to process")

        for pdf_file in valid_files:
            try:
                document = self.processor.process_pdf(pdf_file, mode)
            except PDFProcessingError as e:
                self.logger.error(f"Failed to process {pdf_file}: {e}")
                self.result.add_error(pdf_file.name, f"PDF processing failed: {e.reason}")
                continue
            except Exception as e:
                self.logger.exception(f"Unexpected error while processing {pdf_file}")
                self.result.add_error(pdf_file.name, f"PDF processing failed: {e}")
                continue
            self.result.documents.append(document)

        self.logger.info(
            f"Batch processing complete: {len(self.result.documents)} successful, "
            f"{len(self.result.errors)} failed"
        )
        return self.result

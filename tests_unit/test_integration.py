"""
Unit tests for batch processing of uploaded files.
"""

import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from extraction.config import ExtractionConfig
from extraction.exceptions import FileValidationError, PDFReadabilityError
from extraction.integration import ExtractionSession, validate_pdf_file
from extraction.models import DocumentMetadata, ExtractionMode, TextFragment
from extraction.pdf_processor import PDFProcessor


class NamedDecoder:
    """Fake decoder: every document has one page holding its own file name."""

    def __init__(self, broken=()):
        self.broken = set(broken)
        self.opened = []

    def open(self, data, name=None):
        self.opened.append(name)
        if name in self.broken:
            raise PDFReadabilityError("Failed to open PDF: boom", pdf_path=name)
        return _OnePageDocument(f"Consulting for {name}  150.00")


class _OnePageDocument:
    page_count = 1
    metadata = DocumentMetadata()

    def __init__(self, text):
        self.text = text

    def get_page_fragments(self, page_index):
        return [TextFragment(text=self.text, baseline_x=0, baseline_y=700, width=100, height=10)]

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return None


class TestValidatePdfFile(unittest.TestCase):
    """Test cases for upload validation."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_accepts_pdf(self):
        pdf = self.temp_dir / "invoice.PDF"
        pdf.write_bytes(b"%PDF")
        self.assertEqual(validate_pdf_file(pdf, 1024), pdf)

    def test_rejects_other_extensions(self):
        txt = self.temp_dir / "notes.txt"
        txt.write_text("hello")

        with self.assertRaises(FileValidationError) as context:
            validate_pdf_file(txt, 1024)

        self.assertEqual(context.exception.reason, "Only PDF files are allowed")

    def test_rejects_oversized_file(self):
        pdf = self.temp_dir / "big.pdf"
        pdf.write_bytes(b"0" * 110000)

        with self.assertRaises(FileValidationError) as context:
            validate_pdf_file(pdf, 1024 * 1024 // 10)  # 0.1 MB

        self.assertEqual(context.exception.reason, "PDF size exceeds 0.1MB limit")
        self.assertEqual(context.exception.file_size, 110000)

    def test_missing_file(self):
        with self.assertRaises(FileValidationError) as context:
            validate_pdf_file(self.temp_dir / "missing.pdf", 1024)

        self.assertIn("Cannot read file", context.exception.reason)


class TestExtractionSession(unittest.TestCase):
    """Test cases for sequential batch processing."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        for name in ("a.pdf", "b.pdf", "broken.pdf"):
            (self.temp_dir / name).write_bytes(b"%PDF")
        (self.temp_dir / "notes.txt").write_text("not a pdf")

        self.decoder = NamedDecoder(broken={"broken.pdf"})
        self.session = ExtractionSession(
            config=ExtractionConfig(),
            processor=PDFProcessor(decoder=self.decoder)
        )

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def _paths(self, *names):
        return [self.temp_dir / name for name in names]

    def test_processes_files_in_order(self):
        result = self.session.process_files(self._paths("b.pdf", "a.pdf"))

        self.assertEqual([d.name for d in result.documents], ["b.pdf", "a.pdf"])
        self.assertEqual(self.decoder.opened, ["b.pdf", "a.pdf"])
        self.assertEqual(result.documents[0].line_items[0].description, "Consulting for b.pdf")
        self.assertEqual(result.errors, [])

    def test_failures_do_not_stop_the_batch(self):
        result = self.session.process_files(self._paths("a.pdf", "notes.txt", "broken.pdf", "b.pdf"))

        self.assertEqual([d.name for d in result.documents], ["a.pdf", "b.pdf"])
        self.assertEqual(result.errors, [
            {'file': 'notes.txt', 'error': 'Only PDF files are allowed'},
            {'file': 'broken.pdf', 'error': 'PDF processing failed: Failed to open PDF: boom'},
        ])

    def test_unexpected_extractor_error_does_not_stop_the_batch(self):
        extractor = self.session.processor.table_extractor
        real_extract = extractor.extract

        def extract(text):
            if "a.pdf" in text:
                raise RuntimeError("unexpected token")
            return real_extract(text)

        with patch.object(extractor, 'extract', side_effect=extract):
            result = self.session.process_files(self._paths("a.pdf", "b.pdf"))

        self.assertEqual([d.name for d in result.documents], ["b.pdf"])
        self.assertEqual(result.errors, [
            {'file': 'a.pdf', 'error': 'PDF processing failed: unexpected token'},
        ])

    def test_new_batch_clears_previous_results(self):
        self.session.process_files(self._paths("a.pdf", "broken.pdf"))
        result = self.session.process_files(self._paths("b.pdf"))

        self.assertEqual([d.name for d in self.session.documents], ["b.pdf"])
        self.assertEqual(result.errors, [])

    def test_mode_defaults_to_configuration(self):
        session = ExtractionSession(
            config=ExtractionConfig(mode=ExtractionMode.FIELDS),
            processor=PDFProcessor(decoder=self.decoder)
        )

        result = session.process_files(self._paths("a.pdf"))

        self.assertIs(result.documents[0].mode, ExtractionMode.FIELDS)
        self.assertEqual(result.documents[0].fields.price, "150.00")
        self.assertEqual(result.documents[0].line_items, [])

    def test_explicit_mode_wins(self):
        result = self.session.process_files(self._paths("a.pdf"), ExtractionMode.FIELDS)
        self.assertIs(result.documents[0].mode, ExtractionMode.FIELDS)


if __name__ == '__main__':
    unittest.main()

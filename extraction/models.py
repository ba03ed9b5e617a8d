"""
Data models for extracted document text and invoice data.

This module defines the value types passed between the decoder adapter,
the line reconstructor and the two extractors: positioned text fragments,
per-page text, the joined document text, table line items and the scalar
invoice fields.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import List, Optional, Dict, Any


class ExtractionMode(Enum):
    """Which extractor runs over a document's text."""
    TABLE = "table"
    FIELDS = "fields"

    @classmethod
    def from_value(cls, value: str) -> 'ExtractionMode':
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ', '.join(mode.value for mode in cls)
            raise ValueError(f"Unknown extraction mode '{value}'. Supported modes: {valid}")


@dataclass(frozen=True)
class TextFragment:
    """
    One positioned run of text as reported by the page decoder.

    Attributes:
        text: String content, appended verbatim during reconstruction
        baseline_x: Horizontal baseline position (left edge)
        baseline_y: Vertical baseline position; larger values are higher on the page
        width: Horizontal extent of the run
        height: Glyph height, used to derive line and paragraph thresholds
    """
    text: str
    baseline_x: float
    baseline_y: float
    width: float = 0.0
    height: Optional[float] = None


@dataclass(frozen=True)
class PageText:
    """Reconstructed text of a single page, or the reason it could not be produced."""
    page_number: int
    text: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'page_number': self.page_number,
            'text': self.text,
            'error': self.error
        }


@dataclass(frozen=True)
class DocumentText:
    """Ordered page texts of one document."""
    pages: List[PageText] = field(default_factory=list)

    @property
    def full_text(self) -> str:
        """All page texts joined with a line separator; failed pages contribute nothing."""
        return "\n".join(page.text or "" for page in self.pages)

    @property
    def failed_pages(self) -> List[PageText]:
        return [page for page in self.pages if not page.ok]


@dataclass
class DocumentMetadata:
    """Document information dictionary as reported by the decoder."""
    title: str = "Unknown"
    author: str = "Unknown"
    subject: str = ""
    creator: str = ""
    producer: str = ""
    creation_date: str = ""
    modification_date: str = ""

    @classmethod
    def from_info(cls, info: Optional[Dict[str, Any]]) -> 'DocumentMetadata':
        """Build metadata from a raw PDF info dictionary (Title, Author, ...)."""
        info = info or {}

        def _value(key: str, default: str) -> str:
            value = info.get(key)
            if value is None or value == "":
                return default
            if isinstance(value, bytes):
                return value.decode('utf-8', errors='replace')
            return str(value)

        return cls(
            title=_value('Title', "Unknown"),
            author=_value('Author', "Unknown"),
            subject=_value('Subject', ""),
            creator=_value('Creator', ""),
            producer=_value('Producer', ""),
            creation_date=_value('CreationDate', ""),
            modification_date=_value('ModDate', "")
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'author': self.author,
            'subject': self.subject,
            'creator': self.creator,
            'producer': self.producer,
            'creation_date': self.creation_date,
            'modification_date': self.modification_date
        }


@dataclass
class LineItem:
    """
    Represents a single line item recovered from an invoice table.

    Attributes:
        id: 1-based sequence number within one extraction run
        description: Item description (trimmed, at most 150 characters)
        quantity: Quantity, rounded to 2 decimal places
        price: Unit price formatted with 2 decimal places (e.g. "10.00")
    """
    id: int
    description: str
    quantity: Decimal = Decimal('1')
    price: str = ""

    def __post_init__(self):
        """Normalize quantity to a Decimal."""
        if not isinstance(self.quantity, Decimal):
            try:
                self.quantity = Decimal(str(self.quantity))
            except (InvalidOperation, ValueError):
                self.quantity = Decimal('1')

    @property
    def total(self) -> Decimal:
        """Line total as price times quantity."""
        return _to_decimal(self.price, Decimal('0')) * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        """Convert line item to dictionary for serialization."""
        return {
            'id': self.id,
            'description': self.description,
            'quantity': float(self.quantity),
            'price': self.price
        }


@dataclass
class FieldSet:
    """
    Scalar invoice fields. An empty string means the field was not found.

    Attributes:
        invoice_no: Invoice number, upper-cased
        item: Item or service description, at most 100 characters
        price: Amount formatted with 2 decimal places
    """
    invoice_no: str = ""
    item: str = ""
    price: str = ""

    def is_empty(self) -> bool:
        return not (self.invoice_no or self.item or self.price)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'invoice_no': self.invoice_no,
            'item': self.item,
            'price': self.price
        }


@dataclass
class DocumentResult:
    """Everything derived from one document in one extraction run."""
    name: str
    mode: ExtractionMode
    pages: List[PageText] = field(default_factory=list)
    page_count: int = 0
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    line_items: List[LineItem] = field(default_factory=list)
    fields: FieldSet = field(default_factory=FieldSet)
    extraction_timestamp: Optional[datetime] = None

    def __post_init__(self):
        """Set extraction timestamp if not provided."""
        if self.extraction_timestamp is None:
            self.extraction_timestamp = datetime.now()

    @property
    def document_text(self) -> DocumentText:
        return DocumentText(self.pages)

    @property
    def auto_detected(self) -> bool:
        """True when the active extractor recovered anything at all."""
        if self.mode is ExtractionMode.TABLE:
            return len(self.line_items) > 0
        return not self.fields.is_empty()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'mode': self.mode.value,
            'page_count': self.page_count,
            'metadata': self.metadata.to_dict(),
            'pages': [page.to_dict() for page in self.pages],
            'line_items': [item.to_dict() for item in self.line_items],
            'fields': self.fields.to_dict(),
            'total': float(calculate_total(self.line_items)),
            'auto_detected': self.auto_detected,
            'extraction_timestamp': self.extraction_timestamp.isoformat() if self.extraction_timestamp else None
        }


@dataclass
class BatchResult:
    """Results of one upload batch: per-document results plus per-file errors."""
    documents: List[DocumentResult] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)

    def add_error(self, file_name: str, message: str):
        self.errors.append({'file': file_name, 'error': message})

    @property
    def auto_detected(self) -> bool:
        return any(document.auto_detected for document in self.documents)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'documents': [document.to_dict() for document in self.documents],
            'errors': list(self.errors),
            'auto_detected': self.auto_detected
        }


def _to_decimal(value: Any, default: Decimal) -> Decimal:
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return default


def calculate_total(items: List[LineItem]) -> Decimal:
    """
    Sum price times quantity over a list of line items.

    An unparsable price counts as zero and an unparsable quantity as one.
    Quantities are truncated to whole units, as the review grid shows them.
    """
    total = Decimal('0')
    for item in items:
        price = _to_decimal(item.price, Decimal('0'))
        if not price.is_finite():
            price = Decimal('0')
        quantity = _to_decimal(item.quantity, Decimal('1'))
        if not quantity.is_finite() or int(quantity) == 0:
            quantity = Decimal('1')
        total += price * int(quantity)
    return total

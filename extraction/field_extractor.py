"""
Scalar invoice field extraction.

Finds the invoice number, an item/service description and the amount in
document text. Each field has its own ordered rule table; the first rule
with an acceptable match anywhere in the text decides the field, and the
three fields are looked up independently of each other.
"""

import logging
import re
from typing import Match, Optional

from .models import FieldSet
from .numeric import parse_number, round_two_places, format_amount
from .rules import Rule, RuleTable


MIN_INVOICE_NUMBER_LENGTH = 3
MIN_ITEM_LENGTH = 4
MAX_ITEM_LENGTH = 100

CURRENCY_SYMBOLS = r'[$€£¥₹]'
CURRENCY_CODES = r'(?:USD|EUR|GBP|INR|JPY|CAD|AUD|CHF)'
NUMBER_LABEL = r'(?:no\.?|number|num\.?|#)'
TOKEN_WITH_DIGIT = r'([A-Z0-9/\-]*\d[A-Z0-9/\-]*)'


def _invoice_number(match: Match) -> Optional[str]:
    value = match.group(1).strip()
    if len(value) < MIN_INVOICE_NUMBER_LENGTH:
        return None
    return value.upper()


def _item_description(match: Match) -> Optional[str]:
    value = match.group(1).strip()
    if len(value) < MIN_ITEM_LENGTH:
        return None
    value = re.sub(r'[^\w\s.,-]', '', value).strip()
    if len(value) < MIN_ITEM_LENGTH:
        return None
    return value[:MAX_ITEM_LENGTH].rstrip()


def _amount(match: Match) -> Optional[str]:
    value = parse_number(match.group(1))
    if value is None or round_two_places(value) <= 0:
        return None
    return format_amount(value)


INVOICE_NUMBER_RULES = RuleTable([
    Rule.compile(
        'invoice_label',
        rf'\b(?:invoice|inv)\b\.?\s*{NUMBER_LABEL}?\s*[:#.]?\s*{TOKEN_WITH_DIGIT}',
        _invoice_number,
        re.IGNORECASE
    ),
    Rule.compile(
        'reference_label',
        rf'\b(?:reference|ref)\b\.?\s*{NUMBER_LABEL}?\s*[:#.]?\s*{TOKEN_WITH_DIGIT}',
        _invoice_number,
        re.IGNORECASE
    ),
    Rule.compile('hash_token', r'#\s*([A-Z0-9][A-Z0-9/\-]*)', _invoice_number, re.IGNORECASE),
])

ITEM_RULES = RuleTable([
    Rule.compile(
        'item_label',
        r'\b(?:description|item|product|service)s?\b[ \t]*(?:name)?[ \t]*[:\-][ \t]*([^\n]+)',
        _item_description,
        re.IGNORECASE
    ),
    Rule.compile('purpose_label', r'\b(?:for|regarding)\b[ \t]*:[ \t]*([^\n]+)', _item_description, re.IGNORECASE),
    Rule.compile(
        'goods_label',
        r'\b(?:goods|services)\b[ \t]*(?:provided|supplied|rendered|delivered)?[ \t]*:[ \t]*([^\n]+)',
        _item_description,
        re.IGNORECASE
    ),
])

PRICE_RULES = RuleTable([
    Rule.compile(
        'amount_label',
        rf'\b(?:total|amount|price|cost|sum|pay|payment)\b[^\n0-9$€£¥₹]{{0,30}}?'
        rf'(?:{CURRENCY_SYMBOLS}\s*)?([0-9][0-9,]*(?:\.[0-9]+)?)',
        _amount,
        re.IGNORECASE
    ),
    Rule.compile('currency_symbol', rf'{CURRENCY_SYMBOLS}\s*([0-9][0-9,]*(?:\.[0-9]+)?)', _amount),
    Rule.compile('decimal_amount', rf'\b([0-9][0-9,]*\.[0-9]{{2}})\b(?:\s*{CURRENCY_CODES})?', _amount),
])


class FieldExtractor:
    """
    Heuristic extractor for invoice number, item and amount.

    Extraction is read-only: the same text always yields the same FieldSet.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def extract(self, document_text: str) -> FieldSet:
        """
        Extract all three fields from document text.

        Args:
            document_text: Concatenated text of all pages

        Returns:
            FieldSet with an empty string for every field not found
        """
        text = document_text or ""
        fields = FieldSet(
            invoice_no=self._first_value('invoice_no', INVOICE_NUMBER_RULES, text),
            item=self._first_value('item', ITEM_RULES, text),
            price=self._first_value('price', PRICE_RULES, text)
        )
        self.logger.debug(f"Extracted fields: {fields.to_dict()}")
        return fields

    def extract_invoice_number(self, document_text: str) -> str:
        return self._first_value('invoice_no', INVOICE_NUMBER_RULES, document_text or "")

    def extract_item(self, document_text: str) -> str:
        return self._first_value('item', ITEM_RULES, document_text or "")

    def extract_price(self, document_text: str) -> str:
        return self._first_value('price', PRICE_RULES, document_text or "")

    def _first_value(self, field_name: str, rules: RuleTable, text: str) -> str:
        found = rules.first_accepted(text)
        if found is None:
            return ""
        rule, value = found
        self.logger.debug(f"Field '{field_name}' matched rule '{rule.name}'")
        return value


def extract_fields(document_text: str) -> FieldSet:
    """Extract scalar invoice fields with a default FieldExtractor."""
    return FieldExtractor().extract(document_text)

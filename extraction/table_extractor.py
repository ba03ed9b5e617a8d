"""
Line-item table extraction from reconstructed document text.

This module recovers (description, quantity, unit price) rows from the
newline-delimited text of a whole document. Rows are located by anchoring
on a column header line and a totals/terms footer line, then parsed with
an ordered table of row-shape rules. When no anchored row survives, a
looser scan over the whole text is used instead. Detected items finally
have their quantities refined from the description and are deduplicated.
"""

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Match, Optional, Pattern, Tuple

from .models import LineItem
from .numeric import parse_number, round_two_places, format_amount
from .rules import Rule, RuleTable


MAX_PLAUSIBLE_QUANTITY = Decimal('1000')
MAX_DESCRIPTION_LENGTH = 150
FALLBACK_ITEM_LIMIT = 10

# Descriptions must be longer than these many characters
TABLE_DESCRIPTION_FLOOR = 2
FALLBACK_DESCRIPTION_FLOOR = 3

QUANTITY = r'[0-9]+(?:\.[0-9]+)?'
AMOUNT = r'[0-9,]+\.?[0-9]*'


@dataclass
class RowCandidate:
    """Raw values captured by a row rule, before validation and cleanup."""
    description: str
    quantity: Optional[Decimal]
    price: Optional[Decimal]


@dataclass(frozen=True)
class TableBounds:
    """Half-open line range [start, end) holding the table rows."""
    header_index: int
    start: int
    end: int


def _quantity_or_one(token: Optional[str]) -> Decimal:
    # A missing, unparsable or zero quantity means one unit
    return parse_number(token) or Decimal('1')


def _itemized_row(match: Match) -> RowCandidate:
    """Description, quantity, unit price and line total."""
    quantity = _quantity_or_one(match.group(2))
    unit_price = parse_number(match.group(3))
    total_price = parse_number(match.group(4))

    price = None
    if unit_price is not None and unit_price > 0:
        price = unit_price
    elif total_price is not None and total_price > 0:
        price = total_price / quantity
    return RowCandidate(match.group(1), quantity, price)


def _quantified_row(match: Match) -> RowCandidate:
    """Description, quantity and price; a missing quantity counts as one."""
    return RowCandidate(match.group(1), _quantity_or_one(match.group(2)), parse_number(match.group(3)))


def _priced_row(match: Match) -> RowCandidate:
    """Description and price only; quantity defaults to one."""
    return RowCandidate(match.group(1), Decimal('1'), parse_number(match.group(2)))


TABLE_ROW_RULES = RuleTable([
    Rule.compile('itemized', rf'^(.{{3,}}?)\s+({QUANTITY})\s+({AMOUNT})\s+({AMOUNT})\s*$', _itemized_row),
    Rule.compile('quantity_price', rf'^(.{{3,}}?)\s+({QUANTITY})\s+({AMOUNT})\s*$', _quantified_row),
    Rule.compile('decimal_quantity', rf'^(.{{3,}}?)\s+([0-9]*\.?[0-9]+)\s+({AMOUNT})\s*$', _quantified_row),
    Rule.compile('indexed', rf'^(\d+\.?\s+.{{3,}}?)\s+({QUANTITY})\s+({AMOUNT})\s*$', _quantified_row),
    Rule.compile(
        'unit_quantity',
        rf'^(.{{3,}}?)\s+({QUANTITY})\s*'
        r'(?:each|pcs?|units?|items?|kg|lbs?|hrs?|hours?|days?|boxes?|sets?)?'
        rf'\s+({AMOUNT})\s*$',
        _quantified_row,
        re.IGNORECASE
    ),
    Rule.compile('price_only', r'^(.{5,}?)\s+([0-9,]+\.[0-9]{2})\s*$', _priced_row),
    Rule.compile('separated', rf'^(.{{3,}}?)\s*[-:]\s*({AMOUNT})\s*$', _priced_row),
    Rule.compile('spaced', rf'^(.{{3,}}?)\s{{3,}}({AMOUNT})\s*$', _priced_row),
    Rule.compile('tabbed', rf'^(.{{3,}}?)\t+({QUANTITY})\t+({AMOUNT})\t*.*$', _quantified_row),
    Rule.compile('piped', rf'^(.{{3,}}?)\|({QUANTITY})\|({AMOUNT})\|?.*$', _quantified_row),
])

HEADER_PATTERNS = [
    re.compile(r'(?:description|item|product|service).*?(?:qty|quantity).*?(?:price|amount|rate|cost)', re.IGNORECASE),
    re.compile(r'(?:item|product).*?(?:price|amount|cost)', re.IGNORECASE),
    re.compile(r'(?:description|service).*?(?:amount|total|price)', re.IGNORECASE),
    re.compile(r'(?:no|#).*?(?:description|item).*?(?:price|amount)', re.IGNORECASE),
]

FOOTER_PATTERN = re.compile(
    r'(?:total|subtotal|tax|vat|grand total|amount due|balance|thank you|terms)',
    re.IGNORECASE
)

SEPARATOR_LINE = re.compile(r'^[-=\s]+$')

TABLE_STOPLIST = re.compile(
    r'^(?:total|subtotal|tax|vat|discount|shipping|fee|charge|amount|due|balance|paid)$',
    re.IGNORECASE
)

FALLBACK_STOPLIST = re.compile(
    r'^(?:total|subtotal|tax|vat|discount|shipping|fee|charge|amount|due|balance|paid|invoice|date)$',
    re.IGNORECASE
)


def _optional_quantity_row(match: Match) -> RowCandidate:
    return RowCandidate(match.group(1), _quantity_or_one(match.group(2)), parse_number(match.group(3)))


# Applied to the whole text. The numbers of the first two rules may sit on
# the lines after their description, as when a price is drawn lower than
# its label; the separator rules stay within a single line.
FALLBACK_RULES = RuleTable([
    Rule.compile(
        'quantity_price',
        rf'^(.+?)\s+({QUANTITY})\s+([0-9,]+\.[0-9]{{2}})[ \t]*$',
        _quantified_row,
        re.MULTILINE
    ),
    Rule.compile('price_only', r'^(.+?)\s+([0-9,]+\.[0-9]{2})[ \t]*$', _priced_row, re.MULTILINE),
    Rule.compile(
        'dash_separated',
        rf'^(.+?)[ \t]*[-–—][ \t]*(?:({QUANTITY})[ \t]+)?\$?({AMOUNT})[ \t]*$',
        _optional_quantity_row,
        re.MULTILINE
    ),
    Rule.compile(
        'colon_separated',
        rf'^(.+?)[ \t]*:[ \t]*(?:({QUANTITY})[ \t]+)?\$?({AMOUNT})[ \t]*$',
        _optional_quantity_row,
        re.MULTILINE
    ),
    Rule.compile('tab_separated', rf'^(.+?)\t+({QUANTITY})\t+({AMOUNT})', _quantified_row, re.MULTILINE),
])


def _quantity_match(match: Match) -> Optional[Tuple[Decimal, Match]]:
    value = parse_number(match.group(1))
    if value is None or not (0 < value <= MAX_PLAUSIBLE_QUANTITY):
        return None
    return value, match


# "5 kg" inside a product name unrelated to quantity still overwrites the
# parsed quantity; this is a known false-positive source of the heuristic.
QUANTITY_INDICATOR_RULES = RuleTable([
    Rule.compile('multiplier', r'(\d+(?:\.\d+)?)\s*(?:x|times|each|pcs?|pieces?|units?|items?)',
                 _quantity_match, re.IGNORECASE),
    Rule.compile('labelled', r'(?:qty|quantity|count)[\s:]*(\d+(?:\.\d+)?)', _quantity_match, re.IGNORECASE),
    Rule.compile('weight', r'(\d+(?:\.\d+)?)\s*(?:kg|lbs?|pounds?|oz|ounces?|g|grams?)',
                 _quantity_match, re.IGNORECASE),
    Rule.compile('duration', r'(\d+(?:\.\d+)?)\s*(?:hrs?|hours?|days?|weeks?|months?)',
                 _quantity_match, re.IGNORECASE),
    Rule.compile('packaging', r'(\d+(?:\.\d+)?)\s*(?:sets?|boxes?|packs?|bottles?|cans?)',
                 _quantity_match, re.IGNORECASE),
])


def clean_description(description: str) -> str:
    """Strip a leading "N." index and any character outside word, space and .,/-"""
    description = re.sub(r'^\d+\.?\s*', '', description)
    description = re.sub(r'[^\w\s.,/-]', '', description)
    return description.strip()


class TableExtractor:
    """
    Heuristic line-item extractor over newline-delimited document text.

    The extractor keeps no state between calls; every call to extract()
    is an independent run producing freshly numbered items.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def extract(self, document_text: str) -> List[LineItem]:
        """
        Extract line items from full document text.

        Args:
            document_text: Concatenated, newline-delimited text of all pages

        Returns:
            Ordered list of LineItem objects, possibly empty
        """
        lines = self.split_lines(document_text)
        bounds = self.find_table_bounds(lines)

        items: List[LineItem] = []
        if bounds is not None:
            items = self.parse_table_rows(lines[bounds.start:bounds.end])
            self.logger.debug(
                f"Table rows {bounds.start}-{bounds.end} yielded {len(items)} items "
                f"(header: {lines[bounds.header_index]!r})"
            )
        else:
            self.logger.debug("No table header found")

        if not items:
            items = self.fallback_scan(document_text or "")

        if items:
            items = self.refine_quantities(items)

        items = self.deduplicate_items(items)
        return self._renumber(items)

    @staticmethod
    def split_lines(document_text: str) -> List[str]:
        """Split on newlines, trim every line and drop empty ones."""
        if not document_text:
            return []
        return [line.strip() for line in document_text.split('\n') if line.strip()]

    def find_table_bounds(self, lines: List[str]) -> Optional[TableBounds]:
        """
        Locate the header anchor and the footer anchor.

        The table starts on the line after the first header line; it ends
        (exclusive) at the first footer line after that, or at the end of
        the text when no footer follows.
        """
        header_index = None
        for index, line in enumerate(lines):
            if any(pattern.search(line) for pattern in HEADER_PATTERNS):
                header_index = index
                break

        if header_index is None:
            return None

        start = header_index + 1
        end = len(lines)
        for index in range(start, len(lines)):
            if FOOTER_PATTERN.search(lines[index]):
                end = index
                break

        return TableBounds(header_index=header_index, start=start, end=end)

    def parse_table_rows(self, table_lines: List[str]) -> List[LineItem]:
        """Parse each candidate row with the first row rule that matches it."""
        items: List[LineItem] = []
        for line in table_lines:
            if not line or SEPARATOR_LINE.match(line):
                continue

            found = TABLE_ROW_RULES.first_match(line)
            if found is None:
                continue

            rule, match = found
            item = self._build_item(rule.extract(match), TABLE_DESCRIPTION_FLOOR, TABLE_STOPLIST)
            if item is not None:
                self.logger.debug(f"Row rule '{rule.name}' matched: {line!r}")
                items.append(item)
        return self._renumber(items)

    def fallback_scan(self, document_text: str) -> List[LineItem]:
        """
        Scan the whole text with looser rules, keeping at most ten items
        from the first rule that yields anything.
        """
        rule, items = FALLBACK_RULES.collect(
            document_text,
            FALLBACK_ITEM_LIMIT,
            transform=lambda candidate: self._build_item(
                candidate, FALLBACK_DESCRIPTION_FLOOR, FALLBACK_STOPLIST
            )
        )
        if rule is not None:
            self.logger.debug(f"Fallback rule '{rule.name}' yielded {len(items)} items")
        return self._renumber(items)

    def refine_quantities(self, items: List[LineItem]) -> List[LineItem]:
        """
        Overwrite quantities from indicators found in descriptions.

        The first indicator rule whose first match carries a value in
        (0, 1000] sets the quantity, and the matched text is removed from
        the description. A match that would leave the description too
        short is ignored.
        """
        for item in items:
            for rule in QUANTITY_INDICATOR_RULES:
                found = rule.apply(item.description)
                if found is None:
                    continue
                value, match = found
                remaining = (item.description[:match.start()] + item.description[match.end():]).strip()
                remaining = re.sub(r'\s{2,}', ' ', remaining)
                if len(remaining) <= TABLE_DESCRIPTION_FLOOR:
                    continue
                item.quantity = round_two_places(value)
                item.description = remaining
                break
        return items

    @staticmethod
    def deduplicate_items(items: List[LineItem]) -> List[LineItem]:
        """Keep the first item for each case-insensitive description."""
        seen = set()
        unique: List[LineItem] = []
        for item in items:
            key = item.description.lower()
            if key in seen:
                continue
            seen.add(key)
            unique.append(item)
        return unique

    @staticmethod
    def _renumber(items: List[LineItem]) -> List[LineItem]:
        for index, item in enumerate(items, 1):
            item.id = index
        return items

    @staticmethod
    def _build_item(candidate: Optional[RowCandidate], description_floor: int,
                    stoplist: Pattern) -> Optional[LineItem]:
        """
        Validate and normalize a row candidate.

        Returns None when the description is too short or stoplisted, or
        when price or quantity is missing or not positive.
        """
        if candidate is None:
            return None

        description = (candidate.description or "").strip()
        price = candidate.price
        quantity = candidate.quantity

        if len(description) <= description_floor:
            return None
        if price is None or price <= 0:
            return None
        if quantity is None or quantity <= 0:
            return None

        description = clean_description(description)
        if quantity > MAX_PLAUSIBLE_QUANTITY:
            # Most likely a misread price
            quantity = Decimal('1')

        if len(description) <= description_floor or stoplist.match(description):
            return None

        quantity = round_two_places(quantity)
        price = round_two_places(price)
        if quantity <= 0 or price <= 0:
            return None

        return LineItem(
            id=0,
            description=description[:MAX_DESCRIPTION_LENGTH].rstrip(),
            quantity=quantity,
            price=format_amount(price)
        )


def extract_table(document_text: str) -> List[LineItem]:
    """Extract line items from document text with a default TableExtractor."""
    return TableExtractor().extract(document_text)

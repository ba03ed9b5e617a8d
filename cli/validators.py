"""
Input validation utilities for the CLI interface.

This module validates the values a user may type in place of auto-detected
invoice fields, and the output destinations of the extraction commands.
"""

from pathlib import Path
from typing import Union
from decimal import Decimal, InvalidOperation

import click

from cli.exceptions import ValidationError
from extraction.numeric import format_amount, round_two_places


MAX_ITEM_LENGTH = 100


def validate_invoice_number(invoice_no: str) -> str:
    """
    Validate an invoice number entered by the user.

    Args:
        invoice_no: Invoice number to validate

    Returns:
        Stripped, upper-cased invoice number

    Raises:
        ValidationError: If the invoice number is empty
    """
    if not invoice_no or not invoice_no.strip():
        raise ValidationError("Invoice number cannot be empty")
    return invoice_no.strip().upper()


def validate_item(item: str) -> str:
    """
    Validate an item description entered by the user.

    Raises:
        ValidationError: If the description is empty or too long
    """
    if not item or not item.strip():
        raise ValidationError("Item cannot be empty")

    item = item.strip()
    if len(item) > MAX_ITEM_LENGTH:
        raise ValidationError(f"Item cannot exceed {MAX_ITEM_LENGTH} characters")
    return item


def validate_price(price: Union[str, float, Decimal]) -> str:
    """
    Validate a price value and format it with two decimal places.

    Args:
        price: Price value to validate

    Returns:
        Price formatted like extracted prices (e.g. "1250.50")

    Raises:
        ValidationError: If price format is invalid
    """
    if price is None:
        raise ValidationError("Price cannot be None")

    try:
        if isinstance(price, str):
            price_str = price.strip().replace('$', '').replace(',', '')
            decimal_price = Decimal(price_str)
        else:
            decimal_price = Decimal(str(price))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid price format: {price}")

    if not decimal_price.is_finite():
        raise ValidationError(f"Invalid price format: {price}")

    if round_two_places(decimal_price) <= 0:
        raise ValidationError("Price must be positive")

    return format_amount(decimal_price)


def validate_output_file(file_path: Union[str, Path]) -> Path:
    """
    Validate an output file path.

    Raises:
        ValidationError: If the parent directory is missing or the path is a directory
    """
    if not file_path:
        raise ValidationError("Output path cannot be empty")

    path = Path(file_path)
    if path.exists() and path.is_dir():
        raise ValidationError(f"Output path is a directory: {path}")

    if not path.resolve().parent.exists():
        raise ValidationError(f"Directory does not exist: {path.resolve().parent}")

    return path


# Click parameter types for use with Click commands
class InvoiceNumberType(click.ParamType):
    """Click parameter type for invoice numbers."""
    name = "invoice_no"

    def convert(self, value, param, ctx):
        try:
            return validate_invoice_number(value)
        except ValidationError as e:
            self.fail(str(e), param, ctx)


class ItemType(click.ParamType):
    """Click parameter type for item descriptions."""
    name = "item"

    def convert(self, value, param, ctx):
        try:
            return validate_item(value)
        except ValidationError as e:
            self.fail(str(e), param, ctx)


class PriceType(click.ParamType):
    """Click parameter type for prices."""
    name = "price"

    def convert(self, value, param, ctx):
        try:
            return validate_price(value)
        except ValidationError as e:
            self.fail(str(e), param, ctx)


class OutputFileType(click.ParamType):
    """Click parameter type for output files."""
    name = "output"

    def convert(self, value, param, ctx):
        try:
            return validate_output_file(value)
        except ValidationError as e:
            self.fail(str(e), param, ctx)


# Create instances for use in Click commands
INVOICE_NUMBER = InvoiceNumberType()
ITEM = ItemType()
PRICE = PriceType()
OUTPUT_FILE = OutputFileType()

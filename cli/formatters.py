"""
Output formatting utilities for the CLI interface.

This module provides functions for setting up logging and for displaying
extraction results in various formats (table, CSV, JSON). Line item grids
are rendered with rich when written to the terminal and with tabulate when
written to a file.
"""

import logging
import json
import csv
from typing import List, Dict, Any, Optional, Union, TextIO
from decimal import Decimal
from datetime import datetime

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from tabulate import tabulate

from extraction.field_form import InvoiceForm
from extraction.models import DocumentResult, LineItem, calculate_total


LINE_ITEM_HEADERS = ['id', 'description', 'quantity', 'price']


def setup_logging(verbose: bool = False, quiet: bool = False,
                  log_level: Optional[str] = None) -> None:
    """
    Setup logging configuration for the CLI application.

    Args:
        verbose: Enable verbose (DEBUG) logging
        quiet: Suppress non-essential output (WARNING+ only)
        log_level: Explicit level name from configuration; flags win over it
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    elif log_level:
        level = logging.getLevelName(log_level.upper())
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # pdfminer logs every content stream operator at DEBUG
    if not verbose:
        logging.getLogger('pdfminer').setLevel(logging.WARNING)


def format_currency(amount: Union[Decimal, float, int, str, None]) -> str:
    """
    Format a numeric amount as currency.

    Args:
        amount: Numeric amount to format

    Returns:
        Formatted currency string
    """
    if amount is None or amount == "":
        return "N/A"

    try:
        return f"${float(amount):,.2f}"
    except (ValueError, TypeError):
        return str(amount)


def format_quantity(quantity: Union[Decimal, float, int]) -> str:
    """Show whole quantities without a fractional part."""
    value = Decimal(str(quantity))
    if value == value.to_integral_value():
        return str(int(value))
    return f"{value.normalize():f}"


def shorten(text: Optional[str], width: int = 60) -> str:
    """Cut text to width characters, marking the cut with '...'."""
    text = text or ""
    return text if len(text) <= width else text[:width - 3] + "..."


def line_item_rows(items: List[LineItem]) -> List[Dict[str, Any]]:
    """Convert line items to display rows."""
    return [
        {
            'id': item.id,
            'description': item.description,
            'quantity': format_quantity(item.quantity),
            'price': item.price
        }
        for item in items
    ]


def format_grid(rows: List[Dict[str, Any]], headers: List[str]) -> str:
    """
    Render rows as a tabulate grid.

    Long strings are shortened so a single description cannot widen the
    whole grid; missing values render as empty cells.
    """
    if not rows:
        return "No data to display."

    cells = [
        [shorten(str(row[header])) if row.get(header) is not None else "" for header in headers]
        for row in rows
    ]
    return tabulate(cells, headers=headers, tablefmt="grid")


def format_line_items(document: DocumentResult) -> str:
    """Plain-text grid of one document's line items followed by its total."""
    table = format_grid(line_item_rows(document.line_items), LINE_ITEM_HEADERS)
    return f"{document.name}\n{table}\nTotal: {format_currency(calculate_total(document.line_items))}"


def build_line_item_table(document: DocumentResult) -> Table:
    """
    Build a rich table of one document's line items.

    Args:
        document: Extraction result in table mode

    Returns:
        rich Table with the grand total as its caption
    """
    table = Table(title=escape(document.name), show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Description", style="cyan")
    table.add_column("Qty", justify="right")
    table.add_column("Price", justify="right", style="green")

    for item in document.line_items:
        table.add_row(
            str(item.id),
            escape(item.description),
            format_quantity(item.quantity),
            item.price
        )

    table.caption = f"Total: {format_currency(calculate_total(document.line_items))}"
    return table


def print_line_items(document: DocumentResult, console: Optional[Console] = None) -> None:
    """Print a document's line items to the terminal."""
    console = console or Console()
    console.print(build_line_item_table(document))


def format_form(form: InvoiceForm) -> str:
    """Grid of invoice fields with the origin of each value."""
    rows = [
        {
            'field': name,
            'value': form[name].value,
            'source': form[name].source.value
        }
        for name in InvoiceForm.FIELD_NAMES
    ]
    return format_grid(rows, ['field', 'value', 'source'])


def format_page_text(document: DocumentResult) -> str:
    """Reconstructed text of every page under a page heading."""
    sections = []
    for page in document.pages:
        heading = f"--- {document.name} page {page.page_number} ---"
        if page.ok:
            sections.append(f"{heading}\n{page.text}")
        else:
            sections.append(f"{heading}\n[error] {page.error}")
    return "\n".join(sections)


def _encode_extra(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    if hasattr(obj, 'to_dict'):
        return obj.to_dict()
    raise TypeError(f"{type(obj).__name__} cannot be written as JSON")


def format_json(data: Any, indent: Optional[int] = 2) -> str:
    """Serialize results, including Decimals and models with to_dict(), as JSON."""
    return json.dumps(data, indent=indent, default=_encode_extra, ensure_ascii=False)


def write_csv(rows: List[Dict[str, Any]], file_obj: TextIO, headers: List[str]) -> None:
    """
    Write rows to an open text stream as CSV.

    The header line is always written, so an empty result still produces
    a file with the expected columns. Keys outside headers are ignored.
    """
    writer = csv.DictWriter(file_obj, fieldnames=headers, extrasaction='ignore')
    writer.writeheader()
    for row in rows:
        writer.writerow({
            header: "" if row.get(header) is None else str(row[header])
            for header in headers
        })


def _status(symbol: str, message: str, color: str, err: bool = False) -> None:
    click.echo(click.style(f"{symbol} {message}", fg=color), err=err)


def print_success(message: str) -> None:
    _status("✓", message, 'green')


def print_warning(message: str) -> None:
    _status("⚠", f"Warning: {message}", 'yellow')


def print_error(message: str) -> None:
    """Errors go to stderr so JSON and CSV on stdout stay parseable."""
    _status("✗", f"Error: {message}", 'red', err=True)


def print_info(message: str) -> None:
    _status("ℹ", message, 'blue')


def display_details(title: str, details: Dict[str, Any]) -> None:
    """Print an underlined title followed by aligned key/value lines."""
    click.echo(title)
    click.echo("-" * len(title))
    width = max((len(key) for key in details), default=0)
    for key, value in details.items():
        click.echo(f"  {key:<{width}} : {'N/A' if value is None else value}")

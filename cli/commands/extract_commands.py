"""
Extraction commands for the CLI interface.

This module implements the commands that run uploaded PDFs through the
extraction pipeline:
- text: Reconstructed page text
- table: Line item table with a grand total
- fields: Invoice number, item and price, with user overrides
"""

import io
import logging
from typing import Dict, List, Any, Optional

import click

from cli.context import pass_context
from cli.validators import INVOICE_NUMBER, ITEM, PRICE, OUTPUT_FILE
from cli.formatters import (
    print_success, print_warning, print_error, print_info,
    format_form, format_json, format_line_items, format_page_text,
    print_line_items, write_csv, LINE_ITEM_HEADERS
)
from cli.exceptions import ProcessingError
from extraction.field_form import InvoiceForm
from extraction.models import BatchResult, DocumentResult, ExtractionMode, calculate_total


logger = logging.getLogger(__name__)

NOTHING_DETECTED = "nothing auto-detected"


def _run_batch(ctx, paths, mode: Optional[ExtractionMode], show_summary: bool = True) -> BatchResult:
    """
    Process the given files and report per-file failures.

    Failures go to stderr; the summary line is skipped for machine-readable
    output on stdout.

    Raises:
        ProcessingError: If no document could be processed at all
    """
    session = ctx.get_session()
    result = session.process_files(paths, mode)

    for error in result.errors:
        print_error(f"{error['file']}: {error['error']}")

    if not result.documents:
        raise ProcessingError(
            f"All {len(result.errors)} document(s) failed to process",
            failures=result.errors
        )

    if show_summary and not ctx.quiet:
        print_info(f"Processed {len(result.documents)} document(s), {len(result.errors)} failed")
    return result


def _write_output(content: str, output) -> None:
    with open(output, 'w', encoding='utf-8') as f:
        f.write(content)
        if not content.endswith("\n"):
            f.write("\n")


def _line_item_csv_rows(documents: List[DocumentResult]) -> List[Dict[str, Any]]:
    rows = []
    for document in documents:
        for item in document.line_items:
            row = item.to_dict()
            row['document'] = document.name
            rows.append(row)
    return rows


def _table_summary(document: DocumentResult) -> Dict[str, Any]:
    return {
        'name': document.name,
        'line_items': [item.to_dict() for item in document.line_items],
        'total': calculate_total(document.line_items),
        'auto_detected': document.auto_detected
    }


@click.command()
@click.argument('paths', nargs=-1, required=True, type=click.Path())
@click.option('--output', '-o', type=OUTPUT_FILE, help='Write the text to this file')
@pass_context
def text(ctx, paths, output):
    """
    Show the reconstructed text of each page.

    Pages that could not be read are listed with their error.

    Examples:
        invoice-extractor text invoice.pdf
        invoice-extractor text a.pdf b.pdf --output text.txt
    """
    result = _run_batch(ctx, paths, None)
    content = "\n\n".join(format_page_text(document) for document in result.documents)

    if output:
        _write_output(content, output)
        print_success(f"Text written to {output}")
    else:
        click.echo(content)


@click.command()
@click.argument('paths', nargs=-1, required=True, type=click.Path())
@click.option('--format', '-f', 'output_format', type=click.Choice(['table', 'json', 'csv']),
              default='table', help='Output format')
@click.option('--output', '-o', type=OUTPUT_FILE, help='Write the result to this file')
@pass_context
def table(ctx, paths, output_format, output):
    """
    Detect a line item table in each document.

    Examples:
        invoice-extractor table invoice.pdf
        invoice-extractor table *.pdf --format csv --output items.csv
    """
    result = _run_batch(ctx, paths, ExtractionMode.TABLE, show_summary=output_format == 'table')

    for document in result.documents:
        if output_format == 'table' and not document.auto_detected:
            print_warning(f"{document.name}: {NOTHING_DETECTED}")

    if output_format == 'json':
        content = format_json({
            'documents': [_table_summary(document) for document in result.documents],
            'errors': result.errors
        })
    elif output_format == 'csv':
        buffer = io.StringIO()
        write_csv(_line_item_csv_rows(result.documents), buffer, ['document'] + LINE_ITEM_HEADERS)
        content = buffer.getvalue()
    elif output:
        content = "\n\n".join(
            format_line_items(document) for document in result.documents if document.auto_detected
        )
    else:
        for document in result.documents:
            if document.auto_detected:
                print_line_items(document)
        return

    if output:
        _write_output(content, output)
        print_success(f"Line items written to {output}")
    else:
        click.echo(content, nl=not content.endswith("\n"))


@click.command()
@click.argument('paths', nargs=-1, required=True, type=click.Path())
@click.option('--format', '-f', 'output_format', type=click.Choice(['table', 'json']),
              default='table', help='Output format')
@click.option('--invoice-no', type=INVOICE_NUMBER, help='Invoice number; never overwritten by auto-fill')
@click.option('--item', type=ITEM, help='Item description; never overwritten by auto-fill')
@click.option('--price', type=PRICE, help='Price; never overwritten by auto-fill')
@pass_context
def fields(ctx, paths, output_format, invoice_no, item, price):
    """
    Detect the invoice number, item and price of each document.

    Values given on the command line count as user edits and take
    precedence over anything detected in the document.

    Examples:
        invoice-extractor fields invoice.pdf
        invoice-extractor fields invoice.pdf --price 99.90 --format json
    """
    result = _run_batch(ctx, paths, ExtractionMode.FIELDS, show_summary=output_format == 'table')
    user_values = {'invoice_no': invoice_no, 'item': item, 'price': price}

    reports = []
    for document in result.documents:
        form = InvoiceForm()
        for name, value in user_values.items():
            if value is not None:
                form.set_user_value(name, value)

        filled = form.apply_auto_fill(document.fields)
        logger.debug(f"{document.name}: auto-filled {filled}")

        if output_format == 'table' and not document.auto_detected:
            print_warning(f"{document.name}: {NOTHING_DETECTED}")

        reports.append((document, form, filled))

    if output_format == 'json':
        click.echo(format_json([
            {
                'name': document.name,
                'fields': form.to_dict(),
                'auto_filled': filled,
                'auto_detected': document.auto_detected
            }
            for document, form, filled in reports
        ]))
        return

    for document, form, filled in reports:
        click.echo(f"\n{document.name}")
        click.echo(format_form(form))
        if filled and not ctx.quiet:
            print_info(f"Auto-filled: {', '.join(filled)}")

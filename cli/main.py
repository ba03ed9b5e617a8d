"""
Main CLI entry point for the invoice text extractor.

This module provides the command group with its global options and wires
in the extraction commands.
"""

import sys
import logging

import click

from cli.context import CLIContext, pass_context
from cli.version import get_version, get_version_info
from cli.commands import extract_commands
from cli.exceptions import CLIError, UserCancelledError
from cli.formatters import display_details, setup_logging


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-essential output')
@click.version_option(version=get_version(), prog_name="invoice-extractor")
@click.pass_context
def cli(ctx, verbose, quiet):
    """
    Invoice Text Extractor - CLI Tool

    Reconstructs the text of invoice PDFs and detects line items or the
    invoice number, item and price.

    Examples:
        # Show detected line items with a grand total
        invoice-extractor table invoice.pdf

        # Detect fields, keeping a price you already know
        invoice-extractor fields invoice.pdf --price 120.00
    """
    cli_ctx = ctx.ensure_object(CLIContext)
    cli_ctx.verbose = verbose
    cli_ctx.quiet = quiet

    config = cli_ctx.get_config()
    setup_logging(verbose, quiet, config.log_level)


@cli.command()
@click.option('--detailed', is_flag=True, help='Show git commit and Python version')
@pass_context
def version(ctx, detailed):
    """Display version information."""
    version_info = get_version_info()
    click.echo(f"Invoice Text Extractor v{version_info['version']}")

    if detailed:
        details = {
            'Python': version_info['python_version'],
            'Git commit': version_info['commit_hash'] if version_info['git_available'] else 'Not available'
        }
        details.update(version_info['libraries'])
        click.echo()
        display_details("Environment", details)


cli.add_command(extract_commands.text)
cli.add_command(extract_commands.table)
cli.add_command(extract_commands.fields)


def main():
    """Main entry point for the CLI application."""
    try:
        cli(standalone_mode=False)
    except (click.exceptions.Abort, KeyboardInterrupt):
        cancelled = UserCancelledError()
        click.echo(f"\n{cancelled.format_message()}", err=True)
        sys.exit(cancelled.exit_code)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except CLIError as e:
        click.echo(e.format_message(), err=True)
        sys.exit(e.exit_code)
    except Exception as e:
        logger = logging.getLogger(__name__)
        logger.exception("Unexpected error occurred")
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    main()

"""
CLI command modules for the invoice text extractor.

This package contains the command implementations:
- extract_commands: text, table and fields extraction
"""

from . import extract_commands

__all__ = [
    'extract_commands'
]

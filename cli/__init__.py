"""
CLI package for the invoice text extractor.

This package provides the command-line interface for reconstructing invoice
text and detecting line items and invoice fields.
"""

from .version import __version__

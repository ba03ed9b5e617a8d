"""
Exceptions raised by CLI commands.

Each exception class maps to a process exit code; cli.main.main() prints
the prefixed message to stderr and exits with that code.
"""

from typing import Dict, List, Optional


EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_CONFIGURATION = 5
EXIT_ALL_DOCUMENTS_FAILED = 6
EXIT_CANCELLED = 130


class CLIError(Exception):
    """Base exception for errors reported to the user."""

    exit_code = EXIT_FAILURE
    prefix = "Error"

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code

    def format_message(self) -> str:
        return f"{self.prefix}: {self}"


class ValidationError(CLIError):
    """A value typed on the command line is invalid."""

    exit_code = EXIT_USAGE
    prefix = "Validation Error"


class ConfigurationError(CLIError):
    """An INVOICE_EXTRACTOR_* environment variable is invalid."""

    exit_code = EXIT_CONFIGURATION
    prefix = "Configuration Error"


class ProcessingError(CLIError):
    """Every document of a batch was rejected or failed to decode."""

    exit_code = EXIT_ALL_DOCUMENTS_FAILED
    prefix = "Processing Error"

    def __init__(self, message: str, failures: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.failures = failures or []


class UserCancelledError(CLIError):
    """The user interrupted the command."""

    exit_code = EXIT_CANCELLED
    prefix = "Cancelled"

    def __init__(self, message: str = "Operation cancelled by user"):
        super().__init__(message)

"""
CLI Context module for the invoice text extractor.

This module provides the shared context and decorator used across CLI
commands, preventing circular imports between cli.main and command modules.
"""

import click

from extraction.config import ExtractionConfig
from extraction.integration import ExtractionSession
from cli.exceptions import ConfigurationError


class CLIContext:
    """Context object to share state between CLI commands."""

    def __init__(self):
        self.verbose = False
        self.quiet = False
        self.config = None
        self.session = None

    def get_config(self) -> ExtractionConfig:
        """Load configuration from the environment on first use."""
        if self.config is None:
            try:
                self.config = ExtractionConfig.from_env()
            except ValueError as e:
                raise ConfigurationError(str(e))
        return self.config

    def get_session(self) -> ExtractionSession:
        """Get or create the extraction session for this invocation."""
        if self.session is None:
            self.session = ExtractionSession(config=self.get_config())
        return self.session


# Pass context between commands
pass_context = click.make_pass_decorator(CLIContext, ensure=True)

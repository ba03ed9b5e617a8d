"""Environment-driven configuration for document extraction."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .models import ExtractionMode


ENV_MAX_FILE_SIZE_MB = 'INVOICE_EXTRACTOR_MAX_FILE_SIZE_MB'
ENV_MODE = 'INVOICE_EXTRACTOR_MODE'
ENV_LOG_LEVEL = 'INVOICE_EXTRACTOR_LOG_LEVEL'

DEFAULT_MAX_FILE_SIZE_MB = 50.0


def _get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(key)
    if value is not None:
        value = value.strip()
        if value == "":
            return default
        return value
    return default


def _get_float(key: str, default: float) -> float:
    value = _get_env(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} must be a number") from exc


@dataclass
class ExtractionConfig:
    """
    Settings for one extraction session.

    Attributes:
        max_file_size_mb: Largest accepted PDF, in megabytes
        mode: Extractor applied to each document
        log_level: Optional logging level name, used when no verbosity flag is given
    """
    max_file_size_mb: float = DEFAULT_MAX_FILE_SIZE_MB
    mode: ExtractionMode = ExtractionMode.TABLE
    log_level: Optional[str] = None

    @property
    def max_file_size(self) -> int:
        """Largest accepted PDF, in bytes."""
        return int(self.max_file_size_mb * 1024 * 1024)

    @classmethod
    def from_env(cls) -> 'ExtractionConfig':
        """
        Load configuration from environment variables.

        Raises:
            ValueError: If a variable is set to an invalid value
        """
        max_size = _get_float(ENV_MAX_FILE_SIZE_MB, DEFAULT_MAX_FILE_SIZE_MB)
        if max_size <= 0:
            raise ValueError(f"Environment variable {ENV_MAX_FILE_SIZE_MB} must be positive")

        mode_value = _get_env(ENV_MODE, ExtractionMode.TABLE.value)
        try:
            mode = ExtractionMode.from_value(mode_value)
        except ValueError as exc:
            raise ValueError(f"Environment variable {ENV_MODE}: {exc}") from exc

        log_level = _get_env(ENV_LOG_LEVEL)
        if log_level is not None:
            log_level = log_level.upper()
            if not isinstance(logging.getLevelName(log_level), int):
                raise ValueError(f"Environment variable {ENV_LOG_LEVEL} must be a logging level name")

        return cls(max_file_size_mb=max_size, mode=mode, log_level=log_level)

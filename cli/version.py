"""
Version information for the invoice text extractor.

The release number comes from the installed distribution metadata; a
source checkout that was never installed falls back to BASE_VERSION.
"""

import subprocess
import sys
from importlib import metadata
from pathlib import Path
from typing import Dict, Optional


DISTRIBUTION_NAME = "invoice-text-extractor"
BASE_VERSION = "1.0.0"

# Libraries whose versions affect extraction results
REPORTED_LIBRARIES = ("pdfplumber", "pdfminer.six")


def _run_git(*args: str) -> Optional[str]:
    """Run a git command in the repository root; None if git is unavailable."""
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=Path(__file__).resolve().parent.parent,
            capture_output=True,
            text=True,
            timeout=5
        )
    except (subprocess.TimeoutExpired, OSError):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def get_git_commit_hash() -> Optional[str]:
    """Short hash of the checked-out commit, if running from a git checkout."""
    return _run_git("rev-parse", "--short", "HEAD")


def get_version() -> str:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return BASE_VERSION


def get_library_versions() -> Dict[str, str]:
    versions = {}
    for name in REPORTED_LIBRARIES:
        try:
            versions[name] = metadata.version(name)
        except metadata.PackageNotFoundError:
            versions[name] = "not installed"
    return versions


def get_version_info() -> dict:
    """
    Collect the details shown by `version --detailed`.

    Returns:
        Dictionary with version, commit_hash, git_available, python_version
        and libraries (name to version)
    """
    commit_hash = get_git_commit_hash()
    return {
        "version": get_version(),
        "commit_hash": commit_hash,
        "git_available": commit_hash is not None,
        "python_version": sys.version.split()[0],
        "libraries": get_library_versions()
    }


__version__ = get_version()

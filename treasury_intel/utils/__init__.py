"""
Shared utility functions.

This package contains utility code used across multiple
pipeline stages.
"""

from .logging import JsonlFormatter, log_event, redact_secrets, setup_logging, truncate_text

__all__ = [
    "setup_logging",
    "log_event",
    "truncate_text",
    "redact_secrets",
    "JsonlFormatter",
]

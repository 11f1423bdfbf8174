"""
Custom exception hierarchy for lottiegraph.

All lottiegraph exceptions inherit from LottieGraphError so callers can
catch the entire family with a single except clause.
"""

from __future__ import annotations


class LottieGraphError(Exception):
    """Base exception for all lottiegraph errors."""


class InvalidDocumentError(LottieGraphError):
    """Raised when the top-level animation document is structurally invalid."""


class ConfigError(LottieGraphError):
    """Raised when a configuration file cannot be read or has bad keys."""

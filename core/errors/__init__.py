"""
POS Core Errors — Public API
==============================
One flat error type for the whole core, tagged by kind.
"""

from core.errors.base import ErrorKind, PosError

__all__ = [
    "ErrorKind",
    "PosError",
]

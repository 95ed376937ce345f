"""
POS Core Primitives — Entity References
=========================================
Products, batches, channels, employees and customers live in
collaborators outside the core. The core only carries their identity:
a non-empty string (trimmed) or a positive integer.
"""

from __future__ import annotations

from typing import Union

from core.errors import ErrorKind, PosError

Ref = Union[str, int]


def require_ref(value, field_name: str) -> Ref:
    if isinstance(value, bool) or value is None:
        raise PosError(
            ErrorKind.INVALID_ARGUMENT,
            f"{field_name} is required.",
        )
    if isinstance(value, int):
        if value <= 0:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"{field_name} must be positive, got {value}.",
            )
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"{field_name} must be non-empty.",
            )
        return stripped
    raise PosError(
        ErrorKind.INVALID_ARGUMENT,
        f"{field_name} must be str or int, got {type(value).__name__}.",
    )


def require_text(value, field_name: str) -> str:
    """Non-empty display text (names, locations), trimmed."""
    if not isinstance(value, str) or not value.strip():
        raise PosError(
            ErrorKind.INVALID_ARGUMENT,
            f"{field_name} must be a non-empty string, got {value!r}.",
        )
    return value.strip()

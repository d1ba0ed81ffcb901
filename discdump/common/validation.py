"""Validation helpers shared by the grammars and the CLI.

The ``is_valid_*`` predicates never raise and are what the parsers use on
raw tokens. The ``validate_*`` functions raise ``ValidationError`` and are
meant for user-facing input.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from .exceptions import ValidationError


INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_INT_RE = re.compile(r"[+-]?[0-9]+")
_DIGITS_RE = {10: re.compile(r"[0-9]+"), 16: re.compile(r"[0-9A-Fa-f]+")}
_DRIVE_LETTER_RE = re.compile(r"[A-Za-z]:?\\?")
_DEVICE_PATH_RE = re.compile(r"/dev/\S+")


# ============================================================================
# TOKEN PREDICATES
# ============================================================================

def parse_int(token: Optional[str]) -> Optional[int]:
    """Parse a plain decimal integer token, returning None when it is not one."""
    if token is None or not _INT_RE.fullmatch(token):
        return None
    return int(token)


def is_valid_int(
    token: Optional[str],
    lower: Optional[int] = None,
    upper: Optional[int] = None,
    width: int = 32,
) -> bool:
    """True when ``token`` is a signed integer of ``width`` bits within bounds."""
    value = parse_int(token)
    if value is None:
        return False
    lo, hi = (INT64_MIN, INT64_MAX) if width == 64 else (INT32_MIN, INT32_MAX)
    if not lo <= value <= hi:
        return False
    if lower is not None and value < lower:
        return False
    if upper is not None and value > upper:
        return False
    return True


def is_valid_byte(token: Optional[str], base: int = 10) -> bool:
    """True for an unsigned decimal (or, with ``base=16``, hex) byte token."""
    if token is None or not _DIGITS_RE[base].fullmatch(token):
        return False
    return 0 <= int(token, base) <= 255


def is_valid_drive_identifier(token: Optional[str]) -> bool:
    """Drive letters (``D``, ``D:``, ``D:\\``) or a device node path."""
    if not token:
        return False
    return bool(_DRIVE_LETTER_RE.fullmatch(token) or _DEVICE_PATH_RE.fullmatch(token))


# ============================================================================
# RAISING VALIDATORS
# ============================================================================

def validate_not_empty(value: Any, name: str = "value") -> Any:
    """Validate that a value is not None nor blank.

    Raises:
        ValidationError: If the value is empty
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{name} must not be empty")
    return value


def validate_range(
    value: int,
    min_val: Optional[int] = None,
    max_val: Optional[int] = None,
    name: str = "value",
) -> int:
    """Validate that ``value`` lies within the inclusive bounds.

    Raises:
        ValidationError: If the value is out of bounds
    """
    if min_val is not None and value < min_val:
        raise ValidationError(
            f"{name} must be >= {min_val}",
            {"value": value, "min": min_val},
        )
    if max_val is not None and value > max_val:
        raise ValidationError(
            f"{name} must be <= {max_val}",
            {"value": value, "max": max_val},
        )
    return value

"""Extractor result values.

An extractor returns either the extracted value or a ``NotFound`` instance.
``NotFound`` is falsy, so ``if result:`` reads naturally, but callers that
must tell a real ``0`` apart from a missing value use ``is_found``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TypeVar, Union

T = TypeVar("T")


class Reason(enum.Enum):
    MISSING_FILE = "missing_file"
    NO_MARKER = "no_marker"
    MALFORMED = "malformed"
    NOT_APPLICABLE = "not_applicable"


@dataclass(frozen=True, slots=True)
class NotFound:
    reason: Reason = Reason.NO_MARKER
    detail: str = ""

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        if self.detail:
            return f"NotFound({self.reason.value}: {self.detail})"
        return f"NotFound({self.reason.value})"


MISSING_FILE = NotFound(Reason.MISSING_FILE)

Extracted = Union[T, NotFound]


def is_found(result: object) -> bool:
    return not isinstance(result, NotFound)


def value_or(result: "Extracted[T]", default: T) -> T:
    """Return the extracted value, or ``default`` when nothing was found."""
    if isinstance(result, NotFound):
        return default
    return result

"""Build information from captured Sega disc headers.

The header is the hex dump of sector 0 as written to ``_mainInfo.txt``:
32 lines of 16 bytes, the ASCII rendering of each line starting at column
58. Each platform keeps its serial and date at its own line indices, so the
layouts live in one table instead of at every call site.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Optional

from ..common.result import NotFound, Reason
from .common import fail_open

# Start of the ASCII column in a hex dump line
ASCII_COLUMN = 58

_MONTHS = {
    "JAN": "01", "FEB": "02", "MAR": "03", "APR": "04", "MAY": "05", "JUN": "06",
    "JUL": "07", "AUG": "08", "SEP": "09", "OCT": "10", "NOV": "11", "DEC": "12",
}


class SegaPlatform(enum.Enum):
    GDROM = "gdrom"
    SATURN = "saturn"
    SEGA_CD = "segacd"


@dataclass(slots=True)
class SegaBuildInfo:
    serial: str
    version: Optional[str]
    date: str


def _substring(text: str, start: int, length: Optional[int] = None) -> str:
    """Slice that refuses to run past the end of ``text``."""
    end = len(text) if length is None else start + length
    if start > len(text) or end > len(text):
        raise IndexError(f"line too short for [{start}:{end}]: {text!r}")
    return text[start:end]


def _gdrom(serial_line: str, date_line: str) -> SegaBuildInfo:
    return SegaBuildInfo(
        serial=_substring(serial_line, 0, 10).rstrip(),
        version=_substring(serial_line, 10, 6).lstrip("Vv"),
        date=_substring(date_line, 0, 8),
    )


def _saturn(serial_line: str, date_line: str) -> SegaBuildInfo:
    date = _substring(date_line, 0, 8)
    return SegaBuildInfo(
        serial=_substring(serial_line, 0, 10).strip(),
        version=_substring(serial_line, 10, 6).lstrip("Vv"),
        date=f"{date[0:4]}-{date[4:6]}-{date[6:8]}",
    )


def _sega_cd(serial_line: str, date_line: str) -> SegaBuildInfo:
    # Misses headers whose copyright notice spans more than one line
    serial = _substring(serial_line, 3, 8).rstrip("- ")
    date = _substring(date_line, 8).strip()

    parts = date.split(".")
    if len(parts) == 1:
        parts = [_substring(date, 0, 4), _substring(date, 4)]
    parts[1] = _MONTHS.get(parts[1], "00")
    return SegaBuildInfo(serial=serial, version=None, date="-".join(parts))


@dataclass(frozen=True, slots=True)
class HeaderLayout:
    # lines of the 32-line capture that belong to this platform
    first_line: int
    last_line: Optional[int]
    serial_line: int
    date_line: int
    build: Callable[[str, str], SegaBuildInfo]


LAYOUTS: dict[SegaPlatform, HeaderLayout] = {
    SegaPlatform.GDROM: HeaderLayout(0, 16, serial_line=4, date_line=5, build=_gdrom),
    SegaPlatform.SATURN: HeaderLayout(0, 16, serial_line=2, date_line=3, build=_saturn),
    SegaPlatform.SEGA_CD: HeaderLayout(16, None, serial_line=8, date_line=1, build=_sega_cd),
}


def trim_header(header: Optional[str], platform: SegaPlatform) -> Optional[str]:
    """Keep the half of the captured header that ``platform`` uses."""
    if not header:
        return header
    layout = LAYOUTS[platform]
    return "\n".join(header.split("\n")[layout.first_line:layout.last_line])


@fail_open
def get_build_info(header: Optional[str], platform: SegaPlatform):
    """Serial, version and build date from a trimmed header."""
    if header is None or not header.strip():
        return NotFound(Reason.NO_MARKER, "empty header")

    layout = LAYOUTS[platform]
    lines = header.split("\n")
    serial_line = _substring(lines[layout.serial_line], ASCII_COLUMN)
    date_line = _substring(lines[layout.date_line], ASCII_COLUMN)
    return layout.build(serial_line, date_line)

"""Building blocks shared by every log scanner.

Scanners are plain functions decorated with ``extractor`` (path based) or
``fail_open`` (already loaded data). Both turn the usual parsing failures
into a ``NotFound`` result so one damaged log never aborts a submission.
"""

from __future__ import annotations

import base64
import functools
import logging
import re
import struct
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, TypeVar

from ..common.exceptions import ExtractionError
from ..common.result import MISSING_FILE, Extracted, NotFound, Reason
from ..verification.dat_parser import Datafile, parse_dat_file

logger = logging.getLogger(__name__)

R = TypeVar("R")

# Errors a scanner may hit on a truncated or unexpected log
SCAN_ERRORS = (
    OSError,
    ValueError,
    IndexError,
    KeyError,
    AttributeError,
    struct.error,
    ExtractionError,
)

_ROM_LINE_RE = re.compile(
    r'<rom name=".*?" size="(.*?)" crc="(.*?)" md5="(.*?)" sha1="(.*?)"'
)


def fail_open(func: Callable[..., R]) -> Callable[..., Extracted[R]]:
    """Convert scanning errors raised by ``func`` into ``NotFound``."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SCAN_ERRORS as e:
            logger.debug("%s gave up: %s", func.__name__, e)
            return NotFound(Reason.MALFORMED, str(e))

    return wrapper


def extractor(func: Callable[..., R]) -> Callable[..., Extracted[R]]:
    """Like ``fail_open`` for scanners whose first argument is a log path.

    A missing log short-circuits to ``MISSING_FILE`` before ``func`` runs,
    and ``func`` always receives a ``Path``.
    """

    @functools.wraps(func)
    def wrapper(path, *args, **kwargs):
        if path is None:
            return MISSING_FILE
        path = Path(path)
        if not path.is_file():
            return MISSING_FILE
        try:
            return func(path, *args, **kwargs)
        except SCAN_ERRORS as e:
            logger.debug("%s gave up on %s: %s", func.__name__, path, e)
            return NotFound(Reason.MALFORMED, str(e))

    return wrapper


def log_path(base_path: Path | str, suffix: str) -> Path:
    """``<base><suffix>``, e.g. ``log_path("out/game", "_disc.txt")``."""
    return Path(f"{base_path}{suffix}")


def after(line: str, label: str) -> str:
    """The part of ``line`` past ``label``; raises when the line is shorter."""
    if len(line) < len(label):
        raise IndexError(f"line shorter than {label!r}: {line!r}")
    return line[len(label):]


# ============================================================================
# LINE CURSOR
# ============================================================================

class LineCursor:
    """Forward-only reader over the lines of a log.

    Running off the end raises ``ExtractionError``, which the extractor
    boundary reports as a malformed log.
    """

    def __init__(self, lines: Iterable[str], source: str = "<log>"):
        self._lines: Iterator[str] = iter(lines)
        self.source = source

    @classmethod
    def open(cls, path: Path) -> "LineCursor":
        return cls(read_lines(path), str(path))

    def next(self) -> str:
        try:
            return next(self._lines)
        except StopIteration:
            raise ExtractionError(self.source, "unexpected end of file") from None

    def seek(self, predicate: Callable[[str], bool], strip: bool = False) -> str:
        """Read lines until one satisfies ``predicate`` and return it."""
        while True:
            line = self.next()
            if strip:
                line = line.strip()
            if predicate(line):
                return line

    def seek_prefix(self, prefix: str, strip: bool = False) -> str:
        return self.seek(lambda line: line.startswith(prefix), strip=strip)

    def __iter__(self) -> Iterator[str]:
        return self._lines


def read_lines(path: Path) -> list[str]:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return [line.rstrip("\r\n") for line in f]


# ============================================================================
# WHOLE FILE HELPERS
# ============================================================================

@extractor
def get_full_file(path: Path, binary: bool = False) -> str:
    """Full text of a log, or the uppercase hex of its bytes when ``binary``."""
    if binary:
        return path.read_bytes().hex().upper()
    return path.read_text(encoding="utf-8", errors="replace")


def get_base64(content: Optional[str]) -> Optional[str]:
    if content is None:
        return None
    return base64.b64encode(content.encode("utf-8")).decode("ascii")


@extractor
def get_file_base64(path: Path, binary: bool = False) -> str:
    if binary:
        return base64.b64encode(path.read_bytes()).decode("ascii")
    return get_base64(path.read_text(encoding="utf-8", errors="replace"))


@extractor
def get_file_modified_date(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime)


# ============================================================================
# HASH LINES
# ============================================================================

@fail_open
def get_iso_hash_values(source: str | Datafile | None) -> tuple[int, str, str, str]:
    """(size, crc32, md5, sha1) from a ``<rom .../>`` line or a datafile's first rom."""
    if source is None:
        raise ValueError("no hash source")

    if isinstance(source, Datafile):
        rom = source.games[0].roms[0]
        if rom.crc is None or rom.md5 is None or rom.sha1 is None:
            raise ValueError(f"incomplete hashes for {rom.rom_name}")
        return rom.size, rom.crc, rom.md5, rom.sha1

    match = _ROM_LINE_RE.search(source)
    if not match:
        raise ValueError("not a rom line")
    return int(match.group(1)), match.group(2), match.group(3), match.group(4)


@extractor
def get_datafile(path: Path) -> Datafile:
    dat = parse_dat_file(path)
    if not dat.games:
        return NotFound(Reason.NO_MARKER, "no games in datafile")
    return dat

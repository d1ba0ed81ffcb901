"""Scanners over the single ``<image>.log`` Redumper writes per dump."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from ..common.result import NotFound, Reason
from ..extraction.common import LineCursor, after, extractor, read_lines

logger = logging.getLogger(__name__)

VERSION_RE = re.compile(r"^redumper (v?\S+(?: build_\S+)?)", re.IGNORECASE)
DRIVE_RE = re.compile(r"^drive: (.+?) - (.+?) \(revision level: ([^,)]+)")
ERROR_RE = re.compile(r"^\s*(SCSI|C2)(?: errors)?:\s*(\d+)\s*$")


@extractor
def get_version(log: Path) -> str:
    """Program version from the banner on the first lines of the log."""
    for line in read_lines(log)[:5]:
        match = VERSION_RE.match(line.strip())
        if match:
            return match.group(1)
    return NotFound(Reason.NO_MARKER, "no redumper banner")


@extractor
def get_hardware_info(log: Path) -> tuple[Optional[str], Optional[str], Optional[str]]:
    """(manufacturer, model, firmware) from the first ``drive:`` line."""
    for line in read_lines(log):
        match = DRIVE_RE.match(line.strip())
        if match:
            manufacturer, model, firmware = (g.strip() for g in match.groups())
            return manufacturer, model, firmware
    return NotFound(Reason.NO_MARKER, "no drive line")


@extractor
def get_write_offset(log: Path) -> str:
    cursor = LineCursor.open(log)
    line = cursor.seek_prefix("disc write offset:", strip=True)
    return after(line, "disc write offset: ").strip()


@extractor
def get_error_count(log: Path) -> int:
    """SCSI plus C2 errors; the last report in the log wins per kind."""
    counts: dict[str, int] = {}
    for line in read_lines(log):
        match = ERROR_RE.match(line)
        if match:
            counts[match.group(1)] = int(match.group(2))
    if not counts:
        return NotFound(Reason.NO_MARKER, "no error summary")
    return sum(counts.values())


@extractor
def get_datfile(log: Path) -> str:
    """``<rom .../>`` lines of the last ``dat:`` block."""
    block: Optional[list[str]] = None
    cursor = LineCursor.open(log)
    for line in cursor:
        if line.strip() != "dat:":
            continue
        block = []
        for rom in cursor:
            rom = rom.strip()
            if not rom.startswith("<rom"):
                break
            block.append(rom)
    if not block:
        return NotFound(Reason.NO_MARKER, "no dat block")
    return "\n".join(block)

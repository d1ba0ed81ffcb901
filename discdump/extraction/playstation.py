"""Executable and title metadata read from a mounted PlayStation disc.

These scanners look at the disc contents rather than the dump logs, so they
take the mount point of the drive (``drive_path``) instead of a base path.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .. import config
from ..common.result import NotFound, Reason
from ..common.types import Region
from .common import fail_open
from .sfo import SfoParser

logger = logging.getLogger(__name__)

# BOOT = cdrom:\SLUS_005.94;1 (PS1) or BOOT2 = cdrom0:\SLUS_200.02;1 (PS2)
BOOT_RE = re.compile(r"^\s*BOOT2?\s*=\s*cdrom0?:\\*(.+?)(?:;\d+)?\s*$", re.IGNORECASE)
VERSION_RE = re.compile(r"^\s*VER\s*=\s*(.+?)\s*$", re.IGNORECASE)
TITLE_ID_RE = re.compile(r"^([A-Z]{4})-?(\d{5})$")

SFB_SERIAL_OFFSET = 0x220
SFB_SERIAL_LENGTH = 0x10

_REGIONS = {
    "A": Region.Asia,
    "C": Region.China,
    "E": Region.Europe,
    "J": Region.Japan,
    "P": Region.Japan,
    "K": Region.Korea,
    "U": Region.USA,
}


@dataclass(slots=True)
class PlayStationExecutable:
    serial: Optional[str]
    region: Optional[Region]
    date: Optional[str]


def normalize_serial(exe_name: str) -> str:
    """``SLUS_005.94`` -> ``SLUS-00594``."""
    return exe_name.replace("_", "-").replace(".", "")


def serial_region(serial: Optional[str]) -> Optional[Region]:
    if not serial or len(serial) < 3:
        return None
    return _REGIONS.get(serial[2].upper())


def with_dash(title_id: Optional[str]) -> Optional[str]:
    """``CUSA12345`` -> ``CUSA-12345``; anything else is returned as is."""
    if not title_id:
        return title_id
    match = TITLE_ID_RE.match(title_id.strip())
    if not match:
        return title_id.strip()
    return f"{match.group(1)}-{match.group(2)}"


def _find(root: Path, name: str) -> Optional[Path]:
    """Case-insensitive lookup of ``name`` directly under ``root``."""
    direct = root / name
    if direct.exists():
        return direct
    lowered = name.lower()
    for child in root.iterdir():
        if child.name.lower() == lowered:
            return child
    return None


def _modified_date(path: Path) -> str:
    return datetime.fromtimestamp(path.stat().st_mtime).strftime(config.EXE_DATE_FMT)


def _read_system_cnf(root: Path) -> Optional[list[str]]:
    cnf = _find(root, "SYSTEM.CNF")
    if cnf is None:
        return None
    return cnf.read_text(encoding="ascii", errors="replace").splitlines()


# ============================================================================
# PS1 / PS2
# ============================================================================

@fail_open
def get_executable_info(drive_path: Optional[Path]):
    """Serial, region and executable date of a PS1/PS2 disc."""
    if drive_path is None:
        return NotFound(Reason.NOT_APPLICABLE, "no drive path")
    root = Path(drive_path)
    if not root.is_dir():
        return NotFound(Reason.MISSING_FILE, str(root))

    lines = _read_system_cnf(root)
    if lines is None:
        # Early PS1 discs boot a fixed executable name
        psx_exe = _find(root, "PSX.EXE")
        if psx_exe is None:
            return NotFound(Reason.MISSING_FILE, "no SYSTEM.CNF or PSX.EXE")
        return PlayStationExecutable(None, None, _modified_date(psx_exe))

    for line in lines:
        match = BOOT_RE.match(line)
        if match:
            exe_name = match.group(1).replace("\\", "/").split("/")[-1]
            break
    else:
        return NotFound(Reason.NO_MARKER, "no BOOT line in SYSTEM.CNF")

    serial = normalize_serial(exe_name)
    exe_path = _find(root, exe_name)
    date = None
    if exe_path is not None:
        date = _modified_date(exe_path)
    else:
        logger.debug("Boot executable %s not found under %s", exe_name, root)
    return PlayStationExecutable(serial, serial_region(serial), date)


@fail_open
def get_ps2_version(drive_path: Optional[Path]):
    if drive_path is None:
        return NotFound(Reason.NOT_APPLICABLE, "no drive path")
    lines = _read_system_cnf(Path(drive_path))
    if lines is None:
        return NotFound(Reason.MISSING_FILE, "SYSTEM.CNF")
    for line in lines:
        match = VERSION_RE.match(line)
        if match:
            return match.group(1)
    return NotFound(Reason.NO_MARKER, "no VER line in SYSTEM.CNF")


# ============================================================================
# PS3 / PS4 / PS5
# ============================================================================

def _sfo(path: Optional[Path]) -> Optional[SfoParser]:
    if path is None or not path.is_file():
        return None
    return SfoParser.from_path(path)


@fail_open
def get_ps3_serial(drive_path: Optional[Path]):
    if drive_path is None:
        return NotFound(Reason.NOT_APPLICABLE, "no drive path")
    root = Path(drive_path)

    sfb = _find(root, "PS3_DISC.SFB")
    if sfb is not None:
        with open(sfb, "rb") as f:
            f.seek(SFB_SERIAL_OFFSET)
            raw = f.read(SFB_SERIAL_LENGTH)
        serial = raw.split(b"\x00", 1)[0].decode("ascii", errors="replace").strip()
        if serial:
            return with_dash(serial)

    sfo = _sfo(root / "PS3_GAME" / "PARAM.SFO")
    if sfo is not None and sfo.get("TITLE_ID"):
        return with_dash(sfo.get("TITLE_ID"))
    return NotFound(Reason.MISSING_FILE, "PS3_DISC.SFB")


@fail_open
def get_ps3_version(drive_path: Optional[Path]):
    if drive_path is None:
        return NotFound(Reason.NOT_APPLICABLE, "no drive path")
    sfo = _sfo(Path(drive_path) / "PS3_GAME" / "PARAM.SFO")
    if sfo is None:
        return NotFound(Reason.MISSING_FILE, "PARAM.SFO")
    version = sfo.get("VERSION") or sfo.get("APP_VER")
    return version if version else NotFound(Reason.NO_MARKER, "VERSION")


@fail_open
def get_ps4_serial(drive_path: Optional[Path]):
    if drive_path is None:
        return NotFound(Reason.NOT_APPLICABLE, "no drive path")
    sfo = _sfo(Path(drive_path) / "bd" / "param.sfo")
    if sfo is None:
        return NotFound(Reason.MISSING_FILE, "param.sfo")
    title_id = sfo.get("TITLE_ID")
    return with_dash(title_id) if title_id else NotFound(Reason.NO_MARKER, "TITLE_ID")


@fail_open
def get_ps4_version(drive_path: Optional[Path]):
    if drive_path is None:
        return NotFound(Reason.NOT_APPLICABLE, "no drive path")
    sfo = _sfo(Path(drive_path) / "bd" / "param.sfo")
    if sfo is None:
        return NotFound(Reason.MISSING_FILE, "param.sfo")
    version = sfo.get("APP_VER") or sfo.get("VERSION")
    return version if version else NotFound(Reason.NO_MARKER, "APP_VER")


def _param_json(drive_path: Path) -> Optional[dict]:
    path = Path(drive_path) / "bd" / "param.json"
    if not path.is_file():
        return None
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


@fail_open
def get_ps5_serial(drive_path: Optional[Path]):
    if drive_path is None:
        return NotFound(Reason.NOT_APPLICABLE, "no drive path")
    params = _param_json(drive_path)
    if params is None:
        return NotFound(Reason.MISSING_FILE, "param.json")
    title_id = params.get("titleId")
    return with_dash(title_id) if title_id else NotFound(Reason.NO_MARKER, "titleId")


@fail_open
def get_ps5_version(drive_path: Optional[Path]):
    if drive_path is None:
        return NotFound(Reason.NOT_APPLICABLE, "no drive path")
    params = _param_json(drive_path)
    if params is None:
        return NotFound(Reason.MISSING_FILE, "param.json")
    version = params.get("contentVersion")
    return version if version else NotFound(Reason.NO_MARKER, "contentVersion")

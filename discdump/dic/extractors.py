"""Scanners over the logs DiscImageCreator writes next to an image.

Every public function takes the path of one log (or already loaded data),
returns the extracted value or a ``NotFound``, and never raises. The marker
strings and column offsets follow the tool's log layout exactly.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from ..common.result import NotFound, Reason, is_found
from ..common.validation import parse_int
from ..extraction.common import (
    SCAN_ERRORS,
    LineCursor,
    after,
    extractor,
    fail_open,
    get_iso_hash_values,
    read_lines,
)
from ..verification.dat_parser import Datafile

logger = logging.getLogger(__name__)

# mainInfo files written by newer releases start with one of these
NEW_MAIN_INFO_MARKERS = (
    "========== OpCode",
    "========== TOC (Binary)",
    "========== FULL TOC (Binary)",
)
SECTOR_0_MARKER = "========== LBA[000000, 0000000]: Main Channel =========="
SECTOR_4_MARKER = "========== LBA[000004, 0x00004]: Main Channel =========="
HEX_DUMP_HEADER = "+0 +1 +2 +3 +4 +5 +6 +7  +8 +9 +A +B +C +D +E +F"

TRACK_LENGTH_RE = re.compile(
    r"^\s*.*?Track\s*([0-9]{1,2}), LBA\s*[0-9]{1,8} - \s*[0-9]{1,8}, Length\s*([0-9]{1,8})$"
)
TRACK_SESSION_RE = re.compile(r"^\s*Session\s*([0-9]{1,2}),.*?,\s*Track\s*([0-9]{1,2}).*?$")
NO_TITLE_KEY_RE = re.compile(r"^LBA:\s*[0-9]+, Filename: (.*?), No TitleKey$")
TITLE_KEY_RE = re.compile(
    r"^LBA:\s*[0-9]+, Filename: (.*?), EncryptedTitleKey: .*?, DecryptedTitleKey: (.*?)$"
)
SECURITY_RANGE_RE = re.compile(r"Layer [01].*, startLBA-endLBA:\s*(\d+)-\s*(\d+)")
SECURITY_RANGE_END_MARKERS = (
    "========== TotalLength ==========",
    "========== Unlock 2 state(wxripper) ==========",
)


# ============================================================================
# COMMAND FILE
# ============================================================================

def get_command_file_path_and_version(
    base_path: Optional[Path | str],
) -> tuple[Optional[Path], Optional[str]]:
    """Locate ``<name>_YYYYMMDDTHHMMSS.txt`` and return it with the date stamp.

    The date stamp doubles as the tool version. Both are None when there is
    no such file.
    """
    if base_path is None or not str(base_path).strip():
        return None, None

    base = Path(base_path)
    pattern = re.compile(re.escape(base.name) + r"_(\d{8})T\d{6}\.txt")
    try:
        candidates = sorted(base.parent.iterdir())
    except OSError as e:
        logger.debug("Cannot list %s: %s", base.parent, e)
        return None, None

    for candidate in candidates:
        match = pattern.search(candidate.name)
        if match:
            return candidate, match.group(1)
    return None, None


# ============================================================================
# DRIVE AND DISC
# ============================================================================

@extractor
def get_hardware_info(drive: Path) -> tuple[Optional[str], Optional[str], Optional[str]]:
    """(manufacturer, model, firmware) from ``_drive.txt``; first occurrence wins."""
    manufacturer = model = firmware = None
    for line in read_lines(drive):
        line = line.strip()
        if not manufacturer and line.startswith("VendorId"):
            manufacturer = after(line, "VendorId: ")
        elif not model and line.startswith("ProductId"):
            model = after(line, "ProductId: ")
        elif not firmware and line.startswith("ProductRevisionLevel"):
            firmware = after(line, "ProductRevisionLevel: ")
    return manufacturer, model, firmware


_DISC_TYPE_LABELS = ("DiscType:", "DiscTypeIdentifier:", "DiscTypeSpecific:", "BookType:")


@extractor
def get_disc_type(disc: Path) -> str:
    """Every reported disc or book type, sorted and comma separated."""
    found: set[str] = set()
    for line in read_lines(disc):
        line = line.strip()
        for label in _DISC_TYPE_LABELS:
            if line.startswith(label):
                found.add(after(line, label + " "))
                break
    if not found:
        return NotFound(Reason.NO_MARKER, "no disc type lines")
    return ", ".join(sorted(found))


def _strip_version(filename: str) -> str:
    return filename[:-2] if filename.endswith(";1") else filename


@extractor
def get_dvd_protection(disc: Path, css_key: Optional[Path] = None) -> str:
    """Region, copy protection type and CSS keys of a DVD-Video disc.

    Either half may be unreadable; whatever was found is still reported.
    """
    region = protection_type = vob_keys = disc_key = None

    try:
        cursor = LineCursor.open(disc)
        cursor.seek_prefix("========== CopyrightInformation ==========", strip=True)
        line = cursor.next().strip()
        while not line.startswith("========== ManufacturingInformation =========="):
            if line.startswith("CopyrightProtectionType"):
                protection_type = after(line, "CopyrightProtectionType: ")
            elif line.startswith("RegionManagementInformation"):
                region = after(line, "RegionManagementInformation: ")
            line = cursor.next().strip()
    except SCAN_ERRORS as e:
        logger.debug("Copyright information incomplete in %s: %s", disc, e)

    if css_key is not None and Path(css_key).is_file():
        try:
            for line in read_lines(Path(css_key)):
                line = line.strip()
                if line.startswith("DecryptedDiscKey"):
                    disc_key = after(line, "DecryptedDiscKey[020]: ")
                elif line.startswith("LBA:"):
                    vob_keys = vob_keys or ""
                    if "No TitleKey" in line:
                        match = NO_TITLE_KEY_RE.match(line)
                        name = _strip_version(match.group(1) if match else "")
                        vob_keys += f"{name} Title Key: No Title Key\n"
                    else:
                        match = TITLE_KEY_RE.match(line)
                        name = _strip_version(match.group(1) if match else "")
                        key = match.group(2) if match else ""
                        vob_keys += f"{name} Title Key: {key}\n"
        except SCAN_ERRORS as e:
            logger.debug("CSS key file incomplete %s: %s", css_key, e)

    protection = ""
    if region:
        protection += f"Region: {region}\n"
    if protection_type:
        protection += f"Copyright Protection System Type: {protection_type}\n"
    if vob_keys:
        protection += vob_keys
    if disc_key:
        protection += f"Decrypted Disc Key: {disc_key}\n"
    return protection


@extractor
def get_error_count(edcecc: Path) -> int:
    """Errors plus warnings reported by the EDC/ECC check; ``[NO ERROR]`` is 0."""
    total: Optional[int] = None
    for line in read_lines(edcecc):
        line = line.strip()
        if line.startswith("[NO ERROR]"):
            return 0
        if line.startswith("Total errors"):
            total = (total or 0) + (parse_int(after(line, "Total errors: ").strip()) or 0)
        elif line.startswith("Total warnings"):
            total = (total or 0) + (parse_int(after(line, "Total warnings: ").strip()) or 0)

    if total is None:
        return NotFound(Reason.NO_MARKER, "no error totals")
    return total


@extractor
def get_layerbreak(disc: Path, xgd: bool = False) -> int:
    """Layer 0 size of a dual layer DVD.

    Xbox discs report it as ``LayerBreak``, everything else as
    ``LayerZeroSector``. Single layer discs have none.
    """
    label = "LayerBreak" if xgd else "LayerZeroSector"
    for line in read_lines(disc):
        line = line.strip()
        if "NumberOfLayers: Single Layer" in line:
            return NotFound(Reason.NOT_APPLICABLE, "single layer")
        if line.startswith(label):
            # LayerZeroSector: <size> (<hex>)
            return int(line.split()[1])
    return NotFound(Reason.NO_MARKER, label)


@extractor
def get_multisession_information(disc: Path) -> str:
    """Sector ranges of both sessions of a two-session CD."""
    cursor = LineCursor.open(disc)

    cursor.seek_prefix("========== TOC")
    track_lengths: dict[str, int] = {}
    line = cursor.next()
    while "Track" in line:
        match = TRACK_LENGTH_RE.match(line)
        if match:
            track_lengths[match.group(1)] = int(match.group(2))
        line = cursor.next()

    cursor.seek_prefix("========== FULL TOC")
    track_sessions: dict[str, str] = {}
    line = cursor.next()
    while not line.startswith("========== OpCode"):
        match = TRACK_SESSION_RE.match(line)
        if match:
            track_sessions[match.group(2)] = match.group(1)
        line = cursor.next()

    if all(session == "1" for session in track_sessions.values()):
        return NotFound(Reason.NOT_APPLICABLE, "single session")

    line = cursor.seek_prefix("Lead-out length", strip=True)
    lead_out = parse_int(after(line, "Lead-out length of 1st session: ").strip()) or 0

    # TODO: handle discs with three or more sessions once a sample log exists
    lead_in = 0
    line = cursor.next().strip()
    while line.startswith("Lead-in length"):
        lead_in = parse_int(after(line, "Lead-in length of 2nd session: ").strip()) or 0
        line = cursor.next().strip()
    pregap = parse_int(after(line, "Pregap length of 1st track of 2nd session: ").strip()) or 0

    first_length = sum(
        length for track, length in track_lengths.items() if track_sessions.get(track) == "1"
    )
    total_length = sum(track_lengths.values())

    gap = lead_out + lead_in + pregap
    if first_length - gap < 0:
        gap = lead_out + lead_in

    return (
        f"Session 1: 0-{first_length - gap - 1}\n"
        f"Session 2: {first_length - gap}-{total_length - 1}"
    )


@extractor
def get_universal_hash(disc: Path) -> str:
    """SHA-1 of the whole image as hashed for audio discs."""
    cursor = LineCursor.open(disc)
    cursor.seek_prefix("========== Hash(Universal Whole image) ==========", strip=True)
    for line in cursor:
        line = line.lstrip()
        if line.startswith("<rom name"):
            hashes = get_iso_hash_values(line)
            if is_found(hashes):
                return hashes[3]
    return NotFound(Reason.NO_MARKER, "no universal hash")


@extractor
def get_write_offset(disc: Path) -> str:
    cursor = LineCursor.open(disc)
    cursor.seek_prefix("========== Offset", strip=True)
    cursor.next()  # combined offset
    cursor.next()  # drive offset
    cursor.next()  # separator
    return cursor.next().split(" ")[-1]


# ============================================================================
# MAIN CHANNEL DUMPS
# ============================================================================

def _open_main_info(main_info: Path, unscrambled: Callable[[str], bool]) -> tuple[LineCursor, str]:
    """Cursor positioned on the first ``========== LBA`` banner.

    Newer logs start with the TOC dumps; there the sectors of interest follow
    the first line matching ``unscrambled``.
    """
    cursor = LineCursor.open(main_info)
    line = cursor.next()
    if line.startswith(NEW_MAIN_INFO_MARKERS):
        cursor.seek(unscrambled)
        line = cursor.next()
    if not line.startswith("========== LBA"):
        line = cursor.seek_prefix("========== LBA")
    return cursor, line


@extractor
def get_pvd(main_info: Path) -> str:
    """The six hex dump lines of the primary volume descriptor (0x320-0x370)."""
    cursor, line = _open_main_info(
        main_info, lambda text: text.startswith("========== Check Volume Descriptor ==========")
    )

    # Sector 0 is a Sega header and sector 4 a PlayStation one, not the PVD
    if line.startswith(SECTOR_0_MARKER):
        line = cursor.seek_prefix("========== LBA")
    if line.startswith(SECTOR_4_MARKER):
        line = cursor.seek_prefix("========== LBA")

    cursor.seek_prefix("0310")
    return "".join(cursor.next() + "\n" for _ in range(6))


@extractor
def get_sega_header(main_info: Path) -> str:
    """The 32 hex dump lines of sector 0 of a Sega disc."""
    cursor, line = _open_main_info(main_info, lambda text: "Check MCN and/or ISRC" in text)
    if not line.startswith(SECTOR_0_MARKER):
        cursor.seek_prefix(SECTOR_0_MARKER)
    cursor.seek_prefix(HEX_DUMP_HEADER, strip=True)
    return "".join(cursor.next() + "\n" for _ in range(32))


# ============================================================================
# PLAYSTATION
# ============================================================================

@extractor
def get_playstation_anti_modchip_detected(disc: Path) -> bool:
    for line in read_lines(disc):
        line = line.strip()
        if line.startswith("Detected anti-mod string"):
            return True
        if line.startswith("No anti-mod string"):
            return False
    return False


@extractor
def get_playstation_edc_status(edcecc: Path) -> bool:
    """True when only mode 2 form 2 sectors were flagged, False for only no-EDC ones."""
    counts: Counter[str] = Counter()
    for line in read_lines(edcecc):
        if "mode 2 form 2" in line:
            counts["form2"] += 1
        elif "mode 2 no edc" in line:
            counts["noedc"] += 1

    if counts["form2"] and not counts["noedc"]:
        return True
    if counts["noedc"] and not counts["form2"]:
        return False
    return NotFound(Reason.NO_MARKER, "ambiguous EDC status")


# ============================================================================
# XBOX
# ============================================================================

@dataclass(slots=True)
class XgdAuxInfo:
    dmi_hash: Optional[str] = None
    pfi_hash: Optional[str] = None
    ss_hash: Optional[str] = None
    security_sector_ranges: Optional[str] = None
    ss_version: Optional[str] = None


def _scan_xgd_disc(disc: Path, with_hashes: bool) -> XgdAuxInfo:
    info = XgdAuxInfo()
    # newer releases print the security sectors twice
    found_ranges = False

    cursor = LineCursor.open(disc)
    for line in cursor:
        line = line.strip()
        if line.startswith("Version of challenge table"):
            # Version of challenge table: <VER>
            info.ss_version = line.split(" ")[4]
        elif line.startswith("Number of security sector ranges:") and not found_ranges:
            found_ranges = True
            line = cursor.next().strip()
            while not line.startswith(SECURITY_RANGE_END_MARKERS):
                if line.startswith("Layer "):
                    match = SECURITY_RANGE_RE.search(line)
                    start, end = match.groups() if match else ("", "")
                    info.security_sector_ranges = (info.security_sector_ranges or "") + f"{start}-{end}\n"
                line = cursor.next().strip()
        elif with_hashes and line.startswith("<rom"):
            hashes = get_iso_hash_values(line)
            if not is_found(hashes):
                continue
            crc = hashes[1].upper()
            if "SS.bin" in line:
                info.ss_hash = crc
            elif "PFI.bin" in line:
                info.pfi_hash = crc
            elif "DMI.bin" in line:
                info.dmi_hash = crc
    return info


@extractor
def get_xgd_aux_info(disc: Path) -> XgdAuxInfo:
    """Security sector ranges, SS version and DMI/PFI/SS hashes from ``_disc.txt``."""
    return _scan_xgd_disc(disc, with_hashes=True)


@extractor
def get_xgd_aux_ss_info(disc: Path) -> XgdAuxInfo:
    """Security sector ranges and SS version only; hashes come from ``_suppl.dat``."""
    return _scan_xgd_disc(disc, with_hashes=False)


@fail_open
def get_xgd_aux_hash_info(suppl) -> XgdAuxInfo:
    """DMI/PFI/SS CRC32s from the supplementary datafile."""
    if not isinstance(suppl, Datafile) or not suppl.games or not suppl.games[0].roms:
        return NotFound(Reason.NO_MARKER, "empty supplementary datafile")

    def crc(suffix: str) -> Optional[str]:
        rom = suppl.find_rom(suffix)
        return rom.crc.upper() if rom is not None and rom.crc else None

    return XgdAuxInfo(dmi_hash=crc("DMI.bin"), pfi_hash=crc("PFI.bin"), ss_hash=crc("SS.bin"))

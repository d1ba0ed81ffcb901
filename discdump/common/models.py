from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from .types import Region, SiteCode


@dataclass(slots=True)
class DumpingInfo:
    dumping_program: Optional[str] = None
    dumping_date: Optional[str] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    firmware: Optional[str] = None
    reported_disc_type: Optional[str] = None


@dataclass(slots=True)
class CommonDiscInfo:
    region: Optional[Region] = None
    serial: Optional[str] = None
    errors_count: Optional[str] = None
    ring_write_offset: Optional[str] = None
    exe_date_build_date: Optional[str] = None
    comments_special_fields: dict[SiteCode, str] = field(default_factory=dict)


@dataclass(slots=True)
class VersionAndEditions:
    version: Optional[str] = None


@dataclass(slots=True)
class EDC:
    edc: Optional[str] = None


@dataclass(slots=True)
class SizeAndChecksums:
    size: Optional[int] = None
    crc32: Optional[str] = None
    md5: Optional[str] = None
    sha1: Optional[str] = None
    layerbreak: Optional[int] = None
    layerbreak2: Optional[int] = None
    layerbreak3: Optional[int] = None
    pic_identifier: Optional[str] = None


@dataclass(slots=True)
class TracksAndWriteOffsets:
    clrmamepro_data: Optional[str] = None
    cuesheet: Optional[str] = None
    other_write_offsets: Optional[str] = None


@dataclass(slots=True)
class CopyProtection:
    protection: Optional[str] = None
    anti_modchip: Optional[str] = None
    securom_data: Optional[str] = None


@dataclass(slots=True)
class Extras:
    pvd: Optional[str] = None
    pic: Optional[str] = None
    header: Optional[str] = None
    security_sector_ranges: Optional[str] = None


@dataclass(slots=True)
class SubmissionInfo:
    """Metadata reconstructed from one completed dump.

    Sections are populated independently by the extractors; nothing in one
    section depends on another being present.
    """

    dumping_info: DumpingInfo = field(default_factory=DumpingInfo)
    common_disc_info: CommonDiscInfo = field(default_factory=CommonDiscInfo)
    version_and_editions: VersionAndEditions = field(default_factory=VersionAndEditions)
    edc: EDC = field(default_factory=EDC)
    size_and_checksums: SizeAndChecksums = field(default_factory=SizeAndChecksums)
    tracks_and_write_offsets: TracksAndWriteOffsets = field(default_factory=TracksAndWriteOffsets)
    copy_protection: CopyProtection = field(default_factory=CopyProtection)
    extras: Extras = field(default_factory=Extras)
    artifacts: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Plain, JSON-serializable representation; enums become their names."""
        return _plain(asdict(self))


def _plain(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {_plain_key(k): _plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_plain(v) for v in obj]
    if isinstance(obj, enum.Enum):
        return obj.name
    return obj


def _plain_key(key: Any) -> Any:
    return key.name if isinstance(key, enum.Enum) else key


def to_yes_no(value: Optional[bool]) -> Optional[str]:
    if value is None:
        return None
    return "Yes" if value else "No"

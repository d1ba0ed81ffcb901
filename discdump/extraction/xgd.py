"""Xbox Game Disc master identifiers read from ``_DMI.bin``.

XGD1 discs carry an 8-character XMID at offset 8; XGD2 and XGD3 discs
carry a 14-character XeMID at offset 64.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..common.types import Region
from .common import extractor

XMID_OFFSET, XMID_LENGTH = 8, 8
XEMID_OFFSET, XEMID_LENGTH = 64, 14

REGIONS: dict[str, Region] = {
    "W": Region.World,
    "A": Region.USA,
    "E": Region.Europe,
    "J": Region.Japan,
    "K": Region.UnitedStatesOfAmericaAndJapan,
    "L": Region.UnitedStatesOfAmericaAndEurope,
    "H": Region.JapanAndEurope,
}


def get_region(identifier: Optional[str]) -> Optional[Region]:
    if not identifier:
        return None
    return REGIONS.get(identifier)


@dataclass(slots=True)
class XgdInfo:
    """Decoded XMID (XGD1) or XeMID (XGD2/XGD3)."""

    raw: str
    publisher: str
    game_id: str
    version: str
    region_identifier: str
    platform_identifier: Optional[str] = None
    sku: Optional[str] = None
    media_subtype: Optional[str] = None
    disc_number: Optional[str] = None

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["XgdInfo"]:
        """Decode either identifier form, None when ``raw`` is neither."""
        if not raw:
            return None
        raw = raw.strip("\x00").strip()
        if len(raw) == XMID_LENGTH:
            return cls(
                raw=raw,
                publisher=raw[0:2],
                game_id=raw[2:5],
                version=raw[5:7],
                region_identifier=raw[7],
            )
        if len(raw) == XEMID_LENGTH:
            return cls(
                raw=raw,
                publisher=raw[0:2],
                platform_identifier=raw[2],
                game_id=raw[3:6],
                sku=raw[6:8],
                region_identifier=raw[8],
                version=raw[9:11],
                media_subtype=raw[11],
                disc_number=raw[12:14],
            )
        return None

    @property
    def is_xemid(self) -> bool:
        return self.platform_identifier is not None

    @property
    def serial(self) -> str:
        if self.is_xemid:
            return f"{self.publisher}-{self.platform_identifier}{self.game_id}"
        return f"{self.publisher}-{self.game_id}"

    @property
    def version_string(self) -> str:
        return f"1.{self.version}"

    @property
    def region(self) -> Optional[Region]:
        return get_region(self.region_identifier)


def _read_chars(path: Path, offset: int, length: int) -> str:
    with open(path, "rb") as f:
        f.seek(offset)
        data = f.read(length)
    if len(data) < length:
        raise ValueError(f"{path} is too short for an identifier at {offset}")
    return data.decode("latin-1")


@extractor
def get_xgd1_xmid(dmi: Path) -> str:
    return _read_chars(dmi, XMID_OFFSET, XMID_LENGTH)


@extractor
def get_xgd23_xemid(dmi: Path) -> str:
    return _read_chars(dmi, XEMID_OFFSET, XEMID_LENGTH)

"""Blu-ray disc information read from ``_PIC.bin``."""

from __future__ import annotations

import re
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..common.result import NotFound, Reason
from .common import extractor, fail_open, get_full_file

PIC_HEADER_SIZE = 4
DI_UNIT_SIZE = 64
DI_MAGIC = b"DI"

# Offsets inside the format dependent contents of a unit
FIRST_PSN_OFFSET = 0x0C
LAST_PSN_OFFSET = 0x10


@dataclass(slots=True)
class DiscInformationUnit:
    format: int
    sequence_number: int
    disc_type_identifier: str
    format_dependent_contents: bytes

    def layer_size(self) -> int:
        first = struct.unpack_from(">I", self.format_dependent_contents, FIRST_PSN_OFFSET)[0]
        last = struct.unpack_from(">I", self.format_dependent_contents, LAST_PSN_OFFSET)[0]
        return last - first + 2


@dataclass(slots=True)
class DiscInformation:
    units: list[DiscInformationUnit] = field(default_factory=list)


def parse_disc_information(data: bytes) -> DiscInformation:
    info = DiscInformation()
    offset = PIC_HEADER_SIZE
    while offset + DI_UNIT_SIZE <= len(data):
        unit = data[offset:offset + DI_UNIT_SIZE]
        if unit[0:2] != DI_MAGIC:
            break
        info.units.append(DiscInformationUnit(
            format=unit[2],
            sequence_number=unit[5],
            disc_type_identifier=unit[8:11].decode("ascii", errors="replace"),
            format_dependent_contents=unit[12:],
        ))
        offset += DI_UNIT_SIZE
    return info


@extractor
def get_disc_information(pic: Path) -> DiscInformation:
    info = parse_disc_information(pic.read_bytes())
    if not info.units:
        return NotFound(Reason.NO_MARKER, "no disc information units")
    return info


def get_pic_identifier(info) -> Optional[str]:
    if not isinstance(info, DiscInformation) or not info.units:
        return None
    return info.units[0].disc_type_identifier


@fail_open
def get_layerbreaks(info) -> tuple[Optional[int], Optional[int], Optional[int]]:
    """Cumulative layer ends for dual, triple and quad layer discs."""
    if not isinstance(info, DiscInformation) or not info.units:
        return NotFound(Reason.NOT_APPLICABLE)

    breaks: list[Optional[int]] = [None, None, None]
    total = 0
    for index in range(3):
        if len(info.units) < index + 2:
            break
        total += info.units[index].layer_size()
        breaks[index] = total
    return breaks[0], breaks[1], breaks[2]


@fail_open
def get_pic(pic: Optional[Path], trim_length: int = -1) -> str:
    """PIC bytes as uppercase hex, 32 characters per line."""
    hex_text = get_full_file(pic, binary=True)
    if isinstance(hex_text, NotFound):
        return hex_text
    if trim_length > -1:
        if len(hex_text) < trim_length:
            raise ValueError(f"PIC shorter than {trim_length} characters")
        hex_text = hex_text[:trim_length]
    return re.sub(r".{32}", lambda m: m.group(0) + "\n", hex_text)

import os
import struct
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

import pytest

from discdump.common.types import RedumpSystem


def write_log(base: Path, suffix: str, lines: Iterable[str] | str) -> Path:
    """Write ``<base><suffix>`` with one entry per line and return its path."""
    path = Path(f"{base}{suffix}")
    text = lines if isinstance(lines, str) else "\n".join(lines) + "\n"
    path.write_text(text, encoding="utf-8")
    return path


def touch_all(base: Path, suffixes: Iterable[str]) -> None:
    for suffix in suffixes:
        Path(f"{base}{suffix}").touch()


def set_mtime(path: Path, when: datetime) -> None:
    ts = when.timestamp()
    os.utime(path, (ts, ts))


def rom_line(name: str, size: int = 2048, crc: str = "abcd1234") -> str:
    return (
        f'<rom name="{name}" size="{size}" crc="{crc}" '
        f'md5="0123456789abcdef0123456789abcdef" '
        f'sha1="0123456789abcdef0123456789abcdef01234567" />'
    )


def xml_dat(*roms: tuple[str, int, str]) -> str:
    lines = ['<?xml version="1.0"?>', "<datafile>", '  <game name="Test Game">']
    for name, size, crc in roms:
        lines.append(
            f'    <rom name="{name}" size="{size}" crc="{crc}" '
            f'md5="0123456789abcdef0123456789abcdef" '
            f'sha1="0123456789abcdef0123456789abcdef01234567"/>'
        )
    lines += ["  </game>", "</datafile>"]
    return "\n".join(lines) + "\n"


def build_sfo(entries: dict[str, str]) -> bytes:
    """Minimal PARAM.SFO holding UTF-8 string entries."""
    index = b""
    keys = b""
    data = b""
    for key, value in entries.items():
        raw = value.encode("utf-8") + b"\x00"
        index += struct.pack("<HHIII", len(keys), 0x0204, len(raw), len(raw), len(data))
        keys += key.encode("utf-8") + b"\x00"
        data += raw
    key_start = 0x14 + len(index)
    data_start = key_start + len(keys)
    header = b"\x00PSF" + struct.pack("<IIII", 0x0101, key_start, data_start, len(entries))
    return header + index + keys + data


def hex_dump_line(ascii_text: str, offset: int = 0) -> str:
    """A ``_mainInfo.txt`` hex dump line whose ASCII column holds ``ascii_text``."""
    prefix = f"{offset:04X} : " + "00 " * 16
    return prefix.ljust(58) + ascii_text


def sega_header(lines: dict[int, str], total: int = 32) -> str:
    return "\n".join(hex_dump_line(lines.get(i, "." * 16), i * 16) for i in range(total)) + "\n"


def pic_bytes(layer_sizes: list[int], identifier: bytes = b"BDO", pad_to: Optional[int] = None) -> bytes:
    """A ``_PIC.bin`` with one disc information unit per layer."""
    data = b"\x10\x02\x00\x00"
    first_psn = 0x00100000
    for seq, size in enumerate(layer_sizes):
        unit = bytearray(64)
        unit[0:2] = b"DI"
        unit[2] = 1
        unit[5] = seq
        unit[8:11] = identifier
        contents_offset = 12
        struct.pack_into(">I", unit, contents_offset + 0x0C, first_psn)
        struct.pack_into(">I", unit, contents_offset + 0x10, first_psn + size - 2)
        data += bytes(unit)
    if pad_to is not None and len(data) < pad_to:
        data += b"\x00" * (pad_to - len(data))
    return data


def valid_combinations() -> list:
    """Every (system, media type) pair a system ships on, in a stable order."""
    return [
        pytest.param(system, media, id=f"{system.name}-{media.name}")
        for system in RedumpSystem
        for media in sorted(system.media_types(), key=lambda m: m.name)
    ]

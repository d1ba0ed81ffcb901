"""PARAM.SFO reader for PlayStation 3 and PlayStation 4 disc content."""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Any, Optional

SFO_MAGIC = b"\x00PSF"

# Entry data formats
FMT_UTF8 = 0x0004
FMT_UTF8_NUL = 0x0204
FMT_INT32 = 0x0404


class SfoParser:
    """Key/value entries of a PARAM.SFO blob.

    Anything that does not start with the PSF magic parses to no entries.
    """

    def __init__(self, data: bytes):
        self.data = data
        self.entries: dict[str, Any] = {}
        self._parse()

    @classmethod
    def from_path(cls, path: Path) -> "SfoParser":
        return cls(Path(path).read_bytes())

    def _parse(self) -> None:
        if len(self.data) < 0x14 or self.data[0:4] != SFO_MAGIC:
            return

        key_table_start, data_table_start, num_entries = struct.unpack(
            "<III", self.data[8:20]
        )

        for i in range(num_entries):
            offset = 0x14 + (i * 0x10)
            if offset + 0x10 > len(self.data):
                break

            key_offset, data_fmt, data_len = struct.unpack(
                "<HHI", self.data[offset:offset + 8]
            )
            data_offset = struct.unpack("<I", self.data[offset + 12:offset + 16])[0]

            key_start = key_table_start + key_offset
            key_end = self.data.find(b"\x00", key_start)
            if key_end == -1:
                key_end = len(self.data)
            key = self.data[key_start:key_end].decode("utf-8", errors="ignore")

            raw = self.data[data_table_start + data_offset:data_table_start + data_offset + data_len]
            self.entries[key] = self._decode(data_fmt, raw)

    @staticmethod
    def _decode(data_fmt: int, raw: bytes) -> Any:
        if data_fmt in (FMT_UTF8, FMT_UTF8_NUL):
            return raw.decode("utf-8", errors="ignore").strip("\x00")
        if data_fmt == FMT_INT32 and len(raw) >= 4:
            return struct.unpack("<I", raw[:4])[0]
        return None

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self.entries.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self.entries


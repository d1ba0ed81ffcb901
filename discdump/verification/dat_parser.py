import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass
class RomInfo:
    game_name: str
    rom_name: str
    size: int
    crc: Optional[str] = None
    md5: Optional[str] = None
    sha1: Optional[str] = None


@dataclass
class Game:
    name: str
    roms: List[RomInfo] = field(default_factory=list)


@dataclass
class Datafile:
    """Games and roms of a dat, in file order."""

    name: str = ""
    version: str = ""
    games: List[Game] = field(default_factory=list)

    def roms(self) -> List[RomInfo]:
        return [rom for game in self.games for rom in game.roms]

    def find_rom(self, suffix: str) -> Optional[RomInfo]:
        """First rom of the first game whose name ends with ``suffix``."""
        if not self.games:
            return None
        for rom in self.games[0].roms:
            if rom.rom_name.endswith(suffix):
                return rom
        return None


def parse_dat_file(dat_path: Path) -> Datafile:
    dat_path = Path(dat_path)
    # Check for XML signature
    try:
        with open(dat_path, "rb") as f:
            head = f.read(512)
        if b"<?xml" in head or b"<datafile>" in head or b"<game" in head:
            return _parse_xml_dat(dat_path)
    except OSError as e:
        logger.debug("Could not read %s: %s", dat_path, e)
        return Datafile()

    # Fallback to ClrMamePro
    return _parse_clrmamepro(dat_path)


def _parse_xml_dat(dat_path: Path) -> Datafile:
    dat = Datafile()
    try:
        root = ET.parse(dat_path).getroot()
    except (ET.ParseError, OSError) as e:
        logger.debug("Invalid XML dat %s: %s", dat_path, e)
        return dat

    # Parse Header
    header = root.find("header")
    if header is not None:
        dat.name = header.findtext("name") or ""
        dat.version = header.findtext("version") or ""

    # Parse Games
    for game_elem in root.findall("game"):
        game = Game(game_elem.get("name", "Unknown"))
        for rom in game_elem.findall("rom"):
            try:
                size = int(rom.get("size", "0"))
            except ValueError:
                size = 0

            game.roms.append(RomInfo(
                game_name=game.name,
                rom_name=rom.get("name", "Unknown"),
                size=size,
                crc=rom.get("crc"),
                md5=rom.get("md5"),
                sha1=rom.get("sha1"),
            ))
        dat.games.append(game)

    return dat


def _parse_clrmamepro(dat_path: Path) -> Datafile:
    dat = Datafile()
    try:
        content = dat_path.read_text(encoding="utf-8", errors="ignore")
    except OSError:
        return dat

    # Extract header info (clrmamepro block)
    header_match = re.search(r'clrmamepro\s*\((.*?)\)', content, re.DOTALL)
    if header_match:
        header_content = header_match.group(1)
        name_match = re.search(r'name\s+"([^"]+)"', header_content)
        if name_match:
            dat.name = name_match.group(1)
        version_match = re.search(r'version\s+"([^"]+)"', header_content)
        if version_match:
            dat.version = version_match.group(1)

    # Iterate over "game (" occurrences
    for match in re.finditer(r'game\s*\(', content):
        block = _balanced_block(content, match.end())
        if block is not None:
            dat.games.append(_parse_game_block(block))

    return dat


def _balanced_block(content: str, start: int) -> Optional[str]:
    depth = 1
    end = start
    while depth > 0 and end < len(content):
        if content[end] == '(':
            depth += 1
        elif content[end] == ')':
            depth -= 1
        end += 1
    return content[start:end - 1] if depth == 0 else None


def _parse_game_block(block_content: str) -> Game:
    # Extract game name
    name_match = re.search(r'name\s+"([^"]+)"', block_content)
    game = Game(name_match.group(1) if name_match else "Unknown")

    # Find roms
    for match in re.finditer(r'rom\s*\(', block_content):
        rom_content = _balanced_block(block_content, match.end())
        if rom_content is not None:
            game.roms.append(_parse_rom(game.name, rom_content))
    return game


def _parse_rom(game_name: str, rom_content: str) -> RomInfo:
    name_match = re.search(r'name\s+"([^"]+)"', rom_content)
    size_match = re.search(r'size\s+(\d+)', rom_content)
    crc_match = re.search(r'crc\s+([0-9A-Fa-f]+)', rom_content)
    md5_match = re.search(r'md5\s+([0-9A-Fa-f]+)', rom_content)
    sha1_match = re.search(r'sha1\s+([0-9A-Fa-f]+)', rom_content)

    return RomInfo(
        game_name=game_name,
        rom_name=name_match.group(1) if name_match else "Unknown",
        size=int(size_match.group(1)) if size_match else 0,
        crc=crc_match.group(1) if crc_match else None,
        md5=md5_match.group(1) if md5_match else None,
        sha1=sha1_match.group(1) if sha1_match else None,
    )


def generate_datfile(dat: Optional[Datafile]) -> Optional[str]:
    """One ``<rom .../>`` line per rom, the form submission sites accept."""
    if dat is None or not dat.games:
        return None

    lines = [
        f'<rom name="{rom.rom_name}" size="{rom.size}" crc="{rom.crc}" md5="{rom.md5}" sha1="{rom.sha1}" />'
        for rom in dat.roms()
    ]
    return "\n".join(lines) if lines else None

"""Shared enumerations: media types, platforms, regions and site codes."""

from __future__ import annotations

import enum
from typing import FrozenSet


class MediaType(enum.Enum):
    CDROM = "CD-ROM"
    DVD = "DVD-ROM"
    GDROM = "GD-ROM"
    HDDVD = "HD-DVD-ROM"
    BluRay = "BD-ROM"
    NintendoGameCubeGameDisc = "GameCube Game Disc"
    NintendoWiiOpticalDisc = "Wii Optical Disc"
    FloppyDisk = "Floppy Disk"
    HardDisk = "Hard Disk"
    DataCartridge = "Data Cartridge"

    @property
    def default_extension(self) -> str:
        """Image extension the dumping tools write for this media."""
        if self in (MediaType.DVD, MediaType.HDDVD, MediaType.BluRay,
                    MediaType.NintendoGameCubeGameDisc, MediaType.NintendoWiiOpticalDisc):
            return ".iso"
        if self in (MediaType.FloppyDisk, MediaType.HardDisk):
            return ".img"
        return ".bin"

    @classmethod
    def from_name(cls, name: str) -> "MediaType":
        """Look a media type up by member name or display value, case-insensitive."""
        lowered = name.strip().lower()
        for member in cls:
            if lowered in (member.name.lower(), member.value.lower()):
                return member
        raise ValueError(f"Unknown media type: {name}")


_CD = frozenset({MediaType.CDROM})
_DVD = frozenset({MediaType.DVD})
_CD_DVD = frozenset({MediaType.CDROM, MediaType.DVD})
_GD = frozenset({MediaType.CDROM, MediaType.GDROM})
_BD = frozenset({MediaType.BluRay})


class RedumpSystem(enum.Enum):
    """Platforms known to the default policies and extractors.

    The tuple value is (display name, allowed media types).
    """

    AppleMacintosh = ("Apple Macintosh", frozenset({MediaType.CDROM, MediaType.DVD, MediaType.FloppyDisk, MediaType.HardDisk}))
    AtariJaguarCD = ("Atari Jaguar CD Interactive Multimedia System", _CD)
    AudioCD = ("Audio CD", _CD)
    BDVideo = ("BD-Video", _BD)
    DVDAudio = ("DVD-Audio", _DVD)
    DVDVideo = ("DVD-Video", _DVD)
    EnhancedCD = ("Enhanced CD", _CD)
    HDDVDVideo = ("HD DVD-Video", frozenset({MediaType.HDDVD}))
    HasbroVideoNow = ("Hasbro VideoNow", _CD)
    HasbroVideoNowColor = ("Hasbro VideoNow Color", _CD)
    HasbroVideoNowJr = ("Hasbro VideoNow Jr.", _CD)
    HasbroVideoNowXP = ("Hasbro VideoNow XP", _CD)
    IBMPCcompatible = ("IBM PC compatible", frozenset({MediaType.CDROM, MediaType.DVD, MediaType.FloppyDisk, MediaType.HardDisk, MediaType.DataCartridge}))
    KonamiPython2 = ("Konami Python 2", _CD_DVD)
    MicrosoftXbox = ("Microsoft Xbox", _CD_DVD)
    MicrosoftXbox360 = ("Microsoft Xbox 360", _CD_DVD)
    NamcoSegaNintendoTriforce = ("Namco - Sega - Nintendo Triforce", _GD)
    NintendoGameCube = ("Nintendo GameCube", frozenset({MediaType.NintendoGameCubeGameDisc}))
    NintendoWii = ("Nintendo Wii", frozenset({MediaType.NintendoWiiOpticalDisc}))
    RainbowDisc = ("Rainbow Disc", _CD)
    SegaChihiro = ("Sega Chihiro", _GD)
    SegaDreamcast = ("Sega Dreamcast", _GD)
    SegaMegaCDSegaCD = ("Sega Mega CD & Sega CD", _CD)
    SegaNaomi = ("Sega Naomi", _GD)
    SegaNaomi2 = ("Sega Naomi 2", _GD)
    SegaSaturn = ("Sega Saturn", _CD)
    SonyElectronicBook = ("Sony Electronic Book", _CD)
    SonyPlayStation = ("Sony PlayStation", _CD)
    SonyPlayStation2 = ("Sony PlayStation 2", _CD_DVD)
    SonyPlayStation3 = ("Sony PlayStation 3", _BD)
    SonyPlayStation4 = ("Sony PlayStation 4", _BD)
    SonyPlayStation5 = ("Sony PlayStation 5", _BD)
    SuperAudioCD = ("Super Audio CD", _CD)

    @property
    def long_name(self) -> str:
        return self.value[0]

    def media_types(self) -> FrozenSet[MediaType]:
        return self.value[1]

    @property
    def is_audio(self) -> bool:
        return self in (RedumpSystem.AudioCD, RedumpSystem.SuperAudioCD)

    @property
    def is_xgd(self) -> bool:
        return self in (RedumpSystem.MicrosoftXbox, RedumpSystem.MicrosoftXbox360)

    @classmethod
    def from_name(cls, name: str) -> "RedumpSystem":
        lowered = name.strip().lower()
        for member in cls:
            if lowered in (member.name.lower(), member.long_name.lower()):
                return member
        raise ValueError(f"Unknown system: {name}")


def is_valid_combination(system: RedumpSystem | None, media_type: MediaType | None) -> bool:
    """True when ``media_type`` is one of the media ``system`` ships on."""
    if system is None or media_type is None:
        return False
    return media_type in system.media_types()


class Region(enum.Enum):
    World = "W"
    USA = "U"
    Japan = "J"
    Europe = "E"
    Asia = "A"
    China = "C"
    Korea = "K"
    UnitedStatesOfAmericaAndJapan = "U,J"
    UnitedStatesOfAmericaAndEurope = "U,E"
    JapanAndEurope = "J,E"


class SiteCode(enum.Enum):
    """Keys of the special-field comments of a submission."""

    InternalSerialName = "<b>Internal Serial</b>:"
    Multisession = "<b>Multisession</b>:"
    UniversalHash = "<b>Universal Hash (SHA-1)</b>:"
    VolumeLabel = "<b>Volume Label</b>:"
    XMID = "<b>XMID</b>:"
    XeMID = "<b>XeMID</b>:"
    DMIHash = "<b>DMI.bin Hash</b>:"
    PFIHash = "<b>PFI.bin Hash</b>:"
    SSHash = "<b>SS.bin Hash</b>:"
    SSVersion = "<b>SS Version</b>:"


class InternalProgram(enum.Enum):
    DiscImageCreator = "dic"
    Redumper = "redumper"

    @property
    def long_name(self) -> str:
        return self.name

    @classmethod
    def from_name(cls, name: str) -> "InternalProgram":
        lowered = name.strip().lower()
        for member in cls:
            if lowered in (member.value, member.name.lower()):
                return member
        raise ValueError(f"Unknown dumping program: {name}")

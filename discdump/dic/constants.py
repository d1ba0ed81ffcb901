"""DiscImageCreator command verbs, flag tokens and their value rules."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from ..common.types import MediaType
from ..common.validation import INT32_MIN
from ..parameters.base import FlagSpec, ParsePolicy, Slot, ValueKind
from ..parameters.registry import FlagRegistry


class Command(enum.Enum):
    Audio = "audio"
    BluRay = "bd"
    Close = "close"
    CompactDisc = "cd"
    Data = "data"
    DigitalVideoDisc = "dvd"
    Disk = "disk"
    DriveSpeed = "ls"
    Eject = "eject"
    Floppy = "fd"
    GDROM = "gd"
    MDS = "mds"
    Merge = "merge"
    Reset = "reset"
    SACD = "sacd"
    Start = "start"
    Stop = "stop"
    Sub = "sub"
    Swap = "swap"
    Tape = "tape"
    Version = "/v"
    XBOX = "xbox"
    XBOXSwap = "xboxswap"
    XGD2Swap = "xgd2swap"
    XGD3Swap = "xgd3swap"


class Flag(enum.Enum):
    """Flags in the order they are written on the command line."""

    AddOffset = "/a"
    AMSF = "/p"
    AtariJaguar = "/aj"
    BEOpcode = "/be"
    C2Opcode = "/c2"
    CopyrightManagementInformation = "/c"
    D8Opcode = "/d8"
    DatExpand = "/d"
    DisableBeep = "/q"
    DVDReread = "/rr"
    ExtractMicroSoftCabFile = "/mscf"
    Fix = "/fix"
    ForceUnitAccess = "/f"
    MultiSectorRead = "/mr"
    NoFixSubP = "/np"
    NoFixSubQ = "/nq"
    NoFixSubQLibCrypt = "/nl"
    NoFixSubQSecuROM = "/ns"
    NoFixSubRtoW = "/nr"
    NoSkipSS = "/nss"
    PadSector = "/ps"
    Range = "/ra"
    Raw = "/raw"
    Resume = "/re"
    Reverse = "/r"
    ScanAntiMod = "/am"
    ScanFileProtect = "/sf"
    ScanSectorProtect = "/ss"
    SeventyFour = "/74"
    SkipSector = "/sk"
    SubchannelReadLevel = "/s"
    UseAnchorVolumeDescriptorPointer = "/avdp"
    VideoNow = "/vn"
    VideoNowColor = "/vnc"
    VideoNowXP = "/vnx"


_SWITCH = FlagSpec()
_ANY_INT = Slot()
_NON_NEGATIVE = Slot(lower=0)

FLAG_SPECS: dict[Flag, FlagSpec] = {flag: _SWITCH for flag in Flag}
FLAG_SPECS.update({
    Flag.AddOffset: FlagSpec((_ANY_INT,)),
    Flag.BEOpcode: FlagSpec((Slot(ValueKind.STRING, choices=("raw", "pack")),)),
    # [0] reread count, [1] C2 offset, [2] 0 issue sectors / 1 all sectors,
    # [3] and [4] first and last LBA to reread, only used when [2] is 1
    Flag.C2Opcode: FlagSpec(
        (
            Slot(lower=0, emit_lower=1),
            Slot(lower=0, emit_lower=INT32_MIN),
            Slot(lower=0, emit_upper=1),
            Slot(lower=0, emit_lower=1),
            Slot(lower=0, emit_lower=1),
        ),
        policy=ParsePolicy.FAIL,
    ),
    Flag.DVDReread: FlagSpec((_ANY_INT,)),
    Flag.Fix: FlagSpec((_ANY_INT,), required=1, policy=ParsePolicy.DISCARD),
    Flag.ForceUnitAccess: FlagSpec((_NON_NEGATIVE,)),
    Flag.MultiSectorRead: FlagSpec((_NON_NEGATIVE,)),
    Flag.NoSkipSS: FlagSpec((_NON_NEGATIVE,)),
    Flag.PadSector: FlagSpec((Slot(ValueKind.BYTE),)),
    # start and end LBA, only taken by the dvd verb
    Flag.Reverse: FlagSpec((_NON_NEGATIVE, _NON_NEGATIVE), required=2, policy=ParsePolicy.FAIL),
    Flag.ScanFileProtect: FlagSpec((Slot(lower=0, emit_lower=1),)),
    # [1] is only written when it is 0
    Flag.SkipSector: FlagSpec(
        (Slot(lower=0, emit_lower=1), _NON_NEGATIVE),
        policy=ParsePolicy.DISCARD,
    ),
    Flag.SubchannelReadLevel: FlagSpec((Slot(lower=0, upper=2),)),
    Flag.VideoNow: FlagSpec((_NON_NEGATIVE,)),
})


_CD_READ_FLAGS = (
    Flag.BEOpcode,
    Flag.C2Opcode,
    Flag.D8Opcode,
    Flag.DatExpand,
    Flag.DisableBeep,
    Flag.ForceUnitAccess,
    Flag.NoFixSubP,
    Flag.NoFixSubQ,
    Flag.NoFixSubRtoW,
)

_RANGE_FLAGS = _CD_READ_FLAGS + (
    Flag.Reverse,
    Flag.ScanAntiMod,
    Flag.ScanFileProtect,
    Flag.ScanSectorProtect,
    Flag.SkipSector,
    Flag.SubchannelReadLevel,
)

_FULL_CD_FLAGS = _CD_READ_FLAGS + (
    Flag.AddOffset,
    Flag.NoFixSubQLibCrypt,
    Flag.NoFixSubQSecuROM,
    Flag.ScanAntiMod,
    Flag.ScanFileProtect,
    Flag.ScanSectorProtect,
    Flag.SeventyFour,
    Flag.SubchannelReadLevel,
    Flag.VideoNow,
    Flag.VideoNowColor,
    Flag.VideoNowXP,
)

_XBOX_SWAP_FLAGS = (
    Flag.DatExpand,
    Flag.DisableBeep,
    Flag.ForceUnitAccess,
    Flag.NoSkipSS,
)

COMMAND_SUPPORT: dict[Command, tuple[Flag, ...]] = {
    Command.Audio: _RANGE_FLAGS,
    Command.BluRay: (
        Flag.DatExpand,
        Flag.DisableBeep,
        Flag.DVDReread,
        Flag.ForceUnitAccess,
        Flag.UseAnchorVolumeDescriptorPointer,
    ),
    Command.Close: (),
    Command.CompactDisc: _FULL_CD_FLAGS + (
        Flag.AMSF,
        Flag.AtariJaguar,
        Flag.ExtractMicroSoftCabFile,
        Flag.MultiSectorRead,
    ),
    Command.Data: _RANGE_FLAGS,
    Command.DigitalVideoDisc: (
        Flag.CopyrightManagementInformation,
        Flag.DatExpand,
        Flag.DisableBeep,
        Flag.DVDReread,
        Flag.Fix,
        Flag.ForceUnitAccess,
        Flag.PadSector,
        Flag.Range,
        Flag.Raw,
        Flag.Resume,
        Flag.Reverse,
        Flag.ScanFileProtect,
        Flag.SkipSector,
        Flag.UseAnchorVolumeDescriptorPointer,
    ),
    Command.Disk: (Flag.DatExpand,),
    Command.DriveSpeed: (),
    Command.Eject: (),
    Command.Floppy: (Flag.DatExpand,),
    Command.GDROM: _CD_READ_FLAGS + (Flag.SubchannelReadLevel,),
    Command.MDS: (),
    Command.Merge: (),
    Command.Reset: (),
    Command.SACD: (Flag.DatExpand, Flag.DisableBeep),
    Command.Start: (),
    Command.Stop: (),
    Command.Sub: (),
    Command.Swap: _FULL_CD_FLAGS,
    Command.Tape: (),
    Command.Version: (),
    Command.XBOX: _XBOX_SWAP_FLAGS + (Flag.DVDReread,),
    Command.XBOXSwap: _XBOX_SWAP_FLAGS,
    Command.XGD2Swap: _XBOX_SWAP_FLAGS,
    Command.XGD3Swap: _XBOX_SWAP_FLAGS,
}

DIC_REGISTRY: FlagRegistry[Command, Flag] = FlagRegistry(COMMAND_SUPPORT)


@dataclass(frozen=True, slots=True)
class Layout:
    """Positional tokens a verb takes, in command-line order."""

    drive: bool = False
    filename: bool = False
    secondary_filename: bool = False
    speed: bool = False
    lba_range: bool = False
    swap_lbas: bool = False
    # files named on the command line are inputs and must already exist
    existing_files: bool = False
    # no flags may follow the positional block
    exact: bool = False

    @property
    def min_tokens(self) -> int:
        count = 1 + self.drive + self.filename + self.secondary_filename + self.speed
        return count + (2 if self.lba_range else 0)


_DRIVE_ONLY = Layout(drive=True, exact=True)
_DUMP = Layout(drive=True, filename=True, speed=True)
_RANGE = Layout(drive=True, filename=True, speed=True, lba_range=True)
_SWAP = Layout(drive=True, filename=True, speed=True, swap_lbas=True)
_FILE_ONLY = Layout(filename=True, existing_files=True, exact=True)
# tape names the image it writes
_OUTPUT_FILE = Layout(filename=True, exact=True)
# /d may follow the image name
_DRIVE_FILE = Layout(drive=True, filename=True)

LAYOUTS: dict[Command, Layout] = {
    Command.Audio: _RANGE,
    Command.BluRay: _DUMP,
    Command.Close: _DRIVE_ONLY,
    Command.CompactDisc: _DUMP,
    Command.Data: _RANGE,
    Command.DigitalVideoDisc: _DUMP,
    Command.Disk: _DRIVE_FILE,
    Command.DriveSpeed: _DRIVE_ONLY,
    Command.Eject: _DRIVE_ONLY,
    Command.Floppy: _DRIVE_FILE,
    Command.GDROM: _DUMP,
    Command.MDS: _FILE_ONLY,
    Command.Merge: Layout(filename=True, secondary_filename=True, existing_files=True, exact=True),
    Command.Reset: _DRIVE_ONLY,
    Command.SACD: _DUMP,
    Command.Start: _DRIVE_ONLY,
    Command.Stop: _DRIVE_ONLY,
    Command.Sub: _FILE_ONLY,
    Command.Swap: _DUMP,
    Command.Tape: _OUTPUT_FILE,
    Command.Version: Layout(exact=True),
    Command.XBOX: _DUMP,
    Command.XBOXSwap: _SWAP,
    Command.XGD2Swap: _SWAP,
    Command.XGD3Swap: _SWAP,
}

DUMPING_COMMANDS = frozenset({
    Command.Audio,
    Command.BluRay,
    Command.CompactDisc,
    Command.Data,
    Command.DigitalVideoDisc,
    Command.Disk,
    Command.Floppy,
    Command.GDROM,
    Command.SACD,
    Command.Swap,
    Command.Tape,
    Command.XBOX,
    Command.XBOXSwap,
    Command.XGD2Swap,
    Command.XGD3Swap,
})

COMMAND_MEDIA: dict[Command, MediaType] = {
    Command.Audio: MediaType.CDROM,
    Command.BluRay: MediaType.BluRay,
    Command.CompactDisc: MediaType.CDROM,
    Command.Data: MediaType.CDROM,
    Command.DigitalVideoDisc: MediaType.DVD,
    Command.Disk: MediaType.HardDisk,
    Command.Floppy: MediaType.FloppyDisk,
    Command.GDROM: MediaType.GDROM,
    Command.SACD: MediaType.CDROM,
    Command.Swap: MediaType.CDROM,
    Command.Tape: MediaType.DataCartridge,
    Command.XBOX: MediaType.DVD,
    Command.XBOXSwap: MediaType.DVD,
    Command.XGD2Swap: MediaType.DVD,
    Command.XGD3Swap: MediaType.DVD,
}


# ============================================================================
# OUTPUT FILES
# ============================================================================

# Logs collected for CD and GD-ROM dumps, in reporting order
CD_LOG_SUFFIXES = (
    ".c2",
    "_c2Error.txt",
    ".ccd",
    "_cmd.txt",
    ".dat",
    ".sub",
    " (Track 0).sub",
    " (Track 00).sub",
    " (Track 1)(-LBA).sub",
    " (Track 01)(-LBA).sub",
    " (Track AA).sub",
    ".subtmp",
    ".toc",
    "_disc.txt",
    "_drive.txt",
    "_img.cue",
    ".img_EdcEcc.txt",
    ".img_EccEdc.txt",
    "_mainError.txt",
    "_mainInfo.txt",
    "_sub.txt",
    "_subError.txt",
    "_subInfo.txt",
    "_subIntention.txt",
    "_subReadable.txt",
    "_suppl.dat",
    "_volDesc.txt",
)

DVD_LOG_SUFFIXES = (
    "_cmd.txt",
    "_CSSKey.txt",
    ".dat",
    ".toc",
    "_disc.txt",
    "_drive.txt",
    "_mainError.txt",
    "_mainInfo.txt",
    "_suppl.dat",
    "_volDesc.txt",
    "_DMI.bin",
    "_PFI.bin",
    "_PIC.bin",
    "_SS.bin",
)

DISK_LOG_SUFFIXES = (
    "_cmd.txt",
    ".dat",
    "_disc.txt",
)

# Required outputs; any one suffix of a group satisfies it and the first is
# reported when all are missing
CD_LOG_GROUPS = (
    (".dat",),
    (".sub", ".subtmp"),
    ("_disc.txt",),
    ("_drive.txt",),
    ("_img.cue",),
    ("_mainError.txt",),
    ("_mainInfo.txt",),
    ("_subError.txt",),
    ("_subInfo.txt",),
    ("_subReadable.txt", "_sub.txt"),
    ("_volDesc.txt",),
)

DVD_LOG_GROUPS = (
    (".dat",),
    ("_disc.txt",),
    ("_drive.txt",),
    ("_mainError.txt",),
    ("_mainInfo.txt",),
    ("_volDesc.txt",),
)

DISK_LOG_GROUPS = (
    (".dat",),
    ("_disc.txt",),
)

CD_MEDIA = frozenset({MediaType.CDROM, MediaType.GDROM})
DVD_MEDIA = frozenset({
    MediaType.DVD,
    MediaType.HDDVD,
    MediaType.BluRay,
    MediaType.NintendoGameCubeGameDisc,
    MediaType.NintendoWiiOpticalDisc,
})
DISK_MEDIA = frozenset({MediaType.FloppyDisk, MediaType.HardDisk})

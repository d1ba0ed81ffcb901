"""Redumper command verbs, flag tokens and their value rules."""

from __future__ import annotations

import enum

from ..common.types import MediaType
from ..parameters.base import FlagSpec, ParsePolicy, Slot, ValueKind
from ..parameters.registry import FlagRegistry


class Command(enum.Enum):
    # help-only invocation, written without a verb
    NONE = ""
    CD = "cd"
    Dump = "dump"
    Info = "info"
    Protection = "protection"
    Refine = "refine"
    Split = "split"


class Flag(enum.Enum):
    """Flags in the order they are written on the command line."""

    AudioSilenceThreshold = "--audio-silence-threshold"
    CDiCorrectOffset = "--cdi-correct-offset"
    CDiReadyNormalize = "--cdi-ready-normalize"
    DescrambleNew = "--descramble-new"
    Drive = "--drive"
    ForceOffset = "--force-offset"
    ForceQTOC = "--force-qtoc"
    ForceSplit = "--force-split"
    ForceTOC = "--force-toc"
    Help = "--help"
    ISO9660Trim = "--iso9660-trim"
    ImageName = "--image-name"
    ImagePath = "--image-path"
    LeaveUnchanged = "--leave-unchanged"
    Overwrite = "--overwrite"
    RefineSubchannel = "--refine-subchannel"
    Retries = "--retries"
    RingSize = "--ring-size"
    Skip = "--skip"
    SkipFill = "--skip-fill"
    SkipLeadIn = "--skip-leadin"
    SkipSize = "--skip-size"
    Speed = "--speed"
    StopLBA = "--stop-lba"
    Unsupported = "--unsupported"
    Verbose = "--verbose"


HELP_TOKENS = ("--help", "-h")


def _int(lower=None) -> FlagSpec:
    policy = ParsePolicy.FAIL if lower is not None else ParsePolicy.TRUNCATE
    return FlagSpec((Slot(lower=lower),), required=1, policy=policy)


_STRING = FlagSpec((Slot(ValueKind.STRING),), required=1)

FLAG_SPECS: dict[Flag, FlagSpec] = {flag: FlagSpec() for flag in Flag}
FLAG_SPECS.update({
    Flag.AudioSilenceThreshold: _int(lower=0),
    Flag.Drive: _STRING,
    Flag.ForceOffset: _int(),
    Flag.Help: FlagSpec(aliases=("-h",)),
    Flag.ImageName: _STRING,
    Flag.ImagePath: _STRING,
    Flag.Retries: _int(lower=0),
    Flag.RingSize: _int(lower=0),
    # LBA ranges, written as the tool expects them
    Flag.Skip: _STRING,
    Flag.SkipFill: FlagSpec((Slot(ValueKind.HEX_BYTE),), required=1),
    Flag.SkipSize: _int(lower=0),
    Flag.Speed: _int(lower=1),
    Flag.StopLBA: _int(),
})

# --help stands alone; every verb takes every other flag
COMMAND_SUPPORT: dict[Command, tuple[Flag, ...]] = {
    command: tuple(flag for flag in Flag if flag is not Flag.Help)
    for command in Command
    if command is not Command.NONE
}
COMMAND_SUPPORT[Command.NONE] = (Flag.Help,)

REDUMPER_REGISTRY: FlagRegistry[Command, Flag] = FlagRegistry(COMMAND_SUPPORT)

DUMPING_COMMANDS = frozenset({Command.CD, Command.Dump})

COMMAND_MEDIA: dict[Command, MediaType] = {
    Command.CD: MediaType.CDROM,
    Command.Dump: MediaType.CDROM,
}

# Logs collected next to the image, in reporting order
LOG_SUFFIXES = (".log", ".toc", ".fulltoc", ".cdtext")

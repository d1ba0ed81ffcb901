"""DiscImageCreator command lines.

``<verb> [drive] ["filename"] ["second file"] [speed] [start end] [lbas] /flags``

Which positionals a verb takes lives in ``LAYOUTS``; which flags it takes in
``DIC_REGISTRY``. Flags are written in ``Flag`` declaration order and their
values are space separated.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from .. import config
from ..common.exceptions import ParseError, SerializationError
from ..common.models import SubmissionInfo
from ..common.types import InternalProgram, MediaType, RedumpSystem, is_valid_combination
from ..common.validation import is_valid_drive_identifier, is_valid_int, parse_int
from ..core.config_manager import Options
from ..extraction.common import log_path
from ..parameters.base import BaseParameters, Slot, check_unquoted
from .constants import (
    CD_LOG_GROUPS,
    CD_LOG_SUFFIXES,
    CD_MEDIA,
    COMMAND_MEDIA,
    DIC_REGISTRY,
    DISK_LOG_GROUPS,
    DISK_LOG_SUFFIXES,
    DISK_MEDIA,
    DUMPING_COMMANDS,
    DVD_LOG_GROUPS,
    DVD_LOG_SUFFIXES,
    DVD_MEDIA,
    FLAG_SPECS,
    LAYOUTS,
    Command,
    Flag,
)
from .extractors import get_command_file_path_and_version

logger = logging.getLogger(__name__)

_MAC_PC = (RedumpSystem.AppleMacintosh, RedumpSystem.IBMPCcompatible)
_VIDEO_NOW = (
    RedumpSystem.HasbroVideoNow,
    RedumpSystem.HasbroVideoNowColor,
    RedumpSystem.HasbroVideoNowJr,
    RedumpSystem.HasbroVideoNowXP,
)


def base_command(system: Optional[RedumpSystem], media_type: Optional[MediaType]) -> Optional[Command]:
    """Verb used to dump ``media_type`` for ``system``; None for invalid pairs."""
    if not is_valid_combination(system, media_type):
        return None
    if media_type is MediaType.CDROM:
        return Command.SACD if system is RedumpSystem.SuperAudioCD else Command.CompactDisc
    if media_type is MediaType.DVD:
        return Command.XBOX if system is not None and system.is_xgd else Command.DigitalVideoDisc
    return {
        MediaType.GDROM: Command.GDROM,
        MediaType.HDDVD: Command.DigitalVideoDisc,
        MediaType.BluRay: Command.BluRay,
        MediaType.NintendoGameCubeGameDisc: Command.DigitalVideoDisc,
        MediaType.NintendoWiiOpticalDisc: Command.DigitalVideoDisc,
        MediaType.FloppyDisk: Command.Floppy,
        MediaType.HardDisk: Command.Disk,
        MediaType.DataCartridge: Command.Tape,
    }.get(media_type)


def _reread_value(option: int, default: int) -> Optional[int]:
    # -1 disables the value, 0 selects the default count
    if option == -1:
        return None
    if option == 0:
        return default
    return option


class DicParameters(BaseParameters):
    program = InternalProgram.DiscImageCreator
    command_type = Command
    flag_type = Flag
    flag_specs = FLAG_SPECS
    default_registry = DIC_REGISTRY

    # ------------------------------------------------------------------
    # Emission rules that depend on other flags or values
    # ------------------------------------------------------------------

    def _should_emit(self, flag) -> bool:
        # /be and /d8 select the read opcode; /d8 wins
        if flag is Flag.BEOpcode and self.state.flags[Flag.D8Opcode] is True:
            return False
        return True

    def _slots_for(self, flag) -> Sequence[Slot]:
        if flag is Flag.Reverse and self.state.command is not Command.DigitalVideoDisc:
            return ()
        return super()._slots_for(flag)

    def _slot_limit(self, flag, values: Sequence[Any]) -> int:
        if flag is Flag.C2Opcode:
            # first and last LBA are only meaningful when rereading all sectors
            if values[2] == 1 and values[3] is not None and values[4] is not None:
                return 5
            return 3
        if flag is Flag.SkipSector:
            return 2 if values[1] == 0 else 1
        if flag is Flag.BEOpcode:
            return 1 if values[0] in ("raw", "pack") else 0
        return super()._slot_limit(flag, values)

    # ------------------------------------------------------------------
    # Positionals
    # ------------------------------------------------------------------

    def _positional_tokens(self) -> list[str]:
        command = self.state.command
        layout = LAYOUTS[command]
        tokens: list[str] = []

        if layout.drive:
            if not is_valid_drive_identifier(self.state.drive):
                raise SerializationError(f"invalid drive {self.state.drive!r}")
            tokens.append(self.state.drive)

        if layout.filename:
            if self.state.filename is None:
                raise SerializationError("filename is not set")
            tokens.append('"' + check_unquoted(self.state.filename.strip('"')) + '"')

        if layout.secondary_filename:
            if self.state.secondary_filename is None:
                raise SerializationError("second filename is not set")
            tokens.append('"' + check_unquoted(self.state.secondary_filename.strip('"')) + '"')

        if layout.speed:
            lower, upper = config.DIC_SPEED_BOUNDS[command.value]
            speed = self.state.speed
            if speed is None or not lower <= speed <= upper:
                raise SerializationError(f"speed {speed!r} outside {lower}-{upper}")
            tokens.append(str(speed))

        if layout.lba_range:
            if self.state.start_lba is None or self.state.end_lba is None:
                raise SerializationError("LBA range is not set")
            tokens.extend((str(self.state.start_lba), str(self.state.end_lba)))

        if layout.swap_lbas:
            tokens.extend(str(lba) for lba in self.state.extra_lbas)

        return tokens

    def _parse_positionals(self, parts: list[str]) -> Optional[int]:
        try:
            command = Command(parts[0])
        except ValueError:
            raise ParseError("unknown command", parts[0]) from None

        self.state.command = command
        layout = LAYOUTS[command]
        if len(parts) < layout.min_tokens:
            raise ParseError(f"{command.value} needs {layout.min_tokens - 1} arguments")
        if layout.exact and len(parts) != layout.min_tokens:
            raise ParseError(f"{command.value} takes exactly {layout.min_tokens - 1} arguments")

        i = 1
        if layout.drive:
            if not is_valid_drive_identifier(parts[i]):
                raise ParseError("invalid drive", parts[i])
            self.state.drive = parts[i]
            i += 1

        if layout.filename:
            self.state.filename = self._read_filename(parts[i], layout.existing_files)
            i += 1

        if layout.secondary_filename:
            self.state.secondary_filename = self._read_filename(parts[i], layout.existing_files)
            i += 1

        if layout.speed:
            lower, upper = config.DIC_SPEED_BOUNDS[command.value]
            if not is_valid_int(parts[i], lower, upper):
                raise ParseError(f"speed outside {lower}-{upper}", parts[i])
            self.state.speed = parse_int(parts[i])
            i += 1

        if layout.lba_range:
            for name in ("start_lba", "end_lba"):
                if not is_valid_int(parts[i]):
                    raise ParseError("invalid LBA", parts[i])
                setattr(self.state, name, parse_int(parts[i]))
                i += 1

        if layout.swap_lbas:
            while i < len(parts) and is_valid_int(parts[i], width=64):
                self.state.extra_lbas.append(parse_int(parts[i]))
                i += 1

        return None if layout.exact else i

    def _read_filename(self, token: str, must_exist: bool) -> str:
        if self.is_flag_token(token):
            raise ParseError("expected a filename", token)
        if must_exist and not Path(token).exists():
            raise ParseError("file does not exist", token)
        return token

    # ------------------------------------------------------------------
    # Defaults
    # ------------------------------------------------------------------

    def _enable(self, flag: Flag, *values: Any) -> None:
        """Set ``flag`` if the current verb takes it, with optional values."""
        if not self.is_flag_supported(flag):
            return
        self[flag] = True
        if values:
            self.set_value(flag, *values)

    def set_default_parameters(
        self,
        drive: Optional[str],
        filename: Optional[str],
        speed: Optional[int],
        options: Options,
    ) -> None:
        self.state.command = base_command(self.system, self.media_type)
        self.state.drive = drive
        self.state.speed = speed
        self.state.filename = filename
        if self.state.command is None:
            logger.debug(
                "No DiscImageCreator verb for %s on %s",
                self.system.name if self.system else None,
                self.media_type.name if self.media_type else None,
            )
            return

        if options.dic_quiet_mode:
            self._enable(Flag.DisableBeep)

        self.set_value(
            Flag.C2Opcode,
            _reread_value(options.dic_reread_count, config.DEFAULT_C2_REREAD_COUNT),
        )
        self.set_value(
            Flag.DVDReread,
            _reread_value(options.dic_dvd_reread_count, config.DEFAULT_DVD_REREAD_COUNT),
        )

        media_type, system = self.media_type, self.system
        if media_type is MediaType.CDROM:
            self._enable(Flag.C2Opcode)
            if options.dic_multi_sector_read:
                self._enable(Flag.MultiSectorRead, options.dic_multi_sector_read_value)

            if system in _MAC_PC:
                self._enable(Flag.NoFixSubQSecuROM)
                self._enable(Flag.ScanFileProtect)
                if options.dic_paranoid_mode:
                    self._enable(Flag.ScanSectorProtect)
                    self._enable(Flag.SubchannelReadLevel, 2)
            elif system is RedumpSystem.AtariJaguarCD:
                self._enable(Flag.AtariJaguar)
            elif system in _VIDEO_NOW:
                # needed for the first run, a placeholder afterwards
                self._enable(Flag.AddOffset, 0)
            elif system is RedumpSystem.SonyPlayStation:
                self._enable(Flag.ScanAntiMod)
                self._enable(Flag.NoFixSubQLibCrypt)

        elif media_type is MediaType.DVD:
            if options.dic_use_cmi_flag:
                self._enable(Flag.CopyrightManagementInformation)
            if options.dic_paranoid_mode:
                self._enable(Flag.ScanFileProtect)
            self._enable(Flag.DVDReread)
        elif media_type is MediaType.GDROM:
            self._enable(Flag.C2Opcode)
        elif media_type is MediaType.HDDVD:
            if options.dic_use_cmi_flag:
                self._enable(Flag.CopyrightManagementInformation)
            self._enable(Flag.DVDReread)
        elif media_type is MediaType.BluRay:
            self._enable(Flag.DVDReread)
        elif media_type in (MediaType.NintendoGameCubeGameDisc, MediaType.NintendoWiiOpticalDisc):
            self._enable(Flag.Raw)

    # ------------------------------------------------------------------
    # Generic dumping information
    # ------------------------------------------------------------------

    @property
    def input_path(self) -> Optional[str]:
        return self.state.drive

    @property
    def output_path(self) -> Optional[str]:
        return self.state.filename

    @property
    def speed(self) -> Optional[int]:
        return self.state.speed

    def is_dumping_command(self) -> bool:
        return self.state.command in DUMPING_COMMANDS

    def get_media_type(self) -> Optional[MediaType]:
        return COMMAND_MEDIA.get(self.state.command)

    def get_default_extension(self, media_type: Optional[MediaType]) -> Optional[str]:
        if media_type is None:
            return None
        return media_type.default_extension

    def _effective_media_type(self) -> Optional[MediaType]:
        return self.media_type or self.get_media_type()

    # ------------------------------------------------------------------
    # Output files
    # ------------------------------------------------------------------

    def get_log_file_paths(self, base_path: Path | str) -> list[Path]:
        media_type = self._effective_media_type()
        if media_type in CD_MEDIA:
            suffixes = CD_LOG_SUFFIXES
        elif media_type in DVD_MEDIA:
            suffixes = DVD_LOG_SUFFIXES
        elif media_type in DISK_MEDIA:
            suffixes = DISK_LOG_SUFFIXES
        else:
            return []

        cmd_path, _ = get_command_file_path_and_version(base_path)
        paths: list[Path] = []
        for suffix in suffixes:
            # the timestamped command file is listed where _cmd.txt would be
            if suffix == "_cmd.txt" and cmd_path is not None:
                paths.append(cmd_path)
            path = log_path(base_path, suffix)
            if path.exists():
                paths.append(path)
        return paths

    def check_all_output_files_exist(
        self, base_path: Path | str, pre_check: bool = False
    ) -> tuple[bool, list[str]]:
        """Report expected outputs that are missing.

        With ``pre_check`` an existing ``_logs.zip`` stands in for the logs.
        """
        media_type = self._effective_media_type()
        missing: list[str] = []

        def require(*suffixes: str) -> None:
            if not any(log_path(base_path, s).exists() for s in suffixes):
                missing.append(str(log_path(base_path, suffixes[0])))

        logs_zipped = pre_check and log_path(base_path, "_logs.zip").exists()
        audio = self.system is not None and self.system.is_audio

        if media_type in CD_MEDIA:
            require(".cue")
            require(".img", ".imgtmp")
            if not audio:
                require(".scm", ".scmtmp")
            if not logs_zipped:
                # the GD-ROM high density area has no CloneCD control file
                if media_type is not MediaType.GDROM:
                    require(".ccd")
                for group in CD_LOG_GROUPS:
                    require(*group)
                if not audio:
                    require(".img_EdcEcc.txt", ".img_EccEdc.txt")
        elif media_type in DVD_MEDIA:
            if not logs_zipped:
                for group in DVD_LOG_GROUPS:
                    require(*group)
        elif media_type in DISK_MEDIA:
            if not logs_zipped:
                for group in DISK_LOG_GROUPS:
                    require(*group)
        else:
            missing.append("Media and system combination not supported for DiscImageCreator")

        return not missing, missing

    def generate_submission_info(
        self,
        info: SubmissionInfo,
        base_path: Path | str,
        options: Optional[Options] = None,
        drive_path: Optional[Path] = None,
        include_artifacts: bool = False,
    ) -> SubmissionInfo:
        from .submission import generate_submission_info

        return generate_submission_info(
            self, info, base_path, options or Options(), drive_path, include_artifacts
        )

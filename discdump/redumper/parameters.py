"""Redumper command lines.

``<verb> --flag --flag=value ...`` with no positionals; a bare ``--help``
or ``-h`` is the verb-less help invocation. Values may also follow as the
next token (``--speed 8``) but are always written inline.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePath
from typing import Any, Optional

from .. import config
from ..common.exceptions import ParseError, SerializationError
from ..common.models import SubmissionInfo
from ..common.types import InternalProgram, MediaType, is_valid_combination
from ..core.config_manager import Options
from ..extraction.common import log_path
from ..parameters.base import BaseParameters
from .constants import (
    COMMAND_MEDIA,
    DUMPING_COMMANDS,
    FLAG_SPECS,
    HELP_TOKENS,
    LOG_SUFFIXES,
    REDUMPER_REGISTRY,
    Command,
    Flag,
)

logger = logging.getLogger(__name__)


class RedumperParameters(BaseParameters):
    program = InternalProgram.Redumper
    command_type = Command
    flag_type = Flag
    flag_specs = FLAG_SPECS
    default_registry = REDUMPER_REGISTRY

    def _command_tokens(self) -> list[str]:
        tokens = super()._command_tokens()
        if self.state.command is not Command.NONE:
            return tokens
        # without a verb the only valid invocation is --help
        if self.state.flags[Flag.Help] is not True:
            raise SerializationError("command is not set")
        return []

    def _positional_tokens(self) -> list[str]:
        return []

    def _render_flag(self, flag, rendered_values: list[str]) -> list[str]:
        if not rendered_values:
            return [flag.value]
        return [f"{flag.value}={rendered_values[0]}"]

    def _split_token(self, token: str) -> tuple[str, Optional[str]]:
        if token.startswith("--") and "=" in token:
            name, _, value = token.partition("=")
            return name, value
        return token, None

    def _parse_positionals(self, parts: list[str]) -> Optional[int]:
        if parts[0] in HELP_TOKENS:
            # the help token is read again as a flag
            self.state.command = Command.NONE
            return 0
        try:
            self.state.command = Command(parts[0])
        except ValueError:
            raise ParseError("unknown command", parts[0]) from None
        if self.state.command is Command.NONE:
            raise ParseError("unknown command", parts[0])
        return 1

    # ------------------------------------------------------------------
    # Defaults
    # ------------------------------------------------------------------

    def _enable(self, flag: Flag, value: Any) -> None:
        if value is None:
            return
        self[flag] = True
        self.set_value(flag, value)

    def set_default_parameters(
        self,
        drive: Optional[str],
        filename: Optional[str],
        speed: Optional[int],
        options: Options,
    ) -> None:
        if not is_valid_combination(self.system, self.media_type) or self.media_type is not MediaType.CDROM:
            logger.debug("No Redumper verb for %s", self.media_type.name if self.media_type else None)
            self.state.command = None
            return

        self.state.command = Command.CD
        self._enable(Flag.Drive, drive)
        # 0 leaves the speed to the drive
        self._enable(Flag.Speed, speed or None)

        if filename:
            path = PurePath(filename.strip('"'))
            if str(path.parent) not in ("", "."):
                self._enable(Flag.ImagePath, str(path.parent))
            self._enable(Flag.ImageName, path.stem)

        retries = options.redumper_reread_count
        if retries == 0:
            retries = config.DEFAULT_REDUMPER_RETRIES
        if retries != -1:
            self._enable(Flag.Retries, retries)

    # ------------------------------------------------------------------
    # Generic dumping information
    # ------------------------------------------------------------------

    @property
    def input_path(self) -> Optional[str]:
        return self.value(Flag.Drive)

    @property
    def output_path(self) -> Optional[str]:
        image_path = self.value(Flag.ImagePath) or ""
        image_name = self.value(Flag.ImageName) or ""
        if not image_path and not image_name:
            return None
        return str(PurePath(image_path, image_name))

    @property
    def speed(self) -> Optional[int]:
        return self.value(Flag.Speed)

    def is_dumping_command(self) -> bool:
        return self.state.command in DUMPING_COMMANDS

    def get_media_type(self) -> Optional[MediaType]:
        return COMMAND_MEDIA.get(self.state.command)

    def get_default_extension(self, media_type: Optional[MediaType]) -> Optional[str]:
        return ".bin"

    # ------------------------------------------------------------------
    # Output files
    # ------------------------------------------------------------------

    def get_log_file_paths(self, base_path: Path | str) -> list[Path]:
        return [p for p in (log_path(base_path, s) for s in LOG_SUFFIXES) if p.exists()]

    def check_all_output_files_exist(
        self, base_path: Path | str, pre_check: bool = False
    ) -> tuple[bool, list[str]]:
        media_type = self.media_type or self.get_media_type()
        if media_type is not MediaType.CDROM:
            return False, ["Media and system combination not supported for Redumper"]

        missing: list[str] = []
        logs_zipped = pre_check and log_path(base_path, "_logs.zip").exists()
        required = (".cue",) if logs_zipped else (".log", ".cue")
        for suffix in required:
            path = log_path(base_path, suffix)
            if not path.exists():
                missing.append(str(path))
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

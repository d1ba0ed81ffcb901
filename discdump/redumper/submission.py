"""SubmissionInfo from a Redumper ``.log`` and ``.cue``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

from .. import config
from ..common.models import SubmissionInfo
from ..common.result import is_found, value_or
from ..common.types import MediaType, RedumpSystem, SiteCode
from ..core.config_manager import Options
from ..extraction import playstation
from ..extraction.common import get_file_base64, get_file_modified_date, get_full_file, log_path
from ..logging_cfg import log_call
from . import extractors as redumper

if TYPE_CHECKING:
    from .parameters import RedumperParameters

logger = logging.getLogger(__name__)

Handler = Callable[[SubmissionInfo, Optional[Path]], None]


def _executable_info(info: SubmissionInfo, drive_path: Optional[Path]) -> None:
    exe = playstation.get_executable_info(drive_path)
    if not is_found(exe):
        return
    common = info.common_disc_info
    common.comments_special_fields[SiteCode.InternalSerialName] = exe.serial or ""
    if common.region is None:
        common.region = exe.region
    common.exe_date_build_date = exe.date


def _with_version(version_of: Callable[[Optional[Path]], object], exe_info: bool) -> Handler:
    def handler(info: SubmissionInfo, drive_path: Optional[Path]) -> None:
        if exe_info:
            _executable_info(info, drive_path)
        info.version_and_editions.version = value_or(version_of(drive_path), "")

    return handler


PLATFORM_HANDLERS: dict[RedumpSystem, Handler] = {
    RedumpSystem.KonamiPython2: _with_version(playstation.get_ps2_version, exe_info=True),
    RedumpSystem.SonyPlayStation: _executable_info,
    RedumpSystem.SonyPlayStation2: _with_version(playstation.get_ps2_version, exe_info=True),
    RedumpSystem.SonyPlayStation4: _with_version(playstation.get_ps4_version, exe_info=False),
    RedumpSystem.SonyPlayStation5: _with_version(playstation.get_ps5_version, exe_info=False),
}


def collect_artifacts(base_path: Path | str) -> dict[str, str]:
    artifacts: dict[str, str] = {}
    for name, (suffix, binary) in config.REDUMPER_ARTIFACTS.items():
        encoded = get_file_base64(log_path(base_path, suffix), binary=binary)
        if is_found(encoded) and encoded is not None:
            artifacts[name] = encoded
    return artifacts


@log_call()
def generate_submission_info(
    params: "RedumperParameters",
    info: SubmissionInfo,
    base_path: Path | str,
    options: Options,
    drive_path: Optional[Path] = None,
    include_artifacts: bool = False,
) -> SubmissionInfo:
    log = log_path(base_path, ".log")

    version = redumper.get_version(log)
    info.dumping_info.dumping_program = (
        f"{params.program.long_name} {value_or(version, config.UNKNOWN_VERSION)}"
    )
    modified = get_file_modified_date(log)
    if is_found(modified):
        info.dumping_info.dumping_date = modified.strftime(config.DATE_FMT)

    hardware = redumper.get_hardware_info(log)
    if is_found(hardware):
        info.dumping_info.manufacturer, info.dumping_info.model, info.dumping_info.firmware = hardware

    media_type = params.media_type or params.get_media_type()
    if media_type is MediaType.CDROM:
        info.tracks_and_write_offsets.clrmamepro_data = value_or(redumper.get_datfile(log), None)
        info.tracks_and_write_offsets.cuesheet = value_or(get_full_file(log_path(base_path, ".cue")), "")

        offset = redumper.get_write_offset(log)
        if is_found(offset):
            info.common_disc_info.ring_write_offset = offset
            info.tracks_and_write_offsets.other_write_offsets = offset

        errors = redumper.get_error_count(log)
        info.common_disc_info.errors_count = (
            str(errors) if is_found(errors) else config.ERROR_COUNT_MESSAGE
        )

    handler = PLATFORM_HANDLERS.get(params.system)
    if handler is not None:
        handler(info, Path(drive_path) if drive_path is not None else None)

    if include_artifacts or options.include_artifacts:
        info.artifacts.update(collect_artifacts(base_path))

    logger.info("Collected Redumper submission info from %s", log)
    return info

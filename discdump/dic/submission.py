"""Build a SubmissionInfo from the files DiscImageCreator leaves behind.

``generate_submission_info`` fills the sections every dump of a media family
shares, then runs at most one platform handler from ``PLATFORM_HANDLERS``.
Every value comes from a fail-open extractor, so a missing or damaged log
only leaves its fields empty.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

from .. import config
from ..common.models import SubmissionInfo, to_yes_no
from ..common.result import is_found, value_or
from ..common.types import MediaType, RedumpSystem, SiteCode
from ..core.config_manager import Options
from ..extraction import pic as pic_scan
from ..extraction import playstation, sega
from ..extraction.common import (
    get_datafile,
    get_file_base64,
    get_file_modified_date,
    get_full_file,
    get_iso_hash_values,
    log_path,
)
from ..extraction.xgd import XgdInfo, get_xgd1_xmid, get_xgd23_xemid
from ..logging_cfg import log_call
from ..verification.dat_parser import generate_datfile
from . import extractors as dic
from .constants import CD_MEDIA

if TYPE_CHECKING:
    from .parameters import DicParameters

logger = logging.getLogger(__name__)

_OPTICAL_DISC_MEDIA = (MediaType.DVD, MediaType.HDDVD, MediaType.BluRay)
_PS3_PS4_PS5 = (
    RedumpSystem.SonyPlayStation3,
    RedumpSystem.SonyPlayStation4,
    RedumpSystem.SonyPlayStation5,
)


@dataclass(slots=True)
class DumpContext:
    """Everything a platform handler may look at."""

    params: "DicParameters"
    base_path: Path
    media_type: Optional[MediaType]
    options: Options
    drive_path: Optional[Path]

    def log(self, suffix: str) -> Path:
        return log_path(self.base_path, suffix)


# ============================================================================
# GENERIC SECTIONS
# ============================================================================

def _fill_dumping_info(info: SubmissionInfo, ctx: DumpContext) -> None:
    cmd_path, version = dic.get_command_file_path_and_version(ctx.base_path)
    info.dumping_info.dumping_program = (
        f"{ctx.params.program.long_name} {version or config.UNKNOWN_VERSION}"
    )
    modified = get_file_modified_date(cmd_path)
    if is_found(modified):
        info.dumping_info.dumping_date = modified.strftime(config.DATE_FMT)

    hardware = dic.get_hardware_info(ctx.log("_drive.txt"))
    if is_found(hardware):
        manufacturer, model, firmware = hardware
        info.dumping_info.manufacturer = manufacturer
        info.dumping_info.model = model
        info.dumping_info.firmware = firmware

    disc_type = dic.get_disc_type(ctx.log("_disc.txt"))
    if is_found(disc_type):
        info.dumping_info.reported_disc_type = disc_type


def _error_count(ctx: DumpContext) -> str:
    system = ctx.params.system
    if system is not None and system.is_audio:
        return "0"
    count = dic.get_error_count(ctx.log(".img_EdcEcc.txt"))
    if not is_found(count):
        count = dic.get_error_count(ctx.log(".img_EccEdc.txt"))
    if not is_found(count):
        return config.ERROR_COUNT_MESSAGE
    return str(count)


def _fill_cd(info: SubmissionInfo, ctx: DumpContext) -> None:
    info.extras.pvd = value_or(dic.get_pvd(ctx.log("_mainInfo.txt")), config.NO_PVD_MESSAGE)
    info.common_disc_info.errors_count = _error_count(ctx)
    info.tracks_and_write_offsets.cuesheet = value_or(get_full_file(ctx.log(".cue")), "")

    offset = dic.get_write_offset(ctx.log("_disc.txt"))
    if is_found(offset):
        info.common_disc_info.ring_write_offset = offset
        info.tracks_and_write_offsets.other_write_offsets = offset

    multisession = dic.get_multisession_information(ctx.log("_disc.txt"))
    info.common_disc_info.comments_special_fields[SiteCode.Multisession] = value_or(multisession, "")

    system = ctx.params.system
    if system is not None and system.is_audio:
        universal = dic.get_universal_hash(ctx.log("_disc.txt"))
        if is_found(universal):
            info.common_disc_info.comments_special_fields[SiteCode.UniversalHash] = universal


def _fill_layered(info: SubmissionInfo, ctx: DumpContext, datafile) -> None:
    hashes = get_iso_hash_values(datafile if is_found(datafile) else None)
    sizes = info.size_and_checksums
    if is_found(hashes):
        sizes.size, sizes.crc32, sizes.md5, sizes.sha1 = hashes

    system = ctx.params.system
    if ctx.media_type is MediaType.DVD:
        xgd = system is not None and system.is_xgd
        layerbreak = dic.get_layerbreak(ctx.log("_disc.txt"), xgd=xgd)
        if is_found(layerbreak):
            sizes.layerbreak = layerbreak
    elif ctx.media_type is MediaType.BluRay:
        _fill_bluray_layers(info, ctx)

    # the Xbox PVD is not part of a redump submission
    if not (ctx.options.enable_redump_compatibility and system is RedumpSystem.MicrosoftXbox):
        info.extras.pvd = value_or(dic.get_pvd(ctx.log("_mainInfo.txt")), config.NO_PVD_MESSAGE)

    if ctx.media_type is MediaType.BluRay:
        trim = config.PIC_TRIM_LENGTH if system in _PS3_PS4_PS5 else -1
        pic_text = pic_scan.get_pic(ctx.log("_PIC.bin"), trim)
        if is_found(pic_text):
            info.extras.pic = pic_text


def _fill_bluray_layers(info: SubmissionInfo, ctx: DumpContext) -> None:
    disc_info = pic_scan.get_disc_information(ctx.log("_PIC.bin"))
    if not is_found(disc_info):
        return
    sizes = info.size_and_checksums
    sizes.pic_identifier = pic_scan.get_pic_identifier(disc_info)

    layerbreaks = pic_scan.get_layerbreaks(disc_info)
    if not is_found(layerbreaks):
        return

    size = sizes.size or 0

    # a layerbreak past the end of the image is not trusted
    def within_image(layerbreak: Optional[int]) -> Optional[int]:
        if layerbreak is None or layerbreak * config.SECTOR_SIZE >= size:
            return None
        return layerbreak

    first, second, third = layerbreaks
    sizes.layerbreak = within_image(first)
    sizes.layerbreak2 = within_image(second)
    sizes.layerbreak3 = within_image(third)


# ============================================================================
# PLATFORM HANDLERS
# ============================================================================

def _securom(info: SubmissionInfo, ctx: DumpContext) -> None:
    sub_intention = ctx.log("_subIntention.txt")
    if sub_intention.is_file() and sub_intention.stat().st_size > 0:
        info.copy_protection.securom_data = value_or(get_full_file(sub_intention), None)


def _dvd_protection(info: SubmissionInfo, ctx: DumpContext) -> None:
    protection = dic.get_dvd_protection(ctx.log("_disc.txt"), ctx.log("_CSSKey.txt"))
    if is_found(protection):
        info.copy_protection.protection = protection


def _set_executable_info(info: SubmissionInfo, ctx: DumpContext) -> None:
    exe = playstation.get_executable_info(ctx.drive_path)
    if not is_found(exe):
        return
    common = info.common_disc_info
    if exe.serial:
        common.comments_special_fields[SiteCode.InternalSerialName] = exe.serial
    if common.region is None:
        common.region = exe.region
    if exe.date:
        common.exe_date_build_date = exe.date


def _playstation2(info: SubmissionInfo, ctx: DumpContext) -> None:
    _set_executable_info(info, ctx)
    version = playstation.get_ps2_version(ctx.drive_path)
    if is_found(version):
        info.version_and_editions.version = version


def _xbox(info: SubmissionInfo, ctx: DumpContext) -> None:
    system = ctx.params.system
    dmi = ctx.log("_DMI.bin")
    if system is RedumpSystem.MicrosoftXbox:
        raw = get_xgd1_xmid(dmi)
        site_code = SiteCode.XMID
    else:
        raw = get_xgd23_xemid(dmi)
        site_code = SiteCode.XeMID

    xgd = XgdInfo.parse(raw) if is_found(raw) else None
    common = info.common_disc_info
    if xgd is not None:
        common.comments_special_fields[site_code] = xgd.raw
        common.serial = xgd.serial
        if not ctx.options.enable_redump_compatibility:
            info.version_and_editions.version = xgd.version_string
        common.region = xgd.region

    suppl = ctx.log("_suppl.dat")
    if suppl.exists():
        hashes = dic.get_xgd_aux_hash_info(get_datafile(suppl))
        ss_info = dic.get_xgd_aux_ss_info(ctx.log("_disc.txt"))
        aux = hashes if is_found(hashes) else None
        if is_found(ss_info):
            if aux is None:
                aux = ss_info
            else:
                aux.security_sector_ranges = ss_info.security_sector_ranges
                aux.ss_version = ss_info.ss_version
    else:
        result = dic.get_xgd_aux_info(ctx.log("_disc.txt"))
        aux = result if is_found(result) else None

    if aux is None:
        return
    fields = common.comments_special_fields
    for code, value in (
        (SiteCode.DMIHash, aux.dmi_hash),
        (SiteCode.PFIHash, aux.pfi_hash),
        (SiteCode.SSHash, aux.ss_hash),
        (SiteCode.SSVersion, aux.ss_version),
    ):
        if value is not None:
            fields[code] = value
    if aux.security_sector_ranges is not None:
        info.extras.security_sector_ranges = aux.security_sector_ranges


def _apply_sega_header(info: SubmissionInfo, ctx: DumpContext, platform: sega.SegaPlatform) -> None:
    header = dic.get_sega_header(ctx.log("_mainInfo.txt"))
    if not is_found(header):
        return
    header = sega.trim_header(header, platform)
    info.extras.header = header

    build = sega.get_build_info(header, platform)
    if not is_found(build):
        return
    if build.serial:
        info.common_disc_info.comments_special_fields[SiteCode.InternalSerialName] = build.serial
    if build.version:
        info.version_and_editions.version = build.version
    if build.date:
        info.common_disc_info.exe_date_build_date = build.date


def _gdrom_header(info: SubmissionInfo, ctx: DumpContext) -> None:
    # the high density area is not readable with a cd verb
    if ctx.media_type is MediaType.CDROM:
        _apply_sega_header(info, ctx, sega.SegaPlatform.GDROM)


def _sega_cd(info: SubmissionInfo, ctx: DumpContext) -> None:
    _apply_sega_header(info, ctx, sega.SegaPlatform.SEGA_CD)


def _saturn(info: SubmissionInfo, ctx: DumpContext) -> None:
    _apply_sega_header(info, ctx, sega.SegaPlatform.SATURN)


def _playstation(info: SubmissionInfo, ctx: DumpContext) -> None:
    _set_executable_info(info, ctx)

    edc = dic.get_playstation_edc_status(ctx.log(".img_EdcEcc.txt"))
    if not is_found(edc):
        edc = dic.get_playstation_edc_status(ctx.log(".img_EccEdc.txt"))
    if is_found(edc):
        info.edc.edc = to_yes_no(edc)

    anti_modchip = dic.get_playstation_anti_modchip_detected(ctx.log("_disc.txt"))
    if is_found(anti_modchip):
        info.copy_protection.anti_modchip = to_yes_no(anti_modchip)


def _playstation_bd(
    serial_of: Callable[[Optional[Path]], object],
    version_of: Callable[[Optional[Path]], object],
) -> Callable[[SubmissionInfo, DumpContext], None]:
    def handler(info: SubmissionInfo, ctx: DumpContext) -> None:
        version = version_of(ctx.drive_path)
        if is_found(version):
            info.version_and_editions.version = version
        serial = serial_of(ctx.drive_path)
        if is_found(serial):
            info.common_disc_info.comments_special_fields[SiteCode.InternalSerialName] = serial

    return handler


PLATFORM_HANDLERS: dict[RedumpSystem, Callable[[SubmissionInfo, DumpContext], None]] = {
    RedumpSystem.AppleMacintosh: _securom,
    RedumpSystem.EnhancedCD: _securom,
    RedumpSystem.IBMPCcompatible: _securom,
    RedumpSystem.RainbowDisc: _securom,
    RedumpSystem.SonyElectronicBook: _securom,
    RedumpSystem.DVDAudio: _dvd_protection,
    RedumpSystem.DVDVideo: _dvd_protection,
    RedumpSystem.KonamiPython2: _playstation2,
    RedumpSystem.SonyPlayStation2: _playstation2,
    RedumpSystem.MicrosoftXbox: _xbox,
    RedumpSystem.MicrosoftXbox360: _xbox,
    RedumpSystem.NamcoSegaNintendoTriforce: _gdrom_header,
    RedumpSystem.SegaChihiro: _gdrom_header,
    RedumpSystem.SegaDreamcast: _gdrom_header,
    RedumpSystem.SegaNaomi: _gdrom_header,
    RedumpSystem.SegaNaomi2: _gdrom_header,
    RedumpSystem.SegaMegaCDSegaCD: _sega_cd,
    RedumpSystem.SegaSaturn: _saturn,
    RedumpSystem.SonyPlayStation: _playstation,
    RedumpSystem.SonyPlayStation3: _playstation_bd(playstation.get_ps3_serial, playstation.get_ps3_version),
    RedumpSystem.SonyPlayStation4: _playstation_bd(playstation.get_ps4_serial, playstation.get_ps4_version),
    RedumpSystem.SonyPlayStation5: _playstation_bd(playstation.get_ps5_serial, playstation.get_ps5_version),
}


# ============================================================================
# ARTIFACTS
# ============================================================================

def collect_artifacts(base_path: Path | str) -> dict[str, str]:
    """Base64 copies of the logs that exist, keyed by artifact name."""
    artifacts: dict[str, str] = {}
    for name, (suffix, binary) in config.DIC_ARTIFACTS.items():
        encoded = get_file_base64(log_path(base_path, suffix), binary=binary)
        if not is_found(encoded) and name == "img_EdcEcc":
            encoded = get_file_base64(log_path(base_path, ".img_EccEdc.txt"))
        if is_found(encoded) and encoded is not None:
            artifacts[name] = encoded
    return artifacts


# ============================================================================
# ENTRY POINT
# ============================================================================

@log_call()
def generate_submission_info(
    params: "DicParameters",
    info: SubmissionInfo,
    base_path: Path | str,
    options: Options,
    drive_path: Optional[Path] = None,
    include_artifacts: bool = False,
) -> SubmissionInfo:
    """Fill ``info`` from the logs next to ``base_path`` and return it."""
    ctx = DumpContext(
        params=params,
        base_path=Path(base_path),
        media_type=params.media_type or params.get_media_type(),
        options=options,
        drive_path=Path(drive_path) if drive_path is not None else None,
    )

    _fill_dumping_info(info, ctx)

    datafile = get_datafile(ctx.log(".dat"))
    if is_found(datafile):
        info.tracks_and_write_offsets.clrmamepro_data = generate_datfile(datafile)

    if ctx.media_type in CD_MEDIA:
        _fill_cd(info, ctx)
    elif ctx.media_type in _OPTICAL_DISC_MEDIA:
        _fill_layered(info, ctx, datafile)

    handler = PLATFORM_HANDLERS.get(params.system)
    if handler is not None:
        logger.debug("Applying %s handler", params.system.name)
        handler(info, ctx)

    if include_artifacts or options.include_artifacts:
        info.artifacts.update(collect_artifacts(ctx.base_path))

    logger.info(
        "Collected submission info for %s",
        params.system.long_name if params.system else "unknown system",
    )
    return info

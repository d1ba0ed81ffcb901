"""Redumper command lines, log scanners and submission info."""

from datetime import datetime

import pytest

from discdump import config
from discdump.common.exceptions import ParseError, SerializationError
from discdump.common.models import SubmissionInfo
from discdump.common.types import MediaType, RedumpSystem, Region, SiteCode
from discdump.core.config_manager import Options
from discdump.redumper import RedumperParameters
from discdump.redumper import extractors as redumper
from discdump.redumper import submission
from discdump.redumper.constants import Command, Flag
from tests.helpers import rom_line, set_mtime, touch_all, valid_combinations, write_log


def parse(raw: str) -> RedumperParameters:
    return RedumperParameters.from_string(raw)


REDUMPER_LOG = [
    "redumper v2023.10.02 build_230 [Oct  2 2023, 12:00:00]",
    "",
    "arguments: cd --drive=E: --image-name=game",
    "drive path: E:",
    "drive: PLEXTOR - DVDR   PX-760A (revision level: 1.07, vendor specific: 10/05/08)",
    "",
    "disc write offset: +6",
    "",
    "media errors:",
    "  SCSI: 4",
    "  C2: 7",
    "",
    "media errors:",
    "  SCSI: 0",
    "  C2: 3",
    "",
    "dat:",
    rom_line("game (Track 1).bin", 1000, "11111111"),
    rom_line("game (Track 2).bin", 2000, "22222222"),
    "",
]


# ============================================================================
# PARSING AND SERIALIZING
# ============================================================================

class TestParse:
    def test_inline_and_separate_values(self):
        params = parse("cd --drive=E: --speed 8 --retries=20 --verbose")
        assert params.state.command is Command.CD
        assert params.value(Flag.Drive) == "E:"
        assert params.value(Flag.Speed) == 8
        assert params.value(Flag.Retries) == 20
        assert params[Flag.Verbose] is True

    def test_serialize_in_flag_order(self):
        raw = "cd --verbose --speed=8 --drive=E: --image-path=out --image-name=game --retries=20"
        assert parse(raw).serialize() == (
            "cd --drive=E: --image-name=game --image-path=out --retries=20 --speed=8 --verbose"
        )

    @pytest.mark.parametrize(
        "raw",
        [
            "cd --speed=0",
            "cd --retries=-1",
            "cd --ring-size=-5",
            "cd --skip-size=abc",
            "cd --audio-silence-threshold=x",
            "cd --speed",
        ],
    )
    def test_bounded_values_fail(self, raw):
        with pytest.raises(ParseError):
            parse(raw)

    def test_ring_size(self):
        assert parse("cd --ring-size=1024").serialize() == "cd --ring-size=1024"

    def test_skip_fill_is_hex(self):
        params = parse("dump --skip-fill=ff")
        assert params.value(Flag.SkipFill) == 0xFF
        assert params.serialize() == "dump --skip-fill=ff"
        assert parse("dump --skip-fill=0x55").serialize() == "dump --skip-fill=55"

    def test_invalid_unbounded_value_leaves_flag_unset(self):
        params = parse("cd --force-offset=abc --verbose")
        assert params[Flag.ForceOffset] is None
        assert params[Flag.Verbose] is True

    def test_negative_offset(self):
        assert parse("cd --force-offset=-48").value(Flag.ForceOffset) == -48

    def test_value_on_switch_is_skipped(self):
        assert parse("cd --verbose=1")[Flag.Verbose] is None

    def test_unknown_tokens_are_skipped(self):
        assert parse("cd --bogus --overwrite").serialize() == "cd --overwrite"

    @pytest.mark.parametrize("raw", ["--help", "-h"])
    def test_help(self, raw):
        params = parse(raw)
        assert params.state.command is Command.NONE
        assert params[Flag.Help] is True
        assert params.serialize() == "--help"

    def test_help_only_without_verb(self):
        params = parse("cd --help --verbose")
        assert params[Flag.Help] is None
        assert not params.is_flag_supported(Flag.Help)
        assert params.serialize() == "cd --verbose"

    def test_no_verb_without_help(self):
        params = parse("--help")
        params[Flag.Help] = False
        with pytest.raises(SerializationError):
            params.serialize()
        assert params.generate_parameters() is None

        empty = RedumperParameters()
        empty.state.command = Command.NONE
        assert empty.generate_parameters() is None

    @pytest.mark.parametrize("raw", ["", "rip --drive=E:", '""'])
    def test_unknown_verb(self, raw):
        with pytest.raises(ParseError):
            parse(raw)

    def test_path_with_spaces_roundtrip(self):
        params = parse('cd "--image-path=my dumps" --image-name=game')
        assert params.value(Flag.ImagePath) == "my dumps"
        assert params.serialize() == 'cd --image-name=game "--image-path=my dumps"'

    def test_whitespace_in_value_is_quoted(self):
        params = parse("cd --image-name=game")
        params[Flag.ImagePath] = True
        params.set_value(Flag.ImagePath, "my\tdumps")
        line = params.serialize()
        assert line == 'cd --image-name=game "--image-path=my\tdumps"'
        assert parse(line).value(Flag.ImagePath) == "my\tdumps"

    def test_double_quote_in_value(self):
        params = parse("cd --image-name=game")
        params.set_value(Flag.ImageName, 'my "best" game')
        with pytest.raises(SerializationError) as excinfo:
            params.serialize()
        assert excinfo.value.flag == "--image-name"

    def test_every_verb_takes_every_flag(self):
        for command in Command:
            if command is Command.NONE:
                continue
            params = parse(f"{command.value} --overwrite")
            assert params[Flag.Overwrite] is True, command


# ============================================================================
# DEFAULTS AND GENERIC INFORMATION
# ============================================================================

class TestDefaults:
    def test_cd(self):
        params = RedumperParameters.from_fields(
            RedumpSystem.SonyPlayStation, MediaType.CDROM, "E:", "out/game.bin", 8
        )
        assert params.serialize() == (
            "cd --drive=E: --image-name=game --image-path=out --retries=20 --speed=8"
        )
        assert params.input_path == "E:"
        assert params.output_path == "out/game"
        assert params.speed == 8

    def test_no_speed_and_no_folder(self):
        params = RedumperParameters.from_fields(
            RedumpSystem.AudioCD, MediaType.CDROM, "E:", "game.bin", 0
        )
        assert params.serialize() == "cd --drive=E: --image-name=game --retries=20"

    @pytest.mark.parametrize("count, expected", [(5, " --retries=5"), (-1, "")])
    def test_retries_option(self, count, expected):
        params = RedumperParameters.from_fields(
            RedumpSystem.AudioCD, MediaType.CDROM, "E:", "game.bin", None,
            Options(redumper_reread_count=count),
        )
        assert params.serialize() == "cd --drive=E: --image-name=game" + expected

    @pytest.mark.parametrize(
        "system, media",
        [
            (RedumpSystem.SonyPlayStation2, MediaType.DVD),
            (RedumpSystem.SonyPlayStation, MediaType.DVD),
            (None, MediaType.CDROM),
        ],
    )
    def test_unsupported_media(self, system, media):
        params = RedumperParameters.from_fields(system, media, "E:", "game.bin", 8)
        assert params.state.command is None
        assert params.generate_parameters() is None

    @pytest.mark.parametrize("system, media", valid_combinations())
    def test_defaults_roundtrip(self, system, media):
        params = RedumperParameters.from_fields(system, media, "E:", "out/my game.bin", 8)
        first = params.generate_parameters()
        if params.state.command is None:
            assert first is None
            return
        assert parse(first).serialize() == first

    def test_generic_information(self):
        params = parse("dump --drive=E:")
        assert params.is_dumping_command()
        assert params.get_media_type() is MediaType.CDROM
        assert params.get_default_extension(MediaType.DVD) == ".bin"
        assert params.output_path is None

        info = parse("info --drive=E:")
        assert not info.is_dumping_command()
        assert info.get_media_type() is None


class TestOutputFiles:
    def test_all_present(self, tmp_path):
        base = tmp_path / "game"
        touch_all(base, [".log", ".cue", ".toc"])
        params = RedumperParameters(RedumpSystem.SonyPlayStation, MediaType.CDROM)
        assert params.check_all_output_files_exist(base) == (True, [])
        assert params.get_log_file_paths(base) == [tmp_path / "game.log", tmp_path / "game.toc"]

    def test_missing_log(self, tmp_path):
        base = tmp_path / "game"
        touch_all(base, [".cue"])
        params = RedumperParameters(RedumpSystem.SonyPlayStation, MediaType.CDROM)
        assert params.check_all_output_files_exist(base) == (False, [str(tmp_path / "game.log")])

    def test_zipped_logs(self, tmp_path):
        base = tmp_path / "game"
        touch_all(base, [".cue", "_logs.zip"])
        params = RedumperParameters(RedumpSystem.SonyPlayStation, MediaType.CDROM)
        assert params.check_all_output_files_exist(base, pre_check=True) == (True, [])

    def test_unsupported_media(self, tmp_path):
        params = RedumperParameters(RedumpSystem.SonyPlayStation2, MediaType.DVD)
        ok, missing = params.check_all_output_files_exist(tmp_path / "game")
        assert not ok
        assert missing == ["Media and system combination not supported for Redumper"]


# ============================================================================
# LOG SCANNERS
# ============================================================================

class TestExtractors:
    @pytest.fixture
    def log(self, tmp_path):
        return write_log(tmp_path / "game", ".log", REDUMPER_LOG)

    def test_version(self, log):
        assert redumper.get_version(log) == "v2023.10.02 build_230"

    def test_hardware(self, log):
        assert redumper.get_hardware_info(log) == ("PLEXTOR", "DVDR   PX-760A", "1.07")

    def test_write_offset(self, log):
        assert redumper.get_write_offset(log) == "+6"

    def test_error_count_uses_last_report(self, log):
        assert redumper.get_error_count(log) == 3

    def test_datfile(self, log):
        assert redumper.get_datfile(log) == "\n".join(REDUMPER_LOG[17:19])

    def test_nothing_found(self, tmp_path):
        log = write_log(tmp_path / "empty", ".log", ["nothing"])
        for scan in (
            redumper.get_version,
            redumper.get_hardware_info,
            redumper.get_write_offset,
            redumper.get_error_count,
            redumper.get_datfile,
        ):
            assert not scan(log), scan.__name__


# ============================================================================
# SUBMISSION INFO
# ============================================================================

class TestSubmission:
    def test_handled_systems(self):
        assert set(submission.PLATFORM_HANDLERS) == {
            RedumpSystem.KonamiPython2,
            RedumpSystem.SonyPlayStation,
            RedumpSystem.SonyPlayStation2,
            RedumpSystem.SonyPlayStation4,
            RedumpSystem.SonyPlayStation5,
        }

    def test_playstation2(self, tmp_path):
        base = tmp_path / "game"
        log = write_log(base, ".log", REDUMPER_LOG)
        set_mtime(log, datetime(2023, 10, 3, 8, 0, 0))
        write_log(base, ".cue", 'FILE "game (Track 1).bin" BINARY\n')
        drive = tmp_path / "mount"
        drive.mkdir()
        (drive / "SYSTEM.CNF").write_text("BOOT2 = cdrom0:\\SLPM_123.45;1\nVER = 1.02\n")

        params = RedumperParameters(RedumpSystem.SonyPlayStation2, MediaType.CDROM)
        info = params.generate_submission_info(
            SubmissionInfo(), base, drive_path=drive, include_artifacts=True
        )

        dumping = info.dumping_info
        assert dumping.dumping_program == "Redumper v2023.10.02 build_230"
        assert dumping.dumping_date == "2023-10-03 08:00:00"
        assert dumping.manufacturer == "PLEXTOR"

        tracks = info.tracks_and_write_offsets
        assert tracks.clrmamepro_data == "\n".join(REDUMPER_LOG[17:19])
        assert tracks.cuesheet == 'FILE "game (Track 1).bin" BINARY\n'
        assert tracks.other_write_offsets == "+6"

        common = info.common_disc_info
        assert common.ring_write_offset == "+6"
        assert common.errors_count == "3"
        assert common.comments_special_fields[SiteCode.InternalSerialName] == "SLPM-12345"
        assert common.region is Region.Japan
        assert info.version_and_editions.version == "1.02"

        assert set(info.artifacts) == {"cue", "log"}

    def test_missing_log(self, tmp_path):
        params = RedumperParameters(RedumpSystem.AudioCD, MediaType.CDROM)
        info = params.generate_submission_info(SubmissionInfo(), tmp_path / "game")
        assert info.dumping_info.dumping_program == f"Redumper {config.UNKNOWN_VERSION}"
        assert info.common_disc_info.errors_count == config.ERROR_COUNT_MESSAGE
        assert info.tracks_and_write_offsets.clrmamepro_data is None
        assert info.tracks_and_write_offsets.cuesheet == ""

    def test_ps4_version_without_content(self, tmp_path):
        params = RedumperParameters(RedumpSystem.SonyPlayStation4, MediaType.BluRay)
        info = params.generate_submission_info(SubmissionInfo(), tmp_path / "game", drive_path=tmp_path)
        assert info.version_and_editions.version == ""
        assert info.tracks_and_write_offsets.cuesheet is None

"""Tests for the DiscImageCreator command-line grammar."""

import pytest

from discdump.common.exceptions import ParseError, SerializationError
from discdump.common.types import MediaType, RedumpSystem
from discdump.core.config_manager import Options
from discdump.dic.constants import COMMAND_SUPPORT, DIC_REGISTRY, LAYOUTS, Command, Flag
from discdump.dic.parameters import DicParameters, base_command
from tests.helpers import valid_combinations


def parse(raw: str) -> DicParameters:
    return DicParameters.from_string(raw)


def roundtrip(raw: str) -> str:
    return parse(raw).serialize()


# ============================================================================
# PARSING
# ============================================================================

class TestPositionals:
    """Positional grammar per verb."""

    def test_cd(self):
        params = parse('cd D: "my image.bin" 24')
        assert params.state.command is Command.CompactDisc
        assert params.state.drive == "D:"
        assert params.state.filename == "my image.bin"
        assert params.state.speed == 24

    def test_audio_range(self):
        params = parse('audio D: "image" 8 0 1000')
        assert params.state.start_lba == 0
        assert params.state.end_lba == 1000

    def test_swap_lbas(self):
        params = parse('xgd2swap D: "image" 8 100 200 /q')
        assert params.state.extra_lbas == [100, 200]
        assert params[Flag.DisableBeep] is True

    def test_device_path_drive(self):
        assert parse('cd /dev/sr0 "image" 8').state.drive == "/dev/sr0"

    def test_version(self):
        assert parse("/v").state.command is Command.Version

    @pytest.mark.parametrize(
        "raw",
        [
            'cd D: "image"',
            'cd 12 "image" 8',
            'cd D: "image" 73',
            'dvd D: "image" 25',
            'sacd D: "image" 17',
            'cd D: /q 8',
            'audio D: "image" 8 0',
            "eject D: /q",
            "/v extra",
            "rip D: image 8",
        ],
    )
    def test_positional_violations(self, raw):
        with pytest.raises(ParseError):
            parse(raw)

    @pytest.mark.parametrize("raw", ["", "   "])
    def test_empty_input(self, raw):
        with pytest.raises(ParseError):
            parse(raw)

    def test_speed_bounds_are_inclusive(self):
        assert parse('dvd D: "image" 24').state.speed == 24
        assert parse('cd D: "image" 0').state.speed == 0

    def test_file_verbs_need_existing_files(self, tmp_path):
        image = tmp_path / "image.mds"
        with pytest.raises(ParseError):
            parse(f'mds "{image}"')
        image.touch()
        assert parse(f'mds "{image}"').state.filename == str(image)

    def test_tape_writes_a_new_image(self, tmp_path):
        image = tmp_path / "out" / "tape.bin"
        assert parse(f'tape "{image}"').state.filename == str(image)

    def test_merge_takes_two_files(self, tmp_path):
        first = tmp_path / "a.bin"
        second = tmp_path / "b.bin"
        first.touch()
        second.touch()
        params = parse(f'merge "{first}" "{second}"')
        assert params.state.filename == str(first)
        assert params.state.secondary_filename == str(second)

    def test_load_reports_failure(self):
        params = DicParameters()
        assert params.load("cd D: image 99") is False
        assert params.state.command is None
        assert params.load('cd D: "image" 8 /c2') is True


class TestFlagParsing:
    """Flag values and the per-flag failure policy."""

    def test_unknown_tokens_are_skipped(self):
        params = parse('cd D: "image" 24 UNKNOWNTOKEN /c2 4000 0 0')
        assert params[Flag.C2Opcode] is True
        assert params.values(Flag.C2Opcode) == [4000, 0, 0, None, None]

    def test_unsupported_flag_is_skipped(self):
        params = parse('cd D: "image" 8 /raw')
        assert params[Flag.Raw] is None

    def test_values_stop_at_next_flag(self):
        params = parse('cd D: "image" 8 /c2 10 /q')
        assert params.values(Flag.C2Opcode) == [10, None, None, None, None]
        assert params[Flag.DisableBeep] is True

    def test_truncate_keeps_flag(self):
        params = parse('cd D: "image" 8 /a abc /q')
        assert params[Flag.AddOffset] is True
        assert params.value(Flag.AddOffset) is None
        assert params[Flag.DisableBeep] is True

    def test_truncate_out_of_bounds(self):
        params = parse('cd D: "image" 8 /s 3')
        assert params[Flag.SubchannelReadLevel] is True
        assert params.value(Flag.SubchannelReadLevel) is None

    @pytest.mark.parametrize(
        "raw",
        [
            'cd D: "image" 8 /c2 -1',
            'cd D: "image" 8 /c2 20 x',
            'dvd D: "image" 8 /r 10',
            'dvd D: "image" 8 /r 10 x',
        ],
    )
    def test_fail_policy(self, raw):
        with pytest.raises(ParseError):
            parse(raw)

    def test_discard_policy_missing_value(self):
        params = parse('dvd D: "image" 8 /fix /q')
        assert params[Flag.Fix] is None
        assert params[Flag.DisableBeep] is True

    def test_discard_policy_invalid_value(self):
        params = parse('dvd D: "image" 8 /sk x /q')
        assert params[Flag.SkipSector] is None
        assert params[Flag.DisableBeep] is True

    def test_range_flag_is_parsed(self):
        assert parse('dvd D: "image" 8 /ra')[Flag.Range] is True

    def test_reverse_takes_no_values_outside_dvd(self):
        params = parse('audio D: "image" 8 0 100 /r 5')
        assert params[Flag.Reverse] is True
        assert params.values(Flag.Reverse) == [None, None]

    def test_be_opcode_choice(self):
        assert parse('cd D: "image" 8 /be pack').value(Flag.BEOpcode) == "pack"
        params = parse('cd D: "image" 8 /be other')
        assert params[Flag.BEOpcode] is True
        assert params.value(Flag.BEOpcode) is None


# ============================================================================
# SERIALIZING
# ============================================================================

class TestSerialize:
    @pytest.mark.parametrize(
        "raw",
        [
            'cd D: "image" 24 /c2 4000 0 0',
            'cd D: "my image" 8 /c2 20 /nl /am',
            'dvd D: "image" 8 /c /rr 10 /sk 5 0',
            'dvd D: "image" 8 /ra /r 0 100',
            'audio D: "image" 8 0 1000 /be raw /r',
            'xboxswap D: "image" 4 100 200 300 /nss 1',
            "fd A: \"floppy\" /d",
            "eject D:",
            "/v",
        ],
    )
    def test_roundtrip(self, raw):
        assert roundtrip(raw) == raw

    def test_flags_follow_declared_order(self):
        assert roundtrip('cd D: "image" 8 /am /q /c2') == 'cd D: "image" 8 /c2 /q /am'

    def test_c2_lba_range_only_with_all_sectors(self):
        assert roundtrip('cd D: "image" 8 /c2 20 0 1 10 20') == 'cd D: "image" 8 /c2 20 0 1 10 20'
        assert roundtrip('cd D: "image" 8 /c2 20 0 0 10 20') == 'cd D: "image" 8 /c2 20 0 0'

    def test_skip_sector_second_value_only_when_zero(self):
        assert roundtrip('dvd D: "image" 8 /sk 5 1') == 'dvd D: "image" 8 /sk 5'

    def test_d8_suppresses_be(self):
        assert roundtrip('cd D: "image" 8 /be raw /d8') == 'cd D: "image" 8 /d8'

    def test_gap_ends_values(self):
        params = parse('cd D: "image" 8 /c2')
        params.set_value(Flag.C2Opcode, 20, None, 1)
        assert params.serialize() == 'cd D: "image" 8 /c2 20'

    def test_missing_command(self):
        with pytest.raises(SerializationError):
            DicParameters().serialize()
        assert DicParameters().generate_parameters() is None

    def test_out_of_bounds_value(self):
        params = parse('cd D: "image" 8 /c2')
        params.set_value(Flag.C2Opcode, 0)
        with pytest.raises(SerializationError):
            params.serialize()

    def test_missing_required_value(self):
        params = parse('dvd D: "image" 8')
        params[Flag.Reverse] = True
        params.set_value(Flag.Reverse, 10)
        with pytest.raises(SerializationError, match="missing required value"):
            params.serialize()

    def test_double_quote_in_filename(self):
        params = parse('cd D: "image" 8')
        params.state.filename = 'my "best" image'
        with pytest.raises(SerializationError, match="double quote"):
            params.serialize()
        assert params.generate_parameters() is None

    def test_double_quote_in_second_filename(self, tmp_path):
        first = tmp_path / "a.bin"
        second = tmp_path / "b.bin"
        first.touch()
        second.touch()
        params = parse(f'merge "{first}" "{second}"')
        params.state.secondary_filename = 'b"c.bin'
        assert params.generate_parameters() is None

    def test_invalid_drive(self):
        params = parse('cd D: "image" 8')
        params.state.drive = "12"
        with pytest.raises(SerializationError):
            params.serialize()

    def test_speed_out_of_bounds(self):
        params = parse('dvd D: "image" 8')
        params.state.speed = 30
        assert params.generate_parameters() is None

    def test_unsupported_flag_is_not_written(self):
        params = parse('cd D: "image" 8')
        params[Flag.Raw] = True
        assert params.serialize() == 'cd D: "image" 8'

    def test_filename_is_quoted_once(self):
        params = parse('cd D: "image" 8')
        params.state.filename = '"already quoted"'
        assert params.serialize() == 'cd D: "already quoted" 8'


class TestRegistrySymmetry:
    """Every flag the registry allows for a verb is read back by the parser."""

    SAMPLE_VALUES = {
        Flag.Fix: " 2",
        Flag.Reverse: " 0 10",
    }

    @staticmethod
    def prefix(command: Command) -> str:
        layout = LAYOUTS[command]
        tokens = [command.value]
        if layout.drive:
            tokens.append("D:")
        if layout.filename:
            tokens.append('"image"')
        if layout.speed:
            tokens.append("8")
        if layout.lba_range:
            tokens += ["0", "100"]
        return " ".join(tokens)

    @pytest.mark.parametrize(
        "command, flag",
        [(c, f) for c, flags in COMMAND_SUPPORT.items() for f in flags],
        ids=lambda v: v.value,
    )
    def test_supported_flag_parses(self, command, flag):
        raw = f"{self.prefix(command)} {flag.value}{self.SAMPLE_VALUES.get(flag, '')}"
        params = parse(raw)
        assert params[flag] is True
        assert params.serialize().startswith(self.prefix(command))

    def test_flagless_verbs(self):
        for command in Command:
            if LAYOUTS[command].exact:
                assert DIC_REGISTRY.flags_for(command) == frozenset(), command


# ============================================================================
# DEFAULTS
# ============================================================================

class TestDefaults:
    @staticmethod
    def build(system, media, options=None, drive="D", filename="out/game.bin", speed=16):
        return DicParameters.from_fields(system, media, drive, filename, speed, options)

    @pytest.mark.parametrize(
        "system, media, command",
        [
            (RedumpSystem.SonyPlayStation, MediaType.CDROM, Command.CompactDisc),
            (RedumpSystem.SuperAudioCD, MediaType.CDROM, Command.SACD),
            (RedumpSystem.MicrosoftXbox, MediaType.DVD, Command.XBOX),
            (RedumpSystem.DVDVideo, MediaType.DVD, Command.DigitalVideoDisc),
            (RedumpSystem.SegaDreamcast, MediaType.GDROM, Command.GDROM),
            (RedumpSystem.HDDVDVideo, MediaType.HDDVD, Command.DigitalVideoDisc),
            (RedumpSystem.SonyPlayStation3, MediaType.BluRay, Command.BluRay),
            (RedumpSystem.NintendoWii, MediaType.NintendoWiiOpticalDisc, Command.DigitalVideoDisc),
            (RedumpSystem.IBMPCcompatible, MediaType.FloppyDisk, Command.Floppy),
            (RedumpSystem.IBMPCcompatible, MediaType.HardDisk, Command.Disk),
            (RedumpSystem.IBMPCcompatible, MediaType.DataCartridge, Command.Tape),
            (RedumpSystem.SonyPlayStation, MediaType.DVD, None),
            (None, MediaType.CDROM, None),
        ],
    )
    def test_base_command(self, system, media, command):
        assert base_command(system, media) is command

    def test_playstation(self):
        params = self.build(RedumpSystem.SonyPlayStation, MediaType.CDROM)
        assert params.serialize() == 'cd D "out/game.bin" 16 /c2 20 /nl /am'

    def test_quiet_and_reread_options(self):
        options = Options(dic_quiet_mode=True, dic_reread_count=5)
        params = self.build(RedumpSystem.SonyPlayStation, MediaType.CDROM, options)
        assert params.serialize() == 'cd D "out/game.bin" 16 /c2 5 /q /nl /am'

    def test_reread_disabled(self):
        options = Options(dic_reread_count=-1)
        params = self.build(RedumpSystem.AudioCD, MediaType.CDROM, options)
        assert params.serialize() == 'cd D "out/game.bin" 16 /c2'

    def test_multi_sector_read(self):
        options = Options(dic_multi_sector_read=True, dic_multi_sector_read_value=2)
        params = self.build(RedumpSystem.AudioCD, MediaType.CDROM, options)
        assert params.serialize() == 'cd D "out/game.bin" 16 /c2 20 /mr 2'

    def test_pc_paranoid(self):
        options = Options(dic_paranoid_mode=True)
        params = self.build(RedumpSystem.IBMPCcompatible, MediaType.CDROM, options)
        assert params.serialize() == 'cd D "out/game.bin" 16 /c2 20 /ns /sf /ss /s 2'

    def test_jaguar(self):
        params = self.build(RedumpSystem.AtariJaguarCD, MediaType.CDROM)
        assert params.serialize() == 'cd D "out/game.bin" 16 /aj /c2 20'

    def test_videonow(self):
        params = self.build(RedumpSystem.HasbroVideoNowColor, MediaType.CDROM)
        assert params.serialize() == 'cd D "out/game.bin" 16 /a 0 /c2 20'

    def test_dvd(self):
        options = Options(dic_use_cmi_flag=True, dic_paranoid_mode=True)
        params = self.build(RedumpSystem.DVDVideo, MediaType.DVD, options, filename="out/movie.iso", speed=8)
        assert params.serialize() == 'dvd D "out/movie.iso" 8 /c /rr 10 /sf'

    def test_xbox(self):
        params = self.build(RedumpSystem.MicrosoftXbox, MediaType.DVD, speed=8)
        assert params.serialize() == 'xbox D "out/game.bin" 8 /rr 10'

    def test_gamecube(self):
        params = self.build(RedumpSystem.NintendoGameCube, MediaType.NintendoGameCubeGameDisc, speed=8)
        assert params.serialize() == 'dvd D "out/game.bin" 8 /raw'

    def test_bluray(self):
        options = Options(dic_dvd_reread_count=3)
        params = self.build(RedumpSystem.SonyPlayStation3, MediaType.BluRay, options, speed=4)
        assert params.serialize() == 'bd D "out/game.bin" 4 /rr 3'

    def test_gdrom(self):
        params = self.build(RedumpSystem.SegaDreamcast, MediaType.GDROM)
        assert params.serialize() == 'gd D "out/game.bin" 16 /c2 20'

    def test_invalid_combination_leaves_command_unset(self):
        params = self.build(RedumpSystem.SonyPlayStation, MediaType.BluRay)
        assert params.state.command is None
        assert params.generate_parameters() is None

    @pytest.mark.parametrize(
        "options",
        [
            Options(),
            Options(dic_quiet_mode=True, dic_paranoid_mode=True, dic_use_cmi_flag=True),
        ],
        ids=["plain", "paranoid"],
    )
    @pytest.mark.parametrize("system, media", valid_combinations())
    def test_defaults_roundtrip(self, system, media, options):
        params = self.build(system, media, options, speed=8)
        first = params.generate_parameters()
        if params.state.command is None:
            assert first is None
            return
        assert first is not None
        assert roundtrip(first) == first

    def test_data_cartridge_roundtrip(self):
        first = self.build(RedumpSystem.IBMPCcompatible, MediaType.DataCartridge).serialize()
        assert first == 'tape "out/game.bin"'
        assert roundtrip(first) == first


# ============================================================================
# GENERIC INFORMATION AND OUTPUT FILES
# ============================================================================

class TestGenericInformation:
    def test_paths_and_speed(self):
        params = parse('cd D: "out/game.bin" 16')
        assert params.input_path == "D:"
        assert params.output_path == "out/game.bin"
        assert params.speed == 16

    @pytest.mark.parametrize(
        "raw, media, dumping",
        [
            ('cd D: "image" 8', MediaType.CDROM, True),
            ('xbox D: "image" 8', MediaType.DVD, True),
            ('bd D: "image" 8', MediaType.BluRay, True),
            ("eject D:", None, False),
            ("ls D:", None, False),
        ],
    )
    def test_media_type_and_dumping(self, raw, media, dumping):
        params = parse(raw)
        assert params.get_media_type() is media
        assert params.is_dumping_command() is dumping

    def test_default_extension(self):
        params = DicParameters()
        assert params.get_default_extension(MediaType.CDROM) == ".bin"
        assert params.get_default_extension(MediaType.DVD) == ".iso"
        assert params.get_default_extension(MediaType.FloppyDisk) == ".img"
        assert params.get_default_extension(None) is None

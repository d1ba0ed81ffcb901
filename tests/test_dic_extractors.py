"""DiscImageCreator log scanners against small hand-written logs."""

from datetime import datetime

import pytest

from discdump.common.result import NotFound, Reason, is_found
from discdump.dic import extractors as dic
from discdump.verification.dat_parser import parse_dat_file
from tests.helpers import hex_dump_line, rom_line, sega_header, set_mtime, write_log, xml_dat


@pytest.fixture
def base(tmp_path):
    return tmp_path / "game"


MULTISESSION_DISC = [
    "========== TOC ==========",
    "        Track  1, LBA        0 -      999, Length     1000",
    "        Track  2, LBA     1000 -     2999, Length     2000",
    "",
    "========== FULL TOC ==========",
    "        Session 1,  Ctl 4, Adr 1, Track  1, AMSF 00:02:00",
    "        Session 2,  Ctl 4, Adr 1, Track  2, AMSF 22:14:00",
    "========== OpCode[0x28]: Read ==========",
    "        Lead-out length of 1st session: 100",
    "        Lead-in length of 2nd session: 50",
    "        Pregap length of 1st track of 2nd session: 30",
]


class TestCommandFile:
    def test_found(self, base):
        cmd = base.parent / "game_20230401T120000.txt"
        cmd.write_text("cd D: game.bin 8\n")
        path, version = dic.get_command_file_path_and_version(base)
        assert path == cmd
        assert version == "20230401"

    def test_missing(self, base):
        assert dic.get_command_file_path_and_version(base) == (None, None)
        assert dic.get_command_file_path_and_version("") == (None, None)
        assert dic.get_command_file_path_and_version(None) == (None, None)


class TestDriveAndDisc:
    def test_hardware_info_first_wins(self, base):
        drive = write_log(base, "_drive.txt", [
            "\tVendorId: PLEXTOR",
            "\tProductId: DVDR   PX-760A",
            "\tProductRevisionLevel: 1.07",
            "\tVendorId: OTHER",
        ])
        assert dic.get_hardware_info(drive) == ("PLEXTOR", "DVDR   PX-760A", "1.07")

    def test_hardware_info_missing_file(self, base):
        result = dic.get_hardware_info(base.parent / "nope_drive.txt")
        assert isinstance(result, NotFound)
        assert result.reason is Reason.MISSING_FILE

    def test_disc_type_sorted_and_deduplicated(self, base):
        disc = write_log(base, "_disc.txt", [
            "\tDiscType: DVD-ROM",
            "\tBookType: DVD-ROM",
            "\tDiscTypeIdentifier: BDO",
        ])
        assert dic.get_disc_type(disc) == "BDO, DVD-ROM"

    def test_disc_type_absent(self, base):
        disc = write_log(base, "_disc.txt", ["nothing here"])
        assert not dic.get_disc_type(disc)

    def test_write_offset(self, base):
        disc = write_log(base, "_disc.txt", [
            "========== Offset (Drive offset referes to http://www.accuraterip.com) ==========",
            "\t Combined Offset(Byte)   2328, (Samples)   582",
            "\t-   Drive Offset(Byte)    120, (Samples)    30",
            "\t----------------------------------------------",
            "\t       CD Offset(Byte)   2208, (Samples)   552",
        ])
        assert dic.get_write_offset(disc) == "552"

    def test_write_offset_truncated_log(self, base):
        disc = write_log(base, "_disc.txt", ["========== Offset =========="])
        result = dic.get_write_offset(disc)
        assert isinstance(result, NotFound)
        assert result.reason is Reason.MALFORMED


class TestErrorCount:
    def test_sums_errors_and_warnings(self, base):
        edc = write_log(base, ".img_EdcEcc.txt", ["Total errors: 10", "Total warnings: 5"])
        assert dic.get_error_count(edc) == 15

    def test_no_error_marker(self, base):
        edc = write_log(base, ".img_EdcEcc.txt", ["[NO ERROR] User data vs. ecc/edc match all"])
        count = dic.get_error_count(edc)
        assert count == 0
        assert is_found(count)

    def test_missing(self, base):
        assert not is_found(dic.get_error_count(base.parent / "game.img_EdcEcc.txt"))

    def test_no_totals(self, base):
        edc = write_log(base, ".img_EdcEcc.txt", ["checking..."])
        assert not is_found(dic.get_error_count(edc))


class TestLayerbreak:
    def test_layer_zero_sector(self, base):
        disc = write_log(base, "_disc.txt", ["\tLayerZeroSector: 2084960 (0x1fd060)"])
        assert dic.get_layerbreak(disc) == 2084960

    def test_xbox_label(self, base):
        disc = write_log(base, "_disc.txt", [
            "\tLayerZeroSector: 1 (0x1)",
            "\tLayerBreak: 1913776",
        ])
        assert dic.get_layerbreak(disc, xgd=True) == 1913776

    def test_single_layer(self, base):
        disc = write_log(base, "_disc.txt", [
            "\tNumberOfLayers: Single Layer",
            "\tLayerZeroSector: 1000 (0x3e8)",
        ])
        result = dic.get_layerbreak(disc)
        assert isinstance(result, NotFound)
        assert result.reason is Reason.NOT_APPLICABLE


class TestMultisession:
    def test_two_sessions(self, base):
        disc = write_log(base, "_disc.txt", MULTISESSION_DISC)
        assert dic.get_multisession_information(disc) == "Session 1: 0-819\nSession 2: 820-2999"

    def test_single_session(self, base):
        lines = list(MULTISESSION_DISC)
        lines[6] = "        Session 1,  Ctl 4, Adr 1, Track  2, AMSF 22:14:00"
        disc = write_log(base, "_disc.txt", lines)
        assert not is_found(dic.get_multisession_information(disc))

    def test_no_toc(self, base):
        disc = write_log(base, "_disc.txt", ["nothing"])
        assert not is_found(dic.get_multisession_information(disc))


class TestUniversalHash:
    def test_sha1(self, base):
        disc = write_log(base, "_disc.txt", [
            "========== Hash(Universal Whole image) ==========",
            "\t" + rom_line("game.bin"),
        ])
        assert dic.get_universal_hash(disc) == "0123456789abcdef0123456789abcdef01234567"


class TestMainInfo:
    PVD_LINES = [hex_dump_line("CD001", 0x320 + 16 * i) for i in range(6)]

    def test_pvd(self, base):
        main_info = write_log(base, "_mainInfo.txt", [
            "========== LBA[000016, 0x00010]: Main Channel ==========",
            "       +0 +1 +2 +3 +4 +5 +6 +7  +8 +9 +A +B +C +D +E +F",
            hex_dump_line("", 0x300),
            hex_dump_line("", 0x310),
            *self.PVD_LINES,
        ])
        assert dic.get_pvd(main_info) == "".join(line + "\n" for line in self.PVD_LINES)

    def test_pvd_skips_sector_zero_on_new_logs(self, base):
        main_info = write_log(base, "_mainInfo.txt", [
            "========== OpCode[0x43]: TOC ==========",
            "========== Check Volume Descriptor ==========",
            dic.SECTOR_0_MARKER,
            hex_dump_line("SEGA SEGAKATANA ", 0x310),
            hex_dump_line("not the pvd", 0x320),
            "========== LBA[000016, 0x00010]: Main Channel ==========",
            hex_dump_line("", 0x310),
            *self.PVD_LINES,
        ])
        assert dic.get_pvd(main_info) == "".join(line + "\n" for line in self.PVD_LINES)

    def test_pvd_too_short(self, base):
        main_info = write_log(base, "_mainInfo.txt", [
            "========== LBA[000016, 0x00010]: Main Channel ==========",
            hex_dump_line("", 0x310),
            self.PVD_LINES[0],
        ])
        assert not is_found(dic.get_pvd(main_info))

    def test_sega_header(self, base):
        header = sega_header({4: "T-8101N   V1.000"})
        main_info = write_log(
            base,
            "_mainInfo.txt",
            "\n".join([dic.SECTOR_0_MARKER, "\t  " + dic.HEX_DUMP_HEADER]) + "\n" + header,
        )
        assert dic.get_sega_header(main_info) == header


class TestDvdProtection:
    def test_copyright_and_keys(self, base):
        disc = write_log(base, "_disc.txt", [
            "========== CopyrightInformation ==========",
            "\tCopyrightProtectionType: CSS/CPPM",
            "\tRegionManagementInformation: 2",
            "========== ManufacturingInformation ==========",
        ])
        css = write_log(base, "_CSSKey.txt", [
            "DecryptedDiscKey[020]: 1a2b3c4d5e",
            "LBA:   123, Filename: VIDEO_TS.VOB;1, No TitleKey",
            "LBA:  2000, Filename: VTS_01_1.VOB;1, EncryptedTitleKey: 0000000000, DecryptedTitleKey: 0011223344",
        ])
        assert dic.get_dvd_protection(disc, css) == (
            "Region: 2\n"
            "Copyright Protection System Type: CSS/CPPM\n"
            "VIDEO_TS.VOB Title Key: No Title Key\n"
            "VTS_01_1.VOB Title Key: 0011223344\n"
            "Decrypted Disc Key: 1a2b3c4d5e\n"
        )

    def test_keys_without_copyright_block(self, base):
        disc = write_log(base, "_disc.txt", ["no copyright section"])
        css = write_log(base, "_CSSKey.txt", ["DecryptedDiscKey[020]: ff"])
        assert dic.get_dvd_protection(disc, css) == "Decrypted Disc Key: ff\n"


class TestPlayStation:
    @pytest.mark.parametrize(
        "line, expected",
        [
            ("Detected anti-mod string", True),
            ("No anti-mod string", False),
            ("something else", False),
        ],
    )
    def test_anti_modchip(self, base, line, expected):
        disc = write_log(base, "_disc.txt", ["\t" + line])
        assert dic.get_playstation_anti_modchip_detected(disc) is expected

    def test_anti_modchip_missing_log(self, base):
        assert not is_found(dic.get_playstation_anti_modchip_detected(base.parent / "x_disc.txt"))

    def test_edc_form2_only(self, base):
        edc = write_log(base, ".img_EdcEcc.txt", ["LBA[000100]: mode 2 form 2 sector"] * 3)
        assert dic.get_playstation_edc_status(edc) is True

    def test_edc_no_edc_only(self, base):
        edc = write_log(base, ".img_EdcEcc.txt", ["LBA[000100]: mode 2 no edc sector"])
        assert dic.get_playstation_edc_status(edc) is False

    def test_edc_mixed(self, base):
        edc = write_log(base, ".img_EdcEcc.txt", [
            "LBA[000100]: mode 2 form 2 sector",
            "LBA[000200]: mode 2 no edc sector",
        ])
        assert not is_found(dic.get_playstation_edc_status(edc))


class TestXgd:
    SS_DISC = [
        "Version of challenge table: 2",
        "Number of security sector ranges: 2",
        "\tLayer 0, startLBA-endLBA:  3000- 3100",
        "\tLayer 1, startLBA-endLBA: 4000- 4100",
        "========== TotalLength ==========",
        "Number of security sector ranges: 2",
        "\tLayer 0, startLBA-endLBA:  9999- 9999",
        "========== TotalLength ==========",
    ]

    def test_aux_info_with_hashes(self, base):
        disc = write_log(base, "_disc.txt", self.SS_DISC + [
            "\t" + rom_line("game.SS.bin", crc="abcd1234"),
            "\t" + rom_line("game.PFI.bin", crc="00ff00ff"),
            "\t" + rom_line("game.DMI.bin", crc="12345678"),
        ])
        aux = dic.get_xgd_aux_info(disc)
        assert aux.ss_version == "2"
        assert aux.security_sector_ranges == "3000-3100\n4000-4100\n"
        assert (aux.dmi_hash, aux.pfi_hash, aux.ss_hash) == ("12345678", "00FF00FF", "ABCD1234")

    def test_ss_info_ignores_hashes(self, base):
        disc = write_log(base, "_disc.txt", self.SS_DISC + ["\t" + rom_line("game.SS.bin")])
        aux = dic.get_xgd_aux_ss_info(disc)
        assert aux.ss_hash is None
        assert aux.ss_version == "2"

    def test_hashes_from_supplementary_dat(self, base):
        suppl = write_log(base, "_suppl.dat", xml_dat(
            ("game.DMI.bin", 2048, "aaaa0001"),
            ("game.PFI.bin", 2048, "aaaa0002"),
            ("game.SS.bin", 2048, "aaaa0003"),
        ))
        aux = dic.get_xgd_aux_hash_info(parse_dat_file(suppl))
        assert (aux.dmi_hash, aux.pfi_hash, aux.ss_hash) == ("AAAA0001", "AAAA0002", "AAAA0003")

    def test_hashes_without_datafile(self):
        assert not is_found(dic.get_xgd_aux_hash_info(NotFound()))


def test_log_modified_date_is_read(base):
    from discdump.extraction.common import get_file_modified_date

    log = write_log(base, "_cmd.txt", ["cd"])
    set_mtime(log, datetime(2024, 2, 3, 4, 5, 6))
    assert get_file_modified_date(log) == datetime(2024, 2, 3, 4, 5, 6)

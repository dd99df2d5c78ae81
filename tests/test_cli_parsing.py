"""Tests for the command line front-end."""

import io
import json
import zipfile

import pikepdf
import pytest
from conftest import page_rotations, page_widths

from bigpdfassembler.cli import _parse_file_option, build_parser, main
from bigpdfassembler.utils.exceptions import ValidationError


class TestParseFileOption:
    def test_pages_option(self):
        assert _parse_file_option("2:1-3,5", "FILE:RANGES", "--pages") == (1, ["1-3,5"])

    def test_rotate_option(self):
        assert _parse_file_option("1:4:90", "FILE:RANGES:DEGREES", "--rotate") == (0, ["4", "90"])

    def test_wrong_field_count(self):
        with pytest.raises(ValidationError):
            _parse_file_option("1-3", "FILE:RANGES", "--pages")

    def test_non_numeric_file(self):
        with pytest.raises(ValidationError):
            _parse_file_option("a:1", "FILE:RANGES", "--pages")


class TestBuildParser:
    def test_merge_arguments(self):
        args = build_parser().parse_args(
            ["merge", "a.pdf", "b.pdf", "-o", "out", "--pages", "1:1-2", "--deny", "printing"]
        )
        assert [str(p) for p in args.inputs] == ["a.pdf", "b.pdf"]
        assert args.pages == ["1:1-2"]
        assert args.deny == ["printing"]
        assert args.compress is None

    def test_unknown_permission_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["merge", "a.pdf", "--deny", "flying"])

    def test_split_requires_method(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["split", "a.pdf", "-o", "out"])

    def test_split_methods_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["split", "a.pdf", "--all", "--every", "2"])

    def test_split_every(self):
        args = build_parser().parse_args(["split", "a.pdf", "--every", "3", "--zip"])
        assert args.every == 3
        assert args.zip is True

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out


class TestMainCommands:
    @pytest.fixture
    def settings(self, tmp_path):
        return str(tmp_path / "settings.json")

    def test_merge(self, pdf_file, tmp_path, settings):
        a = pdf_file("a.pdf", num_pages=3, width_base=100)
        b = pdf_file("b.pdf", num_pages=2, width_base=200)
        out = tmp_path / "out"

        code = main(
            [
                "--config", settings,
                "merge", a, b, "-o", str(out),
                "--pages", "1:2-3",
                "--rotate", "2:1:-90",
                "--title", "Joined",
                "--keywords", "x, ,y",
            ]
        )

        assert code == 0
        data = (out / "merged-document.pdf").read_bytes()
        assert page_widths(data) == [101, 102, 200, 201]
        assert page_rotations(data) == [0, 0, 270, 0]
        with pikepdf.open(io.BytesIO(data)) as pdf:
            assert str(pdf.docinfo["/Title"]) == "Joined"
            assert str(pdf.docinfo["/Keywords"]) == "x, y"

    def test_merge_encrypted_with_custom_name(self, pdf_file, tmp_path, settings):
        a = pdf_file("a.pdf", num_pages=1)
        code = main(
            [
                "--config", settings,
                "merge", a, "-o", str(tmp_path),
                "--filename", "secret.pdf",
                "--encrypt", "--user-password", "pw",
                "--compress", "medium",
            ]
        )
        assert code == 0
        with pytest.raises(pikepdf.PasswordError):
            pikepdf.open(tmp_path / "secret.pdf")

    def test_merge_uses_settings(self, pdf_file, tmp_path):
        settings = tmp_path / "settings.json"
        settings.write_text(
            json.dumps({"version": 1, "merge": {"filename": "bundle"},
                        "delivery": {"output_dir": str(tmp_path / "saved")}})
        )
        a = pdf_file("a.pdf", num_pages=1)
        assert main(["--config", str(settings), "merge", a]) == 0
        assert (tmp_path / "saved" / "bundle.pdf").exists()

    def test_merge_without_output_dir(self, pdf_file, settings, capsys):
        a = pdf_file("a.pdf", num_pages=1)
        assert main(["--config", settings, "merge", a]) == 1
        assert "output directory" in capsys.readouterr().err

    def test_merge_rejects_non_pdf(self, tmp_path, settings, capsys):
        text = tmp_path / "notes.txt"
        text.write_text("hello")
        assert main(["--config", settings, "merge", str(text), "-o", str(tmp_path)]) == 1
        assert "Error" in capsys.readouterr().err

    def test_merge_nothing_selected(self, pdf_file, tmp_path, settings):
        a = pdf_file("a.pdf", num_pages=2)
        code = main(["--config", settings, "merge", a, "-o", str(tmp_path), "--pages", "1:9"])
        assert code == 1
        assert not (tmp_path / "merged-document.pdf").exists()

    def test_merge_bad_file_number(self, pdf_file, tmp_path, settings):
        a = pdf_file("a.pdf", num_pages=2)
        code = main(["--config", settings, "merge", a, "-o", str(tmp_path), "--pages", "2:1"])
        assert code == 1

    def test_rotate_requires_quarter_turns(self, pdf_file, tmp_path, settings):
        a = pdf_file("a.pdf", num_pages=2)
        code = main(["--config", settings, "merge", a, "-o", str(tmp_path), "--rotate", "1:1:45"])
        assert code == 1

    def test_split_ranges(self, pdf_file, tmp_path, settings, capsys):
        src = pdf_file("report.pdf", num_pages=6)
        out = tmp_path / "parts"
        code = main(
            [
                "--config", settings,
                "split", src, "-o", str(out), "--ranges", "1-2, 5-6", "--delay-ms", "0",
            ]
        )
        assert code == 0
        assert sorted(p.name for p in out.iterdir()) == [
            "report_pages_1-2.pdf",
            "report_pages_5-6.pdf",
        ]
        assert "Split into 2 parts" in capsys.readouterr().out

    def test_split_all_without_page_numbers(self, pdf_file, tmp_path, settings):
        src = pdf_file("report.pdf", num_pages=3)
        code = main(
            [
                "--config", settings,
                "split", src, "-o", str(tmp_path / "p"), "--all",
                "--no-page-numbers", "--delay-ms", "1",
            ]
        )
        assert code == 0
        assert sorted(p.name for p in (tmp_path / "p").iterdir()) == [
            "report_1.pdf",
            "report_2.pdf",
            "report_3.pdf",
        ]

    def test_split_zip(self, pdf_file, tmp_path, settings):
        src = pdf_file("report.pdf", num_pages=5)
        code = main(
            ["--config", settings, "split", src, "-o", str(tmp_path / "z"), "--every", "2", "--zip"]
        )
        assert code == 0
        with zipfile.ZipFile(tmp_path / "z" / "report.zip") as archive:
            assert archive.namelist() == [
                "report_pages_1-2.pdf",
                "report_pages_3-4.pdf",
                "report_pages_5-5.pdf",
            ]

    def test_split_invalid_ranges(self, pdf_file, tmp_path, settings, capsys):
        src = pdf_file("report.pdf", num_pages=3)
        code = main(["--config", settings, "split", src, "-o", str(tmp_path), "--ranges", "3-2"])
        assert code == 1
        assert "3-2" in capsys.readouterr().err

    def test_split_invalid_chunk_size(self, pdf_file, tmp_path, settings):
        src = pdf_file("report.pdf", num_pages=3)
        code = main(["--config", settings, "split", src, "-o", str(tmp_path), "--every", "0"])
        assert code == 1

    def test_info(self, pdf_file, settings, capsys):
        src = pdf_file("report.pdf", num_pages=4)
        assert main(["--config", settings, "info", src]) == 0
        out = capsys.readouterr().out
        assert "Pages:      4" in out
        assert "Encrypted:  No" in out

    def test_info_missing_file(self, settings):
        assert main(["--config", settings, "info", "/nonexistent/file.pdf"]) == 1

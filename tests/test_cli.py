"""
Tests for the command-line interface.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from report_recon.cli import metadata_from_args, run_pipeline, setup_argparser


DRAFT = """BAB I PENDAHULUAN
1.1 Latar Belakang
Penelitian ini dilakukan untuk memahami pola penjualan di toko ritel.
DAFTAR PUSTAKA
Smith, J. (2020). Machine Learning Basics. Springer.
"""


@pytest.fixture
def draft_file(tmp_path):
    path = tmp_path / "draft.txt"
    path.write_text(DRAFT, encoding="utf-8")
    return path


class TestArguments:
    """Tests for argument parsing."""

    def test_defaults(self):
        args = setup_argparser().parse_args(["--input", "draft.pdf"])
        assert args.output == "./output"
        assert args.format is None
        assert args.citation_style is None

    def test_metadata_from_args(self):
        args = setup_argparser().parse_args([
            "--input", "draft.pdf", "--author", "Budi", "--nim", "12345",
        ])
        assert metadata_from_args(args) == {"author": "Budi", "student_id": "12345"}

    def test_rejects_unknown_format(self):
        with pytest.raises(SystemExit):
            setup_argparser().parse_args(["--input", "draft.pdf", "--format", "odt"])


class TestRunPipeline:
    """Tests for a full command-line run."""

    def test_text_input(self, draft_file, tmp_path):
        out = tmp_path / "out"
        args = setup_argparser().parse_args([
            "--input", str(draft_file),
            "--output", str(out),
            "--format", "txt", "json",
            "--citation-style", "APA",
            "--author", "Budi",
            "--quiet",
        ])

        assert run_pipeline(args) == 0
        text = (out / "draft.txt").read_text(encoding="utf-8")
        assert "Disusun oleh: Budi" in text
        assert "Smith, J. (2020). Machine Learning Basics. Springer." in text
        assert (out / "draft.json").exists()

    def test_custom_name(self, draft_file, tmp_path):
        args = setup_argparser().parse_args([
            "--input", str(draft_file), "--output", str(tmp_path), "--format", "txt",
            "--name", "laporan_akhir", "--quiet",
        ])
        assert run_pipeline(args) == 0
        assert (tmp_path / "laporan_akhir.txt").exists()

    def test_unsupported_input(self, tmp_path):
        path = tmp_path / "draft.rtf"
        path.write_text("{\\rtf1 teks}")
        args = setup_argparser().parse_args(["--input", str(path), "--output", str(tmp_path), "--quiet"])
        assert run_pipeline(args) == 1

    def test_missing_input(self, tmp_path):
        args = setup_argparser().parse_args([
            "--input", str(tmp_path / "tidak_ada.pdf"), "--output", str(tmp_path), "--quiet",
        ])
        assert run_pipeline(args) == 1

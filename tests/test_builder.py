"""
Tests for document building and appendix organization.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from report_recon.utils.builder import (
    BuildState,
    IMPLICIT_CHAPTER_TITLE,
    classify_and_build,
    on_chapter,
    on_prose,
)
from report_recon.utils.appendix import organize_appendices
from report_recon.utils.document import ParsedDocument


PROSE = "Ini adalah teks latar belakang yang cukup panjang untuk lolos filter."


class TestBuildState:
    """Tests for the fold state."""

    def test_handlers_return_new_state(self):
        start = BuildState(document=ParsedDocument())
        opened = on_chapter(start, "BAB I PENDAHULUAN")

        assert start.chapter is None
        assert opened.chapter == 0
        assert opened is not start
        assert opened.document.sections[0].title == "BAB I PENDAHULUAN"

    def test_prose_without_chapter_opens_implicit_chapter(self):
        state = on_prose(BuildState(document=ParsedDocument()), PROSE)
        assert state.current_chapter.title == IMPLICIT_CHAPTER_TITLE
        assert state.current_chapter.content == PROSE
        assert state.document.metrics.chapters_synthesized == 1


class TestClassifyAndBuild:
    """Tests for the combined classify + build + organize entry point."""

    def test_no_headings(self):
        text = "Lorem ipsum lorem ipsum lorem ipsum lorem ipsum..."
        doc = classify_and_build(text)

        assert len(doc.sections) == 1
        assert doc.sections[0].title == "BAB I PENDAHULUAN"
        assert doc.sections[0].content == text

    def test_chapter_with_subsection(self):
        doc = classify_and_build(f"BAB I PENDAHULUAN\n1.1 Latar Belakang\n{PROSE}")

        assert len(doc.sections) == 1
        chapter = doc.sections[0]
        assert chapter.content == ""
        assert len(chapter.subsections) == 1
        assert chapter.subsections[0].title == "1.1 Latar Belakang"
        assert chapter.subsections[0].content == PROSE

    def test_prose_is_space_joined(self):
        doc = classify_and_build(f"BAB II LANDASAN TEORI\n{PROSE}\n{PROSE}")
        assert doc.sections[0].content == f"{PROSE} {PROSE}"

    def test_chapter_closes_subsection(self):
        text = f"BAB I PENDAHULUAN\n1.1 Latar Belakang\n{PROSE}\nBAB II LANDASAN TEORI\n{PROSE}"
        doc = classify_and_build(text)

        assert len(doc.sections) == 2
        assert doc.sections[1].content == PROSE
        assert doc.sections[1].subsections == []

    def test_sub_heading_before_chapter(self):
        doc = classify_and_build(f"1.1 Latar Belakang\n{PROSE}")
        assert doc.sections[0].title == IMPLICIT_CHAPTER_TITLE
        assert doc.sections[0].subsections[0].content == PROSE

    def test_captions_tagged_with_open_chapter(self):
        doc = classify_and_build(
            "Tabel 1 Sebelum Bab\nBAB II LANDASAN TEORI\nTabel 5 Data Penjualan\nGambar 3 Diagram Alur"
        )

        assert doc.tables[0].chapter_number == 1
        assert doc.tables[0].source_chapter is None
        assert doc.tables[1].chapter_number == 2
        assert doc.tables[1].source_chapter == 0
        assert doc.tables[1].number == 2
        assert doc.figures[0].chapter_number == 2

    def test_bibliography_entries(self):
        doc = classify_and_build(f"BAB I PENDAHULUAN\n{PROSE}\nDAFTAR PUSTAKA\n[1] Smith, J. Buku. 2020.")
        assert [r.text for r in doc.references] == ["[1] Smith, J. Buku. 2020."]

    def test_technical_lines_go_to_appendix(self):
        text = f"BAB I PENDAHULUAN\n{PROSE}\nSELECT * FROM users;"
        doc = classify_and_build(text)

        for chapter in doc.sections:
            assert "SELECT" not in chapter.content
        assert doc.appendices[0].label == "A"
        assert doc.appendices[0].type == "sql"
        assert "SELECT * FROM users;" in doc.appendices[0].content

    @pytest.mark.parametrize("text", [
        "",
        "12\n34",
        "SELECT * FROM t;",
        "DAFTAR PUSTAKA\n[1] Sumber.",
        "\n\n\n",
    ])
    def test_always_one_chapter(self, text):
        doc = classify_and_build(text)
        assert len(doc.sections) >= 1
        assert doc.appendices

    def test_fallback_body_excludes_technical_lines(self):
        doc = classify_and_build("12\nabc\nSELECT * FROM t;")
        assert doc.sections[0].content == "12 abc"
        assert doc.metrics.warnings

    def test_empty_input_warns(self):
        doc = classify_and_build("")
        assert any("empty" in w for w in doc.metrics.warnings)


class TestAppendixOrganizer:
    """Tests for appendix grouping."""

    def test_placeholder_when_empty(self):
        appendices = organize_appendices([])
        assert len(appendices) == 1
        assert appendices[0].label == "A"
        assert appendices[0].title == "Lampiran Penelitian"
        assert appendices[0].type == "other"
        assert len(appendices[0].content) == 1

    def test_groups_in_fixed_order(self):
        lines = ["SELECT * FROM users;", "def hitung(x):", "{ return 1; }", "MAX_SIZE = 10"]
        appendices = organize_appendices(lines)

        assert [(a.label, a.title, a.type) for a in appendices] == [
            ("A", "Query SQL", "sql"),
            ("B", "Fungsi dan Prosedur", "code"),
            ("C", "Kode Program", "code"),
            ("D", "Data Tambahan", "data"),
        ]
        assert appendices[0].content == ["SELECT * FROM users;"]
        assert appendices[1].content == ["def hitung(x):"]
        # Independent tests: the def line is also general code
        assert appendices[2].content == ["def hitung(x):", "{ return 1; }"]
        assert appendices[3].content == ["MAX_SIZE = 10"]

    def test_labels_skip_empty_groups(self):
        appendices = organize_appendices(["{ x; }", "MAX = 1"])
        assert [(a.label, a.title) for a in appendices] == [
            ("A", "Kode Program"),
            ("B", "Data Tambahan"),
        ]

"""
Tests for document assembly and rendering.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from report_recon.config import PipelineConfig, RenderConfig
from report_recon.utils.assembler import (
    DocumentAssembler,
    estimate_pages,
    format_document,
    get_plain_text,
    split_into_paragraphs,
    toc_titles,
)
from report_recon.utils.builder import classify_and_build
from report_recon.utils.canonical import canonicalize
from report_recon.utils.citations import CitationFormatter
from report_recon.utils.document import ContentSection, ParsedDocument
from report_recon.utils.errors import PreconditionFailed
from report_recon.utils.style import DEFAULT_STYLE, StyleProfile


SAMPLE_DRAFT = """
BAB I PENDAHULUAN
1.1 Latar Belakang
Penelitian ini dilakukan untuk memahami pola penjualan di toko ritel. Data dikumpulkan selama satu tahun penuh.
1.2 Rumusan Masalah
Bagaimana pola penjualan berubah pada setiap musim dalam satu tahun?
BAB II LANDASAN TEORI
Teori yang digunakan adalah analisis deret waktu untuk data penjualan bulanan.
Tabel 1 Ringkasan Data Penjualan
Gambar 1 Grafik Penjualan Bulanan
SELECT * FROM penjualan;
DAFTAR PUSTAKA
Smith, J. (2020). Machine Learning Basics. Springer.
"""


@pytest.fixture
def canonical_doc():
    return canonicalize(classify_and_build(SAMPLE_DRAFT))


@pytest.fixture
def result(canonical_doc):
    return format_document(canonical_doc, DEFAULT_STYLE)


def plain_toc(plain_text):
    lines = plain_text.split("\n")
    start = lines.index("=== DAFTAR ISI ===") + 1
    end = lines.index("DAFTAR PUSTAKA", start)
    return [line.strip() for line in lines[start:end]]


class TestHelpers:
    """Tests for shared helpers."""

    def test_split_into_paragraphs(self):
        assert split_into_paragraphs("Satu kalimat. Dua kalimat.") == ["Satu kalimat.", "Dua kalimat."]
        assert split_into_paragraphs("Ulang. Ulang.") == ["Ulang."]
        assert split_into_paragraphs("Bagian satu\n\nBagian dua") == ["Bagian satu", "Bagian dua"]
        assert split_into_paragraphs("  ...  ") == []

    def test_toc_titles_skip_unnumbered(self):
        doc = ParsedDocument(sections=[
            ContentSection(level=1, title="BAB I PENDAHULUAN", subsections=[
                ContentSection(level=2, title="1.1 Latar Belakang"),
                ContentSection(level=2, title="Catatan"),
            ]),
            ContentSection(level=1, title="Prakata"),
        ])
        assert toc_titles(doc) == ["BAB I PENDAHULUAN", "1.1 Latar Belakang"]

    def test_estimate_pages(self, canonical_doc):
        estimate = estimate_pages(canonical_doc)

        # cover + TOC + list of tables + list of figures
        assert estimate.chapter_pages[0] == 5
        assert estimate.chapter_pages == sorted(estimate.chapter_pages)
        assert estimate.bibliography_page > estimate.chapter_pages[-1]
        assert estimate.appendix_page > estimate.bibliography_page

    def test_estimate_without_lists(self):
        doc = canonicalize(ParsedDocument())
        estimate = estimate_pages(doc, RenderConfig(cover_pages=2))
        assert estimate.chapter_pages[0] == 4
        assert estimate.chapter_pages[1] == 5


class TestFormatDocument:
    """Tests for the three rendered outputs."""

    def test_requires_style(self, canonical_doc):
        with pytest.raises(PreconditionFailed):
            format_document(canonical_doc, None)

    def test_toc_parity(self, result, canonical_doc):
        structured = [
            e["text"] for e in result.structured_doc["elements"]
            if e["type"] == "toc_entry" and e["listing"] == "toc"
        ]
        expected = toc_titles(canonical_doc)

        assert structured == expected + ["DAFTAR PUSTAKA", "LAMPIRAN"]
        assert plain_toc(result.plain_text) == expected

    def test_lists_of_tables_and_figures(self, result):
        elements = result.structured_doc["elements"]
        tables = [e["text"] for e in elements if e.get("listing") == "tables"]
        figures = [e["text"] for e in elements if e.get("listing") == "figures"]

        assert tables == ["Tabel 2.1 Ringkasan Data Penjualan"]
        assert figures == ["Gambar 2.1 Grafik Penjualan Bulanan"]

    def test_section_order(self, result):
        text = result.plain_text
        markers = [
            "=== HALAMAN SAMPUL ===",
            "=== DAFTAR ISI ===",
            "=== DAFTAR TABEL ===",
            "=== DAFTAR GAMBAR ===",
            "=== KONTEN UTAMA ===",
            "=== DAFTAR PUSTAKA ===",
            "=== LAMPIRAN ===",
        ]
        positions = [text.index(marker) for marker in markers]
        assert positions == sorted(positions)

    def test_plain_text_content(self, result):
        text = result.plain_text
        assert "  1.1 Latar Belakang" in text
        assert "Disusun oleh: Nama Penulis" in text
        assert "Lampiran A: Query SQL" in text
        assert "  SELECT * FROM penjualan;" in text
        assert "Smith, J. (2020). Machine Learning Basics. Springer." in text

    def test_chapters_start_on_new_page(self, result):
        elements = result.structured_doc["elements"]
        for i, element in enumerate(elements):
            if element["type"] == "heading" and element["text"].startswith("BAB "):
                assert elements[i - 1]["type"] == "page_break"
                assert element["alignment"] == "center"

    def test_code_appendix_uses_code_font(self, result):
        code = [
            e for e in result.structured_doc["elements"]
            if e["type"] == "paragraph" and e["text"] == "SELECT * FROM penjualan;"
        ]
        assert code[0]["font"] == "Courier New"
        assert code[0]["indent"] == 36.0

    def test_page_stream_matches_structured_content(self, result):
        drawn = " ".join(result.page_stream.text_lines)
        assert "DAFTAR ISI" in drawn
        assert "BAB V PENUTUP" in drawn
        assert "Lampiran A: Query SQL" in drawn
        assert result.page_stream.page_count >= 8

    def test_structured_metadata(self, result):
        doc = result.structured_doc
        assert doc["metadata"]["page_numbers"] == "estimated"
        assert doc["metadata"]["author"] == "Nama Penulis"
        assert doc["page"]["margins"]["left"] == 72.0
        assert doc["page"]["font_family"] == "Times New Roman"

    def test_formatter_styles_bibliography(self):
        doc = canonicalize(classify_and_build(SAMPLE_DRAFT), citation_style="IEEE")
        result = format_document(doc, DEFAULT_STYLE, CitationFormatter("IEEE"))
        assert 'J. Smith, "Machine Learning Basics," Springer, 2020.' in result.plain_text

    def test_plain_text_without_metadata(self):
        text = get_plain_text(classify_and_build("BAB I PENDAHULUAN"))
        assert "=== HALAMAN SAMPUL ===" not in text
        assert text.startswith("=== DAFTAR ISI ===")


class TestDocumentAssembler:
    """Tests for the end-to-end pipeline."""

    def test_process(self):
        assembler = DocumentAssembler(PipelineConfig())
        result = assembler.process(SAMPLE_DRAFT, metadata={"author": "Budi", "student_id": "12345"})

        assert result.document.metadata.author == "Budi"
        assert "Disusun oleh: Budi" in result.plain_text
        assert "NIM: 12345" in result.plain_text
        assert len(result.document.sections) == 5

    def test_explicit_style(self):
        assembler = DocumentAssembler(PipelineConfig())
        result = assembler.process(SAMPLE_DRAFT, exemplar=StyleProfile(font_size=11.0))
        assert result.structured_doc["page"]["font_size"] == 11.0

    def test_citation_style_from_config(self):
        config = PipelineConfig(citation_style="Harvard")
        result = DocumentAssembler(config).process(SAMPLE_DRAFT)
        assert "J. Smith 2020, Machine Learning Basics, Springer." in result.plain_text

    def test_empty_draft(self):
        result = DocumentAssembler(PipelineConfig()).process("")
        doc = result.document

        assert [c.title for c in doc.sections][0] == "BAB I PENDAHULUAN"
        assert len(doc.sections) == 5
        assert doc.references
        assert doc.appendices
        assert doc.metrics.warnings

    def test_result_to_dict(self):
        result = DocumentAssembler(PipelineConfig()).process(SAMPLE_DRAFT)
        data = result.to_dict()
        assert data["document"]["schema_version"] == "1.0"
        assert data["page_stream"]["page_count"] == result.page_stream.page_count

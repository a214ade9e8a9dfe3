"""
Tests for pagination into draw instructions.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from report_recon.utils.pagination import (
    Paginator,
    TextMeasurer,
    core_font,
    to_latin1,
    wrap_text,
)
from report_recon.utils.style import DEFAULT_STYLE


class FixedWidthMeasurer:
    """Every character is half the font size wide."""

    def width(self, text, font, size, bold=False, italic=False):
        return len(text) * size * 0.5


@pytest.fixture
def paginator():
    return Paginator(DEFAULT_STYLE, measurer=FixedWidthMeasurer())


def paragraph(text, **hints):
    element = {"type": "paragraph", "text": text, "size": 12.0, "alignment": "left"}
    element.update(hints)
    return element


class TestHelpers:
    """Tests for text helpers."""

    def test_wrap_text(self):
        assert wrap_text("aa bb cc", 5, len) == ["aa bb", "cc"]
        assert wrap_text("abcdefgh ij", 3, len) == ["abcdefgh", "ij"]
        assert wrap_text("", 10, len) == []

    def test_to_latin1(self):
        assert to_latin1("“Halo” – dunia…") == '"Halo" - dunia...'
        assert to_latin1("Café") == "Café"
        assert to_latin1("Ş") == "S"

    def test_core_font(self):
        assert core_font("Times New Roman") == "Times"
        assert core_font("Arial") == "Helvetica"
        assert core_font("Courier New") == "Courier"
        assert core_font(None) == "Times"

    def test_text_measurer(self):
        measurer = TextMeasurer()
        short = measurer.width("abc", "Times", 12)
        assert short > 0
        assert measurer.width("abcabc", "Times", 12) == pytest.approx(2 * short)


class TestPaginator:
    """Tests for page layout."""

    def test_empty_input_has_one_page(self, paginator):
        stream = paginator.paginate([])
        assert stream.page_count == 1
        assert stream.instructions == []

    def test_consecutive_breaks_add_no_blank_pages(self, paginator):
        stream = paginator.paginate([
            {"type": "page_break"},
            {"type": "page_break"},
            paragraph("satu"),
            {"type": "page_break"},
            {"type": "page_break"},
            paragraph("dua"),
        ])

        assert stream.page_count == 2
        assert [(i.page, i.text) for i in stream.instructions] == [(1, "satu"), (2, "dua")]
        assert [i.text for i in stream.page(2)] == ["dua"]

    def test_lines_stay_inside_margins(self, paginator):
        elements = [paragraph("kata " * 40, spacing_after=6.0) for _ in range(60)]
        stream = paginator.paginate(elements)
        bottom = 841.89 - DEFAULT_STYLE.margin_bottom

        assert stream.page_count > 1
        for ins in stream.instructions:
            assert ins.y >= DEFAULT_STYLE.margin_top
            assert ins.y + ins.size * DEFAULT_STYLE.line_spacing <= bottom + 0.01
            assert ins.x >= DEFAULT_STYLE.margin_left

    def test_wraps_to_text_width(self, paginator):
        stream = paginator.paginate([paragraph("kata " * 40)])
        width = 595.28 - 144
        for ins in stream.instructions:
            assert len(ins.text) * 6.0 <= width
        assert " ".join(stream.text_lines) == ("kata " * 40).strip()

    def test_center_and_right_alignment(self, paginator):
        stream = paginator.paginate([
            paragraph("ABCD", alignment="center"),
            paragraph("ABCD", alignment="right"),
        ])
        center, right = stream.instructions

        assert center.x == pytest.approx((595.28 - 24.0) / 2, abs=0.01)
        assert right.x == pytest.approx(595.28 - 72.0 - 24.0, abs=0.01)

    def test_toc_entry_has_leader_and_number(self, paginator):
        stream = paginator.paginate([
            {"type": "toc_entry", "text": "BAB I PENDAHULUAN", "page": 3, "size": 12.0},
        ])
        title, leader, number = stream.instructions

        assert title.text == "BAB I PENDAHULUAN"
        assert set(leader.text) == {"."}
        assert number.text == "3"
        assert number.x + 6.0 == pytest.approx(595.28 - 72.0, abs=0.01)
        assert title.y == leader.y == number.y

    def test_code_font_hint(self, paginator):
        stream = paginator.paginate([paragraph("SELECT 1;", font="Courier New", indent=36.0)])
        assert stream.instructions[0].font == "Courier"
        assert stream.instructions[0].x == 72.0 + 36.0

    def test_to_dict(self, paginator):
        data = paginator.paginate([paragraph("satu")]).to_dict()
        assert data["page_count"] == 1
        assert data["instructions"][0]["text"] == "satu"
        assert data["margins"]["left"] == 72.0

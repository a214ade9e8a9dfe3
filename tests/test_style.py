"""
Tests for style profile extraction.
"""

import pytest
import sys
from dataclasses import FrozenInstanceError
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from report_recon.utils.style import (
    DEFAULT_STYLE,
    ExemplarMetrics,
    StyleProfile,
    clean_font_name,
    extract_style,
    modal_font_size,
)


class TestDefaults:
    """Tests for the default academic style."""

    def test_default_values(self):
        assert DEFAULT_STYLE.font_family == "Times New Roman"
        assert DEFAULT_STYLE.font_size == 12.0
        assert DEFAULT_STYLE.margin_left == 72.0
        assert DEFAULT_STYLE.line_spacing == 1.5
        assert DEFAULT_STYLE.chapter.size == 14.0

    def test_heading_levels(self):
        assert DEFAULT_STYLE.heading(1) is DEFAULT_STYLE.chapter
        assert DEFAULT_STYLE.heading(2) is DEFAULT_STYLE.heading2
        assert DEFAULT_STYLE.heading(4) is DEFAULT_STYLE.heading3

    def test_profile_is_read_only(self):
        with pytest.raises(FrozenInstanceError):
            DEFAULT_STYLE.font_size = 10.0

    def test_to_dict(self):
        data = DEFAULT_STYLE.to_dict()
        assert data["margins"] == {"top": 72.0, "bottom": 72.0, "left": 72.0, "right": 72.0}
        assert data["headings"]["chapter"]["spacing"] == {"before": 12.0, "after": 6.0}


class TestFontHelpers:
    """Tests for font name cleanup and size detection."""

    @pytest.mark.parametrize("raw,expected", [
        ("ABCDEF+TimesNewRomanPSMT", "Times New Roman"),
        ("Arial,Bold", "Arial"),
        ("Calibri-BoldItalic", "Calibri"),
        ("Helvetica", "Helvetica"),
    ])
    def test_clean_font_name(self, raw, expected):
        assert clean_font_name(raw) == expected

    @pytest.mark.parametrize("raw", ["g_d0_f1", "F3", "", None])
    def test_unusable_font_names(self, raw):
        assert clean_font_name(raw) is None

    def test_modal_font_size(self):
        assert modal_font_size([11.2, 10.9, 11.0, 14.0]) == 11.0
        assert modal_font_size([]) is None
        assert modal_font_size([40.0, 40.0]) is None


class TestExtractStyle:
    """Tests for exemplar-driven style extraction."""

    def test_no_exemplar(self):
        assert extract_style() is DEFAULT_STYLE
        assert extract_style("teks contoh tanpa metrik") is DEFAULT_STYLE

    def test_empty_metrics(self):
        assert extract_style(ExemplarMetrics()) is DEFAULT_STYLE

    def test_generated_names_fall_back(self):
        metrics = ExemplarMetrics(font_names=["g_d0_f1"], glyph_heights=[40.0])
        assert extract_style(metrics) is DEFAULT_STYLE

    def test_font_and_size(self):
        metrics = ExemplarMetrics(
            font_names=["ABCDEF+TimesNewRomanPSMT"],
            glyph_heights=[11.0, 11.0, 11.0, 14.0],
        )
        style = extract_style(metrics)

        assert isinstance(style, StyleProfile)
        assert style.font_family == "Times New Roman"
        assert style.font_size == 11.0
        assert style.chapter.size == 13.0
        assert style.heading2.size == 12.0

    def test_body_size_takes_precedence(self):
        metrics = ExemplarMetrics(font_names=["Arial"], glyph_heights=[10.0], body_font_size=11.0)
        assert extract_style(metrics).font_size == 11.0

    def test_margins(self):
        metrics = ExemplarMetrics(margins={"left": 90.0, "top": 0, "gutter": 5.0})
        style = extract_style(metrics)

        assert style.margin_left == 90.0
        assert style.margin_top == DEFAULT_STYLE.margin_top
        assert style.font_family == DEFAULT_STYLE.font_family

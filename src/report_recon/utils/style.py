"""
Style profile extraction for report reconstruction.

Provides:
- StyleProfile / HeadingStyle data classes (all sizes in points)
- The canonical academic default style
- Style extraction from exemplar metrics
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import List, Optional, Union

import numpy as np

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class HeadingStyle:
    """Styling for one heading level."""
    size: float
    bold: bool = True
    spacing_before: float = 0.0
    spacing_after: float = 0.0


@dataclass(frozen=True)
class StyleProfile:
    """Page and typography settings shared read-only by the renderers."""
    font_family: str = "Times New Roman"
    font_size: float = 12.0
    margin_top: float = 72.0
    margin_bottom: float = 72.0
    margin_left: float = 72.0
    margin_right: float = 72.0
    chapter: HeadingStyle = HeadingStyle(14.0, True, 12.0, 6.0)
    heading1: HeadingStyle = HeadingStyle(14.0, True, 6.0, 3.0)
    heading2: HeadingStyle = HeadingStyle(13.0, True, 4.0, 2.0)
    heading3: HeadingStyle = HeadingStyle(12.0, True, 3.0, 1.5)
    paragraph_spacing_before: float = 0.0
    paragraph_spacing_after: float = 6.0
    line_spacing: float = 1.5

    def heading(self, level: int) -> HeadingStyle:
        """Heading style for a tree level (1 = chapter, 2 = subsection)."""
        if level <= 1:
            return self.chapter
        if level == 2:
            return self.heading2
        return self.heading3

    def to_dict(self):
        return {
            "font_family": self.font_family,
            "font_size": self.font_size,
            "margins": {
                "top": self.margin_top,
                "bottom": self.margin_bottom,
                "left": self.margin_left,
                "right": self.margin_right,
            },
            "headings": {
                name: {
                    "size": h.size,
                    "bold": h.bold,
                    "spacing": {"before": h.spacing_before, "after": h.spacing_after},
                }
                for name, h in (
                    ("chapter", self.chapter),
                    ("heading1", self.heading1),
                    ("heading2", self.heading2),
                    ("heading3", self.heading3),
                )
            },
            "paragraph_spacing": {
                "before": self.paragraph_spacing_before,
                "after": self.paragraph_spacing_after,
            },
            "line_spacing": self.line_spacing,
        }


# Times-equivalent serif, 12pt body, 1-inch margins, 1.5 line spacing.
# Every fallback path returns this exact object.
DEFAULT_STYLE = StyleProfile()


@dataclass
class ExemplarMetrics:
    """Raw observations from the first page of an exemplar document."""
    font_names: List[str] = field(default_factory=list)
    glyph_heights: List[float] = field(default_factory=list)
    body_font_size: Optional[float] = None
    margins: Optional[dict] = None  # top/bottom/left/right in points


# ============================================================================
# Extraction
# ============================================================================

MIN_BODY_SIZE = 8
MAX_BODY_SIZE = 16

# pdf.js style generated names carry no family information
_GENERATED_FONT = re.compile(r"^g_d\d+_f\d+$|^F\d+$|^T\d+$", re.IGNORECASE)
_SUBSET_PREFIX = re.compile(r"^[A-Z]{6}\+")
_PS_SUFFIX = re.compile(
    r"(,|-)(Bold|Italic|BoldItalic|Regular|Roman|Oblique)\w*$|(PSMT|MT|PS)$"
)


def clean_font_name(name: str) -> Optional[str]:
    """Strip subset prefixes and PostScript suffixes; None if unusable."""
    if not name:
        return None
    name = name.strip()
    if _GENERATED_FONT.match(name):
        return None
    name = _SUBSET_PREFIX.sub("", name)
    name = _PS_SUFFIX.sub("", name)
    # TimesNewRoman -> Times New Roman
    name = re.sub(r"(?<=[a-z])(?=[A-Z])", " ", name).strip()
    return name or None


def modal_font_size(heights: List[float]) -> Optional[float]:
    """Most frequent rounded glyph height, or None when outside body range."""
    if not heights:
        return None
    values = np.round(np.asarray(heights, dtype=float))
    values = values[values > 0]
    if values.size == 0:
        return None
    sizes, counts = np.unique(values, return_counts=True)
    size = float(sizes[int(np.argmax(counts))])
    if MIN_BODY_SIZE <= size <= MAX_BODY_SIZE:
        return size
    return None


def extract_style(exemplar: Union[None, str, ExemplarMetrics] = None) -> StyleProfile:
    """
    Derive a StyleProfile from an exemplar document.

    Args:
        exemplar: None, exemplar text, or ExemplarMetrics gathered from the
            exemplar's first page

    Returns:
        StyleProfile; DEFAULT_STYLE whenever no usable font information exists
    """
    if exemplar is None or isinstance(exemplar, str):
        logger.debug("No exemplar metrics, using default academic style")
        return DEFAULT_STYLE

    try:
        return _style_from_metrics(exemplar)
    except (TypeError, ValueError) as e:
        logger.warning(f"Exemplar style extraction failed, using default style: {e}")
        return DEFAULT_STYLE


def _style_from_metrics(metrics: ExemplarMetrics) -> StyleProfile:
    changes = {}

    for raw in metrics.font_names:
        family = clean_font_name(raw)
        if family:
            changes["font_family"] = family
            break

    size = metrics.body_font_size
    if size is None or not (MIN_BODY_SIZE <= size <= MAX_BODY_SIZE):
        size = modal_font_size(metrics.glyph_heights)
    if size is not None and size != DEFAULT_STYLE.font_size:
        offset = size - DEFAULT_STYLE.font_size
        changes["font_size"] = size
        for name in ("chapter", "heading1", "heading2", "heading3"):
            heading = getattr(DEFAULT_STYLE, name)
            changes[name] = replace(heading, size=heading.size + offset)

    for side, value in (metrics.margins or {}).items():
        if side in ("top", "bottom", "left", "right") and value and value > 0:
            changes[f"margin_{side}"] = float(value)

    if not changes:
        return DEFAULT_STYLE

    profile = replace(DEFAULT_STYLE, **changes)
    logger.info(
        f"Exemplar style: font={profile.font_family}, size={profile.font_size}pt"
    )
    return profile

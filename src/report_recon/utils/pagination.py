"""
Single-column pagination into a draw-instruction stream.

The paginator walks the structured description element by element, wraps
text against the usable width (fpdf2 core-font metrics) and starts a new page
whenever the next line would cross the bottom margin. Coordinates are points
with a top-left origin; y is the top of the line box.
"""

import logging
import unicodedata
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from fpdf import FPDF

from .style import StyleProfile

logger = logging.getLogger(__name__)

# Characters outside Latin-1 that are common in manuscripts
_TRANSLITERATIONS = {
    "‘": "'", "’": "'", "‚": ",", "“": '"', "”": '"',
    "„": '"', "–": "-", "—": "-", "…": "...", "•": "*",
    "−": "-", " ": " ", "→": "->", "≤": "<=", "≥": ">=",
}


def to_latin1(text: str) -> str:
    """Transliterate text so fpdf2 core fonts can measure and draw it."""
    text = "".join(_TRANSLITERATIONS.get(ch, ch) for ch in text)
    try:
        text.encode("latin-1")
        return text
    except UnicodeEncodeError:
        pass
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.encode("latin-1", "replace").decode("latin-1")


def core_font(family: Optional[str]) -> str:
    """Map a font family name onto an fpdf2 core font."""
    name = (family or "").lower()
    if "courier" in name or "mono" in name:
        return "Courier"
    if any(key in name for key in ("arial", "helvetica", "sans", "calibri", "verdana")):
        return "Helvetica"
    return "Times"


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class DrawInstruction:
    """One line of text placed on a page."""
    page: int
    x: float
    y: float
    text: str
    font: str
    size: float
    bold: bool = False
    italic: bool = False


@dataclass
class PageStream:
    """Paginated draw instructions plus the page geometry."""
    width: float
    height: float
    margins: Dict[str, float]
    instructions: List[DrawInstruction] = field(default_factory=list)
    page_count: int = 1

    def page(self, number: int) -> List[DrawInstruction]:
        return [i for i in self.instructions if i.page == number]

    @property
    def text_lines(self) -> List[str]:
        return [i.text for i in self.instructions]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "margins": self.margins,
            "page_count": self.page_count,
            "instructions": [asdict(i) for i in self.instructions],
        }


# ============================================================================
# Measurement
# ============================================================================

class TextMeasurer:
    """String widths in points from fpdf2 core-font metrics."""

    def __init__(self):
        self._pdf = FPDF(unit="pt")

    def width(self, text: str, font: str, size: float, bold: bool = False, italic: bool = False) -> float:
        style = ("B" if bold else "") + ("I" if italic else "")
        self._pdf.set_font(font, style, size)
        return self._pdf.get_string_width(text)


def wrap_text(text: str, max_width: float, measure) -> List[str]:
    """
    Greedy word wrap.

    Args:
        text: Text to wrap
        max_width: Usable width in points
        measure: Callable returning the width of a string

    Returns:
        Wrapped lines; a single over-long word is kept on its own line
    """
    lines = []
    line = ""
    for word in text.split():
        candidate = f"{line} {word}" if line else word
        if line and measure(candidate) > max_width:
            lines.append(line)
            line = word
        else:
            line = candidate
    if line:
        lines.append(line)
    return lines


# ============================================================================
# Paginator
# ============================================================================

class Paginator:
    """Lays out structured elements on fixed-size pages."""

    def __init__(
        self,
        style: StyleProfile,
        page_width: float = 595.28,
        page_height: float = 841.89,
        measurer: Optional[TextMeasurer] = None
    ):
        self.style = style
        self.page_width = page_width
        self.page_height = page_height
        self.measurer = measurer or TextMeasurer()

        # Cursor state, reset by paginate()
        self._page = 1
        self._cursor = style.margin_top
        self._page_has_content = False

    @property
    def text_width(self) -> float:
        return self.page_width - self.style.margin_left - self.style.margin_right

    @property
    def bottom(self) -> float:
        return self.page_height - self.style.margin_bottom

    def paginate(self, elements: List[Dict[str, Any]]) -> PageStream:
        """
        Convert structured elements into a PageStream.

        Args:
            elements: Elements of the structured description

        Returns:
            PageStream with at least one page
        """
        stream = PageStream(
            width=self.page_width,
            height=self.page_height,
            margins={
                "top": self.style.margin_top,
                "bottom": self.style.margin_bottom,
                "left": self.style.margin_left,
                "right": self.style.margin_right,
            },
        )
        self._page = 1
        self._cursor = self.style.margin_top
        self._page_has_content = False

        for element in elements:
            kind = element.get("type")
            if kind == "page_break":
                self._new_page()
            elif kind == "toc_entry":
                self._place_toc_entry(stream, element)
            elif kind in ("heading", "paragraph"):
                self._place_text(stream, element)

        stream.page_count = self._page
        logger.info(f"Paginated {len(stream.instructions)} lines onto {stream.page_count} pages")
        return stream

    def _new_page(self):
        # Consecutive breaks never produce blank pages
        if self._page_has_content:
            self._page += 1
            self._cursor = self.style.margin_top
            self._page_has_content = False

    def _line_height(self, size: float) -> float:
        return size * self.style.line_spacing

    def _reserve_line(self, size: float) -> float:
        """Move to a new page if the line does not fit; return its y."""
        height = self._line_height(size)
        if self._page_has_content and self._cursor + height > self.bottom:
            self._new_page()
        y = self._cursor
        self._cursor += height
        self._page_has_content = True
        return y

    def _font(self, element: Dict[str, Any]) -> str:
        return core_font(element.get("font") or self.style.font_family)

    def _place_text(self, stream: PageStream, element: Dict[str, Any]):
        text = to_latin1(element.get("text", ""))
        font = self._font(element)
        size = element.get("size", self.style.font_size)
        bold = element.get("bold", False)
        italic = element.get("italic", False)
        indent = element.get("indent", 0.0)
        alignment = element.get("alignment", "left")
        max_width = self.text_width - 2 * indent

        def measure(s: str) -> float:
            return self.measurer.width(s, font, size, bold, italic)

        self._cursor += element.get("spacing_before", 0.0)
        for line in wrap_text(text, max_width, measure):
            y = self._reserve_line(size)
            x = self.style.margin_left + indent
            if alignment == "center":
                x = (self.page_width - measure(line)) / 2
            elif alignment == "right":
                x = self.page_width - self.style.margin_right - measure(line)
            stream.instructions.append(DrawInstruction(
                page=self._page, x=round(x, 2), y=round(y, 2), text=line,
                font=font, size=size, bold=bold, italic=italic,
            ))
        self._cursor += element.get("spacing_after", 0.0)

    def _place_toc_entry(self, stream: PageStream, element: Dict[str, Any]):
        """Title on the left, estimated page number on the right, dot leader between."""
        font = self._font(element)
        size = element.get("size", self.style.font_size)
        indent = element.get("indent", 0.0)
        number = str(element.get("page", ""))

        def measure(s: str) -> float:
            return self.measurer.width(s, font, size)

        number_width = measure(number)
        left = self.style.margin_left + indent
        right = self.page_width - self.style.margin_right
        gap = measure(" ")
        max_width = right - left - number_width - 2 * gap

        self._cursor += element.get("spacing_before", 0.0)
        lines = wrap_text(to_latin1(element.get("text", "")), max_width, measure)
        for i, line in enumerate(lines):
            y = self._reserve_line(size)
            stream.instructions.append(DrawInstruction(
                page=self._page, x=round(left, 2), y=round(y, 2), text=line, font=font, size=size,
            ))
            if i < len(lines) - 1:
                continue

            leader_start = left + measure(line) + gap
            leader_end = right - number_width - gap
            dot_width = measure(".")
            dots = int((leader_end - leader_start) / dot_width) if dot_width else 0
            if dots > 0:
                stream.instructions.append(DrawInstruction(
                    page=self._page, x=round(leader_start, 2), y=round(y, 2),
                    text="." * dots, font=font, size=size,
                ))
            stream.instructions.append(DrawInstruction(
                page=self._page, x=round(right - number_width, 2), y=round(y, 2),
                text=number, font=font, size=size,
            ))
        self._cursor += element.get("spacing_after", 0.0)

"""
Document assembler module for report reconstruction.

Provides:
- TOC / list-of-tables / list-of-figures selection shared by every renderer
- Structured-document description (word-processor manifest)
- Draw-instruction stream (via the paginator)
- Plain-text view for diffing
- Pipeline orchestration (DocumentAssembler)
"""

import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..config import PipelineConfig, RenderConfig, get_config
from .builder import classify_and_build
from .canonical import canonicalize
from .citations import CitationFormatter
from .classifier import CHAPTER_PATTERN
from .document import ContentSection, ParsedDocument, ReportMetadata
from .errors import PreconditionFailed
from .pagination import PageStream, Paginator
from .style import ExemplarMetrics, StyleProfile, extract_style

logger = logging.getLogger(__name__)

TOC_SUBSECTION_PATTERN = re.compile(r"^\d+\.\d+\s")

CODE_FONT = "Courier New"
CODE_INDENT = 36.0  # points
FRONT_HEADING_SIZE = 14.0
TOC_CHAPTER_SIZE = 12.0
TOC_SUBSECTION_SIZE = 11.0
TOC_SUBSECTION_INDENT = 18.0


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class PageEstimate:
    """
    Estimated page numbers for TOC, LOT and LOF entries.

    These come from a running offset (front matter plus an approximate span
    per chapter from its text length), not from a pagination pass, so they
    are estimates and can differ from the rendered PDF.
    """
    chapter_pages: List[int] = field(default_factory=list)  # per doc.sections index
    bibliography_page: int = 1
    appendix_page: int = 1

    def for_chapter(self, index: Optional[int], chapter_number: int = 1) -> int:
        if index is not None and 0 <= index < len(self.chapter_pages):
            return self.chapter_pages[index]
        fallback = chapter_number - 1
        if 0 <= fallback < len(self.chapter_pages):
            return self.chapter_pages[fallback]
        return self.chapter_pages[0] if self.chapter_pages else 1


@dataclass
class RenderResult:
    """Everything one formatting run produces."""
    structured_doc: Dict[str, Any]
    page_stream: PageStream
    plain_text: str
    document: Optional[ParsedDocument] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "structured_doc": self.structured_doc,
            "page_stream": self.page_stream.to_dict(),
            "plain_text": self.plain_text,
            "document": self.document.to_dict() if self.document else None,
        }


# ============================================================================
# Shared Selection Helpers
# ============================================================================

def is_toc_chapter(section: ContentSection) -> bool:
    return section.level == 1 and bool(CHAPTER_PATTERN.match(section.title))


def is_toc_subsection(section: ContentSection) -> bool:
    return bool(TOC_SUBSECTION_PATTERN.match(section.title))


def toc_entries(doc: ParsedDocument) -> List[Tuple[int, ContentSection, List[ContentSection]]]:
    """(section index, chapter, listed subsections) for every TOC chapter."""
    return [
        (index, chapter, [sub for sub in chapter.subsections if is_toc_subsection(sub)])
        for index, chapter in enumerate(doc.sections)
        if is_toc_chapter(chapter)
    ]


def toc_titles(doc: ParsedDocument) -> List[str]:
    """Flat list of chapter and subsection titles shown in the TOC."""
    titles = []
    for _index, chapter, subsections in toc_entries(doc):
        titles.append(chapter.title)
        titles.extend(sub.title for sub in subsections)
    return titles


def split_into_paragraphs(text: str) -> List[str]:
    """Split at blank lines or sentence ends followed by a capital or digit."""
    rough = re.split(r"\n\s*\n|(?<=[.!?])\s+(?=[A-Z0-9])", re.sub(r"\s+\n", "\n", text or ""))
    paragraphs = []
    for part in rough:
        part = part.strip()
        if not part or not re.search(r"[^\W_]", part):
            continue
        if not paragraphs or paragraphs[-1] != part:
            paragraphs.append(part)
    return paragraphs


def _chapter_chars(chapter: ContentSection) -> int:
    return len(chapter.title) + len(chapter.content) + sum(
        len(sub.title) + len(sub.content) for sub in chapter.subsections
    )


def estimate_pages(doc: ParsedDocument, config: Optional[RenderConfig] = None) -> PageEstimate:
    """Running-offset page estimates; every chapter starts on a new page."""
    config = config or RenderConfig()
    per_page = max(config.chars_per_page, 1)

    front_matter = config.cover_pages + 1
    if doc.tables:
        front_matter += 1
    if doc.figures:
        front_matter += 1

    estimate = PageEstimate()
    page = front_matter + 1
    for chapter in doc.sections:
        estimate.chapter_pages.append(page)
        page += max(1, math.ceil(_chapter_chars(chapter) / per_page))

    estimate.bibliography_page = page
    reference_chars = sum(len(ref.text) for ref in doc.references)
    page += max(1, math.ceil(reference_chars / per_page))
    estimate.appendix_page = page
    return estimate


def bibliography_lines(doc: ParsedDocument, formatter: Optional[CitationFormatter] = None) -> List[str]:
    """Reference texts; entries with a citation go through the formatter when given."""
    if formatter is None:
        return [ref.text for ref in doc.references]

    cited = [ref.citation for ref in doc.references if ref.citation is not None]
    raw = [ref.text for ref in doc.references if ref.citation is None]
    formatted = [formatter.format_full_reference(c) for c in formatter.sort_citations(cited)]
    return formatted + raw


# ============================================================================
# Structured Renderer
# ============================================================================

class StructuredRenderer:
    """Builds the word-processor manifest from a canonical document."""

    def __init__(
        self,
        style: StyleProfile,
        formatter: Optional[CitationFormatter] = None,
        config: Optional[RenderConfig] = None
    ):
        self.style = style
        self.formatter = formatter
        self.config = config or RenderConfig()

    def _paragraph(self, text: str, **hints) -> Dict[str, Any]:
        element = {
            "type": "paragraph",
            "text": text,
            "size": self.style.font_size,
            "bold": False,
            "italic": False,
            "alignment": "justify",
            "font": self.style.font_family,
            "indent": 0.0,
            "spacing_before": self.style.paragraph_spacing_before,
            "spacing_after": self.style.paragraph_spacing_after,
        }
        element.update(hints)
        return element

    def _heading(self, text: str, level: int, size: float, alignment: str = "left",
                 spacing_before: float = 0.0, spacing_after: float = 0.0) -> Dict[str, Any]:
        return {
            "type": "heading",
            "level": level,
            "text": text,
            "size": size,
            "bold": True,
            "italic": False,
            "alignment": alignment,
            "font": self.style.font_family,
            "spacing_before": spacing_before,
            "spacing_after": spacing_after,
        }

    def _front_heading(self, text: str) -> Dict[str, Any]:
        return self._heading(text, 1, FRONT_HEADING_SIZE, "center", 12.0, 12.0)

    def _toc_entry(self, text: str, page: int, level: int = 1, listing: str = "toc") -> Dict[str, Any]:
        sub = level > 1
        return {
            "type": "toc_entry",
            "listing": listing,
            "level": level,
            "text": text,
            "page": page,
            "size": TOC_SUBSECTION_SIZE if sub else TOC_CHAPTER_SIZE,
            "font": self.style.font_family,
            "indent": TOC_SUBSECTION_INDENT if sub else 0.0,
            "spacing_before": 0.0,
            "spacing_after": 4.0 if sub else 6.0,
        }

    def cover_page(self, metadata: ReportMetadata) -> List[Dict[str, Any]]:
        center = {"alignment": "center"}
        elements = [
            self._paragraph("LOGO UNIVERSITAS", size=10.0, italic=True, spacing_after=10.0, **center),
            self._paragraph(metadata.university or "UNIVERSITAS", size=16.0, bold=True,
                            spacing_after=5.0, **center),
            self._paragraph(f"FAKULTAS/PROGRAM STUDI {metadata.program or 'PROGRAM STUDI'}",
                            size=12.0, spacing_after=15.0, **center),
            self._paragraph(metadata.title, size=24.0, bold=True, spacing_after=20.0, **center),
            self._paragraph("Disusun oleh:", size=12.0, spacing_after=5.0, **center),
            self._paragraph(metadata.author, size=14.0, bold=True, spacing_after=5.0, **center),
        ]
        if metadata.student_id:
            elements.append(self._paragraph(f"NIM: {metadata.student_id}", size=12.0,
                                            spacing_after=15.0, **center))
        elements.append(self._paragraph(metadata.year or "", size=14.0, bold=True,
                                        spacing_after=10.0, **center))
        return elements

    def table_of_contents(self, doc: ParsedDocument, estimate: PageEstimate) -> List[Dict[str, Any]]:
        elements = [self._front_heading("DAFTAR ISI")]
        for index, chapter, subsections in toc_entries(doc):
            page = estimate.chapter_pages[index]
            elements.append(self._toc_entry(chapter.title, page))
            elements.extend(self._toc_entry(sub.title, page, level=2) for sub in subsections)
        elements.append(self._toc_entry("DAFTAR PUSTAKA", estimate.bibliography_page))
        elements.append(self._toc_entry("LAMPIRAN", estimate.appendix_page))
        return elements

    def list_of_tables(self, doc: ParsedDocument, estimate: PageEstimate) -> List[Dict[str, Any]]:
        if not doc.tables:
            return []
        elements = [{"type": "page_break"}, self._front_heading("DAFTAR TABEL")]
        elements.extend(
            self._toc_entry(t.title, estimate.for_chapter(t.source_chapter, t.chapter_number),
                            level=2, listing="tables")
            for t in doc.tables
        )
        return elements

    def list_of_figures(self, doc: ParsedDocument, estimate: PageEstimate) -> List[Dict[str, Any]]:
        if not doc.figures:
            return []
        elements = [{"type": "page_break"}, self._front_heading("DAFTAR GAMBAR")]
        elements.extend(
            self._toc_entry(f.title, estimate.for_chapter(f.source_chapter, f.chapter_number),
                            level=2, listing="figures")
            for f in doc.figures
        )
        return elements

    def main_body(self, doc: ParsedDocument) -> List[Dict[str, Any]]:
        chapter_style = self.style.heading(1)
        sub_style = self.style.heading(2)
        elements = []
        for chapter in doc.sections:
            elements.append({"type": "page_break"})
            elements.append(self._heading(
                chapter.title, 1, chapter_style.size, "center",
                chapter_style.spacing_before, chapter_style.spacing_after,
            ))
            elements.extend(self._paragraph(p) for p in split_into_paragraphs(chapter.content))
            for sub in chapter.subsections:
                elements.append(self._heading(
                    sub.title, 2, sub_style.size, "left",
                    sub_style.spacing_before, sub_style.spacing_after,
                ))
                elements.extend(self._paragraph(p) for p in split_into_paragraphs(sub.content))
        return elements

    def bibliography(self, doc: ParsedDocument) -> List[Dict[str, Any]]:
        elements = [{"type": "page_break"}, self._front_heading("DAFTAR PUSTAKA")]
        elements.extend(
            self._paragraph(text, alignment="left", spacing_before=0.0, spacing_after=6.0)
            for text in bibliography_lines(doc, self.formatter)
        )
        return elements

    def appendices(self, doc: ParsedDocument) -> List[Dict[str, Any]]:
        elements = [{"type": "page_break"}, self._front_heading("LAMPIRAN")]
        for appendix in doc.appendices:
            elements.append(self._heading(
                f"Lampiran {appendix.label}: {appendix.title}", 2,
                self.style.heading1.size, "left", 12.0, 6.0,
            ))
            for line in appendix.content:
                hints = {"alignment": "left", "spacing_before": 0.0, "spacing_after": 4.0}
                if appendix.is_code:
                    hints.update(font=CODE_FONT, indent=CODE_INDENT)
                elements.append(self._paragraph(line, **hints))
        return elements

    def render(self, doc: ParsedDocument) -> Dict[str, Any]:
        """
        Build the structured description in fixed order: cover, TOC, LOT,
        LOF, main body, bibliography, appendices.
        """
        metadata = doc.metadata or ReportMetadata.defaults()
        estimate = estimate_pages(doc, self.config)

        elements = []
        elements.extend(self.cover_page(metadata))
        elements.append({"type": "page_break"})
        elements.extend(self.table_of_contents(doc, estimate))
        elements.extend(self.list_of_tables(doc, estimate))
        elements.extend(self.list_of_figures(doc, estimate))
        elements.extend(self.main_body(doc))
        elements.extend(self.bibliography(doc))
        elements.extend(self.appendices(doc))

        return {
            "elements": elements,
            "metadata": {
                **metadata.to_dict(),
                "page_numbers": "estimated",
            },
            "page": {
                "width": self.config.page_width,
                "height": self.config.page_height,
                "margins": {
                    "top": self.style.margin_top,
                    "bottom": self.style.margin_bottom,
                    "left": self.style.margin_left,
                    "right": self.style.margin_right,
                },
                "font_family": self.style.font_family,
                "font_size": self.style.font_size,
                "line_spacing": self.style.line_spacing,
            },
        }


# ============================================================================
# Plain Text
# ============================================================================

def get_plain_text(doc: ParsedDocument, formatter: Optional[CitationFormatter] = None) -> str:
    """Flatten a document into sectioned, indented text for diff display."""
    lines = []

    if doc.metadata:
        meta = doc.metadata
        lines.append("=== HALAMAN SAMPUL ===")
        lines.append(meta.university or "")
        lines.append(meta.title or doc.title)
        lines.append(f"Disusun oleh: {meta.author}")
        if meta.student_id:
            lines.append(f"NIM: {meta.student_id}")
        lines.append(meta.year or "")
        lines.append("")

    lines.append("=== DAFTAR ISI ===")
    for _index, chapter, subsections in toc_entries(doc):
        lines.append(chapter.title)
        lines.extend(f"  {sub.title}" for sub in subsections)
    lines.append("DAFTAR PUSTAKA")
    lines.append("LAMPIRAN")
    lines.append("")

    if doc.tables:
        lines.append("=== DAFTAR TABEL ===")
        lines.extend(t.title for t in doc.tables)
        lines.append("")

    if doc.figures:
        lines.append("=== DAFTAR GAMBAR ===")
        lines.extend(f.title for f in doc.figures)
        lines.append("")

    lines.append("=== KONTEN UTAMA ===")
    for chapter in doc.sections:
        lines.append(chapter.title)
        if chapter.content.strip():
            lines.append(chapter.content.strip())
        for sub in chapter.subsections:
            lines.append(f"  {sub.title}")
            if sub.content.strip():
                lines.append(f"  {sub.content.strip()}")
        lines.append("")

    lines.append("=== DAFTAR PUSTAKA ===")
    lines.extend(bibliography_lines(doc, formatter))
    lines.append("")

    lines.append("=== LAMPIRAN ===")
    for appendix in doc.appendices:
        lines.append(f"Lampiran {appendix.label}: {appendix.title}")
        lines.extend(f"  {line}" for line in appendix.content)
        lines.append("")

    return "\n".join(lines)


def format_document(
    doc: ParsedDocument,
    style: Optional[StyleProfile],
    formatter: Optional[CitationFormatter] = None,
    config: Optional[RenderConfig] = None
) -> RenderResult:
    """
    Render a canonical document into all three outputs.

    Args:
        doc: Canonicalized document (read-only here)
        style: Style profile; required
        formatter: Optional citation formatter for the bibliography
        config: Page geometry and estimate settings

    Returns:
        RenderResult with structured_doc, page_stream and plain_text

    Raises:
        PreconditionFailed: If no style profile is given
    """
    if style is None:
        raise PreconditionFailed("No style profile available; extract a style before rendering")

    config = config or RenderConfig()
    structured = StructuredRenderer(style, formatter, config).render(doc)
    page_stream = Paginator(style, config.page_width, config.page_height).paginate(structured["elements"])
    plain_text = get_plain_text(doc, formatter)

    return RenderResult(
        structured_doc=structured,
        page_stream=page_stream,
        plain_text=plain_text,
        document=doc,
    )


# ============================================================================
# Pipeline
# ============================================================================

class DocumentAssembler:
    """
    Main pipeline orchestrator.

    Runs style extraction, classification, building, canonicalization and
    rendering in sequence. Each call owns its own ParsedDocument.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or get_config()
        if self.config.debug_mode:
            logging.getLogger("report_recon").setLevel(logging.DEBUG)

    def _formatter(self) -> Optional[CitationFormatter]:
        if not self.config.citation_style:
            return None
        return CitationFormatter(self.config.citation_style)

    def process(
        self,
        draft_text: str,
        exemplar: Union[None, str, ExemplarMetrics, StyleProfile] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> RenderResult:
        """
        Format a draft manuscript.

        Args:
            draft_text: Raw text extracted from the draft
            exemplar: Exemplar metrics, an explicit StyleProfile, or None for the default
            metadata: Cover page overrides

        Returns:
            RenderResult for the canonical document
        """
        if isinstance(exemplar, StyleProfile):
            style = exemplar
        else:
            style = extract_style(exemplar)

        doc = classify_and_build(draft_text, self.config.classifier.min_prose_length)
        canonicalize(
            doc,
            metadata_override=metadata,
            config=self.config.canonical,
            citation_style=self.config.citation_style,
        )
        result = format_document(doc, style, self._formatter(), self.config.render)

        logger.info(
            f"Formatted document: {len(doc.sections)} chapters, "
            f"{result.page_stream.page_count} pages, {len(doc.metrics.warnings)} warnings"
        )
        return result

    def process_file(
        self,
        draft_path: Union[str, Path],
        exemplar_path: Optional[Union[str, Path]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> RenderResult:
        """Load a PDF/DOCX draft (and optional exemplar) and format it."""
        from .io import load_exemplar_metrics, load_source

        draft_text = load_source(draft_path)
        exemplar = load_exemplar_metrics(exemplar_path) if exemplar_path else None
        return self.process(draft_text, exemplar=exemplar, metadata=metadata)

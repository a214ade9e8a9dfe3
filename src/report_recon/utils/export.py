"""
Export module for report reconstruction.

Provides:
- DOCX codec (python-docx) for the structured-document description
- PDF codec (fpdf2) for the draw-instruction stream
- Multi-format exporter writing through a storage backend

Both codecs are deterministic: equal input gives equal bytes.
"""

import logging
import zipfile
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .io import DOCX_MIME, JSON_MIME, PDF_MIME, TEXT_MIME, LocalStorage, to_json
from .pagination import PageStream, to_latin1

logger = logging.getLogger(__name__)

FIXED_TIMESTAMP = datetime(2000, 1, 1, tzinfo=timezone.utc)
ZIP_TIMESTAMP = (1980, 1, 1, 0, 0, 0)


def normalize_zip(data: bytes) -> bytes:
    """Rewrite a zip archive with fixed entry timestamps, keeping entry order."""
    source = zipfile.ZipFile(BytesIO(data))
    output = BytesIO()
    with zipfile.ZipFile(output, "w", zipfile.ZIP_DEFLATED) as target:
        for info in source.infolist():
            entry = zipfile.ZipInfo(info.filename, date_time=ZIP_TIMESTAMP)
            entry.compress_type = zipfile.ZIP_DEFLATED
            entry.external_attr = info.external_attr
            target.writestr(entry, source.read(info.filename))
    source.close()
    return output.getvalue()


# ============================================================================
# DOCX Codec
# ============================================================================

class DocxCodec:
    """Encode the structured-document description as DOCX bytes using python-docx."""

    def __init__(self, template_path: Optional[str] = None):
        self.template_path = template_path

    def encode(self, structured_doc: Dict[str, Any]) -> bytes:
        """
        Encode a structured description.

        Args:
            structured_doc: {"elements": [...], "metadata": {...}, "page": {...}}

        Returns:
            DOCX file contents
        """
        try:
            from docx import Document as DocxDocument
        except ImportError:
            raise ImportError(
                "python-docx is required for DOCX export. "
                "Install with: pip install python-docx"
            )

        if self.template_path and Path(self.template_path).exists():
            doc = DocxDocument(self.template_path)
        else:
            doc = DocxDocument()

        page = structured_doc.get("page", {})
        self._setup_page(doc, page)
        self._set_properties(doc, structured_doc.get("metadata", {}))

        pending_break = False
        for element in structured_doc.get("elements", []):
            elem_type = element.get("type")
            if elem_type == "page_break":
                pending_break = True
                continue

            if elem_type == "heading":
                p = doc.add_heading(level=min(max(element.get("level", 1), 1), 9))
            else:
                p = doc.add_paragraph()

            if pending_break:
                p.paragraph_format.page_break_before = True
                pending_break = False

            if elem_type == "toc_entry":
                self._add_toc_entry(p, element, page)
            else:
                self._add_text(p, element, page)

        buffer = BytesIO()
        doc.save(buffer)
        data = normalize_zip(buffer.getvalue())
        logger.info(f"Encoded DOCX ({len(data)} bytes)")
        return data

    def _setup_page(self, doc: Any, page: Dict[str, Any]):
        from docx.shared import Pt

        section = doc.sections[0]
        if page.get("width") and page.get("height"):
            section.page_width = Pt(page["width"])
            section.page_height = Pt(page["height"])
        margins = page.get("margins", {})
        if "top" in margins:
            section.top_margin = Pt(margins["top"])
        if "bottom" in margins:
            section.bottom_margin = Pt(margins["bottom"])
        if "left" in margins:
            section.left_margin = Pt(margins["left"])
        if "right" in margins:
            section.right_margin = Pt(margins["right"])

        normal = doc.styles["Normal"]
        if page.get("font_family"):
            normal.font.name = page["font_family"]
        if page.get("font_size"):
            normal.font.size = Pt(page["font_size"])

    def _set_properties(self, doc: Any, metadata: Dict[str, Any]):
        props = doc.core_properties
        props.title = metadata.get("title") or ""
        props.author = metadata.get("author") or ""
        props.last_modified_by = metadata.get("author") or ""
        props.revision = 1
        props.created = FIXED_TIMESTAMP.replace(tzinfo=None)
        props.modified = FIXED_TIMESTAMP.replace(tzinfo=None)

    def _add_text(self, p: Any, element: Dict[str, Any], page: Dict[str, Any]):
        from docx.enum.text import WD_ALIGN_PARAGRAPH
        from docx.shared import Pt, RGBColor

        alignments = {
            "left": WD_ALIGN_PARAGRAPH.LEFT,
            "center": WD_ALIGN_PARAGRAPH.CENTER,
            "right": WD_ALIGN_PARAGRAPH.RIGHT,
            "justify": WD_ALIGN_PARAGRAPH.JUSTIFY,
        }

        run = p.add_run(element.get("text", ""))
        run.bold = element.get("bold", False)
        run.italic = element.get("italic", False)
        if element.get("size"):
            run.font.size = Pt(element["size"])
        if element.get("font"):
            run.font.name = element["font"]
        if element.get("type") == "heading":
            run.font.color.rgb = RGBColor(0, 0, 0)

        fmt = p.paragraph_format
        fmt.alignment = alignments.get(element.get("alignment", "left"), WD_ALIGN_PARAGRAPH.LEFT)
        fmt.space_before = Pt(element.get("spacing_before", 0))
        fmt.space_after = Pt(element.get("spacing_after", 0))
        if element.get("type") == "paragraph" and page.get("line_spacing"):
            fmt.line_spacing = page["line_spacing"]
        indent = element.get("indent", 0)
        if indent:
            fmt.left_indent = Pt(indent)
            fmt.right_indent = Pt(indent)

    def _add_toc_entry(self, p: Any, element: Dict[str, Any], page: Dict[str, Any]):
        from docx.enum.text import WD_TAB_ALIGNMENT, WD_TAB_LEADER
        from docx.shared import Pt

        margins = page.get("margins", {})
        text_width = page.get("width", 595.28) - margins.get("left", 72) - margins.get("right", 72)

        fmt = p.paragraph_format
        fmt.space_before = Pt(element.get("spacing_before", 0))
        fmt.space_after = Pt(element.get("spacing_after", 0))
        if element.get("indent"):
            fmt.left_indent = Pt(element["indent"])
        fmt.tab_stops.add_tab_stop(Pt(text_width), WD_TAB_ALIGNMENT.RIGHT, WD_TAB_LEADER.DOTS)

        run = p.add_run(f"{element.get('text', '')}\t{element.get('page', '')}")
        if element.get("size"):
            run.font.size = Pt(element["size"])
        if element.get("font"):
            run.font.name = element["font"]


# ============================================================================
# PDF Codec
# ============================================================================

class PdfCodec:
    """Encode a PageStream as PDF bytes using fpdf2 core fonts."""

    # Baseline offset from the top of the line box, as a fraction of font size
    BASELINE = 0.8

    def encode(self, page_stream: PageStream) -> bytes:
        """
        Encode a draw-instruction stream.

        Args:
            page_stream: Paginated instructions (points, top-left origin)

        Returns:
            PDF file contents
        """
        from fpdf import FPDF

        pdf = FPDF(unit="pt", format=(page_stream.width, page_stream.height))
        pdf.set_auto_page_break(auto=False)
        pdf.set_margins(
            page_stream.margins.get("left", 72),
            page_stream.margins.get("top", 72),
            page_stream.margins.get("right", 72),
        )
        pdf.set_creation_date(FIXED_TIMESTAMP)
        pdf.set_creator("report_recon")

        by_page: Dict[int, list] = {}
        for instruction in page_stream.instructions:
            by_page.setdefault(instruction.page, []).append(instruction)

        for number in range(1, page_stream.page_count + 1):
            pdf.add_page()
            for ins in by_page.get(number, []):
                style = ("B" if ins.bold else "") + ("I" if ins.italic else "")
                pdf.set_font(ins.font, style, ins.size)
                pdf.text(ins.x, ins.y + ins.size * self.BASELINE, to_latin1(ins.text))

        data = bytes(pdf.output())
        logger.info(f"Encoded PDF ({page_stream.page_count} pages, {len(data)} bytes)")
        return data


# ============================================================================
# Multi-format Exporter
# ============================================================================

FORMAT_MIME = {
    "docx": DOCX_MIME,
    "pdf": PDF_MIME,
    "txt": TEXT_MIME,
    "json": JSON_MIME,
}


class DocumentExporter:
    """Convenience class for exporting to multiple formats."""

    def __init__(
        self,
        output_dir: Union[str, Path],
        base_name: str = "laporan",
        storage: Optional[Any] = None,
        docx_template: Optional[str] = None
    ):
        self.output_dir = Path(output_dir)
        self.base_name = base_name
        self.storage = storage or LocalStorage(self.output_dir)

        self.docx_codec = DocxCodec(template_path=docx_template)
        self.pdf_codec = PdfCodec()

    def encode(self, result: Any, fmt: str) -> bytes:
        """Bytes for one format of a RenderResult."""
        if fmt == "docx":
            return self.docx_codec.encode(result.structured_doc)
        if fmt == "pdf":
            return self.pdf_codec.encode(result.page_stream)
        if fmt == "txt":
            return result.plain_text.encode("utf-8")
        if fmt == "json":
            return to_json(result.to_dict()).encode("utf-8")
        raise ValueError(f"Unknown export format: {fmt}")

    def export(
        self,
        result: Any,
        formats: Optional[List[str]] = None,
        folder_id: Optional[str] = None
    ) -> Dict[str, str]:
        """
        Export a RenderResult to multiple formats.

        Args:
            result: RenderResult from format_document
            formats: List of formats ('docx', 'pdf', 'txt', 'json', 'all')
            folder_id: Optional storage folder

        Returns:
            Dictionary mapping format to storage handle
        """
        if formats is None:
            formats = ["docx", "pdf", "txt"]

        if "all" in formats:
            formats = list(FORMAT_MIME)

        results = {}
        for fmt in formats:
            if fmt not in FORMAT_MIME:
                logger.warning(f"Skipping unknown export format: {fmt}")
                continue
            blob = self.encode(result, fmt)
            results[fmt] = self.storage.store(
                blob, f"{self.base_name}.{fmt}", FORMAT_MIME[fmt], folder_id
            )

        return results

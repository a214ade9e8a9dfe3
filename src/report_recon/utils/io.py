"""
I/O utilities for the report reconstruction pipeline.

Handles:
- MIME type detection and the PDF/DOCX gate
- Text extraction (PyMuPDF, python-docx)
- Exemplar style metrics
- Local storage backend for rendered outputs
- JSON serialization and directory management
"""

import json
import logging
import mimetypes
from collections import Counter
from dataclasses import asdict
from enum import Enum
from io import BytesIO
from pathlib import Path
from typing import Any, Optional, Union

import numpy as np

from .errors import UnsupportedFormat
from .style import ExemplarMetrics

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MIME = "text/plain"
JSON_MIME = "application/json"

SUPPORTED_MIME_TYPES = (PDF_MIME, DOCX_MIME)

_SUFFIX_MIME = {
    ".pdf": PDF_MIME,
    ".docx": DOCX_MIME,
    ".txt": TEXT_MIME,
    ".json": JSON_MIME,
}


# ============================================================================
# File Type Detection
# ============================================================================

def detect_mime_type(path: Union[str, Path]) -> str:
    """
    Detect the MIME type of a file from its suffix.

    Args:
        path: Path to the file

    Returns:
        MIME type string ('application/octet-stream' when unknown)
    """
    suffix = Path(path).suffix.lower()
    if suffix in _SUFFIX_MIME:
        return _SUFFIX_MIME[suffix]
    guessed, _ = mimetypes.guess_type(str(path))
    return guessed or "application/octet-stream"


def ensure_supported(mime_type: str, source: str = ""):
    if mime_type not in SUPPORTED_MIME_TYPES:
        raise UnsupportedFormat(mime_type, source)


# ============================================================================
# Text Extraction
# ============================================================================

def _pdf_text(data: bytes) -> str:
    import fitz  # PyMuPDF

    doc = fitz.open(stream=data, filetype="pdf")
    try:
        return "\n".join(page.get_text("text") for page in doc)
    finally:
        doc.close()


def _docx_text(data: bytes) -> str:
    from docx import Document as DocxDocument

    document = DocxDocument(BytesIO(data))
    return "\n".join(p.text for p in document.paragraphs)


def extract_text(data: bytes, mime_type: str) -> str:
    """
    Extract raw text from PDF or DOCX bytes.

    Args:
        data: File contents
        mime_type: Declared MIME type

    Returns:
        Raw text, one line per extracted line/paragraph

    Raises:
        UnsupportedFormat: If the MIME type is neither PDF nor DOCX
    """
    ensure_supported(mime_type)
    if mime_type == PDF_MIME:
        text = _pdf_text(data)
    else:
        text = _docx_text(data)
    logger.info(f"Extracted {len(text)} characters from {mime_type}")
    return text


def load_source(path: Union[str, Path]) -> str:
    """
    Read a draft file and extract its text.

    Raises:
        FileNotFoundError: If the file doesn't exist
        UnsupportedFormat: If the file is neither PDF nor DOCX
    """
    path = Path(path)
    mime_type = detect_mime_type(path)
    ensure_supported(mime_type, str(path))
    if not path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")
    return extract_text(path.read_bytes(), mime_type)


# ============================================================================
# Exemplar Metrics
# ============================================================================

def _pdf_metrics(data: bytes) -> ExemplarMetrics:
    import fitz  # PyMuPDF

    doc = fitz.open(stream=data, filetype="pdf")
    try:
        metrics = ExemplarMetrics()
        if doc.page_count == 0:
            return metrics

        fonts = Counter()
        page_dict = doc[0].get_text("dict")
        for block in page_dict.get("blocks", []):
            if block.get("type") != 0:
                continue
            for line in block.get("lines", []):
                for span in line.get("spans", []):
                    size = float(span.get("size", 0.0))
                    if size <= 0 or not span.get("text", "").strip():
                        continue
                    metrics.glyph_heights.append(size)
                    fonts[span.get("font", "")] += len(span["text"])

        metrics.font_names = [name for name, _ in fonts.most_common() if name]
        return metrics
    finally:
        doc.close()


def _docx_metrics(data: bytes) -> ExemplarMetrics:
    from docx import Document as DocxDocument

    document = DocxDocument(BytesIO(data))
    metrics = ExemplarMetrics()

    normal = document.styles["Normal"].font
    if normal.name:
        metrics.font_names.append(normal.name)
    if normal.size is not None:
        metrics.body_font_size = float(normal.size.pt)

    for paragraph in document.paragraphs[:50]:
        for run in paragraph.runs:
            if run.font.name and run.font.name not in metrics.font_names:
                metrics.font_names.append(run.font.name)
            if run.font.size is not None and run.text.strip():
                metrics.glyph_heights.append(float(run.font.size.pt))

    if document.sections:
        section = document.sections[0]
        margins = {
            "top": section.top_margin,
            "bottom": section.bottom_margin,
            "left": section.left_margin,
            "right": section.right_margin,
        }
        metrics.margins = {k: float(v.pt) for k, v in margins.items() if v is not None}

    return metrics


def extract_exemplar_metrics(data: bytes, mime_type: str) -> ExemplarMetrics:
    """
    Collect font names, glyph heights and margins from an exemplar.

    Raises:
        UnsupportedFormat: If the MIME type is neither PDF nor DOCX
    """
    ensure_supported(mime_type)
    if mime_type == PDF_MIME:
        return _pdf_metrics(data)
    return _docx_metrics(data)


def load_exemplar_metrics(path: Union[str, Path]) -> ExemplarMetrics:
    """
    Read exemplar metrics from a file.

    Unreadable exemplars yield empty metrics, which map to the default style.

    Raises:
        UnsupportedFormat: If the file is neither PDF nor DOCX
    """
    path = Path(path)
    mime_type = detect_mime_type(path)
    ensure_supported(mime_type, str(path))
    try:
        return extract_exemplar_metrics(path.read_bytes(), mime_type)
    except Exception as e:
        logger.warning(f"Could not read exemplar {path}, using default style: {e}")
        return ExemplarMetrics()


# ============================================================================
# Storage
# ============================================================================

class LocalStorage:
    """Filesystem storage backend; handles are the written file paths."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def store(
        self,
        blob: bytes,
        file_name: str,
        mime_type: str,
        folder_id: Optional[str] = None
    ) -> str:
        """
        Persist a blob.

        Args:
            blob: File contents
            file_name: Target file name
            mime_type: MIME type of the contents
            folder_id: Optional sub-folder

        Returns:
            Opaque handle (the written path)
        """
        folder = ensure_dir(self.root / folder_id if folder_id else self.root)
        path = folder / Path(file_name).name
        path.write_bytes(blob)
        logger.info(f"Stored {mime_type} ({len(blob)} bytes): {path}")
        return str(path)


# ============================================================================
# JSON Serialization
# ============================================================================

class EnhancedJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy values, dataclasses and enums."""

    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if hasattr(obj, "to_dict"):
            return obj.to_dict()
        if hasattr(obj, "__dataclass_fields__"):
            return asdict(obj)
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


def to_json(data: Any, indent: int = 2, ensure_ascii: bool = False) -> str:
    return json.dumps(data, indent=indent, ensure_ascii=ensure_ascii, cls=EnhancedJSONEncoder)


def save_json(
    data: Any,
    output_path: Union[str, Path],
    indent: int = 2,
    ensure_ascii: bool = False
) -> Path:
    """
    Save data to a JSON file.

    Args:
        data: Data to serialize (dict, list, dataclass, etc.)
        output_path: Path to save the JSON file
        indent: Indentation level for pretty printing
        ensure_ascii: If True, escape non-ASCII characters

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(to_json(data, indent=indent, ensure_ascii=ensure_ascii))

    logger.debug(f"Saved JSON: {output_path}")
    return output_path


def load_json(json_path: Union[str, Path]) -> Any:
    """Load data from a JSON file."""
    json_path = Path(json_path)
    if not json_path.exists():
        raise FileNotFoundError(f"JSON file not found: {json_path}")

    with open(json_path, 'r', encoding='utf-8') as f:
        return json.load(f)


# ============================================================================
# Directory Management
# ============================================================================

def ensure_dir(path: Union[str, Path]) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path

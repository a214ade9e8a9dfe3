"""
Utility modules for the report reconstruction pipeline.
"""

from .io import load_source, extract_text, detect_mime_type, save_json, ensure_dir, LocalStorage
from .style import StyleProfile, HeadingStyle, ExemplarMetrics, DEFAULT_STYLE, extract_style
from .classifier import LineClassifier, LineKind, ClassifiedLine, classify_lines
from .document import ParsedDocument, ContentSection, Table, Figure, Reference, AppendixSection, ReportMetadata
from .builder import BuildState, classify_and_build
from .appendix import organize_appendices
from .canonical import Canonicalizer, canonicalize
from .citations import Citation, CitationFormatter, CitationStyle, parse_raw_references
from .pagination import DrawInstruction, PageStream, Paginator
from .assembler import DocumentAssembler, RenderResult, format_document, get_plain_text
from .export import DocxCodec, PdfCodec, DocumentExporter

__all__ = [
    # IO
    "load_source", "extract_text", "detect_mime_type", "save_json", "ensure_dir", "LocalStorage",
    # Style
    "StyleProfile", "HeadingStyle", "ExemplarMetrics", "DEFAULT_STYLE", "extract_style",
    # Classification and building
    "LineClassifier", "LineKind", "ClassifiedLine", "classify_lines",
    "ParsedDocument", "ContentSection", "Table", "Figure", "Reference", "AppendixSection",
    "ReportMetadata", "BuildState", "classify_and_build", "organize_appendices",
    # Canonicalization
    "Canonicalizer", "canonicalize",
    # Citations
    "Citation", "CitationFormatter", "CitationStyle", "parse_raw_references",
    # Rendering
    "DrawInstruction", "PageStream", "Paginator",
    "DocumentAssembler", "RenderResult", "format_document", "get_plain_text",
    # Export
    "DocxCodec", "PdfCodec", "DocumentExporter",
]

"""
Report Reconstruction Pipeline
==============================

Rebuilds an unstructured academic manuscript into a canonical five-chapter
report and renders it as DOCX, PDF and plain text.

Main components:
- Style profile extraction from an exemplar
- Line classification and document tree building
- Appendix organization for technical content
- Canonicalization against the academic skeleton
- Citation formatting (APA, IEEE, Chicago, Harvard)
- Dual rendering (structured description and paginated stream)
"""

__version__ = "1.0.0"
__author__ = "Report Reconstruction Team"

from .utils.style import StyleProfile, DEFAULT_STYLE, extract_style
from .utils.builder import classify_and_build
from .utils.canonical import canonicalize
from .utils.assembler import DocumentAssembler, RenderResult, format_document, get_plain_text
from .utils.citations import Citation, CitationFormatter, CitationStyle
from .utils.errors import ReportReconError, UnsupportedFormat, PreconditionFailed

__all__ = [
    "StyleProfile", "DEFAULT_STYLE", "extract_style",
    "classify_and_build", "canonicalize",
    "DocumentAssembler", "RenderResult", "format_document", "get_plain_text",
    "Citation", "CitationFormatter", "CitationStyle",
    "ReportReconError", "UnsupportedFormat", "PreconditionFailed",
]

"""
Document data model for report reconstruction.

Provides:
- ContentSection tree nodes (chapters and subsections)
- Table, Figure, Reference and AppendixSection records
- ReportMetadata and DocumentMetrics
- ParsedDocument aggregate with JSON envelope generation
"""

import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import List, Optional, Dict, Any

from ..config import JSON_SCHEMA_VERSION
from .citations import Citation

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class ContentSection:
    """A chapter (level 1) or subsection (level 2)."""
    level: int
    title: str
    content: str = ""
    subsections: List["ContentSection"] = field(default_factory=list)

    def append_text(self, text: str):
        self.content = f"{self.content} {text}" if self.content else text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "title": self.title,
            "content": self.content,
            "subsections": [s.to_dict() for s in self.subsections],
        }


@dataclass
class Table:
    """A captioned table; numbers are chapter-scoped after canonicalization."""
    number: int
    title: str
    chapter_number: int = 1
    source_chapter: Optional[int] = None  # index into ParsedDocument.sections
    content: List[List[str]] = field(
        default_factory=lambda: [["Kolom 1", "Kolom 2"], ["Data 1", "Data 2"]]
    )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Figure:
    """A captioned figure; numbers are chapter-scoped after canonicalization."""
    number: int
    title: str
    chapter_number: int = 1
    source_chapter: Optional[int] = None
    description: str = "Deskripsi gambar"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Reference:
    """A bibliography line, optionally backed by a structured citation."""
    text: str
    type: str = "other"  # book, article, website, other
    citation: Optional[Citation] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "type": self.type,
            "citation": self.citation.to_dict() if self.citation else None,
        }


@dataclass
class AppendixSection:
    """A labeled group of technical lines."""
    label: str
    title: str
    content: List[str] = field(default_factory=list)
    type: str = "other"  # sql, code, data, other

    @property
    def is_code(self) -> bool:
        return self.type in ("sql", "code")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ReportMetadata:
    """Cover page information; unset fields are filled by defaults()."""
    title: Optional[str] = None
    author: Optional[str] = None
    student_id: Optional[str] = None
    program: Optional[str] = None
    university: Optional[str] = None
    year: Optional[str] = None

    @classmethod
    def defaults(cls) -> "ReportMetadata":
        return cls(
            title="LAPORAN PENELITIAN",
            author="Nama Penulis",
            student_id="NIM",
            program="Program Studi",
            university="Universitas Anda",
            year=str(datetime.now().year),
        )

    def merged(self, override: Optional[Dict[str, Any]]) -> "ReportMetadata":
        """Copy with every non-None override field applied."""
        values = asdict(self)
        for key, value in (override or {}).items():
            if key in values and value is not None:
                values[key] = str(value)
            elif key not in values:
                logger.warning(f"Ignoring unknown metadata field: {key}")
        return ReportMetadata(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DocumentMetrics:
    """Counts and non-fatal warnings collected during one formatting run."""
    lines_total: int = 0
    lines_by_kind: Dict[str, int] = field(default_factory=dict)
    noise_lines_dropped: int = 0
    bibliography_lines_dropped: int = 0
    chapters_synthesized: int = 0
    subsections_synthesized: int = 0
    placeholders_inserted: int = 0
    warnings: List[str] = field(default_factory=list)

    def count_kind(self, kind: str):
        self.lines_by_kind[kind] = self.lines_by_kind.get(kind, 0) + 1

    def warn(self, message: str):
        logger.warning(message)
        self.warnings.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ParsedDocument:
    """Aggregate root for one formatting run."""
    title: str = "Laporan Penelitian"
    sections: List[ContentSection] = field(default_factory=list)
    tables: List[Table] = field(default_factory=list)
    figures: List[Figure] = field(default_factory=list)
    references: List[Reference] = field(default_factory=list)
    appendices: List[AppendixSection] = field(default_factory=list)
    metadata: Optional[ReportMetadata] = None
    metrics: DocumentMetrics = field(default_factory=DocumentMetrics)

    @property
    def chapters(self) -> List[ContentSection]:
        return self.sections

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": JSON_SCHEMA_VERSION,
            "title": self.title,
            "metadata": self.metadata.to_dict() if self.metadata else None,
            "sections": [s.to_dict() for s in self.sections],
            "tables": [t.to_dict() for t in self.tables],
            "figures": [f.to_dict() for f in self.figures],
            "references": [r.to_dict() for r in self.references],
            "appendices": [a.to_dict() for a in self.appendices],
            "metrics": self.metrics.to_dict(),
        }

"""
Structure canonicalization against the five-chapter academic skeleton.

Every document leaves this module with:
- BAB I..V in fixed order, reusing matching input chapters
- Subsections numbered <chapter>.<position>
- Unmatched input chapters appended after the skeleton
- Chapter-scoped, dense table and figure numbering
- At least one reference and one appendix
- Complete report metadata
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from ..config import CanonicalConfig
from .appendix import placeholder_appendix
from .citations import CitationStyle, parse_raw_references, reference_type
from .classifier import CHAPTER_PATTERN, extract_chapter_number, to_roman
from .document import ContentSection, ParsedDocument, Reference, ReportMetadata

logger = logging.getLogger(__name__)


# ============================================================================
# Skeleton
# ============================================================================

@dataclass(frozen=True)
class SkeletonChapter:
    title: str
    subsections: tuple
    paragraph: str

    def keywords(self, count: int) -> List[str]:
        """Trailing title words, excluding the BAB marker and numeral."""
        words = self.title.split()[2:]
        return words[-max(count, 1):]


SKELETON = (
    SkeletonChapter(
        "BAB I PENDAHULUAN",
        ("1.1 Latar Belakang", "1.2 Rumusan Masalah", "1.3 Tujuan Penelitian",
         "1.4 Manfaat Penelitian"),
        "Bab ini membahas latar belakang penelitian, rumusan masalah yang akan "
        "dipecahkan, tujuan yang ingin dicapai, dan manfaat yang diharapkan dari "
        "penelitian ini.",
    ),
    SkeletonChapter(
        "BAB II LANDASAN TEORI",
        ("2.1 Teori Dasar", "2.2 Penelitian Terkait", "2.3 Kerangka Konseptual"),
        "Bab ini membahas teori-teori dasar yang menjadi landasan penelitian, "
        "penelitian terkait yang telah dilakukan sebelumnya, dan kerangka "
        "konseptual yang digunakan.",
    ),
    SkeletonChapter(
        "BAB III METODOLOGI PENELITIAN",
        ("3.1 Jenis Penelitian", "3.2 Sumber Data", "3.3 Metode Pengumpulan Data",
         "3.4 Metode Analisis"),
        "Bab ini menjelaskan metode penelitian yang digunakan, jenis penelitian, "
        "sumber data, teknik pengumpulan data, dan metode analisis yang diterapkan.",
    ),
    SkeletonChapter(
        "BAB IV HASIL DAN PEMBAHASAN",
        ("4.1 Analisis Data", "4.2 Pembahasan Hasil", "4.3 Temuan Penelitian"),
        "Bab ini menyajikan hasil penelitian yang telah dilakukan, analisis data "
        "yang diperoleh, pembahasan temuan, dan interpretasi hasil penelitian.",
    ),
    SkeletonChapter(
        "BAB V PENUTUP",
        ("5.1 Kesimpulan", "5.2 Saran"),
        "Bab ini berisi kesimpulan dari penelitian yang telah dilakukan dan saran "
        "untuk penelitian selanjutnya atau implementasi hasil penelitian.",
    ),
)

CANONICAL_TITLES = [chapter.title for chapter in SKELETON]

SUBSECTION_PLACEHOLDER = "Konten untuk {title} akan diisi berdasarkan penelitian yang dilakukan."
PLACEHOLDER_REFERENCE = (
    "Contoh referensi akan diisi sesuai dengan sumber yang digunakan dalam "
    "penelitian menggunakan format sitasi yang sesuai (APA/IEEE/Chicago/Harvard)."
)
PLACEHOLDER_APPENDIX_NOTE = (
    "Material pendukung penelitian akan ditempatkan di bagian ini, seperti kode "
    "program, query database, atau data mentah."
)

SUBSECTION_NUMERAL = re.compile(r"^\d+(\.\d+)*\.?\s+")
BARE_CHAPTER = re.compile(r"^BAB\s+([IVXLC]+|\d+)$")
TABLE_PREFIX = re.compile(r"^(Tabel|Table|Tab\.)\s*\d+(\.\d+)*\.?\s*[:.\-]?\s*", re.IGNORECASE)
FIGURE_PREFIX = re.compile(r"^(Gambar|Figure|Gbr\.|Fig\.)\s*\d+(\.\d+)*\.?\s*[:.\-]?\s*", re.IGNORECASE)


def normalize_title(title: str) -> str:
    return re.sub(r"\s+", " ", title or "").strip().upper()


def renumber_subsections(chapter: ContentSection, chapter_number: int):
    """Rewrite subsection numerals to <chapter>.<position>, keeping order."""
    for position, subsection in enumerate(chapter.subsections, 1):
        clean = SUBSECTION_NUMERAL.sub("", subsection.title).strip() or "Subbab"
        subsection.title = f"{chapter_number}.{position} {clean}"


def clean_caption(title: str, prefix: re.Pattern) -> str:
    return prefix.sub("", title.strip()).strip()


# ============================================================================
# Canonicalizer
# ============================================================================

class Canonicalizer:
    """
    Reconciles a ParsedDocument with the skeleton.

    Title matching is loose (prefix or trailing keyword) and tunable through
    CanonicalConfig. Each input chapter fills at most one slot; ambiguous
    matches are logged and recorded in the document metrics.
    """

    def __init__(self, config: Optional[CanonicalConfig] = None):
        self.config = config or CanonicalConfig()

    def matches(self, title: str, slot: int) -> bool:
        """True if an input chapter title fits skeleton slot (0-based)."""
        norm = normalize_title(title)
        skeleton = SKELETON[slot]

        if norm.startswith(skeleton.title):
            return True

        if self.config.keyword_match:
            words = set(norm.split())
            if all(word in words for word in skeleton.keywords(self.config.keyword_count)):
                return True

        if self.config.match_bare_numerals and BARE_CHAPTER.match(norm):
            return extract_chapter_number(norm) == slot + 1

        return False

    def canonicalize(
        self,
        doc: ParsedDocument,
        metadata_override: Union[None, Dict[str, Any], ReportMetadata] = None,
        citation_style: Union[None, str, CitationStyle] = None
    ) -> ParsedDocument:
        """
        Canonicalize a document in place.

        Args:
            doc: Document from the builder (or an already canonical one)
            metadata_override: Caller metadata; None fields do not override
            citation_style: When set, references are parsed into citations

        Returns:
            The same document instance
        """
        metrics = doc.metrics
        original = list(doc.sections)
        claimed = self._match_slots(original, metrics)

        sections = []
        new_position = {}

        # Skeleton chapters
        for slot, skeleton in enumerate(SKELETON):
            index = claimed.get(slot)
            if index is None:
                chapter = ContentSection(level=1, title=skeleton.title, content=skeleton.paragraph)
                metrics.chapters_synthesized += 1
                logger.debug(f"Synthesized chapter '{skeleton.title}'")
            else:
                chapter = original[index]
                if chapter.title != skeleton.title:
                    logger.debug(f"Chapter '{chapter.title}' -> '{skeleton.title}'")
                chapter.title = skeleton.title
                new_position[index] = slot + 1

            if chapter.subsections:
                renumber_subsections(chapter, slot + 1)
            else:
                chapter.subsections = [
                    ContentSection(level=2, title=title,
                                   content=SUBSECTION_PLACEHOLDER.format(title=title))
                    for title in skeleton.subsections
                ]
                metrics.subsections_synthesized += len(skeleton.subsections)
            sections.append(chapter)

        # Everything else keeps its content after the skeleton
        claimed_indices = set(claimed.values())
        for index, chapter in enumerate(original):
            if index in claimed_indices:
                continue
            number = len(sections) + 1
            marker = CHAPTER_PATTERN.match(chapter.title)
            if marker is None:
                chapter.title = f"BAB {to_roman(number)} {chapter.title}"
            elif extract_chapter_number(chapter.title) != number:
                # Kept numeral must agree with subsection and caption numbers
                rest = chapter.title[marker.end():].strip()
                chapter.title = f"BAB {to_roman(number)} {rest}".rstrip()
            renumber_subsections(chapter, number)
            new_position[index] = number
            sections.append(chapter)
            logger.info(f"Kept unmatched chapter as '{chapter.title}'")

        doc.sections = sections

        self._number_captions(doc, new_position)

        if not doc.references:
            doc.references = [Reference(text=PLACEHOLDER_REFERENCE, type="other")]
            metrics.placeholders_inserted += 1
            metrics.warn("No references found; inserted a placeholder reference")

        if not doc.appendices:
            doc.appendices = [placeholder_appendix(PLACEHOLDER_APPENDIX_NOTE)]
            metrics.placeholders_inserted += 1

        doc.metadata = self._merge_metadata(doc.metadata, metadata_override)

        if citation_style is not None:
            self._attach_citations(doc)

        logger.info(
            f"Canonicalized document: {len(doc.sections)} chapters "
            f"({metrics.chapters_synthesized} synthesized)"
        )
        return doc

    def _match_slots(self, chapters: List[ContentSection], metrics) -> Dict[int, int]:
        """Map skeleton slot -> index of the input chapter it reuses."""
        claimed = {}
        taken = set()

        for index, chapter in enumerate(chapters):
            slots = [s for s in range(len(SKELETON)) if self.matches(chapter.title, s)]
            if len(slots) > 1:
                names = ", ".join(SKELETON[s].title for s in slots)
                metrics.warn(f"Chapter '{chapter.title}' matches several skeleton chapters: {names}")

        for slot, skeleton in enumerate(SKELETON):
            candidates = [
                i for i, chapter in enumerate(chapters)
                if i not in taken and self.matches(chapter.title, slot)
            ]
            if not candidates:
                continue
            if len(candidates) > 1:
                titles = ", ".join(f"'{chapters[i].title}'" for i in candidates)
                metrics.warn(f"Several chapters match '{skeleton.title}': {titles}; using the first")
            claimed[slot] = candidates[0]
            taken.add(candidates[0])

        return claimed

    def _number_captions(self, doc: ParsedDocument, new_position: Dict[int, int]):
        """Chapter-scoped dense numbering in first-seen order."""
        for items, label, prefix in (
            (doc.tables, "Tabel", TABLE_PREFIX),
            (doc.figures, "Gambar", FIGURE_PREFIX),
        ):
            counts: Dict[int, int] = {}
            for item in items:
                position = new_position.get(item.source_chapter) if item.source_chapter is not None else None
                if position is not None:
                    chapter_number = position
                    item.source_chapter = position - 1
                else:
                    chapter_number = item.chapter_number or 1

                counts[chapter_number] = counts.get(chapter_number, 0) + 1
                item.number = counts[chapter_number]
                item.chapter_number = chapter_number

                clean = clean_caption(item.title, prefix)
                item.title = f"{label} {chapter_number}.{item.number} {clean}".rstrip()

    def _merge_metadata(
        self,
        existing: Optional[ReportMetadata],
        override: Union[None, Dict[str, Any], ReportMetadata]
    ) -> ReportMetadata:
        metadata = ReportMetadata.defaults()
        if existing is not None:
            metadata = metadata.merged(existing.to_dict())
        if isinstance(override, ReportMetadata):
            override = override.to_dict()
        return metadata.merged(override)

    def _attach_citations(self, doc: ParsedDocument):
        pending = [
            ref for ref in doc.references
            if ref.citation is None and ref.text != PLACEHOLDER_REFERENCE
        ]
        for ref, citation in zip(pending, parse_raw_references(r.text for r in pending)):
            ref.citation = citation
            ref.type = reference_type(citation)
        if pending:
            logger.info(f"Parsed {len(pending)} references into citations")


def canonicalize(
    doc: ParsedDocument,
    metadata_override: Union[None, Dict[str, Any], ReportMetadata] = None,
    config: Optional[CanonicalConfig] = None,
    citation_style: Union[None, str, CitationStyle] = None
) -> ParsedDocument:
    """Canonicalize a document against the five-chapter skeleton (in place)."""
    return Canonicalizer(config).canonicalize(doc, metadata_override, citation_style)

"""
Document tree building from classified lines.

The classified stream is folded through BuildState, which carries the
document under construction, the open chapter and the open subsection.
Each handler takes a state and a line and returns the next state.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Optional

from .appendix import organize_appendices
from .classifier import (
    ClassifiedLine,
    LineClassifier,
    LineKind,
    extract_chapter_number,
    is_technical_content,
    normalize_lines,
)
from .document import ContentSection, Figure, ParsedDocument, Reference, Table

logger = logging.getLogger(__name__)

IMPLICIT_CHAPTER_TITLE = "BAB I PENDAHULUAN"


# ============================================================================
# Fold State
# ============================================================================

@dataclass(frozen=True)
class BuildState:
    """Cursor over the document being built."""
    document: ParsedDocument
    chapter: Optional[int] = None  # index into document.sections
    subsection: Optional[ContentSection] = None
    technical: List[str] = field(default_factory=list)

    @property
    def current_chapter(self) -> Optional[ContentSection]:
        if self.chapter is None:
            return None
        return self.document.sections[self.chapter]


def _open_chapter(state: BuildState, title: str) -> BuildState:
    state.document.sections.append(ContentSection(level=1, title=title))
    return replace(state, chapter=len(state.document.sections) - 1, subsection=None)


def _ensure_chapter(state: BuildState) -> BuildState:
    if state.chapter is not None:
        return state
    state.document.metrics.chapters_synthesized += 1
    logger.debug(f"No open chapter, opening implicit '{IMPLICIT_CHAPTER_TITLE}'")
    return _open_chapter(state, IMPLICIT_CHAPTER_TITLE)


def _caption_chapter(state: BuildState) -> int:
    chapter = state.current_chapter
    return extract_chapter_number(chapter.title) if chapter else 1


# ============================================================================
# Handlers
# ============================================================================

def on_chapter(state: BuildState, line: str) -> BuildState:
    return _open_chapter(state, line)


def on_sub_heading(state: BuildState, line: str) -> BuildState:
    state = _ensure_chapter(state)
    subsection = ContentSection(level=2, title=line)
    state.current_chapter.subsections.append(subsection)
    return replace(state, subsection=subsection)


def on_prose(state: BuildState, line: str) -> BuildState:
    if state.subsection is not None:
        state.subsection.append_text(line)
        return state
    state = _ensure_chapter(state)
    state.current_chapter.append_text(line)
    return state


def on_table_caption(state: BuildState, line: str) -> BuildState:
    tables = state.document.tables
    tables.append(Table(
        number=len(tables) + 1,
        title=line,
        chapter_number=_caption_chapter(state),
        source_chapter=state.chapter,
    ))
    return state


def on_figure_caption(state: BuildState, line: str) -> BuildState:
    figures = state.document.figures
    figures.append(Figure(
        number=len(figures) + 1,
        title=line,
        chapter_number=_caption_chapter(state),
        source_chapter=state.chapter,
    ))
    return state


def on_bibliography_entry(state: BuildState, line: str) -> BuildState:
    state.document.references.append(Reference(text=line))
    return state


def on_technical_content(state: BuildState, line: str) -> BuildState:
    return replace(state, technical=state.technical + [line])


HANDLERS: Dict[LineKind, Callable[[BuildState, str], BuildState]] = {
    LineKind.CHAPTER_HEADING: on_chapter,
    LineKind.SUB_HEADING: on_sub_heading,
    LineKind.PROSE: on_prose,
    LineKind.TABLE_CAPTION: on_table_caption,
    LineKind.FIGURE_CAPTION: on_figure_caption,
    LineKind.BIBLIOGRAPHY_ENTRY: on_bibliography_entry,
    LineKind.TECHNICAL_CONTENT: on_technical_content,
}


# ============================================================================
# Building
# ============================================================================

def fold_lines(
    classified: Iterable[ClassifiedLine],
    document: Optional[ParsedDocument] = None
) -> BuildState:
    """Fold classified lines into a BuildState."""
    state = BuildState(document=document if document is not None else ParsedDocument())
    for item in classified:
        state = HANDLERS[item.kind](state, item.text)
    return state


def _body_lines(lines: List[str]) -> List[str]:
    return [line for line in lines if not is_technical_content(line)]


def build_document(
    lines: List[str],
    classified: List[ClassifiedLine],
    document: Optional[ParsedDocument] = None
) -> ParsedDocument:
    """
    Build a ParsedDocument from normalized and classified lines.

    Args:
        lines: Normalized input lines (used for the no-heading fallback)
        classified: Classified stream for the same lines
        document: Optional document to fill (keeps existing metrics)

    Returns:
        Document with at least one chapter and its appendices organized
    """
    state = fold_lines(classified, document)
    doc = state.document

    if not doc.sections:
        doc.sections.append(ContentSection(
            level=1,
            title=IMPLICIT_CHAPTER_TITLE,
            content=" ".join(_body_lines(lines)),
        ))
        doc.metrics.chapters_synthesized += 1
        doc.metrics.warn("No chapter headings or prose found; created a single synthetic chapter")

    doc.appendices = organize_appendices(state.technical)

    logger.info(
        f"Built document: {len(doc.sections)} chapters, {len(doc.tables)} tables, "
        f"{len(doc.figures)} figures, {len(doc.references)} references, "
        f"{len(state.technical)} technical lines"
    )
    return doc


def classify_and_build(raw_text: str, min_prose_length: int = 30) -> ParsedDocument:
    """
    Classify raw manuscript text and fold it into a document tree.

    Never raises on malformed input; the result always has a chapter.
    """
    doc = ParsedDocument()
    lines = normalize_lines(raw_text or "")
    classifier = LineClassifier(min_prose_length=min_prose_length)
    classified = classifier.classify(lines, metrics=doc.metrics)

    if not lines:
        doc.metrics.warn("Input text is empty")

    return build_document(lines, classified, doc)

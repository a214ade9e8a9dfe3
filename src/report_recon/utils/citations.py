"""
Citation formatting for report reconstruction.

Provides:
- Citation records and citation styles (APA, IEEE, Chicago, Harvard)
- Pure per-style formatters for in-text markers and full references
- CitationFormatter, a caller-owned style holder that dispatches to them
- Best-effort parsing of raw bibliography lines
"""

import logging
import re
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes and Enums
# ============================================================================

class CitationStyle(Enum):
    """Supported citation styles."""
    APA = "APA"
    IEEE = "IEEE"
    CHICAGO = "Chicago"
    HARVARD = "Harvard"

    @classmethod
    def parse(cls, value: Union[str, "CitationStyle"]) -> "CitationStyle":
        """Accept an enum member or a case-insensitive style name."""
        if isinstance(value, cls):
            return value
        for style in cls:
            if style.value.lower() == str(value).strip().lower():
                return style
        raise ValueError(f"Unknown citation style: {value}")


@dataclass
class Citation:
    """A structured bibliographic record."""
    id: str
    type: str  # book, journal, conference, website, thesis
    title: str
    authors: List[str] = field(default_factory=list)
    year: int = 0
    publisher: Optional[str] = None
    journal: Optional[str] = None
    volume: Optional[str] = None
    issue: Optional[str] = None
    pages: Optional[str] = None
    url: Optional[str] = None
    doi: Optional[str] = None
    access_date: Optional[str] = None

    def to_dict(self):
        return asdict(self)


# ============================================================================
# Author Helpers
# ============================================================================

def surname(author: str) -> str:
    """Family name of an author written 'Given Family' or 'Family, G.'."""
    author = author.strip()
    if "," in author:
        return author.split(",", 1)[0].strip()
    parts = author.split()
    return parts[-1] if parts else author


def _first_surname(citation: Citation) -> str:
    return surname(citation.authors[0]) if citation.authors else "Anonymous"


def apa_author_name(name: str) -> str:
    """'John A. Smith' -> 'Smith, J. A.'"""
    parts = name.strip().split()
    if len(parts) < 2:
        return name
    last = parts.pop()
    initials = " ".join(part[0].upper() + "." for part in parts)
    return f"{last}, {initials}"


def apa_authors(authors: List[str]) -> str:
    if not authors:
        return "Anonymous"
    if len(authors) == 1:
        return apa_author_name(authors[0])
    names = [apa_author_name(a) for a in authors]
    return f"{', '.join(names[:-1])}, & {names[-1]}"


def _plain_authors(authors: List[str]) -> str:
    return ", ".join(authors) if authors else "Anonymous"


def _strip_period(text: Optional[str]) -> str:
    return (text or "").strip().rstrip(".")


# ============================================================================
# APA
# ============================================================================

def apa_in_text(citation: Citation, page: Optional[str] = None) -> str:
    authors = citation.authors
    if not authors:
        author_text = "Anonymous"
    elif len(authors) == 1:
        author_text = surname(authors[0])
    elif len(authors) == 2:
        author_text = f"{surname(authors[0])} & {surname(authors[1])}"
    else:
        author_text = f"{surname(authors[0])} et al."
    page_text = f", p. {page}" if page else ""
    return f"({author_text}, {citation.year}{page_text})"


def apa_reference(citation: Citation) -> str:
    head = f"{apa_authors(citation.authors)} ({citation.year}). {_strip_period(citation.title)}."

    if citation.type == "journal" and citation.journal:
        volume = citation.volume or ""
        issue = f"({citation.issue})" if citation.issue else ""
        pages = f", {citation.pages}" if citation.pages else ""
        location = f", {volume}{issue}{pages}" if (volume or issue or pages) else ""
        return f"{head} {_strip_period(citation.journal)}{location}."

    if citation.type == "website" and citation.url:
        retrieved = f" Retrieved {citation.access_date}," if citation.access_date else ""
        return f"{head}{retrieved} from {citation.url}"

    if citation.publisher:
        return f"{head} {_strip_period(citation.publisher)}."

    return head


# ============================================================================
# IEEE
# ============================================================================

def ieee_in_text(citation: Citation, page: Optional[str] = None) -> str:
    return f"[{citation.id}]"


def ieee_reference(citation: Citation) -> str:
    authors = _plain_authors(citation.authors)
    title = _strip_period(citation.title)

    if citation.type == "journal" and citation.journal:
        volume = f", vol. {citation.volume}" if citation.volume else ""
        issue = f", no. {citation.issue}" if citation.issue else ""
        pages = f", pp. {citation.pages}" if citation.pages else ""
        return f'{authors}, "{title}," {citation.journal}{volume}{issue}{pages}, {citation.year}.'

    if citation.type == "website" and citation.url:
        return f'{authors}, "{title}," {citation.year}. [Online]. Available: {citation.url}'

    if citation.publisher:
        return f'{authors}, "{title}," {_strip_period(citation.publisher)}, {citation.year}.'

    return f'{authors}, "{title}," {citation.year}.'


# ============================================================================
# Chicago
# ============================================================================

def chicago_in_text(citation: Citation, page: Optional[str] = None) -> str:
    page_text = f", {page}" if page else ""
    return f"({_first_surname(citation)} {citation.year}{page_text})"


def chicago_reference(citation: Citation) -> str:
    authors = _plain_authors(citation.authors)
    title = _strip_period(citation.title)

    if citation.type == "journal" and citation.journal:
        volume = f" {citation.volume}" if citation.volume else ""
        issue = f", no. {citation.issue}" if citation.issue else ""
        pages = f": {citation.pages}" if citation.pages else ""
        return f'{authors}. "{title}." {citation.journal}{volume}{issue} ({citation.year}){pages}.'

    if citation.type == "website" and citation.url:
        return f"{authors}. {title}. {citation.year}. {citation.url}."

    if citation.publisher:
        return f"{authors}. {title}. {_strip_period(citation.publisher)}, {citation.year}."

    return f"{authors}. {title}. {citation.year}."


# ============================================================================
# Harvard
# ============================================================================

def harvard_in_text(citation: Citation, page: Optional[str] = None) -> str:
    page_text = f":{page}" if page else ""
    return f"({_first_surname(citation)} {citation.year}{page_text})"


def harvard_reference(citation: Citation) -> str:
    authors = _plain_authors(citation.authors)
    title = _strip_period(citation.title)

    if citation.type == "journal" and citation.journal:
        volume = f", vol. {citation.volume}" if citation.volume else ""
        issue = f", no. {citation.issue}" if citation.issue else ""
        pages = f", pp. {citation.pages}" if citation.pages else ""
        return f"{authors} {citation.year}, '{title}', {citation.journal}{volume}{issue}{pages}."

    if citation.type == "website" and citation.url:
        return f"{authors} {citation.year}, {title}, available at: {citation.url}."

    if citation.publisher:
        return f"{authors} {citation.year}, {title}, {_strip_period(citation.publisher)}."

    return f"{authors} {citation.year}, {title}."


IN_TEXT_FORMATTERS: Dict[CitationStyle, Callable[[Citation, Optional[str]], str]] = {
    CitationStyle.APA: apa_in_text,
    CitationStyle.IEEE: ieee_in_text,
    CitationStyle.CHICAGO: chicago_in_text,
    CitationStyle.HARVARD: harvard_in_text,
}

REFERENCE_FORMATTERS: Dict[CitationStyle, Callable[[Citation], str]] = {
    CitationStyle.APA: apa_reference,
    CitationStyle.IEEE: ieee_reference,
    CitationStyle.CHICAGO: chicago_reference,
    CitationStyle.HARVARD: harvard_reference,
}


# ============================================================================
# Formatter
# ============================================================================

class CitationFormatter:
    """
    Formats citations in the active style.

    The style is owned by whoever holds the formatter; changing it only
    affects later calls.
    """

    def __init__(self, style: Union[str, CitationStyle] = CitationStyle.APA):
        self.style = CitationStyle.parse(style)

    def set_style(self, style: Union[str, CitationStyle]):
        self.style = CitationStyle.parse(style)

    def format_in_text(self, citation: Citation, page: Optional[str] = None) -> str:
        return IN_TEXT_FORMATTERS[self.style](citation, page)

    def format_full_reference(self, citation: Citation) -> str:
        return REFERENCE_FORMATTERS[self.style](citation)

    def sort_citations(self, citations: Iterable[Citation]) -> List[Citation]:
        """Order by first-author surname, 'Anonymous' when there is none."""
        return sorted(citations, key=lambda c: _first_surname(c).lower())

    def generate_bibliography(self, citations: Iterable[Citation]) -> str:
        return "\n\n".join(
            self.format_full_reference(c) for c in self.sort_citations(citations)
        )

    def format_text(self, text: str, citations: Iterable[Citation]) -> str:
        """Rewrite '(Author, Year)' markers into the active style."""
        for citation in citations:
            if not citation.authors:
                continue
            pattern = re.compile(
                rf"\({re.escape(surname(citation.authors[0]))},?\s*{citation.year}\)"
            )
            text = pattern.sub(self.format_in_text(citation), text)
        return text


# ============================================================================
# Parsing
# ============================================================================

_AUTHOR_YEAR = re.compile(r"^(?P<authors>.+?)\s*\((?P<year>\d{4})[a-z]?\)\.?\s*(?P<rest>.+)$")
_INVERTED_AUTHOR = re.compile(r"([^,&;]+?),\s*((?:[A-Z]\.\s*-?\s*)+)")
_JOURNAL = re.compile(
    r"^(?P<journal>[^,]+),\s*(?P<volume>\d+)(?:\((?P<issue>[^)]+)\))?"
    r"(?:,\s*(?P<pages>\d+\s*[-–]\s*\d+|\d+))?"
)
_URL = re.compile(r"https?://\S+")
_DOI = re.compile(r"\b(10\.\d{4,}/\S+)")
_IN_TEXT_AUTHOR_YEAR = re.compile(r"\(([A-Za-z\s&,.]+?),?\s*(\d{4})\)")
_IN_TEXT_NUMERIC = re.compile(r"\[(\d+)\]")


def parse_authors(text: str) -> List[str]:
    """Split an author list, normalizing 'Smith, J.' to 'J. Smith'."""
    text = text.strip().rstrip(",")
    inverted = _INVERTED_AUTHOR.findall(text)
    if inverted:
        return [
            f"{initials.strip()} {family.strip()}"
            for family, initials in inverted
            if family.strip()
        ]
    parts = re.split(r"\s*(?:,|&|;|\band\b|\bdan\b)\s*", text)
    return [p.strip() for p in parts if p.strip()]


def _parse_remainder(citation: Citation, remainder: str):
    """Fill journal, website or publisher fields from text after the title."""
    remainder = remainder.strip().rstrip(".").strip()
    if not remainder:
        return

    doi = _DOI.search(remainder)
    if doi:
        citation.doi = doi.group(1).rstrip(".")

    url = _URL.search(remainder)
    if url:
        citation.type = "website"
        citation.url = url.group(0).rstrip(".")
        return

    journal = _JOURNAL.match(remainder)
    if journal:
        citation.type = "journal"
        citation.journal = journal.group("journal").strip()
        citation.volume = journal.group("volume")
        citation.issue = journal.group("issue")
        citation.pages = journal.group("pages")
        return

    citation.type = "book"
    citation.publisher = remainder


def parse_raw_reference(line: str, citation_id: str = "1") -> Citation:
    """
    Parse one 'Author(s) (Year). Title. Rest' line.

    Lines that do not fit keep the whole line as the title, no authors and
    the current year, so no reference line is ever rejected.
    """
    text = re.sub(r"^(\[\d+\]|\d+\.|-)\s*", "", line.strip())
    match = _AUTHOR_YEAR.match(text)
    if not match:
        return Citation(
            id=citation_id,
            type="book",
            title=line.strip(),
            authors=[],
            year=datetime.now().year,
        )

    rest = match.group("rest").strip()
    parts = re.split(r"(?<=[.?!])\s+", rest, maxsplit=1)
    title = parts[0].rstrip(".").strip()
    remainder = parts[1] if len(parts) > 1 else ""

    citation = Citation(
        id=citation_id,
        type="book",
        title=title,
        authors=parse_authors(match.group("authors")),
        year=int(match.group("year")),
    )
    _parse_remainder(citation, remainder)
    return citation


def parse_raw_references(lines: Iterable[str]) -> List[Citation]:
    """Parse free-text bibliography lines; ids are sequential from 1."""
    return [parse_raw_reference(line, str(i)) for i, line in enumerate(lines, 1)]


def reference_type(citation: Citation) -> str:
    """Coarse reference tag for a parsed citation."""
    if citation.type == "journal":
        return "article"
    if citation.type == "website":
        return "website"
    if citation.type == "book" and citation.publisher:
        return "book"
    return "other"


def extract_citations_from_text(text: str) -> List[Citation]:
    """Find '(Author, Year)' and '[n]' markers in running text."""
    citations = []
    for match in _IN_TEXT_AUTHOR_YEAR.finditer(text):
        citations.append(Citation(
            id=f"cite_{len(citations) + 1}",
            type="book",
            title="Unknown Title",
            authors=[match.group(1).strip()],
            year=int(match.group(2)),
        ))
    for match in _IN_TEXT_NUMERIC.finditer(text):
        citations.append(Citation(
            id=match.group(1),
            type="book",
            title="Unknown Title",
            authors=[],
            year=datetime.now().year,
        ))
    return citations

"""
Line classification for report reconstruction.

Provides:
- LineKind enumeration
- Pattern predicates for headings, captions, references and technical content
- An ordered rule table (first match wins)
- Single-pass classification with bibliography state

The rule table is evaluated top to bottom, so the priority of every rule is
visible in RULES and each predicate can be tested on its own.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes and Enums
# ============================================================================

class LineKind(Enum):
    """Types of classified lines."""
    CHAPTER_HEADING = "chapter_heading"
    SUB_HEADING = "sub_heading"
    TABLE_CAPTION = "table_caption"
    FIGURE_CAPTION = "figure_caption"
    BIBLIOGRAPHY_ENTRY = "bibliography_entry"
    TECHNICAL_CONTENT = "technical_content"
    PROSE = "prose"


@dataclass(frozen=True)
class ClassifiedLine:
    """A single input line with its classification."""
    text: str
    kind: LineKind


# ============================================================================
# Patterns
# ============================================================================

CHAPTER_PATTERN = re.compile(r"^BAB\s+([IVXLC]+|\d+)\b", re.IGNORECASE)
NUMBERED_HEADING_PATTERN = re.compile(r"^\d+(\.\d+){1,2}\.?\s+")
NUMBERED_CAPITAL_PATTERN = re.compile(r"^\d+(\.\d+){1,2}\.?\s+[A-Z]")
ALL_CAPS_PATTERN = re.compile(r"^[A-Z0-9\s.,:;()\-/&]+$")
REFERENCES_HEADING_PATTERN = re.compile(
    r"^(DAFTAR\s+PUSTAKA|DAFTAR\s+REFERENSI|REFERENCES|BIBLIOGRAPHY)$",
    re.IGNORECASE,
)
TABLE_CAPTION_PATTERN = re.compile(r"^(Tabel|Table)\s+\d+", re.IGNORECASE)
FIGURE_CAPTION_PATTERN = re.compile(r"^(Gambar|Figure)\s+\d+", re.IGNORECASE)

REFERENCE_LEAD_PATTERN = re.compile(r"^(\[\d+\]|\d+\.|-)")
REFERENCE_TRAILING_YEAR_PATTERN = re.compile(r"\d{4}\.?$")
REFERENCE_AUTHOR_DATE_PATTERN = re.compile(r"\(\d{4}[a-z]?\)")

# Technical content
SQL_KEYWORD_PATTERN = re.compile(r"^(SELECT|INSERT|UPDATE|DELETE|CREATE|ALTER|DROP)\b")
SQL_STATEMENT_PATTERN = re.compile(
    r"^(select\s+.+\s+from\b"
    r"|insert\s+into\b"
    r"|update\s+\S+\s+set\b"
    r"|delete\s+from\b"
    r"|(create|alter|drop)\s+(table|view|index|database|schema|procedure|function|trigger)\b)",
    re.IGNORECASE,
)
SQL_FUNCTION_PATTERN = re.compile(r"^(ASCII|CHR|CONCAT|LENGTH|SUBSTRING|TRIM)\b")
# Lowercase only: "Import", "Let", "Package" open ordinary sentences
CODE_KEYWORD_PATTERN = re.compile(r"^(function|var|const|let|def|class|import|package)\b")
CODE_SYNTAX_PATTERN = re.compile(r"^\s*[{}()\[\];]")
ASSIGNMENT_PATTERN = re.compile(r"^[A-Z_]+\s*=")
FUNCTION_LISTING_PATTERN = re.compile(r"^\d+\.\s+(function|procedure)\b", re.IGNORECASE)

ROMAN_VALUES = {
    "I": 1, "II": 2, "III": 3, "IV": 4, "V": 5,
    "VI": 6, "VII": 7, "VIII": 8, "IX": 9, "X": 10,
}


# ============================================================================
# Predicates
# ============================================================================

def is_references_heading(line: str) -> bool:
    return bool(REFERENCES_HEADING_PATTERN.match(line))


def is_reference_entry(line: str) -> bool:
    """Numbered, bracketed, dashed, year-terminated or author-date lines."""
    return bool(
        REFERENCE_LEAD_PATTERN.match(line)
        or REFERENCE_TRAILING_YEAR_PATTERN.search(line)
        or REFERENCE_AUTHOR_DATE_PATTERN.search(line)
    )


def is_sql(line: str) -> bool:
    return bool(SQL_KEYWORD_PATTERN.match(line) or SQL_STATEMENT_PATTERN.match(line))


def is_sql_function(line: str) -> bool:
    return bool(SQL_FUNCTION_PATTERN.match(line))


def is_code_keyword(line: str) -> bool:
    return bool(CODE_KEYWORD_PATTERN.match(line))


def is_code_syntax(line: str) -> bool:
    return bool(CODE_SYNTAX_PATTERN.match(line))


def is_function_listing(line: str) -> bool:
    return bool(FUNCTION_LISTING_PATTERN.match(line))


def is_technical_content(line: str) -> bool:
    """Code, SQL or function-like lines that belong in an appendix."""
    return (
        is_sql(line)
        or is_code_keyword(line)
        or is_sql_function(line)
        or is_code_syntax(line)
        or bool(ASSIGNMENT_PATTERN.match(line))
        or is_function_listing(line)
    )


def is_chapter_heading(line: str) -> bool:
    return bool(CHAPTER_PATTERN.match(line))


def is_numbered_heading(line: str) -> bool:
    return bool(NUMBERED_HEADING_PATTERN.match(line))


def has_heading_shape(line: str) -> bool:
    """ALL CAPS, numbered-then-capital, or a bare chapter marker."""
    return (
        (bool(ALL_CAPS_PATTERN.match(line)) and any(c.isalpha() for c in line))
        or bool(NUMBERED_CAPITAL_PATTERN.match(line))
        or is_chapter_heading(line)
    )


def is_sub_heading(line: str) -> bool:
    # Numbered list items inside prose or code fail the shape test
    return is_numbered_heading(line) and has_heading_shape(line)


def is_table_caption(line: str) -> bool:
    return bool(TABLE_CAPTION_PATTERN.match(line))


def is_figure_caption(line: str) -> bool:
    return bool(FIGURE_CAPTION_PATTERN.match(line))


def extract_chapter_number(title: str) -> int:
    """Chapter number from a 'BAB <numeral>' title; 1 if none."""
    match = CHAPTER_PATTERN.match(title or "")
    if not match:
        return 1
    numeral = match.group(1)
    if numeral.isdigit():
        return int(numeral)
    return ROMAN_VALUES.get(numeral.upper(), 1)


def to_roman(number: int) -> str:
    """Roman numeral for chapter titles; Arabic digits past the table."""
    for roman, value in ROMAN_VALUES.items():
        if value == number:
            return roman
    return str(number)


# ============================================================================
# Rule Table
# ============================================================================

Rule = Tuple[str, Callable[[str], bool], Optional[LineKind]]

# Evaluated after the bibliography rules; first match wins.
RULES: List[Rule] = [
    ("technical", is_technical_content, LineKind.TECHNICAL_CONTENT),
    ("chapter", is_chapter_heading, LineKind.CHAPTER_HEADING),
    ("sub_heading", is_sub_heading, LineKind.SUB_HEADING),
    ("table_caption", is_table_caption, LineKind.TABLE_CAPTION),
    ("figure_caption", is_figure_caption, LineKind.FIGURE_CAPTION),
]


def normalize_lines(raw_text: str) -> List[str]:
    """Collapse whitespace in every line and drop empty lines."""
    if not raw_text:
        return []
    lines = (re.sub(r"\s+", " ", line).strip() for line in raw_text.split("\n"))
    return [line for line in lines if line]


class LineClassifier:
    """
    Single-pass line classifier.

    The only state is whether the bibliography section has started; once it
    has, every remaining line is either a bibliography entry or dropped.
    """

    def __init__(self, min_prose_length: int = 30, rules: Optional[List[Rule]] = None):
        self.min_prose_length = min_prose_length
        self.rules = rules if rules is not None else RULES

    def classify_line(self, line: str) -> Optional[LineKind]:
        """Classify one line outside the bibliography; None means noise."""
        for _name, predicate, kind in self.rules:
            if predicate(line):
                return kind
        if len(line) > self.min_prose_length:
            return LineKind.PROSE
        return None

    def classify(self, lines: Iterable[str], metrics=None) -> List[ClassifiedLine]:
        """
        Classify normalized lines top to bottom.

        Args:
            lines: Whitespace-normalized, non-empty lines
            metrics: Optional DocumentMetrics updated with counts

        Returns:
            Classified lines in input order
        """
        result = []
        in_bibliography = False

        for line in lines:
            if metrics is not None:
                metrics.lines_total += 1

            if is_references_heading(line):
                in_bibliography = True
                continue

            if in_bibliography:
                if is_reference_entry(line):
                    result.append(ClassifiedLine(line, LineKind.BIBLIOGRAPHY_ENTRY))
                    if metrics is not None:
                        metrics.count_kind(LineKind.BIBLIOGRAPHY_ENTRY.value)
                elif metrics is not None:
                    metrics.bibliography_lines_dropped += 1
                continue

            kind = self.classify_line(line)
            if kind is None:
                if metrics is not None:
                    metrics.noise_lines_dropped += 1
                continue

            result.append(ClassifiedLine(line, kind))
            if metrics is not None:
                metrics.count_kind(kind.value)

        logger.debug(f"Classified {len(result)} lines")
        return result


def classify_lines(raw_text: str, min_prose_length: int = 30, metrics=None) -> List[ClassifiedLine]:
    """Normalize and classify raw manuscript text."""
    classifier = LineClassifier(min_prose_length=min_prose_length)
    return classifier.classify(normalize_lines(raw_text), metrics=metrics)

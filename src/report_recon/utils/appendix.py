"""
Appendix organization for technical content.

Technical lines diverted out of the chapter prose are grouped by type and
labeled A, B, C, ... in a fixed priority order: SQL, functions/procedures,
code, other data.
"""

import logging
import re
from string import ascii_uppercase
from typing import List

from .classifier import (
    is_code_keyword,
    is_code_syntax,
    is_function_listing,
    is_sql,
    is_sql_function,
)
from .document import AppendixSection

logger = logging.getLogger(__name__)

PLACEHOLDER_TITLE = "Lampiran Penelitian"
PLACEHOLDER_NOTE = "Lampiran akan diisi sesuai dengan kebutuhan penelitian."

_FUNCTION_DECLARATION = re.compile(r"^(function|def|var|const)\b")


def is_function_declaration(line: str) -> bool:
    return bool(
        is_sql_function(line)
        or _FUNCTION_DECLARATION.match(line)
        or is_function_listing(line)
    )


def is_code_line(line: str) -> bool:
    return is_code_keyword(line) or is_code_syntax(line)


# (title, type, predicate) in label order; "other" takes the remainder
APPENDIX_GROUPS = [
    ("Query SQL", "sql", is_sql),
    ("Fungsi dan Prosedur", "code", is_function_declaration),
    ("Kode Program", "code", is_code_line),
]
OTHER_GROUP = ("Data Tambahan", "data")


def placeholder_appendix(note: str = PLACEHOLDER_NOTE) -> AppendixSection:
    return AppendixSection(label="A", title=PLACEHOLDER_TITLE, content=[note], type="other")


def organize_appendices(lines: List[str]) -> List[AppendixSection]:
    """
    Group technical lines into labeled appendix sections.

    Args:
        lines: Technical lines in document order

    Returns:
        Non-empty list of appendix sections
    """
    groups = []
    matched = set()

    # Independent tests: a line may land in more than one of these groups
    for title, kind, predicate in APPENDIX_GROUPS:
        content = [line for line in lines if predicate(line)]
        matched.update(content)
        groups.append((title, kind, content))

    other = [line for line in lines if line not in matched]
    groups.append((OTHER_GROUP[0], OTHER_GROUP[1], other))

    labels = iter(ascii_uppercase)
    appendices = [
        AppendixSection(label=next(labels), title=title, content=content, type=kind)
        for title, kind, content in groups
        if content
    ]

    if not appendices:
        logger.debug("No technical content, using placeholder appendix")
        return [placeholder_appendix()]

    logger.info(f"Organized {len(lines)} technical lines into {len(appendices)} appendices")
    return appendices

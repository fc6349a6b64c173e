"""
Section extraction for markdown-style headings.

Text before the first heading belongs to no section. Documents without any
heading produce an empty list, which callers treat as the normal case.
"""

import re
from typing import List, Optional
from stackrag.models.document import Section

HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+)$")


def extract_sections(text: str) -> List[Section]:
    sections: List[Section] = []
    title: Optional[str] = None
    level = 0
    lines: List[str] = []

    for line in text.split("\n"):
        match = HEADING_PATTERN.match(line)
        if match:
            if title is not None:
                sections.append(_make_section(title, level, lines))
            title = match.group(2).strip()
            level = len(match.group(1))
            lines = []
        elif title is not None:
            lines.append(line)

    if title is not None:
        sections.append(_make_section(title, level, lines))

    return sections


def _make_section(title: str, level: int, lines: List[str]) -> Section:
    return Section(title=title, content="\n".join(lines).strip(), level=level)

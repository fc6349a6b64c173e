"""
Text normalization applied to extracted text before it is chunked.

PDF and OCR extraction leave behind mixed line endings, non-breaking spaces,
soft hyphens, typographic ligatures and words split across line wraps. The
steps below run in a fixed order; later steps assume the earlier ones ran.
"""

import re
from typing import Optional

LIGATURES = {
    "\ufb00": "ff",
    "\ufb01": "fi",
    "\ufb02": "fl",
    "\ufb03": "ffi",
    "\ufb04": "ffl",
}

_LINE_ENDINGS = re.compile(r"\r\n?")
_WRAPPED_HYPHEN = re.compile(r"(?<=[A-Za-z])-\s*\n\s*(?=[A-Za-z])")
_HORIZONTAL_SPACE = re.compile(r"[ \t]+")
_BLANK_LINES = re.compile(r"\n{3,}")
_LIGATURE_TABLE = str.maketrans(LIGATURES)


def normalize(raw: Optional[str]) -> str:
    if not raw:
        return ""

    text = _LINE_ENDINGS.sub("\n", raw)
    text = text.replace("\u00a0", " ")
    text = text.replace("\u00ad", "")
    text = text.translate(_LIGATURE_TABLE)
    # "exa-\nmple" -> "example"
    text = _WRAPPED_HYPHEN.sub("", text)
    text = _HORIZONTAL_SPACE.sub(" ", text)
    text = _BLANK_LINES.sub("\n\n", text)
    return text.strip()

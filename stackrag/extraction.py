"""
Text extraction for uploaded files.

Extractors are looked up by file extension. Plain text, markdown, HTML, PDF
and DOCX are handled here; audio and OCR backends plug in by registering
another TextExtractor. An extractor that finds no text returns an empty
string rather than failing: the service decides whether that is worth a
warning.
"""

import io
import re
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

import docx
import fitz  # PyMuPDF
from bs4 import BeautifulSoup
from loguru import logger
from pydantic import BaseModel, Field

from stackrag.errors import UnsupportedFileTypeError
from stackrag.processing.normalizer import normalize


class ExtractionResult(BaseModel):
    text: str = Field(default="")
    trace: Optional[str] = Field(default=None)


class TextExtractor(ABC):
    extensions: tuple = ()

    def supports(self, extension: str) -> bool:
        return extension.lower() in self.extensions

    @abstractmethod
    def extract(self, data: bytes) -> ExtractionResult:
        pass


class PlainTextExtractor(TextExtractor):
    extensions = ("txt", "md", "markdown")

    def extract(self, data: bytes) -> ExtractionResult:
        text = data.decode("utf-8", errors="replace")
        return ExtractionResult(text=normalize(text), trace="utf-8 decode")


_CODE_PLACEHOLDER = re.compile(r"@@CODE_BLOCK_(\d+)@@")
_HORIZONTAL_SPACE = re.compile(r"[ \t]+")
_BLANK_LINES = re.compile(r"\n{3,}")


def _inline_text(tag) -> str:
    return " ".join(tag.get_text().split())


def html_to_text(markup: str) -> str:
    """Convert HTML to markdown-flavoured text.

    Code blocks, headings, list items and table rows keep their structure.
    """
    if not markup or not markup.strip():
        return ""

    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()

    # code is stashed so whitespace collapsing below leaves it alone
    code_blocks: List[str] = []
    for pre in soup.find_all("pre"):
        code_blocks.append(pre.get_text().strip("\n"))
        pre.replace_with(f"\n@@CODE_BLOCK_{len(code_blocks) - 1}@@\n")

    for br in soup.find_all("br"):
        br.replace_with("\n")
    for level in range(1, 7):
        for heading in soup.find_all(f"h{level}"):
            heading.replace_with(f"\n{'#' * level} {_inline_text(heading)}\n\n")
    for paragraph in soup.find_all("p"):
        paragraph.replace_with(f"\n{paragraph.get_text()}\n")
    # innermost items first so nested lists keep their own bullets
    for item in reversed(soup.find_all("li")):
        item.replace_with(f"\n- {item.get_text().strip()}\n")
    for row in soup.find_all("tr"):
        cells = [_inline_text(cell) for cell in row.find_all(["th", "td"])]
        row.replace_with(f"\n{' | '.join(cells)}\n")

    lines = [
        _HORIZONTAL_SPACE.sub(" ", line).strip() for line in soup.get_text().split("\n")
    ]
    work = _BLANK_LINES.sub("\n\n", "\n".join(lines))
    work = _CODE_PLACEHOLDER.sub(
        lambda m: f"\n```\n{code_blocks[int(m.group(1))]}\n```\n", work
    )
    return _BLANK_LINES.sub("\n\n", work).strip()


class HtmlExtractor(TextExtractor):
    extensions = ("html", "htm")

    def extract(self, data: bytes) -> ExtractionResult:
        markup = data.decode("utf-8", errors="replace")
        return ExtractionResult(
            text=normalize(html_to_text(markup)), trace="html to text"
        )


class PdfExtractor(TextExtractor):
    """Page text via PyMuPDF. Corrupt, encrypted or scanned files yield no text."""

    extensions = ("pdf",)

    def extract(self, data: bytes) -> ExtractionResult:
        try:
            document = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            logger.warning("Could not open PDF: {}", e)
            return ExtractionResult(text="", trace=f"pymupdf open failed: {e}")

        try:
            if document.needs_pass:
                return ExtractionResult(text="", trace="pymupdf encrypted")
            pages = []
            for i in range(document.page_count):
                page_text = document.load_page(i).get_text("text").strip()
                if page_text:
                    pages.append(page_text)
        finally:
            document.close()

        return ExtractionResult(
            text=normalize("\n\n".join(pages)),
            trace=f"pymupdf {len(pages)} pages with text",
        )


class DocxExtractor(TextExtractor):
    """Paragraph and table text via python-docx."""

    extensions = ("docx",)

    def extract(self, data: bytes) -> ExtractionResult:
        try:
            document = docx.Document(io.BytesIO(data))
        except Exception as e:
            logger.warning("Could not open DOCX: {}", e)
            return ExtractionResult(text="", trace=f"python-docx open failed: {e}")

        blocks = [paragraph.text for paragraph in document.paragraphs]
        for table in document.tables:
            for row in table.rows:
                blocks.append(" | ".join(cell.text.strip() for cell in row.cells))
        return ExtractionResult(text=normalize("\n".join(blocks)), trace="python-docx")


def file_extension(filename: str) -> str:
    _, dot, extension = filename.rpartition(".")
    return extension.lower() if dot else ""


def file_stem(filename: str) -> str:
    stem, dot, _ = filename.rpartition(".")
    return stem if dot and stem else filename


class ExtractorRegistry:
    def __init__(self, extractors: Optional[Iterable[TextExtractor]] = None):
        self.extractors: List[TextExtractor] = list(
            extractors if extractors is not None else default_extractors()
        )

    def register(self, extractor: TextExtractor) -> None:
        # later registrations take precedence
        self.extractors.insert(0, extractor)

    def find(self, filename: str) -> TextExtractor:
        extension = file_extension(filename)
        for extractor in self.extractors:
            if extractor.supports(extension):
                return extractor
        raise UnsupportedFileTypeError(f"Unsupported file type: .{extension}")

    def extract(self, filename: str, data: bytes) -> ExtractionResult:
        return self.find(filename).extract(data)

    def supported_extensions(self) -> Dict[str, str]:
        supported = {}
        for extractor in reversed(self.extractors):
            for extension in extractor.extensions:
                supported[extension] = type(extractor).__name__
        return supported


def default_extractors() -> List[TextExtractor]:
    return [PlainTextExtractor(), HtmlExtractor(), PdfExtractor(), DocxExtractor()]

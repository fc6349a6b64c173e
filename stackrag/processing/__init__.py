from .normalizer import normalize
from .sections import extract_sections
from .chunker import chunk_text, DEFAULT_CHUNK_SIZE, DEFAULT_CHUNK_OVERLAP
from .pipeline import build_document, process_document, ingest

__all__ = [
    "normalize",
    "extract_sections",
    "chunk_text",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_CHUNK_OVERLAP",
    "build_document",
    "process_document",
    "ingest",
]

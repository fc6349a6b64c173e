"""
Document processing: turns raw extracted text into chunk drafts ready for
embedding.

A document is chunked twice: once over its whole content (main chunks, no
section) and once per extracted section (prefixed with the section title and
tagged with it). The same text can therefore appear in both sets; set
``include_sections=False`` to keep only the main chunks.
"""

from typing import List, Optional
from loguru import logger
from stackrag.models.chunk import ChunkDraft, ChunkMetadata, UPLOADED_SOURCE
from stackrag.models.document import Document
from stackrag.processing.chunker import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    chunk_text,
)
from stackrag.processing.normalizer import normalize
from stackrag.processing.sections import extract_sections


def build_document(
    title: str,
    raw_text: str,
    url: Optional[str] = None,
    normalize_text: bool = True,
) -> Document:
    content = normalize(raw_text) if normalize_text else (raw_text or "")
    return Document(
        title=title,
        content=content,
        url=url,
        sections=extract_sections(content),
    )


def process_document(
    document: Document,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    source: str = UPLOADED_SOURCE,
    namespace: Optional[str] = None,
    include_sections: bool = True,
) -> List[ChunkDraft]:
    namespace = namespace.strip() if namespace else None
    namespace = namespace or None

    pieces = []
    for text in chunk_text(document.content, chunk_size, chunk_overlap):
        pieces.append((text, None))

    if include_sections:
        for section in document.sections:
            for text in chunk_text(section.content, chunk_size, chunk_overlap):
                pieces.append((f"{section.title}\n\n{text}", section.title))

    drafts = []
    for index, (content, section_title) in enumerate(pieces):
        metadata = ChunkMetadata(
            source=source,
            title=document.title,
            url=document.url,
            section=section_title,
            namespace=namespace,
        )
        drafts.append(
            ChunkDraft(
                id=f"{document.locator}-chunk-{index}",
                content=content,
                metadata=metadata,
            )
        )

    logger.debug(
        "Processed '{}' into {} chunks ({} sections)",
        document.title,
        len(drafts),
        len(document.sections),
    )
    return drafts


def ingest(
    document_title: str,
    raw_text: str,
    source_url: Optional[str] = None,
    source_label: str = UPLOADED_SOURCE,
    namespace: Optional[str] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    include_sections: bool = True,
) -> List[ChunkDraft]:
    """Normalize, section and chunk one document.

    The caller embeds each draft and inserts the resulting chunks into a
    vector store.
    """
    document = build_document(document_title, raw_text, url=source_url)
    return process_document(
        document,
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        source=source_label,
        namespace=namespace,
        include_sections=include_sections,
    )

"""
Offline provider for tests and demos.

Embeddings are deterministic: a 32-bit FNV-1a hash of the text seeds a
xorshift32 generator whose outputs, mapped to [-1, 1) and L2-normalized, form
the vector. The same text always yields the same vector. The vectors carry no
meaning, so similarity scores between them are not calibrated.

Completions are a short extract of the context found in the prompt, clearly
marked as offline output.
"""

import re
import threading
from typing import List, Optional

import numpy as np

from stackrag.config import DEFAULT_EMBEDDING_DIMENSION
from stackrag.providers.base import EmbeddingProvider, Message

OFFLINE_MARKER = "[Offline demo mode]"

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193
MASK_32 = 0xFFFFFFFF
ZERO_SEED = 0x9E3779B9

_CONTEXT_MARKER = re.compile(
    r"^.*\bcontext\b[^\n]*:[ \t]*$", re.IGNORECASE | re.MULTILINE
)
_SOURCE_HEADER = re.compile(r"^\[Source \d+:.*\]$")
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")
_BULLET = re.compile(r"^\s*(?:[-*\u2022]|\d+[.)])\s+")


def fnv1a_32(text: str) -> int:
    value = FNV_OFFSET_BASIS
    for byte in text.encode("utf-8"):
        value ^= byte
        value = (value * FNV_PRIME) & MASK_32
    return value


def xorshift32(state: int) -> int:
    state ^= (state << 13) & MASK_32
    state ^= state >> 17
    state ^= (state << 5) & MASK_32
    return state & MASK_32


def deterministic_embedding(
    text: str, dimension: int = DEFAULT_EMBEDDING_DIMENSION
) -> List[float]:
    state = fnv1a_32(text) or ZERO_SEED
    values = np.empty(dimension, dtype=np.float64)
    for i in range(dimension):
        state = xorshift32(state)
        values[i] = state / 2**32 * 2.0 - 1.0

    norm = np.linalg.norm(values)
    if norm > 0:
        values /= norm
    return values.tolist()


def extract_context(prompt: str) -> str:
    """Return the text following the first line that introduces a context block."""
    match = _CONTEXT_MARKER.search(prompt)
    if match is None:
        return ""
    return prompt[match.end():].strip()


def summarize_context(context: str, max_items: int = 3) -> List[str]:
    lines = []
    for line in context.split("\n"):
        line = line.strip()
        if not line or line == "---" or _SOURCE_HEADER.match(line):
            continue
        lines.append(line)

    items: List[str] = []
    for line in lines:
        if _BULLET.match(line):
            items.append(_BULLET.sub("", line))
        else:
            items.extend(s for s in _SENTENCE_END.split(line) if s)
        if len(items) >= max_items:
            break
    return items[:max_items]


class MockProvider(EmbeddingProvider):
    name = "mock"
    is_mock = True

    def __init__(
        self, dimension: int = DEFAULT_EMBEDDING_DIMENSION, max_summary_items: int = 3
    ):
        self.dimension = dimension
        self.max_summary_items = max_summary_items

    def embed(
        self, text: str, cancel: Optional[threading.Event] = None
    ) -> List[float]:
        return deterministic_embedding(text, self.dimension)

    def chat_complete(
        self, messages: List[Message], cancel: Optional[threading.Event] = None
    ) -> str:
        context = ""
        for message in messages:
            found = extract_context(message.get("content", ""))
            if found:
                context = found
        items = summarize_context(context, self.max_summary_items)
        if not items:
            return f"{OFFLINE_MARKER} No context was available to summarize."

        bullets = "\n".join(f"- {item}" for item in items)
        return f"{OFFLINE_MARKER} Summary of the retrieved context:\n{bullets}"

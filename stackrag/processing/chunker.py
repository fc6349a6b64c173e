"""
Overlapping fixed-size chunking.

Each window holds at most ``size`` characters. When more text follows the
window, the cut is moved back to the last sentence end, newline or space as
long as that keeps more than half of the window, so words and sentences are
not split mid-token. Consecutive chunks share ``overlap`` characters.

n = length of the text

Time complexity: O(n * size / (size - overlap))
"""

from typing import List

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200

BREAK_CHARACTERS = (".", "\n", " ")


def chunk_text(
    text: str,
    size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> List[str]:
    if size <= 0:
        raise ValueError(f"Chunk size must be positive, got {size}")
    if overlap < 0:
        raise ValueError(f"Chunk overlap must not be negative, got {overlap}")

    chunks: List[str] = []
    start = 0
    length = len(text)

    while start < length:
        end = min(start + size, length)
        window = text[start:end]

        if end >= length:
            chunks.append(window.strip())
            break

        break_point = max(window.rfind(char) for char in BREAK_CHARACTERS)
        if break_point > size * 0.5:
            chunks.append(window[: break_point + 1].strip())
            next_start = start + break_point + 1 - overlap
        else:
            chunks.append(window.strip())
            next_start = end - overlap

        # always move forward, even when overlap >= size
        start = max(next_start, start + 1)

    return [chunk for chunk in chunks if chunk]

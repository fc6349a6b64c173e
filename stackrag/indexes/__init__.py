from .base_index import BaseIndex
from .flat_index import FlatIndex
from .similarity import cosine_similarity, cosine_similarities


def get_index(index_type: str = "flat") -> BaseIndex:
    if index_type == "flat":
        return FlatIndex()
    else:
        raise ValueError(f"Invalid index type: {index_type}")


__all__ = [
    "BaseIndex",
    "FlatIndex",
    "cosine_similarity",
    "cosine_similarities",
    "get_index",
]

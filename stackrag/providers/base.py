"""
Provider interface shared by the live and offline implementations.
"""

import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

Message = Dict[str, str]


class EmbeddingProvider(ABC):
    name: str = "provider"
    is_mock: bool = False

    @abstractmethod
    def embed(
        self, text: str, cancel: Optional[threading.Event] = None
    ) -> List[float]:
        pass

    @abstractmethod
    def chat_complete(
        self, messages: List[Message], cancel: Optional[threading.Event] = None
    ) -> str:
        pass

    def close(self) -> None:
        pass

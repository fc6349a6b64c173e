"""
Document Model

A document only exists during ingestion: it holds the normalized text of one
source file and the sections found in it, long enough to be split into chunks.
"""

from pydantic import BaseModel, Field
from typing import List, Optional


class Section(BaseModel):
    title: str
    content: str
    level: int = Field(ge=1, le=6)


class Document(BaseModel):
    title: str = Field(min_length=1)
    content: str = Field(default="")
    url: Optional[str] = Field(default=None)
    sections: List[Section] = Field(default_factory=list)

    @property
    def locator(self) -> str:
        return self.url or self.title

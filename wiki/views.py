from typing import List

from pydantic import BaseModel, Field


class IndexView(BaseModel):
    """Context of index.html"""

    title: str
    pages: List[str] = []


class PageView(BaseModel):
    """Context of page.html"""

    title: str
    id: int
    raw_content: str = Field(serialization_alias="rawContent")
    content: str
    timestamp: str
    new_page: bool = Field(default=False, serialization_alias="newPage")

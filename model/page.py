from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import TEXT

EMPTY_PAGE_MARKDOWN = "# A new page\n\nFeel-free to write in Markdown!\n"

# Id shown for a page that has no stored row yet
UNSAVED_PAGE_ID = -1


class Page(SQLModel, table=True):
    __tablename__ = "pages"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, unique=True, nullable=False)
    content: str = Field(default="", sa_type=TEXT)

    @property
    def is_new(self) -> bool:
        return self.id is None or self.id == UNSAVED_PAGE_ID

from typing import List, Optional

from sqlalchemy import delete, insert, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlmodel import SQLModel, select

from core.db import Database
from core.exceptions import DuplicateNameError, NotFoundError, QueryError
from core.logger import logging
from model.page import EMPTY_PAGE_MARKDOWN, UNSAVED_PAGE_ID, Page


class PageRepository:
    """Page statements, each run on its own borrowed connection"""

    def __init__(self, db: Database):
        self.db = db

    async def ensure_schema(self):
        """Create the pages table if it is missing"""

        async def create_tables(conn: AsyncConnection):
            await self.db.run_sync(
                conn,
                lambda sync_conn: SQLModel.metadata.create_all(
                    sync_conn, tables=[Page.__table__]
                ),
            )

        await self.db.with_connection(create_tables)
        logging.info("Database schema ready")

    async def list_names(self) -> List[str]:
        """Get all page names, in store order"""

        async def query(conn: AsyncConnection):
            return await self.db.execute(conn, select(Page.name))

        rows = await self.db.with_connection(query)
        return [row[0] for row in rows]

    async def fetch_or_seed(self, name: str) -> Page:
        """Get page by name, or an unsaved page holding the seed markdown"""

        async def query(conn: AsyncConnection):
            return await self.db.execute(
                conn, select(Page.id, Page.content).where(Page.name == name)
            )

        rows = await self.db.with_connection(query)
        if not rows:
            return Page(id=UNSAVED_PAGE_ID, name=name, content=EMPTY_PAGE_MARKDOWN)

        page_id, content = rows[0]
        return Page(id=page_id, name=name, content=content)

    async def fetch_by_id(self, page_id: int) -> Optional[Page]:
        return await self.db.with_connection(lambda conn: self._select_by_id(conn, page_id))

    async def create(self, name: str, content: str = EMPTY_PAGE_MARKDOWN) -> Page:
        """Insert a new page and return it with its assigned id"""

        async def insert_page(conn: AsyncConnection):
            await self.db.execute(conn, insert(Page).values(name=name, content=content))
            rows = await self.db.execute(conn, select(Page.id).where(Page.name == name))
            return rows[0][0]

        try:
            page_id = await self.db.with_connection(insert_page)
        except QueryError as e:
            if isinstance(e.cause, IntegrityError):
                raise DuplicateNameError(f"Page {name!r} already exists", e.cause) from e
            raise

        logging.info(f"Created page #{page_id} {name!r}")
        return Page(id=page_id, name=name, content=content)

    async def save(self, page_id: int, content: str) -> str:
        """
        Replace the content of a page
        Returns:
            the page name
        Raises:
            NotFoundError: no page has this id
        """

        async def update_page(conn: AsyncConnection):
            count = await self.db.execute(
                conn, update(Page).where(Page.id == page_id).values(content=content)
            )
            if not count:
                raise NotFoundError(f"No page with id {page_id}")
            page = await self._select_by_id(conn, page_id)
            if page is None:
                raise NotFoundError(f"No page with id {page_id}")
            return page.name

        name = await self.db.with_connection(update_page)
        logging.info(f"Saved page #{page_id} {name!r}")
        return name

    async def delete(self, page_id: int) -> int:
        """Delete page by id; deleting a missing page is not an error"""

        async def delete_page(conn: AsyncConnection):
            return await self.db.execute(conn, delete(Page).where(Page.id == page_id))

        count = await self.db.with_connection(delete_page)
        if count:
            logging.info(f"Deleted page #{page_id}")
        return count

    async def _select_by_id(self, conn: AsyncConnection, page_id: int) -> Optional[Page]:
        rows = await self.db.execute(
            conn, select(Page.id, Page.name, Page.content).where(Page.id == page_id)
        )
        if not rows:
            return None
        row_id, name, content = rows[0]
        return Page(id=row_id, name=name, content=content)

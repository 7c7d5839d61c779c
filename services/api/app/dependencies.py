"""FastAPI dependencies shared by the routers."""
from typing import Optional

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.graph_service import GraphService
from app.repositories import UnitOfWork


async def get_uow(db: AsyncSession = Depends(get_db)) -> UnitOfWork:
    return UnitOfWork(db)


async def get_graph_service(uow: UnitOfWork = Depends(get_uow)) -> GraphService:
    return GraphService(uow)


class Page:
    """limit/offset query parameters; no limit means the full list."""

    def __init__(
        self,
        limit: Optional[int] = Query(None, ge=1, le=settings.max_page_size),
        offset: int = Query(0, ge=0),
    ) -> None:
        self.limit = limit
        self.offset = offset

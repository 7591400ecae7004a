"""Offset pagination shared by the user and video listings."""

import asyncio
import math
from typing import Any, Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import Select, func, select

from vidvault.db import Database

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Pagination envelope."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    data: List[T]
    total: int
    page: int
    limit: int
    total_pages: int


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit > 0 else 0


async def _count(database: Database, stmt: Select) -> int:
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    async with database.session() as session:
        result = await session.execute(count_stmt)
        return result.scalar() or 0


async def _fetch(database: Database, stmt: Select, offset: int, limit: int) -> list[Any]:
    async with database.session() as session:
        result = await session.execute(stmt.offset(offset).limit(limit))
        return list(result.scalars().unique().all())


async def paginate(database: Database, stmt: Select, page: int, limit: int) -> dict:
    """Run the count and the page fetch of ``stmt`` concurrently.

    Each query gets its own session since one AsyncSession cannot run two
    statements at once. ``stmt`` must already carry its filter and ordering.
    """
    if page < 1 or limit < 1:
        raise ValueError("page and limit must be positive")

    total, rows = await asyncio.gather(
        _count(database, stmt),
        _fetch(database, stmt, (page - 1) * limit, limit),
    )
    return {
        "data": rows,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages(total, limit),
    }

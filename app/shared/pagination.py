"""Reusable pagination helpers."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from fastapi import Query
from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class PaginationParams(BaseModel):
    """Pagination query params."""

    limit: int
    offset: int


def get_pagination_params(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> PaginationParams:
    """FastAPI dependency for pagination params."""
    return PaginationParams(limit=limit, offset=offset)


class Page(BaseModel, Generic[T]):
    """Generic paginated response."""

    items: list[T]
    total: int
    limit: int
    offset: int


def build_page(items: list[T], total: int, params: PaginationParams) -> Page[T]:
    """Build page object from query result and params."""
    return Page(items=items, total=total, limit=params.limit, offset=params.offset)


async def fetch_page(
    session: AsyncSession,
    base_stmt: Select,
    *,
    order_by: Any,
    limit: int,
    offset: int,
) -> tuple[list, int]:
    """Run count + windowed select for a list endpoint."""
    count_stmt = select(func.count()).select_from(base_stmt.order_by(None).subquery())
    total = int((await session.scalar(count_stmt)) or 0)

    ordering = order_by if isinstance(order_by, tuple) else (order_by,)
    stmt = base_stmt.order_by(*ordering).limit(limit).offset(offset)
    items = list((await session.scalars(stmt)).all())
    return items, total

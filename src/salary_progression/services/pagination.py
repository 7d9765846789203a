"""Offset pagination helpers shared by list queries."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from salary_progression.errors import InvalidInputError

T = TypeVar("T")


@dataclass(frozen=True)
class PageMeta:
    """Pagination metadata for a list response."""

    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results."""

    data: list[T] = field(default_factory=list)
    meta: PageMeta = field(default_factory=lambda: PageMeta(total=0, page=1, limit=20))


async def paginate(
    session: AsyncSession,
    query: Select,
    page: int = 1,
    limit: int = 20,
    options: Sequence[Any] = (),
) -> Page:
    """Count the query, then fetch one page of ORM rows.

    Loader options are applied to the page fetch only, not to the count.
    """
    if page < 1:
        raise InvalidInputError(f"page must be >= 1 (got {page})")
    if limit < 1:
        raise InvalidInputError(f"limit must be >= 1 (got {limit})")

    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = await session.scalar(count_query) or 0

    result = await session.execute(query.options(*options).offset((page - 1) * limit).limit(limit))
    return Page(
        data=list(result.scalars().all()),
        meta=PageMeta(total=total, page=page, limit=limit),
    )

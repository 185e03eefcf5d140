"""Offset pagination for list endpoints."""

from __future__ import annotations

import math
from typing import Any, Generic, Sequence, TypeVar

from fastapi import Query
from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

T = TypeVar("T")


class PageParams(BaseModel):
    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> PageParams:
    return PageParams(page=page, limit=limit)


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class Page(BaseModel, Generic[T]):
    items: list[T]
    pagination: Pagination


def paginate(db: Session, stmt: Select, params: PageParams) -> tuple[Sequence[Any], Pagination]:
    """Run ``stmt`` for one page and count the unpaginated total."""
    total = db.execute(
        select(func.count()).select_from(stmt.order_by(None).subquery())
    ).scalar_one()
    rows = db.execute(stmt.limit(params.limit).offset(params.offset)).scalars().all()
    return rows, Pagination(
        total=total,
        page=params.page,
        limit=params.limit,
        pages=math.ceil(total / params.limit) if total else 0,
    )

"""Filtering, sorting and pagination helpers shared by the list endpoints."""

import math
from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic.alias_generators import to_snake
from sqlalchemy.orm import Query

from scidatahub.models.submission import Submission

DEFAULT_SORT_FIELD = 'created_at'


@dataclass
class Page:
    items: list
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page * self.limit < self.total

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def paginate(query: Query, page: int, limit: int) -> Page:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return Page(items=items, total=total, page=page, limit=limit)


def sort_column(sort_by: str | None, sort_order: str | None, default_order: str = 'asc'):
    """Resolve a camelCase or snake_case field name to an ORDER BY clause."""
    attribute = to_snake(sort_by) if sort_by else DEFAULT_SORT_FIELD
    if attribute == 'metadata':
        attribute = 'submission_metadata'
    if attribute not in Submission.__mapper__.columns:
        attribute = DEFAULT_SORT_FIELD

    column = getattr(Submission, attribute)
    order = (sort_order or default_order).strip().lower()
    ordered = column.desc() if order == 'desc' else column.asc()
    # id as tie-breaker keeps paging stable
    return ordered, Submission.id.asc()


def to_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def apply_date_window(query: Query, column, start_date: datetime | None, end_date: datetime | None) -> Query:
    start_date = to_naive_utc(start_date)
    end_date = to_naive_utc(end_date)
    if start_date is not None:
        query = query.filter(column >= start_date)
    if end_date is not None:
        query = query.filter(column <= end_date)
    return query

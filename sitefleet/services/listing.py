from math import ceil
from typing import Any, Dict, Optional, Sequence, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Query

from ..config import settings
from .envelope import ok
from .normalization import parse_date


def clamp_limit(limit: Optional[int]) -> int:
    if not limit or limit < 1:
        return settings.default_page_size
    return min(limit, settings.max_page_size)


def search_clause(term: Optional[str], columns: Sequence[Any]):
    """Case-insensitive substring match across ``columns``, or None for an empty term."""
    term = (term or "").strip()
    if not term:
        return None
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    like = f"%{escaped}%"
    return or_(*[column.ilike(like, escape="\\") for column in columns])


def date_range(query: Query, column: Any, start: Optional[str], end: Optional[str]) -> Query:
    lower = parse_date(start) if start else None
    upper = parse_date(end) if end else None
    if lower is not None:
        query = query.filter(column >= lower)
    if upper is not None:
        query = query.filter(column <= upper)
    return query


def paginate(
    query: Query,
    page: Optional[int],
    limit: Optional[int],
    sort_by: Optional[str],
    sort_order: Optional[str],
    sortable: Dict[str, Any],
    default_sort: str,
) -> Tuple[list, dict]:
    """
    Sort, slice and count a listing query.

    ``sortable`` maps the camelCase names callers may pass as ``sortBy`` to
    columns; unknown names fall back to ``default_sort``.
    """
    limit = clamp_limit(limit)
    page = max(1, page or 1)
    column = sortable.get(sort_by or "", sortable[default_sort])
    ordering = column.asc() if (sort_order or "").lower() == "asc" else column.desc()

    total = query.order_by(None).count()
    items = query.order_by(ordering).offset((page - 1) * limit).limit(limit).all()
    pagination = {
        "currentPage": page,
        "totalPages": ceil(total / limit) if total else 0,
        "totalItems": total,
        "itemsPerPage": limit,
    }
    return items, pagination


def listing(data: list, pagination: Optional[dict] = None, message: Optional[str] = None) -> dict:
    extra: Dict[str, Any] = {"count": len(data)}
    if pagination is not None:
        extra["pagination"] = pagination
    return ok(data, message=message, **extra)

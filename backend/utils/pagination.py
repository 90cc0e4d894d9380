from typing import Optional, Tuple, Union

PageSize = Union[int, str]


def resolve_page(page: Optional[int], page_size: Optional[str], default_size: int = 10) -> Tuple[int, Optional[int]]:
    """Return (offset, limit); ``page_size="all"`` disables paging (limit None)."""
    page = max(1, int(page or 1))
    raw = (str(page_size).strip().lower() if page_size is not None else "")
    if raw == "all":
        return 0, None
    try:
        size = max(1, int(raw)) if raw else default_size
    except ValueError:
        size = default_size
    return (page - 1) * size, size


def paginate(query, page: Optional[int], page_size: Optional[str], default_size: int = 10):
    offset, limit = resolve_page(page, page_size, default_size)
    if limit is None:
        return query
    return query.offset(offset).limit(limit)


def slice_page(rows: list, page: Optional[int], page_size: Optional[str], default_size: int = 10) -> list:
    offset, limit = resolve_page(page, page_size, default_size)
    if limit is None:
        return rows
    return rows[offset:offset + limit]

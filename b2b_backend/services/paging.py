"""Page/limit normalisation shared by list endpoints."""

import math


def clamp(page: int | None, limit: int | None, default_limit: int = 20, max_limit: int = 100) -> tuple[int, int]:
    """Return ``(page, limit)`` with page >= 1 and 1 <= limit <= max_limit."""
    page = max(page or 1, 1)
    limit = default_limit if limit is None else min(max(limit, 1), max_limit)
    return page, limit


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def window(items: list, page: int, limit: int) -> list:
    start = (page - 1) * limit
    return items[start:start + limit]

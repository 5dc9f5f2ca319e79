import math
from collections.abc import Sequence
from typing import TypeVar

from crewmatch.schemas.search import Pagination

T = TypeVar("T")


def paginate(total: int, page: int, page_size: int) -> Pagination:
    total_pages = math.ceil(total / page_size) if page_size > 0 else 0
    return Pagination(
        page=page,
        page_size=page_size,
        total=total,
        total_pages=total_pages,
        has_more=page < total_pages,
    )


def page_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size


def page_slice(items: Sequence[T], page: int, page_size: int) -> list[T]:
    start = page_offset(page, page_size)
    return list(items[start : start + page_size])

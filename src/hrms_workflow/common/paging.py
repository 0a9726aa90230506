from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, Sequence, TypeVar

from flask import request

T = TypeVar("T")

MAX_LIMIT = 100


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    page: int
    limit: int
    total: int = field(default=0)

    @staticmethod
    def offset_for(page: int, limit: int) -> int:
        return (max(page, 1) - 1) * limit

    def pagination(self) -> dict:
        return {
            "currentPage": self.page,
            "totalPages": math.ceil(self.total / self.limit) if self.limit else 0,
            "totalRecords": self.total,
            "hasNextPage": self.page * self.limit < self.total,
            "hasPrevPage": self.page > 1,
        }


def page_limit(default_limit: int) -> tuple[int, int]:
    """Read ?page=&limit= from the current request, clamped to sane bounds."""
    try:
        page = max(int(request.args.get("page", 1)), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(request.args.get("limit", default_limit))
        limit = max(1, min(limit, MAX_LIMIT))
    except (TypeError, ValueError):
        limit = default_limit
    return page, limit

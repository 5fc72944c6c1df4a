"""Limit/offset paging shared by the order and order-event listings."""

from dataclasses import dataclass
from typing import Any

from fastapi import Query

from shared.config.constants import Limits


@dataclass
class Pagination:
    """A window over a listing, clamped to 1..Limits.MAX_PAGE_SIZE rows."""

    limit: int
    offset: int

    def __post_init__(self) -> None:
        self.limit = max(1, min(self.limit, Limits.MAX_PAGE_SIZE))
        self.offset = max(self.offset, 0)

    def to_dict(self, total: int) -> dict[str, Any]:
        """The ``pagination`` block of a listing response."""
        end = self.offset + self.limit
        return {
            "limit": self.limit,
            "offset": self.offset,
            "total": total,
            "has_more": end < total,
            "next_offset": end if end < total else None,
        }


def get_pagination(
    limit: int = Query(Limits.DEFAULT_PAGE_SIZE, ge=1, le=Limits.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
) -> Pagination:
    return Pagination(limit=limit, offset=offset)

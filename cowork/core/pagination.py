"""
Page/limit pagination shared by list endpoints
"""
import math
from typing import Any, List, Tuple

from fastapi import Query

from cowork.core.config import settings


class PageParams:
    """Dependency collecting ?page=&limit= query parameters"""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    ):
        self.page = page
        self.limit = limit

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def paginate(query, params: PageParams) -> Tuple[List[Any], dict]:
    total = query.order_by(None).count()
    rows = query.offset(params.offset).limit(params.limit).all()
    return rows, {
        "page": params.page,
        "limit": params.limit,
        "total": total,
        "pages": math.ceil(total / params.limit) if total else 0,
    }

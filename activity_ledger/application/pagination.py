"""
Pagination shared by report and entry listings
"""
import math
from dataclasses import dataclass, field
from typing import Generic, List, TypeVar

from activity_ledger.config import get_settings
from activity_ledger.utils.validation import parse_int

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 20

    @property
    def page_count(self) -> int:
        return math.ceil(self.total / self.per_page) if self.total else 0

    def meta(self) -> dict:
        return {
            "total": self.total,
            "page": self.page,
            "per_page": self.per_page,
            "page_count": self.page_count,
        }


def normalize_pagination(page=None, per_page=None) -> tuple[int, int]:
    """
    page clamped to >= 1 (default 1), per_page clamped to [1, MAX_PER_PAGE]
    (default 20).

    Raises:
        ValidationError: page / per_page не число
    """
    settings = get_settings()

    page = 1 if page is None else max(1, parse_int(page, "page"))

    per_page = settings.DEFAULT_PER_PAGE if per_page is None else parse_int(per_page, "per_page")
    per_page = max(1, min(per_page, settings.MAX_PER_PAGE))
    return page, per_page

from dataclasses import dataclass, field
from typing import Any, List
import math


@dataclass
class Page:
    """
    One page of a length-aware paginated query.

    Attributes:
        items: Items on the current page
        page: Current page number (1-indexed)
        per_page: Requested page size
        total: Total number of items across all pages
    """
    items: List[Any] = field(default_factory=list)
    page: int = 1
    per_page: int = 10
    total: int = 0

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    @property
    def page_count(self) -> int:
        # An empty result still has one (empty) page
        return max(math.ceil(self.total / self.per_page), 1)

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1

    @property
    def has_next_page(self) -> bool:
        return self.page < self.page_count

    def meta(self) -> dict:
        """Pagination metadata in the shape clients expect under `result.meta`."""
        return {
            "page": self.page,
            "take": self.per_page,
            "items_count": len(self.items),
            "total_items_count": self.total,
            "page_count": self.page_count,
            "has_previous_page": self.has_previous_page,
            "has_next_page": self.has_next_page,
        }

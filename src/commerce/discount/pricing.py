"""Priced views that discounts are calculated against.

Both orders and checkouts expose ``priced_view()`` returning a PricedOrder,
so the discount engine never depends on either aggregate directly.
"""

import json
from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class PricedLine:
    product_id: str
    subtotal: int


@dataclass(frozen=True)
class PricedOrder:
    total_amount: int
    lines: tuple[PricedLine, ...] = field(default_factory=tuple)

    @classmethod
    def from_items(cls, items):
        """Build a view from line items carrying ``product_id`` and ``subtotal``."""
        lines = tuple(PricedLine(product_id=str(item.product_id), subtotal=item.subtotal or 0) for item in items)
        return cls(total_amount=sum(line.subtotal for line in lines), lines=lines)


class CategoryResolver(Protocol):
    """Catalog lookup that knows which categories a product belongs to."""

    def categories_for(self, product_id: str) -> set[str]: ...


class StaticCategoryResolver:
    """Category lookup backed by a fixed ``{product_id: categories}`` mapping."""

    def __init__(self, memberships: dict[str, set[str]] | None = None) -> None:
        self.memberships = {str(k): {str(c) for c in v} for k, v in (memberships or {}).items()}

    def categories_for(self, product_id: str) -> set[str]:
        return self.memberships.get(str(product_id), set())


def category_resolver_from_json(raw):
    """Resolver for a ``{product_id: [category_id, ...]}`` JSON document, or None when absent."""
    if not raw:
        return None
    return StaticCategoryResolver({product_id: set(categories) for product_id, categories in json.loads(raw).items()})

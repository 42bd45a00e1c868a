"""
Data types shared across the personalization engine.

Product records arrive from the catalog collaborator as plain mappings
(JSON bodies, ORM rows converted to dicts). They are parsed once into
immutable ``Product`` values so the scorer never trusts shape at runtime.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class InvalidProductError(ValueError):
    """Raised when a catalog record cannot be turned into a Product."""


# Accepted spellings for each field: snake_case first, then the camelCase
# names used by the storefront's JSON payloads.
_FIELD_ALIASES = {
    "category_id": ("category_id", "categoryId"),
    "is_best_seller": ("is_best_seller", "isBestSeller"),
    "is_new": ("is_new", "isNew"),
    "is_sale": ("is_sale", "isSale"),
}


def _lookup(record: Mapping[str, Any], name: str, default: Any = None) -> Any:
    for key in _FIELD_ALIASES.get(name, (name,)):
        if key in record and record[key] is not None:
            return record[key]
    return default


_TRUE_STRINGS = frozenset({"true", "1", "yes", "y", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "n", "off", ""})


def _parse_flag(value: Any, name: str) -> bool:
    """Curation flags arrive as JSON booleans, 0/1 or form-style strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise InvalidProductError(f"flag {name} has a non-boolean value {value!r}")


@dataclass(frozen=True)
class Product:
    """A catalog item as seen by the engine."""

    id: int
    name: str
    description: str = ""
    price: float = 0.0
    category_id: Optional[int] = None
    featured: bool = False
    is_best_seller: bool = False
    is_new: bool = False
    is_sale: bool = False

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "Product":
        """
        Build a Product from a catalog record.

        Args:
            record: Mapping with id, name, description, price, category id
                and the curation flags (snake_case or camelCase keys)

        Returns:
            Parsed Product

        Raises:
            InvalidProductError: if id or name is missing, id, price or
                category id are not numeric, or a flag is not boolean-like
        """
        if not isinstance(record, Mapping):
            raise InvalidProductError(f"expected a mapping, got {type(record).__name__}")

        raw_id = _lookup(record, "id")
        if raw_id is None or raw_id == "":
            raise InvalidProductError("product record has no id")

        name = _lookup(record, "name")
        if not name or not str(name).strip():
            raise InvalidProductError(f"product {raw_id} has no name")

        try:
            product_id = int(raw_id)
            price = float(_lookup(record, "price", 0.0))
            raw_category = _lookup(record, "category_id")
            category_id = int(raw_category) if raw_category not in (None, "") else None
        except (TypeError, ValueError) as e:
            raise InvalidProductError(f"product {raw_id} has a malformed field: {e}") from e

        return cls(
            id=product_id,
            name=str(name),
            description=str(_lookup(record, "description", "") or ""),
            price=price,
            category_id=category_id,
            featured=_parse_flag(_lookup(record, "featured", False), "featured"),
            is_best_seller=_parse_flag(_lookup(record, "is_best_seller", False), "is_best_seller"),
            is_new=_parse_flag(_lookup(record, "is_new", False), "is_new"),
            is_sale=_parse_flag(_lookup(record, "is_sale", False), "is_sale"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the storefront's camelCase field names."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "categoryId": self.category_id,
            "featured": self.featured,
            "isBestSeller": self.is_best_seller,
            "isNew": self.is_new,
            "isSale": self.is_sale,
        }


def parse_products(records: Iterable[Any]) -> Tuple[List[Product], int]:
    """
    Parse catalog records, skipping malformed ones.

    Returns:
        Tuple of (products, skipped_count)
    """
    products: List[Product] = []
    skipped = 0

    for record in records:
        if isinstance(record, Product):
            products.append(record)
            continue
        try:
            products.append(Product.from_dict(record))
        except InvalidProductError as e:
            logger.warning("Skipping malformed product record: %s", e)
            skipped += 1

    return products, skipped


@dataclass(frozen=True)
class RankResult:
    """Ordered product ids plus a human-readable explanation."""

    product_ids: List[int]
    explanation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productIds": list(self.product_ids),
            "explanation": self.explanation,
        }


@dataclass
class RecommendationContext:
    """Everything the orchestrator needs to pick a strategy for one request."""

    query: str = ""
    category_id: Optional[int] = None
    user_id: Optional[int] = None
    session_id: Optional[str] = None
    # Most recently viewed product first
    view_history: List[int] = field(default_factory=list)
    limit: int = 10


@dataclass
class Recommendation:
    """Resolved products returned to the request-handling layer."""

    products: List[Product]
    explanation: str
    strategy: str

    @property
    def product_ids(self) -> List[int]:
        return [p.id for p in self.products]

"""
Catalog snapshot helpers.

The authoritative catalog lives with the persistence collaborator; the
engine only ever sees ordered snapshots of it. These helpers select ids by
curation flag and resolve ids back to full records.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from personalization.models import Product, parse_products

logger = logging.getLogger(__name__)


def flagged_ids(
    catalog: Sequence[Product],
    flag: str,
    limit: int,
    exclude: Iterable[int] = (),
) -> List[int]:
    """
    Ids of products with ``flag`` set, in catalog order.

    Args:
        catalog: Product snapshot
        flag: Boolean attribute name (featured, is_best_seller, is_new, is_sale)
        limit: Maximum number of ids to return
        exclude: Ids to skip (already selected elsewhere)
    """
    if limit <= 0:
        return []

    excluded = set(exclude)
    ids: List[int] = []
    for product in catalog:
        if len(ids) >= limit:
            break
        if getattr(product, flag) and product.id not in excluded:
            ids.append(product.id)
            excluded.add(product.id)
    return ids


def bestseller_ids(catalog: Sequence[Product], limit: int, exclude: Iterable[int] = ()) -> List[int]:
    return flagged_ids(catalog, "is_best_seller", limit, exclude)


class CatalogSnapshot:
    """
    Ordered, id-addressable copy of the product catalog.

    Usage:
        snapshot = CatalogSnapshot.from_records(rows)
        snapshot.products            # catalog order preserved
        snapshot.resolve([3, 1])     # [Product(id=3...), Product(id=1...)]
    """

    def __init__(self, products: Optional[Iterable[Product]] = None, skipped: int = 0):
        self._products: List[Product] = []
        self._by_id: Dict[int, Product] = {}
        self.skipped = skipped

        for product in products or []:
            if product.id in self._by_id:
                logger.warning("Duplicate product id %s in catalog snapshot, keeping first", product.id)
                continue
            self._products.append(product)
            self._by_id[product.id] = product

    @classmethod
    def from_records(cls, records: Iterable) -> "CatalogSnapshot":
        products, skipped = parse_products(records)
        return cls(products, skipped=skipped)

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    def get(self, product_id: int) -> Optional[Product]:
        return self._by_id.get(product_id)

    def resolve(self, product_ids: Iterable[int]) -> List[Product]:
        """Map ids to records, dropping ids not in the snapshot."""
        resolved = []
        for product_id in product_ids:
            product = self._by_id.get(product_id)
            if product is None:
                logger.debug("Dropping unknown product id %s", product_id)
                continue
            resolved.append(product)
        return resolved

    def __contains__(self, product_id: int) -> bool:
        return product_id in self._by_id

    def __len__(self) -> int:
        return len(self._products)

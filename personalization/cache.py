"""
Memoized ranking results.

Entries are keyed by (query, category, user, session) and remember the
query keywords and owners they were computed with, so learning signals can
invalidate exactly the entries whose scores they change. Each entry also
carries a signature of the catalog it ranked; a lookup against a different
catalog is a miss.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

from config import RESULT_CACHE_MAX
from personalization.models import Product

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str, str, str]


def make_cache_key(
    query: str,
    category_id: Optional[int] = None,
    user_id: Optional[int] = None,
    session_id: Optional[str] = None,
) -> CacheKey:
    """Composite key; missing identifiers are stored as empty strings."""
    return (
        (query or "").lower(),
        "" if category_id is None else str(category_id),
        "" if user_id is None else str(user_id),
        session_id or "",
    )


def catalog_signature(catalog: Sequence[Product]) -> int:
    """Order-sensitive fingerprint of a catalog snapshot (ids, text and flags)."""
    return hash(tuple(catalog))


@dataclass(frozen=True)
class _CacheEntry:
    product_ids: Tuple[int, ...]
    keywords: FrozenSet[str]
    user_id: Optional[int]
    session_id: Optional[str]
    signature: Optional[int] = None


class QueryResultCache:
    """LRU-bounded map of cache key → ranked product ids."""

    def __init__(self, max_entries: int = RESULT_CACHE_MAX):
        self._max_entries = max(1, int(max_entries))
        self._entries: "OrderedDict[CacheKey, _CacheEntry]" = OrderedDict()

    def get(self, key: CacheKey, signature: Optional[int] = None) -> Optional[List[int]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.signature != signature:
            # Computed against another catalog snapshot
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return list(entry.product_ids)

    def put(
        self,
        key: CacheKey,
        product_ids: Iterable[int],
        keywords: Iterable[str],
        user_id: Optional[int] = None,
        session_id: Optional[str] = None,
        signature: Optional[int] = None,
    ) -> None:
        self._entries.pop(key, None)
        self._entries[key] = _CacheEntry(
            product_ids=tuple(product_ids),
            keywords=frozenset(keywords),
            user_id=user_id,
            session_id=session_id or None,
            signature=signature,
        )
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def invalidate(
        self,
        keywords: Iterable[str] = (),
        user_id: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> int:
        """
        Drop entries affected by a learning signal.

        An entry is dropped when it shares a keyword with ``keywords`` or
        was computed for ``user_id`` or ``session_id``.

        Returns:
            Number of entries removed
        """
        keywords = frozenset(keywords)
        stale = [
            key for key, entry in self._entries.items()
            if (keywords and entry.keywords & keywords)
            or (user_id is not None and entry.user_id == user_id)
            or (session_id and entry.session_id == session_id)
        ]
        for key in stale:
            del self._entries[key]

        if stale:
            logger.debug("Invalidated %d cached result lists", len(stale))
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

"""
Keyword extraction and per-product keyword profiles.

Keywords are lowercase alphanumeric tokens of at least three characters
that are not stopwords. Duplicate occurrences are kept: a word repeated
in a product name counts twice toward that product's profile.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Set

from sklearn.feature_extraction.text import CountVectorizer

from config import (
    STOPWORDS,
    MIN_KEYWORD_LENGTH,
    NAME_KEYWORD_WEIGHT,
    DESCRIPTION_KEYWORD_WEIGHT,
)
from personalization.models import Product

logger = logging.getLogger(__name__)


class KeywordExtractor:
    """
    Tokenizer built on scikit-learn's word analyzer.

    Underscores count as separators, so the token pattern matches runs of
    letters and digits only.

    Usage:
        extractor = KeywordExtractor()
        extractor.extract("The Premium Smartphone, premium camera!")
        # ['premium', 'smartphone', 'premium', 'camera']
    """

    def __init__(self, stopwords=STOPWORDS, min_length: int = MIN_KEYWORD_LENGTH):
        vectorizer = CountVectorizer(
            lowercase=True,
            token_pattern=r"(?u)[^\W_]{%d,}" % min_length,
            stop_words=sorted(stopwords),
        )
        self._analyze = vectorizer.build_analyzer()

    def extract(self, text: Optional[str]) -> List[str]:
        """Return the keywords of ``text`` in order, duplicates preserved."""
        if not text:
            return []
        return list(self._analyze(str(text)))


class ProductKeywordIndex:
    """
    Keyword → weight profile for every indexed product.

    Name occurrences add NAME_KEYWORD_WEIGHT, description occurrences add
    DESCRIPTION_KEYWORD_WEIGHT. Re-indexing a product replaces its profile;
    a product identical to the one last indexed (every field, flags
    included) is skipped.
    """

    def __init__(self, extractor: Optional[KeywordExtractor] = None):
        self._extractor = extractor or KeywordExtractor()

        # Structure: {product_id: {keyword: weight}}
        self._product_keywords: Dict[int, Dict[str, float]] = {}

        # Structure: {category_id: {keyword, ...}}  (accumulated, never pruned)
        self._category_keywords: Dict[int, Set[str]] = defaultdict(set)

        # Structure: {product_id: Product as last indexed}
        self._indexed: Dict[int, Product] = {}

    def index(self, product: Product) -> bool:
        """
        Build the keyword profile for ``product``.

        Returns:
            True if the profile was (re)built, False if the product was
            already indexed with identical fields
        """
        if self._indexed.get(product.id) == product:
            return False

        keywords: Dict[str, float] = {}
        for word in self._extractor.extract(product.name):
            keywords[word] = keywords.get(word, 0.0) + NAME_KEYWORD_WEIGHT
        for word in self._extractor.extract(product.description):
            keywords[word] = keywords.get(word, 0.0) + DESCRIPTION_KEYWORD_WEIGHT

        self._product_keywords[product.id] = keywords
        self._indexed[product.id] = product

        if product.category_id is not None:
            self._category_keywords[product.category_id].update(keywords)

        return True

    def has(self, product_id: int) -> bool:
        return product_id in self._product_keywords

    def keywords_for(self, product_id: int) -> Dict[str, float]:
        """Keyword profile of a product (empty if it was never indexed)."""
        return self._product_keywords.get(product_id, {})

    def category_keywords(self, category_id: int) -> Set[str]:
        return set(self._category_keywords.get(category_id, ()))

    def clear(self) -> None:
        self._product_keywords.clear()
        self._category_keywords.clear()
        self._indexed.clear()

    def __len__(self) -> int:
        return len(self._product_keywords)

"""
Test Suite for keyword extraction and product keyword profiles.

Tests:
1. Tokenization, stopwords and short-token filtering
2. Determinism
3. Product keyword weights (name vs description)
4. Re-indexing and category keyword sets
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from personalization.keywords import KeywordExtractor, ProductKeywordIndex
from personalization.models import Product
from config import STOPWORDS


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def extractor():
    return KeywordExtractor()


@pytest.fixture
def index(extractor):
    return ProductKeywordIndex(extractor)


# =============================================================================
# TEST: KEYWORD EXTRACTION
# =============================================================================

class TestKeywordExtractor:
    """Tests for free-text tokenization."""

    def test_lowercases_and_keeps_duplicates(self, extractor):
        """Repeated words are a weighting signal and must be kept in order."""
        keywords = extractor.extract("The Premium Smartphone, premium camera!")
        assert keywords == ["premium", "smartphone", "premium", "camera"]

    def test_drops_short_tokens(self, extractor):
        assert extractor.extract("a an of it USB-C go") == ["usb"]

    def test_underscore_is_a_separator(self, extractor):
        assert extractor.extract("foo_bar bazz") == ["foo", "bar", "bazz"]

    def test_keeps_alphanumeric_tokens(self, extractor):
        assert extractor.extract("4k 1080p tv") == ["1080p"]

    def test_drops_stopwords(self, extractor):
        assert extractor.extract("this is what you should have") == []

    @pytest.mark.parametrize("word", sorted(STOPWORDS))
    def test_every_stopword_is_removed(self, extractor, word):
        assert extractor.extract(f"{word} laptop") == ["laptop"]

    @pytest.mark.parametrize("text", ["", None, "   ", "!!! ,,, ---"])
    def test_empty_input_yields_nothing(self, extractor, text):
        assert extractor.extract(text) == []

    def test_is_deterministic(self, extractor):
        text = "Wireless Noise-Cancelling Headphones with 30h battery"
        first = extractor.extract(text)
        assert first == extractor.extract(text)
        assert first == KeywordExtractor().extract(text)
        assert first == ["wireless", "noise", "cancelling", "headphones", "30h", "battery"]


# =============================================================================
# TEST: PRODUCT KEYWORD INDEX
# =============================================================================

class TestProductKeywordIndex:
    """Tests for per-product keyword profiles."""

    def test_name_counts_double(self, index):
        product = Product(id=1, name="Running Shoes Running", description="shoes for running", category_id=2)
        assert index.index(product) is True

        keywords = index.keywords_for(1)
        assert keywords == {"running": 5.0, "shoes": 3.0}

    def test_missing_description(self, index):
        index.index(Product(id=1, name="Desk Lamp"))
        assert index.keywords_for(1) == {"desk": 2.0, "lamp": 2.0}

    def test_unknown_product_has_empty_profile(self, index):
        assert index.keywords_for(404) == {}
        assert not index.has(404)

    def test_reindexing_unchanged_product_is_skipped(self, index):
        product = Product(id=1, name="Premium Smartphone", description="advanced smartphone camera")
        index.index(product)
        before = dict(index.keywords_for(1))

        assert index.index(product) is False
        assert index.keywords_for(1) == before
        assert index.keywords_for(1)["smartphone"] == 3.0

    def test_reindexing_changed_product_replaces_profile(self, index):
        index.index(Product(id=1, name="Premium Smartphone", description="advanced camera"))
        assert index.index(Product(id=1, name="Premium Smartphone", description="long battery")) is True

        keywords = index.keywords_for(1)
        assert "camera" not in keywords
        assert keywords["battery"] == 1.0
        assert keywords["premium"] == 2.0

    def test_flag_change_counts_as_a_change(self, index):
        index.index(Product(id=2, name="Running Shoes", category_id=2))
        assert index.index(Product(id=2, name="Running Shoes", category_id=2, is_best_seller=True)) is True
        assert index.index(Product(id=2, name="Running Shoes", category_id=2, is_best_seller=True)) is False

    def test_category_keywords_accumulate(self, index):
        index.index(Product(id=1, name="Running Shoes", category_id=2))
        index.index(Product(id=2, name="Trail Jacket", category_id=2))
        index.index(Product(id=1, name="Walking Boots", category_id=2))

        assert index.category_keywords(2) == {"running", "shoes", "trail", "jacket", "walking", "boots"}
        assert index.category_keywords(99) == set()

    def test_clear(self, index):
        index.index(Product(id=1, name="Running Shoes", category_id=2))
        index.clear()
        assert len(index) == 0
        assert index.category_keywords(2) == set()
        # Nothing remembered, so the next index call rebuilds
        assert index.index(Product(id=1, name="Running Shoes", category_id=2)) is True

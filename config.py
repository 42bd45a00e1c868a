"""
Configuration for the Storefront Personalization Engine.

This file contains all configuration constants including:
- Keyword extraction (stopwords, seed vocabulary)
- Learning increments for global weights and owner profiles
- Ranking and similarity scoring weights
- Recommendation mix and cache sizing
"""

import os


# =============================================================================
# KEYWORD EXTRACTION
# =============================================================================

# Tokens shorter than this are dropped
MIN_KEYWORD_LENGTH = 3

STOPWORDS = frozenset([
    "the", "and", "for", "with", "this", "that", "you", "not", "have", "are",
    "from", "your", "they", "will", "would", "could", "should", "what", "which",
])

# Curated vocabulary seeded into the global keyword weight table at 1.0
SEED_VOCABULARY = [
    "electronics", "smartphone", "laptop", "camera", "headphones",
    "clothing", "shoes", "fashion", "apparel", "accessories",
    "home", "kitchen", "furniture", "decor", "appliances",
    "toys", "games", "outdoor", "sports", "fitness",
]


# =============================================================================
# PRODUCT KEYWORD WEIGHTS
# Contribution of each keyword occurrence to a product's keyword profile
# =============================================================================

NAME_KEYWORD_WEIGHT = 2.0
DESCRIPTION_KEYWORD_WEIGHT = 1.0


# =============================================================================
# LEARNING INCREMENTS
# =============================================================================

# Weight of an unseen keyword in the global table
DEFAULT_KEYWORD_WEIGHT = 1.0

# Added to a keyword's global weight per occurrence in an observed query
GLOBAL_QUERY_INCREMENT = 0.1

# Added to an owner's profile per query keyword occurrence
PROFILE_QUERY_INCREMENT = 0.5

# Multiplied by the product keyword weight for each keyword of a viewed product
PROFILE_VIEW_INCREMENT = 0.3


# =============================================================================
# RANKING WEIGHTS
# =============================================================================

CATEGORY_MATCH_BONUS = 10.0

# Multipliers on the owner-preference terms
USER_PREFERENCE_WEIGHT = 0.2
SESSION_PREFERENCE_WEIGHT = 0.3

# Curation flags (additive, not mutually exclusive)
FLAG_BONUSES = {
    "featured": 3.0,
    "is_best_seller": 5.0,
    "is_new": 2.0,
    "is_sale": 1.0,
}


# =============================================================================
# SIMILARITY WEIGHTS
# =============================================================================

SAME_CATEGORY_BONUS = 5.0

# Bonus = PRICE_PROXIMITY_WEIGHT × (1 - |price_diff| / source_price)
PRICE_PROXIMITY_WEIGHT = 2.0

# Only candidates priced within ±30% of the source product get the bonus
PRICE_PROXIMITY_RANGE = 0.30


# =============================================================================
# RECOMMENDATION PARAMETERS
# =============================================================================

# Default number of ids returned by rank() and similar()
DEFAULT_LIMIT = 10
DEFAULT_SIMILAR_LIMIT = 5

# Maximum number of results allowed through the API
MAX_LIMIT = 50

# Static mix used when there is neither a query nor a view history
STATIC_MIX = {
    "is_best_seller": 3,
    "featured": 3,
    "is_new": 2,
}
STATIC_MIX_CAP = 8

# Results shorter than this are topped up with bestsellers
MIN_RECOMMENDATIONS = 4


# =============================================================================
# QUERY RESULT CACHE
# =============================================================================

RESULT_CACHE_MAX = int(os.getenv("RESULT_CACHE_MAX", 1024))


# =============================================================================
# API CONFIGURATION
# =============================================================================

API_CONFIG = {
    "host": os.getenv("FLASK_HOST", "0.0.0.0"),
    "port": int(os.getenv("FLASK_PORT", 5001)),
    "debug": os.getenv("FLASK_DEBUG", "false").lower() == "true",
}


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

LOGGING_CONFIG = {
    "level": os.getenv("LOG_LEVEL", "INFO"),
    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}

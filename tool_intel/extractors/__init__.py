"""
Extractors module for AI Tool Intelligence.

Turns the free-text capabilities of a directory tool into structured
pricing tiers.

Components:
    - PricingTextExtractor: Locates the pricing section and runs the parsers
    - StructuredBlockParser: Bold-heading tier blocks with labelled fields
    - VocabularyScanParser: Fallback scan for well-known tier names
"""

from tool_intel.extractors.pricing_extractor import (
    # Main class
    PricingTextExtractor,
    # Convenience function
    extract_pricing_tiers,
    # Parsers
    TierBlockParser,
    StructuredBlockParser,
    VocabularyScanParser,
    # Field helpers
    PatternStrategy,
    normalize_price,
    price_sort_key,
    # Constants
    COMMON_TIER_NAMES,
    MAX_TIERS,
    MAX_FEATURES,
)

__all__ = [
    "PricingTextExtractor",
    "extract_pricing_tiers",
    "TierBlockParser",
    "StructuredBlockParser",
    "VocabularyScanParser",
    "PatternStrategy",
    "normalize_price",
    "price_sort_key",
    "COMMON_TIER_NAMES",
    "MAX_TIERS",
    "MAX_FEATURES",
]

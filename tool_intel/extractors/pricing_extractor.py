"""
Pricing tier extraction from free-form capabilities text.

Tool records carry a loosely structured "capabilities" blob, usually produced
by an enrichment prompt, with a pricing section in a markdown-like layout:

    Pricing Details:
    **Free**
    Price: Free
    Best For: individuals
    **Pro (most popular)**
    Price: $20/mo
    Key Features:
    - Unlimited projects
    - Priority support
    Value Rating: Good

This module turns that section into at most four PricingTier records.

Every field is read by an ordered list of strategies; the first strategy that
returns a value wins. Tier blocks are located by a TierBlockParser: the
StructuredBlockParser splits on bold headings, and the VocabularyScanParser
scans for well-known tier names when no bold heading produced a tier.

Example:
    >>> extractor = PricingTextExtractor()
    >>> tiers = extractor.extract(tool.capabilities_text)
    >>> [(t.name, t.price) for t in tiers]
    [('Free', 'Free'), ('Pro', '$20/mo')]
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from tool_intel.models.schemas import PricingTier, ValueRating
from tool_intel.utils.logger import get_logger

logger = get_logger(__name__)


MAX_TIERS = 4
MAX_FEATURES = 6
MIN_FEATURE_LENGTH = 4
MAX_TIER_NAME_LENGTH = 60

DEFAULT_PRICE = "Custom"

COMMON_TIER_NAMES: tuple[str, ...] = (
    "Free", "Hobby", "Starter", "Pro", "Pro+", "Plus",
    "Ultra", "Enterprise", "Business", "Premium",
)

FIELD_LABELS: tuple[str, ...] = ("Key Features", "Limits", "Best For", "Price", "Value Rating")


# =============================================================================
# Patterns
# =============================================================================

PRICING_SECTION_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"Pricing\s+Details\s*:\s*(.*)", re.IGNORECASE | re.DOTALL),
    re.compile(
        r"(?:Pricing\s+Information|Pricing\s+Plans|Pricing)\s*:\s*(.*)",
        re.IGNORECASE | re.DOTALL,
    ),
)

BOLD_SPAN = re.compile(r"\*\*([^*\n]+?)\*\*")

# A bold span that emphasises a bullet item or a labelled value is not a heading,
# unless a bulleted span is followed by a colon or a dollar amount on the same line
BULLET_PREFIX = re.compile(r"^\s*(?:[-•✓]|\*(?!\*))\s*$")
LABEL_PREFIX = re.compile(
    r"(?:Key\s+Features|Limits|Best\s+For|Price|Value\s+Rating)\s*:\s*(?:\*\*)?\s*$",
    re.IGNORECASE,
)
LABEL_SPAN = re.compile(
    r"^(?:" + "|".join(r"\s+".join(label.split()) for label in FIELD_LABELS) + r")\s*(?::|$)",
    re.IGNORECASE,
)
HEADING_TAIL = re.compile(r"^\s*:|\$\d")

PRICE_TOKEN = re.compile(
    r"\$\d[\d,]*(?:\.\d+)?(?:/[a-z]+)?|\b(?:Free|Custom)\b",
    re.IGNORECASE,
)
WORD_PRICE = re.compile(r"(Free|Custom)\b", re.IGNORECASE)
PRICE_LABEL_RESIDUE = re.compile(r"^(?:-\s*)?(?:\*\*)?Price:(?:\*\*)?\s*", re.IGNORECASE)
NUMBER = re.compile(r"\d[\d,]*(?:\.\d+)?")

FEATURES_SECTION = re.compile(
    r"(?:\*\*)?Key\s+Features:(?:\*\*)?\s*(.*?)(?=(?:\*\*)?(?:Limits|Best\s+For|Price):|\Z)",
    re.IGNORECASE | re.DOTALL,
)
BULLET_ITEM = re.compile(r"^[ \t]*(?:[-•✓]|\*(?!\*))[ \t]*(\S[^\n]*)$", re.MULTILINE)
LABEL_ITEM = re.compile(r"^(?:Key\s+Features|Limits|Best\s+For|Price):", re.IGNORECASE)
EMPHASIS = re.compile(r"\*\*|__")

VALUE_WORD = re.compile(r"\b(Excellent|Very\s+Good|Good|Fair|Poor)\b", re.IGNORECASE)
TRAILING_PARENTHETICAL = re.compile(r"\s*\([^)]*\)\s*$")


# =============================================================================
# Field Strategies
# =============================================================================

@dataclass(frozen=True)
class PatternStrategy:
    """Match one regex against a tier block and return a cleaned capture."""

    name: str
    pattern: re.Pattern
    group: int = 1
    cleanup: Optional[Callable[[str], Optional[str]]] = None

    def __call__(self, block: str) -> Optional[str]:
        match = self.pattern.search(block)
        if not match:
            return None
        value = match.group(self.group) if self.group else match.group(0)
        value = value.strip()
        if self.cleanup is not None:
            return self.cleanup(value)
        return value or None


FieldStrategy = Callable[[str], Optional[str]]


def first_match(strategies: Sequence[FieldStrategy], block: str) -> Optional[str]:
    """Run strategies in priority order and return the first non-empty result."""
    for strategy in strategies:
        value = strategy(block)
        if value:
            return value
    return None


def strip_emphasis(text: str) -> str:
    return EMPHASIS.sub("", text).strip()


def _clean_price(value: str) -> str:
    return strip_emphasis(PRICE_LABEL_RESIDUE.sub("", value))


def normalize_price(value: str) -> Optional[str]:
    """Dollar amounts pass through; 'free ...' / 'custom ...' collapse to the word."""
    if value.startswith("$"):
        return value
    match = WORD_PRICE.match(value)
    if match:
        return match.group(1).title()
    return None


def _canonical_rating(value: str) -> Optional[str]:
    match = VALUE_WORD.search(value)
    if not match:
        return None
    word = " ".join(match.group(1).split()).lower()
    for rating in ValueRating:
        if rating.value.lower() == word:
            return rating.value
    return None


PRICE_STRATEGIES: tuple[FieldStrategy, ...] = (
    PatternStrategy("bold_label", re.compile(r"\*\*Price:\*\*\s*([^\n]+)", re.IGNORECASE), cleanup=_clean_price),
    PatternStrategy("bold_value", re.compile(r"Price:\s*\*\*([^*\n]+)\*\*", re.IGNORECASE), cleanup=_clean_price),
    PatternStrategy("plain_label", re.compile(r"Price:\s*([^\n]+)", re.IGNORECASE), cleanup=_clean_price),
    PatternStrategy("dollar_amount", re.compile(r"\$\d[\d,]*(?:\.\d+)?(?:/[a-z]+)?", re.IGNORECASE), group=0),
    PatternStrategy("free_or_custom", re.compile(r"\b(Free|Custom)\b", re.IGNORECASE)),
)

DESCRIPTION_STRATEGIES: tuple[FieldStrategy, ...] = (
    PatternStrategy("best_for", re.compile(r"Best\s+For:\s*([^\n]+)", re.IGNORECASE), cleanup=strip_emphasis),
)

VALUE_RATING_STRATEGIES: tuple[FieldStrategy, ...] = (
    PatternStrategy("labelled", re.compile(r"Value\s+Rating:\s*([^\n]+)", re.IGNORECASE), cleanup=_canonical_rating),
    PatternStrategy("bare_word", VALUE_WORD, cleanup=_canonical_rating),
)


def find_price_token(block: str) -> Optional[str]:
    """Nearest dollar amount, 'Free' or 'Custom' in the block."""
    match = PRICE_TOKEN.search(block)
    return normalize_price(match.group(0)) if match else None


def extract_price(block: str) -> str:
    """
    Resolve a tier's price.

    A labelled price that does not itself look like a price token (for
    example "Contact sales, starts at $99") is replaced by the nearest token
    in the block. Anything unresolvable is "Custom".
    """
    price = first_match(PRICE_STRATEGIES, block)
    if price is None:
        return DEFAULT_PRICE
    return normalize_price(price) or find_price_token(block) or DEFAULT_PRICE


def extract_description(block: str) -> str:
    return first_match(DESCRIPTION_STRATEGIES, block) or ""


def extract_value_rating(block: str) -> Optional[str]:
    return first_match(VALUE_RATING_STRATEGIES, block)


def extract_bullets(text: str) -> list[str]:
    """Bullet items of a text, emphasis stripped, short and label items dropped."""
    items = []
    for match in BULLET_ITEM.finditer(text):
        item = strip_emphasis(match.group(1))
        if len(item) < MIN_FEATURE_LENGTH or LABEL_ITEM.match(item):
            continue
        items.append(item)
        if len(items) == MAX_FEATURES:
            break
    return items


def extract_features(block: str) -> list[str]:
    match = FEATURES_SECTION.search(block)
    if not match:
        return []
    return extract_bullets(match.group(1))


def clean_tier_name(name: str) -> str:
    name = name.strip().rstrip(":").strip()
    return TRAILING_PARENTHETICAL.sub("", name).strip()


def _is_label(text: str) -> bool:
    """Field labels, bare or with their value bolded along (``Price: $10/mo``)."""
    return LABEL_SPAN.match(text.strip()) is not None


def _looks_like_heading(rest_of_line: str) -> bool:
    return HEADING_TAIL.search(rest_of_line) is not None


# =============================================================================
# Tier Block Parsers
# =============================================================================

class TierBlockParser(ABC):
    """Splits a pricing section into tiers."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def parse(self, pricing_text: str) -> list[PricingTier]:
        """Return every tier found, in input order, before dedupe and sorting."""
        pass


class StructuredBlockParser(TierBlockParser):
    """
    Tiers introduced by a bold heading such as ``**Pro**``.

    A tier's block runs from the end of its heading to the start of the next
    heading or the end of the section. Bold field labels (``**Price:**`` or
    ``**Price: $10/mo**``), bold bullet text and bold labelled values are not
    headings. A bulleted bold span is a heading when a colon or a dollar amount
    follows it on the same line (``- **Team**: $10/mo``).
    """

    @property
    def name(self) -> str:
        return "structured"

    def find_headings(self, text: str) -> list[re.Match]:
        headings = []
        for match in BOLD_SPAN.finditer(text):
            heading = match.group(1).strip()
            if not heading or len(heading) > MAX_TIER_NAME_LENGTH or _is_label(heading):
                continue
            line_start = text.rfind("\n", 0, match.start()) + 1
            prefix = text[line_start:match.start()]
            if prefix and LABEL_PREFIX.search(prefix):
                continue
            if prefix and BULLET_PREFIX.match(prefix):
                line_end = text.find("\n", match.end())
                rest = text[match.end():line_end if line_end != -1 else len(text)]
                if not _looks_like_heading(rest):
                    continue
            headings.append(match)
        return headings

    def parse(self, pricing_text: str) -> list[PricingTier]:
        headings = self.find_headings(pricing_text)
        tiers = []

        for idx, heading in enumerate(headings):
            end = headings[idx + 1].start() if idx + 1 < len(headings) else len(pricing_text)
            block = pricing_text[heading.end():end]

            name = clean_tier_name(heading.group(1))
            price = extract_price(block)
            description = extract_description(block)
            features = extract_features(block)

            if not name or (price == DEFAULT_PRICE and not description and not features):
                continue

            tiers.append(PricingTier(
                name=name,
                price=price,
                description=description,
                features=features,
                value_rating=extract_value_rating(block),
            ))

        return tiers


class VocabularyScanParser(TierBlockParser):
    """
    Tiers found by scanning for common plan names (Free, Pro, Enterprise...).

    Each name's block runs to the next occurrence of any other known name.
    Only a bare price token and bullet features are read from it.
    """

    def __init__(self, vocabulary: Sequence[str] = COMMON_TIER_NAMES):
        self.vocabulary = tuple(vocabulary)

    @property
    def name(self) -> str:
        return "vocabulary"

    @staticmethod
    def _word(name: str) -> str:
        return rf"(?<![\w+]){re.escape(name)}(?![\w+])"

    def _block_pattern(self, tier_name: str) -> re.Pattern:
        others = "|".join(self._word(n) for n in self.vocabulary if n != tier_name)
        stop = rf"(?={others}|\Z)" if others else r"(?=\Z)"
        return re.compile(rf"{self._word(tier_name)}.*?{stop}", re.IGNORECASE | re.DOTALL)

    def parse(self, pricing_text: str) -> list[PricingTier]:
        tiers = []
        for tier_name in self.vocabulary:
            match = self._block_pattern(tier_name).search(pricing_text)
            if not match:
                continue
            block = match.group(0)
            price = find_price_token(block)
            features = extract_bullets(block)
            if price is None and not features:
                continue
            tiers.append(PricingTier(
                name=tier_name,
                price=price or DEFAULT_PRICE,
                features=features,
            ))
        return tiers


# =============================================================================
# Extractor
# =============================================================================

def price_sort_key(tier: PricingTier) -> tuple[int, float]:
    """Free first, then ascending numeric price, then unparsable prices."""
    if tier.is_free:
        return (0, 0.0)
    match = NUMBER.search(tier.price)
    if match:
        return (1, float(match.group(0).replace(",", "")))
    return (2, 0.0)


class PricingTextExtractor:
    """
    Extracts pricing tiers from a tool's capabilities text.

    Stateless and idempotent; safe to share between concurrent callers.
    Malformed input degrades to fewer (possibly zero) tiers.
    """

    def __init__(
        self,
        parsers: Optional[Sequence[TierBlockParser]] = None,
        max_tiers: int = MAX_TIERS,
    ):
        self.parsers: tuple[TierBlockParser, ...] = tuple(
            parsers if parsers is not None else (StructuredBlockParser(), VocabularyScanParser())
        )
        self.max_tiers = max_tiers

    @staticmethod
    def locate_pricing_section(text: str) -> Optional[str]:
        """Return the text after the pricing heading, or None if there is none."""
        for pattern in PRICING_SECTION_PATTERNS:
            match = pattern.search(text)
            if match:
                return match.group(1)
        return None

    def extract(self, text: Optional[str]) -> list[PricingTier]:
        if not text or not isinstance(text, str):
            return []

        pricing_text = self.locate_pricing_section(text)
        if pricing_text is None:
            return []

        tiers: list[PricingTier] = []
        for parser in self.parsers:
            tiers = parser.parse(pricing_text)
            if tiers:
                logger.debug("Pricing tiers parsed", parser=parser.name, count=len(tiers))
                break

        return self.finalize(tiers)

    def finalize(self, tiers: Sequence[PricingTier]) -> list[PricingTier]:
        """Dedupe by (name, price), sort by price and truncate."""
        seen: set[tuple[str, str]] = set()
        unique = []
        for tier in tiers:
            if tier.dedupe_key in seen:
                continue
            seen.add(tier.dedupe_key)
            unique.append(tier)

        unique.sort(key=price_sort_key)
        return unique[: self.max_tiers]


def extract_pricing_tiers(text: Optional[str]) -> list[PricingTier]:
    """Convenience wrapper around a default PricingTextExtractor."""
    return PricingTextExtractor().extract(text)

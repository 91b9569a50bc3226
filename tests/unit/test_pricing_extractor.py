import random
import re

import pytest

from tool_intel.extractors.pricing_extractor import (
    MAX_FEATURES,
    MAX_TIERS,
    PatternStrategy,
    PricingTextExtractor,
    StructuredBlockParser,
    VocabularyScanParser,
    clean_tier_name,
    extract_bullets,
    extract_price,
    extract_pricing_tiers,
    first_match,
    normalize_price,
    price_sort_key,
)
from tool_intel.models.schemas import PricingTier


@pytest.fixture
def extractor():
    return PricingTextExtractor()


# =============================================================================
# Structured sections
# =============================================================================

def test_extract_structured_scenario(extractor):
    text = (
        "Pricing Details:\n**Free**\nPrice: Free\nBest For: individuals\n"
        "**Pro**\nPrice: $20/mo\nKey Features:\n- Feature A\n- Feature B\nValue Rating: Good"
    )
    tiers = extractor.extract(text)

    assert [t.name for t in tiers] == ["Free", "Pro"]
    assert tiers[0].price == "Free"
    assert tiers[0].description == "individuals"
    assert tiers[1].price == "$20/mo"
    assert tiers[1].features == ["Feature A", "Feature B"]
    assert tiers[1].value_rating == "Good"


def test_extract_is_idempotent(extractor, capabilities_text):
    first = extractor.extract(capabilities_text)
    second = extractor.extract(capabilities_text)
    assert [t.to_dict() for t in first] == [t.to_dict() for t in second]


@pytest.mark.parametrize("text", [None, "", "   ", 42, "Great editor with no plans listed."])
def test_extract_without_pricing_section_returns_empty(extractor, text):
    assert extractor.extract(text) == []


def test_extract_caps_and_sorts_tiers(extractor):
    text = "Pricing Plans:\n" + "".join(
        f"**{name}**\nPrice: {price}\n"
        for name, price in [
            ("Starter", "$5/mo"),
            ("Enterprise", "$100/mo"),
            ("Free", "Free"),
            ("Team", "$50/mo"),
            ("Pro", "$20/mo"),
        ]
    )
    tiers = extractor.extract(text)

    assert len(tiers) == 4
    assert [t.name for t in tiers] == ["Free", "Starter", "Pro", "Team"]


def test_extract_deduplicates_name_and_price(extractor):
    text = "Pricing:\n**Pro**\nPrice: $20/mo\n**Pro**\nPrice: $20/mo\n**Pro**\nPrice: $30/mo\n"
    tiers = extractor.extract(text)
    assert [(t.name, t.price) for t in tiers] == [("Pro", "$20/mo"), ("Pro", "$30/mo")]


def test_extract_skips_blocks_without_information(extractor):
    text = "Pricing Details:\n**Overview**\nThis tool is great for everyone."
    assert extractor.extract(text) == []


def test_bold_field_labels_are_not_headings(extractor):
    text = (
        "Pricing Details:\n"
        "**Pro (most popular)**\n"
        "**Price:** $20/month\n"
        "**Best For:** small teams\n"
        "**Key Features:**\n"
        "- **Unlimited** projects\n"
        "- Priority support\n"
    )
    tiers = extractor.extract(text)

    assert len(tiers) == 1
    tier = tiers[0]
    assert tier.name == "Pro"
    assert tier.price == "$20/month"
    assert tier.description == "small teams"
    assert tier.features == ["Unlimited projects", "Priority support"]


def test_colon_suffixed_headings_are_tiers(extractor):
    text = (
        "Pricing Details:\n"
        "**Team:** $10/mo\n- Shared workspaces\n"
        "**Scale:** $50/mo\n- SSO and audit logs\n"
    )
    tiers = extractor.extract(text)
    assert [(t.name, t.price) for t in tiers] == [("Team", "$10/mo"), ("Scale", "$50/mo")]


def test_bulleted_bold_plan_list(extractor):
    text = "Pricing:\n- **Team**: $10/mo\n- **Scale**: $50/mo\n"
    tiers = extractor.extract(text)
    assert [(t.name, t.price) for t in tiers] == [("Team", "$10/mo"), ("Scale", "$50/mo")]


def test_bulleted_bold_heading_with_inline_price(extractor):
    text = "Pricing:\n* **Studio** $99/mo\n"
    assert [(t.name, t.price) for t in extractor.extract(text)] == [("Studio", "$99/mo")]


def test_bold_feature_bullets_stay_features(extractor):
    text = (
        "Pricing Details:\n**Team:** $10/mo\n"
        "Key Features:\n- **Unlimited** free seats\n- **Shared** workspaces\n"
    )
    tiers = extractor.extract(text)

    assert len(tiers) == 1
    assert tiers[0].features == ["Unlimited free seats", "Shared workspaces"]


def test_fully_bolded_labelled_value_is_not_a_heading(extractor):
    text = "Pricing Details:\n**Team**\n**Price: $10/mo**\nBest For: small teams\n"
    tiers = extractor.extract(text)

    assert [(t.name, t.price, t.description) for t in tiers] == [("Team", "$10/mo", "small teams")]


@pytest.mark.parametrize("raw, expected", [
    ("Team:", "Team"),
    ("Pro (most popular):", "Pro"),
    ("  Enterprise  ", "Enterprise"),
    (":", ""),
])
def test_clean_tier_name(raw, expected):
    assert clean_tier_name(raw) == expected


@pytest.mark.parametrize("heading, is_heading", [
    ("**Price:**", False),
    ("**Best For**", False),
    ("**Value Rating: Good**", False),
    ("**Key  Features :**", False),
    ("**Pricey Plan**", True),
    ("**Team:**", True),
])
def test_label_spans_are_not_headings(heading, is_heading):
    headings = StructuredBlockParser().find_headings(f"{heading} $10/mo\n")
    assert bool(headings) is is_heading


def test_features_are_capped_and_short_items_dropped(extractor):
    bullets = "".join(f"- Feature number {i}\n" for i in range(8))
    text = f"Pricing Details:\n**Pro**\nPrice: $20/mo\nKey Features:\n- ok\n{bullets}"
    tier = extractor.extract(text)[0]

    assert len(tier.features) == MAX_FEATURES
    assert "ok" not in tier.features
    assert tier.features[0] == "Feature number 0"


def test_features_stop_at_next_label(extractor):
    text = (
        "Pricing Details:\n**Pro**\nPrice: $20/mo\n"
        "Key Features:\n- Unlimited completions\n"
        "Limits:\n- 500 fast requests\n"
    )
    tier = extractor.extract(text)[0]
    assert tier.features == ["Unlimited completions"]


def test_value_rating_is_canonicalised(extractor):
    text = "Pricing Details:\n**Pro**\nPrice: $20/mo\nValue Rating: very good value for teams\n"
    assert extractor.extract(text)[0].value_rating == "Very Good"


def test_decimal_price_is_kept(extractor):
    text = "Pricing Details:\n**Plus**\nPrice: $19.99/mo\n"
    assert extractor.extract(text)[0].price == "$19.99/mo"


# =============================================================================
# Vocabulary fallback
# =============================================================================

def test_vocabulary_fallback_when_no_headings(extractor):
    text = (
        "Pricing: Free plan available with basic limits. "
        "Pro costs $20/mo with\n- Unlimited completions\n"
        "Enterprise: Custom pricing"
    )
    tiers = extractor.extract(text)

    assert [(t.name, t.price) for t in tiers] == [
        ("Free", "Free"),
        ("Pro", "$20/mo"),
        ("Enterprise", "Custom"),
    ]
    assert tiers[1].features == ["Unlimited completions"]


def test_vocabulary_distinguishes_pro_and_pro_plus():
    tiers = VocabularyScanParser().parse(" Pro+ at $40/mo. Pro at $20/mo.")
    prices = {t.name: t.price for t in tiers}
    assert prices == {"Pro": "$20/mo", "Pro+": "$40/mo"}


def test_custom_parser_order_is_respected():
    extractor = PricingTextExtractor(parsers=[VocabularyScanParser(["Starter"])])
    text = "Pricing:\n**Pro**\nPrice: $20/mo\nStarter $9/mo"
    assert [t.name for t in extractor.extract(text)] == ["Starter"]


def test_structured_parser_name():
    assert StructuredBlockParser().name == "structured"
    assert VocabularyScanParser().name == "vocabulary"


# =============================================================================
# Field helpers
# =============================================================================

@pytest.mark.parametrize("block, expected", [
    ("Price: $20/mo", "$20/mo"),
    ("**Price:** $15/user", "$15/user"),
    ("Price: **$1,200/yr**", "$1,200/yr"),
    ("Price: free forever", "Free"),
    ("Price: Custom quote", "Custom"),
    ("Price: Contact sales, starts at $99", "$99"),
    ("Price: Contact sales", "Custom"),
    ("Only $8/mo billed yearly", "$8/mo"),
    ("Nothing useful here", "Custom"),
])
def test_extract_price(block, expected):
    assert extract_price(block) == expected


def test_normalize_price():
    assert normalize_price("$20/mo") == "$20/mo"
    assert normalize_price("FREE trial") == "Free"
    assert normalize_price("Contact us") is None


def test_first_match_respects_priority():
    strategies = [
        PatternStrategy("a", re.compile(r"a=(\w+)")),
        PatternStrategy("b", re.compile(r"b=(\w+)")),
    ]
    assert first_match(strategies, "b=2 a=1") == "1"
    assert first_match(strategies, "b=2") == "2"
    assert first_match(strategies, "c=3") is None


def test_extract_bullets_handles_glyphs():
    text = "- Dash item\n• Dot item\n✓ Check item\n* Star item\nnot a bullet\n"
    assert extract_bullets(text) == ["Dash item", "Dot item", "Check item", "Star item"]


def test_price_sort_key_order():
    tiers = [
        PricingTier(name="Enterprise", price="Custom"),
        PricingTier(name="Pro", price="$1,200/yr"),
        PricingTier(name="Starter", price="$9/mo"),
        PricingTier(name="Free", price="Free"),
    ]
    ordered = sorted(tiers, key=price_sort_key)
    assert [t.name for t in ordered] == ["Free", "Starter", "Pro", "Enterprise"]


def test_extract_pricing_tiers_convenience(capabilities_text):
    assert [t.name for t in extract_pricing_tiers(capabilities_text)] == ["Free", "Pro"]


RANDOM_TOKENS = (
    "Pricing Details:", "Pricing:", "**", "Pro", "Free", "Team", "Price:", "$",
    "20", "/mo", "Best For:", "Key Features:", "Value Rating:", "Good", "- ",
    "• ", "*", "(", ")", ":", "\n", " ", "Enterprise", "Custom", "Pro+", "x" * 70,
)


@pytest.mark.parametrize("seed", range(50))
def test_random_text_never_breaks_tier_bounds(extractor, seed):
    rng = random.Random(seed)
    text = "".join(rng.choice(RANDOM_TOKENS) for _ in range(rng.randint(0, 200)))

    tiers = extractor.extract(text)

    assert 0 <= len(tiers) <= MAX_TIERS
    for tier in tiers:
        assert tier.name
        assert len(tier.features) <= MAX_FEATURES
    assert len({t.dedupe_key for t in tiers}) == len(tiers)

"""Services module for AI Tool Intelligence."""

from tool_intel.services.seo_service import (
    # Gateway
    SeoMetricsGateway,
    # Envelope decoding
    FlatEnvelope,
    TaskEnvelope,
    ProviderEnvelope,
    decode_envelope,
    # Parsers
    parse_rank_overview,
    parse_backlinks,
    parse_history,
    # Utilities
    normalize_domain,
)

__all__ = [
    "SeoMetricsGateway",
    "FlatEnvelope",
    "TaskEnvelope",
    "ProviderEnvelope",
    "decode_envelope",
    "parse_rank_overview",
    "parse_backlinks",
    "parse_history",
    "normalize_domain",
]

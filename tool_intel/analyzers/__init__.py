"""Analyzers module for AI Tool Intelligence."""

from tool_intel.analyzers.domain_scorer import (
    DomainQualityScorer,
    DIMENSION_WEIGHTS,
    WeightEntry,
    build_weight_table,
    renormalize_weights,
    calculate_domain_score,
    summarize_history,
)

__all__ = [
    "DomainQualityScorer",
    "DIMENSION_WEIGHTS",
    "WeightEntry",
    "build_weight_table",
    "renormalize_weights",
    "calculate_domain_score",
    "summarize_history",
]

"""Data models module for AI Tool Intelligence."""

from tool_intel.models.schemas import (
    # Base Model
    BaseModel,

    # Enums
    ValueRating,
    StepStatus,

    # Pricing Models
    PricingTier,

    # SEO Metric Models
    POSITION_BUCKETS,
    KeywordMovement,
    RankOverview,
    HistoricalPoint,
    Backlinks,
    DomainMetrics,

    # Scoring Models
    ScoreDetails,
    ScoreBreakdown,
    HistoryTrend,
    DomainEnrichment,

    # Pipeline Models
    EnrichmentStep,
    ToolEnrichmentResult,
)

__all__ = [
    "BaseModel",
    "ValueRating",
    "StepStatus",
    "PricingTier",
    "POSITION_BUCKETS",
    "KeywordMovement",
    "RankOverview",
    "HistoricalPoint",
    "Backlinks",
    "DomainMetrics",
    "ScoreDetails",
    "ScoreBreakdown",
    "HistoryTrend",
    "DomainEnrichment",
    "EnrichmentStep",
    "ToolEnrichmentResult",
]

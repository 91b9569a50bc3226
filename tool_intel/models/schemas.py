"""
Pydantic models and schemas for the AI tool intelligence pipeline.

This module defines all data structures passed between the pricing extractor,
the SEO metrics gateway, the domain scorer and the enrichment pipeline,
ensuring type safety, validation, and serialization consistency.

Models:
    - PricingTier: One pricing plan parsed from capabilities text
    - RankOverview / Backlinks / HistoricalPoint: Normalized provider records
    - DomainMetrics: The three provider groups for one domain
    - ScoreBreakdown: Sub-scores, overall score and reasons
    - DomainEnrichment: Metrics + score + history trend for one domain
    - ToolEnrichmentResult: Outcome of one enrichment run
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional, Self

from pydantic import (
    BaseModel as PydanticBaseModel,
    ConfigDict,
    Field,
    field_serializer,
)


# Provider position buckets, best rank first
POSITION_BUCKETS: tuple[str, ...] = (
    "pos_1",
    "pos_2_3",
    "pos_4_10",
    "pos_11_20",
    "pos_21_30",
    "pos_31_40",
    "pos_41_50",
    "pos_51_60",
    "pos_61_70",
    "pos_71_80",
    "pos_81_90",
    "pos_91_100",
)


# =============================================================================
# Base Configuration
# =============================================================================

class BaseModel(PydanticBaseModel):
    """Base model with common configuration for all schemas."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_json(self, **kwargs) -> str:
        """Serialize model to JSON string."""
        return self.model_dump_json(indent=2, **kwargs)

    def to_dict(self, **kwargs) -> dict[str, Any]:
        """Serialize model to dictionary."""
        return self.model_dump(mode="json", **kwargs)

    @classmethod
    def from_json(cls, json_str: str) -> Self:
        """Deserialize model from JSON string."""
        return cls.model_validate_json(json_str)


# =============================================================================
# Enums
# =============================================================================

class ValueRating(str, Enum):
    """Qualitative value-for-money rating of a pricing tier."""
    EXCELLENT = "Excellent"
    VERY_GOOD = "Very Good"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class StepStatus(str, Enum):
    """Status of an enrichment step."""
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


# =============================================================================
# Pricing Models
# =============================================================================

class PricingTier(BaseModel):
    """A single pricing plan extracted from free text."""

    name: str = Field(..., min_length=1, description="Tier label, e.g. 'Pro'")
    price: str = Field(
        default="Custom",
        description="Dollar amount token (e.g. '$20/mo'), 'Free' or 'Custom'",
    )
    description: str = Field(default="", description="One-line 'best for' summary")
    features: list[str] = Field(default_factory=list, max_length=6)
    value_rating: Optional[ValueRating] = None

    @property
    def is_free(self) -> bool:
        return self.price.lower() == "free"

    @property
    def dedupe_key(self) -> tuple[str, str]:
        return (self.name, self.price)


# =============================================================================
# Provider Metric Models
# =============================================================================

class KeywordMovement(BaseModel):
    """Keyword ranking movement since the previous provider snapshot."""
    is_new: int = 0
    is_up: int = 0
    is_down: int = 0
    is_lost: int = 0


class _RankedKeywords(BaseModel):
    """Shared keyword-visibility fields of current and historical snapshots."""

    etv: float = Field(default=0, description="Estimated monthly organic traffic value")
    keyword_count: int = Field(default=0, description="Organic keywords ranking")
    position_buckets: dict[str, int] = Field(
        default_factory=dict,
        description="Rank-bucket label (pos_1, pos_2_3, ...) to keyword count",
    )
    keyword_movement: KeywordMovement = Field(default_factory=KeywordMovement)

    def bucket(self, label: str) -> int:
        return self.position_buckets.get(label, 0) or 0

    @property
    def top3(self) -> int:
        return self.bucket("pos_1") + self.bucket("pos_2_3")

    @property
    def top10(self) -> int:
        return self.top3 + self.bucket("pos_4_10")

    @property
    def top20(self) -> int:
        return self.top10 + self.bucket("pos_11_20")


class RankOverview(_RankedKeywords):
    """Traffic and keyword visibility snapshot for one domain."""
    target: str = ""
    estimated_paid_traffic_cost: float = 0


class HistoricalPoint(_RankedKeywords):
    """One month of rank-overview history."""
    year: int
    month: int = Field(..., ge=1, le=12)

    @property
    def period(self) -> tuple[int, int]:
        return (self.year, self.month)


class Backlinks(BaseModel):
    """Link-authority snapshot for one domain."""
    target: str = ""
    domain_rank: float = Field(default=0, description="Provider domain rank, 0-100")
    backlink_count: int = 0
    referring_domains: int = 0
    referring_main_domains: int = 0
    referring_ips: int = 0
    referring_subnets: int = 0
    backlinks_spam_score: Optional[float] = None
    target_spam_score: Optional[float] = None
    first_seen: Optional[str] = None


class DomainMetrics(BaseModel):
    """All three provider lookups for one domain. Every group is optional."""

    domain: str = ""
    rank_overview: Optional[RankOverview] = None
    backlinks: Optional[Backlinks] = None
    history: Optional[list[HistoricalPoint]] = None

    @property
    def has_any(self) -> bool:
        return any(g is not None for g in (self.rank_overview, self.backlinks, self.history))

    @classmethod
    def from_record_fields(cls, record: Mapping[str, Any]) -> "DomainMetrics":
        """
        Rebuild metric groups from a stored tool record.

        Prefers the nested ``domain_data`` blob; falls back to the flat
        columns written by ``DomainEnrichment.to_record_fields``.
        """
        blob = record.get("domain_data")
        if isinstance(blob, Mapping) and any(
            blob.get(k) is not None for k in ("rank_overview", "backlinks", "history")
        ):
            return cls.model_validate(blob)

        rank_overview = None
        if record.get("organic_etv") is not None or record.get("organic_keywords") is not None:
            rank_overview = RankOverview(
                etv=record.get("organic_etv") or 0,
                keyword_count=record.get("organic_keywords") or 0,
            )

        backlinks = None
        if record.get("domain_rank") is not None or record.get("referring_domains") is not None:
            backlinks = Backlinks(
                domain_rank=record.get("domain_rank") or 0,
                referring_domains=record.get("referring_domains") or 0,
                backlink_count=record.get("backlinks_count") or 0,
                target_spam_score=record.get("spam_score"),
            )

        return cls(rank_overview=rank_overview, backlinks=backlinks)


# =============================================================================
# Scoring Models
# =============================================================================

class ScoreDetails(BaseModel):
    """Human-readable explanation of each sub-score."""
    traffic_reason: str = ""
    visibility_reason: str = ""
    authority_reason: str = ""
    quality_reason: str = ""


class ScoreBreakdown(BaseModel):
    """Domain quality score on a 0-10 scale with its components."""

    traffic_score: float = Field(default=0, ge=0, le=10)
    visibility_score: float = Field(default=0, ge=0, le=10)
    authority_score: float = Field(default=0, ge=0, le=10)
    quality_score: float = Field(default=0, ge=0, le=10)
    overall_score: float = Field(default=0, ge=0, le=10)
    weights: dict[str, float] = Field(
        default_factory=dict,
        description="Weights applied after renormalization",
    )
    details: ScoreDetails = Field(default_factory=ScoreDetails)


class HistoryTrend(BaseModel):
    """Growth between the oldest and newest history points."""
    etv_growth_percentage: Optional[float] = None
    keywords_growth_percentage: Optional[float] = None
    months_count: int = 0


# =============================================================================
# Enrichment Models
# =============================================================================

class DomainEnrichment(BaseModel):
    """Fetched metrics, computed score and history trend for one domain."""

    domain: str
    metrics: DomainMetrics
    score: ScoreBreakdown
    trend: HistoryTrend = Field(default_factory=HistoryTrend)
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("fetched_at")
    def serialize_datetime(self, value: datetime) -> str:
        return value.isoformat()

    def to_record_fields(self) -> dict[str, Any]:
        """
        Project into the flat columns stored on a tool record.

        Zero values are stored as null so that "not measured" and "measured
        as zero" both read as missing in listings.
        """
        metrics = self.metrics
        fields: dict[str, Any] = {
            "domain_data": metrics.model_dump(mode="json", exclude={"domain"}),
            "domain_data_updated_at": self.fetched_at.isoformat(),
            "domain_score": self.score.overall_score,
        }

        if metrics.rank_overview is not None:
            fields["organic_etv"] = metrics.rank_overview.etv or None
            fields["organic_keywords"] = metrics.rank_overview.keyword_count or None

        if metrics.backlinks is not None:
            fields["domain_rank"] = metrics.backlinks.domain_rank or None
            fields["referring_domains"] = metrics.backlinks.referring_domains or None
            fields["backlinks_count"] = metrics.backlinks.backlink_count or None
            fields["spam_score"] = metrics.backlinks.target_spam_score or None

        if self.trend.etv_growth_percentage is not None:
            fields["etv_growth_percentage"] = self.trend.etv_growth_percentage
        if self.trend.keywords_growth_percentage is not None:
            fields["keywords_growth_percentage"] = self.trend.keywords_growth_percentage
        if metrics.history is not None:
            fields["historical_months_count"] = self.trend.months_count

        return fields


class EnrichmentStep(BaseModel):
    """Outcome of one enrichment step."""
    name: str
    status: StepStatus
    detail: str = ""


class ToolEnrichmentResult(BaseModel):
    """Everything one enrichment run produced."""

    tool_id: Optional[str] = None
    website_url: Optional[str] = None
    pricing_tiers: list[PricingTier] = Field(default_factory=list)
    domain: Optional[DomainEnrichment] = None
    steps: list[EnrichmentStep] = Field(default_factory=list)

    def step(self, name: str) -> Optional[EnrichmentStep]:
        return next((s for s in self.steps if s.name == name), None)

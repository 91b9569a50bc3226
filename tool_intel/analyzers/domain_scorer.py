"""
Domain quality scoring.

Converts DataForSEO rank-overview and backlink metrics into a 0-10 composite
score. Four sub-scores are computed from fixed threshold ladders:

    traffic     30%   estimated traffic value (ETV)
    visibility  25%   ranking keyword count, boosted by top-position share
    authority   25%   provider domain rank, boosted by referring domains
    quality     20%   backlink count, boosted by referring domains

When a metric group is missing, the weights of the sub-scores it feeds are
dropped and the remaining weights are rescaled to sum to 1.

Example:
    >>> scorer = DomainQualityScorer()
    >>> breakdown = scorer.score(metrics.rank_overview, metrics.backlinks)
    >>> breakdown.overall_score
    7.4
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from tool_intel.models.schemas import (
    Backlinks,
    HistoricalPoint,
    HistoryTrend,
    RankOverview,
    ScoreBreakdown,
    ScoreDetails,
)
from tool_intel.utils.formatters import format_number
from tool_intel.utils.logger import get_logger

logger = get_logger(__name__)


MAX_SCORE = 10.0

DIMENSION_WEIGHTS: dict[str, float] = {
    "traffic": 0.30,
    "visibility": 0.25,
    "authority": 0.25,
    "quality": 0.20,
}

# (minimum ETV, score, label); the last rung applies to any positive ETV
TRAFFIC_LADDER: tuple[tuple[float, float, str], ...] = (
    (1_000_000, 10, "Excellent traffic"),
    (500_000, 9, "Very high traffic"),
    (100_000, 8, "High traffic"),
    (50_000, 7, "Good traffic"),
    (10_000, 6, "Moderate traffic"),
    (5_000, 5, "Low-moderate traffic"),
    (1_000, 4, "Low traffic"),
)
TRAFFIC_FLOOR_SCORE = 2

VISIBILITY_LADDER: tuple[tuple[float, float], ...] = (
    (50_000, 10),
    (20_000, 9),
    (10_000, 8),
    (5_000, 7),
    (2_000, 6),
    (1_000, 5),
    (500, 4),
    (100, 3),
    (10, 2),
)
VISIBILITY_FLOOR_SCORE = 1

QUALITY_LADDER: tuple[tuple[float, float], ...] = (
    (500_000, 10),
    (200_000, 9),
    (100_000, 8),
    (50_000, 7),
    (10_000, 6),
    (5_000, 5),
    (1_000, 4),
    (100, 3),
)
QUALITY_FLOOR_SCORE = 2
QUALITY_BASELINE_SCORE = 5

REFERRING_DOMAIN_BONUS: tuple[tuple[float, float], ...] = (
    (10_000, 1.0),
    (5_000, 0.5),
    (1_000, 0.25),
)


# =============================================================================
# Weights
# =============================================================================

@dataclass(frozen=True)
class WeightEntry:
    """Nominal weight of a dimension and whether its metric group exists."""
    weight: float
    available: bool


def build_weight_table(
    has_rank_overview: bool,
    has_backlinks: bool,
    weights: Mapping[str, float] = DIMENSION_WEIGHTS,
) -> dict[str, WeightEntry]:
    sources = {
        "traffic": has_rank_overview,
        "visibility": has_rank_overview,
        "authority": has_backlinks,
        "quality": has_backlinks,
    }
    return {dim: WeightEntry(weight, sources[dim]) for dim, weight in weights.items()}


def renormalize_weights(table: Mapping[str, WeightEntry]) -> dict[str, float]:
    """
    Rescale available weights to sum to 1; unavailable dimensions get 0.

    If nothing is available every weight is 0 and no division happens.
    """
    total = sum(entry.weight for entry in table.values() if entry.available)
    if total <= 0:
        return {dim: 0.0 for dim in table}
    return {
        dim: (entry.weight / total if entry.available else 0.0)
        for dim, entry in table.items()
    }


# =============================================================================
# Helpers
# =============================================================================

def clamp(value: float, low: float = 0.0, high: float = MAX_SCORE) -> float:
    if math.isnan(value):
        return low
    return min(high, max(low, value))


def round_half_up(value: float, digits: int = 1) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _ladder(value: float, steps: Sequence[tuple[float, float]], floor: float) -> float:
    for threshold, score in steps:
        if value >= threshold:
            return score
    return floor


def referring_domain_bonus(referring_domains: float) -> float:
    return _ladder(referring_domains, REFERRING_DOMAIN_BONUS, 0.0)


def _finite(value: Optional[float]) -> float:
    if value is None or not math.isfinite(value):
        return 0.0
    return value


# =============================================================================
# Scorer
# =============================================================================

class DomainQualityScorer:
    """Pure, stateless domain scorer."""

    def __init__(self, weights: Mapping[str, float] = DIMENSION_WEIGHTS):
        self.weights = dict(weights)

    def score(
        self,
        rank_overview: Optional[RankOverview],
        backlinks: Optional[Backlinks],
    ) -> ScoreBreakdown:
        logger.debug(
            "Calculating domain score",
            has_rank_overview=rank_overview is not None,
            has_backlinks=backlinks is not None,
            etv=rank_overview.etv if rank_overview else None,
            keywords=rank_overview.keyword_count if rank_overview else None,
            rank=backlinks.domain_rank if backlinks else None,
            referring_domains=backlinks.referring_domains if backlinks else None,
        )

        traffic, traffic_reason = self.traffic_score(rank_overview)
        visibility, visibility_reason = self.visibility_score(rank_overview)
        authority, authority_reason = self.authority_score(backlinks)
        quality, quality_reason = self.quality_score(backlinks)

        sub_scores = {
            "traffic": traffic,
            "visibility": visibility,
            "authority": authority,
            "quality": quality,
        }
        weights = renormalize_weights(
            build_weight_table(rank_overview is not None, backlinks is not None, self.weights)
        )
        weighted = sum(sub_scores[dim] * weights.get(dim, 0.0) for dim in sub_scores)
        overall = clamp(round_half_up(weighted))

        logger.debug("Domain score calculated", overall=overall, weights=weights, **sub_scores)

        return ScoreBreakdown(
            traffic_score=traffic,
            visibility_score=visibility,
            authority_score=authority,
            quality_score=quality,
            overall_score=overall,
            weights=weights,
            details=ScoreDetails(
                traffic_reason=traffic_reason,
                visibility_reason=visibility_reason,
                authority_reason=authority_reason,
                quality_reason=quality_reason,
            ),
        )

    @staticmethod
    def traffic_score(rank_overview: Optional[RankOverview]) -> tuple[float, str]:
        if rank_overview is None:
            return 0.0, "No traffic data available"

        etv = _finite(rank_overview.etv)
        if etv <= 0:
            return 0.0, "No measurable organic traffic (0 ETV)"

        for threshold, score, label in TRAFFIC_LADDER:
            if etv >= threshold:
                if threshold >= 1_000_000:
                    amount = f"{etv / 1_000_000:.1f}M"
                elif threshold >= 10_000:
                    amount = f"{etv / 1_000:.0f}K"
                else:
                    amount = format_number(etv)
                return float(score), f"{label} ({amount} ETV)"

        return float(TRAFFIC_FLOOR_SCORE), f"Very low traffic ({format_number(etv)} ETV)"

    @staticmethod
    def visibility_score(rank_overview: Optional[RankOverview]) -> tuple[float, str]:
        if rank_overview is None:
            return 0.0, "No visibility data available"

        keywords = max(0, rank_overview.keyword_count or 0)
        top3 = rank_overview.top3
        top10 = rank_overview.top10

        score = _ladder(keywords, VISIBILITY_LADDER, VISIBILITY_FLOOR_SCORE) if keywords > 0 else 0.0

        # Bonus for top rankings
        if keywords > 0:
            if top3 / keywords >= 0.05:
                score += 2
            elif top3 / keywords >= 0.02:
                score += 1
            elif top10 / keywords >= 0.10:
                score += 0.5

        reason = (
            f"{format_number(keywords)} keywords ranking "
            f"({format_number(top3)} in top 3, {format_number(top10)} in top 10)"
        )
        return clamp(score), reason

    @staticmethod
    def authority_score(backlinks: Optional[Backlinks]) -> tuple[float, str]:
        if backlinks is None:
            return 0.0, "No authority data available"

        rank = _finite(backlinks.domain_rank)
        referring = backlinks.referring_domains or 0

        # Domain rank is 0-100
        score = rank / 10 + referring_domain_bonus(referring)

        reason = f"Domain rank: {format_number(rank)}/100, {format_number(referring)} referring domains"
        return clamp(score), reason

    @staticmethod
    def quality_score(backlinks: Optional[Backlinks]) -> tuple[float, str]:
        if backlinks is None:
            return 0.0, "No quality data available"

        count = backlinks.backlink_count
        referring = backlinks.referring_domains or 0

        if count is None or not math.isfinite(count):
            score = float(QUALITY_BASELINE_SCORE)
        else:
            score = _ladder(count, QUALITY_LADDER, QUALITY_FLOOR_SCORE)

        score += referring_domain_bonus(referring)

        reason = f"{format_number(count or 0)} backlinks, {format_number(referring)} referring domains"
        return clamp(score), reason


def calculate_domain_score(
    rank_overview: Optional[RankOverview],
    backlinks: Optional[Backlinks],
) -> ScoreBreakdown:
    """Convenience wrapper around a default DomainQualityScorer."""
    return DomainQualityScorer().score(rank_overview, backlinks)


# =============================================================================
# History Trend
# =============================================================================

def _growth(oldest: float, newest: float) -> Optional[float]:
    if oldest > 0 and newest > 0:
        return round((newest - oldest) / oldest * 100, 2)
    return None


def summarize_history(history: Optional[Sequence[HistoricalPoint]]) -> HistoryTrend:
    """Growth between the oldest and newest month of rank history."""
    if not history:
        return HistoryTrend(months_count=0)

    points = sorted(history, key=lambda p: p.period)
    trend = HistoryTrend(months_count=len(points))
    if len(points) < 2:
        return trend

    oldest, newest = points[0], points[-1]
    trend.etv_growth_percentage = _growth(oldest.etv, newest.etv)
    trend.keywords_growth_percentage = _growth(oldest.keyword_count, newest.keyword_count)
    return trend

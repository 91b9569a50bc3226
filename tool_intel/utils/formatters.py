"""
Report formatting utilities.

Provides number formatting for reason strings and markdown renderings of
pricing tiers, score breakdowns and enrichment runs.
"""

import math
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from tool_intel.models.schemas import (
    DomainEnrichment,
    PricingTier,
    ScoreBreakdown,
    StepStatus,
    ToolEnrichmentResult,
)


def format_number(value: Union[int, float, None]) -> str:
    """
    Format a number with thousands separators and at most 3 decimals.

    >>> format_number(1234567)
    '1,234,567'
    >>> format_number(1234.5)
    '1,234.5'
    """
    if value is None or (isinstance(value, float) and not math.isfinite(value)):
        return "0"
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def _cell(text: str) -> str:
    return text.replace("|", "-").replace("\n", " ")


def format_pricing_table(tiers: List[PricingTier]) -> str:
    """
    Create formatted markdown table for pricing tiers.

    | Tier | Price | Best For | Value | Key Features |
    |------|-------|----------|-------|--------------|
    | Pro | $20/mo | Teams | Good | Feature A; Feature B |
    """
    if not tiers:
        return "*No pricing tiers found.*"

    header = "| Tier | Price | Best For | Value | Key Features |\n|------|-------|----------|-------|--------------|"
    rows = []
    for tier in tiers:
        features = "; ".join(tier.features) if tier.features else "-"
        rows.append(
            f"| {_cell(tier.name)} | {_cell(tier.price)} | {_cell(tier.description or '-')} "
            f"| {tier.value_rating or '-'} | {_cell(features)} |"
        )
    return header + "\n" + "\n".join(rows)


def format_score_table(breakdown: ScoreBreakdown) -> str:
    """
    Create formatted markdown table for a domain score breakdown.

    | Component | Score | Weight | Details |
    |-----------|-------|--------|---------|
    | Traffic | 8.0 | 30% | High traffic (120K ETV) |
    """
    components = (
        ("Traffic", breakdown.traffic_score, "traffic", breakdown.details.traffic_reason),
        ("Visibility", breakdown.visibility_score, "visibility", breakdown.details.visibility_reason),
        ("Authority", breakdown.authority_score, "authority", breakdown.details.authority_reason),
        ("Quality", breakdown.quality_score, "quality", breakdown.details.quality_reason),
    )

    header = "| Component | Score | Weight | Details |\n|-----------|-------|--------|---------|"
    rows = []
    for label, score, dim, reason in components:
        weight = breakdown.weights.get(dim, 0.0)
        rows.append(f"| {label} | {score:.1f} | {weight:.0%} | {_cell(reason)} |")
    rows.append(f"| **Overall** | **{breakdown.overall_score:.1f}/10** | 100% | |")
    return header + "\n" + "\n".join(rows)


def summarize_domain(enrichment: DomainEnrichment) -> str:
    """One-line summary of the non-zero headline metrics."""
    parts = []
    if enrichment.score.overall_score > 0:
        parts.append(f"Domain Score: {enrichment.score.overall_score:.1f}/10")

    overview = enrichment.metrics.rank_overview
    if overview is not None and overview.etv:
        parts.append(f"ETV: {format_number(overview.etv)}")
    if overview is not None and overview.keyword_count:
        parts.append(f"Keywords: {format_number(overview.keyword_count)}")

    backlinks = enrichment.metrics.backlinks
    if backlinks is not None and backlinks.domain_rank:
        parts.append(f"Rank: {format_number(backlinks.domain_rank)}/100")

    return ", ".join(parts) or "Domain data collected"


def format_enrichment_report(result: ToolEnrichmentResult) -> str:
    """Render one enrichment run as a markdown report."""
    title = result.website_url or result.tool_id or "Unknown tool"
    lines = [
        f"# Tool Enrichment Report: {title}",
        "",
        f"*Generated {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}*",
        "",
        "## Steps",
        "",
    ]

    icons = {StepStatus.OK.value: "✅", StepStatus.SKIPPED.value: "⏭️", StepStatus.FAILED.value: "❌"}
    for step in result.steps:
        lines.append(f"- {icons.get(step.status, '-')} **{step.name}**: {step.detail}")

    lines += ["", "## Pricing", "", format_pricing_table(result.pricing_tiers), ""]

    if result.domain is not None:
        trend = result.domain.trend
        lines += [
            f"## Domain Quality: {result.domain.domain}",
            "",
            format_score_table(result.domain.score),
            "",
        ]
        if trend.months_count:
            lines.append(f"- History: {trend.months_count} month(s)")
        if trend.etv_growth_percentage is not None:
            lines.append(f"- ETV growth: {trend.etv_growth_percentage:+.2f}%")
        if trend.keywords_growth_percentage is not None:
            lines.append(f"- Keyword growth: {trend.keywords_growth_percentage:+.2f}%")

    return "\n".join(lines).rstrip() + "\n"


def save_report(content: str, output_path: Union[str, Path], suffix: Optional[str] = ".md") -> Path:
    """Write a report to disk, creating parent directories."""
    path = Path(output_path)
    if suffix and not path.suffix:
        path = path.with_suffix(suffix)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path

"""
Tool enrichment pipeline.

Coordinates the pricing extractor, the DataForSEO gateway and the domain
scorer for one directory tool, recording each step's outcome so a partial
failure never hides the results of the other steps.

Steps:
    - pricing_tiers: parse the capabilities text into pricing tiers
    - domain_data: fetch SEO metrics, score the domain, summarize history

Example:
    >>> async with ToolEnrichmentPipeline() as pipeline:
    ...     result = await pipeline.run("https://cursor.com", tool.capabilities_text)
    ...     record.update(result.domain.to_record_fields())
"""

import time
from typing import Optional

from tool_intel.analyzers.domain_scorer import DomainQualityScorer, summarize_history
from tool_intel.config.settings import Settings, get_settings
from tool_intel.extractors.pricing_extractor import PricingTextExtractor
from tool_intel.models.schemas import (
    DomainEnrichment,
    EnrichmentStep,
    PricingTier,
    StepStatus,
    ToolEnrichmentResult,
)
from tool_intel.services.seo_service import SeoMetricsGateway, normalize_domain
from tool_intel.utils.formatters import summarize_domain
from tool_intel.utils.logger import LogContext, get_logger

logger = get_logger(__name__)


PRICING_STEP = "pricing_tiers"
DOMAIN_STEP = "domain_data"


class ToolEnrichmentPipeline:
    """
    Enriches a directory tool with pricing tiers and a domain quality score.

    Owns the gateway's HTTP client when used as an async context manager.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        gateway: Optional[SeoMetricsGateway] = None,
        scorer: Optional[DomainQualityScorer] = None,
        extractor: Optional[PricingTextExtractor] = None,
    ):
        self.settings = settings or get_settings()
        self.gateway = gateway or SeoMetricsGateway(settings=self.settings)
        self.scorer = scorer or DomainQualityScorer()
        self.extractor = extractor or PricingTextExtractor()

    async def __aenter__(self):
        await self.gateway.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        await self.gateway.disconnect()

    def extract_pricing(self, capabilities_text: Optional[str]) -> list[PricingTier]:
        return self.extractor.extract(capabilities_text)

    async def enrich_domain(self, website_url: str) -> DomainEnrichment:
        """Fetch, score and summarize one domain."""
        metrics = await self.gateway.fetch_all(website_url)

        logger.info(
            "Domain data received",
            domain=metrics.domain,
            has_rank_overview=metrics.rank_overview is not None,
            has_backlinks=metrics.backlinks is not None,
            history_months=len(metrics.history or []),
        )

        score = self.scorer.score(metrics.rank_overview, metrics.backlinks)
        return DomainEnrichment(
            domain=metrics.domain,
            metrics=metrics,
            score=score,
            trend=summarize_history(metrics.history),
        )

    async def run(
        self,
        website_url: Optional[str],
        capabilities_text: Optional[str] = None,
        tool_id: Optional[str] = None,
    ) -> ToolEnrichmentResult:
        """Run every enrichment step for one tool."""
        result = ToolEnrichmentResult(tool_id=tool_id, website_url=website_url)
        start_time = time.time()

        with LogContext(tool_id=tool_id, website_url=website_url):
            result.steps.append(self._pricing_step(result, capabilities_text))
            result.steps.append(await self._domain_step(result, website_url))

            logger.info(
                "Tool enrichment completed",
                duration_ms=int((time.time() - start_time) * 1000),
                steps={s.name: s.status for s in result.steps},
            )

        return result

    def _pricing_step(
        self,
        result: ToolEnrichmentResult,
        capabilities_text: Optional[str],
    ) -> EnrichmentStep:
        if not capabilities_text or not capabilities_text.strip():
            return EnrichmentStep(
                name=PRICING_STEP,
                status=StepStatus.SKIPPED,
                detail="Capabilities text missing",
            )

        result.pricing_tiers = self.extract_pricing(capabilities_text)
        count = len(result.pricing_tiers)
        return EnrichmentStep(
            name=PRICING_STEP,
            status=StepStatus.OK,
            detail=f"Found {count} pricing tier{'s' if count != 1 else ''}",
        )

    async def _domain_step(
        self,
        result: ToolEnrichmentResult,
        website_url: Optional[str],
    ) -> EnrichmentStep:
        if not website_url or not normalize_domain(website_url):
            return EnrichmentStep(
                name=DOMAIN_STEP,
                status=StepStatus.SKIPPED,
                detail="Website URL missing",
            )

        if not self.gateway.is_configured:
            return EnrichmentStep(
                name=DOMAIN_STEP,
                status=StepStatus.SKIPPED,
                detail="DataForSEO credentials not set in environment",
            )

        try:
            result.domain = await self.enrich_domain(website_url)
        except Exception as e:
            logger.exception("Domain data collection failed", error=str(e))
            return EnrichmentStep(
                name=DOMAIN_STEP,
                status=StepStatus.FAILED,
                detail=f"Domain data collection failed: {e}",
            )

        return EnrichmentStep(
            name=DOMAIN_STEP,
            status=StepStatus.OK,
            detail=summarize_domain(result.domain),
        )


async def enrich_tool(
    website_url: Optional[str],
    capabilities_text: Optional[str] = None,
    tool_id: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> ToolEnrichmentResult:
    """Convenience function: run the pipeline once with its own HTTP client."""
    async with ToolEnrichmentPipeline(settings=settings) as pipeline:
        return await pipeline.run(website_url, capabilities_text, tool_id=tool_id)

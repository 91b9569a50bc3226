"""Pipeline module for AI Tool Intelligence."""

from tool_intel.pipeline.orchestrator import (
    ToolEnrichmentPipeline,
    enrich_tool,
    PRICING_STEP,
    DOMAIN_STEP,
)

__all__ = [
    "ToolEnrichmentPipeline",
    "enrich_tool",
    "PRICING_STEP",
    "DOMAIN_STEP",
]

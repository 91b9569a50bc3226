"""
AI Tool Intelligence.

Data extraction and scoring for an AI tool directory: pricing tiers parsed
from free-text capabilities, and a 0-10 domain quality score built from
DataForSEO traffic and backlink metrics.
"""

__version__ = "1.0.0"
__author__ = "AI Tool Directory Team"

# Lazy imports to avoid circular dependencies
def get_pipeline():
    """Get the ToolEnrichmentPipeline class (lazy import)."""
    from tool_intel.pipeline.orchestrator import ToolEnrichmentPipeline
    return ToolEnrichmentPipeline

__all__ = ["get_pipeline", "__version__"]

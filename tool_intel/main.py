"""
AI Tool Intelligence - CLI Entry Point.
CLI using Click and Rich.
"""

import asyncio
import json
import sys
from functools import wraps
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tool_intel import __version__
from tool_intel.config.settings import get_settings
from tool_intel.extractors.pricing_extractor import PricingTextExtractor
from tool_intel.models.schemas import ScoreBreakdown
from tool_intel.pipeline.orchestrator import ToolEnrichmentPipeline
from tool_intel.utils.formatters import format_enrichment_report, save_report
from tool_intel.utils.logger import setup_logging

# Initialize Rich Console
console = Console()

# =============================================================================
# Helper Functions
# =============================================================================

def async_command(f):
    """Decorator to run async click commands."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))
    return wrapper


def setup_logger(verbose: bool):
    """Configure logging from --verbose, DEBUG, LOG_LEVEL, LOG_JSON and LOG_FILE."""
    settings = get_settings()
    if verbose or settings.debug:
        setup_logging(level="DEBUG", json_format=False, log_file=settings.log_file)
    else:
        setup_logging(level=settings.log_level, json_format=settings.log_json, log_file=settings.log_file)


def render_score(breakdown: ScoreBreakdown, title: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Component")
    table.add_column("Score", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Details")

    rows = (
        ("Traffic", breakdown.traffic_score, "traffic", breakdown.details.traffic_reason),
        ("Visibility", breakdown.visibility_score, "visibility", breakdown.details.visibility_reason),
        ("Authority", breakdown.authority_score, "authority", breakdown.details.authority_reason),
        ("Quality", breakdown.quality_score, "quality", breakdown.details.quality_reason),
    )
    for label, score, dim, reason in rows:
        table.add_row(label, f"{score:.1f}", f"{breakdown.weights.get(dim, 0.0):.0%}", reason)
    table.add_row("[bold]Overall[/bold]", f"[bold]{breakdown.overall_score:.1f}[/bold]", "", "")
    return table

# =============================================================================
# CLI Group
# =============================================================================

@click.group()
@click.version_option(version=__version__)
def cli():
    """AI Tool Intelligence"""
    pass

# =============================================================================
# Commands
# =============================================================================

@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--json', 'as_json', is_flag=True, help='Print tiers as JSON')
@click.option('--verbose', is_flag=True, help='Detailed logging')
def pricing(file_path: str, as_json: bool, verbose: bool):
    """
    Extract pricing tiers from a capabilities text file.

    FILE_PATH: Text file holding the tool's capabilities text.
    """
    setup_logger(verbose)
    text = Path(file_path).read_text(encoding='utf-8')
    tiers = PricingTextExtractor().extract(text)

    if as_json:
        click.echo(json.dumps([t.to_dict() for t in tiers], indent=2))
        return

    if not tiers:
        console.print("[yellow]No pricing tiers found.[/yellow]")
        return

    table = Table(title="Pricing Tiers", show_header=True, header_style="bold magenta")
    table.add_column("Tier")
    table.add_column("Price")
    table.add_column("Best For")
    table.add_column("Value")
    table.add_column("Key Features")
    for tier in tiers:
        table.add_row(
            tier.name,
            tier.price,
            tier.description or "-",
            tier.value_rating or "-",
            "\n".join(tier.features) or "-",
        )
    console.print(table)


@cli.command()
@click.argument('domain')
@click.option('--json', 'as_json', is_flag=True, help='Print the enrichment as JSON')
@click.option('--verbose', is_flag=True, help='Detailed logging')
@async_command
async def score(domain: str, as_json: bool, verbose: bool):
    """
    Fetch SEO metrics for a domain and score it.

    DOMAIN: Domain or URL (e.g., cursor.com)
    """
    setup_logger(verbose)
    settings = get_settings()

    if not settings.has_dataforseo_credentials:
        console.print("[bold red]Error:[/bold red] DataForSEO credentials are not configured.")
        sys.exit(1)

    async with ToolEnrichmentPipeline(settings=settings) as pipeline:
        enrichment = await pipeline.enrich_domain(domain)

    if as_json:
        click.echo(enrichment.to_json())
        return

    console.print(render_score(enrichment.score, f"Domain Quality: {enrichment.domain}"))
    missing = [
        name for name, group in (
            ("rank overview", enrichment.metrics.rank_overview),
            ("backlinks", enrichment.metrics.backlinks),
            ("history", enrichment.metrics.history),
        ) if group is None
    ]
    if missing:
        console.print(f"[yellow]Unavailable: {', '.join(missing)}[/yellow]")


@cli.command()
@click.argument('url')
@click.option('--capabilities', 'capabilities_file', type=click.Path(exists=True, dir_okay=False),
              help='Capabilities text file to extract pricing from')
@click.option('--tool-id', default=None, help='Tool identifier for logs')
@click.option('--output', 'output_path', type=click.Path(dir_okay=False), default=None,
              help='Save the markdown report to this path')
@click.option('--verbose', is_flag=True, help='Detailed logging')
@async_command
async def enrich(url: str, capabilities_file: Optional[str], tool_id: Optional[str],
                 output_path: Optional[str], verbose: bool):
    """
    Run the full enrichment for one tool.

    URL: The tool's website URL
    """
    setup_logger(verbose)

    text = Path(capabilities_file).read_text(encoding='utf-8') if capabilities_file else None

    console.print(Panel.fit(f"[bold blue]Tool Enrichment[/bold blue]\nTarget: [cyan]{url}[/cyan]"))

    async with ToolEnrichmentPipeline(settings=get_settings()) as pipeline:
        result = await pipeline.run(url, text, tool_id=tool_id)

    table = Table(title="Steps", show_header=True, header_style="bold magenta")
    table.add_column("Step")
    table.add_column("Status")
    table.add_column("Detail")
    colors = {"ok": "green", "skipped": "yellow", "failed": "red"}
    for step in result.steps:
        color = colors.get(step.status, "white")
        table.add_row(step.name, f"[{color}]{step.status}[/{color}]", step.detail)
    console.print(table)

    report = format_enrichment_report(result)
    if output_path:
        saved = save_report(report, output_path)
        console.print(f"[green]✓[/green] Report saved to {saved}")
    else:
        console.print(report, markup=False)


@cli.command()
def validate_setup():
    """Check DataForSEO credentials and environment configuration."""
    console.print("[bold]Validating Setup...[/bold]")

    settings = get_settings()

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Check")
    table.add_column("Status")
    table.add_column("Details")

    if settings.dataforseo_api_key:
        source = "DATAFORSEO_API_KEY"
    elif settings.dataforseo_username and settings.dataforseo_password:
        source = "DATAFORSEO_USERNAME + DATAFORSEO_PASSWORD"
    else:
        source = "not configured"
    configured = settings.has_dataforseo_credentials
    status = "[green]Pass[/green]" if configured else "[red]Fail[/red]"
    table.add_row("DataForSEO Credentials", status, source)

    table.add_row("API Base URL", "[blue]Info[/blue]", settings.dataforseo_base_url)
    table.add_row("Request Timeout", "[blue]Info[/blue]", f"{settings.request_timeout_seconds}s")
    table.add_row("Environment", "[blue]Info[/blue]", settings.app_env)

    console.print(table)

    if not configured:
        console.print("\n[yellow]Warning: Domain scoring is unavailable without DataForSEO credentials.[/yellow]")
        sys.exit(1)


if __name__ == "__main__":
    cli()

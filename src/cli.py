"""CLI interface for seoforge."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from seoforge.generation.batch import BatchRunner
from seoforge.generation.models import GenerationRequest
from seoforge.generation.pipeline import PublishPipeline
from seoforge.registry.photos import LocationContext, PhotoAllocator
from seoforge.registry.registry import PublicationRegistry
from seoforge.scoring.models import SearchIntent
from seoforge.scoring.validation import ContentFileValidator, FileValidationResult
from seoforge.shared.config import SeoforgeConfig, load_config, merge_cli_overrides
from seoforge.shared.corpus import read_corpus
from seoforge.shared.errors import PipelineReport, SeoforgeError

app = typer.Typer(
    name="seoforge",
    help="Generate unique SEO articles and track what has been published.",
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from seoforge import __version__

        console.print(f"seoforge {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a .seoforge.toml file."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log debug output."),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """seoforge - uniqueness-checked SEO content generation."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = load_config(config_path)


def _registry(config: SeoforgeConfig) -> PublicationRegistry:
    return PublicationRegistry(
        config.snapshot_path,
        config.paths.sync_roots(),
        content_marker=config.registry.content_marker,
    )


@app.command()
def sync(ctx: typer.Context) -> None:
    """Rebuild the registry from the content trees."""
    config: SeoforgeConfig = ctx.obj
    count = _registry(config).sync()
    console.print(f"[green]Registry synced:[/green] {count} documents tracked")


@app.command()
def stats(ctx: typer.Context) -> None:
    """Show published documents and photo usage."""
    config: SeoforgeConfig = ctx.obj
    result = _registry(config).stats()

    table = Table(title="Registry")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Published documents", str(result.total_documents))
    table.add_row("Cover photos used", str(result.photos_used))
    table.add_row("Cover photos remaining", str(result.photos_remaining))
    console.print(table)

    if result.photos_remaining < 5:
        console.print("[yellow]Fewer than 5 catalog photos remain.[/yellow]")


@app.command()
def check(
    ctx: typer.Context,
    name: Annotated[Optional[str], typer.Argument(help="Neighborhood or location name.")] = None,
    qualifier: Annotated[
        Optional[str], typer.Argument(help="Borough (NYC) or state code.")
    ] = None,
    brief: Annotated[
        Optional[Path],
        typer.Option("--brief", "-b", help="Research brief whose title names the location."),
    ] = None,
) -> None:
    """Check whether a location has already been published."""
    config: SeoforgeConfig = ctx.obj
    registry = _registry(config)

    if brief is not None:
        errors = registry.check_brief_file(brief)
    elif name and qualifier:
        errors = registry.check_brief(name, qualifier)
    else:
        console.print("[red]Error:[/red] pass NAME and QUALIFIER, or --brief FILE")
        raise typer.Exit(2)

    if errors:
        for error in errors:
            console.print(f"[red]{error}[/red]")
        raise typer.Exit(1)
    console.print("[green]No duplicates found.[/green]")


@app.command()
def generate(
    ctx: typer.Context,
    topic: Annotated[str, typer.Option("--topic", "-t", help="Article topic.")],
    keyword: Annotated[str, typer.Option("--keyword", "-k", help="Target keyword.")],
    intent: Annotated[
        SearchIntent, typer.Option("--intent", "-i", help="Search intent.")
    ] = SearchIntent.INFORMATIONAL,
    audience: Annotated[
        str, typer.Option("--audience", "-a", help="Target audience.")
    ] = "business professionals",
    template: Annotated[
        Optional[str], typer.Option("--template", help="Structural template id.")
    ] = None,
    location: Annotated[
        Optional[str], typer.Option("--location", "-l", help='e.g. "Park Slope, Brooklyn, NY".')
    ] = None,
    category: Annotated[
        Optional[str], typer.Option("--category", help="Photo catalog category.")
    ] = None,
    backend: Annotated[
        Optional[str], typer.Option("--backend", help="LLM backend: anthropic or ollama.")
    ] = None,
    model: Annotated[Optional[str], typer.Option("--model", help="Model override.")] = None,
    max_regenerations: Annotated[
        Optional[int], typer.Option("--max-regenerations", help="Regeneration attempts.")
    ] = None,
) -> None:
    """Generate one article, write it, and record it in the registry."""
    config = merge_cli_overrides(
        ctx.obj, backend=backend, model=model, max_regenerations=max_regenerations
    )
    request = GenerationRequest(
        topic=topic,
        keyword=keyword,
        intent=intent,
        audience=audience,
        template_id=template,
        location=location,
        category=category,
    )

    try:
        pipeline = PublishPipeline.from_config(config)
        with console.status(f"Generating '{topic}'..."):
            outcome = pipeline.run(request)
    except SeoforgeError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    if not outcome.ok:
        console.print(
            f"[red]Generation failed ({outcome.result.error_type}):[/red] {outcome.result.error}"
        )
        raise typer.Exit(1)

    article = outcome.result.article
    console.print(f"[green]Wrote[/green] {outcome.path}")
    console.print(f"  Title: {article.title}")
    console.print(f"  Words: {article.word_count}")
    console.print(f"  Uniqueness: {article.uniqueness_score * 100:.1f}%")
    console.print(f"  Quality: {article.quality_score * 100:.1f}%")
    console.print(f"  Status: {'published' if outcome.published else 'review'}")
    for warning in outcome.warnings:
        console.print(f"  [yellow]Warning:[/yellow] {warning}")


@app.command()
def batch(
    ctx: typer.Context,
    calendar: Annotated[
        Optional[Path], typer.Option("--calendar", help="Content calendar JSON file.")
    ] = None,
    max_items: Annotated[
        Optional[int], typer.Option("--max-items", "-n", help="Items to process this run.")
    ] = None,
    delay: Annotated[
        Optional[float], typer.Option("--delay", help="Seconds between items.")
    ] = None,
    auto_publish: Annotated[
        bool,
        typer.Option("--auto-publish", help="Publish items above the threshold without review."),
    ] = False,
) -> None:
    """Generate pending items from the content calendar."""
    config = merge_cli_overrides(
        ctx.obj,
        calendar_file=str(calendar) if calendar else None,
        max_items=max_items,
        delay=delay,
        require_review=False if auto_publish else None,
    )
    report = PipelineReport()

    try:
        pipeline = PublishPipeline.from_config(config)
    except SeoforgeError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    entry = BatchRunner(pipeline, Path(config.paths.calendar_file)).run(report)

    console.print(
        f"Processed {entry.total_processed}: "
        f"[green]{entry.successful} successful[/green], [red]{entry.failed} failed[/red]"
    )
    for result in entry.results:
        if result.success:
            console.print(f"  - {result.topic} ({result.slug}, {result.score * 100:.1f}%)")
    if report.has_errors or report.warnings:
        console.print(escape(report.summary()))
    if entry.failed:
        raise typer.Exit(1)


def _print_validation(result: FileValidationResult) -> None:
    mark = "[green]PASS[/green]" if result.passed else "[red]FAIL[/red]"
    console.print(f"{mark} {result.file} ({result.score * 100:.0f}%)")
    for item in result.checks:
        if not item.passed:
            console.print(escape(f"    [{item.severity}] {item.name}: {item.message}"))


@app.command()
def validate(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Markdown file or directory.", exists=True)],
) -> None:
    """Run the SEO checklist over a file or directory."""
    config: SeoforgeConfig = ctx.obj
    validator = ContentFileValidator()
    validator.load_corpus(read_corpus(config.paths.root_paths()))

    results = validator.validate_directory(path) if path.is_dir() else [validator.validate_file(path)]
    for result in results:
        _print_validation(result)

    failed = sum(1 for r in results if not r.passed)
    console.print(f"{len(results) - failed}/{len(results)} files passed")
    if failed:
        raise typer.Exit(1)


@app.command()
def photo(
    ctx: typer.Context,
    location: Annotated[str, typer.Argument(help='e.g. "Park Slope, Brooklyn, NY".')],
    reserve: Annotated[
        bool, typer.Option("--reserve", help="Mark the photo used in the registry.")
    ] = False,
) -> None:
    """Pick a cover photo for a location."""
    config: SeoforgeConfig = ctx.obj
    registry = _registry(config)
    allocator = PhotoAllocator.from_config(registry, config.photos)

    allocation = allocator.allocate(LocationContext.from_location(location))
    console.print(f"{allocation.photo_id} ({allocation.category})")
    console.print(allocation.url)
    if allocation.degraded:
        console.print("[yellow]Warning: every catalog photo is used; this one repeats.[/yellow]")
    if reserve:
        registry.reserve(allocation.photo_id)
        console.print("[green]Reserved.[/green]")

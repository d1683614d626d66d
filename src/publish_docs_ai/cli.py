"""
CLI for publish-docs-ai.

Provides commands for publishing ready Notion pages, inspecting the queue,
re-translating existing artifacts, and viewing the run log.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from publish_docs_ai.config import Settings, create_default_config, load_config
from publish_docs_ai.database import Database
from publish_docs_ai.errors import FetchError, RecordValidationError, WriteError
from publish_docs_ai.log import setup_logging

app = typer.Typer(
    name="publish-docs",
    help="Publish Notion pages as multilingual Hugo content.",
    add_completion=False,
)

console = Console()


def _display_config(settings: Settings, config_path: Path | None, dry_run: bool) -> None:
    """Display the configuration being used."""
    config_source = str(config_path) if config_path else "default (config.yaml or built-in)"

    config_table = Table(show_header=False, box=None, padding=(0, 2))
    config_table.add_column("Key", style="cyan")
    config_table.add_column("Value", style="green")

    config_table.add_row("Config file", config_source)
    config_table.add_row("Project", settings.project.name)
    config_table.add_row("", "")
    config_table.add_row("[bold]Notion[/bold]", "")
    config_table.add_row(
        "  API key", "configured" if settings.notion.api_key else "[red]not set[/red]"
    )
    config_table.add_row("  Database", settings.notion.database_id or "[red]not set[/red]")
    config_table.add_row(
        "  Status", f"{settings.notion.ready_value} -> {settings.notion.published_value}"
    )
    config_table.add_row("", "")
    config_table.add_row("Translation", "", style="bold cyan")
    config_table.add_row(
        "  Provider", f"{settings.translation.provider.value} ({settings.translation.model})"
    )
    config_table.add_row("  Source language", settings.translation.source_language)
    config_table.add_row("  Target languages", ", ".join(settings.translation.target_languages))
    config_table.add_row(
        "  API key", "configured" if settings.translation.api_key else "[red]not set[/red]"
    )
    config_table.add_row("", "")
    config_table.add_row("Content dir", str(settings.paths.content_dir))
    if dry_run:
        config_table.add_row("Mode", "dry run (status left unchanged)", style="yellow")

    console.print(
        Panel(config_table, title="[bold blue]publish-docs-ai[/bold blue]", border_style="blue")
    )


def get_settings(config_path: Path | None = None) -> Settings:
    """Load settings from config file or defaults."""
    if config_path and not config_path.exists():
        console.print(f"[red]Config file not found: {config_path}[/red]")
        raise typer.Exit(1)
    return load_config(config_path)


def get_database(settings: Settings) -> Database:
    """Get database instance."""
    return Database(settings.paths.database_path)


def _require_credentials(settings: Settings, *, translation: bool = True) -> None:
    if not settings.notion.api_key or not settings.notion.database_id:
        console.print("[red]Notion API key or database ID not configured[/red]")
        console.print("Set NOTION_API_KEY and NOTION_DATABASE_ID or add them to the config")
        raise typer.Exit(1)
    if translation and not settings.translation.api_key:
        console.print("[red]Translation API key not configured[/red]")
        console.print("Set GEMINI_API_KEY (or OPENROUTER_API_KEY) or add it to the config")
        raise typer.Exit(1)


def _create_translator(settings: Settings):
    """Build the fragment translator from the translation settings."""
    from publish_docs_ai.llm import create_llm_provider
    from publish_docs_ai.translation import FragmentTranslator

    tc = settings.translation
    provider = create_llm_provider(
        tc.provider.value,
        api_key=tc.api_key,
        model=tc.model,
        base_url=tc.base_url,
        timeout=tc.timeout_seconds,
        max_retries=tc.max_retries,
    )
    translator = FragmentTranslator(
        provider,
        source_language=tc.source_language,
        temperature=tc.temperature,
        max_tokens=tc.max_tokens,
        timeout=tc.timeout_seconds,
    )
    return provider, translator


@app.command()
def publish(
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Write artifacts but do not update the Notion status"
    ),
    target: list[str] | None = typer.Option(
        None, "--target", "-t", help="Target language (repeatable, overrides config)"
    ),
) -> None:
    """Publish every page marked ready in Notion."""
    settings = get_settings(config)
    if target:
        settings.translation.target_languages = list(target)
    setup_logging(settings.logging, console)
    _require_credentials(settings)
    _display_config(settings, config, dry_run)

    from publish_docs_ai.export import HugoExporter
    from publish_docs_ai.images import ImageDownloader
    from publish_docs_ai.notion import MarkdownRenderer, NotionClient
    from publish_docs_ai.publish import PipelineConfig, ProgressInfo, PublishPipeline

    db = get_database(settings)
    provider, translator = _create_translator(settings)

    async def run_pipeline():
        async with (
            NotionClient(settings.notion) as notion,
            ImageDownloader(
                settings.paths.images_dir,
                url_prefix=settings.images.url_prefix,
                timeout=settings.images.timeout_seconds,
            ) as images,
        ):
            pipeline = PublishPipeline(
                db=db,
                notion=notion,
                renderer=MarkdownRenderer(images if settings.images.download else None),
                exporter=HugoExporter(settings.paths.content_dir, settings.paths.section),
                translator=translator,
                config=PipelineConfig(
                    source_lang=settings.translation.source_language,
                    target_langs=settings.translation.target_languages,
                    dry_run=dry_run,
                ),
                concurrent_fragments=settings.translation.concurrent_fragments,
            )

            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                TimeElapsedColumn(),
                console=console,
            ) as progress:
                task = progress.add_task("Querying Notion...", total=None)

                def on_progress(info: ProgressInfo) -> None:
                    detail = f" ({info.detail})" if info.detail else ""
                    progress.update(
                        task, description=f"{info.slug}: {info.stage_display}{detail}"
                    )

                try:
                    return await pipeline.run(progress_callback=on_progress)
                finally:
                    await provider.aclose()

    try:
        summary = asyncio.run(run_pipeline())
    except FetchError as e:
        console.print(f"[red]Could not query Notion: {e}[/red]")
        raise typer.Exit(1) from None
    finally:
        db.close()

    if not summary.found:
        console.print("[yellow]No pages ready to publish[/yellow]")
        return

    table = Table(title="Publish Results")
    table.add_column("Slug", style="cyan")
    table.add_column("Title")
    table.add_column("Artifacts", justify="right")
    table.add_column("Degraded", justify="right")
    table.add_column("Status")

    for result in summary.results:
        degraded = sum(result.fragments_degraded.values())
        if result.status_updated:
            status_text = "[green]published[/green]"
        elif result.succeeded:
            status_text = "[yellow]written (dry run)[/yellow]"
        else:
            status_text = "[red]failed[/red]"
        table.add_row(
            result.slug,
            result.title,
            str(len(result.written)),
            f"[yellow]{degraded}[/yellow]" if degraded else "0",
            status_text,
        )

    console.print(table)

    for result in summary.results:
        for error in result.errors:
            language = f" [{error['language']}]" if error.get("language") else ""
            console.print(
                f"  [red]• {result.slug} {error.get('stage')}{language}: "
                f"{error.get('error')}[/red]"
            )

    console.print(
        f"\n[bold]{summary.published} published, {summary.failed} failed, "
        f"{summary.skipped} skipped[/bold]"
    )


@app.command()
def pending(
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """List pages currently marked ready in Notion."""
    settings = get_settings(config)
    setup_logging(settings.logging, console)
    _require_credentials(settings, translation=False)

    from publish_docs_ai.notion import NotionClient, record_to_document

    async def query():
        async with NotionClient(settings.notion) as notion:
            return await notion.query_ready_pages()

    try:
        pages = asyncio.run(query())
    except FetchError as e:
        console.print(f"[red]Could not query Notion: {e}[/red]")
        raise typer.Exit(1) from None

    if not pages:
        console.print("[yellow]No pages ready to publish[/yellow]")
        return

    table = Table(title="Ready to Publish")
    table.add_column("Title", style="cyan")
    table.add_column("Slug")
    table.add_column("Date")
    table.add_column("Tags", style="magenta")

    for page in pages:
        try:
            document = record_to_document(
                page, settings.notion, settings.translation.source_language
            )
        except RecordValidationError as e:
            table.add_row(f"[red]{e}[/red]", "", "", "")
            continue
        tags = document.front_matter.get("tags", [])
        table.add_row(
            document.title,
            document.slug,
            str(document.front_matter.get("date", "")),
            ", ".join(tags) if isinstance(tags, list) else str(tags),
        )

    console.print(table)


@app.command()
def retranslate(
    source_file: Path = typer.Argument(..., help="Source-language artifact to translate again"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
    target: list[str] | None = typer.Option(
        None, "--target", "-t", help="Target language (repeatable, overrides config)"
    ),
) -> None:
    """Re-translate an existing artifact without touching Notion."""
    settings = get_settings(config)
    setup_logging(settings.logging, console)

    if not source_file.exists():
        console.print(f"[red]File not found: {source_file}[/red]")
        raise typer.Exit(1)
    if not settings.translation.api_key:
        console.print("[red]Translation API key not configured[/red]")
        raise typer.Exit(1)

    from publish_docs_ai.document import parse_markdown
    from publish_docs_ai.export import HugoExporter
    from publish_docs_ai.translation import BodyTranslator

    source_lang = settings.translation.source_language
    suffix = f".{source_lang}.md"
    if not source_file.name.endswith(suffix):
        console.print(f"[red]Expected a file named <slug>{suffix}[/red]")
        raise typer.Exit(1)
    slug = source_file.name[: -len(suffix)]

    try:
        document = parse_markdown(
            source_file.read_text(encoding="utf-8"), slug=slug, language=source_lang
        )
    except ValueError as e:
        console.print(f"[red]Could not parse {source_file}: {e}[/red]")
        raise typer.Exit(1) from None

    exporter = HugoExporter(settings.paths.content_dir, settings.paths.section)
    provider, translator = _create_translator(settings)
    body_translator = BodyTranslator(translator, settings.translation.concurrent_fragments)
    languages = list(target) if target else settings.translation.target_languages

    async def translate_all():
        try:
            for language in languages:
                with console.status(f"Translating to {language}..."):
                    title = await translator.translate_title(document.title, language)
                    body = await body_translator.translate_body(document.body, language)
                result = exporter.export(document.translated(title.text, body.body, language))
                note = (
                    f" [yellow]({body.fragments_degraded}/{body.fragments_total} "
                    "fragments kept)[/yellow]"
                    if body.fragments_degraded
                    else ""
                )
                console.print(f"  [green]✓[/green] {result.output_path}{note}")
        finally:
            await provider.aclose()

    try:
        asyncio.run(translate_all())
    except WriteError as e:
        console.print(f"[red]Could not write translation: {e}[/red]")
        raise typer.Exit(1) from None


@app.command()
def logs(
    slug: str | None = typer.Option(None, "--slug", "-s", help="Filter by slug"),
    level: str | None = typer.Option(None, "--level", "-l", help="Filter by level"),
    run_id: str | None = typer.Option(None, "--run", "-r", help="Filter by run ID"),
    limit: int = typer.Option(50, "--limit", "-n", help="Max entries to show"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """View the publish run log."""
    settings = get_settings(config)
    db = get_database(settings)

    entries = db.get_logs(run_id=run_id, level=level, slug=slug, limit=limit)
    db.close()

    if not entries:
        console.print("[yellow]No log entries found[/yellow]")
        return

    table = Table(title="Processing Logs")
    table.add_column("Time", style="dim")
    table.add_column("Level")
    table.add_column("Stage", style="cyan")
    table.add_column("Message")
    table.add_column("Slug")

    for entry in entries:
        level_style = {
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
        }.get(entry["level"], "white")

        table.add_row(
            str(entry["created_at"])[:19],
            f"[{level_style}]{entry['level']}[/{level_style}]",
            entry["stage"] or "",
            (entry["message"] or "")[:80],
            entry["slug"] or "",
        )

    console.print(table)


@app.command()
def history(
    slug: str | None = typer.Option(None, "--slug", "-s", help="Filter by slug"),
    limit: int = typer.Option(30, "--limit", "-n", help="Max entries to show"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Show written artifacts and totals."""
    settings = get_settings(config)
    db = get_database(settings)

    publications = db.get_publications(slug=slug, limit=limit)
    stats_data = db.get_statistics()
    db.close()

    console.print(
        Panel(
            f"""
Runs: {stats_data["runs"]}
Artifacts written: {stats_data["artifacts"]}
  - Partially translated: {stats_data["partially_translated"]}
Errors logged: {stats_data["errors"]}
""",
            title="Statistics",
        )
    )

    if not publications:
        console.print("[yellow]No artifacts recorded[/yellow]")
        return

    table = Table(title="Artifacts")
    table.add_column("Time", style="dim")
    table.add_column("Slug", style="cyan")
    table.add_column("Lang")
    table.add_column("Fragments", justify="right")
    table.add_column("Path")

    for pub in publications:
        fragments = (
            f"{pub.fragments_total - pub.fragments_degraded}/{pub.fragments_total}"
            if pub.fragments_total
            else "-"
        )
        table.add_row(
            str(pub.created_at)[:19],
            pub.slug,
            pub.language,
            f"[yellow]{fragments}[/yellow]" if pub.fragments_degraded else fragments,
            pub.output_path,
        )

    console.print(table)


@app.command()
def init(
    output_path: Path = typer.Option(
        Path("config.yaml"),
        "--output",
        "-o",
        help="Output path for config file",
    ),
) -> None:
    """Generate a default configuration file."""
    if output_path.exists():
        overwrite = typer.confirm(f"{output_path} already exists. Overwrite?")
        if not overwrite:
            raise typer.Abort()

    create_default_config(output_path)
    console.print(f"[green]Created config file: {output_path}[/green]")
    console.print("\nSet NOTION_API_KEY, NOTION_DATABASE_ID and GEMINI_API_KEY, then run:")
    console.print("  publish-docs publish --config config.yaml")


def main() -> None:
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()

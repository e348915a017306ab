"""
CLI for translate-locales.

Provides commands for importing documents, translating them into the
configured locales, and inspecting stored locale instances and logs.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from translate_locales.config import Settings, create_default_config, load_config
from translate_locales.errors import TranslateLocalesError
from translate_locales.gateway import create_gateway_from_config
from translate_locales.hooks import register_collection_hooks
from translate_locales.log_setup import setup_logging
from translate_locales.store import DocumentStatus, DuckDBDocumentStore, WriteContext
from translate_locales.translation import LocaleState, TranslationPipeline

app = typer.Typer(
    name="translate-locales",
    help="Translate content documents into every configured locale.",
    add_completion=False,
)

console = Console()


def _display_config(settings: Settings, config_path: Path | None) -> None:
    """Display the configuration being used."""
    config_source = str(config_path) if config_path else "default (config.yaml or built-in)"
    translation = settings.translation

    config_table = Table(show_header=False, box=None, padding=(0, 2))
    config_table.add_column("Key", style="cyan")
    config_table.add_column("Value", style="green")

    config_table.add_row("Config file", config_source)
    config_table.add_row("Project", settings.project.name)
    config_table.add_row("Database", str(settings.paths.database_path))
    config_table.add_row("", "")
    config_table.add_row("Localization", "", style="bold cyan")
    config_table.add_row("  Locales", ", ".join(settings.localization.locale_codes))
    config_table.add_row("  Default locale", settings.localization.default_locale)
    config_table.add_row("", "")
    config_table.add_row("Translation", "", style="bold cyan")
    config_table.add_row("  Provider", translation.provider.value)
    if translation.fallback_provider:
        config_table.add_row(
            "  Fallback",
            f"{translation.fallback_provider.value} ({translation.fallback_model or 'default'})",
            style="yellow",
        )
    config_table.add_row(
        "  DeepL API", "configured" if translation.deepl_api_key else "[red]not set[/red]"
    )
    config_table.add_row(
        "  OpenRouter API",
        "configured" if translation.openrouter_api_key else "[red]not set[/red]",
    )

    console.print(
        Panel(config_table, title="[bold blue]translate-locales[/bold blue]", border_style="blue")
    )


def get_settings(config_path: Path | None = None) -> Settings:
    """Load settings from config file or defaults."""
    if config_path and config_path.exists():
        return load_config(config_path)
    return load_config()


def get_store(settings: Settings) -> DuckDBDocumentStore:
    """Get document store instance with logging attached."""
    store = DuckDBDocumentStore(settings.paths.database_path)
    setup_logging(settings.logging, store=store, console=console)
    return store


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]Error: {message}[/red]")
    return typer.Exit(1)


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
    console.print("\nEdit the locales and collections, set DEEPL_API_KEY, then run:")
    console.print("  translate-locales import page.json --collection cases --config config.yaml")


@app.command(name="import")
def import_documents(
    input_file: Path = typer.Argument(..., help="JSON file with one document or a list"),
    collection: str = typer.Option(..., "--collection", help="Collection key"),
    locale: str | None = typer.Option(None, "--locale", "-l", help="Locale (default locale)"),
    publish: bool = typer.Option(False, "--publish", help="Store as published"),
    auto_translate: bool = typer.Option(
        False, "--auto-translate", help="Run collection hooks (slug, translation) on import"
    ),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Import documents into the store."""
    settings = get_settings(config)
    store = get_store(settings)
    locale = locale or settings.localization.default_locale

    if not input_file.exists():
        raise _fail(f"File not found: {input_file}")

    try:
        payload = json.loads(input_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise _fail(f"Invalid JSON in {input_file}: {e}") from None

    documents = payload if isinstance(payload, list) else [payload]
    status = DocumentStatus.PUBLISHED if publish else DocumentStatus.DRAFT

    async def run_import() -> list[str]:
        gateway = None
        if auto_translate:
            gateway = create_gateway_from_config(settings.translation)
            pipeline = TranslationPipeline(store, gateway, settings.localization)
            register_collection_hooks(
                store,
                pipeline,
                settings.collections,
                settings.translation.settings.to_settings(),
            )

        imported = []
        try:
            for document in documents:
                created = await store.create(
                    collection,
                    document,
                    locale=locale,
                    status=status,
                    context=WriteContext(skip_auto_processing=not auto_translate),
                    doc_id=document.get("id"),
                )
                imported.append(created["id"])
        finally:
            if gateway is not None:
                await gateway.aclose()
        return imported

    try:
        imported = asyncio.run(run_import())
    except TranslateLocalesError as e:
        raise _fail(str(e)) from None

    console.print(
        f"[green]Imported {len(imported)} document(s) into {collection} ({locale})[/green]"
    )
    for doc_id in imported:
        console.print(f"  {doc_id}")


@app.command()
def translate(
    collection: str = typer.Argument(..., help="Collection key"),
    doc_id: str = typer.Argument(..., help="Document ID"),
    locales: list[str] | None = typer.Option(
        None, "--locale", "-l", help="Target locale (repeatable; default: all)"
    ),
    source: str | None = typer.Option(None, "--source", "-s", help="Source locale"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Translate one document into the configured locales."""
    settings = get_settings(config)
    _display_config(settings, config)

    try:
        options = settings.collection(collection)
    except KeyError as e:
        raise _fail(str(e.args[0])) from None
    if not options.fields:
        raise _fail(f"Collection '{collection}' has no translatable fields configured")

    store = get_store(settings)

    async def run_pipeline():
        gateway = create_gateway_from_config(settings.translation)
        try:
            pipeline = TranslationPipeline(store, gateway, settings.localization)
            return await pipeline.translate_by_id(
                collection,
                doc_id,
                options.fields,
                target_locales=locales or None,
                settings=settings.translation.settings.to_settings(),
                source_locale=source,
            )
        finally:
            await gateway.aclose()

    try:
        report = asyncio.run(run_pipeline())
    except TranslateLocalesError as e:
        raise _fail(str(e)) from None

    if not report.outcomes:
        console.print("[yellow]No target locales to translate into[/yellow]")
        return

    table = Table(title=f"{collection}/{doc_id} from {report.source_locale}")
    table.add_column("Locale", style="cyan")
    table.add_column("Result")
    table.add_column("Action")
    table.add_column("Error", style="red")

    for outcome in report.outcomes:
        result = (
            "[green]committed[/green]"
            if outcome.state == LocaleState.COMMITTED
            else "[red]failed[/red]"
        )
        table.add_row(outcome.locale, result, outcome.action or "", (outcome.error or "")[:60])

    console.print(table)
    console.print(f"[dim]Elapsed: {report.elapsed_ms:.0f}ms[/dim]")

    if report.failed:
        raise typer.Exit(1)


@app.command()
def show(
    collection: str = typer.Argument(..., help="Collection key"),
    doc_id: str = typer.Argument(..., help="Document ID"),
    locale: str | None = typer.Option(None, "--locale", "-l", help="Locale (default locale)"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Show one locale instance of a document."""
    settings = get_settings(config)
    store = get_store(settings)
    locale = locale or settings.localization.default_locale

    try:
        document = asyncio.run(store.find_by_id(collection, doc_id, locale=locale))
    except TranslateLocalesError as e:
        raise _fail(str(e)) from None

    if document is None:
        console.print(f"[yellow]No document {doc_id} in {collection} at locale {locale}[/yellow]")
        raise typer.Exit(1)

    console.print(
        Syntax(json.dumps(document, indent=2, ensure_ascii=False), "json", word_wrap=True)
    )


@app.command()
def status(
    collection: str | None = typer.Option(None, "--collection", help="Filter by collection"),
    locale: str | None = typer.Option(None, "--locale", "-l", help="Filter by locale"),
    limit: int = typer.Option(100, "--limit", "-n", help="Max entries to show"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Show stored documents per locale."""
    settings = get_settings(config)
    store = get_store(settings)

    rows = store.list_documents(collection=collection, locale=locale, limit=limit)
    if not rows:
        console.print("[yellow]No documents in store[/yellow]")
        return

    locale_counts: dict[str, int] = {}
    for row in rows:
        locale_counts[row["locale"]] = locale_counts.get(row["locale"], 0) + 1

    console.print(
        Panel(
            "\n".join(f"{k}: {v}" for k, v in sorted(locale_counts.items())),
            title="Documents per Locale",
        )
    )

    table = Table(title="Documents")
    table.add_column("Collection", style="cyan")
    table.add_column("ID", style="dim")
    table.add_column("Locale")
    table.add_column("Status")
    table.add_column("Updated", style="dim")

    for row in rows:
        status_style = "green" if row["status"] == DocumentStatus.PUBLISHED.value else "yellow"
        table.add_row(
            row["collection"],
            row["doc_id"],
            row["locale"],
            f"[{status_style}]{row['status']}[/{status_style}]",
            str(row["updated_at"])[:19],
        )

    console.print(table)


@app.command()
def logs(
    document_id: str | None = typer.Option(None, "--doc", "-d", help="Filter by document"),
    level: str | None = typer.Option(None, "--level", help="Filter by level"),
    limit: int = typer.Option(50, "--limit", "-n", help="Max entries to show"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """View processing logs."""
    settings = get_settings(config)
    store = get_store(settings)

    logs_data = store.get_logs(level=level, document_id=document_id, limit=limit)
    if not logs_data:
        console.print("[yellow]No log entries found[/yellow]")
        return

    table = Table(title="Processing Logs")
    table.add_column("Time", style="dim")
    table.add_column("Level")
    table.add_column("Stage", style="cyan")
    table.add_column("Message")
    table.add_column("Doc", justify="right")

    for entry in logs_data:
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
            entry["document_id"] or "",
        )

    console.print(table)


def main() -> None:
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()

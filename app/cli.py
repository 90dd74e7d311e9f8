"""Command line entry points for journal enrichment.

Usage:
    python -m app.cli enrich "Watch Wicked for Good"
    python -m app.cli enrich "Dinner at Nobu" --city Malibu --category restaurants
    python -m app.cli batch entries.jsonl --output results.jsonl
"""

import asyncio
import json
import uuid
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError

from journalmate.enrichment.enrichment_service import JournalEnrichmentService
from journalmate.enrichment.models import EntryLocation, JournalEntryForEnrichment
from journalmate.utils.config_loader import load_settings
from journalmate.utils.logger import LoggerManager

app = typer.Typer(help="Enrich free-text journal entries with web metadata.")

cli_logger = LoggerManager.get_logger(name="cli", use_json=True)


def _build_service(config: Optional[Path]) -> JournalEnrichmentService:
    settings = load_settings(config)
    LoggerManager.set_level(settings.log_level)
    return JournalEnrichmentService(settings)


def _read_entries(path: Path) -> List[JournalEntryForEnrichment]:
    """Parse a JSON-lines file of entries (camelCase or snake_case keys)."""
    entries = []
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                entries.append(JournalEntryForEnrichment.model_validate(json.loads(line)))
            except (json.JSONDecodeError, ValidationError) as e:
                raise typer.BadParameter(f"{path}:{line_no}: invalid entry ({e})")
    return entries


@app.command()
def enrich(
    text: str = typer.Argument(..., help="Journal entry text."),
    category: str = typer.Option("notes", help="Journal category label."),
    city: Optional[str] = typer.Option(None, help="City hint for venues."),
    venue: Optional[str] = typer.Option(None, help="Explicit title / venue name (skips extraction)."),
    force: bool = typer.Option(False, "--force", help="Bypass the cache."),
    config: Optional[Path] = typer.Option(None, help="Path to an enrichment YAML config."),
):
    """
    Enriches a single journal entry and prints the JSON result.
    """
    entry = JournalEntryForEnrichment(
        id=str(uuid.uuid4()),
        text=text,
        category=category,
        venue_name=venue,
        location=EntryLocation(city=city) if city else None,
    )
    service = _build_service(config)
    result = asyncio.run(service.enrich_journal_entry(entry, force_refresh=force))
    cli_logger.info(
        "cli.enrich",
        extra={"extra_data": {"entry_id": entry.id, "success": result.success}},
    )
    typer.echo(result.model_dump_json(by_alias=True, exclude_none=True, indent=2))
    if not result.success:
        raise typer.Exit(code=1)


@app.command()
def batch(
    input_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON-lines file of entries."),
    force: bool = typer.Option(False, "--force", help="Ignore freshness and cache."),
    output: Optional[Path] = typer.Option(None, help="Write results as JSON lines here instead of stdout."),
    config: Optional[Path] = typer.Option(None, help="Path to an enrichment YAML config."),
):
    """
    Enriches every entry in a JSON-lines file.
    """
    entries = _read_entries(input_file)
    service = _build_service(config)
    results = asyncio.run(service.enrich_batch(entries, force_refresh=force))

    lines = [r.model_dump_json(by_alias=True, exclude_none=True) for r in results]
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")
    else:
        for line in lines:
            typer.echo(line)

    success_count = sum(1 for r in results if r.success)
    cli_logger.info(
        "cli.batch",
        extra={"extra_data": {"input": str(input_file), "submitted": len(entries), "succeeded": success_count}},
    )
    typer.echo(f"✅ {success_count}/{len(results)} entries enriched ({len(entries) - len(results)} already fresh)", err=True)


if __name__ == "__main__":
    app()

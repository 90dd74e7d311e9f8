"""Tests for the typer CLI."""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from app.cli import app
from journalmate.enrichment.enrichment_service import JournalEnrichmentService
from journalmate.enrichment.models import ProviderID

runner = CliRunner()


@pytest.fixture
def cli_service(settings, fake_adapter, responses):
    async def found(entity, category):
        return responses.success(entity.title)

    web = fake_adapter(ProviderID.WEB_SEARCH, found)
    service = JournalEnrichmentService(settings=settings, adapters={ProviderID.WEB_SEARCH: web})
    with patch("app.cli._build_service", return_value=service):
        yield web


def test_enrich_prints_result(cli_service):
    result = runner.invoke(app, ["enrich", "Dinner at Nobu", "--city", "Malibu", "--category", "restaurants"])

    assert result.exit_code == 0, result.output
    body = json.loads(result.stdout)
    assert body["success"] is True
    assert body["enrichedData"]["venueName"] == "Nobu"
    assert body["enrichedData"]["location"]["city"] == "Malibu"
    assert cli_service.calls == [("Nobu", "restaurants")]


def test_enrich_with_explicit_venue(cli_service):
    result = runner.invoke(app, ["enrich", "so good", "--venue", "Carbone"])

    assert result.exit_code == 0, result.output
    assert cli_service.calls == [("Carbone", "notes")]


def test_enrich_failure_exits_nonzero(cli_service):
    result = runner.invoke(app, ["enrich", "just thinking about life today"])

    assert result.exit_code == 1
    body = json.loads(result.stdout)
    assert body["success"] is False
    assert body["error"] == "No venue name detected"
    assert "enrichedData" not in body


def test_batch_writes_output_file(cli_service, tmp_path):
    input_file = tmp_path / "entries.jsonl"
    input_file.write_text(
        '{"id": "a", "text": "Dinner at Nobu in Malibu", "category": "restaurants"}\n'
        "\n"
        '{"id": "b", "text": "x", "venue_name": "Carbone"}\n',
        encoding="utf-8",
    )
    output_file = tmp_path / "out" / "results.jsonl"

    result = runner.invoke(app, ["batch", str(input_file), "--output", str(output_file)])

    assert result.exit_code == 0, result.output
    lines = output_file.read_text(encoding="utf-8").splitlines()
    assert {json.loads(line)["entryId"] for line in lines} == {"a", "b"}
    assert "2/2 entries enriched" in result.output


def test_batch_rejects_invalid_line(cli_service, tmp_path):
    input_file = tmp_path / "entries.jsonl"
    input_file.write_text('{"id": "a", "text": "ok"}\n{not json}\n', encoding="utf-8")

    result = runner.invoke(app, ["batch", str(input_file)])

    assert result.exit_code == 2
    assert cli_service.calls == []


def test_batch_missing_file(cli_service, tmp_path):
    result = runner.invoke(app, ["batch", str(tmp_path / "missing.jsonl")])
    assert result.exit_code == 2

from __future__ import annotations

import base64
import json
from pathlib import Path

import typer
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from ..core.eco_score import compute_scores, derive_badges, is_perfect_score
from ..core.errors import (
    IdentifyTimeoutError,
    InvalidImageError,
    MissingImageError,
    SustainifyError,
)
from ..core.identify import identify_sync
from ..core.logging_utils import setup_logging
from ..core.provider_config import identify_timeout, provider_config_loader, use_mocks
from ..core.records import RecordLog, make_record
from ..core.reporter import CSV_FILENAME, write_records_csv
from ..core.types import QuizInputs

app = typer.Typer()


@app.command("identify")
def identify(
    image: Path,
    provider: str = None,
    timeout: float = None,
) -> None:
    """Identify the item in an image file and print the result JSON."""
    setup_logging()
    if not image.exists():
        typer.echo(f"❌ Image not found: {image}", err=True)
        raise typer.Exit(2)
    encoded = base64.b64encode(image.read_bytes()).decode("ascii")

    try:
        adapter = provider_config_loader.create_adapter(provider)
    except ValueError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(2)

    try:
        result = identify_sync(adapter, encoded, timeout=timeout or identify_timeout())
    except (MissingImageError, InvalidImageError) as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(2)
    except IdentifyTimeoutError:
        typer.echo("⏱️  Identification timed out. Try again.", err=True)
        raise typer.Exit(3)
    except SustainifyError as e:
        typer.echo(f"❌ Identification failed: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(json.dumps(result, indent=2, ensure_ascii=False))


@app.command("quiz:score")
def quiz_score(
    name: str = "",
    shower_min: float = 10,
    uses_bucket: bool = False,
    hours_devices: float = 6,
    num_led: float = 5,
    ac_hours: float = 1,
    disposable_count: float = 2,
    uses_reusable: bool = False,
    recycles: bool = False,
    record: bool = True,
) -> None:
    """Compute the eco score for a set of quiz answers."""
    inputs = QuizInputs(
        name=name,
        shower_min=shower_min,
        uses_bucket=uses_bucket,
        hours_devices=hours_devices,
        num_led=num_led,
        ac_hours=ac_hours,
        disposable_count=disposable_count,
        uses_reusable=uses_reusable,
        recycles=recycles,
    )
    scores = compute_scores(inputs)
    typer.echo(
        f"💧 Water {scores.water:g}  ⚡ Energy {scores.energy:g}  🗑️ Waste {scores.waste:g}"
    )
    typer.echo(f"🌍 Eco score: {scores.eco}")
    for badge in derive_badges(inputs):
        typer.echo(f"  {badge.icon} {badge.title} - {badge.subtitle}")
    if is_perfect_score(scores):
        typer.echo("🎉 Perfect score!")
    if record:
        RecordLog().append(make_record(inputs, scores))


@app.command("quiz:export")
def quiz_export(out: Path = typer.Argument(Path(CSV_FILENAME))) -> None:
    """Export the quiz record log as CSV."""
    records = RecordLog().load()
    path = write_records_csv(out, records)
    typer.echo(f"CSV written to {path} ({len(records)} record(s))")


@app.command("quiz:reset")
def quiz_reset() -> None:
    """Clear the quiz record log."""
    RecordLog().clear()
    typer.echo("Record log cleared")


@app.command("providers")
def list_providers() -> None:
    """List configured vision providers."""
    mock = use_mocks()
    default = provider_config_loader.default_provider
    for provider in provider_config_loader.list_providers(mock):
        status = "✅" if provider["available"] else "❌"
        marker = " (default)" if provider["id"] == default else ""
        typer.echo(f"  {status} {provider['id']}{marker} - {provider['model']}: {provider['description']}")


if __name__ == "__main__":
    app()

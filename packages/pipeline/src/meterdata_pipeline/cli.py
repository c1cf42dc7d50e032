"""
cli.py — Click CLI entrypoint for local CSV uploads.

Usage:
    meterdata-pipeline upload meters ./meters.csv --header-row
    meterdata-pipeline upload readings ./readings.csv.gz --gzip --password s3cret
    meterdata-pipeline schema readings
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import click
import structlog

from meterdata_shared.config import settings
from meterdata_shared.constants import EntityKind

log = structlog.get_logger(__name__)

KIND_CHOICE = click.Choice([k.value for k in EntityKind], case_sensitive=False)


@click.group()
@click.option(
    "--log-level",
    default=settings.log_level,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
def main(log_level: str) -> None:
    """meterdata CSV ingestion tools."""
    from meterdata_pipeline.utils.logging import configure_logging

    configure_logging(log_level=log_level)


@main.command()
@click.argument("kind", type=KIND_CHOICE)
@click.argument("csvfile", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--gzip", "compressed", is_flag=True, help="Payload is gzip-compressed.")
@click.option("--header-row", is_flag=True, help="Drop the first row before mapping.")
@click.option(
    "--password",
    envvar="CSV_UPLOAD_PASSWORD",
    default=None,
    help="Upload password (defaults to CSV_UPLOAD_PASSWORD).",
)
def upload(kind: str, csvfile: Path, compressed: bool, header_row: bool, password: str | None) -> None:
    """Run the upload pipeline for KIND against CSVFILE."""
    from meterdata_pipeline.ingest.pipeline import UploadRequest, build_pipeline

    request = UploadRequest(
        kind=EntityKind(kind.lower()),
        payload=csvfile.read_bytes(),
        password=password if password is not None else settings.csv_upload_password.get_secret_value(),
        is_compressed=compressed,
        has_header_row=header_row,
        filename=csvfile.name,
    )
    outcome = asyncio.run(build_pipeline().run(request))
    click.echo(json.dumps(outcome.to_envelope()))
    if outcome.batch is not None:
        click.echo(
            f"  {outcome.batch.records_loaded} loaded, "
            f"{outcome.batch.records_failed} failed ({outcome.batch.status})"
        )
    if not outcome.success:
        raise SystemExit(1)


@main.command()
@click.argument("kind", type=KIND_CHOICE)
def schema(kind: str) -> None:
    """Show the CSV column order expected for KIND."""
    from meterdata_pipeline.ingest.schemas import get_schema

    csv_schema = get_schema(kind.lower())
    click.echo(f"{csv_schema.kind.value} (v{csv_schema.version}):")
    for position, name in enumerate(csv_schema.fields, start=1):
        click.echo(f"  {position}. {name}")


if __name__ == "__main__":
    main()

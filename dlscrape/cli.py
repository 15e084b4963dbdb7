"""dlscrape CLI: look up license records and run the API server.

Usage:
    dlscrape fetch 12345                  # Extract one record (cached if seen)
    dlscrape fetch 12345 --refresh        # Ignore the cache entry
    dlscrape fetch 12345 --save           # Also store it in the database
    dlscrape serve                        # Start the REST API
    dlscrape cache list                   # Cached reference numbers
    dlscrape cache show 12345             # One cached record
    dlscrape cache remove 12345
    dlscrape cache clear
"""

from __future__ import annotations

import asyncio
import json
import logging

import click

from dlscrape.config import Settings, get_settings


def _configure_logging(settings: Settings, verbose: bool) -> None:
    log_level = (
        logging.DEBUG
        if verbose
        else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    )
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.group()
@click.version_option(package_name="dlscrape")
def cli() -> None:
    """dlscrape: driving-license record lookup."""


@cli.command()
@click.argument("reference_no")
@click.option(
    "--refresh", is_flag=True, help="Drop the cached record and scrape again."
)
@click.option("--save", is_flag=True, help="Store the record in the database.")
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def fetch(reference_no: str, refresh: bool, save: bool, verbose: bool) -> None:
    """Extract the license record for REFERENCE_NO and print it as JSON."""
    from dlscrape.common.exceptions import ExtractionError, RecordValidationError
    from dlscrape.driver.extractor import LicenseExtractor

    settings = get_settings()
    _configure_logging(settings, verbose)

    if not reference_no.strip():
        raise click.BadParameter("Reference number is required")

    async def _go() -> dict:
        extractor = LicenseExtractor(settings)
        if refresh:
            await extractor.invalidate(reference_no)
        record = await extractor.extract(reference_no)
        if save:
            from dlscrape.store.repository import LicenseStore

            async with LicenseStore.open(settings.DATABASE_PATH) as store:
                _, created = await store.upsert(record)
            click.echo(
                f"{'Saved' if created else 'Updated'} {record.reference_no} "
                f"in {settings.DATABASE_PATH}",
                err=True,
            )
        return record.to_json_dict()

    try:
        data = asyncio.run(_go())
    except ExtractionError as e:
        raise click.ClickException(str(e)) from e
    except RecordValidationError as e:
        raise click.ClickException(
            "Validation Error: " + "; ".join(e.errors)
        ) from e

    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@cli.command()
@click.option("--host", default=None, help="Host to bind (default: API_HOST).")
@click.option(
    "--port", default=None, type=int, help="Port to bind (default: API_PORT)."
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def serve(host: str | None, port: int | None, verbose: bool) -> None:
    """Start the REST API."""
    import uvicorn

    from dlscrape.web.app import create_app

    settings = get_settings()
    _configure_logging(settings, verbose)

    host = host or settings.API_HOST
    port = port or settings.API_PORT
    app = create_app(settings)

    click.echo(f"Starting web server at http://{host}:{port}")
    click.echo(f"Database: {settings.DATABASE_PATH.absolute()}")
    click.echo(f"Cache:    {settings.CACHE_PATH.absolute()}")

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info" if verbose else "warning",
    )


@cli.group()
def cache() -> None:
    """Inspect or edit the record cache file."""


def _record_cache():
    from dlscrape.driver.cache import RecordCache

    return RecordCache(get_settings().CACHE_PATH)


@cache.command("list")
def cache_list() -> None:
    """List cached reference numbers."""
    records = _record_cache().load()
    if not records:
        click.echo("Cache is empty.")
        return
    for reference_no, record in sorted(records.items()):
        name = record.personal_info.name or "-"
        click.echo(f"{reference_no}\t{name}")


@cache.command("show")
@click.argument("reference_no")
def cache_show(reference_no: str) -> None:
    """Print the cached record for REFERENCE_NO."""
    record = _record_cache().load().get(reference_no)
    if record is None:
        raise click.ClickException(f"{reference_no} is not cached")
    click.echo(json.dumps(record.to_json_dict(), indent=2, ensure_ascii=False))


@cache.command("remove")
@click.argument("reference_no")
def cache_remove(reference_no: str) -> None:
    """Drop REFERENCE_NO from the cache."""
    if not asyncio.run(_record_cache().remove(reference_no)):
        raise click.ClickException(f"{reference_no} is not cached")
    click.echo(f"Removed {reference_no}.")


@cache.command("clear")
@click.confirmation_option(prompt="Delete every cached record?")
def cache_clear() -> None:
    """Delete the cache file."""
    _record_cache().clear()
    click.echo("Cache cleared.")


def main() -> None:
    """Entry point for the ``dlscrape`` console script."""
    cli()

# src/itsm_source/cli.py
"""itsm-source Command Line Interface.

Entry point for the itsm-source CLI tool.
"""

import json
import uuid
from itertools import islice
from pathlib import Path

import typer
from pydantic import ValidationError

from itsm_source import __version__
from itsm_source.contracts import SourceError
from itsm_source.core.config import ConnectorSettings, load_settings
from itsm_source.core.logging import configure_logging, get_logger
from itsm_source.plugins.config_base import PluginConfigError
from itsm_source.plugins.context import PluginContext
from itsm_source.plugins.sources import TableSource, TableSourceConfig

app = typer.Typer(
    name="itsm-source",
    help="itsm-source: Read typed records from ServiceNow tables.",
    no_args_is_help=True,
)

logger = get_logger(__name__)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"itsm-source version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """itsm-source: Read typed records from ServiceNow tables."""
    pass


def _load_settings_or_exit(settings: str) -> ConnectorSettings:
    """Load settings, printing errors and exiting with code 1 on failure."""
    try:
        return load_settings(Path(settings))
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


def _check_plugin(config: ConnectorSettings) -> None:
    if config.datasource.plugin != TableSource.name:
        typer.echo(
            f"Error: Unknown source plugin '{config.datasource.plugin}'. "
            f"Available: {TableSource.name}",
            err=True,
        )
        raise typer.Exit(1)


@app.command()
def validate(
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """Validate settings and source configuration without contacting the API."""
    config = _load_settings_or_exit(settings)
    _check_plugin(config)

    try:
        source_cfg = TableSourceConfig.from_dict(config.datasource.options)
    except PluginConfigError as e:
        typer.echo(f"Source configuration error: {e}", err=True)
        raise typer.Exit(1) from None

    typer.echo("Configuration valid.")
    typer.echo(f"  Source: {config.datasource.plugin}")
    typer.echo(f"  Endpoint: {source_cfg.base_url()}")
    typer.echo(f"  Mode: {source_cfg.query_mode.value}")
    typer.echo(f"  Table: {source_cfg.table_name or '(none)'}")
    typer.echo(f"  Page size: {source_cfg.page_size}")
    typer.echo(f"  Retries: {config.retry.max_retries}")


@app.command()
def read(
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    limit: int | None = typer.Option(
        None,
        "--limit",
        "-n",
        min=1,
        help="Stop after this many records.",
    ),
) -> None:
    """Read the configured table and print one JSON object per record."""
    config = _load_settings_or_exit(settings)
    _check_plugin(config)
    configure_logging(config.logging.level, json_output=config.logging.format == "json")

    try:
        source = TableSource(dict(config.datasource.options), retry=config.retry)
    except PluginConfigError as e:
        typer.echo(f"Source configuration error: {e}", err=True)
        raise typer.Exit(1) from None

    ctx = PluginContext(run_id=uuid.uuid4().hex)
    count = 0
    try:
        source.on_start(ctx)
        for record in islice(source.load(ctx), limit):
            typer.echo(json.dumps(record))
            count += 1
        source.on_complete(ctx)
    except SourceError as e:
        logger.error("Read failed", run_id=ctx.run_id, records=count, error=str(e))
        typer.echo(f"Error reading table: {e}", err=True)
        raise typer.Exit(1) from None
    finally:
        source.close()

    logger.info("Read complete", run_id=ctx.run_id, records=count)


if __name__ == "__main__":
    app()

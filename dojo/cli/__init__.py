#!/usr/bin/env python3
"""
Dojo CLI
--------

Command-line interface for the local store and the snapshot importer.

Command Structure:
    - Setup (init)
    - Snapshots (import, export)
    - Maintenance (normalize, stats)

Usage:
    # Create or open the store
    dojo init

    # Merge a snapshot exported by another client
    dojo import ~/Downloads/dojo-export.json --timeout 30

    # Write this store as a snapshot
    dojo export exports/dojo.json --include-deleted

    # Remove legacy commitment entries
    dojo normalize
"""
import click
from pathlib import Path
from typing import Optional

from dojo.core.cli import setup_logger
from dojo.core.exceptions import ConfigError
from dojo.core.logging_manager import handle_cli_error
from dojo.core.paths import CONFIG_PATH, DB_PATH, LOG_DIR
from dojo.core.settings import ImportSettings
from dojo.database import DojoDB


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    default=str(DB_PATH),
    help="Path to database file",
)
@click.option(
    "--log-dir",
    type=click.Path(),
    default=str(LOG_DIR),
    help="Path to log directory",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(),
    default=str(CONFIG_PATH),
    help="Path to settings file (YAML)",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Show detailed errors and tracebacks",
)
@click.pass_context
def cli(ctx, db_path, log_dir, config_path, verbose):
    """Dojo local store and snapshot import"""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = Path(db_path)
    ctx.obj["log_dir"] = Path(log_dir)
    ctx.obj["config_path"] = Path(config_path)
    ctx.obj["verbose"] = verbose
    ctx.obj["logger"] = setup_logger(Path(log_dir), "cli")
    ctx.call_on_close(ctx.obj["logger"].close)

    try:
        ctx.obj["settings"] = ImportSettings.load(config_path)
    except ConfigError as e:
        handle_cli_error(ctx, e, "load_settings", {"config": config_path})


def get_db(ctx, normalize_legacy: Optional[bool] = None) -> DojoDB:
    """Get or create database instance from context."""
    if "db" not in ctx.obj:
        db = DojoDB(
            db_path=ctx.obj["db_path"],
            log_dir=ctx.obj["log_dir"],
            settings=ctx.obj["settings"],
            normalize_legacy=normalize_legacy,
        )
        ctx.obj["db"] = db
        ctx.call_on_close(db.dispose)
    return ctx.obj["db"]


# Import and register command modules
# These imports must come after CLI group definition
from .maintenance import init, normalize, stats  # noqa: E402
from .snapshot import export_snapshot, import_snapshot  # noqa: E402

cli.add_command(init)
cli.add_command(import_snapshot)
cli.add_command(export_snapshot)
cli.add_command(normalize)
cli.add_command(stats)


if __name__ == "__main__":
    cli(obj={})

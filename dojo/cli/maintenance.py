"""
Setup & Maintenance Commands
----------------------------

Commands:
    - init: Create or open the store
    - normalize: Remove legacy commitment entries
    - stats: Display entity counts
"""
import json
import click

from dojo.core.exceptions import DatabaseError
from dojo.core.logging_manager import handle_cli_error
from . import get_db


@click.command()
@click.pass_context
def init(ctx):
    """Create the database (or open an existing one)."""
    try:
        db = get_db(ctx)
        click.echo(f"✅ Database ready: {db.db_path}")

        report = db.last_normalization
        if report is not None and report.deleted:
            click.echo(f"  Removed {report.deleted} legacy entr(y/ies)")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "init")


@click.command()
@click.pass_context
def normalize(ctx):
    """Delete entries that still carry the legacy commitment kind."""
    try:
        db = get_db(ctx, normalize_legacy=False)
        click.echo("🧹 Removing legacy entries...")
        report = db.normalize_legacy_entries()

        click.echo("\n✅ Normalization complete:")
        click.echo(f"  • scanned: {report.scanned}")
        click.echo(f"  • deleted: {report.deleted}")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "normalize")


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print counts as JSON")
@click.pass_context
def stats(ctx, as_json):
    """Display entity counts per kind."""
    try:
        db = get_db(ctx)
        counts = db.get_stats()

        if as_json:
            click.echo(json.dumps(counts, indent=2))
            return

        click.echo("\n📊 Store Statistics")
        click.echo("=" * 40)
        for kind, numbers in counts.items():
            click.echo(
                f"  {kind:<12} {numbers['active']:>6} active"
                f"  {numbers['deleted']:>4} deleted"
            )

    except DatabaseError as e:
        handle_cli_error(ctx, e, "stats")

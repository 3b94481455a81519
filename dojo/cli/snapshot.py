"""
Snapshot Commands
-----------------

Commands:
    - import: Merge a client snapshot into the store
    - export: Write the store as a snapshot
"""
import json
import click

from dojo.core.exceptions import DatabaseError, ParseError
from dojo.core.logging_manager import handle_cli_error
from dojo.pipeline import SnapshotImporter
from . import get_db


@click.command("import")
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Overall time limit in seconds (default from settings)",
)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def import_snapshot(ctx, snapshot, timeout, as_json):
    """Merge a JSON snapshot into the local store."""
    try:
        db = get_db(ctx)
        if not as_json:
            click.echo(f"📥 Importing {snapshot}...")

        result = SnapshotImporter(db).import_file(snapshot, timeout=timeout)

        if as_json:
            click.echo(json.dumps(result.to_dict(), indent=2))
            return

        click.echo(f"\n✅ Import complete: {result.summary()}")
        report = result.to_dict()
        for label in ("created", "updated", "unchanged", "skipped"):
            if report[label]:
                counts = ", ".join(f"{k}: {v}" for k, v in report[label].items())
                click.echo(f"  • {label}: {counts}")
        if result.warnings:
            click.echo(f"\n⚠️  {len(result.warnings)} warning(s):")
            for warning in result.warnings:
                click.echo(f"  • {warning}")

    except (ParseError, DatabaseError) as e:
        handle_cli_error(ctx, e, "import_snapshot", {"snapshot": snapshot})


@click.command("export")
@click.argument("output", type=click.Path(dir_okay=False))
@click.option(
    "--include-deleted",
    is_flag=True,
    help="Include soft-deleted entities as tombstones",
)
@click.pass_context
def export_snapshot(ctx, output, include_deleted):
    """Export the local store as a JSON snapshot."""
    try:
        db = get_db(ctx)
        click.echo(f"📤 Exporting to {output}...")

        with db.session_scope() as session:
            stats = db.export_manager.export_to_file(
                session, output, include_deleted=include_deleted
            )

        click.echo("\n✅ Export complete:")
        for key in ("projects", "people", "entries", "commitments", "reflections"):
            click.echo(f"  • {key}: {stats[key]}")
        click.echo(f"  Written to {stats['output_path']}")

    except (DatabaseError, OSError) as e:
        handle_cli_error(ctx, e, "export_snapshot", {"output": output})

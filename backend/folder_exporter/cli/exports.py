"""Folder Exporter CLI - Export commands."""
import json
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.table import Table

from folder_exporter.config import settings
from folder_exporter.utils.normalize import format_size
from folder_exporter.utils.paths import resolve_path

app = typer.Typer()
console = Console()


def get_db_session():
    """Get a database session, creating tables on first use."""
    from folder_exporter.database import SessionLocal, init_db

    init_db()
    return SessionLocal()


def _fail(message: str):
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


@app.command()
def folder(
    folder_id: int = typer.Argument(..., help="Folder ID to export"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output zip path (default: current directory)"),
    no_children: bool = typer.Option(False, "--no-children", help="Exclude subfolders"),
    no_manifest: bool = typer.Option(False, "--no-manifest", help="Do not include manifest.csv"),
):
    """Export a folder as a zip archive."""
    from folder_exporter.services import build_export_pipeline
    from folder_exporter.services.archive import ArchiveError
    from folder_exporter.services.export_pipeline import artifact_base_name
    from folder_exporter.services.export_service import ExportError

    db = get_db_session()
    try:
        pipeline = build_export_pipeline(db, settings)

        target = pipeline.tree.get_folder(folder_id)
        if target is None:
            _fail(f"Folder with ID {folder_id} not found.")

        output_path = output or Path.cwd() / f"{artifact_base_name(target.name)}.zip"
        output_path = resolve_path(output_path)

        console.print(f"Exporting folder \"{target.name}\" (ID: {folder_id})...")
        if not no_children:
            console.print("Including subfolders.")
        if not no_manifest:
            console.print("Including CSV manifest.")

        progress = Progress(
            TextColumn("Building ZIP"),
            BarColumn(),
            MofNCompleteColumn(),
            console=console,
            transient=True,
        )
        task = None

        def on_progress(processed: int, total: int):
            nonlocal task
            if task is None:
                task = progress.add_task("export", total=total)
            progress.update(task, completed=processed)

        try:
            with progress:
                result = pipeline.export_folder_sync(
                    folder_id,
                    output_path,
                    include_children=not no_children,
                    include_manifest=not no_manifest,
                    on_progress=on_progress,
                )
        except (ExportError, ArchiveError) as e:
            _fail(e.message)

        if result.skipped:
            console.print(f"[yellow]Skipped {result.skipped} item(s) with missing files.[/yellow]")
        console.print(
            f"[green]Export saved to {result.path} ({format_size(result.size)})[/green]"
        )
    finally:
        db.close()


@app.command("list")
def list_exports(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of exports to show"),
    format: str = typer.Option("table", "--format", "-f", help="Output format: table or json"),
):
    """List recent exports."""
    from folder_exporter.services import build_export_service

    db = get_db_session()
    try:
        service = build_export_service(db, settings)
        exports = service.list_exports(limit=limit)

        if not exports:
            console.print("No exports found.")
            return

        rows = [
            {
                "job_id": e.id,
                "folder_id": e.folder_id,
                "status": e.status,
                "progress": f"{e.progress}/{e.total}",
                "file_name": e.artifact_name or "",
                "file_size": format_size(e.artifact_size) if e.artifact_size else "",
                "created_at": e.created_at.isoformat() if isinstance(e.created_at, datetime) else "",
            }
            for e in exports
        ]

        if format == "json":
            typer.echo(json.dumps(rows, indent=2))
            return

        table = Table(title=f"Recent Exports ({len(rows)})")
        table.add_column("Job ID", style="dim")
        table.add_column("Folder", justify="right")
        table.add_column("Status", style="cyan")
        table.add_column("Progress", justify="right")
        table.add_column("File")
        table.add_column("Size", justify="right")
        table.add_column("Created")
        for row in rows:
            table.add_row(*(str(value) for value in row.values()))

        console.print(table)
    finally:
        db.close()


@app.command()
def folders(
    format: str = typer.Option("table", "--format", "-f", help="Output format: table or json"),
):
    """List available folders with their IDs."""
    from folder_exporter.services.folder_paths import FolderPathResolver
    from folder_exporter.services.folder_tree import SqlFolderTree

    db = get_db_session()
    try:
        tree = SqlFolderTree(db)
        resolver = FolderPathResolver(tree)
        nodes = tree.list_folders()

        if not nodes:
            console.print("No folders found.")
            return

        rows = [
            {
                "id": node.id,
                "name": node.name,
                "path": resolver.display_path(node.id),
                "count": node.item_count,
            }
            for node in nodes
        ]

        if format == "json":
            typer.echo(json.dumps(rows, indent=2))
            return

        table = Table(title="Folders")
        table.add_column("ID", style="dim", justify="right")
        table.add_column("Name", style="cyan")
        table.add_column("Path")
        table.add_column("Items", justify="right")
        for row in rows:
            table.add_row(str(row["id"]), row["name"], row["path"], str(row["count"]))

        console.print(table)
    finally:
        db.close()


@app.command()
def clean(
    all_exports: bool = typer.Option(False, "--all", help="Delete all exports, not just expired ones"),
    force: bool = typer.Option(False, "--force", help="With --all, also delete exports still pending or processing"),
):
    """Clean up expired exports."""
    from folder_exporter.services import build_retention_manager

    db = get_db_session()
    try:
        manager = build_retention_manager(db, settings)
        if all_exports:
            count = manager.delete_all(force=force)
            console.print(f"[green]Deleted {count} export(s).[/green]")
        else:
            count = manager.cleanup_expired()
            console.print(f"[green]Cleaned up {count} expired export(s).[/green]")
    finally:
        db.close()

"""Folder Exporter CLI - Main entry point."""
import typer
from rich.console import Console
from rich.table import Table

from folder_exporter.cli import exports

app = typer.Typer(
    name="folder-exporter",
    help="Folder Exporter - zip archives of media library folders",
    add_completion=True,
)

console = Console()

# Add subcommands
app.add_typer(exports.app, name="export", help="Export commands")


@app.command()
def version():
    """Show version information."""
    from folder_exporter import __version__
    console.print(f"Folder Exporter v{__version__}")


@app.command()
def status():
    """Check system status."""
    from folder_exporter.config import settings

    table = Table(title="Folder Exporter Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")

    # Check database
    try:
        from sqlalchemy import text
        from folder_exporter.database import engine
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        table.add_row("Database", "Connected")
    except Exception as e:
        table.add_row("Database", f"[red]Error: {e}[/red]")

    # Check paths
    from pathlib import Path
    export_dir = Path(settings.export_dir)
    if export_dir.exists():
        table.add_row("Export Directory", f"OK ({export_dir})")
    else:
        table.add_row("Export Directory", f"[yellow]Not created yet ({export_dir})[/yellow]")

    table.add_row("Retention", f"{settings.export_retention_hours}h")

    console.print(table)


if __name__ == "__main__":
    app()

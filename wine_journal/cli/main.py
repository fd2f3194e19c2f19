"""Wine Journal CLI using Typer."""

import base64
import os
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich import print as rprint
from rich.console import Console
from rich.table import Table

# Load .env file from current directory or project root
_env_paths = [
    Path.cwd() / ".env",
    Path(__file__).parent.parent.parent / ".env",
]
for _env_path in _env_paths:
    if _env_path.exists():
        load_dotenv(_env_path)
        break

console = Console()

app = typer.Typer(
    name="wine-journal",
    help="Wine Journal - a personal wine journal with AI label analysis",
    add_completion=False,
)

_SUFFIX_FORMATS = {".jpg": "jpeg", ".jpeg": "jpeg", ".png": "png", ".gif": "gif", ".webp": "webp"}


def _check_ai_config() -> None:
    """Print which AI provider will be used and whether it has a key."""
    from wine_journal.services.ai.client import AIProvider, configured_api_key

    provider_name = os.environ.get("AI_PROVIDER", "anthropic").lower()
    try:
        provider = AIProvider(provider_name)
    except ValueError:
        rprint(f"  AI Provider: [red]unsupported ({provider_name})[/red]")
        return

    if configured_api_key(provider):
        rprint(f"  AI Provider: {provider.value} [green](configured)[/green]")
    else:
        rprint(f"  AI Provider: {provider.value} [yellow](no API key)[/yellow]")
        rprint("  Tip: Set ANTHROPIC_API_KEY or OPENAI_API_KEY in .env to enable label analysis")


@app.command()
def run(
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(
        False, "--reload", "-r", help="Enable auto-reload for development"
    ),
) -> None:
    """Start the Wine Journal web server."""
    import uvicorn

    typer.echo(f"Starting Wine Journal on http://{host}:{port}")
    _check_ai_config()
    typer.echo("Press Ctrl+C to stop the server")
    typer.echo("")

    uvicorn.run(
        "wine_journal.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


@app.command()
def init_db() -> None:
    """Initialize the database (create tables)."""
    from wine_journal.db.engine import init_db as db_init

    typer.echo("Initializing database...")
    db_init()
    typer.echo("Database initialized successfully!")


@app.command()
def version() -> None:
    """Show the Wine Journal version."""
    typer.echo("Wine Journal v0.1.0")


@app.command()
def check_config() -> None:
    """Check the current configuration status."""
    typer.echo("Wine Journal Configuration")
    typer.echo("=" * 40)

    env_file = next((p for p in _env_paths if p.exists()), None)
    typer.echo(f"  .env file: {env_file or 'Not found'}")

    _check_ai_config()

    from wine_journal.db.engine import get_database_url

    typer.echo(f"  Database: {get_database_url()}")


@app.command()
def analyze(
    photo: Path = typer.Argument(..., exists=True, dir_okay=False, help="Label photo to analyze"),
) -> None:
    """Identify a wine from a local label photo."""
    from wine_journal.services.ai.analysis import WineAnalysisService

    image_format = _SUFFIX_FORMATS.get(photo.suffix.lower())
    if image_format is None:
        rprint(f"[red]Error:[/red] Unsupported image type '{photo.suffix}'")
        raise typer.Exit(1)

    encoded = base64.b64encode(photo.read_bytes()).decode("ascii")
    with console.status("Analyzing label..."):
        outcome = WineAnalysisService().analyze_photo(f"data:image/{image_format};base64,{encoded}")

    if not outcome.success:
        rprint(f"[red]Error:[/red] {outcome.error_message}")
        raise typer.Exit(1)

    analysis = outcome.analysis
    table = Table(title=analysis.wine_name or "Unidentified wine")
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Type", analysis.wine_type or "-")
    table.add_row("Region", analysis.region or "-")
    table.add_row("Vintage", str(analysis.vintage) if analysis.vintage else "-")
    table.add_row("Grapes", ", ".join(analysis.grape_varieties or []) or "-")
    table.add_row("Confidence", f"{analysis.confidence:.0%}")
    if analysis.tasting_notes:
        table.add_row("Notes", analysis.tasting_notes)
    if analysis.interesting_fact:
        table.add_row("Did you know", analysis.interesting_fact)

    console.print(table)


if __name__ == "__main__":
    app()

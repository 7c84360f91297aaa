"""CLI interface for carfinder."""

import json
import os
from typing import Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from ....config.logging import setup_logging
from ....config.settings import get_settings
from ....core.domain import ChatMessage, CriteriaSummary, RecommendationResult, ReplyType
from ...common.exception_handler import format_exception_json

app = typer.Typer(
    name="carfinder",
    help="carfinder - vehicle recommendations from budget, use case and free-text requirements",
    add_completion=False,
)

# Fix Windows encoding issues with emojis
console = Console(force_terminal=True, legacy_windows=False)

# Determine if we're in debug mode (shows full stack traces)
DEBUG_MODE = os.getenv("DEBUG", "false").lower() == "true"

BUDGET_HELP = 'Budget, e.g. "under 50k", "$30,000-$45,000" or "cheap"'
USE_CASE_HELP = "Use case (repeatable), e.g. family, towing, off-road, commuting"
BODY_TYPE_HELP = "Body type (repeatable), e.g. suv, ute, hatchback"
FUEL_TYPE_HELP = "Fuel type (repeatable), e.g. hybrid, diesel, electric"
REQUIREMENT_HELP = "Free-text requirement (repeatable), e.g. 'quiet cabin'"


def handle_cli_error(exc: Exception) -> None:
    """Handle and display errors in CLI with structured format.

    In debug mode, shows full JSON error details.
    In normal mode, shows a user-friendly message with error code.

    Args:
        exc: The exception to handle.
    """
    error_data = format_exception_json(exc, include_trace=DEBUG_MODE)

    if DEBUG_MODE:
        console.print(
            Panel(
                json.dumps(error_data, indent=2, default=str),
                title="[bold red]Error Details[/]",
                border_style="red",
            )
        )
    else:
        error_type = error_data["error"]["type"]
        error_msg = error_data["error"]["message"]
        error_code = error_data["error"].get("code", "UNKNOWN")
        location = error_data.get("location", {})

        console.print(f"\n[red]Error [{error_code}]:[/] {error_msg}")
        console.print(f"[dim]Type: {error_type}[/]")

        if location:
            loc_str = f"{location.get('file', '?')}:{location.get('line', '?')} in {location.get('method', '?')}"
            console.print(f"[dim]Location: {loc_str}[/]")

        console.print("[dim]Set DEBUG=true for full details[/]")


def get_container(require_api_key: bool = True):
    """Build the container and load the catalog, exiting on failure."""
    from ....composition import build_container

    settings = get_settings()
    setup_logging(level="WARNING" if not DEBUG_MODE else "DEBUG", json_format=settings.log_json)

    if require_api_key and not settings.google_api_key:
        console.print(
            "[red]Error:[/] Google API key not set.\n"
            "Get a key at https://aistudio.google.com/ and set GOOGLE_API_KEY in .env"
        )
        raise typer.Exit(1)

    try:
        container = build_container(settings)
        container.initialize()
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)
    return container


def _summary(
    budget: Optional[str],
    use_case: Optional[list[str]],
    body_type: Optional[list[str]],
    fuel_type: Optional[list[str]],
    requirement: Optional[list[str]],
) -> CriteriaSummary:
    return CriteriaSummary(
        budget=budget,
        use_cases=list(use_case or []),
        body_types=list(body_type or []),
        fuel_types=list(fuel_type or []),
        requirements=list(requirement or []),
    )


def _format_price(price: float) -> str:
    return f"${price:,.0f}"


def render_result(result: RecommendationResult) -> None:
    """Print a recommendation result as a table plus per-vehicle reasoning."""
    meta = result.metadata
    if not result.success:
        console.print(Panel(result.message, title="[yellow]No recommendations[/]", border_style="yellow"))
        console.print(
            f"[dim]Filtered: {meta.input_vehicles} | Found: {meta.found_vehicles} | "
            f"Qualified: {meta.qualified_vehicles} | {meta.search_time_ms}ms[/]"
        )
        return

    table = Table(title="Recommended vehicles", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Vehicle", style="bold")
    table.add_column("Price", justify="right")
    table.add_column("Body")
    table.add_column("Fuel")
    table.add_column("Seats", justify="right")
    table.add_column("Match", justify="right", style="green")
    table.add_column("Sales", justify="right")
    table.add_column("Review")

    for position, vehicle in enumerate(result.vehicles, start=1):
        review = vehicle.review_rating.value.replace("_", " ") if vehicle.review_rating else "-"
        table.add_row(
            str(position),
            " ".join(part for part in (vehicle.make, vehicle.model, vehicle.variant) if part),
            _format_price(vehicle.price),
            vehicle.body_type or "-",
            vehicle.fuel_type or "-",
            str(vehicle.seats),
            f"{vehicle.match_confidence}%",
            f"{vehicle.sales_volume:,}",
            review,
        )
    console.print(table)

    for position, vehicle in enumerate(result.vehicles, start=1):
        if vehicle.reasoning:
            console.print(f"[bold]{position}. {vehicle.make} {vehicle.model}:[/] {vehicle.reasoning}")
        if vehicle.review_url:
            console.print(f"   [dim]Review: {vehicle.review_url}[/]")

    console.print(
        f"\n[dim]Filtered: {meta.input_vehicles} | Found: {meta.found_vehicles} | "
        f"Qualified: {meta.qualified_vehicles} | Returned: {meta.returned_vehicles} | "
        f"{meta.search_time_ms}ms[/]"
    )


@app.command()
def recommend(
    budget: Optional[str] = typer.Option(None, "--budget", "-b", help=BUDGET_HELP),
    use_case: Optional[list[str]] = typer.Option(None, "--use-case", "-u", help=USE_CASE_HELP),
    body_type: Optional[list[str]] = typer.Option(None, "--body-type", help=BODY_TYPE_HELP),
    fuel_type: Optional[list[str]] = typer.Option(None, "--fuel-type", help=FUEL_TYPE_HELP),
    requirement: Optional[list[str]] = typer.Option(None, "--requirement", "-r", help=REQUIREMENT_HELP),
) -> None:
    """Run the full recommendation pipeline for one set of criteria."""
    container = get_container()

    try:
        criteria = container.converter.from_summary(
            _summary(budget, use_case, body_type, fuel_type, requirement)
        )
        with console.status("[bold green]Finding vehicles...[/]"):
            result = container.pipeline.recommend(criteria)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    render_result(result)


@app.command(name="filter")
def filter_catalog(
    budget: Optional[str] = typer.Option(None, "--budget", "-b", help=BUDGET_HELP),
    use_case: Optional[list[str]] = typer.Option(None, "--use-case", "-u", help=USE_CASE_HELP),
    body_type: Optional[list[str]] = typer.Option(None, "--body-type", help=BODY_TYPE_HELP),
    fuel_type: Optional[list[str]] = typer.Option(None, "--fuel-type", help=FUEL_TYPE_HELP),
    show: int = typer.Option(10, help="Number of matching vehicles to list"),
) -> None:
    """Apply only the structured catalog filter and list the matches."""
    container = get_container(require_api_key=False)

    try:
        criteria = container.converter.from_summary(
            _summary(budget, use_case, body_type, fuel_type, None)
        )
        result = container.structured_filter.apply(criteria)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    if not result.vehicle_ids:
        console.print(Panel(container.structured_filter.describe_no_matches(criteria), border_style="yellow"))
        return

    console.print(f"[green]{result.match_count} vehicles matched[/]\n")
    for vehicle_id in result.vehicle_ids[:show]:
        vehicle = container.catalog.get_by_id(vehicle_id)
        if vehicle:
            price = _format_price(vehicle.price) if vehicle.price else "-"
            console.print(f"  {vehicle.display_name} [dim]({vehicle_id}, {price})[/]")
    if result.match_count > show:
        console.print(f"  [dim]... and {result.match_count - show} more[/]")


@app.command()
def chat() -> None:
    """Start an interactive conversation that ends in a recommendation."""
    console.print(
        Panel.fit(
            "[bold cyan]🚗 carfinder[/]\n"
            "[dim]Tell me what you need and I'll find matching vehicles[/]\n\n"
            "Examples:\n"
            "• I need a family SUV under 50k\n"
            "• Something to tow a caravan, diesel preferred\n"
            "• A cheap hatchback for city driving\n\n"
            "[dim]Type 'quit' or 'exit' to leave[/]",
            title="Welcome to carfinder",
            border_style="cyan",
        )
    )

    container = get_container()
    history: list[ChatMessage] = []

    while True:
        try:
            text = Prompt.ask("\n[bold cyan]You[/]")

            if text.lower() in ("quit", "exit", "q"):
                console.print("[dim]Goodbye![/]")
                break

            if not text.strip():
                continue

            history.append(ChatMessage(role="user", content=text))
            with console.status("[bold green]Thinking...[/]"):
                reply = container.conversation.reply(history)

            history.append(ChatMessage(role="assistant", content=reply.message))
            console.print()
            console.print(Panel(Markdown(reply.message), title="[bold cyan]carfinder[/]", border_style="cyan"))

            if reply.type is ReplyType.SEARCH and reply.criteria is not None:
                with console.status("[bold green]Finding vehicles...[/]"):
                    result = container.pipeline.recommend(reply.criteria)
                render_result(result)
                history.clear()

        except KeyboardInterrupt:
            console.print("\n[dim]Goodbye![/]")
            break
        except Exception as exc:
            handle_cli_error(exc)


@app.command()
def stats() -> None:
    """Show catalog statistics (no API keys needed)."""
    container = get_container(require_api_key=False)
    data = container.structured_filter.statistics()

    console.print("[bold]Catalog[/]\n")
    console.print(f"  Total vehicles: {data['total_vehicles']}")
    console.print(f"  With valid price: {data['priced_vehicles']}")

    for title, key in (
        ("Body types", "body_types"),
        ("Fuel types", "fuel_types"),
        ("Price ranges", "price_ranges"),
    ):
        table = Table(title=title, show_header=False)
        table.add_column("Label")
        table.add_column("Count", justify="right")
        for label, count in data[key].items():
            table.add_row(str(label), str(count))
        console.print(table)


@app.command()
def index(
    reset: bool = typer.Option(False, help="Drop the chunk collection before indexing"),
    limit: int = typer.Option(0, help="Number of vehicles to index (0 = all)"),
) -> None:
    """Embed catalog specification chunks into the vector store."""
    from .progress import IndexProgress, Phase

    container = get_container()
    settings = container.settings

    if not settings.qdrant_url:
        console.print("[red]Error: QDRANT_URL not set in .env[/]")
        raise typer.Exit(1)

    console.print("[bold]carfinder Index[/]\n")
    vehicles = container.catalog.get_all()
    if limit:
        vehicles = vehicles[:limit]

    try:
        if reset:
            console.print("[yellow]Resetting chunk collection...[/]")
            container.chunk_store.reset()

        with IndexProgress(console) as progress:
            progress.phase(Phase.LOAD, f"{len(vehicles)} vehicles")
            written = container.indexer.index(vehicles, progress=progress.update)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    console.print(f"\n[green]Indexed {written} chunks for {len(vehicles)} vehicles[/]")


@app.command()
def status() -> None:
    """Show configuration and vector store status."""
    settings = get_settings()

    console.print("[bold]carfinder Status[/]\n")

    if settings.google_api_key:
        console.print("✅ Google API key configured")
    else:
        console.print("❌ Google API key not set (set GOOGLE_API_KEY in .env)")

    missing = [path for path in [*settings.vehicle_paths, settings.reviews_path, settings.sales_lookup_path] if not path.exists()]
    if missing:
        for path in missing:
            console.print(f"❌ Missing data file: {path}")
    else:
        console.print(f"✅ Data files present in {settings.data_dir}")

    if not settings.qdrant_url:
        console.print("❌ Qdrant not configured (set QDRANT_URL and QDRANT_API_KEY in .env)")
        return
    console.print("✅ Qdrant configured")

    from ...outbound.vector_store import QdrantChunkStore

    console.print("\n[bold]Chunk store (Qdrant):[/]")
    try:
        store = QdrantChunkStore(
            url=settings.qdrant_url,
            api_key=settings.qdrant_api_key,
            collection_name=settings.qdrant_collection,
            dimension=settings.embedding_dimension,
            timeout_seconds=settings.vector_store_timeout_seconds,
        )
        stats_data = store.get_collection_stats()
        count = stats_data.get("count", 0)
        emoji = "✅" if count > 0 else "⚪"
        console.print(f"  {emoji} {settings.qdrant_collection}: {count} chunks ({stats_data.get('status')})")
        if count == 0:
            console.print("\n[yellow]Chunk store is empty. Run 'carfinder index' to build it.[/]")
    except Exception as exc:
        handle_cli_error(exc)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(8000, help="Port to listen on"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
) -> None:
    """Start the HTTP API."""
    import uvicorn

    uvicorn.run(
        "carfinder.adapters.inbound.api.main:app",
        host=host,
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    app()

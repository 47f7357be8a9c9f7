import asyncio
import json
from pathlib import Path
from typing import Annotated, Optional

from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from typer import Argument, Exit, Option, Typer

from .analytics import AnalyticsUnavailableError
from .config import configure_logging, resolve_db_path
from .engine import ContextEngine
from .models import CachedAnalytics, Product, Sale, Supplier
from .search import SearchResult
from .storage import DuckDBStorage

app = Typer(help="Local retrieval and analytics context for the inventory assistant.")

SEARCH_MODES: tuple[str, ...] = ("hybrid", "semantic", "keyword")

DbPathOption = Annotated[
    Optional[str],
    Option("--db-path", help="DuckDB file path (defaults to INVO_CONTEXT_DB_PATH)."),
]
LogLevelOption = Annotated[
    Optional[str],
    Option("--log-level", help="Log level (defaults to INVO_CONTEXT_LOG_LEVEL)."),
]


def _engine(db_path: str | None) -> ContextEngine:
    return ContextEngine.from_db_path(resolve_db_path(db_path))


def _results_table(title: str, results: list[SearchResult]) -> Table:
    table = Table(title=title, show_lines=True)
    table.add_column("#", justify="right")
    table.add_column("Id")
    table.add_column("Kind")
    table.add_column("Score", justify="right")
    table.add_column("Content")
    for idx, result in enumerate(results, start=1):
        table.add_row(
            str(idx),
            result.id,
            result.metadata.kind,
            f"{result.score:.3f}",
            result.content,
        )
    return table


def _analytics_table(analytics: CachedAnalytics) -> Table:
    table = Table(title="Business analytics", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Stock health", analytics.stock_health)
    table.add_row("Products", str(analytics.total_products))
    table.add_row("Units in stock", str(analytics.total_stock))
    table.add_row("Inventory value", f"{analytics.total_value:.2f}")
    table.add_row("Low stock", str(analytics.low_stock_count))
    table.add_row("Out of stock", str(analytics.out_of_stock_count))
    table.add_row("Average price", f"{analytics.avg_price:.2f}")
    table.add_row("Average margin", f"{analytics.avg_margin:.1f}%")
    table.add_row("Top products", ", ".join(analytics.top_products) or "-")
    table.add_row("High margin", ", ".join(analytics.high_margin_products) or "-")
    table.add_row("Reorder", ", ".join(analytics.reorder_suggestions) or "-")
    return table


@app.command()
def load(
    file: Annotated[Path, Argument(help="JSON export with products, suppliers, and sales.")],
    db_path: DbPathOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Import business records into the local database."""
    configure_logging(log_level)
    console = Console()
    try:
        payload = json.loads(file.read_text())
        products = [Product.model_validate(item) for item in payload.get("products", [])]
        suppliers = [Supplier.model_validate(item) for item in payload.get("suppliers", [])]
        sales = [Sale.model_validate(item) for item in payload.get("sales", [])]
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        console.print(f"[bold red]Could not read {file}:[/] {exc}")
        raise Exit(code=1)

    storage = DuckDBStorage(resolve_db_path(db_path))
    try:
        for product in products:
            storage.upsert_product(product)
        for supplier in suppliers:
            storage.upsert_supplier(supplier)
        for sale in sales:
            storage.record_sale(sale)
        counts = storage.counts()
    finally:
        storage.close()
    console.print(
        f"Loaded {len(products)} products, {len(suppliers)} suppliers, {len(sales)} sales "
        f"(database now holds {counts['products']}/{counts['suppliers']}/{counts['sales']})."
    )


@app.command()
def index(
    db_path: DbPathOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Regenerate every document embedding from the current records."""
    configure_logging(log_level)
    console = Console()
    engine = _engine(db_path)
    with console.status("Generating embeddings..."):
        count = asyncio.run(engine.regenerate_embeddings())
    strategy = engine.embedding_provider.fingerprint
    console.print(f"Indexed {count} documents using [bold]{strategy}[/].")


@app.command()
def search(
    query: Annotated[str, Argument(help="Free-text question.")],
    mode: Annotated[
        str, Option("--mode", "-m", help="Ranking to use: hybrid, semantic, or keyword.")
    ] = "hybrid",
    limit: Annotated[int, Option("--limit", "-k", help="Maximum number of hits.")] = 5,
    db_path: DbPathOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Rank documents relevant to a query."""
    configure_logging(log_level)
    console = Console()
    if mode not in SEARCH_MODES:
        console.print(f"[bold red]Unknown mode {mode!r}.[/] Choose one of: {', '.join(SEARCH_MODES)}")
        raise Exit(code=2)

    engine = _engine(db_path)
    runners = {
        "hybrid": engine.hybrid_search,
        "semantic": engine.semantic_search,
        "keyword": engine.keyword_search,
    }
    results = asyncio.run(runners[mode](query, limit))
    if not results:
        console.print("[yellow]No matching documents.[/]")
        return
    console.print(_results_table(f"{mode.capitalize()} results for {query!r}", results))


@app.command()
def context(
    query: Annotated[str, Argument(help="Free-text question.")],
    max_results: Annotated[int, Option("--max-results", "-k")] = 3,
    db_path: DbPathOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Print the context block handed to the assistant for a query."""
    configure_logging(log_level)
    engine = _engine(db_path)
    text = asyncio.run(engine.get_relevant_context(query, max_results))
    Console().print(
        Panel(text, title="Relevant context", title_align="left", border_style="bold green")
    )


@app.command()
def analytics(
    refresh: Annotated[bool, Option("--refresh", help="Bypass the cache.")] = False,
    db_path: DbPathOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Show cached aggregate business metrics."""
    configure_logging(log_level)
    console = Console()
    engine = _engine(db_path)
    try:
        result = asyncio.run(engine.force_refresh() if refresh else engine.get_analytics())
    except AnalyticsUnavailableError as exc:
        console.print(f"[bold red]{exc}[/]")
        raise Exit(code=1)
    console.print(_analytics_table(result))


@app.command()
def invalidate(
    db_path: DbPathOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Drop the persisted embeddings snapshot and analytics cache."""
    configure_logging(log_level)
    engine = _engine(db_path)

    async def _run() -> None:
        await engine.invalidate()
        await engine.invalidate_analytics()

    asyncio.run(_run())
    Console().print("Caches cleared.")


@app.command()
def serve(
    host: Annotated[str, Option("--host")] = "127.0.0.1",
    port: Annotated[int, Option("--port")] = 8000,
    db_path: DbPathOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Serve the HTTP API."""
    from .server import run_server

    configure_logging(log_level)
    run_server(host=host, port=port, db_path=db_path)

from typing import Annotated, Optional

from typer import Argument, Exit, Option, Typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import load_settings
from .corpus import load_corpus
from .logging_config import configure_logging
from .search import SearchStrategy
from .server import SUGGESTED_QUERIES, build_orchestrator, run_server

app = Typer(help="Semantic search over podcast episodes.")


def _results_table(outcome) -> Table:
    table = Table(show_lines=False, header_style="bold cyan")
    table.add_column("ID", justify="right")
    table.add_column("Title")
    table.add_column("Category")
    table.add_column("Duration")
    table.add_column("Score", justify="right")
    for item in outcome.results:
        doc = item.document
        table.add_row(
            str(doc.id),
            doc.title,
            doc.category,
            doc.duration,
            "-" if item.score is None else str(item.score),
        )
    return table


@app.command()
def search(
    query: Annotated[str, Argument(help="Search text, e.g. 美食推薦")] = "",
    category: Annotated[
        Optional[str],
        Option("--category", "-c", help="Only return episodes in this category."),
    ] = None,
    strategy: Annotated[
        Optional[SearchStrategy],
        Option("--strategy", "-s", help="Force a starting strategy instead of selecting one."),
    ] = None,
    corpus: Annotated[
        Optional[str],
        Option("--corpus", help="Path to an episode JSON file."),
    ] = None,
) -> None:
    """Search the corpus, falling back from remote to local scoring as needed."""
    settings = load_settings(corpus_path=corpus)
    configure_logging(settings.log_level)
    console = Console()
    orchestrator = build_orchestrator(settings)

    if category and category not in orchestrator.corpus.categories():
        console.print(f"[bold red]Unknown category:[/] {category}")
        raise Exit(code=2)

    with console.status(status="Searching...") as status:
        outcome = orchestrator.search(
            query, category, strategy=strategy, on_status=status.update
        )

    if not outcome.results:
        console.print(
            Panel(
                "No matching episodes.",
                title=f"Strategy: {outcome.strategy.value}",
                title_align="left",
                border_style="bold yellow",
            )
        )
        return
    console.print(
        Panel(
            _results_table(outcome),
            title=f"{len(outcome.results)} results · strategy: {outcome.strategy.value}",
            title_align="left",
            border_style="bold green",
        )
    )


@app.command()
def categories(
    corpus: Annotated[
        Optional[str],
        Option("--corpus", help="Path to an episode JSON file."),
    ] = None,
) -> None:
    """List the corpus categories."""
    console = Console()
    for name in load_corpus(load_settings(corpus_path=corpus).corpus_path).categories():
        console.print(name)


@app.command()
def suggest() -> None:
    """Print suggested example queries."""
    console = Console()
    for query in SUGGESTED_QUERIES:
        console.print(query)


@app.command()
def serve(
    host: Annotated[str, Option("--host", help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, Option("--port", "-p", help="Bind port.")] = 8000,
) -> None:
    """Run the HTTP/WebSocket API."""
    configure_logging(load_settings().log_level)
    run_server(host=host, port=port)

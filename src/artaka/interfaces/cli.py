"""Command-line interface for the artaka knowledge index.

Commands:
- run: Route a free-text command through the router model
- tag: Tag a file or every file in a folder
- search: Semantic search over files and notes
- delete: Remove file items by path
- forget: Remove a saved note by title
- retag: Re-tag files that are already indexed
- cleanup: Remove items whose file no longer exists
- purge: Delete every item (requires --yes)
- info: Show configuration
"""

import asyncio
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from artaka.config.loader import ConfigError, get_default_config_path, load_config, validate_config
from artaka.config.schema import AppConfig
from artaka.entities import BatchResult, OperationResult, SaveResult, SearchResult, TagResult
from artaka.observability.logging import configure_from_config, get_logger
from artaka.service import AppContext

app = typer.Typer(
    name="artaka",
    help="Personal knowledge index: tag files, save notes, search them by meaning",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)

ConfigOption = typer.Option(None, "--config", "-c", help="Config file path")


@app.command()
def run(
    command: str = typer.Argument(..., help='Free-text command, e.g. "tag ~/notes/todo.md"'),
    config_file: Optional[Path] = ConfigOption,
):
    """Let the router model decide what to do with a command."""
    asyncio.run(_run_async(command, config_file))


async def _run_async(command: str, config_file: Optional[Path]):
    config = _load_config(config_file)

    async with AppContext(config) as ctx:
        with console.status("[cyan]Asking the router...[/cyan]"):
            outcome = await ctx.router.route(command)

        if outcome.error:
            console.print(f"[red]{escape(outcome.error)}[/red]")
            if outcome.raw_output:
                console.print(f"[dim]Router output: {escape(outcome.raw_output)}[/dim]")
            raise typer.Exit(1)

        console.print(f"[dim]Action: {escape(outcome.action or '')}[/dim]")
        _print_result(outcome.result, ctx)


@app.command()
def tag(
    target: str = typer.Argument(..., help="File or folder to tag"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Description for a single file"),
    config_file: Optional[Path] = ConfigOption,
):
    """Tag a file or every file directly inside a folder."""
    asyncio.run(_tag_async(target, description, config_file))


async def _tag_async(target: str, description: Optional[str], config_file: Optional[Path]):
    config = _load_config(config_file)
    async with AppContext(config) as ctx:
        result = await ctx.tagging.tag_item(target, description)
        _print_result(result, ctx)


@app.command()
def search(
    query: str = typer.Argument(..., help="What to look for"),
    top_k: Optional[int] = typer.Option(None, "--top-k", "-k", help="Number of results"),
    config_file: Optional[Path] = ConfigOption,
):
    """Search files and notes by meaning."""
    asyncio.run(_search_async(query, top_k, config_file))


async def _search_async(query: str, top_k: Optional[int], config_file: Optional[Path]):
    config = _load_config(config_file)
    async with AppContext(config) as ctx:
        results = await ctx.query.search(query, top_k)
        _print_result(results, ctx)


@app.command()
def delete(
    paths: list[str] = typer.Argument(..., help="Paths of indexed files"),
    config_file: Optional[Path] = ConfigOption,
):
    """Remove file items from the index (files on disk are untouched)."""
    asyncio.run(_delete_async(paths, config_file))


async def _delete_async(paths: list[str], config_file: Optional[Path]):
    config = _load_config(config_file)
    async with AppContext(config) as ctx:
        result = await ctx.deletion.batch_delete_files(paths)
        _print_result(result, ctx)


@app.command()
def forget(
    title: str = typer.Argument(..., help="Title of the saved note"),
    config_file: Optional[Path] = ConfigOption,
):
    """Remove a saved note by title."""
    asyncio.run(_forget_async(title, config_file))


async def _forget_async(title: str, config_file: Optional[Path]):
    config = _load_config(config_file)
    async with AppContext(config) as ctx:
        result = await ctx.deletion.delete_knowledge_by_title(title)
        _print_result(result, ctx)


@app.command()
def retag(
    paths: list[str] = typer.Argument(..., help="Paths of indexed files"),
    config_file: Optional[Path] = ConfigOption,
):
    """Re-tag files that are already indexed."""
    asyncio.run(_retag_async(paths, config_file))


async def _retag_async(paths: list[str], config_file: Optional[Path]):
    config = _load_config(config_file)
    async with AppContext(config) as ctx:
        result = await ctx.updates.batch_update_files(paths)
        _print_result(result, ctx)


@app.command()
def cleanup(config_file: Optional[Path] = ConfigOption):
    """Remove file items whose file no longer exists."""
    asyncio.run(_cleanup_async(config_file))


async def _cleanup_async(config_file: Optional[Path]):
    config = _load_config(config_file)
    async with AppContext(config) as ctx:
        result = await ctx.deletion.cleanup_orphaned()

    console.print(
        f"Checked {result.checked} files: "
        f"[green]{len(result.kept)} kept[/green], "
        f"[yellow]{len(result.deleted)} removed[/yellow], "
        f"[red]{len(result.errors)} errors[/red]"
    )
    for path in result.deleted:
        console.print(f"  [yellow]-[/yellow] {escape(path)}")
    for error in result.errors:
        console.print(f"  [red]![/red] {escape(error['path'])}: {escape(str(error['error']))}")


@app.command()
def purge(
    yes: bool = typer.Option(False, "--yes", help="Confirm deleting every item"),
    config_file: Optional[Path] = ConfigOption,
):
    """Delete every item from the index."""
    asyncio.run(_purge_async(yes, config_file))


async def _purge_async(yes: bool, config_file: Optional[Path]):
    config = _load_config(config_file)
    async with AppContext(config) as ctx:
        result = await ctx.deletion.delete_all(confirm=yes)

    if result.success:
        console.print(f"[green]{escape(result.message)}[/green]")
    else:
        console.print(f"[red]{escape(result.message or result.error or '')}[/red]")
        if not yes:
            console.print("[dim]Pass --yes to confirm.[/dim]")
        raise typer.Exit(1)


@app.command()
def info(config_file: Optional[Path] = ConfigOption):
    """Show system information and configuration."""
    config = _load_config(config_file, validate=False)

    table = Table(title="Artaka Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Data Directory", str(config.data_dir))
    table.add_row("Mode", "local" if config.use_local else "remote")
    table.add_row("Router Model", config.llm.router_model)
    table.add_row("Router Endpoint", config.llm.completion_url or "-")
    table.add_row("Tagger Model", config.tagger_model or "-")
    table.add_row("Tagger Endpoint", config.tagger_url or "-")
    table.add_row("Vision Tagger Model", config.llm.vision_tagger_model or "-")
    table.add_row("Embedding Model", config.embedding.model_name or "-")
    table.add_row("Embedding Endpoint", config.embedding.url or "-")
    table.add_row("Store", f"{config.store.store_type.value} ({config.store.connection_string or 'in-memory'})")
    table.add_row("Max Retries", str(config.retry.max_retries))
    table.add_row("Dedup Threshold", str(config.knowledge.dedup_threshold))
    table.add_row("Log Level", config.logging.level.value)

    console.print(table)

    try:
        validate_config(config)
    except ConfigError as e:
        console.print(f"[yellow]{escape(e.message)}[/yellow]")


def _print_result(result: Any, ctx: AppContext) -> None:
    """Render a handler outcome."""
    if isinstance(result, list):
        _print_search_results(ctx.query.visible(result))
    elif isinstance(result, TagResult):
        if not result.success:
            console.print(f"[red]Target not found ({result.reason.value})[/red]")
            return
        console.print(
            f"[green]{len(result.tagged)} tagged[/green], "
            f"[dim]{len(result.skipped)} skipped[/dim], "
            f"[red]{len(result.failed)} failed[/red]"
        )
        for path in result.failed:
            console.print(f"  [red]x[/red] {escape(path)}")
    elif isinstance(result, BatchResult):
        console.print(
            f"[green]{len(result.succeeded)} done[/green], "
            f"[yellow]{len(result.not_found)} not found[/yellow], "
            f"[red]{len(result.failed)} failed[/red]"
        )
        for path in result.not_found:
            console.print(f"  [yellow]?[/yellow] {escape(path)}")
        for path in result.failed:
            console.print(f"  [red]x[/red] {escape(path)}")
    elif isinstance(result, SaveResult) and result.duplicate:
        dup = result.duplicate
        console.print(
            f'[yellow]Skipped: duplicate of "{escape(dup.existing.title)}" '
            f"({dup.reason}, score {dup.score:.3f})[/yellow]"
        )
    elif isinstance(result, OperationResult):
        if result.success:
            console.print(f"[green]{escape(result.message)}[/green]")
        else:
            console.print(f"[red]{escape(result.message or result.error or result.reason.value)}[/red]")
    elif result is not None:
        console.print(result)


def _print_search_results(results: list[SearchResult]) -> None:
    if not results:
        console.print("[yellow]No relevant results found[/yellow]")
        return

    table = Table(title="Search Results")
    table.add_column("Score", style="yellow", no_wrap=True)
    table.add_column("Title", style="cyan")
    table.add_column("Type", style="magenta", no_wrap=True)
    table.add_column("Path / Description", style="green")

    for result in results:
        item = result.item
        table.add_row(
            f"{result.score:.3f}",
            escape(item.title),
            item.type.value,
            escape(item.path or item.description),
        )

    console.print(table)


def _load_config(config_file: Optional[Path], validate: bool = True) -> AppConfig:
    """Load configuration and setup logging."""
    if config_file is None:
        config_file = get_default_config_path()

    config = load_config(config_file)
    configure_from_config(config.logging)

    if validate:
        try:
            validate_config(config)
        except ConfigError as e:
            logger.error("config_invalid", error=e.message)
            console.print(f"[red]Configuration error: {escape(e.message)}[/red]")
            raise typer.Exit(1)

    return config


if __name__ == "__main__":
    app()

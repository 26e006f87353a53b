"""CLI entrypoints for mediafeed content tooling."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from .config import Config, load_config
from .content.models import MediaSource, MediaType
from .content.sources import ContentSourceError, DirectorySource
from .feed import QueryError, collect_tags, get_feed, parse_feed_query
from .index.builder import IndexBuild, build_index
from .reporting import build_index_stats, write_index
from .scaffold import ScaffoldError, scaffold_media
from .server import serve
from .service import FeedService
from .syndication import write_feeds
from .validation import DocumentIssue, IssueSeverity, lint_workspace

console = Console()
app = typer.Typer(help="mediafeed content index and feed toolkit.")

ConfigPathOption = Annotated[
    str,
    typer.Option("--config", "-c", help="Path to configuration file or project directory."),
]
ForceFlag = Annotated[
    bool,
    typer.Option("--force", "-f", help="Overwrite existing files if they already exist."),
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging."),
    ] = False,
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def new(  # noqa: PLR0913
    title: Annotated[str, typer.Argument(..., help="Title of the new media item.")],
    media_type: Annotated[
        MediaType, typer.Option("--type", help="Media type.")
    ] = MediaType.VIDEO,
    source: Annotated[
        MediaSource, typer.Option("--source", help="Where the media came from.")
    ] = MediaSource.SORA,
    tags: Annotated[
        Optional[list[str]], typer.Option("--tag", help="Tag to attach (repeatable).")
    ] = None,
    description: Annotated[Optional[str], typer.Option("--description")] = None,
    poster: Annotated[
        Optional[str], typer.Option("--poster", help="Poster path, e.g. /media/poster.jpg.")
    ] = None,
    src: Annotated[
        Optional[str], typer.Option("--src", help="Media path, e.g. /media/video.mp4.")
    ] = None,
    username: Annotated[Optional[str], typer.Option("--username", help="Sora username.")] = None,
    prompt: Annotated[Optional[str], typer.Option("--prompt", help="Sora prompt.")] = None,
    config_path: ConfigPathOption = ".",
    force: ForceFlag = False,
) -> None:
    """Create a new media item from the starter template."""
    config = _load(config_path)
    try:
        result = scaffold_media(
            config,
            title,
            media_type=media_type,
            source=source,
            tags=tags or [],
            description=description,
            poster=poster,
            src=src,
            username=username,
            prompt=prompt,
            force=force,
        )
    except ScaffoldError as exc:
        console.print(f"[bold red]Cannot scaffold[/]: {exc}")
        raise typer.Exit(code=1) from exc

    state = "overwritten" if result.overwritten else "created"
    console.print(f"[bold green]Created[/]: {_display_path(result.path)} ({state})")
    for note in result.notes:
        console.print(f"- {note}")


@app.command()
def lint(
    config_path: ConfigPathOption = ".",
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Treat warnings as errors."),
    ] = False,
) -> None:
    """Validate front matter and referenced assets of every content file."""
    config = _load(config_path)
    try:
        report = lint_workspace(config)
    except ContentSourceError as exc:
        console.print(f"[bold red]Lint failed[/]: {exc}")
        raise typer.Exit(code=1) from exc

    if report.document_count == 0:
        console.print(f"[bold yellow]No content files[/] found in {_display_path(config.content_dir)}.")
        raise typer.Exit()

    if not report.issues:
        console.print(
            f"[bold green]Lint clean[/]: {report.document_count} file(s) without issues."
        )
        raise typer.Exit()

    for issue in sorted(report.issues, key=_lint_sort_key):
        style = "red" if issue.severity is IssueSeverity.ERROR else "yellow"
        location = Path(issue.source_path).name
        if issue.pointer:
            location = f"{location} :: {issue.pointer}"
        console.print(f"[bold {style}]{issue.severity.name}[/] {location} - {issue.message}")

    valid = report.document_count - len(report.invalid_files())
    console.print(
        f"[bold blue]Summary[/]: {valid}/{report.document_count} valid; "
        f"{report.error_count} error(s), {report.warning_count} warning(s)."
    )

    exit_code = 0
    if report.error_count > 0 or (strict and report.warning_count > 0):
        exit_code = 1
    raise typer.Exit(code=exit_code)


@app.command("build-index")
def build_index_command(config_path: ConfigPathOption = ".") -> None:
    """Build the media index and export it as JSON."""
    config = _load(config_path)
    build = _build(config)
    target = write_index(build, config.generated_dir)
    stats = build_index_stats(build)

    console.print(f"[bold green]Index built[/]: {stats.total} item(s) written to {_display_path(target)}")
    console.print(f"[bold blue]Visibility[/]: {stats.public} public, {stats.unlisted} unlisted")
    console.print(f"[bold blue]By type[/]: {json.dumps(stats.by_type, sort_keys=True)}")
    console.print(f"[bold blue]By source[/]: {json.dumps(stats.by_source, sort_keys=True)}")
    console.print(f"[bold blue]Unique tags[/]: {stats.unique_tags}")
    _print_skipped(build)


@app.command()
def feed(
    config_path: ConfigPathOption = ".",
    cursor: Annotated[Optional[str], typer.Option("--cursor")] = None,
    limit: Annotated[Optional[str], typer.Option("--limit", help="Page size (1-100).")] = None,
    media_type: Annotated[Optional[str], typer.Option("--type")] = None,
    tag: Annotated[Optional[str], typer.Option("--tag")] = None,
    search: Annotated[Optional[str], typer.Option("--search")] = None,
) -> None:
    """Print one page of the feed as JSON."""
    config = _load(config_path)
    params = {"cursor": cursor, "limit": limit, "type": media_type, "tag": tag, "search": search}
    try:
        query = parse_feed_query(params)
    except QueryError as exc:
        console.print(f"[bold red]Invalid query[/]: {'; '.join(exc.details) or exc}")
        raise typer.Exit(code=2) from exc
    page = get_feed(_build(config).items, query)
    console.print_json(data=page.to_api())


@app.command()
def tags(config_path: ConfigPathOption = ".") -> None:
    """List tags used by public items."""
    config = _load(config_path)
    for tag in collect_tags(_build(config).items):
        console.print(tag, markup=False, highlight=False)


@app.command()
def feeds(config_path: ConfigPathOption = ".") -> None:
    """Write RSS, Atom and JSON feeds to the output directory."""
    config = _load(config_path)
    if not config.feeds.enabled:
        console.print("[bold yellow]Feeds disabled[/]: nothing written.")
        raise typer.Exit()
    paths = write_feeds(config, _build(config))
    locations = ", ".join(_display_path(path) for path in paths)
    console.print(f"[bold green]Feeds[/]: generated {locations}")


@app.command("serve")
def serve_command(
    config_path: ConfigPathOption = ".",
    host: Annotated[
        Optional[str],
        typer.Option("--host", help="Host interface to bind the API server."),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port for the API server."),
    ] = None,
) -> None:
    """Serve the feed API until interrupted."""
    config = _load(config_path)
    bind_host = host if host is not None else config.server.host
    bind_port = port if port is not None else config.server.port
    if bind_port < 0 or bind_port > 65535:
        raise typer.BadParameter("Port must be between 0 and 65535.")

    service = FeedService.from_config(config)
    try:
        with serve(service, bind_host, bind_port) as server:
            bound_port = int(server.server_address[1])
            console.print(
                f"[bold green]Feed API[/]: serving {_display_path(config.content_dir)} at "
                f"http://{bind_host}:{bound_port}/api/feed (press Ctrl+C to stop)"
            )
            try:
                server.serve_forever()
            except KeyboardInterrupt:
                console.print("\n[bold yellow]Stopping server...[/]")
    except OSError as exc:
        console.print(f"[bold red]Failed to start server[/]: {exc}")
        raise typer.Exit(code=1) from exc


def _build(config: Config) -> IndexBuild:
    try:
        return build_index(DirectorySource(config.content_dir))
    except ContentSourceError as exc:
        console.print(f"[bold red]Failed to build index[/]: {exc}")
        raise typer.Exit(code=1) from exc


def _print_skipped(build: IndexBuild) -> None:
    if not build.issues:
        return
    console.print(f"[bold yellow]Skipped {len(build.issues)} record(s)[/]:")
    for issue in build.issues:
        console.print(f"- {issue.name}: {issue.message}", markup=False)


def _lint_sort_key(issue: DocumentIssue) -> tuple[int, str, str]:
    severity_rank = 0 if issue.severity is IssueSeverity.ERROR else 1
    return (severity_rank, issue.source_path, issue.pointer or "")


def _display_path(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd().resolve()))
    except ValueError:
        return str(path)


def _load(path: str) -> Config:
    try:
        return load_config(path)
    except FileNotFoundError as exc:
        raise typer.BadParameter(f"Config file not found: {path}") from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

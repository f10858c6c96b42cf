"""Click CLI with projects, versions, tree, graph, and serve subcommands."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import click

from depdelta import __version__
from depdelta.models import DisplayOption, FilterType, TreeItemNode, ViewerConfig
from depdelta.session import ChangelogSession
from depdelta.source import ChangelogNotFoundError, JsonChangelogSource

_DISPLAY_CHOICES = [
    o.name.lower() for o in DisplayOption if o is not DisplayOption.GRAPH
]

_TYPE_COLORS = {
    FilterType.PACKAGE: "cyan",
    FilterType.CLASS: "yellow",
    FilterType.METHOD: "green",
    FilterType.DEPENDENCY: "magenta",
}


def _session(ctx: click.Context) -> ChangelogSession:
    config: ViewerConfig = ctx.obj["config"]
    if config.data_file is None:
        raise click.UsageError("No changelog export given. Use --data or set DEPDELTA_DATA.")
    if not config.data_file.exists():
        raise click.ClickException(f"Changelog export not found: {config.data_file}")
    return ChangelogSession(JsonChangelogSource(config.data_file), config)


def _load(session: ChangelogSession, project: str, version: str) -> None:
    try:
        asyncio.run(session.load_changelog(project, version))
    except ChangelogNotFoundError as e:
        raise click.ClickException(str(e))


def _echo_tree(nodes: list[TreeItemNode], indent: int = 0) -> None:
    for node in nodes:
        label = node.label.value if node.label else ""
        color = _TYPE_COLORS.get(node.filter_type, "white")
        click.echo(
            f"{'  ' * indent}{click.style(node.name, fg=color)}  "
            f"{click.style(label, dim=True)}"
        )
        _echo_tree(node.children, indent + 1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--data", "data_file",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="DEPDELTA_DATA",
    help="JSON changelog export",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose (debug) output")
@click.pass_context
def cli(ctx: click.Context, data_file: Path | None, verbose: bool):
    """depdelta: explore the structural changelog between project versions."""
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    if verbose:
        logging.getLogger("depdelta").setLevel(logging.DEBUG)
    ctx.ensure_object(dict)
    ctx.obj["config"] = ViewerConfig(data_file=data_file)


@cli.command()
@click.pass_context
def projects(ctx: click.Context):
    """List projects with changelogs."""
    session = _session(ctx)
    names = asyncio.run(session.load_projects())
    if not names:
        click.echo("No projects found.")
        return
    for name in names:
        click.echo(name)


@cli.command()
@click.argument("project")
@click.pass_context
def versions(ctx: click.Context, project: str):
    """List changelog versions of PROJECT."""
    session = _session(ctx)
    try:
        ids = asyncio.run(session.select_project(project))
    except ChangelogNotFoundError as e:
        raise click.ClickException(str(e))
    for version in ids:
        click.echo(version)


@cli.command()
@click.argument("project")
@click.argument("version")
@click.option(
    "--display", "-d",
    type=click.Choice(_DISPLAY_CHOICES),
    default="compact_middle_packages",
    help="Display option",
)
@click.option("--filter", "-f", "filter_text", default="", help="Filter, e.g. 'c:Cart' or 'm:add('")
@click.option("--group-nodes", is_flag=True, help="Show Methods/Added/Deleted grouping nodes")
@click.option("--json", "as_json", is_flag=True, help="Print the forest as JSON")
@click.pass_context
def tree(
    ctx: click.Context,
    project: str,
    version: str,
    display: str,
    filter_text: str,
    group_nodes: bool,
    as_json: bool,
):
    """Print the changelog tree of PROJECT at VERSION."""
    session = _session(ctx)
    session.display_option = DisplayOption.parse(display)
    session.group_nodes = group_nodes
    session.filter_text = filter_text
    _load(session, project, version)

    forest = session.data
    if as_json:
        click.echo(json.dumps([n.to_dict() for n in forest], indent=2))
        return
    if not forest:
        click.echo("No changes.")
        return
    _echo_tree(forest)

    if not session.diagnostics.is_empty:
        click.echo(click.style("\nDiagnostics:", fg="red"), err=True)
        for name, values in session.diagnostics.to_dict().items():
            for value in values:
                click.echo(f"  {name}: {value}", err=True)


@cli.command()
@click.argument("project")
@click.argument("version")
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), help="Write JSON here")
@click.pass_context
def graph(ctx: click.Context, project: str, version: str, output: Path | None):
    """Export the changelog graph (nodes and edges) of PROJECT at VERSION."""
    session = _session(ctx)
    _load(session, project, version)
    data = session.graph().to_dict()
    text = json.dumps(data, indent=2)
    if output:
        output.write_text(text)
        click.echo(f"Wrote {len(data['nodes'])} node(s), {len(data['edges'])} edge(s) to {output}")
    else:
        click.echo(text)


@cli.command()
@click.option("--port", "-p", default=8421, help="Port number")
@click.option("--host", default="127.0.0.1", help="Host address")
@click.option("--open/--no-open", default=False, help="Open browser automatically")
@click.pass_context
def serve(ctx: click.Context, port: int, host: str, open: bool):
    """Start the web API."""
    try:
        import uvicorn
    except ImportError:
        raise click.ClickException(
            "uvicorn is required for the web API. "
            "Install with: pip install 'depdelta[web]'"
        )

    from depdelta.web import create_app

    click.echo(f"Starting depdelta at http://{host}:{port}")

    if open:
        import webbrowser
        import threading
        threading.Timer(1.0, lambda: webbrowser.open(f"http://{host}:{port}/docs")).start()

    uvicorn.run(create_app(config=ctx.obj["config"]), host=host, port=port, log_level="info")


if __name__ == "__main__":
    cli()

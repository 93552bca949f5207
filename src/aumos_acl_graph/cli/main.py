"""CLI entry point for aumos-acl-graph.

Invoked as::

    acl-graph [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m aumos_acl_graph.cli.main

Commands
--------
- validate   Load a graph file and list its edges
- check      Check whether a context reaches a permission
- explain    Show every edge attempted for a permission
- reach      Static reachability, ignoring predicates
- version    Show version information
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from aumos_acl_graph.engine.acl import Acl
from aumos_acl_graph.loader.graph_loader import GraphConfigError, GraphLoader

console = Console()
err_console = Console(stderr=True)

_DEFAULT_GRAPH = "acl.yaml"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_acl(graph_path: str) -> Acl:
    try:
        return GraphLoader().load(graph_path)
    except FileNotFoundError as exc:
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
        sys.exit(2)
    except GraphConfigError as exc:
        err_console.print(f"[red]Invalid graph:[/red] {escape(str(exc))}")
        sys.exit(2)


def _parse_context(context_json: str | None, context_file: str | None) -> dict[str, object]:
    raw: str | None = context_json
    if context_file:
        raw = Path(context_file).read_text(encoding="utf-8")
    if not raw:
        return {}
    try:
        context = json.loads(raw)
    except json.JSONDecodeError as exc:
        err_console.print(f"[red]Invalid JSON:[/red] {escape(str(exc))}")
        sys.exit(2)
    if not isinstance(context, dict):
        err_console.print("[red]Invalid context:[/red] expected a JSON object.")
        sys.exit(2)
    return context


def _graph_option(func):  # type: ignore[no-untyped-def]
    return click.option(
        "--file",
        "-f",
        "graph_path",
        type=click.Path(),
        default=_DEFAULT_GRAPH,
        show_default=True,
        help="Permission graph YAML file.",
    )(func)


def _context_options(func):  # type: ignore[no-untyped-def]
    func = click.option(
        "--context-file",
        type=click.Path(exists=True, dir_okay=False),
        default=None,
        help="Read the request context from a JSON file.",
    )(func)
    return click.option(
        "--context",
        "-c",
        "context_json",
        default=None,
        help="Request context as a JSON object.",
    )(func)


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="aumos-acl-graph")
@click.option("--verbose", "-v", is_flag=True, help="Log traversal details.")
def cli(verbose: bool) -> None:
    """ACL graph CLI — check, explain and inspect permission graphs."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
        )


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from aumos_acl_graph import __version__

    console.print(
        Panel(
            f"[bold]aumos-acl-graph[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Graph-based authorization engine.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


@cli.command(name="validate")
@_graph_option
def validate_command(graph_path: str) -> None:
    """Load a permission graph file and list its edges."""
    acl = _load_acl(graph_path)
    graph = acl.graph

    table = Table(title=f"Edges ({graph.edge_count})", box=box.SIMPLE)
    table.add_column("From", style="cyan")
    table.add_column("To", style="magenta")
    table.add_column("Check")
    table.add_column("Restricts")
    table.add_column("Explanation")
    for edge in graph.iter_edges():
        check_name = getattr(edge.check, "__qualname__", repr(edge.check)) if edge.check else "-"
        table.add_row(
            escape(str(edge.from_node)),
            escape(str(edge.to_node)),
            escape(check_name),
            escape(", ".join(sorted(edge.restrict)) or "-"),
            escape(edge.explanation),
        )
    console.print(table)
    console.print(
        f"[green]VALID[/green]  {len(graph.nodes)} nodes, default node "
        f"[bold]{escape(str(acl.default_node))}[/bold]"
    )


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


@cli.command(name="check")
@click.argument("permission")
@_graph_option
@_context_options
@click.option("--start", "-s", default=None, help="Start node (defaults to the graph's default node).")
def check_command(
    permission: str,
    graph_path: str,
    context_json: str | None,
    context_file: str | None,
    start: str | None,
) -> None:
    """Check whether a request context reaches PERMISSION."""
    acl = _load_acl(graph_path)
    context = _parse_context(context_json, context_file)

    result = acl.check_sync(permission, context, start=start)

    if result is None:
        console.print(Panel("[red]DENIED[/red]", title=f"Check: {escape(permission)}", border_style="blue"))
        sys.exit(1)

    console.print(Panel("[green]GRANTED[/green]", title=f"Check: {escape(permission)}", border_style="blue"))
    bindings = result.bindings
    if bindings:
        table = Table(title="Bound Along The Path", box=box.SIMPLE)
        table.add_column("Key", style="cyan")
        table.add_column("Value")
        for key in sorted(bindings):
            table.add_row(escape(key), escape(repr(bindings[key])))
        console.print(table)
    sys.exit(0)


# ---------------------------------------------------------------------------
# explain
# ---------------------------------------------------------------------------


@cli.command(name="explain")
@click.argument("permission")
@_graph_option
@_context_options
@click.option("--start", "-s", default=None, help="Start node (defaults to the graph's default node).")
@click.option("--json", "as_json", is_flag=True, help="Print records as a JSON list.")
def explain_command(
    permission: str,
    graph_path: str,
    context_json: str | None,
    context_file: str | None,
    start: str | None,
    as_json: bool,
) -> None:
    """Show every edge attempted while looking for PERMISSION."""
    acl = _load_acl(graph_path)
    context = _parse_context(context_json, context_file)

    records = acl.explain_sync(permission, context, start=start)

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in records], indent=2))
        return

    if not records:
        console.print(f"[yellow]No edge leads towards[/yellow] [bold]{escape(permission)}[/bold].")
        return

    styles = {"passed": "green", "failed": "red", "error": "bold red"}
    table = Table(title=f"Explain: {permission}", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("From", style="cyan")
    table.add_column("To", style="magenta")
    table.add_column("Result")
    table.add_column("Explanation")
    for index, record in enumerate(records, start=1):
        status = record.status
        result_cell = f"[{styles[status]}]{status.upper()}[/{styles[status]}]"
        if record.error:
            result_cell += f" {escape(record.error)}"
        table.add_row(
            str(index),
            escape(str(record.from_node)),
            escape(str(record.to)),
            result_cell,
            escape(record.explanation),
        )
    console.print(table)


# ---------------------------------------------------------------------------
# reach
# ---------------------------------------------------------------------------


@cli.command(name="reach")
@click.argument("permission")
@_graph_option
@click.option("--start", "-s", default=None, help="Start node (defaults to the graph's default node).")
def reach_command(permission: str, graph_path: str, start: str | None) -> None:
    """Tell whether PERMISSION is structurally reachable, ignoring predicates."""
    acl = _load_acl(graph_path)
    origin = start if start is not None else acl.default_node

    if acl.can_reach(permission, start=start):
        console.print(f"[green]REACHABLE[/green]  {escape(str(origin))} -> {escape(permission)}")
        sys.exit(0)
    console.print(f"[red]UNREACHABLE[/red]  {escape(str(origin))} -> {escape(permission)}")
    sys.exit(1)


if __name__ == "__main__":
    cli()

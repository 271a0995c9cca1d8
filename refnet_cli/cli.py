"""Typer-based CLI for the referral network builder."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from . import __version__, config
from .builder import build_forest
from .config_manager import Settings, load_settings, save_settings
from .errors import RefnetError
from .graph_export import export_canvas, export_dot, export_json
from .models import BuildOptions, NetworkForest, NetworkNode
from .recruiters import RecruiterDirectory
from .storage import load_records, open_source
from .views import directory_entries

console = Console()

app = typer.Typer(
    help="🌳 RefNet CLI — rebuild referral hierarchies from lead and recruiter records.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(
    help="⚙️  Configuration — recruiter directory and build defaults.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(config_app, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"RefNet CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """RefNet CLI: referral forests with virtual placeholders and cycle breaking."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _fail(message: str) -> None:
    console.print(f"[red]✗[/red] {escape(message)}")
    raise typer.Exit(code=1)


def _load_settings() -> Settings:
    try:
        return load_settings()
    except RefnetError as exc:
        _fail(str(exc))


def _build(
    records_path: Path,
    table: str,
    focus: Optional[str] = None,
    order: Optional[str] = None,
    include_directory: Optional[bool] = None,
) -> NetworkForest:
    settings = _load_settings()
    order = order or settings.order
    if order not in config.ORDERS:
        raise typer.BadParameter(f"Order must be one of: {', '.join(config.ORDERS)}")

    directory = RecruiterDirectory.from_mapping(settings.recruiters, base_url=settings.base_url)
    options = BuildOptions(
        focus=focus,
        order=order,
        include_directory=settings.include_directory if include_directory is None else include_directory,
        virtual_label=settings.virtual_label,
    )
    try:
        records = load_records(open_source(records_path, table=table))
    except RefnetError as exc:
        _fail(str(exc))
    return build_forest(records, options, directory=directory)


def _node_label(node: NetworkNode, orphan: bool = False) -> str:
    name = escape(node.display_name)
    if node.is_virtual:
        label = f"[dim italic]{name}[/dim italic]"
    elif node.kind == "recruiter":
        label = f"[bold cyan]{name}[/bold cyan]"
    else:
        label = name
    if node.code:
        label += f" [magenta]({escape(node.code)})[/magenta]"
    if node.kind != "lead":
        label += (
            f" [dim]· {node.direct_recruiter_count} rec / {node.direct_lead_count} leads"
            f" · {node.total_descendants} total[/dim]"
        )
    if orphan:
        label += " [red]⟲ cycle[/red]"
    return f"{label} [dim]#{node.node_id}[/dim]"


def _render_tree(forest: NetworkForest, max_depth: Optional[int]) -> Tree:
    tree = Tree("[bold]Referral network[/bold]")
    stack: List[Tuple[NetworkNode, Tree, int, bool]] = []
    for top in reversed(forest.orphans):
        stack.append((top, tree, 0, True))
    for top in reversed(forest.roots):
        stack.append((top, tree, 0, False))

    while stack:
        node, parent_branch, depth, orphan = stack.pop()
        branch = parent_branch.add(_node_label(node, orphan))
        if max_depth is not None and depth >= max_depth:
            if node.children:
                branch.add(f"[dim]… {node.total_descendants} more[/dim]")
            continue
        for child in reversed(node.children):
            stack.append((child, branch, depth + 1, False))
    return tree


def _print_stats(forest: NetworkForest) -> None:
    stats = forest.stats
    console.print(
        f"[bold]Nodes:[/bold] {stats.total_nodes} | "
        f"Recruiters: {stats.recruiter_count} | Leads: {stats.lead_count} | "
        f"Virtual: {stats.virtual_count} | Orphans: {stats.orphan_count} | "
        f"Max depth: {stats.max_depth}"
    )


RECORDS_ARG = typer.Argument(..., exists=True, dir_okay=False, help="Record snapshot (.json, .jsonl or .db).")
TABLE_OPT = typer.Option("records", "--table", help="Table name for SQLite sources.")


@app.command("build")
def build(
    records_path: Path = RECORDS_ARG,
    order: Optional[str] = typer.Option(None, "--order", help="Sibling order: id or ranking."),
    include_directory: Optional[bool] = typer.Option(
        None,
        "--include-directory/--no-include-directory",
        help="Add placeholders for directory recruiters missing from the records.",
    ),
    max_depth: Optional[int] = typer.Option(None, "--max-depth", min=0, help="Collapse levels below this depth."),
    table: str = TABLE_OPT,
):
    """Build and print the full referral forest."""
    forest = _build(records_path, table, order=order, include_directory=include_directory)
    if not forest.roots and not forest.orphans:
        console.print("No records found.")
        raise typer.Exit(code=0)
    console.print(_render_tree(forest, max_depth))
    _print_stats(forest)


@app.command("focus")
def focus(
    records_path: Path = RECORDS_ARG,
    key: str = typer.Argument(..., help="Node identifier or referral code."),
    max_depth: Optional[int] = typer.Option(None, "--max-depth", min=0, help="Collapse levels below this depth."),
    table: str = TABLE_OPT,
):
    """Show a single node's subtree and its ancestor path."""
    forest = _build(records_path, table, focus=key)
    if not forest.focus_found:
        console.print(f"[yellow]No node matches '{escape(str(key))}'.[/yellow]")
        raise typer.Exit(code=0)

    console.print(f"[bold]Path:[/bold] {' → '.join(str(i) for i in forest.focus.path)}")
    console.print(_render_tree(forest, max_depth))
    _print_stats(forest)


@app.command("directory")
def directory(
    records_path: Path = RECORDS_ARG,
    table: str = TABLE_OPT,
):
    """List one entry per recruiter code."""
    forest = _build(records_path, table)
    entries = directory_entries(forest)
    if not entries:
        console.print("No recruiters found.")
        raise typer.Exit(code=0)

    out = Table(title="Recruiters", show_header=True)
    out.add_column("Code", style="magenta")
    out.add_column("Name")
    out.add_column("Recruiters", justify="right")
    out.add_column("Leads", justify="right")
    out.add_column("Total", justify="right")
    out.add_column("Link", style="dim")
    for entry in entries:
        name = escape(entry.name)
        if entry.is_virtual:
            name += " [dim](virtual)[/dim]"
        out.add_row(
            entry.code,
            name,
            str(entry.direct_recruiters),
            str(entry.direct_leads),
            str(entry.total_descendants),
            entry.url or "",
        )
    console.print(out)


@app.command("stats")
def stats(
    records_path: Path = RECORDS_ARG,
    table: str = TABLE_OPT,
):
    """Print aggregate numbers, including data-quality counters."""
    forest = _build(records_path, table)
    out = Table(title="Network stats", show_header=False)
    out.add_column("Metric")
    out.add_column("Value", justify="right")
    s = forest.stats
    out.add_row("Total nodes", str(s.total_nodes))
    out.add_row("Recruiters", str(s.recruiter_count))
    out.add_row("Leads", str(s.lead_count))
    out.add_row("Virtual placeholders", str(s.virtual_count))
    out.add_row("Roots", str(len(forest.roots)))
    out.add_row("Orphans (broken cycles)", str(s.orphan_count))
    out.add_row("Duplicate codes", str(s.duplicate_codes))
    out.add_row("Max depth", str(s.max_depth))
    console.print(out)


EXPORTERS = {
    "json": export_json,
    "canvas": export_canvas,
    "dot": export_dot,
}


@app.command("export")
def export(
    records_path: Path = RECORDS_ARG,
    fmt: str = typer.Option("json", "--format", "-f", help="Export format: json, canvas or dot."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path."),
    focus_key: Optional[str] = typer.Option(None, "--focus", help="Export only this node's subtree."),
    table: str = TABLE_OPT,
):
    """Export the forest to structural JSON, canvas node/edge JSON or Graphviz DOT."""
    fmt = fmt.lower()
    if fmt not in EXPORTERS:
        raise typer.BadParameter(f"Format must be one of: {', '.join(EXPORTERS)}")

    forest = _build(records_path, table, focus=focus_key)
    if focus_key and not forest.focus_found:
        console.print(f"[yellow]No node matches '{escape(str(focus_key))}'.[/yellow]")
        raise typer.Exit(code=0)

    if output is None:
        suffix = "dot" if fmt == "dot" else "json"
        kind = "canvas" if fmt == "canvas" else "network"
        output = Path.cwd() / f"{records_path.stem}_{kind}.{suffix}"

    EXPORTERS[fmt](forest, output)
    typer.echo(f"Exported network to {output}")


@config_app.command("show")
def config_show():
    """Print the active settings."""
    settings = _load_settings()
    typer.echo(f"Config file: {config.CONFIG_FILE}")
    typer.echo(f"Order: {settings.order}")
    typer.echo(f"Virtual label: {settings.virtual_label}")
    typer.echo(f"Include directory: {settings.include_directory}")
    typer.echo(f"Base URL: {settings.base_url or '-'}")
    typer.echo(f"Recruiters: {len(settings.recruiters)}")


@config_app.command("add-recruiter")
def config_add_recruiter(
    code: str = typer.Argument(..., help="Referral code."),
    name: str = typer.Argument(..., help="Display name."),
):
    """Add or rename a recruiter directory entry."""
    settings = _load_settings()
    settings.recruiters[code] = name
    save_settings(settings)
    typer.echo(f"Saved recruiter {code} · {name}")


@config_app.command("set-base-url")
def config_set_base_url(url: str = typer.Argument(..., help="Prefix for recruiter links.")):
    """Set the prefix used to build recruiter referral links."""
    settings = _load_settings()
    settings.base_url = url
    save_settings(settings)
    typer.echo(f"Base URL set to {url}")


if __name__ == "__main__":
    app()

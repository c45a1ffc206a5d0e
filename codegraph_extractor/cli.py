"""Typer-based CLI for codegraph-extractor."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional, Tuple

import typer
from rich.console import Console
from rich.table import Table

from . import __version__, config
from .aliases import trace_callee_to_definition
from .calls import find_function_calls
from .context import find_node_scope, resolve_context, resolve_scope
from .extraction import GraphExtractor
from .members import get_all_class_members
from .parser import TreeSitterParser
from .references import find_declaration_node, find_references
from .storage import GraphStore

app = typer.Typer(
    help="Extract semantic code graphs from JavaScript and TypeScript sources.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"codegraph-extractor v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
):
    """cgx: tree-sitter powered code graph extraction."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _parser() -> TreeSitterParser:
    settings = config.load_config()
    return TreeSitterParser(
        languages=settings["languages"],
        skip_dirs=settings["skip_dirs"],
        max_file_bytes=int(settings["max_file_bytes"]),
    )


def _parse(parser: TreeSitterParser, file_path: Path) -> Tuple[Any, str, str]:
    language = parser.language_for(file_path)
    if language is None or not parser.supports_language(language):
        raise typer.BadParameter(f"Unsupported file type: {file_path}")
    return parser.parse_file(file_path)


def _declaration_owner(tree: Any, name: str) -> Any:
    declaration = find_declaration_node(tree, name)
    if declaration is None or declaration.parent_node is None:
        raise typer.BadParameter(f"No declaration named '{name}' found.")
    return declaration.parent_node


@app.command("extract")
def extract(
    path: Path = typer.Argument(..., exists=True, help="Source file or project directory."),
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite graph file (default: CGX_HOME/graph.db)."),
):
    """Extract graph records and upsert them into the local store."""
    parser = _parser()
    root = path if path.is_dir() else path.parent
    extractor = GraphExtractor(parser, project_root=root)

    if path.is_dir():
        results = extractor.extract_project(path)
    else:
        results = [extractor.extract_file(path)]

    if db is None:
        config.ensure_base_dirs()
    store = GraphStore(db or config.DB_FILE)
    table = Table(title="Extraction", show_header=True)
    table.add_column("File")
    table.add_column("Nodes", justify="right")
    table.add_column("Edges", justify="right")
    try:
        for result in results:
            store.replace_file(result)
            table.add_row(result.file_path, str(len(result.nodes)), str(len(result.edges)))
        totals = store.counts()
        store.set_metadata({**store.get_metadata(), "source_path": str(path.resolve())})
    finally:
        store.close()

    console.print(table)
    typer.echo(f"Files: {len(results)} | Nodes: {totals['nodes']} | Edges: {totals['edges']}")


@app.command("calls")
def calls(
    file_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Source file."),
    function: str = typer.Argument(..., help="Function or method name."),
):
    """List and classify every call site inside a function."""
    tree, _source, _lang = _parse(_parser(), file_path)
    records = find_function_calls(_declaration_owner(tree, function))

    table = Table(title=f"Calls in {function}", show_header=True)
    for column in ("Line", "Col", "Callee", "Type", "Depth", "Async"):
        table.add_column(column)
    for record in records:
        table.add_row(
            str(record.line),
            str(record.column),
            record.function_name,
            record.call_type,
            "" if record.chain_depth is None else str(record.chain_depth),
            "yes" if record.is_async else "",
        )
    console.print(table)


@app.command("trace")
def trace(
    file_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Source file."),
    name: str = typer.Argument(..., help="Callee name to follow through aliases."),
):
    """Follow a callee name through variable aliases to its definition."""
    tree, _source, _lang = _parse(_parser(), file_path)
    chain = trace_callee_to_definition(tree, name)
    if not chain.hops:
        typer.echo(f"No declaration found for '{name}'.")
        raise typer.Exit(code=1)

    table = Table(title=f"Alias chain for {name}", show_header=True)
    for column in ("Name", "Kind", "Line", "Assigned from"):
        table.add_column(column)
    for hop in chain.hops:
        table.add_row(hop.name, hop.kind, str(hop.node.start_point[0] + 1), hop.assigned_from or "")
    console.print(table)


@app.command("context")
def context(
    file_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Source file."),
    line: int = typer.Argument(..., min=1, help="1-based line."),
    column: int = typer.Argument(1, min=1, help="1-based column."),
):
    """Describe the context and scope of the node at a position."""
    tree, _source, _lang = _parse(_parser(), file_path)
    point = (line - 1, column - 1)
    node = tree.root_node.named_descendant_for_point_range(point, point)
    if node is None:
        raise typer.BadParameter(f"No node at {line}:{column}.")

    ctx = resolve_context(node)
    scope = resolve_scope(node)
    concrete = find_node_scope(node)
    table = Table(show_header=False, box=None)
    table.add_row("Node", f"{node.type} {node.text.decode('utf-8', errors='replace')[:40]!r}")
    table.add_row("Context", ctx.context)
    table.add_row("Kind", ctx.kind.value)
    table.add_row("Scope", f"{scope.kind} ({scope.name})")
    table.add_row("Enclosing", concrete.label)
    console.print(table)


@app.command("members")
def members(
    file_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Source file."),
    class_name: str = typer.Argument(..., help="Class name."),
):
    """List the members of a class."""
    tree, _source, _lang = _parse(_parser(), file_path)
    found = get_all_class_members(_declaration_owner(tree, class_name))
    if not found:
        typer.echo(f"'{class_name}' has no members or is not a class.")
        raise typer.Exit(code=1)

    table = Table(title=f"Members of {class_name}", show_header=True)
    for column in ("Name", "Type", "Signature", "Flags", "Lines"):
        table.add_column(column)
    for member in found:
        flags: List[str] = []
        if member.is_static:
            flags.append("static")
        if member.is_private:
            flags.append("private")
        if member.is_async:
            flags.append("async")
        if member.is_constructor:
            flags.append("constructor")
        table.add_row(
            member.name,
            member.member_type,
            member.signature,
            ",".join(flags),
            f"{member.start_line}-{member.end_line}",
        )
    console.print(table)


@app.command("refs")
def refs(
    file_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Source file."),
    name: str = typer.Argument(..., help="Identifier to look up."),
):
    """List every reference to an identifier with its usage."""
    tree, _source, _lang = _parse(_parser(), file_path)
    found = find_references(tree, name)
    if not found:
        typer.echo(f"No references to '{name}'.")
        raise typer.Exit(code=0)

    table = Table(title=f"References to {name}", show_header=True)
    for column in ("Line", "Col", "Usage", "Declaration"):
        table.add_column(column)
    for ref in found:
        row, col = ref.node.start_point
        table.add_row(str(row + 1), str(col + 1), ref.usage, "yes" if ref.is_declaration else "")
    console.print(table)


@app.command("config")
def show_config(
    skip_dir: Optional[List[str]] = typer.Option(None, "--skip-dir", help="Add a directory name to skip."),
):
    """Show extraction settings, optionally adding skip directories."""
    settings = config.load_config()
    if skip_dir:
        settings["skip_dirs"] = sorted(set(settings["skip_dirs"]) | set(skip_dir))
        if not config.save_config(settings):
            typer.echo("Could not write config file.")
            raise typer.Exit(code=1)

    table = Table(title=str(config.CONFIG_FILE), show_header=False)
    for key, value in sorted(settings.items()):
        rendered = ", ".join(value) if isinstance(value, list) else str(value)
        table.add_row(key, rendered)
    console.print(table)

"""CLI for inspecting record files and simulating drags."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger

from ordered_tree.core.tree.builder import build_tree, iter_nodes
from ordered_tree.core.tree.outline import node_expansion, render_build, render_outline
from ordered_tree.engine import OrderedTree
from ordered_tree.errors import OrderedTreeError
from ordered_tree.logging_config import configure_logging
from ordered_tree.models.drag import Point, TreeBox
from ordered_tree.models.node import DatumFunctions

app = typer.Typer(help="Ordered tree: inspect flat parent-referencing records and simulate drags.")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log warnings and errors"),
) -> None:
    if verbose and quiet:
        msg = "--verbose and --quiet cannot be used together"
        raise typer.BadParameter(msg)
    configure_logging(verbose=verbose, quiet=quiet)


def _field(record: dict[str, Any], *names: str, default: Any = None) -> Any:
    for name in names:
        if name in record:
            return record[name]
    return default


def _compare(a: dict[str, Any], b: dict[str, Any]) -> int:
    key_a = (str(_field(a, "createdAt", "created_at", default="")), str(a["id"]))
    key_b = (str(_field(b, "createdAt", "created_at", default="")), str(b["id"]))
    return (key_a > key_b) - (key_a < key_b)


def label(record: dict[str, Any]) -> str:
    return str(_field(record, "name", "title", default=record["id"]))


def record_functions(filter_text: str | None = None) -> DatumFunctions:
    """Accessors for JSON records with ``id``, ``parentId``, ``order`` and friends."""
    is_filtered_out: Callable[[Any], bool] | None = None
    if filter_text:
        needle = filter_text.casefold()

        def name_lacks_needle(record: dict[str, Any]) -> bool:
            return needle not in label(record).casefold()

        is_filtered_out = name_lacks_needle

    return DatumFunctions(
        get_id=lambda record: str(record["id"]),
        get_parent_id=lambda record: _field(record, "parentId", "parent_id"),
        get_order=lambda record: _field(record, "order"),
        compare=_compare,
        is_collapsed=lambda record: bool(_field(record, "isCollapsed", "collapsed", default=False)),
        is_filtered_out=is_filtered_out,
    )


def load_records(path: Path) -> list[dict[str, Any]]:
    """Load a JSON array of records, exiting with an error if it is unusable."""
    if not path.exists():
        logger.error("Record file not found: {}", path)
        raise typer.Exit(1)
    try:
        records = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        logger.error("Invalid JSON in {}: {}", path, e)
        raise typer.Exit(1) from e
    if not isinstance(records, list) or not all(
        isinstance(r, dict) and "id" in r for r in records
    ):
        logger.error("{} must contain a JSON array of objects with an 'id'", path)
        raise typer.Exit(1)
    return records


def _parse_point(value: str) -> Point:
    try:
        x, y = (float(part) for part in value.split(","))
    except ValueError as e:
        msg = f"Expected X,Y but got {value!r}"
        raise typer.BadParameter(msg) from e
    return Point(x, y)


@app.command()
def show(
    file: Path = typer.Argument(..., help="JSON file with an array of records"),
    filter_text: Annotated[
        str | None,
        typer.Option("--filter", "-f", help="Only show records whose name contains this text"),
    ] = None,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Print the tree built from a record file."""
    records = load_records(file)
    try:
        build = build_tree(records, record_functions(filter_text))
    except OrderedTreeError as e:
        logger.error("Cannot build tree: {}", e)
        raise typer.Exit(1) from e

    if output_json:
        data = {
            "rows": [
                {
                    "id": node.id,
                    "name": label(node.data),
                    "index": node.index,
                    "depth": node.depth,
                    "order": node.order,
                    "parent_id": node.parent_id,
                    "expansion": node_expansion(node),
                }
                for node in iter_nodes(build)
            ],
            "missing_orders": build.missing_orders_by_id,
            "orphans": [record["id"] for record in build.orphan_data],
        }
        typer.echo(json.dumps(data, indent=2))
        return

    typer.echo(render_build(build, label=label), nl=False)
    if build.missing_orders_by_id:
        typer.echo(f"\nMissing orders ({len(build.missing_orders_by_id)}):")
        for node_id, order in sorted(build.missing_orders_by_id.items()):
            typer.echo(f"  {node_id}: {order:.6f}")
    if build.orphan_data:
        typer.echo(f"\nOrphans ({len(build.orphan_data)}):")
        for record in build.orphan_data:
            parent_id = _field(record, "parentId", "parent_id")
            typer.echo(f"  {record['id']} (missing parent {parent_id})")


@app.command()
def drag(
    file: Path = typer.Argument(..., help="JSON file with an array of records"),
    node_id: str = typer.Argument(..., help="Id of the record to drag"),
    start: str = typer.Option(..., "--from", help="Pointer position at mouse-down, X,Y"),
    end: str = typer.Option(..., "--to", help="Pointer position at release, X,Y"),
    row_height: float = typer.Option(20.0, "--row-height", help="Height of one row in px"),
) -> None:
    """Simulate dragging one record over a layout of equal-height rows."""
    start_point = _parse_point(start)
    end_point = _parse_point(end)
    records = load_records(file)
    functions = record_functions()
    moves: list[tuple[str, float, str | None]] = []

    try:
        tree = OrderedTree(
            records,
            functions,
            on_node_move=lambda moved_id, order, parent_id: moves.append(
                (moved_id, order, parent_id)
            ),
        )
        datum = next((r for r in records if functions.get_id(r) == node_id), None)
        if datum is None or node_id not in tree.tree.nodes_by_id:
            logger.error("No visible record with id {}", node_id)
            raise typer.Exit(1)

        tree.set_tree_box(TreeBox(top=0, left=0, height=row_height * tree.tree.tree_size))
        tree.handle_mouse_down(datum, start_point)
        tree.handle_mouse_move(end_point)
        typer.echo(render_outline(tree.rows(), label=label), nl=False)
        tree.handle_mouse_up(end_point)
    except OrderedTreeError as e:
        logger.error("Drag failed: {}", e)
        raise typer.Exit(1) from e

    if not moves:
        typer.echo("No move")
        return
    moved_id, order, parent_id = moves[0]
    typer.echo(f"Moved {moved_id} to order {order!r} under {parent_id or 'the root'}")

"""Wireframe Builder CLI.

Usage:
    python -m wireframe_builder <command> <structure.json> [options]

Every command prints JSON. Editing commands save the structure back to
the same file and include a validation report.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from wireframe_builder.models.structure import Line, Structure
from wireframe_builder.resolvers.intersections import (
    ResolveResult,
    fix_all_intersections,
    resolve_new_line,
)
from wireframe_builder.validators.structure import validate_structure

app = typer.Typer(
    name="wireframe_builder",
    help="Wireframe Builder: intersection resolution and structural validation.",
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _output(data: dict) -> None:
    """Print JSON output to stdout."""
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _fail(message: str) -> None:
    _output({"ok": False, "error": message})
    raise typer.Exit(1)


def _load_structure(path: str) -> Structure:
    """Load a structure file, or exit with a JSON error."""
    file = Path(path)
    if not file.exists():
        _fail(f"Structure file not found: {file}")
    try:
        return Structure.load(file)
    except ValueError as e:
        _fail(f"Invalid structure: {e}")


def _validation_json(structure: Structure) -> dict:
    report = validate_structure(structure)
    return report.model_dump(mode="json")


def _resolve_json(result: ResolveResult) -> dict:
    return {
        "line": result.line_name,
        "junctions": [j.model_dump() for j in result.junctions],
        "added_lines": result.added_lines,
        "removed_lines": result.removed_lines,
        "message": result.describe(),
    }


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# ---------------------------------------------------------------------------
# Read-only commands
# ---------------------------------------------------------------------------

@app.command()
def version() -> None:
    """Show version."""
    from wireframe_builder import __version__

    typer.echo(f"wireframe-builder v{__version__}")


@app.command()
def validate(path: str = typer.Argument(..., help="Structure JSON file")):
    """Run the structural validator."""
    structure = _load_structure(path)
    _output({"ok": True, "validation": _validation_json(structure)})


@app.command()
def info(path: str = typer.Argument(..., help="Structure JSON file")):
    """List nodes and lines with line lengths."""
    structure = _load_structure(path)
    _output({
        "ok": True,
        "name": structure.name,
        "nodes": [n.model_dump() for n in structure.nodes.values()],
        "lines": [
            {
                "name": line.name,
                "node1": line.node1,
                "node2": line.node2,
                "length": round(structure.line_length(line.name), 3),
            }
            for line in structure.lines.values()
        ],
    })


# ---------------------------------------------------------------------------
# Editing commands
# ---------------------------------------------------------------------------

@app.command("add-node")
def add_node(
    path: str = typer.Argument(..., help="Structure JSON file"),
    x: float = typer.Argument(...),
    y: float = typer.Argument(...),
    z: float = typer.Argument(...),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Node name (auto N<k>)"),
):
    """Add a node."""
    structure = _load_structure(path)
    node = structure.add_node(x, y, z, name=name)
    structure.save(path)
    _output({"ok": True, "node": node.model_dump()})


@app.command("add-line")
def add_line(
    path: str = typer.Argument(..., help="Structure JSON file"),
    node1: str = typer.Argument(...),
    node2: str = typer.Argument(...),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Line name (auto L<k>)"),
    no_validate: bool = typer.Option(False, "--no-validate", help="Skip validation"),
):
    """Connect two nodes, splitting any lines the new line crosses."""
    structure = _load_structure(path)
    try:
        candidate = Line(name=name or "", node1=node1, node2=node2)
        result = resolve_new_line(structure, candidate)
    except ValueError as e:
        _fail(str(e))
    result.structure.save(path)
    output: dict = {"ok": True, **_resolve_json(result)}
    if not no_validate:
        output["validation"] = _validation_json(result.structure)
    _output(output)


@app.command("remove-line")
def remove_line(
    path: str = typer.Argument(..., help="Structure JSON file"),
    name: str = typer.Argument(..., help="Line name"),
):
    """Remove a line."""
    structure = _load_structure(path)
    try:
        structure.remove_line(name)
    except ValueError as e:
        _fail(str(e))
    structure.save(path)
    _output({"ok": True, "removed_lines": [name], "validation": _validation_json(structure)})


@app.command("remove-node")
def remove_node(
    path: str = typer.Argument(..., help="Structure JSON file"),
    name: str = typer.Argument(..., help="Node name"),
):
    """Remove a node and every line attached to it."""
    structure = _load_structure(path)
    try:
        removed = structure.remove_node(name)
    except ValueError as e:
        _fail(str(e))
    structure.save(path)
    _output({
        "ok": True,
        "removed_node": name,
        "removed_lines": removed,
        "validation": _validation_json(structure),
    })


@app.command("move-node")
def move_node(
    path: str = typer.Argument(..., help="Structure JSON file"),
    name: str = typer.Argument(..., help="Node name"),
    x: Optional[float] = typer.Option(None, "--x"),
    y: Optional[float] = typer.Option(None, "--y"),
    z: Optional[float] = typer.Option(None, "--z"),
):
    """Move a node. Attached lines follow."""
    structure = _load_structure(path)
    try:
        node = structure.move_node(name, x=x, y=y, z=z)
    except ValueError as e:
        _fail(str(e))
    structure.save(path)
    _output({"ok": True, "node": node.model_dump(), "validation": _validation_json(structure)})


@app.command("fix-intersections")
def fix_intersections(path: str = typer.Argument(..., help="Structure JSON file")):
    """Split every pair of crossing lines at a new junction node."""
    structure = _load_structure(path)
    result = fix_all_intersections(structure)
    result.structure.save(path)
    _output({"ok": True, **_resolve_json(result)})


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()

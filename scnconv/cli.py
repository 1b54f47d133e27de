"""Command-line interface for scnconv.

Usage:
    scnconv input.glb output.obj [options]

Options use the single-dash spelling, e.g.::

    scnconv house.glb room.glb -select_nodes_in_subtree Room_3 -tz -1.5 -rx 90
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Sequence

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .core.config import TRANSFORM_KINDS, ConversionConfig
from .core.errors import SceneConversionError
from .core.pipeline import SceneConverter, StageReport

console = Console()

TRANSFORM_ORDER_KEY = "scnconv.transform_order"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich output."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False)],
        force=True,
    )


def _transform_order(params: Sequence[click.Parameter], args: Sequence[str]) -> list[str]:
    """Names of the transform options in the order they appear in ``args``."""
    consumes: dict[str, tuple[str, int]] = {}
    for param in params:
        if not isinstance(param, click.Option) or param.name is None:
            continue
        nargs = 0 if (param.is_flag or param.count) else param.nargs
        for opt in [*param.opts, *param.secondary_opts]:
            consumes[opt] = (param.name, nargs)

    order: list[str] = []
    i = 0
    while i < len(args):
        token = args[i]
        if token == "--":
            break
        opt, sep, _ = token.partition("=")
        if sep and opt in consumes:
            name, nargs = consumes[opt]
            step = 1
        elif token in consumes:
            name, nargs = consumes[token]
            step = 1 + nargs
        else:
            i += 1
            continue
        if name in TRANSFORM_KINDS:
            order.append(name)
        i += step
    return order


class TransformOrderCommand(click.Command):
    """Command that remembers the order of transform options.

    Click groups repeated values per option, which loses the interleaving
    of e.g. ``-tx 5 -sx 2 -tx 1``. Transform edits do not commute, so the
    order is recorded from the raw arguments before click parses them.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        ctx.meta[TRANSFORM_ORDER_KEY] = _transform_order(self.get_params(ctx), args)
        return super().parse_args(ctx, args)


def _ordered_transforms(
    ctx: click.Context,
    values: dict[str, tuple[Any, ...]],
) -> list[tuple[str, Any]]:
    """Pair each transform kind with its values in command-line order."""
    pending = {kind: list(vals) for kind, vals in values.items()}
    ordered: list[tuple[str, Any]] = []
    for kind in ctx.meta.get(TRANSFORM_ORDER_KEY, []):
        if pending.get(kind):
            ordered.append((kind, pending[kind].pop(0)))

    # Anything the scan missed keeps click's per-option order
    for kind in TRANSFORM_KINDS:
        ordered.extend((kind, value) for value in pending.get(kind, []))
    return ordered


def _stats_table(report: StageReport, title: str) -> Table:
    stats = report.stats or {}
    table = Table(title=title)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("File", str(report.path))
    table.add_row("Time", f"{report.seconds:.2f} seconds")
    table.add_row("Nodes", f"{stats.get('num_nodes', 0):,}")
    table.add_row("Lights", f"{stats.get('num_lights', 0):,}")
    table.add_row("Materials", f"{stats.get('num_materials', 0):,}")
    table.add_row("Geometries", f"{stats.get('num_geometries', 0):,}")
    table.add_row("Referenced geometries", f"{stats.get('num_referenced_geometries', 0):,}")
    bbox = stats.get("bbox")
    if bbox is not None and not bbox.is_empty:
        table.add_row(
            "Bounds (min)",
            f"({bbox.min[0]:.2f}, {bbox.min[1]:.2f}, {bbox.min[2]:.2f})"
        )
        table.add_row(
            "Bounds (max)",
            f"({bbox.max[0]:.2f}, {bbox.max[1]:.2f}, {bbox.max[2]:.2f})"
        )
    return table


_STAGE_MESSAGES = {
    "categories": "Annotated {result} nodes with categories",
    "lights": "Added {result} lights",
    "prune": "Removed {result} unselected nodes",
    "transform": "Transformed scene root",
    "remove_references": "Made {result} geometry copies",
    "remove_hierarchy": "Flattened hierarchy to {result} nodes",
    "remove_transformations": "Baked transforms into {result} elements",
    "subdivide": "Subdivided {result} meshes",
}


def _print_stage(report: StageReport) -> None:
    if report.stage == "read":
        console.print(_stats_table(report, "Read scene"))
    elif report.stage == "write":
        console.print(_stats_table(report, "Wrote scene"))
    else:
        message = _STAGE_MESSAGES.get(report.stage, report.stage).format(result=report.result)
        console.print(f"[cyan]{message}[/cyan] [dim]({report.seconds:.2f} s)[/dim]")


@click.command(
    cls=TransformOrderCommand,
    context_settings={"help_option_names": ["-h", "-help", "--help"]},
)
@click.argument("input_path", type=click.Path())
@click.argument("output_path", type=click.Path())
@click.option("-v", "verbose", is_flag=True, help="Print statistics for each stage")
@click.option(
    "-config", "config",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON configuration file; command-line options extend it",
)
@click.option("-remove_references", "remove_references", is_flag=True, help="Copy geometry shared between nodes")
@click.option("-remove_hierarchy", "remove_hierarchy", is_flag=True, help="Move all geometry nodes under the root")
@click.option("-remove_transformations", "remove_transformations", is_flag=True, help="Bake node transforms into geometry")
@click.option(
    "-select_nodes_in_subtree", "select_nodes_in_subtree",
    type=str,
    default=None,
    metavar="NAME",
    help="Keep only this node, its ancestors and its descendants",
)
@click.option(
    "-select_nodes_in_bbox", "select_nodes_in_bbox",
    type=float,
    nargs=6,
    default=None,
    metavar="X0 Y0 Z0 X1 Y1 Z1",
    help="Keep only nodes intersecting this world-space box",
)
@click.option("-scale", "scale", type=float, multiple=True, metavar="S", help="Uniform scale")
@click.option("-tx", "tx", type=float, multiple=True, metavar="D", help="Translate along X")
@click.option("-ty", "ty", type=float, multiple=True, metavar="D", help="Translate along Y")
@click.option("-tz", "tz", type=float, multiple=True, metavar="D", help="Translate along Z")
@click.option("-sx", "sx", type=float, multiple=True, metavar="S", help="Scale along X")
@click.option("-sy", "sy", type=float, multiple=True, metavar="S", help="Scale along Y")
@click.option("-sz", "sz", type=float, multiple=True, metavar="S", help="Scale along Z")
@click.option("-rx", "rx", type=float, multiple=True, metavar="DEG", help="Rotate about X (degrees)")
@click.option("-ry", "ry", type=float, multiple=True, metavar="DEG", help="Rotate about Y (degrees)")
@click.option("-rz", "rz", type=float, multiple=True, metavar="DEG", help="Rotate about Z (degrees)")
@click.option(
    "-xform", "xform",
    type=click.Path(),
    multiple=True,
    metavar="FILE",
    help="Apply a 4x4 row-major matrix read from FILE",
)
@click.option(
    "-max_edge_length", "max_edge_length",
    type=float,
    default=None,
    metavar="L",
    help="Subdivide triangles with edges longer than L (0 or less disables)",
)
@click.option("-categories", "categories", type=click.Path(), default=None, help="Category table (CSV)")
@click.option("-lights", "lights", type=click.Path(), default=None, help="Light table (JSON)")
@click.pass_context
def main(
    ctx: click.Context,
    input_path: str,
    output_path: str,
    verbose: bool,
    config: str | None,
    remove_references: bool,
    remove_hierarchy: bool,
    remove_transformations: bool,
    select_nodes_in_subtree: str | None,
    select_nodes_in_bbox: tuple[float, ...] | None,
    scale: tuple[float, ...],
    tx: tuple[float, ...],
    ty: tuple[float, ...],
    tz: tuple[float, ...],
    sx: tuple[float, ...],
    sy: tuple[float, ...],
    sz: tuple[float, ...],
    rx: tuple[float, ...],
    ry: tuple[float, ...],
    rz: tuple[float, ...],
    xform: tuple[str, ...],
    max_edge_length: float | None,
    categories: str | None,
    lights: str | None,
) -> None:
    """Convert a 3D scene between file formats, optionally editing it.

    INPUT_PATH: Scene to read (GLB/glTF/OBJ/PLY/STL/OFF/DAE)

    OUTPUT_PATH: Scene to write; the format follows the extension
    """
    try:
        cfg = ConversionConfig.from_file(config) if config else ConversionConfig.default()
    except Exception as e:
        console.print(f"[red]Error loading config: {e}[/red]")
        raise click.Abort()

    cfg.verbose = cfg.verbose or verbose
    setup_logging(cfg.verbose)

    if categories:
        cfg.categories_file = Path(categories)
    if lights:
        cfg.lights_file = Path(lights)
    if select_nodes_in_subtree is not None:
        cfg.selection.subtree = select_nodes_in_subtree
    if select_nodes_in_bbox:
        cfg.selection.bbox = tuple(select_nodes_in_bbox)

    transform_values = {
        "scale": scale,
        "tx": tx, "ty": ty, "tz": tz,
        "sx": sx, "sy": sy, "sz": sz,
        "rx": rx, "ry": ry, "rz": rz,
        "xform": xform,
    }
    for kind, value in _ordered_transforms(ctx, transform_values):
        cfg.add_transform(kind, value)

    cfg.processing.remove_references |= remove_references
    cfg.processing.remove_hierarchy |= remove_hierarchy
    cfg.processing.remove_transformations |= remove_transformations
    if max_edge_length is not None:
        cfg.processing.max_edge_length = max_edge_length

    converter = SceneConverter(cfg, on_stage=_print_stage if cfg.verbose else None)
    try:
        converter.convert(input_path, output_path)
    except SceneConversionError as e:
        console.print(f"[red]{e}[/red]")
        raise click.Abort()


if __name__ == "__main__":
    main()

"""Command-line interface for meshpipe.

Usage:
    meshpipe convert model.obj -f glbx --scale 2 --align-z min
    meshpipe info model.obj [--json]
    meshpipe formats [--json]
    meshpipe init-config
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import click
from click.core import ParameterSource
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .core.config import IDENTITY_MATRIX, Align, Options
from .core.geometry import compose_matrix, matrix_from_values
from .core.result import Result
from .export.formats import FormatRegistry
from .scene import Scene

console = Console()
err_console = Console(stderr=True)

ALIGN_CHOICES = [a.value for a in Align]

# CLI parameter name -> key path into the Options data
OPTION_FIELDS: dict[str, tuple[str, ...]] = {
    "output": ("output",),
    "format_id": ("format",),
    "strip_normals": ("strip_normals",),
    "strip_texcoords": ("strip_texcoords",),
    "join_vertices": ("join_vertices",),
    "flip_uv": ("flip_uv",),
    "swizzle": ("swizzle",),
    "scale": ("scale",),
    "align_x": ("align_x",),
    "align_y": ("align_y",),
    "align_z": ("align_z",),
    "translate": ("translate",),
    "matrix": ("matrix",),
    "metallic_factor": ("metallic_factor",),
    "roughness_factor": ("roughness_factor",),
    "diffuse_map": ("maps", "diffuse"),
    "occlusion_map": ("maps", "occlusion"),
    "emissive_map": ("maps", "emissive"),
    "metallic_roughness_map": ("maps", "metallic_roughness"),
    "zone_map": ("maps", "zone"),
    "normal_map": ("maps", "normal"),
    "embed_maps": ("embed_maps",),
    "use_compression": ("use_compression",),
    "object_space_normals": ("object_space_normals",),
    "position_bits": ("draco", "position_quantization_bits"),
    "texcoord_bits": ("draco", "texcoords_quantization_bits"),
    "normal_bits": ("draco", "normals_quantization_bits"),
    "generic_bits": ("draco", "generic_quantization_bits"),
    "compression_level": ("draco", "compression_level"),
}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich output on stderr."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False)],
    )


def build_options(
    ctx: click.Context,
    input_path: str,
    config_path: str | None,
    rotate: tuple[float, float, float] | None,
    params: dict[str, Any],
) -> Options:
    """Merge a config file with the options given on the command line.

    Command-line values override the file only when they were given
    explicitly. A rotation is folded into the transform matrix, applied
    before it.

    Raises:
        click.UsageError: If the resulting options are invalid
    """
    data: dict[str, Any] = {}
    if config_path:
        try:
            data = Options.from_file(config_path).model_dump(mode="json")
        except ValueError as e:
            raise click.UsageError(f"Invalid options file {config_path}: {e}", ctx=ctx)

    data["input"] = input_path
    data["verbose"] = bool(ctx.obj.get("verbose")) or data.get("verbose", False)

    for name, key_path in OPTION_FIELDS.items():
        if ctx.get_parameter_source(name) in (None, ParameterSource.DEFAULT):
            continue
        target = data
        for key in key_path[:-1]:
            target = target.setdefault(key, {})
        target[key_path[-1]] = params[name]

    if rotate is not None:
        base = matrix_from_values(data.get("matrix", IDENTITY_MATRIX))
        combined = base @ compose_matrix(rotation=rotate)
        data["matrix"] = tuple(combined.flatten().tolist())

    try:
        return Options.model_validate(data)
    except ValidationError as e:
        raise click.UsageError(str(e), ctx=ctx)


def emit_status(ctx: click.Context, result: Result, json_output: bool) -> None:
    """Print the outcome and exit non-zero on error."""
    if json_output:
        click.echo(json.dumps(result.to_status()))
        if result.is_error:
            ctx.exit(1)
        return

    if result.is_error:
        console.print(f"[red]Error: {result.message}[/red]")
        raise click.Abort()
    console.print("[green]Done[/green]")


def write_report(report: dict[str, Any], report_path: str) -> None:
    text = json.dumps(report, indent=2)
    if report_path == "-":
        click.echo(text)
        return
    path = Path(report_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """meshpipe - batch 3D asset conversion."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


@main.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(dir_okay=False), default="",
              help="Output file (extension is replaced by the format's)")
@click.option("--format", "-f", "format_id", default="glb2", show_default=True,
              help="Output format id; see 'meshpipe formats', or gltfx/glbx")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False),
              default=None, help="Options JSON file (command-line values override it)")
@click.option("--strip-normals", is_flag=True, help="Remove normals and tangents")
@click.option("--strip-uvs", "strip_texcoords", is_flag=True, help="Remove texture coordinates")
@click.option("--join-vertices", is_flag=True, help="Join identical vertices on export")
@click.option("--flip-uv", is_flag=True, help="Flip the V texture coordinate")
@click.option("--swizzle", default="", help="Axis swizzle, e.g. 'x-zy'")
@click.option("--scale", type=float, default=1.0, show_default=True, help="Uniform scale factor")
@click.option("--align-x", type=click.Choice(ALIGN_CHOICES), default="none", help="Align X to origin")
@click.option("--align-y", type=click.Choice(ALIGN_CHOICES), default="none", help="Align Y to origin")
@click.option("--align-z", type=click.Choice(ALIGN_CHOICES), default="none", help="Align Z to origin")
@click.option("--translate", nargs=3, type=float, default=(0.0, 0.0, 0.0), help="Translation X Y Z")
@click.option("--matrix", nargs=16, type=float, default=None,
              help="4x4 transform matrix, 16 values in row-major order")
@click.option("--rotate", nargs=3, type=float, default=None,
              help="XYZ rotation in degrees, applied before --matrix")
@click.option("--metallic", "metallic_factor", type=float, default=0.1, help="PBR metallic factor")
@click.option("--roughness", "roughness_factor", type=float, default=0.8, help="PBR roughness factor")
@click.option("--diffuse-map", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--occlusion-map", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--emissive-map", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--metallic-roughness-map", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--zone-map", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--normal-map", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--embed-maps", is_flag=True, help="Embed maps in the output file")
@click.option("--compress", "use_compression", is_flag=True, help="Draco-compress meshes")
@click.option("--object-space-normals", is_flag=True, help="Normal map is in object space")
@click.option("--position-bits", type=int, default=11, help="Position quantization bits")
@click.option("--texcoord-bits", type=int, default=10, help="Texture coordinate quantization bits")
@click.option("--normal-bits", type=int, default=8, help="Normal quantization bits")
@click.option("--generic-bits", type=int, default=8, help="Generic attribute quantization bits")
@click.option("--compression-level", type=int, default=7, help="Draco compression level (0-10)")
@click.option("--report", "report_path", default=None,
              help="Write the JSON report to this file ('-' for stdout)")
@click.option("--dump", is_flag=True, help="Print a scene summary")
@click.option("--json", "json_output", is_flag=True, help="Print the status document as JSON")
@click.pass_context
def convert(
    ctx: click.Context,
    input_path: str,
    config_path: str | None,
    rotate: tuple[float, float, float] | None,
    report_path: str | None,
    dump: bool,
    json_output: bool,
    **params: Any,
) -> None:
    """Convert a 3D file, applying the requested transforms.

    INPUT_PATH: Path to the model file
    """
    options = build_options(ctx, input_path, config_path, rotate, params)
    scene = Scene(options)

    result = scene.load()
    if result:
        result = scene.process()
    if result:
        result = scene.save()

    if scene.is_valid():
        if report_path:
            write_report(scene.get_report(), report_path)
        if dump:
            scene.dump(err_console if json_output else console)

    emit_status(ctx, result, json_output)


@main.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "json_output", is_flag=True, help="Print the report document as JSON")
@click.pass_context
def info(ctx: click.Context, input_path: str, json_output: bool) -> None:
    """Show statistics for a 3D file.

    INPUT_PATH: Path to the model file
    """
    options = Options(input=input_path, verbose=bool(ctx.obj.get("verbose")))
    scene = Scene(options)
    result = scene.load()

    if result.is_error:
        emit_status(ctx, result, json_output)
        return

    if json_output:
        click.echo(json.dumps(scene.get_report(), indent=2))
        return

    scene.dump(console)

    geometry = scene.get_report()["scene"]["geometry"]
    if geometry["valid"]:
        lo = geometry["boundingBox"]["min"]
        hi = geometry["boundingBox"]["max"]
        size = geometry["size"]
        console.print(f"Bounds (min): ({lo[0]:.3f}, {lo[1]:.3f}, {lo[2]:.3f})")
        console.print(f"Bounds (max): ({hi[0]:.3f}, {hi[1]:.3f}, {hi[2]:.3f})")
        console.print(f"Size: {size[0]:.3f} x {size[1]:.3f} x {size[2]:.3f}")
    else:
        console.print("[yellow]Scene has no geometry[/yellow]")


@main.command()
@click.option("--json", "json_output", is_flag=True, help="Print the list document as JSON")
def formats(json_output: bool) -> None:
    """List output formats of the generic exporter."""
    document = Scene.get_export_formats(FormatRegistry())

    if json_output:
        click.echo(json.dumps(document))
        return

    table = Table(title="Export Formats")
    table.add_column("Id", style="cyan")
    table.add_column("Extension", style="green")
    table.add_column("Description", style="white")

    for fmt in document["list"]:
        table.add_row(fmt["id"], fmt["extension"], fmt["description"])
    table.add_row("gltfx", "gltf", "Custom glTF with material maps and Draco compression")
    table.add_row("glbx", "glb", "Custom GLB with material maps and Draco compression")

    console.print(table)


@main.command("init-config")
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False),
    default="meshpipe_options.json",
    help="Output path for the options file",
)
def init_config(output: str) -> None:
    """Write a default options file."""
    try:
        Options().to_file(output)
    except OSError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise click.Abort()
    console.print(f"[green]Created options file: {output}[/green]")

"""Conversion scene: load, process, save and report one input file.

``Scene`` owns the imported scene graph and its import/export
collaborators, and runs the pipeline stages in a fixed order. Each stage
returns a ``Result``; failures are handed back to the caller unchanged.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from rich.console import Console
from rich.table import Table

from ..core.result import Result, status_document
from ..export.dispatcher import CompressedExporter, ExportDispatcher
from ..export.formats import FormatRegistry, TrimeshExporter
from ..export.gltf import GLTFExporter
from ..mesh import processor
from ..mesh.importer import Component, ProcessFlags, TrimeshImporter
from .report import build_report, format_list_document

if TYPE_CHECKING:
    from ..core.config import Options
    from ..mesh.model import SceneGraph

logger = logging.getLogger(__name__)

# Always removed on import; only geometry survives
DEFAULT_REMOVED_COMPONENTS = (
    Component.MATERIALS
    | Component.TEXTURES
    | Component.LIGHTS
    | Component.CAMERAS
    | Component.ANIMATIONS
    | Component.BONE_WEIGHTS
    | Component.COLORS
)


class SceneState(str, Enum):
    CONSTRUCTED = "constructed"
    LOADED = "loaded"
    FAILED = "failed"


class Scene:
    """One input-to-output conversion.

    Args:
        options: Conversion options for this run
        importer: Import collaborator (trimesh-backed by default)
        registry: Generic export formats
        exporter: Generic export collaborator
        compressed_factory: Creates the custom glTF exporter
    """

    def __init__(
        self,
        options: Options,
        importer: TrimeshImporter | None = None,
        registry: FormatRegistry | None = None,
        exporter: TrimeshExporter | None = None,
        compressed_factory: Callable[[], CompressedExporter] = GLTFExporter,
    ):
        self.options = options
        self._importer = importer if importer is not None else TrimeshImporter()
        self._registry = registry if registry is not None else FormatRegistry()
        self._exporter = exporter if exporter is not None else TrimeshExporter(self._registry)
        self._compressed_factory = compressed_factory
        self._graph: SceneGraph | None = None
        self._state = SceneState.CONSTRUCTED

    @staticmethod
    def get_export_formats(registry: FormatRegistry | None = None) -> dict[str, Any]:
        """Return the ``list`` document of generic export formats."""
        return format_list_document(registry if registry is not None else FormatRegistry())

    @staticmethod
    def get_status(error_message: str = "") -> dict[str, Any]:
        """Return the ``status`` document (``error`` only if a message is given)."""
        return status_document(error_message)

    @property
    def state(self) -> SceneState:
        return self._state

    @property
    def graph(self) -> SceneGraph | None:
        """The imported scene graph, None until loaded."""
        return self._graph

    def is_valid(self) -> bool:
        """True once a scene has been loaded."""
        return self._graph is not None

    def _log(self, message: str) -> None:
        if self.options.verbose:
            logger.info(message)
        else:
            logger.debug(message)

    def _require_graph(self) -> SceneGraph:
        if self._graph is None:
            raise RuntimeError("No scene loaded; call load() first")
        return self._graph

    def load(self) -> Result:
        """Read the input file, keeping only geometry.

        Materials, textures, lights, cameras, animations, bone weights and
        vertex colors are always removed; normals/tangents and texture
        coordinates are removed when the strip options ask for it. Identical
        vertices are joined and faces triangulated.
        """
        if self._state != SceneState.CONSTRUCTED:
            raise RuntimeError(f"Scene can only be loaded once (state: {self._state.value})")

        remove = DEFAULT_REMOVED_COMPONENTS

        if self.options.strip_normals:
            self._log("Strip normals/tangents")
            remove |= Component.NORMALS | Component.TANGENTS_AND_BITANGENTS

        if self.options.strip_texcoords:
            self._log("Strip TexCoords")
            remove |= Component.TEXCOORDS

        self._importer.set_remove_components(remove)
        flags = (
            ProcessFlags.REMOVE_COMPONENT
            | ProcessFlags.JOIN_IDENTICAL_VERTICES
            | ProcessFlags.TRIANGULATE
        )

        self._graph = self._importer.read_file(self.options.input, flags)

        if self._graph is None:
            self._state = SceneState.FAILED
            return Result.error(
                f"failed to read input file: {self.options.input}, "
                f"reason: {self._importer.error_string}"
            )

        self._state = SceneState.LOADED
        return Result.ok()

    def process(self) -> Result:
        """Apply the configured transforms.

        Stages run in this order, each only when its option differs from the
        default: swizzle, scale, align, translate, matrix transform, flip V.
        """
        graph = self._require_graph()
        opts = self.options

        if opts.swizzle:
            self._log(f"Swizzle: {opts.swizzle}")
            processor.swizzle(graph, opts.swizzle)

        if opts.scale != 1.0:
            self._log(f"Scale: {opts.scale}")
            processor.scale(graph, opts.scale)

        if opts.has_alignment:
            self._log(
                f"Align: x={opts.align_x.value}, y={opts.align_y.value}, z={opts.align_z.value}"
            )
            processor.align(graph, opts.align_x, opts.align_y, opts.align_z)

        if opts.has_translation:
            self._log(f"Translate: {opts.translate}")
            processor.translate(graph, opts.translate)

        if opts.has_transform:
            self._log(f"Transform: {opts.matrix_array.tolist()}")
            processor.transform(graph, opts.matrix_array)

        if opts.flip_uv:
            self._log("FlipUVs - Flip V coordinate")
            processor.flip_uvs(graph, False, True)

        return Result.ok()

    def save(self) -> Result:
        """Write the scene in the configured format."""
        graph = self._require_graph()
        dispatcher = ExportDispatcher(
            self.options,
            registry=self._registry,
            exporter=self._exporter,
            compressed_factory=self._compressed_factory,
        )
        result = dispatcher.export(graph)
        if result.is_error:
            # The graph stays available for reporting
            self._state = SceneState.FAILED
        return result

    def get_report(self) -> dict[str, Any]:
        """Return the ``report`` document for the current scene."""
        return build_report(self._require_graph(), self.options.input)

    def dump(self, console: Console | None = None) -> None:
        """Print a human-readable summary of the scene."""
        graph = self._require_graph()
        console = console or Console()

        console.print(f"\n[bold]File: {self.options.input}[/bold]\n")

        summary = Table(show_header=False)
        summary.add_column("Property", style="cyan")
        summary.add_column("Value", style="green")
        summary.add_row("Meshes", str(graph.num_meshes))
        summary.add_row("Materials", str(len(graph.materials)))
        summary.add_row("Textures", str(len(graph.textures)))
        summary.add_row("Lights", str(len(graph.lights)))
        summary.add_row("Cameras", str(len(graph.cameras)))
        summary.add_row("Animations", str(len(graph.animations)))
        console.print(summary)

        if not graph.meshes:
            return

        table = Table(title="Meshes")
        table.add_column("#", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Vertices", justify="right")
        table.add_column("Faces", justify="right")
        table.add_column("Normals")
        table.add_column("Tangents")
        table.add_column("UV Channels", justify="right")
        table.add_column("Color Channels", justify="right")

        for i, mesh in enumerate(graph.meshes):
            table.add_row(
                str(i),
                mesh.name,
                f"{mesh.num_vertices:,}",
                f"{mesh.num_faces:,}",
                "Yes" if mesh.has_normals else "No",
                "Yes" if mesh.has_tangents_and_bitangents else "No",
                str(mesh.num_uv_channels),
                str(mesh.num_color_channels),
            )

        console.print(table)

    def __repr__(self) -> str:
        return f"Scene('{self.options.input}', {self._state.value})"

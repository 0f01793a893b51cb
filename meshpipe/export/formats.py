"""Generic export formats backed by trimesh.

``FormatRegistry`` enumerates the output formats with their canonical file
extensions, and ``TrimeshExporter`` writes a ``SceneGraph`` in one of them.
The exporter reports failure through its return value and
``error_string`` rather than raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from ..mesh.importer import ProcessFlags
from ..mesh.processor import join_identical_vertices

if TYPE_CHECKING:
    from ..mesh.model import SceneGraph

logger = logging.getLogger(__name__)

# trimesh file types that can hold a whole scene; the rest get one
# concatenated mesh
SCENE_FILE_TYPES = ("obj", "gltf", "glb")


@dataclass(frozen=True)
class ExportFormat:
    """Description of one output format.

    Attributes:
        id: Format identifier used on the command line
        file_extension: Canonical extension without the dot
        description: Human-readable name
        file_type: trimesh file type passed to ``Scene.export``
        export_kwargs: Extra keyword arguments for the trimesh exporter
    """

    id: str
    file_extension: str
    description: str
    file_type: str = ""
    export_kwargs: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "extension": self.file_extension,
            "description": self.description,
        }


DEFAULT_FORMATS: tuple[ExportFormat, ...] = (
    ExportFormat("collada", "dae", "COLLADA - Digital Asset Exchange Schema", "dae"),
    ExportFormat("obj", "obj", "Wavefront OBJ format", "obj"),
    ExportFormat("stl", "stl", "Stereolithography", "stl_ascii"),
    ExportFormat("stlb", "stl", "Stereolithography (binary)", "stl"),
    ExportFormat("ply", "ply", "Stanford Polygon Library", "ply", {"encoding": "ascii"}),
    ExportFormat("plyb", "ply", "Stanford Polygon Library (binary)", "ply", {"encoding": "binary"}),
    ExportFormat("off", "off", "Object File Format", "off"),
    ExportFormat("gltf2", "gltf", "GL Transmission Format v. 2", "gltf"),
    ExportFormat("glb2", "glb", "GL Transmission Format v. 2 (binary)", "glb"),
)


class FormatRegistry:
    """Ordered collection of the formats the generic exporter can write."""

    def __init__(self, formats: Iterable[ExportFormat] | None = None):
        self._formats = tuple(DEFAULT_FORMATS if formats is None else formats)

    def list_formats(self) -> tuple[ExportFormat, ...]:
        return self._formats

    def find(self, format_id: str) -> ExportFormat | None:
        """Return the format with the given id, or None if unknown."""
        for fmt in self._formats:
            if fmt.id == format_id:
                return fmt
        return None

    def __len__(self) -> int:
        return len(self._formats)

    def __contains__(self, format_id: object) -> bool:
        return any(fmt.id == format_id for fmt in self._formats)


class TrimeshExporter:
    """Write a scene graph through trimesh's exporters."""

    def __init__(self, registry: FormatRegistry | None = None):
        self.registry = registry or FormatRegistry()
        self._error = ""

    @property
    def error_string(self) -> str:
        """Diagnostic from the last failed ``export`` call."""
        return self._error

    def export(
        self,
        scene: SceneGraph,
        format_id: str,
        output_path: str | Path,
        flags: ProcessFlags | int = ProcessFlags.NONE,
        properties: Mapping[str, Any] | None = None,
    ) -> bool:
        """Export a scene to a file.

        Args:
            scene: Scene to write; it is not modified
            format_id: Id of a registered format
            output_path: Destination file
            flags: Post-processing applied to a copy of the scene first
            properties: Extra keyword arguments for the trimesh exporter,
                overriding the format's defaults

        Returns:
            True on success, False on failure (see ``error_string``)
        """
        self._error = ""
        fmt = self.registry.find(format_id)
        if fmt is None:
            self._error = f"unknown format id: {format_id}"
            return False

        if ProcessFlags(flags) & ProcessFlags.JOIN_IDENTICAL_VERTICES:
            scene = scene.copy()
            removed = sum(join_identical_vertices(mesh) for mesh in scene.meshes)
            logger.debug(f"Joined {removed} identical vertices")

        kwargs = dict(fmt.export_kwargs)
        kwargs.update(properties or {})

        try:
            tm_scene = scene.to_trimesh_scene()
            if tm_scene.is_empty:
                self._error = "scene contains no exportable geometry"
                return False
            target = tm_scene if fmt.file_type in SCENE_FILE_TYPES else tm_scene.to_mesh()
            target.export(file_obj=str(output_path), file_type=fmt.file_type, **kwargs)
        except Exception as e:
            self._error = str(e) or type(e).__name__
            return False

        return True

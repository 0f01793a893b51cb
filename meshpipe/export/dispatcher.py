"""Choose between the generic exporter and the custom glTF exporter."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Protocol

from ..core.result import Result
from ..mesh.importer import ProcessFlags
from .formats import FormatRegistry, TrimeshExporter
from .gltf import GLTFExporter, GLTFExporterOptions

if TYPE_CHECKING:
    from ..core.config import Options
    from ..mesh.model import SceneGraph

logger = logging.getLogger(__name__)


class CompressedExporter(Protocol):
    """What the dispatcher needs from a custom glTF exporter."""

    def set_options(self, options: GLTFExporterOptions) -> None: ...

    def export_scene(self, scene: SceneGraph, output_path: str | Path) -> Result: ...


def build_gltf_options(options: Options) -> GLTFExporterOptions:
    """Copy the custom-export fields of ``options`` into exporter options."""
    return GLTFExporterOptions(
        verbose=options.verbose,
        metallic_factor=options.metallic_factor,
        roughness_factor=options.roughness_factor,
        diffuse_map_file=options.maps.diffuse,
        occlusion_map_file=options.maps.occlusion,
        emissive_map_file=options.maps.emissive,
        metallic_roughness_map_file=options.maps.metallic_roughness,
        zone_map_file=options.maps.zone,
        normal_map_file=options.maps.normal,
        embed_maps=options.embed_maps,
        use_compression=options.use_compression,
        object_space_normals=options.object_space_normals,
        strip_normals=options.strip_normals,
        strip_texcoords=options.strip_texcoords,
        write_binary=options.format == "glbx",
        draco=options.draco.model_copy(),
    )


def resolve_output_path(options: Options, extension: str) -> Path:
    """Return the output file path with its extension replaced.

    Falls back to the input path when no output is configured. The base
    name is kept; any existing extension is dropped.
    """
    path = Path(options.output or options.input)
    return path.with_suffix(f".{extension}")


class ExportDispatcher:
    """Write a scene in the format requested by the options.

    Args:
        options: Conversion options
        registry: Formats available to the generic exporter
        exporter: Generic exporter
        compressed_factory: Creates the custom glTF exporter on demand
    """

    def __init__(
        self,
        options: Options,
        registry: FormatRegistry | None = None,
        exporter: TrimeshExporter | None = None,
        compressed_factory: Callable[[], CompressedExporter] = GLTFExporter,
    ):
        self.options = options
        self.registry = registry if registry is not None else FormatRegistry()
        self.exporter = exporter if exporter is not None else TrimeshExporter(self.registry)
        self.compressed_factory = compressed_factory

    def _log(self, message: str) -> None:
        if self.options.verbose:
            logger.info(message)
        else:
            logger.debug(message)

    def export(self, scene: SceneGraph) -> Result:
        """Export the scene; see ``export_custom`` and ``export_generic``."""
        if self.options.is_custom_gltf:
            return self.export_custom(scene)
        return self.export_generic(scene)

    def export_custom(self, scene: SceneGraph) -> Result:
        """Export through the custom glTF exporter."""
        gltf_options = build_gltf_options(self.options)
        extension = "glb" if gltf_options.write_binary else "gltf"
        output_path = resolve_output_path(self.options, extension)

        self._log(f"Exporting custom glTF, binary: {gltf_options.write_binary}")
        self._log(f"Writing to output file: {output_path}")

        exporter = self.compressed_factory()
        exporter.set_options(gltf_options)
        return exporter.export_scene(scene, output_path)

    def export_generic(self, scene: SceneGraph) -> Result:
        """Export through the generic exporter using the format registry."""
        fmt = self.registry.find(self.options.format)
        if fmt is None:
            return Result.error(f"invalid output format id: {self.options.format}")

        self._log(f"Export format: {fmt.description}")
        output_path = resolve_output_path(self.options, fmt.file_extension)
        self._log(f"Writing to output file: {output_path}")

        flags = ProcessFlags.NONE
        if self.options.join_vertices:
            self._log("Join Identical Vertices")
            flags |= ProcessFlags.JOIN_IDENTICAL_VERTICES

        if not self.exporter.export(scene, fmt.id, output_path, flags, {}):
            return Result.error(
                f"failed to write output file: {output_path}, reason: {self.exporter.error_string}"
            )

        return Result.ok()

"""Custom glTF/GLB exporter with material maps and Draco compression.

The mesh data is written with trimesh's glTF exporter. A tree
post-processor then attaches a single PBR material built from the
configured map files to every primitive:

    - diffuse            -> pbrMetallicRoughness.baseColorTexture
    - metallic_roughness -> pbrMetallicRoughness.metallicRoughnessTexture
    - normal             -> normalTexture
    - occlusion          -> occlusionTexture
    - emissive           -> emissiveTexture
    - zone               -> extras.zoneTexture

Maps are embedded as data URIs when ``embed_maps`` is set and referenced by
relative URI otherwise. When ``use_compression`` is set the written file is
passed through the ``gltf-pipeline`` tool, which applies
KHR_draco_mesh_compression with the configured quantization bit depths.
"""

from __future__ import annotations

import base64
import logging
import mimetypes
import os
import shutil
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field
from trimesh.exchange.gltf import export_glb, export_gltf

from ..core.config import DracoOptions
from ..core.result import Result

if TYPE_CHECKING:
    from ..mesh.model import SceneGraph

logger = logging.getLogger(__name__)

DRACO_TOOL = "gltf-pipeline"


class GLTFExporterOptions(BaseModel):
    """Everything the custom glTF exporter needs for one export."""

    verbose: bool = False
    metallic_factor: float = Field(default=0.1, ge=0.0, le=1.0)
    roughness_factor: float = Field(default=0.8, ge=0.0, le=1.0)

    diffuse_map_file: str | None = None
    occlusion_map_file: str | None = None
    emissive_map_file: str | None = None
    metallic_roughness_map_file: str | None = None
    zone_map_file: str | None = None
    normal_map_file: str | None = None

    embed_maps: bool = False
    use_compression: bool = False
    object_space_normals: bool = False
    strip_normals: bool = False
    strip_texcoords: bool = False
    write_binary: bool = False

    draco: DracoOptions = Field(default_factory=DracoOptions)

    model_config = {"frozen": True}

    @property
    def map_files(self) -> dict[str, str]:
        """Configured map files keyed by map slot."""
        slots = {
            "diffuse": self.diffuse_map_file,
            "metallic_roughness": self.metallic_roughness_map_file,
            "normal": self.normal_map_file,
            "occlusion": self.occlusion_map_file,
            "emissive": self.emissive_map_file,
            "zone": self.zone_map_file,
        }
        return {slot: path for slot, path in slots.items() if path}


def draco_command(
    input_path: str | Path,
    output_path: str | Path,
    draco: DracoOptions,
) -> list[str]:
    """Build the ``gltf-pipeline`` command line for Draco compression."""
    return [
        DRACO_TOOL,
        "-i", str(input_path),
        "-o", str(output_path),
        "--draco.compressMeshes",
        "--draco.compressionLevel", str(draco.compression_level),
        "--draco.quantizePositionBits", str(draco.position_quantization_bits),
        "--draco.quantizeNormalBits", str(draco.normals_quantization_bits),
        "--draco.quantizeTexcoordBits", str(draco.texcoords_quantization_bits),
        "--draco.quantizeGenericBits", str(draco.generic_quantization_bits),
    ]


class GLTFExporter:
    """Export a scene graph as glTF or GLB."""

    def __init__(self, options: GLTFExporterOptions | None = None):
        self.options = options or GLTFExporterOptions()

    def set_options(self, options: GLTFExporterOptions) -> None:
        self.options = options

    def export_scene(self, scene: SceneGraph, output_path: str | Path) -> Result:
        """Write the scene to ``output_path``.

        Args:
            scene: Scene to export; it is not modified
            output_path: Destination .gltf or .glb file

        Returns:
            Result of the export
        """
        opts = self.options
        output_path = Path(output_path)

        tm_scene = scene.to_trimesh_scene(
            include_normals=not opts.strip_normals,
            include_texcoords=not opts.strip_texcoords,
        )
        if tm_scene.is_empty:
            return Result.error(f"failed to write output file: {output_path}, reason: no geometry to export")

        try:
            maps = self._read_maps(output_path.parent)
        except OSError as e:
            return Result.error(f"failed to read material map: {e}")

        def postprocess(tree: dict[str, Any]) -> None:
            self._bind_material(tree, maps)

        try:
            if opts.write_binary:
                files = {output_path.name: export_glb(
                    tm_scene,
                    include_normals=not opts.strip_normals,
                    tree_postprocessor=postprocess,
                )}
            else:
                files = export_gltf(
                    tm_scene,
                    include_normals=not opts.strip_normals,
                    embed_buffers=True,
                    tree_postprocessor=postprocess,
                )
                files[output_path.name] = files.pop("model.gltf")
        except (ValueError, TypeError, KeyError) as e:
            return Result.error(f"failed to write output file: {output_path}, reason: {e}")

        if opts.use_compression:
            return self._write_compressed(files, output_path)

        try:
            self._write_files(files, output_path.parent)
        except OSError as e:
            return Result.error(f"failed to write output file: {output_path}, reason: {e}")

        if opts.verbose:
            logger.info(f"Wrote {output_path}")
        return Result.ok()

    def _read_maps(self, output_dir: Path) -> dict[str, dict[str, str]]:
        """Resolve each configured map to a glTF image entry."""
        images: dict[str, dict[str, str]] = {}

        for slot, file_name in self.options.map_files.items():
            path = Path(file_name)
            mime_type = mimetypes.guess_type(path.name)[0] or "image/png"

            if self.options.embed_maps:
                data = base64.b64encode(path.read_bytes()).decode("ascii")
                image = {"uri": f"data:{mime_type};base64,{data}", "mimeType": mime_type}
            else:
                try:
                    uri = Path(os.path.relpath(path, output_dir)).as_posix()
                except ValueError:
                    # Different drive on Windows; keep the path as given
                    uri = path.as_posix()
                image = {"uri": uri}

            image["name"] = path.stem
            images[slot] = image

            if self.options.verbose:
                mode = "embedded" if self.options.embed_maps else "referenced"
                logger.info(f"Material map {slot}: {file_name} ({mode})")

        return images

    def _bind_material(self, tree: dict[str, Any], maps: dict[str, dict[str, str]]) -> None:
        """Replace the materials in a glTF tree with one PBR material."""
        opts = self.options

        images = tree.setdefault("images", [])
        textures = tree.setdefault("textures", [])

        def add_texture(slot: str) -> dict[str, int] | None:
            image = maps.get(slot)
            if image is None:
                return None
            images.append(image)
            textures.append({"source": len(images) - 1})
            return {"index": len(textures) - 1}

        pbr: dict[str, Any] = {
            "metallicFactor": opts.metallic_factor,
            "roughnessFactor": opts.roughness_factor,
        }
        material: dict[str, Any] = {"name": "material", "pbrMetallicRoughness": pbr}
        extras: dict[str, Any] = {}

        base_color = add_texture("diffuse")
        if base_color:
            pbr["baseColorTexture"] = base_color
        metallic_roughness = add_texture("metallic_roughness")
        if metallic_roughness:
            pbr["metallicRoughnessTexture"] = metallic_roughness
        normal = add_texture("normal")
        if normal:
            material["normalTexture"] = normal
            if opts.object_space_normals:
                extras["objectSpaceNormals"] = True
        occlusion = add_texture("occlusion")
        if occlusion:
            material["occlusionTexture"] = occlusion
        emissive = add_texture("emissive")
        if emissive:
            material["emissiveTexture"] = emissive
            material["emissiveFactor"] = [1.0, 1.0, 1.0]
        zone = add_texture("zone")
        if zone:
            extras["zoneTexture"] = zone

        if extras:
            material["extras"] = extras

        # Materials are stripped on import, so this one replaces whatever
        # default material trimesh wrote
        tree["materials"] = [material]

        for mesh in tree.get("meshes", []):
            for primitive in mesh.get("primitives", []):
                primitive["material"] = 0

        if not images:
            del tree["images"]
        if not textures:
            del tree["textures"]

    @staticmethod
    def _write_files(files: dict[str, bytes], directory: Path) -> None:
        directory.mkdir(parents=True, exist_ok=True)
        for name, data in files.items():
            (directory / name).write_bytes(data)

    def _write_compressed(self, files: dict[str, bytes], output_path: Path) -> Result:
        """Write an uncompressed intermediate beside the output, then compress it.

        The intermediate lives in the output directory so relative map URIs
        resolve the same way they will for the final file.
        """
        if shutil.which(DRACO_TOOL) is None:
            return Result.error(
                f"failed to compress output file: {output_path}, reason: {DRACO_TOOL} not found on PATH"
            )

        intermediate = output_path.with_name(f"{output_path.stem}.uncompressed{output_path.suffix}")
        files = dict(files)
        files[intermediate.name] = files.pop(output_path.name)

        try:
            self._write_files(files, output_path.parent)
        except OSError as e:
            return Result.error(f"failed to write output file: {output_path}, reason: {e}")

        command = draco_command(intermediate, output_path, self.options.draco)
        if self.options.verbose:
            logger.info(f"Draco compression: {' '.join(command)}")

        try:
            subprocess.run(command, check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as e:
            reason = (e.stderr or e.stdout or str(e)).strip()
            return Result.error(f"failed to compress output file: {output_path}, reason: {reason}")
        finally:
            intermediate.unlink(missing_ok=True)

        return Result.ok()

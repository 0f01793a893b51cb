"""Mesh import using trimesh.

Loads 3D files in any format trimesh understands (OBJ, STL, PLY, OFF, GLB,
glTF, ...) and converts them to a ``SceneGraph``. Scene-graph node
transforms are baked into world-space meshes. Import behaves like a
library call: failures return ``None`` and leave a diagnostic in
``error_string``.
"""

from __future__ import annotations

import logging
from enum import IntFlag
from pathlib import Path

import trimesh

from .model import Mesh, SceneGraph
from .processor import join_identical_vertices

logger = logging.getLogger(__name__)


class Component(IntFlag):
    """Scene components that can be removed during import."""

    NONE = 0
    NORMALS = 1 << 0
    TANGENTS_AND_BITANGENTS = 1 << 1
    COLORS = 1 << 2
    TEXCOORDS = 1 << 3
    BONE_WEIGHTS = 1 << 4
    ANIMATIONS = 1 << 5
    TEXTURES = 1 << 6
    LIGHTS = 1 << 7
    CAMERAS = 1 << 8
    MATERIALS = 1 << 9


class ProcessFlags(IntFlag):
    """Post-processing steps requested on import or export."""

    NONE = 0
    REMOVE_COMPONENT = 1 << 0
    JOIN_IDENTICAL_VERTICES = 1 << 1
    # trimesh always triangulates polygon faces on load
    TRIANGULATE = 1 << 2


class TrimeshImporter:
    """Read mesh files into a ``SceneGraph``."""

    def __init__(self) -> None:
        self._remove_components = Component.NONE
        self._error = ""

    @property
    def remove_components(self) -> Component:
        return self._remove_components

    def set_remove_components(self, components: Component | int) -> None:
        """Select which components ``ProcessFlags.REMOVE_COMPONENT`` strips."""
        self._remove_components = Component(components)

    @property
    def error_string(self) -> str:
        """Diagnostic from the last failed ``read_file`` call."""
        return self._error

    def read_file(
        self,
        path: str | Path,
        flags: ProcessFlags | int = ProcessFlags.NONE,
    ) -> SceneGraph | None:
        """Load a file and apply the requested post-processing.

        trimesh triangulates polygon faces while loading, so meshes are
        always triangles whether or not ``ProcessFlags.TRIANGULATE`` is
        passed; the flag is accepted for completeness.

        Args:
            path: Path to the mesh file
            flags: Post-processing steps to apply

        Returns:
            The imported scene, or None on failure
        """
        self._error = ""
        flags = ProcessFlags(flags)
        path = Path(path)

        if not path.is_file():
            self._error = f"file not found: {path}"
            return None

        try:
            loaded = trimesh.load(str(path), force="scene")
            if not isinstance(loaded, trimesh.Scene):
                self._error = f"unexpected type from trimesh.load: {type(loaded).__name__}"
                return None

            scene = self._convert_scene(loaded)

            if flags & ProcessFlags.REMOVE_COMPONENT:
                self._strip_components(scene)

            if flags & ProcessFlags.JOIN_IDENTICAL_VERTICES:
                for mesh in scene.meshes:
                    join_identical_vertices(mesh)
        except Exception as e:
            self._error = str(e) or type(e).__name__
            return None

        logger.debug(f"Imported {path.name}: {scene.num_meshes} meshes, {scene.num_vertices} vertices")
        return scene

    @staticmethod
    def _convert_scene(tm_scene: trimesh.Scene) -> SceneGraph:
        """Convert a trimesh Scene, baking each node transform into its mesh."""
        scene = SceneGraph()
        materials: dict[int, str] = {}
        textures: set[int] = set()

        graph = tm_scene.graph
        for node_name in graph.nodes_geometry:
            transform, geometry_name = graph.get(node_name)
            geometry = tm_scene.geometry.get(geometry_name)

            # Skip non-mesh geometry (e.g., PointCloud, Path)
            if not isinstance(geometry, trimesh.Trimesh):
                continue

            mesh = geometry.copy()
            mesh.apply_transform(transform)
            scene.meshes.append(Mesh.from_trimesh(mesh, name=str(node_name)))

            material = getattr(geometry.visual, "material", None)
            if material is not None and id(material) not in materials:
                materials[id(material)] = getattr(material, "name", None) or f"material_{len(materials)}"
                for attr in ("image", "baseColorTexture", "normalTexture", "emissiveTexture",
                             "occlusionTexture", "metallicRoughnessTexture"):
                    image = getattr(material, attr, None)
                    if image is not None:
                        textures.add(id(image))

        scene.materials = list(materials.values())
        scene.textures = [f"texture_{i}" for i in range(len(textures))]
        if tm_scene.has_camera:
            scene.cameras = ["camera"]

        return scene

    def _strip_components(self, scene: SceneGraph) -> None:
        remove = self._remove_components

        if remove & Component.MATERIALS:
            scene.materials = []
        if remove & Component.TEXTURES:
            scene.textures = []
        if remove & Component.LIGHTS:
            scene.lights = []
        if remove & Component.CAMERAS:
            scene.cameras = []
        if remove & Component.ANIMATIONS:
            scene.animations = []

        for mesh in scene.meshes:
            if remove & Component.NORMALS:
                mesh.normals = None
            if remove & Component.TANGENTS_AND_BITANGENTS:
                mesh.tangents = None
                mesh.bitangents = None
            if remove & Component.TEXCOORDS:
                mesh.uv_channels = []
            if remove & Component.COLORS:
                mesh.color_channels = []
            if remove & Component.BONE_WEIGHTS:
                mesh.num_bones = 0

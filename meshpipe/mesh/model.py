"""In-memory scene graph handed between pipeline stages.

A ``SceneGraph`` is what the importer produces and what every later stage
reads and mutates. Meshes store their vertex attributes as numpy arrays;
the remaining scene components are kept as name listings so they can be
counted in reports.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
import trimesh
from numpy.typing import NDArray


def _as_attribute(
    values: NDArray | None,
    width: int,
    num_vertices: int,
    name: str,
) -> NDArray[np.float64] | None:
    if values is None:
        return None
    values = np.asarray(values, dtype=np.float64)
    if values.ndim != 2 or values.shape[1] != width:
        raise ValueError(f"{name} must be Nx{width} array, got shape {values.shape}")
    if len(values) != num_vertices:
        raise ValueError(f"{name} length must match vertex count")
    return values


@dataclass
class Mesh:
    """A triangle mesh with per-vertex attributes.

    Attributes:
        vertices: Nx3 array of positions
        faces: Fx3 array of vertex indices
        name: Mesh name from the source file
        normals: Optional Nx3 array of unit normals
        tangents: Optional Nx3 array of tangents
        bitangents: Optional Nx3 array of bitangents
        uv_channels: List of Nx2 texture coordinate arrays
        color_channels: List of Nx4 RGBA color arrays
        num_bones: Number of bones skinning this mesh
    """

    vertices: NDArray[np.float64]
    faces: NDArray[np.int64] = field(default_factory=lambda: np.empty((0, 3), dtype=np.int64))
    name: str = ""
    normals: NDArray[np.float64] | None = None
    tangents: NDArray[np.float64] | None = None
    bitangents: NDArray[np.float64] | None = None
    uv_channels: list[NDArray[np.float64]] = field(default_factory=list)
    color_channels: list[NDArray[np.float64]] = field(default_factory=list)
    num_bones: int = 0

    def __post_init__(self) -> None:
        """Validate and normalize data after initialization."""
        self.vertices = np.asarray(self.vertices, dtype=np.float64).reshape(-1, 3)
        self.faces = np.asarray(self.faces, dtype=np.int64).reshape(-1, 3)

        n = len(self.vertices)
        self.normals = _as_attribute(self.normals, 3, n, "Normals")
        self.tangents = _as_attribute(self.tangents, 3, n, "Tangents")
        self.bitangents = _as_attribute(self.bitangents, 3, n, "Bitangents")
        self.uv_channels = [_as_attribute(uv, 2, n, "UV channel") for uv in self.uv_channels]
        self.color_channels = [
            _as_attribute(c, 4, n, "Color channel") for c in self.color_channels
        ]

        if len(self.faces) and (self.faces.min() < 0 or self.faces.max() >= n):
            raise ValueError("Face indices out of range")

    @property
    def num_vertices(self) -> int:
        return len(self.vertices)

    @property
    def num_faces(self) -> int:
        return len(self.faces)

    @property
    def has_normals(self) -> bool:
        return self.normals is not None and self.num_vertices > 0

    @property
    def has_tangents_and_bitangents(self) -> bool:
        return (
            self.tangents is not None
            and self.bitangents is not None
            and self.num_vertices > 0
        )

    @property
    def has_bones(self) -> bool:
        return self.num_bones > 0

    def has_texcoords(self, channel: int = 0) -> bool:
        return channel < len(self.uv_channels) and self.num_vertices > 0

    def has_vertex_colors(self, channel: int = 0) -> bool:
        return channel < len(self.color_channels) and self.num_vertices > 0

    @property
    def num_uv_channels(self) -> int:
        return len(self.uv_channels)

    @property
    def num_color_channels(self) -> int:
        return len(self.color_channels)

    @classmethod
    def from_trimesh(cls, mesh: trimesh.Trimesh, name: str = "") -> Mesh:
        """Convert a trimesh object, keeping normals, UVs and vertex colors.

        Args:
            mesh: Source trimesh geometry
            name: Mesh name

        Returns:
            Mesh with its own copies of the vertex data
        """
        uv_channels = []
        color_channels = []

        visual = mesh.visual
        if visual.kind == "texture" and getattr(visual, "uv", None) is not None:
            uv = np.asarray(visual.uv, dtype=np.float64)
            if len(uv) == len(mesh.vertices):
                uv_channels.append(uv)
        elif visual.kind == "vertex":
            colors = np.asarray(visual.vertex_colors, dtype=np.float64) / 255.0
            color_channels.append(colors)

        normals = None
        if len(mesh.faces):
            normals = np.array(mesh.vertex_normals, dtype=np.float64)

        return cls(
            vertices=np.array(mesh.vertices, dtype=np.float64),
            faces=np.array(mesh.faces, dtype=np.int64),
            name=name,
            normals=normals,
            uv_channels=uv_channels,
            color_channels=color_channels,
        )

    def to_trimesh(
        self,
        include_normals: bool = True,
        include_texcoords: bool = True,
    ) -> trimesh.Trimesh:
        """Convert to a trimesh object for export.

        Only the first UV and color channels are carried over; trimesh holds
        one of each. Vertex order is preserved (``process=False``).
        """
        visual = None
        if include_texcoords and self.uv_channels:
            visual = trimesh.visual.TextureVisuals(uv=self.uv_channels[0])
        elif self.color_channels:
            rgba = np.clip(np.round(self.color_channels[0] * 255.0), 0, 255).astype(np.uint8)
            visual = trimesh.visual.ColorVisuals(vertex_colors=rgba)

        normals = self.normals if include_normals else None

        return trimesh.Trimesh(
            vertices=self.vertices.copy(),
            faces=self.faces.copy(),
            vertex_normals=None if normals is None else normals.copy(),
            visual=visual,
            process=False,
        )

    def copy(self) -> Mesh:
        """Return a deep copy of this mesh."""
        return Mesh(
            vertices=self.vertices.copy(),
            faces=self.faces.copy(),
            name=self.name,
            normals=None if self.normals is None else self.normals.copy(),
            tangents=None if self.tangents is None else self.tangents.copy(),
            bitangents=None if self.bitangents is None else self.bitangents.copy(),
            uv_channels=[uv.copy() for uv in self.uv_channels],
            color_channels=[c.copy() for c in self.color_channels],
            num_bones=self.num_bones,
        )

    def __repr__(self) -> str:
        return f"Mesh('{self.name}', {self.num_vertices} vertices, {self.num_faces} faces)"


@dataclass
class SceneGraph:
    """An imported scene: meshes plus the other component listings."""

    meshes: list[Mesh] = field(default_factory=list)
    materials: list[str] = field(default_factory=list)
    textures: list[str] = field(default_factory=list)
    lights: list[str] = field(default_factory=list)
    cameras: list[str] = field(default_factory=list)
    animations: list[str] = field(default_factory=list)

    @property
    def num_meshes(self) -> int:
        return len(self.meshes)

    @property
    def num_vertices(self) -> int:
        return sum(m.num_vertices for m in self.meshes)

    @property
    def num_faces(self) -> int:
        return sum(m.num_faces for m in self.meshes)

    def to_trimesh_scene(
        self,
        include_normals: bool = True,
        include_texcoords: bool = True,
    ) -> trimesh.Scene:
        """Build a trimesh Scene holding every non-empty mesh."""
        scene = trimesh.Scene()
        for i, mesh in enumerate(self.meshes):
            # trimesh exporters cannot write geometry without faces
            if mesh.num_faces == 0:
                continue
            scene.add_geometry(
                mesh.to_trimesh(include_normals, include_texcoords),
                geom_name=mesh.name or f"mesh_{i}",
            )
        return scene

    def copy(self) -> SceneGraph:
        return SceneGraph(
            meshes=[m.copy() for m in self.meshes],
            materials=list(self.materials),
            textures=list(self.textures),
            lights=list(self.lights),
            cameras=list(self.cameras),
            animations=list(self.animations),
        )

    def __repr__(self) -> str:
        return f"SceneGraph({self.num_meshes} meshes, {self.num_vertices} vertices)"

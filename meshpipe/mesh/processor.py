"""Geometric and topology operations on a scene graph.

Every function mutates the scene's mesh arrays in place and holds no state
of its own. The orchestrator decides which operations to run and in which
order; functions here do not skip identity arguments themselves.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

import numpy as np
from numpy.typing import NDArray

from ..core.config import Align
from ..core.geometry import Range3, parse_swizzle

if TYPE_CHECKING:
    from .model import Mesh, SceneGraph

logger = logging.getLogger(__name__)


def _normalize_rows(vectors: NDArray[np.float64]) -> NDArray[np.float64]:
    lengths = np.linalg.norm(vectors, axis=1, keepdims=True)
    # Zero-length rows stay zero
    return vectors / np.where(lengths > 0.0, lengths, 1.0)


def _reverse_winding(mesh: Mesh) -> None:
    mesh.faces = mesh.faces[:, ::-1].copy()


def swizzle(scene: SceneGraph, spec: str) -> None:
    """Remap axes and signs of positions, normals, tangents and bitangents.

    Face winding is reversed when the remap is a reflection, so faces keep
    pointing the same way as their normals.

    Args:
        scene: Scene to modify
        spec: Swizzle spec such as ``"x-zy"`` (see ``parse_swizzle``).
            An empty spec does nothing.
    """
    if not spec or not spec.strip():
        return

    axes, signs = parse_swizzle(spec)
    index = list(axes)
    factor = np.asarray(signs, dtype=np.float64)
    linear = np.zeros((3, 3), dtype=np.float64)
    linear[np.arange(3), index] = factor
    mirrored = np.linalg.det(linear) < 0.0

    for mesh in scene.meshes:
        mesh.vertices = mesh.vertices[:, index] * factor
        if mesh.normals is not None:
            mesh.normals = mesh.normals[:, index] * factor
        if mesh.tangents is not None:
            mesh.tangents = mesh.tangents[:, index] * factor
        if mesh.bitangents is not None:
            mesh.bitangents = mesh.bitangents[:, index] * factor
        if mirrored:
            _reverse_winding(mesh)


def scale(scene: SceneGraph, factor: float) -> None:
    """Multiply every vertex position by a uniform factor.

    A negative factor is a point reflection: direction vectors are negated
    and face winding is reversed.
    """
    for mesh in scene.meshes:
        mesh.vertices *= factor
        if factor < 0.0:
            for attr in ("normals", "tangents", "bitangents"):
                values = getattr(mesh, attr)
                if values is not None:
                    setattr(mesh, attr, -values)
            _reverse_winding(mesh)


def translate(scene: SceneGraph, offset: Sequence[float] | NDArray[np.float64]) -> None:
    """Add a constant offset to every vertex position."""
    delta = np.asarray(offset, dtype=np.float64)
    for mesh in scene.meshes:
        mesh.vertices += delta


def align(scene: SceneGraph, align_x: Align, align_y: Align, align_z: Align) -> None:
    """Move the scene so its bounding box is aligned to the origin per axis.

    The offset is computed from the bounding box of the whole scene before
    alignment, so meshes keep their positions relative to one another.

    Args:
        scene: Scene to modify
        align_x: Which part of the X extent maps to zero (NONE keeps the axis)
        align_y: Same for Y
        align_z: Same for Z
    """
    bounds = calculate_scene_bounding_box(scene)
    if not bounds.is_valid:
        return

    lower, upper, center = bounds.lower, bounds.upper, bounds.center
    offset = np.zeros(3, dtype=np.float64)

    for axis, mode in enumerate((Align(align_x), Align(align_y), Align(align_z))):
        if mode == Align.MIN:
            offset[axis] = -lower[axis]
        elif mode == Align.CENTER:
            offset[axis] = -center[axis]
        elif mode == Align.MAX:
            offset[axis] = -upper[axis]

    logger.debug(f"Align offset: {offset.tolist()}")
    translate(scene, offset)


def transform(scene: SceneGraph, matrix: NDArray[np.float64]) -> None:
    """Apply a 4x4 affine transform.

    Positions get the full transform. Normals get the inverse transpose of
    the 3x3 linear part; tangents and bitangents get the linear part. All
    direction vectors are re-normalized.

    Face winding is reversed when the linear part has a negative
    determinant.

    Args:
        scene: Scene to modify
        matrix: 4x4 homogeneous transformation matrix
    """
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.shape != (4, 4):
        raise ValueError(f"Transform matrix must be 4x4, got shape {matrix.shape}")

    linear = matrix[:3, :3]
    offset = matrix[:3, 3]

    det = np.linalg.det(linear)
    if abs(det) > 1e-12:
        normal_matrix = np.linalg.inv(linear).T
    else:
        normal_matrix = np.linalg.pinv(linear).T

    for mesh in scene.meshes:
        mesh.vertices = mesh.vertices @ linear.T + offset
        if mesh.normals is not None:
            mesh.normals = _normalize_rows(mesh.normals @ normal_matrix.T)
        if mesh.tangents is not None:
            mesh.tangents = _normalize_rows(mesh.tangents @ linear.T)
        if mesh.bitangents is not None:
            mesh.bitangents = _normalize_rows(mesh.bitangents @ linear.T)
        if det < -1e-12:
            _reverse_winding(mesh)


def flip_uvs(scene: SceneGraph, flip_u: bool, flip_v: bool) -> None:
    """Replace selected UV components ``c`` with ``1 - c`` in every channel."""
    for mesh in scene.meshes:
        for uv in mesh.uv_channels:
            if flip_u:
                uv[:, 0] = 1.0 - uv[:, 0]
            if flip_v:
                uv[:, 1] = 1.0 - uv[:, 1]


def calculate_bounding_box(mesh: Mesh) -> Range3:
    """Return the range of a mesh's vertex positions (invalid if empty)."""
    return Range3.from_points(mesh.vertices)


def calculate_scene_bounding_box(scene: SceneGraph) -> Range3:
    """Return the union of all mesh ranges (invalid if no vertices)."""
    bounds = Range3()
    for mesh in scene.meshes:
        bounds.unite_with(calculate_bounding_box(mesh))
    return bounds


def join_identical_vertices(mesh: Mesh) -> int:
    """Merge vertices whose attributes are all identical (in-place).

    Vertices only merge when position, normal, tangent, bitangent and every
    UV and color channel match exactly. Surviving vertices keep the order of
    their first occurrence.

    Args:
        mesh: Mesh to modify

    Returns:
        Number of vertices removed
    """
    n = mesh.num_vertices
    if n == 0:
        return 0

    columns = [mesh.vertices]
    for attr in (mesh.normals, mesh.tangents, mesh.bitangents):
        if attr is not None:
            columns.append(attr)
    columns.extend(mesh.uv_channels)
    columns.extend(mesh.color_channels)
    keys = np.hstack(columns)

    _, first, inverse = np.unique(keys, axis=0, return_index=True, return_inverse=True)
    inverse = inverse.reshape(-1)

    if len(first) == n:
        return 0

    # Reorder unique vertices by first occurrence
    order = np.argsort(first)
    remap = np.empty_like(order)
    remap[order] = np.arange(len(order))
    keep = first[order]

    mesh.vertices = mesh.vertices[keep]
    if mesh.normals is not None:
        mesh.normals = mesh.normals[keep]
    if mesh.tangents is not None:
        mesh.tangents = mesh.tangents[keep]
    if mesh.bitangents is not None:
        mesh.bitangents = mesh.bitangents[keep]
    mesh.uv_channels = [uv[keep] for uv in mesh.uv_channels]
    mesh.color_channels = [c[keep] for c in mesh.color_channels]
    mesh.faces = remap[inverse][mesh.faces]

    return n - len(keep)

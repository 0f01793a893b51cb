"""Machine-readable documents: scene report and format list.

Documents are plain dicts ready for ``json.dumps``. Bounding geometry of an
empty mesh or scene is reported with ``"valid": false`` and null vectors so
it is never mistaken for a zero-sized box at the origin.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..core.geometry import Range3
from ..mesh.processor import calculate_bounding_box

if TYPE_CHECKING:
    from ..export.formats import FormatRegistry
    from ..mesh.model import Mesh, SceneGraph


def geometry_document(bounds: Range3) -> dict[str, Any]:
    """Describe a bounding box (min/max, size, center)."""
    if not bounds.is_valid:
        return {
            "valid": False,
            "boundingBox": None,
            "size": None,
            "center": None,
        }

    return {
        "valid": True,
        "boundingBox": {
            "min": bounds.lower.tolist(),
            "max": bounds.upper.tolist(),
        },
        "size": bounds.size.tolist(),
        "center": bounds.center.tolist(),
    }


def mesh_statistics(mesh: Mesh) -> dict[str, Any]:
    return {
        "numVertices": mesh.num_vertices,
        "numFaces": mesh.num_faces,
        "hasNormals": mesh.has_normals,
        "hasTangentsAndBitangents": mesh.has_tangents_and_bitangents,
        "hasBones": mesh.has_bones,
        "hasTexCoords": mesh.has_texcoords(0),
        "numTexCoordChannels": mesh.num_uv_channels,
        "hasVertexColors": mesh.has_vertex_colors(0),
        "numColorChannels": mesh.num_color_channels,
    }


def build_report(scene: SceneGraph, input_path: str) -> dict[str, Any]:
    """Build the ``report`` document for a scene.

    Args:
        scene: Loaded (and possibly processed) scene
        input_path: Input file path; backslashes become forward slashes

    Returns:
        Report document with per-mesh and scene-level statistics and geometry
    """
    scene_bounds = Range3()
    meshes = []

    for mesh in scene.meshes:
        bounds = calculate_bounding_box(mesh)
        scene_bounds.unite_with(bounds)
        meshes.append({
            "statistics": mesh_statistics(mesh),
            "geometry": geometry_document(bounds),
        })

    return {
        "type": "report",
        "filePath": input_path.replace("\\", "/"),
        "meshes": meshes,
        "scene": {
            "statistics": {
                "numVertices": scene.num_vertices,
                "numFaces": scene.num_faces,
                "numMeshes": scene.num_meshes,
                "numMaterials": len(scene.materials),
                "numTextures": len(scene.textures),
                "numLights": len(scene.lights),
                "numCameras": len(scene.cameras),
                "numAnimations": len(scene.animations),
            },
            "geometry": geometry_document(scene_bounds),
        },
    }


def format_list_document(registry: FormatRegistry) -> dict[str, Any]:
    """Build the ``list`` document of export formats."""
    return {
        "type": "list",
        "status": "ok",
        "list": [fmt.to_dict() for fmt in registry.list_formats()],
    }

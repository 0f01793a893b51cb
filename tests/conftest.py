"""Shared fixtures: small scenes and mesh files on disk."""

import numpy as np
import pytest
import trimesh

from meshpipe.mesh.model import Mesh, SceneGraph


def make_cube_mesh(name: str = "cube") -> Mesh:
    """Unit cube with x, y in [-0.5, 0.5] and z in [0, 1]."""
    box = trimesh.creation.box(extents=(1.0, 1.0, 1.0))
    box.apply_translation((0.0, 0.0, 0.5))
    return Mesh.from_trimesh(box, name=name)


@pytest.fixture
def cube_mesh():
    return make_cube_mesh()


@pytest.fixture
def cube_scene():
    return SceneGraph(meshes=[make_cube_mesh()])


@pytest.fixture
def triangle_mesh():
    """Single triangle with normals, tangents and one UV channel."""
    return Mesh(
        vertices=np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]),
        faces=np.array([[0, 1, 2]]),
        name="triangle",
        normals=np.tile([0.0, 0.0, 1.0], (3, 1)),
        tangents=np.tile([1.0, 0.0, 0.0], (3, 1)),
        bitangents=np.tile([0.0, 1.0, 0.0], (3, 1)),
        uv_channels=[np.array([[0.0, 0.0], [0.75, 0.25], [0.5, 0.125]])],
    )


@pytest.fixture
def cube_stl(tmp_path):
    """Binary STL of a unit cube centered at the origin."""
    path = tmp_path / "cube.stl"
    trimesh.creation.box(extents=(1.0, 1.0, 1.0)).export(str(path))
    return path

"""Tests for the report and list documents."""

import json

import numpy as np

from meshpipe.core.geometry import Range3
from meshpipe.export.formats import ExportFormat, FormatRegistry
from meshpipe.mesh.model import Mesh, SceneGraph
from meshpipe.scene.report import build_report, format_list_document, geometry_document


class TestGeometryDocument:
    """Test bounding geometry in reports."""

    def test_invalid_range(self):
        """Test an empty range is reported as invalid, not as a zero box."""
        document = geometry_document(Range3())
        assert document == {"valid": False, "boundingBox": None, "size": None, "center": None}

    def test_zero_size_range_is_valid(self):
        document = geometry_document(Range3((1, 1, 1), (1, 1, 1)))
        assert document["valid"] is True
        assert document["size"] == [0.0, 0.0, 0.0]
        assert document["center"] == [1.0, 1.0, 1.0]

    def test_valid_range(self):
        document = geometry_document(Range3((-1, 0, 0), (1, 2, 4)))
        assert document["boundingBox"] == {"min": [-1.0, 0.0, 0.0], "max": [1.0, 2.0, 4.0]}
        assert document["size"] == [2.0, 2.0, 4.0]
        assert document["center"] == [0.0, 1.0, 2.0]


class TestBuildReport:
    """Test the scene report."""

    def test_cube_report(self, cube_scene):
        report = build_report(cube_scene, "models/cube.obj")

        assert report["type"] == "report"
        assert report["filePath"] == "models/cube.obj"
        assert len(report["meshes"]) == 1

        stats = report["meshes"][0]["statistics"]
        assert stats["numVertices"] == 8
        assert stats["numFaces"] == 12
        assert stats["hasNormals"] is True
        assert stats["hasTangentsAndBitangents"] is False
        assert stats["hasBones"] is False
        assert stats["hasTexCoords"] is False
        assert stats["numTexCoordChannels"] == 0
        assert stats["hasVertexColors"] is False
        assert stats["numColorChannels"] == 0

        scene = report["scene"]
        assert scene["statistics"]["numMeshes"] == 1
        assert scene["statistics"]["numVertices"] == 8
        assert scene["statistics"]["numMaterials"] == 0
        assert scene["geometry"]["boundingBox"] == {
            "min": [-0.5, -0.5, 0.0],
            "max": [0.5, 0.5, 1.0],
        }

    def test_windows_path_separators(self, cube_scene):
        report = build_report(cube_scene, "C:\\models\\cube.obj")
        assert report["filePath"] == "C:/models/cube.obj"

    def test_scene_without_meshes(self):
        """Test an empty scene reports invalid geometry."""
        report = build_report(SceneGraph(), "empty.obj")

        assert report["meshes"] == []
        assert report["scene"]["statistics"]["numMeshes"] == 0
        assert report["scene"]["geometry"]["valid"] is False
        assert report["scene"]["geometry"]["boundingBox"] is None

    def test_empty_mesh_does_not_affect_scene_bounds(self, cube_mesh):
        empty = Mesh(vertices=np.empty((0, 3)), name="empty")
        report = build_report(SceneGraph(meshes=[empty, cube_mesh]), "mixed.obj")

        assert report["meshes"][0]["geometry"]["valid"] is False
        assert report["meshes"][1]["geometry"]["valid"] is True
        assert report["scene"]["geometry"]["size"] == [1.0, 1.0, 1.0]

    def test_counts_scene_components(self, cube_mesh):
        scene = SceneGraph(meshes=[cube_mesh], materials=["steel"], cameras=["camera"])
        stats = build_report(scene, "a.glb")["scene"]["statistics"]

        assert stats["numMaterials"] == 1
        assert stats["numCameras"] == 1
        assert stats["numTextures"] == 0
        assert stats["numLights"] == 0
        assert stats["numAnimations"] == 0

    def test_report_is_json_serializable(self, cube_scene):
        text = json.dumps(build_report(cube_scene, "cube.obj"))
        assert json.loads(text)["type"] == "report"


class TestFormatListDocument:
    """Test the format list document."""

    def test_default_registry(self):
        document = format_list_document(FormatRegistry())

        assert document["type"] == "list"
        assert document["status"] == "ok"
        ids = [entry["id"] for entry in document["list"]]
        assert "obj" in ids
        assert "glb2" in ids
        assert set(document["list"][0]) == {"id", "extension", "description"}

    def test_empty_registry(self):
        document = format_list_document(FormatRegistry([]))
        assert document == {"type": "list", "status": "ok", "list": []}

    def test_entry_fields(self):
        registry = FormatRegistry([ExportFormat("foo", "bar", "Foo format", "obj")])
        document = format_list_document(registry)
        assert document["list"] == [{"id": "foo", "extension": "bar", "description": "Foo format"}]

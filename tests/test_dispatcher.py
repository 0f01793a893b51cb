"""Tests for export routing and output path resolution."""

from pathlib import Path

import pytest

from meshpipe.core.config import Options
from meshpipe.core.result import Result
from meshpipe.export.dispatcher import ExportDispatcher, build_gltf_options, resolve_output_path
from meshpipe.export.formats import FormatRegistry
from meshpipe.mesh.importer import ProcessFlags


class FakeExporter:
    """Generic exporter that records calls instead of writing files."""

    def __init__(self, succeed=True, error=""):
        self.succeed = succeed
        self.error_string = error
        self.calls = []

    def export(self, scene, format_id, output_path, flags, properties):
        self.calls.append((format_id, Path(output_path), ProcessFlags(flags), properties))
        return self.succeed


class FakeCompressedExporter:
    """Custom glTF exporter stand-in."""

    instances = []

    def __init__(self):
        self.options = None
        self.exported = []
        FakeCompressedExporter.instances.append(self)

    def set_options(self, options):
        self.options = options

    def export_scene(self, scene, output_path):
        self.exported.append(Path(output_path))
        return Result.ok()


@pytest.fixture(autouse=True)
def reset_instances():
    FakeCompressedExporter.instances = []


def make_dispatcher(options, exporter=None):
    return ExportDispatcher(
        options,
        registry=FormatRegistry(),
        exporter=exporter or FakeExporter(),
        compressed_factory=FakeCompressedExporter,
    )


class TestResolveOutputPath:
    """Test output file naming."""

    def test_replaces_extension(self):
        options = Options(input="in/model.obj", output="out/result.fbx")
        assert resolve_output_path(options, "ply") == Path("out/result.ply")

    def test_falls_back_to_input(self):
        options = Options(input="models/chair.obj")
        assert resolve_output_path(options, "glb") == Path("models/chair.glb")

    def test_adds_missing_extension(self):
        options = Options(input="a.obj", output="out/result")
        assert resolve_output_path(options, "stl") == Path("out/result.stl")


class TestCustomExport:
    """Test routing to the custom glTF exporter."""

    def test_glbx_writes_binary(self, cube_scene):
        generic = FakeExporter()
        dispatcher = make_dispatcher(
            Options(input="a.obj", output="out/b", format="glbx"), generic
        )

        result = dispatcher.export(cube_scene)

        assert result
        assert generic.calls == []
        (compressed,) = FakeCompressedExporter.instances
        assert compressed.options.write_binary is True
        assert compressed.exported == [Path("out/b.glb")]

    def test_gltfx_writes_text(self, cube_scene):
        dispatcher = make_dispatcher(Options(input="dir/a.obj", format="gltfx"))

        assert dispatcher.export(cube_scene)

        (compressed,) = FakeCompressedExporter.instances
        assert compressed.options.write_binary is False
        assert compressed.exported == [Path("dir/a.gltf")]

    def test_custom_export_error_is_passed_through(self, cube_scene):
        class FailingExporter(FakeCompressedExporter):
            def export_scene(self, scene, output_path):
                return Result.error("disk full")

        dispatcher = ExportDispatcher(
            Options(input="a.obj", format="glbx"),
            exporter=FakeExporter(),
            compressed_factory=FailingExporter,
        )

        result = dispatcher.export(cube_scene)
        assert result.is_error
        assert result.message == "disk full"


class TestBuildGLTFOptions:
    """Test the option copy for the custom exporter."""

    def test_copies_fields(self):
        options = Options(
            format="glbx",
            metallic_factor=0.3,
            roughness_factor=0.4,
            maps={"diffuse": "d.png", "zone": "z.png"},
            embed_maps=True,
            use_compression=True,
            object_space_normals=True,
            strip_normals=True,
            draco={"position_quantization_bits": 14},
        )

        gltf = build_gltf_options(options)

        assert gltf.metallic_factor == pytest.approx(0.3)
        assert gltf.roughness_factor == pytest.approx(0.4)
        assert gltf.diffuse_map_file == "d.png"
        assert gltf.zone_map_file == "z.png"
        assert gltf.normal_map_file is None
        assert gltf.embed_maps
        assert gltf.use_compression
        assert gltf.object_space_normals
        assert gltf.strip_normals
        assert not gltf.strip_texcoords
        assert gltf.write_binary
        assert gltf.draco.position_quantization_bits == 14
        assert gltf.map_files == {"diffuse": "d.png", "zone": "z.png"}


class TestGenericExport:
    """Test routing to the generic exporter."""

    def test_known_format(self, cube_scene):
        generic = FakeExporter()
        dispatcher = make_dispatcher(Options(input="m/cube.ply", format="stlb"), generic)

        assert dispatcher.export(cube_scene)

        ((format_id, path, flags, properties),) = generic.calls
        assert format_id == "stlb"
        assert path == Path("m/cube.stl")
        assert flags == ProcessFlags.NONE
        assert properties == {}
        assert FakeCompressedExporter.instances == []

    def test_join_vertices_flag(self, cube_scene):
        generic = FakeExporter()
        dispatcher = make_dispatcher(Options(input="a.obj", format="obj", join_vertices=True), generic)

        dispatcher.export(cube_scene)

        flags = generic.calls[0][2]
        assert flags & ProcessFlags.JOIN_IDENTICAL_VERTICES

    def test_unknown_format(self, cube_scene):
        """Test an unknown id fails before anything is written."""
        generic = FakeExporter()
        dispatcher = make_dispatcher(Options(input="a.obj", format="nope"), generic)

        result = dispatcher.export(cube_scene)

        assert result.is_error
        assert result.message == "invalid output format id: nope"
        assert generic.calls == []

    def test_exporter_failure(self, cube_scene):
        generic = FakeExporter(succeed=False, error="permission denied")
        dispatcher = make_dispatcher(Options(input="a.obj", output="out/x", format="obj"), generic)

        result = dispatcher.export(cube_scene)

        assert result.is_error
        expected_path = Path("out/x.obj")
        assert result.message == f"failed to write output file: {expected_path}, reason: permission denied"

    def test_writes_real_file(self, cube_scene, tmp_path):
        """Test the default collaborators write the file."""
        options = Options(input=str(tmp_path / "cube.obj"), output=str(tmp_path / "out.any"), format="stlb")

        result = ExportDispatcher(options).export(cube_scene)

        assert result
        assert (tmp_path / "out.stl").exists()

"""Export modules for meshpipe."""

from .formats import DEFAULT_FORMATS, ExportFormat, FormatRegistry, TrimeshExporter
from .gltf import GLTFExporter, GLTFExporterOptions
from .dispatcher import ExportDispatcher, build_gltf_options, resolve_output_path

__all__ = [
    "DEFAULT_FORMATS",
    "ExportFormat",
    "FormatRegistry",
    "TrimeshExporter",
    "GLTFExporter",
    "GLTFExporterOptions",
    "ExportDispatcher",
    "build_gltf_options",
    "resolve_output_path",
]

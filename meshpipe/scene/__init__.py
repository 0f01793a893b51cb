"""Conversion pipeline orchestration.

This module provides the Scene that sequences load, process and save for
one input file, plus the report documents built from its scene graph.
"""

from .scene import Scene, SceneState
from .report import build_report, format_list_document, geometry_document

__all__ = [
    "Scene",
    "SceneState",
    "build_report",
    "format_list_document",
    "geometry_document",
]

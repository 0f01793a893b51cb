"""Scene graph, import and transform modules for meshpipe."""

from .model import Mesh, SceneGraph
from .importer import Component, ProcessFlags, TrimeshImporter
from . import processor

__all__ = [
    "Mesh",
    "SceneGraph",
    "Component",
    "ProcessFlags",
    "TrimeshImporter",
    "processor",
]

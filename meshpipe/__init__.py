"""meshpipe - batch 3D asset conversion.

Loads a 3D scene with trimesh, applies a fixed sequence of geometric
transforms and writes it to a generic format or to a custom glTF/GLB with
material maps and Draco compression.
"""

__version__ = "0.1.0"

from .core.config import Align, DracoOptions, MaterialMaps, Options
from .core.geometry import Range3
from .core.result import Result
from .mesh.model import Mesh, SceneGraph
from .scene.scene import Scene

__all__ = [
    "Align",
    "DracoOptions",
    "MaterialMaps",
    "Options",
    "Range3",
    "Result",
    "Mesh",
    "SceneGraph",
    "Scene",
]

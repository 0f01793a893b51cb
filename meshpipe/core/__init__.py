"""Core modules for meshpipe."""

from .config import Align, DracoOptions, MaterialMaps, Options
from .geometry import Range3
from .result import Result, status_document

__all__ = ["Align", "DracoOptions", "MaterialMaps", "Options", "Range3", "Result", "status_document"]

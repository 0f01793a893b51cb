"""Conversion options for meshpipe.

This module defines the configuration record for one conversion run using
Pydantic for validation. Options can be loaded from JSON files or
constructed programmatically; they are frozen once built.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field, field_validator

from .geometry import is_identity, is_zero, matrix_from_values, parse_swizzle


CUSTOM_GLTF_FORMATS = ("gltfx", "glbx")

IDENTITY_MATRIX: tuple[float, ...] = (
    1.0, 0.0, 0.0, 0.0,
    0.0, 1.0, 0.0, 0.0,
    0.0, 0.0, 1.0, 0.0,
    0.0, 0.0, 0.0, 1.0,
)


class Align(str, Enum):
    """Per-axis alignment of the scene bounding box to the origin."""

    NONE = "none"
    MIN = "min"
    CENTER = "center"
    MAX = "max"


class DracoOptions(BaseModel):
    """Draco mesh compression parameters.

    Higher quantization bit depths keep more precision at the cost of size.
    """

    position_quantization_bits: int = Field(default=11, ge=1, le=30, description="Bits for positions")
    texcoords_quantization_bits: int = Field(default=10, ge=1, le=30, description="Bits for texture coordinates")
    normals_quantization_bits: int = Field(default=8, ge=1, le=30, description="Bits for normals")
    generic_quantization_bits: int = Field(default=8, ge=1, le=30, description="Bits for generic attributes")
    compression_level: int = Field(default=7, ge=0, le=10, description="Encoder speed/size tradeoff (0-10)")

    model_config = {"frozen": True}


class MaterialMaps(BaseModel):
    """Material map files bound by the custom glTF exporter."""

    diffuse: str | None = Field(default=None, description="Base color map")
    occlusion: str | None = Field(default=None, description="Ambient occlusion map")
    emissive: str | None = Field(default=None, description="Emissive map")
    metallic_roughness: str | None = Field(default=None, description="Metallic (B) / roughness (G) map")
    zone: str | None = Field(default=None, description="Zone map (stored in material extras)")
    normal: str | None = Field(default=None, description="Normal map")

    model_config = {"frozen": True}


class Options(BaseModel):
    """Configuration for a single input-to-output conversion."""

    input: str = Field(default="", description="Input file path")
    output: str = Field(default="", description="Output file path (empty: derive from input)")
    format: str = Field(default="glb2", description="Output format id")
    verbose: bool = Field(default=False, description="Log each pipeline decision")

    # Geometry flags
    strip_normals: bool = Field(default=False, description="Remove normals and tangents on import")
    strip_texcoords: bool = Field(default=False, description="Remove texture coordinates on import")
    join_vertices: bool = Field(default=False, description="Join identical vertices on export")
    flip_uv: bool = Field(default=False, description="Flip the V texture coordinate")

    # Geometry operations, applied in this order
    swizzle: str = Field(default="", description="Axis swizzle spec, e.g. 'x-zy'")
    scale: float = Field(default=1.0, description="Uniform scale factor")
    align_x: Align = Field(default=Align.NONE, description="X-axis alignment")
    align_y: Align = Field(default=Align.NONE, description="Y-axis alignment")
    align_z: Align = Field(default=Align.NONE, description="Z-axis alignment")
    translate: tuple[float, float, float] = Field(
        default=(0.0, 0.0, 0.0),
        description="Translation vector"
    )
    matrix: tuple[float, ...] = Field(
        default=IDENTITY_MATRIX,
        description="4x4 transform matrix, 16 values in row-major order"
    )

    # Custom glTF export only
    metallic_factor: float = Field(default=0.1, ge=0.0, le=1.0, description="PBR metallic factor")
    roughness_factor: float = Field(default=0.8, ge=0.0, le=1.0, description="PBR roughness factor")
    maps: MaterialMaps = Field(default_factory=MaterialMaps)
    embed_maps: bool = Field(default=False, description="Embed map images into the output")
    use_compression: bool = Field(default=False, description="Draco-compress mesh data")
    object_space_normals: bool = Field(default=False, description="Normal map is in object space")
    draco: DracoOptions = Field(default_factory=DracoOptions)

    model_config = {"frozen": True}

    @field_validator("swizzle")
    @classmethod
    def _check_swizzle(cls, value: str) -> str:
        if value.strip():
            parse_swizzle(value)
        return value.strip()

    @field_validator("scale")
    @classmethod
    def _check_scale(cls, value: float) -> float:
        if value == 0.0:
            raise ValueError("Scale factor must not be zero")
        return value

    @field_validator("matrix")
    @classmethod
    def _check_matrix(cls, value: tuple[float, ...]) -> tuple[float, ...]:
        if len(value) != 16:
            raise ValueError(f"Transform matrix needs 16 values, got {len(value)}")
        return value

    @property
    def matrix_array(self) -> NDArray[np.float64]:
        """Transform matrix as a 4x4 array."""
        return matrix_from_values(self.matrix)

    @property
    def is_custom_gltf(self) -> bool:
        """True if the format routes through the custom glTF exporter."""
        return self.format in CUSTOM_GLTF_FORMATS

    @property
    def has_alignment(self) -> bool:
        return any(a != Align.NONE for a in (self.align_x, self.align_y, self.align_z))

    @property
    def has_translation(self) -> bool:
        return not is_zero(self.translate)

    @property
    def has_transform(self) -> bool:
        return not is_identity(self.matrix_array)

    @classmethod
    def from_file(cls, path: Path | str) -> Options:
        """Load options from a JSON file."""
        path = Path(path)
        with open(path) as f:
            data = json.load(f)
        return cls.model_validate(data)

    def to_file(self, path: Path | str) -> None:
        """Save options to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)

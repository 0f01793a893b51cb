"""Geometry primitives for the conversion pipeline.

Vectors and matrices are plain numpy arrays. This module adds the
axis-aligned ``Range3`` accumulator used for bounding boxes, a handful of
predicates used to skip no-op transform stages, and a helper that builds a
4x4 matrix from position/rotation/scale.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.typing import NDArray
from scipy.spatial.transform import Rotation


IDENTITY_4 = np.eye(4, dtype=np.float64)


class Range3:
    """Axis-aligned bounding volume accumulator.

    A range starts out invalid (no points seen). Folding in points or
    uniting with another valid range makes it valid. ``size`` and ``center``
    are only defined for valid ranges.
    """

    def __init__(
        self,
        lower: Sequence[float] | NDArray[np.float64] | None = None,
        upper: Sequence[float] | NDArray[np.float64] | None = None,
    ):
        if (lower is None) != (upper is None):
            raise ValueError("Range3 needs both lower and upper bounds, or neither")

        if lower is None:
            self.invalidate()
        else:
            self._lower = np.asarray(lower, dtype=np.float64).copy()
            self._upper = np.asarray(upper, dtype=np.float64).copy()
            if np.any(self._lower > self._upper):
                raise ValueError(
                    f"Lower bound {self._lower.tolist()} exceeds upper bound {self._upper.tolist()}"
                )

    def invalidate(self) -> None:
        """Reset to the invalid (empty) state."""
        self._lower = np.full(3, np.inf)
        self._upper = np.full(3, -np.inf)

    @property
    def is_valid(self) -> bool:
        """True once at least one point has been included."""
        return bool(np.all(self._lower <= self._upper))

    @property
    def lower(self) -> NDArray[np.float64]:
        return self._lower.copy()

    @property
    def upper(self) -> NDArray[np.float64]:
        return self._upper.copy()

    @property
    def size(self) -> NDArray[np.float64]:
        """Extent along each axis."""
        self._require_valid("size")
        return self._upper - self._lower

    @property
    def center(self) -> NDArray[np.float64]:
        """Midpoint of the range."""
        self._require_valid("center")
        return (self._lower + self._upper) / 2

    def include_point(self, point: Sequence[float] | NDArray[np.float64]) -> Range3:
        p = np.asarray(point, dtype=np.float64)
        self._lower = np.minimum(self._lower, p)
        self._upper = np.maximum(self._upper, p)
        return self

    def include_points(self, points: NDArray[np.float64]) -> Range3:
        """Fold an Nx3 array of points into the range (in-place)."""
        points = np.asarray(points, dtype=np.float64)
        if len(points) == 0:
            return self
        self._lower = np.minimum(self._lower, points.min(axis=0))
        self._upper = np.maximum(self._upper, points.max(axis=0))
        return self

    def unite_with(self, other: Range3) -> Range3:
        """Merge another range into this one (in-place).

        Uniting with an invalid range leaves this range unchanged; uniting an
        invalid range with a valid one makes it valid.
        """
        if other.is_valid:
            self._lower = np.minimum(self._lower, other._lower)
            self._upper = np.maximum(self._upper, other._upper)
        return self

    @classmethod
    def from_points(cls, points: NDArray[np.float64]) -> Range3:
        return cls().include_points(points)

    def _require_valid(self, what: str) -> None:
        if not self.is_valid:
            raise ValueError(f"Cannot compute {what} of an invalid range")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Range3):
            return NotImplemented
        if not self.is_valid or not other.is_valid:
            return self.is_valid == other.is_valid
        return bool(
            np.array_equal(self._lower, other._lower)
            and np.array_equal(self._upper, other._upper)
        )

    def __repr__(self) -> str:
        if not self.is_valid:
            return "Range3(invalid)"
        return f"Range3(lower={self._lower.tolist()}, upper={self._upper.tolist()})"


def is_zero(vector: Sequence[float] | NDArray[np.float64]) -> bool:
    """Check whether every component is exactly zero."""
    return bool(np.all(np.asarray(vector, dtype=np.float64) == 0.0))


def is_identity(matrix: NDArray[np.float64]) -> bool:
    """Check whether a 4x4 matrix is exactly the identity."""
    return bool(np.array_equal(np.asarray(matrix, dtype=np.float64), IDENTITY_4))


def matrix_from_values(values: Sequence[float]) -> NDArray[np.float64]:
    """Build a 4x4 matrix from 16 values in row-major order."""
    if len(values) != 16:
        raise ValueError(f"Expected 16 matrix values, got {len(values)}")
    return np.asarray(values, dtype=np.float64).reshape(4, 4)


def parse_swizzle(spec: str) -> tuple[tuple[int, int, int], tuple[float, float, float]]:
    """Parse a swizzle spec into an axis permutation and per-axis signs.

    A spec is three axis tokens, each an optional ``+``/``-`` sign followed by
    ``x``, ``y`` or ``z`` (case-insensitive), with every axis used exactly
    once. Output component ``i`` takes the input axis named by token ``i``,
    multiplied by its sign. For example ``"x-zy"`` maps (x, y, z) to
    (x, -z, y).

    Args:
        spec: Swizzle spec string

    Returns:
        Tuple of (source axis indices, signs)

    Raises:
        ValueError: If the spec is malformed
    """
    text = spec.strip().lower()
    axes: list[int] = []
    signs: list[float] = []

    i = 0
    while i < len(text):
        sign = 1.0
        if text[i] in "+-":
            sign = -1.0 if text[i] == "-" else 1.0
            i += 1
        if i >= len(text) or text[i] not in "xyz":
            raise ValueError(f"Invalid swizzle spec: '{spec}'. Expected e.g. 'xzy' or '+x-z+y'")
        axes.append("xyz".index(text[i]))
        signs.append(sign)
        i += 1

    if len(axes) != 3 or sorted(axes) != [0, 1, 2]:
        raise ValueError(
            f"Invalid swizzle spec: '{spec}'. Each of x, y and z must appear exactly once"
        )

    return (axes[0], axes[1], axes[2]), (signs[0], signs[1], signs[2])


def compose_matrix(
    position: Sequence[float] = (0.0, 0.0, 0.0),
    rotation: Sequence[float] = (0.0, 0.0, 0.0),
    scale: float = 1.0,
) -> NDArray[np.float64]:
    """Build a 4x4 homogeneous matrix from position, rotation and scale.

    The transformation order is: Scale -> Rotate -> Translate, so the matrix
    is built as T @ R @ S.

    Args:
        position: XYZ translation
        rotation: XYZ Euler angles in degrees (applied in XYZ order)
        scale: Uniform scale factor

    Returns:
        4x4 transformation matrix
    """
    s = np.eye(4, dtype=np.float64)
    s[0, 0] = s[1, 1] = s[2, 2] = scale

    rot = Rotation.from_euler('xyz', rotation, degrees=True)
    r = np.eye(4, dtype=np.float64)
    r[:3, :3] = rot.as_matrix()

    t = np.eye(4, dtype=np.float64)
    t[:3, 3] = position

    return t @ r @ s

"""Tests for Range3 and the geometry helpers."""

import numpy as np
import pytest

from meshpipe.core.geometry import (
    Range3,
    compose_matrix,
    is_identity,
    is_zero,
    matrix_from_values,
    parse_swizzle,
)


class TestRange3:
    """Test the bounding range accumulator."""

    def test_default_is_invalid(self):
        """Test a new range holds no points."""
        r = Range3()
        assert not r.is_valid

    def test_size_of_invalid_range_raises(self):
        """Test size and center are undefined for an empty range."""
        r = Range3()
        with pytest.raises(ValueError):
            _ = r.size
        with pytest.raises(ValueError):
            _ = r.center

    def test_include_points(self):
        """Test folding points in grows the range."""
        r = Range3()
        r.include_point((1.0, 2.0, 3.0))
        r.include_points(np.array([[-1.0, 0.0, 5.0], [0.0, 4.0, 0.0]]))

        assert r.is_valid
        np.testing.assert_array_equal(r.lower, [-1.0, 0.0, 0.0])
        np.testing.assert_array_equal(r.upper, [1.0, 4.0, 5.0])
        np.testing.assert_array_equal(r.size, [2.0, 4.0, 5.0])
        np.testing.assert_array_equal(r.center, [0.0, 2.0, 2.5])

    def test_single_point_is_valid_zero_box(self):
        """Test one point gives a valid range of zero size."""
        r = Range3.from_points(np.array([[1.0, 1.0, 1.0]]))
        assert r.is_valid
        np.testing.assert_array_equal(r.size, [0.0, 0.0, 0.0])

    def test_include_no_points(self):
        """Test folding in an empty array keeps the range invalid."""
        r = Range3.from_points(np.empty((0, 3)))
        assert not r.is_valid

    def test_unite_invalid_with_valid(self):
        """Test uniting an empty range with a valid one copies it."""
        r = Range3()
        r.unite_with(Range3((0, 0, 0), (1, 1, 1)))
        assert r == Range3((0, 0, 0), (1, 1, 1))

    def test_unite_valid_with_invalid(self):
        """Test uniting with an empty range changes nothing."""
        r = Range3((0, 0, 0), (1, 1, 1))
        r.unite_with(Range3())
        assert r == Range3((0, 0, 0), (1, 1, 1))

    def test_unite_two_ranges(self):
        r = Range3((0, 0, 0), (1, 1, 1))
        r.unite_with(Range3((-1, 2, 0), (0, 3, 0.5)))
        np.testing.assert_array_equal(r.lower, [-1, 0, 0])
        np.testing.assert_array_equal(r.upper, [1, 3, 1])

    def test_invalidate(self):
        """Test invalidate returns a range to the empty state."""
        r = Range3((0, 0, 0), (1, 1, 1))
        r.invalidate()
        assert not r.is_valid
        assert r == Range3()

    def test_lower_above_upper_rejected(self):
        with pytest.raises(ValueError):
            Range3((1, 0, 0), (0, 1, 1))

    def test_lower_is_a_copy(self):
        """Test returned bounds cannot mutate the range."""
        r = Range3((0, 0, 0), (1, 1, 1))
        r.lower[0] = 10.0
        np.testing.assert_array_equal(r.lower, [0, 0, 0])


class TestPredicates:
    """Test is_zero, is_identity and matrix_from_values."""

    def test_is_zero(self):
        assert is_zero((0.0, 0.0, 0.0))
        assert not is_zero((0.0, 1e-9, 0.0))

    def test_is_identity(self):
        assert is_identity(np.eye(4))
        m = np.eye(4)
        m[0, 3] = 1.0
        assert not is_identity(m)

    def test_matrix_from_values_row_major(self):
        """Test values are read row by row."""
        m = matrix_from_values(list(range(16)))
        assert m.shape == (4, 4)
        np.testing.assert_array_equal(m[0], [0, 1, 2, 3])
        np.testing.assert_array_equal(m[:, 3], [3, 7, 11, 15])

    def test_matrix_from_values_wrong_length(self):
        with pytest.raises(ValueError):
            matrix_from_values([1.0] * 15)


class TestParseSwizzle:
    """Test swizzle spec parsing."""

    def test_identity(self):
        assert parse_swizzle("xyz") == ((0, 1, 2), (1.0, 1.0, 1.0))

    def test_signed_axes(self):
        """Test a minus sign negates the axis that follows it."""
        assert parse_swizzle("x-zy") == ((0, 2, 1), (1.0, -1.0, 1.0))

    def test_explicit_plus_and_case(self):
        assert parse_swizzle("+Z-X+y") == ((2, 0, 1), (1.0, -1.0, 1.0))

    def test_surrounding_whitespace(self):
        assert parse_swizzle("  zyx ") == ((2, 1, 0), (1.0, 1.0, 1.0))

    @pytest.mark.parametrize("spec", ["", "xy", "xxy", "xyzx", "abc", "x-", "x--yz", "x y z"])
    def test_invalid_specs(self, spec):
        """Test malformed specs are rejected."""
        with pytest.raises(ValueError):
            parse_swizzle(spec)


class TestComposeMatrix:
    """Test the position/rotation/scale matrix builder."""

    def test_default_is_identity(self):
        np.testing.assert_array_almost_equal(compose_matrix(), np.eye(4))

    def test_translation(self):
        m = compose_matrix(position=(1.0, 2.0, 3.0))
        np.testing.assert_array_almost_equal(m[:3, 3], [1.0, 2.0, 3.0])

    def test_rotation_z_90(self):
        """Test 90 degree Z rotation maps +X to +Y."""
        m = compose_matrix(rotation=(0.0, 0.0, 90.0))
        result = m @ np.array([1.0, 0.0, 0.0, 1.0])
        np.testing.assert_array_almost_equal(result[:3], [0.0, 1.0, 0.0])

    def test_scale_then_translate(self):
        """Test scale is applied before translation."""
        m = compose_matrix(position=(1.0, 0.0, 0.0), scale=2.0)
        result = m @ np.array([1.0, 1.0, 1.0, 1.0])
        np.testing.assert_array_almost_equal(result[:3], [3.0, 2.0, 2.0])

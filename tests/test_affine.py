"""Tests for affine estimation and inversion."""

import logging

import numpy as np
import pytest

from pixelkit.image_processing import (
    DegenerateTransformError,
    affine_or_identity,
    compute_affine_matrix,
    invert_matrix,
    transform_point,
)
from pixelkit.image_processing.affine import solve_linear_system, triangle_area


TRIANGLE = [(10.0, 10.0), (90.0, 20.0), (30.0, 80.0)]


def test_identical_triangles_give_identity():
    matrix = compute_affine_matrix(TRIANGLE, TRIANGLE)
    assert np.allclose(matrix, np.eye(3), atol=1e-9)


def test_translation():
    src = [(0, 0), (1, 0), (0, 1)]
    dst = [(5, 3), (6, 3), (5, 4)]
    matrix = compute_affine_matrix(src, dst)
    assert np.allclose(matrix, [[1, 0, 5], [0, 1, 3], [0, 0, 1]])


def test_matrix_maps_source_onto_target():
    dst = [(40.0, 5.0), (70.0, 60.0), (-5.0, 45.0)]
    matrix = compute_affine_matrix(TRIANGLE, dst)
    for s, d in zip(TRIANGLE, dst):
        assert transform_point(matrix, s) == pytest.approx(d, abs=1e-9)


@pytest.mark.parametrize("point", [(0.0, 0.0), (12.5, -7.25), (640.0, 480.0)])
def test_round_trip_through_inverse(point):
    dst = [(40.0, 5.0), (70.0, 60.0), (-5.0, 45.0)]
    matrix = compute_affine_matrix(TRIANGLE, dst)
    inverse, degenerate = invert_matrix(matrix)
    assert not degenerate
    back = transform_point(inverse, transform_point(matrix, point))
    assert back == pytest.approx(point, abs=1e-6)


def test_collinear_source_raises():
    with pytest.raises(DegenerateTransformError):
        compute_affine_matrix([(0, 0), (1, 1), (2, 2)], TRIANGLE)


def test_degenerate_error_is_value_error():
    assert issubclass(DegenerateTransformError, ValueError)


def test_wrong_point_count_raises():
    with pytest.raises(ValueError):
        compute_affine_matrix([(0, 0), (1, 0)], [(0, 0), (1, 0)])


def test_invert_singular_matrix_falls_back_to_identity():
    singular = np.array([[1.0, 2.0, 0.0], [2.0, 4.0, 0.0], [0.0, 0.0, 1.0]])
    inverse, degenerate = invert_matrix(singular)
    assert degenerate
    assert np.array_equal(inverse, np.eye(3))


def test_invert_matches_numpy():
    matrix = np.array([[2.0, 0.5, 3.0], [-1.0, 1.5, 4.0], [0.0, 0.0, 1.0]])
    inverse, degenerate = invert_matrix(matrix)
    assert not degenerate
    assert np.allclose(inverse, np.linalg.inv(matrix))


def test_solve_linear_system_pivots():
    a = np.array([[0.0, 1.0], [1.0, 0.0]])
    b = np.array([2.0, 3.0])
    x = solve_linear_system(a, b)
    assert np.allclose(x, [3.0, 2.0])
    # Inputs are left untouched
    assert a[0, 0] == 0.0 and b[0] == 2.0


def test_solve_linear_system_singular():
    with pytest.raises(DegenerateTransformError):
        solve_linear_system(np.array([[1.0, 2.0], [2.0, 4.0]]), np.array([1.0, 2.0]))


def test_triangle_area():
    assert triangle_area([(0, 0), (4, 0), (0, 3)]) == 6.0
    assert triangle_area([(0, 0), (0, 3), (4, 0)]) == 6.0
    assert triangle_area([(0, 0), (1, 1), (2, 2)]) == 0.0


def test_affine_or_identity_regular_points():
    target = [(x + 5, y - 2) for x, y in TRIANGLE]
    matrix, inverse, degenerate = affine_or_identity(TRIANGLE, target)
    assert not degenerate
    assert np.allclose(matrix @ inverse, np.eye(3))


@pytest.mark.parametrize("source, target, message", [
    ([(0, 0), (1, 1), (2, 2)], TRIANGLE, "Source points are collinear"),
    (TRIANGLE, [(0, 0), (1, 1), (2, 2)], "Destination points are collinear"),
])
def test_affine_or_identity_falls_back(source, target, message, caplog):
    with caplog.at_level(logging.WARNING):
        matrix, inverse, degenerate = affine_or_identity(source, target)
    assert degenerate
    assert np.array_equal(matrix, np.eye(3))
    assert np.array_equal(inverse, np.eye(3))
    assert any(message in r.getMessage() for r in caplog.records)

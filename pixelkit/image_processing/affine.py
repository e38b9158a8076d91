"""
Affine transform estimation and inversion.

An affine map is stored as a 3x3 float64 matrix with bottom row [0, 0, 1].
The matrix is estimated from three point correspondences by solving the
6x6 linear system directly, and inverted with the closed-form adjugate.
"""

import numpy as np
from typing import Sequence, Tuple

from pixelkit.utils.logger import get_logger

logger = get_logger(__name__)

DETERMINANT_EPSILON = 1e-10
PIVOT_EPSILON = 1e-12

Point = Tuple[float, float]


class DegenerateTransformError(ValueError):
    """Raised when control points do not define an invertible affine map."""


def _as_triangle(points: Sequence[Point], name: str) -> np.ndarray:
    arr = np.asarray(points, dtype=np.float64)
    if arr.shape != (3, 2):
        raise ValueError(f"{name} must contain exactly three (x, y) points, got shape {arr.shape}")
    return arr


def solve_linear_system(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Solve A x = b by Gaussian elimination with partial pivoting.

    Before eliminating column i, the row with the largest absolute value
    in that column (at or below row i) is swapped into the pivot position.

    Args:
        a: (n, n) coefficient matrix (not modified)
        b: (n,) right-hand side (not modified)

    Returns:
        Solution vector x

    Raises:
        DegenerateTransformError: If a pivot is (numerically) zero
    """
    a = np.array(a, dtype=np.float64)
    b = np.array(b, dtype=np.float64)
    n = a.shape[0]

    # Forward elimination
    for i in range(n):
        max_row = i + int(np.argmax(np.abs(a[i:, i])))
        if abs(a[max_row, i]) < PIVOT_EPSILON:
            raise DegenerateTransformError("Linear system is singular")

        if max_row != i:
            a[[i, max_row]] = a[[max_row, i]]
            b[[i, max_row]] = b[[max_row, i]]

        for k in range(i + 1, n):
            factor = -a[k, i] / a[i, i]
            a[k, i:] += factor * a[i, i:]
            a[k, i] = 0.0
            b[k] += factor * b[i]

    # Back substitution
    x = np.zeros(n, dtype=np.float64)
    for i in range(n - 1, -1, -1):
        x[i] = (b[i] - a[i, i + 1:] @ x[i + 1:]) / a[i, i]

    return x


def compute_affine_matrix(src_points: Sequence[Point], dst_points: Sequence[Point]) -> np.ndarray:
    """
    Affine matrix mapping a source triangle onto a destination triangle.

    Args:
        src_points: Three (x, y) source points
        dst_points: Three (x, y) destination points

    Returns:
        3x3 matrix M with M @ [x, y, 1] = [x', y', 1]

    Raises:
        DegenerateTransformError: If the source points are collinear
    """
    src = _as_triangle(src_points, "src_points")
    dst = _as_triangle(dst_points, "dst_points")

    a = np.zeros((6, 6), dtype=np.float64)
    b = np.zeros(6, dtype=np.float64)
    for i, ((x, y), (u, v)) in enumerate(zip(src, dst)):
        a[2 * i] = [x, y, 1, 0, 0, 0]
        a[2 * i + 1] = [0, 0, 0, x, y, 1]
        b[2 * i] = u
        b[2 * i + 1] = v

    params = solve_linear_system(a, b)
    return np.array([
        [params[0], params[1], params[2]],
        [params[3], params[4], params[5]],
        [0.0, 0.0, 1.0],
    ])


def invert_matrix(matrix: np.ndarray) -> Tuple[np.ndarray, bool]:
    """
    Invert a 3x3 matrix with the cofactor/adjugate formula.

    Returns:
        Tuple of (inverse, degenerate). When |det| < 1e-10 the identity is
        returned in place of the inverse and `degenerate` is True; callers
        must treat that as a fallback, not as success.
    """
    m = np.asarray(matrix, dtype=np.float64)
    a, b, c = m[0]
    d, e, f = m[1]
    g, h, i = m[2]

    det = a * (e * i - f * h) - b * (d * i - f * g) + c * (d * h - e * g)
    if abs(det) < DETERMINANT_EPSILON:
        logger.warning(f"Matrix is singular (det={det:.3e}), substituting identity")
        return np.eye(3), True

    inv_det = 1.0 / det
    inverse = np.array([
        [(e * i - f * h), (c * h - b * i), (b * f - c * e)],
        [(f * g - d * i), (a * i - c * g), (c * d - a * f)],
        [(d * h - e * g), (b * g - a * h), (a * e - b * d)],
    ]) * inv_det
    return inverse, False


def affine_or_identity(
    src_points: Sequence[Point],
    dst_points: Sequence[Point]
) -> Tuple[np.ndarray, np.ndarray, bool]:
    """
    Affine matrix and inverse, falling back to the identity.

    Collinear source points make the linear system singular; collinear
    destination points make the estimated matrix singular. Either way the
    identity is used for both matrices and a warning is logged.

    Returns:
        Tuple of (matrix, inverse, degenerate)
    """
    try:
        matrix = compute_affine_matrix(src_points, dst_points)
    except DegenerateTransformError:
        logger.warning("Source points are collinear, falling back to the identity transform")
        return np.eye(3), np.eye(3), True

    inverse, singular = invert_matrix(matrix)
    if singular:
        logger.warning("Destination points are collinear, falling back to the identity transform")
        return np.eye(3), np.eye(3), True
    return matrix, inverse, False


def transform_point(matrix: np.ndarray, point: Point) -> Point:
    """Apply an affine matrix to a single (x, y) point."""
    m = np.asarray(matrix, dtype=np.float64)
    x, y = point
    return (
        float(m[0, 0] * x + m[0, 1] * y + m[0, 2]),
        float(m[1, 0] * x + m[1, 1] * y + m[1, 2]),
    )


def triangle_area(points: Sequence[Point]) -> float:
    """Unsigned area of a triangle."""
    (ax, ay), (bx, by), (cx, cy) = _as_triangle(points, "points")
    return abs((ax * (by - cy) + bx * (cy - ay) + cx * (ay - by)) / 2.0)

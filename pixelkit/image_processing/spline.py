"""
Cardinal splines through a sequence of points.

Each segment P[i] -> P[i+1] is drawn as a cubic Bezier curve whose control
points come from the neighbouring points, scaled by the tension and
skewed by an optional per-segment convexity. The end segments reuse the
first/last point as the missing neighbour.
"""

import cv2
import numpy as np
from typing import List, Optional, Sequence, Tuple, Union

Point = Tuple[float, float]

POINT_COLOR = (220, 20, 60, 255)
POLYLINE_COLOR = (0, 0, 255, 255)
SPLINE_COLOR = (0, 128, 0, 255)


def _as_points(points: Sequence[Point]) -> np.ndarray:
    arr = np.asarray(points, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 2 or len(arr) == 0:
        raise ValueError("points must be a non-empty list of (x, y) pairs")
    return arr


def _segment_convexity(convexity: Optional[Union[float, Sequence[float]]], segments: int) -> np.ndarray:
    if convexity is None:
        return np.zeros(segments)
    values = np.asarray(convexity, dtype=np.float64)
    if values.ndim == 0:
        return np.full(segments, float(values))
    if len(values) != segments:
        raise ValueError(f"Expected {segments} convexity values (one per segment), got {len(values)}")
    return values


def cardinal_control_points(
    points: Sequence[Point],
    tension: float = 0.0,
    convexity: Optional[Union[float, Sequence[float]]] = None
) -> List[np.ndarray]:
    """
    Bezier segments of the cardinal spline.

    cp1 = p1 + (p2 - p0) / 6 * (1 + c) * (1 - t)
    cp2 = p2 - (p3 - p1) / 6 * (1 - c) * (1 - t)

    Args:
        points: Points the curve passes through
        tension: 0 gives a Catmull-Rom like curve, 1 collapses to straight lines
        convexity: Scalar or one value per segment, typically in [-1, 1]

    Returns:
        One (4, 2) array [p1, cp1, cp2, p2] per segment
    """
    pts = _as_points(points)
    n = len(pts)
    conv = _segment_convexity(convexity, max(n - 1, 0))

    segments = []
    for i in range(n - 1):
        p0 = pts[i - 1] if i > 0 else pts[0]
        p1 = pts[i]
        p2 = pts[i + 1]
        p3 = pts[i + 2] if i < n - 2 else p2
        c = conv[i]

        cp1 = p1 + (p2 - p0) / 6.0 * (1 + c) * (1 - tension)
        cp2 = p2 - (p3 - p1) / 6.0 * (1 - c) * (1 - tension)
        segments.append(np.array([p1, cp1, cp2, p2]))
    return segments


def bezier_points(segment: np.ndarray, t: np.ndarray) -> np.ndarray:
    """Evaluate a cubic Bezier [p0, c1, c2, p1] at parameters t."""
    t = np.asarray(t, dtype=np.float64)[:, None]
    u = 1.0 - t
    p0, c1, c2, p1 = segment
    return u ** 3 * p0 + 3 * u * u * t * c1 + 3 * u * t * t * c2 + t ** 3 * p1


def sample_spline(
    points: Sequence[Point],
    tension: float = 0.0,
    convexity: Optional[Union[float, Sequence[float]]] = None,
    samples_per_segment: int = 24
) -> np.ndarray:
    """
    Flatten the spline to a polyline.

    Returns:
        (N, 2) array starting at the first point and ending at the last
    """
    if samples_per_segment < 1:
        raise ValueError(f"samples_per_segment must be >= 1, got {samples_per_segment}")

    pts = _as_points(points)
    segments = cardinal_control_points(pts, tension, convexity)
    if not segments:
        return pts.copy()

    t = np.linspace(0.0, 1.0, samples_per_segment + 1)
    polyline = [pts[:1]]
    for segment in segments:
        polyline.append(bezier_points(segment, t[1:]))
    return np.concatenate(polyline, axis=0)


def render_spline(
    points: Sequence[Point],
    width: int,
    height: int,
    tension: float = 0.0,
    convexity: Optional[Union[float, Sequence[float]]] = None,
    samples_per_segment: int = 24,
    show_polyline: bool = True
) -> np.ndarray:
    """
    Draw the points, their polyline and the spline onto a transparent canvas.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Canvas must be at least 1x1, got {width}x{height}")

    pts = _as_points(points)
    canvas = np.zeros((height, width, 4), dtype=np.uint8)

    if show_polyline and len(pts) > 1:
        polygon = np.round(pts).astype(np.int32).reshape(-1, 1, 2)
        cv2.polylines(canvas, [polygon], False, POLYLINE_COLOR, 2, lineType=cv2.LINE_AA)

    if len(pts) > 1:
        curve = sample_spline(pts, tension, convexity, samples_per_segment)
        curve = np.round(curve).astype(np.int32).reshape(-1, 1, 2)
        cv2.polylines(canvas, [curve], False, SPLINE_COLOR, 3, lineType=cv2.LINE_AA)

    for x, y in np.round(pts).astype(int):
        cv2.circle(canvas, (int(x), int(y)), 5, POINT_COLOR, -1, lineType=cv2.LINE_AA)

    return canvas

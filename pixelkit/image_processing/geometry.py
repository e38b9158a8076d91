"""
3D polyhedron projection and rendering.

Vertices are rotated by Euler angles in the fixed order X, Y, Z, projected
with a simple perspective divide and drawn back to front. Faces are wound
so that a face pointing at the camera has a positive 2D cross product
in screen space (y pointing down); faces with a non-positive cross product
are culled.
"""

import cv2
import numpy as np
from itertools import combinations
from typing import Dict, List, Sequence, Tuple

from pixelkit.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CAMERA_DISTANCE = 5.0
SCREEN_SCALE = 0.8
OUTLINE_COLOR = (51, 51, 51, 255)
LABEL_COLOR = (51, 51, 51, 255)

Rotation = Tuple[float, float, float]


class Polyhedron:
    """Named solid with vertex coordinates and faces as vertex index lists."""

    def __init__(self, name: str, vertices, faces: Sequence[Sequence[int]]):
        self.name = name
        self.vertices = np.asarray(vertices, dtype=np.float64)
        self.faces = _orient_faces(self.vertices, faces)
        self.labels = [str(i + 1) for i in range(len(self.faces))]

    @property
    def face_count(self) -> int:
        return len(self.faces)

    def __repr__(self):
        return f"Polyhedron({self.name!r}, vertices={len(self.vertices)}, faces={self.face_count})"


def _orient_faces(vertices: np.ndarray, faces: Sequence[Sequence[int]]) -> List[List[int]]:
    """
    Wind every face clockwise when seen from outside the solid.

    The y axis is flipped on projection, so these faces end up with a
    positive screen-space cross product when they face the camera.
    """
    oriented = []
    for face in faces:
        face = list(face)
        p0, p1, p2 = vertices[face[0]], vertices[face[1]], vertices[face[2]]
        normal = np.cross(p1 - p0, p2 - p0)
        centroid = vertices[face].mean(axis=0)
        if np.dot(normal, centroid) > 0:
            face = [face[0]] + face[1:][::-1]
        oriented.append(face)
    return oriented


def _icosahedron_vertices() -> np.ndarray:
    phi = (1 + np.sqrt(5)) / 2
    vertices = []
    for a in (-1, 1):
        for b in (-phi, phi):
            vertices.extend([(0, a, b), (a, b, 0), (b, 0, a)])
    return np.array(vertices, dtype=np.float64)


def _icosahedron_faces(vertices: np.ndarray) -> List[List[int]]:
    # Edge length is 2 for the (0, +-1, +-phi) construction
    def is_edge(i, j):
        return abs(np.linalg.norm(vertices[i] - vertices[j]) - 2.0) < 1e-6

    return [
        [i, j, k]
        for i, j, k in combinations(range(len(vertices)), 3)
        if is_edge(i, j) and is_edge(j, k) and is_edge(i, k)
    ]


def _dual(vertices: np.ndarray, faces: List[List[int]]) -> Tuple[np.ndarray, List[List[int]]]:
    """
    Dual solid: one vertex per face centroid, one face per original vertex.

    The faces around each original vertex are ordered by angle about the
    axis through that vertex.
    """
    centroids = np.array([vertices[f].mean(axis=0) for f in faces])
    dual_faces = []
    for v_idx, vertex in enumerate(vertices):
        around = [i for i, f in enumerate(faces) if v_idx in f]
        axis = vertex / np.linalg.norm(vertex)
        u = np.cross(axis, [0.0, 0.0, 1.0])
        if np.linalg.norm(u) < 1e-6:
            u = np.cross(axis, [0.0, 1.0, 0.0])
        u /= np.linalg.norm(u)
        w = np.cross(axis, u)
        angles = [np.arctan2(np.dot(centroids[i], w), np.dot(centroids[i], u)) for i in around]
        dual_faces.append([around[i] for i in np.argsort(angles)])
    return centroids, dual_faces


def _normalized(vertices: np.ndarray, radius: float) -> np.ndarray:
    return vertices * (radius / np.linalg.norm(vertices, axis=1).max())


def _build_polyhedra() -> Dict[int, Polyhedron]:
    circumradius = np.sqrt(3.0)

    ico_vertices = _icosahedron_vertices()
    ico_faces = _icosahedron_faces(ico_vertices)
    dodeca_vertices, dodeca_faces = _dual(ico_vertices, ico_faces)

    solids = [
        Polyhedron(
            "tetrahedron",
            [[1, 1, 1], [1, -1, -1], [-1, 1, -1], [-1, -1, 1]],
            [[0, 1, 2], [0, 2, 3], [0, 3, 1], [1, 3, 2]],
        ),
        Polyhedron(
            "cube",
            [[-1, -1, -1], [1, -1, -1], [1, 1, -1], [-1, 1, -1],
             [-1, -1, 1], [1, -1, 1], [1, 1, 1], [-1, 1, 1]],
            [[0, 1, 2, 3], [4, 5, 6, 7], [0, 1, 5, 4],
             [2, 3, 7, 6], [0, 3, 7, 4], [1, 2, 6, 5]],
        ),
        Polyhedron(
            "octahedron",
            [[1, 0, 0], [-1, 0, 0], [0, 1, 0], [0, -1, 0], [0, 0, 1], [0, 0, -1]],
            [[0, 2, 4], [0, 4, 3], [0, 3, 5], [0, 5, 2],
             [1, 2, 5], [1, 5, 3], [1, 3, 4], [1, 4, 2]],
        ),
        Polyhedron("dodecahedron", _normalized(dodeca_vertices, circumradius), dodeca_faces),
        Polyhedron("icosahedron", _normalized(ico_vertices, circumradius), ico_faces),
    ]
    return {solid.face_count: solid for solid in solids}


POLYHEDRA: Dict[int, Polyhedron] = _build_polyhedra()


def get_polyhedron(faces: int) -> Polyhedron:
    """Look up a solid by its number of faces (4, 6, 8, 12 or 20)."""
    try:
        return POLYHEDRA[int(faces)]
    except (KeyError, ValueError, TypeError):
        raise ValueError(
            f"Unknown polyhedron with {faces} faces, expected one of {sorted(POLYHEDRA)}"
        ) from None


def rotate_vertices(vertices: np.ndarray, rotation: Rotation) -> np.ndarray:
    """
    Rotate vertices about X, then Y, then Z (angles in degrees).

    The Z step combines the X-rotated y with the Y-rotated x, and the depth
    is the Y-rotated z.
    """
    v = np.asarray(vertices, dtype=np.float64)
    rx, ry, rz = np.deg2rad(np.asarray(rotation, dtype=np.float64))
    x, y, z = v[:, 0], v[:, 1], v[:, 2]

    y1 = y * np.cos(rx) - z * np.sin(rx)
    z1 = y * np.sin(rx) + z * np.cos(rx)

    x2 = x * np.cos(ry) + z1 * np.sin(ry)
    z2 = -x * np.sin(ry) + z1 * np.cos(ry)

    x3 = x2 * np.cos(rz) - y1 * np.sin(rz)
    y3 = x2 * np.sin(rz) + y1 * np.cos(rz)

    return np.stack([x3, y3, z2], axis=1)


def project_vertices(
    vertices: np.ndarray,
    rotation: Rotation,
    size: int,
    camera_distance: float = DEFAULT_CAMERA_DISTANCE
) -> np.ndarray:
    """
    Rotate and project vertices onto a size x size canvas.

    f = d / (d - z), px = x f s + c, py = -y f s + c with c = size / 2
    and s = 0.8 c.

    Returns:
        (V, 3) array of screen x, screen y and rotated depth z
    """
    rotated = rotate_vertices(vertices, rotation)
    x, y, z = rotated[:, 0], rotated[:, 1], rotated[:, 2]

    if np.any(z >= camera_distance):
        raise ValueError(f"Camera distance {camera_distance} is inside the solid")

    centre = size / 2.0
    scale = centre * SCREEN_SCALE
    factor = camera_distance / (camera_distance - z)

    return np.stack([x * factor * scale + centre, -y * factor * scale + centre, z], axis=1)


def face_winding(points: np.ndarray) -> float:
    """Z component of the cross product of a polygon's first two edges."""
    if len(points) < 3:
        return 1.0
    (x0, y0), (x1, y1), (x2, y2) = points[0][:2], points[1][:2], points[2][:2]
    return float((x1 - x0) * (y2 - y0) - (y1 - y0) * (x2 - x0))


def visible_faces(polyhedron: Polyhedron, projected: np.ndarray) -> List[Dict]:
    """
    Faces in painter's order (farthest first) with back faces removed.

    Depth is the mean rotated z of a face's vertices; larger z is closer
    to the camera.
    """
    faces = []
    for index, face in enumerate(polyhedron.faces):
        points = projected[face]
        faces.append({
            'index': index,
            'label': polyhedron.labels[index],
            'depth': float(points[:, 2].mean()),
            'points': points[:, :2],
            'winding': face_winding(points),
        })

    faces.sort(key=lambda f: f['depth'])
    return [f for f in faces if f['winding'] > 0]


def face_color(index: int, count: int) -> Tuple[int, int, int, int]:
    """Pastel fill colour (hue spread over the faces, 70 % saturation, 80 % lightness)."""
    hue = (index * 360.0 / max(count, 1)) % 360.0
    hls = np.array([[[hue / 2.0, 0.8 * 255, 0.7 * 255]]], dtype=np.uint8)
    r, g, b = cv2.cvtColor(hls, cv2.COLOR_HLS2RGB)[0, 0]
    return int(r), int(g), int(b), 255


def render_polyhedron(
    faces: int,
    rotation: Rotation = (0.0, 0.0, 0.0),
    size: int = 600,
    camera_distance: float = DEFAULT_CAMERA_DISTANCE
) -> np.ndarray:
    """
    Draw a labelled polyhedron onto a transparent RGBA canvas.

    Args:
        faces: Number of faces selecting the solid
        rotation: (x, y, z) Euler angles in degrees
        size: Canvas edge length in pixels
        camera_distance: Perspective camera distance

    Returns:
        RGBA canvas of shape (size, size, 4)
    """
    polyhedron = get_polyhedron(faces)
    projected = project_vertices(polyhedron.vertices, rotation, size, camera_distance)
    canvas = np.zeros((size, size, 4), dtype=np.uint8)

    font = cv2.FONT_HERSHEY_SIMPLEX
    font_scale = max(12.0, size / 15.0) / 22.0
    thickness = max(1, int(round(font_scale * 2)))

    drawn = visible_faces(polyhedron, projected)
    for face in drawn:
        polygon = np.round(face['points']).astype(np.int32).reshape(-1, 1, 2)
        cv2.fillPoly(canvas, [polygon], face_color(face['index'], polyhedron.face_count), lineType=cv2.LINE_AA)
        cv2.polylines(canvas, [polygon], True, OUTLINE_COLOR, 2, lineType=cv2.LINE_AA)

        (text_w, text_h), _ = cv2.getTextSize(face['label'], font, font_scale, thickness)
        cx, cy = face['points'].mean(axis=0)
        origin = (int(round(cx - text_w / 2)), int(round(cy + text_h / 2)))
        cv2.putText(canvas, face['label'], origin, font, font_scale, LABEL_COLOR, thickness, cv2.LINE_AA)

    logger.debug(f"Rendered {polyhedron.name}: {len(drawn)}/{polyhedron.face_count} faces visible")
    return canvas

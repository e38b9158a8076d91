"""Tests for polyhedron projection."""

import numpy as np
import pytest

from pixelkit.image_processing import (
    POLYHEDRA,
    get_polyhedron,
    project_vertices,
    render_polyhedron,
    visible_faces,
)
from pixelkit.image_processing.geometry import face_winding, rotate_vertices


def test_available_solids():
    assert sorted(POLYHEDRA) == [4, 6, 8, 12, 20]
    names = {faces: solid.name for faces, solid in POLYHEDRA.items()}
    assert names[12] == "dodecahedron"
    assert names[20] == "icosahedron"


@pytest.mark.parametrize("faces, vertices, sides", [
    (4, 4, 3), (6, 8, 4), (8, 6, 3), (12, 20, 5), (20, 12, 3),
])
def test_solid_structure(faces, vertices, sides):
    solid = get_polyhedron(faces)
    assert solid.face_count == faces
    assert len(solid.vertices) == vertices
    assert all(len(face) == sides for face in solid.faces)
    assert solid.labels[0] == "1"


@pytest.mark.parametrize("faces", [4, 6, 8, 12, 20])
def test_faces_wind_clockwise_from_outside(faces):
    solid = get_polyhedron(faces)
    for face in solid.faces:
        p0, p1, p2 = solid.vertices[face[:3]]
        normal = np.cross(p1 - p0, p2 - p0)
        assert np.dot(normal, solid.vertices[face].mean(axis=0)) < 0


def test_every_dodecahedron_vertex_is_shared_by_three_faces():
    solid = get_polyhedron(12)
    counts = np.bincount(np.concatenate(solid.faces), minlength=len(solid.vertices))
    assert np.all(counts == 3)


def test_unknown_solid():
    with pytest.raises(ValueError):
        get_polyhedron(7)


def test_rotation_order():
    v = np.array([[1.0, 0.0, 0.0]])
    assert rotate_vertices(v, (0, 0, 90)) == pytest.approx(np.array([[0.0, 1.0, 0.0]]))
    assert rotate_vertices(v, (0, 90, 0)) == pytest.approx(np.array([[0.0, 0.0, -1.0]]))
    y = np.array([[0.0, 1.0, 0.0]])
    assert rotate_vertices(y, (90, 0, 0)) == pytest.approx(np.array([[0.0, 0.0, 1.0]]))


def test_projection_of_axis_points():
    points = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
    projected = project_vertices(points, (0, 0, 0), 200)
    assert projected[0, :2] == pytest.approx([100.0, 100.0])
    assert projected[1, :2] == pytest.approx([180.0, 100.0])
    # Screen y grows downwards
    assert projected[2, :2] == pytest.approx([100.0, 20.0])


def test_perspective_enlarges_near_points():
    points = np.array([[1.0, 0.0, 1.0], [1.0, 0.0, -1.0]])
    projected = project_vertices(points, (0, 0, 0), 200, camera_distance=5.0)
    assert projected[0, 0] == pytest.approx(100 + 80 * 5 / 4)
    assert projected[1, 0] == pytest.approx(100 + 80 * 5 / 6)


def test_camera_inside_solid_rejected():
    with pytest.raises(ValueError):
        project_vertices(get_polyhedron(6).vertices, (0, 0, 0), 100, camera_distance=1.0)


def test_front_view_of_cube_shows_one_face():
    cube = get_polyhedron(6)
    faces = visible_faces(cube, project_vertices(cube.vertices, (0, 0, 0), 400))
    assert [face['label'] for face in faces] == ["2"]


@pytest.mark.parametrize("rotation", [(30, 45, 0), (10, 200, 75), (-60, 15, 120)])
def test_visible_faces_sorted_back_to_front(rotation):
    cube = get_polyhedron(6)
    faces = visible_faces(cube, project_vertices(cube.vertices, rotation, 400))
    assert 1 <= len(faces) <= 3
    depths = [face['depth'] for face in faces]
    assert depths == sorted(depths)
    assert all(face_winding(face['points']) > 0 for face in faces)


@pytest.mark.parametrize("faces", [4, 8, 12, 20])
def test_some_but_not_all_faces_visible(faces):
    solid = get_polyhedron(faces)
    visible = visible_faces(solid, project_vertices(solid.vertices, (20, 35, 10), 400))
    assert 0 < len(visible) < faces


def test_render_polyhedron():
    canvas = render_polyhedron(8, (20, 30, 0), size=120)
    assert canvas.shape == (120, 120, 4)
    assert canvas.dtype == np.uint8
    assert canvas[60, 60, 3] == 255
    assert canvas[0, 0, 3] == 0

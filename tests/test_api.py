"""HTTP tests for the PixelKit API."""

import json

import numpy as np
import pytest
from fastapi.testclient import TestClient

from pixelkit.config import RetouchSettings
from pixelkit.image_processing import image_to_bytes, invert, load_image_from_bytes
from pixelkit.main import app
from pixelkit.routers.base import get_session_store
from pixelkit.services import SessionStore
from tests.helpers import make_image


@pytest.fixture
def client():
    store = SessionStore(RetouchSettings())
    app.dependency_overrides[get_session_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def upload(image):
    return {'file': ('image.png', image_to_bytes(image), 'image/png')}


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body['status'] == "healthy"
    assert body['filters_count'] == 13
    assert body['active_sessions'] == 0


def test_list_filters(client):
    response = client.get("/api/filters")
    assert response.status_code == 200
    names = [f['name'] for f in response.json()]
    assert "unsharp_mask" in names
    assert "red_eye" in names


def test_apply_invert(client, gradient_image):
    response = client.post("/api/filters/invert", files=upload(gradient_image))
    assert response.status_code == 200
    assert response.headers['content-type'] == "image/png"
    out = load_image_from_bytes(response.content)
    assert np.array_equal(out, invert(gradient_image))


def test_filter_parameter_out_of_range(client, gradient_image):
    response = client.post(
        "/api/filters/lighten", files=upload(gradient_image), data={'intensity': '3'}
    )
    assert response.status_code == 400


def test_unknown_filter_kind(client, gradient_image):
    response = client.post("/api/filters/posterize", files=upload(gradient_image))
    assert response.status_code == 422


def test_undecodable_upload(client):
    response = client.post(
        "/api/filters/invert", files={'file': ('junk.png', b'not an image', 'image/png')}
    )
    assert response.status_code == 400


def test_scale(client):
    image = make_image(8, 8, (10, 20, 30))
    response = client.post(
        "/api/scale", files=upload(image), data={'scale': '0.5', 'algorithm': 'bilinear'}
    )
    assert response.status_code == 200
    assert response.headers['x-output-size'] == "4x4"
    assert load_image_from_bytes(response.content).shape == (4, 4, 4)


def test_rotate_quarter_turn(client, gradient_image):
    response = client.post("/api/rotate", files=upload(gradient_image), data={'degrees': '90'})
    assert response.status_code == 200
    assert load_image_from_bytes(response.content).shape == (16, 12, 4)


def test_warp_identity(client, gradient_image):
    triangle = [[0, 0], [15, 0], [0, 11]]
    points = json.dumps({'source': triangle, 'target': triangle})
    response = client.post("/api/warp", files=upload(gradient_image), data={'points': points})
    assert response.status_code == 200
    assert 'x-transform-fallback' not in response.headers
    assert response.headers['x-filter-mode'] in ("bilinear", "trilinear")


def test_warp_degenerate_points(client, gradient_image):
    points = json.dumps({
        'source': [[0, 0], [1, 1], [2, 2]],
        'target': [[0, 0], [15, 0], [0, 11]],
    })
    response = client.post("/api/warp", files=upload(gradient_image), data={'points': points})
    assert response.status_code == 200
    assert response.headers['x-transform-fallback'] == "identity"


def test_warp_bad_points(client, gradient_image):
    response = client.post(
        "/api/warp", files=upload(gradient_image), data={'points': '{"source": [[0, 0]]}'}
    )
    assert response.status_code == 400


def test_affine(client):
    response = client.post("/api/affine", json={
        'source': [[0, 0], [1, 0], [0, 1]],
        'target': [[2, 3], [4, 3], [2, 5]],
    })
    assert response.status_code == 200
    body = response.json()
    assert not body['degenerate']
    assert body['matrix'][0] == pytest.approx([2, 0, 2])
    assert body['matrix'][1] == pytest.approx([0, 2, 3])


def test_retouch_session_flow(client, gray_image):
    response = client.post("/api/retouch/sessions", files=upload(gray_image))
    assert response.status_code == 200
    session_id = response.json()['session_id']
    assert response.json()['width'] == 10

    response = client.post(f"/api/retouch/sessions/{session_id}/strokes", json={
        'tool': 'darken', 'points': [[5, 5]], 'size': 4, 'intensity': 1.0,
    })
    assert response.status_code == 200
    assert response.json()['applied'] is True
    assert response.json()['undo_depth'] == 1

    image = load_image_from_bytes(client.get(f"/api/retouch/sessions/{session_id}/image").content)
    assert np.all(image[3:7, 3:7, :3] == 0)

    response = client.post(f"/api/retouch/sessions/{session_id}/undo")
    assert response.json()['applied'] is True
    assert response.json()['redo_depth'] == 1
    image = load_image_from_bytes(client.get(f"/api/retouch/sessions/{session_id}/image").content)
    assert np.array_equal(image, gray_image)

    response = client.post(f"/api/retouch/sessions/{session_id}/redo")
    assert response.json()['undo_depth'] == 1

    response = client.post(f"/api/retouch/sessions/{session_id}/reset")
    assert response.json()['undo_depth'] == 0

    assert client.delete(f"/api/retouch/sessions/{session_id}").status_code == 200
    assert client.get(f"/api/retouch/sessions/{session_id}").status_code == 404


def test_unknown_session(client):
    assert client.post("/api/retouch/sessions/missing/undo").status_code == 404
    assert client.delete("/api/retouch/sessions/missing").status_code == 404


def test_stroke_validation(client, gray_image):
    session_id = client.post("/api/retouch/sessions", files=upload(gray_image)).json()['session_id']
    response = client.post(f"/api/retouch/sessions/{session_id}/strokes", json={
        'tool': 'smudge', 'points': [[1, 1]],
    })
    assert response.status_code == 422


def test_polyhedron_png(client):
    response = client.post("/api/polyhedron", json={'faces': 20, 'rotation': [15, 30, 0], 'size': 128})
    assert response.status_code == 200
    assert load_image_from_bytes(response.content).shape == (128, 128, 4)


def test_polyhedron_projection(client):
    response = client.post("/api/polyhedron/projection", json={'faces': 6, 'size': 400})
    assert response.status_code == 200
    body = response.json()
    assert body['name'] == "cube"
    assert [face['label'] for face in body['faces']] == ["2"]


def test_polyhedron_rejects_other_face_counts(client):
    assert client.post("/api/polyhedron", json={'faces': 5}).status_code == 422


def test_spline(client):
    response = client.post("/api/spline", json={
        'points': [[10, 10], [60, 80], [120, 30]], 'samples': 4,
    })
    assert response.status_code == 200
    body = response.json()
    assert len(body['segments']) == 2
    assert len(body['polyline']) == 9
    assert body['polyline'][0] == [10, 10]


def test_spline_render(client):
    response = client.post("/api/spline/render", json={
        'points': [[10, 10], [60, 80]], 'width': 100, 'height': 90,
    })
    assert response.status_code == 200
    assert load_image_from_bytes(response.content).shape == (90, 100, 4)


def test_rotate_without_expand(client, gradient_image):
    response = client.post(
        "/api/rotate", files=upload(gradient_image), data={'degrees': '45', 'expand': 'false'}
    )
    assert response.status_code == 200
    assert response.headers['x-output-size'] == "16x12"


def test_clone_source_can_be_unpinned(client, gray_image):
    session_id = client.post("/api/retouch/sessions", files=upload(gray_image)).json()['session_id']
    url = f"/api/retouch/sessions/{session_id}/strokes"

    response = client.post(url, json={'tool': 'clone', 'points': [[5, 5]], 'clone_source': [1, 1]})
    assert response.json()['clone_source'] == [1, 1]

    response = client.post(url, json={'tool': 'clone', 'points': [[5, 5]]})
    assert response.json()['clone_source'] == [1, 1]

    response = client.post(url, json={'tool': 'clone', 'points': [[5, 5]], 'clear_clone_source': True})
    assert response.status_code == 200
    assert response.json()['clone_source'] is None


def test_clone_source_and_clear_are_exclusive(client, gray_image):
    session_id = client.post("/api/retouch/sessions", files=upload(gray_image)).json()['session_id']
    response = client.post(f"/api/retouch/sessions/{session_id}/strokes", json={
        'tool': 'clone', 'points': [[5, 5]], 'clone_source': [1, 1], 'clear_clone_source': True,
    })
    assert response.status_code == 422

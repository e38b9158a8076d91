"""
Geometry Router - Polyhedron and spline endpoints for PixelKit API

Contains endpoints for:
- Rendering a rotated polyhedron
- Projected face data for client-side drawing
- Cardinal spline control points, polylines and renderings
"""

from fastapi import APIRouter, HTTPException

from pixelkit.config import get_geometry_settings
from pixelkit.image_processing import (
    cardinal_control_points,
    get_polyhedron,
    project_vertices,
    render_polyhedron,
    render_spline,
    sample_spline,
    visible_faces,
)
from pixelkit.models import PolyhedronRequest, ProjectionResponse, SplineRequest, SplineResponse
from .base import png_response

router = APIRouter(prefix="/api", tags=["geometry"])


@router.post("/polyhedron")
def polyhedron(request: PolyhedronRequest):
    """Render the selected polyhedron as a PNG."""
    settings = get_geometry_settings()
    try:
        canvas = render_polyhedron(
            request.faces,
            request.rotation,
            size=request.size or settings.canvas_size,
            camera_distance=settings.camera_distance
        )
        return png_response(canvas)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/polyhedron/projection", response_model=ProjectionResponse)
def polyhedron_projection(request: PolyhedronRequest):
    """Visible faces of the polyhedron in drawing order (farthest first)."""
    settings = get_geometry_settings()
    size = request.size or settings.canvas_size
    try:
        solid = get_polyhedron(request.faces)
        projected = project_vertices(solid.vertices, request.rotation, size, settings.camera_distance)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    faces = [
        {
            'index': face['index'],
            'label': face['label'],
            'depth': face['depth'],
            'points': face['points'].tolist(),
        }
        for face in visible_faces(solid, projected)
    ]
    return {'name': solid.name, 'size': size, 'faces': faces}


@router.post("/spline", response_model=SplineResponse)
def spline(request: SplineRequest):
    """Bezier segments and a sampled polyline for a cardinal spline."""
    samples = request.samples or get_geometry_settings().spline_samples
    try:
        segments = cardinal_control_points(request.points, request.tension, request.convexity)
        polyline = sample_spline(request.points, request.tension, request.convexity, samples)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        'segments': [segment.tolist() for segment in segments],
        'polyline': polyline.tolist(),
    }


@router.post("/spline/render")
def spline_render(request: SplineRequest):
    """Draw the points, their polyline and the spline as a PNG."""
    samples = request.samples or get_geometry_settings().spline_samples
    try:
        canvas = render_spline(
            request.points,
            request.width,
            request.height,
            tension=request.tension,
            convexity=request.convexity,
            samples_per_segment=samples,
            show_polyline=request.show_polyline
        )
        return png_response(canvas)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

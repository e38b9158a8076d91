"""
Pydantic models for request/response validation.

These models define the API contracts for PixelKit endpoints.
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

from pixelkit.services import RetouchTool

Point2D = Tuple[float, float]


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    version: str
    filters_count: int
    active_sessions: int


class FilterInfo(BaseModel):
    """A filter kind with its default parameters."""

    name: str
    parameters: dict


class TrianglePair(BaseModel):
    """Three source points and the three points they map to."""

    source: List[Point2D] = Field(..., min_length=3, max_length=3)
    target: List[Point2D] = Field(..., min_length=3, max_length=3)


class AffineResponse(BaseModel):
    """Response model for an affine estimate."""

    matrix: List[List[float]]
    inverse: List[List[float]]
    degenerate: bool


class StrokeRequest(BaseModel):
    """One brush stroke applied to a retouch session."""

    tool: RetouchTool
    points: List[Tuple[int, int]] = Field(..., min_length=1, description="Cursor positions in image pixels")
    size: Optional[int] = Field(None, ge=1, le=500, description="Brush size in pixels")
    intensity: Optional[float] = Field(None, ge=0.0, le=1.0)
    clone_source: Optional[Tuple[int, int]] = Field(None, description="Pin the clone source for this and later strokes")
    clear_clone_source: bool = Field(False, description="Unpin the clone source so it anchors at each stroke start")

    @model_validator(mode='after')
    def check_clone_source(self):
        if self.clear_clone_source and self.clone_source is not None:
            raise ValueError('clone_source and clear_clone_source are mutually exclusive')
        return self


class SessionResponse(BaseModel):
    """State of a retouch session."""

    session_id: str
    has_image: bool
    width: Optional[int] = None
    height: Optional[int] = None
    tool: str
    brush_size: int
    intensity: float
    clone_source: Optional[Tuple[int, int]] = None
    undo_depth: int
    redo_depth: int
    applied: Optional[bool] = None


class PolyhedronRequest(BaseModel):
    """Polyhedron selection and view rotation."""

    faces: int = Field(6, description="Number of faces: 4, 6, 8, 12 or 20")
    rotation: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    size: Optional[int] = Field(None, ge=32, le=4096, description="Canvas edge length")

    @field_validator('faces')
    @classmethod
    def validate_faces(cls, v):
        """Only the five Platonic solids are available."""
        if v not in (4, 6, 8, 12, 20):
            raise ValueError('faces must be one of 4, 6, 8, 12, 20')
        return v


class ProjectedFace(BaseModel):
    """A visible face in drawing order."""

    index: int
    label: str
    depth: float
    points: List[Point2D]


class ProjectionResponse(BaseModel):
    """Projected faces of a polyhedron."""

    name: str
    size: int
    faces: List[ProjectedFace]


class SplineRequest(BaseModel):
    """Points and shape parameters of a cardinal spline."""

    points: List[Point2D] = Field(..., min_length=1)
    tension: float = Field(0.0, ge=0.0, le=1.0)
    convexity: Optional[List[float]] = Field(None, description="One value per segment in [-1, 1]")
    samples: Optional[int] = Field(None, ge=1, le=512, description="Samples per segment")
    width: int = Field(600, ge=1, le=4096)
    height: int = Field(400, ge=1, le=4096)
    show_polyline: bool = True

    @field_validator('convexity')
    @classmethod
    def validate_convexity(cls, v):
        """Convexity values are limited to [-1, 1]."""
        if v is not None and any(abs(c) > 1 for c in v):
            raise ValueError('convexity values must be in [-1, 1]')
        return v


class SplineResponse(BaseModel):
    """Bezier segments and flattened polyline of a spline."""

    segments: List[List[Point2D]]
    polyline: List[Point2D]

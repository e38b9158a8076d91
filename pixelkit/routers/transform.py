"""
Transform Router - Scaling, rotation and affine warp endpoints for PixelKit API

Contains endpoints for:
- Scaling with a choice of interpolation and anti-aliasing
- Rotation by an arbitrary angle
- Triangle-to-triangle affine warping
- Affine matrix estimation
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from pixelkit.image_processing import AntiAliasing, ScalingAlgorithm
from pixelkit.models import AffineResponse, TrianglePair
from pixelkit.services import TransformService
from pixelkit.utils.logger import get_logger
from .base import get_transform_service, png_response, read_image

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["transform"])


@router.post("/scale")
async def scale(
    file: UploadFile = File(...),
    scale: float = Form(..., gt=0, le=16),
    algorithm: ScalingAlgorithm = Form(ScalingAlgorithm.BILINEAR),
    anti_aliasing: AntiAliasing = Form(AntiAliasing.NONE),
    service: TransformService = Depends(get_transform_service)
):
    """
    Scale an uploaded image by a factor.

    Returns:
        Scaled PNG with the output size in the X-Output-Size header
    """
    try:
        image = await read_image(file)
        result = await run_in_threadpool(service.scale, image, scale, algorithm, anti_aliasing)
        return png_response(result, headers={"X-Output-Size": f"{result.shape[1]}x{result.shape[0]}"})

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Scaling failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Processing error: {str(e)}")


@router.post("/rotate")
async def rotate(
    file: UploadFile = File(...),
    degrees: float = Form(...),
    expand: bool = Form(True, description="Grow the canvas to fit; false keeps the size and crops"),
    service: TransformService = Depends(get_transform_service)
):
    """Rotate an uploaded image clockwise by `degrees`."""
    try:
        image = await read_image(file)
        result = await run_in_threadpool(service.rotate, image, degrees, expand)
        return png_response(result, headers={"X-Output-Size": f"{result.shape[1]}x{result.shape[0]}"})

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Rotation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Processing error: {str(e)}")


@router.post("/warp")
async def warp(
    file: UploadFile = File(...),
    points: str = Form(..., description='JSON {"source": [[x, y] x3], "target": [[x, y] x3]}'),
    width: Optional[int] = Form(None, ge=1, le=8192),
    height: Optional[int] = Form(None, ge=1, le=8192),
    service: TransformService = Depends(get_transform_service)
):
    """
    Warp an uploaded image so the source triangle maps onto the target.

    Response headers:
        X-Filter-Mode: bilinear or trilinear
        X-Mip-Level: level of detail used by trilinear filtering
        X-Transform-Fallback: "identity" when the points were degenerate
    """
    try:
        triangles = TrianglePair.model_validate_json(points)
        image = await read_image(file)

        output_size = None
        if width is not None or height is not None:
            output_size = (width or image.shape[1], height or image.shape[0])

        result, info = await run_in_threadpool(
            service.warp, image, triangles.source, triangles.target, output_size
        )

        headers = {
            "X-Filter-Mode": info['filter'],
            "X-Mip-Level": f"{info['mip_level']:.3f}",
        }
        if info['degenerate']:
            headers["X-Transform-Fallback"] = "identity"
        return png_response(result, headers=headers)

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Warp failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Processing error: {str(e)}")


@router.post("/affine", response_model=AffineResponse)
def affine(
    triangles: TrianglePair,
    service: TransformService = Depends(get_transform_service)
):
    """Estimate the affine matrix (and inverse) mapping source onto target."""
    try:
        return service.affine(triangles.source, triangles.target)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

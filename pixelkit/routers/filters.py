"""
Filters Router - Whole-image filter endpoints for PixelKit API

Contains endpoints for:
- Listing filter kinds and their default parameters
- Applying a filter to an uploaded image
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from pixelkit.models import FilterInfo
from pixelkit.services import FilterKind, FilterService
from pixelkit.utils.logger import get_logger
from .base import get_filter_service, png_response, read_image

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["filters"])


@router.get("/filters", response_model=List[FilterInfo])
async def list_filters(service: FilterService = Depends(get_filter_service)):
    """List available filters with their default parameters."""
    return service.list_filters()


@router.post("/filters/{kind}")
async def apply_filter(
    kind: FilterKind,
    file: UploadFile = File(...),
    intensity: Optional[float] = Form(None),
    radius: Optional[float] = Form(None),
    amount: Optional[float] = Form(None),
    threshold: Optional[float] = Form(None),
    block_size: Optional[int] = Form(None),
    seed: Optional[int] = Form(None),
    service: FilterService = Depends(get_filter_service)
):
    """
    Apply a filter to an uploaded image.

    Only the parameters the filter understands are used; missing ones
    fall back to the configured defaults.

    Returns:
        Filtered image as PNG
    """
    try:
        image = await read_image(file)

        supplied = {
            'intensity': intensity,
            'radius': radius,
            'amount': amount,
            'threshold': threshold,
            'block_size': block_size,
            'seed': seed,
        }
        params = {name: supplied[name] for name in service.parameter_names(kind)}

        result = await run_in_threadpool(service.apply, image, kind, params)
        return png_response(result)

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Filter {kind.value} failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Processing error: {str(e)}")

"""
Retouch Router - Interactive retouching session endpoints for PixelKit API

Contains endpoints for:
- Creating and deleting sessions from an uploaded image
- Applying brush strokes
- Undo, redo and reset
- Fetching the current image
"""

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from pixelkit.models import SessionResponse, StrokeRequest
from pixelkit.services import RetouchSession, SessionNotFoundError, SessionStore
from .base import get_session_store, png_response, read_image

router = APIRouter(prefix="/api/retouch", tags=["retouch"])


def _get_session(store: SessionStore, session_id: str) -> RetouchSession:
    try:
        return store.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")


@router.post("/sessions", response_model=SessionResponse)
async def create_session(
    file: UploadFile = File(...),
    store: SessionStore = Depends(get_session_store)
):
    """Start a retouch session on an uploaded image."""
    try:
        image = await read_image(file)
        session = store.create(image)
        return session.info()

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    """Current state of a session."""
    return _get_session(store, session_id).info()


@router.delete("/sessions/{session_id}")
def delete_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    """Discard a session and its history."""
    try:
        store.delete(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return {"success": True, "session_id": session_id}


@router.post("/sessions/{session_id}/strokes", response_model=SessionResponse)
def apply_stroke(
    session_id: str,
    stroke: StrokeRequest,
    store: SessionStore = Depends(get_session_store)
):
    """
    Apply one brush stroke through the given points.

    The stroke is a single undo step. `applied` is False when the stroke
    started outside the image.
    """
    session = _get_session(store, session_id)
    try:
        with session.lock:
            session.set_tool(stroke.tool, stroke.size, stroke.intensity)
            if stroke.clear_clone_source:
                session.set_clone_source(None)
            elif stroke.clone_source is not None:
                session.set_clone_source(stroke.clone_source)
            applied = session.apply_stroke(stroke.points)
            return {**session.info(), 'applied': applied}

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/sessions/{session_id}/undo", response_model=SessionResponse)
def undo(session_id: str, store: SessionStore = Depends(get_session_store)):
    """Revert the last stroke."""
    session = _get_session(store, session_id)
    applied = session.undo()
    return {**session.info(), 'applied': applied}


@router.post("/sessions/{session_id}/redo", response_model=SessionResponse)
def redo(session_id: str, store: SessionStore = Depends(get_session_store)):
    """Re-apply the last undone stroke."""
    session = _get_session(store, session_id)
    applied = session.redo()
    return {**session.info(), 'applied': applied}


@router.post("/sessions/{session_id}/reset", response_model=SessionResponse)
def reset(session_id: str, store: SessionStore = Depends(get_session_store)):
    """Restore the original image and clear the history."""
    session = _get_session(store, session_id)
    applied = session.reset()
    return {**session.info(), 'applied': applied}


@router.get("/sessions/{session_id}/image")
def get_image(session_id: str, store: SessionStore = Depends(get_session_store)):
    """Current image of the session as PNG."""
    session = _get_session(store, session_id)
    image = session.snapshot()
    if image is None:
        raise HTTPException(status_code=400, detail="Session has no image loaded")
    return png_response(image)

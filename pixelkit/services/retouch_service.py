"""
Retouching sessions.

A session owns one image being edited with brush tools. All state lives
on the session object: the current and original buffers, the active tool
and brush, the clone source and the undo/redo history. Every operation
takes the session lock, so a stroke never interleaves with another
stroke, an undo or a read of the image.

Each stroke (begin_stroke ... end_stroke) is one undo step: the image is
snapshotted when the stroke begins.
"""

import threading
import uuid
from collections import OrderedDict, deque
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from pixelkit.config import RetouchSettings, get_retouch_settings
from pixelkit.image_processing import (
    box_blur_clipped,
    darken,
    ensure_rgba,
    lighten,
    red_eye_reduction,
    sharpen,
)
from pixelkit.image_processing.utils import to_uint8
from pixelkit.utils.logger import LoggerAdapter, get_logger

logger = get_logger(__name__)


class RetouchTool(str, Enum):
    """Brush tools of the retouching editor."""

    BLUR = "blur"
    CLONE = "clone"
    LIGHTEN = "lighten"
    DARKEN = "darken"
    SHARPEN = "sharpen"
    RED_EYE = "red_eye"


class SessionNotFoundError(KeyError):
    """Raised when a session id is not known to the store."""


Region = Tuple[int, int, int, int]


def brush_region(x: int, y: int, size: int, width: int, height: int) -> Optional[Region]:
    """
    Square brush footprint [x - r, x - r + size) x [y - r, y - r + size)
    with r = size // 2, clipped to the image.

    Returns:
        (x0, y0, x1, y1) or None when the square misses the image
    """
    r = size // 2
    x0, y0 = max(0, x - r), max(0, y - r)
    x1, y1 = min(width, x - r + size), min(height, y - r + size)
    if x0 >= x1 or y0 >= y1:
        return None
    return x0, y0, x1, y1


def line_steps(x0: int, y0: int, x1: int, y1: int) -> List[Tuple[int, int]]:
    """
    Integer points along a segment, excluding the start.

    steps = max(|dx|, |dy|); a zero-length segment yields its end point once.
    """
    dx, dy = x1 - x0, y1 - y0
    steps = max(abs(dx), abs(dy), 1)
    return [
        (int(np.floor(x0 + dx * i / steps + 0.5)), int(np.floor(y0 + dy * i / steps + 0.5)))
        for i in range(1, steps + 1)
    ]


class RetouchSession:
    """
    Editable image with brush tools and bounded undo/redo.
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        history_limit: int = 20,
        brush_size: int = 20,
        intensity: float = 0.5,
        tool: RetouchTool = RetouchTool.BLUR
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.history_limit = history_limit
        self.tool = RetouchTool(tool)
        self.brush_size = brush_size
        self.intensity = intensity

        self._lock = threading.RLock()
        self._original: Optional[np.ndarray] = None
        self._image: Optional[np.ndarray] = None
        self._undo = deque(maxlen=history_limit)
        self._redo = deque(maxlen=history_limit)
        self._cursor: Optional[Tuple[int, int]] = None
        self._stroke_source: Optional[Tuple[int, int]] = None
        self.clone_source: Optional[Tuple[int, int]] = None

        self._dabs: Dict[RetouchTool, Callable[[int, int], None]] = {
            RetouchTool.BLUR: self._dab_blur,
            RetouchTool.CLONE: self._dab_clone,
            RetouchTool.LIGHTEN: self._region_dab(lighten),
            RetouchTool.DARKEN: self._region_dab(darken),
            RetouchTool.SHARPEN: self._region_dab(sharpen),
            RetouchTool.RED_EYE: self._region_dab(red_eye_reduction),
        }

        self.log = LoggerAdapter(logger, {'session': self.session_id[:8]})

    @classmethod
    def from_settings(cls, settings: Optional[RetouchSettings] = None, **kwargs) -> 'RetouchSession':
        """Create a session with defaults from the `retouch` configuration section."""
        settings = settings or get_retouch_settings()
        return cls(
            history_limit=settings.history_limit,
            brush_size=settings.brush_size,
            intensity=settings.intensity,
            **kwargs
        )

    # ------------------------------------------------------------------
    # State

    @property
    def lock(self) -> threading.RLock:
        """Re-entrant lock guarding the session; hold it to group operations."""
        return self._lock

    @property
    def has_image(self) -> bool:
        return self._image is not None

    @property
    def is_drawing(self) -> bool:
        return self._cursor is not None

    @property
    def can_undo(self) -> bool:
        return len(self._undo) > 0

    @property
    def can_redo(self) -> bool:
        return len(self._redo) > 0

    def _require_image(self, operation: str) -> bool:
        if self._image is None:
            self.log.warning(f"{operation} ignored: no image loaded")
            return False
        return True

    def _inside(self, x: int, y: int) -> bool:
        h, w = self._image.shape[:2]
        return 0 <= x < w and 0 <= y < h

    def load(self, image: np.ndarray):
        """Start editing a new image; clears the history."""
        image = ensure_rgba(image)
        with self._lock:
            self._original = image.copy()
            self._image = image.copy()
            self._undo.clear()
            self._redo.clear()
            self._cursor = None
            self.log.info(f"Loaded {image.shape[1]}x{image.shape[0]} image")

    def set_tool(
        self,
        tool: RetouchTool,
        size: Optional[int] = None,
        intensity: Optional[float] = None
    ):
        """Select the tool and optionally change brush size and intensity."""
        with self._lock:
            self.tool = RetouchTool(tool)
            if size is not None:
                if size < 1:
                    raise ValueError(f"Brush size must be >= 1, got {size}")
                self.brush_size = int(size)
            if intensity is not None:
                if not 0 <= intensity <= 1:
                    raise ValueError(f"Intensity must be in [0, 1], got {intensity}")
                self.intensity = float(intensity)

    def set_clone_source(self, point: Optional[Tuple[int, int]]):
        """Pin the clone source; None anchors it at each stroke's start again."""
        with self._lock:
            self.clone_source = None if point is None else (int(point[0]), int(point[1]))

    def snapshot(self) -> Optional[np.ndarray]:
        """Copy of the current image, or None when nothing is loaded."""
        with self._lock:
            return None if self._image is None else self._image.copy()

    def info(self) -> Dict:
        with self._lock:
            size = None
            if self._image is not None:
                size = (self._image.shape[1], self._image.shape[0])
            return {
                'session_id': self.session_id,
                'has_image': self.has_image,
                'width': size[0] if size else None,
                'height': size[1] if size else None,
                'tool': self.tool.value,
                'brush_size': self.brush_size,
                'intensity': self.intensity,
                'clone_source': self.clone_source,
                'undo_depth': len(self._undo),
                'redo_depth': len(self._redo),
            }

    # ------------------------------------------------------------------
    # Strokes

    def begin_stroke(self, x: int, y: int) -> bool:
        """
        Start a stroke at (x, y).

        The current image is pushed onto the undo stack and the redo stack
        is cleared. Every tool except clone dabs once at the start point.
        Returns False (nothing changes) without an image or when the point
        lies outside it.
        """
        with self._lock:
            if not self._require_image("begin_stroke"):
                return False
            if not self._inside(x, y):
                self.log.debug(f"Stroke start ({x}, {y}) outside image")
                return False

            self._undo.append(self._image.copy())
            self._redo.clear()
            self._cursor = (x, y)
            self._stroke_source = self.clone_source or (x, y)
            if self.tool != RetouchTool.CLONE:
                self._dabs[self.tool](x, y)
            return True

    def stroke_to(self, x: int, y: int) -> bool:
        """
        Continue the stroke to (x, y).

        Clone stamps once at (x, y); every other tool dabs at each integer
        step between the previous point and (x, y). Moving outside the image
        ends the stroke.
        """
        with self._lock:
            if not self._require_image("stroke_to"):
                return False
            if self._cursor is None:
                self.log.warning("stroke_to ignored: no stroke in progress")
                return False
            if not self._inside(x, y):
                self.end_stroke()
                return False

            dab = self._dabs[self.tool]
            if self.tool == RetouchTool.CLONE:
                dab(x, y)
            else:
                for px, py in line_steps(*self._cursor, x, y):
                    dab(px, py)

            self._cursor = (x, y)
            return True

    def end_stroke(self) -> bool:
        with self._lock:
            if self._cursor is None:
                return False
            self._cursor = None
            self._stroke_source = None
            return True

    def apply_stroke(self, points: Sequence[Tuple[int, int]]) -> bool:
        """
        Run a whole stroke through the given points as one undo step.

        A single point produces one dab at that point (one stamp for clone).
        """
        if not points:
            raise ValueError("A stroke needs at least one point")

        with self._lock:
            first = points[0]
            if not self.begin_stroke(*first):
                return False
            rest = points[1:]
            if not rest and self.tool == RetouchTool.CLONE:
                rest = [first]
            for point in rest:
                if not self.stroke_to(*point):
                    break
            self.end_stroke()
            self.log.info(f"{self.tool.value} stroke with {len(points)} points")
            return True

    # ------------------------------------------------------------------
    # History

    def undo(self) -> bool:
        with self._lock:
            if not self._require_image("undo"):
                return False
            if not self._undo:
                return False
            self.end_stroke()
            self._redo.append(self._image)
            self._image = self._undo.pop()
            return True

    def redo(self) -> bool:
        with self._lock:
            if not self._require_image("redo"):
                return False
            if not self._redo:
                return False
            self._undo.append(self._image)
            self._image = self._redo.pop()
            return True

    def reset(self) -> bool:
        """Restore the original image and clear the history."""
        with self._lock:
            if not self._require_image("reset"):
                return False
            self.end_stroke()
            self._image = self._original.copy()
            self._undo.clear()
            self._redo.clear()
            self.log.info("Reset to original image")
            return True

    # ------------------------------------------------------------------
    # Brushes

    def _region(self, x: int, y: int) -> Optional[Region]:
        h, w = self._image.shape[:2]
        return brush_region(x, y, self.brush_size, w, h)

    def _region_dab(self, kernel: Callable[[np.ndarray, float], np.ndarray]) -> Callable[[int, int], None]:
        def dab(x: int, y: int):
            region = self._region(x, y)
            if region is None:
                return
            x0, y0, x1, y1 = region
            self._image[y0:y1, x0:x1] = kernel(self._image[y0:y1, x0:x1], self.intensity)
        return dab

    def _dab_blur(self, x: int, y: int):
        region = self._region(x, y)
        if region is None:
            return
        x0, y0, x1, y1 = region
        patch = self._image[y0:y1, x0:x1]
        radius = max(1, int(round(self.brush_size / 10)))
        blurred = box_blur_clipped(patch, radius)

        k = self.intensity
        mixed = patch[..., :3].astype(np.float64) * (1 - k) + blurred[..., :3].astype(np.float64) * k
        self._image[y0:y1, x0:x1, :3] = to_uint8(mixed)

    def _dab_clone(self, x: int, y: int):
        source = self._stroke_source or (x, y)
        dest = self._region(x, y)
        if dest is None:
            return

        # Shift the destination square onto the source and clip both together
        shift_x, shift_y = source[0] - x, source[1] - y
        h, w = self._image.shape[:2]
        x0, y0, x1, y1 = dest
        x0, x1 = max(x0, -shift_x), min(x1, w - shift_x)
        y0, y1 = max(y0, -shift_y), min(y1, h - shift_y)
        if x0 >= x1 or y0 >= y1:
            return

        patch = self._image[y0 + shift_y:y1 + shift_y, x0 + shift_x:x1 + shift_x, :3].astype(np.float64)
        target = self._image[y0:y1, x0:x1, :3].astype(np.float64)
        k = self.intensity
        self._image[y0:y1, x0:x1, :3] = to_uint8(target * (1 - k) + patch * k)


class SessionStore:
    """
    In-memory registry of retouch sessions.

    The least recently created session is evicted once `max_sessions` is
    exceeded.
    """

    def __init__(self, settings: Optional[RetouchSettings] = None):
        self.settings = settings or get_retouch_settings()
        self._sessions: 'OrderedDict[str, RetouchSession]' = OrderedDict()
        self._lock = threading.Lock()

    def create(self, image: Optional[np.ndarray] = None) -> RetouchSession:
        session = RetouchSession.from_settings(self.settings)
        if image is not None:
            session.load(image)

        with self._lock:
            self._sessions[session.session_id] = session
            while len(self._sessions) > self.settings.max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info(f"Evicted retouch session {evicted}")
        return session

    def get(self, session_id: str) -> RetouchSession:
        with self._lock:
            try:
                return self._sessions[session_id]
            except KeyError:
                raise SessionNotFoundError(session_id) from None

    def delete(self, session_id: str):
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(session_id)

    def __len__(self):
        with self._lock:
            return len(self._sessions)

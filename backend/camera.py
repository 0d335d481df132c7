# camera.py
import asyncio
import base64
import logging
from typing import Optional

import cv2
import numpy as np

from config import FRAME_SIZE

logger = logging.getLogger(__name__)


class CameraUnavailableError(Exception):
    """No camera support, permission denied, or no frame ever arrived."""


def decode_frame(data_url: str) -> np.ndarray:
    """Decode a browser canvas data URL (or bare base64) into a BGR image."""
    image_data = data_url.split(",")[1] if "," in data_url else data_url
    try:
        image_bytes = base64.b64decode(image_data, validate=True)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Invalid base64 frame: {e}") from e
    np_arr = np.frombuffer(image_bytes, np.uint8)
    frame = cv2.imdecode(np_arr, cv2.IMREAD_COLOR) if np_arr.size else None
    if frame is None:
        raise ValueError("Frame could not be decoded as an image")
    return frame


def encode_frame(image: np.ndarray) -> str:
    ok, buffer = cv2.imencode('.jpg', image)
    if not ok:
        raise ValueError("Frame could not be encoded as JPEG")
    return f"data:image/jpeg;base64,{base64.b64encode(buffer).decode('utf-8')}"


class BrowserCamera:
    """Latest-frame source fed by the browser over the session websocket."""

    def __init__(self, size: int = FRAME_SIZE):
        self.size = size
        self._frame: Optional[np.ndarray] = None
        self._ready = asyncio.Event()
        self._error: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set() and self._error is None

    def push(self, frame: np.ndarray):
        if frame.shape[0] != self.size or frame.shape[1] != self.size:
            frame = cv2.resize(frame, (self.size, self.size))
        self._frame = frame
        self._ready.set()

    def fail(self, reason: str):
        self._error = reason
        self._ready.set()

    async def wait_ready(self, timeout: float):
        try:
            await asyncio.wait_for(self._ready.wait(), timeout)
        except asyncio.TimeoutError:
            raise CameraUnavailableError("No video frames received from the browser") from None
        if self._error is not None:
            raise CameraUnavailableError(self._error)

    def read(self) -> np.ndarray:
        if self._error is not None:
            raise CameraUnavailableError(self._error)
        if self._frame is None:
            raise CameraUnavailableError("Camera has not produced a frame yet")
        return self._frame

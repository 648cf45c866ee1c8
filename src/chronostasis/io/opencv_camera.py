import logging
from typing import Optional

import cv2
import numpy as np

from ..core.interfaces import ICamera

logger = logging.getLogger(__name__)


class OpenCVCamera(ICamera):
    """Webcam via OpenCV VideoCapture. Frames are BGR."""

    def __init__(self, index: int = 0, width: int = 640, height: int = 480):
        self._index = int(index)
        self._width = int(width)
        self._height = int(height)
        self._cap: Optional[cv2.VideoCapture] = None
        self._frame_id = 0

    @property
    def frame_id(self) -> int:
        return self._frame_id

    def open(self) -> bool:
        if self._cap is not None and self._cap.isOpened():
            return True
        self._cap = cv2.VideoCapture(self._index)
        if not self._cap.isOpened():
            logger.warning("Failed to open camera %d", self._index)
            self._cap.release()
            self._cap = None
            return False
        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
        logger.info("Camera %d opened (%dx%d requested)", self._index, self._width, self._height)
        return True

    def read_frame(self) -> Optional[np.ndarray]:
        if self._cap is None or not self._cap.isOpened():
            return None
        ret, frame_bgr = self._cap.read()
        if not ret or frame_bgr is None:
            return None
        self._frame_id += 1
        return frame_bgr

    def close(self):
        cap, self._cap = self._cap, None
        if cap is not None:
            cap.release()
            logger.info("Camera %d released", self._index)

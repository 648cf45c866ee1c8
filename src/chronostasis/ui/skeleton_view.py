import itertools
from typing import Callable, Dict, Optional

import cv2
import numpy as np
from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtGui import QImage, QPainter, QSurfaceFormat
from PyQt5.QtWidgets import QOpenGLWidget


class SkeletonView(QOpenGLWidget):
    """
    Presents composed frames and acts as the display-synchronized scheduler.

    request_frame() queues a callback and asks for a repaint; queued callbacks
    run on frameSwapped, i.e. once per vsync with swap interval 1.
    """

    resized = pyqtSignal(int, int)

    def __init__(self, parent=None):
        super().__init__(parent)
        fmt = QSurfaceFormat()
        fmt.setSwapInterval(1)
        self.setFormat(fmt)
        self.setMinimumSize(320, 240)

        self._image: Optional[QImage] = None
        self._callbacks: Dict[int, Callable[[], None]] = {}
        self._handles = itertools.count(1)
        self.frameSwapped.connect(self._on_frame_swapped)

    # --- scheduler ---
    def request_frame(self, callback: Callable[[], None]) -> int:
        handle = next(self._handles)
        self._callbacks[handle] = callback
        self.update()
        return handle

    def cancel_frame(self, handle: int):
        self._callbacks.pop(handle, None)

    def _on_frame_swapped(self):
        callbacks, self._callbacks = self._callbacks, {}
        for cb in callbacks.values():
            cb()

    # --- presentation ---
    def present(self, frame_bgr: np.ndarray):
        if frame_bgr is None:
            return
        h, w = frame_bgr.shape[:2]
        rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        # Copy to decouple from numpy buffer reuse
        self._image = QImage(rgb.data, w, h, 3 * w, QImage.Format_RGB888).copy()

    def paintGL(self):
        painter = QPainter(self)
        painter.fillRect(self.rect(), Qt.black)
        if self._image is not None and not self._image.isNull():
            painter.drawImage(self.rect(), self._image)
        painter.end()

    def resizeGL(self, w, h):
        self.resized.emit(int(w), int(h))

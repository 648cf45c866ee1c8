import logging
import threading
import time

import cv2
from PyQt5.QtCore import QThread, pyqtSignal

from ..core.errors import CameraAccessError
from ..core.interfaces import ICamera, IPoseSource

logger = logging.getLogger(__name__)


class PoseController(QThread):
    """
    Camera + pose inference worker.

    Landmarks are handed to the GUI thread via pose_ready; the receiving slot
    stamps and stores them, so nothing here touches the history.
    """

    # list of Optional[Landmark]
    pose_ready = pyqtSignal(object)
    status_update = pyqtSignal(str)
    started_ok = pyqtSignal()
    # (kind, message)
    error = pyqtSignal(str, str)

    def __init__(self, camera: ICamera, pose_source: IPoseSource):
        super().__init__()
        self.cam = camera
        self.pose_source = pose_source
        self.running = True
        self._cleaned = False
        self._cleanup_lock = threading.Lock()
        self._fps_cnt = 0
        self._fps_last_ts = time.time()

    def open_camera(self):
        if not self.cam.open():
            raise CameraAccessError("Camera access denied.")

    def run(self):
        try:
            try:
                self.open_camera()
            except CameraAccessError as e:
                logger.warning("Camera unavailable: %s", e)
                self.error.emit("camera", str(e))
                return
            self.started_ok.emit()
            self.status_update.emit("Camera started")

            while self.running:
                frame_bgr = self.cam.read_frame()
                if frame_bgr is None:
                    time.sleep(0.005)
                    continue

                rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
                try:
                    landmarks = self.pose_source.process(rgb)
                except Exception:
                    logger.exception("Pose inference failed, dropping frame")
                    continue

                self._fps_cnt += 1
                now = time.time()
                if now - self._fps_last_ts >= 1.0:
                    fps = self._fps_cnt / (now - self._fps_last_ts)
                    self.status_update.emit(f"Pose FPS: {fps:.1f}")
                    self._fps_cnt = 0
                    self._fps_last_ts = now

                if landmarks and self.running:
                    self.pose_ready.emit(landmarks)
        finally:
            self.cleanup()

    def stop(self):
        self.running = False
        if self.isRunning():
            self.wait()
        # Thread may never have been started
        self.cleanup()

    def cleanup(self):
        with self._cleanup_lock:
            if self._cleaned:
                return
            self._cleaned = True
        if self.cam:
            self.cam.close()
        if self.pose_source:
            self.pose_source.close()
        logger.info("Pose controller cleaned up")

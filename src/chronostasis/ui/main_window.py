import logging
import time

from PyQt5.QtCore import Qt, QTimer, pyqtSlot
from PyQt5.QtWidgets import QLabel, QMainWindow, QStatusBar, QVBoxLayout, QWidget

from chronostasis.algo.history import LandmarkHistory
from chronostasis.algo.pose_source import MediaPipePoseSource, PoseOptions
from chronostasis.core.errors import PoseSourceUnavailableError
from chronostasis.core.types import PoseFrame
from chronostasis.io.opencv_camera import OpenCVCamera
from chronostasis.logic.pose_controller import PoseController
from chronostasis.logic.render_loop import RenderLoop, now_ms
from chronostasis.ui.skeleton_view import SkeletonView
from chronostasis.vis.compositor import BloomCompositor, BloomSettings
from chronostasis.vis.projection import PerspectiveCamera
from chronostasis.vis.trail_renderer import TrailRenderer, TrailSettings, ViewTransform

logger = logging.getLogger(__name__)

_OVERLAY_STYLE = "color: #00ffff; background: transparent; font-family: monospace; font-size: 14px; padding: 12px;"
_ERROR_STYLE = "color: #ff3366; background: transparent; font-family: monospace; font-size: 14px; padding: 12px;"


class MainWindow(QMainWindow):
    def __init__(self, config):
        super().__init__()
        self.config = config
        self.setWindowTitle("Chronostasis")
        self.setGeometry(100, 100, 1280, 720)
        self.setStyleSheet("background-color: black;")

        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        main_layout = QVBoxLayout(central_widget)
        main_layout.setContentsMargins(0, 0, 0, 0)

        self.view = SkeletonView()
        main_layout.addWidget(self.view, stretch=1)

        # Overlay on top of the GL view
        self.overlay = QLabel(self.view)
        self.overlay.setAttribute(Qt.WA_TransparentForMouseEvents)
        self.overlay.setStyleSheet(_OVERLAY_STYLE)
        self.overlay.move(0, 0)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.lbl_pose_fps = QLabel("Pose FPS: -")
        self.lbl_render_fps = QLabel("Render FPS: -")
        self.status_bar.addPermanentWidget(self.lbl_pose_fps)
        self.status_bar.addPermanentWidget(self.lbl_render_fps)

        # Shared store, injected into ingestion slot and render loop
        trail_cfg = TrailSettings.from_dict(config.get("trail", {}))
        self.trail_cfg = trail_cfg
        self.history = LandmarkHistory(capacity=int(trail_cfg.history_capacity))

        view_cfg = config.get("view", {})
        self.camera3d = PerspectiveCamera(
            fov_deg=float(view_cfg.get("fov_deg", 75.0)),
            position_z=float(view_cfg.get("camera_z", 10.0)),
            width=self.view.width(),
            height=self.view.height(),
        )
        self.renderer = TrailRenderer(trail_cfg, ViewTransform.from_dict(view_cfg))
        self.compositor = BloomCompositor(self.camera3d, BloomSettings.from_dict(config.get("bloom", {})))
        self.render_loop = RenderLoop(self.history, self.renderer, self.compositor, self.view, self.view.present)
        self.view.resized.connect(self.render_loop.resize)

        self._render_fps_last = (time.time(), 0)
        self.fps_timer = QTimer(self)
        self.fps_timer.setInterval(1000)
        self.fps_timer.timeout.connect(self.on_fps_tick)

        self.controller = None
        self._tracking = False
        self._closed = False
        self.set_overlay("CHRONOSTASIS\nInitializing camera...")
        self.start_pose_source()

        self.render_loop.start()
        self.fps_timer.start()

    def start_pose_source(self):
        cam_cfg = self.config.get("camera", {})
        try:
            pose_source = MediaPipePoseSource(PoseOptions.from_dict(self.config.get("pose", {})))
        except PoseSourceUnavailableError as e:
            logger.error("Pose detection unavailable: %s", e)
            self.set_overlay("Failed to initialize Pose detection.", error=True)
            return

        camera = OpenCVCamera(
            index=int(cam_cfg.get("index", 0)),
            width=int(cam_cfg.get("width", 640)),
            height=int(cam_cfg.get("height", 480)),
        )
        self.controller = PoseController(camera, pose_source)
        self.controller.pose_ready.connect(self.on_pose_ready)
        self.controller.status_update.connect(self.update_status)
        self.controller.started_ok.connect(self.on_camera_started)
        self.controller.error.connect(self.on_controller_error)
        self.controller.start()

    def set_overlay(self, text, error=False):
        self.overlay.setStyleSheet(_ERROR_STYLE if error else _OVERLAY_STYLE)
        self.overlay.setText(text)
        self.overlay.adjustSize()

    def badge_text(self):
        return f"Mode: Kinetic Line | Trail: {float(self.trail_cfg.max_delay_ms) / 1000.0:.1f}s Delay"

    @pyqtSlot(object)
    def on_pose_ready(self, landmarks):
        # Stamp at receipt; runs on the GUI thread, same as render ticks
        self.history.append(PoseFrame.create(now_ms(), landmarks))
        if not self._tracking:
            self._tracking = True
            self.set_overlay(f"CHRONOSTASIS\nTracking\n{self.badge_text()}")

    @pyqtSlot()
    def on_camera_started(self):
        self.set_overlay(f"CHRONOSTASIS\nDetecting Form...\n{self.badge_text()}")

    @pyqtSlot(str, str)
    def on_controller_error(self, kind, message):
        logger.error("Startup failure (%s): %s", kind, message)
        self.set_overlay(message, error=True)

    @pyqtSlot(str)
    def update_status(self, text):
        if text.startswith("Pose FPS:"):
            self.lbl_pose_fps.setText(text)
            return
        self.status_bar.showMessage(text)

    def on_fps_tick(self):
        last_ts, last_ticks = self._render_fps_last
        now = time.time()
        ticks = self.render_loop.ticks
        if now > last_ts:
            self.lbl_render_fps.setText(f"Render FPS: {(ticks - last_ticks) / (now - last_ts):.1f}")
        self._render_fps_last = (now, ticks)

    def shutdown(self):
        if self._closed:
            return
        self._closed = True
        self.fps_timer.stop()
        self.render_loop.stop()
        if self.controller is not None:
            self.controller.stop()

    def closeEvent(self, event):
        self.shutdown()
        super().closeEvent(event)

import numpy as np
import pytest

pytest.importorskip("PyQt5")

from chronostasis.core.interfaces import ICamera, IPoseSource
from chronostasis.core.types import Landmark
from chronostasis.logic.pose_controller import PoseController


class FakeCamera(ICamera):
    def __init__(self, opened=True, frames=3):
        self.opened = opened
        self.frames = frames
        self.closed = 0
        self.controller = None

    def open(self):
        return self.opened

    def read_frame(self):
        if self.frames <= 0:
            # Stream over, end the worker loop
            self.controller.running = False
            return None
        self.frames -= 1
        return np.zeros((8, 8, 3), dtype=np.uint8)

    def close(self):
        self.closed += 1


class FakePoseSource(IPoseSource):
    def __init__(self, results):
        self.results = list(results)
        self.closed = 0

    def process(self, rgb):
        res = self.results.pop(0)
        if isinstance(res, Exception):
            raise res
        return res

    def close(self):
        self.closed += 1


def _controller(camera, source):
    ctrl = PoseController(camera, source)
    camera.controller = ctrl
    events = {"pose": [], "error": [], "started": 0}
    ctrl.pose_ready.connect(events["pose"].append)
    ctrl.error.connect(lambda kind, msg: events["error"].append((kind, msg)))
    ctrl.started_ok.connect(lambda: events.__setitem__("started", events["started"] + 1))
    return ctrl, events


def test_emits_only_detected_poses(qapp):
    lms = [Landmark(0.5, 0.5, 0.0)]
    camera = FakeCamera(frames=3)
    source = FakePoseSource([lms, None, lms])
    ctrl, events = _controller(camera, source)
    ctrl.run()
    assert events["started"] == 1
    assert events["pose"] == [lms, lms]
    assert events["error"] == []
    assert camera.closed == 1 and source.closed == 1


def test_inference_error_skips_frame(qapp):
    lms = [Landmark(0.1, 0.2, 0.3)]
    camera = FakeCamera(frames=2)
    source = FakePoseSource([RuntimeError("inference"), lms])
    ctrl, events = _controller(camera, source)
    ctrl.run()
    assert events["pose"] == [lms]


def test_camera_denied_reports_error_and_cleans_up(qapp):
    camera = FakeCamera(opened=False)
    source = FakePoseSource([])
    ctrl, events = _controller(camera, source)
    ctrl.run()
    assert events["error"] == [("camera", "Camera access denied.")]
    assert events["started"] == 0
    assert camera.closed == 1 and source.closed == 1


def test_stop_without_start_releases_once(qapp):
    camera = FakeCamera()
    source = FakePoseSource([])
    ctrl, _ = _controller(camera, source)
    ctrl.stop()
    ctrl.stop()
    assert camera.closed == 1 and source.closed == 1


def test_open_camera_raises_typed_error(qapp):
    from chronostasis.core.errors import CameraAccessError

    ctrl, _ = _controller(FakeCamera(opened=False), FakePoseSource([]))
    with pytest.raises(CameraAccessError):
        ctrl.open_camera()

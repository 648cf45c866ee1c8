import itertools

import numpy as np
import pytest

from chronostasis.core.types import Landmark
from chronostasis.vis.projection import PerspectiveCamera
from chronostasis.vis.trail_renderer import ViewTransform


def test_origin_projects_to_center():
    cam = PerspectiveCamera(width=640, height=480)
    uv = cam.project(np.array([[0.0, 0.0, 0.0]]))
    assert uv[0] == pytest.approx((320.0, 240.0))


def test_axes_orientation():
    cam = PerspectiveCamera(width=640, height=480)
    uv = cam.project(np.array([[1.0, 1.0, 0.0]]))
    # +X right, +Y up on screen
    assert uv[0, 0] > 320.0
    assert uv[0, 1] < 240.0


def test_points_behind_camera_are_nan():
    cam = PerspectiveCamera(position_z=10.0, width=100, height=100)
    uv = cam.project(np.array([[0.0, 0.0, 12.0], [0.0, 0.0, 0.0]]))
    assert np.isnan(uv[0]).all()
    assert np.isfinite(uv[1]).all()


@pytest.mark.parametrize("size", [(1280, 720), (640, 640), (480, 640), (400, 800), (1920, 600)])
def test_normalized_range_stays_inside_viewport(size):
    w, h = size
    cam = PerspectiveCamera(fov_deg=75.0, position_z=10.0, width=w, height=h)
    transform = ViewTransform()
    corners = [
        transform.to_world(Landmark(x, y, z))
        for x, y, z in itertools.product((0.0, 1.0), (0.0, 1.0), (-5.0, -1.0, 0.0, 1.0, 5.0))
    ]
    uv = cam.project(np.array(corners))
    assert np.isfinite(uv).all()
    assert (uv[:, 0] >= 0).all() and (uv[:, 0] <= w).all()
    assert (uv[:, 1] >= 0).all() and (uv[:, 1] <= h).all()


def test_portrait_widens_vertical_fov():
    landscape = PerspectiveCamera(fov_deg=75.0, width=800, height=400)
    portrait = PerspectiveCamera(fov_deg=75.0, width=400, height=800)
    assert landscape.effective_fov_deg == pytest.approx(75.0)
    assert portrait.effective_fov_deg > 75.0


def test_resize_updates_aspect():
    cam = PerspectiveCamera(width=100, height=100)
    cam.resize(300, 150)
    assert (cam.width, cam.height) == (300, 150)
    assert cam.aspect == pytest.approx(2.0)
    cam.resize(0, 0)
    assert (cam.width, cam.height) == (1, 1)

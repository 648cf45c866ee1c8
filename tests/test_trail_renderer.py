import numpy as np
import pytest

from chronostasis.algo.topology import ALL_CONNECTIONS
from chronostasis.core.types import Landmark, PoseFrame
from chronostasis.vis.trail_renderer import (
    TrailRenderer,
    TrailSettings,
    ViewTransform,
    layer_delays,
    layer_opacity,
)

from helpers import full_landmarks, make_frame


def _renderer(count=15, **kwargs):
    return TrailRenderer(TrailSettings(count=count, **kwargs), ViewTransform())


def test_layer_delays_spread_evenly():
    renderer = _renderer(count=15, max_delay_ms=2500.0)
    for i, layer in enumerate(renderer.layers):
        assert layer.delay_ms == pytest.approx(i / 14 * 2500.0)
    assert renderer.layers[0].delay_ms == 0.0
    assert renderer.layers[-1].delay_ms == pytest.approx(2500.0)


def test_single_layer_has_zero_delay():
    assert layer_delays(1, 2500.0) == [0.0]
    assert layer_delays(0, 2500.0) == []


def test_opacity_fades_and_palette_cycles():
    renderer = _renderer(count=15)
    assert renderer.layers[0].opacity == pytest.approx(1.0)
    assert renderer.layers[5].opacity == pytest.approx((1.0 - 5 / 15) ** 1.5)
    opacities = [layer.opacity for layer in renderer.layers]
    assert opacities == sorted(opacities, reverse=True)
    # cyan, purple, magenta in BGR
    assert renderer.layers[0].color == pytest.approx((1.0, 1.0, 0.0))
    assert renderer.layers[3].color == renderer.layers[0].color
    assert renderer.layers[1].color == pytest.approx((1.0, 0.0, 0xBF / 255.0))
    assert layer_opacity(0, 4) == 1.0


def test_buffer_size_matches_topology():
    renderer = _renderer(count=3)
    for layer in renderer.layers:
        assert layer.positions.shape == (len(ALL_CONNECTIONS) * 6,)
        assert layer.positions.dtype == np.float32
        assert layer.visible is False


def test_full_frame_writes_every_segment():
    renderer = _renderer(count=1)
    frame = make_frame(1000)
    renderer.update((frame,), 1000)
    layer = renderer.layers[0]
    assert layer.visible is True
    assert layer.dirty is True
    segs = layer.segments()
    assert segs.shape == (len(ALL_CONNECTIONS), 2, 3)
    assert np.isfinite(segs).all()
    transform = renderer.transform
    for k, (a, b) in enumerate(ALL_CONNECTIONS):
        np.testing.assert_allclose(segs[k, 0], transform.to_world(frame.landmarks[a]), rtol=0, atol=1e-6)
        np.testing.assert_allclose(segs[k, 1], transform.to_world(frame.landmarks[b]), rtol=0, atol=1e-6)


def test_missing_landmark_segments_vanish():
    renderer = _renderer(count=1)
    renderer.update((make_frame(1000),), 1000)
    renderer.update((make_frame(2000, missing=(11,)),), 2000)
    layer = renderer.layers[0]
    assert layer.visible is True
    segs = layer.segments()
    for k, (a, b) in enumerate(ALL_CONNECTIONS):
        if 11 in (a, b):
            assert np.isnan(segs[k]).all()
        else:
            assert np.isfinite(segs[k]).all()


def test_short_landmark_list_is_tolerated():
    renderer = _renderer(count=1)
    frame = PoseFrame.create(500, full_landmarks()[:13])
    renderer.update((frame,), 500)
    layer = renderer.layers[0]
    assert layer.visible is True
    segs = layer.segments()
    for k, (a, b) in enumerate(ALL_CONNECTIONS):
        assert np.isfinite(segs[k]).all() == (a < 13 and b < 13)


def test_stale_sample_hides_layer():
    renderer = _renderer(count=1)
    renderer.update((make_frame(0),), 2000)
    assert renderer.layers[0].visible is False


def test_staleness_threshold_is_inclusive():
    renderer = _renderer(count=1, stale_threshold_ms=1000.0)
    renderer.update((make_frame(0),), 999)
    assert renderer.layers[0].visible is True
    renderer.update((make_frame(0),), 1000)
    assert renderer.layers[0].visible is False


def test_hidden_layer_keeps_previous_buffer():
    renderer = _renderer(count=1)
    renderer.update((make_frame(0),), 0)
    before = renderer.layers[0].positions.copy()
    renderer.update((make_frame(0),), 5000)
    assert renderer.layers[0].visible is False
    np.testing.assert_array_equal(renderer.layers[0].positions, before)


def test_empty_history_hides_all_layers():
    renderer = _renderer(count=4)
    renderer.update((make_frame(0),), 0)
    renderer.update((), 0)
    assert all(not layer.visible for layer in renderer.layers)
    assert renderer.visible_layers() == []


def test_frame_without_landmarks_hides_layer():
    renderer = _renderer(count=1)
    renderer.update((PoseFrame.create(100, None),), 100)
    assert renderer.layers[0].visible is False


def test_older_layers_sample_older_frames():
    renderer = _renderer(count=3, max_delay_ms=2000.0)
    history = (
        make_frame(0, full_landmarks(offset=0.0)),
        make_frame(1000, full_landmarks(offset=0.05)),
        make_frame(2000, full_landmarks(offset=0.1)),
    )
    renderer.update(history, 2000)
    assert all(layer.visible for layer in renderer.layers)
    xs = [layer.segments()[0, 0, 0] for layer in renderer.layers]
    # Mirrored x: later frames (larger offset) are further left
    assert xs[0] < xs[1] < xs[2]


def test_layer_failure_is_contained(monkeypatch):
    renderer = _renderer(count=2)

    def boom(lm):
        raise RuntimeError("bad landmark")

    monkeypatch.setattr(renderer.transform, "to_world", boom)
    renderer.update((make_frame(0),), 0)
    assert all(not layer.visible for layer in renderer.layers)


def test_mirror_and_centering():
    t = ViewTransform(xy_scale=10.0, z_scale=2.0, z_clamp=1.0)
    assert t.to_world(Landmark(0.5, 0.5, 0.0)) == pytest.approx((0.0, 0.0, 0.0))
    assert t.to_world(Landmark(0.0, 0.0, 0.5)) == pytest.approx((5.0, 5.0, -1.0))
    assert t.to_world(Landmark(1.0, 1.0, -3.0)) == pytest.approx((-5.0, -5.0, 2.0))


def test_dispose_is_idempotent():
    renderer = _renderer(count=3)
    renderer.update((make_frame(0),), 0)
    renderer.dispose()
    renderer.dispose()
    assert renderer.disposed
    assert all(layer.disposed and not layer.visible for layer in renderer.layers)
    # No-op after dispose
    renderer.update((make_frame(0),), 0)
    assert renderer.visible_layers() == []


def test_same_sample_leaves_buffer_clean():
    renderer = _renderer(count=1)
    history = (make_frame(1000),)
    renderer.update(history, 1000)
    layer = renderer.layers[0]
    assert layer.dirty is True and layer.source is history[0]

    # Compositor consumed the buffer
    layer.dirty = False
    renderer.update(history, 1016)
    assert layer.visible is True
    assert layer.dirty is False

    renderer.update(history + (make_frame(1033),), 1033)
    assert layer.dirty is True
    assert layer.source.timestamp == 1033

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..algo.sampler import find_nearest
from ..algo.topology import ALL_CONNECTIONS
from ..core.config_loader import parse_color
from ..core.types import Landmark, PoseFrame

logger = logging.getLogger(__name__)


@dataclass
class TrailSettings:
    count: int = 15
    max_delay_ms: float = 2500.0
    stale_threshold_ms: float = 1000.0
    history_capacity: int = 200
    colors: List[str] = field(default_factory=lambda: ["#00ffff", "#bf00ff", "#ff00ff"])
    opacity_exponent: float = 1.5

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "TrailSettings":
        cfg = TrailSettings()
        for k, v in d.items():
            if hasattr(cfg, k):
                setattr(cfg, k, v)
        return cfg


@dataclass
class ViewTransform:
    """Normalized landmark -> world units. Mirrored so the display reads like a mirror."""
    xy_scale: float = 10.0
    z_scale: float = 2.0
    z_clamp: float = 1.0

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "ViewTransform":
        cfg = ViewTransform()
        for k, v in d.items():
            if hasattr(cfg, k):
                setattr(cfg, k, v)
        return cfg

    def to_world(self, lm: Landmark) -> Tuple[float, float, float]:
        z = min(max(float(lm.z), -self.z_clamp), self.z_clamp)
        return (
            (0.5 - float(lm.x)) * self.xy_scale,
            (0.5 - float(lm.y)) * self.xy_scale,
            -z * self.z_scale,
        )


def layer_delays(count: int, max_delay_ms: float) -> List[float]:
    if count <= 1:
        return [0.0] * max(count, 0)
    return [i / (count - 1) * float(max_delay_ms) for i in range(count)]


def layer_opacity(index: int, count: int, exponent: float = 1.5) -> float:
    return float((1.0 - index / float(count)) ** exponent)


class TrailLayer:
    """
    One delayed copy of the skeleton. Owns its segment buffer
    (len(connections) * 2 endpoints * xyz) and material.
    """

    def __init__(self, index: int, delay_ms: float, opacity: float, color: Tuple[float, float, float], num_connections: int):
        self.index = index
        self.delay_ms = float(delay_ms)
        self.opacity = float(opacity)
        self.color = tuple(float(c) for c in color)
        self.visible = False
        # Set when positions change, cleared once the compositor re-rasterises
        self.dirty = False
        # Frame the buffer was last written from
        self.source: Optional[PoseFrame] = None
        self.positions: Optional[np.ndarray] = np.full(num_connections * 2 * 3, np.nan, dtype=np.float32)
        # BGR pre-multiplied by opacity, applied additively by the compositor
        self.material: Optional[np.ndarray] = np.array(self.color, dtype=np.float32) * self.opacity
        # Rasterised line coverage (HxW uint8), owned here, sized by the compositor
        self.coverage: Optional[np.ndarray] = None

    @property
    def disposed(self) -> bool:
        return self.positions is None

    def segments(self) -> np.ndarray:
        """(num_connections, 2, 3) view of the position buffer."""
        return self.positions.reshape(-1, 2, 3)

    def dispose(self):
        if self.disposed:
            return
        self.visible = False
        self.positions = None
        self.material = None
        self.coverage = None
        self.source = None


class TrailRenderer:
    def __init__(self, settings: Optional[TrailSettings] = None, transform: Optional[ViewTransform] = None,
                 connections: Sequence[Tuple[int, int]] = ALL_CONNECTIONS):
        self.settings = settings or TrailSettings()
        self.transform = transform or ViewTransform()
        self.connections = tuple(connections)
        palette = [parse_color(c) for c in self.settings.colors] or [(1.0, 1.0, 1.0)]

        count = int(self.settings.count)
        delays = layer_delays(count, self.settings.max_delay_ms)
        self.layers: List[TrailLayer] = [
            TrailLayer(
                index=i,
                delay_ms=delays[i],
                opacity=layer_opacity(i, count, float(self.settings.opacity_exponent)),
                color=palette[i % len(palette)],
                num_connections=len(self.connections),
            )
            for i in range(count)
        ]
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def update(self, history: Sequence[PoseFrame], now_ms: float):
        if self._disposed:
            return
        if not history:
            for layer in self.layers:
                layer.visible = False
            return
        for layer in self.layers:
            try:
                self._update_layer(layer, history, now_ms)
            except Exception:
                # Skip this layer for this tick, the animation keeps going
                logger.debug("Trail layer %d update failed", layer.index, exc_info=True)
                layer.visible = False

    def _update_layer(self, layer: TrailLayer, history: Sequence[PoseFrame], now_ms: float):
        sample = find_nearest(history, now_ms - layer.delay_ms)
        if sample is None or sample.time_diff >= self.settings.stale_threshold_ms:
            layer.visible = False
            return
        frame = sample.frame
        if not frame.landmarks:
            layer.visible = False
            return
        if frame is layer.source:
            # Same sample as last tick, buffer is current
            layer.visible = True
            return

        positions = layer.positions
        to_world = self.transform.to_world
        p = 0
        for a, b in self.connections:
            start = frame.landmark(a)
            end = frame.landmark(b)
            if start is not None and end is not None:
                positions[p:p + 3] = to_world(start)
                positions[p + 3:p + 6] = to_world(end)
            else:
                # Missing endpoint: segment vanishes this tick
                positions[p:p + 6] = np.nan
            p += 6
        layer.source = frame
        layer.dirty = True
        layer.visible = True

    def visible_layers(self) -> List[TrailLayer]:
        return [layer for layer in self.layers if layer.visible and not layer.disposed]

    def dispose(self):
        if self._disposed:
            return
        self._disposed = True
        for layer in self.layers:
            layer.dispose()
        logger.info("Disposed %d trail layers", len(self.layers))

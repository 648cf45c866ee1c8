import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

import cv2
import numpy as np

from .projection import PerspectiveCamera
from .trail_renderer import TrailLayer

logger = logging.getLogger(__name__)

# Sub-pixel bits for cv2.line
_SHIFT = 4
_SHIFT_SCALE = float(1 << _SHIFT)

# Per-level weights of the bloom mip chain, mirrored by radius
_BLOOM_FACTORS = (1.0, 0.8, 0.6, 0.4, 0.2)


@dataclass
class BloomSettings:
    strength: float = 1.8
    radius: float = 0.5
    threshold: float = 0.1
    levels: int = 5
    line_thickness: int = 2

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "BloomSettings":
        cfg = BloomSettings()
        for k, v in d.items():
            if hasattr(cfg, k):
                setattr(cfg, k, v)
        return cfg


def _luminance(img_bgr: np.ndarray) -> np.ndarray:
    return 0.0722 * img_bgr[..., 0] + 0.7152 * img_bgr[..., 1] + 0.2126 * img_bgr[..., 2]


class BloomCompositor:
    """
    Draws trail layers additively into a float accumulation target and applies
    a multi-scale bloom. Render targets are sized to the viewport and are
    reallocated on resize.
    """

    def __init__(self, camera: PerspectiveCamera, settings: Optional[BloomSettings] = None):
        self.camera = camera
        self.settings = settings or BloomSettings()
        self._accum: Optional[np.ndarray] = None
        self._scratch: Optional[np.ndarray] = None
        self._disposed = False
        self._allocate(camera.width, camera.height)

    @property
    def size(self):
        return self.camera.width, self.camera.height

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _allocate(self, width: int, height: int):
        self._accum = np.zeros((height, width, 3), dtype=np.float32)
        self._scratch = np.zeros((height, width), dtype=np.uint8)

    def resize(self, width: int, height: int):
        if self._disposed:
            return
        self.camera.resize(width, height)
        self._allocate(self.camera.width, self.camera.height)
        logger.debug("Render targets resized to %dx%d", self.camera.width, self.camera.height)

    def compose(self, layers: Iterable[TrailLayer]) -> np.ndarray:
        w, h = self.size
        if self._disposed or self._accum is None:
            return np.zeros((h, w, 3), dtype=np.uint8)

        self._accum.fill(0.0)
        for layer in layers:
            if not layer.visible or layer.disposed:
                continue
            self._draw_layer(layer)

        out = self._accum
        if self.settings.strength > 0:
            out = out + float(self.settings.strength) * self._bloom(out)
        return np.clip(out * 255.0, 0.0, 255.0).astype(np.uint8)

    def _draw_layer(self, layer: TrailLayer):
        w, h = self.size
        coverage = layer.coverage
        if layer.dirty or coverage is None or coverage.shape != (h, w):
            coverage = self._rasterize(layer)
            layer.coverage = coverage
            layer.dirty = False
        # Additive blend: overlapping layers brighten
        self._accum += (coverage.astype(np.float32) * (1.0 / 255.0))[..., None] * layer.material

    def _rasterize(self, layer: TrailLayer) -> np.ndarray:
        w, h = self.size
        scratch = self._scratch
        scratch.fill(0)
        segs = layer.segments()
        uv = self.camera.project(segs.reshape(-1, 3)).reshape(-1, 2, 2)
        finite = np.isfinite(uv).all(axis=(1, 2))
        if finite.any():
            # Keep far off-screen endpoints within int range, cv2.line clips the rest
            uv = np.clip(uv[finite], -4.0 * max(w, h), 5.0 * max(w, h))
            pts = np.round(uv * _SHIFT_SCALE).astype(np.int32)
            thickness = max(1, int(self.settings.line_thickness))
            for (x0, y0), (x1, y1) in pts:
                cv2.line(scratch, (int(x0), int(y0)), (int(x1), int(y1)), 255, thickness, cv2.LINE_AA, _SHIFT)
        return scratch.copy()

    def _bloom(self, img: np.ndarray) -> np.ndarray:
        h, w = img.shape[:2]
        lum = _luminance(img)
        bright = img * (lum > float(self.settings.threshold))[..., None].astype(np.float32)

        radius = float(self.settings.radius)
        bloom = np.zeros_like(img)
        level = bright
        levels = max(1, min(int(self.settings.levels), len(_BLOOM_FACTORS)))
        for i in range(levels):
            if i > 0:
                if min(level.shape[:2]) < 4:
                    break
                level = cv2.pyrDown(level)
            blurred = cv2.GaussianBlur(level, (0, 0), sigmaX=1.0 + 2.0 * i)
            up = cv2.resize(blurred, (w, h), interpolation=cv2.INTER_LINEAR)
            factor = _BLOOM_FACTORS[i]
            # radius 0 keeps the sharp levels, radius 1 favours the wide ones
            weight = factor + (1.2 - factor - factor) * radius
            bloom += weight * up
        return bloom

    def dispose(self):
        if self._disposed:
            return
        self._disposed = True
        self._accum = None
        self._scratch = None
        logger.info("Render targets released")

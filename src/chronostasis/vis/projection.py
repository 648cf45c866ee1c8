import math

import numpy as np


class PerspectiveCamera:
    """
    Pinhole camera on the +Z axis looking towards the origin (-Z).

    fov_deg is the vertical field of view for landscape viewports. For portrait
    viewports the vertical fov is widened so the horizontal fov never drops
    below fov_deg.
    """

    def __init__(self, fov_deg=75.0, position_z=10.0, near=0.1, far=1000.0, width=1280, height=720):
        self.fov_deg = float(fov_deg)
        self.position_z = float(position_z)
        self.near = float(near)
        self.far = float(far)
        self.width = 1
        self.height = 1
        self.aspect = 1.0
        self._tan_half_v = 1.0
        self.resize(width, height)

    def resize(self, width, height):
        self.width = max(1, int(width))
        self.height = max(1, int(height))
        self.aspect = self.width / float(self.height)
        tan_half = math.tan(math.radians(self.fov_deg) / 2.0)
        if self.aspect < 1.0:
            tan_half = tan_half / self.aspect
        self._tan_half_v = tan_half

    @property
    def effective_fov_deg(self) -> float:
        return math.degrees(2.0 * math.atan(self._tan_half_v))

    def project(self, points_world: np.ndarray) -> np.ndarray:
        """(N, 3) world points -> (N, 2) float pixel coords; NaN if not in front of the near plane."""
        pts = np.asarray(points_world, dtype=np.float32).reshape(-1, 3)
        depth = self.position_z - pts[:, 2]
        valid = (depth > self.near) & (depth < self.far)
        safe_depth = np.where(valid, depth, 1.0)

        tan_half_h = self._tan_half_v * self.aspect
        ndc_x = pts[:, 0] / (safe_depth * tan_half_h)
        ndc_y = pts[:, 1] / (safe_depth * self._tan_half_v)

        uv = np.empty((pts.shape[0], 2), dtype=np.float32)
        uv[:, 0] = (ndc_x + 1.0) * 0.5 * self.width
        uv[:, 1] = (1.0 - ndc_y) * 0.5 * self.height
        uv[~valid] = np.nan
        return uv

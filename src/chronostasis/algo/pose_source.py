from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from ..core.errors import PoseSourceUnavailableError
from ..core.interfaces import IPoseSource
from ..core.types import Landmark

logger = logging.getLogger(__name__)


@dataclass
class PoseOptions:
    model_complexity: int = 1
    smooth_landmarks: bool = True
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "PoseOptions":
        cfg = PoseOptions()
        for k, v in d.items():
            if hasattr(cfg, k):
                setattr(cfg, k, v)
        return cfg


def _resolve_pose_class():
    try:
        import mediapipe as mp
    except ImportError as e:
        raise PoseSourceUnavailableError("mediapipe is not installed") from e
    solutions = getattr(mp, "solutions", None)
    pose_mod = getattr(solutions, "pose", None)
    pose_cls = getattr(pose_mod, "Pose", None)
    if pose_cls is None:
        raise PoseSourceUnavailableError("mediapipe.solutions.pose.Pose is not available in this mediapipe build")
    return pose_cls


class MediaPipePoseSource(IPoseSource):
    """
    MediaPipe Pose wrapper producing the 33-point landmark list.

    Options are passed through to the model untouched. Frames are expected in
    RGB (HxWx3 uint8).
    """

    def __init__(self, options: Optional[PoseOptions] = None):
        self._opts = options or PoseOptions()
        pose_cls = _resolve_pose_class()
        try:
            self._pose = pose_cls(
                static_image_mode=False,
                model_complexity=int(self._opts.model_complexity),
                smooth_landmarks=bool(self._opts.smooth_landmarks),
                enable_segmentation=False,
                min_detection_confidence=float(self._opts.min_detection_confidence),
                min_tracking_confidence=float(self._opts.min_tracking_confidence),
            )
        except Exception as e:
            raise PoseSourceUnavailableError(f"failed to construct MediaPipe Pose: {e}") from e
        logger.info("MediaPipe Pose ready (model_complexity=%d)", int(self._opts.model_complexity))

    def process(self, rgb: np.ndarray) -> Optional[List[Optional[Landmark]]]:
        if self._pose is None:
            return None
        result = self._pose.process(rgb)
        pose_landmarks = getattr(result, "pose_landmarks", None) if result is not None else None
        if pose_landmarks is None:
            return None
        out: List[Optional[Landmark]] = []
        for lm in pose_landmarks.landmark:
            if lm is None:
                out.append(None)
            else:
                out.append(Landmark.from_result(lm))
        return out

    def close(self):
        pose, self._pose = self._pose, None
        if pose is not None:
            pose.close()
            logger.info("MediaPipe Pose closed")

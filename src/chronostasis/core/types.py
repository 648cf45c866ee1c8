from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Landmark:
    """Single pose landmark as delivered by the pose source"""
    x: float                            # normalized [0, 1] of source frame width
    y: float                            # normalized [0, 1] of source frame height
    z: float                            # relative depth, roughly hip-centred
    visibility: Optional[float] = None  # [0, 1] if the model reports it

    @staticmethod
    def from_result(lm) -> "Landmark":
        vis = getattr(lm, "visibility", None)
        return Landmark(
            x=float(lm.x),
            y=float(lm.y),
            z=float(getattr(lm, "z", 0.0) or 0.0),
            visibility=None if vis is None else float(vis),
        )


@dataclass(frozen=True)
class PoseFrame:
    """One timestamped detection. Landmark indices follow the MediaPipe Pose contract."""
    timestamp: int                                  # ms, assigned at receipt
    landmarks: Tuple[Optional[Landmark], ...] = ()

    @staticmethod
    def create(timestamp: int, landmarks: Optional[Sequence[Optional[Landmark]]]) -> "PoseFrame":
        return PoseFrame(timestamp=int(timestamp), landmarks=tuple(landmarks or ()))

    def landmark(self, index: int) -> Optional[Landmark]:
        if index < 0 or index >= len(self.landmarks):
            return None
        return self.landmarks[index]


class TemporalSample(NamedTuple):
    frame: PoseFrame
    time_diff: float

from collections import deque
from dataclasses import replace
from typing import Deque, Tuple

from ..core.types import PoseFrame


class LandmarkHistory:
    """
    Capacity-bounded, time-ordered store of pose frames.

    Written by the pose ingestion slot and read by the render tick. Both run on
    the GUI thread, so a snapshot never observes a partial append.
    """

    def __init__(self, capacity: int = 200):
        if int(capacity) < 1:
            raise ValueError("capacity must be >= 1")
        self._frames: Deque[PoseFrame] = deque(maxlen=int(capacity))

    @property
    def capacity(self) -> int:
        return self._frames.maxlen

    def append(self, frame: PoseFrame) -> PoseFrame:
        """Appends at the tail. A timestamp older than the tail is clamped to the tail's."""
        if self._frames and frame.timestamp < self._frames[-1].timestamp:
            # Wall clock stepped backwards
            frame = replace(frame, timestamp=self._frames[-1].timestamp)
        # deque(maxlen) evicts from the head
        self._frames.append(frame)
        return frame

    def snapshot(self) -> Tuple[PoseFrame, ...]:
        return tuple(self._frames)

    def clear(self):
        self._frames.clear()

    def __len__(self) -> int:
        return len(self._frames)

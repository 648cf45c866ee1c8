import logging
import threading
import time
from typing import Any, Callable, Optional

import numpy as np

from ..algo.history import LandmarkHistory
from ..vis.compositor import BloomCompositor
from ..vis.trail_renderer import TrailRenderer

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class CancellationToken:
    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class RenderLoop:
    """
    Per-refresh driver: history snapshot -> trail update -> compose -> present.

    scheduler must provide request_frame(callback) -> handle and
    cancel_frame(handle); request_frame is expected to fire once per display
    refresh (see SkeletonView).
    """

    def __init__(self, history: LandmarkHistory, renderer: TrailRenderer, compositor: BloomCompositor,
                 scheduler, present: Callable[[np.ndarray], None], clock: Callable[[], float] = now_ms):
        self.history = history
        self.renderer = renderer
        self.compositor = compositor
        self.scheduler = scheduler
        self.present = present
        self.clock = clock
        self.token = CancellationToken()
        self.ticks = 0
        self._started = False
        self._pending: Optional[Any] = None
        self._lock = threading.Lock()
        self._disposed = False

    @property
    def running(self) -> bool:
        return self._started and not self.token.cancelled

    def start(self):
        if self._started or self.token.cancelled:
            return
        self._started = True
        self._pending = self.scheduler.request_frame(self.tick)
        logger.info("Render loop started")

    def tick(self):
        if self.token.cancelled:
            return
        self._pending = self.scheduler.request_frame(self.tick)
        self.ticks += 1

        try:
            snapshot = self.history.snapshot()
            self.renderer.update(snapshot, self.clock())
            frame = self.compositor.compose(self.renderer.layers)
            self.present(frame)
        except Exception:
            logger.exception("Render tick failed, skipping frame")

    def resize(self, width: int, height: int):
        if self.token.cancelled:
            return
        self.compositor.resize(width, height)

    def stop(self):
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
        # Stop scheduling before releasing anything a tick could touch
        self.token.cancel()
        pending, self._pending = self._pending, None
        if pending is not None:
            self.scheduler.cancel_frame(pending)
        self.renderer.dispose()
        self.compositor.dispose()
        logger.info("Render loop stopped after %d ticks", self.ticks)

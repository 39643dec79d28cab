from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Iterable, Optional

from .config import CoachConfig
from .poses.feedback import FeedbackCatalog, load_catalog
from .poses.library import get_pose
from .poses.scoring import PoseEvaluation

logger = logging.getLogger(__name__)


class LiveEvaluator:
    """Throttled evaluation for a stream of frames.

    Callers take a ticket per frame they intend to analyse, run detection
    (possibly on a worker thread) and hand the keypoints back with
    ``complete``. Results from tickets older than the latest published one
    are dropped.
    """

    def __init__(
        self,
        pose_key: str,
        interval_s: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
        catalog: Optional[FeedbackCatalog] = None,
    ) -> None:
        self.pose = get_pose(pose_key)
        self.catalog = catalog
        self.interval_s = max(0.0, float(interval_s))
        self._clock = clock
        self._lock = threading.Lock()
        self._next_ticket = 1
        self._last_issue: Optional[float] = None
        self._published_ticket = 0
        self._latest: Optional[PoseEvaluation] = None
        self.dropped = 0

    @classmethod
    def from_config(cls, cfg: CoachConfig, pose_key: Optional[str] = None) -> "LiveEvaluator":
        return cls(
            pose_key or cfg.default_pose,
            interval_s=cfg.live.interval_s,
            catalog=load_catalog(cfg.locale),
        )

    @property
    def latest(self) -> Optional[PoseEvaluation]:
        return self._latest

    def ticket(self) -> Optional[int]:
        """Sequence number for the next frame, or None while throttled."""
        now = self._clock()
        with self._lock:
            if self._last_issue is not None and (now - self._last_issue) < self.interval_s:
                return None
            self._last_issue = now
            ticket = self._next_ticket
            self._next_ticket += 1
            return ticket

    def complete(self, ticket: int, keypoints: Optional[Iterable[Any]]) -> Optional[PoseEvaluation]:
        """Evaluate and publish; returns None if a newer frame already published."""
        if keypoints is None:
            # Detector gave nothing for this frame; keep the previous verdict.
            return None
        evaluation = self.pose.evaluator(keypoints, catalog=self.catalog)
        with self._lock:
            if ticket <= self._published_ticket:
                self.dropped += 1
                logger.debug("Dropping stale live result ticket=%d latest=%d", ticket, self._published_ticket)
                return None
            self._published_ticket = ticket
            self._latest = evaluation
        return evaluation

    def reset(self) -> None:
        with self._lock:
            self._last_issue = None
            # Tickets handed out before the reset must not publish afterwards.
            self._published_ticket = self._next_ticket - 1
            self._latest = None
            self.dropped = 0

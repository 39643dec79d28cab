from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

import numpy as np

from ..config import DetectorConfig
from ..core.keypoints import COCO17_NAMES, Keypoint

logger = logging.getLogger(__name__)


class DetectorUnavailableError(RuntimeError):
    """No pose backend could be initialised."""


class PoseBackend(Protocol):
    name: str

    def process_bgr(self, frame_bgr: np.ndarray) -> List[Keypoint]: ...

    def close(self) -> None: ...


BackendProbe = Tuple[str, Callable[[], PoseBackend]]


class MediaPipeBackend:
    """MediaPipe Pose, reduced to the 17 COCO keypoints in pixel coordinates."""

    def __init__(
        self,
        model_complexity: int = 1,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
        name: str = "mediapipe",
        static_image_mode: bool = False,
    ) -> None:
        # Lazy import so the engine can be used without mediapipe installed.
        import mediapipe as mp

        # mediapipe>=0.10.30 dropped the legacy Solutions API used here.
        if not hasattr(mp, "solutions"):
            raise RuntimeError(
                "Your mediapipe package does not include the Solutions API (mp.solutions.*). "
                "Install a compatible version, e.g.:\n\n"
                "  pip install 'mediapipe<0.10.30'\n"
            )

        self.name = name
        self.mp = mp
        self.pose = mp.solutions.pose.Pose(
            static_image_mode=bool(static_image_mode),
            model_complexity=int(model_complexity),
            enable_segmentation=False,
            min_detection_confidence=float(min_detection_confidence),
            min_tracking_confidence=float(min_tracking_confidence),
        )

    def process_bgr(self, frame_bgr: np.ndarray) -> List[Keypoint]:
        h, w = int(frame_bgr.shape[0]), int(frame_bgr.shape[1])
        frame_rgb = np.ascontiguousarray(frame_bgr[:, :, ::-1])
        res = self.pose.process(frame_rgb)
        if res is None or res.pose_landmarks is None:
            return []

        idx = self.mp.solutions.pose.PoseLandmark
        landmarks = res.pose_landmarks.landmark
        out: List[Keypoint] = []
        for name in COCO17_NAMES:
            p = landmarks[int(getattr(idx, name.upper()))]
            out.append(
                Keypoint(
                    x=float(p.x) * w,
                    y=float(p.y) * h,
                    score=float(getattr(p, "visibility", 0.0) or 0.0),
                    name=name,
                )
            )
        return out

    def close(self) -> None:
        self.pose.close()


def default_probes(config: Optional[DetectorConfig] = None) -> List[BackendProbe]:
    cfg = config or DetectorConfig()
    factories = {
        "mediapipe": lambda: MediaPipeBackend(
            model_complexity=cfg.model_complexity,
            min_detection_confidence=cfg.min_detection_confidence,
            min_tracking_confidence=cfg.min_tracking_confidence,
            static_image_mode=cfg.static_image_mode,
        ),
        "mediapipe_lite": lambda: MediaPipeBackend(
            model_complexity=0,
            min_detection_confidence=cfg.min_detection_confidence,
            min_tracking_confidence=cfg.min_tracking_confidence,
            name="mediapipe_lite",
            static_image_mode=cfg.static_image_mode,
        ),
    }
    probes: List[BackendProbe] = []
    for name in cfg.backends:
        if name not in factories:
            logger.warning("Ignoring unknown pose backend %r", name)
            continue
        probes.append((name, factories[name]))
    return probes


class PoseDetectorService:
    """Shared pose detector, loaded on first use.

    Concurrent callers block on the same initialisation. A failed
    initialisation leaves the service unloaded so a later call can retry.
    """

    def __init__(self, probes: Optional[Sequence[BackendProbe]] = None) -> None:
        self._probes: List[BackendProbe] = list(probes) if probes is not None else default_probes()
        self._lock = threading.Lock()
        self._backend: Optional[PoseBackend] = None

    @property
    def is_initialized(self) -> bool:
        return self._backend is not None

    @property
    def backend_name(self) -> Optional[str]:
        backend = self._backend
        return backend.name if backend is not None else None

    def initialize(self) -> PoseBackend:
        backend = self._backend
        if backend is not None:
            return backend
        with self._lock:
            if self._backend is not None:
                return self._backend
            errors: List[str] = []
            for name, probe in self._probes:
                try:
                    backend = probe()
                except Exception as exc:
                    logger.warning("Pose backend %s unavailable: %s", name, exc)
                    errors.append(f"{name}: {exc}")
                    continue
                logger.info("Pose backend %s loaded", name)
                self._backend = backend
                return backend
            raise DetectorUnavailableError(
                "No pose backend could be loaded" + (f" ({'; '.join(errors)})" if errors else "")
            )

    def estimate_bgr(self, frame_bgr: np.ndarray) -> Optional[List[Keypoint]]:
        """Keypoints for the most prominent subject, or None if inference fails."""
        backend = self.initialize()
        try:
            return backend.process_bgr(frame_bgr)
        except Exception:
            logger.exception("Pose estimation failed on %s", backend.name)
            return None

    def dispose(self) -> None:
        with self._lock:
            backend, self._backend = self._backend, None
        if backend is not None:
            try:
                backend.close()
            except Exception:
                logger.exception("Error closing pose backend %s", backend.name)


_SHARED: Optional[PoseDetectorService] = None
_SHARED_LOCK = threading.Lock()


def get_pose_detector(config: Optional[DetectorConfig] = None) -> PoseDetectorService:
    """Process-wide detector; the config only applies to the first call."""
    global _SHARED
    with _SHARED_LOCK:
        if _SHARED is None:
            _SHARED = PoseDetectorService(default_probes(config))
        return _SHARED


def read_image_bgr(path: Path) -> np.ndarray:
    # Lazy import keeps cv2 optional for keypoint-only use.
    import cv2

    frame = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if frame is None:
        raise FileNotFoundError(f"Could not read image: {path}")
    return frame

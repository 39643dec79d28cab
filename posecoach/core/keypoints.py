from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence


# COCO-17 ordering used by PoseNet / MoveNet style detectors.
COCO17_NAMES = (
    "nose",
    "left_eye",
    "right_eye",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
)


@dataclass(frozen=True)
class Keypoint:
    """A single detected landmark in image pixel space (origin top-left, y down)."""

    x: float
    y: float
    score: Optional[float] = None
    name: Optional[str] = None


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return math.nan


def _as_score(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        score = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(score):
        return None
    return score


def _as_name(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def coerce_keypoint(item: Any) -> Keypoint:
    if isinstance(item, Keypoint):
        return item
    if not isinstance(item, Mapping):
        return Keypoint(x=math.nan, y=math.nan)

    # PoseNet emits {part, position: {x, y}, score}.
    position = item.get("position")
    if isinstance(position, Mapping) and "x" not in item:
        x, y = position.get("x"), position.get("y")
    else:
        x, y = item.get("x"), item.get("y")
    name = item.get("name", item.get("part"))
    return Keypoint(
        x=_as_float(x),
        y=_as_float(y),
        score=_as_score(item.get("score")),
        name=_as_name(name),
    )


def coerce_keypoints(items: Optional[Iterable[Any]]) -> List[Keypoint]:
    """Normalise detector output into Keypoints without dropping or reordering entries."""
    if items is None:
        return []
    return [coerce_keypoint(item) for item in items]


def keypoint_by_name(keypoints: Sequence[Keypoint], name: str) -> Optional[Keypoint]:
    for kp in keypoints:
        if kp.name == name:
            return kp
    return None

from __future__ import annotations

import math
from typing import Iterable, Optional, Tuple

from .keypoints import Keypoint


DEFAULT_MIN_SCORE = 0.5


def distance(a: Keypoint, b: Keypoint) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def angle_at_vertex(a: Keypoint, vertex: Keypoint, b: Keypoint) -> float:
    """Interior angle ABC in degrees, folded into [0, 180].

    Concave and convex bends are indistinguishable; only the magnitude is kept.
    """
    radians = math.atan2(b.y - vertex.y, b.x - vertex.x) - math.atan2(a.y - vertex.y, a.x - vertex.x)
    angle = abs(math.degrees(radians))
    if angle > 180.0:
        angle = 360.0 - angle
    return angle


def midpoint(a: Keypoint, b: Keypoint) -> Tuple[float, float]:
    return ((a.x + b.x) / 2.0, (a.y + b.y) / 2.0)


def is_visible(kp: Optional[Keypoint], min_score: float = DEFAULT_MIN_SCORE) -> bool:
    if kp is None:
        return False
    score = kp.score if kp.score is not None else 0.0
    return score >= min_score


def are_all_visible(keypoints: Iterable[Optional[Keypoint]], min_score: float = DEFAULT_MIN_SCORE) -> bool:
    return all(is_visible(kp, min_score) for kp in keypoints)


def vertical_offset(a: Keypoint, b: Keypoint) -> float:
    return abs(a.y - b.y)


def horizontal_offset(a: Keypoint, b: Keypoint) -> float:
    return abs(a.x - b.x)


def alignment_ratio(vertical_diff: float, horizontal_distance: float) -> float:
    # 0 is perfectly level; a zero span is reported as the worst case.
    if horizontal_distance == 0:
        return 1.0
    return vertical_diff / horizontal_distance

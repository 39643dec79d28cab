from __future__ import annotations

from .geometry import (
    alignment_ratio,
    angle_at_vertex,
    are_all_visible,
    distance,
    is_visible,
    midpoint,
)
from .keypoints import Keypoint, coerce_keypoints, keypoint_by_name

__all__ = [
    "Keypoint",
    "alignment_ratio",
    "angle_at_vertex",
    "are_all_visible",
    "coerce_keypoints",
    "distance",
    "is_visible",
    "keypoint_by_name",
    "midpoint",
]

from __future__ import annotations

from .feedback import load_catalog
from .front_double_biceps import evaluate_front_double_biceps
from .library import DEFAULT_POSE, POSES, evaluate_pose, get_pose, list_poses
from .scoring import FeedbackItem, FeedbackStatus, PoseEvaluation

__all__ = [
    "DEFAULT_POSE",
    "POSES",
    "FeedbackItem",
    "FeedbackStatus",
    "PoseEvaluation",
    "evaluate_front_double_biceps",
    "evaluate_pose",
    "get_pose",
    "list_poses",
    "load_catalog",
]

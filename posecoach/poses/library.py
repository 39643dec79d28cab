from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from .feedback import FeedbackCatalog
from .front_double_biceps import evaluate_front_double_biceps
from .scoring import PoseEvaluation

PoseEvaluator = Callable[..., PoseEvaluation]


@dataclass(frozen=True)
class PoseDef:
    key: str
    display: str
    evaluator: PoseEvaluator
    guidance: List[str]


POSES: Dict[str, PoseDef] = {
    "front_double_biceps": PoseDef(
        key="front_double_biceps",
        display="Bodybuilding — Front Double Biceps",
        evaluator=evaluate_front_double_biceps,
        guidance=[
            "Raise elbows to shoulder height and flex to about 90°.",
            "Keep shoulders level without shrugging.",
            "Bring wrists in line with the shoulders.",
            "Stand fully in frame with good lighting.",
        ],
    ),
}

DEFAULT_POSE = "front_double_biceps"


_POSE_ALIASES: Dict[str, str] = {
    "front double biceps": "front_double_biceps",
    "front double bicep": "front_double_biceps",
    "frontdoublebicep": "front_double_biceps",
    "front_double_bicep": "front_double_biceps",
    "bb_front_double_biceps": "front_double_biceps",
}


def normalize_pose_key(name: str) -> str:
    text = " ".join(str(name or "").strip().lower().replace("-", " ").split())
    if text in _POSE_ALIASES:
        return _POSE_ALIASES[text]
    return text.replace(" ", "_")


def get_pose(key: str) -> PoseDef:
    norm = normalize_pose_key(key)
    if norm in POSES:
        return POSES[norm]
    raise KeyError(f"Unknown pose: {key}")


def list_poses() -> List[PoseDef]:
    return list(POSES.values())


def evaluate_pose(
    key: str,
    keypoints: Iterable[Any],
    catalog: Optional[FeedbackCatalog] = None,
) -> PoseEvaluation:
    return get_pose(key).evaluator(keypoints, catalog=catalog)

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.keypoints import Keypoint


class FeedbackStatus(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class FeedbackItem:
    title: str
    description: str
    status: FeedbackStatus

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "description": self.description, "status": self.status.value}


@dataclass(frozen=True)
class ProjectedKeypoint:
    part: str
    position: Tuple[float, float]
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "part": self.part,
            "position": {"x": _finite_or_none(self.position[0]), "y": _finite_or_none(self.position[1])},
            "score": self.score,
        }


def _finite_or_none(value: float) -> Optional[float]:
    # NaN/inf are not valid JSON.
    return value if math.isfinite(value) else None


@dataclass(frozen=True)
class PoseEvaluation:
    score: int
    feedback: Tuple[FeedbackItem, ...]
    keypoints: Tuple[ProjectedKeypoint, ...]
    criteria_count: int = 0
    total_points: int = 0

    @property
    def insufficient_data(self) -> bool:
        return self.criteria_count == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "feedback": [item.to_dict() for item in self.feedback],
            "keypoints": [kp.to_dict() for kp in self.keypoints],
            "criteria_count": self.criteria_count,
        }


def round_half_up(value: float) -> int:
    # Matches Math.round: .5 always rounds toward +inf.
    if not math.isfinite(value):
        return 0
    return int(math.floor(value + 0.5))


def project_keypoints(keypoints: Sequence[Keypoint]) -> Tuple[ProjectedKeypoint, ...]:
    return tuple(
        ProjectedKeypoint(
            part=kp.name or "unknown",
            position=(kp.x, kp.y),
            score=kp.score if kp.score is not None else 0.0,
        )
        for kp in keypoints
    )


@dataclass
class ScoreCard:
    """Running total of awarded points, feedback and evaluated criteria."""

    feedback: List[FeedbackItem] = field(default_factory=list)
    total_points: int = 0
    criteria_count: int = 0

    def award(self, item: FeedbackItem, points: int, weight: int = 1) -> None:
        self.feedback.append(item)
        for _ in range(weight):
            self.total_points += points
            self.criteria_count += 1

    def note(self, item: FeedbackItem) -> None:
        # Feedback without any score contribution.
        self.feedback.append(item)

    def final_score(self) -> int:
        if self.criteria_count == 0:
            return 0
        return round_half_up(self.total_points / self.criteria_count)

    def build(self, keypoints: Sequence[Keypoint]) -> PoseEvaluation:
        return PoseEvaluation(
            score=self.final_score(),
            feedback=tuple(self.feedback),
            keypoints=project_keypoints(keypoints),
            criteria_count=self.criteria_count,
            total_points=self.total_points,
        )

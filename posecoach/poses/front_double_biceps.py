from __future__ import annotations

from typing import Any, Iterable, List, Optional, Sequence

from ..core.geometry import (
    alignment_ratio,
    angle_at_vertex,
    are_all_visible,
    distance,
)
from ..core.keypoints import Keypoint, coerce_keypoints, keypoint_by_name
from .feedback import FeedbackCatalog, load_catalog
from .scoring import FeedbackStatus, PoseEvaluation, ScoreCard, round_half_up
from .thresholds import POINTS, THRESHOLDS

SUCCESS = FeedbackStatus.SUCCESS
WARNING = FeedbackStatus.WARNING
ERROR = FeedbackStatus.ERROR


def _points(criterion: str, status: FeedbackStatus) -> int:
    return POINTS[criterion][status.value]


def classify_shoulder_ratio(ratio: float) -> FeedbackStatus:
    if ratio < THRESHOLDS["shoulder_ratio_success"]:
        return SUCCESS
    if ratio < THRESHOLDS["shoulder_ratio_warning"]:
        return WARNING
    return ERROR


def classify_elbow_angle(angle: float) -> FeedbackStatus:
    if THRESHOLDS["elbow_success_min"] <= angle <= THRESHOLDS["elbow_success_max"]:
        return SUCCESS
    if THRESHOLDS["elbow_warning_min"] <= angle <= THRESHOLDS["elbow_warning_max"]:
        return WARNING
    return ERROR


def classify_wrist_ratio(ratio: float) -> FeedbackStatus:
    if ratio < THRESHOLDS["wrist_ratio_success"]:
        return SUCCESS
    if ratio < THRESHOLDS["wrist_ratio_warning"]:
        return WARNING
    return ERROR


def classify_visibility(ratio: float) -> FeedbackStatus:
    if ratio > THRESHOLDS["visibility_success"]:
        return SUCCESS
    if ratio > THRESHOLDS["visibility_warning"]:
        return WARNING
    return ERROR


def _elbow_direction(angle: float) -> Optional[str]:
    ideal = THRESHOLDS["elbow_ideal"]
    if angle < ideal:
        return "open"
    if angle > ideal:
        return "close"
    return None


def _score_shoulders(card: ScoreCard, catalog: FeedbackCatalog, left: Keypoint, right: Keypoint) -> None:
    diff = abs(left.y - right.y)
    ratio = alignment_ratio(diff, distance(left, right))
    status = classify_shoulder_ratio(ratio)

    # Smaller y is higher on screen; the higher shoulder is the one to drop.
    side = None
    if left.y < right.y:
        side = "left"
    elif right.y < left.y:
        side = "right"
    card.award(catalog.render("shoulder_alignment", status, side), _points("shoulder_alignment", status))


def _score_single_elbow(card: ScoreCard, catalog: FeedbackCatalog, side: str, angle: float) -> None:
    status = classify_elbow_angle(angle)
    direction = _elbow_direction(angle) if status is not SUCCESS else None
    item = catalog.render(f"{side}_elbow", status, direction, angle=round_half_up(angle))
    card.award(item, _points("elbow_angle", status))


def _score_elbows(
    card: ScoreCard,
    catalog: FeedbackCatalog,
    left_angle: Optional[float],
    right_angle: Optional[float],
) -> None:
    if left_angle is not None and right_angle is not None:
        lo = THRESHOLDS["elbow_success_min"]
        hi = THRESHOLDS["elbow_success_max"]
        warn_lo = THRESHOLDS["elbow_warning_min"]
        warn_hi = THRESHOLDS["elbow_warning_max"]
        combined: Optional[FeedbackStatus] = None
        direction: Optional[str] = None

        if classify_elbow_angle(left_angle) is SUCCESS and classify_elbow_angle(right_angle) is SUCCESS:
            combined = SUCCESS
        elif left_angle < lo and right_angle < lo:
            combined = WARNING if (left_angle >= warn_lo and right_angle >= warn_lo) else ERROR
            direction = "open"
        elif left_angle > hi and right_angle > hi:
            combined = WARNING if (left_angle <= warn_hi and right_angle <= warn_hi) else ERROR
            direction = "close"

        if combined is not None:
            item = catalog.render(
                "elbows_combined",
                combined,
                direction,
                left_angle=round_half_up(left_angle),
                right_angle=round_half_up(right_angle),
            )
            # A shared verdict weighs as both arms.
            card.award(item, _points("elbow_angle", combined), weight=2)
            return

    if left_angle is not None:
        _score_single_elbow(card, catalog, "left", left_angle)
    if right_angle is not None:
        _score_single_elbow(card, catalog, "right", right_angle)


def _score_wrists(
    card: ScoreCard,
    catalog: FeedbackCatalog,
    left_shoulder: Keypoint,
    right_shoulder: Keypoint,
    left_wrist: Keypoint,
    right_wrist: Keypoint,
    left_hip: Optional[Keypoint],
) -> None:
    avg_shoulder_y = (left_shoulder.y + right_shoulder.y) / 2.0
    avg_wrist_y = (left_wrist.y + right_wrist.y) / 2.0
    diff = abs(avg_wrist_y - avg_shoulder_y)

    body_height = THRESHOLDS["body_height_fallback"]
    if left_hip is not None:
        torso = distance(left_shoulder, left_hip)
        if torso > 0:
            body_height = torso
    status = classify_wrist_ratio(diff / body_height)

    direction = None
    if avg_wrist_y < avg_shoulder_y:
        direction = "lower"
    elif avg_wrist_y > avg_shoulder_y:
        direction = "raise"
    card.award(catalog.render("wrist_height", status, direction), _points("wrist_height", status))


def _score_visibility(card: ScoreCard, catalog: FeedbackCatalog, keypoints: Sequence[Keypoint]) -> None:
    if not keypoints:
        # Nothing detected: report it, but there is nothing to average.
        card.note(catalog.render("visibility", ERROR))
        return
    cut = THRESHOLDS["visibility_score_cut"]
    visible = sum(1 for kp in keypoints if (kp.score if kp.score is not None else 0.0) > cut)
    status = classify_visibility(visible / len(keypoints))
    card.award(catalog.render("visibility", status), _points("visibility", status))


def evaluate_front_double_biceps(
    keypoints: Iterable[Any],
    catalog: Optional[FeedbackCatalog] = None,
) -> PoseEvaluation:
    """Score one subject's keypoints for the Front Double Biceps.

    Criteria run in a fixed order (shoulders, elbows, wrists, visibility). A
    criterion whose keypoints are not visible is skipped and does not count
    toward the average. Never raises for malformed keypoints.
    """
    kps: List[Keypoint] = coerce_keypoints(keypoints)
    catalog = catalog or load_catalog()
    card = ScoreCard()
    min_score = THRESHOLDS["min_keypoint_score"]

    left_shoulder = keypoint_by_name(kps, "left_shoulder")
    right_shoulder = keypoint_by_name(kps, "right_shoulder")
    left_elbow = keypoint_by_name(kps, "left_elbow")
    right_elbow = keypoint_by_name(kps, "right_elbow")
    left_wrist = keypoint_by_name(kps, "left_wrist")
    right_wrist = keypoint_by_name(kps, "right_wrist")
    left_hip = keypoint_by_name(kps, "left_hip")

    if are_all_visible([left_shoulder, right_shoulder], min_score):
        _score_shoulders(card, catalog, left_shoulder, right_shoulder)

    left_angle = None
    if are_all_visible([left_shoulder, left_elbow, left_wrist], min_score):
        left_angle = angle_at_vertex(left_shoulder, left_elbow, left_wrist)
    right_angle = None
    if are_all_visible([right_shoulder, right_elbow, right_wrist], min_score):
        right_angle = angle_at_vertex(right_shoulder, right_elbow, right_wrist)
    _score_elbows(card, catalog, left_angle, right_angle)

    if are_all_visible([left_wrist, right_wrist, left_shoulder, right_shoulder], min_score):
        _score_wrists(card, catalog, left_shoulder, right_shoulder, left_wrist, right_wrist, left_hip)

    _score_visibility(card, catalog, kps)
    return card.build(kps)


__all__ = [
    "classify_elbow_angle",
    "classify_shoulder_ratio",
    "classify_visibility",
    "classify_wrist_ratio",
    "evaluate_front_double_biceps",
]

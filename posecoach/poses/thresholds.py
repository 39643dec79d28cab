from __future__ import annotations

from typing import Dict


# Band edges for the Front Double Biceps criteria. Angles are in degrees,
# ratios are unitless. Edges are part of the scoring contract; do not tune.
THRESHOLDS: Dict[str, float] = {
    # Shoulder tilt: |Ly - Ry| / shoulder distance
    "shoulder_ratio_success": 0.08,
    "shoulder_ratio_warning": 0.15,

    # Elbow flexion (inclusive bands)
    "elbow_success_min": 75.0,
    "elbow_success_max": 105.0,
    "elbow_warning_min": 60.0,
    "elbow_warning_max": 120.0,
    "elbow_ideal": 90.0,

    # Wrist height: |avg wrist y - avg shoulder y| / torso length
    "wrist_ratio_success": 0.15,
    "wrist_ratio_warning": 0.30,
    "body_height_fallback": 100.0,

    # Share of keypoints with score strictly above the cut
    "visibility_score_cut": 0.5,
    "visibility_success": 0.8,
    "visibility_warning": 0.6,

    # Minimum detector confidence before a criterion may use a keypoint
    "min_keypoint_score": 0.5,
}


# Points awarded per band.
POINTS: Dict[str, Dict[str, int]] = {
    "shoulder_alignment": {"success": 95, "warning": 75, "error": 50},
    "elbow_angle": {"success": 92, "warning": 70, "error": 45},
    "wrist_height": {"success": 88, "warning": 65, "error": 40},
    "visibility": {"success": 85, "warning": 60, "error": 35},
}


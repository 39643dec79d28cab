from __future__ import annotations

import json
import math
import unittest

from posecoach.core.geometry import (
    alignment_ratio,
    angle_at_vertex,
    are_all_visible,
    distance,
    horizontal_offset,
    is_visible,
    midpoint,
    vertical_offset,
)
from posecoach.core.keypoints import Keypoint, coerce_keypoints, keypoint_by_name


def _p(x: float, y: float, score: float | None = 1.0, name: str | None = None) -> Keypoint:
    return Keypoint(x=x, y=y, score=score, name=name)


class GeometryTests(unittest.TestCase):
    def test_distance_is_symmetric_and_non_negative(self) -> None:
        a, b = _p(0, 0), _p(3, 4)
        self.assertEqual(distance(a, b), 5.0)
        self.assertEqual(distance(a, b), distance(b, a))
        self.assertEqual(distance(_p(-7.5, 2.0), _p(-7.5, 2.0)), 0.0)

    def test_right_angle(self) -> None:
        self.assertAlmostEqual(angle_at_vertex(_p(0, 0), _p(1, 0), _p(1, 1)), 90.0, places=6)

    def test_collinear_points_give_straight_angle(self) -> None:
        self.assertAlmostEqual(angle_at_vertex(_p(0, 0), _p(1, 0), _p(2, 0)), 180.0, places=6)
        self.assertAlmostEqual(angle_at_vertex(_p(0, 0), _p(2, 2), _p(5, 5)), 180.0, places=6)

    def test_angle_symmetric_in_outer_points(self) -> None:
        a, v, b = _p(10, 3), _p(4, 8), _p(-2, 1)
        self.assertAlmostEqual(angle_at_vertex(a, v, b), angle_at_vertex(b, v, a), places=9)

    def test_reflex_angles_fold_back(self) -> None:
        # Bearings of +170 and -170 degrees differ by 340; the interior angle is 20.
        v = _p(0, 0)
        a = _p(math.cos(math.radians(170)), math.sin(math.radians(170)))
        b = _p(math.cos(math.radians(-170)), math.sin(math.radians(-170)))
        angle = angle_at_vertex(a, v, b)
        self.assertAlmostEqual(angle, 20.0, places=6)
        self.assertTrue(0.0 <= angle <= 180.0)

    def test_midpoint(self) -> None:
        self.assertEqual(midpoint(_p(0, 0), _p(10, 10)), (5.0, 5.0))

    def test_offsets(self) -> None:
        self.assertEqual(vertical_offset(_p(1, 2), _p(5, 9)), 7.0)
        self.assertEqual(horizontal_offset(_p(1, 2), _p(5, 9)), 4.0)

    def test_visibility_boundary_is_inclusive(self) -> None:
        self.assertTrue(is_visible(_p(0, 0, 0.5), 0.5))
        self.assertTrue(is_visible(_p(0, 0, 0.8)))
        self.assertFalse(is_visible(_p(0, 0, 0.3)))
        self.assertFalse(is_visible(None, 0.0))
        # Missing score counts as zero confidence.
        self.assertFalse(is_visible(_p(0, 0, None)))
        self.assertTrue(is_visible(_p(0, 0, None), 0.0))

    def test_all_visible(self) -> None:
        self.assertTrue(are_all_visible([_p(0, 0, 0.8), _p(1, 1, 0.9)]))
        self.assertFalse(are_all_visible([_p(0, 0, 0.8), _p(1, 1, 0.3)]))
        self.assertFalse(are_all_visible([_p(0, 0, 0.8), None]))
        self.assertTrue(are_all_visible([]))

    def test_alignment_ratio(self) -> None:
        self.assertEqual(alignment_ratio(5, 0), 1.0)
        self.assertEqual(alignment_ratio(0, 0), 1.0)
        self.assertEqual(alignment_ratio(0, 40), 0.0)
        self.assertAlmostEqual(alignment_ratio(4, 40), 0.1)


class KeypointLookupTests(unittest.TestCase):
    def test_lookup_returns_first_exact_match(self) -> None:
        kps = [
            _p(1, 1, name="left_shoulder"),
            _p(2, 2, name="left_shoulder"),
            _p(3, 3, name="Right_Shoulder"),
        ]
        self.assertEqual(keypoint_by_name(kps, "left_shoulder"), kps[0])
        self.assertIsNone(keypoint_by_name(kps, "right_shoulder"))
        self.assertIsNone(keypoint_by_name([], "nose"))

    def test_coerce_accepts_flat_and_posenet_shapes(self) -> None:
        kps = coerce_keypoints(
            [
                {"name": "nose", "x": 10, "y": "20", "score": 0.7},
                {"part": "left_eye", "position": {"x": 5.5, "y": 6.5}, "score": 0.9},
                _p(1, 2, 0.3, "right_eye"),
            ]
        )
        self.assertEqual(kps[0], Keypoint(x=10.0, y=20.0, score=0.7, name="nose"))
        self.assertEqual(kps[1], Keypoint(x=5.5, y=6.5, score=0.9, name="left_eye"))
        self.assertEqual(kps[2].name, "right_eye")

    def test_coerce_never_raises_on_malformed_entries(self) -> None:
        kps = coerce_keypoints([{"x": "abc", "score": "high", "name": 3}, None, 42])
        self.assertEqual(len(kps), 3)
        self.assertTrue(math.isnan(kps[0].x))
        self.assertTrue(math.isnan(kps[0].y))
        self.assertIsNone(kps[0].score)
        self.assertIsNone(kps[0].name)
        self.assertEqual(coerce_keypoints(None), [])

    def test_coerce_handles_integers_too_large_for_float(self) -> None:
        huge = json.loads("1" + "0" * 400)
        kps = coerce_keypoints(
            [
                {"name": "left_shoulder", "x": huge, "y": 2, "score": 0.9},
                {"name": "right_shoulder", "x": 1, "y": 2, "score": huge},
                {"name": "nose", "x": 1, "y": 2, "score": float("inf")},
            ]
        )
        self.assertTrue(math.isnan(kps[0].x))
        self.assertEqual(kps[0].y, 2.0)
        self.assertIsNone(kps[1].score)
        self.assertIsNone(kps[2].score)


if __name__ == "__main__":
    unittest.main()

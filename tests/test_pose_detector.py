from __future__ import annotations

import threading
import time
import unittest
from unittest import mock

import numpy as np

from posecoach.config import DetectorConfig
from posecoach.core.keypoints import Keypoint
from posecoach.vision.pose import DetectorUnavailableError, PoseDetectorService, default_probes


class _FakeBackend:
    def __init__(self, name: str = "fake", fail: bool = False) -> None:
        self.name = name
        self.fail = fail
        self.closed = False
        self.frames = 0

    def process_bgr(self, frame_bgr: np.ndarray) -> list[Keypoint]:
        if self.fail:
            raise RuntimeError("inference exploded")
        self.frames += 1
        h, w = frame_bgr.shape[:2]
        return [Keypoint(x=w / 2, y=h / 2, score=0.9, name="nose")]

    def close(self) -> None:
        self.closed = True


class PoseDetectorServiceTests(unittest.TestCase):
    def test_initialises_once_under_concurrency(self) -> None:
        calls = {"n": 0}

        def probe():
            calls["n"] += 1
            time.sleep(0.05)
            return _FakeBackend()

        service = PoseDetectorService([("fake", probe)])
        results: list = []
        threads = [threading.Thread(target=lambda: results.append(service.initialize())) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(calls["n"], 1)
        self.assertEqual(len(results), 8)
        self.assertTrue(all(r is results[0] for r in results))
        self.assertTrue(service.is_initialized)

    def test_falls_back_to_next_backend(self) -> None:
        def broken():
            raise ImportError("no accelerated runtime")

        service = PoseDetectorService([("fast", broken), ("slow", lambda: _FakeBackend("slow"))])
        self.assertEqual(service.initialize().name, "slow")
        self.assertEqual(service.backend_name, "slow")

    def test_failure_is_reported_and_retryable(self) -> None:
        attempts = {"n": 0}

        def flaky():
            attempts["n"] += 1
            if attempts["n"] == 1:
                raise RuntimeError("model download failed")
            return _FakeBackend()

        service = PoseDetectorService([("flaky", flaky)])
        with self.assertRaises(DetectorUnavailableError) as ctx:
            service.initialize()
        self.assertIn("model download failed", str(ctx.exception))
        self.assertFalse(service.is_initialized)

        self.assertIsNotNone(service.initialize())
        self.assertEqual(attempts["n"], 2)

    def test_no_probes_raises(self) -> None:
        with self.assertRaises(DetectorUnavailableError):
            PoseDetectorService([]).initialize()

    def test_estimate_returns_pixel_keypoints(self) -> None:
        service = PoseDetectorService([("fake", _FakeBackend)])
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        kps = service.estimate_bgr(frame)
        self.assertEqual(kps, [Keypoint(x=320.0, y=240.0, score=0.9, name="nose")])

    def test_inference_failure_yields_none(self) -> None:
        service = PoseDetectorService([("fake", lambda: _FakeBackend(fail=True))])
        self.assertIsNone(service.estimate_bgr(np.zeros((4, 4, 3), dtype=np.uint8)))

    def test_dispose_releases_backend(self) -> None:
        backend = _FakeBackend()
        service = PoseDetectorService([("fake", lambda: backend)])
        service.initialize()
        service.dispose()
        self.assertTrue(backend.closed)
        self.assertFalse(service.is_initialized)
        service.dispose()

    def test_default_probes_follow_config_order(self) -> None:
        probes = default_probes(DetectorConfig(backends=["mediapipe_lite", "openpose", "mediapipe"]))
        self.assertEqual([name for name, _ in probes], ["mediapipe_lite", "mediapipe"])

    def test_probes_pass_static_image_mode(self) -> None:
        with mock.patch("posecoach.vision.pose.MediaPipeBackend") as backend_cls:
            for static in (False, True):
                backend_cls.reset_mock()
                probes = default_probes(DetectorConfig(static_image_mode=static))
                for _, probe in probes:
                    probe()
                self.assertEqual(backend_cls.call_count, 2)
                for call in backend_cls.call_args_list:
                    self.assertIs(call.kwargs["static_image_mode"], static)


if __name__ == "__main__":
    unittest.main()

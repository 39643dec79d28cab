"""Bodybuilding pose coach: geometric scoring of detected body keypoints."""

__version__ = "0.1.0"

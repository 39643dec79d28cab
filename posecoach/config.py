from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic.config import ConfigDict


CONFIG_ENV = "POSECOACH_CONFIG"


class DetectorConfig(BaseModel):
    # Probed in order; the first backend that loads wins.
    backends: list[str] = Field(default_factory=lambda: ["mediapipe", "mediapipe_lite"])
    model_complexity: int = Field(default=1, ge=0, le=2)
    min_detection_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    min_tracking_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    # Single stills need detection on every call; video can track.
    static_image_mode: bool = False


class LiveConfig(BaseModel):
    interval_s: float = Field(default=0.5, ge=0.0)


class CoachConfig(BaseModel):
    # Keep "schema" in the saved YAML, without shadowing BaseModel.schema.
    model_config = ConfigDict(populate_by_name=True)
    schema_version: int = Field(default=1, alias="schema")
    default_pose: str = "front_double_biceps"
    locale: str = "en"
    history_path: Optional[str] = None
    detector: DetectorConfig = Field(default_factory=DetectorConfig)
    live: LiveConfig = Field(default_factory=LiveConfig)

    def resolved_history_path(self) -> Path:
        if self.history_path:
            return Path(self.history_path).expanduser()
        return Path.cwd() / "sessions" / "scan_history.json"


def default_config_path() -> Path:
    return Path.cwd() / "config" / "posecoach.yaml"


def load_config(path: Optional[Path] = None) -> CoachConfig:
    """Load settings from YAML.

    Lookup order: explicit path, $POSECOACH_CONFIG, ./config/posecoach.yaml.
    A missing file yields defaults; a malformed one raises ValueError.
    """
    if path is None:
        env = os.environ.get(CONFIG_ENV, "").strip()
        path = Path(env) if env else default_config_path()
    if not path.exists():
        return CoachConfig()
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return CoachConfig()
    if not isinstance(data, dict):
        raise ValueError(f"Config root must be a mapping: {path}")
    try:
        return CoachConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid config {path}: {e}") from e

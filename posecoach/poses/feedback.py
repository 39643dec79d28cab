from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .scoring import FeedbackItem, FeedbackStatus


CATALOG_VERSION = "v1"
DEFAULT_LOCALE = "en"

# Criterion keys every catalog must define.
CRITERIA: Tuple[str, ...] = (
    "shoulder_alignment",
    "elbows_combined",
    "left_elbow",
    "right_elbow",
    "wrist_height",
    "visibility",
)
BANDS: Tuple[str, ...] = tuple(status.value for status in FeedbackStatus)


def _data_dir() -> Path:
    return Path(__file__).resolve().parent.parent / "data"


def _expect_keys(obj: Dict[str, Any], required: Tuple[str, ...], path: str) -> None:
    missing = [k for k in required if k not in obj]
    extra = [k for k in obj.keys() if k not in required]
    if missing:
        raise ValueError(f"Missing keys at {path}: {missing}")
    if extra:
        raise ValueError(f"Unexpected keys at {path}: {extra}")


def _expect_type(value: Any, expected_type: type, path: str) -> None:
    if not isinstance(value, expected_type):
        raise ValueError(f"Expected {expected_type.__name__} at {path}, got {type(value).__name__}")


def validate_catalog(data: Dict[str, Any]) -> Dict[str, Any]:
    _expect_keys(data, ("catalog_version", "locale", "criteria"), "catalog")
    _expect_type(data["catalog_version"], str, "catalog.catalog_version")
    _expect_type(data["locale"], str, "catalog.locale")
    _expect_type(data["criteria"], dict, "catalog.criteria")

    criteria = data["criteria"]
    _expect_keys(criteria, CRITERIA, "catalog.criteria")
    for key in CRITERIA:
        entry = criteria[key]
        _expect_type(entry, dict, f"criteria.{key}")
        _expect_keys(entry, ("title",) + BANDS, f"criteria.{key}")
        _expect_type(entry["title"], str, f"criteria.{key}.title")
        for band in BANDS:
            text = entry[band]
            if isinstance(text, str):
                continue
            _expect_type(text, dict, f"criteria.{key}.{band}")
            if "default" not in text:
                raise ValueError(f"criteria.{key}.{band} needs a 'default' message")
            for direction, message in text.items():
                _expect_type(message, str, f"criteria.{key}.{band}.{direction}")
    return data


@dataclass(frozen=True)
class FeedbackCatalog:
    locale: str
    version: str
    titles: Mapping[str, str]
    messages: Mapping[Tuple[str, str], Mapping[str, str]]

    def render(
        self,
        criterion: str,
        status: FeedbackStatus,
        direction: Optional[str] = None,
        **values: Any,
    ) -> FeedbackItem:
        variants = self.messages[(criterion, status.value)]
        template = variants.get(direction or "default", variants["default"])
        return FeedbackItem(
            title=self.titles[criterion],
            description=template.format(**values),
            status=status,
        )


def _build_catalog(data: Dict[str, Any]) -> FeedbackCatalog:
    titles: Dict[str, str] = {}
    messages: Dict[Tuple[str, str], Mapping[str, str]] = {}
    for key, entry in data["criteria"].items():
        titles[key] = entry["title"]
        for band in BANDS:
            text = entry[band]
            variants = {"default": text} if isinstance(text, str) else dict(text)
            messages[(key, band)] = MappingProxyType(variants)
    return FeedbackCatalog(
        locale=data["locale"],
        version=data["catalog_version"],
        titles=MappingProxyType(titles),
        messages=MappingProxyType(messages),
    )


def load_catalog_file(path: Path) -> FeedbackCatalog:
    if not path.exists():
        raise FileNotFoundError(f"Feedback catalog not found: {path}")
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Catalog root must be a mapping")
    return _build_catalog(validate_catalog(data))


@lru_cache(maxsize=None)
def load_catalog(locale: str = DEFAULT_LOCALE) -> FeedbackCatalog:
    safe = "".join(c for c in locale.lower() if c.isalnum() or c == "_")
    return load_catalog_file(_data_dir() / f"feedback_{safe}.yaml")

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..poses.scoring import PoseEvaluation, round_half_up

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 30


class FeedbackEntry(BaseModel):
    title: str
    description: str
    status: str


class ScanRecord(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    pose: str
    score: int = Field(ge=0, le=100)
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))
    feedback: list[FeedbackEntry] = Field(default_factory=list)
    keypoints: list[dict] = Field(default_factory=list)

    def scan_date(self) -> Optional[date]:
        try:
            return datetime.fromisoformat(self.created_at).date()
        except ValueError:
            return None

    @staticmethod
    def from_evaluation(pose: str, evaluation: PoseEvaluation, created_at: Optional[str] = None) -> "ScanRecord":
        data = evaluation.to_dict()
        record = ScanRecord(
            pose=pose,
            score=data["score"],
            feedback=[FeedbackEntry(**item) for item in data["feedback"]],
            keypoints=data["keypoints"],
        )
        if created_at:
            record.created_at = created_at
        return record


@dataclass
class ScanStats:
    total_scans: int = 0
    average_score: int = 0
    best_pose: str = ""
    best_score: int = 0
    last_scan_date: str = ""
    streak: int = 0
    history: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _streak(days: List[date]) -> int:
    # Consecutive calendar days ending at the most recent scan day.
    if not days:
        return 0
    unique = sorted(set(days), reverse=True)
    streak = 1
    for prev, cur in zip(unique, unique[1:]):
        if prev - cur != timedelta(days=1):
            break
        streak += 1
    return streak


@dataclass
class ScanHistoryStore:
    path: Path

    @staticmethod
    def default() -> "ScanHistoryStore":
        return ScanHistoryStore(path=Path.cwd() / "sessions" / "scan_history.json")

    def list_scans(self) -> List[ScanRecord]:
        """Saved scans, newest first. Unreadable files and invalid entries are skipped."""
        if not self.path.exists():
            return []
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except Exception:
            logger.warning("Ignoring unreadable scan history at %s", self.path)
            return []
        raw = payload.get("scans") if isinstance(payload, dict) else payload
        if not isinstance(raw, list):
            return []
        scans: List[ScanRecord] = []
        for item in raw:
            try:
                scans.append(ScanRecord.model_validate(item))
            except ValidationError:
                continue
        return scans

    def _write(self, scans: List[ScanRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "schema_version": 1,
            "scans": [s.model_dump(mode="json") for s in scans],
        }
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def add_scan(self, record: ScanRecord) -> ScanRecord:
        scans = self.list_scans()
        scans.insert(0, record)
        self._write(scans)
        logger.info("Saved scan %s (%s, score=%d)", record.id, record.pose, record.score)
        return record

    def record_evaluation(self, pose: str, evaluation: PoseEvaluation) -> ScanRecord:
        return self.add_scan(ScanRecord.from_evaluation(pose, evaluation))

    def delete_scan(self, scan_id: str) -> bool:
        scans = self.list_scans()
        kept = [s for s in scans if s.id != scan_id]
        if len(kept) == len(scans):
            return False
        self._write(kept)
        return True

    def stats(self) -> ScanStats:
        scans = self.list_scans()
        if not scans:
            return ScanStats()
        best = scans[0]
        for s in scans[1:]:
            if s.score > best.score:
                best = s
        days = [d for d in (s.scan_date() for s in scans) if d is not None]
        return ScanStats(
            total_scans=len(scans),
            average_score=round_half_up(sum(s.score for s in scans) / len(scans)),
            best_pose=best.pose,
            best_score=best.score,
            last_scan_date=scans[0].created_at,
            streak=_streak(days),
            history=[{"date": s.created_at, "score": s.score} for s in scans[:HISTORY_LIMIT]],
        )

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
        logger.info("Cleared scan history at %s", self.path)

    def import_data(self, text: str) -> bool:
        """Replace saved scans with those of an ``export_data`` payload.

        Invalid entries are skipped. Returns False, leaving history untouched,
        when the text is not JSON or holds no scan list.
        """
        try:
            payload = json.loads(text)
        except ValueError:
            return False
        raw = payload.get("scans") if isinstance(payload, dict) else payload
        if not isinstance(raw, list):
            return False
        scans: List[ScanRecord] = []
        for item in raw:
            try:
                scans.append(ScanRecord.model_validate(item))
            except ValidationError:
                continue
        scans.sort(key=lambda s: s.created_at, reverse=True)
        self._write(scans)
        logger.info("Imported %d scans into %s", len(scans), self.path)
        return True

    def export_data(self) -> str:
        return json.dumps(
            {
                "scans": [s.model_dump(mode="json") for s in self.list_scans()],
                "stats": self.stats().to_dict(),
                "export_date": datetime.now().isoformat(timespec="seconds"),
            },
            indent=2,
        )

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from .config import CoachConfig, load_config
from .poses.feedback import load_catalog
from .poses.library import get_pose, list_poses
from .storage.scan_history import ScanHistoryStore


def _load_keypoints(path: Path) -> List[Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("keypoints", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a keypoint list in {path}")
    return data


def _emit(payload: Any, out: Optional[str]) -> None:
    out_json = json.dumps(payload, indent=2, ensure_ascii=False, allow_nan=False)
    if out:
        Path(out).write_text(out_json, encoding="utf-8")
    print(out_json)


def _evaluate_and_report(cfg: CoachConfig, pose_key: str, keypoints: List[Any], args: argparse.Namespace) -> int:
    pose = get_pose(pose_key)
    evaluation = pose.evaluator(keypoints, catalog=load_catalog(cfg.locale))
    payload = evaluation.to_dict()
    payload["pose"] = pose.key
    if args.save:
        record = ScanHistoryStore(cfg.resolved_history_path()).record_evaluation(pose.key, evaluation)
        payload["scan_id"] = record.id
    _emit(payload, args.out)
    if evaluation.insufficient_data:
        print("[posecoach] Not enough visible keypoints to score the pose.", file=sys.stderr)
    return 0


def cmd_poses(cfg: CoachConfig, args: argparse.Namespace) -> int:
    for pose in list_poses():
        marker = "*" if pose.key == cfg.default_pose else " "
        print(f"{marker} {pose.key}: {pose.display}")
        for line in pose.guidance:
            print(f"    - {line}")
    return 0


def cmd_evaluate(cfg: CoachConfig, args: argparse.Namespace) -> int:
    keypoints = _load_keypoints(Path(args.keypoints))
    return _evaluate_and_report(cfg, args.pose or cfg.default_pose, keypoints, args)


def cmd_analyze(cfg: CoachConfig, args: argparse.Namespace) -> int:
    from .vision.pose import get_pose_detector, read_image_bgr

    frame = read_image_bgr(Path(args.image))
    detector = get_pose_detector(cfg.detector.model_copy(update={"static_image_mode": True}))
    keypoints = detector.estimate_bgr(frame)
    if keypoints is None:
        print("[posecoach] Pose estimation failed for this image.", file=sys.stderr)
        return 1
    return _evaluate_and_report(cfg, args.pose or cfg.default_pose, keypoints, args)


def cmd_history(cfg: CoachConfig, args: argparse.Namespace) -> int:
    store = ScanHistoryStore(cfg.resolved_history_path())
    if args.delete:
        if not store.delete_scan(args.delete):
            print(f"[posecoach] Scan not found: {args.delete}", file=sys.stderr)
            return 1
        print(f"[posecoach] Deleted scan {args.delete}")
        return 0
    if args.export:
        print(store.export_data())
        return 0
    if args.import_file:
        if not store.import_data(Path(args.import_file).read_text(encoding="utf-8")):
            print(f"[posecoach] Not a scan history export: {args.import_file}", file=sys.stderr)
            return 1
        print(f"[posecoach] Imported {len(store.list_scans())} scans")
        return 0
    if args.clear:
        store.clear()
        print("[posecoach] Scan history cleared")
        return 0
    stats = store.stats()
    if stats.total_scans == 0:
        print("No scans saved yet. Use 'evaluate --save' or 'analyze --save'.")
        return 0
    print("--- Scan history ---")
    for key in ("total_scans", "average_score", "best_pose", "best_score", "last_scan_date", "streak"):
        print(f"{key}: {getattr(stats, key)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="posecoach",
        description="Score bodybuilding poses from detected body keypoints.",
    )
    p.add_argument("--config", default=None, help="Path to a posecoach YAML config.")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_poses = sub.add_parser("poses", help="List available poses")
    p_poses.set_defaults(func=cmd_poses)

    p_eval = sub.add_parser("evaluate", help="Score a JSON keypoint file")
    p_eval.add_argument("--keypoints", required=True, help="JSON list of {name, x, y, score} (or {'keypoints': [...]})")
    p_eval.add_argument("--pose", default=None, help="Pose key (default from config)")
    p_eval.add_argument("--out", default=None, help="Optional output JSON path")
    p_eval.add_argument("--save", action="store_true", help="Append the result to scan history")
    p_eval.set_defaults(func=cmd_evaluate)

    p_an = sub.add_parser("analyze", help="Detect keypoints in an image and score them")
    p_an.add_argument("--image", required=True, help="Image file readable by OpenCV")
    p_an.add_argument("--pose", default=None, help="Pose key (default from config)")
    p_an.add_argument("--out", default=None, help="Optional output JSON path")
    p_an.add_argument("--save", action="store_true", help="Append the result to scan history")
    p_an.set_defaults(func=cmd_analyze)

    p_hist = sub.add_parser("history", help="Show scan history stats")
    p_hist.add_argument("--delete", default=None, metavar="SCAN_ID", help="Delete one saved scan")
    p_hist.add_argument("--export", action="store_true", help="Print all history as JSON")
    p_hist.add_argument("--import", dest="import_file", default=None, metavar="FILE", help="Restore history from an export")
    p_hist.add_argument("--clear", action="store_true", help="Delete all saved scans")
    p_hist.set_defaults(func=cmd_history)
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s | %(name)s | %(message)s",
    )
    try:
        cfg = load_config(Path(args.config) if args.config else None)
        return int(args.func(cfg, args))
    except (FileNotFoundError, KeyError, ValueError, RuntimeError) as e:
        print(f"[posecoach] {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())

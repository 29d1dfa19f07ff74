# facecount/replay.py
import os
import argparse
import logging

import numpy as np
import pandas as pd

from . import config
from .detector import ExpressionDetector
from .telemetry import CounterReporter
from .thresholds import (
    DEFAULT_THRESHOLDS,
    load_live_thresholds,
    load_thresholds,
    save_live_thresholds,
)

logger = logging.getLogger(__name__)


def landmark_columns(df: pd.DataFrame):
    """x0, y0, z0, x1, ... in landmark order; z columns are optional."""
    n = 0
    while "x%d" % n in df.columns and "y%d" % n in df.columns:
        n += 1
    has_z = n > 0 and all("z%d" % i in df.columns for i in range(n))
    cols = []
    for i in range(n):
        cols += ["x%d" % i, "y%d" % i] + (["z%d" % i] if has_z else [])
    return cols, n, (3 if has_z else 2)


def iter_frames(df: pd.DataFrame):
    """Yield one (N, 2|3) array per row, or None for rows with missing values (no face)."""
    cols, n, dims = landmark_columns(df)
    values = df[cols].to_numpy(dtype=np.float64)
    for row in values:
        if n == 0 or np.isnan(row).any():
            yield None
        else:
            yield row.reshape(n, dims)


def resolve_thresholds(path=None):
    if path:
        th = load_thresholds(path)
        if th is None:
            raise SystemExit("Could not load thresholds from %s" % path)
        return th
    return load_live_thresholds() or load_thresholds() or DEFAULT_THRESHOLDS


def run(df: pd.DataFrame, detector: ExpressionDetector, reporter: CounterReporter = None) -> pd.DataFrame:
    """Feed every frame to the detector; one metrics row per frame."""
    frame_ids = df["frame"].tolist() if "frame" in df.columns else list(range(len(df)))
    rows = []
    for frame_id, pts in zip(frame_ids, iter_frames(df)):
        metrics = detector.update(pts)
        row = {"frame": frame_id, "face": metrics is not None}
        row.update(metrics or {"ear": np.nan, "mar": np.nan, "brow": np.nan})
        row.update(detector.states())
        row.update(detector.counters())
        rows.append(row)
        if reporter is not None and metrics is not None:
            reporter.report(detector.counters())
    return pd.DataFrame(rows)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Replay recorded FaceMesh landmarks through the expression counters")
    parser.add_argument("--landmarks", type=str, required=True,
                        help="CSV with columns frame, x0, y0, z0, ... (one row per frame)")
    parser.add_argument("--thresholds", type=str, default=None,
                        help="thresholds JSON (default: live overrides, then %s)" % config.THRESHOLDS_PATH)
    parser.add_argument("--out", type=str, default=None, help="per-frame metrics CSV")
    parser.add_argument("--calib_frames", type=int, default=config.BROW_CALIB_FRAMES,
                        help="frames used for the brow baseline")
    parser.add_argument("--report", action="store_true",
                        help="relay counter changes to FACECOUNT_TELEMETRY_ENDPOINT")
    parser.add_argument("--save_live", action="store_true",
                        help="store the thresholds used as live overrides")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not os.path.exists(args.landmarks):
        raise SystemExit("Landmarks file not found: %s" % args.landmarks)
    df = pd.read_csv(args.landmarks)
    if landmark_columns(df)[1] < config.MIN_LANDMARKS:
        raise SystemExit("Expected at least %d landmarks per row (x0..y%d columns)" % (
            config.MIN_LANDMARKS, config.MIN_LANDMARKS - 1))

    th = resolve_thresholds(args.thresholds)
    if args.save_live:
        save_live_thresholds(th)
        logger.info("Live thresholds saved to %s", config.LIVE_THRESHOLDS_PATH)

    detector = ExpressionDetector(th, calib_frames=args.calib_frames)
    reporter = None
    if args.report:
        reporter = CounterReporter(background=False)
        if not reporter.enabled:
            logger.warning("--report given but FACECOUNT_TELEMETRY_ENDPOINT is empty")

    out = run(df, detector, reporter)

    if args.out:
        parent = os.path.dirname(args.out)
        if parent:
            os.makedirs(parent, exist_ok=True)
        out.to_csv(args.out, index=False)
        print(f"Metrics saved to: {args.out}")

    faces = int(out["face"].sum()) if len(out) else 0
    print(f"Frames: {len(out)} (face in {faces})")
    print(f"Blinks: {detector.blinks}  Mouth opens: {detector.mouth_opens}  Brow raises: {detector.brow_raises}")
    return detector.counters()


if __name__ == "__main__":
    main()

# facecount/calibration.py
import logging
from collections import namedtuple

from . import config
from .thresholds import is_number

logger = logging.getLogger(__name__)

BrowThresholds = namedtuple("BrowThresholds", ["raise_pct", "relax_pct", "min_frames"])


class BrowCalibrator:
    """
    Online neutral-face baseline for the eyebrow ratio.

    Every raw sample is smoothed with an EMA. The first `calib_needed` EMA values
    are averaged into the baseline and report a delta of 0; afterwards the delta
    is the relative deviation of the EMA from that baseline.
    """

    def __init__(self, alpha: float = config.BROW_EMA_ALPHA,
                 calib_needed: int = config.BROW_CALIB_FRAMES):
        self.alpha = alpha
        self.calib_needed = calib_needed
        self.reset()

    def reset(self):
        self.ema = None
        self.baseline = None
        self.calib_frames = 0

    @property
    def calibrating(self) -> bool:
        return self.calib_frames < self.calib_needed

    def update(self, raw: float) -> float:
        """Feed one raw ratio, return the baseline-relative delta (0 while calibrating)."""
        if self.ema is None:
            self.ema = raw
        else:
            self.ema = self.alpha * raw + (1.0 - self.alpha) * self.ema

        if self.calibrating:
            n = self.calib_frames
            if self.baseline is None:
                self.baseline = self.ema
            else:
                self.baseline = (self.baseline * n + self.ema) / (n + 1)
            self.calib_frames += 1
            if not self.calibrating:
                logger.info("Brow baseline calibrated: %.4f (%d frames)",
                            self.baseline, self.calib_frames)
            return 0.0

        if self.baseline is None:
            # empty calibration window
            self.baseline = self.ema

        if abs(self.baseline) <= config.BASELINE_EPS:
            return 0.0
        return (self.ema - self.baseline) / self.baseline


def resolve_brow_thresholds(brow_cfg, baseline) -> BrowThresholds:
    """
    Effective raise/relax thresholds as fractions of the baseline:
    - percentage pair if present,
    - else legacy absolute pair converted against a known baseline,
    - else the built-in defaults.
    """
    b = brow_cfg if isinstance(brow_cfg, dict) else {}
    min_frames = b.get("min_frames")
    if min_frames is None:
        min_frames = config.BROW_MIN_FRAMES_DEFAULT

    if is_number(b.get("raise_threshold_pct")) and is_number(b.get("relax_threshold_pct")):
        return BrowThresholds(b["raise_threshold_pct"], b["relax_threshold_pct"], min_frames)

    if (is_number(b.get("raise_threshold")) and is_number(b.get("relax_threshold"))
            and baseline):
        raise_pct = (b["raise_threshold"] - baseline) / baseline
        relax_pct = (b["relax_threshold"] - baseline) / baseline
        return BrowThresholds(raise_pct, relax_pct, min_frames)

    return BrowThresholds(config.BROW_RAISE_PCT_DEFAULT, config.BROW_RELAX_PCT_DEFAULT, min_frames)

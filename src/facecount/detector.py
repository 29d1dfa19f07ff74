# facecount/detector.py
import logging

from . import config
from .calibration import BrowCalibrator, resolve_brow_thresholds
from .features import (
    as_points,
    combined_ear,
    eyebrow_raw_ratio,
    mouth_aspect_ratio,
)
from .hysteresis import EdgePolicy, HysteresisChannel
from .thresholds import clone_thresholds, is_number

logger = logging.getLogger(__name__)


def _below(value: float, threshold) -> bool:
    return is_number(threshold) and value < threshold


def _above(value: float, threshold) -> bool:
    return is_number(threshold) and value > threshold


def _section(th, name: str) -> dict:
    sec = th.get(name) if isinstance(th, dict) else None
    return sec if isinstance(sec, dict) else {}


class ExpressionDetector:
    """
    Per-frame blink / mouth-cycle / brow-raise counter.

    Feed one frame of FaceMesh landmarks per call to update(). Counters and
    state flags are exposed as read-only attributes for display; the return
    value carries the instantaneous EAR, MAR and brow delta.

    th = {
      "EAR":  {"close_threshold", "open_threshold", "min_frames"},
      "MAR":  {"open_threshold", "close_threshold", "min_frames"},
      "BROW": {"raise_threshold_pct", "relax_threshold_pct", "min_frames"}  # or legacy absolute
    }
    """

    def __init__(self, th, ema_alpha: float = config.BROW_EMA_ALPHA,
                 calib_frames: int = config.BROW_CALIB_FRAMES):
        self._th = clone_thresholds(th)

        self._eye = HysteresisChannel(EdgePolicy.COMPLETED_CYCLE)
        self._mouth = HysteresisChannel(EdgePolicy.COMPLETED_CYCLE)
        self._brow = HysteresisChannel(EdgePolicy.RISING_EDGE)
        self._calib = BrowCalibrator(alpha=ema_alpha, calib_needed=calib_frames)

    # -- configuration -------------------------------------------------------

    @property
    def thresholds(self):
        return clone_thresholds(self._th)

    def set_thresholds(self, new_th):
        """Hot-swap thresholds; counters, states and calibration are kept."""
        self._th = clone_thresholds(new_th)

    def reset(self):
        """Clear counters, states and brow calibration. Thresholds are kept."""
        self._eye.reset()
        self._mouth.reset()
        self._brow.reset()
        self._calib.reset()
        logger.debug("Detector reset; brow calibration restarts")

    # -- read-only state -----------------------------------------------------

    @property
    def blinks(self) -> int:
        return self._eye.count

    @property
    def mouth_opens(self) -> int:
        return self._mouth.count

    @property
    def brow_raises(self) -> int:
        return self._brow.count

    @property
    def eye_is_closed(self) -> bool:
        return self._eye.active

    @property
    def mouth_is_open(self) -> bool:
        return self._mouth.active

    @property
    def brow_is_raised(self) -> bool:
        return self._brow.active

    @property
    def brow_ready(self) -> bool:
        return self._brow.ready

    @property
    def eye_closed_frames(self) -> int:
        return self._eye.active_frames

    @property
    def eye_open_frames(self) -> int:
        return self._eye.inactive_frames

    @property
    def mouth_open_frames(self) -> int:
        return self._mouth.active_frames

    @property
    def mouth_closed_frames(self) -> int:
        return self._mouth.inactive_frames

    @property
    def brow_up_frames(self) -> int:
        return self._brow.active_frames

    @property
    def brow_relax_frames(self) -> int:
        return self._brow.inactive_frames

    @property
    def brow_baseline(self):
        return self._calib.baseline

    @property
    def is_calibrating(self) -> bool:
        return self._calib.calibrating

    def counters(self) -> dict:
        return {
            "blinks": self.blinks,
            "mouth_opens": self.mouth_opens,
            "brow_raises": self.brow_raises,
        }

    def states(self) -> dict:
        return {
            "eye_is_closed": self.eye_is_closed,
            "mouth_is_open": self.mouth_is_open,
            "brow_is_raised": self.brow_is_raised,
        }

    # -- per frame -----------------------------------------------------------

    def update(self, landmarks):
        """
        Process one frame (>= 468 landmarks). Returns {"ear", "mar", "brow"},
        or None without touching any state if the frame is missing or short.
        """
        if landmarks is None:
            return None
        pts = as_points(landmarks)
        if pts.shape[0] < config.MIN_LANDMARKS:
            return None

        # eyes: blink counted on confirmed closed -> open
        ear = combined_ear(pts)
        eye_th = _section(self._th, "EAR")
        if self._eye.step(_below(ear, eye_th.get("close_threshold")),
                          _above(ear, eye_th.get("open_threshold")),
                          eye_th.get("min_frames")):
            logger.debug("Blink #%d (EAR %.3f)", self.blinks, ear)

        # mouth: one event per confirmed open -> closed cycle
        mar = mouth_aspect_ratio(pts)
        mouth_th = _section(self._th, "MAR")
        if self._mouth.step(_above(mar, mouth_th.get("open_threshold")),
                            _below(mar, mouth_th.get("close_threshold")),
                            mouth_th.get("min_frames")):
            logger.debug("Mouth open #%d (MAR %.3f)", self.mouth_opens, mar)

        # brows: inert until the baseline is calibrated
        was_calibrating = self._calib.calibrating
        brow = self._calib.update(eyebrow_raw_ratio(pts))
        if was_calibrating:
            return {"ear": ear, "mar": mar, "brow": 0.0}

        bt = resolve_brow_thresholds(_section(self._th, "BROW"), self._calib.baseline)
        if self._brow.step(brow > bt.raise_pct, brow < bt.relax_pct, bt.min_frames):
            logger.debug("Brow raise #%d (delta %.3f)", self.brow_raises, brow)

        return {"ear": ear, "mar": mar, "brow": brow}

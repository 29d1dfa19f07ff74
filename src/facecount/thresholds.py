# facecount/thresholds.py
"""
Thresholds configuration: loading, persistence of live overrides, validation.

Expected shape:
    {
      "EAR":  {"close_threshold", "open_threshold", "min_frames"},
      "MAR":  {"open_threshold", "close_threshold", "min_frames"},
      "BROW": {"raise_threshold_pct", "relax_threshold_pct", "min_frames"}
              # or legacy absolute {"raise_threshold", "relax_threshold", "min_frames"}
    }

Missing fields are not fatal at runtime: the affected comparison is simply
false and the channel stays inert. validate_thresholds() reports them so the
loader can warn about it.
"""

import copy
import json
import logging
import numbers
import os
import tempfile
from typing import List, Optional

import numpy as np

from . import config

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLDS = {
    "EAR": {"close_threshold": 0.21, "open_threshold": 0.26, "min_frames": 2},
    "MAR": {"open_threshold": 0.45, "close_threshold": 0.30, "min_frames": 2},
    "BROW": {
        "raise_threshold_pct": config.BROW_RAISE_PCT_DEFAULT,
        "relax_threshold_pct": config.BROW_RELAX_PCT_DEFAULT,
        "min_frames": 3,
    },
}


def is_number(value) -> bool:
    # numbers.Real also covers numpy scalars (np.int64, np.float32)
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def clone_thresholds(th):
    """Structural copy; the result shares nothing with the caller's object."""
    return copy.deepcopy(th)


def validate_thresholds(th) -> List[str]:
    """Return human-readable problems with a thresholds dict (empty list = OK)."""
    if not isinstance(th, dict):
        return ["thresholds must be an object, got %s" % type(th).__name__]

    problems = []

    def check_pair(channel, cfg, low_key, high_key):
        low, high = cfg.get(low_key), cfg.get(high_key)
        for key, val in ((low_key, low), (high_key, high)):
            if not is_number(val):
                problems.append("%s.%s missing or not a number" % (channel, key))
        if is_number(low) and is_number(high) and low >= high:
            problems.append("%s.%s (%s) should be below %s.%s (%s)" % (
                channel, low_key, low, channel, high_key, high))

    for channel, low_key, high_key in (
        ("EAR", "close_threshold", "open_threshold"),
        ("MAR", "close_threshold", "open_threshold"),
    ):
        cfg = th.get(channel)
        if not isinstance(cfg, dict):
            problems.append("%s section missing" % channel)
            continue
        check_pair(channel, cfg, low_key, high_key)
        if not is_number(cfg.get("min_frames")):
            problems.append("%s.min_frames missing or not a number" % channel)

    brow = th.get("BROW")
    if not isinstance(brow, dict):
        # detector falls back to defaults for the brow channel
        return problems
    if "raise_threshold_pct" in brow or "relax_threshold_pct" in brow:
        check_pair("BROW", brow, "relax_threshold_pct", "raise_threshold_pct")
    elif "raise_threshold" in brow or "relax_threshold" in brow:
        check_pair("BROW", brow, "relax_threshold", "raise_threshold")
    if "min_frames" in brow and not is_number(brow["min_frames"]):
        problems.append("BROW.min_frames not a number")
    return problems


def _read_json(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_thresholds(path: Optional[str] = None):
    """
    Load thresholds from JSON (config.THRESHOLDS_PATH by default).
    Returns None if the file is missing or unreadable; the caller picks the fallback.
    """
    path = path or config.THRESHOLDS_PATH
    try:
        th = _read_json(path)
    except FileNotFoundError:
        logger.warning("Thresholds file not found: %s", path)
        return None
    except (OSError, ValueError) as e:
        logger.warning("Could not load thresholds from %s: %s", path, e)
        return None

    for problem in validate_thresholds(th):
        logger.warning("Thresholds %s: %s", path, problem)
    return th


def _json_default(value):
    if isinstance(value, np.generic):
        return value.item()
    raise TypeError("%s is not JSON serializable" % type(value).__name__)


def save_live_thresholds(th, path: Optional[str] = None) -> None:
    """Persist operator-tuned thresholds so the next session starts from them."""
    path = path or config.LIVE_THRESHOLDS_PATH
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".live_", suffix=".json", dir=parent or ".")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(th, f, indent=2, default=_json_default)
        os.replace(tmp, path)
    except Exception:
        os.remove(tmp)
        raise


def load_live_thresholds(path: Optional[str] = None):
    """Previously saved live thresholds, or None if absent or corrupt."""
    path = path or config.LIVE_THRESHOLDS_PATH
    if not os.path.exists(path):
        return None
    try:
        return _read_json(path)
    except (OSError, ValueError) as e:
        logger.warning("Ignoring corrupt live thresholds %s: %s", path, e)
        return None

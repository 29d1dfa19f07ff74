# facecount/config.py
import os

_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# FaceMesh emits 468 points (478 with refined iris); anything shorter is not a face
MIN_LANDMARKS = 468

# Eyebrow smoothing and calibration
BROW_EMA_ALPHA = 0.30      # higher = more responsive, noisier
BROW_CALIB_FRAMES = 25     # ~0.8 s at ~30 fps, neutral face expected

# Fallbacks when BROW thresholds are absent or unusable (fraction of baseline)
BROW_RAISE_PCT_DEFAULT = 0.08
BROW_RELAX_PCT_DEFAULT = 0.04
BROW_MIN_FRAMES_DEFAULT = 2

# Floors for degenerate geometry
EYE_WIDTH_EPS = 1e-6
BASELINE_EPS = 1e-6

# Thresholds JSON shipped with the repo, and operator overrides saved at runtime
THRESHOLDS_PATH = os.getenv(
    "FACECOUNT_THRESHOLDS", os.path.join(_ROOT, "config", "thresholds.json")
)
LIVE_THRESHOLDS_PATH = os.getenv(
    "FACECOUNT_LIVE_THRESHOLDS",
    os.path.join(os.path.expanduser("~"), ".facecount", "live_thresholds.json"),
)

# Counter relay; empty endpoint disables reporting
TELEMETRY_ENDPOINT = os.getenv("FACECOUNT_TELEMETRY_ENDPOINT", "").strip().rstrip("/")
TELEMETRY_TIMEOUT_SEC = float(os.getenv("FACECOUNT_TELEMETRY_TIMEOUT", "5"))

from .detector import ExpressionDetector
from .features import (
    as_points,
    combined_ear,
    eye_aspect_ratio,
    eyebrow_raw_ratio,
    mouth_aspect_ratio,
)
from .telemetry import CounterReporter
from .thresholds import DEFAULT_THRESHOLDS, load_thresholds

__version__ = "0.1.0"

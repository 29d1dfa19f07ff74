# facecount/features.py
import numpy as np

from .config import EYE_WIDTH_EPS

# MediaPipe FaceMesh landmark indices (468-point topology).
LEFT_EYE = {
    "p1": 33,   # outer corner
    "p4": 133,  # inner corner
    "p2": 160,  # upper
    "p6": 144,  # lower
    "p3": 158,  # upper
    "p5": 153,  # lower
}
RIGHT_EYE = {
    "p1": 263,  # outer corner
    "p4": 362,  # inner corner
    "p2": 387,  # upper
    "p6": 373,  # lower
    "p3": 385,  # upper
    "p5": 380,  # lower
}

MOUTH_LEFT, MOUTH_RIGHT = 61, 291
LIP_TOP, LIP_BOTTOM = 13, 14

LEFT_BROW = (70, 63, 105)
RIGHT_BROW = (336, 296, 334)


def as_points(landmarks) -> np.ndarray:
    """
    Normalize one frame of landmarks to an (N, 3) float array.

    Accepts an (N, 2) / (N, 3) array, a list of (x, y[, z]) tuples, a list of
    objects with .x/.y/.z (MediaPipe NormalizedLandmark), a list of dicts, or a
    NormalizedLandmarkList (anything with a .landmark sequence). Missing z is 0.
    """
    if hasattr(landmarks, "landmark"):
        landmarks = landmarks.landmark

    if isinstance(landmarks, np.ndarray):
        pts = landmarks.astype(np.float64, copy=False)
    else:
        seq = list(landmarks)
        if not seq:
            return np.zeros((0, 3), dtype=np.float64)
        first = seq[0]
        if isinstance(first, dict):
            pts = np.array([(p["x"], p["y"], p.get("z") or 0.0) for p in seq], dtype=np.float64)
        elif hasattr(first, "x"):
            pts = np.array([(p.x, p.y, getattr(p, "z", 0.0) or 0.0) for p in seq], dtype=np.float64)
        else:
            pts = np.array(seq, dtype=np.float64)

    if pts.ndim != 2 or pts.shape[1] < 2:
        return np.zeros((0, 3), dtype=np.float64)
    if pts.shape[1] == 2:
        pts = np.hstack([pts, np.zeros((pts.shape[0], 1))])
    return pts[:, :3]


def _dist(a, b) -> float:
    # z ignored: distances live on the image plane
    return float(np.linalg.norm(a[:2] - b[:2]))


def eye_aspect_ratio(landmarks: np.ndarray, is_left: bool = True) -> float:
    """
    landmarks: (N, 3) array from as_points().
    EAR = (||p2-p6|| + ||p3-p5||) / (2*||p1-p4||); low = eye closed.
    """
    eye = LEFT_EYE if is_left else RIGHT_EYE
    p1 = landmarks[eye["p1"]]
    p4 = landmarks[eye["p4"]]
    p2 = landmarks[eye["p2"]]
    p6 = landmarks[eye["p6"]]
    p3 = landmarks[eye["p3"]]
    p5 = landmarks[eye["p5"]]

    denom = 2.0 * _dist(p1, p4)
    if denom <= 1e-6:
        return 0.0
    return (_dist(p2, p6) + _dist(p3, p5)) / denom


def combined_ear(landmarks: np.ndarray) -> float:
    """Mean EAR of the left and right eye."""
    l = eye_aspect_ratio(landmarks, True)
    r = eye_aspect_ratio(landmarks, False)
    return (l + r) / 2.0


def mouth_aspect_ratio(landmarks: np.ndarray) -> float:
    """MAR = lip gap / mouth width; high = mouth open."""
    horizontal = _dist(landmarks[MOUTH_LEFT], landmarks[MOUTH_RIGHT])
    if horizontal <= 1e-6:
        return 0.0
    return _dist(landmarks[LIP_TOP], landmarks[LIP_BOTTOM]) / horizontal


def _eye_center_and_width(landmarks: np.ndarray, is_left: bool):
    eye = LEFT_EYE if is_left else RIGHT_EYE
    outer = landmarks[eye["p1"]]
    inner = landmarks[eye["p4"]]
    center = (outer[:2] + inner[:2]) / 2.0
    return center, max(_dist(outer, inner), EYE_WIDTH_EPS)


def eyebrow_raw_ratio(landmarks: np.ndarray) -> float:
    """
    Brow height above the eye, normalized by eye width, averaged over both sides.
    Image y grows downwards, so a larger value means the brow sits higher.
    """
    brow_l_y = float(np.mean(landmarks[list(LEFT_BROW), 1]))
    brow_r_y = float(np.mean(landmarks[list(RIGHT_BROW), 1]))

    eye_l_c, eye_l_w = _eye_center_and_width(landmarks, True)
    eye_r_c, eye_r_w = _eye_center_and_width(landmarks, False)

    left_norm = (eye_l_c[1] - brow_l_y) / eye_l_w
    right_norm = (eye_r_c[1] - brow_r_y) / eye_r_w
    return float((left_norm + right_norm) / 2.0)

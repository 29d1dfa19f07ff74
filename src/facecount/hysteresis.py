# facecount/hysteresis.py
from enum import Enum

from .thresholds import is_number


class EdgePolicy(Enum):
    # count when a confirmed activation is released (blink, mouth cycle)
    COMPLETED_CYCLE = "completed_cycle"
    # count once when activation is confirmed, re-armed only after release (brow)
    RISING_EDGE = "rising_edge"


def reached(frames: int, min_frames) -> bool:
    """frames >= min_frames, False when min_frames is missing or not a number."""
    if not is_number(min_frames):
        return False
    return frames >= min_frames


class HysteresisChannel:
    """
    Debounced two-state machine over a scalar signal.

    The caller evaluates the activate / deactivate predicates for the frame
    (activate wins if both hold) and passes them to step(). A state flips only
    after min_frames consecutive frames on the matching side.

    COMPLETED_CYCLE: the activate accumulator is kept while deactivating and the
    dead zone touches nothing; count += 1 on the confirmed release.
    RISING_EDGE: each side clears the other accumulator, the dead zone clears
    both; count += 1 on the confirmed activation if armed, re-armed on release.
    """

    def __init__(self, policy: EdgePolicy):
        self.policy = policy
        self.reset()

    def reset(self):
        self.count = 0
        self.active = False
        self.active_frames = 0
        self.inactive_frames = 0
        self.ready = True

    def step(self, activate: bool, deactivate: bool, min_frames) -> bool:
        """Advance one frame. Returns True if an event was counted."""
        if activate:
            return self._on_activate(min_frames)
        if deactivate:
            return self._on_deactivate(min_frames)
        if self.policy is EdgePolicy.RISING_EDGE:
            self.active_frames = 0
            self.inactive_frames = 0
        return False

    def _on_activate(self, min_frames) -> bool:
        self.active_frames += 1
        self.inactive_frames = 0
        if self.active or not reached(self.active_frames, min_frames):
            return False

        self.active = True
        if self.policy is EdgePolicy.RISING_EDGE and self.ready:
            self.count += 1
            self.ready = False
            return True
        return False

    def _on_deactivate(self, min_frames) -> bool:
        self.inactive_frames += 1
        if self.policy is EdgePolicy.RISING_EDGE:
            self.active_frames = 0
        if not self.active or not reached(self.inactive_frames, min_frames):
            return False

        self.active = False
        if self.policy is EdgePolicy.RISING_EDGE:
            self.ready = True
            return False

        self.count += 1
        self.active_frames = 0
        return True

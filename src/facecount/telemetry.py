# facecount/telemetry.py
import logging
import threading
from datetime import datetime, timezone

import requests

from . import config

logger = logging.getLogger(__name__)

_KEYS = ("blinks", "brow_raises", "mouth_opens")


def build_payload(counters: dict) -> dict:
    payload = {k: int(counters.get(k, 0)) for k in _KEYS}
    payload["timestamp"] = datetime.now(timezone.utc).isoformat()
    return payload


class CounterReporter:
    """
    Relays counter snapshots to a remote endpoint, one POST per change.

    report() never blocks the frame loop when background=True and never raises:
    a snapshot equal to the last relayed one, or any call while a request is
    still in flight, is dropped. Delivery is best effort.
    """

    def __init__(self, endpoint: str = None, timeout: float = None, background: bool = True):
        self.endpoint = config.TELEMETRY_ENDPOINT if endpoint is None else endpoint
        self.timeout = config.TELEMETRY_TIMEOUT_SEC if timeout is None else timeout
        self.background = background
        self._last = {k: 0 for k in _KEYS}
        self._sending = False
        self._lock = threading.Lock()
        self._thread = None

    @property
    def enabled(self) -> bool:
        return bool(self.endpoint)

    @property
    def in_flight(self) -> bool:
        return self._sending

    def report(self, counters: dict) -> bool:
        """Dispatch a POST if counters changed and nothing is in flight. Returns True if sent."""
        if not self.enabled:
            return False
        snapshot = {k: int(counters.get(k, 0)) for k in _KEYS}
        with self._lock:
            if self._sending or snapshot == self._last:
                return False
            self._sending = True

        if self.background:
            self._thread = threading.Thread(target=self._send, args=(snapshot,), daemon=True)
            self._thread.start()
        else:
            self._send(snapshot)
        return True

    def wait(self, timeout: float = None) -> None:
        """Join the in-flight background request, if any."""
        t = self._thread
        if t is not None:
            t.join(timeout)

    def _send(self, snapshot: dict) -> None:
        try:
            resp = requests.post(self.endpoint, json=build_payload(snapshot), timeout=self.timeout)
            if not resp.ok:
                logger.warning("Counter report failed: HTTP %s %s", resp.status_code, resp.text[:200])
        except requests.RequestException as e:
            logger.warning("Counter report network error: %s", e)
        finally:
            with self._lock:
                self._last = snapshot
                self._sending = False

"""
Exam countdown - fires once when the exam time runs out.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class ExamCountdown:
    """
    Cancellable one-shot countdown backed by ``threading.Timer``.

    The callback runs on the timer thread; the session it drives is
    responsible for its own locking.
    """

    def __init__(self, seconds: float, on_expire: Callable[[], None]):
        if seconds < 0:
            raise ValueError(f"Countdown seconds cannot be negative: {seconds}")
        self.seconds = seconds
        self.on_expire = on_expire
        self._timer: Optional[threading.Timer] = None
        self._started_at: Optional[float] = None
        self._cancelled = False
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        with self._lock:
            return self._timer is not None and self._timer.is_alive() and not self._cancelled

    def start(self) -> None:
        with self._lock:
            if self._timer is not None:
                return
            self._started_at = time.monotonic()
            self._timer = threading.Timer(self.seconds, self._fire)
            self._timer.daemon = True
            self._timer.start()
        logger.debug("Countdown started (%ss)", self.seconds)

    def cancel(self) -> None:
        """Stop the countdown. Safe to call repeatedly or before start()."""
        with self._lock:
            self._cancelled = True
            if self._timer is not None:
                self._timer.cancel()

    def remaining(self) -> float:
        """Seconds left, 0 when expired or cancelled."""
        with self._lock:
            if self._cancelled:
                return 0.0
            if self._started_at is None:
                return float(self.seconds)
            elapsed = time.monotonic() - self._started_at
        return max(0.0, self.seconds - elapsed)

    def _fire(self) -> None:
        with self._lock:
            if self._cancelled:
                return
        logger.info("Exam countdown reached zero")
        try:
            self.on_expire()
        except Exception:
            logger.exception("Countdown expiry callback failed")

"""
Elapsed-time recorder for the primitives.

A process-wide optional timer handle. When enabled, every public primitive
brackets its device-side work (host to device copies excluded) with
`gpu_timer()`, and the CPU oracle brackets its computation with `cpu_timer()`.
When no timer is enabled the brackets are no-ops.

Starting a timer that is already running raises, and the context managers
stop the timer on every exit path, including early returns and exceptions.

Usage:
    import pyfastscan as ps

    timer = ps.timing.enable_timer()
    ps.scan.efficient.scan(n, out, data)
    print(timer.last_ms("gpu"))
    ps.timing.disable_timer()

Author: B.G.
"""

import contextlib
import time

from .general_algorithms import sync


class PerformanceTimer:
    """
    Start/stop elapsed-time recorder with one active measurement at a time.

    Attributes:
        active: Kind of the running measurement ("gpu", "cpu") or None
        history: Dictionary kind -> list of elapsed milliseconds

    Author: B.G.
    """

    def __init__(self):
        self.active = None
        self._t0 = 0.0
        self.history = {"gpu": [], "cpu": []}

    def start(self, kind: str):
        """
        Start a measurement.

        Raises:
            RuntimeError: If a measurement is already running

        Author: B.G.
        """
        if self.active is not None:
            raise RuntimeError(f"Timer already started ({self.active})")
        if kind == "gpu":
            sync()
        self.active = kind
        self._t0 = time.perf_counter()

    def stop(self) -> float:
        """
        Stop the running measurement and record it.

        Returns:
            float: Elapsed time in milliseconds

        Raises:
            RuntimeError: If no measurement is running
            DeviceExecutionError: If a pending dispatch failed (gpu kind)

        Author: B.G.
        """
        if self.active is None:
            raise RuntimeError("Timer not started")
        kind = self.active
        try:
            if kind == "gpu":
                sync()
        finally:
            elapsed = (time.perf_counter() - self._t0) * 1e3
            self.active = None
            self.history.setdefault(kind, []).append(elapsed)
        return elapsed

    @contextlib.contextmanager
    def measure(self, kind: str):
        self.start(kind)
        try:
            yield self
        finally:
            self.stop()

    def last_ms(self, kind: str = "gpu"):
        values = self.history.get(kind)
        return values[-1] if values else None


# Global timer handle, None when timing is disabled
_timer = None


def enable_timer() -> PerformanceTimer:
    """Install (or return) the process-wide timer."""
    global _timer
    if _timer is None:
        _timer = PerformanceTimer()
    return _timer


def disable_timer():
    global _timer
    _timer = None


def get_timer():
    return _timer


def gpu_timer():
    """Bracket device-side work, no-op when timing is disabled."""
    if _timer is None:
        return contextlib.nullcontext()
    return _timer.measure("gpu")


def cpu_timer():
    """Bracket host-side oracle work, no-op when timing is disabled."""
    if _timer is None:
        return contextlib.nullcontext()
    return _timer.measure("cpu")

"""
SharedBooks Time - Public API
=============================
Injectable clock used for audit timestamps.
"""

from sharedbooks.time.clock import Clock, FixedClock, SystemClock

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
]

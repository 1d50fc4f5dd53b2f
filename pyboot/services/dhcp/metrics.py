"""Shared DHCP service metrics.

Module-level objects intended to be shared across the app.
"""

from collections import Counter
from threading import RLock

from pyboot.libs.libs import Metrics

dhcp_metrics = Metrics()


class DHCPStats:
    """Packet counters: received per type, rejected per reason, sent."""

    _lock = RLock()
    _counters: Counter = Counter()

    @classmethod
    def increment(cls, key: str, count: int = 1):
        with cls._lock:
            cls._counters[key] += count

    @classmethod
    def get(cls, key: str) -> int:
        with cls._lock:
            return cls._counters[key]

    @classmethod
    def snapshot(cls) -> dict[str, int]:
        with cls._lock:
            return dict(cls._counters)

    @classmethod
    def clear(cls):
        with cls._lock:
            cls._counters.clear()

from collections import deque
from functools import wraps
from math import ceil
from threading import RLock
from time import perf_counter
from typing import Any, Callable

from pyboot.config.config import config

LIBS_CONF = config.get("libs")
METRICS_MAX_SIZE = int(LIBS_CONF.get("metrics_max_size"))
DEFAULT_PERCENTILES: list[int] = [5, 25, 50, 75, 95, 99]


class Metrics:
    """Store timing samples and calculate percentiles (thread-safe)."""

    def __init__(self, max_size: int = METRICS_MAX_SIZE):
        """Initialize with max number of samples, oldest dropped first."""
        self._lock = RLock()
        self._samples: deque[float] = deque(maxlen=max_size)

    def add_sample(self, duration: float) -> None:
        """Add a timing sample in milliseconds."""
        with self._lock:
            self._samples.append(duration)

    def get_count(self) -> int:
        """Return number of samples."""
        with self._lock:
            return len(self._samples)

    def get_percentile(self, percentile: float) -> float:
        """Nearest-rank percentile of the stored samples."""
        if not (0 <= percentile <= 100):
            raise ValueError("Percentile must be between 0 and 100.")
        with self._lock:
            if not self._samples:
                return 0.0
            _sorted = sorted(self._samples)
            _rank = max(1, ceil(percentile / 100 * len(_sorted)))
            return float(_sorted[_rank - 1])

    def get_stats(self, percentiles: list[int] = DEFAULT_PERCENTILES) -> dict:
        """Return sample count plus one `pNN` entry per percentile."""
        with self._lock:
            _stats: dict[str, float] = {"count": len(self._samples)}
            for _percentile in percentiles:
                _stats[f"p{_percentile}"] = self.get_percentile(_percentile)
            return _stats

    def clear(self):
        """Clear samples."""
        with self._lock:
            self._samples.clear()


def measure_latency_decorator(metrics: Metrics):
    """Decorator to measure execution time and add to metrics object.

    Args:
        metrics: Metrics instance.

    """

    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            start: float = perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                metrics.add_sample((perf_counter() - start) * 1000)

        return wrapper

    return decorator

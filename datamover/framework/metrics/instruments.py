"""
Metric instruments: Meter and Timer

Thread-safe, in-process instruments minted by a MetricContext.
"""

import threading
import time
from collections import deque
from contextlib import contextmanager
from datetime import datetime

from .models import MeterSnapshot, TimerSnapshot

# Number of recent durations kept for latency percentiles
DEFAULT_RESERVOIR_SIZE = 10000


class Meter:
    """Counts events and their mean rate since creation."""

    def __init__(self, name: str):
        self.name = name
        self._count = 0
        self._start_time = time.perf_counter()
        self._lock = threading.Lock()

    def mark(self, n: int = 1):
        """Record n events."""
        with self._lock:
            self._count += n

    @property
    def count(self) -> int:
        return self._count

    @property
    def mean_rate(self) -> float:
        """Events per second since the meter was created."""
        elapsed = time.perf_counter() - self._start_time
        return self._count / elapsed if elapsed > 0 else 0.0

    def snapshot(self, context_name: str = "", tags: dict | None = None) -> MeterSnapshot:
        return MeterSnapshot(
            name=self.name,
            context_name=context_name,
            tags=dict(tags or {}),
            timestamp=datetime.now(),
            count=self.count,
            mean_rate=self.mean_rate,
        )

    def __repr__(self) -> str:
        return f"Meter(name={self.name!r}, count={self._count})"


class Timer:
    """Records durations (seconds) and summarizes recent latencies."""

    def __init__(self, name: str, reservoir_size: int = DEFAULT_RESERVOIR_SIZE):
        if reservoir_size < 1:
            raise ValueError(f"reservoir_size must be >= 1, got {reservoir_size}")
        self.name = name
        self._count = 0
        self._total_time = 0.0
        self._samples: deque[float] = deque(maxlen=reservoir_size)
        self._lock = threading.Lock()

    def update(self, duration: float):
        """Record one duration in seconds."""
        if duration < 0:
            raise ValueError(f"duration must be non-negative, got {duration}")
        with self._lock:
            self._count += 1
            self._total_time += duration
            self._samples.append(duration)

    def update_ns(self, duration_ns: int):
        """Record one duration given in nanoseconds."""
        self.update(duration_ns / 1e9)

    @contextmanager
    def time(self):
        """Context manager that records the duration of its body.

        Example:
            with timer.time():
                do_work()
        """
        start_time = time.perf_counter()
        try:
            yield self
        finally:
            self.update(time.perf_counter() - start_time)

    @property
    def count(self) -> int:
        return self._count

    @property
    def total_time(self) -> float:
        return self._total_time

    def snapshot(self, context_name: str = "", tags: dict | None = None) -> TimerSnapshot:
        """Summarize recorded durations.

        Returns:
            TimerSnapshot with zeroed statistics if nothing was recorded
        """
        with self._lock:
            count = self._count
            total_time = self._total_time
            samples = sorted(self._samples)

        if samples:
            mean = sum(samples) / len(samples)
            p50 = samples[int(len(samples) * 0.50)]
            p95 = samples[int(len(samples) * 0.95)]
            p99 = samples[int(len(samples) * 0.99)]
            min_duration, max_duration = samples[0], samples[-1]
        else:
            mean = p50 = p95 = p99 = min_duration = max_duration = 0.0

        return TimerSnapshot(
            name=self.name,
            context_name=context_name,
            tags=dict(tags or {}),
            timestamp=datetime.now(),
            count=count,
            total_time=total_time,
            mean=mean,
            min=min_duration,
            max=max_duration,
            p50=p50,
            p95=p95,
            p99=p99,
        )

    def __repr__(self) -> str:
        return f"Timer(name={self.name!r}, count={self._count})"

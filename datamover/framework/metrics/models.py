"""
Metrics snapshot models

Immutable point-in-time readings of meters and timers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class MeterSnapshot:
    """Point-in-time reading of a meter.

    Attributes:
        name: Instrument name (e.g. "datamover.converter.records.in")
        context_name: Name of the metric context that owns the meter
        tags: Tags of the owning metric context
        timestamp: When the snapshot was taken
        count: Total number of marked events
        mean_rate: Events per second since the meter was created
    """

    name: str
    context_name: str
    timestamp: datetime
    count: int
    mean_rate: float
    tags: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "context_name": self.context_name,
            "tags": self.tags,
            "timestamp": self.timestamp,
            "count": self.count,
            "mean_rate": self.mean_rate,
        }


@dataclass(frozen=True)
class TimerSnapshot:
    """Point-in-time reading of a timer.

    Durations are in seconds. Latency statistics are computed over the
    timer's reservoir of recent samples, while count and total_time cover
    every sample ever recorded.

    Attributes:
        name: Instrument name (e.g. "datamover.converter.conversion.time")
        context_name: Name of the metric context that owns the timer
        tags: Tags of the owning metric context
        timestamp: When the snapshot was taken
        count: Number of recorded durations
        total_time: Sum of all recorded durations
        mean: Mean duration
        min: Minimum duration
        max: Maximum duration
        p50: 50th percentile duration
        p95: 95th percentile duration
        p99: 99th percentile duration
    """

    name: str
    context_name: str
    timestamp: datetime
    count: int
    total_time: float
    mean: float
    min: float
    max: float
    p50: float
    p95: float
    p99: float
    tags: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "context_name": self.context_name,
            "tags": self.tags,
            "timestamp": self.timestamp,
            "count": self.count,
            "total_time": self.total_time,
            "mean": self.mean,
            "min": self.min,
            "max": self.max,
            "p50": self.p50,
            "p95": self.p95,
            "p99": self.p99,
        }

"""
Metrics: In-process instruments for pipeline components

Provides tagged metric contexts that mint thread-safe meters and timers,
point-in-time snapshot models, and a logging reporter.
"""

from .context import MetricContext
from .instruments import DEFAULT_RESERVOIR_SIZE, Meter, Timer
from .models import MeterSnapshot, TimerSnapshot
from .reporter import MetricsReporter

__all__ = [
    "MetricContext",
    "Meter",
    "Timer",
    "DEFAULT_RESERVOIR_SIZE",
    "MeterSnapshot",
    "TimerSnapshot",
    "MetricsReporter",
]

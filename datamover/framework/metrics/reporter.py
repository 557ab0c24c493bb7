"""
Metrics reporter: Logs converter metrics summaries

Groups meter and timer snapshots by metric context and logs one summary per
instrumented component (input/output/failed counts, pass rate, latencies,
throughput).
"""

import logging
from typing import Any

from .context import MetricContext
from .models import MeterSnapshot, TimerSnapshot

logger = logging.getLogger(__name__)


class MetricsReporter:
    """Summarizes the instruments of a metric context tree."""

    def __init__(
        self,
        context: MetricContext,
        records_in: str,
        records_out: str,
        records_failed: str,
        timer: str,
    ):
        """Initialize reporter.

        Args:
            context: Root context to report on (children included)
            records_in: Meter name counting input records
            records_out: Meter name counting output records
            records_failed: Meter name counting failed records
            timer: Timer name measuring conversions
        """
        self.context = context
        self.records_in = records_in
        self.records_out = records_out
        self.records_failed = records_failed
        self.timer = timer

    def collect(self) -> dict[str, dict[str, Any]]:
        """Build a per-context summary.

        Returns:
            Mapping of context full name to summary dictionary with keys:
            - records_in / records_out / records_failed: meter counts
            - pass_rate: records_out / records_in as a percentage
            - total_time: sum of conversion durations (seconds)
            - avg_latency, p50_latency, p95_latency, p99_latency: seconds
            - throughput: input records per second of conversion time
        """
        summaries: dict[str, dict[str, Any]] = {}
        for snapshot in self.context.snapshot():
            summary = summaries.setdefault(
                snapshot.context_name,
                {
                    "records_in": 0,
                    "records_out": 0,
                    "records_failed": 0,
                    "total_time": 0.0,
                    "avg_latency": 0.0,
                    "p50_latency": 0.0,
                    "p95_latency": 0.0,
                    "p99_latency": 0.0,
                },
            )
            if isinstance(snapshot, MeterSnapshot):
                if snapshot.name == self.records_in:
                    summary["records_in"] = snapshot.count
                elif snapshot.name == self.records_out:
                    summary["records_out"] = snapshot.count
                elif snapshot.name == self.records_failed:
                    summary["records_failed"] = snapshot.count
            elif isinstance(snapshot, TimerSnapshot) and snapshot.name == self.timer:
                summary["total_time"] = snapshot.total_time
                summary["avg_latency"] = snapshot.mean
                summary["p50_latency"] = snapshot.p50
                summary["p95_latency"] = snapshot.p95
                summary["p99_latency"] = snapshot.p99

        for summary in summaries.values():
            records_in = summary["records_in"]
            summary["pass_rate"] = (100.0 * summary["records_out"] / records_in) if records_in > 0 else 0.0
            summary["throughput"] = records_in / summary["total_time"] if summary["total_time"] > 0 else 0.0

        # Contexts without any converter instruments (e.g. the task root) are not interesting
        return {name: s for name, s in summaries.items() if s["records_in"] or s["total_time"]}

    def report(self, level: int = logging.INFO) -> dict[str, dict[str, Any]]:
        """Log the summary of every instrumented component and return it."""
        summaries = self.collect()
        if not summaries:
            logger.log(level, "No converter metrics recorded")
            return summaries

        for name, s in summaries.items():
            logger.log(
                level,
                f"{name}: in={s['records_in']} out={s['records_out']} failed={s['records_failed']} "
                f"pass_rate={s['pass_rate']:.1f}% "
                f"avg={s['avg_latency'] * 1000:.2f}ms "
                f"p50/p95/p99={s['p50_latency'] * 1000:.2f}/{s['p95_latency'] * 1000:.2f}/"
                f"{s['p99_latency'] * 1000:.2f}ms "
                f"throughput={s['throughput']:.2f} records/sec",
            )
        return summaries

"""
Task context: Per-task state handed to every converter

Carries the task identity, its configuration properties and the root metric
context that instrumented components scope their metrics under.
"""

from collections.abc import Mapping
from typing import Any

from .metrics import DEFAULT_RESERVOIR_SIZE, MetricContext

# Task properties with this prefix become tags on the task's metric context
METRICS_TAG_PREFIX = "metrics.tags."
METRICS_RESERVOIR_SIZE_KEY = "metrics.reservoir.size"

_TRUE_VALUES = {"true", "1", "yes", "y", "on"}
_FALSE_VALUES = {"false", "0", "no", "n", "off"}


class TaskContext:
    """Configuration and metrics scope of a single task."""

    def __init__(
        self,
        task_id: str,
        job_name: str = "default",
        properties: Mapping[str, Any] | None = None,
    ):
        """Initialize task context.

        Args:
            task_id: Unique task identifier
            job_name: Name of the job the task belongs to
            properties: Task configuration properties
        """
        if not task_id:
            raise ValueError("task_id must be a non-empty string")
        self.task_id = task_id
        self.job_name = job_name
        self.properties: dict[str, Any] = dict(properties or {})
        self._metric_context: MetricContext | None = None

    @property
    def metric_context(self) -> MetricContext:
        """Root metric context of this task, created on first access."""
        if self._metric_context is None:
            tags = {"job_name": self.job_name, "task_id": self.task_id}
            for key, value in self.properties.items():
                if key.startswith(METRICS_TAG_PREFIX):
                    tags[key[len(METRICS_TAG_PREFIX) :]] = value
            self._metric_context = MetricContext(
                self.job_name,
                tags=tags,
                reservoir_size=self.get_prop_as_int(METRICS_RESERVOIR_SIZE_KEY, DEFAULT_RESERVOIR_SIZE),
            )
        return self._metric_context

    def get_prop(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def get_prop_as_int(self, key: str, default: int | None = None) -> int | None:
        value = self.properties.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Property '{key}' is not an integer: {value!r}") from e

    def get_prop_as_bool(self, key: str, default: bool = False) -> bool:
        value = self.properties.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        normalized = str(value).strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
        raise ValueError(f"Property '{key}' is not a boolean: {value!r}")

    def get_prop_as_list(self, key: str, default: list[str] | None = None) -> list[str]:
        """Read a list property (YAML list or comma-separated string)."""
        value = self.properties.get(key)
        if value is None:
            return list(default or [])
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return [str(item) for item in value]

    def set_prop(self, key: str, value: Any):
        self.properties[key] = value

    def close(self):
        """Close the task's metric context (and every scope under it)."""
        if self._metric_context is not None:
            self._metric_context.close()

    def __repr__(self) -> str:
        return f"TaskContext(task_id={self.task_id!r}, job_name={self.job_name!r})"

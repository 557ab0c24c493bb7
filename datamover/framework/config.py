"""
Configuration Management

YAML-based configuration classes for conversion tasks.
"""

from dataclasses import dataclass, field
from typing import Any

import yaml

from .metrics import DEFAULT_RESERVOIR_SIZE


@dataclass
class ConverterConfig:
    """Configuration for a single converter."""

    name: str  # Registry name (e.g., "json_string")
    params: dict[str, Any] = field(default_factory=dict)
    enabled: bool = True


@dataclass
class MetricsConfig:
    """Configuration for converter metrics."""

    report_on_completion: bool = True  # Log a metrics summary when the task finishes
    reservoir_size: int = DEFAULT_RESERVOIR_SIZE  # Recent durations kept per timer for percentiles
    tags: dict[str, Any] = field(default_factory=dict)  # Extra tags on the task's metric context

    def __post_init__(self):
        if self.reservoir_size < 1:
            raise ValueError(f"reservoir_size must be >= 1, got {self.reservoir_size}")


@dataclass
class TaskConfig:
    """Configuration for the conversion task."""

    task_id: str = "task_0"
    job_name: str = "default"
    properties: dict[str, Any] = field(default_factory=dict)  # Free-form task properties
    input_schema: Any = None  # Schema handed to the first converter's convert_schema
    max_records: int | None = None  # Stop after this many input records
    max_failures: int | None = None  # Abort once more records than this fail conversion
    log_interval: int = 1000  # Log progress every N input records

    def __post_init__(self):
        if not self.task_id:
            raise ValueError("task_id must be a non-empty string")
        if self.max_records is not None and self.max_records < 0:
            raise ValueError(f"max_records must be >= 0, got {self.max_records}")
        if self.max_failures is not None and self.max_failures < 0:
            raise ValueError(f"max_failures must be >= 0, got {self.max_failures}")
        if self.log_interval < 1:
            raise ValueError(f"log_interval must be >= 1, got {self.log_interval}")


@dataclass
class PipelineConfig:
    """Complete conversion pipeline configuration."""

    converters: list[ConverterConfig]
    task: TaskConfig = field(default_factory=TaskConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)

    def enabled_converters(self) -> list[ConverterConfig]:
        return [c for c in self.converters if c.enabled]

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "PipelineConfig":
        """Build configuration from a plain dictionary.

        Raises:
            ValueError: If no converter is configured
        """
        converter_dicts = config_dict.get("converters") or []
        if not converter_dicts:
            raise ValueError("Pipeline configuration must list at least one converter")

        return cls(
            converters=[ConverterConfig(**c) for c in converter_dicts],
            task=TaskConfig(**(config_dict.get("task") or {})),
            metrics=MetricsConfig(**(config_dict.get("metrics") or {})),
        )

    @classmethod
    def from_yaml(cls, config_path: str) -> "PipelineConfig":
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            PipelineConfig instance
        """
        with open(config_path) as f:
            config_dict = yaml.safe_load(f) or {}

        return cls.from_dict(config_dict)
